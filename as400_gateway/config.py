"""
Gateway configuration.

This module provides:
- GatewayConfig and its section dataclasses
- Loading from YAML (explicit path, packaged default, or hard-coded defaults)
- ConfigValidator, which reports every problem found in a raw config dict
"""

import copy
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .rate_limiter import RateLimitConfig

DEFAULT_SEED = "frankenstack-2025"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "default_config.yaml"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid gateway configuration: " + "; ".join(self.errors))


@dataclass
class ConnectionConfig:
    """Simulated session behaviour."""
    connect_latency_ms: int = 800
    disconnect_latency_ms: int = 300
    failure_rate: float = 0.05
    inactivity_timeout_s: float = 15 * 60


@dataclass
class SimulationConfig:
    """Simulated host behaviour."""
    processing_delay_ms: int = 1500


@dataclass
class LoggingConfig:
    """Log output settings."""
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None


@dataclass
class GatewayConfig:
    """Complete gateway configuration."""
    seed: str = DEFAULT_SEED
    default_timeout_ms: int = 5000
    dataset_size: int = 100
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "GatewayConfig":
        """Build a config from a raw dict, validating it first.

        Raises:
            ConfigValidationError: If any value is missing or out of range.
        """
        is_valid, errors = ConfigValidator.validate(raw)
        if not is_valid:
            raise ConfigValidationError(errors)

        gateway = raw.get("gateway", {}) or {}
        return cls(
            seed=str(gateway.get("seed", DEFAULT_SEED)),
            default_timeout_ms=int(gateway.get("default_timeout_ms", 5000)),
            dataset_size=int(gateway.get("dataset_size", 100)),
            rate_limit=RateLimitConfig(**(raw.get("rate_limit") or {})),
            connection=ConnectionConfig(**(raw.get("connection") or {})),
            simulation=SimulationConfig(**(raw.get("simulation") or {})),
            logging=LoggingConfig(**(raw.get("logging") or {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the nested YAML layout."""
        return {
            "gateway": {
                "seed": self.seed,
                "default_timeout_ms": self.default_timeout_ms,
                "dataset_size": self.dataset_size,
            },
            "rate_limit": asdict(self.rate_limit),
            "connection": asdict(self.connection),
            "simulation": asdict(self.simulation),
            "logging": asdict(self.logging),
        }


class ConfigValidator:
    """Validates raw gateway configuration dicts."""

    SECTIONS = {
        "gateway": {"seed", "default_timeout_ms", "dataset_size"},
        "rate_limit": {"tokens_per_second", "capacity", "max_waiting"},
        "connection": {"connect_latency_ms", "disconnect_latency_ms",
                       "failure_rate", "inactivity_timeout_s"},
        "simulation": {"processing_delay_ms"},
        "logging": {"level", "format", "file_path"},
    }

    LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    LOG_FORMATS = {"json", "text"}

    @staticmethod
    def validate(config: Any) -> Tuple[bool, List[str]]:
        """Validate a configuration dict.

        Returns:
            Tuple of (is_valid, error_messages).
        """
        if not isinstance(config, dict):
            return False, ["Configuration must be a mapping"]

        errors: List[str] = []

        for section, value in config.items():
            if section not in ConfigValidator.SECTIONS:
                errors.append(f"Unknown section: {section}")
                continue
            if value is None:
                continue
            if not isinstance(value, dict):
                errors.append(f"Section {section} must be a mapping")
                continue
            for key in value:
                if key not in ConfigValidator.SECTIONS[section]:
                    errors.append(f"Unknown field {section}.{key}")

        def section(name: str) -> Dict[str, Any]:
            value = config.get(name)
            return value if isinstance(value, dict) else {}

        gateway = section("gateway")
        if "seed" in gateway and not isinstance(gateway["seed"], str):
            errors.append(f"gateway.seed must be a string: {gateway['seed']!r}")
        errors.extend(_check_int(gateway, "gateway", "default_timeout_ms", minimum=1))
        errors.extend(_check_int(gateway, "gateway", "dataset_size", minimum=1, maximum=900))

        rate_limit = section("rate_limit")
        errors.extend(_check_number(rate_limit, "rate_limit", "tokens_per_second", minimum=0,
                                    exclusive=True))
        errors.extend(_check_int(rate_limit, "rate_limit", "capacity", minimum=1))
        errors.extend(_check_int(rate_limit, "rate_limit", "max_waiting", minimum=0))

        connection = section("connection")
        errors.extend(_check_int(connection, "connection", "connect_latency_ms", minimum=0))
        errors.extend(_check_int(connection, "connection", "disconnect_latency_ms", minimum=0))
        errors.extend(_check_number(connection, "connection", "failure_rate", minimum=0, maximum=1))
        errors.extend(_check_number(connection, "connection", "inactivity_timeout_s", minimum=0,
                                    exclusive=True))

        simulation = section("simulation")
        errors.extend(_check_int(simulation, "simulation", "processing_delay_ms", minimum=0))

        logging_section = section("logging")
        level = logging_section.get("level")
        if level is not None and str(level).upper() not in ConfigValidator.LOG_LEVELS:
            errors.append(f"Invalid logging.level: {level}")
        log_format = logging_section.get("format")
        if log_format is not None and log_format not in ConfigValidator.LOG_FORMATS:
            errors.append(f"Invalid logging.format: {log_format} (must be json or text)")

        return len(errors) == 0, errors


def _check_int(section: Dict[str, Any], name: str, key: str,
               minimum: Optional[int] = None, maximum: Optional[int] = None) -> List[str]:
    if key not in section:
        return []
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, int):
        return [f"{name}.{key} must be an integer: {value!r}"]
    if minimum is not None and value < minimum:
        return [f"{name}.{key} must be >= {minimum}: {value}"]
    if maximum is not None and value > maximum:
        return [f"{name}.{key} must be <= {maximum}: {value}"]
    return []


def _check_number(section: Dict[str, Any], name: str, key: str,
                  minimum: Optional[float] = None, maximum: Optional[float] = None,
                  exclusive: bool = False) -> List[str]:
    if key not in section:
        return []
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return [f"{name}.{key} must be a number: {value!r}"]
    if minimum is not None:
        if exclusive and value <= minimum:
            return [f"{name}.{key} must be > {minimum}: {value}"]
        if not exclusive and value < minimum:
            return [f"{name}.{key} must be >= {minimum}: {value}"]
    if maximum is not None and value > maximum:
        return [f"{name}.{key} must be <= {maximum}: {value}"]
    return []


def _load_yaml(config_path: Union[str, Path]) -> Dict[str, Any]:
    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)
    return config if config else {}


def load_config(config_path: Optional[Union[str, Path]] = None,
                overrides: Optional[Dict[str, Any]] = None) -> GatewayConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to a YAML file. When None, the packaged default
            file is used if present, otherwise built-in defaults.
        overrides: Nested dict merged over the file contents.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ConfigValidationError: If the merged configuration is invalid.
    """
    if config_path is not None:
        raw = _load_yaml(config_path)
    elif DEFAULT_CONFIG_PATH.exists():
        raw = _load_yaml(DEFAULT_CONFIG_PATH)
    else:
        raw = GatewayConfig().to_dict()

    if overrides:
        raw = _deep_merge(raw, overrides)

    return GatewayConfig.from_dict(raw)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two configuration dictionaries."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
