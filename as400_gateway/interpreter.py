"""
Command Interpreter - SQL-like command language over the claims dataset.

This module provides the CommandInterpreter class that handles:
- Parsing command text into a ParsedCommand
- Executing SELECT / INSERT / COUNT / SHOW TABLES against in-memory claims
- Rendering the TN5250 screen buffer for each result

Grammar (keywords are case-insensitive, one statement, optional trailing ';'):
- SELECT * FROM CLAIMS [WHERE <field> <op> <value>]   op in =, >, <
- INSERT ...
- COUNT
- SHOW TABLES
"""

import asyncio
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .claims import MockClaim
from .errors import AS400InvalidCommandError
from .screen import render_screen


class CommandType(Enum):
    """Supported statements."""
    SELECT = "SELECT"
    INSERT = "INSERT"
    COUNT = "COUNT"
    SHOW_TABLES = "SHOW TABLES"


class Operator(Enum):
    """WHERE clause comparison operators."""
    EQ = "="
    GT = ">"
    LT = "<"


@dataclass
class Condition:
    """Single WHERE condition."""
    field: str
    operator: Operator
    value: str


@dataclass
class ParsedCommand:
    """Represents a parsed command."""
    command: CommandType
    raw: str
    table: Optional[str] = None
    condition: Optional[Condition] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "command": self.command.value,
            "raw": self.raw,
            "table": self.table,
            "condition": None if self.condition is None else {
                "field": self.condition.field,
                "operator": self.condition.operator.value,
                "value": self.condition.value,
            },
        }


@dataclass
class InterpretationResult:
    """Rows and rendered screen for one command."""
    title: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    screen_buffer: str = ""


FieldValue = Union[str, int]

# Typed field extractors for WHERE filtering, keyed by normalized field name
FIELD_EXTRACTORS: Dict[str, Callable[[MockClaim], FieldValue]] = {
    "id": lambda claim: claim.id,
    "policy_number": lambda claim: claim.policy_number,
    "claimant_name": lambda claim: claim.claimant_name,
    "location": lambda claim: claim.location,
    "damage_type": lambda claim: claim.damage_type,
    "amount": lambda claim: claim.amount,
    "date": lambda claim: claim.date.isoformat(),
    "status": lambda claim: claim.status,
}

# Legacy camelCase column names
FIELD_ALIASES = {
    "policynumber": "policy_number",
    "claimantname": "claimant_name",
    "damagetype": "damage_type",
}

# Fixed sizes of the catalog-only tables
CATALOG_TABLES = (
    ("POLICIES", 250),
    ("CUSTOMERS", 500),
)

CLAIMS_TABLE = "CLAIMS"

_SELECT_RE = re.compile(
    r"^SELECT\s+(?P<columns>.+?)\s+FROM\s+(?P<table>\S+)(?:\s+WHERE\s+(?P<where>.+))?$",
    re.IGNORECASE | re.DOTALL,
)
_CONDITION_RE = re.compile(r"^(?P<field>\w+)\s*(?P<op>[=<>])\s*(?P<value>.+)$", re.DOTALL)
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_QUOTED_RE = re.compile(r"(['\"]).*?\1")
_CONJUNCTION_RE = re.compile(r"\s(AND|OR)\s", re.IGNORECASE)


def resolve_field(name: str) -> Optional[str]:
    """Map a column name (any case, camelCase or snake_case) to its extractor key."""
    key = name.lower()
    key = FIELD_ALIASES.get(key, key)
    return key if key in FIELD_EXTRACTORS else None


def _as_int(value: FieldValue) -> Optional[int]:
    if isinstance(value, int):
        return value
    if _INTEGER_RE.match(value.strip()):
        return int(value)
    return None


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return value.strip()


class CommandInterpreter:
    """Parses and executes gateway commands against a fixed claims dataset.

    The dataset is read-only: INSERT is acknowledged without being applied.
    """

    def __init__(self, claims: Sequence[MockClaim],
                 processing_delay_ms: int = 1500,
                 now: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        """Initialize the interpreter.

        Args:
            claims: Backing dataset for queries.
            processing_delay_ms: Simulated AS/400 processing time per command.
            now: Time source for screen timestamps.
        """
        self._claims = tuple(claims)
        self.processing_delay_ms = processing_delay_ms
        self._now = now

    @property
    def claims(self) -> Sequence[MockClaim]:
        return self._claims

    def parse_command(self, raw_input: str) -> ParsedCommand:
        """Parse command text.

        Raises:
            AS400InvalidCommandError: If the text is outside the grammar.
        """
        text = raw_input.strip().rstrip(";").strip()
        if not text:
            raise AS400InvalidCommandError("Empty command received", command=raw_input)

        keyword = text.split(None, 1)[0].upper()

        if keyword == "SELECT":
            return self._parse_select(text, raw_input)
        if keyword == "INSERT":
            return ParsedCommand(command=CommandType.INSERT, raw=raw_input)
        if " ".join(text.split()).upper() == "COUNT":
            return ParsedCommand(command=CommandType.COUNT, raw=raw_input, table=CLAIMS_TABLE)
        if " ".join(text.split()).upper() == "SHOW TABLES":
            return ParsedCommand(command=CommandType.SHOW_TABLES, raw=raw_input)

        raise AS400InvalidCommandError(f"Unsupported command: {raw_input}", command=raw_input)

    def _parse_select(self, text: str, raw_input: str) -> ParsedCommand:
        match = _SELECT_RE.match(text)
        if not match:
            raise AS400InvalidCommandError(f"Invalid SELECT syntax: {raw_input}", command=raw_input)

        if match.group("columns").strip() != "*":
            raise AS400InvalidCommandError("Only SELECT * is supported", command=raw_input)

        table = match.group("table").upper()
        if table != CLAIMS_TABLE:
            raise AS400InvalidCommandError("Only CLAIMS table is supported", command=raw_input)

        where = match.group("where")
        condition = self._parse_condition(where.strip(), raw_input) if where else None
        return ParsedCommand(command=CommandType.SELECT, raw=raw_input, table=table,
                             condition=condition)

    def _parse_condition(self, clause: str, raw_input: str) -> Condition:
        if _CONJUNCTION_RE.search(_QUOTED_RE.sub("", clause)):
            raise AS400InvalidCommandError(
                f"Only one WHERE condition is supported: {clause}", command=raw_input
            )

        match = _CONDITION_RE.match(clause)
        if not match:
            raise AS400InvalidCommandError(f"Invalid WHERE clause syntax: {clause}",
                                           command=raw_input)

        field_name = match.group("field")
        if resolve_field(field_name) is None:
            raise AS400InvalidCommandError(f"Unknown field in WHERE clause: {field_name}",
                                           command=raw_input)

        operator = Operator(match.group("op"))
        value = _unquote(match.group("value"))
        if not value:
            raise AS400InvalidCommandError(f"Invalid WHERE clause syntax: {clause}",
                                           command=raw_input)
        if operator is not Operator.EQ and not _INTEGER_RE.match(value):
            raise AS400InvalidCommandError(
                f"Numeric comparison requires an integer value: {clause}", command=raw_input
            )

        return Condition(field=field_name, operator=operator, value=value)

    def filter_claims(self, condition: Optional[Condition]) -> List[MockClaim]:
        """Claims matching a single condition, in dataset order."""
        if condition is None:
            return list(self._claims)

        extract = FIELD_EXTRACTORS[resolve_field(condition.field)]

        if condition.operator is Operator.EQ:
            wanted = condition.value.lower()
            return [c for c in self._claims if str(extract(c)).lower() == wanted]

        bound = int(condition.value)
        matches = []
        for claim in self._claims:
            number = _as_int(extract(claim))
            if number is None:
                continue
            if condition.operator is Operator.GT and number > bound:
                matches.append(claim)
            elif condition.operator is Operator.LT and number < bound:
                matches.append(claim)
        return matches

    def interpret(self, raw_input: str) -> InterpretationResult:
        """Parse and execute a command without the simulated delay."""
        parsed = self.parse_command(raw_input)

        if parsed.command is CommandType.SELECT:
            claims = self.filter_claims(parsed.condition)
            return self._result("CLAIM QUERY RESULTS", [c.to_dict() for c in claims], len(claims))

        if parsed.command is CommandType.INSERT:
            return self._result("INSERT SUCCESSFUL",
                                [{"success": True, "message": "Record inserted"}], 1)

        if parsed.command is CommandType.COUNT:
            count = len(self._claims)
            return self._result("COUNT QUERY", [{"count": count}], count)

        tables = [{"name": CLAIMS_TABLE, "records": len(self._claims)}]
        tables.extend({"name": name, "records": records} for name, records in CATALOG_TABLES)
        return self._result("AVAILABLE TABLES", tables, len(tables))

    async def execute(self, raw_input: str) -> InterpretationResult:
        """Simulate AS/400 processing time, then interpret the command."""
        await asyncio.sleep(self.processing_delay_ms / 1000)
        return self.interpret(raw_input)

    def _result(self, title: str, rows: List[Dict[str, Any]], record_count: int) -> InterpretationResult:
        return InterpretationResult(
            title=title,
            rows=rows,
            screen_buffer=render_screen(title, record_count, self._now()),
        )
