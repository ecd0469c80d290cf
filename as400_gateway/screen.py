"""
TN5250 screen rendering.

Builds the fixed-width text block that accompanies every command result.
Output depends only on the title, record count and timestamp passed in.
"""

from datetime import datetime, timezone
from typing import Optional

SCREEN_WIDTH = 80
SYSTEM_BANNER = "IBM AS/400 SYSTEM"
SESSION_ID = "TN5250-MCP-001"
SESSION_USER = "MCPUSER"
FUNCTION_KEYS = "F3=Exit  F5=Refresh  F12=Cancel"


def center_text(text: str, width: int = SCREEN_WIDTH) -> str:
    """Left-pad text so it sits centered in `width` columns."""
    padding = max(0, (width - len(text)) // 2)
    return " " * padding + text


def render_screen(title: str, record_count: int, timestamp: Optional[datetime] = None,
                  status: str = "SUCCESS", width: int = SCREEN_WIDTH) -> str:
    """Render a screen buffer.

    Args:
        title: Query title shown under the banner.
        record_count: Value for the "Records Found" line.
        timestamp: Time shown on the screen; defaults to now (UTC).
        status: Status line value.
        width: Screen width in columns.

    Returns:
        The screen as newline-separated text with no trailing newline.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    border = "=" * width

    lines = [
        border,
        center_text(SYSTEM_BANNER, width),
        center_text(title, width),
        border,
        "",
        f"  Session: {SESSION_ID}",
        f"  User: {SESSION_USER}",
        f"  Time: {timestamp.isoformat()}",
        "",
        f"  Records Found: {record_count}",
        f"  Status: {status}",
        "",
        border,
        f"  {FUNCTION_KEYS}",
        border,
    ]
    return "\n".join(lines)
