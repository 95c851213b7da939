from __future__ import annotations

from datetime import datetime
from typing import Any, Optional


def optional_str(value: Any) -> Optional[str]:
    """PocketBase sends "" for unset text fields; surface those as None."""
    if value is None or value == "":
        return None
    return str(value)


def optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a PocketBase datetime such as ``2024-03-01 12:00:00.123Z``."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip().replace(" ", "T", 1)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def filter_literal(value: str) -> str:
    """Quote a value for use inside a PocketBase filter expression.

    The filter parser only unescapes the quote character, so backslashes
    are sent as-is.
    """
    escaped = value.replace('"', '\\"')
    return f'"{escaped}"'
