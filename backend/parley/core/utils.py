"""
Utility functions for the application.
"""
from typing import Any, Dict
from datetime import datetime, timezone
import re
import secrets

from parley.core.errors import BadRequestError

_OBJECT_ID_RE = re.compile(r"^[0-9a-f]{24}$")


def new_id() -> str:
    """Generate an opaque 24-character hex identifier."""
    return secrets.token_hex(12)


def is_valid_id(value: Any) -> bool:
    """Check whether a value looks like an identifier we issue."""
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))


def parse_id(value: Any, label: str = "ID") -> str:
    """Return a normalized identifier or raise BadRequestError."""
    if isinstance(value, str):
        value = value.strip().lower()
    if not is_valid_id(value):
        raise BadRequestError(f"Invalid {label}")
    return value


def utcnow() -> datetime:
    """Timezone-aware current UTC time with millisecond resolution."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"success": False, "error": message}
    if details:
        response["details"] = details
    return response
