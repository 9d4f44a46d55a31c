# helpers.py
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        # Mongo hands back naive UTC datetimes unless tz_aware is set
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def to_json(record: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Shape a stored record for a JSON response (datetimes as ISO strings)."""
    if record is None:
        return None
    out = {}
    for key, value in record.items():
        out[key] = _iso(value) if isinstance(value, datetime) else value
    return out
