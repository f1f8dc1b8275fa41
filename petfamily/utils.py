from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def utcnow() -> datetime:
    # naive datetimes in the database are UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime into a naive UTC datetime.

    Accepts the ``Z`` suffix produced by ``Date.prototype.toISOString`` and
    plain ``YYYY-MM-DD`` dates. Empty values give ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        raw = str(value).strip()
        if not raw:
            return None
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        dt = datetime.fromisoformat(raw)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="milliseconds") + "Z"


def to_snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)
