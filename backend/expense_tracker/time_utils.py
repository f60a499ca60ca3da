from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional

# Canonical storage/format layout (also accepted on input)
CANONICAL_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_ONLY_FORMAT = "%Y-%m-%d"

_RFC3339_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:\d{2})$"
)


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_rfc3339(s: str) -> Optional[datetime]:
    m = _RFC3339_RE.match(s)
    if not m:
        return None
    base = m.group("base").replace("t", "T")
    # Nanosecond precision is truncated to microseconds
    frac = (m.group("frac") or "")[:6].ljust(6, "0")
    tz = m.group("tz")
    if tz in ("Z", "z"):
        tz = "+00:00"
    return datetime.fromisoformat(f"{base}.{frac}{tz}")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a timestamp string and normalize to UTC-naive datetime.

    Accepted layouts, tried in order:
    - canonical "YYYY-MM-DD HH:MM:SS" (interpreted as UTC)
    - RFC3339 "YYYY-MM-DDTHH:MM:SSZ" or with "+/-HH:MM" offset
    - RFC3339 with fractional seconds (up to nanoseconds)
    - date-only "YYYY-MM-DD" (midnight UTC)

    - None / "" -> None
    - anything else raises ValueError
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    try:
        return datetime.strptime(s, CANONICAL_FORMAT)
    except ValueError:
        pass

    dt = _parse_rfc3339(s)
    if dt is not None:
        try:
            return dt.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            # Offset pushes the instant past year 1 or 9999
            raise ValueError(f"timestamp out of range: {value}")

    try:
        return datetime.strptime(s, DATE_ONLY_FORMAT)
    except ValueError:
        pass

    raise ValueError(f"unsupported time format: {value}")


def coerce_timestamp(value) -> Optional[datetime]:
    """Like parse_timestamp, but also passes datetimes/dates through (normalized to UTC-naive)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return parse_timestamp(value)
    raise ValueError(f"unsupported time value: {value!r}")


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
