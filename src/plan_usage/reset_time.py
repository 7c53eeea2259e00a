"""Helpers for turning reset times into "2h 40m" style strings."""

from __future__ import annotations

import re
from datetime import datetime, timezone

# fromisoformat before 3.11 only takes 3 or 6 fractional digits.
FRACTION_RE = re.compile(r"(\.\d+)(?=[+-]\d{2}:?\d{2}$|$)")


def format_duration(hours: int, minutes: int) -> str:
    if hours > 0 and minutes > 0:
        return f"{hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h"
    return f"{minutes}m"


def format_minutes(total_minutes: int) -> str:
    hours, minutes = divmod(max(total_minutes, 0), 60)
    return format_duration(hours, minutes)


def _normalize_fraction(raw: str) -> str:
    return FRACTION_RE.sub(lambda m: m.group(1)[:7].ljust(7, "0"), raw, count=1)


def parse_iso_timestamp(raw: object) -> datetime | None:
    """Parse an ISO-8601 timestamp from the API; naive values are taken as UTC."""
    if not raw or not isinstance(raw, str):
        return None
    try:
        ts = datetime.fromisoformat(_normalize_fraction(raw.strip().replace("Z", "+00:00")))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def minutes_until(resets_at: datetime, now: datetime) -> int:
    """Whole minutes from now until resets_at, never negative."""
    seconds = (resets_at - now).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)
