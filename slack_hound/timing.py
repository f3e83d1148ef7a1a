"""Time helpers shared by the hound engine, command processor and scheduler."""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

QUIET_PERIOD_HOURS = 0.25
NUDGE_THRESHOLD_HOURS = 0.5

HOURS_PATTERN = re.compile(
    r"^\s*(?P<value>\d+(?:\.\d+)?|\.\d+)\s+(?P<unit>hours?)\s*$",
    re.IGNORECASE,
)


class Clock:
    """Source of the current time. Tests substitute a fixed clock."""

    def now(self, tz: str | ZoneInfo | None = None) -> datetime:
        current = datetime.now(timezone.utc)
        if tz is None:
            return current
        zone = ZoneInfo(tz) if isinstance(tz, str) else tz
        return current.astimezone(zone)


class FixedClock(Clock):
    def __init__(self, instant: datetime) -> None:
        self.instant = instant

    def now(self, tz: str | ZoneInfo | None = None) -> datetime:
        if tz is None:
            return self.instant
        zone = ZoneInfo(tz) if isinstance(tz, str) else tz
        return self.instant.astimezone(zone)


def hours_between(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / 3600.0


def parse_hours(text: str) -> Optional[timedelta]:
    """Parse ``"<number> hour(s)"`` into a duration.

    Returns ``None`` for anything malformed, for zero, and for a singular
    ``hour`` with a value above one.
    """

    match = HOURS_PATTERN.match(text or "")
    if not match:
        return None
    value = float(match.group("value"))
    if value <= 0:
        return None
    unit = match.group("unit").lower()
    if unit == "hour" and value > 1:
        return None
    return timedelta(hours=value)


def duration_hours(duration: timedelta) -> float:
    return round(duration.total_seconds() / 3600.0, 2)


def format_hours(value: float) -> str:
    return f"{value:g}"


def next_reset_at(now: datetime, hour: int, tz: str | ZoneInfo) -> datetime:
    """Return the next weekday ``hour:00`` strictly after ``now`` in ``tz``."""

    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    local = now.astimezone(zone)
    candidate = datetime.combine(local.date(), time(hour, 0), tzinfo=zone)
    if candidate <= local:
        candidate += timedelta(days=1)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return candidate


def seconds_until(target: datetime, now: datetime) -> float:
    return max((target - now).total_seconds(), 0.0)


__all__ = [
    "Clock",
    "FixedClock",
    "NUDGE_THRESHOLD_HOURS",
    "QUIET_PERIOD_HOURS",
    "duration_hours",
    "format_hours",
    "hours_between",
    "next_reset_at",
    "parse_hours",
    "seconds_until",
]
