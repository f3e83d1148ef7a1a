"""Dataclasses representing Slack Hound domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

CLOCK_MODES = frozenset({"in", "out"})
LEAVE_MODES = frozenset({"vacation", "sick", "unpaid"})
ALL_MODES = CLOCK_MODES | LEAVE_MODES


@dataclass(slots=True, frozen=True)
class NoPunch:
    """Stand-in returned when a user has no punch of the requested kinds."""

    mode: None = None

    @property
    def latest(self) -> None:
        return None


@dataclass(slots=True)
class ClockPunch:
    mode: str
    times: List[datetime] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.mode not in CLOCK_MODES:
            raise ValueError(f"Unknown clock punch mode: {self.mode}")

    @property
    def latest(self) -> Optional[datetime]:
        return self.times[-1] if self.times else None


@dataclass(slots=True)
class LeavePunch:
    """A vacation, sick or unpaid punch.

    A leave either spans an explicit ``[begin, end]`` pair in ``times`` or
    starts on ``date`` and lasts ``block`` hours.
    """

    mode: str
    times: List[datetime] = field(default_factory=list)
    date: Optional[datetime] = None
    block: Optional[float] = None

    def __post_init__(self) -> None:
        if self.mode not in LEAVE_MODES:
            raise ValueError(f"Unknown leave punch mode: {self.mode}")

    @property
    def latest(self) -> Optional[datetime]:
        if self.times:
            return self.times[-1]
        return self.date

    def window(self) -> Optional[tuple[datetime, datetime]]:
        if len(self.times) >= 2:
            return self.times[0], self.times[1]
        if self.block and self.date is not None:
            return self.date, self.date + timedelta(hours=self.block)
        return None


Punch = Union[NoPunch, ClockPunch, LeavePunch]
NO_PUNCH = NoPunch()


@dataclass(slots=True)
class LastMessage:
    time: datetime
    channel: str


@dataclass(slots=True)
class HoundSettings:
    """Per-user hounding preferences and bookkeeping."""

    should_hound: bool = True
    should_reset_hound: bool = True
    hound_frequency: float = -1
    last_message: Optional[LastMessage] = None
    last_ping: Optional[datetime] = None

    def update(self, **changes: Any) -> None:
        for key, value in changes.items():
            if not hasattr(self, key):
                raise AttributeError(f"HoundSettings has no field {key!r}")
            setattr(self, key, value)

    @property
    def enabled(self) -> bool:
        return self.should_hound and self.hound_frequency > -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "should_hound": self.should_hound,
            "should_reset_hound": self.should_reset_hound,
            "hound_frequency": self.hound_frequency,
            "last_message": (
                {
                    "time": self.last_message.time.isoformat(),
                    "channel": self.last_message.channel,
                }
                if self.last_message
                else None
            ),
            "last_ping": self.last_ping.isoformat() if self.last_ping else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HoundSettings":
        last_message = data.get("last_message")
        last_ping = data.get("last_ping")
        return cls(
            should_hound=bool(data.get("should_hound", True)),
            should_reset_hound=bool(data.get("should_reset_hound", True)),
            hound_frequency=float(data.get("hound_frequency", -1)),
            last_message=(
                LastMessage(
                    time=datetime.fromisoformat(last_message["time"]),
                    channel=last_message["channel"],
                )
                if last_message
                else None
            ),
            last_ping=datetime.fromisoformat(last_ping) if last_ping else None,
        )


@dataclass(slots=True)
class User:
    handle: str
    display_name: str
    salaried: bool = True
    timezone: str = "America/New_York"
    active_hours: tuple[time, time] = (time(9, 0), time(17, 0))
    punches: List[Punch] = field(default_factory=list)
    settings: HoundSettings = field(default_factory=HoundSettings)
    slack_id: Optional[str] = None

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def last_punch(self, kinds: Iterable[str] = ALL_MODES) -> Punch:
        wanted = set(kinds)
        for punch in reversed(self.punches):
            if punch.mode in wanted:
                return punch
        return NO_PUNCH

    def active_window(self, now: datetime) -> tuple[datetime, datetime]:
        """Return today's active-hours bounds in the user's timezone."""

        local = now.astimezone(self.tz)
        start, end = self.active_hours
        day = local.date()
        return (
            datetime.combine(day, start, tzinfo=self.tz),
            datetime.combine(day, end, tzinfo=self.tz),
        )

    def is_inactive(self, now: datetime) -> bool:
        start, end = self.active_window(now)
        return not start <= now <= end


@dataclass(slots=True)
class Channel:
    name: str
    private: bool = False

    @classmethod
    def from_slack(cls, payload: Optional[Dict[str, Any]]) -> "Channel":
        """Build a channel from a ``conversations.info`` payload.

        Channels Slack reports without a name are direct messages.
        """

        if not payload or not payload.get("name"):
            return cls(name="DM", private=True)
        private = bool(
            payload.get("is_im") or payload.get("is_group") or payload.get("is_private")
        )
        return cls(name=payload["name"], private=private)


@dataclass(slots=True)
class Reminder:
    handle: str
    direction: str
    text: str
    channel: str
    created_at: datetime


@dataclass(slots=True)
class CalendarEvent:
    date: datetime
    name: str


__all__ = [
    "ALL_MODES",
    "CLOCK_MODES",
    "LEAVE_MODES",
    "NO_PUNCH",
    "CalendarEvent",
    "Channel",
    "ClockPunch",
    "HoundSettings",
    "LastMessage",
    "LeavePunch",
    "NoPunch",
    "Punch",
    "Reminder",
    "User",
]
