"""Organization-wide hounding policy and the user directory it owns."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from .models import CalendarEvent, HoundSettings, User

logger = logging.getLogger(__name__)


class Organization:
    """Shared policy context injected into the engine, processor and service.

    ``ready`` stays false until a directory has been loaded with ``sync``;
    every trigger checks it before touching users.
    """

    def __init__(
        self,
        name: str,
        hound_frequency: float = 1.0,
        exempt_channels: Iterable[str] = (),
        should_hound: bool = True,
        should_reset_hound: bool = True,
    ) -> None:
        self.name = name
        self.hound_frequency = hound_frequency
        self.exempt_channels = set(exempt_channels)
        self.should_hound = should_hound
        self.should_reset_hound = should_reset_hound
        self.users: List[User] = []
        self.events: List[CalendarEvent] = []
        self.ready = False

    def sync(
        self,
        users: Iterable[User],
        hound_frequency: Optional[float] = None,
        exempt_channels: Optional[Iterable[str]] = None,
        should_hound: Optional[bool] = None,
        should_reset_hound: Optional[bool] = None,
    ) -> None:
        """Replace the directory, keeping settings of users already known."""

        previous = {user.handle: user.settings for user in self.users}
        self.users = list(users)
        for user in self.users:
            if user.handle in previous:
                user.settings = HoundSettings.from_dict(previous[user.handle].to_dict())
        if hound_frequency is not None:
            self.hound_frequency = hound_frequency
        if exempt_channels is not None:
            self.exempt_channels = set(exempt_channels)
        if should_hound is not None:
            self.should_hound = should_hound
        if should_reset_hound is not None:
            self.should_reset_hound = should_reset_hound
        self.ready = True
        logger.info("Loaded %s users for %s", len(self.users), self.name)

    def get_user(self, handle: str) -> Optional[User]:
        for user in self.users:
            if user.handle == handle:
                return user
        logger.debug("User %s could not be found", handle)
        return None

    def get_user_by_real_name(self, name: str) -> Optional[User]:
        for user in self.users:
            if user.display_name == name:
                return user
        logger.debug("Person %s could not be found", name)
        return None

    def reset_hounding(self) -> int:
        """Re-enable hounding for every user whose pause expires on reset."""

        count = 0
        for user in self.users:
            if user.settings.should_reset_hound:
                user.settings.update(should_hound=True)
                count += 1
        return count

    def set_hound_frequency(self, frequency: float) -> int:
        self.hound_frequency = frequency
        for user in self.users:
            user.settings.update(hound_frequency=frequency)
        return len(self.users)

    def set_should_hound(self, should: bool) -> int:
        for user in self.users:
            user.settings.update(should_hound=should)
        return len(self.users)

    def add_event(self, date: datetime | str, name: str) -> CalendarEvent:
        if isinstance(date, str):
            try:
                date = datetime.strptime(date, "%m/%d/%Y")
            except ValueError as exc:
                raise ValueError(f"Invalid date given to add_event: {date!r}") from exc
        if not isinstance(date, datetime):
            raise ValueError(f"Invalid date given to add_event: {date!r}")
        if not name or not name.strip():
            raise ValueError("Invalid name given to add_event")
        event = CalendarEvent(date=date, name=name.strip())
        self.events.append(event)
        return event

    def status_text(self) -> str:
        return describe_status(self.should_hound, self.should_reset_hound, self.hound_frequency)


def describe_status(should_hound: bool, should_reset_hound: bool, frequency: float) -> str:
    if not should_reset_hound:
        return "disabled"
    if not should_hound or frequency <= 0:
        return "off"
    return f"on, and is set to ping every *{frequency:g} hours* while active"


__all__ = ["Organization", "describe_status"]
