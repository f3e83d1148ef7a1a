"""Decides whether a user should be hounded to punch in or out."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .messages import hound_message
from .models import (
    ALL_MODES,
    Channel,
    ClockPunch,
    LastMessage,
    LeavePunch,
    NoPunch,
    Punch,
    Reminder,
    User,
)
from .organization import Organization
from .timing import NUDGE_THRESHOLD_HOURS, QUIET_PERIOD_HOURS, Clock, hours_between

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HoundSignals:
    """Everything the branch rules look at, measured in hours."""

    start: datetime
    end: datetime
    inactive: bool
    last_punch: Punch
    since_start: float
    since_end: float
    since_last_punch: Optional[float]
    since_last_message: float
    since_last_ping: float


class HoundEngine:
    """Evaluates one user against the hounding rules.

    The engine performs no I/O: it records ``settings.last_message`` and
    returns a :class:`Reminder` for the caller to deliver.
    """

    def __init__(
        self,
        organization: Organization,
        bot_name: str = "ibizan",
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.organization = organization
        self.bot_name = bot_name
        self.rng = rng or random.Random()
        self.clock = clock or Clock()

    def evaluate(
        self,
        handle: str,
        channel: Channel,
        now: Optional[datetime] = None,
        force_hound: bool = False,
        passive: bool = False,
    ) -> Optional[Reminder]:
        if handle == self.bot_name:
            logger.debug("Caught myself, don't hound the hound.")
            return None
        if not self.organization.ready:
            logger.debug("Don't hound, %s isn't ready yet", self.organization.name)
            return None
        user = self.organization.get_user(handle)
        if user is None:
            logger.debug("%s couldn't be found while attempting to hound", handle)
            return None
        settings = user.settings
        if not settings.should_hound or settings.hound_frequency <= 0:
            return None
        if channel.private or channel.name in self.organization.exempt_channels:
            logger.debug("#%s is not an appropriate hounding channel", channel.name)
            return None

        now = (now or self.clock.now()).astimezone(user.tz)
        previous = settings.last_message
        settings.last_message = LastMessage(time=now, channel=channel.name)

        signals = self.measure(user, now, previous)
        logger.debug(
            "%s - salaried: %s, now: %s, forced: %s, inactive: %s, start: %s, end: %s, "
            "timeSinceLastPunch: %s, timeSinceLastMessage: %.2f, timeSinceStart: %.2f, "
            "timeSinceEnd: %.2f, timeSinceLastPing: %.2f, houndFrequency: %s",
            user.handle,
            user.salaried,
            now.strftime("%I:%M %p, %Z"),
            force_hound,
            signals.inactive,
            signals.start.strftime("%I:%M %p"),
            signals.end.strftime("%I:%M %p"),
            "none" if signals.since_last_punch is None else f"{signals.since_last_punch:.2f}",
            signals.since_last_message,
            signals.since_start,
            signals.since_end,
            signals.since_last_ping,
            settings.hound_frequency,
        )

        frequency = settings.hound_frequency
        if not (signals.since_last_ping == 0 or signals.since_last_ping >= frequency):
            logger.debug(
                "%s is safe from hounding for another %.2f hours",
                user.handle,
                frequency - signals.since_last_ping,
            )
            return None
        if signals.since_last_punch is not None and signals.since_last_punch <= QUIET_PERIOD_HOURS:
            logger.debug(
                "%s is safe from hounding because they punched %.2f hours ago",
                user.handle,
                signals.since_last_punch,
            )
            return None

        direction = self.choose_direction(user, signals, now, passive)
        if direction is None:
            return None
        logger.info("Hounding %s to punch %s", user.handle, direction)
        return Reminder(
            handle=user.handle,
            direction=direction,
            text=hound_message(direction, self.rng),
            channel=channel.name,
            created_at=now,
        )

    def measure(self, user: User, now: datetime, previous: Optional[LastMessage]) -> HoundSignals:
        start, end = user.active_window(now)
        last_punch = user.last_punch(ALL_MODES)
        latest = last_punch.latest
        if isinstance(last_punch, NoPunch):
            since_last_punch = None
        elif latest is None:
            since_last_punch = 0.0
        else:
            since_last_punch = hours_between(now, latest)
        last_ping = user.settings.last_ping or now
        return HoundSignals(
            start=start,
            end=end,
            inactive=user.is_inactive(now),
            last_punch=last_punch,
            since_start=round(abs(hours_between(now, start)), 2),
            since_end=round(abs(hours_between(now, end)), 2),
            since_last_punch=since_last_punch,
            since_last_message=hours_between(now, previous.time) if previous else 0.0,
            since_last_ping=abs(hours_between(now, last_ping)),
        )

    def choose_direction(
        self, user: User, signals: HoundSignals, now: datetime, passive: bool
    ) -> Optional[str]:
        punch = signals.last_punch
        past_start = now > signals.start and signals.since_start >= NUDGE_THRESHOLD_HOURS
        past_end = now > signals.end and signals.since_end >= NUDGE_THRESHOLD_HOURS

        if isinstance(punch, NoPunch):
            if signals.inactive or passive:
                return None
            logger.debug("Considering hounding %s because of missing lastPunch during active period", user.handle)
            if past_start:
                return "in"
            if past_end:
                return "out"
            return None
        if isinstance(punch, LeavePunch):
            if passive:
                return None
            logger.debug("Considering hounding %s because lastPunch is %s", user.handle, punch.mode)
            window = punch.window()
            if window is not None and not window[0] <= now <= window[1]:
                return "in"
            return None
        if not isinstance(punch, ClockPunch):
            raise TypeError(f"Unhandled punch type: {type(punch).__name__}")

        if punch.mode == "in" and signals.inactive:
            logger.debug(
                "Considering hounding %s because lastPunch is in and it's outside of their active period",
                user.handle,
            )
            return "out" if past_end else None
        if punch.mode == "out" and not passive and not signals.inactive and past_start:
            logger.debug("Considering hounding %s because lastPunch is out during active period", user.handle)
            return "in"
        if (
            not user.salaried
            and punch.mode == "in"
            and signals.since_last_punch is not None
            and signals.since_last_punch > user.settings.hound_frequency
        ):
            logger.debug("%s has been punched in longer than their hound frequency", user.handle)
            return "out"
        return None


__all__ = ["HoundEngine", "HoundSignals"]
