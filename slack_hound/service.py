"""Core orchestration logic for Slack Hound."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime
from typing import Dict, Optional

import httpx

from .commands import CommandResult, SettingsCommandProcessor
from .config import Settings
from .db import Database
from .engine import HoundEngine
from .messages import reset_report
from .models import Channel, Reminder
from .organization import Organization
from .slack_client import SlackApiError, SlackClient
from .timing import Clock, next_reset_at, seconds_until

logger = logging.getLogger(__name__)

HOUND_COMMAND = re.compile(r"^\s*(?:<@\w+>\s*)?hound\b\s*(?P<command>.*)$", re.IGNORECASE | re.DOTALL)

SLACK_ERRORS = (SlackApiError, httpx.HTTPError)


class HoundService:
    """Connects Slack triggers to the hound engine and command processor."""

    def __init__(
        self,
        settings: Settings,
        organization: Organization,
        database: Database,
        client: SlackClient,
        engine: Optional[HoundEngine] = None,
        processor: Optional[SettingsCommandProcessor] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings
        self.organization = organization
        self.database = database
        self.client = client
        self.clock = clock or Clock()
        self.engine = engine or HoundEngine(organization, bot_name=settings.bot_name, clock=self.clock)
        self.processor = processor or SettingsCommandProcessor(organization)
        self._handles: Dict[str, str] = {}

    # region Directory
    def load_directory(self) -> None:
        frequency = self.database.get_option("hound_frequency", self.settings.hound_frequency)
        exempt = self.database.get_option("exempt_channels", sorted(self.settings.exempt_channels))
        users = self.database.load_users(default_frequency=frequency)
        self.organization.sync(
            users,
            hound_frequency=frequency,
            exempt_channels=exempt,
            should_hound=self.database.get_option("should_hound"),
            should_reset_hound=self.database.get_option("should_reset_hound"),
        )

    def persist(self, *handles: str) -> None:
        for handle in handles:
            user = self.organization.get_user(handle)
            if user is not None:
                self.database.save_settings(user.handle, user.settings)

    async def resolve_handle(self, user_id: str) -> Optional[str]:
        if user_id in self._handles:
            return self._handles[user_id]
        for user in self.organization.users:
            if user.slack_id == user_id:
                self._handles[user_id] = user.handle
                return user.handle
        try:
            info = await self.client.user_info(user_id)
        except SLACK_ERRORS as exc:
            logger.debug("Could not resolve Slack user %s: %s", user_id, exc)
            return None
        handle = info.get("name")
        if handle:
            self._handles[user_id] = handle
        return handle

    # endregion

    # region Hounding
    async def hound(
        self,
        handle: Optional[str],
        channel: Channel,
        force_hound: bool = False,
        passive: bool = False,
    ) -> Optional[Reminder]:
        if not handle:
            return None
        reminder = self.engine.evaluate(handle, channel, force_hound=force_hound, passive=passive)
        if self.organization.ready:
            self.persist(handle)
        if reminder is not None:
            await self.deliver(reminder)
        return reminder

    async def deliver(self, reminder: Reminder) -> bool:
        user = self.organization.get_user(reminder.handle)
        if user is None or not user.slack_id:
            logger.warning("No Slack id for %s, dropping reminder", reminder.handle)
            return False
        try:
            await self.client.direct_message(user.slack_id, reminder.text)
        except SLACK_ERRORS as exc:
            logger.error("Failed to hound %s: %s", reminder.handle, exc)
            return False
        user.settings.last_ping = reminder.created_at
        self.persist(user.handle)
        return True

    async def on_user_typing(self, user_id: str, channel_id: str) -> Optional[Reminder]:
        handle = await self.resolve_handle(user_id)
        try:
            payload = await self.client.channel_info(channel_id)
        except SLACK_ERRORS as exc:
            logger.debug("Could not load channel %s: %s", channel_id, exc)
            payload = None
        return await self.hound(handle, Channel.from_slack(payload))

    async def on_presence_change(self, user_id: str, presence: str) -> Optional[Reminder]:
        if presence != "active":
            return None
        handle = await self.resolve_handle(user_id)
        return await self.hound(handle, Channel(name=""), passive=True)

    async def sweep(self) -> int:
        """Evaluate every user passively; return how many were hounded."""

        if not self.organization.ready:
            logger.warning("Don't autohound, %s isn't ready yet", self.organization.name)
            return 0
        sent = 0
        for user in list(self.organization.users):
            reminder = await self.hound(user.handle, Channel(name=""), force_hound=True, passive=True)
            if reminder is not None:
                sent += 1
        return sent

    async def morning_reset(self) -> Optional[int]:
        if not self.organization.ready:
            logger.warning("Don't run scheduled reset, %s isn't ready yet", self.organization.name)
            return None
        count = self.organization.reset_hounding()
        self.persist(*(user.handle for user in self.organization.users))
        response = reset_report(count)
        logger.info(response)
        try:
            await self.client.post_message(self.settings.diagnostics_channel, response)
        except SLACK_ERRORS as exc:
            logger.error("Could not post reset report: %s", exc)
        return count

    # endregion

    # region Commands
    def apply_command(self, handle: str, command: str) -> CommandResult:
        result = self.processor.process(command, handle)
        if result.mutation is not None:
            self.persist(*result.mutation.handles)
            if result.mutation.scope == "org":
                self.database.set_option("hound_frequency", self.organization.hound_frequency)
                self.database.set_option("should_hound", self.organization.should_hound)
                self.database.set_option("should_reset_hound", self.organization.should_reset_hound)
        return result

    async def handle_message(
        self, user_id: str, text: str, channel_id: Optional[str] = None, ts: Optional[str] = None
    ) -> Optional[CommandResult]:
        match = HOUND_COMMAND.match(text or "")
        if not match:
            return None
        handle = await self.resolve_handle(user_id)
        if not handle:
            return None
        result = self.apply_command(handle, match.group("command"))
        try:
            await self.client.direct_message(user_id, result.reply)
            if channel_id and ts:
                await self.client.add_reaction(channel_id, ts, result.reaction)
        except SLACK_ERRORS as exc:
            logger.error("Could not reply to hound command from %s: %s", handle, exc)
        return result

    # endregion

    # region Schedules
    async def run_sweeps(self) -> None:
        while True:
            await asyncio.sleep(self.settings.sweep_interval_seconds)
            try:
                await self.sweep()
            except Exception as exc:  # noqa: BLE001
                logger.error("Hound sweep failed: %s", exc)

    def next_reset(self, now: datetime, previous: Optional[datetime] = None) -> datetime:
        """Next reset after ``now``, never firing ``previous`` twice."""

        if previous is not None and previous > now:
            now = previous
        return next_reset_at(now, self.settings.reset_hour, self.settings.org_timezone)

    async def run_daily_resets(self) -> None:
        target: Optional[datetime] = None
        while True:
            now = self.clock.now()
            target = self.next_reset(now, target)
            await asyncio.sleep(seconds_until(target, now))
            try:
                await self.morning_reset()
            except Exception as exc:  # noqa: BLE001
                logger.error("Hound reset failed: %s", exc)

    # endregion


__all__ = ["HOUND_COMMAND", "HoundService"]
