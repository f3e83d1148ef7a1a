"""Parses ``hound ...`` commands into hounding settings changes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .messages import HOUND_HELP, NOT_UNDERSTOOD, REACTION_FAIL, REACTION_OK
from .models import User
from .organization import Organization, describe_status
from .timing import duration_hours, format_hours, parse_hours

logger = logging.getLogger(__name__)

START_ACTIONS = {"start", "on", "enable"}
STOP_ACTIONS = {"stop", "off", "disable"}
STATUS_ACTIONS = {"status", "info"}


@dataclass(slots=True)
class Mutation:
    scope: str
    changes: Dict[str, Any]
    handles: List[str] = field(default_factory=list)


@dataclass(slots=True)
class CommandResult:
    mutation: Optional[Mutation]
    reply: str
    reaction: str

    @property
    def ok(self) -> bool:
        return self.reaction == REACTION_OK


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def resolve_scope(tokens: List[str], org_name: str, handle: str) -> tuple[str, str]:
    """Return ``(scope, action)`` for a tokenized command."""

    first = tokens[0]
    if first in (org_name, "org"):
        return "org", " ".join(tokens[1:])
    if first in (handle, "self"):
        return "self", " ".join(tokens[1:])
    if len(tokens) > 1 and _is_number(first) and tokens[1].lower() in ("hour", "hours"):
        return "self", " ".join(tokens)
    if len(tokens) > 2:
        return "self", " ".join(tokens[1:])
    return "self", first


class SettingsCommandProcessor:
    def __init__(self, organization: Organization) -> None:
        self.organization = organization

    def process(self, raw_command: Optional[str], invoking_handle: str) -> CommandResult:
        tokens = (raw_command or "").split()
        if not tokens:
            return CommandResult(None, HOUND_HELP, REACTION_OK)

        scope, action = resolve_scope(tokens, self.organization.name, invoking_handle)
        if scope == "org":
            if not self.organization.ready:
                return CommandResult(None, "Organization is not ready", REACTION_FAIL)
            return self._process_org(action, raw_command)

        user = self.organization.get_user(invoking_handle)
        if user is None:
            logger.debug("Hound command from unknown user %s", invoking_handle)
            return CommandResult(None, "I couldn't find you in the directory.", REACTION_FAIL)
        return self._process_self(user, action, raw_command)

    def _process_self(self, user: User, action: str, raw_command: str) -> CommandResult:
        settings = user.settings
        keyword = action.strip().lower()
        duration = parse_hours(action)

        if duration is not None:
            hours = duration_hours(duration)
            changes = {"should_hound": True, "should_reset_hound": True, "hound_frequency": hours}
            settings.update(**changes)
            return self._changed(
                "self",
                changes,
                [user.handle],
                f"Hounding frequency set to be every {format_hours(hours)} hours during your active timers.",
            )
        if keyword in START_ACTIONS:
            frequency = (
                settings.hound_frequency
                if settings.hound_frequency > -1
                else self.organization.hound_frequency
            )
            changes = {"should_hound": True, "should_reset_hound": True, "hound_frequency": frequency}
            settings.update(**changes)
            return self._changed("self", changes, [user.handle], "Hounding is now *on*.")
        if keyword in STOP_ACTIONS:
            changes = {"should_hound": False, "should_reset_hound": False, "hound_frequency": -1}
            settings.update(**changes)
            return self._changed(
                "self",
                changes,
                [user.handle],
                "Hounding is now *off*. You will not be hounded until you turn this setting back on.",
            )
        if keyword == "pause":
            if not settings.enabled:
                return CommandResult(
                    None, "Hounding is not enabled, so you cannot pause it.", REACTION_FAIL
                )
            changes = {"should_hound": False, "should_reset_hound": True}
            settings.update(**changes)
            return self._changed(
                "self", changes, [user.handle], "Hounding is now *paused*. Hounding will resume tomorrow."
            )
        if keyword == "reset":
            frequency = self.organization.hound_frequency
            changes = {"should_hound": True, "should_reset_hound": False, "hound_frequency": frequency}
            settings.update(**changes)
            return self._changed(
                "self",
                changes,
                [user.handle],
                f"Reset your hounding status to organization defaults *({format_hours(frequency)} hours)*.",
            )
        if keyword in STATUS_ACTIONS:
            status = describe_status(
                settings.should_hound, settings.should_reset_hound, settings.hound_frequency
            )
            return CommandResult(None, f"Hounding is {status}.", REACTION_OK)

        logger.debug("Hound could not parse %s", raw_command)
        return CommandResult(None, NOT_UNDERSTOOD, REACTION_FAIL)

    def _process_org(self, action: str, raw_command: str) -> CommandResult:
        org = self.organization
        keyword = action.strip().lower()
        duration = parse_hours(action)
        handles = [user.handle for user in org.users]

        if duration is not None:
            hours = duration_hours(duration)
            org.should_hound = True
            org.should_reset_hound = True
            org.set_hound_frequency(hours)
            self._apply_to_users({"should_hound": True, "should_reset_hound": True})
            changes = {"should_hound": True, "should_reset_hound": True, "hound_frequency": hours}
            return self._changed(
                "org",
                changes,
                handles,
                f"Hounding frequency set to every {format_hours(hours)} hours for {org.name}, "
                "time until next hound reset.",
            )
        if keyword in START_ACTIONS:
            org.should_hound = True
            org.should_reset_hound = True
            changes = {"should_hound": True, "should_reset_hound": True}
            org.set_should_hound(True)
            self._apply_to_users({"should_reset_hound": True})
            for user in org.users:
                if user.settings.hound_frequency <= -1:
                    user.settings.update(hound_frequency=org.hound_frequency)
            return self._changed("org", changes, handles, "Hounding is now *on* for the organization.")
        if keyword in STOP_ACTIONS:
            org.should_hound = False
            org.should_reset_hound = False
            changes = {"should_hound": False, "should_reset_hound": False, "hound_frequency": -1}
            self._apply_to_users(changes)
            return self._changed(
                "org",
                changes,
                handles,
                "Hounding is now *off* for the organization. "
                "Hounding status will not reset until it is reactivated.",
            )
        if keyword == "pause":
            if not (org.should_hound and org.hound_frequency > -1):
                return CommandResult(
                    None,
                    f"Hounding is not enabled for {org.name}, so you cannot pause it.",
                    REACTION_FAIL,
                )
            org.should_hound = False
            org.should_reset_hound = True
            changes = {"should_hound": False, "should_reset_hound": True}
            org.set_should_hound(False)
            self._apply_to_users({"should_reset_hound": True})
            return self._changed(
                "org",
                changes,
                handles,
                "Hounding is now *paused* for the organization. Hounding will resume tomorrow.",
            )
        if keyword == "reset":
            if org.should_reset_hound:
                org.should_hound = True
            reset = [user.handle for user in org.users if user.settings.should_reset_hound]
            count = org.reset_hounding()
            return self._changed(
                "org",
                {"should_hound": True},
                reset,
                f"Reset hounding status for all {count} {org.name} employees.",
            )
        if keyword in STATUS_ACTIONS:
            return CommandResult(None, f"Hounding is {org.status_text()}.", REACTION_OK)

        logger.debug("Hound could not parse %s", raw_command)
        return CommandResult(None, NOT_UNDERSTOOD, REACTION_FAIL)

    def _apply_to_users(self, changes: Dict[str, Any]) -> None:
        for user in self.organization.users:
            user.settings.update(**changes)

    @staticmethod
    def _changed(scope: str, changes: Dict[str, Any], handles: List[str], reply: str) -> CommandResult:
        return CommandResult(Mutation(scope, dict(changes), handles), reply, REACTION_OK)


__all__ = ["CommandResult", "Mutation", "SettingsCommandProcessor", "resolve_scope"]
