"""Tests for the `hound` settings command processor."""

import pytest

from slack_hound.commands import SettingsCommandProcessor, resolve_scope
from slack_hound.messages import HOUND_HELP, NOT_UNDERSTOOD, REACTION_FAIL, REACTION_OK


@pytest.fixture
def users(organization, make_user):
    alice = make_user(handle="alice", frequency=2)
    bob = make_user(handle="bob", frequency=3, should_reset_hound=False)
    organization.sync([alice, bob])
    return alice, bob


@pytest.fixture
def processor(organization):
    return SettingsCommandProcessor(organization)


class TestScopeResolution:
    @pytest.mark.parametrize(
        "command,expected",
        [
            ("acme 4 hours", ("org", "4 hours")),
            ("org status", ("org", "status")),
            ("alice pause", ("self", "pause")),
            ("self on", ("self", "on")),
            ("2 hours", ("self", "2 hours")),
            ("0.5 hours", ("self", "0.5 hours")),
            ("please start now", ("self", "start now")),
            ("status", ("self", "status")),
            ("dance party", ("self", "dance")),
        ],
    )
    def test_resolve(self, command, expected):
        assert resolve_scope(command.split(), "acme", "alice") == expected


class TestSelfScope:
    def test_empty_command_shows_help(self, processor, users):
        result = processor.process("", "alice")
        assert result.reply == HOUND_HELP
        assert result.reaction == REACTION_OK
        assert result.mutation is None

    @pytest.mark.parametrize(
        "command,hours",
        [("0.5 hours", 0.5), ("1 hour", 1.0), ("2 hours", 2.0), ("15.25 hours", 15.25), ("alice 4 hours", 4.0)],
    )
    def test_set_frequency(self, processor, users, command, hours):
        alice, _ = users
        alice.settings.update(should_hound=False, should_reset_hound=False)
        result = processor.process(command, "alice")
        assert result.ok
        assert result.mutation.scope == "self"
        assert result.mutation.handles == ["alice"]
        assert alice.settings.hound_frequency == hours
        assert alice.settings.should_hound is True
        assert alice.settings.should_reset_hound is True

    @pytest.mark.parametrize("command", ["abc hours", "2 hours please", "0 hours", "3 hour", "-2 hours"])
    def test_malformed_hours_fall_through_to_help(self, processor, users, command):
        alice, _ = users
        result = processor.process(command, "alice")
        assert result.mutation is None
        assert result.reply == NOT_UNDERSTOOD
        assert result.reaction == REACTION_FAIL
        assert alice.settings.hound_frequency == 2

    def test_start_restores_org_default_when_disabled(self, processor, users):
        alice, _ = users
        processor.process("off", "alice")
        result = processor.process("on", "alice")
        assert result.reply == "Hounding is now *on*."
        assert alice.settings.hound_frequency == 1.0
        assert alice.settings.should_hound and alice.settings.should_reset_hound

    def test_start_keeps_existing_frequency(self, processor, users):
        alice, _ = users
        processor.process("enable", "alice")
        assert alice.settings.hound_frequency == 2

    @pytest.mark.parametrize("command", ["stop", "off", "disable"])
    def test_stop(self, processor, users, command):
        alice, _ = users
        result = processor.process(command, "alice")
        assert result.mutation.changes == {
            "should_hound": False,
            "should_reset_hound": False,
            "hound_frequency": -1,
        }
        assert alice.settings.hound_frequency == -1

    def test_pause_then_pause_again(self, processor, users):
        alice, _ = users
        first = processor.process("pause", "alice")
        assert first.ok
        assert alice.settings.should_hound is False
        assert alice.settings.should_reset_hound is True

        second = processor.process("pause", "alice")
        assert second.mutation is None
        assert second.reaction == REACTION_FAIL
        assert "cannot pause" in second.reply

    def test_reset_to_org_defaults(self, processor, users):
        alice, _ = users
        processor.process("pause", "alice")
        result = processor.process("reset", "alice")
        assert "(1 hours)" in result.reply
        assert alice.settings.hound_frequency == 1.0
        assert alice.settings.should_hound is True
        assert alice.settings.should_reset_hound is False

    def test_status(self, processor, users):
        assert processor.process("status", "alice").reply == (
            "Hounding is on, and is set to ping every *2 hours* while active."
        )
        processor.process("pause", "alice")
        assert processor.process("info", "alice").reply == "Hounding is off."
        processor.process("stop", "alice")
        assert processor.process("status", "alice").reply == "Hounding is disabled."

    def test_status_does_not_mutate(self, processor, users):
        assert processor.process("status", "alice").mutation is None

    def test_unknown_action(self, processor, users):
        result = processor.process("dance", "alice")
        assert result.reply == NOT_UNDERSTOOD
        assert result.reaction == REACTION_FAIL

    def test_unknown_invoking_user(self, processor, users):
        result = processor.process("on", "mallory")
        assert result.mutation is None
        assert result.reaction == REACTION_FAIL


class TestOrgScope:
    def test_org_name_sets_shared_frequency(self, processor, organization, users):
        result = processor.process("acme 4 hours", "bob")
        assert result.mutation.scope == "org"
        assert organization.hound_frequency == 4
        assert [user.settings.hound_frequency for user in users] == [4, 4]
        assert "every 4 hours for acme" in result.reply

    def test_not_ready(self, processor, organization):
        result = processor.process("acme status", "alice")
        assert result.reply == "Organization is not ready"
        assert result.reaction == REACTION_FAIL

    def test_reset_only_touches_resettable_users(self, processor, organization, users):
        alice, bob = users
        alice.settings.should_hound = False
        bob.settings.should_hound = False
        result = processor.process("acme reset", "alice")
        assert result.mutation.handles == ["alice"]
        assert alice.settings.should_hound is True
        assert bob.settings.should_hound is False
        assert "all 1 acme employees" in result.reply

    def test_pause_twice(self, processor, organization, users):
        assert processor.process("org pause", "alice").ok
        assert organization.should_hound is False
        assert organization.should_reset_hound is True
        assert all(not user.settings.should_hound for user in users)

        again = processor.process("org pause", "alice")
        assert again.mutation is None
        assert again.reaction == REACTION_FAIL

    def test_stop_then_start(self, processor, organization, users):
        processor.process("acme off", "alice")
        assert processor.process("acme status", "alice").reply == "Hounding is disabled."
        assert all(user.settings.hound_frequency == -1 for user in users)

        processor.process("acme on", "alice")
        assert organization.should_hound and organization.should_reset_hound
        assert all(user.settings.hound_frequency == 1.0 for user in users)
        assert processor.process("acme status", "alice").reply.startswith("Hounding is on")

    def test_unknown_org_action(self, processor, users):
        result = processor.process("acme bark", "alice")
        assert result.reply == NOT_UNDERSTOOD
        assert result.mutation is None
