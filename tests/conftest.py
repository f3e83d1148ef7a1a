"""Shared fixtures for Slack Hound tests."""

import random
from datetime import datetime, time
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest

from slack_hound.config import Settings
from slack_hound.db import Database
from slack_hound.engine import HoundEngine
from slack_hound.models import ClockPunch, HoundSettings, User
from slack_hound.organization import Organization
from slack_hound.service import HoundService
from slack_hound.timing import FixedClock

TZ = ZoneInfo("America/New_York")


def at(hour: int, minute: int = 0, day: int = 19) -> datetime:
    """A moment in October 2026 (the 19th is a Monday) in New York."""
    return datetime(2026, 10, day, hour, minute, tzinfo=TZ)


@pytest.fixture
def make_user():
    def _make(
        handle="alice",
        salaried=True,
        punches=None,
        frequency=1.0,
        active_hours=(time(9, 0), time(17, 0)),
        **settings,
    ):
        return User(
            handle=handle,
            display_name=handle.title(),
            salaried=salaried,
            timezone="America/New_York",
            active_hours=active_hours,
            punches=list(punches or []),
            settings=HoundSettings(hound_frequency=frequency, **settings),
            slack_id=f"U{handle.upper()}",
        )

    return _make


@pytest.fixture
def organization():
    return Organization("acme", hound_frequency=1.0, exempt_channels={"random"})


@pytest.fixture
def engine(organization):
    return HoundEngine(organization, bot_name="ibizan", rng=random.Random(7))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        slack_bot_token="xoxb-test",
        api_key="secret",
        org_name="acme",
        database_path=tmp_path / "hound.db",
        hound_frequency=1.0,
        exempt_channels=frozenset({"random"}),
        slack_verification_token="verify-me",
    )


@pytest.fixture
def client():
    mock = MagicMock()
    mock.user_info = AsyncMock(return_value={"name": "alice"})
    mock.channel_info = AsyncMock(return_value={"name": "general"})
    mock.direct_message = AsyncMock(return_value={"ok": True})
    mock.post_message = AsyncMock(return_value={"ok": True})
    mock.add_reaction = AsyncMock()
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def database(settings, make_user):
    """Alice is salaried with no punches; Bob is hourly and punched in at 8:00."""
    db = Database(settings.database_path)
    db.save_user(make_user())
    db.save_user(make_user(handle="bob", salaried=False, active_hours=(time(8, 0), time(20, 0))))
    db.record_punch("bob", ClockPunch(mode="in", times=[at(8, 0)]))
    return db


@pytest.fixture
def service(settings, database, client):
    organization = Organization(settings.org_name, settings.hound_frequency, settings.exempt_channels)
    clock = FixedClock(at(9, 31))
    engine = HoundEngine(organization, bot_name=settings.bot_name, rng=random.Random(5), clock=clock)
    return HoundService(settings, organization, database, client, engine=engine, clock=clock)
