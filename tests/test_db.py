"""Tests for the SQLite persistence layer."""

from datetime import datetime, time

import pytest

from conftest import at
from slack_hound.db import Database
from slack_hound.models import ClockPunch, HoundSettings, LastMessage, LeavePunch


@pytest.fixture
def database(tmp_path):
    return Database(tmp_path / "nested" / "hound.db")


def test_users_load_with_punches_and_settings(database, make_user):
    user = make_user(
        salaried=False,
        frequency=2.5,
        active_hours=(time(8, 30), time(16, 45)),
        should_reset_hound=False,
        last_ping=at(11, 0),
    )
    user.settings.last_message = LastMessage(time=at(11, 5), channel="general")
    database.save_user(user)
    database.record_punch("alice", ClockPunch(mode="in", times=[at(8, 30)]))
    database.record_punch("alice", LeavePunch(mode="vacation", date=at(0, 0, day=20), block=8))

    [loaded] = database.load_users()
    assert loaded.handle == "alice"
    assert loaded.slack_id == "UALICE"
    assert loaded.salaried is False
    assert loaded.active_hours == (time(8, 30), time(16, 45))
    assert loaded.settings == user.settings
    assert loaded.punches == [
        ClockPunch(mode="in", times=[at(8, 30)]),
        LeavePunch(mode="vacation", date=at(0, 0, day=20), block=8),
    ]
    assert loaded.last_punch(["in", "out"]).mode == "in"


def test_users_without_settings_get_default_frequency(database):
    database.upsert_user(
        {
            "handle": "bob",
            "slack_id": None,
            "display_name": "Bob",
            "salaried": 1,
            "timezone": "UTC",
            "active_start": "09:00:00",
            "active_end": "17:00:00",
        }
    )
    [bob] = database.load_users(default_frequency=1.5)
    assert bob.settings == HoundSettings(hound_frequency=1.5)
    assert database.get_settings("bob") is None


def test_save_settings_overwrites(database, make_user):
    database.save_user(make_user())
    database.save_settings("alice", HoundSettings(should_hound=False, hound_frequency=-1))
    assert database.get_settings("alice") == HoundSettings(should_hound=False, hound_frequency=-1)


def test_options(database):
    assert database.get_option("hound_frequency", 1.0) == 1.0
    database.set_option("hound_frequency", 3.5)
    database.set_option("exempt_channels", ["random", "social"])
    assert database.get_option("hound_frequency") == 3.5
    assert database.get_option("exempt_channels") == ["random", "social"]


def test_record_punch_rejects_naive_times(database, make_user):
    database.save_user(make_user())
    with pytest.raises(ValueError, match="timezone-aware"):
        database.record_punch("alice", ClockPunch(mode="in", times=[datetime(2026, 10, 19, 8, 30)]))
    assert database.get_punches("alice") == []


def test_naive_stored_times_load_in_user_timezone(database, make_user):
    database.save_user(make_user())
    with database.connect() as conn:
        conn.execute(
            "INSERT INTO punches (handle, mode, times, date, block) VALUES (?, ?, ?, ?, ?)",
            ("alice", "in", '["2026-10-19T08:30:00"]', None, None),
        )
        conn.commit()
    [user] = database.load_users()
    assert user.punches[0].times == [at(8, 30)]
    assert user.punches[0].times[0].tzinfo is not None
