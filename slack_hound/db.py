"""SQLite persistence layer for Slack Hound."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, time, tzinfo
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from zoneinfo import ZoneInfo

from .models import ClockPunch, HoundSettings, LastMessage, LeavePunch, LEAVE_MODES, Punch, User

Connection = sqlite3.Connection
Row = sqlite3.Row


def _dt(value: Optional[str], tz: Optional[tzinfo] = None) -> Optional[datetime]:
    if not value:
        return None
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None and tz is not None:
        moment = moment.replace(tzinfo=tz)
    return moment


class Database:
    """Lightweight wrapper around SQLite operations."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _initialize(self) -> None:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    handle TEXT PRIMARY KEY,
                    slack_id TEXT,
                    display_name TEXT NOT NULL,
                    salaried INTEGER NOT NULL DEFAULT 1,
                    timezone TEXT NOT NULL,
                    active_start TEXT NOT NULL,
                    active_end TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS punches (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    handle TEXT NOT NULL,
                    mode TEXT NOT NULL,
                    times TEXT NOT NULL DEFAULT '[]',
                    date TEXT,
                    block REAL,
                    FOREIGN KEY(handle) REFERENCES users(handle)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS hound_settings (
                    handle TEXT PRIMARY KEY,
                    should_hound INTEGER NOT NULL,
                    should_reset_hound INTEGER NOT NULL,
                    hound_frequency REAL NOT NULL,
                    last_message_time TEXT,
                    last_message_channel TEXT,
                    last_ping TEXT,
                    FOREIGN KEY(handle) REFERENCES users(handle)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS options (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()

    # region Users
    def upsert_user(self, user: Dict[str, Any]) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO users (handle, slack_id, display_name, salaried, timezone, active_start, active_end)
                VALUES (:handle, :slack_id, :display_name, :salaried, :timezone, :active_start, :active_end)
                ON CONFLICT(handle) DO UPDATE SET
                    slack_id=excluded.slack_id,
                    display_name=excluded.display_name,
                    salaried=excluded.salaried,
                    timezone=excluded.timezone,
                    active_start=excluded.active_start,
                    active_end=excluded.active_end
                """,
                user,
            )
            conn.commit()

    def save_user(self, user: User) -> None:
        start, end = user.active_hours
        self.upsert_user(
            {
                "handle": user.handle,
                "slack_id": user.slack_id,
                "display_name": user.display_name,
                "salaried": int(user.salaried),
                "timezone": user.timezone,
                "active_start": start.isoformat(),
                "active_end": end.isoformat(),
            }
        )
        self.save_settings(user.handle, user.settings)

    def get_users(self) -> List[Row]:
        with self.connect() as conn:
            cursor = conn.execute("SELECT * FROM users ORDER BY handle")
            return cursor.fetchall()

    def load_users(self, default_frequency: float = -1) -> List[User]:
        """Build the user directory with punches and hound settings.

        Users without stored settings start hounding at ``default_frequency``.
        """

        users: List[User] = []
        for row in self.get_users():
            start = time.fromisoformat(row["active_start"])
            end = time.fromisoformat(row["active_end"])
            settings = self.get_settings(row["handle"])
            users.append(
                User(
                    handle=row["handle"],
                    slack_id=row["slack_id"],
                    display_name=row["display_name"],
                    salaried=bool(row["salaried"]),
                    timezone=row["timezone"],
                    active_hours=(start, end),
                    punches=self.get_punches(row["handle"], ZoneInfo(row["timezone"])),
                    settings=settings or HoundSettings(hound_frequency=default_frequency),
                )
            )
        return users

    # endregion

    # region Punches
    def record_punch(self, handle: str, punch: Punch) -> None:
        date = getattr(punch, "date", None)
        for moment in [*punch.times, *([date] if date else [])]:
            if moment.tzinfo is None:
                raise ValueError(f"Punch times must be timezone-aware: {moment.isoformat()}")
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO punches (handle, mode, times, date, block)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    handle,
                    punch.mode,
                    json.dumps([moment.isoformat() for moment in punch.times]),
                    date.isoformat() if date else None,
                    getattr(punch, "block", None),
                ),
            )
            conn.commit()

    def get_punches(self, handle: str, tz: Optional[tzinfo] = None) -> List[Punch]:
        """Load punches in order; naive stored times are read in ``tz``."""

        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM punches WHERE handle = ? ORDER BY id",
                (handle,),
            )
            rows = cursor.fetchall()
        punches: List[Punch] = []
        for row in rows:
            times = [_dt(value, tz) for value in json.loads(row["times"])]
            if row["mode"] in LEAVE_MODES:
                punches.append(
                    LeavePunch(mode=row["mode"], times=times, date=_dt(row["date"], tz), block=row["block"])
                )
            else:
                punches.append(ClockPunch(mode=row["mode"], times=times))
        return punches

    # endregion

    # region Settings
    def save_settings(self, handle: str, settings: HoundSettings) -> None:
        last_message = settings.last_message
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO hound_settings (
                    handle, should_hound, should_reset_hound, hound_frequency,
                    last_message_time, last_message_channel, last_ping
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(handle) DO UPDATE SET
                    should_hound=excluded.should_hound,
                    should_reset_hound=excluded.should_reset_hound,
                    hound_frequency=excluded.hound_frequency,
                    last_message_time=excluded.last_message_time,
                    last_message_channel=excluded.last_message_channel,
                    last_ping=excluded.last_ping
                """,
                (
                    handle,
                    int(settings.should_hound),
                    int(settings.should_reset_hound),
                    settings.hound_frequency,
                    last_message.time.isoformat() if last_message else None,
                    last_message.channel if last_message else None,
                    settings.last_ping.isoformat() if settings.last_ping else None,
                ),
            )
            conn.commit()

    def get_settings(self, handle: str) -> Optional[HoundSettings]:
        with self.connect() as conn:
            cursor = conn.execute("SELECT * FROM hound_settings WHERE handle = ?", (handle,))
            row = cursor.fetchone()
        if row is None:
            return None
        last_message = None
        if row["last_message_time"]:
            last_message = LastMessage(
                time=datetime.fromisoformat(row["last_message_time"]),
                channel=row["last_message_channel"] or "",
            )
        return HoundSettings(
            should_hound=bool(row["should_hound"]),
            should_reset_hound=bool(row["should_reset_hound"]),
            hound_frequency=row["hound_frequency"],
            last_message=last_message,
            last_ping=_dt(row["last_ping"]),
        )

    # endregion

    # region Options
    def set_option(self, key: str, value: Any) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO options (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, json.dumps(value)),
            )
            conn.commit()

    def get_option(self, key: str, default: Any = None) -> Any:
        with self.connect() as conn:
            cursor = conn.execute("SELECT value FROM options WHERE key = ?", (key,))
            row = cursor.fetchone()
        return json.loads(row["value"]) if row else default

    # endregion


__all__ = ["Database"]
