"""Configuration helpers for Slack Hound."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass(slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    slack_bot_token: str
    api_key: str
    org_name: str
    database_path: Path
    bot_name: str = "ibizan"
    hound_frequency: float = 1.0
    exempt_channels: frozenset[str] = field(default_factory=frozenset)
    org_timezone: str = "America/New_York"
    sweep_interval_seconds: int = 300
    reset_hour: int = 9
    diagnostics_channel: str = "ibizan-diagnostics"
    slack_verification_token: Optional[str] = None
    log_level: str = "info"


def parse_channel_list(value: str | None) -> frozenset[str]:
    """Split a comma separated channel list, dropping blanks and leading '#'."""

    if not value:
        return frozenset()
    return frozenset(
        name.strip().lstrip("#") for name in value.split(",") if name.strip()
    )


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment, optionally from a specific file."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    db_path = Path(os.getenv("DATABASE_PATH", "slack_hound.db")).expanduser()

    slack_token = os.getenv("SLACK_BOT_TOKEN")
    api_key = os.getenv("API_KEY")
    org_name = os.getenv("ORG_NAME")

    if not slack_token:
        raise RuntimeError("SLACK_BOT_TOKEN must be configured")
    if not api_key:
        raise RuntimeError("API_KEY must be configured")
    if not org_name:
        raise RuntimeError("ORG_NAME must be configured")

    try:
        hound_frequency = float(os.getenv("HOUND_FREQUENCY", "1.0"))
        sweep_interval = int(os.getenv("SWEEP_INTERVAL_SECONDS", "300"))
        reset_hour = int(os.getenv("RESET_HOUR", "9"))
    except ValueError as exc:
        raise RuntimeError(f"Invalid numeric configuration value: {exc}") from exc
    if not 0 <= reset_hour <= 23:
        raise RuntimeError("RESET_HOUR must be between 0 and 23")

    return Settings(
        slack_bot_token=slack_token,
        api_key=api_key,
        org_name=org_name,
        database_path=db_path,
        bot_name=os.getenv("BOT_NAME", "ibizan"),
        hound_frequency=hound_frequency,
        exempt_channels=parse_channel_list(os.getenv("EXEMPT_CHANNELS")),
        org_timezone=os.getenv("ORG_TIMEZONE", "America/New_York"),
        sweep_interval_seconds=sweep_interval,
        reset_hour=reset_hour,
        diagnostics_channel=os.getenv("DIAGNOSTICS_CHANNEL", "ibizan-diagnostics"),
        slack_verification_token=os.getenv("SLACK_VERIFICATION_TOKEN"),
        log_level=os.getenv("LOG_LEVEL", "info"),
    )


__all__ = ["Settings", "load_settings", "parse_channel_list"]
