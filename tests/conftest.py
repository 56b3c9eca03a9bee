"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from collections.abc import Generator

import pytest

from rcon_bridge.config import Config, reset_config

BRIDGE_ENV_VARS = [
    "DISCORD_TOKEN",
    "DISCORD_CHANNEL_ID",
    "RCON_HOST",
    "RCON_PORT",
    "RCON_PASSWORD",
    "POLL_INTERVAL_MS",
    "RCON_TIMEOUT_MS",
    "ERROR_COOLDOWN_MS",
    "RCON_EVENTS_COMMAND",
    "RCON_PLAYERS_COMMAND",
    "TRACK_PLAYERS",
    "MAX_MESSAGE_LENGTH",
    "NOTIFY_ERRORS",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Clear bridge environment variables before and after each test."""
    original_env = {key: os.environ.get(key) for key in BRIDGE_ENV_VARS}

    reset_config()
    for key in BRIDGE_ENV_VARS:
        os.environ.pop(key, None)

    yield

    for key in BRIDGE_ENV_VARS:
        os.environ.pop(key, None)
    for key, value in original_env.items():
        if value is not None:
            os.environ[key] = value

    reset_config()


@pytest.fixture
def config() -> Config:
    """A complete configuration that ignores any local .env file."""
    return Config(
        _env_file=None,
        discord_token="discord-token",
        discord_channel_id=123456789,
        rcon_host="127.0.0.1",
        rcon_port=27015,
        rcon_password="secret",
    )
