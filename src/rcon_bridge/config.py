"""Configuration management for the RCON bridge.

This module provides centralized configuration with support for:
- Environment variables (primary), using the same keys as the bridge's .env
- An optional .env file in the working directory
- Type validation via Pydantic
- Easy testing through config overrides

Environment Variables:
    DISCORD_TOKEN: Discord bot token (required)
    DISCORD_CHANNEL_ID: Text channel to post events into (required)
    RCON_HOST: RCON server host (required)
    RCON_PORT: RCON server port (required)
    RCON_PASSWORD: RCON password (required)
    POLL_INTERVAL_MS: Delay between polls (default: 10000)
    RCON_TIMEOUT_MS: Connect/response timeout (default: 15000)
    ERROR_COOLDOWN_MS: Pause after a failed poll (default: 60000)
    RCON_EVENTS_COMMAND: Command whose output is relayed (default: luacmd rconevents flush)
    RCON_PLAYERS_COMMAND: Command listing connected players (default: players)
    TRACK_PLAYERS: Mirror player count into presence/topic (default: true)
    MAX_MESSAGE_LENGTH: Maximum characters per Discord message (default: 1900)
    NOTIFY_ERRORS: Post a notice to the channel when a poll fails (default: false)
    LOG_LEVEL: Logging level (default: INFO)

Usage:
    from rcon_bridge.config import get_config, Config

    config = get_config()
    interval = config.poll_interval

    # For testing, create a custom config
    test_config = Config(discord_token="x", discord_channel_id=1, ...)
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rcon_bridge.parser import DEFAULT_MAX_MESSAGE_LENGTH
from rcon_bridge.protocol import DEFAULT_PORT

DEFAULT_EVENTS_COMMAND = "luacmd rconevents flush"
DEFAULT_PLAYERS_COMMAND = "players"


class Config(BaseSettings):
    """Application configuration with environment variable support.

    Field names map to upper-case environment variables without a prefix,
    e.g. RCON_HOST sets rcon_host.

    Attributes:
        discord_token: Discord bot token
        discord_channel_id: Id of the text channel events are posted to
        rcon_host: RCON server host
        rcon_port: RCON server port
        rcon_password: RCON password
        poll_interval_ms: Delay between the starts of consecutive polls
        rcon_timeout_ms: Bound on connecting and on each RCON reply
        error_cooldown_ms: Pause after a failed poll before the next one
        rcon_events_command: Command whose output is relayed to the channel
        rcon_players_command: Command that lists connected players
        track_players: Mirror the player count into presence and topic
        max_message_length: Maximum characters per posted message
        notify_errors: Post a short notice to the channel on poll failures
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord
    discord_token: SecretStr = Field(description="Discord bot token")
    discord_channel_id: int = Field(
        gt=0,
        description="Id of the text channel events are posted to",
    )

    # RCON endpoint
    rcon_host: str = Field(min_length=1, description="RCON server host")
    rcon_port: int = Field(
        ge=1,
        le=65535,
        description=f"RCON server port (Project Zomboid uses {DEFAULT_PORT})",
    )
    rcon_password: SecretStr = Field(description="RCON password")

    # Timing
    poll_interval_ms: int = Field(
        default=10000,
        ge=100,
        description="Delay between the starts of consecutive polls (milliseconds)",
    )
    rcon_timeout_ms: int = Field(
        default=15000,
        gt=0,
        description="Timeout for connecting and for each RCON reply (milliseconds)",
    )
    error_cooldown_ms: int = Field(
        default=60000,
        ge=0,
        description="Pause after a failed poll (milliseconds)",
    )

    # Commands and modes
    rcon_events_command: str = Field(
        default=DEFAULT_EVENTS_COMMAND,
        description="Command whose output is relayed to the channel",
    )
    rcon_players_command: str = Field(
        default=DEFAULT_PLAYERS_COMMAND,
        description="Command that lists connected players",
    )
    track_players: bool = Field(
        default=True,
        description="Mirror the player count into presence and channel topic",
    )
    max_message_length: int = Field(
        default=DEFAULT_MAX_MESSAGE_LENGTH,
        ge=1,
        le=2000,
        description="Maximum characters per posted message",
    )
    notify_errors: bool = Field(
        default=False,
        description="Post a short notice to the channel when a poll fails",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("rcon_events_command", "rcon_players_command")
    @classmethod
    def require_command(cls, v: str) -> str:
        """Reject blank RCON commands."""
        v = v.strip()
        if not v:
            raise ValueError("RCON command must not be blank")
        return v

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000

    @property
    def rcon_timeout(self) -> float:
        """RCON timeout in seconds."""
        return self.rcon_timeout_ms / 1000

    @property
    def error_cooldown(self) -> float:
        """Error cooldown in seconds."""
        return self.error_cooldown_ms / 1000

    def setup_logging(self) -> None:
        """Configure logging based on config settings."""
        logging.basicConfig(
            level=getattr(logging, self.log_level, logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for logging/debugging.

        Secrets are masked.

        Returns:
            Dictionary of all config values
        """
        return {
            "discord_token": "**********",
            "discord_channel_id": self.discord_channel_id,
            "rcon_host": self.rcon_host,
            "rcon_port": self.rcon_port,
            "rcon_password": "**********",
            "poll_interval_ms": self.poll_interval_ms,
            "rcon_timeout_ms": self.rcon_timeout_ms,
            "error_cooldown_ms": self.error_cooldown_ms,
            "rcon_events_command": self.rcon_events_command,
            "rcon_players_command": self.rcon_players_command,
            "track_players": self.track_players,
            "max_message_length": self.max_message_length,
            "notify_errors": self.notify_errors,
            "log_level": self.log_level,
        }


# Module-level singleton instance
_config_instance: Config | None = None


def get_config() -> Config:
    """Get the singleton configuration instance.

    Creates the config on first call, caching it for subsequent calls.
    The config is loaded from environment variables and optional .env file.

    Returns:
        The Config singleton instance

    Raises:
        pydantic.ValidationError: If required settings are missing or invalid

    Note:
        For testing, use set_config() to inject a test configuration,
        or call reset_config() to force reloading from environment.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()  # type: ignore[call-arg]
    return _config_instance


def set_config(config: Config) -> None:
    """Set the configuration instance (primarily for testing).

    Args:
        config: Config instance to use as the singleton
    """
    global _config_instance
    _config_instance = config


def reset_config() -> None:
    """Reset the configuration singleton.

    Forces the next get_config() call to reload from environment.
    """
    global _config_instance
    _config_instance = None
