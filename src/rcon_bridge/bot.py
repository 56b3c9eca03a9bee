"""Discord client that hosts the poll scheduler.

Startup: log in, resolve the target channel, then start polling. Failing to
resolve the channel is fatal; the client closes with a non-zero exit code.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any

import discord

from rcon_bridge.config import Config
from rcon_bridge.cycle import PollCycle
from rcon_bridge.publisher import (
    ChannelResolutionError,
    DiscordChannel,
    DiscordPresence,
    resolve_text_channel,
)
from rcon_bridge.scheduler import Scheduler

logger = logging.getLogger(__name__)


class BridgeClient(discord.Client):
    """Discord client that relays RCON events into one channel.

    Attributes:
        config: Bridge configuration
        cycle: The poll cycle runner
        scheduler: Scheduler driving the cycle runner
        exit_code: Process exit code to report once the client has closed
    """

    def __init__(self, config: Config) -> None:
        intents = discord.Intents.none()
        intents.guilds = True
        super().__init__(intents=intents)

        self.config = config
        self.cycle = PollCycle(config, DiscordPresence(self))
        self.scheduler = Scheduler(self.cycle, interval=config.poll_interval)
        self.exit_code = 0
        self._poll_task: asyncio.Task[None] | None = None
        self._shutdown_task: asyncio.Task[None] | None = None

    async def on_ready(self) -> None:
        # on_ready fires again after gateway reconnects
        if self._poll_task is not None:
            return

        try:
            channel = await resolve_text_channel(self, self.config.discord_channel_id)
        except ChannelResolutionError as e:
            logger.error("Failed to initialize channel: %s", e)
            self.exit_code = 1
            await self.close()
            return

        self.cycle.attach_channel(DiscordChannel(channel))
        logger.info(
            "Logged in as %s. Polling every %d ms.",
            self.user,
            self.config.poll_interval_ms,
        )
        self._poll_task = asyncio.create_task(self.scheduler.run(), name="rcon-poll")

    async def on_error(self, event_method: str, /, *args: Any, **kwargs: Any) -> None:
        logger.exception("Discord client error in %s", event_method)

    def request_shutdown(self) -> None:
        """Schedule a clean shutdown (used as a signal handler)."""
        if self._shutdown_task is None:
            logger.info("Shutting down...")
            self._shutdown_task = asyncio.create_task(self.close())

    async def close(self) -> None:
        """Stop polling, then close the Discord session."""
        self.scheduler.stop()
        try:
            await super().close()
        finally:
            if self._poll_task is not None and not self._poll_task.done():
                self._poll_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._poll_task


def install_signal_handlers(client: BridgeClient) -> None:
    """Route SIGINT/SIGTERM to a clean shutdown where supported."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, client.request_shutdown)


async def run_bridge(config: Config) -> int:
    """Run the bridge until shutdown.

    Args:
        config: Bridge configuration

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    client = BridgeClient(config)
    install_signal_handlers(client)

    try:
        async with client:
            await client.start(config.discord_token.get_secret_value())
    except discord.LoginFailure as e:
        logger.error("Discord login failed: %s", e)
        return 1

    return client.exit_code
