"""One poll-publish cycle against the RCON server.

A cycle opens a fresh RCON session, optionally refreshes the player count,
fetches pending events, relays them to the channel in order and closes the
session again. Every failure is contained: run_once() always returns a
CycleResult and never raises (cancellation aside).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from rcon_bridge.config import Config
from rcon_bridge.parser import clean_event_text, parse_player_count, split_message
from rcon_bridge.publisher import ChannelSink, PresenceSink
from rcon_bridge.rcon import RconClient, RconConnectionClosed, RconError
from rcon_bridge.state import PlayerCountTracker

logger = logging.getLogger(__name__)


class RconSession(Protocol):
    """Protocol for an open RCON session (duck typing for RconClient)."""

    async def send(self, command: str) -> str:
        """Execute a command and return its response."""
        ...

    async def close(self) -> None:
        """Close the session."""
        ...


# connect(host, port, password, *, timeout) -> session
Connector = Callable[..., Awaitable[RconSession]]
Sleeper = Callable[[float], Awaitable[None]]


class CycleStatus(Enum):
    """How a cycle ended."""

    PUBLISHED = "published"
    QUIET = "quiet"
    NOT_READY = "not_ready"
    FAILED = "failed"


class FaultKind(Enum):
    """Classification of a failed cycle."""

    CONNECT = "connect"
    CONNECTION_CLOSED = "connection_closed"
    QUERY = "query"
    PUBLISH = "publish"
    UNEXPECTED = "unexpected"


class Stage(Enum):
    """Where in the cycle a fault happened."""

    CONNECT = "connect"
    QUERY = "query"
    PUBLISH = "publish"


@dataclass(frozen=True)
class CycleResult:
    """Outcome of a single cycle."""

    status: CycleStatus
    chunks_sent: int = 0
    player_count: int | None = None
    fault: FaultKind | None = None
    error: str | None = None


def classify_fault(exc: BaseException, stage: Stage) -> FaultKind:
    """Map an exception raised during a cycle to a FaultKind.

    A closed connection is benign wherever it happens: the server is
    paused rather than broken.
    """
    if isinstance(exc, RconConnectionClosed):
        return FaultKind.CONNECTION_CLOSED
    if stage is Stage.CONNECT:
        return FaultKind.CONNECT
    if stage is Stage.PUBLISH:
        return FaultKind.PUBLISH
    if isinstance(exc, RconError):
        return FaultKind.QUERY
    return FaultKind.UNEXPECTED


class PollCycle:
    """Runs poll cycles and owns the state shared between them.

    One instance lives for the whole process. It holds the target channel
    (attached once at startup) and the player count tracker; cycles must be
    run one at a time.

    Attributes:
        config: Bridge configuration
        channel: Where events are posted, or None until attached
        tracker: Player count tracker for presence and topic
    """

    def __init__(
        self,
        config: Config,
        presence: PresenceSink,
        *,
        channel: ChannelSink | None = None,
        connect: Connector = RconClient.connect,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        """Initialize the cycle runner.

        Args:
            config: Bridge configuration
            presence: Where the player count presence is published
            channel: Target channel, if already resolved
            connect: Opens an RCON session (defaults to RconClient.connect)
            sleep: Awaitable sleep used for the error cooldown
        """
        self.config = config
        self.channel = channel
        self.tracker = PlayerCountTracker(presence)
        self._connect = connect
        self._sleep = sleep

    def attach_channel(self, channel: ChannelSink) -> None:
        """Set the channel events are posted to."""
        self.channel = channel

    async def run_once(self) -> CycleResult:
        """Run one full poll-publish cycle.

        Returns:
            The cycle outcome. Failures are reported here, after the error
            cooldown has elapsed, instead of being raised.
        """
        config = self.config
        stage = Stage.CONNECT
        player_count: int | None = None
        chunks_sent = 0

        try:
            logger.debug("Polling %s:%d", config.rcon_host, config.rcon_port)
            session = await self._connect(
                config.rcon_host,
                config.rcon_port,
                config.rcon_password.get_secret_value(),
                timeout=config.rcon_timeout,
            )
            try:
                stage = Stage.QUERY
                if config.track_players:
                    player_count = await self._refresh_player_count(session)

                text = clean_event_text(await session.send(config.rcon_events_command))
                if not text:
                    logger.debug("Event response empty")
                    return CycleResult(CycleStatus.QUIET, player_count=player_count)

                channel = self.channel
                if channel is None:
                    logger.warning(
                        "Target channel not ready, dropping %d characters of events",
                        len(text),
                    )
                    return CycleResult(CycleStatus.NOT_READY, player_count=player_count)

                logger.info("Relaying %d characters of events", len(text))
                logger.debug("Event response:\n%s", text)

                stage = Stage.PUBLISH
                for chunk in split_message(text, config.max_message_length):
                    await channel.send(chunk)
                    chunks_sent += 1

                return CycleResult(
                    CycleStatus.PUBLISHED,
                    chunks_sent=chunks_sent,
                    player_count=player_count,
                )
            finally:
                await self._release(session)
        except Exception as e:
            fault = classify_fault(e, stage)
            await self._handle_fault(fault, e)
            return CycleResult(
                CycleStatus.FAILED,
                chunks_sent=chunks_sent,
                player_count=player_count,
                fault=fault,
                error=str(e),
            )

    async def _refresh_player_count(self, session: RconSession) -> int:
        """Query the player count and push it to presence/topic.

        A failed query counts as zero players; it does not fail the cycle.
        """
        try:
            response = await session.send(self.config.rcon_players_command)
        except RconConnectionClosed:
            logger.info("Connection closed during player query, assuming 0 players")
            count = 0
        except RconError as e:
            logger.warning("Player query failed, assuming 0 players: %s", e)
            count = 0
        else:
            count = parse_player_count(response)

        await self.tracker.update(count, self.channel)
        return count

    async def _handle_fault(self, fault: FaultKind, exc: Exception) -> None:
        if fault is FaultKind.CONNECTION_CLOSED:
            # The server stops answering RCON while paused (PauseEmpty)
            logger.info("RCON connection closed, server is likely paused")
            if self.config.track_players:
                await self.tracker.update(0, self.channel)
        else:
            logger.error(
                "RCON poll error (%s): %s",
                fault.value,
                exc,
                exc_info=fault is FaultKind.UNEXPECTED,
            )
            if self.config.notify_errors:
                await self._notify_failure(exc)

        cooldown = self.config.error_cooldown
        logger.info("Waiting %.0f seconds before polling again", cooldown)
        await self._sleep(cooldown)

    async def _notify_failure(self, exc: Exception) -> None:
        if self.channel is None:
            return
        try:
            await self.channel.send(f"⚠️ RCON poll failed: `{exc}`")
        except Exception as e:
            logger.warning("Failed to post poll failure notice: %s", e)

    async def _release(self, session: RconSession) -> None:
        try:
            await session.close()
        except Exception as e:
            logger.debug("Ignoring error while closing RCON session: %s", e)
