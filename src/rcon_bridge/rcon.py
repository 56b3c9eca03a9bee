"""Async Source RCON client.

Each poll cycle opens a fresh session, issues its commands and closes it
again. Transport problems are raised as typed RconError subclasses so callers
can tell a paused server (RconConnectionClosed) from a real failure.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from asyncio import StreamReader, StreamWriter
from types import TracebackType

from rcon_bridge.protocol import (
    AUTH_FAILED_ID,
    SERVERDATA_AUTH,
    SERVERDATA_AUTH_RESPONSE,
    SERVERDATA_EXECCOMMAND,
    SERVERDATA_RESPONSE_VALUE,
    SIZE_FIELD,
    Packet,
    PacketError,
    decode_packet,
    encode_packet,
    validate_size,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: float = 15.0  # seconds


# =============================================================================
# Faults
# =============================================================================


class RconError(Exception):
    """Base class for RCON transport failures."""


class RconConnectError(RconError):
    """The TCP connection to the server could not be opened."""


class RconConnectionClosed(RconError):
    """The server closed or reset the connection.

    Project Zomboid stops answering RCON while the world is paused
    (PauseEmpty), which shows up as the peer dropping the stream.
    """

    def __init__(self, message: str = "Connection closed") -> None:
        super().__init__(message)


class RconAuthError(RconError):
    """The server rejected the RCON password."""


class RconTimeoutError(RconError):
    """The server did not answer within the configured timeout."""


class RconProtocolError(RconError):
    """The server sent a frame that is not a valid RCON packet."""


# =============================================================================
# Client
# =============================================================================


class RconClient:
    """A single authenticated RCON session.

    Use RconClient.connect() to open a session; the constructor only wraps
    an already-open stream pair.

    Attributes:
        host: The server host this session is connected to
        port: The server port this session is connected to
        timeout: Seconds to wait for any single network operation
    """

    def __init__(
        self,
        reader: StreamReader,
        writer: StreamWriter,
        *,
        host: str = "",
        port: int = 0,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._reader = reader
        self._writer: StreamWriter | None = writer
        self._request_ids = itertools.count(1)

    @classmethod
    async def connect(
        cls,
        host: str,
        port: int,
        password: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> RconClient:
        """Open and authenticate a session.

        Args:
            host: RCON server host
            port: RCON server port
            password: RCON password
            timeout: Seconds allowed for the TCP connect and for each reply

        Returns:
            An authenticated client

        Raises:
            RconConnectError: If the TCP connection cannot be opened
            RconTimeoutError: If connecting or authenticating takes too long
            RconAuthError: If the password is rejected
            RconConnectionClosed: If the server drops the connection
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout
            )
        except asyncio.TimeoutError as e:
            raise RconTimeoutError(
                f"Timed out connecting to {host}:{port} after {timeout:.1f}s"
            ) from e
        except OSError as e:
            raise RconConnectError(f"Failed to connect to {host}:{port}: {e}") from e

        client = cls(reader, writer, host=host, port=port, timeout=timeout)
        try:
            await client._authenticate(password)
        except BaseException:
            await client.close()
            raise

        logger.debug("RCON session open to %s:%d", host, port)
        return client

    @property
    def is_connected(self) -> bool:
        """Check if the session still has an open stream."""
        return self._writer is not None and not self._writer.is_closing()

    async def _authenticate(self, password: str) -> None:
        request_id = await self._write(SERVERDATA_AUTH, password)

        while True:
            packet = await self._read_packet()
            # Source servers send an empty RESPONSE_VALUE ahead of the auth reply
            if packet.type != SERVERDATA_AUTH_RESPONSE:
                continue
            if packet.request_id == AUTH_FAILED_ID:
                raise RconAuthError(f"RCON authentication failed for {self.host}:{self.port}")
            if packet.request_id == request_id:
                return

    async def send(self, command: str) -> str:
        """Execute a command and return its response body.

        Args:
            command: The console command to execute

        Returns:
            The response text (may be empty)

        Raises:
            RconConnectionClosed: If the session is closed or the server drops it
            RconTimeoutError: If no response arrives in time
            RconProtocolError: If the server sends a malformed frame
        """
        request_id = await self._write(SERVERDATA_EXECCOMMAND, command)

        while True:
            packet = await self._read_packet()
            if (
                packet.type == SERVERDATA_RESPONSE_VALUE
                and packet.request_id == request_id
            ):
                return packet.body
            logger.debug(
                "Skipping RCON packet id=%d type=%d", packet.request_id, packet.type
            )

    async def close(self) -> None:
        """Close the session. Safe to call more than once."""
        writer, self._writer = self._writer, None
        if writer is None:
            return
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()

    async def __aenter__(self) -> RconClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _write(self, packet_type: int, body: str) -> int:
        if self._writer is None:
            raise RconConnectionClosed()

        request_id = next(self._request_ids)
        try:
            self._writer.write(encode_packet(Packet(request_id, packet_type, body)))
            await asyncio.wait_for(self._writer.drain(), self.timeout)
        except asyncio.TimeoutError as e:
            raise RconTimeoutError("Timed out sending RCON request") from e
        except OSError as e:
            raise RconConnectionClosed() from e
        return request_id

    async def _read_packet(self) -> Packet:
        try:
            header = await asyncio.wait_for(
                self._reader.readexactly(SIZE_FIELD.size), self.timeout
            )
            (size,) = SIZE_FIELD.unpack(header)
            payload = await asyncio.wait_for(
                self._reader.readexactly(validate_size(size)), self.timeout
            )
            return decode_packet(payload)
        except asyncio.TimeoutError as e:
            raise RconTimeoutError(
                f"No RCON response within {self.timeout:.1f}s"
            ) from e
        except asyncio.IncompleteReadError as e:
            raise RconConnectionClosed() from e
        except PacketError as e:
            raise RconProtocolError(str(e)) from e
        except OSError as e:
            raise RconConnectionClosed() from e
