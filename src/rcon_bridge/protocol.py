"""Protocol constants and packet framing for Source RCON.

Handles:
- Protocol constants (packet types, sizes, defaults)
- Little-endian packet encoding
- Packet validation and decoding
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

# =============================================================================
# Protocol Constants
# =============================================================================

# Project Zomboid's default RCON port
DEFAULT_PORT: int = 27015

# Packet types. EXECCOMMAND and AUTH_RESPONSE share a value; direction tells
# them apart.
SERVERDATA_AUTH: int = 3
SERVERDATA_AUTH_RESPONSE: int = 2
SERVERDATA_EXECCOMMAND: int = 2
SERVERDATA_RESPONSE_VALUE: int = 0

# Request id the server echoes back when authentication is rejected
AUTH_FAILED_ID: int = -1

# Frame sizes (the size field counts id + type + body + two NUL bytes)
MIN_PACKET_SIZE: int = 10
MAX_PACKET_SIZE: int = 1024 * 1024

SIZE_FIELD = struct.Struct("<i")
HEADER = struct.Struct("<ii")
TERMINATOR = b"\x00\x00"


# =============================================================================
# Packets
# =============================================================================


class PacketError(ValueError):
    """Raised when a frame violates the RCON packet layout."""


@dataclass(frozen=True)
class Packet:
    """A single RCON packet."""

    request_id: int
    type: int
    body: str = ""


def encode_packet(packet: Packet) -> bytes:
    """Encode a packet into its wire frame.

    Args:
        packet: The packet to encode

    Returns:
        The size-prefixed frame
    """
    payload = (
        HEADER.pack(packet.request_id, packet.type)
        + packet.body.encode("utf-8")
        + TERMINATOR
    )
    return SIZE_FIELD.pack(len(payload)) + payload


def validate_size(size: int) -> int:
    """Check a frame size read from the wire.

    Args:
        size: The decoded size field

    Returns:
        The size, unchanged

    Raises:
        PacketError: If the size is outside the allowed range
    """
    if size < MIN_PACKET_SIZE or size > MAX_PACKET_SIZE:
        raise PacketError(f"Invalid RCON packet size: {size}")
    return size


def decode_packet(payload: bytes) -> Packet:
    """Decode the part of a frame that follows the size field.

    Invalid UTF-8 in the body is replaced rather than rejected.

    Args:
        payload: id + type + body + terminator bytes

    Returns:
        The decoded packet

    Raises:
        PacketError: If the payload is too short or not NUL-terminated
    """
    if len(payload) < MIN_PACKET_SIZE:
        raise PacketError(f"RCON packet too short: {len(payload)} bytes")
    if not payload.endswith(TERMINATOR):
        raise PacketError("RCON packet is missing its terminator")

    request_id, packet_type = HEADER.unpack_from(payload)
    body = payload[HEADER.size : -len(TERMINATOR)].decode("utf-8", "replace")
    return Packet(request_id=request_id, type=packet_type, body=body)
