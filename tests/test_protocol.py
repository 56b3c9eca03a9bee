"""Tests for RCON packet framing."""

from __future__ import annotations

import pytest

from rcon_bridge.protocol import (
    HEADER,
    MAX_PACKET_SIZE,
    MIN_PACKET_SIZE,
    SERVERDATA_AUTH,
    SERVERDATA_RESPONSE_VALUE,
    Packet,
    PacketError,
    decode_packet,
    encode_packet,
    validate_size,
)


class TestEncodePacket:
    """Tests for the wire layout."""

    def test_layout_is_little_endian_and_terminated(self) -> None:
        """Size, id and type are little-endian int32s; body ends in two NULs."""
        frame = encode_packet(Packet(1, SERVERDATA_AUTH, "pw"))

        assert frame == (
            b"\x0c\x00\x00\x00"  # size: 4 + 4 + 2 + 2
            b"\x01\x00\x00\x00"  # request id
            b"\x03\x00\x00\x00"  # SERVERDATA_AUTH
            b"pw\x00\x00"
        )

    def test_empty_body_has_minimum_size(self) -> None:
        frame = encode_packet(Packet(7, SERVERDATA_RESPONSE_VALUE))

        assert len(frame) == 4 + MIN_PACKET_SIZE
        assert frame[:4] == b"\x0a\x00\x00\x00"

    def test_body_is_utf8(self) -> None:
        """Size counts encoded bytes, not characters."""
        frame = encode_packet(Packet(2, 2, "é"))

        assert frame[:4] == b"\x0c\x00\x00\x00"
        assert frame[12:14] == "é".encode("utf-8")


class TestDecodePacket:
    """Tests for decoding the payload after the size field."""

    def test_decodes_encoded_packet(self) -> None:
        frame = encode_packet(Packet(42, SERVERDATA_RESPONSE_VALUE, "Players connected (0):"))

        packet = decode_packet(frame[4:])

        assert packet == Packet(42, SERVERDATA_RESPONSE_VALUE, "Players connected (0):")

    def test_negative_request_id(self) -> None:
        """The auth-failure id of -1 survives decoding."""
        packet = decode_packet(HEADER.pack(-1, 2) + b"\x00\x00")

        assert packet.request_id == -1
        assert packet.type == 2
        assert packet.body == ""

    def test_invalid_utf8_is_replaced(self) -> None:
        packet = decode_packet(HEADER.pack(5, 0) + b"ok\xff" + b"\x00\x00")

        assert packet.body == "ok�"

    def test_too_short_raises(self) -> None:
        with pytest.raises(PacketError):
            decode_packet(b"\x00" * (MIN_PACKET_SIZE - 1))

    def test_missing_terminator_raises(self) -> None:
        with pytest.raises(PacketError, match="terminator"):
            decode_packet(HEADER.pack(1, 0) + b"abc")


class TestValidateSize:
    """Tests for frame size bounds."""

    @pytest.mark.parametrize("size", [MIN_PACKET_SIZE, 4096, MAX_PACKET_SIZE])
    def test_accepts_sizes_in_range(self, size: int) -> None:
        assert validate_size(size) == size

    @pytest.mark.parametrize("size", [-1, 0, MIN_PACKET_SIZE - 1, MAX_PACKET_SIZE + 1])
    def test_rejects_sizes_out_of_range(self, size: int) -> None:
        with pytest.raises(PacketError, match="Invalid RCON packet size"):
            validate_size(size)
