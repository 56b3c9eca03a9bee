"""Tests for the Discord publishing adapters."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from rcon_bridge.publisher import (
    ChannelResolutionError,
    DiscordChannel,
    DiscordPresence,
    resolve_text_channel,
)


def make_text_channel() -> MagicMock:
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = 123456789
    channel.name = "server-events"
    channel.send = AsyncMock()
    channel.edit = AsyncMock()
    return channel


class TestDiscordChannel:
    """Tests for posting and topic changes."""

    async def test_send(self) -> None:
        channel = make_text_channel()

        await DiscordChannel(channel).send("Alice joined")

        channel.send.assert_awaited_once_with("Alice joined")

    async def test_set_topic(self) -> None:
        channel = make_text_channel()

        await DiscordChannel(channel).set_topic("Players online: 2")

        channel.edit.assert_awaited_once_with(topic="Players online: 2")

    async def test_errors_propagate(self) -> None:
        channel = make_text_channel()
        channel.send.side_effect = RuntimeError("forbidden")

        with pytest.raises(RuntimeError):
            await DiscordChannel(channel).send("Alice joined")


class TestDiscordPresence:
    """Tests for the bot presence."""

    async def test_sets_watching_activity(self) -> None:
        client = MagicMock(spec=discord.Client)
        client.change_presence = AsyncMock()

        await DiscordPresence(client).set_presence("2 survivors online")

        kwargs = client.change_presence.await_args.kwargs
        assert kwargs["activity"].name == "2 survivors online"
        assert kwargs["activity"].type is discord.ActivityType.watching
        assert kwargs["status"] is discord.Status.online


class TestResolveTextChannel:
    """Tests for startup channel resolution."""

    async def test_returns_text_channel(self) -> None:
        channel = make_text_channel()
        client = MagicMock(spec=discord.Client)
        client.fetch_channel = AsyncMock(return_value=channel)

        resolved = await resolve_text_channel(client, 123456789)

        assert resolved is channel
        client.fetch_channel.assert_awaited_once_with(123456789)

    async def test_rejects_non_text_channel(self) -> None:
        client = MagicMock(spec=discord.Client)
        client.fetch_channel = AsyncMock(return_value=MagicMock(spec=discord.VoiceChannel))

        with pytest.raises(ChannelResolutionError, match="not a text channel"):
            await resolve_text_channel(client, 42)

    async def test_fetch_failure(self) -> None:
        response = MagicMock(status=404, reason="Not Found")
        client = MagicMock(spec=discord.Client)
        client.fetch_channel = AsyncMock(
            side_effect=discord.NotFound(response, "Unknown Channel")
        )

        with pytest.raises(ChannelResolutionError, match="Could not fetch channel 42"):
            await resolve_text_channel(client, 42)
