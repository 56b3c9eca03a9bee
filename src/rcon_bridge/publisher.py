"""Chat publishing capabilities and their Discord implementations.

The poll cycle only depends on the ChannelSink and PresenceSink protocols;
the Discord adapters below are what the running bot plugs in.
"""

from __future__ import annotations

import logging
from typing import Protocol

import discord

logger = logging.getLogger(__name__)


class ChannelResolutionError(Exception):
    """The configured channel cannot be used for posting."""


class ChannelSink(Protocol):
    """Protocol for the target channel (duck typing for DiscordChannel)."""

    async def send(self, text: str) -> None:
        """Post a message to the channel."""
        ...

    async def set_topic(self, text: str) -> None:
        """Replace the channel topic."""
        ...


class PresenceSink(Protocol):
    """Protocol for the bridge's own presence (duck typing for DiscordPresence)."""

    async def set_presence(self, text: str) -> None:
        """Replace the presence text."""
        ...


class DiscordChannel:
    """ChannelSink backed by a Discord text channel."""

    def __init__(self, channel: discord.TextChannel) -> None:
        self.channel = channel

    async def send(self, text: str) -> None:
        await self.channel.send(text)

    async def set_topic(self, text: str) -> None:
        await self.channel.edit(topic=text)

    def __repr__(self) -> str:
        return f"DiscordChannel(id={self.channel.id})"


class DiscordPresence:
    """PresenceSink backed by the bot's own Discord presence.

    The text is shown as a "Watching ..." activity with status online.
    """

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    async def set_presence(self, text: str) -> None:
        await self.client.change_presence(
            activity=discord.Activity(type=discord.ActivityType.watching, name=text),
            status=discord.Status.online,
        )


async def resolve_text_channel(
    client: discord.Client, channel_id: int
) -> discord.TextChannel:
    """Fetch the channel the bridge posts into.

    Args:
        client: A logged-in Discord client
        channel_id: The configured channel id

    Returns:
        The text channel

    Raises:
        ChannelResolutionError: If the channel cannot be fetched or is not a
            text channel
    """
    try:
        channel = await client.fetch_channel(channel_id)
    except discord.DiscordException as e:
        raise ChannelResolutionError(
            f"Could not fetch channel {channel_id}: {e}"
        ) from e

    if not isinstance(channel, discord.TextChannel):
        raise ChannelResolutionError(
            f"Channel {channel_id} is not a text channel I can post in "
            f"(got {type(channel).__name__})"
        )

    logger.debug("Resolved channel %s (%d)", channel.name, channel_id)
    return channel
