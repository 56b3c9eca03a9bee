"""Player count tracking for presence and channel topic.

Provides:
- PlayerCountTracker: Remembers the last topic count so unchanged counts do
  not rewrite the channel topic every poll
"""

from __future__ import annotations

import logging

from rcon_bridge.parser import format_presence, format_topic
from rcon_bridge.publisher import ChannelSink, PresenceSink

logger = logging.getLogger(__name__)

# Last-published value before any topic write has succeeded
NEVER_PUBLISHED: int = -1


class PlayerCountTracker:
    """Pushes player counts to the bot presence and the channel topic.

    The presence is refreshed on every update. The topic is only written
    when the count differs from the last successfully written one; a failed
    write leaves last_count alone so the next update retries it.

    Attributes:
        last_count: Count of the last successful topic write, or NEVER_PUBLISHED
    """

    def __init__(self, presence: PresenceSink) -> None:
        """Initialize the tracker.

        Args:
            presence: Where presence text is published
        """
        self.presence = presence
        self.last_count: int = NEVER_PUBLISHED

    async def update(self, count: int, channel: ChannelSink | None) -> None:
        """Publish a freshly computed player count.

        Write failures are logged, never raised.

        Args:
            count: The current number of connected players
            channel: The target channel, or None if it is not resolved yet
        """
        try:
            await self.presence.set_presence(format_presence(count))
        except Exception as e:
            logger.warning("Failed to set presence: %s", e)

        if channel is None or count == self.last_count:
            return

        try:
            await channel.set_topic(format_topic(count))
        except Exception as e:
            logger.warning("Failed to set topic: %s", e)
            return

        logger.info("Channel topic updated: %d -> %d players", self.last_count, count)
        self.last_count = count
