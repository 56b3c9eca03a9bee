"""Parsing of RCON response text.

Pure helpers that turn raw response blobs into something publishable:
cleaned event text, player counts, message chunks, and presence/topic labels.
"""

from __future__ import annotations

import re

# Discord rejects messages over 2000 characters; stay under it
DEFAULT_MAX_MESSAGE_LENGTH: int = 1900

# Header emitted by the Project Zomboid `players` command, e.g. "Players connected (3):"
PLAYERS_HEADER_RE = re.compile(r"Players?\s+connected\s*\((\d+)\)", re.IGNORECASE)


def clean_event_text(response: str | None) -> str:
    """Trim an event response.

    Whitespace-only and missing responses both come back as "", which
    callers treat as nothing to report.
    """
    return (response or "").strip()


def parse_player_count(response: str | None) -> int:
    """Extract the number of connected players from a status response.

    Looks for a "Players connected (N)" header first. Without one, counts
    non-empty lines, one per player, skipping the first line if it looks
    like a header (mentions "player").

    Args:
        response: Raw response text of the player-list command

    Returns:
        The player count; 0 for empty or unrecognised input
    """
    text = response or ""

    match = PLAYERS_HEADER_RE.search(text)
    if match:
        return int(match.group(1))

    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        return 0

    if "player" in lines[0].lower():
        return len(lines) - 1
    return len(lines)


def split_message(
    content: str, max_length: int = DEFAULT_MAX_MESSAGE_LENGTH
) -> list[str]:
    """Split text into consecutive chunks of at most max_length characters.

    Joining the chunks in order gives back the original text.

    Args:
        content: The text to split
        max_length: Maximum characters per chunk

    Returns:
        The chunks, in order; empty for empty content

    Raises:
        ValueError: If max_length is not positive
    """
    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")
    return [
        content[start : start + max_length]
        for start in range(0, len(content), max_length)
    ]


def format_presence(count: int) -> str:
    """Presence label, e.g. "1 survivor online" / "3 survivors online"."""
    return f"{count} survivor{'' if count == 1 else 's'} online"


def format_topic(count: int) -> str:
    return f"Players online: {count}"
