"""RCON Bridge - Relay game server events from RCON to a Discord channel.

A small async bridge that:
- Polls a game server over Source RCON on a fixed interval
- Relays the event command's output to a Discord text channel
- Mirrors the connected player count into the bot presence and channel topic
"""

__version__ = "0.1.0"
