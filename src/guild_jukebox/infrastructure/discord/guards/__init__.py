"""Voice channel guard functions for Discord cogs."""

from guild_jukebox.infrastructure.discord.guards.voice_guards import (
    get_bot_voice_channel,
    get_listener_ids,
    get_member,
    get_member_voice_channel,
    send_ephemeral,
)

__all__ = [
    "get_bot_voice_channel",
    "get_listener_ids",
    "get_member",
    "get_member_voice_channel",
    "send_ephemeral",
]
