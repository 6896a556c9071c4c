"""Reusable voice-channel guard functions for Discord slash commands.

These are free functions that accept explicit dependencies rather than relying
on a specific cog instance, making them usable from any cog.
"""

from __future__ import annotations

import logging

import discord

from guild_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates

logger = logging.getLogger(__name__)


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Send an ephemeral message, handling both fresh and already-responded interactions.

    A reply that Discord rejects is logged and dropped; the command's work has
    already been done by then.
    """
    try:
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)
    except discord.HTTPException:
        logger.warning(
            LogTemplates.COMMAND_REPLY_FAILED,
            getattr(interaction.command, "name", "<unknown>"),
            interaction.guild_id,
        )


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """Validate that the interaction comes from a guild member. Returns None with error on failure."""
    if not interaction.guild:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None

    user = interaction.user
    if not isinstance(user, discord.Member):
        await send_ephemeral(interaction, DiscordUIMessages.STATE_VERIFY_VOICE_FAILED)
        return None

    return user


async def get_member_voice_channel(
    interaction: discord.Interaction,
) -> discord.VoiceChannel | discord.StageChannel | None:
    """Return the caller's voice channel, replying with an error when they are not in one."""
    member = await get_member(interaction)
    if member is None:
        return None

    if not member.voice or not member.voice.channel:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_MUST_BE_IN_VOICE)
        return None

    return member.voice.channel


def get_bot_voice_channel(guild: discord.Guild) -> discord.VoiceChannel | discord.StageChannel | None:
    vc = guild.voice_client
    channel = getattr(vc, "channel", None)
    if isinstance(channel, (discord.VoiceChannel, discord.StageChannel)):
        return channel
    return None


def get_listener_ids(guild: discord.Guild) -> frozenset[int]:
    """Ids of the non-bot members sharing the bot's voice channel."""
    channel = get_bot_voice_channel(guild)
    if channel is None:
        return frozenset()
    return frozenset(m.id for m in channel.members if not m.bot)
