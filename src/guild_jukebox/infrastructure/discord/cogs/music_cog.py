"""Slash-command music cog delegating to application services."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from guild_jukebox.application.commands.play_track import (
    PlayTrackCommand,
    PlayTrackResult,
    PlayTrackStatus,
)
from guild_jukebox.application.commands.vote_skip import VoteSkipCommand
from guild_jukebox.application.queries.get_queue import GetQueueQuery, QueueInfo
from guild_jukebox.domain.music.value_objects import LoopMode, SessionDestroyReason
from guild_jukebox.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from guild_jukebox.domain.voting.value_objects import VoteResult
from guild_jukebox.infrastructure.discord.guards import (
    get_listener_ids,
    get_member,
    get_member_voice_channel,
    send_ephemeral,
)
from guild_jukebox.utils.reply import format_duration, format_user_mention, truncate

if TYPE_CHECKING:
    from guild_jukebox.config.container import Container
    from guild_jukebox.domain.music.entities import Track

logger = logging.getLogger(__name__)

QUEUE_DISPLAY_LIMIT = 10
TITLE_DISPLAY_LENGTH = 80

# Results the caller alone should see
_PRIVATE_VOTE_RESULTS = frozenset(
    {VoteResult.NO_PLAYING, VoteResult.NOT_IN_CHANNEL, VoteResult.ALREADY_VOTED}
)


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

        # Text channel of the latest /play per guild, used for announcements
        self._announce_channels: dict[int, int] = {}

    async def cog_load(self) -> None:
        self.container.session_registry.set_track_started_listener(self._on_track_started)

    async def cog_unload(self) -> None:
        self.container.session_registry.set_track_started_listener(None)
        self._announce_channels.clear()

    # ─────────────────────────────────────────────────────────────────
    # Announcements
    # ─────────────────────────────────────────────────────────────────

    async def _on_track_started(self, guild_id: int, track: Track) -> None:
        channel_id = self._announce_channels.get(guild_id)
        if channel_id is None:
            return

        channel = self.bot.get_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            return

        await channel.send(
            DiscordUIMessages.ANNOUNCE_NOW_PLAYING.format(
                track_title=truncate(track.title, TITLE_DISPLAY_LENGTH),
                requester=format_user_mention(track.requester_id),
            )
        )

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="play", description="Play a song by URL or search query.")
    @app_commands.describe(query="YouTube URL or search query")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        # Defer early because resolving and joining can exceed the 3-second interaction deadline
        await interaction.response.defer()

        voice_channel = await get_member_voice_channel(interaction)
        if voice_channel is None or interaction.guild is None:
            return

        if not query.strip():
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query=query))
            return

        guild_id = interaction.guild.id
        if interaction.channel_id is not None:
            self._announce_channels[guild_id] = interaction.channel_id

        try:
            result = await self.container.play_track_handler.handle(
                PlayTrackCommand(
                    guild_id=guild_id,
                    channel_id=voice_channel.id,
                    user_id=interaction.user.id,
                    query=query,
                )
            )
        except Exception as e:
            logger.exception(LogTemplates.PLAY_COMMAND_FAILED)
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_OCCURRED.format(error=e))
            return

        content = self._format_play_result(result, query)
        if result.is_success:
            await self._send_public(interaction, content)
        else:
            await send_ephemeral(interaction, content)

    @staticmethod
    def _format_play_result(result: PlayTrackResult, query: str) -> str:
        title = truncate(result.track.title, TITLE_DISPLAY_LENGTH) if result.track else ""

        match result.status:
            case PlayTrackStatus.NOW_PLAYING:
                return DiscordUIMessages.PLAY_NOW_PLAYING.format(track_title=title)
            case PlayTrackStatus.QUEUED:
                return DiscordUIMessages.PLAY_QUEUED.format(
                    track_title=title, position=result.queue_position
                )
            case PlayTrackStatus.NOT_PLAYABLE:
                return DiscordUIMessages.PLAY_UNPLAYABLE.format(track_title=title)
            case PlayTrackStatus.TRACK_NOT_FOUND:
                return DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query=query)
            case PlayTrackStatus.RESOLUTION_ERROR:
                return DiscordUIMessages.ERROR_RESOLUTION_FAILED
            case PlayTrackStatus.VOICE_ERROR:
                return DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE
            case PlayTrackStatus.QUEUE_FULL:
                return DiscordUIMessages.ERROR_QUEUE_FULL
            case _:
                return DiscordUIMessages.ERROR_OCCURRED.format(error=result.message)

    @app_commands.command(name="skip", description="Skip the current track (requester) or vote to skip.")
    async def skip(self, interaction: discord.Interaction) -> None:
        member = await get_member(interaction)
        if member is None or interaction.guild is None:
            return

        result = await self.container.vote_skip_handler.handle(
            VoteSkipCommand(
                guild_id=interaction.guild.id,
                user_id=member.id,
                listener_ids=get_listener_ids(interaction.guild),
            )
        )

        if result.result in _PRIVATE_VOTE_RESULTS:
            await send_ephemeral(interaction, result.message)
        else:
            await self._send_public(interaction, result.message)

    @app_commands.command(name="pause", description="Pause playback.")
    async def pause(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return

        session = self.container.session_registry.get(interaction.guild.id)
        if session is None or not await session.set_pause(True):
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING_OR_PAUSED)
            return

        await self._send_public(interaction, DiscordUIMessages.ACTION_PAUSED)

    @app_commands.command(name="resume", description="Resume playback.")
    async def resume(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return

        session = self.container.session_registry.get(interaction.guild.id)
        if session is None or not await session.set_pause(False):
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PAUSED)
            return

        await self._send_public(interaction, DiscordUIMessages.ACTION_RESUMED)

    @app_commands.command(name="loop", description="Set the loop mode.")
    @app_commands.describe(mode="off, single (repeat current) or all (repeat queue)")
    @app_commands.choices(
        mode=[
            app_commands.Choice(name="off", value=LoopMode.OFF.value),
            app_commands.Choice(name="single", value=LoopMode.SINGLE.value),
            app_commands.Choice(name="all", value=LoopMode.ALL.value),
        ]
    )
    async def loop(self, interaction: discord.Interaction, mode: app_commands.Choice[str]) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return

        loop_mode = LoopMode(mode.value)
        session = self.container.session_registry.get_or_create(interaction.guild.id)
        changed = await session.set_loop_mode(loop_mode)

        template = (
            DiscordUIMessages.ACTION_LOOP_MODE_SET
            if changed
            else DiscordUIMessages.ACTION_LOOP_MODE_UNCHANGED
        )
        await self._send_public(interaction, template.format(mode=loop_mode.value))

    @app_commands.command(name="queue", description="Show the current queue.")
    async def queue(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return

        info = await self.container.get_queue_handler.handle(GetQueueQuery(guild_id=interaction.guild.id))
        if info.is_empty:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_QUEUE_EMPTY)
            return

        await self._send_public(interaction, self._format_queue(info))

    @staticmethod
    def _format_queue(info: QueueInfo) -> str:
        lines = [DiscordUIMessages.QUEUE_HEADER]
        # Positions match the ones reported by /play; 0 is the current track
        for index, track in enumerate(info.tracks[:QUEUE_DISPLAY_LIMIT]):
            if index == 0 and track is info.current_track:
                template = (
                    DiscordUIMessages.QUEUE_PAUSED_LINE
                    if info.is_paused
                    else DiscordUIMessages.QUEUE_NOW_LINE
                )
            else:
                template = DiscordUIMessages.QUEUE_LINE
            duration = f" ({format_duration(track.duration_seconds)})" if track.duration_seconds else ""
            lines.append(
                template.format(
                    index=index,
                    track_title=truncate(track.title, TITLE_DISPLAY_LENGTH),
                    duration=duration,
                    requester=format_user_mention(track.requester_id),
                )
            )

        hidden = info.length - QUEUE_DISPLAY_LIMIT
        if hidden > 0:
            lines.append(DiscordUIMessages.QUEUE_MORE.format(count=hidden))

        if info.total_duration:
            lines.append(
                DiscordUIMessages.QUEUE_TOTAL_DURATION.format(duration=format_duration(info.total_duration))
            )

        if info.loop_mode is not LoopMode.OFF:
            lines.append(DiscordUIMessages.QUEUE_LOOP_FOOTER.format(mode=info.loop_mode.value))
        return "\n".join(lines)

    @app_commands.command(name="leave", description="Disconnect from the voice channel.")
    async def leave(self, interaction: discord.Interaction) -> None:
        if interaction.guild is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return

        session = self.container.session_registry.get(interaction.guild.id)
        if session is None or not session.is_connected:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOT_CONNECTED_TO_VOICE)
            return

        await session.destroy(SessionDestroyReason.LEAVE)
        self._announce_channels.pop(interaction.guild.id, None)
        await self._send_public(interaction, DiscordUIMessages.ACTION_DISCONNECTED)

    @app_commands.command(name="help", description="Show the available commands.")
    async def help(self, interaction: discord.Interaction) -> None:
        await self._send_public(interaction, DiscordUIMessages.HELP)

    # ─────────────────────────────────────────────────────────────────
    # Voice Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_voice_state_update(
        self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
    ) -> None:
        if self.bot.user is None or member.id != self.bot.user.id:
            return
        if before.channel is None or after.channel is not None:
            return

        # Our own teardowns unregister before disconnecting, so a session still
        # bound to the channel we left means an external disconnect.
        session = self.container.session_registry.get(member.guild.id)
        if session is None or session.channel_id != before.channel.id:
            return

        logger.info(LogTemplates.VOICE_LOST, member.guild.id)
        await session.destroy(SessionDestroyReason.DISCONNECT)
        self._announce_channels.pop(member.guild.id, None)

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _send_public(interaction: discord.Interaction, content: str) -> None:
        try:
            if interaction.response.is_done():
                await interaction.followup.send(content)
            else:
                await interaction.response.send_message(content)
        except discord.HTTPException:
            logger.warning(
                LogTemplates.COMMAND_REPLY_FAILED,
                getattr(interaction.command, "name", "<unknown>"),
                interaction.guild_id,
            )


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
