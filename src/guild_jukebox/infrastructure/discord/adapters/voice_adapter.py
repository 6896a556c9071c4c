"""Discord voice adapter implementing the voice ports with discord.py."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord

from guild_jukebox.application.interfaces.voice_adapter import (
    AudioPlayer,
    FinishedCallback,
    VoiceConnection,
    VoiceGateway,
)
from guild_jukebox.config.settings import AudioSettings, PlaybackSettings
from guild_jukebox.domain.shared.exceptions import PlaybackError, VoiceJoinError
from guild_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ....domain.music.value_objects import StreamSource

logger = logging.getLogger(__name__)


class DiscordAudioPlayer(AudioPlayer):
    """Controls one audio source on a voice client.

    Calls are ignored once the client has moved on to a different source.
    """

    def __init__(self, voice_client: discord.VoiceClient, source: discord.AudioSource) -> None:
        self._vc = voice_client
        self._source = source

    @property
    def _is_current(self) -> bool:
        return self._vc.source is self._source

    def pause(self) -> None:
        if self._is_current and self._vc.is_playing():
            self._vc.pause()

    def resume(self) -> None:
        if self._is_current and self._vc.is_paused():
            self._vc.resume()

    def stop(self) -> None:
        if self._is_current and (self._vc.is_playing() or self._vc.is_paused()):
            self._vc.stop()


class DiscordVoiceConnection(VoiceConnection):
    def __init__(self, voice_client: discord.VoiceClient, settings: AudioSettings | None = None) -> None:
        self._vc = voice_client
        self._settings = settings or AudioSettings()
        self._guild_id = voice_client.guild.id

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._vc

    @property
    def channel_id(self) -> int:
        return self._vc.channel.id

    @property
    def is_connected(self) -> bool:
        return self._vc.is_connected()

    def play(self, source: StreamSource, on_finished: FinishedCallback) -> AudioPlayer:
        loop = asyncio.get_running_loop()
        ffmpeg_options = self._settings.ffmpeg_options

        try:
            audio = discord.FFmpegPCMAudio(
                source.stream_url,
                before_options=ffmpeg_options.get("before_options", ""),
                options=ffmpeg_options.get("options", ""),
            )
            volume_source = discord.PCMVolumeTransformer(audio, volume=self._settings.default_volume)

            def after_callback(error: Exception | None = None) -> None:
                # Runs on discord.py's audio thread.
                loop.call_soon_threadsafe(on_finished, error)

            if self._vc.is_playing() or self._vc.is_paused():
                self._vc.stop()
            self._vc.play(volume_source, after=after_callback)
        except discord.ClientException as e:
            logger.error(LogTemplates.PLAYBACK_FAILED_START, source.source_url, self._guild_id, e)
            raise PlaybackError(ErrorMessages.PLAYBACK_REFUSED.format(error=e), self._guild_id) from e

        return DiscordAudioPlayer(self._vc, volume_source)

    async def destroy(self) -> None:
        await self._vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, self._guild_id)


class DiscordVoiceGateway(VoiceGateway):
    def __init__(
        self,
        bot: discord.Client,
        audio_settings: AudioSettings | None = None,
        playback_settings: PlaybackSettings | None = None,
    ) -> None:
        self._bot = bot
        self._audio_settings = audio_settings or AudioSettings()
        self._connect_timeout = (playback_settings or PlaybackSettings()).voice_connect_timeout_s

    def _get_voice_client(self, guild: discord.Guild) -> discord.VoiceClient | None:
        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def join(self, guild_id: int, channel_id: int) -> VoiceConnection:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            raise VoiceJoinError(guild_id, channel_id, ErrorMessages.GUILD_NOT_FOUND.format(guild_id=guild_id))

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise VoiceJoinError(
                guild_id, channel_id, ErrorMessages.CHANNEL_NOT_VOICE.format(channel_id=channel_id)
            )

        vc = self._get_voice_client(guild)
        if vc is not None and not vc.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild_id)
            await vc.disconnect(force=True)
            vc = None

        try:
            async with asyncio.timeout(self._connect_timeout):
                if vc is None:
                    vc = await channel.connect(self_deaf=True)
                    logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
                elif vc.channel is None or vc.channel.id != channel_id:
                    await vc.move_to(channel)
                    logger.info(LogTemplates.VOICE_MOVED, channel.name)
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_JOIN_FAILED, guild_id, "timeout")
            raise VoiceJoinError(
                guild_id, channel_id, ErrorMessages.VOICE_CONNECT_TIMEOUT.format(channel_id=channel_id)
            ) from e
        except discord.Forbidden as e:
            logger.error(LogTemplates.VOICE_JOIN_FAILED, guild_id, "forbidden")
            raise VoiceJoinError(
                guild_id, channel_id, ErrorMessages.VOICE_NO_PERMISSION.format(channel_id=channel_id)
            ) from e
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_JOIN_FAILED, guild_id, e)
            raise VoiceJoinError(
                guild_id, channel_id, ErrorMessages.VOICE_CLIENT_ERROR.format(error=e)
            ) from e

        await self._ensure_self_deaf(guild, channel)
        return DiscordVoiceConnection(vc, self._audio_settings)

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> None:
        """Ensure the bot is self-deafened in the guild's current voice connection."""
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except (discord.HTTPException, discord.ClientException) as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)
