"""
Unit Tests for the Discord voice adapter

Tests for:
- DiscordVoiceGateway.join (connect, move, stale cleanup, error mapping)
- DiscordVoiceConnection.play / destroy
- DiscordAudioPlayer controls
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from guild_jukebox.config.settings import AudioSettings, PlaybackSettings
from guild_jukebox.domain.music.value_objects import StreamSource
from guild_jukebox.domain.shared.exceptions import PlaybackError, VoiceJoinError
from guild_jukebox.infrastructure.discord.adapters.voice_adapter import (
    DiscordAudioPlayer,
    DiscordVoiceConnection,
    DiscordVoiceGateway,
)

GUILD_ID = 123
CHANNEL_ID = 456
OTHER_CHANNEL_ID = 789

ADAPTER = "guild_jukebox.infrastructure.discord.adapters.voice_adapter"


def make_voice_client(channel_id=CHANNEL_ID, connected=True):
    vc = MagicMock(spec=discord.VoiceClient)
    vc.guild = MagicMock()
    vc.guild.id = GUILD_ID
    vc.channel = MagicMock()
    vc.channel.id = channel_id
    vc.is_connected.return_value = connected
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    vc.disconnect = AsyncMock()
    vc.move_to = AsyncMock()
    return vc


@pytest.fixture
def voice_channel():
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = CHANNEL_ID
    channel.name = "General"
    return channel


@pytest.fixture
def guild(voice_channel):
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.name = "Test Guild"
    guild.voice_client = None
    guild.get_channel.return_value = voice_channel
    guild.change_voice_state = AsyncMock()
    return guild


@pytest.fixture
def bot(guild):
    bot = MagicMock()
    bot.get_guild.return_value = guild
    return bot


@pytest.fixture
def gateway(bot):
    return DiscordVoiceGateway(bot, AudioSettings(), PlaybackSettings(voice_connect_timeout_s=0.5))


# =============================================================================
# Gateway
# =============================================================================


class TestJoin:
    async def test_connects_self_deafened(self, gateway, guild, voice_channel):
        vc = make_voice_client()
        voice_channel.connect = AsyncMock(return_value=vc)

        connection = await gateway.join(GUILD_ID, CHANNEL_ID)

        voice_channel.connect.assert_awaited_once_with(self_deaf=True)
        guild.change_voice_state.assert_awaited_once_with(channel=voice_channel, self_deaf=True)
        assert isinstance(connection, DiscordVoiceConnection)
        assert connection.channel_id == CHANNEL_ID
        assert connection.is_connected is True

    async def test_moves_existing_client(self, gateway, guild, voice_channel):
        vc = make_voice_client(channel_id=OTHER_CHANNEL_ID)
        guild.voice_client = vc
        voice_channel.connect = AsyncMock()

        await gateway.join(GUILD_ID, CHANNEL_ID)

        vc.move_to.assert_awaited_once_with(voice_channel)
        voice_channel.connect.assert_not_awaited()

    async def test_stale_client_is_cleaned_up(self, gateway, guild, voice_channel):
        stale = make_voice_client(connected=False)
        guild.voice_client = stale
        voice_channel.connect = AsyncMock(return_value=make_voice_client())

        await gateway.join(GUILD_ID, CHANNEL_ID)

        stale.disconnect.assert_awaited_once_with(force=True)
        voice_channel.connect.assert_awaited_once()

    async def test_unknown_guild(self, gateway, bot):
        bot.get_guild.return_value = None

        with pytest.raises(VoiceJoinError):
            await gateway.join(GUILD_ID, CHANNEL_ID)

    async def test_not_a_voice_channel(self, gateway, guild):
        guild.get_channel.return_value = MagicMock(spec=discord.TextChannel)

        with pytest.raises(VoiceJoinError):
            await gateway.join(GUILD_ID, CHANNEL_ID)

    async def test_timeout(self, gateway, voice_channel):
        async def hang(**kwargs):
            await asyncio.sleep(5)

        voice_channel.connect = hang

        with pytest.raises(VoiceJoinError) as exc_info:
            await gateway.join(GUILD_ID, CHANNEL_ID)

        assert "Timed out" in exc_info.value.message

    async def test_forbidden(self, gateway, voice_channel):
        voice_channel.connect = AsyncMock(
            side_effect=discord.Forbidden(MagicMock(status=403, reason="Forbidden"), "no perms")
        )

        with pytest.raises(VoiceJoinError) as exc_info:
            await gateway.join(GUILD_ID, CHANNEL_ID)

        assert "permission" in exc_info.value.message

    async def test_client_exception(self, gateway, voice_channel):
        voice_channel.connect = AsyncMock(side_effect=discord.ClientException("already connecting"))

        with pytest.raises(VoiceJoinError):
            await gateway.join(GUILD_ID, CHANNEL_ID)

    async def test_self_deafen_failure_is_ignored(self, gateway, guild, voice_channel):
        voice_channel.connect = AsyncMock(return_value=make_voice_client())
        guild.change_voice_state = AsyncMock(side_effect=discord.ClientException("nope"))

        connection = await gateway.join(GUILD_ID, CHANNEL_ID)

        assert connection.is_connected is True


# =============================================================================
# Connection
# =============================================================================


class TestConnection:
    @pytest.fixture
    def source(self):
        return StreamSource(stream_url="https://cdn/stream", source_url="https://youtube.com/watch?v=a")

    async def test_play_bridges_after_callback_to_loop(self, source):
        vc = make_voice_client()
        connection = DiscordVoiceConnection(vc, AudioSettings())
        finished = asyncio.Event()
        received = []

        def on_finished(error):
            received.append(error)
            finished.set()

        with patch(f"{ADAPTER}.discord.FFmpegPCMAudio") as ffmpeg, patch(
            f"{ADAPTER}.discord.PCMVolumeTransformer"
        ) as volume:
            player = connection.play(source, on_finished)

        ffmpeg.assert_called_once()
        assert ffmpeg.call_args.args[0] == "https://cdn/stream"
        volume.assert_called_once_with(ffmpeg.return_value, volume=0.5)
        assert isinstance(player, DiscordAudioPlayer)

        after = vc.play.call_args.kwargs["after"]
        error = RuntimeError("stream ended badly")
        await asyncio.to_thread(after, error)
        await asyncio.wait_for(finished.wait(), timeout=1)

        assert received == [error]

    async def test_play_stops_previous_stream(self, source):
        vc = make_voice_client()
        vc.is_playing.return_value = True
        connection = DiscordVoiceConnection(vc, AudioSettings())

        with patch(f"{ADAPTER}.discord.FFmpegPCMAudio"), patch(f"{ADAPTER}.discord.PCMVolumeTransformer"):
            connection.play(source, lambda error: None)

        vc.stop.assert_called_once()

    async def test_play_refused(self, source):
        vc = make_voice_client()
        vc.play.side_effect = discord.ClientException("Not connected to voice.")
        connection = DiscordVoiceConnection(vc, AudioSettings())

        with patch(f"{ADAPTER}.discord.FFmpegPCMAudio"), patch(f"{ADAPTER}.discord.PCMVolumeTransformer"):
            with pytest.raises(PlaybackError):
                connection.play(source, lambda error: None)

    async def test_destroy_disconnects(self):
        vc = make_voice_client()
        connection = DiscordVoiceConnection(vc, AudioSettings())

        await connection.destroy()

        vc.disconnect.assert_awaited_once_with(force=True)


# =============================================================================
# Player
# =============================================================================


class TestAudioPlayer:
    def test_controls_act_on_current_source(self):
        vc = make_voice_client()
        source = MagicMock()
        vc.source = source
        player = DiscordAudioPlayer(vc, source)

        vc.is_playing.return_value = True
        player.pause()
        player.stop()
        vc.is_playing.return_value = False
        vc.is_paused.return_value = True
        player.resume()

        vc.pause.assert_called_once()
        vc.stop.assert_called_once()
        vc.resume.assert_called_once()

    def test_controls_ignore_replaced_source(self):
        vc = make_voice_client()
        vc.source = MagicMock()
        vc.is_playing.return_value = True
        player = DiscordAudioPlayer(vc, MagicMock())

        player.pause()
        player.stop()

        vc.pause.assert_not_called()
        vc.stop.assert_not_called()
