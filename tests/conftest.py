"""Shared fakes and fixtures for the test suite."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio

from guild_jukebox.application.interfaces.audio_resolver import TrackResolver
from guild_jukebox.application.interfaces.voice_adapter import (
    AudioPlayer,
    FinishedCallback,
    VoiceConnection,
    VoiceGateway,
)
from guild_jukebox.config.settings import PlaybackSettings
from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.value_objects import SessionDestroyReason, StreamSource
from guild_jukebox.domain.shared.exceptions import (
    PlaybackError,
    StreamAcquisitionError,
    TrackNotFoundError,
    VoiceJoinError,
)

GUILD_ID = 111111111111111111
VOICE_CHANNEL_ID = 222222222222222222
USER_A = 1001
USER_B = 1002
USER_C = 1003
USER_D = 1004


def make_track(name: str, duration: int | None = 180) -> Track:
    return Track(
        url=f"https://www.youtube.com/watch?v={name}",
        title=f"Song {name}",
        duration_seconds=duration,
    )


# ============================================================================
# Fakes
# ============================================================================


class FakePlayer(AudioPlayer):
    """Player whose end of stream is driven by the test."""

    def __init__(self, source: StreamSource, on_finished: FinishedCallback) -> None:
        self.source = source
        self._on_finished = on_finished
        self.paused = False
        self.finished = False

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def stop(self) -> None:
        self.finish()

    def finish(self, error: Exception | None = None) -> None:
        if self.finished:
            return
        self.finished = True
        self._on_finished(error)


class FakeConnection(VoiceConnection):
    def __init__(self, channel_id: int = VOICE_CHANNEL_ID) -> None:
        self._channel_id = channel_id
        self.connected = True
        self.players: list[FakePlayer] = []
        self.play_error: Exception | None = None
        self.destroy_calls = 0

    @property
    def channel_id(self) -> int:
        return self._channel_id

    @property
    def is_connected(self) -> bool:
        return self.connected

    @property
    def current_player(self) -> FakePlayer | None:
        return self.players[-1] if self.players else None

    def play(self, source: StreamSource, on_finished: FinishedCallback) -> AudioPlayer:
        if self.play_error is not None:
            raise self.play_error
        player = FakePlayer(source, on_finished)
        self.players.append(player)
        return player

    async def destroy(self) -> None:
        self.destroy_calls += 1
        self.connected = False


class FakeVoiceGateway(VoiceGateway):
    def __init__(self) -> None:
        self.connections: list[FakeConnection] = []
        self.join_error: Exception | None = None
        self.join_calls: list[tuple[int, int]] = []
        # Seconds to suspend inside join, letting other commands run meanwhile
        self.join_delay = 0.0

    @property
    def last_connection(self) -> FakeConnection | None:
        return self.connections[-1] if self.connections else None

    async def join(self, guild_id: int, channel_id: int) -> VoiceConnection:
        self.join_calls.append((guild_id, channel_id))
        if self.join_delay:
            await asyncio.sleep(self.join_delay)
        if self.join_error is not None:
            raise self.join_error
        connection = FakeConnection(channel_id)
        self.connections.append(connection)
        return connection


class FakeResolver(TrackResolver):
    """Resolver over a fixed catalogue; URLs listed in ``broken`` cannot be streamed."""

    def __init__(self, catalogue: dict[str, Track] | None = None) -> None:
        self.catalogue = catalogue or {}
        self.broken: set[str] = set()
        self.open_calls: list[str] = []

    async def resolve(self, query: str) -> Track:
        track = self.catalogue.get(query)
        if track is None:
            raise TrackNotFoundError(query)
        return track

    async def open_stream(self, url: str) -> StreamSource:
        self.open_calls.append(url)
        if url in self.broken:
            raise StreamAcquisitionError(url)
        return StreamSource(stream_url=f"{url}&stream=1", source_url=url)

    def is_url(self, query: str) -> bool:
        return query.startswith(("http://", "https://"))


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def gateway():
    return FakeVoiceGateway()


@pytest.fixture
def playback_settings():
    """Idle timeout long enough never to fire during a test."""
    return PlaybackSettings(idle_timeout_ms=60_000, max_queue_size=10)


@pytest.fixture
def fast_idle_settings():
    return PlaybackSettings(idle_timeout_ms=20, max_queue_size=10)


@pytest.fixture
def destroyed_guilds():
    return []


@pytest_asyncio.fixture
async def session(resolver, gateway, playback_settings, destroyed_guilds):
    from guild_jukebox.application.services.guild_session import GuildPlaybackSession

    s = GuildPlaybackSession(
        GUILD_ID,
        resolver=resolver,
        voice_gateway=gateway,
        settings=playback_settings,
        on_destroyed=destroyed_guilds.append,
    )
    yield s
    await s.destroy(SessionDestroyReason.SHUTDOWN)


@pytest_asyncio.fixture
async def registry(resolver, gateway, playback_settings):
    from guild_jukebox.application.services.session_registry import GuildSessionRegistry

    r = GuildSessionRegistry(resolver=resolver, voice_gateway=gateway, settings=playback_settings)
    yield r
    await r.shutdown()


@pytest.fixture
def voice_join_error():
    return VoiceJoinError(GUILD_ID, VOICE_CHANNEL_ID, "cannot join")


@pytest.fixture
def playback_error():
    return PlaybackError("refused", GUILD_ID)
