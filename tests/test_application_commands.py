"""
Unit Tests for Application Layer Commands

Tests for:
- PlayTrackCommand / PlayTrackHandler
- VoteSkipCommand / VoteSkipHandler
"""

import pytest
from conftest import (
    GUILD_ID,
    USER_A,
    USER_B,
    USER_C,
    USER_D,
    VOICE_CHANNEL_ID,
    make_track,
)
from pydantic import ValidationError

from guild_jukebox.application.commands.play_track import (
    PlayTrackCommand,
    PlayTrackHandler,
    PlayTrackResult,
    PlayTrackStatus,
)
from guild_jukebox.application.commands.vote_skip import (
    VoteSkipCommand,
    VoteSkipHandler,
    VoteSkipResult,
)
from guild_jukebox.domain.music.value_objects import SessionDestroyReason
from guild_jukebox.domain.shared.exceptions import ResolutionError
from guild_jukebox.domain.voting.value_objects import VoteResult


def play(query, user_id=USER_A):
    return PlayTrackCommand(
        guild_id=GUILD_ID, channel_id=VOICE_CHANNEL_ID, user_id=user_id, query=query
    )


@pytest.fixture
def play_handler(resolver, registry):
    return PlayTrackHandler(audio_resolver=resolver, registry=registry)


@pytest.fixture
def skip_handler(registry):
    return VoteSkipHandler(registry=registry)


# =============================================================================
# PlayTrackCommand
# =============================================================================


class TestPlayTrackCommand:
    def test_query_is_stripped(self):
        assert play("  hello  ").query == "hello"

    def test_blank_query_rejected(self):
        with pytest.raises(ValidationError):
            play("   ")

    def test_invalid_guild_id_rejected(self):
        with pytest.raises(ValidationError):
            PlayTrackCommand(guild_id=0, channel_id=VOICE_CHANNEL_ID, user_id=USER_A, query="x")


class TestPlayTrackResult:
    def test_success_now_playing(self):
        result = PlayTrackResult.success(make_track("a"), 0, started_playing=True)

        assert result.status is PlayTrackStatus.NOW_PLAYING
        assert result.is_success is True

    def test_success_queued(self):
        result = PlayTrackResult.success(make_track("a"), 3, started_playing=False)

        assert result.status is PlayTrackStatus.QUEUED
        assert result.queue_position == 3
        assert "position 3" in result.message

    def test_error(self):
        result = PlayTrackResult.error(PlayTrackStatus.VOICE_ERROR, "nope")

        assert result.is_success is False
        assert result.track is None


# =============================================================================
# PlayTrackHandler
# =============================================================================


class TestPlayTrackHandler:
    async def test_first_play_starts_playback(self, play_handler, resolver, registry):
        resolver.catalogue["song a"] = make_track("a")

        result = await play_handler.handle(play("song a"))

        assert result.status is PlayTrackStatus.NOW_PLAYING
        assert result.track.requester_id == USER_A
        assert registry.get(GUILD_ID).now_playing.title == "Song a"

    async def test_second_play_is_queued(self, play_handler, resolver):
        resolver.catalogue["song a"] = make_track("a")
        resolver.catalogue["song b"] = make_track("b")
        await play_handler.handle(play("song a"))

        result = await play_handler.handle(play("song b", user_id=USER_B))

        assert result.status is PlayTrackStatus.QUEUED
        assert result.queue_position == 1

    async def test_unknown_query(self, play_handler, registry):
        result = await play_handler.handle(play("missing"))

        assert result.status is PlayTrackStatus.TRACK_NOT_FOUND
        assert registry.get(GUILD_ID) is None

    async def test_resolver_failure(self, play_handler, resolver, registry):
        async def broken(query):
            raise ResolutionError(query, "service down")

        resolver.resolve = broken

        result = await play_handler.handle(play("song a"))

        assert result.status is PlayTrackStatus.RESOLUTION_ERROR
        assert result.message == "service down"
        assert registry.get(GUILD_ID) is None

    async def test_voice_failure(self, play_handler, resolver, gateway, registry, voice_join_error):
        resolver.catalogue["song a"] = make_track("a")
        gateway.join_error = voice_join_error

        result = await play_handler.handle(play("song a"))

        assert result.status is PlayTrackStatus.VOICE_ERROR
        assert registry.get(GUILD_ID).queue == ()

    async def test_unplayable_track(self, play_handler, resolver):
        track = make_track("a")
        resolver.catalogue["song a"] = track
        resolver.broken.add(track.url)

        result = await play_handler.handle(play("song a"))

        assert result.status is PlayTrackStatus.NOT_PLAYABLE
        assert result.track.title == "Song a"

    async def test_queue_full(self, resolver, gateway):
        from guild_jukebox.application.services.session_registry import GuildSessionRegistry
        from guild_jukebox.config.settings import PlaybackSettings

        registry = GuildSessionRegistry(
            resolver=resolver,
            voice_gateway=gateway,
            settings=PlaybackSettings(idle_timeout_ms=60_000, max_queue_size=1),
        )
        handler = PlayTrackHandler(audio_resolver=resolver, registry=registry)
        resolver.catalogue["song a"] = make_track("a")
        await handler.handle(play("song a"))

        result = await handler.handle(play("song a"))

        assert result.status is PlayTrackStatus.QUEUE_FULL
        await registry.shutdown()

    async def test_destroyed_session_is_replaced(self, play_handler, resolver, registry):
        resolver.catalogue["song a"] = make_track("a")
        stale = registry.get_or_create(GUILD_ID)
        await stale.destroy(SessionDestroyReason.DISCONNECT)
        # Still registered, as if its teardown had not unregistered it yet
        registry._sessions[GUILD_ID] = stale

        result = await play_handler.handle(play("song a"))

        assert result.status is PlayTrackStatus.NOW_PLAYING
        assert registry.get(GUILD_ID) is not stale


# =============================================================================
# VoteSkip
# =============================================================================


class TestVoteSkipResult:
    def test_from_vote_result(self):
        result = VoteSkipResult.from_vote_result(VoteResult.VOTE_RECORDED, 1, 2)

        assert result.message == "🗳️ Vote skip: 1/2 (needed)"
        assert result.action_executed is False
        assert result.is_success is True

    def test_from_threshold_met(self):
        result = VoteSkipResult.from_vote_result(VoteResult.THRESHOLD_MET, 2, 2, "Song a")

        assert result.action_executed is True
        assert "Song a" in result.message


class TestVoteSkipHandler:
    async def test_no_session(self, skip_handler):
        result = await skip_handler.handle(
            VoteSkipCommand(guild_id=GUILD_ID, user_id=USER_A, listener_ids=frozenset({USER_A}))
        )

        assert result.result is VoteResult.NO_PLAYING

    async def test_vote_tally(self, skip_handler, play_handler, resolver):
        resolver.catalogue["song a"] = make_track("a")
        await play_handler.handle(play("song a"))
        listeners = frozenset({USER_A, USER_B, USER_C, USER_D})

        result = await skip_handler.handle(
            VoteSkipCommand(guild_id=GUILD_ID, user_id=USER_B, listener_ids=listeners)
        )

        assert result.result is VoteResult.VOTE_RECORDED
        assert (result.votes_current, result.votes_needed) == (1, 2)

    async def test_requester_skip(self, skip_handler, play_handler, resolver, registry):
        resolver.catalogue["song a"] = make_track("a")
        await play_handler.handle(play("song a"))

        result = await skip_handler.handle(
            VoteSkipCommand(guild_id=GUILD_ID, user_id=USER_A, listener_ids=frozenset({USER_A}))
        )
        await registry.get(GUILD_ID).drain()

        assert result.result is VoteResult.REQUESTER_SKIP
        assert result.action_executed is True
        assert registry.get(GUILD_ID).now_playing is None
