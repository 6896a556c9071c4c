"""
Unit Tests for Domain Music Layer

Tests for:
- Value Objects: QueuePosition, StreamSource, PlaybackState, LoopMode
- Entities: Track, GuildPlaybackState
- Events: PlaybackFinished, IdleTimeoutElapsed
"""

import pytest
from conftest import USER_A, USER_B, USER_C, make_track
from pydantic import ValidationError

from guild_jukebox.domain.music.entities import GuildPlaybackState, Track
from guild_jukebox.domain.music.events import IdleTimeoutElapsed, PlaybackFinished
from guild_jukebox.domain.music.value_objects import (
    LoopMode,
    PlaybackState,
    QueuePosition,
    StreamSource,
)
from guild_jukebox.domain.shared.exceptions import BusinessRuleViolationError

GUILD_ID = 123456789


@pytest.fixture
def state():
    return GuildPlaybackState(guild_id=GUILD_ID, max_queue_size=5)


# =============================================================================
# Value Objects
# =============================================================================


class TestQueuePosition:
    def test_int_and_str(self):
        assert int(QueuePosition(2)) == 2
        assert str(QueuePosition(0)) == "0"

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            QueuePosition(-1)

    def test_int_and_str(self):
        assert int(QueuePosition(3)) == 3
        assert str(QueuePosition(3)) == "3"


class TestStreamSource:
    def test_empty_stream_url_rejected(self):
        with pytest.raises(ValueError):
            StreamSource(stream_url="  ", source_url="https://example.com")


class TestPlaybackState:
    @pytest.mark.parametrize(
        ("source", "target"),
        [
            (PlaybackState.IDLE, PlaybackState.CONNECTING),
            (PlaybackState.CONNECTING, PlaybackState.PLAYING),
            (PlaybackState.CONNECTING, PlaybackState.IDLE),
            (PlaybackState.PLAYING, PlaybackState.PAUSED),
            (PlaybackState.PLAYING, PlaybackState.PLAYING),
            (PlaybackState.PAUSED, PlaybackState.PLAYING),
            (PlaybackState.PAUSED, PlaybackState.IDLE),
            (PlaybackState.IDLE, PlaybackState.DESTROYED),
        ],
    )
    def test_valid_transitions(self, source, target):
        assert source.can_transition_to(target) is True

    @pytest.mark.parametrize(
        ("source", "target"),
        [
            (PlaybackState.IDLE, PlaybackState.PAUSED),
            (PlaybackState.CONNECTING, PlaybackState.PAUSED),
            (PlaybackState.PAUSED, PlaybackState.PAUSED),
            (PlaybackState.DESTROYED, PlaybackState.IDLE),
            (PlaybackState.DESTROYED, PlaybackState.PLAYING),
        ],
    )
    def test_invalid_transitions(self, source, target):
        assert source.can_transition_to(target) is False

    def test_is_active(self):
        assert PlaybackState.PLAYING.is_active is True
        assert PlaybackState.PAUSED.is_active is True
        assert PlaybackState.IDLE.is_active is False
        assert PlaybackState.CONNECTING.is_active is False


class TestLoopMode:
    def test_values(self):
        assert [m.value for m in LoopMode] == ["off", "single", "all"]


# =============================================================================
# Track
# =============================================================================


class TestTrack:
    def test_with_requester_returns_copy(self):
        track = make_track("a")

        queued = track.with_requester(USER_A)

        assert queued is not track
        assert queued.requester_id == USER_A
        assert track.requester_id is None

    def test_is_frozen(self):
        track = make_track("a")

        with pytest.raises(ValidationError):
            track.title = "changed"

    def test_url_must_be_http(self):
        with pytest.raises(ValidationError):
            Track(url="ftp://example.com/a", title="A")

    def test_title_required(self):
        with pytest.raises(ValidationError):
            Track(url="https://example.com/a", title="")


# =============================================================================
# GuildPlaybackState
# =============================================================================


class TestGuildPlaybackStateQueue:
    def test_enqueue_returns_positions(self, state):
        assert int(state.enqueue(make_track("a"))) == 0
        assert int(state.enqueue(make_track("b"))) == 1
        assert len(state.queue) == 2
        assert state.now_playing.title == "Song a"

    def test_queue_full(self, state):
        for i in range(5):
            state.enqueue(make_track(str(i)))

        assert state.is_full is True
        with pytest.raises(BusinessRuleViolationError):
            state.enqueue(make_track("x"))

    def test_begin_current_sets_requester_and_clears_votes(self, state):
        state.enqueue(make_track("a").with_requester(USER_A))
        state.vote_skips.add(USER_B)

        track = state.begin_current()

        assert track.title == "Song a"
        assert state.current_requester_id == USER_A
        assert state.vote_count == 0

    def test_drop_current(self, state):
        state.enqueue(make_track("a").with_requester(USER_A))
        state.enqueue(make_track("b"))
        state.begin_current()

        dropped = state.drop_current()

        assert dropped.title == "Song a"
        assert state.now_playing.title == "Song b"
        assert state.current_requester_id is None

    def test_drop_current_on_empty_queue(self, state):
        assert state.drop_current() is None

    def test_discard_removes_latest_identical_instance(self, state):
        a = make_track("a")
        b = make_track("a")
        state.enqueue(a)
        state.enqueue(b)

        assert state.discard(b) is True
        assert state.queue == [a]
        assert state.discard(make_track("a")) is False

    def test_reset(self, state):
        state.set_loop_mode(LoopMode.ALL)
        state.enqueue(make_track("a"))
        state.begin_current()

        state.reset()

        assert state.queue == []
        assert state.loop_snapshot == ()
        assert state.current_requester_id is None


class TestGuildPlaybackStateLoop:
    def test_set_same_mode_is_noop(self, state):
        assert state.set_loop_mode(LoopMode.OFF) is False
        assert state.set_loop_mode(LoopMode.SINGLE) is True
        assert state.set_loop_mode(LoopMode.SINGLE) is False

    def test_switching_to_all_snapshots_queue(self, state):
        state.enqueue(make_track("a"))
        state.enqueue(make_track("b"))

        state.set_loop_mode(LoopMode.ALL)

        assert [t.title for t in state.loop_snapshot] == ["Song a", "Song b"]
        assert state.can_refill is True

    def test_enqueue_under_all_refreshes_snapshot(self, state):
        state.set_loop_mode(LoopMode.ALL)
        state.enqueue(make_track("a"))
        state.enqueue(make_track("b"))

        assert [t.title for t in state.loop_snapshot] == ["Song a", "Song b"]

    def test_round_trip_refill(self, state):
        state.set_loop_mode(LoopMode.ALL)
        state.enqueue(make_track("a"))
        state.enqueue(make_track("b"))
        state.drop_current()
        state.drop_current()

        count = state.refill_from_snapshot()

        assert count == 2
        assert [t.title for t in state.queue] == ["Song a", "Song b"]

    def test_leaving_all_clears_snapshot(self, state):
        state.set_loop_mode(LoopMode.ALL)
        state.enqueue(make_track("a"))

        state.set_loop_mode(LoopMode.OFF)

        assert state.loop_snapshot == ()
        assert state.can_refill is False


class TestGuildPlaybackStateVotes:
    def test_add_vote_once(self, state):
        assert state.add_vote(USER_A) is True
        assert state.add_vote(USER_A) is False
        assert state.vote_count == 1

    def test_reconcile_drops_absent_voters(self, state):
        state.add_vote(USER_A)
        state.add_vote(USER_B)

        dropped = state.reconcile_votes({USER_B, USER_C})

        assert dropped == 1
        assert state.vote_skips == {USER_B}


# =============================================================================
# Events
# =============================================================================


class TestEvents:
    def test_playback_finished_failed(self):
        assert PlaybackFinished(generation=1).failed is False
        assert PlaybackFinished(generation=1, error="boom").failed is True

    def test_idle_timeout_token(self):
        assert IdleTimeoutElapsed(token=4).token == 4

    def test_negative_generation_rejected(self):
        with pytest.raises(ValidationError):
            PlaybackFinished(generation=-1)
