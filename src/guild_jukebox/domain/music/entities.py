"""Core domain entities for the music bounded context."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from guild_jukebox.domain.music.value_objects import LoopMode, QueuePosition
from guild_jukebox.domain.shared.exceptions import BusinessRuleViolationError
from guild_jukebox.domain.shared.messages import ErrorMessages
from guild_jukebox.domain.shared.types import (
    DiscordSnowflake,
    DurationSeconds,
    HttpUrlStr,
    MaxQueueSize,
    TrackTitleStr,
)


class Track(BaseModel):
    """Immutable value object representing a playable track."""

    model_config = ConfigDict(frozen=True, strict=True)

    url: HttpUrlStr
    title: TrackTitleStr
    duration_seconds: DurationSeconds | None = None

    # Set when queued
    requester_id: DiscordSnowflake | None = None

    def with_requester(self, user_id: DiscordSnowflake) -> Track:
        """Return a copy of this track attributed to ``user_id``."""
        return self.model_copy(update={"requester_id": user_id})


class GuildPlaybackState(BaseModel):
    """Pure playback bookkeeping for a single guild.

    ``queue[0]`` is the track that is playing (or about to). The model never
    touches voice or network resources; the owning session drives it.
    """

    model_config = ConfigDict(strict=True)

    guild_id: DiscordSnowflake
    max_queue_size: MaxQueueSize = 100
    queue: list[Track] = Field(default_factory=list)
    loop_mode: LoopMode = LoopMode.OFF
    loop_snapshot: tuple[Track, ...] = ()
    vote_skips: set[int] = Field(default_factory=set)
    current_requester_id: DiscordSnowflake | None = None

    @property
    def has_tracks(self) -> bool:
        return bool(self.queue)

    @property
    def now_playing(self) -> Track | None:
        return self.queue[0] if self.queue else None

    @property
    def is_full(self) -> bool:
        return len(self.queue) >= self.max_queue_size

    @property
    def can_refill(self) -> bool:
        return self.loop_mode is LoopMode.ALL and bool(self.loop_snapshot)

    @property
    def vote_count(self) -> int:
        return len(self.vote_skips)

    # --- Queue ---

    def enqueue(self, track: Track) -> QueuePosition:
        """Append a track to the end of the queue."""
        if self.is_full:
            raise BusinessRuleViolationError(
                rule="MAX_QUEUE_SIZE",
                message=ErrorMessages.QUEUE_FULL.format(max_size=self.max_queue_size),
            )

        self.queue.append(track)
        if self.loop_mode is LoopMode.ALL:
            self.loop_snapshot = tuple(self.queue)
        return QueuePosition(len(self.queue) - 1)

    def discard(self, track: Track) -> bool:
        """Remove the most recently queued occurrence of ``track`` (by identity)."""
        for index in range(len(self.queue) - 1, -1, -1):
            if self.queue[index] is track:
                del self.queue[index]
                if index == 0:
                    self.clear_current()
                if self.loop_mode is LoopMode.ALL:
                    self.loop_snapshot = tuple(self.queue)
                return True
        return False

    def begin_current(self) -> Track | None:
        """Mark ``queue[0]`` as the track now playing."""
        track = self.now_playing
        self.current_requester_id = track.requester_id if track else None
        self.vote_skips.clear()
        return track

    def drop_current(self) -> Track | None:
        """Remove and return ``queue[0]``."""
        if not self.queue:
            return None
        track = self.queue.pop(0)
        self.clear_current()
        return track

    def refill_from_snapshot(self) -> int:
        """Restore the queue from the loop snapshot and return its length."""
        self.queue = list(self.loop_snapshot)
        return len(self.queue)

    def clear_current(self) -> None:
        self.current_requester_id = None
        self.vote_skips.clear()

    def reset(self) -> None:
        """Forget every track, vote and snapshot."""
        self.queue.clear()
        self.loop_snapshot = ()
        self.clear_current()

    # --- Loop mode ---

    def set_loop_mode(self, mode: LoopMode) -> bool:
        """Set the loop mode. Returns False when ``mode`` is already active."""
        if mode is self.loop_mode:
            return False

        self.loop_mode = mode
        self.loop_snapshot = tuple(self.queue) if mode is LoopMode.ALL else ()
        return True

    # --- Skip votes ---

    def add_vote(self, user_id: int) -> bool:
        """Record a skip vote. Returns False if the user already voted."""
        if user_id in self.vote_skips:
            return False
        self.vote_skips.add(user_id)
        return True

    def reconcile_votes(self, present_ids: Iterable[int]) -> int:
        """Drop votes of users no longer present and return how many were dropped."""
        before = len(self.vote_skips)
        self.vote_skips &= set(present_ids)
        return before - len(self.vote_skips)
