"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from guild_jukebox.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class QueuePosition:
    """Zero-based position of a track in the guild queue; 0 is now playing."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Queue position cannot be negative")

    def __str__(self) -> str:
        return str(self.value)

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class StreamSource:
    """A direct media stream opened for a resolved track."""

    stream_url: str
    source_url: str

    def __post_init__(self) -> None:
        if not self.stream_url or not self.stream_url.strip():
            raise ValueError(ErrorMessages.EMPTY_STREAM_URL)


class PlaybackState(Enum):
    """Playback state of a guild session with enforced transitions.

    State transitions:
    - IDLE -> CONNECTING (first enqueue, joining voice)
    - IDLE -> PLAYING (enqueue while still connected)
    - CONNECTING -> PLAYING (joined, first track started)
    - CONNECTING -> IDLE (join failed or nothing playable)
    - PLAYING -> PAUSED (pause)
    - PLAYING -> PLAYING (next track)
    - PAUSED -> PLAYING (resume or next track)
    - PLAYING/PAUSED -> IDLE (queue exhausted)
    - Any -> DESTROYED (teardown, terminal)
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    PLAYING = "playing"
    PAUSED = "paused"
    DESTROYED = "destroyed"

    def can_transition_to(self, target: PlaybackState) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            PlaybackState.IDLE: {
                PlaybackState.CONNECTING,
                PlaybackState.PLAYING,
                PlaybackState.DESTROYED,
            },
            PlaybackState.CONNECTING: {
                PlaybackState.IDLE,
                PlaybackState.PLAYING,
                PlaybackState.DESTROYED,
            },
            PlaybackState.PLAYING: {
                PlaybackState.PAUSED,
                PlaybackState.PLAYING,
                PlaybackState.IDLE,
                PlaybackState.DESTROYED,
            },
            PlaybackState.PAUSED: {
                PlaybackState.PLAYING,
                PlaybackState.IDLE,
                PlaybackState.DESTROYED,
            },
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_active(self) -> bool:
        return self in {PlaybackState.PLAYING, PlaybackState.PAUSED}

    @property
    def is_playing(self) -> bool:
        return self == PlaybackState.PLAYING


class LoopMode(Enum):
    """Loop mode settings for queue playback."""

    OFF = "off"
    SINGLE = "single"  # Replay the current track
    ALL = "all"  # Replay the whole queue once it runs out


class SkipReason(Enum):
    """Reasons a track can be skipped."""

    REQUESTER = "requester"
    VOTE = "vote"


class SessionDestroyReason(Enum):
    """Reasons a session can be destroyed."""

    INACTIVITY = "inactivity"
    DISCONNECT = "disconnect"
    LEAVE = "leave"
    SHUTDOWN = "shutdown"
