"""
Music Bounded Context

Domain logic for tracks, the per-guild queue and loop handling.
"""

from guild_jukebox.domain.music.entities import GuildPlaybackState, Track
from guild_jukebox.domain.music.events import IdleTimeoutElapsed, PlaybackFinished, SessionEvent
from guild_jukebox.domain.music.value_objects import (
    LoopMode,
    PlaybackState,
    QueuePosition,
    SessionDestroyReason,
    SkipReason,
    StreamSource,
)

__all__ = [
    # Entities
    "Track",
    "GuildPlaybackState",
    # Value Objects
    "QueuePosition",
    "StreamSource",
    "PlaybackState",
    "LoopMode",
    "SkipReason",
    "SessionDestroyReason",
    # Events
    "SessionEvent",
    "PlaybackFinished",
    "IdleTimeoutElapsed",
]
