"""
Application Commands (CQRS Write Side)

Command objects and their handlers for write operations.
Commands represent intent to change the system state.
"""

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

__all__ = [
    # Play
    "PlayTrackCommand",
    "PlayTrackHandler",
    "PlayTrackResult",
    "PlayTrackStatus",
    # Vote
    "VoteSkipCommand",
    "VoteSkipHandler",
    "VoteSkipResult",
]
