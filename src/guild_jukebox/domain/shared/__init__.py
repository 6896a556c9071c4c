"""Shared kernel: cross-cutting types, messages and exceptions."""

from guild_jukebox.domain.shared.exceptions import (
    BusinessRuleViolationError,
    DomainError,
    InvalidOperationError,
    PlaybackError,
    ResolutionError,
    StreamAcquisitionError,
    TrackNotFoundError,
    VoiceJoinError,
)

__all__ = [
    "DomainError",
    "BusinessRuleViolationError",
    "InvalidOperationError",
    "ResolutionError",
    "TrackNotFoundError",
    "StreamAcquisitionError",
    "PlaybackError",
    "VoiceJoinError",
]
