"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class BusinessRuleViolationError(DomainError):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str | None = None) -> None:
        msg = message or f"Business rule violated: {rule}"
        super().__init__(msg, code="BUSINESS_RULE_VIOLATION")
        self.rule = rule


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


# === Media pipeline ===


class ResolutionError(DomainError):
    """Raised when a query cannot be turned into a track."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"Could not resolve '{query}'"
        super().__init__(msg, code="RESOLUTION_ERROR")
        self.query = query


class TrackNotFoundError(ResolutionError):
    """Raised when a query matches nothing."""

    def __init__(self, query: str, message: str | None = None) -> None:
        super().__init__(query, message or f"No track found for '{query}'")
        self.code = "TRACK_NOT_FOUND"


class StreamAcquisitionError(DomainError):
    """Raised when a resolved track cannot be opened as an audio stream."""

    def __init__(self, url: str, message: str | None = None) -> None:
        msg = message or f"Could not open a stream for {url}"
        super().__init__(msg, code="STREAM_ACQUISITION_ERROR")
        self.url = url


class PlaybackError(DomainError):
    """Raised when the voice connection refuses to play a stream."""

    def __init__(self, message: str, guild_id: int | None = None) -> None:
        super().__init__(message, code="PLAYBACK_ERROR")
        self.guild_id = guild_id


# === Voice ===


class VoiceJoinError(DomainError):
    """Raised when the bot cannot join a voice channel."""

    def __init__(self, guild_id: int, channel_id: int, message: str | None = None) -> None:
        msg = message or f"Could not join voice channel {channel_id} in guild {guild_id}"
        super().__init__(msg, code="VOICE_JOIN_ERROR")
        self.guild_id = guild_id
        self.channel_id = channel_id
