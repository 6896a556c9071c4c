"""Command and handler for playing a track from a query or URL."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.shared.exceptions import (
    BusinessRuleViolationError,
    InvalidOperationError,
    ResolutionError,
    TrackNotFoundError,
    VoiceJoinError,
)
from guild_jukebox.domain.shared.types import DiscordSnowflake, NonEmptyStr, NonNegativeInt

if TYPE_CHECKING:
    from ..interfaces.audio_resolver import TrackResolver
    from ..services.guild_session import EnqueueResult
    from ..services.session_registry import GuildSessionRegistry



class PlayTrackStatus(Enum):
    """Status codes for play track results."""

    QUEUED = "queued"
    NOW_PLAYING = "now_playing"
    NOT_PLAYABLE = "not_playable"
    TRACK_NOT_FOUND = "track_not_found"
    RESOLUTION_ERROR = "resolution_error"
    VOICE_ERROR = "voice_error"
    QUEUE_FULL = "queue_full"


class PlayTrackCommand(BaseModel):
    """Request to resolve a query/URL, queue the track, and start playback if idle."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    channel_id: DiscordSnowflake
    user_id: DiscordSnowflake
    query: NonEmptyStr

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class PlayTrackResult(BaseModel):
    """Result of a play track command."""

    model_config = ConfigDict(frozen=True, strict=True)

    status: PlayTrackStatus
    message: str
    track: Track | None = None
    queue_position: NonNegativeInt | None = None

    @property
    def is_success(self) -> bool:
        return self.status in {PlayTrackStatus.QUEUED, PlayTrackStatus.NOW_PLAYING}

    @classmethod
    def success(cls, track: Track, queue_position: int, started_playing: bool) -> PlayTrackResult:
        if started_playing:
            status = PlayTrackStatus.NOW_PLAYING
            message = f"Now playing: {track.title}"
        else:
            status = PlayTrackStatus.QUEUED
            message = f"Added to queue: {track.title} (position {queue_position})"

        return cls(status=status, message=message, track=track, queue_position=queue_position)

    @classmethod
    def error(cls, status: PlayTrackStatus, message: str, track: Track | None = None) -> PlayTrackResult:
        return cls(status=status, message=message, track=track)


class PlayTrackHandler:
    """Resolves a track from a query and hands it to the guild's session."""

    def __init__(self, *, audio_resolver: TrackResolver, registry: GuildSessionRegistry) -> None:
        self._audio_resolver = audio_resolver
        self._registry = registry

    async def handle(self, command: PlayTrackCommand) -> PlayTrackResult:
        try:
            track = await self._audio_resolver.resolve(command.query)
        except TrackNotFoundError as e:
            return PlayTrackResult.error(PlayTrackStatus.TRACK_NOT_FOUND, e.message)
        except ResolutionError as e:
            return PlayTrackResult.error(PlayTrackStatus.RESOLUTION_ERROR, e.message)

        try:
            result = await self._enqueue(command, track)
        except VoiceJoinError as e:
            return PlayTrackResult.error(PlayTrackStatus.VOICE_ERROR, e.message, track)
        except BusinessRuleViolationError as e:
            return PlayTrackResult.error(PlayTrackStatus.QUEUE_FULL, e.message, track)

        if not result.playable:
            return PlayTrackResult.error(
                PlayTrackStatus.NOT_PLAYABLE, f"Could not stream {result.track.title}", result.track
            )
        return PlayTrackResult.success(result.track, result.position, result.started)

    async def _enqueue(self, command: PlayTrackCommand, track: Track) -> EnqueueResult:
        session = self._registry.get_or_create(command.guild_id)
        try:
            return await session.enqueue(track, command.user_id, command.channel_id)
        except InvalidOperationError:
            # The session was torn down while this command waited for it.
            if not session.is_destroyed:
                raise
            session = self._registry.get_or_create(command.guild_id)
            return await session.enqueue(track, command.user_id, command.channel_id)
