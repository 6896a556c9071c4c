"""Query for retrieving the current queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.value_objects import LoopMode, PlaybackState
from guild_jukebox.domain.shared.types import DiscordSnowflake, NonNegativeInt

if TYPE_CHECKING:
    from ..services.session_registry import GuildSessionRegistry


class GetQueueQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake


class QueueInfo(BaseModel):

    guild_id: DiscordSnowflake
    tracks: list[Track] = Field(default_factory=list)
    current_track: Track | None = None
    loop_mode: LoopMode = LoopMode.OFF
    status: PlaybackState = PlaybackState.IDLE
    total_duration: NonNegativeInt = 0

    @property
    def length(self) -> int:
        return len(self.tracks)

    @property
    def is_empty(self) -> bool:
        return len(self.tracks) == 0

    @property
    def is_paused(self) -> bool:
        return self.status is PlaybackState.PAUSED


class GetQueueHandler:

    def __init__(self, *, registry: GuildSessionRegistry) -> None:
        self._registry = registry

    async def handle(self, query: GetQueueQuery) -> QueueInfo:
        session = self._registry.get(query.guild_id)

        if session is None:
            return QueueInfo(guild_id=query.guild_id)

        tracks = list(session.queue)
        total_duration = sum(t.duration_seconds for t in tracks if t.duration_seconds is not None)

        return QueueInfo(
            guild_id=query.guild_id,
            tracks=tracks,
            current_track=session.now_playing,
            loop_mode=session.loop_mode,
            status=session.status,
            total_duration=total_duration,
        )
