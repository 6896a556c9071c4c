"""Inbound events consumed by a guild playback session's worker."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from guild_jukebox.domain.shared.types import NonNegativeInt


class SessionEvent(BaseModel):
    """Base class for all session inbox events."""

    model_config = ConfigDict(frozen=True)


class PlaybackFinished(SessionEvent):
    """The player tagged with ``generation`` stopped, normally or with ``error``."""

    event_type: Literal["PlaybackFinished"] = "PlaybackFinished"
    generation: NonNegativeInt
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class IdleTimeoutElapsed(SessionEvent):
    """The idle timer armed with ``token`` has fired."""

    event_type: Literal["IdleTimeoutElapsed"] = "IdleTimeoutElapsed"
    token: NonNegativeInt
