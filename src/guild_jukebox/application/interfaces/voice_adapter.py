"""Port interfaces for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

from guild_jukebox.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.value_objects import StreamSource

# Invoked on the event loop once a player stops, with the error if it failed.
FinishedCallback = Callable[[Exception | None], None]


class AudioPlayer(ABC):
    """Handle to one stream being played on a voice connection."""

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def resume(self) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop the stream. The finished callback still fires."""
        ...


class VoiceConnection(ABC):
    """A live voice connection in one guild."""

    @property
    @abstractmethod
    def channel_id(self) -> DiscordSnowflake:
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    def play(self, source: "StreamSource", on_finished: FinishedCallback) -> AudioPlayer:
        """Start streaming ``source``.

        Raises:
            PlaybackError: The connection refused to play.
        """
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Disconnect and release the connection."""
        ...


class VoiceGateway(ABC):
    """Interface for opening voice connections."""

    @abstractmethod
    async def join(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> VoiceConnection:
        """Join (or move to) a voice channel.

        Raises:
            VoiceJoinError: The channel could not be joined.
        """
        ...
