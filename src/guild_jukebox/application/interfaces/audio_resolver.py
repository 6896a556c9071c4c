"""Port interface for resolving tracks and opening their audio streams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from guild_jukebox.domain.shared.types import HttpUrlStr, NonEmptyStr

if TYPE_CHECKING:
    from ...domain.music.entities import Track
    from ...domain.music.value_objects import StreamSource


class TrackResolver(ABC):
    """Interface for turning user queries into tracks and tracks into streams."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr) -> "Track":
        """Resolve a URL or free-text query to a track.

        Raises:
            TrackNotFoundError: Nothing matched the query.
            ResolutionError: The media service failed.
        """
        ...

    @abstractmethod
    async def open_stream(self, url: HttpUrlStr) -> "StreamSource":
        """Resolve the direct media stream for a track URL.

        Raises:
            StreamAcquisitionError: No stream could be obtained.
        """
        ...

    @abstractmethod
    def is_url(self, query: NonEmptyStr) -> bool:
        ...
