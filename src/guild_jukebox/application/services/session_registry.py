"""Registry of live guild playback sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.music.value_objects import SessionDestroyReason
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from .guild_session import GuildPlaybackSession, TrackStartedListener

if TYPE_CHECKING:
    from ...config.settings import PlaybackSettings
    from ..interfaces.audio_resolver import TrackResolver
    from ..interfaces.voice_adapter import VoiceGateway

logger = logging.getLogger(__name__)


class GuildSessionRegistry:
    """Maps guild ids to their playback session.

    A session stays registered while it holds a voice connection or a pending
    idle timer. Sessions unregister themselves through :meth:`remove` when
    they are torn down.
    """

    def __init__(
        self,
        *,
        resolver: TrackResolver,
        voice_gateway: VoiceGateway,
        settings: PlaybackSettings,
    ) -> None:
        self._resolver = resolver
        self._voice_gateway = voice_gateway
        self._settings = settings
        self._sessions: dict[DiscordSnowflake, GuildPlaybackSession] = {}
        self._track_started_listener: TrackStartedListener | None = None

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, guild_id: DiscordSnowflake) -> GuildPlaybackSession | None:
        return self._sessions.get(guild_id)

    def get_or_create(self, guild_id: DiscordSnowflake) -> GuildPlaybackSession:
        """Return the guild's session, creating an idle one with its idle timer armed."""
        session = self._sessions.get(guild_id)
        if session is not None and not session.is_destroyed:
            return session

        session = GuildPlaybackSession(
            guild_id,
            resolver=self._resolver,
            voice_gateway=self._voice_gateway,
            settings=self._settings,
            on_destroyed=self.remove,
        )
        session.set_track_started_listener(self._track_started_listener)
        self._sessions[guild_id] = session
        session.arm_idle_timer()
        logger.info(LogTemplates.SESSION_CREATED, guild_id)
        return session

    def remove(self, guild_id: DiscordSnowflake) -> None:
        if self._sessions.pop(guild_id, None) is not None:
            logger.debug(LogTemplates.SESSION_REMOVED, guild_id)

    def set_track_started_listener(self, listener: TrackStartedListener | None) -> None:
        """Install the now-playing callback on current and future sessions."""
        self._track_started_listener = listener
        for session in self._sessions.values():
            session.set_track_started_listener(listener)

    async def shutdown(self) -> int:
        """Destroy every session (process teardown) and return how many there were."""
        sessions = list(self._sessions.values())
        for session in sessions:
            await session.destroy(SessionDestroyReason.SHUTDOWN)
        self._sessions.clear()
        logger.info(LogTemplates.SESSIONS_SHUTDOWN, len(sessions))
        return len(sessions)
