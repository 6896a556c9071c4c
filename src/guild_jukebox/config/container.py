"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the resolver, voice gateway, session registry
and command/query handlers. Components are created on-demand and cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.play_track import PlayTrackHandler
    from ..application.commands.vote_skip import VoteSkipHandler
    from ..application.interfaces.audio_resolver import TrackResolver
    from ..application.interfaces.voice_adapter import VoiceGateway
    from ..application.queries.get_queue import GetQueueHandler
    from ..application.services.session_registry import GuildSessionRegistry
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    This container manages all application dependencies and their lifecycle.
    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Infrastructure adapters
    _audio_resolver: TrackResolver | None = None
    _voice_gateway: VoiceGateway | None = None

    # Application services
    _session_registry: GuildSessionRegistry | None = None

    # Command handlers
    _play_track_handler: PlayTrackHandler | None = None
    _vote_skip_handler: VoteSkipHandler | None = None

    # Query handlers
    _get_queue_handler: GetQueueHandler | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Infrastructure Adapters ===

    @property
    def audio_resolver(self) -> TrackResolver:
        """Get the track resolver."""
        if self._audio_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._audio_resolver = YtDlpResolver(self.settings.audio)
        return self._audio_resolver

    @property
    def voice_gateway(self) -> VoiceGateway:
        """Get the voice gateway."""
        if self._voice_gateway is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceGateway

            self._voice_gateway = DiscordVoiceGateway(
                self.bot, self.settings.audio, self.settings.playback
            )
        return self._voice_gateway

    # === Application Services ===

    @property
    def session_registry(self) -> GuildSessionRegistry:
        """Get the guild session registry."""
        if self._session_registry is None:
            from ..application.services.session_registry import GuildSessionRegistry

            self._session_registry = GuildSessionRegistry(
                resolver=self.audio_resolver,
                voice_gateway=self.voice_gateway,
                settings=self.settings.playback,
            )
        return self._session_registry

    # === Command Handlers ===

    @property
    def play_track_handler(self) -> PlayTrackHandler:
        """Get the play track command handler."""
        if self._play_track_handler is None:
            from ..application.commands.play_track import PlayTrackHandler

            self._play_track_handler = PlayTrackHandler(
                audio_resolver=self.audio_resolver,
                registry=self.session_registry,
            )
        return self._play_track_handler

    @property
    def vote_skip_handler(self) -> VoteSkipHandler:
        """Get the vote skip command handler."""
        if self._vote_skip_handler is None:
            from ..application.commands.vote_skip import VoteSkipHandler

            self._vote_skip_handler = VoteSkipHandler(registry=self.session_registry)
        return self._vote_skip_handler

    # === Query Handlers ===

    @property
    def get_queue_handler(self) -> GetQueueHandler:
        """Get the get queue query handler."""
        if self._get_queue_handler is None:
            from ..application.queries.get_queue import GetQueueHandler

            self._get_queue_handler = GetQueueHandler(registry=self.session_registry)
        return self._get_queue_handler

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Build the session registry up front so the bot never races its creation."""
        _ = self.session_registry

    async def shutdown(self) -> int:
        """Destroy every live session and drop cached instances.

        Returns the number of sessions that were still registered.
        """
        closed = 0
        if self._session_registry is not None:
            try:
                closed = await self._session_registry.shutdown()
            except Exception as exc:
                logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, exc)

        self._play_track_handler = None
        self._vote_skip_handler = None
        self._get_queue_handler = None
        self._session_registry = None
        return closed


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
