"""Guild playback session - the per-guild playback state machine.

A session owns one :class:`GuildPlaybackState` plus the live resources behind
it: the voice connection, the active audio player and the idle timer. Every
public operation and every inbound pipeline event runs under one
``asyncio.Lock``, so at most one playback attempt is ever in flight.

Pipeline callbacks (player finished, idle timer fired) never touch state
directly. They are turned into :class:`SessionEvent` messages, posted to the
session inbox and consumed by a worker task that takes the same lock.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from ...domain.music.entities import GuildPlaybackState, Track
from ...domain.music.events import IdleTimeoutElapsed, PlaybackFinished, SessionEvent
from ...domain.music.value_objects import (
    LoopMode,
    PlaybackState,
    SessionDestroyReason,
    SkipReason,
)
from ...domain.shared.exceptions import (
    InvalidOperationError,
    PlaybackError,
    StreamAcquisitionError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.shared.types import DiscordSnowflake, NonNegativeInt, PositiveInt
from ...domain.voting.services import VotingDomainService
from ...domain.voting.value_objects import VoteResult

if TYPE_CHECKING:
    from ...config.settings import PlaybackSettings
    from ...domain.music.value_objects import StreamSource
    from ..interfaces.audio_resolver import TrackResolver
    from ..interfaces.voice_adapter import AudioPlayer, VoiceConnection, VoiceGateway

logger = logging.getLogger(__name__)

TrackStartedListener = Callable[[int, Track], Awaitable[None]]


class EnqueueResult(BaseModel):
    """Outcome of adding a track to a session."""

    model_config = ConfigDict(frozen=True)

    track: Track
    position: NonNegativeInt
    started: bool = False
    playable: bool = True
    now_playing: Track | None = None


class SkipResult(BaseModel):
    """Outcome of a skip request."""

    model_config = ConfigDict(frozen=True)

    result: VoteResult
    votes: NonNegativeInt = 0
    required: PositiveInt = 1
    track: Track | None = None

    @property
    def skipped(self) -> bool:
        return self.result.action_executed

    @property
    def message(self) -> str:
        title = self.track.title if self.track else ""
        return self.result.get_message(self.votes, self.required, title)


class GuildPlaybackSession:
    """Playback state machine for a single guild."""

    def __init__(
        self,
        guild_id: DiscordSnowflake,
        *,
        resolver: TrackResolver,
        voice_gateway: VoiceGateway,
        settings: PlaybackSettings,
        on_destroyed: Callable[[int], None] | None = None,
    ) -> None:
        self.guild_id = guild_id
        self._resolver = resolver
        self._voice_gateway = voice_gateway
        self._settings = settings
        self._on_destroyed = on_destroyed

        self._state = GuildPlaybackState(guild_id=guild_id, max_queue_size=settings.max_queue_size)
        self._status = PlaybackState.IDLE

        self._connection: VoiceConnection | None = None
        self._player: AudioPlayer | None = None
        # Bumped whenever a player is started or abandoned; finish events carry it.
        self._generation = 0
        self._skip_requested = False

        self._idle_handle: asyncio.TimerHandle | None = None
        self._idle_token = 0

        self._lock = asyncio.Lock()
        self._events: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

        self._track_started_listener: TrackStartedListener | None = None
        self._background: set[asyncio.Task[None]] = set()

    # --- Read-only views ---

    @property
    def status(self) -> PlaybackState:
        return self._status

    @property
    def is_destroyed(self) -> bool:
        return self._status is PlaybackState.DESTROYED

    @property
    def loop_mode(self) -> LoopMode:
        return self._state.loop_mode

    @property
    def queue(self) -> tuple[Track, ...]:
        return tuple(self._state.queue)

    @property
    def now_playing(self) -> Track | None:
        return self._state.now_playing if self._status.is_active else None

    @property
    def current_requester_id(self) -> int | None:
        return self._state.current_requester_id

    @property
    def vote_count(self) -> int:
        return self._state.vote_count

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and self._connection.is_connected

    @property
    def channel_id(self) -> int | None:
        return self._connection.channel_id if self._connection is not None else None

    @property
    def has_idle_timer(self) -> bool:
        return self._idle_handle is not None

    def set_track_started_listener(self, listener: TrackStartedListener | None) -> None:
        self._track_started_listener = listener

    # --- Commands ---

    async def enqueue(
        self,
        track: Track,
        requester_id: DiscordSnowflake,
        channel_id: DiscordSnowflake,
    ) -> EnqueueResult:
        """Queue ``track`` for ``requester_id``, joining ``channel_id`` if needed.

        Raises:
            VoiceJoinError: The voice channel could not be joined. The track
                is removed again and the session stays idle.
            BusinessRuleViolationError: The queue is full.
            InvalidOperationError: The session has been destroyed.
        """
        async with self._lock:
            self._ensure_alive("enqueue")

            queued = track.with_requester(requester_id)
            position = self._state.enqueue(queued)
            logger.info(LogTemplates.QUEUE_ENQUEUED, queued.title, position, self.guild_id)

            if self._status.is_active:
                return EnqueueResult(
                    track=queued, position=int(position), now_playing=self._state.now_playing
                )

            if not self.is_connected:
                await self._connect(queued, channel_id)

            # The command reply already announces the queued track if it starts.
            await self._advance(quiet=queued)

            playable = any(t is queued for t in self._state.queue)
            started = self._status.is_active and self._state.now_playing is queued
            return EnqueueResult(
                track=queued,
                position=int(position),
                started=started,
                playable=playable,
                now_playing=self.now_playing,
            )

    async def request_skip(self, user_id: DiscordSnowflake, listener_ids: Iterable[int]) -> SkipResult:
        """Skip the current track for its requester, otherwise count a vote.

        ``listener_ids`` are the non-bot members of the bot's voice channel.
        """
        async with self._lock:
            track = self._state.now_playing
            listeners = frozenset(listener_ids)
            required = VotingDomainService.calculate_threshold(len(listeners))

            if self._player is None or track is None or not self._status.is_active:
                return SkipResult(result=VoteResult.NO_PLAYING, required=required)

            if VotingDomainService.can_skip_directly(user_id, track, self._state.current_requester_id):
                self._skip_current(track, SkipReason.REQUESTER)
                return SkipResult(result=VoteResult.REQUESTER_SKIP, required=required, track=track)

            if user_id not in listeners:
                return SkipResult(
                    result=VoteResult.NOT_IN_CHANNEL,
                    votes=self._state.vote_count,
                    required=required,
                    track=track,
                )

            dropped = self._state.reconcile_votes(listeners)
            if dropped:
                logger.debug(LogTemplates.VOTES_RECONCILED, dropped, self.guild_id)

            recorded = self._state.add_vote(user_id)
            votes = self._state.vote_count
            logger.info(LogTemplates.VOTE_RECORDED, user_id, self.guild_id, votes, required)

            if VotingDomainService.threshold_met(votes, len(listeners)):
                self._skip_current(track, SkipReason.VOTE)
                return SkipResult(
                    result=VoteResult.THRESHOLD_MET, votes=votes, required=required, track=track
                )

            result = VoteResult.VOTE_RECORDED if recorded else VoteResult.ALREADY_VOTED
            return SkipResult(result=result, votes=votes, required=required, track=track)

    async def set_pause(self, paused: bool) -> bool:
        """Pause or resume the active player. Returns False when nothing changed."""
        async with self._lock:
            player = self._player
            if player is None:
                return False

            if paused and self._status is PlaybackState.PLAYING:
                player.pause()
                self._transition(PlaybackState.PAUSED)
                logger.info(LogTemplates.PLAYBACK_PAUSED, self.guild_id)
                return True

            if not paused and self._status is PlaybackState.PAUSED:
                player.resume()
                self._transition(PlaybackState.PLAYING)
                logger.info(LogTemplates.PLAYBACK_RESUMED, self.guild_id)
                return True

            return False

    async def set_loop_mode(self, mode: LoopMode) -> bool:
        """Set the loop mode. Returns False when ``mode`` was already active."""
        async with self._lock:
            self._ensure_alive("set loop mode")
            changed = self._state.set_loop_mode(mode)
            if changed:
                logger.info(LogTemplates.LOOP_MODE_CHANGED, mode.value, self.guild_id)
            return changed

    async def destroy(self, reason: SessionDestroyReason) -> None:
        """Release every resource and unregister. Safe to call more than once."""
        async with self._lock:
            await self._teardown(reason)

    # --- Event inbox ---

    def post(self, event: SessionEvent) -> None:
        """Queue an event for the session worker. Dropped once destroyed."""
        if self.is_destroyed:
            return
        self._events.put_nowait(event)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(
                self._run_events(), name=f"guild-session-{self.guild_id}"
            )

    async def drain(self) -> None:
        """Wait until every posted event has been processed."""
        await self._events.join()

    async def _run_events(self) -> None:
        while True:
            event = await self._events.get()
            try:
                async with self._lock:
                    if not self.is_destroyed:
                        await self._handle_event(event)
            except Exception:
                logger.exception(LogTemplates.SESSION_EVENT_FAILED, type(event).__name__, self.guild_id)
            finally:
                self._events.task_done()

            if self.is_destroyed:
                self._discard_pending()
                return

    async def _handle_event(self, event: SessionEvent) -> None:
        match event:
            case PlaybackFinished():
                await self._on_playback_finished(event)
            case IdleTimeoutElapsed():
                await self._on_idle_timeout(event)

    def _discard_pending(self) -> None:
        while not self._events.empty():
            self._events.get_nowait()
            self._events.task_done()

    # --- Idle timer ---

    def arm_idle_timer(self) -> None:
        """(Re)start the inactivity countdown."""
        self._cancel_idle_timer()
        if self.is_destroyed:
            return

        self._idle_token += 1
        event = IdleTimeoutElapsed(token=self._idle_token)
        self._idle_handle = asyncio.get_running_loop().call_later(
            self._settings.idle_timeout_seconds, self.post, event
        )
        logger.debug(LogTemplates.IDLE_TIMER_ARMED, self.guild_id, self._settings.idle_timeout_ms)

    def _cancel_idle_timer(self) -> None:
        if self._idle_handle is None:
            return
        self._idle_handle.cancel()
        self._idle_handle = None
        # Invalidates a timeout that already fired but is still in the inbox.
        self._idle_token += 1
        logger.debug(LogTemplates.IDLE_TIMER_CANCELLED, self.guild_id)

    async def _on_idle_timeout(self, event: IdleTimeoutElapsed) -> None:
        if event.token != self._idle_token:
            logger.debug(LogTemplates.IDLE_TIMER_STALE, self.guild_id)
            return

        self._idle_handle = None
        if self._state.has_tracks or self._status.is_active:
            return

        logger.info(LogTemplates.IDLE_TIMER_FIRED, self.guild_id)
        await self._teardown(SessionDestroyReason.INACTIVITY)

    # --- Playback pipeline (lock held) ---

    async def _connect(self, queued: Track, channel_id: int) -> None:
        self._transition(PlaybackState.CONNECTING)
        self._connection = None
        joined = False
        try:
            self._connection = await self._voice_gateway.join(self.guild_id, channel_id)
            joined = True
        finally:
            if not joined:
                logger.warning(LogTemplates.VOICE_JOIN_FAILED, self.guild_id, channel_id)
                self._state.discard(queued)
                self._transition(PlaybackState.IDLE)
                self.arm_idle_timer()

    async def _advance(self, quiet: Track | None = None) -> None:
        """Start the track at the head of the queue, discarding unplayable ones.

        Every started track is announced unless it is ``quiet``.
        """
        refilled = False
        while True:
            if not self._state.has_tracks:
                if self._state.can_refill and not refilled:
                    count = self._state.refill_from_snapshot()
                    refilled = True
                    logger.info(LogTemplates.QUEUE_REFILLED, count, self.guild_id)
                    continue

                if refilled:
                    # A whole snapshot pass failed; refilling again would spin.
                    logger.error(LogTemplates.QUEUE_REFILL_ABANDONED, self.guild_id)
                else:
                    logger.info(LogTemplates.QUEUE_EXHAUSTED, self.guild_id)
                self._go_idle()
                return

            self._cancel_idle_timer()
            track = self._state.begin_current()
            assert track is not None

            try:
                source = await self._resolver.open_stream(track.url)
                player = self._start_player(source)
            except (StreamAcquisitionError, PlaybackError) as exc:
                logger.warning(LogTemplates.TRACK_DISCARDED, track.title, self.guild_id, exc)
                self._state.drop_current()
                continue

            self._player = player
            self._transition(PlaybackState.PLAYING)
            logger.info(LogTemplates.PLAYBACK_STARTED, track.title, self.guild_id)
            if track is not quiet:
                self._announce(track)
            return

    def _start_player(self, source: StreamSource) -> AudioPlayer:
        connection = self._connection
        if connection is None or not connection.is_connected:
            raise PlaybackError(ErrorMessages.PLAYBACK_REFUSED.format(error="not connected"), self.guild_id)

        self._generation += 1
        generation = self._generation

        def on_finished(error: Exception | None) -> None:
            self.post(PlaybackFinished(generation=generation, error=str(error) if error else None))

        return connection.play(source, on_finished)

    async def _on_playback_finished(self, event: PlaybackFinished) -> None:
        if event.generation != self._generation or self._player is None:
            logger.debug(
                LogTemplates.PLAYBACK_STALE_EVENT, event.generation, self._generation, self.guild_id
            )
            return

        self._player = None
        skipped, self._skip_requested = self._skip_requested, False
        logger.debug(LogTemplates.TRACK_ENDED, self.guild_id, event.error)

        if event.failed:
            logger.error(LogTemplates.PLAYBACK_ERROR, self.guild_id, event.error)
            self._state.drop_current()
        elif self._state.loop_mode is LoopMode.SINGLE and not skipped:
            current = self._state.now_playing
            logger.info(LogTemplates.TRACK_REPLAYING, current.title if current else None, self.guild_id)
        else:
            self._state.drop_current()

        await self._advance()

    def _skip_current(self, track: Track, reason: SkipReason) -> None:
        assert self._player is not None
        self._skip_requested = True
        logger.info(LogTemplates.TRACK_SKIPPED, track.title, self.guild_id, reason.value)
        # The player's finished callback posts the event that advances the queue.
        self._player.stop()

    def _go_idle(self) -> None:
        self._release_player()
        self._state.clear_current()
        if self._status is not PlaybackState.IDLE:
            self._transition(PlaybackState.IDLE)
        self.arm_idle_timer()

    def _release_player(self) -> None:
        player, self._player = self._player, None
        if player is None:
            return
        self._generation += 1
        self._skip_requested = False
        try:
            player.stop()
        except Exception:
            logger.exception(LogTemplates.PLAYBACK_STOP_FAILED, self.guild_id)

    def _announce(self, track: Track) -> None:
        listener = self._track_started_listener
        if listener is None:
            return
        task = asyncio.get_running_loop().create_task(listener(self.guild_id, track))
        self._background.add(task)
        task.add_done_callback(self._on_announce_done)

    def _on_announce_done(self, task: asyncio.Task[None]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                LogTemplates.TRACK_ANNOUNCE_FAILED, self.guild_id, exc_info=task.exception()
            )

    # --- Teardown ---

    async def _teardown(self, reason: SessionDestroyReason) -> None:
        if self.is_destroyed:
            return

        self._cancel_idle_timer()
        # Unregister before disconnecting: the voice-state event our own
        # disconnect produces must not find this session any more.
        self._unregister()
        connection, self._connection = self._connection, None
        try:
            self._release_player()
            if connection is not None:
                try:
                    await connection.destroy()
                except Exception:
                    logger.exception(LogTemplates.VOICE_DISCONNECT_FAILED, self.guild_id)
        finally:
            self._state.reset()
            self._transition(PlaybackState.DESTROYED)
            self._stop_worker()
            logger.info(LogTemplates.SESSION_DESTROYED, self.guild_id, reason.value)

    def _unregister(self) -> None:
        on_destroyed, self._on_destroyed = self._on_destroyed, None
        if on_destroyed is not None:
            on_destroyed(self.guild_id)

    def _stop_worker(self) -> None:
        worker, self._worker = self._worker, None
        if worker is not None and worker is not asyncio.current_task():
            worker.cancel()
        self._discard_pending()

    # --- State machine ---

    def _transition(self, target: PlaybackState) -> None:
        if not self._status.can_transition_to(target):
            raise InvalidOperationError(
                operation=f"transition to {target.value}",
                current_state=self._status.value,
                message=f"Cannot transition from {self._status.value} to {target.value}",
            )
        self._status = target

    def _ensure_alive(self, operation: str) -> None:
        if self.is_destroyed:
            raise InvalidOperationError(
                operation=operation,
                current_state=self._status.value,
                message=ErrorMessages.SESSION_DESTROYED.format(guild_id=self.guild_id),
            )
