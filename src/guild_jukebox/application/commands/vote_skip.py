"""
Vote Skip Command

Command and handler for requester skips and vote-based skipping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from guild_jukebox.domain.shared.types import DiscordSnowflake, NonNegativeInt, PositiveInt
from guild_jukebox.domain.voting.value_objects import VoteResult

if TYPE_CHECKING:
    from ..services.session_registry import GuildSessionRegistry


class VoteSkipCommand(BaseModel):
    """Command to skip (or vote to skip) the current track."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    user_id: DiscordSnowflake
    # Non-bot members of the bot's voice channel
    listener_ids: frozenset[int] = frozenset()


class VoteSkipResult(BaseModel):
    """Result of a vote skip command."""

    model_config = ConfigDict(frozen=True, strict=True)

    result: VoteResult
    message: str
    votes_current: NonNegativeInt = 0
    votes_needed: PositiveInt = 1
    action_executed: bool = False

    @property
    def is_success(self) -> bool:
        return self.result.is_success

    @classmethod
    def from_vote_result(
        cls,
        result: VoteResult,
        votes_current: int = 0,
        votes_needed: int = 1,
        track_title: str = "",
    ) -> VoteSkipResult:
        message = result.get_message(votes_current, votes_needed, track_title)
        return cls(
            result=result,
            message=message,
            votes_current=votes_current,
            votes_needed=votes_needed,
            action_executed=result.action_executed,
        )


class VoteSkipHandler:
    """Handler for VoteSkipCommand."""

    def __init__(self, *, registry: GuildSessionRegistry) -> None:
        self._registry = registry

    async def handle(self, command: VoteSkipCommand) -> VoteSkipResult:
        session = self._registry.get(command.guild_id)
        if session is None:
            return VoteSkipResult.from_vote_result(VoteResult.NO_PLAYING)

        outcome = await session.request_skip(command.user_id, command.listener_ids)
        return VoteSkipResult.from_vote_result(
            outcome.result,
            votes_current=outcome.votes,
            votes_needed=outcome.required,
            track_title=outcome.track.title if outcome.track else "",
        )
