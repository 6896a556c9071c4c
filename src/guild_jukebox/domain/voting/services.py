"""
Voting Domain Services

Domain services containing skip voting rules.
"""

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..music.entities import Track


class VotingDomainService:
    """Domain service for skip-vote business rules."""

    MINIMUM_THRESHOLD = 1

    @classmethod
    def calculate_threshold(cls, listener_count: int) -> int:
        """Calculate the vote threshold based on listener count.

        Half of the listeners, rounded up, must vote. Minimum threshold is 1.

        Args:
            listener_count: Number of non-bot members in the bot's voice channel.

        Returns:
            The number of votes required to skip.
        """
        if listener_count <= 0:
            return cls.MINIMUM_THRESHOLD
        return max(cls.MINIMUM_THRESHOLD, math.ceil(listener_count / 2))

    @classmethod
    def can_skip_directly(cls, user_id: int, track: "Track | None", requester_id: int | None) -> bool:
        """The requester of the current track may skip it without a vote."""
        if track is None or requester_id is None:
            return False
        return requester_id == user_id

    @classmethod
    def threshold_met(cls, votes: int, listener_count: int) -> bool:
        return votes >= cls.calculate_threshold(listener_count)
