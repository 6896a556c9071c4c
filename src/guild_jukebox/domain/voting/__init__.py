"""
Voting Bounded Context

Domain logic for skip voting.
"""

from guild_jukebox.domain.voting.services import VotingDomainService
from guild_jukebox.domain.voting.value_objects import VoteResult

__all__ = [
    # Value Objects
    "VoteResult",
    # Services
    "VotingDomainService",
]
