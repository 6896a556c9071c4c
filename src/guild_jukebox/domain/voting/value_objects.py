"""
Voting Domain Value Objects

Immutable value objects for skip voting.
"""

from enum import Enum


class VoteResult(Enum):
    """Results of attempting to skip the current track.

    These results indicate what happened when a user asked to skip.
    """

    # Successful outcomes
    VOTE_RECORDED = "vote_recorded"  # Vote was counted
    THRESHOLD_MET = "threshold_met"  # Vote hit threshold, track skipped
    REQUESTER_SKIP = "requester_skip"  # Requester skipped their own track

    # Vote not counted outcomes
    ALREADY_VOTED = "already_voted"  # User already voted
    NO_PLAYING = "no_playing"  # Nothing is playing
    NOT_IN_CHANNEL = "not_in_channel"  # User not in the bot's voice channel

    @property
    def is_success(self) -> bool:
        """Check if this result indicates a successful outcome."""
        return self in {
            VoteResult.VOTE_RECORDED,
            VoteResult.THRESHOLD_MET,
            VoteResult.REQUESTER_SKIP,
        }

    @property
    def action_executed(self) -> bool:
        """Check if this result means the track was skipped."""
        return self in {VoteResult.THRESHOLD_MET, VoteResult.REQUESTER_SKIP}

    def get_message(self, votes: int = 0, needed: int = 0, track_title: str = "") -> str:
        """Get a user-friendly message for this result.

        Args:
            votes: Current vote count.
            needed: Votes needed for threshold.
            track_title: Title of the track the vote was about.

        Returns:
            User-friendly message string.
        """
        from guild_jukebox.domain.shared.messages import DiscordUIMessages

        messages = {
            VoteResult.VOTE_RECORDED: DiscordUIMessages.SKIP_VOTE_RECORDED.format(
                votes_current=votes, votes_needed=needed
            ),
            VoteResult.THRESHOLD_MET: DiscordUIMessages.SKIP_VOTE_PASSED.format(
                votes_current=votes, votes_needed=needed, track_title=track_title
            ),
            VoteResult.REQUESTER_SKIP: DiscordUIMessages.SKIP_REQUESTER.format(
                track_title=track_title
            ),
            VoteResult.ALREADY_VOTED: DiscordUIMessages.SKIP_ALREADY_VOTED.format(
                votes_current=votes, votes_needed=needed
            ),
            VoteResult.NO_PLAYING: DiscordUIMessages.STATE_NOTHING_PLAYING,
            VoteResult.NOT_IN_CHANNEL: DiscordUIMessages.STATE_NOT_IN_BOT_CHANNEL,
        }
        return messages.get(self, "Unknown vote result.")
