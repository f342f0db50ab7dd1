"""Bracket shape arithmetic for single-elimination tournaments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bracketeer.core.constants import MIN_PARTICIPANTS
from bracketeer.errors import InsufficientParticipantsError


@dataclass(frozen=True)
class TournamentStats:
    """Shape of the bracket needed for a given number of participants.

    ``total_matches`` counts the full theoretical bracket, walkover slots
    included, so it is larger than the number of matches ``build_bracket``
    returns whenever byes exist.
    """

    bracket_size: int
    bye_count: int
    first_round_matches: int
    total_rounds: int
    total_matches: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "bracketSize": self.bracket_size,
            "byeCount": self.bye_count,
            "firstRoundMatches": self.first_round_matches,
            "totalRounds": self.total_rounds,
            "totalMatches": self.total_matches,
        }


def calculate_bracket_size(participant_count: int) -> int:
    """Smallest power of two greater than or equal to the participant count."""
    if participant_count <= 1:
        return 1
    return 1 << (participant_count - 1).bit_length()


def compute_stats(participant_count: int) -> TournamentStats:
    """Compute the bracket shape for ``participant_count`` participants."""
    if participant_count < MIN_PARTICIPANTS:
        raise InsufficientParticipantsError()

    bracket_size = calculate_bracket_size(participant_count)
    bye_count = bracket_size - participant_count
    return TournamentStats(
        bracket_size=bracket_size,
        bye_count=bye_count,
        first_round_matches=(participant_count - bye_count) // 2,
        total_rounds=bracket_size.bit_length() - 1,
        total_matches=bracket_size - 1,
    )
