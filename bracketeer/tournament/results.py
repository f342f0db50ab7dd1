"""Applying reported match results to a bracket."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Optional

from bracketeer.core.constants import MIN_PARTICIPANTS, SLOT_SCORE_KEYS
from bracketeer.errors import (
    InconsistentStateError,
    InsufficientParticipantsError,
    InvalidWinnerError,
    MatchNotFoundError,
    MatchNotReadyError,
)

from .models import Match, MatchStatus, Participant

MATCH_ONLY_FIELDS = ("score", "disqualified")


@dataclass
class BracketUpdate:
    """Outcome of applying one result to a bracket."""

    matches: list[Match]
    match: Match
    next_match: Optional[Match] = None
    champion: Optional[Participant] = None

    @property
    def is_complete(self) -> bool:
        return self.champion is not None

    def changed_matches(self) -> list[Match]:
        """Matches whose stored documents must be rewritten."""
        return [m for m in (self.match, self.next_match) if m is not None]


def _apply_scores(match: Match, scores: Optional[Mapping[str, Optional[int]]]) -> None:
    if not scores:
        return
    for slot, key in enumerate(SLOT_SCORE_KEYS):
        value = scores.get(key)
        player = match.players[slot]
        if value is not None and player is not None:
            player["score"] = value


def _mark_disqualified(match: Match, participant_id: str, winner_id: str) -> None:
    if participant_id == winner_id:
        raise InvalidWinnerError("A disqualified participant cannot be the winner.")
    player = match.find_player(participant_id)
    if player is None:
        raise InvalidWinnerError("Disqualified participant not found in match players.")
    player["disqualified"] = True


def _entrant(player: Participant) -> Participant:
    """Copy of a player without the fields that only describe one match."""
    return {k: v for k, v in player.items() if k not in MATCH_ONLY_FIELDS}  # type: ignore[return-value]


def _advance_winner(match: Match, next_match: Match, winner: Participant) -> None:
    if next_match.status == MatchStatus.COMPLETED:
        raise InconsistentStateError(
            f"Next match {next_match.id} is already completed."
        )
    slot = match.next_match_slot
    occupant = next_match.players[slot]
    if occupant is not None and occupant.get("id") != winner.get("id"):
        raise InconsistentStateError(
            f"Slot {slot} of match {next_match.id} is already taken."
        )
    next_match.players[slot] = _entrant(winner)


def apply_result(
    bracket: Sequence[Match],
    match_id: str,
    winner_id: str,
    scores: Optional[Mapping[str, Optional[int]]] = None,
    disqualified_participant_id: Optional[str] = None,
) -> BracketUpdate:
    """Record the result of one match and advance the winner.

    The input bracket is left untouched; the returned update holds copies of
    every match, with the reported match completed and its winner written
    into the receiving slot of the next match.

    Raises:
        MatchNotFoundError: ``match_id`` is not in the bracket.
        MatchNotReadyError: The match does not have two players yet.
        InvalidWinnerError: ``winner_id`` is not one of the match's players,
            or the disqualification names the winner or an outsider.
        InconsistentStateError: The match or the match it feeds into is
            already completed, or the next match is missing.
    """
    matches = [m.copy() for m in bracket]
    by_id = {m.id: m for m in matches}

    match = by_id.get(match_id)
    if match is None:
        raise MatchNotFoundError(f"Match {match_id} not found.")
    if not match.has_both_players:
        raise MatchNotReadyError()
    winner = match.find_player(winner_id)
    if winner is None:
        raise InvalidWinnerError()
    if match.status == MatchStatus.COMPLETED:
        raise InconsistentStateError(f"Match {match_id} already has a result.")

    _apply_scores(match, scores)
    if disqualified_participant_id:
        _mark_disqualified(match, disqualified_participant_id, winner_id)
    match.winner_id = winner_id

    if match.is_final:
        logging.info(f"Final {match_id} won by {winner_id}")
        return BracketUpdate(matches=matches, match=match, champion=_entrant(winner))

    next_match = by_id.get(match.next_match_id or "")
    if next_match is None:
        raise InconsistentStateError(f"Next match {match.next_match_id} not found.")
    _advance_winner(match, next_match, winner)
    return BracketUpdate(matches=matches, match=match, next_match=next_match)


def reset_bracket(participant_count: int) -> list[Match]:
    """Discard the whole match set.

    A bracket can only be rebuilt for at least two participants, so the
    reset is refused below that.
    """
    if participant_count < MIN_PARTICIPANTS:
        raise InsufficientParticipantsError()
    return []
