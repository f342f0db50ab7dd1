"""Single-elimination bracket generation.

A bracket for N participants is laid out on the next power of two. Every
participant who would otherwise face an empty slot in the first round (a
bye) is placed straight into the second round instead, so no walkover
matches are ever produced:

    5 participants, 8-slot bracket
    - first round: 1 match (2 participants play)
    - byes: 3 participants start in the second round
    - second round: 2 matches, one of them waiting for the first-round winner
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Any, Optional

from bracketeer.core.constants import (
    FINAL_ROUND_NAME,
    QUARTER_FINAL_ROUND_NAME,
    SEMI_FINAL_ROUND_NAME,
)

from .models import Match, Participant, match_id_for
from .stats import compute_stats


def get_round_name(round_index: int, total_rounds: int) -> str:
    """Get the label of a round counted from the first round.

    Rounds before the quarter finals are named after the number of players
    entering them, not after ``2 ** (round_index + 1)``, which counts from
    the wrong end of the bracket.

    16 slots (4 rounds): Round of 16, Quarter Finals, Semi Finals, Final
    """
    rounds_from_final = total_rounds - 1 - round_index
    if rounds_from_final == 0:
        return FINAL_ROUND_NAME
    if rounds_from_final == 1:
        return SEMI_FINAL_ROUND_NAME
    if rounds_from_final == 2:
        return QUARTER_FINAL_ROUND_NAME
    return f"Round of {2 ** (total_rounds - round_index)}"


def shuffle_participants(
    participants: Sequence[Participant], rng: Optional[Any] = None
) -> list[Participant]:
    """Return a uniformly random permutation (Fisher-Yates) of the participants."""
    source = rng if rng is not None else random
    shuffled = list(participants)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(source.random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _build_skeleton(total_rounds: int) -> dict[str, Match]:
    """Create every match of a full bracket, linked towards the final."""
    matches: dict[str, Match] = {}
    for round_index in range(total_rounds):
        round_name = get_round_name(round_index, total_rounds)
        for position in range(2 ** (total_rounds - 1 - round_index)):
            next_match_id = None
            next_match_slot = 0
            if round_index < total_rounds - 1:
                next_match_id = match_id_for(round_index + 1, position // 2)
                next_match_slot = position % 2

            match_id = match_id_for(round_index, position)
            matches[match_id] = Match(
                id=match_id,
                round_index=round_index,
                round_name=round_name,
                next_match_id=next_match_id,
                next_match_slot=next_match_slot,
            )
    return matches


def _assign_players(
    matches: dict[str, Match],
    participants: list[Participant],
    bye_count: int,
    first_round_count: int,
) -> None:
    """Pair participants into the first round and seat bye players in round two."""
    playing_matches = (len(participants) - bye_count) // 2
    remaining = iter(participants)

    for position in range(playing_matches):
        match = matches[match_id_for(0, position)]
        match.players[0] = next(remaining)
        match.players[1] = next(remaining)

    for position in range(playing_matches, first_round_count):
        bye_player = next(remaining, None)
        if bye_player is None:
            break
        placeholder = matches[match_id_for(0, position)]
        if placeholder.next_match_id:
            next_match = matches[placeholder.next_match_id]
            next_match.players[placeholder.next_match_slot] = bye_player


def build_bracket(
    participants: Sequence[Participant], rng: Optional[Any] = None
) -> list[Match]:
    """Generate a complete single-elimination bracket.

    Args:
        participants: Enrolled participants, in any order.
        rng: Optional randomness source exposing ``random()``, such as a
            seeded ``random.Random``. Defaults to the module-level source.

    Returns:
        Every first-round match with two players plus every later-round
        match, ordered by round and position.

    Raises:
        InsufficientParticipantsError: If fewer than two participants are given.
    """
    stats = compute_stats(len(participants))
    shuffled = shuffle_participants(participants, rng)

    matches = _build_skeleton(stats.total_rounds)
    first_round_count = stats.bracket_size // 2
    _assign_players(matches, shuffled, stats.bye_count, first_round_count)

    bracket = [
        m for m in matches.values() if m.round_index > 0 or m.has_both_players
    ]
    logging.info(
        f"Built bracket for {len(participants)} participants: "
        f"{len(bracket)} matches, {stats.bye_count} byes"
    )
    return bracket
