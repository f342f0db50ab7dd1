"""Data models for the tournament blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, TypedDict

from bracketeer.core.types import FirestoreDocument


class MatchStatus:
    """Match lifecycle values stored on match documents."""

    WAITING = "WAITING"
    READY = "READY"
    COMPLETED = "COMPLETED"


class TournamentStatus:
    """Tournament lifecycle values stored on tournament documents."""

    REGISTRATION = "registration"
    LOCKED = "locked"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Participant(TypedDict, total=False):
    """Represents an enrolled tournament participant."""

    id: str
    name: str
    score: int
    disqualified: bool


class TournamentConfig(TypedDict, total=False):
    """Tournament configuration."""

    maxParticipants: int


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    name: str
    date: Any
    status: str
    config: TournamentConfig
    event_winner: Optional[Participant]


def match_id_for(round_index: int, position: int) -> str:
    """Build the deterministic id of the match at a bracket position."""
    return f"match_r{round_index}_m{position}"


@dataclass
class Match:
    """A single bracket match.

    ``status`` is derived from ``players`` and ``winner_id`` and cannot be set
    directly, so it always agrees with the match's shape.
    """

    id: str
    round_index: int
    round_name: str
    players: list[Optional[Participant]] = field(default_factory=lambda: [None, None])
    next_match_id: Optional[str] = None
    next_match_slot: int = 0
    winner_id: Optional[str] = None

    @property
    def status(self) -> str:
        if self.winner_id:
            return MatchStatus.COMPLETED
        if self.has_both_players:
            return MatchStatus.READY
        return MatchStatus.WAITING

    @property
    def has_both_players(self) -> bool:
        return self.players[0] is not None and self.players[1] is not None

    @property
    def is_final(self) -> bool:
        return self.next_match_id is None

    @property
    def position(self) -> int:
        """Position of the match within its round, parsed from the id."""
        _, _, position = self.id.rpartition("_m")
        return int(position) if position.isdigit() else 0

    def player_ids(self) -> list[str]:
        return [p["id"] for p in self.players if p]

    def find_player(self, participant_id: str) -> Optional[Participant]:
        for player in self.players:
            if player and player.get("id") == participant_id:
                return player
        return None

    def copy(self) -> Match:
        """Return a copy whose player slots can be changed independently."""
        return Match(
            id=self.id,
            round_index=self.round_index,
            round_name=self.round_name,
            players=[dict(p) if p else None for p in self.players],  # type: ignore[misc]
            next_match_id=self.next_match_id,
            next_match_slot=self.next_match_slot,
            winner_id=self.winner_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the Firestore match document shape."""
        return {
            "id": self.id,
            "roundIndex": self.round_index,
            "roundName": self.round_name,
            "nextMatchId": self.next_match_id,
            "nextMatchSlot": self.next_match_slot,
            "winnerId": self.winner_id,
            "status": self.status,
            "players": [dict(p) if p else None for p in self.players],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], match_id: Optional[str] = None) -> Match:
        """Build a match from a Firestore document, normalizing player slots."""
        raw_players = data.get("players") or []
        players: list[Optional[Participant]] = [None, None]
        for slot in range(2):
            if slot < len(raw_players) and raw_players[slot]:
                players[slot] = dict(raw_players[slot])  # type: ignore[assignment]

        return cls(
            id=match_id or data["id"],
            round_index=int(data.get("roundIndex", 0)),
            round_name=data.get("roundName", ""),
            players=players,
            next_match_id=data.get("nextMatchId"),
            next_match_slot=int(data.get("nextMatchSlot") or 0),
            winner_id=data.get("winnerId"),
        )


def sort_matches(matches: list[Match]) -> list[Match]:
    """Order matches by round, then by position within the round."""
    return sorted(matches, key=lambda m: (m.round_index, m.position))
