"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, request, session

from bracketeer.core.constants import SLOT_SCORE_KEYS
from bracketeer.errors import ValidationError

from . import bp
from .services import TournamentService


def _json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def _parse_scores(data: dict[str, Any]) -> dict[str, int] | None:
    scores = {}
    for key in SLOT_SCORE_KEYS:
        value = data.get(key)
        if value is None:
            continue
        try:
            scores[key] = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{key} must be a number.") from None
        if scores[key] < 0:
            raise ValidationError("Scores cannot be negative.")
    return scores or None


@bp.route("/", methods=["GET"])
def list_tournaments() -> Any:
    """List all tournaments."""
    return jsonify(TournamentService.list_tournaments())


@bp.route("/", methods=["POST"])
def create_tournament() -> Any:
    """Create a tournament open for registration."""
    data = _json_body()
    tournament_id = TournamentService.create_tournament(data, session.get("user_id"))
    return jsonify({"id": tournament_id}), 201


@bp.route("/<string:tournament_id>", methods=["GET"])
def view_tournament(tournament_id: str) -> Any:
    """Show a single tournament."""
    return jsonify(TournamentService.get_tournament(tournament_id))


@bp.route("/<string:tournament_id>", methods=["PATCH"])
def update_tournament(tournament_id: str) -> Any:
    """Update name, date or capacity."""
    data = _json_body()
    TournamentService.update_tournament(tournament_id, data, session.get("user_id"))
    return jsonify(TournamentService.get_tournament(tournament_id))


@bp.route("/<string:tournament_id>", methods=["DELETE"])
def delete_tournament(tournament_id: str) -> Any:
    """Delete a tournament with its matches and participants."""
    TournamentService.delete_tournament(tournament_id, session.get("user_id"))
    return "", 204


@bp.route("/<string:tournament_id>/participants", methods=["GET"])
def list_participants(tournament_id: str) -> Any:
    """List enrolled participants."""
    return jsonify(TournamentService.get_participants(tournament_id))


@bp.route("/<string:tournament_id>/participants", methods=["POST"])
def add_participant(tournament_id: str) -> Any:
    """Enroll a participant by name."""
    data = _json_body()
    participant_id = TournamentService.add_participant(tournament_id, data.get("name", ""))
    return jsonify({"id": participant_id}), 201


@bp.route(
    "/<string:tournament_id>/participants/<string:participant_id>", methods=["DELETE"]
)
def remove_participant(tournament_id: str, participant_id: str) -> Any:
    """Withdraw a participant."""
    TournamentService.remove_participant(tournament_id, participant_id)
    return "", 204


@bp.route("/<string:tournament_id>/stats", methods=["GET"])
def tournament_stats(tournament_id: str) -> Any:
    """Preview the bracket shape for the current enrollment."""
    return jsonify(TournamentService.preview_stats(tournament_id).to_dict())


@bp.route("/<string:tournament_id>/start", methods=["POST"])
def start_tournament(tournament_id: str) -> Any:
    """Generate the bracket and start the tournament."""
    result = TournamentService.generate_bracket(tournament_id, session.get("user_id"))
    return jsonify(result), 201


@bp.route("/<string:tournament_id>/matches", methods=["GET"])
def list_matches(tournament_id: str) -> Any:
    """List bracket matches ordered by round."""
    matches = TournamentService.get_matches(tournament_id)
    return jsonify([m.to_dict() for m in matches])


@bp.route(
    "/<string:tournament_id>/matches/<string:match_id>/result", methods=["POST"]
)
def record_result(tournament_id: str, match_id: str) -> Any:
    """Record the winner of a match."""
    data = _json_body()
    winner_id = data.get("winnerId")
    if not winner_id:
        raise ValidationError("winnerId is required.")

    update = TournamentService.record_result(
        tournament_id,
        match_id,
        winner_id,
        user_uid=session.get("user_id"),
        scores=_parse_scores(data),
        disqualified_participant_id=data.get("disqualifiedId") or None,
    )
    current_app.logger.info(f"Result recorded for {match_id} in {tournament_id}")
    return jsonify({
        "match": update.match.to_dict(),
        "nextMatch": update.next_match.to_dict() if update.next_match else None,
        "champion": update.champion,
    })


@bp.route("/<string:tournament_id>/reset", methods=["POST"])
def reset_tournament(tournament_id: str) -> Any:
    """Delete the bracket and reopen registration."""
    deleted = TournamentService.reset_tournament(tournament_id, session.get("user_id"))
    return jsonify({"deletedMatches": deleted})
