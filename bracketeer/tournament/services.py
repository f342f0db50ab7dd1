"""Service layer for tournament business logic."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from bracketeer.core.constants import (
    FIRESTORE_BATCH_LIMIT,
    MATCHES_COLLECTION,
    MAX_TOURNAMENT_NAME_LENGTH,
    MIN_MAX_PARTICIPANTS,
    MIN_PARTICIPANT_NAME_LENGTH,
    MIN_TOURNAMENT_NAME_LENGTH,
    PARTICIPANTS_COLLECTION,
    TOURNAMENT_FIELDS,
    TOURNAMENTS_COLLECTION,
)
from bracketeer.errors import (
    InconsistentStateError,
    MatchNotFoundError,
    NotFoundError,
    TournamentStateError,
    ValidationError,
)

from .bracket import build_bracket
from .models import Match, Participant, TournamentStatus, sort_matches
from .results import BracketUpdate, apply_result, reset_bracket
from .stats import TournamentStats, compute_stats

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


class TournamentService:
    """Handles bracket orchestration and data access for tournaments."""

    @staticmethod
    def _tournament_ref(db: Client, tournament_id: str) -> DocumentReference:
        return db.collection(TOURNAMENTS_COLLECTION).document(tournament_id)

    @staticmethod
    def _get_tournament(db: Client, tournament_id: str) -> dict[str, Any]:
        """Fetch a tournament document or raise NotFoundError."""
        doc = cast(Any, TournamentService._tournament_ref(db, tournament_id).get())
        if not doc.exists:
            raise NotFoundError("Tournament not found.")
        data = cast(dict[str, Any], doc.to_dict() or {})
        data["id"] = doc.id
        return data

    @staticmethod
    def _require_status(tournament: dict[str, Any], *allowed: str) -> None:
        status = tournament.get("status", TournamentStatus.REGISTRATION)
        if status not in allowed:
            raise TournamentStateError(
                f"Tournament is {status}; expected {' or '.join(allowed)}."
            )

    @staticmethod
    def _set_status(
        db: Client, tournament_id: str, status: str, user_uid: str | None, **extra: Any
    ) -> None:
        TournamentService._tournament_ref(db, tournament_id).update({
            "status": status,
            "updatedAt": firestore.SERVER_TIMESTAMP,
            "updatedBy": user_uid,
            **extra,
        })

    @staticmethod
    def _serialize_tournament(doc: Any) -> dict[str, Any] | None:
        """Public fields of a tournament snapshot, dates as ISO strings."""
        data = doc.to_dict()
        if not data:
            return None
        tournament: dict[str, Any] = {"id": doc.id}
        for key in TOURNAMENT_FIELDS:
            value = data.get(key)
            if hasattr(value, "isoformat"):
                value = value.isoformat()
            tournament[key] = value
        return tournament

    @staticmethod
    def _validate_tournament_data(
        data: dict[str, Any], partial: bool = False
    ) -> dict[str, Any]:
        """Check name, date and capacity, returning the fields to store.

        With ``partial`` only the fields present in ``data`` are checked.
        """
        cleaned: dict[str, Any] = {}

        if "name" in data or not partial:
            name = data.get("name")
            name = name.strip() if isinstance(name, str) else ""
            if not MIN_TOURNAMENT_NAME_LENGTH <= len(name) <= MAX_TOURNAMENT_NAME_LENGTH:
                raise ValidationError(
                    f"Name must be between {MIN_TOURNAMENT_NAME_LENGTH} and "
                    f"{MAX_TOURNAMENT_NAME_LENGTH} characters."
                )
            cleaned["name"] = name

        if "date" in data or not partial:
            try:
                day = datetime.date.fromisoformat(str(data.get("date")))
            except ValueError:
                raise ValidationError("Date must be in YYYY-MM-DD format.") from None
            cleaned["date"] = datetime.datetime.combine(
                day, datetime.time.min, tzinfo=datetime.timezone.utc
            )

        if "maxParticipants" in data or not partial:
            max_participants = data.get("maxParticipants")
            if (
                not isinstance(max_participants, int)
                or isinstance(max_participants, bool)
                or max_participants < MIN_MAX_PARTICIPANTS
            ):
                raise ValidationError(
                    f"maxParticipants must be a whole number of at least "
                    f"{MIN_MAX_PARTICIPANTS}."
                )
            cleaned["maxParticipants"] = max_participants

        return cleaned

    @staticmethod
    def list_tournaments(db: Client | None = None) -> list[dict[str, Any]]:
        """Fetch all tournaments, ordered by date."""
        if db is None:
            db = firestore.client()
        results = []
        for doc in db.collection(TOURNAMENTS_COLLECTION).stream():
            tournament = TournamentService._serialize_tournament(doc)
            if tournament:
                results.append(tournament)
        results.sort(key=lambda t: (t.get("date") or "", t.get("name") or ""))
        return results

    @staticmethod
    def get_tournament(tournament_id: str, db: Client | None = None) -> dict[str, Any]:
        """Fetch a single tournament."""
        if db is None:
            db = firestore.client()
        doc = TournamentService._tournament_ref(db, tournament_id).get()
        tournament = TournamentService._serialize_tournament(doc)
        if tournament is None:
            raise NotFoundError("Tournament not found.")
        return tournament

    @staticmethod
    def create_tournament(
        data: dict[str, Any], user_uid: str | None = None, db: Client | None = None
    ) -> str:
        """Create a tournament open for registration and return its ID."""
        if db is None:
            db = firestore.client()
        cleaned = TournamentService._validate_tournament_data(data)

        tournament_payload = {
            "name": cleaned["name"],
            "date": cleaned["date"],
            "status": TournamentStatus.REGISTRATION,
            "config": {"maxParticipants": cleaned["maxParticipants"]},
            "createdAt": firestore.SERVER_TIMESTAMP,
            "createdBy": user_uid,
            "updatedAt": None,
            "updatedBy": None,
        }
        _, ref = db.collection(TOURNAMENTS_COLLECTION).add(tournament_payload)
        logging.info(f"Tournament {ref.id} created by {user_uid}")
        return str(ref.id)

    @staticmethod
    def update_tournament(
        tournament_id: str,
        update_data: dict[str, Any],
        user_uid: str | None = None,
        db: Client | None = None,
    ) -> None:
        """Update name, date or capacity of a tournament."""
        if db is None:
            db = firestore.client()
        tournament = TournamentService._get_tournament(db, tournament_id)
        cleaned = TournamentService._validate_tournament_data(update_data, partial=True)
        if not cleaned:
            raise ValidationError("Nothing to update.")

        payload: dict[str, Any] = {
            k: v for k, v in cleaned.items() if k != "maxParticipants"
        }
        if "maxParticipants" in cleaned:
            enrolled = TournamentService.get_participants(tournament_id, db=db)
            if cleaned["maxParticipants"] < len(enrolled):
                raise ValidationError(
                    f"{len(enrolled)} participants are already enrolled."
                )
            payload["config"] = {
                **(tournament.get("config") or {}),
                "maxParticipants": cleaned["maxParticipants"],
            }

        payload["updatedAt"] = firestore.SERVER_TIMESTAMP
        payload["updatedBy"] = user_uid
        TournamentService._tournament_ref(db, tournament_id).update(payload)

    @staticmethod
    def delete_tournament(
        tournament_id: str, user_uid: str | None = None, db: Client | None = None
    ) -> None:
        """Delete a tournament with all of its matches and participants."""
        if db is None:
            db = firestore.client()
        TournamentService._get_tournament(db, tournament_id)
        tournament_ref = TournamentService._tournament_ref(db, tournament_id)

        docs = list(tournament_ref.collection(MATCHES_COLLECTION).stream())
        docs += list(tournament_ref.collection(PARTICIPANTS_COLLECTION).stream())
        TournamentService._delete_in_batches(db, docs)
        tournament_ref.delete()
        logging.warning(
            f"Tournament {tournament_id} deleted by {user_uid} "
            f"with {len(docs)} related documents"
        )

    @staticmethod
    def get_participants(
        tournament_id: str, db: Client | None = None
    ) -> list[Participant]:
        """Fetch the enrolled participants of a tournament."""
        if db is None:
            db = firestore.client()
        docs = (
            TournamentService._tournament_ref(db, tournament_id)
            .collection(PARTICIPANTS_COLLECTION)
            .stream()
        )
        participants: list[Participant] = []
        for doc in docs:
            data = doc.to_dict() or {}
            participants.append({"id": doc.id, "name": data.get("name", "")})
        return participants

    @staticmethod
    def add_participant(
        tournament_id: str, name: str, db: Client | None = None
    ) -> str:
        """Enroll a participant and return its ID."""
        if db is None:
            db = firestore.client()
        tournament = TournamentService._get_tournament(db, tournament_id)
        TournamentService._require_status(tournament, TournamentStatus.REGISTRATION)

        name = (name or "").strip()
        if len(name) < MIN_PARTICIPANT_NAME_LENGTH:
            raise ValidationError(
                f"Name must be at least {MIN_PARTICIPANT_NAME_LENGTH} characters."
            )

        max_participants = (tournament.get("config") or {}).get("maxParticipants")
        if max_participants:
            enrolled = TournamentService.get_participants(tournament_id, db=db)
            if len(enrolled) >= max_participants:
                raise ValidationError("Tournament is full.")

        _, ref = (
            TournamentService._tournament_ref(db, tournament_id)
            .collection(PARTICIPANTS_COLLECTION)
            .add({"name": name})
        )
        return str(ref.id)

    @staticmethod
    def remove_participant(
        tournament_id: str, participant_id: str, db: Client | None = None
    ) -> None:
        """Withdraw a participant while registration is open."""
        if db is None:
            db = firestore.client()
        tournament = TournamentService._get_tournament(db, tournament_id)
        TournamentService._require_status(tournament, TournamentStatus.REGISTRATION)
        (
            TournamentService._tournament_ref(db, tournament_id)
            .collection(PARTICIPANTS_COLLECTION)
            .document(participant_id)
            .delete()
        )

    @staticmethod
    def get_matches(tournament_id: str, db: Client | None = None) -> list[Match]:
        """Fetch all bracket matches of a tournament, ordered by round."""
        if db is None:
            db = firestore.client()
        docs = (
            TournamentService._tournament_ref(db, tournament_id)
            .collection(MATCHES_COLLECTION)
            .stream()
        )
        matches = [Match.from_dict(doc.to_dict() or {}, match_id=doc.id) for doc in docs]
        return sort_matches(matches)

    @staticmethod
    def preview_stats(tournament_id: str, db: Client | None = None) -> TournamentStats:
        """Bracket shape for the current enrollment, without generating anything."""
        if db is None:
            db = firestore.client()
        TournamentService._get_tournament(db, tournament_id)
        participants = TournamentService.get_participants(tournament_id, db=db)
        return compute_stats(len(participants))

    @staticmethod
    def _save_matches_in_batches(
        db: Client, tournament_id: str, matches: list[Match], user_uid: str | None
    ) -> None:
        """Write matches in sequential batches within the Firestore operation limit."""
        matches_ref = TournamentService._tournament_ref(db, tournament_id).collection(
            MATCHES_COLLECTION
        )
        for start in range(0, len(matches), FIRESTORE_BATCH_LIMIT):
            batch = db.batch()
            for match in matches[start : start + FIRESTORE_BATCH_LIMIT]:
                batch.set(
                    matches_ref.document(match.id),
                    {
                        **match.to_dict(),
                        "createdAt": firestore.SERVER_TIMESTAMP,
                        "createdBy": user_uid,
                        "updatedAt": None,
                        "updatedBy": None,
                    },
                )
            batch.commit()

    @staticmethod
    def _delete_in_batches(db: Client, docs: list[Any]) -> None:
        for start in range(0, len(docs), FIRESTORE_BATCH_LIMIT):
            batch = db.batch()
            for doc in docs[start : start + FIRESTORE_BATCH_LIMIT]:
                batch.delete(doc.reference)
            batch.commit()

    @staticmethod
    def _delete_matches_in_batches(db: Client, tournament_id: str) -> int:
        docs = list(
            TournamentService._tournament_ref(db, tournament_id)
            .collection(MATCHES_COLLECTION)
            .stream()
        )
        TournamentService._delete_in_batches(db, docs)
        return len(docs)

    @staticmethod
    def generate_bracket(
        tournament_id: str,
        user_uid: str | None = None,
        db: Client | None = None,
        rng: Any = None,
    ) -> dict[str, Any]:
        """Close registration, build the bracket and store every match.

        The tournament is only marked in_progress once all batches are
        written. On failure the matches already written are deleted, the
        status goes back to registration and the error is re-raised.
        Matches left over from an earlier failed start are deleted before
        the new bracket is written.
        """
        if db is None:
            db = firestore.client()
        tournament = TournamentService._get_tournament(db, tournament_id)
        TournamentService._require_status(tournament, TournamentStatus.REGISTRATION)

        participants = TournamentService.get_participants(tournament_id, db=db)
        matches = build_bracket(participants, rng=rng)

        TournamentService._set_status(db, tournament_id, TournamentStatus.LOCKED, user_uid)
        try:
            stale = TournamentService._delete_matches_in_batches(db, tournament_id)
            if stale:
                logging.warning(
                    f"Deleted {stale} leftover matches of {tournament_id} before start"
                )
            TournamentService._save_matches_in_batches(db, tournament_id, matches, user_uid)
            TournamentService._set_status(
                db, tournament_id, TournamentStatus.IN_PROGRESS, user_uid
            )
        except Exception as e:
            logging.warning(
                f"Bracket generation failed for {tournament_id}, rolling back: {e}"
            )
            try:
                TournamentService._delete_matches_in_batches(db, tournament_id)
            finally:
                TournamentService._set_status(
                    db, tournament_id, TournamentStatus.REGISTRATION, user_uid
                )
            raise

        logging.info(
            f"Tournament {tournament_id} started with {len(participants)} "
            f"participants and {len(matches)} matches"
        )
        return {"matchCount": len(matches), "tournamentId": tournament_id}

    @staticmethod
    def _record_result_transaction(  # noqa: PLR0913
        transaction: Transaction,
        tournament_ref: DocumentReference,
        matches_ref: Any,
        match_id: str,
        winner_id: str,
        user_uid: str | None,
        scores: dict[str, Any] | None,
        disqualified_participant_id: str | None,
    ) -> BracketUpdate:
        """Read the reported match and its successor, apply the result, write both."""
        match_ref = matches_ref.document(match_id)
        match_snap = match_ref.get(transaction=transaction)
        if not match_snap.exists:
            raise MatchNotFoundError(f"Match {match_id} not found.")
        match = Match.from_dict(match_snap.to_dict() or {}, match_id=match_snap.id)

        bracket = [match]
        if match.next_match_id:
            next_snap = matches_ref.document(match.next_match_id).get(
                transaction=transaction
            )
            if not next_snap.exists:
                raise InconsistentStateError(
                    f"Next match {match.next_match_id} not found."
                )
            bracket.append(Match.from_dict(next_snap.to_dict() or {}, match_id=next_snap.id))

        update = apply_result(
            bracket,
            match_id,
            winner_id,
            scores=scores,
            disqualified_participant_id=disqualified_participant_id,
        )

        for changed in update.changed_matches():
            data = changed.to_dict()
            transaction.update(
                matches_ref.document(changed.id),
                {
                    "players": data["players"],
                    "winnerId": data["winnerId"],
                    "status": data["status"],
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                    "updatedBy": user_uid,
                },
            )

        if update.champion is not None:
            transaction.update(
                tournament_ref,
                {
                    "status": TournamentStatus.FINISHED,
                    "event_winner": update.champion,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                    "updatedBy": user_uid,
                },
            )
        return update

    @staticmethod
    def record_result(  # noqa: PLR0913
        tournament_id: str,
        match_id: str,
        winner_id: str,
        user_uid: str | None = None,
        scores: dict[str, Any] | None = None,
        disqualified_participant_id: str | None = None,
        db: Client | None = None,
    ) -> BracketUpdate:
        """Record a match result and advance the winner in one transaction."""
        if db is None:
            db = firestore.client()
        tournament = TournamentService._get_tournament(db, tournament_id)
        TournamentService._require_status(tournament, TournamentStatus.IN_PROGRESS)

        tournament_ref = TournamentService._tournament_ref(db, tournament_id)
        matches_ref = tournament_ref.collection(MATCHES_COLLECTION)
        record_in_transaction = firestore.transactional(
            TournamentService._record_result_transaction
        )
        update = record_in_transaction(
            db.transaction(),
            tournament_ref,
            matches_ref,
            match_id,
            winner_id,
            user_uid,
            scores,
            disqualified_participant_id,
        )

        logging.info(f"Match {match_id} in {tournament_id} won by {winner_id}")
        if update.is_complete:
            logging.info(f"Tournament {tournament_id} finished, champion {winner_id}")
        return cast("BracketUpdate", update)

    @staticmethod
    def reset_tournament(
        tournament_id: str, user_uid: str | None = None, db: Client | None = None
    ) -> int:
        """Delete every match and reopen registration. Returns the deleted count."""
        if db is None:
            db = firestore.client()
        TournamentService._get_tournament(db, tournament_id)
        participants = TournamentService.get_participants(tournament_id, db=db)
        reset_bracket(len(participants))

        deleted = TournamentService._delete_matches_in_batches(db, tournament_id)
        TournamentService._set_status(
            db,
            tournament_id,
            TournamentStatus.REGISTRATION,
            user_uid,
            event_winner=None,
        )
        logging.warning(f"Tournament {tournament_id} reset, {deleted} matches deleted")
        return deleted
