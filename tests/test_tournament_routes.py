"""Tests for the tournament blueprint using mockfirestore."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from bracketeer import create_app
from tests.conftest import make_firestore_module, make_mock_db, seed_tournament

MOCK_USER_ID = "organizer"


class TournamentRoutesTestCase(unittest.TestCase):
    """Test case for the tournament JSON endpoints."""

    def setUp(self) -> None:
        """Set up a test client backed by an in-memory Firestore."""
        self.mock_db = make_mock_db()
        self.mock_firestore_module = make_firestore_module(self.mock_db)

        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "firestore_services": patch(
                "bracketeer.tournament.services.firestore",
                new=self.mock_firestore_module,
            ),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.app = create_app({"TESTING": True})
        self.client = self.app.test_client()
        with self.client.session_transaction() as sess:
            sess["user_id"] = MOCK_USER_ID

    def _tournament(self) -> dict:
        return self.mock_db.collection("tournaments").document("t1").get().to_dict()

    def test_enrollment_endpoints(self) -> None:
        """Test enrolling, listing and withdrawing participants."""
        seed_tournament(self.mock_db)

        response = self.client.post("/tournaments/t1/participants", json={"name": "Alice"})
        self.assertEqual(response.status_code, 201)
        participant_id = response.get_json()["id"]

        response = self.client.get("/tournaments/t1/participants")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), [{"id": participant_id, "name": "Alice"}])

        response = self.client.delete(f"/tournaments/t1/participants/{participant_id}")
        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get("/tournaments/t1/participants").get_json(), [])

    def test_short_name_is_rejected(self) -> None:
        seed_tournament(self.mock_db)
        response = self.client.post("/tournaments/t1/participants", json={"name": "Al"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("at least 3", response.get_json()["error"])

    def test_non_json_body_is_rejected(self) -> None:
        seed_tournament(self.mock_db)
        response = self.client.post("/tournaments/t1/participants", data="Alice")
        self.assertEqual(response.status_code, 400)

    def test_stats(self) -> None:
        seed_tournament(self.mock_db, participant_count=13)
        response = self.client.get("/tournaments/t1/stats")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.get_json(),
            {
                "bracketSize": 16,
                "totalRounds": 4,
                "byeCount": 3,
                "firstRoundMatches": 5,
                "totalMatches": 15,
            },
        )

    def test_stats_need_two_participants(self) -> None:
        seed_tournament(self.mock_db, participant_count=1)
        response = self.client.get("/tournaments/t1/stats")
        self.assertEqual(response.status_code, 400)

    def test_unknown_tournament(self) -> None:
        response = self.client.get("/tournaments/nope/stats")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json(), {"error": "Tournament not found."})

    def test_unknown_route(self) -> None:
        response = self.client.get("/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json(), {"error": "Not found."})

    def test_start_and_play_through(self) -> None:
        """Test starting a two player tournament and reporting the final."""
        seed_tournament(self.mock_db, participant_count=2)

        response = self.client.post("/tournaments/t1/start")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json(), {"matchCount": 1, "tournamentId": "t1"})
        self.assertEqual(self._tournament()["status"], "in_progress")
        self.assertEqual(self._tournament()["updatedBy"], MOCK_USER_ID)

        matches = self.client.get("/tournaments/t1/matches").get_json()
        self.assertEqual(len(matches), 1)
        final = matches[0]
        self.assertEqual(final["status"], "READY")
        self.assertEqual(final["roundName"], "Final")

        winner_id = final["players"][0]["id"]
        response = self.client.post(
            f"/tournaments/t1/matches/{final['id']}/result",
            json={"winnerId": winner_id, "player1Score": 11, "player2Score": "9"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["match"]["status"], "COMPLETED")
        self.assertEqual(body["match"]["players"][1]["score"], 9)
        self.assertIsNone(body["nextMatch"])
        self.assertEqual(body["champion"]["id"], winner_id)

        tournament = self._tournament()
        self.assertEqual(tournament["status"], "finished")
        self.assertEqual(tournament["event_winner"]["id"], winner_id)

    def test_second_start_is_a_conflict(self) -> None:
        seed_tournament(self.mock_db, participant_count=3)
        self.assertEqual(self.client.post("/tournaments/t1/start").status_code, 201)
        response = self.client.post("/tournaments/t1/start")
        self.assertEqual(response.status_code, 409)

    def test_result_errors(self) -> None:
        """Test the status codes of rejected results."""
        seed_tournament(self.mock_db, participant_count=4)
        self.client.post("/tournaments/t1/start")
        semi = self.client.get("/tournaments/t1/matches").get_json()[0]
        url = f"/tournaments/t1/matches/{semi['id']}/result"

        response = self.client.post(url, json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"error": "winnerId is required."})

        response = self.client.post(
            url, json={"winnerId": semi["players"][0]["id"], "player1Score": -1}
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(url, json={"winnerId": "stranger"})
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            "/tournaments/t1/matches/match_r5_m0/result", json={"winnerId": "x"}
        )
        self.assertEqual(response.status_code, 404)

        response = self.client.post(
            "/tournaments/t1/matches/match_r1_m0/result", json={"winnerId": "x"}
        )
        self.assertEqual(response.status_code, 409)

        winner_id = semi["players"][0]["id"]
        response = self.client.post(url, json={"winnerId": winner_id})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["nextMatch"]["id"], "match_r1_m0")

        response = self.client.post(url, json={"winnerId": winner_id})
        self.assertEqual(response.status_code, 409)

    def test_disqualification(self) -> None:
        seed_tournament(self.mock_db, participant_count=2)
        self.client.post("/tournaments/t1/start")
        final = self.client.get("/tournaments/t1/matches").get_json()[0]
        first, second = (p["id"] for p in final["players"])

        response = self.client.post(
            f"/tournaments/t1/matches/{final['id']}/result",
            json={"winnerId": first, "disqualifiedId": second},
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()["match"]["players"][1]["disqualified"])

    def test_reset(self) -> None:
        """Test that a reset clears matches and reopens registration."""
        seed_tournament(self.mock_db, participant_count=4)
        self.client.post("/tournaments/t1/start")

        response = self.client.post("/tournaments/t1/reset")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"deletedMatches": 3})
        self.assertEqual(self.client.get("/tournaments/t1/matches").get_json(), [])
        self.assertEqual(self._tournament()["status"], "registration")

    def test_tournament_crud(self) -> None:
        """Test creating, listing, editing and deleting a tournament."""
        response = self.client.post(
            "/tournaments/",
            json={"name": "Spring Open", "date": "2025-06-01", "maxParticipants": 8},
        )
        self.assertEqual(response.status_code, 201)
        tournament_id = response.get_json()["id"]

        response = self.client.get("/tournaments/")
        self.assertEqual(response.status_code, 200)
        listed = response.get_json()
        self.assertEqual([t["id"] for t in listed], [tournament_id])
        self.assertEqual(listed[0]["status"], "registration")
        self.assertEqual(listed[0]["createdBy"], MOCK_USER_ID)

        response = self.client.patch(
            f"/tournaments/{tournament_id}", json={"name": "Spring Classic"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["name"], "Spring Classic")
        self.assertEqual(response.get_json()["config"], {"maxParticipants": 8})

        self.client.post(f"/tournaments/{tournament_id}/participants", json={"name": "Alice"})
        response = self.client.delete(f"/tournaments/{tournament_id}")
        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get(f"/tournaments/{tournament_id}").status_code, 404)
        self.assertEqual(self.client.get("/tournaments/").get_json(), [])

    def test_create_tournament_rejects_bad_input(self) -> None:
        response = self.client.post(
            "/tournaments/", json={"name": "Sp", "date": "2025-06-01", "maxParticipants": 8}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("between 3 and 100", response.get_json()["error"])

        response = self.client.post(
            "/tournaments/", json={"name": "Spring Open", "date": "2025-06-01", "maxParticipants": 0}
        )
        self.assertEqual(response.status_code, 400)

    def test_edit_unknown_tournament(self) -> None:
        response = self.client.patch("/tournaments/nope", json={"name": "Spring Open"})
        self.assertEqual(response.status_code, 404)
        response = self.client.delete("/tournaments/nope")
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
