"""Tests for the tournament blueprint using mockfirestore."""

from __future__ import annotations

from tests.helpers import LEADER_ID, MEMBER_ID, FirebaseTestCase


class TournamentRoutesFirebaseTestCase(FirebaseTestCase):
    """Test case for the tournament blueprint."""

    def setUp(self) -> None:
        super().setUp()
        for i in range(2, 5):
            self.create_user(
                f"u{i}", f"Player{i}", characters={f"c{i}": {"name": f"Hero{i}"}}
            )

    def _create(self) -> str:
        self.login(LEADER_ID)
        response = self.client.post(
            "/tournaments/",
            json={"name": "Arena Cup", "description": "Weekly", "max_participants": 8},
        )
        self.assertEqual(response.status_code, 201)
        return response.get_json()["data"]["id"]

    def _join(self, tournament_id: str, uid: str, character_id: str) -> None:
        self.login(uid)
        response = self.client.post(
            f"/tournaments/{tournament_id}/join", json={"character_id": character_id}
        )
        self.assertEqual(response.status_code, 201, response.get_json())

    def test_create_requires_leader(self) -> None:
        self.login(MEMBER_ID)
        response = self.client.post("/tournaments/", json={"name": "Arena Cup"})
        self.assertEqual(response.status_code, 403)

    def test_create_validates_form(self) -> None:
        self.login(LEADER_ID)
        response = self.client.post("/tournaments/", json={"name": ""})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["status"], "error")

    def test_full_single_elimination(self) -> None:
        tournament_id = self._create()
        self._join(tournament_id, MEMBER_ID, "char1")
        for i in range(2, 5):
            self._join(tournament_id, f"u{i}", f"c{i}")

        self.login(LEADER_ID)
        response = self.client.post(
            f"/tournaments/{tournament_id}/bracket", json={"bracket_type": "single"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.get_json()["data"]["matches"]), 3)

        for match_id in ("match-1-1", "match-1-2", "match-2-1"):
            response = self.client.post(
                f"/tournaments/{tournament_id}/winner",
                json={"match_id": match_id, "winner": "player1"},
            )
            self.assertEqual(response.status_code, 200, response.get_json())

        data = response.get_json()["data"]
        self.assertEqual(data["status"], "ended")
        self.assertIsNotNone(data["champion"])

        response = self.client.get(f"/tournaments/{tournament_id}")
        body = response.get_json()
        self.assertEqual(body["progress"]["status"], "completed")
        self.assertEqual(body["progress"]["champion"], data["champion"])
        self.assertTrue(body["isGuildLeader"])

    def test_join_with_someone_elses_character(self) -> None:
        tournament_id = self._create()
        self.login(MEMBER_ID)
        response = self.client.post(
            f"/tournaments/{tournament_id}/join", json={"character_id": "c2"}
        )
        self.assertEqual(response.status_code, 400)

    def test_leave_and_list(self) -> None:
        tournament_id = self._create()
        self._join(tournament_id, MEMBER_ID, "char1")
        response = self.client.post(f"/tournaments/{tournament_id}/leave")
        self.assertEqual(response.status_code, 200)

        response = self.client.get("/tournaments/")
        tournaments = response.get_json()
        self.assertEqual([t["id"] for t in tournaments], [tournament_id])
        self.assertEqual(tournaments[0]["participants"], [])

        pending = self.client.get("/tournaments/?status=pending").get_json()
        self.assertEqual([t["id"] for t in pending], [tournament_id])
        self.assertEqual(self.client.get("/tournaments/?status=ended").get_json(), [])
        self.assertEqual(self.client.get("/tournaments/?status=lost").status_code, 400)

    def test_reset_and_delete(self) -> None:
        tournament_id = self._create()
        self._join(tournament_id, MEMBER_ID, "char1")
        self._join(tournament_id, "u2", "c2")

        self.login(LEADER_ID)
        self.client.post(
            f"/tournaments/{tournament_id}/bracket", json={"bracket_type": "double"}
        )
        response = self.client.delete(f"/tournaments/{tournament_id}/bracket")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            self.client.get(f"/tournaments/{tournament_id}").get_json()["status"],
            "pending",
        )

        response = self.client.delete(f"/tournaments/{tournament_id}")
        self.assertEqual(response.status_code, 200)
        response = self.client.get(f"/tournaments/{tournament_id}")
        self.assertEqual(response.status_code, 404)

    def test_unknown_tournament(self) -> None:
        self.login(MEMBER_ID)
        response = self.client.get("/tournaments/missing")
        self.assertEqual(response.status_code, 404)
