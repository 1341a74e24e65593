"""Tests for TournamentService."""

from __future__ import annotations

import random
import unittest

from mockfirestore import MockFirestore

from guildhall.errors import (
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guildhall.tournament.services import TournamentService
from tests.mock_utils import patch_mockfirestore

patch_mockfirestore()

LEADER = "leader1"


class TournamentServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestore()
        self.db.collection("guild").document("settings").set(
            {"name": "GalaxyCat", "leaders": {LEADER: True}, "members": {}}
        )
        for i in range(1, 5):
            self.db.collection("users").document(f"u{i}").set(
                {"characters": {f"c{i}": {"name": f"Hero{i}", "class": "Mage"}}}
            )
        self.tournament_id = TournamentService.create_tournament(
            "Arena Cup", LEADER, description="Weekly", max_participants=4, db=self.db
        )

    def _join_all(self, count=4):
        for i in range(1, count + 1):
            TournamentService.join_tournament(
                self.tournament_id, f"u{i}", f"c{i}", db=self.db
            )

    def test_create_requires_leader(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            TournamentService.create_tournament("Cup", "u1", db=self.db)
        with self.assertRaises(ValidationError):
            TournamentService.create_tournament(" ", LEADER, db=self.db)
        tournament = TournamentService.get_tournament(self.tournament_id, db=self.db)
        self.assertEqual(tournament["status"], "pending")
        self.assertEqual(tournament["participants"], [])

    def test_join_and_leave(self) -> None:
        participant = TournamentService.join_tournament(
            self.tournament_id, "u1", "c1", db=self.db
        )
        self.assertEqual(
            participant,
            {"uid": "u1", "characterId": "c1", "characterName": "Hero1", "class": "Mage"},
        )
        with self.assertRaises(DuplicateResourceError):
            TournamentService.join_tournament(self.tournament_id, "u1", "c1", db=self.db)
        with self.assertRaises(ValidationError):
            TournamentService.join_tournament(self.tournament_id, "u2", "c1", db=self.db)

        TournamentService.leave_tournament(self.tournament_id, "u1", db=self.db)
        self.assertEqual(
            TournamentService.get_tournament(self.tournament_id, db=self.db)[
                "participants"
            ],
            [],
        )
        with self.assertRaises(NotFoundError):
            TournamentService.leave_tournament(self.tournament_id, "u1", db=self.db)

    def test_capacity(self) -> None:
        self._join_all()
        self.db.collection("users").document("u5").set(
            {"characters": {"c5": {"name": "Hero5"}}}
        )
        with self.assertRaises(ValidationError):
            TournamentService.join_tournament(self.tournament_id, "u5", "c5", db=self.db)

    def test_generate_bracket(self) -> None:
        self._join_all()
        with self.assertRaises(PermissionDeniedError):
            TournamentService.generate_bracket(
                self.tournament_id, "single", "u1", db=self.db
            )
        with self.assertRaises(ValidationError):
            TournamentService.generate_bracket(
                self.tournament_id, "swiss", LEADER, db=self.db
            )

        tournament = TournamentService.generate_bracket(
            self.tournament_id, "double", LEADER, db=self.db, rng=random.Random(1)
        )
        self.assertEqual(tournament["status"], "active")
        self.assertEqual(len(tournament["matches"]), 6)

        stored = TournamentService.get_tournament(self.tournament_id, db=self.db)
        self.assertEqual(stored["bracketType"], "double")
        self.assertEqual(stored["currentRound"], 1)
        with self.assertRaises(ValidationError):
            TournamentService.join_tournament(self.tournament_id, "u1", "c1", db=self.db)
        with self.assertRaises(ValidationError):
            TournamentService.generate_bracket(
                self.tournament_id, "single", LEADER, db=self.db
            )

    def test_bracket_needs_two_players(self) -> None:
        self._join_all(count=1)
        with self.assertRaises(ValidationError):
            TournamentService.generate_bracket(
                self.tournament_id, "single", LEADER, db=self.db
            )

    def test_play_to_the_end(self) -> None:
        self._join_all()
        TournamentService.generate_bracket(
            self.tournament_id, "single", LEADER, db=self.db
        )

        TournamentService.record_winner(
            self.tournament_id, "match-1-1", "player1", LEADER, db=self.db
        )
        tournament = TournamentService.record_winner(
            self.tournament_id, "match-1-2", "player2", LEADER, db=self.db
        )
        self.assertEqual(tournament["currentRound"], 2)
        final = next(m for m in tournament["matches"] if m["id"] == "match-2-1")

        tournament = TournamentService.record_winner(
            self.tournament_id, "match-2-1", "player2", LEADER, db=self.db
        )
        self.assertEqual(tournament["status"], "ended")
        self.assertEqual(tournament["champion"]["uid"], final["player2"]["uid"])

        stored = TournamentService.get_tournament(self.tournament_id, db=self.db)
        self.assertEqual(stored["status"], "ended")
        with self.assertRaises(ValidationError):
            TournamentService.record_winner(
                self.tournament_id, "match-2-1", "player1", LEADER, db=self.db
            )

    def test_record_winner_validation(self) -> None:
        self._join_all(count=3)
        TournamentService.generate_bracket(
            self.tournament_id, "single", LEADER, db=self.db
        )
        with self.assertRaises(ValidationError):
            TournamentService.record_winner(
                self.tournament_id, "match-1-1", "player3", LEADER, db=self.db
            )
        with self.assertRaises(NotFoundError):
            TournamentService.record_winner(
                self.tournament_id, "match-7-7", "player1", LEADER, db=self.db
            )
        # Three players: the first match holds a bye in player1
        with self.assertRaises(ValidationError):
            TournamentService.record_winner(
                self.tournament_id, "match-1-1", "player1", LEADER, db=self.db
            )
        with self.assertRaises(PermissionDeniedError):
            TournamentService.record_winner(
                self.tournament_id, "match-1-1", "player2", "u1", db=self.db
            )

    def test_final_waits_for_both_semi_finals(self) -> None:
        self._join_all()
        TournamentService.generate_bracket(
            self.tournament_id, "single", LEADER, db=self.db
        )
        TournamentService.record_winner(
            self.tournament_id, "match-1-1", "player1", LEADER, db=self.db
        )
        with self.assertRaises(ValidationError):
            TournamentService.record_winner(
                self.tournament_id, "match-2-1", "player1", LEADER, db=self.db
            )
        tournament = TournamentService.get_tournament(self.tournament_id, db=self.db)
        self.assertEqual(tournament["status"], "active")
        self.assertNotIn("champion", tournament)

    def test_list_by_status(self) -> None:
        other_id = TournamentService.create_tournament("Side Cup", LEADER, db=self.db)
        self._join_all()
        TournamentService.generate_bracket(
            self.tournament_id, "single", LEADER, db=self.db
        )
        active = TournamentService.list_tournaments(status="active", db=self.db)
        self.assertEqual([t["id"] for t in active], [self.tournament_id])
        pending = TournamentService.list_tournaments(status="pending", db=self.db)
        self.assertEqual([t["id"] for t in pending], [other_id])
        self.assertEqual(len(TournamentService.list_tournaments(db=self.db)), 2)
        with self.assertRaises(ValidationError):
            TournamentService.list_tournaments(status="paused", db=self.db)

    def test_reset_and_delete(self) -> None:
        self._join_all()
        TournamentService.generate_bracket(
            self.tournament_id, "single", LEADER, db=self.db
        )
        TournamentService.reset_bracket(self.tournament_id, LEADER, db=self.db)
        tournament = TournamentService.get_tournament(self.tournament_id, db=self.db)
        self.assertEqual(tournament["status"], "pending")
        self.assertEqual(tournament["matches"], [])
        self.assertEqual(len(tournament["participants"]), 4)

        TournamentService.delete_tournament(self.tournament_id, LEADER, db=self.db)
        with self.assertRaises(NotFoundError):
            TournamentService.get_tournament(self.tournament_id, db=self.db)
        self.assertEqual(TournamentService.list_tournaments(db=self.db), [])


if __name__ == "__main__":
    unittest.main()
