"""Tests for PartyService."""

from __future__ import annotations

import unittest

from mockfirestore import MockFirestore

from guildhall.errors import (
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guildhall.party.models import max_members_for_nest
from guildhall.party.services import PartyService
from tests.mock_utils import patch_mockfirestore

patch_mockfirestore()

LEADER = "u1"
NEST = "Cerberus Hell"


class PartyServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestore()
        for i in range(1, 6):
            self.db.collection("users").document(f"u{i}").set(
                {
                    "meta": {"discord": f"Player{i}"},
                    "characters": {
                        f"c{i}": {
                            "name": f"Hero{i}",
                            "class": "Saint",
                            "mainClass": "Cleric",
                            "stats": {"atk": 100 * i, "hp": 1000, "cri": i},
                        },
                        f"c{i}b": {"name": f"Alt{i}", "class": "Acrobat"},
                    },
                }
            )
        self.party = PartyService.create_party(LEADER, "c1", NEST, db=self.db)
        self.party_id = self.party["id"]

    def _members(self):
        return PartyService.get_party(self.party_id, db=self.db)["members"]

    def test_create_party_defaults(self) -> None:
        self.assertEqual(self.party["name"], "Hero1's Party")
        self.assertEqual(self.party["leader"], LEADER)
        self.assertEqual(self.party["maxMember"], 4)
        self.assertEqual(self.party["goals"], {"atk": 0, "hp": 0, "def": 0, "cri": 0})
        self.assertEqual(list(self._members()), ["c1"])

        big = PartyService.create_party(
            "u2", "c2", "Sea Dragon", name=" Deep Dive ", db=self.db
        )
        self.assertEqual(big["name"], "Deep Dive")
        self.assertEqual(big["maxMember"], 8)
        self.assertEqual(max_members_for_nest("Theme Park"), 4)

    def test_create_validation(self) -> None:
        with self.assertRaises(ValidationError):
            PartyService.create_party(LEADER, "c1", "Dragon Nest", db=self.db)
        with self.assertRaises(NotFoundError):
            PartyService.create_party(LEADER, "c2", NEST, db=self.db)

    def test_join_rules(self) -> None:
        party = PartyService.join_party(self.party_id, "u2", "c2", db=self.db)
        self.assertEqual(sorted(party["members"]), ["c1", "c2"])
        with self.assertRaises(DuplicateResourceError):
            PartyService.join_party(self.party_id, "u2", "c2", db=self.db)
        with self.assertRaises(ValidationError):
            PartyService.join_party(self.party_id, "u2", "c2b", db=self.db)
        with self.assertRaises(NotFoundError):
            PartyService.join_party(self.party_id, "u3", "c2", db=self.db)

        PartyService.join_party(self.party_id, "u3", "c3", db=self.db)
        PartyService.join_party(self.party_id, "u4", "c4", db=self.db)
        with self.assertRaises(ValidationError):
            PartyService.join_party(self.party_id, "u5", "c5", db=self.db)

    def test_one_party_per_nest(self) -> None:
        PartyService.join_party(self.party_id, "u2", "c2", db=self.db)
        other = PartyService.create_party("u3", "c3", NEST, db=self.db)
        PartyService.join_party(other["id"], "u2", "c2", db=self.db)

        self.assertEqual(sorted(self._members()), ["c1"])
        other_members = PartyService.get_party(other["id"], db=self.db)["members"]
        self.assertEqual(sorted(other_members), ["c2", "c3"])

        # A different nest does not move the character
        third = PartyService.create_party("u2", "c2", "Theme Park", db=self.db)
        self.assertIn("c2", PartyService.get_party(other["id"], db=self.db)["members"])
        self.assertEqual(list(third["members"]), ["c2"])

    def test_new_party_in_same_nest_closes_empty_one(self) -> None:
        PartyService.create_party(LEADER, "c1", NEST, name="Again", db=self.db)
        with self.assertRaises(NotFoundError):
            PartyService.get_party(self.party_id, db=self.db)
        self.assertEqual(
            [p["name"] for p in PartyService.list_parties(nest=NEST, db=self.db)],
            ["Again"],
        )

    def test_leader_leaving_hands_over(self) -> None:
        PartyService.join_party(self.party_id, "u2", "c2", db=self.db)
        party = PartyService.leave_party(self.party_id, LEADER, "c1", db=self.db)
        self.assertEqual(party["leader"], "u2")
        self.assertEqual(PartyService.get_party(self.party_id, db=self.db)["leader"], "u2")

        with self.assertRaises(NotFoundError):
            PartyService.leave_party(self.party_id, LEADER, "c1", db=self.db)
        self.assertIsNone(PartyService.leave_party(self.party_id, "u2", "c2", db=self.db))
        with self.assertRaises(NotFoundError):
            PartyService.get_party(self.party_id, db=self.db)

    def test_leadership_goes_to_earliest_member(self) -> None:
        self.db.collection("parties").document(self.party_id).update(
            {
                "members": {
                    "c1": {"userId": LEADER, "joinedAt": 100},
                    "c3": {"userId": "u3", "joinedAt": 300},
                    "c2": {"userId": "u2", "joinedAt": 200},
                }
            }
        )
        party = PartyService.leave_party(self.party_id, LEADER, "c1", db=self.db)
        self.assertEqual(party["leader"], "u2")

    def test_member_leaving_keeps_leader(self) -> None:
        PartyService.join_party(self.party_id, "u2", "c2", db=self.db)
        party = PartyService.leave_party(self.party_id, "u2", "c2", db=self.db)
        self.assertEqual(party["leader"], LEADER)
        with self.assertRaises(NotFoundError):
            PartyService.leave_party(self.party_id, "u2", "c1", db=self.db)

    def test_kick_member(self) -> None:
        PartyService.join_party(self.party_id, "u2", "c2", db=self.db)
        with self.assertRaises(PermissionDeniedError):
            PartyService.kick_member(self.party_id, "u2", "c1", db=self.db)
        with self.assertRaises(ValidationError):
            PartyService.kick_member(self.party_id, LEADER, "c1", db=self.db)
        with self.assertRaises(NotFoundError):
            PartyService.kick_member(self.party_id, LEADER, "c9", db=self.db)
        PartyService.kick_member(self.party_id, LEADER, "c2", db=self.db)
        self.assertEqual(list(self._members()), ["c1"])

    def test_goals_rename_and_delete_are_leader_only(self) -> None:
        goals = PartyService.update_goals(
            self.party_id, LEADER, {"atk": 5000, "ele": 12.5}, db=self.db
        )
        self.assertEqual(goals["atk"], 5000)
        self.assertEqual(goals["ele"], 12.5)
        self.assertEqual(goals["hp"], 0)
        self.assertEqual(PartyService.get_party(self.party_id, db=self.db)["goals"], goals)
        for bad in ({"luck": 1}, {"atk": -1}, {"atk": "high"}):
            with self.subTest(goals=bad):
                with self.assertRaises(ValidationError):
                    PartyService.update_goals(self.party_id, LEADER, bad, db=self.db)
        with self.assertRaises(PermissionDeniedError):
            PartyService.update_goals(self.party_id, "u2", {"atk": 1}, db=self.db)

        party = PartyService.rename_party(self.party_id, LEADER, "Hellhounds", db=self.db)
        self.assertEqual(party["name"], "Hellhounds")
        with self.assertRaises(ValidationError):
            PartyService.rename_party(self.party_id, LEADER, "  ", db=self.db)
        with self.assertRaises(PermissionDeniedError):
            PartyService.rename_party(self.party_id, "u2", "Mine", db=self.db)

        with self.assertRaises(PermissionDeniedError):
            PartyService.delete_party(self.party_id, "u2", db=self.db)
        PartyService.delete_party(self.party_id, LEADER, db=self.db)
        self.assertEqual(PartyService.list_parties(db=self.db), [])

    def test_list_parties(self) -> None:
        PartyService.create_party("u2", "c2", "Theme Park", db=self.db)
        parties = PartyService.list_parties(db=self.db)
        self.assertEqual(len(parties), 2)
        hell = PartyService.list_parties(nest=NEST, db=self.db)
        self.assertEqual([p["id"] for p in hell], [self.party_id])
        self.assertEqual(hell[0]["memberCount"], 1)
        with self.assertRaises(ValidationError):
            PartyService.list_parties(nest="Moon", db=self.db)

    def test_members_stats_and_invite(self) -> None:
        PartyService.join_party(self.party_id, "u2", "c2", db=self.db)
        party = PartyService.get_party(self.party_id, db=self.db)
        members = PartyService.member_details(party, db=self.db)
        self.assertEqual([m["characterId"] for m in members], ["c1", "c2"])
        self.assertEqual(members[0]["discordName"], "Player1")
        self.assertEqual(members[1]["name"], "Hero2")

        average = PartyService.average_stats(members)
        self.assertEqual(average["atk"], 150)
        self.assertEqual(average["hp"], 1000)
        self.assertEqual(average["cri"], 2)
        self.assertEqual(average["pdef"], 0)

        text = PartyService.invite_text(dict(party), members, "8pm", "http://x/p")
        self.assertIn("🏰 Nest: Cerberus Hell", text)
        self.assertIn("- @Player2 (Saint)", text)
        self.assertIn('"8pm"', text)
        self.assertTrue(text.endswith("http://x/p"))
        self.assertEqual(
            PartyService.average_stats([]),
            {"atk": 0, "hp": 0, "pdef": 0, "mdef": 0, "cri": 0, "ele": 0, "fd": 0},
        )


if __name__ == "__main__":
    unittest.main()
