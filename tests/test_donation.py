"""Tests for DonationService."""

from __future__ import annotations

import unittest

from mockfirestore import MockFirestore

from guildhall.donation.services import DonationService
from guildhall.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

LEADER = "leader1"
DONOR = "donor1"
CHARACTERS = [{"id": "c1", "name": "Whiskers", "class": "Mage"}]


class DonationServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestore()
        self.db.collection("guild").document("settings").set(
            {"name": "GalaxyCat", "leaders": {LEADER: True}, "members": {}}
        )
        self.db.collection("users").document(DONOR).set({"meta": {"discord": "Kitty"}})

    def _feeds(self):
        feeds = [doc.to_dict() for doc in self.db.collection("feed").stream()]
        return sorted(feeds, key=lambda f: f["timestamp"])

    def test_gold_donation_posts_feed(self) -> None:
        donation = DonationService.create_gold_donation(
            DONOR, 1000, CHARACTERS, db=self.db
        )
        self.assertEqual(donation["status"], "waiting")
        self.assertEqual(donation["discordName"], "Kitty")

        feeds = self._feeds()
        self.assertEqual(len(feeds), 1)
        self.assertEqual(feeds[0]["type"], "donate")
        self.assertEqual(feeds[0]["subType"], "waiting")
        self.assertEqual(feeds[0]["characters"], CHARACTERS)
        self.assertEqual(
            feeds[0]["text"], "@Kitty wants to donate 1000G to guild GalaxyCat 💖"
        )

    def test_cash_donation_has_no_feed_until_reviewed(self) -> None:
        donation = DonationService.create_cash_donation(DONOR, 200, db=self.db)
        self.assertEqual(donation["paymentMethod"], "promptpay")
        self.assertEqual(self._feeds(), [])

        DonationService.review_donation("cash", donation["id"], True, LEADER, db=self.db)
        feeds = self._feeds()
        self.assertEqual(len(feeds), 1)
        self.assertEqual(
            feeds[0]["text"], "@Kitty donated 200 baht in cash to guild GalaxyCat ✅"
        )
        self.assertNotIn("characters", feeds[0])

    def test_validation(self) -> None:
        with self.assertRaises(ValidationError):
            DonationService.create_gold_donation(DONOR, 0, CHARACTERS, db=self.db)
        with self.assertRaises(ValidationError):
            DonationService.create_gold_donation(DONOR, 100, [], db=self.db)
        with self.assertRaises(ValidationError):
            DonationService.create_cash_donation(DONOR, -5, db=self.db)

    def test_review_is_for_leaders(self) -> None:
        donation = DonationService.create_gold_donation(
            DONOR, 100, CHARACTERS, db=self.db
        )
        with self.assertRaises(PermissionDeniedError):
            DonationService.review_donation(
                "gold", donation["id"], True, DONOR, db=self.db
            )
        with self.assertRaises(NotFoundError):
            DonationService.review_donation("gold", "missing", True, LEADER, db=self.db)
        with self.assertRaises(ValidationError):
            DonationService.review_donation(
                "silver", donation["id"], True, LEADER, db=self.db
            )

    def test_review_only_once(self) -> None:
        donation = DonationService.create_gold_donation(
            DONOR, 100, CHARACTERS, db=self.db
        )
        reviewed = DonationService.review_donation(
            "gold", donation["id"], False, LEADER, db=self.db
        )
        self.assertEqual(reviewed["status"], "rejected")
        self.assertEqual(reviewed["approvedBy"], LEADER)
        self.assertTrue(any("was cancelled" in f["text"] for f in self._feeds()))
        with self.assertRaises(InvalidTransitionError):
            DonationService.review_donation(
                "gold", donation["id"], True, LEADER, db=self.db
            )

    def test_pending_history_and_totals(self) -> None:
        first = DonationService.create_gold_donation(DONOR, 100, CHARACTERS, db=self.db)
        second = DonationService.create_gold_donation(
            DONOR, 250, CHARACTERS, db=self.db
        )
        cash = DonationService.create_cash_donation(DONOR, 50, db=self.db)
        DonationService.review_donation("gold", first["id"], True, LEADER, db=self.db)

        self.assertEqual(
            [d["id"] for d in DonationService.list_pending("gold", db=self.db)],
            [second["id"]],
        )
        history = DonationService.user_history(DONOR, db=self.db)
        self.assertCountEqual(
            [d["id"] for d in history], [first["id"], second["id"], cash["id"]]
        )
        self.assertEqual(DonationService.donation_totals(db=self.db), {DONOR: 100})


if __name__ == "__main__":
    unittest.main()
