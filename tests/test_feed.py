"""Tests for FeedService."""

from __future__ import annotations

import unittest

from mockfirestore import MockFirestore

from guildhall.feed.services import FeedService
from tests.mock_utils import patch_mockfirestore

patch_mockfirestore()


class FeedServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestore()

    def _merchant_feed(self, merchant_id, kind):
        return [
            doc.to_dict()
            for doc in self.db.collection("feedMerchants")
            .document(merchant_id)
            .collection(kind)
            .stream()
        ]

    def test_trade_feed_is_copied_to_merchant(self) -> None:
        FeedService.add_feed(
            {"type": "gold", "subType": "create", "text": "x", "to": "m1"}, db=self.db
        )
        self.assertEqual(len(self._merchant_feed("m1", "trade")), 1)
        self.assertEqual(self._merchant_feed("m1", "loan"), [])

    def test_loan_feed_goes_to_merchant_loan_feed(self) -> None:
        FeedService.add_feed({"type": "loan", "text": "x", "to": "m1"}, db=self.db)
        self.assertEqual(len(self._merchant_feed("m1", "loan")), 1)

    def test_donation_feed_is_not_copied(self) -> None:
        FeedService.add_feed({"type": "donate", "text": "x", "to": ""}, db=self.db)
        self.assertEqual(list(self.db.collection("feedMerchants").stream()), [])

    def test_guild_loan_feed_stays_in_main_feed(self) -> None:
        loan = {
            "loanId": "l1",
            "amount": 100,
            "status": "waitingApproval",
            "source": {"type": "guild", "guild": "GalaxyCat"},
            "borrower": {"uid": "u1", "discordId": "Kitty", "name": "Kitty"},
        }
        record = FeedService.add_loan_feed(loan, "create", "Kitty", db=self.db)
        self.assertEqual(record["to"], "")
        self.assertEqual(list(self.db.collection("feedMerchants").stream()), [])

    def test_get_feeds_filters_and_orders(self) -> None:
        for timestamp, feed_type in ((100, "gold"), (300, "loan"), (200, "gold")):
            FeedService.add_feed(
                {"type": feed_type, "text": str(timestamp), "timestamp": timestamp},
                db=self.db,
            )

        self.assertEqual(
            [f["timestamp"] for f in FeedService.get_feeds(db=self.db)], [300, 200, 100]
        )
        self.assertEqual(
            [
                f["timestamp"]
                for f in FeedService.get_feeds({"type": "gold"}, db=self.db)
            ],
            [200, 100],
        )
        self.assertEqual(
            [
                f["timestamp"]
                for f in FeedService.get_feeds(
                    {"start_date": 150, "end_date": 300}, db=self.db
                )
            ],
            [300, 200],
        )
        self.assertEqual(len(FeedService.get_feeds(limit=1, db=self.db)), 1)

    def test_merchant_feeds_newest_first(self) -> None:
        for timestamp in (5, 9, 7):
            FeedService.add_feed(
                {"type": "item", "text": "x", "to": "m1", "timestamp": timestamp},
                db=self.db,
            )
        self.assertEqual(
            [f["timestamp"] for f in FeedService.get_merchant_feeds("m1", db=self.db)],
            [9, 7, 5],
        )

    def test_matches_filters(self) -> None:
        feed = {"type": "gold", "timestamp": 50}
        self.assertTrue(FeedService.matches_filters(feed, None))
        self.assertTrue(FeedService.matches_filters(feed, {"type": "gold"}))
        self.assertFalse(FeedService.matches_filters(feed, {"type": "loan"}))
        self.assertFalse(FeedService.matches_filters(feed, {"start_date": 51}))
        self.assertFalse(FeedService.matches_filters(feed, {"end_date": 49}))

    def test_loan_feed_text(self) -> None:
        guild_loan = {
            "amount": 300,
            "source": {"type": "guild", "guild": "GalaxyCat"},
            "borrower": {"name": "Kitty"},
        }
        merchant_loan = {
            "amount": 300,
            "source": {"type": "merchant", "merchantId": "m1"},
            "borrower": {"name": "Kitty"},
        }
        self.assertEqual(
            FeedService.loan_feed_text(merchant_loan, "create", "Shopkeep"),
            "@Kitty requested a 300G loan from @Shopkeep",
        )
        self.assertEqual(
            FeedService.loan_feed_text(guild_loan, "approve", "Boss"),
            "@Boss (guild leader) approved the request from @Kitty ✅",
        )
        self.assertEqual(
            FeedService.loan_feed_text(guild_loan, "return", "Kitty"),
            "@Kitty reported returning 300G",
        )
        with self.assertRaises(ValueError):
            FeedService.loan_feed_text(guild_loan, "forgive", "Boss")


if __name__ == "__main__":
    unittest.main()
