"""Tests for the split bill arithmetic."""

import random
import unittest

from guildhall.core.constants import MS_PER_DAY, MS_PER_HOUR, MS_PER_MINUTE
from guildhall.split.utils import (
    calculate_split,
    format_gold,
    get_time_remaining,
    gold_from_stamps,
    is_expired,
    is_expiring_soon,
)


class CalculateSplitTestCase(unittest.TestCase):
    """Tests for calculate_split."""

    def test_even_split(self) -> None:
        items = [{"name": "Sword", "price": 600}, {"name": "Shield", "price": 400}]
        self.assertEqual(calculate_split(items, 100, 3), 300)

    def test_remainder_is_dropped(self) -> None:
        self.assertEqual(calculate_split([{"price": 1000}], 0, 3), 333)

    def test_plain_numbers_and_missing_prices(self) -> None:
        self.assertEqual(calculate_split([100, None, {"name": "x"}, 50], 0, 2), 75)

    def test_fee_covering_total_gives_nothing(self) -> None:
        rng = random.Random(7)
        for _ in range(200):
            prices = [rng.randint(0, 5000) for _ in range(rng.randint(0, 6))]
            fee = sum(prices) + rng.randint(0, 1000)
            count = rng.randint(1, 12)
            self.assertEqual(
                calculate_split([{"price": p} for p in prices], fee, count), 0
            )

    def test_never_over_allocates(self) -> None:
        rng = random.Random(11)
        for _ in range(200):
            prices = [rng.randint(0, 5000) for _ in range(rng.randint(1, 6))]
            fee = rng.randint(0, sum(prices))
            count = rng.randint(1, 12)
            share = calculate_split(prices, fee, count)
            self.assertLessEqual(share * count, sum(prices) - fee)
            self.assertGreaterEqual(share, 0)

    def test_no_participants(self) -> None:
        self.assertEqual(calculate_split([{"price": 100}], 0, 0), 0)
        self.assertEqual(calculate_split([{"price": 100}], 0, -1), 0)


class SplitHelpersTestCase(unittest.TestCase):
    """Tests for the display and expiry helpers."""

    def test_format_gold(self) -> None:
        self.assertEqual(format_gold(1234567), "1,234,567")
        self.assertEqual(format_gold(1234.5), "1,234.50")
        self.assertEqual(format_gold(0), "0")

    def test_time_remaining(self) -> None:
        now = 1_700_000_000_000
        expires_at = now + 2 * MS_PER_DAY + 3 * MS_PER_HOUR + 4 * MS_PER_MINUTE
        self.assertEqual(
            get_time_remaining(expires_at, now), {"days": 2, "hours": 3, "minutes": 4}
        )
        self.assertEqual(
            get_time_remaining(now - 1, now), {"days": 0, "hours": 0, "minutes": 0}
        )

    def test_expiry(self) -> None:
        now = 1_700_000_000_000
        self.assertTrue(is_expiring_soon(now + 5 * MS_PER_HOUR, now))
        self.assertFalse(is_expiring_soon(now + MS_PER_DAY + MS_PER_HOUR, now))
        self.assertTrue(is_expired(now, now))
        self.assertFalse(is_expired(now + 1, now))

    def test_gold_from_stamps(self) -> None:
        result = gold_from_stamps(39, 10)
        self.assertEqual(result, {"cash": 1365, "baht": 35.0, "gold": 3.5})

    def test_gold_from_stamps_needs_positive_inputs(self) -> None:
        zero = {"cash": 0.0, "baht": 0.0, "gold": 0.0}
        self.assertEqual(gold_from_stamps(0, 10), zero)
        self.assertEqual(gold_from_stamps(10, 0), zero)


if __name__ == "__main__":
    unittest.main()
