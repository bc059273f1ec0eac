"""
Unit tests for FEFO ordering and the batch allocation selector.
"""
import unittest
from datetime import date, datetime, timedelta

from grocery_inventory.core.allocation import (
    classify_urgency, days_until_expiry, reason_text, select_batch
)
from grocery_inventory.core.records import BatchSnapshot, Urgency
from grocery_inventory.core.snapshot import order_batches

TODAY = date(2024, 3, 15)


def make_batch(batch_id, quantity, expiry=None, received=date(2024, 1, 1)):
    return BatchSnapshot(
        id=batch_id,
        product_id=1,
        total_quantity=quantity,
        received_date=received,
        expiry_date=expiry
    )


class TestOrderBatches(unittest.TestCase):
    """Test cases for canonical FEFO ordering."""

    def test_dated_before_undated(self):
        """Undated batches sort after every dated batch."""
        undated = make_batch(1, 5, None, received=date(2023, 1, 1))
        late = make_batch(2, 5, TODAY + timedelta(days=300))
        early = make_batch(3, 5, TODAY + timedelta(days=2))

        ordered = order_batches([undated, late, early])

        self.assertEqual([b.id for b in ordered], [3, 2, 1])

    def test_ties_broken_by_received_date(self):
        """Same expiry falls back to oldest received first."""
        expiry = TODAY + timedelta(days=10)
        newer = make_batch(1, 5, expiry, received=date(2024, 3, 1))
        older = make_batch(2, 5, expiry, received=date(2024, 2, 1))

        ordered = order_batches([newer, older])

        self.assertEqual([b.id for b in ordered], [2, 1])

    def test_undated_ordered_by_received_date(self):
        newer = make_batch(1, 5, None, received=date(2024, 3, 1))
        older = make_batch(2, 5, None, received=date(2024, 2, 1))

        self.assertEqual([b.id for b in order_batches([newer, older])], [2, 1])


class TestUrgency(unittest.TestCase):
    """Test cases for urgency classification boundaries."""

    def test_boundaries(self):
        self.assertEqual(classify_urgency(-1), Urgency.EXPIRED)
        self.assertEqual(classify_urgency(0), Urgency.URGENT)
        self.assertEqual(classify_urgency(7), Urgency.URGENT)
        self.assertEqual(classify_urgency(8), Urgency.SOON)
        self.assertEqual(classify_urgency(30), Urgency.SOON)
        self.assertEqual(classify_urgency(31), Urgency.NORMAL)
        self.assertEqual(classify_urgency(None), Urgency.NORMAL)

    def test_days_until_expiry(self):
        self.assertEqual(days_until_expiry(TODAY, TODAY), 0)
        self.assertEqual(days_until_expiry(TODAY - timedelta(days=1), TODAY), -1)
        self.assertEqual(days_until_expiry(TODAY + timedelta(days=8), TODAY), 8)
        self.assertIsNone(days_until_expiry(None, TODAY))

    def test_datetime_today_is_truncated(self):
        """A late-evening 'today' still counts the same calendar day."""
        late_evening = datetime(2024, 3, 15, 23, 59)
        self.assertEqual(days_until_expiry(TODAY, late_evening), 0)

    def test_reason_text(self):
        self.assertEqual(reason_text(Urgency.EXPIRED, -3), "EXPIRED - remove immediately")
        self.assertEqual(reason_text(Urgency.URGENT, 1), "Expires in 1 day - use immediately")
        self.assertEqual(reason_text(Urgency.SOON, 12), "Expires in 12 days - use soon")
        self.assertEqual(reason_text(Urgency.NORMAL, 45), "Expires in 45 days")
        self.assertEqual(reason_text(Urgency.NORMAL, None), "No expiry date - oldest batch first")


class TestSelectBatch(unittest.TestCase):
    """Test cases for select_batch."""

    def test_earliest_expiry_with_stock_wins(self):
        """Empty batches are skipped even when they expire first."""
        batches = [
            make_batch(1, 0, TODAY + timedelta(days=1)),
            make_batch(2, 4, TODAY + timedelta(days=20)),
            make_batch(3, 9, TODAY + timedelta(days=5)),
            make_batch(4, 9, None),
        ]

        suggestion = select_batch(batches, TODAY)

        self.assertEqual(suggestion.batch_id, 3)
        self.assertEqual(suggestion.urgency, Urgency.URGENT)
        self.assertEqual(suggestion.days_until_expiry, 5)

    def test_all_empty_returns_none(self):
        batches = [make_batch(1, 0, TODAY), make_batch(2, -2, None)]
        self.assertIsNone(select_batch(batches, TODAY))

    def test_no_batches_returns_none(self):
        self.assertIsNone(select_batch([], TODAY))

    def test_expired_batch_is_suggested_first(self):
        """An expired batch with stock is drawn down before a far-future one."""
        expired = make_batch(1, 10, TODAY - timedelta(days=1))
        future = make_batch(2, 5, TODAY + timedelta(days=90))

        suggestion = select_batch([future, expired], TODAY)

        self.assertEqual(suggestion.batch_id, 1)
        self.assertEqual(suggestion.urgency, Urgency.EXPIRED)
        self.assertEqual(suggestion.reason, "EXPIRED - remove immediately")

    def test_only_undated_batches(self):
        batches = [
            make_batch(1, 3, None, received=date(2024, 2, 1)),
            make_batch(2, 3, None, received=date(2024, 1, 1)),
        ]

        suggestion = select_batch(batches, TODAY)

        self.assertEqual(suggestion.batch_id, 2)
        self.assertEqual(suggestion.urgency, Urgency.NORMAL)
        self.assertIsNone(suggestion.days_until_expiry)

    def test_to_dict(self):
        suggestion = select_batch([make_batch(7, 3, TODAY + timedelta(days=45))], TODAY)
        result = suggestion.to_dict()

        self.assertEqual(result['batch_id'], 7)
        self.assertEqual(result['urgency'], 'normal')
        self.assertEqual(result['suggestion']['expiry_date'], '2024-04-29')


if __name__ == '__main__':
    unittest.main()
