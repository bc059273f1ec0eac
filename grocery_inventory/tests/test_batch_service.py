"""
Unit tests for the batch service against an in-memory database.
"""
import re
import unittest
from datetime import date, timedelta

from sqlalchemy import delete

from grocery_inventory.core.records import Urgency
from grocery_inventory.exceptions import (
    NotFoundError, QuantityAdjustmentError, ValidationError
)
from grocery_inventory.models import InventoryBatch, InventoryTransaction, Product
from grocery_inventory.services.batch_service import BatchService, generate_batch_number
from grocery_inventory.tests.fixtures import add_batch, add_product, create_test_session

TODAY = date(2024, 6, 1)


class TestBatchService(unittest.TestCase):
    """Test cases for BatchService."""

    def setUp(self):
        """Set up test fixtures."""
        self.engine, self.session = create_test_session()
        self.service = BatchService(self.session)
        self.product = add_product(self.session, name='Yogurt')

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def test_batches_in_fefo_order(self):
        undated = add_batch(self.session, self.product, 5, None, received_date=date(2024, 1, 1))
        late = add_batch(self.session, self.product, 5, TODAY + timedelta(days=40))
        newer = add_batch(self.session, self.product, 5, TODAY + timedelta(days=3), received_date=date(2024, 5, 1))
        older = add_batch(self.session, self.product, 5, TODAY + timedelta(days=3), received_date=date(2024, 4, 1))

        batches = self.service.get_batches_for_product(self.product.id)

        self.assertEqual([b.id for b in batches], [older.id, newer.id, late.id, undated.id])

    def test_unknown_product_has_no_batches(self):
        self.assertEqual(self.service.get_batches_for_product(999), [])
        self.assertIsNone(self.service.suggest_batch(999, today=TODAY))

    def test_product_without_batches(self):
        """Empty inventory flows through to no suggestion."""
        self.assertEqual(self.service.get_batches_for_product(self.product.id), [])
        self.assertIsNone(self.service.suggest_batch(self.product.id, today=TODAY))

    def test_suggest_expired_before_far_future(self):
        expired = add_batch(self.session, self.product, 10, TODAY - timedelta(days=1))
        add_batch(self.session, self.product, 5, TODAY + timedelta(days=90))

        suggestion = self.service.suggest_batch(self.product.id, today=TODAY)

        self.assertEqual(suggestion.batch_id, expired.id)
        self.assertEqual(suggestion.urgency, Urgency.EXPIRED)

    def test_suggest_skips_empty_batches(self):
        add_batch(self.session, self.product, 0, TODAY + timedelta(days=1))
        stocked = add_batch(self.session, self.product, 3, TODAY + timedelta(days=10))

        suggestion = self.service.suggest_batch(self.product.id, today=TODAY)

        self.assertEqual(suggestion.batch_id, stocked.id)
        self.assertEqual(suggestion.urgency, Urgency.SOON)

    def test_create_batch_defaults(self):
        batch = self.service.create_batch(self.product.id, case_quantity=12)

        self.assertEqual(batch.total_quantity, 12)
        self.assertEqual(batch.received_date, date.today())
        self.assertRegex(batch.batch_number, r'^BATCH-\d{8}-\d{6}-[A-Z0-9]{4}$')

    def test_create_batch_zero_total_is_kept(self):
        batch = self.service.create_batch(self.product.id, case_quantity=2, total_quantity=0)
        self.assertEqual(batch.total_quantity, 0)

    def test_create_batch_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.service.create_batch(999, case_quantity=1)

    def test_create_batch_negative_quantity(self):
        with self.assertRaises(ValidationError):
            self.service.create_batch(self.product.id, case_quantity=1, total_quantity=-1)

    def test_generate_batch_number(self):
        self.assertTrue(re.match(r'^BATCH-\d{8}-\d{6}-[A-Z0-9]{4}$', generate_batch_number()))

    def test_update_batch(self):
        batch = add_batch(self.session, self.product, 5)

        updated = self.service.update_batch(batch.id, location='Cooler 2', expiry_date='2024-07-01')

        self.assertEqual(updated.location, 'Cooler 2')
        self.assertEqual(updated.expiry_date, date(2024, 7, 1))

    def test_update_batch_rejects_unknown_fields(self):
        batch = add_batch(self.session, self.product, 5)
        with self.assertRaises(ValidationError):
            self.service.update_batch(batch.id, product_id=2)

    def test_update_missing_batch(self):
        with self.assertRaises(NotFoundError):
            self.service.update_batch(999, notes='x')

    def test_deleting_product_removes_batches_and_transactions(self):
        batch = add_batch(self.session, self.product, 10)
        self.service.adjust_quantity(batch.id, -2, reason='sale')
        other = add_product(self.session, name='Butter')
        kept = add_batch(self.session, other, 4)

        self.session.delete(self.product)
        self.session.commit()

        self.assertEqual([b.id for b in self.session.query(InventoryBatch)], [kept.id])
        self.assertEqual(self.session.query(InventoryTransaction).count(), 0)

    def test_database_cascade_without_loaded_children(self):
        add_batch(self.session, self.product, 10)
        product_id = self.product.id
        self.session.expunge_all()

        self.session.execute(delete(Product).where(Product.id == product_id))
        self.session.commit()

        self.assertEqual(self.session.query(InventoryBatch).count(), 0)

    def test_delete_batch(self):
        batch = add_batch(self.session, self.product, 5)

        deleted = self.service.delete_batch(batch.id)

        self.assertEqual(deleted.id, batch.id)
        self.assertIsNone(self.service.get_batch(batch.id))
        self.assertIsNone(self.service.delete_batch(batch.id))

    def test_adjust_quantity(self):
        batch = add_batch(self.session, self.product, 10)

        adjusted = self.service.adjust_quantity(batch.id, -4, reason='sale')
        self.assertEqual(adjusted.total_quantity, 6)

        adjusted = self.service.adjust_quantity(batch.id, 3)
        self.assertEqual(adjusted.total_quantity, 9)

        changes = [t.quantity_change for t in self.session.query(InventoryTransaction).order_by(InventoryTransaction.id)]
        self.assertEqual(changes, [-4, 3])

    def test_adjust_to_zero(self):
        batch = add_batch(self.session, self.product, 4)
        self.assertEqual(self.service.adjust_quantity(batch.id, -4).total_quantity, 0)

    def test_adjust_below_zero_is_rejected(self):
        batch = add_batch(self.session, self.product, 3)

        with self.assertRaises(QuantityAdjustmentError) as ctx:
            self.service.adjust_quantity(batch.id, -5)

        self.assertEqual(ctx.exception.code, 'NEGATIVE_QUANTITY')
        self.assertEqual(self.service.get_batch(batch.id).total_quantity, 3)
        self.assertEqual(self.session.query(InventoryTransaction).count(), 0)

    def test_adjust_missing_batch(self):
        with self.assertRaises(NotFoundError):
            self.service.adjust_quantity(999, 1)

    def test_mark_empty(self):
        batch = add_batch(self.session, self.product, 8, TODAY + timedelta(days=2))

        emptied = self.service.mark_empty(batch.id)

        self.assertEqual(emptied.total_quantity, 0)
        self.assertTrue(emptied.is_empty)
        self.assertEqual(self.session.query(InventoryBatch).count(), 1)
        self.assertIsNone(self.service.suggest_batch(self.product.id, today=TODAY))

    def test_mark_empty_missing_batch(self):
        with self.assertRaises(NotFoundError):
            self.service.mark_empty(999)

    def test_bulk_create_batches(self):
        results = self.service.bulk_create_batches([
            {'product_id': self.product.id, 'case_quantity': 5},
            {'product_id': 999, 'case_quantity': 5},
            {'product_id': self.product.id, 'case_quantity': 2, 'expiry_date': '2024-08-01'},
        ])

        self.assertEqual([r['success'] for r in results], [True, False, True])
        self.assertEqual(results[1]['data']['product_id'], 999)
        self.assertIn('not found', results[1]['error'])
        self.assertEqual(results[2]['batch'].expiry_date, date(2024, 8, 1))

    def test_get_expiring_batches(self):
        soon = add_batch(self.session, self.product, 5, TODAY + timedelta(days=10))
        expired = add_batch(self.session, self.product, 5, TODAY - timedelta(days=2))
        add_batch(self.session, self.product, 5, TODAY + timedelta(days=60))
        add_batch(self.session, self.product, 0, TODAY + timedelta(days=1))
        add_batch(self.session, self.product, 5, None)

        expiring = self.service.get_expiring_batches(30, today=TODAY)

        self.assertEqual([e.batch.id for e in expiring], [expired.id, soon.id])
        self.assertEqual(expiring[0].urgency, Urgency.EXPIRED)
        self.assertEqual(expiring[1].days_until_expiry, 10)
        self.assertEqual(expiring[1].product_name, 'Yogurt')


if __name__ == '__main__':
    unittest.main()
