# grocery_inventory/services/batch_service.py
import logging
import secrets
import string
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import case, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from grocery_inventory.core.allocation import classify_urgency, days_until_expiry, select_batch
from grocery_inventory.core.records import AllocationSuggestion, BatchSnapshot, ExpiringBatch
from grocery_inventory.exceptions import (
    BatchError, NotFoundError, QuantityAdjustmentError, ValidationError
)
from grocery_inventory.models import InventoryBatch, InventoryTransaction, Product
from grocery_inventory.utils import date_utils

logger = logging.getLogger(__name__)

BATCH_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
UPDATABLE_FIELDS = ('batch_number', 'case_quantity', 'total_quantity', 'expiry_date', 'location', 'notes')


def generate_batch_number(now: Optional[datetime] = None) -> str:
    """Generate a batch number of the form ``BATCH-YYYYMMDD-HHMMSS-XXXX`` (UTC)."""
    now = now or datetime.now(timezone.utc)
    suffix = ''.join(secrets.choice(BATCH_NUMBER_ALPHABET) for _ in range(4))
    return f"BATCH-{now:%Y%m%d}-{now:%H%M%S}-{suffix}"


class BatchService:
    """Service for reading and mutating inventory batches."""

    def __init__(self, session: Session):
        """Initialize the batch service.

        Args:
            session: Database session
        """
        self.session = session

    def _fefo_query(self):
        # Undated batches last, then expiry, then received date
        return self.session.query(InventoryBatch).order_by(
            case((InventoryBatch.expiry_date.is_(None), 1), else_=0),
            InventoryBatch.expiry_date.asc(),
            InventoryBatch.received_date.asc(),
            InventoryBatch.id.asc()
        )

    def get_batches_for_product(self, product_id: int) -> List[BatchSnapshot]:
        """Get all batches of a product in FEFO order.

        Args:
            product_id: Product ID

        Returns:
            List of batch snapshots; empty for a product with no batches
            or an unknown product
        """
        batches = self._fefo_query().filter(InventoryBatch.product_id == product_id).all()
        return [BatchSnapshot.from_model(batch) for batch in batches]

    def suggest_batch(
        self,
        product_id: int,
        today: Optional[date] = None
    ) -> Optional[AllocationSuggestion]:
        """Suggest which batch of a product to use next.

        Args:
            product_id: Product ID
            today: Reference date (defaults to the local calendar date)

        Returns:
            Allocation suggestion, or None when no batch has stock
        """
        today = date_utils.convert_to_date(today) if today else date_utils.today()
        suggestion = select_batch(self.get_batches_for_product(product_id), today)

        if suggestion is None:
            logger.debug(f"No usable batch for product {product_id}")
        return suggestion

    def get_batch(self, batch_id: int) -> Optional[BatchSnapshot]:
        batch = self.session.query(InventoryBatch).filter(InventoryBatch.id == batch_id).first()
        if batch is None:
            return None
        return BatchSnapshot.from_model(batch)

    def create_batch(
        self,
        product_id: int,
        case_quantity: int,
        total_quantity: Optional[int] = None,
        expiry_date: Optional[date] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        received_date: Optional[date] = None,
        batch_number: Optional[str] = None
    ) -> BatchSnapshot:
        """Receive a new batch of stock.

        Args:
            product_id: Product ID
            case_quantity: Number of cases received
            total_quantity: Number of units; defaults to ``case_quantity``
            expiry_date: Optional expiry date
            location: Optional storage location
            notes: Optional notes
            received_date: Date received; defaults to today
            batch_number: Batch number; generated when not provided

        Returns:
            Snapshot of the created batch
        """
        product = self.session.query(Product).filter(Product.id == product_id).first()
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found")

        if total_quantity is None:
            total_quantity = case_quantity

        if case_quantity < 0 or total_quantity < 0:
            raise ValidationError(
                "Batch quantities cannot be negative",
                details={'case_quantity': case_quantity, 'total_quantity': total_quantity}
            )

        batch = InventoryBatch(
            product_id=product_id,
            batch_number=batch_number or generate_batch_number(),
            case_quantity=case_quantity,
            total_quantity=total_quantity,
            expiry_date=date_utils.convert_to_date(expiry_date),
            location=location,
            notes=notes,
            received_date=date_utils.convert_to_date(received_date) or date_utils.today()
        )
        self.session.add(batch)

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise BatchError(f"Failed to create batch for product {product_id}: {str(e)}")

        logger.info(f"Created batch {batch.batch_number} for {product.name} ({total_quantity} units)")
        return BatchSnapshot.from_model(batch)

    def update_batch(self, batch_id: int, **fields) -> BatchSnapshot:
        """Overwrite batch fields.

        Args:
            batch_id: Batch ID
            **fields: Any of ``UPDATABLE_FIELDS``

        Returns:
            Snapshot of the updated batch
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update batch fields: {', '.join(sorted(unknown))}")

        if fields.get('total_quantity') is not None and fields['total_quantity'] < 0:
            raise ValidationError("Batch quantity cannot be negative")

        batch = self.session.query(InventoryBatch).filter(InventoryBatch.id == batch_id).first()
        if batch is None:
            raise NotFoundError(f"Batch with ID {batch_id} not found")

        if 'expiry_date' in fields:
            fields['expiry_date'] = date_utils.convert_to_date(fields['expiry_date'])

        for field, value in fields.items():
            setattr(batch, field, value)

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise BatchError(f"Failed to update batch {batch_id}: {str(e)}")

        logger.info(f"Updated batch {batch_id}: {', '.join(sorted(fields))}")
        return BatchSnapshot.from_model(batch)

    def delete_batch(self, batch_id: int) -> Optional[BatchSnapshot]:
        """Delete a batch.

        Returns:
            Snapshot of the deleted batch, or None if it did not exist
        """
        batch = self.session.query(InventoryBatch).filter(InventoryBatch.id == batch_id).first()
        if batch is None:
            return None

        snapshot = BatchSnapshot.from_model(batch)
        self.session.delete(batch)

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise BatchError(f"Failed to delete batch {batch_id}: {str(e)}")

        logger.info(f"Deleted batch {batch_id} ({snapshot.total_quantity} units)")
        return snapshot

    def adjust_quantity(self, batch_id: int, delta: int, reason: Optional[str] = None) -> BatchSnapshot:
        """Add ``delta`` units to a batch in a single conditional UPDATE.

        The new quantity is computed by the database, so concurrent
        adjustments cannot overwrite each other. Every non-zero adjustment
        is written to the transaction ledger; negative ones are consumption.

        Args:
            batch_id: Batch ID
            delta: Units to add (negative to consume)
            reason: Optional reason recorded on the transaction

        Returns:
            Snapshot of the adjusted batch
        """
        try:
            result = self.session.execute(
                update(InventoryBatch)
                .where(InventoryBatch.id == batch_id)
                .where(InventoryBatch.total_quantity + delta >= 0)
                .values(total_quantity=InventoryBatch.total_quantity + delta)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                self.session.rollback()
                if self.get_batch(batch_id) is None:
                    raise NotFoundError(f"Batch with ID {batch_id} not found")
                raise QuantityAdjustmentError(details={'batch_id': batch_id, 'adjustment': delta})

            if delta != 0:
                product_id = self.session.query(InventoryBatch.product_id).filter(
                    InventoryBatch.id == batch_id
                ).scalar()
                self.session.add(InventoryTransaction(
                    product_id=product_id,
                    batch_id=batch_id,
                    quantity_change=delta,
                    reason=reason
                ))

            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise BatchError(f"Failed to adjust batch {batch_id}: {str(e)}")

        logger.info(f"Adjusted batch {batch_id} by {delta}" + (f" ({reason})" if reason else ""))
        return self.get_batch(batch_id)

    def mark_empty(self, batch_id: int) -> BatchSnapshot:
        """Set a batch's quantity to zero without deleting it."""
        try:
            result = self.session.execute(
                update(InventoryBatch)
                .where(InventoryBatch.id == batch_id)
                .values(total_quantity=0)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.session.rollback()
                raise NotFoundError(f"Batch with ID {batch_id} not found")
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise BatchError(f"Failed to mark batch {batch_id} empty: {str(e)}")

        logger.info(f"Marked batch {batch_id} empty")
        return self.get_batch(batch_id)

    def bulk_create_batches(self, batches_data: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Create several batches, continuing past individual failures.

        Args:
            batches_data: List of keyword dictionaries for ``create_batch``

        Returns:
            One result per input: ``{'success': True, 'batch': ...}`` or
            ``{'success': False, 'error': ..., 'data': ...}``
        """
        results = []

        for batch_data in batches_data:
            try:
                batch = self.create_batch(**batch_data)
                results.append({'success': True, 'batch': batch})
            except (TypeError, ValueError) as e:
                results.append({'success': False, 'error': str(e), 'data': batch_data})
            except (NotFoundError, ValidationError, BatchError) as e:
                results.append({'success': False, 'error': e.message, 'data': batch_data})

        created = sum(1 for result in results if result['success'])
        logger.info(f"Bulk created {created} of {len(results)} batches")
        return results

    def get_expiring_batches(
        self,
        days_threshold: int = 30,
        today: Optional[date] = None
    ) -> List[ExpiringBatch]:
        """Get batches with stock that expire within ``days_threshold`` days.

        Already expired batches are included.

        Args:
            days_threshold: Window in days from today
            today: Reference date (defaults to the local calendar date)

        Returns:
            Expiring batches ordered by expiry date
        """
        today = date_utils.convert_to_date(today) if today else date_utils.today()
        cutoff = today + timedelta(days=days_threshold)

        rows = self.session.query(InventoryBatch, Product.name).join(
            Product, InventoryBatch.product_id == Product.id
        ).filter(
            InventoryBatch.expiry_date.isnot(None),
            InventoryBatch.expiry_date <= cutoff,
            InventoryBatch.total_quantity > 0
        ).order_by(
            InventoryBatch.expiry_date.asc(),
            InventoryBatch.id.asc()
        ).all()

        expiring = []
        for batch, product_name in rows:
            days = days_until_expiry(batch.expiry_date, today)
            expiring.append(ExpiringBatch(
                batch=BatchSnapshot.from_model(batch),
                product_name=product_name,
                days_until_expiry=days,
                urgency=classify_urgency(days)
            ))

        return expiring
