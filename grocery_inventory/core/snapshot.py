# grocery_inventory/core/snapshot.py
from datetime import date
from typing import Iterable, List, Tuple

from .records import BatchSnapshot


def fefo_sort_key(batch: BatchSnapshot) -> Tuple[int, date, date, int]:
    """Sort key for first-expired-first-out ordering.

    Dated batches come first by expiry, undated batches last. Ties fall back
    to received date (FIFO), then id so the order is total.
    """
    undated = 1 if batch.expiry_date is None else 0
    expiry = batch.expiry_date or date.max
    received = batch.received_date or date.max
    return (undated, expiry, received, batch.id)


def order_batches(batches: Iterable[BatchSnapshot]) -> List[BatchSnapshot]:
    """Return batches in canonical FEFO order.

    Args:
        batches: Batches for a single product, in any order

    Returns:
        New list sorted by ``fefo_sort_key``
    """
    return sorted(batches, key=fefo_sort_key)
