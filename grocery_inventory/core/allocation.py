# grocery_inventory/core/allocation.py
"""
Batch allocation selector.

Given the batches of one product, picks the batch that should be drawn down
next (FEFO, falling back to FIFO for batches without an expiry date) and
classifies how urgently it should be used. Pure: "today" is always passed in.
"""
from datetime import date, datetime
from typing import Iterable, Optional, Union

from .records import AllocationSuggestion, BatchSnapshot, Urgency
from .snapshot import order_batches
from ..utils.date_utils import convert_to_date

URGENT_DAYS = 7
SOON_DAYS = 30


def days_until_expiry(
    expiry_date: Optional[date],
    today: Union[date, datetime]
) -> Optional[int]:
    """Whole calendar days from today until expiry.

    Args:
        expiry_date: Expiry date of the batch, or None
        today: Reference date; datetimes are truncated to local midnight

    Returns:
        Days remaining (negative once expired), or None when undated
    """
    if expiry_date is None:
        return None
    return (convert_to_date(expiry_date) - convert_to_date(today)).days


def classify_urgency(days: Optional[int]) -> Urgency:
    """Map days until expiry to an urgency class.

    Args:
        days: Days until expiry, or None for batches without an expiry date

    Returns:
        Urgency class
    """
    if days is None:
        return Urgency.NORMAL
    if days < 0:
        return Urgency.EXPIRED
    if days <= URGENT_DAYS:
        return Urgency.URGENT
    if days <= SOON_DAYS:
        return Urgency.SOON
    return Urgency.NORMAL


def reason_text(urgency: Urgency, days: Optional[int]) -> str:
    """Short human-readable reason for a suggestion."""
    if days is None:
        return "No expiry date - oldest batch first"

    if urgency is Urgency.EXPIRED:
        return "EXPIRED - remove immediately"

    plural = 's' if days != 1 else ''
    if urgency is Urgency.URGENT:
        return f"Expires in {days} day{plural} - use immediately"
    if urgency is Urgency.SOON:
        return f"Expires in {days} day{plural} - use soon"
    return f"Expires in {days} day{plural}"


def usable_batches(batches: Iterable[BatchSnapshot]):
    """Batches with stock left; empty batches are never suggested."""
    return [batch for batch in batches if batch.total_quantity > 0]


def select_batch(
    batches: Iterable[BatchSnapshot],
    today: Union[date, datetime]
) -> Optional[AllocationSuggestion]:
    """Recommend the batch to draw down next.

    Args:
        batches: Batches of a single product
        today: Reference date injected by the caller

    Returns:
        Suggestion, or None when no batch has stock
    """
    candidates = order_batches(usable_batches(batches))
    if not candidates:
        return None

    selected = candidates[0]
    days = days_until_expiry(selected.expiry_date, today)
    urgency = classify_urgency(days)

    return AllocationSuggestion(
        batch=selected,
        urgency=urgency,
        reason=reason_text(urgency, days),
        days_until_expiry=days,
    )
