# grocery_inventory/services/consumption_service.py
import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from grocery_inventory.core.records import ConsumptionRecord
from grocery_inventory.exceptions import ForecastError
from grocery_inventory.models import InventoryTransaction
from grocery_inventory.utils import date_utils

logger = logging.getLogger(__name__)


class ConsumptionService:
    """Service for reading consumption history from the transaction ledger."""

    def __init__(self, session: Session):
        """Initialize the consumption service.

        Args:
            session: Database session
        """
        self.session = session

    def get_daily_usage(
        self,
        product_id: int,
        lookback_days: int = 90,
        today: Optional[date] = None
    ) -> List[ConsumptionRecord]:
        """Get units consumed per day over a lookback window.

        Only days with recorded consumption are returned.

        Args:
            product_id: Product ID
            lookback_days: Window length in days, ending today
            today: Reference date (defaults to the local calendar date)

        Returns:
            Consumption records ordered by date; empty when there is no history
        """
        today = date_utils.convert_to_date(today) if today else date_utils.today()
        window_start = datetime.combine(date_utils.lookback_start(today, lookback_days), time.min)
        window_end = datetime.combine(today + timedelta(days=1), time.min)

        day = func.date(InventoryTransaction.created_at)
        try:
            rows = self.session.query(
                day.label('day'),
                func.sum(-InventoryTransaction.quantity_change).label('usage')
            ).filter(
                InventoryTransaction.product_id == product_id,
                InventoryTransaction.quantity_change < 0,
                InventoryTransaction.created_at >= window_start,
                InventoryTransaction.created_at < window_end
            ).group_by(day).order_by(day).all()
        except SQLAlchemyError as e:
            logger.error(f"Error loading consumption history for product {product_id}: {str(e)}")
            raise ForecastError(f"Failed to load consumption history for product {product_id}: {str(e)}")

        return [
            ConsumptionRecord(date=date_utils.convert_to_date(row.day), quantity=float(row.usage))
            for row in rows
        ]

    def get_daily_series(
        self,
        product_id: int,
        lookback_days: int = 90,
        today: Optional[date] = None
    ) -> List[float]:
        """Get a gap-free daily consumption series for forecasting.

        The series runs from the first day with recorded consumption in the
        window through ``today``; days without consumption count as 0.

        Returns:
            Daily quantities, oldest first; empty when there is no history
        """
        today = date_utils.convert_to_date(today) if today else date_utils.today()
        records = self.get_daily_usage(product_id, lookback_days, today)
        if not records:
            return []

        usage = {record.date: record.quantity for record in records}
        series = [usage.get(day, 0.0) for day in date_utils.date_range(records[0].date, today)]

        logger.debug(f"Product {product_id}: {len(records)} consumption days, series of {len(series)}")
        return series
