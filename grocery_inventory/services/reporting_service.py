# grocery_inventory/services/reporting_service.py
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from grocery_inventory.config import config
from grocery_inventory.core.allocation import classify_urgency, days_until_expiry
from grocery_inventory.core.records import (
    BatchSnapshot, ExpiringBatch, GroupSummary, StockLine, Urgency
)
from grocery_inventory.exceptions import NotImplementedFeatureError, ReportingError
from grocery_inventory.models import Category, InventoryBatch, Product, Supplier
from grocery_inventory.utils import date_utils

logger = logging.getLogger(__name__)


class ReportingService:
    """Service for generating inventory reports."""

    def __init__(self, session: Session):
        """Initialize the reporting service.

        Args:
            session: Database session
        """
        self.session = session

    def _quantities_by_product(self) -> Dict[int, int]:
        try:
            rows = self.session.query(
                InventoryBatch.product_id,
                func.sum(InventoryBatch.total_quantity)
            ).group_by(InventoryBatch.product_id).all()
        except SQLAlchemyError as e:
            logger.error(f"Error reading stock levels: {str(e)}")
            raise ReportingError(f"Failed to read stock levels: {str(e)}")
        return {product_id: int(quantity or 0) for product_id, quantity in rows}

    def _stock_lines(self) -> List[StockLine]:
        quantities = self._quantities_by_product()
        rows = self.session.query(
            Product,
            Category.name.label('category_name'),
            Supplier.name.label('supplier_name')
        ).outerjoin(
            Category, Product.category_id == Category.id
        ).outerjoin(
            Supplier, Product.supplier_id == Supplier.id
        ).all()

        lines = []
        for product, category_name, supplier_name in rows:
            quantity = quantities.get(product.id, 0)
            unit_cost = product.unit_cost
            lines.append(StockLine(
                product_id=product.id,
                name=product.name,
                category=category_name,
                supplier=supplier_name,
                quantity=quantity,
                unit_cost=round(unit_cost, 4),
                total_value=round(quantity * unit_cost, 2),
                reorder_point=product.reorder_point or 0,
                max_stock=product.max_stock or 0
            ))
        return lines

    def stock_value_report(self) -> Dict[str, Any]:
        """Generate stock value report.

        Returns:
            Dictionary with per-product lines (highest value first),
            total value and total items
        """
        lines = sorted(self._stock_lines(), key=lambda line: (-line.total_value, line.product_id))

        return {
            'products': lines,
            'total_value': round(sum(line.total_value for line in lines), 2),
            'total_items': sum(line.quantity for line in lines),
        }

    def expiration_report(self, today: Optional[date] = None) -> Dict[str, List[ExpiringBatch]]:
        """Generate expiration report for dated batches with stock.

        Args:
            today: Reference date (defaults to the local calendar date)

        Returns:
            Dictionary with expired, urgent and soon buckets plus all dated batches
        """
        today = date_utils.convert_to_date(today) if today else date_utils.today()

        rows = self.session.query(InventoryBatch, Product.name).join(
            Product, InventoryBatch.product_id == Product.id
        ).filter(
            InventoryBatch.expiry_date.isnot(None),
            InventoryBatch.total_quantity > 0
        ).order_by(
            InventoryBatch.expiry_date.asc(),
            InventoryBatch.id.asc()
        ).all()

        report = {'expired': [], 'urgent': [], 'soon': [], 'all': []}

        for batch, product_name in rows:
            days = days_until_expiry(batch.expiry_date, today)
            urgency = classify_urgency(days)
            entry = ExpiringBatch(
                batch=BatchSnapshot.from_model(batch),
                product_name=product_name,
                days_until_expiry=days,
                urgency=urgency
            )

            report['all'].append(entry)
            if urgency is not Urgency.NORMAL:
                report[urgency.value].append(entry)

        return report

    def low_stock_report(self) -> Dict[str, List[StockLine]]:
        """Products below their reorder point, lowest quantity first.

        Products without a reorder point are never low.
        """
        lines = [
            line for line in self._stock_lines()
            if line.reorder_point > 0 and line.quantity < line.reorder_point
        ]
        lines.sort(key=lambda line: (line.quantity, line.product_id))
        return {'products': lines}

    def low_stock_alerts(self, threshold: Optional[int] = None) -> List[StockLine]:
        """Products with some stock left but fewer than ``threshold`` units.

        Args:
            threshold: Unit threshold (defaults to ``BUSINESS_RULES.low_stock_threshold``)

        Returns:
            Stock lines, lowest quantity first; out-of-stock products are excluded
        """
        if threshold is None:
            threshold = config.business_rules['low_stock_threshold']

        lines = [line for line in self._stock_lines() if 0 < line.quantity < threshold]
        lines.sort(key=lambda line: (line.quantity, line.product_id))
        return lines


    def _group_summary(self, name: str, products, quantities: Dict[int, int], color=None) -> GroupSummary:
        total_items = 0
        total_value = 0.0
        for product in products:
            quantity = quantities.get(product.id, 0)
            total_items += quantity
            total_value += quantity * product.unit_cost

        return GroupSummary(
            name=name,
            product_count=len(products),
            total_items=total_items,
            total_value=round(total_value, 2),
            color=color
        )

    def supplier_performance_report(self) -> List[GroupSummary]:
        """Stock totals per active supplier, highest value first."""
        quantities = self._quantities_by_product()
        suppliers = self.session.query(Supplier).filter(Supplier.is_active.is_(True)).all()

        summaries = [
            self._group_summary(supplier.name, supplier.products, quantities)
            for supplier in suppliers
        ]
        summaries.sort(key=lambda summary: (-summary.total_value, summary.name))
        return summaries

    def category_breakdown_report(self) -> List[GroupSummary]:
        """Stock totals per category, highest value first."""
        quantities = self._quantities_by_product()
        categories = self.session.query(Category).all()

        summaries = [
            self._group_summary(category.name, category.products, quantities, color=category.color)
            for category in categories
        ]
        summaries.sort(key=lambda summary: (-summary.total_value, summary.name))
        return summaries

    def inventory_turnover_report(self, start_date: date, end_date: date) -> Dict[str, Any]:
        """Inventory turnover over a period.

        Requires cost-of-goods-sold tracking, which the ledger does not carry yet.
        """
        logger.warning(f"Inventory turnover report requested for {start_date} to {end_date}")
        raise NotImplementedFeatureError(
            "Inventory turnover report not yet implemented",
            details={'start_date': str(start_date), 'end_date': str(end_date)}
        )
