# grocery_inventory/services/optimization_service.py
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from grocery_inventory.config import config
from grocery_inventory.core import metrics
from grocery_inventory.core.records import AbcItem, StockLine
from grocery_inventory.core.reorder import NO_USAGE_DAYS
from grocery_inventory.models import InventoryBatch, InventoryTransaction, Product
from grocery_inventory.utils import date_utils
from grocery_inventory.utils.math_utils import safe_divide

logger = logging.getLogger(__name__)

TOP_ITEMS = 20
SLOW_MOVING_THRESHOLD = 5
HIGH_VALUE_SLOW_MOVER = 1000
EXCESS_STOCK_FACTOR = 1.5
EXCESS_DAYS_OF_STOCK = 90
USAGE_WINDOW_DAYS = 30


def _end_of(day: date) -> datetime:
    return datetime.combine(day + timedelta(days=1), time.min)


class OptimizationService:
    """Service for inventory optimization analysis."""

    def __init__(self, session: Session, carrying_cost_rate: Optional[float] = None):
        """Initialize the optimization service.

        Args:
            session: Database session
            carrying_cost_rate: Annual carrying cost as a fraction of value
        """
        self.session = session
        if carrying_cost_rate is None:
            carrying_cost_rate = config.business_rules['holding_cost_rate']
        self.carrying_cost_rate = carrying_cost_rate

    def get_stock_positions(self) -> List[StockLine]:
        """On-hand quantity and value of every active product, highest value first."""
        rows = self.session.query(
            Product,
            func.coalesce(func.sum(InventoryBatch.total_quantity), 0).label('quantity')
        ).outerjoin(
            InventoryBatch, InventoryBatch.product_id == Product.id
        ).filter(
            Product.is_active.is_(True)
        ).group_by(Product.id).all()

        positions = []
        for product, quantity in rows:
            unit_cost = product.unit_cost
            positions.append(StockLine(
                product_id=product.id,
                name=product.name,
                quantity=int(quantity),
                unit_cost=unit_cost,
                total_value=metrics.inventory_valuation(int(quantity), unit_cost),
                reorder_point=product.reorder_point or 0,
                max_stock=product.max_stock or 0
            ))

        positions.sort(key=lambda line: (-line.total_value, line.product_id))
        return positions

    def _consumption_between(self, since: datetime, until: datetime) -> Dict[int, Dict[str, Any]]:
        rows = self.session.query(
            InventoryTransaction.product_id,
            func.sum(-InventoryTransaction.quantity_change).label('movement'),
            func.count(InventoryTransaction.id).label('transactions'),
            func.max(InventoryTransaction.created_at).label('last_movement')
        ).filter(
            InventoryTransaction.quantity_change < 0,
            InventoryTransaction.created_at >= since,
            InventoryTransaction.created_at < until
        ).group_by(InventoryTransaction.product_id).all()

        return {
            row.product_id: {
                'movement': float(row.movement or 0),
                'transactions': row.transactions,
                'last_movement': row.last_movement,
            }
            for row in rows
        }

    def abc_analysis(self) -> Dict[str, Any]:
        """Classify active products A/B/C by their own share of total value.

        Returns:
            Dictionary with totals, per-class count, value and top products,
            and recommendations
        """
        positions = self.get_stock_positions()
        total_value = sum(line.total_value for line in positions)

        items = [
            AbcItem(
                product_id=line.product_id,
                name=line.name,
                inventory_value=round(line.total_value, 2),
                value_percent=round(safe_divide(line.total_value, total_value) * 100, 2),
                classification=metrics.abc_classification(line.total_value, total_value)
            )
            for line in positions
        ]

        classifications = {}
        for label in ('A', 'B', 'C'):
            members = [item for item in items if item.classification == label]
            classifications[label] = {
                'count': len(members),
                'value': round(sum(item.inventory_value for item in members), 2),
                'products': members[:TOP_ITEMS],
            }

        return {
            'total_value': round(total_value, 2),
            'total_products': len(items),
            'classifications': classifications,
            'recommendations': [
                f"Focus on {classifications['A']['count']} A-class items (tight control, frequent monitoring)",
                f"Moderate control for {classifications['B']['count']} B-class items",
                f"Simple reorder system for {classifications['C']['count']} C-class items",
            ],
        }

    def identify_slow_moving(self, days: int = 90, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Find stocked products consuming fewer than ``SLOW_MOVING_THRESHOLD`` units in ``days`` days.

        Args:
            days: Analysis window
            today: Reference date (defaults to the local calendar date)

        Returns:
            Slow movers, highest value first
        """
        today = date_utils.convert_to_date(today) if today else date_utils.today()
        since = datetime.combine(date_utils.lookback_start(today, days), time.min)
        usage = self._consumption_between(since, _end_of(today))

        slow_moving = []
        for line in self.get_stock_positions():
            if line.quantity <= 0:
                continue

            activity = usage.get(line.product_id, {'movement': 0.0, 'transactions': 0, 'last_movement': None})
            if activity['movement'] >= SLOW_MOVING_THRESHOLD:
                continue

            if activity['last_movement'] is None:
                days_without_movement = NO_USAGE_DAYS
            else:
                days_without_movement = date_utils.days_between(activity['last_movement'], today)

            if line.total_value > HIGH_VALUE_SLOW_MOVER:
                recommendation = 'High-value slow mover - consider promotion or discount'
            elif activity['transactions'] == 0:
                recommendation = 'No movement - consider discontinuation'
            else:
                recommendation = 'Monitor and reduce reorder quantity'

            slow_moving.append({
                'product': line,
                'total_movement': activity['movement'],
                'transaction_count': activity['transactions'],
                'days_without_movement': days_without_movement,
                'recommendation': recommendation,
            })

        return slow_moving

    def identify_excess_inventory(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Find products stocked well above their maximum or their recent usage.

        A product is in excess when it holds more than 1.5x its max stock
        (when a max is set) or more than 90 days of stock at the average
        daily usage of the last 30 days.

        Returns:
            Excess items, highest value first
        """
        today = date_utils.convert_to_date(today) if today else date_utils.today()
        since = datetime.combine(date_utils.lookback_start(today, USAGE_WINDOW_DAYS), time.min)
        usage = self._consumption_between(since, _end_of(today))

        excess = []
        for line in self.get_stock_positions():
            movement = usage.get(line.product_id, {}).get('movement', 0.0)
            avg_daily_usage = movement / USAGE_WINDOW_DAYS

            over_max = line.max_stock > 0 and line.quantity > line.max_stock * EXCESS_STOCK_FACTOR
            too_many_days = avg_daily_usage > 0 and line.quantity / avg_daily_usage > EXCESS_DAYS_OF_STOCK
            if not (over_max or too_many_days):
                continue

            if avg_daily_usage > 0:
                days_of_stock = int(line.quantity // avg_daily_usage)
            else:
                days_of_stock = NO_USAGE_DAYS

            excess.append({
                'product': line,
                'avg_daily_usage': round(avg_daily_usage, 2),
                'days_of_stock': days_of_stock,
                'excess_quantity': max(0, line.quantity - (line.max_stock or line.quantity)),
                'tied_up_capital': round(line.total_value, 2),
                'recommendation': 'Consider markdown or promotion to reduce excess',
            })

        return excess

    def calculate_carrying_costs(self) -> Dict[str, Any]:
        positions = self.get_stock_positions()
        total_value = sum(line.total_value for line in positions)
        annual = metrics.carrying_cost(total_value, self.carrying_cost_rate)

        return {
            'total_inventory_value': round(total_value, 2),
            'product_count': len(positions),
            'avg_product_value': round(safe_divide(total_value, len(positions)), 2),
            'carrying_cost_rate': self.carrying_cost_rate,
            'annual_carrying_cost': round(annual, 2),
            'monthly_carrying_cost': round(annual / 12, 2),
            'daily_carrying_cost': round(annual / 365, 2),
            'recommendations': [
                'Reduce slow-moving inventory to lower carrying costs',
                'Implement just-in-time ordering for C-class items',
                'Negotiate better payment terms with suppliers',
            ],
        }

    def generate_optimization_report(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Combine ABC, slow-moving, excess and carrying cost analysis.

        Args:
            today: Reference date (defaults to the local calendar date)

        Returns:
            Dictionary with summary, each analysis and prioritized actions
        """
        today = date_utils.convert_to_date(today) if today else date_utils.today()

        abc = self.abc_analysis()
        slow_moving = self.identify_slow_moving(today=today)
        excess = self.identify_excess_inventory(today=today)
        carrying_costs = self.calculate_carrying_costs()

        excess_value = sum(item['product'].total_value for item in excess)

        top_recommendations = []
        if slow_moving:
            top_recommendations.append({
                'priority': 'high',
                'action': 'Address slow-moving inventory',
                'impact': f"{len(slow_moving)} items with minimal movement",
            })
        if excess:
            top_recommendations.append({
                'priority': 'high',
                'action': 'Reduce excess inventory',
                'impact': f"${round(excess_value)} in excess stock",
            })
        if abc['classifications']['A']['count'] > 0:
            top_recommendations.append({
                'priority': 'medium',
                'action': 'Optimize A-class item management',
                'impact': f"{abc['classifications']['A']['count']} high-value items",
            })

        logger.info(
            f"Optimization report: {len(slow_moving)} slow movers, {len(excess)} excess items"
        )

        return {
            'summary': {
                'total_inventory_value': carrying_costs['total_inventory_value'],
                'slow_moving_items': len(slow_moving),
                'excess_inventory_value': round(excess_value, 2),
                'potential_annual_savings': round(metrics.carrying_cost(excess_value, self.carrying_cost_rate), 2),
            },
            'abc': abc,
            'slow_moving': slow_moving[:TOP_ITEMS],
            'excess': excess[:TOP_ITEMS],
            'carrying_costs': carrying_costs,
            'top_recommendations': top_recommendations,
        }
