# grocery_inventory/core/reorder.py
import math
from typing import Iterable, List, Optional

from . import metrics
from .records import ReorderRecommendation, ReorderStatus, StockoutRisk, Urgency

NO_USAGE_DAYS = 999
CRITICAL_FRACTION = 0.5
MEDIUM_RISK_FACTOR = 1.5
DAYS_PER_YEAR = 365


def reorder_status(current_stock: float, reorder_point: float) -> ReorderStatus:
    """Stock position relative to zero and the reorder point.

    Args:
        current_stock: Units on hand
        reorder_point: Units at which to reorder

    Returns:
        out_of_stock, critical (at or below half the reorder point), low
        (at or below the reorder point) or adequate
    """
    if current_stock <= 0:
        return ReorderStatus.OUT_OF_STOCK
    if reorder_point <= 0:
        return ReorderStatus.ADEQUATE
    if current_stock <= reorder_point * CRITICAL_FRACTION:
        return ReorderStatus.CRITICAL
    if current_stock <= reorder_point:
        return ReorderStatus.LOW
    return ReorderStatus.ADEQUATE


def days_until_stockout(current_stock: float, avg_daily_demand: float) -> int:
    """Whole days of cover; ``NO_USAGE_DAYS`` when nothing is being consumed."""
    if avg_daily_demand <= 0:
        return NO_USAGE_DAYS
    return max(0, math.floor(current_stock / avg_daily_demand))


def stockout_risk(current_stock: float, reorder_point: float) -> StockoutRisk:
    if current_stock <= reorder_point:
        return StockoutRisk.HIGH
    if current_stock <= reorder_point * MEDIUM_RISK_FACTOR:
        return StockoutRisk.MEDIUM
    return StockoutRisk.LOW


def statistical_safety_stock(demand_std: float, lead_time_days: float, service_z: float) -> int:
    """Buffer covering daily demand variation over the lead time."""
    if demand_std <= 0 or lead_time_days <= 0:
        return 0
    return math.ceil(service_z * demand_std * math.sqrt(lead_time_days))


def build_reorder_recommendation(
    product_id: int,
    current_stock: float,
    avg_daily_demand: float,
    demand_std: float,
    lead_time_days: int,
    unit_cost: float,
    ordering_cost: float = 25.0,
    holding_cost_rate: float = 0.25,
    service_z: float = metrics.DEFAULT_SERVICE_Z,
    product_name: Optional[str] = None
) -> ReorderRecommendation:
    """Decide whether a product needs reordering and how much to order.

    Args:
        product_id: Product ID
        current_stock: Units on hand across all batches
        avg_daily_demand: Forecast daily consumption
        demand_std: Standard deviation of daily consumption
        lead_time_days: Supplier lead time
        unit_cost: Cost of one unit; a unit cost of 0 is treated as 1
        ordering_cost: Fixed cost of placing one order
        holding_cost_rate: Annual holding cost as a fraction of unit cost
        service_z: Service level z-score for the safety buffer
        product_name: Optional display name

    Returns:
        Reorder recommendation
    """
    buffer = statistical_safety_stock(demand_std, lead_time_days, service_z)
    point = math.ceil(metrics.reorder_point(avg_daily_demand, lead_time_days, buffer))

    holding_cost = holding_cost_rate * (unit_cost if unit_cost > 0 else 1.0)
    eoq = math.ceil(metrics.economic_order_quantity(
        avg_daily_demand * DAYS_PER_YEAR, ordering_cost, holding_cost
    ))

    days_left = days_until_stockout(current_stock, avg_daily_demand)

    return ReorderRecommendation(
        product_id=product_id,
        product_name=product_name,
        current_stock=current_stock,
        reorder_point=point,
        safety_stock=buffer,
        optimal_order_quantity=eoq,
        lead_time_days=lead_time_days,
        avg_daily_demand=round(avg_daily_demand, 1),
        days_until_stockout=days_left,
        stockout_risk=stockout_risk(current_stock, point),
        status=reorder_status(current_stock, point),
        should_reorder=current_stock <= point,
        urgency=Urgency.URGENT if days_left <= lead_time_days else Urgency.NORMAL,
    )


def rank_recommendations(recommendations: Iterable[ReorderRecommendation]) -> List[ReorderRecommendation]:
    """Urgent first, then soonest stockout first."""
    return sorted(
        recommendations,
        key=lambda rec: (0 if rec.urgency is Urgency.URGENT else 1, rec.days_until_stockout)
    )
