# grocery_inventory/core/metrics.py
"""
Inventory formulas.

Every ratio guards its denominator and returns 0 instead of raising, since
callers display these values directly.
"""
import math

from ..utils.math_utils import safe_divide

ABC_A_THRESHOLD = 80.0
ABC_B_THRESHOLD = 15.0
DEFAULT_CARRYING_COST_RATE = 0.25
DEFAULT_SERVICE_Z = 1.65


def reorder_point(
    average_daily_usage: float,
    lead_time_days: float,
    safety_stock: float = 0
) -> float:
    """Stock level at which a new order should be placed.

    Args:
        average_daily_usage: Average units consumed per day
        lead_time_days: Supplier lead time in days
        safety_stock: Buffer units

    Returns:
        Reorder point in units
    """
    return (average_daily_usage * lead_time_days) + safety_stock


def safety_stock(
    max_daily_usage: float,
    avg_daily_usage: float,
    max_lead_time: float,
    avg_lead_time: float,
    clamp: bool = False
) -> float:
    """Max-minus-average safety stock.

    The result is negative when average usage over average lead time exceeds
    the maximum case; that is returned as-is unless ``clamp`` is set.

    Args:
        max_daily_usage: Highest observed daily usage
        avg_daily_usage: Average daily usage
        max_lead_time: Longest observed lead time in days
        avg_lead_time: Average lead time in days
        clamp: Floor the result at zero

    Returns:
        Safety stock in units
    """
    value = (max_daily_usage * max_lead_time) - (avg_daily_usage * avg_lead_time)
    if clamp:
        return max(0, value)
    return value


def economic_order_quantity(
    annual_demand: float,
    order_cost: float,
    holding_cost_per_unit: float
) -> float:
    """Order quantity minimising ordering plus holding cost (0 when holding cost is 0)."""
    if holding_cost_per_unit == 0:
        return 0
    return math.sqrt((2 * annual_demand * order_cost) / holding_cost_per_unit)


def days_inventory_outstanding(
    average_inventory: float,
    cost_of_goods_sold: float,
    days: int = 365
) -> float:
    """Days on hand; 0 when nothing was sold."""
    if cost_of_goods_sold == 0:
        return 0
    return (average_inventory / cost_of_goods_sold) * days


def inventory_turnover(cost_of_goods_sold: float, average_inventory_value: float) -> float:
    return safe_divide(cost_of_goods_sold, average_inventory_value)


def abc_classification(item_value: float, total_value: float) -> str:
    """Classify one item by its own share of total value.

    An item is 'A' at 80% or more of the total, 'B' at 15% or more, else
    'C'. This is a per-item threshold, not a cumulative Pareto split.

    Args:
        item_value: Inventory value of the item
        total_value: Inventory value of all items

    Returns:
        'A', 'B' or 'C'
    """
    percentage = safe_divide(item_value, total_value) * 100

    if percentage >= ABC_A_THRESHOLD:
        return 'A'
    if percentage >= ABC_B_THRESHOLD:
        return 'B'
    return 'C'


def stockout_rate(stockout_days: float, total_days: float) -> float:
    return safe_divide(stockout_days, total_days) * 100


def fill_rate(orders_filled: float, total_orders: float) -> float:
    return safe_divide(orders_filled, total_orders) * 100


def carrying_cost(inventory_value: float, carrying_cost_rate: float = DEFAULT_CARRYING_COST_RATE) -> float:
    """Annual cost of holding inventory (typically 20-30% of value)."""
    return inventory_value * carrying_cost_rate


def gross_margin(revenue: float, cost_of_goods_sold: float) -> float:
    return safe_divide(revenue - cost_of_goods_sold, revenue) * 100


def inventory_accuracy(actual_count: float, system_count: float) -> float:
    """Percentage agreement between a physical count and the system count."""
    if system_count == 0:
        return 0
    variance = abs(actual_count - system_count)
    return ((system_count - variance) / system_count) * 100


def service_level_stock(demand: float, standard_deviation: float, z_score: float = DEFAULT_SERVICE_Z) -> float:
    """Stock needed to cover demand at the service level of ``z_score`` (1.65 ~ 95%)."""
    return demand + (z_score * standard_deviation)


def shrinkage_rate(expected_inventory: float, actual_inventory: float) -> float:
    return safe_divide(expected_inventory - actual_inventory, expected_inventory) * 100


def dead_stock_percentage(dead_stock_value: float, total_inventory_value: float) -> float:
    return safe_divide(dead_stock_value, total_inventory_value) * 100


def inventory_valuation(quantity: float, unit_cost: float) -> float:
    return quantity * unit_cost


def average_inventory(beginning_inventory: float, ending_inventory: float) -> float:
    return (beginning_inventory + ending_inventory) / 2


def cagr(beginning_value: float, ending_value: float, years: float) -> float:
    """Compound annual growth rate as a percentage."""
    if beginning_value == 0 or years == 0:
        return 0
    ratio = ending_value / beginning_value
    if ratio < 0:
        # No real root for a sign change
        return 0
    return (ratio ** (1 / years) - 1) * 100
