"""
Typed value records produced and consumed by the decision engine.

Every query result and every computed answer crosses layer boundaries as one
of these records instead of a loose dict; ``to_dict()`` gives the JSON-ready
shape used by outer layers.
"""
import enum
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Tuple


class Urgency(str, enum.Enum):
    """Urgency of drawing down a batch, from days until expiry."""
    EXPIRED = 'expired'
    URGENT = 'urgent'
    SOON = 'soon'
    NORMAL = 'normal'

    def __str__(self):
        return self.value


class Trend(str, enum.Enum):
    INCREASING = 'increasing'
    DECREASING = 'decreasing'
    STABLE = 'stable'

    def __str__(self):
        return self.value


class Confidence(str, enum.Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'

    def __str__(self):
        return self.value


class ReorderStatus(str, enum.Enum):
    ADEQUATE = 'adequate'
    LOW = 'low'
    CRITICAL = 'critical'
    OUT_OF_STOCK = 'out_of_stock'

    def __str__(self):
        return self.value


class StockoutRisk(str, enum.Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'

    def __str__(self):
        return self.value


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class BatchSnapshot:
    """Point-in-time view of one inventory batch."""

    id: int
    product_id: int
    total_quantity: int
    received_date: date
    expiry_date: Optional[date] = None
    location: Optional[str] = None
    case_quantity: int = 0
    batch_number: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.total_quantity <= 0

    @classmethod
    def from_model(cls, batch) -> 'BatchSnapshot':
        """Build a snapshot from an ``InventoryBatch`` ORM row."""
        return cls(
            id=batch.id,
            product_id=batch.product_id,
            total_quantity=batch.total_quantity or 0,
            received_date=batch.received_date,
            expiry_date=batch.expiry_date,
            location=batch.location or None,
            case_quantity=batch.case_quantity or 0,
            batch_number=batch.batch_number,
            notes=batch.notes or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'product_id': self.product_id,
            'batch_number': self.batch_number,
            'case_quantity': self.case_quantity,
            'total_quantity': self.total_quantity,
            'expiry_date': _iso(self.expiry_date),
            'location': self.location,
            'received_date': _iso(self.received_date),
            'notes': self.notes,
        }


@dataclass(frozen=True)
class AllocationSuggestion:
    """Which batch to draw down next, and why."""

    batch: BatchSnapshot
    urgency: Urgency
    reason: str
    days_until_expiry: Optional[int] = None

    @property
    def batch_id(self) -> int:
        return self.batch.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'batch_id': self.batch.id,
            'suggestion': self.batch.to_dict(),
            'urgency': self.urgency.value,
            'reason': self.reason,
            'days_until_expiry': self.days_until_expiry,
        }


@dataclass(frozen=True)
class ConsumptionRecord:
    """Quantity consumed for one product on one day."""

    date: date
    quantity: float

    def to_dict(self) -> Dict[str, Any]:
        return {'date': _iso(self.date), 'quantity': self.quantity}


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: float
    upper: float
    margin: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {'lower': self.lower, 'upper': self.upper, 'margin': self.margin}


@dataclass(frozen=True)
class Seasonality:
    """Result of periodic-aggregation seasonality detection."""

    detected: bool
    period: Optional[int] = None
    strength: float = 0.0
    pattern: Tuple[float, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        if not self.detected:
            return {'detected': False, 'period': self.period, 'strength': self.strength}
        return {
            'detected': True,
            'period': self.period,
            'strength': self.strength,
            'pattern': list(self.pattern),
        }


@dataclass(frozen=True)
class DemandForecast:
    """Near-term demand projection for one product."""

    daily_average: float
    horizon_days: int
    horizon_forecast: float
    trend: Trend
    confidence_interval: ConfidenceInterval
    confidence: Confidence
    confidence_percent: int
    seasonality: Seasonality
    method: str = 'moving_average'
    history_points: int = 0
    recommendations: Tuple[str, ...] = ()
    product_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'daily_average': self.daily_average,
            'horizon_days': self.horizon_days,
            'horizon_forecast': self.horizon_forecast,
            'trend': self.trend.value,
            'confidence_interval': self.confidence_interval.to_dict(),
            'confidence': self.confidence.value,
            'confidence_percent': self.confidence_percent,
            'seasonality': self.seasonality.to_dict(),
            'method': self.method,
            'history_points': self.history_points,
            'recommendations': list(self.recommendations),
        }


@dataclass(frozen=True)
class ReorderRecommendation:
    """Whether and how much to reorder for one product."""

    product_id: int
    current_stock: float
    reorder_point: int
    safety_stock: int
    optimal_order_quantity: int
    lead_time_days: int
    avg_daily_demand: float
    days_until_stockout: int
    stockout_risk: StockoutRisk
    status: ReorderStatus
    should_reorder: bool
    urgency: Urgency
    product_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'current_stock': self.current_stock,
            'reorder_point': self.reorder_point,
            'safety_stock': self.safety_stock,
            'optimal_order_quantity': self.optimal_order_quantity,
            'lead_time_days': self.lead_time_days,
            'avg_daily_demand': self.avg_daily_demand,
            'days_until_stockout': self.days_until_stockout,
            'stockout_risk': self.stockout_risk.value,
            'status': self.status.value,
            'should_reorder': self.should_reorder,
            'urgency': self.urgency.value,
        }


@dataclass(frozen=True)
class AbcItem:
    """One product's ABC class and its share of total inventory value."""

    product_id: int
    name: str
    inventory_value: float
    value_percent: float
    classification: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'inventory_value': self.inventory_value,
            'value_percent': self.value_percent,
            'classification': self.classification,
        }


@dataclass(frozen=True)
class DemandPattern:
    """Qualitative description of a consumption series."""

    pattern: str
    description: str
    volatility: Optional[str] = None
    coefficient_of_variation: float = 0.0
    weekly_seasonality: bool = False
    monthly_seasonality: bool = False
    average_demand: float = 0.0
    product_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'pattern': self.pattern,
            'description': self.description,
            'volatility': self.volatility,
            'coefficient_of_variation': self.coefficient_of_variation,
            'weekly_seasonality': self.weekly_seasonality,
            'monthly_seasonality': self.monthly_seasonality,
            'average_demand': self.average_demand,
        }


@dataclass(frozen=True)
class ExpiringBatch:
    """A dated batch with its product name and expiry classification."""

    batch: BatchSnapshot
    product_name: str
    days_until_expiry: int
    urgency: Urgency

    def to_dict(self) -> Dict[str, Any]:
        result = self.batch.to_dict()
        result.update({
            'product_name': self.product_name,
            'days_until_expiry': self.days_until_expiry,
            'urgency': self.urgency.value,
        })
        return result


@dataclass(frozen=True)
class StockLine:
    """On-hand stock and value of one product."""

    product_id: int
    name: str
    quantity: int
    unit_cost: float
    total_value: float
    category: Optional[str] = None
    supplier: Optional[str] = None
    reorder_point: int = 0
    max_stock: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'category': self.category,
            'supplier': self.supplier,
            'quantity': self.quantity,
            'unit_cost': self.unit_cost,
            'total_value': self.total_value,
            'reorder_point': self.reorder_point,
            'max_stock': self.max_stock,
        }


@dataclass(frozen=True)
class GroupSummary:
    """Stock totals for one supplier or category."""

    name: str
    product_count: int
    total_items: int
    total_value: float
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'name': self.name,
            'product_count': self.product_count,
            'total_items': self.total_items,
            'total_value': self.total_value,
        }
        if self.color is not None:
            result['color'] = self.color
        return result
