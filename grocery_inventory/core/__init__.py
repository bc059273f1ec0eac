from .records import (
    Urgency, Trend, Confidence, ReorderStatus, StockoutRisk,
    BatchSnapshot, AllocationSuggestion, ConsumptionRecord, ConfidenceInterval,
    Seasonality, DemandForecast, ReorderRecommendation, AbcItem, DemandPattern,
    ExpiringBatch, StockLine, GroupSummary
)
from .snapshot import order_batches, fefo_sort_key
from .allocation import select_batch, classify_urgency, days_until_expiry, reason_text
from .metrics import (
    reorder_point, safety_stock, economic_order_quantity, days_inventory_outstanding,
    inventory_turnover, abc_classification
)
from .demand_forecast import (
    forecast_demand, adaptive_forecast, detect_seasonality, detect_trend, analyze_demand_pattern
)
from .reorder import build_reorder_recommendation, reorder_status, rank_recommendations

__all__ = [
    'Urgency',
    'Trend',
    'Confidence',
    'ReorderStatus',
    'StockoutRisk',
    'BatchSnapshot',
    'AllocationSuggestion',
    'ConsumptionRecord',
    'ConfidenceInterval',
    'Seasonality',
    'DemandForecast',
    'ReorderRecommendation',
    'AbcItem',
    'DemandPattern',
    'ExpiringBatch',
    'StockLine',
    'GroupSummary',
    'order_batches',
    'fefo_sort_key',
    'select_batch',
    'classify_urgency',
    'days_until_expiry',
    'reason_text',
    'reorder_point',
    'safety_stock',
    'economic_order_quantity',
    'days_inventory_outstanding',
    'inventory_turnover',
    'abc_classification',
    'forecast_demand',
    'adaptive_forecast',
    'detect_seasonality',
    'detect_trend',
    'analyze_demand_pattern',
    'build_reorder_recommendation',
    'reorder_status',
    'rank_recommendations'
]
