# grocery_inventory/services/prediction_service.py
import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from grocery_inventory.cache import NullCache
from grocery_inventory.config import config
from grocery_inventory.core.demand_forecast import analyze_demand_pattern, forecast_demand
from grocery_inventory.core.records import DemandForecast, DemandPattern, ReorderRecommendation
from grocery_inventory.core.reorder import build_reorder_recommendation, rank_recommendations
from grocery_inventory.exceptions import InventoryError, NotFoundError
from grocery_inventory.models import InventoryBatch, Product
from grocery_inventory.services.consumption_service import ConsumptionService
from grocery_inventory.utils import date_utils
from grocery_inventory.utils.math_utils import sample_std

logger = logging.getLogger(__name__)


class PredictionService:
    """Service for demand forecasts and reorder recommendations."""

    def __init__(
        self,
        session: Session,
        cache=None,
        business_rules: Optional[Dict] = None,
        forecast_ttl: Optional[float] = None
    ):
        """Initialize the prediction service.

        Args:
            session: Database session
            cache: Cache with get/set/invalidate_prefix; nothing is cached when None
            business_rules: Overrides for ``config.business_rules``
            forecast_ttl: Lifetime of cached results in seconds
        """
        self.session = session
        self.cache = cache if cache is not None else NullCache()
        self.rules = dict(config.business_rules)
        if business_rules:
            self.rules.update(business_rules)
        self.forecast_ttl = forecast_ttl if forecast_ttl is not None else config.cache_config['forecast_ttl']
        self.consumption = ConsumptionService(session)

    def _resolve_today(self, today: Optional[date]) -> date:
        return date_utils.convert_to_date(today) if today else date_utils.today()

    def get_product(self, product_id: int) -> Product:
        product = self.session.query(Product).filter(Product.id == product_id).first()
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return product

    def get_current_stock(self, product_id: int) -> int:
        """Units on hand across all batches of a product."""
        total = self.session.query(
            func.coalesce(func.sum(InventoryBatch.total_quantity), 0)
        ).filter(InventoryBatch.product_id == product_id).scalar()
        return int(total or 0)

    def predict_demand(
        self,
        product_id: int,
        horizon: Optional[int] = None,
        lookback: Optional[int] = None,
        confidence_level: float = 0.95,
        method: str = 'moving_average',
        today: Optional[date] = None
    ) -> DemandForecast:
        """Forecast demand for a product.

        Args:
            product_id: Product ID
            horizon: Days to forecast
            lookback: Days of history to use
            confidence_level: Coverage of the confidence interval
            method: Forecast method
            today: Reference date (defaults to the local calendar date)

        Returns:
            Demand forecast; a zero forecast when there is no history
        """
        horizon = horizon or self.rules['forecast_horizon_days']
        lookback = lookback or self.rules['forecast_lookback_days']
        today = self._resolve_today(today)

        key = f"forecast:{product_id}:{horizon}:{lookback}:{confidence_level}:{method}:{today.isoformat()}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        series = self.consumption.get_daily_series(product_id, lookback, today)
        forecast = forecast_demand(
            series,
            horizon_days=horizon,
            seasonal_period=self.rules['seasonal_period'],
            confidence_level=confidence_level,
            method=method,
            product_id=product_id
        )

        self.cache.set(key, forecast, ttl=self.forecast_ttl)
        return forecast

    def analyze_demand_patterns(
        self,
        product_id: int,
        lookback: Optional[int] = None,
        today: Optional[date] = None
    ) -> DemandPattern:
        lookback = lookback or self.rules['forecast_lookback_days']
        series = self.consumption.get_daily_series(product_id, lookback, self._resolve_today(today))
        return analyze_demand_pattern(series, product_id=product_id)

    def calculate_reorder_point(
        self,
        product_id: int,
        today: Optional[date] = None
    ) -> ReorderRecommendation:
        """Calculate reorder point, order quantity and stockout risk for a product.

        Only the demand forecast is cached; stock is read on every call.

        Args:
            product_id: Product ID
            today: Reference date (defaults to the local calendar date)

        Returns:
            Reorder recommendation
        """
        today = self._resolve_today(today)
        product = self.get_product(product_id)
        horizon = self.rules['forecast_horizon_days']
        lookback = self.rules['forecast_lookback_days']

        forecast = self.predict_demand(product_id, horizon=horizon, lookback=lookback, today=today)
        series = self.consumption.get_daily_series(product_id, lookback, today)

        recommendation = build_reorder_recommendation(
            product_id=product.id,
            product_name=product.name,
            current_stock=self.get_current_stock(product_id),
            avg_daily_demand=forecast.daily_average,
            demand_std=sample_std(series),
            lead_time_days=product.lead_time_days or self.rules['default_lead_time'],
            unit_cost=product.unit_cost,
            ordering_cost=self.rules['ordering_cost'],
            holding_cost_rate=self.rules['holding_cost_rate'],
            service_z=self.rules['service_level_z']
        )

        return recommendation

    def get_reorder_recommendations(self, today: Optional[date] = None) -> List[ReorderRecommendation]:
        """Get products that should be reordered, most urgent first.

        Products whose calculation fails are logged and skipped.
        """
        today = self._resolve_today(today)
        product_ids = [
            row.id for row in self.session.query(Product.id).filter(Product.is_active.is_(True)).all()
        ]

        recommendations = []
        for product_id in product_ids:
            try:
                recommendation = self.calculate_reorder_point(product_id, today=today)
            except InventoryError as e:
                logger.error(f"Error calculating reorder for product {product_id}: {str(e)}")
                continue

            if recommendation.should_reorder:
                recommendations.append(recommendation)

        logger.info(f"{len(recommendations)} of {len(product_ids)} active products need reordering")
        return rank_recommendations(recommendations)

    def invalidate_product(self, product_id: int) -> int:
        """Drop cached forecasts for a product.

        Returns:
            Number of cache entries removed
        """
        return self.cache.invalidate_prefix(f"forecast:{product_id}:")
