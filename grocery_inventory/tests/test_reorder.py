"""
Unit tests for reorder status and recommendations.
"""
import unittest

from grocery_inventory.core.records import ReorderStatus, StockoutRisk, Urgency
from grocery_inventory.core.reorder import (
    NO_USAGE_DAYS,
    build_reorder_recommendation,
    days_until_stockout,
    rank_recommendations,
    reorder_status,
    statistical_safety_stock,
    stockout_risk,
)


class TestReorderStatus(unittest.TestCase):
    """Test cases for reorder status classification."""

    def test_status_boundaries(self):
        self.assertEqual(reorder_status(0, 10), ReorderStatus.OUT_OF_STOCK)
        self.assertEqual(reorder_status(-3, 10), ReorderStatus.OUT_OF_STOCK)
        self.assertEqual(reorder_status(5, 10), ReorderStatus.CRITICAL)
        self.assertEqual(reorder_status(6, 10), ReorderStatus.LOW)
        self.assertEqual(reorder_status(10, 10), ReorderStatus.LOW)
        self.assertEqual(reorder_status(11, 10), ReorderStatus.ADEQUATE)

    def test_no_reorder_point(self):
        self.assertEqual(reorder_status(1, 0), ReorderStatus.ADEQUATE)
        self.assertEqual(reorder_status(0, 0), ReorderStatus.OUT_OF_STOCK)

    def test_days_until_stockout(self):
        self.assertEqual(days_until_stockout(10, 0), NO_USAGE_DAYS)
        self.assertEqual(days_until_stockout(10, 3), 3)
        self.assertEqual(days_until_stockout(0, 3), 0)

    def test_stockout_risk(self):
        self.assertEqual(stockout_risk(10, 10), StockoutRisk.HIGH)
        self.assertEqual(stockout_risk(15, 10), StockoutRisk.MEDIUM)
        self.assertEqual(stockout_risk(16, 10), StockoutRisk.LOW)

    def test_statistical_safety_stock(self):
        self.assertEqual(statistical_safety_stock(2, 4, 1.65), 7)
        self.assertEqual(statistical_safety_stock(0, 4, 1.65), 0)


class TestReorderRecommendation(unittest.TestCase):
    """Test cases for build_reorder_recommendation."""

    def test_recommendation(self):
        rec = build_reorder_recommendation(
            product_id=1,
            current_stock=20,
            avg_daily_demand=5,
            demand_std=2,
            lead_time_days=4,
            unit_cost=2.0
        )

        self.assertEqual(rec.safety_stock, 7)
        self.assertEqual(rec.reorder_point, 27)
        # sqrt(2 * 1825 * 25 / 0.5)
        self.assertEqual(rec.optimal_order_quantity, 428)
        self.assertEqual(rec.days_until_stockout, 4)
        self.assertEqual(rec.urgency, Urgency.URGENT)
        self.assertEqual(rec.stockout_risk, StockoutRisk.HIGH)
        self.assertEqual(rec.status, ReorderStatus.LOW)
        self.assertTrue(rec.should_reorder)

    def test_zero_unit_cost_treated_as_one(self):
        rec = build_reorder_recommendation(
            product_id=1,
            current_stock=1000,
            avg_daily_demand=5,
            demand_std=0,
            lead_time_days=7,
            unit_cost=0
        )

        # sqrt(2 * 1825 * 25 / 0.25)
        self.assertEqual(rec.optimal_order_quantity, 605)
        self.assertFalse(rec.should_reorder)
        self.assertEqual(rec.urgency, Urgency.NORMAL)
        self.assertEqual(rec.status, ReorderStatus.ADEQUATE)

    def test_no_demand(self):
        rec = build_reorder_recommendation(
            product_id=1,
            current_stock=0,
            avg_daily_demand=0,
            demand_std=0,
            lead_time_days=7,
            unit_cost=1
        )

        self.assertEqual(rec.reorder_point, 0)
        self.assertEqual(rec.optimal_order_quantity, 0)
        self.assertEqual(rec.days_until_stockout, NO_USAGE_DAYS)
        self.assertEqual(rec.status, ReorderStatus.OUT_OF_STOCK)
        self.assertTrue(rec.should_reorder)

    def test_rank_recommendations(self):
        def rec(product_id, stock, daily):
            return build_reorder_recommendation(
                product_id=product_id,
                current_stock=stock,
                avg_daily_demand=daily,
                demand_std=0,
                lead_time_days=7,
                unit_cost=1
            )

        normal_soon = rec(1, 80, 10)    # 8 days left, normal
        urgent_later = rec(2, 60, 10)   # 6 days left, urgent
        urgent_first = rec(3, 10, 10)   # 1 day left, urgent

        ranked = rank_recommendations([normal_soon, urgent_later, urgent_first])

        self.assertEqual([r.product_id for r in ranked], [3, 2, 1])


if __name__ == '__main__':
    unittest.main()
