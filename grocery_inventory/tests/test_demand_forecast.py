"""
Unit tests for demand forecasting.
"""
import unittest

from grocery_inventory.core.demand_forecast import (
    adaptive_forecast,
    analyze_demand_pattern,
    coefficient_of_variation,
    confidence_bucket,
    confidence_interval,
    confidence_percent,
    detect_seasonality,
    detect_trend,
    exponential_smoothing,
    forecast_demand,
    linear_regression_forecast,
    simple_moving_average,
    weighted_moving_average,
    z_score_for,
)
from grocery_inventory.core.records import Confidence, Trend
from grocery_inventory.exceptions import NotImplementedFeatureError

WEEKLY_SERIES = [50 if i % 7 == 0 else 10 for i in range(28)]


class TestForecastDemand(unittest.TestCase):
    """Test cases for forecast_demand."""

    def test_flat_history(self):
        """Ten units a day for ninety days projects 300 over thirty days."""
        forecast = forecast_demand([10] * 90, horizon_days=30)

        self.assertEqual(forecast.daily_average, 10)
        self.assertEqual(forecast.horizon_forecast, 300)
        self.assertEqual(forecast.trend, Trend.STABLE)
        self.assertEqual(forecast.confidence, Confidence.HIGH)
        self.assertEqual(forecast.confidence_percent, 100)
        self.assertFalse(forecast.seasonality.detected)
        self.assertEqual(forecast.confidence_interval.lower, 300)
        self.assertEqual(forecast.confidence_interval.upper, 300)
        self.assertEqual(forecast.history_points, 90)
        self.assertEqual(forecast.method, 'moving_average')
        self.assertEqual(forecast.recommendations, ())

    def test_empty_history(self):
        """No history is a zero forecast, not an error."""
        forecast = forecast_demand([], horizon_days=30, product_id=4)

        self.assertEqual(forecast.daily_average, 0)
        self.assertEqual(forecast.horizon_forecast, 0)
        self.assertEqual(forecast.method, 'no_history')
        self.assertEqual(forecast.confidence, Confidence.LOW)
        self.assertEqual(forecast.confidence_percent, 0)
        self.assertEqual(forecast.product_id, 4)
        self.assertEqual(forecast.to_dict()['trend'], 'stable')

    def test_unknown_method_raises(self):
        with self.assertRaises(NotImplementedFeatureError) as ctx:
            forecast_demand([1, 2, 3], method='arima')

        self.assertEqual(ctx.exception.code, 'NOT_IMPLEMENTED')

    def test_linear_regression_method(self):
        forecast = forecast_demand([2, 4, 6, 8], horizon_days=2, method='linear_regression')

        self.assertAlmostEqual(forecast.daily_average, 11)
        self.assertAlmostEqual(forecast.horizon_forecast, 22)
        self.assertEqual(forecast.trend, Trend.INCREASING)

    def test_spike_and_trend_recommendations(self):
        forecast = forecast_demand([5] * 20 + [20] * 7)

        self.assertIn('Recent demand spike detected - verify stock adequacy', forecast.recommendations)
        self.assertIn(
            'Demand is trending upward - consider increasing stock levels',
            forecast.recommendations
        )

    def test_seasonality_recommendation(self):
        forecast = forecast_demand(WEEKLY_SERIES)

        self.assertTrue(forecast.seasonality.detected)
        self.assertIn(
            'Seasonal pattern detected (7-day cycle) - plan accordingly',
            forecast.recommendations
        )


class TestForecastHelpers(unittest.TestCase):
    """Test cases for the individual forecasting algorithms."""

    def test_moving_averages(self):
        self.assertEqual(simple_moving_average([1, 2, 3, 4], window=2), 3.5)
        self.assertEqual(simple_moving_average([7], window=3), 7)
        self.assertEqual(simple_moving_average([]), 0)
        self.assertAlmostEqual(weighted_moving_average([1, 2, 3]), 14 / 6)

    def test_exponential_smoothing(self):
        self.assertAlmostEqual(exponential_smoothing([10, 20], alpha=0.5), 15)
        self.assertEqual(exponential_smoothing([]), 0)

    def test_linear_regression_forecast(self):
        fit = linear_regression_forecast([2, 4, 6, 8])

        self.assertAlmostEqual(fit['slope'], 2)
        self.assertAlmostEqual(fit['intercept'], 0)
        self.assertAlmostEqual(fit['forecast'], 10)
        self.assertAlmostEqual(fit['r_squared'], 1)

    def test_linear_regression_forecast_floors_at_zero(self):
        fit = linear_regression_forecast([8, 6, 4, 2], periods_ahead=5)
        self.assertEqual(fit['forecast'], 0)

    def test_detect_trend(self):
        self.assertEqual(detect_trend(list(range(1, 21))), Trend.INCREASING)
        self.assertEqual(detect_trend(list(range(20, 0, -1))), Trend.DECREASING)
        self.assertEqual(detect_trend([10, 10.5, 10, 10.5]), Trend.STABLE)
        self.assertEqual(detect_trend([0, 0, 0, 0]), Trend.STABLE)
        self.assertEqual(detect_trend([5]), Trend.STABLE)

    def test_confidence_is_monotonic_in_variation(self):
        self.assertEqual(confidence_bucket(0.0), Confidence.HIGH)
        self.assertEqual(confidence_bucket(0.25), Confidence.HIGH)
        self.assertEqual(confidence_bucket(0.26), Confidence.MEDIUM)
        self.assertEqual(confidence_bucket(0.5), Confidence.MEDIUM)
        self.assertEqual(confidence_bucket(0.51), Confidence.LOW)
        self.assertEqual(confidence_percent(0.3), 70)
        self.assertEqual(confidence_percent(2.0), 0)

    def test_coefficient_of_variation(self):
        self.assertEqual(coefficient_of_variation([0, 0, 0]), 0)
        self.assertAlmostEqual(coefficient_of_variation([5, 15]), 0.5)

    def test_confidence_interval(self):
        self.assertAlmostEqual(z_score_for(0.95), 1.96, places=2)

        interval = confidence_interval([10, 12], 100)
        self.assertAlmostEqual(interval.margin, 2.77, places=2)
        self.assertAlmostEqual(interval.lower, 97.23, places=2)
        self.assertAlmostEqual(interval.upper, 102.77, places=2)

        single = confidence_interval([5], 10)
        self.assertEqual((single.lower, single.upper), (5, 15))


class TestSeasonality(unittest.TestCase):
    """Test cases for periodic-aggregation seasonality detection."""

    def test_weekly_cycle_detected(self):
        seasonality = detect_seasonality(WEEKLY_SERIES, period=7)

        self.assertTrue(seasonality.detected)
        self.assertEqual(seasonality.period, 7)
        self.assertGreater(seasonality.strength, 0.2)
        self.assertEqual(seasonality.pattern[0], 50)
        self.assertEqual(len(seasonality.pattern), 7)

    def test_flat_series_has_no_cycle(self):
        self.assertFalse(detect_seasonality([10] * 28, period=7).detected)

    def test_requires_two_full_periods(self):
        self.assertFalse(detect_seasonality(WEEKLY_SERIES[:13], period=7).detected)

    def test_zero_series(self):
        self.assertFalse(detect_seasonality([0] * 28, period=7).detected)


class TestDemandPattern(unittest.TestCase):
    """Test cases for analyze_demand_pattern."""

    def test_insufficient_data(self):
        pattern = analyze_demand_pattern([1, 2, 3])
        self.assertEqual(pattern.pattern, 'insufficient_data')

    def test_stable(self):
        pattern = analyze_demand_pattern([10] * 10)

        self.assertEqual(pattern.pattern, 'stable')
        self.assertEqual(pattern.volatility, 'low')
        self.assertEqual(pattern.average_demand, 10)

    def test_weekly_seasonal(self):
        pattern = analyze_demand_pattern(WEEKLY_SERIES, product_id=3)

        self.assertEqual(pattern.pattern, 'weekly_seasonal')
        self.assertTrue(pattern.weekly_seasonality)
        self.assertEqual(pattern.to_dict()['product_id'], 3)

    def test_erratic(self):
        pattern = analyze_demand_pattern([0, 40, 0, 0, 5, 0, 60, 0, 1, 0])

        self.assertEqual(pattern.pattern, 'erratic')
        self.assertEqual(pattern.volatility, 'high')


class TestAdaptiveForecast(unittest.TestCase):
    """Test cases for adaptive estimator selection."""

    def test_no_history(self):
        self.assertEqual(adaptive_forecast([]), {'forecast': 0.0, 'method': 'none', 'confidence': 0.0})

    def test_short_history_uses_last_value(self):
        result = adaptive_forecast([5, 9])

        self.assertEqual(result['method'], 'last_value')
        self.assertEqual(result['forecast'], 9)

    def test_clean_trend_selects_regression(self):
        result = adaptive_forecast([2, 4, 6, 8])

        self.assertEqual(result['method'], 'linear_regression')
        self.assertAlmostEqual(result['forecast'], 10)
        self.assertGreater(result['confidence'], 0.99)

    def test_noisy_history_selects_smoothing(self):
        result = adaptive_forecast([10, 2, 10, 2, 10, 2])

        self.assertEqual(result['method'], 'exponential_smoothing')
        self.assertAlmostEqual(result['forecast'], exponential_smoothing([10, 2, 10, 2, 10, 2]))
        self.assertEqual(result['confidence'], 0.7)

    def test_falling_trend_is_floored_at_zero(self):
        result = adaptive_forecast([9, 6, 3, 0])

        self.assertEqual(result['method'], 'linear_regression')
        self.assertEqual(result['forecast'], 0)

    def test_forecast_demand_reports_selected_method(self):
        forecast = forecast_demand([10] * 5, horizon_days=10, method='adaptive')

        self.assertEqual(forecast.method, 'exponential_smoothing')
        self.assertEqual(forecast.daily_average, 10)
        self.assertEqual(forecast.horizon_forecast, 100)


if __name__ == '__main__':
    unittest.main()
