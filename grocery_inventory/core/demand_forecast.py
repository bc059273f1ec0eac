# grocery_inventory/core/demand_forecast.py
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from ..exceptions import NotImplementedFeatureError
from ..utils.math_utils import linear_regression, mean, population_std, r_squared, sample_std, weighted_average
from .records import Confidence, ConfidenceInterval, DemandForecast, DemandPattern, Seasonality, Trend

TREND_THRESHOLD = 0.10
SEASONALITY_THRESHOLD = 0.2
HIGH_CONFIDENCE_CV = 0.25
MEDIUM_CONFIDENCE_CV = 0.5
SPIKE_FACTOR = 1.5
SPIKE_WINDOW = 7

SUPPORTED_METHODS = (
    'moving_average',
    'weighted_moving_average',
    'exponential_smoothing',
    'linear_regression',
    'adaptive',
)

EXPONENTIAL_SMOOTHING_CONFIDENCE = 0.7
WEIGHTED_AVERAGE_CONFIDENCE = 0.6
SHORT_HISTORY_CONFIDENCE = 0.5

PATTERN_DESCRIPTIONS = {
    'stable': 'Consistent demand with minimal fluctuation',
    'weekly_seasonal': 'Regular weekly demand patterns',
    'monthly_seasonal': 'Regular monthly demand patterns',
    'erratic': 'Unpredictable demand with high variability',
    'insufficient_data': 'Not enough data for pattern analysis',
}


def simple_moving_average(data: Sequence[float], window: int = 3) -> float:
    """Average of the last ``window`` points.

    Args:
        data: Daily consumption, oldest first
        window: Number of trailing points

    Returns:
        Average, or the last value when there are fewer points than the window
    """
    if not data:
        return 0.0
    if len(data) < window:
        return float(data[-1])
    return mean(data[-window:])


def weighted_moving_average(data: Sequence[float], window: int = 3) -> float:
    """Trailing average with linearly increasing weight on recent points."""
    if not data:
        return 0.0
    if len(data) < window:
        return float(data[-1])
    recent = list(data[-window:])
    weights = list(range(1, window + 1))
    return weighted_average(recent, weights)


def exponential_smoothing(data: Sequence[float], alpha: float = 0.3) -> float:
    """Final exponentially smoothed level of a series.

    Args:
        data: Daily consumption, oldest first
        alpha: Smoothing factor (0-1)

    Returns:
        Smoothed level after the last point
    """
    if not data:
        return 0.0

    alpha = max(0.0, min(1.0, alpha))

    smoothed = float(data[0])
    for value in data[1:]:
        smoothed = alpha * value + (1 - alpha) * smoothed

    return smoothed


def linear_regression_forecast(data: Sequence[float], periods_ahead: int = 1) -> Dict[str, float]:
    """Project a least-squares line ``periods_ahead`` points past the data.

    Returns:
        Dictionary with forecast (floored at 0), slope, intercept and r_squared
    """
    if len(data) < 2:
        return {
            'forecast': float(data[0]) if data else 0.0,
            'slope': 0.0,
            'intercept': float(data[0]) if data else 0.0,
            'r_squared': 0.0,
        }

    x = list(range(1, len(data) + 1))
    slope, intercept = linear_regression(x, data)
    forecast = slope * (len(data) + periods_ahead) + intercept

    return {
        'forecast': max(0.0, forecast),
        'slope': slope,
        'intercept': intercept,
        'r_squared': r_squared(x, data, slope, intercept),
    }


def detect_trend(data: Sequence[float], threshold: float = TREND_THRESHOLD) -> Trend:
    """Compare first-half and second-half averages.

    A relative change beyond ``threshold`` in either direction is a trend.
    """
    if len(data) < 2:
        return Trend.STABLE

    half = len(data) // 2
    first_avg = mean(data[:half])
    second_avg = mean(data[half:])

    if first_avg == 0:
        return Trend.INCREASING if second_avg > 0 else Trend.STABLE

    change = (second_avg - first_avg) / first_avg
    if change > threshold:
        return Trend.INCREASING
    if change < -threshold:
        return Trend.DECREASING
    return Trend.STABLE


def coefficient_of_variation(data: Sequence[float]) -> float:
    """Population standard deviation over mean; 0 when the mean is 0."""
    average = mean(data)
    if average == 0:
        return 0.0
    return population_std(data) / average


def confidence_bucket(cv: float) -> Confidence:
    """Lower variation means higher confidence."""
    if cv <= HIGH_CONFIDENCE_CV:
        return Confidence.HIGH
    if cv <= MEDIUM_CONFIDENCE_CV:
        return Confidence.MEDIUM
    return Confidence.LOW


def confidence_percent(cv: float) -> int:
    return int(round(100 * max(0.0, min(1.0, 1.0 - cv))))


def z_score_for(confidence_level: float) -> float:
    """Two-sided normal z-score, e.g. 1.96 for 0.95."""
    return float(stats.norm.ppf(0.5 + confidence_level / 2.0))


def confidence_interval(
    data: Sequence[float],
    forecast: float,
    confidence_level: float = 0.95,
    periods: int = 1
) -> ConfidenceInterval:
    """Interval around a forecast that covers ``periods`` days of demand.

    Args:
        data: Daily consumption history
        forecast: Point forecast for the whole horizon
        confidence_level: Two-sided coverage, e.g. 0.95
        periods: Number of days the forecast spans

    Returns:
        Interval with the lower bound floored at 0
    """
    if len(data) < 2:
        return ConfidenceInterval(lower=forecast * 0.5, upper=forecast * 1.5, margin=forecast * 0.5)

    margin = z_score_for(confidence_level) * sample_std(data) * math.sqrt(max(periods, 1))

    return ConfidenceInterval(
        lower=round(max(0.0, forecast - margin), 2),
        upper=round(forecast + margin, 2),
        margin=round(margin, 2),
    )


def detect_seasonality(
    data: Sequence[float],
    period: int = 7,
    threshold: float = SEASONALITY_THRESHOLD
) -> Seasonality:
    """Detect a repeating cycle by averaging each position within the period.

    Strength is the spread of the per-position averages relative to the
    overall mean. At least two full cycles are required.

    Args:
        data: Daily consumption, oldest first
        period: Cycle length in days (7 weekly, 30 monthly)
        threshold: Minimum strength to report the cycle

    Returns:
        Seasonality result
    """
    if period <= 1 or len(data) < period * 2:
        return Seasonality(detected=False, period=period, strength=0.0)

    values = np.asarray(data, dtype=float)
    positions = np.arange(len(values)) % period
    position_means = np.array([values[positions == p].mean() for p in range(period)])

    overall = values.mean()
    if overall <= 0:
        return Seasonality(detected=False, period=period, strength=0.0)

    strength = float(np.sqrt(((position_means - overall) ** 2).mean()) / overall)

    if strength <= threshold:
        return Seasonality(detected=False, period=period, strength=round(strength, 4))

    return Seasonality(
        detected=True,
        period=period,
        strength=round(strength, 4),
        pattern=tuple(round(float(m), 2) for m in position_means),
    )


def adaptive_forecast(data: Sequence[float], periods_ahead: int = 1) -> Dict[str, object]:
    """Pick the estimator with the highest confidence for the next period.

    Linear regression is scored by its r-squared, exponential smoothing and
    weighted moving average by fixed scores. Fewer than 3 points fall back
    to the last observed value.

    Args:
        data: Daily consumption, oldest first
        periods_ahead: Points past the data to project the regression

    Returns:
        Dictionary with forecast (floored at 0), method and confidence
    """
    if not data:
        return {'forecast': 0.0, 'method': 'none', 'confidence': 0.0}

    if len(data) < 3:
        return {'forecast': float(data[-1]), 'method': 'last_value', 'confidence': SHORT_HISTORY_CONFIDENCE}

    fit = linear_regression_forecast(data, periods_ahead)
    candidates = [
        ('linear_regression', fit['forecast'], fit['r_squared']),
        ('exponential_smoothing', exponential_smoothing(data), EXPONENTIAL_SMOOTHING_CONFIDENCE),
        ('weighted_moving_average', weighted_moving_average(data), WEIGHTED_AVERAGE_CONFIDENCE),
    ]

    # Ties keep the earlier candidate
    best = candidates[0]
    for candidate in candidates[1:]:
        if candidate[2] > best[2]:
            best = candidate

    name, forecast, confidence = best
    return {'forecast': max(0.0, forecast), 'method': name, 'confidence': confidence}


def _daily_rate(data: Sequence[float], method: str, horizon_days: int) -> Tuple[float, str]:
    """Daily demand rate and the name of the estimator that produced it."""
    if method == 'moving_average':
        return mean(data), method
    if method == 'weighted_moving_average':
        return weighted_moving_average(data, window=min(SPIKE_WINDOW, len(data))), method
    if method == 'exponential_smoothing':
        return exponential_smoothing(data), method
    if method == 'linear_regression':
        fit = linear_regression_forecast(data)
        n = len(data)
        projected = [max(0.0, fit['slope'] * (n + i) + fit['intercept']) for i in range(1, horizon_days + 1)]
        return mean(projected), method
    if method == 'adaptive':
        selected = adaptive_forecast(data)
        return selected['forecast'], selected['method']
    raise NotImplementedFeatureError(f"Forecast method '{method}' is not implemented")


def build_recommendations(
    data: Sequence[float],
    trend: Trend,
    confidence: Confidence,
    seasonality: Seasonality
) -> List[str]:
    """Plain-language actions suggested by a forecast."""
    recommendations = []

    if confidence is Confidence.LOW:
        recommendations.append('Low prediction confidence - consider collecting more data')

    if trend is Trend.INCREASING:
        recommendations.append('Demand is trending upward - consider increasing stock levels')
    elif trend is Trend.DECREASING:
        recommendations.append('Demand is trending downward - monitor for overstock')

    if seasonality.detected:
        recommendations.append(f'Seasonal pattern detected ({seasonality.period}-day cycle) - plan accordingly')

    if len(data) >= SPIKE_WINDOW and mean(data[-SPIKE_WINDOW:]) > mean(data) * SPIKE_FACTOR:
        recommendations.append('Recent demand spike detected - verify stock adequacy')

    return recommendations


def forecast_demand(
    data: Sequence[float],
    horizon_days: int = 30,
    seasonal_period: int = 7,
    confidence_level: float = 0.95,
    method: str = 'moving_average',
    product_id: Optional[int] = None
) -> DemandForecast:
    """Forecast demand over the next ``horizon_days`` from daily history.

    Args:
        data: Daily consumption over the lookback window, oldest first
        horizon_days: Days to project
        seasonal_period: Cycle length used for seasonality detection
        confidence_level: Coverage of the reported interval
        method: Daily-rate estimator, one of ``SUPPORTED_METHODS``
        product_id: Optional product the forecast belongs to

    Returns:
        Demand forecast; an empty history yields a zero forecast
    """
    if method not in SUPPORTED_METHODS:
        raise NotImplementedFeatureError(
            f"Forecast method '{method}' is not implemented",
            details={'supported': list(SUPPORTED_METHODS)}
        )

    data = list(data)

    if len(data) == 0:
        return DemandForecast(
            daily_average=0.0,
            horizon_days=horizon_days,
            horizon_forecast=0.0,
            trend=Trend.STABLE,
            confidence_interval=ConfidenceInterval(lower=0.0, upper=0.0),
            confidence=Confidence.LOW,
            confidence_percent=0,
            seasonality=Seasonality(detected=False, period=seasonal_period),
            method='no_history',
            history_points=0,
            recommendations=('Insufficient historical data for prediction',),
            product_id=product_id,
        )

    rate, method_used = _daily_rate(data, method, horizon_days)
    daily_average = round(rate, 2)
    horizon_forecast = round(daily_average * horizon_days, 2)

    trend = detect_trend(data)
    cv = coefficient_of_variation(data)
    confidence = confidence_bucket(cv)
    seasonality = detect_seasonality(data, seasonal_period)

    return DemandForecast(
        daily_average=daily_average,
        horizon_days=horizon_days,
        horizon_forecast=horizon_forecast,
        trend=trend,
        confidence_interval=confidence_interval(data, horizon_forecast, confidence_level, periods=horizon_days),
        confidence=confidence,
        confidence_percent=confidence_percent(cv),
        seasonality=seasonality,
        method=method_used,
        history_points=len(data),
        recommendations=tuple(build_recommendations(data, trend, confidence, seasonality)),
        product_id=product_id,
    )


def analyze_demand_pattern(data: Sequence[float], product_id: Optional[int] = None) -> DemandPattern:
    """Classify a consumption series as stable, seasonal or erratic."""
    if len(data) < 7:
        return DemandPattern(
            pattern='insufficient_data',
            description=PATTERN_DESCRIPTIONS['insufficient_data'],
            product_id=product_id,
        )

    weekly = detect_seasonality(data, 7)
    monthly = detect_seasonality(data, 30)
    cv = coefficient_of_variation(data)

    if cv > MEDIUM_CONFIDENCE_CV:
        volatility = 'high'
    elif cv > HIGH_CONFIDENCE_CV:
        volatility = 'medium'
    else:
        volatility = 'low'

    if weekly.detected:
        pattern = 'weekly_seasonal'
    elif monthly.detected:
        pattern = 'monthly_seasonal'
    elif volatility == 'high':
        pattern = 'erratic'
    else:
        pattern = 'stable'

    return DemandPattern(
        pattern=pattern,
        description=PATTERN_DESCRIPTIONS[pattern],
        volatility=volatility,
        coefficient_of_variation=round(cv, 2),
        weekly_seasonality=weekly.detected,
        monthly_seasonality=monthly.detected,
        average_demand=round(mean(data), 1),
        product_id=product_id,
    )
