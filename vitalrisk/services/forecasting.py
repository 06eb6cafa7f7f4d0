"""
Trend forecasting by ordinary least squares over the recent window.

Samples are regressed against their index; real sampling intervals are
irregular but treated as uniform ticks. R² doubles as forecast confidence.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from vitalrisk.config import EngineConfig
from vitalrisk.domain.models import TrendDirection, VitalSign, VitalTrend


@dataclass(frozen=True)
class RegressionFit:
    slope: float
    intercept: float
    r_squared: float

    def predict(self, x: float) -> float:
        return self.intercept + self.slope * x


def linear_regression(values: Sequence[float]) -> RegressionFit:
    """Fit values[i] = intercept + slope * i.

    R² is 0 when either the index or the values have no variance (a single
    point or a flat line explains nothing).
    """
    n = len(values)
    if n == 0:
        return RegressionFit(slope=0.0, intercept=0.0, r_squared=0.0)
    if n == 1 or max(values) == min(values):
        # Flat; skip the sums so rounding in the mean cannot fake a trend
        return RegressionFit(slope=0.0, intercept=float(values[0]), r_squared=0.0)

    x_mean = (n - 1) / 2
    y_mean = sum(values) / n

    ss_xy = 0.0
    ss_xx = 0.0
    ss_yy = 0.0
    for i, y in enumerate(values):
        dx = i - x_mean
        dy = y - y_mean
        ss_xy += dx * dy
        ss_xx += dx * dx
        ss_yy += dy * dy

    slope = ss_xy / ss_xx
    intercept = y_mean - slope * x_mean
    r_squared = (ss_xy * ss_xy) / (ss_xx * ss_yy) if ss_yy > 0 else 0.0

    return RegressionFit(slope=slope, intercept=intercept, r_squared=min(1.0, r_squared))


def classify_direction(slope: float, epsilon: float) -> TrendDirection:
    if slope > epsilon:
        return TrendDirection.INCREASING
    if slope < -epsilon:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def forecast_vital(values: Sequence[float], config: EngineConfig) -> VitalTrend | None:
    """Fit the last ``trend_window`` samples and project one tick ahead."""
    window = list(values[-config.trend_window :])
    if len(window) < config.min_samples_for_forecast:
        return None

    fit = linear_regression(window)
    return VitalTrend(
        slope=fit.slope,
        intercept=fit.intercept,
        r_squared=fit.r_squared,
        direction=classify_direction(fit.slope, config.trend_epsilon),
        samples=len(window),
        predicted_value=fit.predict(len(window)),
    )


def forecast_series(
    samples: dict[VitalSign, list[float]], config: EngineConfig
) -> dict[VitalSign, VitalTrend]:
    """Trends for every vital with enough samples; others are omitted."""
    trends: dict[VitalSign, VitalTrend] = {}
    for vital, values in samples.items():
        trend = forecast_vital(values, config)
        if trend is not None:
            trends[vital] = trend
    return trends
