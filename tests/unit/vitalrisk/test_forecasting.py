"""Tests for least-squares trend fitting and one-step forecasts."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from vitalrisk.config import EngineConfig
from vitalrisk.domain.models import TrendDirection, VitalSign
from vitalrisk.services.forecasting import (
    classify_direction,
    forecast_series,
    forecast_vital,
    linear_regression,
)

CONFIG = EngineConfig()


def test_perfect_linear_series() -> None:
    fit = linear_regression([60, 65, 70, 75, 80])

    assert fit.slope == pytest.approx(5.0)
    assert fit.intercept == pytest.approx(60.0)
    assert fit.r_squared == pytest.approx(1.0)
    assert fit.predict(5) == pytest.approx(85.0)


def test_perfect_linear_forecast() -> None:
    trend = forecast_vital([60, 65, 70, 75, 80], CONFIG)

    assert trend is not None
    assert trend.direction == TrendDirection.INCREASING
    assert trend.r_squared == pytest.approx(1.0)
    assert trend.predicted_value == pytest.approx(85.0)
    assert trend.samples == 5


def test_flat_series_has_no_explanatory_power() -> None:
    fit = linear_regression([97, 97, 97, 97])

    assert fit.slope == 0.0
    assert fit.r_squared == 0.0
    assert fit.predict(4) == 97


def test_degenerate_inputs() -> None:
    assert linear_regression([]).r_squared == 0.0
    single = linear_regression([72])
    assert (single.slope, single.intercept, single.r_squared) == (0.0, 72.0, 0.0)


def test_noisy_series_has_partial_fit() -> None:
    fit = linear_regression([80, 90, 78, 95, 85, 99])

    assert fit.slope > 0
    assert 0.0 < fit.r_squared < 1.0


@given(st.lists(st.floats(min_value=30, max_value=250, allow_nan=False), min_size=2, max_size=20))
def test_r_squared_is_bounded(values: list[float]) -> None:
    fit = linear_regression(values)

    assert 0.0 <= fit.r_squared <= 1.0


@pytest.mark.parametrize(
    "slope,expected",
    [
        (0.31, TrendDirection.INCREASING),
        (-0.31, TrendDirection.DECREASING),
        (0.3, TrendDirection.STABLE),
        (-0.1, TrendDirection.STABLE),
        (0.0, TrendDirection.STABLE),
    ],
)
def test_direction_epsilon(slope: float, expected: TrendDirection) -> None:
    assert classify_direction(slope, 0.3) == expected


def test_needs_two_samples() -> None:
    assert forecast_vital([88], CONFIG) is None
    assert forecast_vital([], CONFIG) is None
    assert forecast_vital([96, 94], CONFIG) is not None


def test_window_keeps_only_recent_samples() -> None:
    # An old plateau followed by a steady decline; only the decline is in the window
    values = [98.0] * 10 + [97, 96, 95, 94, 93]
    config = EngineConfig(trend_window=5)

    trend = forecast_vital(values, config)

    assert trend is not None
    assert trend.samples == 5
    assert trend.slope == pytest.approx(-1.0)
    assert trend.predicted_value == pytest.approx(92.0)


def test_forecast_series_skips_sparse_vitals() -> None:
    trends = forecast_series(
        {VitalSign.SPO2: [96, 94, 92], VitalSign.HEART_RATE: [80], VitalSign.TEMPERATURE: []},
        CONFIG,
    )

    assert set(trends) == {VitalSign.SPO2}
    assert trends[VitalSign.SPO2].direction == TrendDirection.DECREASING
