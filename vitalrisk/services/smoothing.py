"""
Exponentially weighted moving average (EWMA) smoothing per vital.

S_0 = x_0, S_t = alpha * x_t + (1 - alpha) * S_{t-1}. Readings where a vital is
absent do not update its level; a gap is never treated as zero.
"""

from collections.abc import Sequence

from vitalrisk.domain.models import VitalReading, VitalSign


def ewma_path(values: Sequence[float], alpha: float) -> list[float]:
    """Running smoothed value after each sample."""
    path: list[float] = []
    for value in values:
        path.append(value if not path else alpha * value + (1 - alpha) * path[-1])
    return path


def ewma(values: Sequence[float], alpha: float) -> float | None:
    """Final smoothed level, or None for an empty sequence."""
    path = ewma_path(values, alpha)
    return path[-1] if path else None


def vital_samples(series: Sequence[VitalReading]) -> dict[VitalSign, list[float]]:
    """Present raw samples per vital, in the series' (chronological) order."""
    samples: dict[VitalSign, list[float]] = {vital: [] for vital in VitalSign}
    for reading in series:
        for vital in VitalSign:
            value = reading.value_of(vital)
            if value is not None:
                samples[vital].append(value)
    return samples


def smooth_series(
    samples: dict[VitalSign, list[float]], alpha: float
) -> dict[VitalSign, list[float]]:
    return {vital: ewma_path(values, alpha) for vital, values in samples.items()}


def current_levels(smoothed: dict[VitalSign, list[float]]) -> dict[VitalSign, float | None]:
    """The "current" smoothed value of each vital used for risk scoring."""
    return {vital: (path[-1] if path else None) for vital, path in smoothed.items()}
