"""
Anomaly detection: clinical threshold breaches and reference z-scores.

Both signals are reported independently. A value can be statistically unusual
without crossing a hard clinical threshold, and vice versa.
"""

from collections.abc import Sequence

from vitalrisk.config import EngineConfig
from vitalrisk.domain.models import ReferenceRange, VitalAssessment, VitalReading, VitalSign


def z_score(value: float, reference: ReferenceRange, clip: float) -> float:
    """Standard score against the reference population, clipped to [-clip, clip]."""
    z = (value - reference.mean) / reference.stddev
    return max(-clip, min(clip, z))


def breach_side(value: float, reference: ReferenceRange) -> str | None:
    if reference.critical_low is not None and value < reference.critical_low:
        return "low"
    if reference.critical_high is not None and value > reference.critical_high:
        return "high"
    return None


def assess_value(vital: VitalSign, value: float | None, config: EngineConfig) -> VitalAssessment:
    """Evaluate a single value for one vital. Absent values are never anomalous."""
    if value is None:
        return VitalAssessment(vital=vital, present=False)

    reference = config.reference(vital)
    side = breach_side(value, reference)
    return VitalAssessment(
        vital=vital,
        present=True,
        value=value,
        threshold_breach=side is not None,
        breach_side=side,
        z_score=z_score(value, reference, config.z_clip),
    )


def detect_anomalies(
    reading: VitalReading, config: EngineConfig
) -> dict[VitalSign, VitalAssessment]:
    """Assess every vital of one reading."""
    return {vital: assess_value(vital, reading.value_of(vital), config) for vital in VitalSign}


def latest_values(series: Sequence[VitalReading]) -> dict[VitalSign, float | None]:
    """Most recent present value per vital from a chronological series."""
    latest: dict[VitalSign, float | None] = {vital: None for vital in VitalSign}
    for reading in reversed(series):
        for vital in VitalSign:
            if latest[vital] is None:
                latest[vital] = reading.value_of(vital)
        if all(value is not None for value in latest.values()):
            break
    return latest


def detect_latest_anomalies(
    series: Sequence[VitalReading], config: EngineConfig
) -> dict[VitalSign, VitalAssessment]:
    """Assess the most recent observed value of each vital in the series."""
    latest = VitalReading.model_validate(
        {vital.value: value for vital, value in latest_values(series).items()}
    )
    return detect_anomalies(latest, config)
