"""
Risk aggregation: per-vital severity, weighted score, band and explanation.

Per-vital severity in [0, 1] adds up three independent signals:

- a hard clinical threshold breach on the latest observed value
- the excess |z| of the scored value above ``z_alert``
- an adverse trend, weighted by its R²

Vitals are combined with a noisy-OR over clinical weights relative to the
heaviest vital, so one severely abnormal high-priority vital can carry the
score on its own while additional abnormal vitals keep pushing it up without
ever exceeding 100.
"""

from dataclasses import dataclass, field

from vitalrisk.config import EngineConfig
from vitalrisk.domain.models import (
    AdverseDirection,
    Prediction,
    ReferenceRange,
    RiskStatus,
    TrendDirection,
    VitalAssessment,
    VitalContribution,
    VitalSign,
    VitalTrend,
)
from vitalrisk.services.anomaly import assess_value

NO_DATA_EXPLANATION = "No vitals data available"
NORMAL_EXPLANATION = "All vitals within normal limits"


@dataclass(frozen=True)
class RiskAssessment:
    score: float
    status: RiskStatus
    contributions: dict[VitalSign, VitalContribution] = field(default_factory=dict)

    def ranked(self) -> list[VitalContribution]:
        """Contributing vitals, largest share of the score first."""
        return sorted(
            (c for c in self.contributions.values() if c.severity > 0),
            key=lambda c: (-c.points, -c.severity, list(VitalSign).index(c.vital)),
        )


def classify(score: float, config: EngineConfig) -> RiskStatus:
    if score >= config.critical_threshold:
        return RiskStatus.CRITICAL
    if score >= config.observe_threshold:
        return RiskStatus.OBSERVE
    return RiskStatus.STABLE


def z_excess(z: float, config: EngineConfig) -> float:
    """Fraction of the alert-to-clip band covered by |z|."""
    excess = (abs(z) - config.z_alert) / (config.z_clip - config.z_alert)
    return max(0.0, min(1.0, excess))


def is_adverse_trend(trend: VitalTrend, reference: ReferenceRange, value: float) -> bool:
    if trend.direction == TrendDirection.STABLE:
        return False
    if reference.adverse_direction == AdverseDirection.INCREASING:
        return trend.direction == TrendDirection.INCREASING
    if reference.adverse_direction == AdverseDirection.DECREASING:
        return trend.direction == TrendDirection.DECREASING
    # Moving away from the reference mean in either direction
    if trend.direction == TrendDirection.INCREASING:
        return value > reference.mean
    return value < reference.mean


def _fmt(value: float) -> str:
    return f"{value:.1f}".rstrip("0").rstrip(".")


def vital_contribution(
    vital: VitalSign,
    breach: VitalAssessment,
    level: VitalAssessment,
    trend: VitalTrend | None,
    config: EngineConfig,
) -> VitalContribution:
    """Severity of one vital from its threshold, z-score and trend signals.

    ``breach`` is evaluated on the latest observed (or forecast) value; ``level``
    on the value being scored (the smoothed level, or the forecast).
    """
    reference = config.reference(vital)
    relative_weight = reference.weight / config.max_weight
    if not level.present or level.value is None:
        return VitalContribution(vital=vital, label=reference.label, severity=0.0, points=0.0)

    severity = 0.0
    reasons: list[str] = []

    if breach.threshold_breach and breach.value is not None:
        severity += config.breach_severity
        if breach.breach_side == "low":
            reasons.append(
                f"{_fmt(breach.value)} {reference.unit} below critical low "
                f"of {_fmt(reference.critical_low or 0.0)} {reference.unit}"
            )
        else:
            reasons.append(
                f"{_fmt(breach.value)} {reference.unit} above critical high "
                f"of {_fmt(reference.critical_high or 0.0)} {reference.unit}"
            )

    excess = z_excess(level.z_score, config)
    if excess > 0:
        severity += config.z_severity * excess
        side = "above" if level.z_score > 0 else "below"
        reasons.append(f"{abs(level.z_score):.1f} SD {side} reference")

    if (
        trend is not None
        and trend.samples >= config.min_samples_for_trend_score
        and is_adverse_trend(trend, reference, level.value)
    ):
        severity += config.trend_severity * trend.r_squared
        arrow = "up" if trend.direction == TrendDirection.INCREASING else "down"
        reasons.append(f"trending {arrow} (R²={trend.r_squared:.2f})")

    severity = min(1.0, severity)
    return VitalContribution(
        vital=vital,
        label=reference.label,
        severity=round(severity, 4),
        points=round(100.0 * relative_weight * severity, 1),
        reasons=reasons if severity > 0 else [],
        latest_value=breach.value,
        current_value=level.value,
    )


def aggregate(contributions: dict[VitalSign, VitalContribution], config: EngineConfig) -> float:
    """Noisy-OR of relative-weighted severities, scaled to 0-100."""
    remaining = 1.0
    for vital, contribution in contributions.items():
        relative_weight = config.reference(vital).weight / config.max_weight
        remaining *= 1.0 - relative_weight * contribution.severity
    return round(max(0.0, min(100.0, 100.0 * (1.0 - remaining))), 1)


def _assess(
    anomalies: dict[VitalSign, VitalAssessment],
    scored: dict[VitalSign, float | None],
    trends: dict[VitalSign, VitalTrend],
    config: EngineConfig,
) -> RiskAssessment:
    contributions = {
        vital: vital_contribution(
            vital,
            anomalies[vital],
            assess_value(vital, scored.get(vital), config),
            trends.get(vital),
            config,
        )
        for vital in VitalSign
    }
    score = aggregate(contributions, config)
    return RiskAssessment(score=score, status=classify(score, config), contributions=contributions)


def score_observed(
    anomalies: dict[VitalSign, VitalAssessment],
    levels: dict[VitalSign, float | None],
    trends: dict[VitalSign, VitalTrend],
    config: EngineConfig,
) -> RiskAssessment:
    """Score the current state: breaches from the latest-value anomalies, z on smoothed levels."""
    return _assess(anomalies, levels, trends, config)


def score_predicted(
    anomalies: dict[VitalSign, VitalAssessment],
    levels: dict[VitalSign, float | None],
    trends: dict[VitalSign, VitalTrend],
    predictions: dict[VitalSign, Prediction],
    config: EngineConfig,
) -> RiskAssessment:
    """Re-run the same scoring with each forecast in place of the observed value."""
    projected_anomalies = dict(anomalies)
    projected_levels = dict(levels)
    for vital, prediction in predictions.items():
        projected_anomalies[vital] = assess_value(vital, prediction.value, config)
        projected_levels[vital] = prediction.value
    return _assess(projected_anomalies, projected_levels, trends, config)


def detect_deterioration(trends: dict[VitalSign, VitalTrend], config: EngineConfig) -> list[str]:
    """Known deterioration patterns backed by confident trends of enough samples."""

    def confident(vital: VitalSign, direction: TrendDirection) -> bool:
        trend = trends.get(vital)
        return (
            trend is not None
            and trend.samples >= config.min_samples_for_trend_score
            and trend.direction == direction
            and trend.r_squared > config.deterioration_confidence
        )

    patterns: list[str] = []
    if confident(VitalSign.SPO2, TrendDirection.DECREASING):
        patterns.append("SpO₂ declining")
    if confident(VitalSign.HEART_RATE, TrendDirection.INCREASING) and confident(
        VitalSign.RESPIRATORY_RATE, TrendDirection.INCREASING
    ):
        patterns.append("heart rate and respiratory rate rising together")
    return patterns


def explain(assessment: RiskAssessment, deterioration: list[str], config: EngineConfig) -> str:
    """Human-readable justification listing the top contributors."""
    parts = [
        f"{c.label}: {', '.join(c.reasons)}"
        for c in assessment.ranked()[: config.max_explained_vitals]
    ]
    if not parts:
        return NORMAL_EXPLANATION
    if deterioration:
        parts.append(f"Deterioration pattern: {' and '.join(deterioration)}")
    return "; ".join(parts)
