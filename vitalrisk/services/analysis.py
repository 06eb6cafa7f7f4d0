"""
Vital-signs analysis pipeline.

Normalizer -> anomaly detector -> EWMA smoother -> trend forecaster -> risk
aggregator. Every stage is a pure function of its input: analyze() performs
no I/O, keeps no state between calls and never raises on bad data. Degenerate
input degrades to the conservative "stable / no data" result rather than
failing open towards "critical".

VitalsAnalyzer adds explicit memoisation keyed by a hash of the normalised
series, for callers that re-run the analysis on every render.
"""

import hashlib
import json
import threading
import time
from collections import OrderedDict
from collections.abc import Iterable, Sequence
from typing import NamedTuple

import structlog

from vitalrisk.config import EngineConfig, get_config
from vitalrisk.domain.models import (
    AnalysisResult,
    Prediction,
    RiskStatus,
    VitalReading,
    VitalSign,
    VitalTrend,
)
from vitalrisk.services.anomaly import detect_latest_anomalies
from vitalrisk.services.forecasting import forecast_series
from vitalrisk.services.normalizer import RawReading, normalize_series
from vitalrisk.services.risk import (
    NO_DATA_EXPLANATION,
    detect_deterioration,
    explain,
    score_observed,
    score_predicted,
)
from vitalrisk.services.smoothing import current_levels, smooth_series, vital_samples

logger = structlog.get_logger(__name__)


def empty_result(reading_count: int = 0) -> AnalysisResult:
    """The conservative result for a series with nothing measured in it."""
    return AnalysisResult(
        status=RiskStatus.STABLE,
        risk_score=0.0,
        explanation=NO_DATA_EXPLANATION,
        can_predict=False,
        predictions=None,
        predicted_risk_score=None,
        reading_count=reading_count,
    )


def build_predictions(
    trends: dict[VitalSign, VitalTrend],
    latest: dict[VitalSign, float | None],
    config: EngineConfig,
) -> dict[VitalSign, Prediction]:
    """One-step forecasts, clamped to each vital's plausible range."""
    predictions: dict[VitalSign, Prediction] = {}
    for vital, trend in trends.items():
        reference = config.reference(vital)
        value = max(reference.physical_min, min(reference.physical_max, trend.predicted_value))
        observed = latest.get(vital)
        predictions[vital] = Prediction(
            value=value,
            direction=trend.direction,
            confidence=trend.r_squared,
            label=reference.label,
            change=round(value - observed, 1) if observed is not None else 0.0,
        )
    return predictions


def analyze_normalized(readings: Sequence[VitalReading], config: EngineConfig) -> AnalysisResult:
    """Run stages 2-5 over an already normalised, chronological series."""
    samples = vital_samples(readings)
    if not any(samples.values()):
        return empty_result(len(readings))

    anomalies = detect_latest_anomalies(readings, config)
    latest = {vital: assessment.value for vital, assessment in anomalies.items()}

    smoothed = smooth_series(samples, config.ewma_alpha)
    levels = current_levels(smoothed)

    trends = forecast_series(smoothed if config.smooth_before_fit else samples, config)

    observed = score_observed(anomalies, levels, trends, config)
    deterioration = detect_deterioration(trends, config)

    can_predict = len(readings) >= config.min_readings_for_prediction
    predictions: dict[VitalSign, Prediction] | None = None
    predicted_score: float | None = None
    predicted_status: RiskStatus | None = None
    if can_predict:
        predictions = build_predictions(trends, latest, config)
        projected = score_predicted(anomalies, levels, trends, predictions, config)
        predicted_score = projected.score
        predicted_status = projected.status

    return AnalysisResult(
        status=observed.status,
        risk_score=observed.score,
        explanation=explain(observed, deterioration, config),
        can_predict=can_predict,
        predictions=predictions,
        predicted_risk_score=predicted_score,
        predicted_status=predicted_status,
        trends=trends,
        breakdown=observed.contributions,
        deteriorating=bool(deterioration),
        reading_count=len(readings),
    )


def analyze(
    series: Iterable[RawReading] | None, config: EngineConfig | None = None
) -> AnalysisResult:
    """
    Analyse one patient's vital-sign series.

    Args:
        series: Readings in either chronological or most-recent-first order,
            as VitalReading objects or raw mappings. Never mutated.
        config: Engine constants; the environment-configured engine
            (clinical defaults plus any VITALS_* overrides) when omitted.

    Returns:
        AnalysisResult with status, 0-100 risk score, explanation and, once
        enough readings exist, per-vital predictions and a predicted score.
    """
    config = config or get_config().engine
    start_time = time.perf_counter()

    readings = normalize_series(series, config)
    result = analyze_normalized(readings, config)

    logger.info(
        "vitals_analysis_completed",
        readings=result.reading_count,
        status=result.status.value,
        risk_score=result.risk_score,
        predicted_risk_score=result.predicted_risk_score,
        duration_ms=round((time.perf_counter() - start_time) * 1000, 3),
    )
    return result


class CacheInfo(NamedTuple):
    hits: int
    misses: int
    maxsize: int
    currsize: int


class VitalsAnalyzer:
    """
    analyze() with an explicit LRU cache keyed by a hash of the series.

    Safe to share between threads: cache bookkeeping is guarded by a lock and
    analyses themselves share nothing. Every caller gets its own deep copy, so
    mutating a returned result never leaks into the cache.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or get_config().engine
        self.logger = logger.bind(component="vitals_analyzer")
        self._config_key = self.config.model_dump_json()
        self._cache: OrderedDict[str, AnalysisResult] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def series_key(self, readings: Sequence[VitalReading]) -> str:
        payload = json.dumps(
            [reading.model_dump(mode="json") for reading in readings], sort_keys=True
        )
        digest = hashlib.sha256(self._config_key.encode())
        digest.update(payload.encode())
        return digest.hexdigest()

    def analyze(self, series: Iterable[RawReading] | None) -> AnalysisResult:
        readings = normalize_series(series, self.config)
        if self.config.cache_size == 0:
            return analyze_normalized(readings, self.config)

        key = self.series_key(readings)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                self._hits += 1
                return cached.model_copy(deep=True)
            self._misses += 1

        result = analyze_normalized(readings, self.config)
        self.logger.debug("analysis_cache_miss", readings=len(readings), status=result.status.value)

        with self._lock:
            self._cache[key] = result.model_copy(deep=True)
            self._cache.move_to_end(key)
            while len(self._cache) > self.config.cache_size:
                self._cache.popitem(last=False)
        return result

    def cache_info(self) -> CacheInfo:
        with self._lock:
            return CacheInfo(self._hits, self._misses, self.config.cache_size, len(self._cache))

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
