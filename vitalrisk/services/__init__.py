"""
Core services for vital-sign analysis.

This package contains the pipeline stages (normalizer, anomaly detector,
smoother, trend forecaster, risk aggregator) and the analyze() entry point
that composes them.
"""

from .analysis import CacheInfo, VitalsAnalyzer, analyze, analyze_normalized
from .anomaly import assess_value, detect_anomalies, z_score
from .forecasting import RegressionFit, classify_direction, forecast_vital, linear_regression
from .normalizer import normalize_reading, normalize_series, parse_measurement
from .risk import RiskAssessment, classify
from .smoothing import ewma, ewma_path

__all__ = [
    "CacheInfo",
    "RegressionFit",
    "RiskAssessment",
    "VitalsAnalyzer",
    "analyze",
    "analyze_normalized",
    "assess_value",
    "classify",
    "classify_direction",
    "detect_anomalies",
    "ewma",
    "ewma_path",
    "forecast_vital",
    "linear_regression",
    "normalize_reading",
    "normalize_series",
    "parse_measurement",
    "z_score",
]
