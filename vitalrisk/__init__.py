"""Sequential vital-signs risk analysis.

Deterministic, explainable scoring of a patient's vital-sign series:
anomaly detection, EWMA smoothing, trend forecasting and a weighted risk
classification, isolated from storage, transport and presentation.
"""

from vitalrisk.config import EngineConfig
from vitalrisk.domain.models import AnalysisResult, RiskStatus, VitalReading, VitalSign
from vitalrisk.services.analysis import VitalsAnalyzer, analyze

__all__ = [
    "AnalysisResult",
    "EngineConfig",
    "RiskStatus",
    "VitalReading",
    "VitalSign",
    "VitalsAnalyzer",
    "analyze",
]
