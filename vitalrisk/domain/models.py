"""
Domain models for vital-sign risk analysis.

These models represent the core clinical concepts and are framework-agnostic.
They use Pydantic for validation; input and output models are frozen so an
analysis can never mutate what the caller handed in.
"""

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class VitalSign(str, Enum):
    """Vital signs the engine understands."""

    HEART_RATE = "heart_rate"
    SPO2 = "spo2"
    SYSTOLIC = "systolic"
    DIASTOLIC = "diastolic"
    TEMPERATURE = "temperature"
    RESPIRATORY_RATE = "respiratory_rate"


class RiskStatus(str, Enum):
    """Three-state clinical risk band."""

    STABLE = "stable"
    OBSERVE = "observe"
    CRITICAL = "critical"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class AdverseDirection(str, Enum):
    """Which movement of a vital is clinically adverse.

    BOTH means moving away from the reference mean in either direction.
    """

    INCREASING = "increasing"
    DECREASING = "decreasing"
    BOTH = "both"


class VitalReading(BaseModel):
    """One observation. A missing field means "not measured", never zero."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    recorded_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("recorded_at", "recordedAt")
    )
    heart_rate: float | None = Field(
        default=None, validation_alias=AliasChoices("heart_rate", "heartRate")
    )
    spo2: float | None = Field(default=None, validation_alias=AliasChoices("spo2", "SpO2"))
    systolic: float | None = Field(
        default=None, validation_alias=AliasChoices("systolic", "bp_systolic")
    )
    diastolic: float | None = Field(
        default=None, validation_alias=AliasChoices("diastolic", "bp_diastolic")
    )
    temperature: float | None = None
    respiratory_rate: float | None = Field(
        default=None, validation_alias=AliasChoices("respiratory_rate", "respiratoryRate")
    )

    def value_of(self, vital: VitalSign) -> float | None:
        return getattr(self, vital.value)

    def present_vitals(self) -> list[VitalSign]:
        return [vital for vital in VitalSign if self.value_of(vital) is not None]


class ReferenceRange(BaseModel):
    """Static clinical configuration for one vital (not learned)."""

    model_config = ConfigDict(frozen=True)

    label: str
    unit: str
    critical_low: float | None = Field(default=None, description="Breach below this value")
    critical_high: float | None = Field(default=None, description="Breach above this value")
    mean: float = Field(description="Reference population mean")
    stddev: float = Field(gt=0.0, description="Reference population standard deviation")
    weight: float = Field(gt=0.0, le=1.0, description="Clinical priority of this vital")
    adverse_direction: AdverseDirection = AdverseDirection.BOTH

    # Plausibility bounds for parsing; values outside are treated as malformed
    physical_min: float = Field(default=0.0, ge=0.0)
    physical_max: float = Field(gt=0.0)

    @model_validator(mode="after")
    def bounds_are_ordered(self) -> "ReferenceRange":
        if (
            self.critical_low is not None
            and self.critical_high is not None
            and self.critical_low >= self.critical_high
        ):
            raise ValueError("critical_low must be below critical_high")
        if self.physical_min >= self.physical_max:
            raise ValueError("physical_min must be below physical_max")
        return self


class VitalAssessment(BaseModel):
    """Anomaly detector output for one vital."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    vital: VitalSign
    present: bool
    value: float | None = None
    threshold_breach: bool = False
    breach_side: str | None = Field(default=None, description="'low' or 'high' when breached")
    z_score: float = 0.0


class VitalTrend(BaseModel):
    """Least-squares trend over the recent window of one vital."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    slope: float
    intercept: float
    r_squared: float = Field(ge=0.0, le=1.0)
    direction: TrendDirection
    samples: int = Field(ge=2)
    predicted_value: float


class Prediction(BaseModel):
    """One-step-ahead forecast for a vital."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    value: float
    direction: TrendDirection
    confidence: float = Field(ge=0.0, le=1.0, description="R² of the fitted trend")
    label: str
    change: float = Field(description="Predicted value minus latest observed value")


class VitalContribution(BaseModel):
    """How much one vital contributed to the risk score, and why."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    vital: VitalSign
    label: str
    severity: float = Field(ge=0.0, le=1.0)
    points: float = Field(ge=0.0, le=100.0)
    reasons: list[str] = Field(default_factory=list)
    latest_value: float | None = None
    current_value: float | None = None


class AnalysisResult(BaseModel):
    """The sole output of an analysis run."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    status: RiskStatus
    risk_score: float = Field(ge=0.0, le=100.0)
    explanation: str
    can_predict: bool
    predictions: dict[VitalSign, Prediction] | None = None
    predicted_risk_score: float | None = Field(default=None, ge=0.0, le=100.0)
    predicted_status: RiskStatus | None = None

    trends: dict[VitalSign, VitalTrend] = Field(default_factory=dict)
    breakdown: dict[VitalSign, VitalContribution] = Field(default_factory=dict)
    deteriorating: bool = False
    reading_count: int = Field(default=0, ge=0)
