"""
Configuration management with environment variable support and validation.

Design principles:
- Engine constants (reference ranges, weights, EWMA alpha, window sizes,
  band cutoffs) live in an explicit EngineConfig passed into analyze()
- Environment overrides for deployment (dev, staging, prod)
- Validation at construction (fail fast)
- Type safety with Pydantic
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from vitalrisk.domain.models import AdverseDirection, ReferenceRange, VitalSign

# Load environment variables from .env file
load_dotenv()


def default_reference_ranges() -> dict[VitalSign, ReferenceRange]:
    """Clinical reference ranges used when none are supplied."""
    return {
        VitalSign.SPO2: ReferenceRange(
            label="SpO₂",
            unit="%",
            critical_low=90.0,
            mean=97.0,
            stddev=1.5,
            weight=0.30,
            adverse_direction=AdverseDirection.DECREASING,
            physical_max=100.0,
        ),
        VitalSign.HEART_RATE: ReferenceRange(
            label="Heart Rate",
            unit="bpm",
            critical_low=50.0,
            critical_high=120.0,
            mean=80.0,
            stddev=12.0,
            weight=0.25,
            physical_max=300.0,
        ),
        VitalSign.RESPIRATORY_RATE: ReferenceRange(
            label="Resp. Rate",
            unit="/min",
            critical_low=12.0,
            critical_high=25.0,
            mean=16.0,
            stddev=3.0,
            weight=0.15,
            physical_max=100.0,
        ),
        VitalSign.SYSTOLIC: ReferenceRange(
            label="BP Systolic",
            unit="mmHg",
            critical_low=90.0,
            critical_high=180.0,
            mean=120.0,
            stddev=15.0,
            weight=0.12,
            physical_max=300.0,
        ),
        VitalSign.DIASTOLIC: ReferenceRange(
            label="BP Diastolic",
            unit="mmHg",
            critical_low=60.0,
            critical_high=120.0,
            mean=80.0,
            stddev=10.0,
            weight=0.10,
            physical_max=200.0,
        ),
        VitalSign.TEMPERATURE: ReferenceRange(
            label="Temperature",
            unit="°F",
            critical_low=95.0,
            critical_high=103.0,
            mean=98.6,
            stddev=0.7,
            weight=0.08,
            # Plausible body temperatures only (25-45 °C)
            physical_min=77.0,
            physical_max=113.0,
        ),
    }


class EngineConfig(BaseModel):
    """Tunable constants of the analysis pipeline with clinical defaults."""

    model_config = ConfigDict(frozen=True)

    reference_ranges: dict[VitalSign, ReferenceRange] = Field(
        default_factory=default_reference_ranges
    )

    # Smoothing and forecasting
    ewma_alpha: float = Field(default=0.3, gt=0.0, le=1.0, description="EWMA smoothing factor")
    trend_window: int = Field(default=10, ge=2, description="Max samples per vital to regress")
    min_samples_for_forecast: int = Field(default=2, ge=2)
    min_readings_for_prediction: int = Field(
        default=5, ge=1, description="Readings required before predictions unlock"
    )
    min_samples_for_trend_score: int = Field(
        default=3, ge=2, description="Samples required before a trend adds to severity"
    )
    trend_epsilon: float = Field(default=0.3, ge=0.0, description="|slope| treated as stable")
    smooth_before_fit: bool = Field(
        default=False, description="Regress on EWMA-smoothed samples instead of raw samples"
    )

    # Anomaly scoring
    z_clip: float = Field(default=5.0, gt=0.0)
    z_alert: float = Field(default=2.0, ge=0.0, description="|z| at or below adds no severity")
    breach_severity: float = Field(default=0.5, ge=0.0, le=1.0)
    z_severity: float = Field(default=0.3, ge=0.0, le=1.0)
    trend_severity: float = Field(default=0.2, ge=0.0, le=1.0)

    # Classification bands
    observe_threshold: float = Field(default=30.0, gt=0.0, le=100.0)
    critical_threshold: float = Field(default=60.0, gt=0.0, le=100.0)

    deterioration_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    max_explained_vitals: int = Field(default=3, gt=0)
    cache_size: int = Field(default=128, ge=0, description="Memoised analyses kept (0 disables)")

    @field_validator("reference_ranges")
    def all_vitals_configured(
        cls, v: dict[VitalSign, ReferenceRange]
    ) -> dict[VitalSign, ReferenceRange]:
        missing = [vital.value for vital in VitalSign if vital not in v]
        if missing:
            raise ValueError(f"reference ranges missing for: {', '.join(missing)}")
        return v

    @model_validator(mode="after")
    def thresholds_are_consistent(self) -> "EngineConfig":
        if self.observe_threshold >= self.critical_threshold:
            raise ValueError("observe_threshold must be below critical_threshold")
        if self.z_alert >= self.z_clip:
            raise ValueError("z_alert must be below z_clip")
        return self

    @property
    def max_weight(self) -> float:
        return max(ref.weight for ref in self.reference_ranges.values())

    def reference(self, vital: VitalSign) -> ReferenceRange:
        return self.reference_ranges[vital]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _format_to_literal(val: str | None, debug: bool) -> Literal["json", "console"]:
        if val is None:
            return "console" if debug else "json"
        return "console" if val.strip().lower() == "console" else "json"

    def _parse_bool(val: str | None, default: bool) -> bool:
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "on"}

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = _parse_bool(os.getenv("DEBUG"), environment == "development")

    # Engine overrides; anything unset keeps the clinical defaults
    engine_overrides: dict[str, float | int] = {}
    for env_name, field_name, parse in (
        ("VITALS_EWMA_ALPHA", "ewma_alpha", float),
        ("VITALS_TREND_WINDOW", "trend_window", int),
        ("VITALS_MIN_READINGS", "min_readings_for_prediction", int),
        ("VITALS_OBSERVE_THRESHOLD", "observe_threshold", float),
        ("VITALS_CRITICAL_THRESHOLD", "critical_threshold", float),
        ("VITALS_CACHE_SIZE", "cache_size", int),
    ):
        raw = os.getenv(env_name)
        if raw is not None and raw.strip():
            engine_overrides[field_name] = parse(raw)

    engine_config = EngineConfig(**engine_overrides)  # type: ignore[arg-type]

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format=_format_to_literal(os.getenv("LOG_FORMAT"), debug),
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        engine=engine_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


# Development helpers
def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()
    engine = config.engine

    print("\n🔧 CONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level} ({config.logging.format})")

    print("\n📈 ENGINE CONFIGURATION")
    print(f"EWMA alpha: {engine.ewma_alpha}")
    print(f"Trend window: {engine.trend_window} samples")
    print(f"Predictions unlock at: {engine.min_readings_for_prediction} readings")
    print(
        f"Bands: stable < {engine.observe_threshold:g} <= observe "
        f"< {engine.critical_threshold:g} <= critical"
    )

    print("\n🩺 REFERENCE RANGES")
    for vital, ref in engine.reference_ranges.items():
        low = "-" if ref.critical_low is None else f"{ref.critical_low:g}"
        high = "-" if ref.critical_high is None else f"{ref.critical_high:g}"
        print(f"{ref.label} ({vital.value}): [{low}, {high}] {ref.unit}, weight {ref.weight:.2f}")


if __name__ == "__main__":
    print_config_summary()
