"""
Normalizer: validates and type-coerces raw readings.

Each field is parsed on its own, so a malformed heart rate never invalidates
the SpO₂ on the same reading. Nothing here raises on bad data: unparseable,
non-finite, negative or physically implausible values become "absent".
"""

import math
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from vitalrisk.config import EngineConfig
from vitalrisk.domain.models import ReferenceRange, VitalReading, VitalSign
from vitalrisk.domain.result import Result

logger = structlog.get_logger(__name__)

# Accepted input keys per vital (snake_case, camelCase and the legacy BP keys)
FIELD_ALIASES: dict[VitalSign, tuple[str, ...]] = {
    VitalSign.HEART_RATE: ("heart_rate", "heartRate"),
    VitalSign.SPO2: ("spo2", "SpO2"),
    VitalSign.SYSTOLIC: ("systolic", "bp_systolic"),
    VitalSign.DIASTOLIC: ("diastolic", "bp_diastolic"),
    VitalSign.TEMPERATURE: ("temperature",),
    VitalSign.RESPIRATORY_RATE: ("respiratory_rate", "respiratoryRate"),
}
TIMESTAMP_KEYS = ("recorded_at", "recordedAt")
BLOOD_PRESSURE_KEYS = ("blood_pressure", "bloodPressure")

RawReading = VitalReading | Mapping[str, Any]


def parse_measurement(raw: Any, reference: ReferenceRange) -> Result[float, ValueError]:
    """Parse one numeric field against the vital's plausibility bounds."""
    if raw is None:
        return Result.err(ValueError("not measured"))
    if isinstance(raw, bool):
        return Result.err(ValueError("boolean is not a measurement"))

    if isinstance(raw, int | float):
        try:
            value = float(raw)
        except OverflowError:
            return Result.err(ValueError("value too large"))
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return Result.err(ValueError("empty string"))
        try:
            value = float(text)
        except ValueError:
            return Result.err(ValueError(f"not numeric: {raw!r}"))
    else:
        return Result.err(ValueError(f"unsupported type: {type(raw).__name__}"))

    if not math.isfinite(value):
        return Result.err(ValueError("non-finite value"))
    if value < reference.physical_min or value > reference.physical_max:
        return Result.err(
            ValueError(
                f"{value} outside plausible range "
                f"[{reference.physical_min}, {reference.physical_max}]"
            )
        )
    return Result.ok(value)


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse a timestamp; naive datetimes are assumed to be UTC."""
    if raw is None:
        return None

    parsed: datetime | None = None
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str) and raw.strip():
        try:
            parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    elif isinstance(raw, int | float) and not isinstance(raw, bool):
        try:
            parsed = datetime.fromtimestamp(float(raw), tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def split_blood_pressure(raw: Any) -> tuple[Any, Any]:
    """Split a "120/80" string into its systolic and diastolic parts."""
    if not isinstance(raw, str):
        return None, None
    parts = raw.split("/")
    if len(parts) != 2:
        return None, None
    return parts[0].strip(), parts[1].strip()


def _first_present(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def normalize_reading(raw: RawReading, config: EngineConfig) -> VitalReading | None:
    """Coerce one raw reading. Returns None when the input is not a reading at all."""
    if isinstance(raw, VitalReading):
        data: Mapping[str, Any] = raw.model_dump()
    elif isinstance(raw, Mapping):
        data = raw
    else:
        logger.warning("reading_dropped", reason="not a mapping", type=type(raw).__name__)
        return None

    raw_values = {vital: _first_present(data, keys) for vital, keys in FIELD_ALIASES.items()}

    bp_systolic, bp_diastolic = split_blood_pressure(_first_present(data, BLOOD_PRESSURE_KEYS))
    if raw_values[VitalSign.SYSTOLIC] is None:
        raw_values[VitalSign.SYSTOLIC] = bp_systolic
    if raw_values[VitalSign.DIASTOLIC] is None:
        raw_values[VitalSign.DIASTOLIC] = bp_diastolic

    values: dict[str, float | None] = {}
    for vital, raw_value in raw_values.items():
        result = parse_measurement(raw_value, config.reference(vital))
        if result.is_err() and raw_value is not None:
            logger.debug(
                "measurement_discarded", vital=vital.value, error=str(result.unwrap_err())
            )
        values[vital.value] = result.unwrap_or(None)

    return VitalReading(
        recorded_at=parse_timestamp(_first_present(data, TIMESTAMP_KEYS)),
        **values,
    )


def _chronological(readings: list[VitalReading]) -> list[VitalReading]:
    """Order readings oldest-first without reordering the caller's list."""
    stamped = [r.recorded_at for r in readings if r.recorded_at is not None]

    if len(stamped) == len(readings):
        return sorted(readings, key=lambda r: r.recorded_at)  # type: ignore[arg-type, return-value]

    # Partial or missing timestamps: infer the caller's direction. Without any
    # timestamps, history is assumed most-recent-first as the UI retrieves it.
    if len(stamped) >= 2:
        most_recent_first = stamped[0] > stamped[-1]
    else:
        most_recent_first = True
    return list(reversed(readings)) if most_recent_first else list(readings)


def normalize_series(
    series: Iterable[RawReading] | None, config: EngineConfig
) -> list[VitalReading]:
    """Return a new, chronologically ascending list of clean readings."""
    if series is None:
        return []

    readings = [
        reading
        for reading in (normalize_reading(raw, config) for raw in series)
        if reading is not None
    ]
    return _chronological(readings)
