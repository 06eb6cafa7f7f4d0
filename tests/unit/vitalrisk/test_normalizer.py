"""
Tests for the normalizer and the Result type it parses with.

Malformed input must never raise: each bad field degrades to "absent" on its
own, and the caller's series is never reordered or mutated.
"""

import math
from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from vitalrisk.config import EngineConfig
from vitalrisk.domain.models import VitalReading, VitalSign
from vitalrisk.domain.result import Result
from vitalrisk.services.normalizer import (
    normalize_reading,
    normalize_series,
    parse_measurement,
    parse_timestamp,
    split_blood_pressure,
)

CONFIG = EngineConfig()
HR_REF = CONFIG.reference(VitalSign.HEART_RATE)
T0 = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)


class TestResult:
    """Test the Result type for explicit error handling."""

    def test_result_ok_creates_successful_result(self) -> None:
        result: Result[str, Exception] = Result.ok("success")
        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == "success"

    def test_result_error_creates_failed_result(self) -> None:
        error = ValueError("test error")
        result: Result[str, ValueError] = Result.err(error)
        assert not result.is_ok()
        assert result.is_err()
        assert result.unwrap_or("default") == "default"

    def test_unwrap_raises_on_error_result(self) -> None:
        result: Result[str, ValueError] = Result.err(ValueError("test error"))

        with pytest.raises(ValueError, match="test error"):
            result.unwrap()

    def test_unwrap_err_on_ok_raises(self) -> None:
        with pytest.raises(ValueError, match="unwrap_err"):
            Result.ok(1.0).unwrap_err()


class TestParseMeasurement:
    @pytest.mark.parametrize(
        "raw,expected",
        [(72, 72.0), (72.5, 72.5), ("88", 88.0), (" 101.4 ", 101.4), (0, 0.0)],
    )
    def test_numeric_values_parse(self, raw: object, expected: float) -> None:
        assert parse_measurement(raw, HR_REF).unwrap() == expected

    @pytest.mark.parametrize(
        "raw",
        [None, "", "abc", "12/8", float("nan"), float("inf"), -5, True, [72], {"v": 72}, 301],
    )
    def test_malformed_values_are_errors(self, raw: object) -> None:
        result = parse_measurement(raw, HR_REF)

        assert result.is_err()
        assert result.unwrap_or(None) is None

    def test_oversized_integer_is_an_error(self) -> None:
        result = parse_measurement(10**400, HR_REF)

        assert result.is_err()
        assert "too large" in str(result.unwrap_err())

    def test_spo2_cannot_exceed_100(self) -> None:
        assert parse_measurement(104, CONFIG.reference(VitalSign.SPO2)).is_err()

    def test_celsius_temperature_is_implausible_in_fahrenheit(self) -> None:
        assert parse_measurement(37.0, CONFIG.reference(VitalSign.TEMPERATURE)).is_err()

    @given(st.floats(min_value=0.0, max_value=300.0, allow_nan=False))
    def test_any_plausible_heart_rate_parses(self, value: float) -> None:
        assert parse_measurement(value, HR_REF).unwrap() == value


class TestParseTimestamp:
    def test_iso_string_with_z_suffix(self) -> None:
        assert parse_timestamp("2025-03-01T08:00:00Z") == T0

    def test_naive_datetime_assumed_utc(self) -> None:
        assert parse_timestamp(datetime(2025, 3, 1, 8, 0)) == T0

    def test_epoch_seconds(self) -> None:
        assert parse_timestamp(T0.timestamp()) == T0

    @pytest.mark.parametrize(
        "raw", [None, "", "yesterday", True, float("nan"), float("inf"), 10**400]
    )
    def test_unparseable_timestamps_are_absent(self, raw: object) -> None:
        assert parse_timestamp(raw) is None


class TestNormalizeReading:
    def test_camel_case_keys_accepted(self) -> None:
        reading = normalize_reading(
            {"recordedAt": "2025-03-01T08:00:00Z", "heartRate": "72", "respiratoryRate": 16},
            CONFIG,
        )

        assert reading is not None
        assert reading.heart_rate == 72.0
        assert reading.respiratory_rate == 16.0
        assert reading.recorded_at == T0

    def test_blood_pressure_string_is_split(self) -> None:
        reading = normalize_reading({"blood_pressure": "120/80"}, CONFIG)

        assert reading is not None
        assert (reading.systolic, reading.diastolic) == (120.0, 80.0)

    def test_explicit_systolic_wins_over_blood_pressure_string(self) -> None:
        reading = normalize_reading({"systolic": 130, "blood_pressure": "120/80"}, CONFIG)

        assert reading is not None
        assert (reading.systolic, reading.diastolic) == (130.0, 80.0)

    @pytest.mark.parametrize("raw", ["120", "120/80/60", 120, "abc/def"])
    def test_malformed_blood_pressure_is_absent(self, raw: object) -> None:
        reading = normalize_reading({"blood_pressure": raw}, CONFIG)

        assert reading is not None
        assert reading.systolic is None and reading.diastolic is None

    def test_split_blood_pressure(self) -> None:
        assert split_blood_pressure("118 / 76") == ("118", "76")
        assert split_blood_pressure(None) == (None, None)

    def test_oversized_integer_field_is_absent(self) -> None:
        reading = normalize_reading({"heart_rate": 10**400, "spo2": 97}, CONFIG)

        assert reading is not None
        assert reading.heart_rate is None
        assert reading.spo2 == 97.0

    def test_fields_are_independent(self) -> None:
        reading = normalize_reading({"heart_rate": "fast", "spo2": 95, "temperature": -1}, CONFIG)

        assert reading is not None
        assert reading.heart_rate is None
        assert reading.spo2 == 95.0
        assert reading.temperature is None

    def test_model_input_is_revalidated(self) -> None:
        reading = normalize_reading(VitalReading(heart_rate=math.nan, spo2=97), CONFIG)

        assert reading is not None
        assert reading.heart_rate is None
        assert reading.spo2 == 97.0

    @pytest.mark.parametrize("raw", [42, "heart_rate=72", None])
    def test_non_readings_are_dropped(self, raw: object) -> None:
        assert normalize_reading(raw, CONFIG) is None  # type: ignore[arg-type]


class TestNormalizeSeries:
    @staticmethod
    def _series(hr_values: list[float]) -> list[dict[str, object]]:
        return [
            {"recorded_at": T0 + timedelta(minutes=15 * i), "heart_rate": hr}
            for i, hr in enumerate(hr_values)
        ]

    def test_oldest_first_input_kept(self) -> None:
        readings = normalize_series(self._series([70, 75, 80]), CONFIG)

        assert [r.heart_rate for r in readings] == [70, 75, 80]

    def test_most_recent_first_input_reversed(self) -> None:
        series = list(reversed(self._series([70, 75, 80])))

        readings = normalize_series(series, CONFIG)

        assert [r.heart_rate for r in readings] == [70, 75, 80]

    def test_caller_series_not_mutated(self) -> None:
        series = list(reversed(self._series([70, 75, 80])))
        snapshot = [dict(item) for item in series]

        normalize_series(series, CONFIG)

        assert series == snapshot

    def test_without_timestamps_history_is_most_recent_first(self) -> None:
        readings = normalize_series([{"heart_rate": 80}, {"heart_rate": 75}], CONFIG)

        assert [r.heart_rate for r in readings] == [75, 80]

    def test_partial_timestamps_infer_direction(self) -> None:
        series = [
            {"recorded_at": T0, "heart_rate": 70},
            {"heart_rate": 75},
            {"recorded_at": T0 + timedelta(hours=1), "heart_rate": 80},
        ]

        readings = normalize_series(series, CONFIG)

        assert [r.heart_rate for r in readings] == [70, 75, 80]

    def test_mixed_naive_and_aware_timestamps_sort(self) -> None:
        series = [
            {"recorded_at": "2025-03-01T09:00:00", "heart_rate": 80},
            {"recorded_at": T0, "heart_rate": 70},
        ]

        readings = normalize_series(series, CONFIG)

        assert [r.heart_rate for r in readings] == [70, 80]

    def test_none_and_empty_series(self) -> None:
        assert normalize_series(None, CONFIG) == []
        assert normalize_series([], CONFIG) == []

    def test_garbage_entries_dropped(self) -> None:
        series: list = [{"heart_rate": 70}, "junk", 3]

        readings = normalize_series(series, CONFIG)

        assert len(readings) == 1
