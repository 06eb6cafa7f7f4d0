"""
Run the clinical validation framework as part of the unit suite.

Every clinician-reviewed scenario must pass and reproduce exactly across
repeated, reordered and cached runs.
"""

import pytest

from clinical_validation_framework import (
    ClinicalValidationFramework,
    ExpertValidatedScenario,
    create_custom_validation_scenario,
    reading_series,
)
from vitalrisk import EngineConfig, RiskStatus

FRAMEWORK = ClinicalValidationFramework(EngineConfig())


@pytest.mark.parametrize(
    "scenario", FRAMEWORK.expert_scenarios, ids=lambda scenario: scenario.scenario_id
)
def test_expert_scenario(scenario: ExpertValidatedScenario) -> None:
    result = FRAMEWORK._validate_scenario(scenario)

    assert result.critical_failures == []
    assert result.validation_issues == []
    assert result.consistency_score == 1.0
    assert result.validation_passed


def test_comprehensive_validation_approves_release() -> None:
    framework = ClinicalValidationFramework()

    summary = framework.run_comprehensive_validation()

    assert summary["validation_summary"]["failed_scenarios"] == 0
    assert summary["validation_summary"]["overall_success_rate"] == 100.0
    assert summary["critical_failures"] == []
    assert summary["release_recommendation"].startswith("✅")
    assert len(framework.validation_results) == len(framework.expert_scenarios)


def test_wrong_expectation_is_reported() -> None:
    scenario = create_custom_validation_scenario(
        "mislabelled_desaturation",
        "Desaturation wrongly expected to be stable",
        reading_series(5, spo2=[96, 94, 92, 90, 88]),
        {RiskStatus.STABLE},
        explanation_must_not_include=["SpO₂"],
    )

    result = FRAMEWORK._validate_scenario(scenario)

    assert not result.validation_passed
    assert len(result.critical_failures) == 1
    assert "status critical" in result.critical_failures[0]
    assert result.validation_issues == ["Explanation should not mention 'SpO₂'"]


def test_release_blocked_on_critical_failures() -> None:
    recommendation = FRAMEWORK._get_release_recommendation(1.0, 1.0, ["boom"])

    assert recommendation.startswith("❌")


def test_stress_testing_is_deterministic() -> None:
    stress = FRAMEWORK.run_stress_testing(iterations=20)

    assert stress["stress_test_summary"]["mismatches"] == 0
    assert stress["performance_recommendation"].startswith("✅")
