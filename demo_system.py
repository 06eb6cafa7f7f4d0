"""
End-to-end demonstration of the vital-signs risk engine.

This script walks through:
1. Configuration loading
2. Analysis of canonical patient scenarios
3. Per-vital breakdown and forecasts for a deteriorating patient
4. Graceful handling of malformed input
5. Cached analysis through VitalsAnalyzer

Run with: uv run python demo_system.py
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vitalrisk import AnalysisResult, RiskStatus, VitalsAnalyzer, analyze
from vitalrisk.config import get_config, print_config_summary
from vitalrisk.logging_config import configure_logging

console = Console()

STATUS_STYLES = {
    RiskStatus.STABLE: "green",
    RiskStatus.OBSERVE: "yellow",
    RiskStatus.CRITICAL: "bold red",
}

BASELINE = {
    "heart_rate": 78,
    "spo2": 97,
    "systolic": 118,
    "diastolic": 76,
    "temperature": 98.4,
    "respiratory_rate": 16,
}


def patient_series(count: int, **overrides: list[Any]) -> list[dict[str, Any]]:
    """Most-recent-first history, the way a vitals table is usually queried."""
    now = datetime.now(UTC)
    series = []
    for i in range(count):
        reading: dict[str, Any] = {
            "recorded_at": (now - timedelta(hours=count - 1 - i)).isoformat(),
            **BASELINE,
        }
        for name, values in overrides.items():
            reading[name] = values[i]
        series.append(reading)
    return list(reversed(series))


SCENARIOS: list[tuple[str, list[dict[str, Any]]]] = [
    ("Healthy baseline", patient_series(6)),
    ("Bradycardia spot check", [{**BASELINE, "heart_rate": 42}]),
    ("Tachycardia, oximeter off", [{"heartRate": 200, "SpO2": None}]),
    ("Progressive desaturation", patient_series(5, spo2=[96, 94, 92, 90, 88])),
    (
        "Rising heart and breathing rate",
        patient_series(
            5, heart_rate=[92, 100, 108, 116, 124], respiratory_rate=[18, 20, 22, 24, 26]
        ),
    ),
    ("Legacy blood pressure strings", [{"blood_pressure": "186/112", "heart_rate": 96}]),
]


def _status_text(status: RiskStatus | None) -> str:
    if status is None:
        return "-"
    return f"[{STATUS_STYLES[status]}]{status.value}[/]"


def demo_configuration() -> bool:
    """Load configuration from the environment."""

    console.print(Panel("🔧 Configuration", style="blue"))

    try:
        config = get_config()
        configure_logging(config.logging)
        console.print("✅ Configuration loaded successfully", style="green")
        print_config_summary()
        return True

    except ValueError as e:
        console.print(f"❌ Configuration invalid: {e}", style="red")
        return False


def demo_scenarios() -> bool:
    """Score every canonical scenario and tabulate the outcome."""

    console.print(Panel("🩺 Scenario Analysis", style="blue"))

    table = Table(title="Risk Assessment")
    table.add_column("Scenario", style="cyan")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Predicted")
    table.add_column("Explanation", style="white")

    for name, series in SCENARIOS:
        result = analyze(series, get_config().engine)
        predicted = (
            f"{result.predicted_risk_score:.1f} {_status_text(result.predicted_status)}"
            if result.predicted_risk_score is not None
            else "locked"
        )
        table.add_row(
            name,
            _status_text(result.status),
            f"{result.risk_score:.1f}",
            predicted,
            result.explanation,
        )

    console.print(table)
    return True


def _breakdown_table(result: AnalysisResult) -> Table:
    table = Table(title="Per-vital breakdown")
    table.add_column("Vital", style="cyan")
    table.add_column("Latest", justify="right")
    table.add_column("Smoothed", justify="right")
    table.add_column("Severity", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Forecast", justify="right")
    table.add_column("Confidence", justify="right")

    for vital, contribution in result.breakdown.items():
        prediction = (result.predictions or {}).get(vital)
        table.add_row(
            contribution.label,
            "-" if contribution.latest_value is None else f"{contribution.latest_value:g}",
            "-" if contribution.current_value is None else f"{contribution.current_value:.1f}",
            f"{contribution.severity:.2f}",
            f"{contribution.points:.1f}",
            "-" if prediction is None else f"{prediction.value:.1f} ({prediction.change:+.1f})",
            "-" if prediction is None else f"{prediction.confidence:.2f}",
        )
    return table


def demo_deterioration() -> bool:
    """Show the full breakdown for a deteriorating patient."""

    console.print(Panel("📉 Deteriorating Patient", style="blue"))

    result = analyze(patient_series(5, spo2=[96, 94, 92, 90, 88]), get_config().engine)
    console.print(_breakdown_table(result))
    console.print(f"Deteriorating: {result.deteriorating}")
    console.print(result.model_dump_json(by_alias=True, include={"status", "risk_score"}))

    return result.status == RiskStatus.CRITICAL and result.deteriorating


def demo_error_handling() -> bool:
    """Malformed input must degrade to absent fields, never an exception."""

    console.print(Panel("🛡️ Error Handling", style="blue"))

    malformed: list[Any] = [
        None,
        [],
        ["not a reading", 42],
        [{"heart_rate": "n/a", "spo2": -3, "temperature": "NaN", "recorded_at": "yesterday"}],
    ]

    for series in malformed:
        result = analyze(series, get_config().engine)
        console.print(f"  {series!r:<90} → {_status_text(result.status)} ({result.explanation})")
        if result.status != RiskStatus.STABLE:
            return False

    console.print("✅ Malformed input handled gracefully", style="green")
    return True


def demo_cached_analysis() -> bool:
    """Repeated renders of the same history are served from the cache."""

    console.print(Panel("⚡ Cached Analysis", style="blue"))

    analyzer = VitalsAnalyzer()
    series = patient_series(8, heart_rate=[80, 84, 90, 97, 103, 110, 118, 126])
    for _ in range(10):
        analyzer.analyze(series)

    info = analyzer.cache_info()
    console.print(f"Hits: {info.hits}  Misses: {info.misses}  Size: {info.currsize}/{info.maxsize}")
    return info.misses == 1


def run_all_demos() -> None:
    """Run all demonstrations."""

    console.print(Panel("🧪 Vital Risk Monitor - System Demo", style="bold blue"))

    demos = [
        ("Configuration", demo_configuration),
        ("Scenario Analysis", demo_scenarios),
        ("Deteriorating Patient", demo_deterioration),
        ("Error Handling", demo_error_handling),
        ("Cached Analysis", demo_cached_analysis),
    ]

    results = []
    for demo_name, demo_func in demos:
        console.print(f"\n{'=' * 60}")
        results.append((demo_name, demo_func()))

    console.print(f"\n{'=' * 60}")
    console.print(Panel("📋 Demo Results Summary", style="bold"))

    summary_table = Table()
    summary_table.add_column("Demo", style="cyan")
    summary_table.add_column("Result", style="white")

    passed = 0
    for demo_name, result in results:
        if result:
            summary_table.add_row(demo_name, "✅ PASSED")
            passed += 1
        else:
            summary_table.add_row(demo_name, "❌ FAILED")

    console.print(summary_table)
    console.print(f"\n🎯 Results: {passed}/{len(results)} demos passed")


if __name__ == "__main__":
    try:
        run_all_demos()
    except KeyboardInterrupt:
        console.print("\n👋 Demo stopped by user", style="yellow")
