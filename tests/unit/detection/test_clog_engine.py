"""Unit tests for the sensor-fusion clog classifier."""

from __future__ import annotations

import pytest

from drainwatch.detection import DEFAULT_THRESHOLDS, ClogDetectionEngine, classify, detect_clog
from drainwatch.detection.engine import (
    RECOMMEND_ALL_NORMAL,
    RECOMMEND_FLOW_RATE,
    RECOMMEND_TURBIDITY,
    RECOMMEND_WATER_LEVEL,
    RECOMMEND_WEIGHT,
)
from drainwatch.domain.models import ClogSeverity, TelemetrySnapshot


def _snapshot(**readings: float | None) -> TelemetrySnapshot:
    return TelemetrySnapshot(device_id="drain-01", **readings)


def test_all_sensors_absent_is_clear_with_single_normal_recommendation() -> None:
    result = detect_clog(_snapshot())

    assert result.is_clogged is False
    assert result.severity == ClogSeverity.NONE
    assert result.confidence == 85
    assert result.recommendations == (RECOMMEND_ALL_NORMAL,)


def test_example_scenario_is_moderate_without_bonus() -> None:
    result = detect_clog(_snapshot(tof=20, turbidity=300, weight=1, force0=1.0, force1=1.2))

    assert result.factors.water_level is True
    assert result.factors.turbidity is True
    assert result.factors.flow_rate is False
    assert result.factors.weight is False
    assert result.severity == ClogSeverity.MODERATE
    assert result.confidence == 75
    assert result.is_clogged is True


def test_tof_boundaries_are_exclusive() -> None:
    tof = DEFAULT_THRESHOLDS.tof

    assert detect_clog(_snapshot(tof=tof.normal.min)).factors.water_level is False
    assert detect_clog(_snapshot(tof=tof.critical.max)).factors.water_level is False
    assert detect_clog(_snapshot(tof=tof.critical.max + 1e-6)).factors.water_level is True
    assert detect_clog(_snapshot(tof=tof.normal.min - 1e-6)).factors.water_level is True


def test_zero_reading_is_not_treated_as_absent() -> None:
    assert detect_clog(_snapshot(tof=0.0)).factors.water_level is True
    assert detect_clog(_snapshot(tof=None)).factors.water_level is False


def test_flow_rate_requires_both_load_cells() -> None:
    assert detect_clog(_snapshot(force0=5.0)).factors.flow_rate is False
    assert detect_clog(_snapshot(force0=5.0, force1=0.0)).factors.flow_rate is True
    assert detect_clog(_snapshot(force0=1.0, force1=2.5)).factors.flow_rate is False


def test_weight_uses_baseline_plus_warning_increase() -> None:
    assert detect_clog(_snapshot(weight=2.0)).factors.weight is False
    assert detect_clog(_snapshot(weight=2.01)).factors.weight is True


def test_turbidity_flips_once_at_warning_boundary() -> None:
    warning = DEFAULT_THRESHOLDS.turbidity.warning
    values = [0.0, 100.0, warning - 0.5, warning, warning + 0.5, 600.0, 10_000.0]

    flags = [detect_clog(_snapshot(turbidity=value)).factors.turbidity for value in values]

    assert flags == [False, False, False, False, True, True, True]


def test_single_factor_is_minor() -> None:
    result = detect_clog(_snapshot(turbidity=400))

    assert result.severity == ClogSeverity.MINOR
    assert result.confidence == 60
    assert result.recommendations == (
        RECOMMEND_TURBIDITY,
        "Monitor closely - early intervention may prevent full blockage",
    )


def test_water_level_and_weight_bonus() -> None:
    result = detect_clog(_snapshot(tof=10, weight=7))

    assert result.severity == ClogSeverity.MODERATE
    assert result.confidence == 85


def test_turbidity_and_flow_bonus() -> None:
    result = detect_clog(_snapshot(turbidity=300, force0=0.0, force1=2.0))

    assert result.severity == ClogSeverity.MODERATE
    assert result.confidence == 80


def test_all_factors_with_both_bonuses_cap_at_100() -> None:
    result = detect_clog(_snapshot(tof=10, weight=9, turbidity=600, force0=0.0, force1=4.0))

    assert result.severity == ClogSeverity.SEVERE
    assert result.confidence == 100


def test_three_factors_with_one_bonus_caps_at_100() -> None:
    result = detect_clog(_snapshot(tof=10, weight=9, turbidity=600))

    assert result.severity == ClogSeverity.SEVERE
    assert result.confidence == 100


def test_recommendations_follow_factor_order_then_banner() -> None:
    result = detect_clog(_snapshot(tof=10, weight=9, turbidity=600, force0=0.0, force1=4.0))

    assert result.recommendations[:4] == (
        RECOMMEND_WATER_LEVEL,
        RECOMMEND_WEIGHT,
        RECOMMEND_TURBIDITY,
        RECOMMEND_FLOW_RATE,
    )
    assert len(result.recommendations) == 5
    assert result.recommendations[-1].startswith("URGENT")


def test_moderate_banner_schedules_maintenance() -> None:
    result = detect_clog(_snapshot(tof=10, turbidity=600))

    assert result.recommendations[-1] == "Schedule maintenance within 24-48 hours"


@pytest.mark.parametrize(
    "readings",
    [
        {},
        {"tof": 10},
        {"tof": 10, "weight": 9},
        {"tof": 10, "weight": 9, "turbidity": 600},
        {"tof": 10, "weight": 9, "turbidity": 600, "force0": 0.0, "force1": 4.0},
        {"turbidity": 600, "force0": 0.0, "force1": 4.0},
    ],
)
def test_confidence_always_within_bounds(readings: dict[str, float]) -> None:
    result = detect_clog(_snapshot(**readings))

    assert 0 <= result.confidence <= 100
    assert result.recommendations


def test_detect_clog_is_idempotent() -> None:
    snapshot = _snapshot(tof=20, turbidity=300, weight=1, force0=1.0, force1=1.2, last_updated_at_ms=1_700_000_000_000)

    first = detect_clog(snapshot)
    second = detect_clog(snapshot)

    assert first == second
    assert first.last_analyzed_ms == 1_700_000_000_000


def test_explicit_analysis_time_is_recorded() -> None:
    result = detect_clog(_snapshot(), analyzed_at_ms=42)

    assert result.last_analyzed_ms == 42


def test_engine_binds_thresholds_and_matches_free_function() -> None:
    snapshot = _snapshot(tof=20, turbidity=300)
    engine = ClogDetectionEngine()

    assert engine.thresholds is DEFAULT_THRESHOLDS
    assert engine.evaluate(snapshot) == classify(snapshot)


def test_engine_rejects_non_config_thresholds() -> None:
    with pytest.raises(TypeError, match="ThresholdConfig"):
        ClogDetectionEngine({"tof": {}})  # type: ignore[arg-type]
