"""Deterministic sensor-fusion clog classifier for drain telemetry."""

from __future__ import annotations

from drainwatch.detection.thresholds import (
    DEFAULT_THRESHOLDS,
    ForceThresholds,
    ThresholdConfig,
    TofThresholds,
    TurbidityThresholds,
    WeightThresholds,
)
from drainwatch.domain.models import ClogAssessment, ClogFactors, ClogSeverity, TelemetrySnapshot

_SEVERITY_BY_COUNT: tuple[tuple[ClogSeverity, int], ...] = (
    (ClogSeverity.NONE, 85),
    (ClogSeverity.MINOR, 60),
    (ClogSeverity.MODERATE, 75),
    (ClogSeverity.SEVERE, 90),
)

WATER_LEVEL_BONUS = 10
FLOW_TURBIDITY_BONUS = 5

RECOMMEND_WATER_LEVEL = "Check water level - possible backup detected"
RECOMMEND_WEIGHT = "Heavy debris accumulation detected - manual cleaning recommended"
RECOMMEND_TURBIDITY = "High turbidity detected - check for sediment buildup"
RECOMMEND_FLOW_RATE = "Irregular flow patterns detected - inspect for partial blockages"
RECOMMEND_ALL_NORMAL = "All systems normal - continue regular monitoring"

_SEVERITY_BANNERS: dict[ClogSeverity, str] = {
    ClogSeverity.SEVERE: (
        "URGENT: Multiple indicators suggest severe clogging - immediate maintenance required"
    ),
    ClogSeverity.MODERATE: "Schedule maintenance within 24-48 hours",
    ClogSeverity.MINOR: "Monitor closely - early intervention may prevent full blockage",
}


def water_level_active(tof: float | None, thresholds: TofThresholds) -> bool:
    """High water (short distance) or an out-of-range long reading."""
    if tof is None:
        return False
    return tof < thresholds.normal.min or tof > thresholds.critical.max


def flow_rate_active(force0: float | None, force1: float | None, thresholds: ForceThresholds) -> bool:
    if force0 is None or force1 is None:
        return False
    return abs(force0 - force1) > thresholds.warning_variance


def turbidity_active(turbidity: float | None, thresholds: TurbidityThresholds) -> bool:
    if turbidity is None:
        return False
    return turbidity > thresholds.warning


def weight_active(weight: float | None, thresholds: WeightThresholds) -> bool:
    if weight is None:
        return False
    return weight > thresholds.warning_limit


def evaluate_factors(snapshot: TelemetrySnapshot, thresholds: ThresholdConfig) -> ClogFactors:
    """Evaluate every sensor factor; absent readings are inactive."""
    return ClogFactors(
        water_level=water_level_active(snapshot.tof, thresholds.tof),
        flow_rate=flow_rate_active(snapshot.force0, snapshot.force1, thresholds.force),
        turbidity=turbidity_active(snapshot.turbidity, thresholds.turbidity),
        weight=weight_active(snapshot.weight, thresholds.weight),
    )


def score_factors(factors: ClogFactors) -> tuple[ClogSeverity, int]:
    """Map active factors to severity and a confidence clamped to [0, 100]."""
    active = factors.active_count
    severity, confidence = _SEVERITY_BY_COUNT[min(active, len(_SEVERITY_BY_COUNT) - 1)]

    # Bonuses stack on top of the base lookup, including at severe.
    if factors.water_level and factors.weight:
        confidence += WATER_LEVEL_BONUS
    if factors.turbidity and factors.flow_rate:
        confidence += FLOW_TURBIDITY_BONUS

    return severity, max(0, min(confidence, 100))


def build_recommendations(factors: ClogFactors, severity: ClogSeverity) -> tuple[str, ...]:
    """Ordered operator guidance: one line per active factor, then a banner."""
    recommendations: list[str] = []
    if factors.water_level:
        recommendations.append(RECOMMEND_WATER_LEVEL)
    if factors.weight:
        recommendations.append(RECOMMEND_WEIGHT)
    if factors.turbidity:
        recommendations.append(RECOMMEND_TURBIDITY)
    if factors.flow_rate:
        recommendations.append(RECOMMEND_FLOW_RATE)

    banner = _SEVERITY_BANNERS.get(severity)
    if banner is not None:
        recommendations.append(banner)

    if not recommendations:
        recommendations.append(RECOMMEND_ALL_NORMAL)
    return tuple(recommendations)


def detect_clog(
    snapshot: TelemetrySnapshot,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
    *,
    analyzed_at_ms: int | None = None,
) -> ClogAssessment:
    """Classify one telemetry snapshot.

    `analyzed_at_ms` defaults to the snapshot's own last-seen time so that
    identical inputs always produce identical assessments.
    """
    factors = evaluate_factors(snapshot, thresholds)
    severity, confidence = score_factors(factors)
    return ClogAssessment(
        is_clogged=factors.active_count > 0,
        severity=severity,
        confidence=confidence,
        factors=factors,
        recommendations=build_recommendations(factors, severity),
        last_analyzed_ms=analyzed_at_ms if analyzed_at_ms is not None else snapshot.last_seen_ms,
    )


classify = detect_clog


class ClogDetectionEngine:
    """Clog classifier bound to one validated threshold set."""

    def __init__(self, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> None:
        if not isinstance(thresholds, ThresholdConfig):
            raise TypeError("thresholds must be a ThresholdConfig")
        self._thresholds = thresholds

    @property
    def thresholds(self) -> ThresholdConfig:
        return self._thresholds

    def evaluate(self, snapshot: TelemetrySnapshot, *, analyzed_at_ms: int | None = None) -> ClogAssessment:
        """Classify `snapshot` against the bound thresholds."""
        return detect_clog(snapshot, self._thresholds, analyzed_at_ms=analyzed_at_ms)
