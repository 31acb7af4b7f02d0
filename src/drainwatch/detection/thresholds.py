"""Threshold contracts used by the clog detection engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from math import isfinite


class InvalidThresholdConfig(ValueError):
    """Raised when a threshold set violates its ordering invariants."""


def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidThresholdConfig(f"{name} must be numeric")
        if not isfinite(value):
            raise InvalidThresholdConfig(f"{name} must be finite")


@dataclass(frozen=True, slots=True)
class RangeBand:
    """Closed distance band in millimeters."""

    min: float
    max: float

    def __post_init__(self) -> None:
        _require_finite(min=self.min, max=self.max)
        if self.min > self.max:
            raise InvalidThresholdConfig("band min cannot be greater than band max")


@dataclass(frozen=True, slots=True)
class TofThresholds:
    """Time-of-flight distance bands; lower distance means higher water.

    Water level is flagged below `normal.min` or above `critical.max`.
    """

    normal: RangeBand = field(default_factory=lambda: RangeBand(50.0, 200.0))
    warning: RangeBand = field(default_factory=lambda: RangeBand(30.0, 250.0))
    critical: RangeBand = field(default_factory=lambda: RangeBand(0.0, 300.0))

    def __post_init__(self) -> None:
        if not (self.critical.max >= self.warning.max >= self.normal.max):
            raise InvalidThresholdConfig("tof max bounds must satisfy critical >= warning >= normal")
        if not (self.critical.min <= self.warning.min <= self.normal.min):
            raise InvalidThresholdConfig("tof min bounds must satisfy critical <= warning <= normal")


@dataclass(frozen=True, slots=True)
class TurbidityThresholds:
    """Turbidity limits in NTU; the factor trips above `warning`."""

    normal: float = 100.0
    warning: float = 250.0
    critical: float = 500.0

    def __post_init__(self) -> None:
        _require_finite(normal=self.normal, warning=self.warning, critical=self.critical)
        if not (self.normal < self.warning < self.critical):
            raise InvalidThresholdConfig("turbidity thresholds must be strictly increasing")


@dataclass(frozen=True, slots=True)
class WeightThresholds:
    """Debris load limits in kilograms relative to an empty-drain baseline."""

    baseline: float = 0.0
    warning_increase: float = 2.0
    critical_increase: float = 5.0

    def __post_init__(self) -> None:
        _require_finite(
            baseline=self.baseline,
            warning_increase=self.warning_increase,
            critical_increase=self.critical_increase,
        )
        if self.warning_increase <= 0 or self.critical_increase <= 0:
            raise InvalidThresholdConfig("weight increases must be > 0")

    @property
    def warning_limit(self) -> float:
        return self.baseline + self.warning_increase


@dataclass(frozen=True, slots=True)
class ForceThresholds:
    """Allowed difference between the two load cells in newtons."""

    normal_variance: float = 0.5
    warning_variance: float = 1.5
    critical_variance: float = 3.0

    def __post_init__(self) -> None:
        _require_finite(
            normal_variance=self.normal_variance,
            warning_variance=self.warning_variance,
            critical_variance=self.critical_variance,
        )
        if not (self.normal_variance < self.warning_variance < self.critical_variance):
            raise InvalidThresholdConfig("force variances must be strictly increasing")


@dataclass(frozen=True, slots=True)
class ThresholdConfig:
    """Immutable per-sensor boundaries for clog classification."""

    tof: TofThresholds = field(default_factory=TofThresholds)
    turbidity: TurbidityThresholds = field(default_factory=TurbidityThresholds)
    weight: WeightThresholds = field(default_factory=WeightThresholds)
    force: ForceThresholds = field(default_factory=ForceThresholds)


DEFAULT_THRESHOLDS = ThresholdConfig()


THRESHOLD_FIELD_EFFECTS: dict[str, str] = {
    "tof.normal.min": "Distance (mm) below which water is considered backed up; readings under it flag water level.",
    "tof.normal.max": "Upper edge of the normal distance band; bounds warning.max and critical.max from below.",
    "tof.warning.min": "Lower edge of the warning distance band; must sit between critical.min and normal.min.",
    "tof.warning.max": "Upper edge of the warning distance band; must sit between normal.max and critical.max.",
    "tof.critical.min": "Lowest plausible distance (mm); must not exceed warning.min.",
    "tof.critical.max": "Distance (mm) above which the reading is treated as abnormal; readings over it flag water level.",
    "turbidity.normal": "Clear-water turbidity (NTU); must be below warning.",
    "turbidity.warning": "Turbidity (NTU) above which sediment or debris is flagged.",
    "turbidity.critical": "Very cloudy water (NTU); must be above warning.",
    "weight.baseline": "Empty-drain weight (kg) that debris load is measured against.",
    "weight.warningIncrease": "Load over baseline (kg) above which debris accumulation is flagged.",
    "weight.criticalIncrease": "Load over baseline (kg) indicating a significant blockage; must be > 0.",
    "force.normalVariance": "Expected load-cell difference (N) under normal flow; must be below warningVariance.",
    "force.warningVariance": "Load-cell difference (N) above which irregular flow is flagged.",
    "force.criticalVariance": "Load-cell difference (N) indicating turbulent flow from a blockage; must be above warningVariance.",
}
