"""Core domain models for drain telemetry and derived health state."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from math import isfinite
from types import MappingProxyType


class ClogSeverity(StrEnum):
    """Ordinal clog classification derived from triggered sensor factors."""

    NONE = "none"
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        """Sort rank; devices without an assessment rank 0."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[ClogSeverity, int] = {
    ClogSeverity.NONE: 1,
    ClogSeverity.MINOR: 2,
    ClogSeverity.MODERATE: 3,
    ClogSeverity.SEVERE: 4,
}


class FetchFailureKind(StrEnum):
    """Why a device's telemetry could not be resolved in an aggregation pass."""

    UPSTREAM_ERROR = "upstream_error"
    TIMEOUT = "timeout"
    AGGREGATION_TIMEOUT = "aggregation_timeout"
    CANCELLED = "cancelled"
    LATEST_UNAVAILABLE = "latest_unavailable"


_SENSOR_FIELDS = ("tof", "force0", "force1", "turbidity", "weight")
_SYSTEM_FIELDS = ("battery_percentage", "battery_voltage", "signal_strength")


@dataclass(frozen=True, slots=True)
class TelemetrySnapshot:
    """Most recent reading for one device.

    `None` marks a reading that is absent (sensor not installed or not yet
    received). A `0.0` value is a real measurement.
    """

    device_id: str
    tof: float | None = None
    force0: float | None = None
    force1: float | None = None
    turbidity: float | None = None
    weight: float | None = None
    battery_percentage: float | None = None
    battery_voltage: float | None = None
    signal_strength: float | None = None
    uptime_ms: int | None = None
    last_updated_at_ms: int | None = None
    created_at_ms: int | None = None

    def __post_init__(self) -> None:
        if not self.device_id.strip():
            raise ValueError("device_id is required")
        for name in (*_SENSOR_FIELDS, *_SYSTEM_FIELDS):
            value = getattr(self, name)
            if value is not None and not isfinite(value):
                raise ValueError(f"{name} must be finite when present")
        if self.uptime_ms is not None and self.uptime_ms < 0:
            raise ValueError("uptime_ms must be >= 0")

    @property
    def last_seen_ms(self) -> int | None:
        """Last-updated timestamp, falling back to the creation timestamp."""
        if self.last_updated_at_ms is not None:
            return self.last_updated_at_ms
        return self.created_at_ms


@dataclass(frozen=True, slots=True)
class DeviceRecord:
    """Device registry metadata supplied by the external store.

    `location` is held as a read-only mapping and is left out of the hash.
    """

    device_id: str
    name: str
    location: Mapping[str, object] = field(default_factory=dict, hash=False)
    online_status: bool = False
    is_active: bool = False
    version: str = "Unknown"
    created_at_ms: int | None = None

    def __post_init__(self) -> None:
        if not self.device_id.strip():
            raise ValueError("device_id is required")
        object.__setattr__(self, "location", MappingProxyType(dict(self.location)))


@dataclass(frozen=True, slots=True)
class ClogFactors:
    """Per-sensor fault indicators."""

    water_level: bool = False
    flow_rate: bool = False
    turbidity: bool = False
    weight: bool = False

    @property
    def active_count(self) -> int:
        return sum((self.water_level, self.flow_rate, self.turbidity, self.weight))


@dataclass(frozen=True, slots=True)
class ClogAssessment:
    """Derived clog classification for one telemetry snapshot."""

    is_clogged: bool
    severity: ClogSeverity
    confidence: int
    factors: ClogFactors
    recommendations: tuple[str, ...]
    last_analyzed_ms: int | None = None

    def __post_init__(self) -> None:
        if not (0 <= self.confidence <= 100):
            raise ValueError("confidence must be in range [0, 100]")
        if not self.recommendations:
            raise ValueError("recommendations must not be empty")


@dataclass(frozen=True, slots=True)
class DeviceFetchError:
    """Error marker attached to a device whose telemetry was not resolved."""

    kind: FetchFailureKind
    detail: str = ""


@dataclass(frozen=True, slots=True)
class DeviceHealthView:
    """Registry metadata merged with latest telemetry and its assessment."""

    device: DeviceRecord
    snapshot: TelemetrySnapshot | None = None
    has_data: bool = False
    assessment: ClogAssessment | None = None
    error: DeviceFetchError | None = None

    def __post_init__(self) -> None:
        if self.assessment is not None and not self.has_data:
            raise ValueError("assessment requires has_data")

    @property
    def device_id(self) -> str:
        return self.device.device_id

    @property
    def name(self) -> str:
        return self.device.name

    @property
    def online(self) -> bool:
        return self.device.online_status

    @property
    def battery_percentage(self) -> float:
        """Battery reading used for bucketing and sorting; absent counts as 0."""
        if self.snapshot is None or self.snapshot.battery_percentage is None:
            return 0.0
        return self.snapshot.battery_percentage

    @property
    def signal_strength(self) -> float:
        if self.snapshot is None or self.snapshot.signal_strength is None:
            return 0.0
        return self.snapshot.signal_strength

    @property
    def last_seen_ms(self) -> int:
        if self.snapshot is not None and self.snapshot.last_seen_ms is not None:
            return self.snapshot.last_seen_ms
        if self.device.created_at_ms is not None:
            return self.device.created_at_ms
        return 0

    @property
    def severity_rank(self) -> int:
        return 0 if self.assessment is None else self.assessment.severity.rank

    @property
    def status_label(self) -> str:
        """Operator-facing one-line state."""
        if self.error is not None:
            return "data unavailable"
        if not self.has_data:
            return "not deployed"
        if self.assessment is None:
            return "data unavailable"
        if not self.assessment.is_clogged:
            return "clear"
        return f"{self.assessment.severity.value} clog"
