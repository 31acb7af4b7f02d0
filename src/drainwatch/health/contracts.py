"""Read interfaces and policies for device-health aggregation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from drainwatch.domain.models import DeviceRecord, TelemetrySnapshot


class DeviceRegistry(Protocol):
    """Registry read: device records visible to one owner scope."""

    def list_devices(self, owner_id: str | None = None) -> Sequence[DeviceRecord]: ...


class TelemetryStore(Protocol):
    """Telemetry reads keyed by device id."""

    def latest(self, device_id: str) -> TelemetrySnapshot | None:
        """Most recent snapshot, or `None` when nothing can be read."""
        ...

    def has_history(self, device_id: str) -> bool:
        """Whether at least one telemetry record was ever stored."""
        ...


@dataclass(frozen=True, slots=True)
class AggregationPolicy:
    """Bounds for one aggregation pass over a device batch."""

    max_workers: int = 8
    per_device_timeout_s: float = 5.0
    overall_timeout_s: float | None = None
    poll_interval_s: float = 0.05

    def __post_init__(self) -> None:
        if self.max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        if self.per_device_timeout_s <= 0:
            raise ValueError("per_device_timeout_s must be > 0")
        if self.overall_timeout_s is not None and self.overall_timeout_s <= 0:
            raise ValueError("overall_timeout_s must be > 0 when set")
        if self.poll_interval_s <= 0:
            raise ValueError("poll_interval_s must be > 0")
