"""Domain models for drain telemetry and derived health views."""

from drainwatch.domain.models import (
    ClogAssessment,
    ClogFactors,
    ClogSeverity,
    DeviceFetchError,
    DeviceHealthView,
    DeviceRecord,
    FetchFailureKind,
    TelemetrySnapshot,
)

__all__ = [
    "ClogAssessment",
    "ClogFactors",
    "ClogSeverity",
    "DeviceFetchError",
    "DeviceHealthView",
    "DeviceRecord",
    "FetchFailureKind",
    "TelemetrySnapshot",
]
