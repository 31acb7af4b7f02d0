"""Adapters for rows supplied by the external device and telemetry store."""

from drainwatch.integration.memory_store import (
    InMemoryDeviceRegistry,
    InMemoryTelemetryStore,
    build_in_memory_store,
)
from drainwatch.integration.rows import normalize_device_record, normalize_telemetry_row

__all__ = [
    "InMemoryDeviceRegistry",
    "InMemoryTelemetryStore",
    "build_in_memory_store",
    "normalize_device_record",
    "normalize_telemetry_row",
]
