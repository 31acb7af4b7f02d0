"""Unit tests for store row normalization and the in-memory store."""

from __future__ import annotations

import pytest

from drainwatch.integration import (
    InMemoryTelemetryStore,
    build_in_memory_store,
    normalize_device_record,
    normalize_telemetry_row,
)


def test_normalize_device_record_from_registry_row() -> None:
    record = normalize_device_record(
        {
            "uuid": "dev-1",
            "name": " Main St ",
            "location": {"lat": 1.0, "lng": 2.0},
            "online_status": True,
            "is_active": "true",
            "device_version": "1.2.0",
            "created_at": "2025-01-01T00:00:00Z",
        }
    )

    assert record.device_id == "dev-1"
    assert record.name == "Main St"
    assert record.location == {"lat": 1.0, "lng": 2.0}
    assert record.online_status is True
    assert record.is_active is True
    assert record.version == "1.2.0"
    assert record.created_at_ms == 1_735_689_600_000


def test_normalize_device_record_defaults() -> None:
    record = normalize_device_record({"deviceId": "dev-2"})

    assert record.name == "Unknown Device"
    assert record.version == "Unknown"
    assert record.online_status is False
    assert record.location == {}


def test_normalize_device_record_requires_id() -> None:
    with pytest.raises(ValueError, match="device_id is required"):
        normalize_device_record({"name": "orphan"})


def test_normalize_telemetry_row_keeps_absent_readings_as_none() -> None:
    snapshot = normalize_telemetry_row(
        {
            "device_id": "dev-1",
            "tof": 0,
            "force0": "1.5",
            "force1": None,
            "turbidity": "",
            "batteryPercentage": 55,
            "signal_strength": -67,
            "uptime_ms": 3600000,
            "last_updated_at": 1_735_689_600,
        }
    )

    assert snapshot.tof == 0.0
    assert snapshot.force0 == 1.5
    assert snapshot.force1 is None
    assert snapshot.turbidity is None
    assert snapshot.weight is None
    assert snapshot.battery_percentage == 55.0
    assert snapshot.signal_strength == -67.0
    assert snapshot.uptime_ms == 3_600_000
    assert snapshot.last_updated_at_ms == 1_735_689_600_000


def test_normalize_telemetry_row_uses_fallback_device_id() -> None:
    snapshot = normalize_telemetry_row({"tof": 120}, fallback_device_id="dev-9")

    assert snapshot.device_id == "dev-9"


@pytest.mark.parametrize(
    ("row", "message"),
    [
        ({"tof": 10}, "device_id is required"),
        ({"device_id": "d", "tof": "deep"}, "tof must be numeric"),
        ({"device_id": "d", "weight": True}, "weight must be numeric"),
        ({"device_id": "d", "turbidity": "nan"}, "turbidity must be finite"),
        ({"device_id": "d", "created_at": "yesterday"}, "created_at must be an ISO-8601"),
    ],
)
def test_normalize_telemetry_row_rejects_malformed_rows(row: dict[str, object], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        normalize_telemetry_row(row)


def test_memory_store_latest_picks_newest_row() -> None:
    store = InMemoryTelemetryStore()
    store.add(normalize_telemetry_row({"device_id": "d", "tof": 1, "last_updated_at": 2_000_000_000_000}))
    store.add(normalize_telemetry_row({"device_id": "d", "tof": 2, "last_updated_at": 1_000_000_000_000}))

    latest = store.latest("d")

    assert latest is not None
    assert latest.tof == 1.0
    assert store.has_history("d") is True
    assert store.has_history("other") is False
    assert store.latest("other") is None


def test_build_in_memory_store_scopes_owners() -> None:
    registry, store = build_in_memory_store(
        [{"uuid": "a", "name": "A", "user_id": "u1"}, {"uuid": "b", "name": "B", "user_id": "u2"}],
        [{"device_id": "a", "tof": 120}],
    )

    assert [device.device_id for device in registry.list_devices()] == ["a", "b"]
    assert [device.device_id for device in registry.list_devices("u2")] == ["b"]
    assert store.has_history("a") is True
    assert store.has_history("b") is False
