"""In-memory registry and telemetry store backed by normalized rows."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from drainwatch.domain.models import DeviceRecord, TelemetrySnapshot
from drainwatch.integration.rows import normalize_device_record, normalize_telemetry_row


class InMemoryDeviceRegistry:
    """Registry over a fixed list of device records, optionally owner-scoped."""

    def __init__(self, devices: Sequence[DeviceRecord], *, owners: Mapping[str, str] | None = None) -> None:
        self._devices = tuple(devices)
        self._owners = dict(owners or {})

    def list_devices(self, owner_id: str | None = None) -> Sequence[DeviceRecord]:
        if owner_id is None:
            return self._devices
        return tuple(device for device in self._devices if self._owners.get(device.device_id) == owner_id)


@dataclass(slots=True)
class InMemoryTelemetryStore:
    """Telemetry history keyed by device id; newest row is the latest snapshot."""

    history: dict[str, list[TelemetrySnapshot]] = field(default_factory=dict)

    def add(self, snapshot: TelemetrySnapshot) -> None:
        self.history.setdefault(snapshot.device_id, []).append(snapshot)

    def latest(self, device_id: str) -> TelemetrySnapshot | None:
        rows = self.history.get(device_id)
        if not rows:
            return None
        # Later rows win timestamp ties.
        newest = rows[0]
        for row in rows[1:]:
            if (row.last_seen_ms or 0) >= (newest.last_seen_ms or 0):
                newest = row
        return newest

    def has_history(self, device_id: str) -> bool:
        return bool(self.history.get(device_id))


def build_in_memory_store(
    device_rows: Sequence[Mapping[str, object]],
    telemetry_rows: Sequence[Mapping[str, object]],
    *,
    owner_key: str = "user_id",
) -> tuple[InMemoryDeviceRegistry, InMemoryTelemetryStore]:
    """Normalize raw rows into a registry and telemetry store."""
    devices = tuple(normalize_device_record(row) for row in device_rows)
    owners: dict[str, str] = {}
    for row, device in zip(device_rows, devices):
        owner = row.get(owner_key)
        if owner is not None:
            owners[device.device_id] = str(owner)

    store = InMemoryTelemetryStore()
    for row in telemetry_rows:
        store.add(normalize_telemetry_row(row))
    return InMemoryDeviceRegistry(devices, owners=owners), store
