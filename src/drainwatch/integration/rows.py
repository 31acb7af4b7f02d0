"""Store row normalization contracts.

Keeps the core store-agnostic by normalizing registry and telemetry rows from
the managed data store (snake_case or camelCase keys, ISO-8601 or epoch
timestamps) into strict domain records.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from math import isfinite

from drainwatch.domain.models import DeviceRecord, TelemetrySnapshot


def normalize_device_record(payload: Mapping[str, object]) -> DeviceRecord:
    """Normalize one registry row."""
    device_id = _require_text(_pick(payload, "uuid", "device_id", "deviceId", "id"), field_name="device_id")
    location = _pick(payload, "location", "device_location")
    if location is not None and not isinstance(location, Mapping):
        raise ValueError("location must be a mapping when present")

    return DeviceRecord(
        device_id=device_id,
        name=_text_or_none(_pick(payload, "name", "device_name", "deviceName")) or "Unknown Device",
        location=dict(location) if location is not None else {},
        online_status=_optional_bool(
            _pick(payload, "online_status", "onlineStatus", "device_online_status"),
            field_name="online_status",
        ),
        is_active=_optional_bool(_pick(payload, "is_active", "isActive", "device_is_active"), field_name="is_active"),
        version=_text_or_none(_pick(payload, "device_version", "version", "deviceVersion")) or "Unknown",
        created_at_ms=_optional_timestamp_ms(_pick(payload, "created_at", "createdAt"), field_name="created_at"),
    )


def normalize_telemetry_row(
    payload: Mapping[str, object],
    *,
    fallback_device_id: str | None = None,
) -> TelemetrySnapshot:
    """Normalize one telemetry row; absent or blank readings stay `None`."""
    device_id = _text_or_none(_pick(payload, "device_id", "deviceId", "device"))
    if device_id is None:
        device_id = fallback_device_id.strip() if fallback_device_id else None
    if not device_id:
        raise ValueError("device_id is required for telemetry normalization")

    uptime = _optional_float(_pick(payload, "uptime_ms", "uptimeMs"), field_name="uptime_ms")
    return TelemetrySnapshot(
        device_id=device_id,
        tof=_optional_float(_pick(payload, "tof"), field_name="tof"),
        force0=_optional_float(_pick(payload, "force0"), field_name="force0"),
        force1=_optional_float(_pick(payload, "force1"), field_name="force1"),
        turbidity=_optional_float(_pick(payload, "turbidity"), field_name="turbidity"),
        weight=_optional_float(_pick(payload, "weight"), field_name="weight"),
        battery_percentage=_optional_float(
            _pick(payload, "battery_percentage", "batteryPercentage"),
            field_name="battery_percentage",
        ),
        battery_voltage=_optional_float(
            _pick(payload, "battery_voltage", "batteryVoltage"),
            field_name="battery_voltage",
        ),
        signal_strength=_optional_float(
            _pick(payload, "signal_strength", "signalStrength"),
            field_name="signal_strength",
        ),
        uptime_ms=int(uptime) if uptime is not None else None,
        last_updated_at_ms=_optional_timestamp_ms(
            _pick(payload, "last_updated_at", "lastUpdatedAt", "updated_at"),
            field_name="last_updated_at",
        ),
        created_at_ms=_optional_timestamp_ms(_pick(payload, "created_at", "createdAt"), field_name="created_at"),
    )


def _pick(payload: Mapping[str, object], *keys: str) -> object | None:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def _text_or_none(raw: object | None) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        value = raw.strip()
        return value or None
    return str(raw).strip() or None


def _require_text(raw: object | None, *, field_name: str) -> str:
    value = _text_or_none(raw)
    if value is None:
        raise ValueError(f"{field_name} is required")
    return value


def _optional_bool(raw: object | None, *, field_name: str) -> bool:
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in {"true", "false"}:
        return raw.strip().lower() == "true"
    raise ValueError(f"{field_name} must be a boolean")


def _optional_float(raw: object | None, *, field_name: str) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError(f"{field_name} must be numeric")
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError as exc:
            raise ValueError(f"{field_name} must be numeric") from exc
    else:
        raise ValueError(f"{field_name} must be numeric")

    if not isfinite(value):
        raise ValueError(f"{field_name} must be finite")
    return value


def _optional_timestamp_ms(raw: object | None, *, field_name: str) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a timestamp")

    if isinstance(raw, (int, float)):
        numeric = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            numeric = float(text)
        except ValueError:
            return _parse_iso8601_timestamp_ms(text, field_name=field_name)
    else:
        raise ValueError(f"{field_name} must be a timestamp")

    if not isfinite(numeric) or numeric <= 0:
        raise ValueError(f"{field_name} must be a positive finite timestamp")

    # Values below 1e11 are epoch seconds; epoch milliseconds are already above it.
    as_int = int(numeric)
    if as_int < 100_000_000_000:
        as_int *= 1000
    return as_int


def _parse_iso8601_timestamp_ms(value: str, *, field_name: str) -> int:
    normalized = value
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"{field_name} must be an ISO-8601 or epoch timestamp") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)
