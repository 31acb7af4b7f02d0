"""Threshold overrides from mappings and JSON files.

Overrides are partial: any field left out keeps its default. Keys may be
snake_case (`warning_increase`) or camelCase (`warningIncrease`).
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import asdict
from pathlib import Path
from typing import Any

from drainwatch.detection.thresholds import (
    DEFAULT_THRESHOLDS,
    ForceThresholds,
    InvalidThresholdConfig,
    RangeBand,
    ThresholdConfig,
    TofThresholds,
    TurbidityThresholds,
    WeightThresholds,
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def thresholds_from_mapping(
    payload: Mapping[str, Any],
    *,
    base: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> ThresholdConfig:
    """Merge a nested override mapping over `base` and validate the result."""
    if not isinstance(payload, Mapping):
        raise InvalidThresholdConfig("threshold overrides must be a mapping")
    sections = _snake_keys(payload)
    unknown = set(sections) - {"tof", "turbidity", "weight", "force"}
    if unknown:
        raise InvalidThresholdConfig(f"unknown threshold sections: {', '.join(sorted(unknown))}")

    tof_overrides = _section(sections, "tof")
    bands: dict[str, RangeBand] = {}
    for band_name in ("normal", "warning", "critical"):
        current: RangeBand = getattr(base.tof, band_name)
        band_overrides = _section(tof_overrides, band_name, prefix="tof.")
        _reject_unknown(band_overrides, {"min", "max"}, path=f"tof.{band_name}")
        bands[band_name] = RangeBand(
            min=band_overrides.get("min", current.min),
            max=band_overrides.get("max", current.max),
        )
    _reject_unknown(tof_overrides, {"normal", "warning", "critical"}, path="tof")

    return ThresholdConfig(
        tof=TofThresholds(**bands),
        turbidity=_merge(TurbidityThresholds, base.turbidity, _section(sections, "turbidity"), "turbidity"),
        weight=_merge(WeightThresholds, base.weight, _section(sections, "weight"), "weight"),
        force=_merge(ForceThresholds, base.force, _section(sections, "force"), "force"),
    )


def load_threshold_config(path: Path, *, base: ThresholdConfig = DEFAULT_THRESHOLDS) -> ThresholdConfig:
    """Load threshold overrides from a JSON file."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidThresholdConfig(f"threshold file is not valid JSON: {path}") from exc
    return thresholds_from_mapping(payload, base=base)


def threshold_config_to_jsonable(config: ThresholdConfig) -> dict[str, Any]:
    """Serialize thresholds with the same nested shape the loader accepts."""
    return asdict(config)


def _merge(cls: type, current: object, overrides: Mapping[str, Any], path: str) -> Any:
    values = asdict(current)  # type: ignore[call-overload]
    _reject_unknown(overrides, set(values), path=path)
    values.update(overrides)
    return cls(**values)


def _section(payload: Mapping[str, Any], key: str, *, prefix: str = "") -> dict[str, Any]:
    value = payload.get(key, {})
    if not isinstance(value, Mapping):
        raise InvalidThresholdConfig(f"{prefix}{key} must be a mapping")
    return dict(value)


def _reject_unknown(payload: Mapping[str, Any], allowed: set[str], *, path: str) -> None:
    unknown = set(payload) - allowed
    if unknown:
        raise InvalidThresholdConfig(f"unknown fields under {path}: {', '.join(sorted(unknown))}")


def _snake_keys(payload: Mapping[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for raw_key, value in payload.items():
        key = _CAMEL_BOUNDARY.sub("_", str(raw_key)).lower()
        if isinstance(value, Mapping):
            value = _snake_keys(value)
        normalized[key] = value
    return normalized
