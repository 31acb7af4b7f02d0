"""Threshold contracts and the sensor-fusion clog classifier."""

from drainwatch.detection.config import (
    load_threshold_config,
    threshold_config_to_jsonable,
    thresholds_from_mapping,
)
from drainwatch.detection.engine import ClogDetectionEngine, classify, detect_clog
from drainwatch.detection.thresholds import (
    DEFAULT_THRESHOLDS,
    THRESHOLD_FIELD_EFFECTS,
    ForceThresholds,
    InvalidThresholdConfig,
    RangeBand,
    ThresholdConfig,
    TofThresholds,
    TurbidityThresholds,
    WeightThresholds,
)

__all__ = [
    "DEFAULT_THRESHOLDS",
    "THRESHOLD_FIELD_EFFECTS",
    "ClogDetectionEngine",
    "ForceThresholds",
    "InvalidThresholdConfig",
    "RangeBand",
    "ThresholdConfig",
    "TofThresholds",
    "TurbidityThresholds",
    "WeightThresholds",
    "classify",
    "detect_clog",
    "load_threshold_config",
    "threshold_config_to_jsonable",
    "thresholds_from_mapping",
]
