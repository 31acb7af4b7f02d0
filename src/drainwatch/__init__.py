"""Drain clog detection and device-health views for networked drain sensors."""

from drainwatch.detection import DEFAULT_THRESHOLDS, ThresholdConfig, classify, detect_clog
from drainwatch.health import aggregate, summarize_fleet
from drainwatch.query import FilterSpec, SortSpec, query

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_THRESHOLDS",
    "FilterSpec",
    "SortSpec",
    "ThresholdConfig",
    "aggregate",
    "classify",
    "detect_clog",
    "query",
    "summarize_fleet",
]
