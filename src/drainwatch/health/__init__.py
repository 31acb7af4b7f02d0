"""Device-health aggregation and fleet statistics."""

from drainwatch.health.aggregator import HealthAggregator, aggregate
from drainwatch.health.contracts import AggregationPolicy, DeviceRegistry, TelemetryStore
from drainwatch.health.stats import FleetSummary, summarize_fleet

__all__ = [
    "AggregationPolicy",
    "DeviceRegistry",
    "FleetSummary",
    "HealthAggregator",
    "TelemetryStore",
    "aggregate",
    "summarize_fleet",
]
