"""Filter/sort queries over device-health views."""

from drainwatch.query.contracts import (
    BatteryBucket,
    ClogFilter,
    ConnectivityFilter,
    DeploymentFilter,
    FilterSpec,
    SortKey,
    SortOrder,
    SortSpec,
)
from drainwatch.query.pipeline import apply, battery_bucket, query, sort_views

__all__ = [
    "BatteryBucket",
    "ClogFilter",
    "ConnectivityFilter",
    "DeploymentFilter",
    "FilterSpec",
    "SortKey",
    "SortOrder",
    "SortSpec",
    "apply",
    "battery_bucket",
    "query",
    "sort_views",
]
