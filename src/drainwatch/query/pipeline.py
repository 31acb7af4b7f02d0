"""Composable filter/sort pipeline over device-health views."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from drainwatch.domain.models import ClogSeverity, DeviceHealthView
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

Predicate = Callable[[DeviceHealthView], bool]

_SEVERITY_FILTERS: dict[ClogFilter, ClogSeverity] = {
    ClogFilter.MINOR: ClogSeverity.MINOR,
    ClogFilter.MODERATE: ClogSeverity.MODERATE,
    ClogFilter.SEVERE: ClogSeverity.SEVERE,
}

_SORT_KEYS: dict[SortKey, Callable[[DeviceHealthView], Any]] = {
    SortKey.NAME: lambda view: view.name.casefold(),
    SortKey.BATTERY: lambda view: view.battery_percentage,
    SortKey.LAST_SEEN: lambda view: view.last_seen_ms,
    SortKey.SIGNAL: lambda view: view.signal_strength,
    SortKey.CLOG_SEVERITY: lambda view: view.severity_rank,
}


def battery_bucket(percentage: float) -> BatteryBucket:
    """Bucket a battery reading; readings at or above 75 are high."""
    if percentage < 25:
        return BatteryBucket.LOW
    if percentage < 75:
        return BatteryBucket.MEDIUM
    return BatteryBucket.HIGH


def matches_search(view: DeviceHealthView, search: str) -> bool:
    needle = search.casefold()
    if not needle:
        return True
    return needle in view.name.casefold()


def matches_connectivity(view: DeviceHealthView, connectivity: ConnectivityFilter) -> bool:
    if connectivity == ConnectivityFilter.ALL:
        return True
    return view.online == (connectivity == ConnectivityFilter.ONLINE)


def matches_battery(view: DeviceHealthView, bucket: BatteryBucket) -> bool:
    if bucket == BatteryBucket.ALL:
        return True
    return battery_bucket(view.battery_percentage) == bucket


def matches_deployment(view: DeviceHealthView, deployment: DeploymentFilter) -> bool:
    if deployment == DeploymentFilter.ALL:
        return True
    return view.has_data == (deployment == DeploymentFilter.DEPLOYED)


def matches_clog(view: DeviceHealthView, clog: ClogFilter) -> bool:
    """Devices without an assessment only match `ALL`."""
    if clog == ClogFilter.ALL:
        return True
    assessment = view.assessment
    if not view.has_data or assessment is None:
        return False
    if clog == ClogFilter.CLEAR:
        return not assessment.is_clogged
    if clog == ClogFilter.CLOGGED:
        return assessment.is_clogged
    return assessment.severity == _SEVERITY_FILTERS[clog]


def build_predicates(spec: FilterSpec) -> tuple[Predicate, ...]:
    """Return only the predicates whose filter is set."""
    predicates: list[Predicate] = []
    if spec.search:
        predicates.append(lambda view: matches_search(view, spec.search))
    if spec.connectivity != ConnectivityFilter.ALL:
        predicates.append(lambda view: matches_connectivity(view, spec.connectivity))
    if spec.battery != BatteryBucket.ALL:
        predicates.append(lambda view: matches_battery(view, spec.battery))
    if spec.deployment != DeploymentFilter.ALL:
        predicates.append(lambda view: matches_deployment(view, spec.deployment))
    if spec.clog != ClogFilter.ALL:
        predicates.append(lambda view: matches_clog(view, spec.clog))
    return tuple(predicates)


def sort_views(views: Iterable[DeviceHealthView], spec: SortSpec) -> list[DeviceHealthView]:
    """Stable sort; ties keep input order in both directions."""
    return sorted(views, key=_SORT_KEYS[spec.key], reverse=spec.order == SortOrder.DESC)


def query(
    views: Iterable[DeviceHealthView],
    filter_spec: FilterSpec | None = None,
    sort_spec: SortSpec | None = None,
) -> tuple[DeviceHealthView, ...]:
    """Filter then sort device views without mutating the input."""
    predicates = build_predicates(filter_spec if filter_spec is not None else FilterSpec())
    selected = [view for view in views if all(predicate(view) for predicate in predicates)]
    return tuple(sort_views(selected, sort_spec if sort_spec is not None else SortSpec()))


apply = query
