"""Immutable filter and sort specifications for device-health queries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ConnectivityFilter(StrEnum):
    ALL = "all"
    ONLINE = "online"
    OFFLINE = "offline"


class BatteryBucket(StrEnum):
    """Battery ranges: low [0, 25), medium [25, 75), high [75, 100]."""

    ALL = "all"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DeploymentFilter(StrEnum):
    ALL = "all"
    DEPLOYED = "deployed"
    NOT_DEPLOYED = "not_deployed"


class ClogFilter(StrEnum):
    ALL = "all"
    CLEAR = "clear"
    CLOGGED = "clogged"
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"


class SortKey(StrEnum):
    NAME = "name"
    BATTERY = "battery"
    LAST_SEEN = "last_seen"
    SIGNAL = "signal"
    CLOG_SEVERITY = "clog_severity"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Filters combined with logical AND; `ALL` and empty search pass everything."""

    search: str = ""
    connectivity: ConnectivityFilter = ConnectivityFilter.ALL
    battery: BatteryBucket = BatteryBucket.ALL
    deployment: DeploymentFilter = DeploymentFilter.ALL
    clog: ClogFilter = ClogFilter.ALL

    def __post_init__(self) -> None:
        # Accept raw strings from callers (query params, CLI flags).
        object.__setattr__(self, "connectivity", ConnectivityFilter(self.connectivity))
        object.__setattr__(self, "battery", BatteryBucket(self.battery))
        object.__setattr__(self, "deployment", DeploymentFilter(self.deployment))
        object.__setattr__(self, "clog", ClogFilter(self.clog))


@dataclass(frozen=True, slots=True)
class SortSpec:
    """Single sort key and direction."""

    key: SortKey = SortKey.NAME
    order: SortOrder = SortOrder.ASC

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", SortKey(self.key))
        object.__setattr__(self, "order", SortOrder(self.order))
