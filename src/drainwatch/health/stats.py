"""Fleet-level health counters for a set of device views."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from drainwatch.domain.models import ClogSeverity, DeviceHealthView

LOW_BATTERY_PERCENT = 25.0


@dataclass(frozen=True, slots=True)
class FleetSummary:
    """Aggregate counters shown above the device list."""

    total: int
    online: int
    deployed: int
    low_battery: int
    data_unavailable: int
    assessed: int
    clogged: int
    severe: int
    moderate: int
    minor: int
    online_percent: int
    deployed_percent: int
    clogged_percent: int
    mean_confidence: float | None


def summarize_fleet(views: Sequence[DeviceHealthView]) -> FleetSummary:
    """Count devices by connectivity, deployment, battery and clog state.

    Clog counters only cover devices with an assessment; `clogged_percent`
    is relative to deployed devices.
    """
    total = len(views)
    online = np.array([view.online for view in views], dtype=np.bool_)
    deployed = np.array([view.has_data for view in views], dtype=np.bool_)
    battery = np.array([view.battery_percentage for view in views], dtype=np.float64)
    unavailable = np.array([view.error is not None for view in views], dtype=np.bool_)

    assessments = [view.assessment for view in views if view.assessment is not None]
    severities = np.array([assessment.severity.value for assessment in assessments], dtype=object)
    clogged = np.array([assessment.is_clogged for assessment in assessments], dtype=np.bool_)
    confidences = np.array([assessment.confidence for assessment in assessments], dtype=np.float64)

    online_count = int(np.count_nonzero(online))
    deployed_count = int(np.count_nonzero(deployed))
    clogged_count = int(np.count_nonzero(clogged))

    return FleetSummary(
        total=total,
        online=online_count,
        deployed=deployed_count,
        low_battery=int(np.count_nonzero(battery < LOW_BATTERY_PERCENT)),
        data_unavailable=int(np.count_nonzero(unavailable)),
        assessed=len(assessments),
        clogged=clogged_count,
        severe=_count_severity(severities, ClogSeverity.SEVERE),
        moderate=_count_severity(severities, ClogSeverity.MODERATE),
        minor=_count_severity(severities, ClogSeverity.MINOR),
        online_percent=_percent(online_count, total),
        deployed_percent=_percent(deployed_count, total),
        clogged_percent=_percent(clogged_count, deployed_count),
        mean_confidence=float(np.mean(confidences)) if confidences.size else None,
    )


def _count_severity(severities: np.ndarray, severity: ClogSeverity) -> int:
    if severities.size == 0:
        return 0
    return int(np.count_nonzero(severities == severity.value))


def _percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return int(np.floor(100.0 * part / whole + 0.5))
