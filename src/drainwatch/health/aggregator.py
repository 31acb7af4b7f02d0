"""Device-health aggregation over registry records and latest telemetry.

Each device is resolved independently on a bounded thread pool. A failed,
slow or cancelled lookup degrades only its own device with an error marker;
`has_data` still follows history presence when that read succeeded. Every
input device is always present in the output.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from drainwatch.detection.engine import ClogDetectionEngine
from drainwatch.detection.thresholds import DEFAULT_THRESHOLDS, ThresholdConfig
from drainwatch.domain.models import (
    DeviceFetchError,
    DeviceHealthView,
    DeviceRecord,
    FetchFailureKind,
    TelemetrySnapshot,
)
from drainwatch.health.contracts import AggregationPolicy, DeviceRegistry, TelemetryStore

logger = logging.getLogger(__name__)

_LookupResult = tuple[bool, TelemetrySnapshot | None]


class _LookupAborted(Exception):
    """Raised inside a worker when the pass was stopped between store calls."""


class _LatestReadFailed(Exception):
    """The latest-snapshot read failed after history presence was confirmed."""


class HealthAggregator:
    """Build `DeviceHealthView` records for a batch of devices."""

    def __init__(
        self,
        telemetry: TelemetryStore,
        *,
        thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
        policy: AggregationPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._telemetry = telemetry
        self._engine = ClogDetectionEngine(thresholds)
        self._policy = policy if policy is not None else AggregationPolicy()
        self._clock = clock

    @property
    def policy(self) -> AggregationPolicy:
        return self._policy

    def aggregate_owner(
        self,
        registry: DeviceRegistry,
        owner_id: str | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> tuple[DeviceHealthView, ...]:
        """Read the owner's devices from the registry and aggregate them."""
        return self.aggregate(registry.list_devices(owner_id), cancel_event=cancel_event)

    def aggregate(
        self,
        devices: Iterable[DeviceRecord],
        *,
        cancel_event: threading.Event | None = None,
    ) -> tuple[DeviceHealthView, ...]:
        """Resolve every device and return views in input order.

        Lookups are submitted only while a live worker slot is free. A lookup
        that exceeds the per-device timeout is abandoned and its pool retired,
        so the remaining devices run on a fresh pool instead of queueing behind
        the stuck thread.
        """
        records = tuple(devices)
        if not records:
            return ()

        policy = self._policy
        pass_started = self._clock()
        deadline = None if policy.overall_timeout_s is None else pass_started + policy.overall_timeout_s
        stop = threading.Event()

        def should_stop() -> bool:
            return stop.is_set() or (cancel_event is not None and cancel_event.is_set())

        views: list[DeviceHealthView | None] = [None] * len(records)
        queued = deque(range(len(records)))
        active: dict[Future[_LookupResult], tuple[int, float]] = {}
        executors: list[ThreadPoolExecutor] = []
        executor: ThreadPoolExecutor | None = None
        try:
            while queued or active:
                now = self._clock()
                cancelled = cancel_event is not None and cancel_event.is_set()
                expired = deadline is not None and now >= deadline
                if cancelled or expired:
                    stop.set()
                    kind = FetchFailureKind.CANCELLED if cancelled else FetchFailureKind.AGGREGATION_TIMEOUT
                    detail = (
                        "aggregation cancelled"
                        if cancelled
                        else f"aggregation exceeded {policy.overall_timeout_s}s"
                    )
                    logger.warning(
                        "%s; %d of %d devices unresolved",
                        detail,
                        len(active) + len(queued),
                        len(records),
                    )
                    for future, (idx, _) in active.items():
                        if future.done():
                            views[idx] = self._settle(records[idx], future)
                            continue
                        future.cancel()
                        views[idx] = _failed_view(records[idx], kind, detail)
                    for idx in queued:
                        views[idx] = _failed_view(records[idx], kind, detail)
                    active.clear()
                    queued.clear()
                    break

                while queued and len(active) < policy.max_workers:
                    if executor is None:
                        executor = ThreadPoolExecutor(
                            max_workers=min(policy.max_workers, len(records)),
                            thread_name_prefix="drainwatch-lookup",
                        )
                        executors.append(executor)
                    idx = queued.popleft()
                    future = executor.submit(self._lookup, records[idx].device_id, should_stop)
                    active[future] = (idx, self._clock())

                done, _ = wait(active, timeout=policy.poll_interval_s, return_when=FIRST_COMPLETED)
                for future in done:
                    idx, _ = active.pop(future)
                    views[idx] = self._settle(records[idx], future)

                now = self._clock()
                stalled = False
                for future, (idx, submitted) in list(active.items()):
                    if future.done() or now - submitted <= policy.per_device_timeout_s:
                        continue
                    del active[future]
                    future.cancel()
                    stalled = True
                    logger.warning(
                        "telemetry lookup timed out for device %s after %.3fs",
                        records[idx].device_id,
                        policy.per_device_timeout_s,
                    )
                    views[idx] = _failed_view(
                        records[idx],
                        FetchFailureKind.TIMEOUT,
                        f"lookup exceeded {policy.per_device_timeout_s}s",
                    )
                if stalled and executor is not None:
                    # In-flight lookups on the retired pool still settle normally.
                    executor.shutdown(wait=False)
                    executor = None
        finally:
            stop.set()
            for pool in executors:
                pool.shutdown(wait=False, cancel_futures=True)

        resolved = tuple(view for view in views if view is not None)
        failed = sum(1 for view in resolved if view.error is not None)
        logger.info(
            "aggregated %d devices (%d with errors) in %.3fs",
            len(resolved),
            failed,
            self._clock() - pass_started,
        )
        return resolved

    def _lookup(self, device_id: str, should_stop: Callable[[], bool]) -> _LookupResult:
        if should_stop():
            raise _LookupAborted()
        has_data = bool(self._telemetry.has_history(device_id))
        if not has_data:
            return False, None
        if should_stop():
            raise _LookupAborted()
        try:
            return True, self._telemetry.latest(device_id)
        except Exception as exc:
            raise _LatestReadFailed(str(exc) or type(exc).__name__) from exc

    def _settle(self, record: DeviceRecord, future: Future[_LookupResult]) -> DeviceHealthView:
        try:
            has_data, snapshot = future.result()
        except _LookupAborted:
            return _failed_view(record, FetchFailureKind.CANCELLED, "lookup aborted before completion")
        except _LatestReadFailed as exc:
            logger.warning("latest telemetry read failed for device %s: %s", record.device_id, exc)
            return DeviceHealthView(
                device=record,
                has_data=True,
                error=DeviceFetchError(FetchFailureKind.UPSTREAM_ERROR, str(exc)),
            )
        except Exception as exc:
            logger.warning("telemetry lookup failed for device %s: %s", record.device_id, exc)
            return _failed_view(record, FetchFailureKind.UPSTREAM_ERROR, str(exc) or type(exc).__name__)

        if not has_data:
            return DeviceHealthView(device=record, has_data=False)

        if snapshot is None:
            logger.warning("device %s has telemetry history but no readable latest snapshot", record.device_id)
            return DeviceHealthView(
                device=record,
                has_data=True,
                error=DeviceFetchError(FetchFailureKind.LATEST_UNAVAILABLE, "latest snapshot unavailable"),
            )

        if snapshot.device_id != record.device_id:
            return DeviceHealthView(
                device=record,
                has_data=True,
                error=DeviceFetchError(
                    FetchFailureKind.UPSTREAM_ERROR,
                    f"snapshot belongs to device {snapshot.device_id}",
                ),
            )

        return DeviceHealthView(
            device=record,
            snapshot=snapshot,
            has_data=True,
            assessment=self._engine.evaluate(snapshot),
        )


def aggregate(
    devices: Iterable[DeviceRecord],
    telemetry: TelemetryStore,
    *,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
    policy: AggregationPolicy | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[DeviceHealthView, ...]:
    """One-shot aggregation pass with a throwaway `HealthAggregator`."""
    aggregator = HealthAggregator(telemetry, thresholds=thresholds, policy=policy)
    return aggregator.aggregate(devices, cancel_event=cancel_event)


def _failed_view(record: DeviceRecord, kind: FetchFailureKind, detail: str) -> DeviceHealthView:
    return DeviceHealthView(device=record, has_data=False, error=DeviceFetchError(kind, detail))
