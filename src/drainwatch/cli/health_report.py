"""CLI that aggregates device health from JSON store exports and writes a report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Sequence

from drainwatch.detection import (
    DEFAULT_THRESHOLDS,
    THRESHOLD_FIELD_EFFECTS,
    load_threshold_config,
    threshold_config_to_jsonable,
)
from drainwatch.domain.models import ClogSeverity, DeviceHealthView
from drainwatch.health import AggregationPolicy, HealthAggregator, summarize_fleet
from drainwatch.integration import build_in_memory_store
from drainwatch.query import (
    BatteryBucket,
    ClogFilter,
    ConnectivityFilter,
    DeploymentFilter,
    FilterSpec,
    SortKey,
    SortOrder,
    SortSpec,
    query,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HealthReportArtifacts:
    """Outcome of one health report run."""

    report: dict[str, Any]
    output_path: Path | None
    severe_count: int


def build_parser() -> argparse.ArgumentParser:
    """Create CLI parser for the device health report."""
    parser = argparse.ArgumentParser(
        prog="drainwatch-health",
        description="Aggregate drain device telemetry into a filtered, sorted health report.",
    )
    parser.add_argument("--devices", type=Path, help="JSON array of device registry rows.")
    parser.add_argument("--telemetry", type=Path, help="JSON array of telemetry rows (full history).")
    parser.add_argument("--thresholds", type=Path, default=None, help="Optional JSON threshold overrides.")
    parser.add_argument("--owner-id", type=str, default=None, help="Restrict to devices owned by this user id.")
    parser.add_argument("--output", type=Path, default=None, help="Write the report here instead of stdout.")
    parser.add_argument("--search", type=str, default="", help="Case-insensitive device name filter.")
    parser.add_argument("--status", choices=[item.value for item in ConnectivityFilter], default="all")
    parser.add_argument("--battery", choices=[item.value for item in BatteryBucket], default="all")
    parser.add_argument("--deployment", choices=[item.value for item in DeploymentFilter], default="all")
    parser.add_argument("--clog", choices=[item.value for item in ClogFilter], default="all")
    parser.add_argument("--sort-by", choices=[item.value for item in SortKey], default="name")
    parser.add_argument("--sort-order", choices=[item.value for item in SortOrder], default="asc")
    parser.add_argument("--max-workers", type=int, default=8, help="Concurrent telemetry lookups.")
    parser.add_argument("--device-timeout", type=float, default=5.0, help="Per-device lookup timeout in seconds.")
    parser.add_argument(
        "--overall-timeout",
        type=float,
        default=None,
        help="Optional timeout in seconds for the whole aggregation pass.",
    )
    parser.add_argument(
        "--describe-thresholds",
        action="store_true",
        help="Print every overridable threshold field with its effect and exit.",
    )
    parser.add_argument(
        "--fail-on-severe",
        action="store_true",
        help="Return exit code 1 if any reported device has a severe clog.",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="WARNING",
    )
    return parser


def run_health_report_from_args(args: argparse.Namespace) -> HealthReportArtifacts:
    """Load store exports, aggregate, query and persist the report."""
    if args.devices is None or args.telemetry is None:
        raise ValueError("--devices and --telemetry are required")

    device_rows = _load_json_rows(args.devices)
    telemetry_rows = _load_json_rows(args.telemetry)
    thresholds = load_threshold_config(args.thresholds) if args.thresholds is not None else DEFAULT_THRESHOLDS

    registry, store = build_in_memory_store(device_rows, telemetry_rows)
    aggregator = HealthAggregator(
        store,
        thresholds=thresholds,
        policy=AggregationPolicy(
            max_workers=args.max_workers,
            per_device_timeout_s=args.device_timeout,
            overall_timeout_s=args.overall_timeout,
        ),
    )
    views = aggregator.aggregate_owner(registry, args.owner_id)

    filter_spec = FilterSpec(
        search=args.search,
        connectivity=args.status,
        battery=args.battery,
        deployment=args.deployment,
        clog=args.clog,
    )
    sort_spec = SortSpec(key=args.sort_by, order=args.sort_order)
    selected = query(views, filter_spec, sort_spec)

    report = {
        "query": {"filter": asdict(filter_spec), "sort": asdict(sort_spec)},
        "thresholds": threshold_config_to_jsonable(thresholds),
        "fleet_summary": asdict(summarize_fleet(views)),
        "devices": [view_to_jsonable(view) for view in selected],
    }

    output_path = None
    if args.output is not None:
        output_path = args.output.resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        _write_json(output_path, report)

    severe_count = sum(
        1 for view in selected if view.assessment is not None and view.assessment.severity == ClogSeverity.SEVERE
    )
    return HealthReportArtifacts(report=report, output_path=output_path, severe_count=severe_count)


def view_to_jsonable(view: DeviceHealthView) -> dict[str, Any]:
    """Flatten one view for JSON output."""
    return {
        "device": {
            **{item.name: getattr(view.device, item.name) for item in fields(view.device)},
            "location": dict(view.device.location),
        },
        "snapshot": asdict(view.snapshot) if view.snapshot is not None else None,
        "has_data": view.has_data,
        "status": view.status_label,
        "assessment": asdict(view.assessment) if view.assessment is not None else None,
        "error": asdict(view.error) if view.error is not None else None,
    }


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.describe_thresholds:
        for name, effect in THRESHOLD_FIELD_EFFECTS.items():
            print(f"{name}: {effect}")
        return 0

    try:
        artifacts = run_health_report_from_args(args)
    except Exception as exc:
        logger.debug("health report failed", exc_info=True)
        print(f"[ERROR] health report failed: {exc}", file=sys.stderr)
        return 2

    if artifacts.output_path is not None:
        print(f"report: {artifacts.output_path}")
    else:
        print(json.dumps(artifacts.report, indent=2, sort_keys=True))
    if args.fail_on_severe and artifacts.severe_count > 0:
        print(
            f"[ERROR] {artifacts.severe_count} device(s) report severe clogs and --fail-on-severe is set.",
            file=sys.stderr,
        )
        return 1
    return 0


def _load_json_rows(path: Path) -> list[dict[str, Any]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise ValueError(f"expected a JSON array of objects in {path}")
    return payload


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


if __name__ == "__main__":
    raise SystemExit(main())
