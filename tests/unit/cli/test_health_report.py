"""Tests for the health report CLI."""

from __future__ import annotations

import json
from pathlib import Path

from drainwatch.cli import health_report

_DEVICES = [
    {"uuid": "a", "name": "Alpha", "online_status": True, "user_id": "u1"},
    {"uuid": "b", "name": "Bravo", "online_status": False, "user_id": "u1"},
    {"uuid": "c", "name": "Charlie", "online_status": True, "user_id": "u2"},
]

_TELEMETRY = [
    {"device_id": "a", "tof": 10, "weight": 9, "turbidity": 600, "battery_percentage": 30, "last_updated_at": 1_700_000_000},
    {"device_id": "c", "tof": 120, "battery_percentage": 90, "last_updated_at": 1_700_000_100},
]


def _write_inputs(tmp_path: Path) -> tuple[Path, Path]:
    devices = tmp_path / "devices.json"
    telemetry = tmp_path / "telemetry.json"
    devices.write_text(json.dumps(_DEVICES), encoding="utf-8")
    telemetry.write_text(json.dumps(_TELEMETRY), encoding="utf-8")
    return devices, telemetry


def test_main_writes_report(tmp_path: Path) -> None:
    devices, telemetry = _write_inputs(tmp_path)
    output = tmp_path / "out" / "report.json"

    exit_code = health_report.main(
        ["--devices", str(devices), "--telemetry", str(telemetry), "--output", str(output), "--sort-by", "clog_severity"]
    )

    assert exit_code == 0
    report = json.loads(output.read_text(encoding="utf-8"))
    assert [item["device"]["name"] for item in report["devices"]] == ["Bravo", "Charlie", "Alpha"]
    assert report["devices"][0]["assessment"] is None
    assert report["devices"][0]["status"] == "not deployed"
    assert report["devices"][2]["assessment"]["severity"] == "severe"
    assert report["fleet_summary"]["total"] == 3
    assert report["fleet_summary"]["deployed"] == 2
    assert report["query"]["sort"] == {"key": "clog_severity", "order": "asc"}


def test_owner_and_filters_narrow_report(tmp_path: Path) -> None:
    devices, telemetry = _write_inputs(tmp_path)
    args = health_report.build_parser().parse_args(
        ["--devices", str(devices), "--telemetry", str(telemetry), "--owner-id", "u1", "--deployment", "deployed"]
    )

    artifacts = health_report.run_health_report_from_args(args)

    assert artifacts.output_path is None
    assert [item["device"]["device_id"] for item in artifacts.report["devices"]] == ["a"]
    assert artifacts.severe_count == 1


def test_fail_on_severe_returns_one(tmp_path: Path) -> None:
    devices, telemetry = _write_inputs(tmp_path)

    exit_code = health_report.main(["--devices", str(devices), "--telemetry", str(telemetry), "--fail-on-severe"])

    assert exit_code == 1


def test_threshold_overrides_change_classification(tmp_path: Path) -> None:
    devices, telemetry = _write_inputs(tmp_path)
    thresholds = tmp_path / "thresholds.json"
    thresholds.write_text(json.dumps({"tof": {"normal": {"min": 5}, "warning": {"min": 2}}}), encoding="utf-8")
    args = health_report.build_parser().parse_args(
        ["--devices", str(devices), "--telemetry", str(telemetry), "--thresholds", str(thresholds), "--search", "alpha"]
    )

    artifacts = health_report.run_health_report_from_args(args)

    (alpha,) = artifacts.report["devices"]
    assert alpha["assessment"]["factors"]["water_level"] is False
    assert alpha["assessment"]["severity"] == "moderate"


def test_invalid_thresholds_return_error_code(tmp_path: Path, capsys) -> None:
    devices, telemetry = _write_inputs(tmp_path)
    thresholds = tmp_path / "thresholds.json"
    thresholds.write_text(json.dumps({"turbidity": {"warning": 50}}), encoding="utf-8")

    exit_code = health_report.main(
        ["--devices", str(devices), "--telemetry", str(telemetry), "--thresholds", str(thresholds)]
    )

    assert exit_code == 2
    assert "turbidity thresholds must be strictly increasing" in capsys.readouterr().err


def test_missing_inputs_return_error_code(capsys) -> None:
    assert health_report.main([]) == 2
    assert "--devices and --telemetry are required" in capsys.readouterr().err


def test_describe_thresholds_lists_every_field(capsys) -> None:
    assert health_report.main(["--describe-thresholds"]) == 0

    out = capsys.readouterr().out
    assert "turbidity.warning:" in out
    assert "force.criticalVariance:" in out
