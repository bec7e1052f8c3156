from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

from fire_burndate.reports.summary import validate_summary


def _run_cli(args: list[str], *, env: dict[str, str]) -> subprocess.CompletedProcess[str]:
    repo_root = Path(__file__).resolve().parents[1]
    src_path = str(repo_root / "src")
    env = dict(env)
    env["PYTHONPATH"] = src_path + (":" + env["PYTHONPATH"] if env.get("PYTHONPATH") else "")
    return subprocess.run(
        [sys.executable, "-m", "fire_burndate.cli", *args],
        check=False,
        text=True,
        capture_output=True,
        env=env,
    )


def _event_args(burn_inputs) -> list[str]:
    event = burn_inputs.event
    return [
        "--event-id",
        event.event_id,
        "--event-name",
        event.name,
        "--year",
        str(event.year),
        "--ignition-lon",
        str(event.ignition_point[0]),
        "--ignition-lat",
        str(event.ignition_point[1]),
    ]


def test_cli_help() -> None:
    proc = _run_cli(["--help"], env=os.environ.copy())
    assert proc.returncode == 0
    assert "Extract an annual burn-date raster" in proc.stdout


def test_cli_golden_run(tmp_path: Path, burn_inputs) -> None:
    out = tmp_path / "out"
    env = os.environ.copy()
    env["FIRE_BURNDATE_FRAME_DIR"] = str(burn_inputs.frame_dir)

    proc = _run_cli(
        [
            *_event_args(burn_inputs),
            "--boundaries",
            str(burn_inputs.boundaries_path),
            "--output-dir",
            str(out),
            "--region-bbox",
            "-106.5",
            "40.0",
            "-105.0",
            "40.6",
        ],
        env=env,
    )

    assert proc.returncode == 0, proc.stderr
    assert "Fire: East_Troublesome_Fire (2020)" in proc.stdout
    assert "burn date min/max: 290 / 310" in proc.stdout
    assert "Wrote:" in proc.stdout

    summary = json.loads((out / "burn_summary.json").read_text(encoding="utf-8"))
    validate_summary(summary)
    assert summary["boundary"]["region_fire_names"] == ["EAST TROUBLESOME", "TROUBLESOME CREEK"]
    assert (out / "mcd64a1_annual_burndate_y2020.tif").is_file()
    assert (out / "mtbs_east_troublesome_fire_perimeter.geojson").is_file()
    assert (out / "monthly_progression.csv").is_file()
    assert (out / "burn_report.txt").is_file()


def test_cli_env_buffer_override(tmp_path: Path, burn_inputs) -> None:
    env = os.environ.copy()
    env["FIRE_BURNDATE_FRAME_DIR"] = str(burn_inputs.frame_dir)
    env["FIRE_BURNDATE_BUFFER_M"] = "1500"

    proc = _run_cli(
        [
            *_event_args(burn_inputs),
            "--boundaries",
            str(burn_inputs.boundaries_path),
            "--output-dir",
            str(tmp_path / "out"),
        ],
        env=env,
    )

    assert proc.returncode == 0, proc.stderr
    summary = json.loads((tmp_path / "out" / "burn_summary.json").read_text(encoding="utf-8"))
    assert summary["parameters"]["buffer_m"] == 1500.0


def test_cli_resource_limit_exit_code(tmp_path: Path, burn_inputs) -> None:
    proc = _run_cli(
        [
            *_event_args(burn_inputs),
            "--boundaries",
            str(burn_inputs.boundaries_path),
            "--frames-dir",
            str(burn_inputs.frame_dir),
            "--output-dir",
            str(tmp_path / "out"),
            "--max-pixels",
            "10",
        ],
        env=os.environ.copy(),
    )

    assert proc.returncode == 3
    assert "max_pixels=10" in proc.stderr


def test_cli_missing_frames_dir_is_config_error(tmp_path: Path, burn_inputs) -> None:
    env = os.environ.copy()
    env.pop("FIRE_BURNDATE_FRAME_DIR", None)

    proc = _run_cli(
        [
            *_event_args(burn_inputs),
            "--boundaries",
            str(burn_inputs.boundaries_path),
            "--output-dir",
            str(tmp_path / "out"),
        ],
        env=env,
    )

    assert proc.returncode == 2
    assert "FIRE_BURNDATE_FRAME_DIR" in proc.stderr


def test_cli_inverted_region_bbox_is_config_error(tmp_path: Path, burn_inputs) -> None:
    proc = _run_cli(
        [
            *_event_args(burn_inputs),
            "--boundaries",
            str(burn_inputs.boundaries_path),
            "--frames-dir",
            str(burn_inputs.frame_dir),
            "--output-dir",
            str(tmp_path / "out"),
            "--region-bbox",
            "-105.0",
            "40.0",
            "-106.5",
            "40.6",
        ],
        env=os.environ.copy(),
    )

    assert proc.returncode == 2
    assert "--region-bbox is empty or inverted" in proc.stderr
