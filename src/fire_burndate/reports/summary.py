from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import jsonschema
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from fire_burndate.analysis.progression import MonthlyBurnedArea
from fire_burndate.analysis.study_area import StudyArea
from fire_burndate.config import ExtractionConfig

from .determinism import stable_float
from .types import ExportArtifact


SUMMARY_SCHEMA_ID = "burn_summary_v1"


@dataclass(frozen=True)
class BoundaryDiagnostics:
    name_search_keyword: str
    name_search_event_ids: tuple[str, ...]
    region_fire_names: tuple[str, ...] | None  # None: no regional listing requested


@dataclass(frozen=True)
class FrameCounts:
    total: int
    in_season: int
    first_date: date | None
    last_date: date | None

    @property
    def outside_season(self) -> int:
        return self.total - self.in_season


@dataclass(frozen=True)
class BurnStatistics:
    burn_date_min: int | None
    burn_date_max: int | None
    total_burned_area_ha: float
    valid_burned_pixels: float


def _default_schema_path() -> Path:
    return Path(__file__).resolve().parents[1] / "schemas" / f"{SUMMARY_SCHEMA_ID}.schema.json"


def load_schema(schema_path: str | Path | None = None) -> dict[str, Any]:
    path = Path(schema_path) if schema_path is not None else _default_schema_path()
    return json.loads(path.read_text(encoding="utf-8"))


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def build_summary(
    *,
    config: ExtractionConfig,
    study_area: StudyArea,
    boundary: BoundaryDiagnostics,
    frames: FrameCounts,
    statistics: BurnStatistics,
    progression: Sequence[MonthlyBurnedArea],
    revisited_pixels: int,
    ignition_sample: Iterable[int],
    artifacts: Iterable[ExportArtifact],
) -> dict[str, Any]:
    season_start, season_end = config.season
    event = config.event
    return {
        "schema": SUMMARY_SCHEMA_ID,
        "event": {
            "event_id": event.event_id,
            "name": event.name,
            "year": event.year,
            "ignition_point": [float(event.ignition_point[0]), float(event.ignition_point[1])],
        },
        "parameters": {
            "buffer_m": config.buffer_m,
            "fallback_radius_m": config.fallback_radius_m,
            "scale_m": config.export_scale_m,
            "crs": config.export_crs,
            "max_pixels": int(config.max_pixels),
            "band": config.band,
            "season_start": season_start.isoformat(),
            "season_end": season_end.isoformat(),
        },
        "boundary": {
            "matched_count": study_area.matched_count,
            "name_search_keyword": boundary.name_search_keyword,
            "name_search_event_ids": sorted(boundary.name_search_event_ids),
            "region_fire_names": (
                None if boundary.region_fire_names is None else list(boundary.region_fire_names)
            ),
        },
        "study_area": {
            "source": study_area.source.value,
            "description": study_area.describe(),
            "area_ha": stable_float(study_area.area_m2 / 10_000.0),
            "bounds": [round(v, 9) for v in study_area.geometry.bounds],
        },
        "frames": {
            "total": frames.total,
            "in_season": frames.in_season,
            "outside_season": frames.outside_season,
            "first_date": _iso(frames.first_date),
            "last_date": _iso(frames.last_date),
        },
        "statistics": {
            "burn_date_min": statistics.burn_date_min,
            "burn_date_max": statistics.burn_date_max,
            "total_burned_area_ha": stable_float(statistics.total_burned_area_ha),
            "valid_burned_pixels": statistics.valid_burned_pixels,
        },
        "monthly_progression": [
            {
                "month": entry.month,
                "burned_area_ha": stable_float(entry.burned_area_ha),
                "frame_count": entry.frame_count,
            }
            for entry in progression
        ],
        "revisited_pixels": int(revisited_pixels),
        "ignition_sample": [int(v) for v in ignition_sample],
        "artifacts": [
            {**asdict(a), "kind": a.kind.value}
            for a in sorted(artifacts, key=lambda a: a.relpath)
        ],
    }


def validate_summary(
    summary: Mapping[str, Any],
    *,
    schema_path: str | Path | None = None,
) -> None:
    """Validate a summary against the burn_summary_v1 schema.

    Raises:
      jsonschema.exceptions.ValidationError if invalid.
    """

    schema = load_schema(schema_path)
    validator = Draft202012Validator(schema, format_checker=jsonschema.FormatChecker())
    validator.validate(dict(summary))

    _validate_progression_order(summary)
    _validate_burn_date_range(summary)


def _validate_progression_order(summary: Mapping[str, Any]) -> None:
    months = [entry.get("month") for entry in summary.get("monthly_progression", [])]
    if months != list(range(1, 13)):
        raise ValidationError(f"monthly_progression must list months 1..12 in order, got {months}")


def _validate_burn_date_range(summary: Mapping[str, Any]) -> None:
    stats = summary.get("statistics", {})
    lo, hi = stats.get("burn_date_min"), stats.get("burn_date_max")
    if (lo is None) != (hi is None):
        raise ValidationError("burn_date_min and burn_date_max must both be set or both be null")
    if lo is not None and lo > hi:
        raise ValidationError(f"burn_date_min {lo} > burn_date_max {hi}")


def render_text_report(summary: Mapping[str, Any]) -> str:
    event = summary["event"]
    params = summary["parameters"]
    boundary = summary["boundary"]
    area = summary["study_area"]
    frames = summary["frames"]
    stats = summary["statistics"]

    lines = [
        f"Fire: {event['name']} ({event['year']})",
        f"Event_ID: {event['event_id']}",
        f"Ignition point (lon, lat): {event['ignition_point'][0]:.6f}, {event['ignition_point'][1]:.6f}",
        "",
        "Boundary lookup",
        f"  exact Event_ID matches: {boundary['matched_count']}",
        f"  boundary found: {boundary['matched_count'] > 0}",
        f"  name search '{boundary['name_search_keyword']}': "
        f"{len(boundary['name_search_event_ids'])} record(s) {', '.join(boundary['name_search_event_ids'])}".rstrip(),
    ]
    if boundary["region_fire_names"] is not None:
        lines.append(
            f"  fires in region ({len(boundary['region_fire_names'])} shown): "
            + ", ".join(boundary["region_fire_names"])
        )
    lines += [
        "",
        "Study area",
        f"  {area['description']}",
        f"  buffer distance: {params['buffer_m']:g} m",
        "",
        "Frames",
        f"  total: {frames['total']}",
        f"  in season [{params['season_start']}, {params['season_end']}): {frames['in_season']}",
        f"  outside season: {frames['outside_season']}",
        f"  first frame date: {frames['first_date'] or '-'}",
        f"  last frame date: {frames['last_date'] or '-'}",
        "",
        f"Statistics (scale {params['scale_m']:g} m, {params['crs']})",
        f"  burn date min/max: {stats['burn_date_min']} / {stats['burn_date_max']}",
        f"  total burned area: {stats['total_burned_area_ha']:.2f} ha",
        f"  valid burned pixels: {stats['valid_burned_pixels']:g}",
        f"  pixels burned in more than one month: {summary['revisited_pixels']}",
        f"  ignition sample: {', '.join(str(v) for v in summary['ignition_sample']) or '-'}",
        "",
        "Monthly progression",
        "  month  burned_area_ha  frames",
    ]
    for entry in summary["monthly_progression"]:
        value = "no data" if entry["burned_area_ha"] is None else f"{entry['burned_area_ha']:.2f}"
        lines.append(f"  {entry['month']:>5}  {value:>14}  {entry['frame_count']:>6}")

    if summary["artifacts"]:
        lines += ["", "Artifacts"]
        lines += [f"  {a['relpath']}  sha256={a['sha256']}" for a in summary["artifacts"]]
    return "\n".join(lines) + "\n"
