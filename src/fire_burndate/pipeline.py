from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from fire_burndate.analysis.compositing import (
    BandImage,
    burned_area_image,
    compose_annual,
    sample_values,
    threshold_image,
)
from fire_burndate.analysis.progression import (
    MonthlyBurnedArea,
    build_progression,
    count_revisited_pixels,
    write_progression_csv,
)
from fire_burndate.analysis.study_area import (
    StudyArea,
    ignition_region,
    list_fires_in_region,
    resolve_study_area,
    search_by_name,
)
from fire_burndate.analysis.zonal import Reducer, reduce_region
from fire_burndate.config import ExtractionConfig
from fire_burndate.geo.grid import RasterGrid
from fire_burndate.reports.determinism import write_json, write_text
from fire_burndate.reports.exports import (
    burndate_raster_name,
    perimeter_name,
    write_burndate_geotiff,
    write_perimeter_geojson,
)
from fire_burndate.reports.summary import (
    BoundaryDiagnostics,
    BurnStatistics,
    FrameCounts,
    build_summary,
    render_text_report,
    validate_summary,
)
from fire_burndate.reports.types import ArtifactKind, ExportArtifact, record_artifact
from fire_burndate.sources.boundaries import load_boundary_collection
from fire_burndate.sources.frames import load_frame_collection


LOGGER = logging.getLogger(__name__)

SUMMARY_FILENAME = "burn_summary.json"
REPORT_FILENAME = "burn_report.txt"
PROGRESSION_FILENAME = "monthly_progression.csv"


@dataclass(frozen=True)
class BurnDateExtractionResult:
    study_area: StudyArea
    composite: BandImage
    statistics: BurnStatistics
    progression: list[MonthlyBurnedArea]
    summary: dict[str, Any]
    raster_path: Path
    perimeter_path: Path
    progression_csv_path: Path
    summary_path: Path
    report_path: Path
    artifacts: tuple[ExportArtifact, ...]  # every written file, summary and report included


def run_burn_date_extraction(
    *,
    config: ExtractionConfig,
    boundaries_path: Path,
    frame_dir: Path,
    output_dir: Path,
    band_names: Sequence[str] | None = None,
) -> BurnDateExtractionResult:
    event = config.event
    output_dir.mkdir(parents=True, exist_ok=True)

    boundaries = load_boundary_collection(boundaries_path)
    name_matches = search_by_name(boundaries, config.keyword, event.year)
    region_fires = (
        list_fires_in_region(boundaries, event.year, config.diagnostic_bbox)
        if config.diagnostic_bbox is not None
        else None
    )
    study_area = resolve_study_area(
        boundaries,
        event.event_id,
        event.ignition_point,
        buffer_m=config.buffer_m,
        fallback_radius_m=config.fallback_radius_m,
    )
    if not study_area.match_found and name_matches.size():
        LOGGER.warning(
            "Event_ID %s not found but name search for %r found %s record(s): %s",
            event.event_id,
            config.keyword,
            name_matches.size(),
            ", ".join(r.event_id for r in name_matches),
        )
    LOGGER.info("Study area: %s", study_area.describe())

    collection = load_frame_collection(frame_dir, band_names=band_names).filter_bounds(
        study_area.geometry
    )
    season_start, season_end = config.season
    season = collection.filter_date(season_start, season_end).select(config.band)
    LOGGER.info(
        "%s frame(s) intersect the study area, %s within [%s, %s)",
        collection.size(),
        season.size(),
        season_start,
        season_end,
    )

    grid = RasterGrid.covering(
        study_area.geometry, scale_m=config.export_scale_m, crs=config.export_crs
    )
    frames = list(season.on_grid(grid))
    composite = compose_annual(frames, study_area, band=config.band, grid=grid)

    def _reduce(image: BandImage, reducer: Reducer) -> dict[str, Any]:
        return reduce_region(
            image,
            study_area,
            scale=config.export_scale_m,
            reducer=reducer,
            max_pixels=config.max_pixels,
        )

    min_max = _reduce(composite, Reducer.MIN_MAX)
    statistics = BurnStatistics(
        burn_date_min=min_max[f"{config.band}_min"],
        burn_date_max=min_max[f"{config.band}_max"],
        total_burned_area_ha=float(_reduce(burned_area_image(composite), Reducer.SUM)[config.band]),
        valid_burned_pixels=float(_reduce(threshold_image(composite), Reducer.SUM)[config.band]),
    )
    LOGGER.info(
        "Burn date min/max %s/%s, total burned area %.2f ha",
        statistics.burn_date_min,
        statistics.burn_date_max,
        statistics.total_burned_area_ha,
    )

    revisited = count_revisited_pixels(frames, event.year, band=config.band, region=study_area)
    progression = build_progression(
        frames,
        study_area,
        event.year,
        band=config.band,
        scale=config.export_scale_m,
        max_pixels=config.max_pixels,
        grid=grid,
        revisited_pixels=revisited,
    )
    ignition_sample = sample_values(
        composite,
        ignition_region(event.ignition_point, config.sample_radius_m),
        config.sample_size,
    )

    raster_path = write_burndate_geotiff(
        output_dir / f"{burndate_raster_name(event.year)}.tif", composite
    )
    perimeter_path = write_perimeter_geojson(
        output_dir / f"{perimeter_name(event.name)}.geojson", study_area
    )
    progression_csv_path = output_dir / PROGRESSION_FILENAME
    write_progression_csv(progression_csv_path, progression)

    artifacts = [
        record_artifact(ArtifactKind.BURNDATE_RASTER, raster_path, root=output_dir),
        record_artifact(ArtifactKind.PERIMETER, perimeter_path, root=output_dir),
        record_artifact(ArtifactKind.MONTHLY_PROGRESSION, progression_csv_path, root=output_dir),
    ]

    first, last = season.first(), season.last()
    summary = build_summary(
        config=config,
        study_area=study_area,
        boundary=BoundaryDiagnostics(
            name_search_keyword=config.keyword,
            name_search_event_ids=tuple(r.event_id for r in name_matches),
            region_fire_names=(
                None if region_fires is None else tuple(r.fire_name for r in region_fires)
            ),
        ),
        frames=FrameCounts(
            total=collection.size(),
            in_season=season.size(),
            first_date=first.time_start if first is not None else None,
            last_date=last.time_start if last is not None else None,
        ),
        statistics=statistics,
        progression=progression,
        revisited_pixels=revisited,
        ignition_sample=ignition_sample,
        artifacts=artifacts,
    )
    validate_summary(summary)

    summary_path = output_dir / SUMMARY_FILENAME
    write_json(summary_path, summary)
    report_path = output_dir / REPORT_FILENAME
    write_text(report_path, render_text_report(summary))
    written = (
        *artifacts,
        record_artifact(ArtifactKind.SUMMARY, summary_path, root=output_dir),
        record_artifact(ArtifactKind.TEXT_REPORT, report_path, root=output_dir),
    )

    return BurnDateExtractionResult(
        study_area=study_area,
        composite=composite,
        statistics=statistics,
        progression=progression,
        summary=summary,
        raster_path=raster_path,
        perimeter_path=perimeter_path,
        progression_csv_path=progression_csv_path,
        summary_path=summary_path,
        report_path=report_path,
        artifacts=written,
    )
