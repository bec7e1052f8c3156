from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

from fire_burndate.config import DEFAULT_BAND, DEFAULT_EXPORT_SCALE_M, DEFAULT_MAX_PIXELS
from fire_burndate.geo.grid import RasterGrid, zone_mask_for_grid
from fire_burndate.sources.frames import RasterFrame

from .compositing import (
    Region,
    burned_area_image,
    mosaic_latest,
    region_geometry,
    threshold_image,
)
from .zonal import Reducer, reduce_region


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthlyBurnedArea:
    month: int
    burned_area_ha: float | None  # None: no frames captured in the month
    frame_count: int

    @property
    def has_data(self) -> bool:
        return self.burned_area_ha is not None


def month_window(year: int, month: int) -> tuple[date, date]:
    """Half-open ``[first day of month, first day of next month)``."""

    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def frames_in_window(frames: Iterable[RasterFrame], start: date, end: date) -> list[RasterFrame]:
    return [f for f in frames if start <= f.time_start < end]


def count_revisited_pixels(
    frames: Sequence[RasterFrame],
    year: int,
    *,
    band: str = DEFAULT_BAND,
    region: Region | None = None,
) -> int:
    """Pixels flagged burned (> 0) in more than one monthly window of ``year``."""

    hits: np.ndarray | None = None
    for month in range(1, 13):
        monthly = frames_in_window(frames, *month_window(year, month))
        if not monthly:
            continue
        burned = threshold_image(mosaic_latest(monthly, band=band))
        flags = np.ma.filled(burned.data, 0.0) > 0
        if region is not None:
            flags &= zone_mask_for_grid(region_geometry(region), burned.grid)
        hits = flags.astype(np.int32) if hits is None else hits + flags
    if hits is None:
        return 0
    return int(np.count_nonzero(hits > 1))


def build_progression(
    frames: Sequence[RasterFrame],
    study_area: Region,
    year: int,
    *,
    band: str = DEFAULT_BAND,
    scale: float = DEFAULT_EXPORT_SCALE_M,
    max_pixels: int = DEFAULT_MAX_PIXELS,
    grid: RasterGrid | None = None,
    revisited_pixels: int | None = None,
) -> list[MonthlyBurnedArea]:
    """Burned hectares per calendar month of ``year``, months 1..12 in order.

    Each month overlays its frames last-write-wins, thresholds at > 0 and sums
    geodesic pixel area over ``study_area``. Months with no frames report
    ``burned_area_ha=None``. Pixels burned in several months are counted in
    each of them; a warning is logged when that happens. Pass
    ``revisited_pixels`` when it was already counted with
    ``count_revisited_pixels``.
    """

    frames = list(frames)
    entries: list[MonthlyBurnedArea] = []
    for month in range(1, 13):
        start, end = month_window(year, month)
        monthly = frames_in_window(frames, start, end)
        if not monthly:
            LOGGER.info("No frames for %04d-%02d; burned area is undefined", year, month)
            entries.append(MonthlyBurnedArea(month=month, burned_area_ha=None, frame_count=0))
            continue

        area = burned_area_image(mosaic_latest(monthly, band=band, grid=grid))
        stats = reduce_region(
            area,
            study_area,
            scale=scale,
            reducer=Reducer.SUM,
            max_pixels=max_pixels,
        )
        entries.append(
            MonthlyBurnedArea(month=month, burned_area_ha=stats[band], frame_count=len(monthly))
        )

    revisited = (
        revisited_pixels
        if revisited_pixels is not None
        else count_revisited_pixels(frames, year, band=band, region=study_area)
    )
    if revisited:
        LOGGER.warning(
            "%s pixel(s) are burned in more than one month of %s; monthly totals may exceed the annual total",
            revisited,
            year,
        )
    return entries


def total_burned_area_ha(entries: Iterable[MonthlyBurnedArea]) -> float:
    return float(sum(e.burned_area_ha for e in entries if e.burned_area_ha is not None))


def write_progression_csv(path: Path, entries: Iterable[MonthlyBurnedArea]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh, lineterminator="\n")
        writer.writerow(["month", "burned_area_ha", "frame_count"])
        for entry in entries:
            value = "" if entry.burned_area_ha is None else f"{entry.burned_area_ha:.6f}"
            writer.writerow([entry.month, value, entry.frame_count])
