from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

import numpy as np
from shapely.geometry.base import BaseGeometry

from fire_burndate.config import DEFAULT_BAND
from fire_burndate.geo.grid import RasterGrid, zone_mask_for_grid
from fire_burndate.sources.frames import RasterFrame

from .study_area import StudyArea


NODATA_INT16 = -32768
VALID_DAY_RANGE = (1, 366)
HECTARE_M2 = 10_000.0

Region = Union[StudyArea, BaseGeometry]


@dataclass(frozen=True)
class BandImage:
    """A single named band on a grid; masked pixels are no-data.

    ``area_unit_m2`` is set on images whose values are the ground area of
    each pixel, in units of that many square metres (10 000 for hectares).
    Resampling such an image rescales values to the new pixel size.
    """

    name: str
    data: np.ma.MaskedArray
    grid: RasterGrid
    area_unit_m2: float | None = None

    @property
    def valid_mask(self) -> np.ndarray:
        return ~np.ma.getmaskarray(self.data)

    def valid_count(self) -> int:
        return int(np.count_nonzero(self.valid_mask))


def region_geometry(region: Region) -> BaseGeometry:
    if isinstance(region, StudyArea):
        return region.geometry
    return region


def _common_grid(frames: list[RasterFrame], grid: RasterGrid | None) -> RasterGrid:
    if not frames:
        if grid is None:
            raise ValueError("No frames to composite and no grid given")
        return grid
    reference = grid or frames[0].grid
    for frame in frames:
        if not frame.grid.same_as(reference):
            raise ValueError(
                f"Frame {frame.frame_id} is not on the composite grid; "
                "warp frames with FrameCollection.on_grid() first"
            )
    return reference


def burn_date_values(values: np.ma.MaskedArray) -> np.ma.MaskedArray:
    """Burn-date values as float64 with unburned/unmapped codes (<= 0) masked."""

    filled = np.ma.filled(np.ma.asarray(values).astype(np.float64), np.nan)
    with np.errstate(invalid="ignore"):
        missing = ~np.isfinite(filled) | ~(filled > 0)
    return np.ma.MaskedArray(filled, mask=missing)


def compose_annual(
    frames: Iterable[RasterFrame],
    study_area: Region,
    *,
    band: str = DEFAULT_BAND,
    grid: RasterGrid | None = None,
) -> BandImage:
    """Collapse a season of frames into one int16 burn-date image.

    Each pixel takes the first non-missing value in capture-time order; later
    frames never override it. Values are rounded half-up, kept only within
    the valid day-of-year range and clipped to ``study_area``.
    """

    ordered = sorted(frames, key=lambda f: f.time_start)
    target = _common_grid(ordered, grid)

    combined = np.full(target.shape, np.nan, dtype=np.float64)
    for frame in ordered:
        values = burn_date_values(frame.band(band))
        fill = np.isnan(combined) & ~np.ma.getmaskarray(values)
        combined[fill] = values.data[fill]

    rounded = np.floor(combined + 0.5)
    lo, hi = VALID_DAY_RANGE
    zone = zone_mask_for_grid(region_geometry(study_area), target)
    with np.errstate(invalid="ignore"):
        valid = np.isfinite(rounded) & (rounded >= lo) & (rounded <= hi) & zone

    out = np.full(target.shape, NODATA_INT16, dtype=np.int16)
    out[valid] = rounded[valid].astype(np.int16)
    data = np.ma.MaskedArray(out, mask=~valid, fill_value=NODATA_INT16)
    return BandImage(name=band, data=data, grid=target)


def mosaic_latest(
    frames: Iterable[RasterFrame],
    *,
    band: str = DEFAULT_BAND,
    grid: RasterGrid | None = None,
) -> BandImage:
    """Overlay frames in capture order; a later unmasked pixel overwrites an earlier one."""

    ordered = sorted(frames, key=lambda f: f.time_start)
    target = _common_grid(ordered, grid)

    merged = np.full(target.shape, np.nan, dtype=np.float64)
    for frame in ordered:
        values = np.ma.asarray(frame.band(band)).astype(np.float64)
        filled = np.ma.filled(values, np.nan)
        present = ~np.ma.getmaskarray(values) & np.isfinite(filled)
        merged[present] = filled[present]

    return BandImage(name=band, data=np.ma.masked_invalid(merged), grid=target)


def threshold_image(image: BandImage, threshold: float = 0) -> BandImage:
    """1.0 where value > threshold, 0.0 elsewhere; masked where the source is masked."""

    filled = np.ma.filled(np.ma.asarray(image.data).astype(np.float64), np.nan)
    with np.errstate(invalid="ignore"):
        flags = (filled > threshold).astype(np.float64)
    mask = np.ma.getmaskarray(image.data) | ~np.isfinite(filled)
    return BandImage(name=image.name, data=np.ma.MaskedArray(flags, mask=mask), grid=image.grid)


def burned_area_image(image: BandImage, threshold: float = 0) -> BandImage:
    """Burned area per pixel in hectares (``(value > threshold) * pixel area / 10000``)."""

    burned = threshold_image(image, threshold)
    hectares = burned.data.data * image.grid.pixel_area_m2() / HECTARE_M2
    return BandImage(
        name=image.name,
        data=np.ma.MaskedArray(hectares, mask=np.ma.getmaskarray(burned.data)),
        grid=image.grid,
        area_unit_m2=HECTARE_M2,
    )


def sample_values(image: BandImage, region: Region, size: int) -> list[float | int]:
    """Up to ``size`` defined pixel values inside ``region``, in row-major order."""

    if size <= 0:
        return []
    zone = zone_mask_for_grid(region_geometry(region), image.grid)
    values = np.ma.asarray(image.data)[zone & image.valid_mask][:size]
    return [v.item() for v in np.asarray(values)]
