from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Sequence

import numpy as np
import rasterio
from rasterio.enums import Resampling
from rasterio.errors import RasterioIOError
from rasterio.warp import reproject
from shapely.geometry.base import BaseGeometry

from fire_burndate.errors import ConfigurationError, MissingBand
from fire_burndate.geo.grid import RasterGrid


LOGGER = logging.getLogger(__name__)

TIME_START_TAG = "time_start"

_DATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?<!\d)(\d{4})[-_](\d{2})[-_](\d{2})(?!\d)"),
    re.compile(r"(?<!\d)(\d{4})(\d{2})(\d{2})(?!\d)"),
)
_MODIS_DOY_PATTERN = re.compile(r"A(\d{4})(\d{3})(?!\d)")


@dataclass(frozen=True)
class RasterFrame:
    """One dated image of a raster collection; bands share ``grid``."""

    frame_id: str
    time_start: date
    bands: Mapping[str, np.ma.MaskedArray]
    grid: RasterGrid

    @property
    def band_names(self) -> tuple[str, ...]:
        return tuple(self.bands)

    def band(self, name: str) -> np.ma.MaskedArray:
        try:
            return self.bands[name]
        except KeyError:
            raise MissingBand(name, self.frame_id, self.band_names) from None


class FrameCollection:
    """Time-ordered raster frames with spatial, temporal and band filters."""

    def __init__(self, frames: Iterable[RasterFrame]) -> None:
        # Stable: frames with equal dates keep their input order.
        self._frames = tuple(sorted(frames, key=lambda f: f.time_start))

    def __iter__(self) -> Iterator[RasterFrame]:
        return iter(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    def __getitem__(self, index: int) -> RasterFrame:
        return self._frames[index]

    def size(self) -> int:
        return len(self._frames)

    def first(self) -> RasterFrame | None:
        return self._frames[0] if self._frames else None

    def last(self) -> RasterFrame | None:
        return self._frames[-1] if self._frames else None

    def filter_bounds(self, region: BaseGeometry) -> "FrameCollection":
        return FrameCollection(f for f in self._frames if f.grid.footprint_wgs84().intersects(region))

    def filter_date(self, start: date, end: date) -> "FrameCollection":
        """Frames captured in ``[start, end)``."""

        return FrameCollection(f for f in self._frames if start <= f.time_start < end)

    def select(self, band: str) -> "FrameCollection":
        return FrameCollection(
            RasterFrame(
                frame_id=f.frame_id,
                time_start=f.time_start,
                bands={band: f.band(band)},
                grid=f.grid,
            )
            for f in self._frames
        )

    def on_grid(self, grid: RasterGrid) -> "FrameCollection":
        return FrameCollection(warp_frame(f, grid) for f in self._frames)


def warp_band(values: np.ma.MaskedArray, source: RasterGrid, target: RasterGrid) -> np.ma.MaskedArray:
    src = np.ma.filled(np.ma.asarray(values).astype(np.float64), np.nan)
    dst = np.full(target.shape, np.nan, dtype=np.float64)
    reproject(
        source=src,
        destination=dst,
        src_transform=source.transform,
        src_crs=source.crs,
        dst_transform=target.transform,
        dst_crs=target.crs,
        src_nodata=np.nan,
        dst_nodata=np.nan,
        resampling=Resampling.nearest,
    )
    return np.ma.masked_invalid(dst)


def warp_frame(frame: RasterFrame, grid: RasterGrid) -> RasterFrame:
    """Nearest-neighbour resample of every band of ``frame`` onto ``grid``."""

    if frame.grid.same_as(grid):
        return frame
    return RasterFrame(
        frame_id=frame.frame_id,
        time_start=frame.time_start,
        bands={name: warp_band(values, frame.grid, grid) for name, values in frame.bands.items()},
        grid=grid,
    )


def parse_capture_date(name: str) -> date | None:
    for pattern in _DATE_PATTERNS:
        match = pattern.search(name)
        if match is None:
            continue
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            continue

    match = _MODIS_DOY_PATTERN.search(name)
    if match is not None:
        year, doy = int(match.group(1)), int(match.group(2))
        if 1 <= doy <= 366:
            return date(year, 1, 1) + timedelta(days=doy - 1)
    return None


def _capture_date(path: Path, tags: Mapping[str, str]) -> date:
    tag_value = tags.get(TIME_START_TAG)
    if tag_value:
        try:
            return datetime.fromisoformat(tag_value.strip()).date()
        except ValueError:
            LOGGER.warning("Ignoring unparseable %s tag %r in %s", TIME_START_TAG, tag_value, path.name)

    parsed = parse_capture_date(path.stem)
    if parsed is None:
        raise ConfigurationError(f"Cannot determine capture date for frame: {path.name}")
    return parsed


def _band_names(
    path: Path,
    descriptions: Sequence[str | None],
    band_names: Sequence[str] | None,
) -> list[str]:
    if band_names is not None:
        if len(band_names) != len(descriptions):
            raise ConfigurationError(
                f"{path.name} has {len(descriptions)} bands but {len(band_names)} band names were given"
            )
        return list(band_names)
    return [desc if desc else f"b{idx}" for idx, desc in enumerate(descriptions, start=1)]


def read_frame(path: Path, *, band_names: Sequence[str] | None = None) -> RasterFrame:
    try:
        with rasterio.open(path) as ds:
            if ds.crs is None:
                raise ConfigurationError(f"Raster frame has no CRS: {path.name}")
            names = _band_names(path, list(ds.descriptions or [None] * ds.count), band_names)
            bands = {name: ds.read(idx, masked=True) for idx, name in enumerate(names, start=1)}
            grid = RasterGrid(transform=ds.transform, width=ds.width, height=ds.height, crs=ds.crs)
            time_start = _capture_date(path, ds.tags())
    except RasterioIOError as exc:
        raise RuntimeError(f"Failed to read raster frame: {exc}") from exc

    return RasterFrame(frame_id=path.stem, time_start=time_start, bands=bands, grid=grid)


def list_frame_files(frame_dir: Path) -> list[Path]:
    if not frame_dir.is_dir():
        return []
    candidates = list(frame_dir.glob("*.tif")) + list(frame_dir.glob("*.tiff"))
    return sorted(set(candidates))


def load_frame_collection(
    frame_dir: Path,
    *,
    band_names: Sequence[str] | None = None,
) -> FrameCollection:
    paths = list_frame_files(frame_dir)
    if not paths:
        raise ConfigurationError(f"No GeoTIFF frames found in {frame_dir}")
    frames = [read_frame(p, band_names=band_names) for p in paths]
    LOGGER.info("Loaded %s raster frames from %s", len(frames), frame_dir)
    return FrameCollection(frames)
