from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np
import rasterio
from pyproj import Geod
from rasterio.crs import CRS
from rasterio.features import geometry_mask
from rasterio.transform import array_bounds, from_origin
from rasterio.warp import transform_geom
from shapely.geometry import box, mapping, shape
from shapely.geometry.base import BaseGeometry


WGS84 = "EPSG:4326"

# Metres per degree at the equator, used to express a ground scale on a
# geographic grid with square degree pixels.
METERS_PER_DEGREE = 111319.49079327357

_GEOD = Geod(ellps="WGS84")


@dataclass(frozen=True)
class RasterGrid:
    """Pixel grid: north-up affine transform, size and CRS."""

    transform: rasterio.Affine
    width: int
    height: int
    crs: CRS

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        west, south, east, north = array_bounds(self.height, self.width, self.transform)
        return float(west), float(south), float(east), float(north)

    @property
    def nominal_scale_m(self) -> float:
        if self.crs.is_geographic:
            return abs(self.transform.a) * METERS_PER_DEGREE
        return abs(self.transform.a)

    def footprint_wgs84(self) -> BaseGeometry:
        footprint = mapping(box(*self.bounds))
        if self.crs == CRS.from_user_input(WGS84):
            return shape(footprint)
        return shape(transform_geom(self.crs, WGS84, footprint))

    def same_as(self, other: "RasterGrid") -> bool:
        return (
            self.shape == other.shape
            and self.crs == other.crs
            and self.transform.almost_equals(other.transform)
        )

    def pixel_area_m2(self) -> np.ndarray:
        return pixel_area_m2_raster(self.transform, height=self.height, width=self.width, crs=self.crs)

    @classmethod
    def covering(
        cls,
        geometry: BaseGeometry,
        *,
        scale_m: float,
        crs: str | CRS = WGS84,
    ) -> "RasterGrid":
        """Grid at ``scale_m`` covering a lon/lat geometry, snapped to the pixel size."""

        if scale_m <= 0:
            raise ValueError("scale_m must be > 0")
        target = CRS.from_user_input(crs)
        geom = to_crs(geometry, target)
        res = scale_m / METERS_PER_DEGREE if target.is_geographic else float(scale_m)

        minx, miny, maxx, maxy = geom.bounds
        left = math.floor(minx / res) * res
        bottom = math.floor(miny / res) * res
        right = math.ceil(maxx / res) * res
        top = math.ceil(maxy / res) * res
        width = max(int(round((right - left) / res)), 1)
        height = max(int(round((top - bottom) / res)), 1)
        return cls(transform=from_origin(left, top, res, res), width=width, height=height, crs=target)


def to_crs(geometry: BaseGeometry, crs: str | CRS) -> BaseGeometry:
    target = CRS.from_user_input(crs)
    if target == CRS.from_user_input(WGS84):
        return geometry
    return shape(transform_geom(WGS84, target, mapping(geometry)))


def geodesic_area_m2(geometry: BaseGeometry) -> float:
    if geometry.is_empty:
        return 0.0
    area, _ = _GEOD.geometry_area_perimeter(geometry)
    return abs(float(area))


def pixel_area_m2_raster(
    transform: rasterio.Affine,
    *,
    height: int,
    width: int,
    crs: CRS | None,
) -> np.ndarray:
    """Per-pixel ground area in square metres.

    Projected grids have a constant cell area; geographic grids use the WGS84
    geodesic area of each cell, which only varies by row on a north-up grid.
    """

    if crs is not None and crs.is_projected:
        return np.full((height, width), abs(transform.a * transform.e), dtype=np.float64)

    row_areas = np.empty(height, dtype=np.float64)
    for row in range(height):
        x0, y0 = transform * (0, row)
        x1, y1 = transform * (1, row + 1)
        area, _ = _GEOD.polygon_area_perimeter([x0, x1, x1, x0], [y0, y0, y1, y1])
        row_areas[row] = abs(area)
    return np.repeat(row_areas[:, None], width, axis=1)


def rasterize_zone_mask(
    geometry: Mapping[str, Any],
    *,
    out_shape: tuple[int, int],
    transform: rasterio.Affine,
    all_touched: bool = False,
) -> np.ndarray:
    """Boolean mask of pixels inside ``geometry`` (pixel centres unless ``all_touched``)."""

    return geometry_mask(
        [geometry],
        out_shape=out_shape,
        transform=transform,
        all_touched=all_touched,
        invert=True,
    )


def zone_mask_for_grid(geometry: BaseGeometry, grid: RasterGrid) -> np.ndarray:
    if geometry.is_empty:
        return np.zeros(grid.shape, dtype=bool)
    return rasterize_zone_mask(
        mapping(to_crs(geometry, grid.crs)),
        out_shape=grid.shape,
        transform=grid.transform,
    )
