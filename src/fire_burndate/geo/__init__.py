"""Geometry and pixel-grid helpers shared by the analysis modules."""

from .buffer import buffer_meters, disc, local_metric_crs
from .grid import (
    METERS_PER_DEGREE,
    WGS84,
    RasterGrid,
    geodesic_area_m2,
    pixel_area_m2_raster,
    rasterize_zone_mask,
    to_crs,
    zone_mask_for_grid,
)

__all__ = [
    "METERS_PER_DEGREE",
    "WGS84",
    "RasterGrid",
    "buffer_meters",
    "disc",
    "geodesic_area_m2",
    "local_metric_crs",
    "pixel_area_m2_raster",
    "rasterize_zone_mask",
    "to_crs",
    "zone_mask_for_grid",
]
