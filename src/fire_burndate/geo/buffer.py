from __future__ import annotations

from pyproj import CRS, Transformer
from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform as shapely_transform


def local_metric_crs(lon: float, lat: float) -> CRS:
    """Azimuthal equidistant CRS centred on (lon, lat); distances from the centre are true."""

    return CRS.from_proj4(
        f"+proj=aeqd +lat_0={lat:.10f} +lon_0={lon:.10f} +datum=WGS84 +units=m +no_defs"
    )


def buffer_meters(geometry: BaseGeometry, distance_m: float, *, quad_segs: int = 16) -> BaseGeometry:
    """Buffer a lon/lat geometry outward by ``distance_m`` metres."""

    centre = geometry.centroid
    metric_crs = local_metric_crs(centre.x, centre.y)
    to_metric = Transformer.from_crs("EPSG:4326", metric_crs, always_xy=True)
    to_geo = Transformer.from_crs(metric_crs, "EPSG:4326", always_xy=True)

    projected = shapely_transform(to_metric.transform, geometry)
    buffered = projected.buffer(distance_m, quad_segs=quad_segs)
    return shapely_transform(to_geo.transform, buffered)


def disc(lon: float, lat: float, radius_m: float, *, quad_segs: int = 16) -> BaseGeometry:
    return buffer_meters(Point(lon, lat), radius_m, quad_segs=quad_segs)
