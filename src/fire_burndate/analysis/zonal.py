from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Optional, Union

import numpy as np
from shapely.geometry.base import BaseGeometry

from fire_burndate.errors import ResourceLimitExceeded
from fire_burndate.geo.grid import RasterGrid, geodesic_area_m2, zone_mask_for_grid
from fire_burndate.sources.frames import warp_band

from .compositing import BandImage, Region, region_geometry


LOGGER = logging.getLogger(__name__)

Statistic = Optional[Union[int, float]]


class Reducer(str, Enum):
    MIN_MAX = "min_max"
    SUM = "sum"


def estimate_pixel_count(geometry: BaseGeometry, scale: float) -> float:
    return geodesic_area_m2(geometry) / float(scale) ** 2


def check_pixel_budget(geometry: BaseGeometry, *, scale: float, max_pixels: int) -> float:
    area_m2 = geodesic_area_m2(geometry)
    estimated = area_m2 / float(scale) ** 2
    if estimated > max_pixels:
        raise ResourceLimitExceeded(
            geometry_area_m2=area_m2,
            scale_m=float(scale),
            max_pixels=int(max_pixels),
            estimated_pixels=estimated,
        )
    return estimated


def _at_scale(image: BandImage, geometry: BaseGeometry, scale: float) -> BandImage:
    if math.isclose(image.grid.nominal_scale_m, scale, rel_tol=1e-6):
        return image

    LOGGER.debug(
        "Resampling %s from %.1f m to %.1f m for aggregation",
        image.name,
        image.grid.nominal_scale_m,
        scale,
    )
    target = RasterGrid.covering(geometry, scale_m=scale, crs=image.grid.crs)
    source = image.data
    if image.area_unit_m2 is not None:
        # Per-pixel areas do not survive resampling; carry the covered
        # fraction of each pixel and re-apply the target pixel area.
        source = np.ma.asarray(image.data) * image.area_unit_m2 / image.grid.pixel_area_m2()
    warped = warp_band(source, image.grid, target)
    if image.area_unit_m2 is not None:
        warped = warped * target.pixel_area_m2() / image.area_unit_m2
    mask = np.ma.getmaskarray(warped)
    values = np.where(mask, 0, np.ma.getdata(warped)).astype(image.data.dtype)
    return BandImage(
        name=image.name,
        data=np.ma.MaskedArray(values, mask=mask),
        grid=target,
        area_unit_m2=image.area_unit_m2,
    )


def reduce_region(
    image: BandImage,
    geometry: Region,
    *,
    scale: float,
    reducer: Reducer | str,
    max_pixels: int,
) -> dict[str, Statistic]:
    """Aggregate ``image`` over ``geometry`` at ground scale ``scale`` (metres).

    Raises ResourceLimitExceeded when ``area / scale**2`` exceeds
    ``max_pixels``; nothing is truncated. Pixels count when their centre lies
    in the geometry.

    - ``Reducer.MIN_MAX`` -> ``{<band>_min, <band>_max}`` (None if no pixels)
    - ``Reducer.SUM`` -> ``{<band>: sum}``
    """

    reducer = Reducer(reducer)
    if scale <= 0:
        raise ValueError("scale must be > 0")
    geom = region_geometry(geometry)
    check_pixel_budget(geom, scale=scale, max_pixels=max_pixels)

    working = _at_scale(image, geom, scale)
    zone = zone_mask_for_grid(geom, working.grid)
    selected = np.asarray(np.ma.asarray(working.data)[zone & working.valid_mask])

    if reducer is Reducer.MIN_MAX:
        if selected.size == 0:
            return {f"{image.name}_min": None, f"{image.name}_max": None}
        return {
            f"{image.name}_min": selected.min().item(),
            f"{image.name}_max": selected.max().item(),
        }

    return {image.name: float(np.sum(selected, dtype=np.float64))}
