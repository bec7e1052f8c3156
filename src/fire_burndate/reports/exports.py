from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import numpy as np
import rasterio

from fire_burndate.analysis.compositing import NODATA_INT16, BandImage
from fire_burndate.analysis.study_area import StudyArea

from .determinism import write_json


def event_slug(event_name: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", event_name.strip()).strip("_").lower()
    if slug.endswith("_fire"):
        slug = slug[: -len("_fire")]
    if not slug:
        raise ValueError(f"Cannot derive a file name from event name {event_name!r}")
    return slug


def burndate_raster_name(year: int) -> str:
    return f"mcd64a1_annual_burndate_y{year}"


def perimeter_name(event_name: str) -> str:
    return f"mtbs_{event_slug(event_name)}_fire_perimeter"


def write_burndate_geotiff(path: Path, image: BandImage) -> Path:
    """Single-band int16 GeoTIFF; no-data pixels carry NODATA_INT16."""

    data = np.ma.filled(np.ma.asarray(image.data).astype(np.int16), NODATA_INT16)
    profile = {
        "driver": "GTiff",
        "height": image.grid.height,
        "width": image.grid.width,
        "count": 1,
        "dtype": "int16",
        "crs": image.grid.crs,
        "transform": image.grid.transform,
        "nodata": NODATA_INT16,
        "compress": "deflate",
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data, 1)
        dst.set_band_description(1, image.name)
    return path


def perimeter_feature_collection(study_area: StudyArea) -> dict[str, Any]:
    features = sorted(
        (record.to_feature() for record in study_area.matched_records),
        key=lambda f: json.dumps(f.get("geometry"), sort_keys=True, ensure_ascii=False),
    )
    collection: dict[str, Any] = {"type": "FeatureCollection", "features": features}
    if not features:
        collection["note"] = (
            f"No boundary record matched Event_ID {study_area.event_id}; "
            f"study area is a {study_area.fallback_radius_m:g} m disc around the ignition point."
        )
    return collection


def write_perimeter_geojson(path: Path, study_area: StudyArea) -> Path:
    write_json(path, perimeter_feature_collection(study_area))
    return path
