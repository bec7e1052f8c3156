from __future__ import annotations

import json
import math
import sys
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pytest
import rasterio
from pyproj import Transformer
from rasterio.transform import xy
from shapely.geometry import box, mapping
from shapely.ops import transform as shapely_transform

_SRC = (Path(__file__).resolve().parents[1] / "src").as_posix()
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)

from fire_burndate.config import FireEvent  # noqa: E402
from fire_burndate.geo.buffer import local_metric_crs  # noqa: E402
from fire_burndate.geo.grid import RasterGrid  # noqa: E402


IGNITION = (-105.8680114589377, 40.28124999635872)
EVENT_ID = "CO4020310623920201014"


@dataclass(frozen=True)
class BurnInputs:
    event: FireEvent
    boundaries_path: Path
    frame_dir: Path


def _square_around(lon: float, lat: float, side_m: float):
    to_geo = Transformer.from_crs(local_metric_crs(lon, lat), "EPSG:4326", always_xy=True)
    half = side_m / 2.0
    return shapely_transform(to_geo.transform, box(-half, -half, half, half))


def _write_frame(path: Path, data: np.ndarray, grid: RasterGrid) -> None:
    profile = {
        "driver": "GTiff",
        "height": data.shape[0],
        "width": data.shape[1],
        "count": 1,
        "dtype": data.dtype,
        "crs": grid.crs,
        "transform": grid.transform,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data, 1)
        dst.set_band_description(1, "BurnDate")


def _distance_from_ignition_m(grid: RasterGrid) -> np.ndarray:
    rows, cols = np.indices(grid.shape)
    xs, ys = xy(grid.transform, rows.ravel(), cols.ravel())
    lons = np.asarray(xs).reshape(grid.shape)
    lats = np.asarray(ys).reshape(grid.shape)
    lon0, lat0 = IGNITION
    dx = (lons - lon0) * math.cos(math.radians(lat0)) * 111_320.0
    dy = (lats - lat0) * 110_574.0
    return np.hypot(dx, dy)


@pytest.fixture
def burn_inputs(tmp_path: Path) -> BurnInputs:
    """A 1 km square fire burning its core in October and a ring in November.

    Frames cover 2019-12-01 (outside the season, burned everywhere) and the
    first day of each month of 2020 on a 500 m grid.
    """

    lon, lat = IGNITION
    boundaries_path = tmp_path / "mtbs_perimeters.geojson"
    features = [
        {
            "type": "Feature",
            "properties": {
                "Event_ID": EVENT_ID,
                "Fire_Name": "EAST TROUBLESOME",
                "Incid_Name": "EAST TROUBLESOME",
                "Fire_Year": 2020,
            },
            "geometry": mapping(_square_around(lon, lat, 1000.0)),
        },
        {
            "type": "Feature",
            "properties": {
                "Event_ID": "CO-TROUBLESOME-DUP",
                "Fire_Name": "TROUBLESOME CREEK",
                "Incid_Name": "",
                "Fire_Year": 2020,
            },
            "geometry": mapping(_square_around(lon + 0.3, lat, 1000.0)),
        },
    ]
    boundaries_path.write_text(
        json.dumps({"type": "FeatureCollection", "features": features}), encoding="utf-8"
    )

    grid = RasterGrid.covering(box(lon - 0.1, lat - 0.1, lon + 0.1, lat + 0.1), scale_m=500.0)
    distance = _distance_from_ignition_m(grid)
    unburned = np.zeros(grid.shape, dtype=np.int16)

    frame_dir = tmp_path / "frames"
    _write_frame(frame_dir / "burndate_2019-12-01.tif", np.full(grid.shape, 350, dtype=np.int16), grid)
    for month in range(1, 13):
        data = unburned.copy()
        if month == 10:
            data[distance <= 1000.0] = 290
        elif month == 11:
            data[(distance > 1500.0) & (distance <= 2500.0)] = 310
        _write_frame(frame_dir / f"burndate_2020-{month:02d}-01.tif", data, grid)

    event = FireEvent(event_id=EVENT_ID, name="East_Troublesome_Fire", year=2020, ignition_point=IGNITION)
    return BurnInputs(event=event, boundaries_path=boundaries_path, frame_dir=frame_dir)
