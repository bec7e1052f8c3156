from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest
import rasterio
from rasterio.crs import CRS
from rasterio.transform import from_origin
from shapely.geometry import box

from fire_burndate.analysis.compositing import NODATA_INT16, BandImage
from fire_burndate.analysis.study_area import resolve_study_area
from fire_burndate.config import FireEvent
from fire_burndate.geo.grid import RasterGrid
from fire_burndate.reports.determinism import (
    canonical_json_bytes,
    sha256_bytes,
    sha256_file,
    stable_float,
    write_text,
)
from fire_burndate.reports.exports import (
    burndate_raster_name,
    event_slug,
    perimeter_feature_collection,
    perimeter_name,
    write_burndate_geotiff,
    write_perimeter_geojson,
)
from fire_burndate.reports.types import ArtifactKind, record_artifact
from fire_burndate.sources.boundaries import BoundaryCollection, BoundaryRecord


EVENT = FireEvent(
    event_id="CO4020310623920201014",
    name="East_Troublesome_Fire",
    year=2020,
    ignition_point=(-105.8680114589377, 40.28124999635872),
)


def _boundaries() -> BoundaryCollection:
    return BoundaryCollection(
        [
            BoundaryRecord(
                properties={"Event_ID": EVENT.event_id, "Fire_Name": "EAST TROUBLESOME", "Fire_Year": 2020},
                geometry=box(-105.90, 40.25, -105.84, 40.31),
            ),
            BoundaryRecord(
                properties={"Event_ID": EVENT.event_id, "Fire_Name": "EAST TROUBLESOME", "Fire_Year": 2020},
                geometry=box(-105.80, 40.25, -105.78, 40.27),
            ),
        ]
    )


def test_export_names() -> None:
    assert event_slug("East_Troublesome_Fire") == "east_troublesome"
    assert event_slug("Cameron Peak") == "cameron_peak"
    assert burndate_raster_name(2020) == "mcd64a1_annual_burndate_y2020"
    assert perimeter_name("East_Troublesome_Fire") == "mtbs_east_troublesome_fire_perimeter"
    with pytest.raises(ValueError):
        event_slug("  ")


def test_write_burndate_geotiff_profile(tmp_path: Path) -> None:
    grid = RasterGrid(
        transform=from_origin(-106.0, 40.0, 0.01, 0.01), width=2, height=2, crs=CRS.from_epsg(4326)
    )
    data = np.ma.MaskedArray(
        np.array([[290, 0], [310, 0]], dtype=np.int16),
        mask=[[False, True], [False, True]],
    )
    path = write_burndate_geotiff(tmp_path / "out" / "burn.tif", BandImage("BurnDate", data, grid))

    with rasterio.open(path) as ds:
        assert ds.count == 1
        assert ds.dtypes[0] == "int16"
        assert ds.nodata == NODATA_INT16
        assert ds.crs == CRS.from_epsg(4326)
        assert ds.descriptions[0] == "BurnDate"
        assert ds.transform.almost_equals(grid.transform)
        assert ds.read(1).tolist() == [[290, NODATA_INT16], [310, NODATA_INT16]]


def test_perimeter_lists_matched_records_deterministically(tmp_path: Path) -> None:
    study_area = resolve_study_area(_boundaries(), EVENT.event_id, EVENT.ignition_point)

    collection = perimeter_feature_collection(study_area)
    path = write_perimeter_geojson(tmp_path / "perimeter.geojson", study_area)
    again = write_perimeter_geojson(tmp_path / "again.geojson", study_area)

    assert len(collection["features"]) == 2
    assert "note" not in collection
    assert json.loads(path.read_text(encoding="utf-8")) == json.loads(json.dumps(collection))
    assert sha256_file(path) == sha256_file(again)


def test_perimeter_without_match_carries_note() -> None:
    study_area = resolve_study_area(_boundaries(), "MISSING", EVENT.ignition_point)

    collection = perimeter_feature_collection(study_area)

    assert collection["features"] == []
    assert "No boundary record matched Event_ID MISSING" in collection["note"]
    assert "15000 m disc" in collection["note"]
    assert study_area.event_id == "MISSING"


def test_record_artifact(tmp_path: Path) -> None:
    path = tmp_path / "exports" / "monthly_progression.csv"
    path.parent.mkdir(parents=True)
    path.write_text("month,burned_area_ha,frame_count\n", encoding="utf-8")

    artifact = record_artifact(ArtifactKind.MONTHLY_PROGRESSION, path, root=tmp_path)

    assert artifact.relpath == "exports/monthly_progression.csv"
    assert artifact.sha256 == sha256_bytes(path.read_bytes())
    assert artifact.size_bytes == path.stat().st_size
    assert artifact.content_type == "text/csv"


def test_canonical_json_is_order_independent() -> None:
    a = canonical_json_bytes({"b": 1, "a": [1, 2], "c": "é"})
    b = canonical_json_bytes({"c": "é", "a": [1, 2], "b": 1})

    assert a == b
    assert a == '{"a":[1,2],"b":1,"c":"é"}'.encode("utf-8")


def test_stable_float_and_text_writes(tmp_path: Path) -> None:
    assert stable_float(None) is None
    assert stable_float(0.1 + 0.2) == 0.3
    assert stable_float(1.23456789, 2) == 1.23

    path = tmp_path / "report.txt"
    write_text(path, "a\r\nb\n")
    assert path.read_bytes() == b"a\nb\n"
