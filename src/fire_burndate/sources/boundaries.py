from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from shapely.geometry import box, mapping, shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union


LOGGER = logging.getLogger(__name__)

# MTBS burned area boundary attribute names.
EVENT_ID_FIELD = "Event_ID"
FIRE_NAME_FIELD = "Fire_Name"
INCIDENT_NAME_FIELD = "Incid_Name"
FIRE_YEAR_FIELD = "Fire_Year"


@dataclass(frozen=True)
class BoundaryRecord:
    properties: Mapping[str, Any]
    geometry: BaseGeometry

    @property
    def event_id(self) -> str:
        return str(self.properties.get(EVENT_ID_FIELD, ""))

    @property
    def fire_name(self) -> str:
        return str(self.properties.get(FIRE_NAME_FIELD, ""))

    @property
    def fire_year(self) -> int | None:
        value = self.properties.get(FIRE_YEAR_FIELD)
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def to_feature(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "properties": dict(self.properties),
            "geometry": mapping(self.geometry),
        }


class BoundaryCollection:
    """Read-only, filterable collection of fire perimeter records."""

    def __init__(self, records: Iterable[BoundaryRecord]) -> None:
        self._records = tuple(records)

    def __iter__(self) -> Iterator[BoundaryRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def size(self) -> int:
        return len(self._records)

    def filter_eq(self, field: str, value: Any) -> "BoundaryCollection":
        return BoundaryCollection(r for r in self._records if r.properties.get(field) == value)

    def filter_year(self, year: int) -> "BoundaryCollection":
        return BoundaryCollection(r for r in self._records if r.fire_year == year)

    def filter_bounds(self, region: BaseGeometry) -> "BoundaryCollection":
        return BoundaryCollection(r for r in self._records if r.geometry.intersects(region))

    def filter_contains(self, fields: Iterable[str], keyword: str) -> "BoundaryCollection":
        """Records where any of ``fields`` contains ``keyword`` (case-sensitive)."""

        field_list = list(fields)

        def _matches(record: BoundaryRecord) -> bool:
            for field in field_list:
                value = record.properties.get(field)
                if isinstance(value, str) and keyword in value:
                    return True
            return False

        return BoundaryCollection(r for r in self._records if _matches(r))

    def limit(self, count: int) -> "BoundaryCollection":
        return BoundaryCollection(self._records[:count])

    def geometry(self) -> BaseGeometry:
        return unary_union([r.geometry for r in self._records])

    def to_feature_collection(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": [r.to_feature() for r in self._records]}


def bbox_geometry(bbox: tuple[float, float, float, float]) -> BaseGeometry:
    return box(*bbox)


def load_boundary_collection(path: Path) -> BoundaryCollection:
    data = json.loads(path.read_text(encoding="utf-8"))
    if data.get("type") == "FeatureCollection":
        features = data.get("features", [])
    elif data.get("type") == "Feature":
        features = [data]
    else:
        raise ValueError(f"Unsupported boundary GeoJSON (expected Feature/FeatureCollection): {path}")

    records: list[BoundaryRecord] = []
    for idx, feature in enumerate(features):
        geom = feature.get("geometry")
        if not geom:
            LOGGER.warning("Skipping boundary feature %s without geometry", idx)
            continue
        records.append(
            BoundaryRecord(properties=dict(feature.get("properties") or {}), geometry=shape(geom))
        )
    LOGGER.info("Loaded %s boundary records from %s", len(records), path)
    return BoundaryCollection(records)
