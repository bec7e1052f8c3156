from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry

from fire_burndate.config import DEFAULT_BUFFER_M, DEFAULT_FALLBACK_RADIUS_M
from fire_burndate.geo.buffer import buffer_meters, disc
from fire_burndate.geo.grid import geodesic_area_m2
from fire_burndate.sources.boundaries import (
    EVENT_ID_FIELD,
    FIRE_NAME_FIELD,
    INCIDENT_NAME_FIELD,
    BoundaryCollection,
    BoundaryRecord,
    bbox_geometry,
)


LOGGER = logging.getLogger(__name__)


class StudyAreaSource(str, Enum):
    BOUNDARY = "boundary"
    FALLBACK_DISC = "fallback_disc"


@dataclass(frozen=True)
class StudyArea:
    event_id: str  # identifier the boundaries were searched for
    geometry: BaseGeometry
    source: StudyAreaSource
    matched_records: tuple[BoundaryRecord, ...]
    buffer_m: float
    fallback_radius_m: float
    fallback_point: tuple[float, float]

    @property
    def match_found(self) -> bool:
        return self.source is StudyAreaSource.BOUNDARY

    @property
    def matched_count(self) -> int:
        return len(self.matched_records)

    @property
    def area_m2(self) -> float:
        return geodesic_area_m2(self.geometry)

    def describe(self) -> str:
        if self.match_found:
            return (
                f"boundary of {self.matched_count} matched record(s) buffered by {self.buffer_m:g} m "
                f"({self.area_m2 / 10_000.0:.1f} ha)"
            )
        lon, lat = self.fallback_point
        return (
            f"fallback disc of radius {self.fallback_radius_m:g} m around ({lon:.6f}, {lat:.6f}) "
            f"({self.area_m2 / 10_000.0:.1f} ha)"
        )


def resolve_study_area(
    boundaries: BoundaryCollection,
    event_id: str,
    fallback_point: tuple[float, float],
    *,
    buffer_m: float = DEFAULT_BUFFER_M,
    fallback_radius_m: float = DEFAULT_FALLBACK_RADIUS_M,
) -> StudyArea:
    """Resolve the study-area polygon for a fire event.

    Exact ``Event_ID`` matches are unioned and buffered outward by
    ``buffer_m``; with no match the study area is a disc of
    ``fallback_radius_m`` around ``fallback_point``. Never raises for a
    missing match.
    """

    matches = boundaries.filter_eq(EVENT_ID_FIELD, event_id)
    match_found = matches.size() > 0

    if match_found:
        geometry = buffer_meters(matches.geometry(), buffer_m)
        source = StudyAreaSource.BOUNDARY
        LOGGER.info("Event %s matched %s boundary record(s)", event_id, matches.size())
    else:
        lon, lat = fallback_point
        geometry = disc(lon, lat, fallback_radius_m)
        source = StudyAreaSource.FALLBACK_DISC
        LOGGER.warning(
            "No boundary record for event %s; using %g m disc around ignition point",
            event_id,
            fallback_radius_m,
        )

    return StudyArea(
        event_id=event_id,
        geometry=geometry,
        source=source,
        matched_records=tuple(matches),
        buffer_m=float(buffer_m),
        fallback_radius_m=float(fallback_radius_m),
        fallback_point=(float(fallback_point[0]), float(fallback_point[1])),
    )


def search_by_name(boundaries: BoundaryCollection, keyword: str, year: int) -> BoundaryCollection:
    """Records of ``year`` whose fire or incident name contains ``keyword``.

    Diagnostic only: used to spot event-id metadata drift, never to resolve
    the study area.
    """

    if not keyword:
        return BoundaryCollection(())
    return boundaries.filter_year(year).filter_contains(
        (FIRE_NAME_FIELD, INCIDENT_NAME_FIELD), keyword
    )


def list_fires_in_region(
    boundaries: BoundaryCollection,
    year: int,
    bbox: tuple[float, float, float, float],
    *,
    limit: int = 10,
) -> BoundaryCollection:
    return boundaries.filter_year(year).filter_bounds(bbox_geometry(bbox)).limit(limit)


def ignition_region(fallback_point: tuple[float, float], radius_m: float) -> BaseGeometry:
    lon, lat = fallback_point
    if radius_m <= 0:
        return Point(lon, lat)
    return disc(lon, lat, radius_m)
