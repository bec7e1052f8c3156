"""Study-area resolution, temporal compositing and zonal statistics."""

from .compositing import BandImage, compose_annual, mosaic_latest
from .progression import MonthlyBurnedArea, build_progression
from .study_area import StudyArea, StudyAreaSource, resolve_study_area
from .zonal import Reducer, reduce_region

__all__ = [
    "BandImage",
    "MonthlyBurnedArea",
    "Reducer",
    "StudyArea",
    "StudyAreaSource",
    "build_progression",
    "compose_annual",
    "mosaic_latest",
    "reduce_region",
    "resolve_study_area",
]
