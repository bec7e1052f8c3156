"""Deterministic exports and diagnostics for a burn-date extraction run.

Outputs are written so that identical inputs give byte-identical files:
canonical JSON (sorted keys, no whitespace), sorted artifact listings and
checksums for every exported file.
"""

from .exports import (
    burndate_raster_name,
    perimeter_name,
    write_burndate_geotiff,
    write_perimeter_geojson,
)
from .summary import build_summary, render_text_report, validate_summary
from .types import ArtifactKind, ExportArtifact

__all__ = [
    "ArtifactKind",
    "ExportArtifact",
    "build_summary",
    "burndate_raster_name",
    "perimeter_name",
    "render_text_report",
    "validate_summary",
    "write_burndate_geotiff",
    "write_perimeter_geojson",
]
