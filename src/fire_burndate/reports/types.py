from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .determinism import file_size_bytes, sha256_file


class ArtifactKind(str, Enum):
    """Files written by an extraction run.

    Kept stable because downstream progression mapping picks files by kind.
    """

    BURNDATE_RASTER = "burndate_raster"
    PERIMETER = "perimeter"
    MONTHLY_PROGRESSION = "monthly_progression"
    SUMMARY = "summary"
    TEXT_REPORT = "text_report"


@dataclass(frozen=True)
class ExportArtifact:
    kind: ArtifactKind
    relpath: str
    sha256: str
    size_bytes: int
    content_type: str | None = None


def _content_type_for_path(path: Path) -> str | None:
    suffix = path.suffix.lower()
    if suffix in {".tif", ".tiff"}:
        return "image/tiff"
    if suffix == ".geojson":
        return "application/geo+json"
    if suffix == ".json":
        return "application/json"
    if suffix == ".csv":
        return "text/csv"
    if suffix == ".txt":
        return "text/plain"
    return None


def record_artifact(kind: ArtifactKind, path: Path, *, root: Path) -> ExportArtifact:
    return ExportArtifact(
        kind=kind,
        relpath=path.relative_to(root).as_posix(),
        sha256=sha256_file(path),
        size_bytes=file_size_bytes(path),
        content_type=_content_type_for_path(path),
    )
