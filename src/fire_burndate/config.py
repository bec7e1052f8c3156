from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import date

from .errors import ConfigurationError


ENV_PREFIX = "FIRE_BURNDATE_"

DEFAULT_BUFFER_M = 3000.0
DEFAULT_FALLBACK_RADIUS_M = 15000.0
DEFAULT_EXPORT_SCALE_M = 500.0
DEFAULT_EXPORT_CRS = "EPSG:4326"
DEFAULT_MAX_PIXELS = 1_000_000_000
DEFAULT_BAND = "BurnDate"


@dataclass(frozen=True)
class FireEvent:
    event_id: str
    name: str
    year: int
    ignition_point: tuple[float, float]  # (lon, lat)


@dataclass(frozen=True)
class ExtractionConfig:
    event: FireEvent
    buffer_m: float = DEFAULT_BUFFER_M
    fallback_radius_m: float = DEFAULT_FALLBACK_RADIUS_M
    export_scale_m: float = DEFAULT_EXPORT_SCALE_M
    export_crs: str = DEFAULT_EXPORT_CRS
    max_pixels: int = DEFAULT_MAX_PIXELS
    band: str = DEFAULT_BAND
    season_start: date | None = None
    season_end: date | None = None  # exclusive
    name_keyword: str | None = None
    diagnostic_bbox: tuple[float, float, float, float] | None = None
    sample_radius_m: float = 1000.0
    sample_size: int = 10

    @property
    def season(self) -> tuple[date, date]:
        start = self.season_start or date(self.event.year, 1, 1)
        end = self.season_end or date(self.event.year, 12, 31)
        return start, end

    @property
    def keyword(self) -> str:
        if self.name_keyword:
            return self.name_keyword
        return derive_name_keyword(self.event.name)


def derive_name_keyword(event_name: str) -> str:
    """Longest word of the event name, upper-cased (``East_Troublesome_Fire`` -> ``TROUBLESOME``)."""

    words = [w for w in re.split(r"[^A-Za-z0-9]+", event_name) if w]
    words = [w for w in words if w.lower() != "fire"] or words
    if not words:
        return ""
    return max(words, key=len).upper()


def _env_float(name: str) -> float | None:
    value = os.environ.get(ENV_PREFIX + name, "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {value!r}") from exc


def _env_str(name: str) -> str | None:
    value = os.environ.get(ENV_PREFIX + name, "").strip()
    return value or None


def load_extraction_config(
    *,
    event: FireEvent,
    buffer_m: float | None = None,
    fallback_radius_m: float | None = None,
    export_scale_m: float | None = None,
    max_pixels: int | None = None,
    band: str | None = None,
    name_keyword: str | None = None,
    diagnostic_bbox: tuple[float, float, float, float] | None = None,
) -> ExtractionConfig:
    """Build a config from explicit values, then FIRE_BURNDATE_* env vars, then defaults."""

    def _pick(explicit: float | None, env_name: str, default: float) -> float:
        if explicit is not None:
            return float(explicit)
        env = _env_float(env_name)
        return env if env is not None else default

    resolved_buffer = _pick(buffer_m, "BUFFER_M", DEFAULT_BUFFER_M)
    resolved_radius = _pick(fallback_radius_m, "FALLBACK_RADIUS_M", DEFAULT_FALLBACK_RADIUS_M)
    resolved_scale = _pick(export_scale_m, "EXPORT_SCALE_M", DEFAULT_EXPORT_SCALE_M)
    resolved_pixels = int(_pick(max_pixels, "MAX_PIXELS", DEFAULT_MAX_PIXELS))

    if resolved_buffer < 0:
        raise ConfigurationError("buffer_m must be >= 0")
    if resolved_radius <= 0:
        raise ConfigurationError("fallback_radius_m must be > 0")
    if resolved_scale <= 0:
        raise ConfigurationError("export_scale_m must be > 0")
    if resolved_pixels <= 0:
        raise ConfigurationError("max_pixels must be > 0")

    return ExtractionConfig(
        event=event,
        buffer_m=resolved_buffer,
        fallback_radius_m=resolved_radius,
        export_scale_m=resolved_scale,
        max_pixels=resolved_pixels,
        band=band or _env_str("BAND") or DEFAULT_BAND,
        name_keyword=name_keyword,
        diagnostic_bbox=diagnostic_bbox,
    )
