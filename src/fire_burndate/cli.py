from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from jsonschema.exceptions import ValidationError

from fire_burndate.config import FireEvent, load_extraction_config
from fire_burndate.errors import ConfigurationError, ResourceLimitExceeded
from fire_burndate.pipeline import run_burn_date_extraction


BOUNDARIES_ENV = "FIRE_BURNDATE_BOUNDARIES"
FRAME_DIR_ENV = "FIRE_BURNDATE_FRAME_DIR"

EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_RESOURCE_LIMIT = 3


def _check_bbox(bbox: list[float] | None) -> tuple[float, float, float, float] | None:
    if bbox is None:
        return None
    minx, miny, maxx, maxy = bbox
    if minx >= maxx or miny >= maxy:
        raise ConfigurationError(f"--region-bbox is empty or inverted: {minx} {miny} {maxx} {maxy}")
    return minx, miny, maxx, maxy


def _resolve_path(explicit: str | None, env_name: str, label: str) -> Path:
    if explicit:
        return Path(explicit)
    env = os.environ.get(env_name, "").strip()
    if not env:
        raise ConfigurationError(f"{label} is required (pass it explicitly or set {env_name})")
    return Path(env)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m fire_burndate.cli",
        description=(
            "Extract an annual burn-date raster, fire perimeter and burned-area statistics "
            "for a single fire event."
        ),
    )

    p.add_argument("--event-id", required=True, help="Boundary Event_ID of the fire")
    p.add_argument("--event-name", required=True, help="Display name, e.g. East_Troublesome_Fire")
    p.add_argument("--year", required=True, type=int, help="Fire year")
    p.add_argument("--ignition-lon", required=True, type=float, help="Ignition point longitude")
    p.add_argument("--ignition-lat", required=True, type=float, help="Ignition point latitude")

    p.add_argument(
        "--boundaries",
        help=f"Boundary GeoJSON FeatureCollection (defaults to {BOUNDARIES_ENV}).",
    )
    p.add_argument(
        "--frames-dir",
        help=f"Directory of dated burn-date GeoTIFF frames (defaults to {FRAME_DIR_ENV}).",
    )
    p.add_argument("--output-dir", required=True, help="Directory for exports and reports.")

    p.add_argument("--buffer-m", type=float, help="Boundary buffer distance in metres (default 3000).")
    p.add_argument(
        "--fallback-radius-m",
        type=float,
        help="Radius of the ignition-point disc used when no boundary matches (default 15000).",
    )
    p.add_argument("--scale-m", type=float, help="Export and aggregation scale in metres (default 500).")
    p.add_argument("--max-pixels", type=int, help="Pixel budget for each aggregation (default 1e9).")
    p.add_argument("--band", help="Burn-date band name (default BurnDate).")
    p.add_argument(
        "--band-name",
        action="append",
        default=[],
        help="Band name for frames without band descriptions (repeatable, in band order).",
    )
    p.add_argument("--name-keyword", help="Keyword for the diagnostic fire-name search.")
    p.add_argument(
        "--region-bbox",
        nargs=4,
        type=float,
        metavar=("MINLON", "MINLAT", "MAXLON", "MAXLAT"),
        help="Lon/lat bounds for the diagnostic listing of same-year fires.",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level.",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("fire_burndate.cli")

    try:
        boundaries_path = _resolve_path(args.boundaries, BOUNDARIES_ENV, "--boundaries")
        frame_dir = _resolve_path(args.frames_dir, FRAME_DIR_ENV, "--frames-dir")
        config = load_extraction_config(
            event=FireEvent(
                event_id=args.event_id,
                name=args.event_name,
                year=args.year,
                ignition_point=(args.ignition_lon, args.ignition_lat),
            ),
            buffer_m=args.buffer_m,
            fallback_radius_m=args.fallback_radius_m,
            export_scale_m=args.scale_m,
            max_pixels=args.max_pixels,
            band=args.band,
            name_keyword=args.name_keyword,
            diagnostic_bbox=_check_bbox(args.region_bbox),
        )
        result = run_burn_date_extraction(
            config=config,
            boundaries_path=boundaries_path,
            frame_dir=frame_dir,
            output_dir=Path(args.output_dir),
            band_names=args.band_name or None,
        )
    except ResourceLimitExceeded as exc:
        logger.error("%s", exc)
        return EXIT_RESOURCE_LIMIT
    except (ConfigurationError, FileNotFoundError, ValidationError) as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG

    print(result.report_path.read_text(encoding="utf-8"), end="")
    print(f"Wrote: {result.raster_path}")
    print(f"Wrote: {result.perimeter_path}")
    print(f"Wrote: {result.progression_csv_path}")
    print(f"Wrote: {result.summary_path}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
