"""Command line entry point: load a GPX track and a photo folder, write a map.

Usage:
    python -m gpx_photo_map --gpx ride.gpx --images photos/ --output ride.html
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import OUTPUT_HTML
from .errors import TrackParseError
from .geo_model import GeospatialModel
from .ingestion import scan_directory
from .models import HighlightTarget, ImageAsset
from .views import image_rows, waypoint_rows
from .visualization import save_map


def _setup_logging(level: str = "INFO") -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, level),
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Plot a GPX track, its waypoints and geotagged photos on a map"
    )
    parser.add_argument("--gpx", type=Path, help="GPX track document to load")
    parser.add_argument(
        "--images", type=Path, help="Folder whose photos are placed on the map"
    )
    parser.add_argument(
        "--highlight",
        help="Waypoint or photo name to emphasise (photos are also selected)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path(OUTPUT_HTML),
        help=f"Output HTML path (default: {OUTPUT_HTML})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Python logging level",
    )
    return parser


def find_entity(model: GeospatialModel, name: str) -> Optional[HighlightTarget]:
    """Return the first waypoint, then photo marker, called ``name``."""

    for wpt in model.waypoints:
        if wpt.name == name:
            return wpt
    for marker in model.image_markers:
        if marker.name == name:
            return marker
    return None


def _log_rows(model: GeospatialModel) -> None:
    for row in waypoint_rows(model.waypoints):
        logging.info(
            "Waypoint %s | %s | %.6f, %.6f",
            row["Time"] or "-",
            row["Name"],
            row["Latitude"],
            row["Longitude"],
        )
    for row in image_rows(model.image_markers):
        logging.info(
            "Photo %s | %.6f, %.6f", row["Name"], row["Latitude"], row["Longitude"]
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.log_level)

    if args.gpx is None and args.images is None:
        parser.error("at least one of --gpx or --images is required")

    model = GeospatialModel()

    if args.gpx is not None:
        try:
            model.load_track_file(args.gpx)
        except (TrackParseError, OSError) as exc:
            logging.error("Failed to load track document '%s': %s", args.gpx, exc)
            return 1

    if args.images is not None:
        try:
            files = scan_directory(args.images)
        except OSError as exc:
            logging.error("Failed to read image folder '%s': %s", args.images, exc)
            return 1
        batch = model.load_image_directory(files)
        batch.wait()
        logging.info(
            "Placed %d of %d files on the map (%d failed)",
            batch.markers,
            batch.total,
            batch.failed,
        )

    if args.highlight:
        entity = find_entity(model, args.highlight)
        if entity is None:
            logging.warning("Nothing named '%s' to highlight", args.highlight)
        else:
            result = model.activate(entity)
            if isinstance(result, ImageAsset):
                logging.info("Selected image %s", result.name)

    _log_rows(model)
    save_map(model.snapshot(), args.output)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
