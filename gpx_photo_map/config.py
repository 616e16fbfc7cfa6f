"""Central configuration for the GPX photo map tool.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Overrides are read from environment variables
(optionally via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_str(key: str, default: str) -> str:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip()


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Track documents
# ---------------------------------------------------------------------------
# Name given to waypoints whose <name> child is missing or blank.
DEFAULT_WAYPOINT_NAME = "Waypoint"


# ---------------------------------------------------------------------------
# Image geotags
# ---------------------------------------------------------------------------
# Hemisphere references assumed when the EXIF GPS block omits them.
DEFAULT_LATITUDE_REF = "N"
DEFAULT_LONGITUDE_REF = "W"

# Files whose MIME type does not start with this prefix never get a marker.
IMAGE_MIME_PREFIX = "image/"


# ---------------------------------------------------------------------------
# Performance tuning
# ---------------------------------------------------------------------------
# Threads used to read and extract files of one directory selection.
INGEST_MAX_WORKERS = max(1, _env_int("GPX_PHOTO_MAP_MAX_WORKERS", 4))


# ---------------------------------------------------------------------------
# Map presentation
# ---------------------------------------------------------------------------
MAP_INITIAL_CENTER = (0.0, 0.0)
MAP_INITIAL_ZOOM = 2

TRACK_COLOR = "blue"
WAYPOINT_COLOR = "green"
IMAGE_MARKER_COLOR = "red"
HIGHLIGHT_COLOR = "red"
HIGHLIGHT_RADIUS = 10

# Width (pixels) of the photo preview embedded in image marker popups.
POPUP_IMAGE_WIDTH = 240

# Overlay showing the currently selected photo.
SELECTED_PANEL_ID = "selected-image"
SELECTED_PANEL_WIDTH = 320

# Default HTML output written by the command line entry point.
OUTPUT_HTML = _env_str("GPX_PHOTO_MAP_OUTPUT", "gpx_photo_map.html")
