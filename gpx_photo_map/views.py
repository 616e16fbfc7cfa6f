"""Row projections for the waypoint and photo list views."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .models import ImageMarker, Waypoint

Row = Dict[str, Any]

WAYPOINT_COLUMNS = ["Time", "Name", "Latitude", "Longitude"]
IMAGE_COLUMNS = ["Name", "Latitude", "Longitude"]


def format_local_time(timestamp: Optional[str]) -> str:
    """Render an ISO 8601 UTC timestamp in the local timezone.

    Naive timestamps are taken as UTC. Missing or unparseable values render
    as an empty string.
    """

    if not timestamp:
        return ""
    text = timestamp.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def waypoint_rows(waypoints: Iterable[Waypoint]) -> List[Row]:
    return [
        {
            "Time": format_local_time(wpt.timestamp),
            "Name": wpt.name,
            "Latitude": wpt.position.latitude,
            "Longitude": wpt.position.longitude,
        }
        for wpt in waypoints
    ]


def image_rows(markers: Iterable[ImageMarker]) -> List[Row]:
    """Photo rows sorted by file name, whatever order ``markers`` arrive in."""

    return [
        {
            "Name": marker.name,
            "Latitude": marker.position.latitude,
            "Longitude": marker.position.longitude,
        }
        for marker in sorted(markers, key=lambda m: m.name)
    ]


__all__ = [
    "IMAGE_COLUMNS",
    "WAYPOINT_COLUMNS",
    "format_local_time",
    "image_rows",
    "waypoint_rows",
]
