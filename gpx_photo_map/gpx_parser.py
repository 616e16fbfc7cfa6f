"""Parse GPX track documents into a track and its named waypoints.

Only the first segment of the first ``<trk>`` is read; the map shows one
active track at a time, so further tracks or segments are ignored rather
than merged. Namespaced (GPX 1.0 / 1.1) and bare documents are both
accepted because elements are matched by local name.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union
from xml.etree.ElementTree import Element

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as ET

from .config import DEFAULT_WAYPOINT_NAME
from .errors import TrackParseError
from .models import GeoPoint, Track, Waypoint

PathLike = Union[str, Path]

LOGGER = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _children(element: Element, name: str) -> Iterator[Element]:
    for child in element:
        if isinstance(child.tag, str) and _local_name(child.tag) == name:
            yield child


def _first_child(element: Element, name: str) -> Optional[Element]:
    return next(_children(element, name), None)


def _child_text(element: Element, name: str) -> Optional[str]:
    child = _first_child(element, name)
    if child is None or child.text is None:
        return None
    return child.text


def _parse_point(element: Element, kind: str, index: int) -> GeoPoint:
    lat = element.get("lat")
    lon = element.get("lon")
    if lat is None or lon is None:
        raise TrackParseError(f"{kind} #{index} is missing lat/lon attributes")
    try:
        latitude, longitude = float(lat), float(lon)
    except ValueError as exc:
        raise TrackParseError(
            f"{kind} #{index} has non-numeric coordinates lat={lat!r} lon={lon!r}"
        ) from exc
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise TrackParseError(
            f"{kind} #{index} has non-finite coordinates lat={lat!r} lon={lon!r}"
        )
    return GeoPoint(latitude=latitude, longitude=longitude)


def _parse_waypoint(element: Element, index: int) -> Waypoint:
    position = _parse_point(element, "wpt", index)
    name = (_child_text(element, "name") or "").strip() or DEFAULT_WAYPOINT_NAME
    return Waypoint(
        position=position,
        name=name,
        timestamp=_child_text(element, "time"),
    )


def parse_track_document(text: str) -> Tuple[Track, List[Waypoint]]:
    """Parse GPX text into ``(Track, waypoints)``.

    Args:
        text: Full GPX document.

    Returns:
        The trackpoints of ``trk[0]/trkseg[0]`` in document order and every
        top-level ``<wpt>``.

    Raises:
        TrackParseError: If the XML is malformed or the mandatory
            ``gpx/trk/trkseg/trkpt`` path is missing or empty.
    """

    try:
        root = ET.fromstring(text)
    except (ET.ParseError, DefusedXmlException) as exc:
        raise TrackParseError(f"Malformed track document: {exc}") from exc

    if _local_name(root.tag) != "gpx":
        raise TrackParseError(
            f"Expected <gpx> root element, found <{_local_name(root.tag)}>"
        )
    trk = _first_child(root, "trk")
    if trk is None:
        raise TrackParseError("Track document has no <trk> element")
    trkseg = _first_child(trk, "trkseg")
    if trkseg is None:
        raise TrackParseError("Track has no <trkseg> element")

    points = tuple(
        _parse_point(el, "trkpt", idx)
        for idx, el in enumerate(_children(trkseg, "trkpt"))
    )
    if not points:
        raise TrackParseError("Track segment contains no <trkpt> elements")

    waypoints = [
        _parse_waypoint(el, idx) for idx, el in enumerate(_children(root, "wpt"))
    ]
    LOGGER.debug(
        "Parsed track document: %d trackpoints, %d waypoints",
        len(points),
        len(waypoints),
    )
    return Track(points=points), waypoints


def read_track_file(path: PathLike) -> Tuple[Track, List[Waypoint]]:
    """Read a UTF-8 GPX file and parse it with :func:`parse_track_document`."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise TrackParseError(f"Track document {path} is not valid UTF-8") from exc
    return parse_track_document(text)


__all__ = ["parse_track_document", "read_track_file"]
