"""Global pytest fixtures & helpers.

Adds project root to path and provides GPX and photo factories shared by the
parser, extractor, ingestion and model tests.
"""
from __future__ import annotations

import io
import os
import sys
import threading
import time
from typing import Callable, Iterable, Optional, Sequence, Tuple

import piexif
import pytest
from PIL import Image

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from gpx_photo_map.models import GeoPoint, ImageMarker


# --- Factory helpers -------------------------------------------------
def make_gpx(
    points: Sequence[Tuple[float, float]] = ((1.0, 2.0), (3.0, 4.0)),
    waypoints: Iterable[str] = (),
    namespace: bool = True,
) -> str:
    """Build a single-track GPX document; ``waypoints`` are raw <wpt> snippets."""

    xmlns = ' xmlns="http://www.topografix.com/GPX/1/1"' if namespace else ""
    trkpts = "\n".join(
        f'      <trkpt lat="{lat}" lon="{lon}"/>' for lat, lon in points
    )
    wpts = "\n".join(f"  {snippet}" for snippet in waypoints)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<gpx version="1.1" creator="tests"{xmlns}>\n'
        f"{wpts}\n"
        "  <trk>\n"
        "    <name>Test track</name>\n"
        "    <trkseg>\n"
        f"{trkpts}\n"
        "    </trkseg>\n"
        "  </trk>\n"
        "</gpx>\n"
    )


def _rational_dms(degrees: int, minutes: int, seconds: int):
    return ((degrees, 1), (minutes, 1), (seconds, 1))


def make_jpeg(
    lat: Optional[Tuple[int, int, int]] = None,
    lon: Optional[Tuple[int, int, int]] = None,
    lat_ref: Optional[bytes] = None,
    lon_ref: Optional[bytes] = None,
) -> bytes:
    """Return JPEG bytes, geotagged when ``lat`` and ``lon`` are given."""

    img = Image.new("RGB", (8, 8), color=(200, 30, 30))
    buffer = io.BytesIO()
    if lat is None and lon is None:
        img.save(buffer, format="JPEG")
        return buffer.getvalue()
    gps = {}
    if lat is not None:
        gps[piexif.GPSIFD.GPSLatitude] = _rational_dms(*lat)
    if lon is not None:
        gps[piexif.GPSIFD.GPSLongitude] = _rational_dms(*lon)
    if lat_ref is not None:
        gps[piexif.GPSIFD.GPSLatitudeRef] = lat_ref
    if lon_ref is not None:
        gps[piexif.GPSIFD.GPSLongitudeRef] = lon_ref
    exif_bytes = piexif.dump({"0th": {}, "Exif": {}, "GPS": gps, "1st": {}, "thumbnail": None})
    img.save(buffer, format="JPEG", exif=exif_bytes)
    return buffer.getvalue()


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class GatedExtractor:
    """Fake extractor placing every image at a fixed spot.

    Files listed in ``gated`` block until :meth:`release` is called for them.
    """

    def __init__(self, gated: Iterable[str] = ()):
        self.gates = {name: threading.Event() for name in gated}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def release(self, name: Optional[str] = None) -> None:
        targets = [name] if name is not None else list(self.gates)
        for target in targets:
            self.gates[target].set()

    def __call__(self, data, name, mime_type=None, *, source_ref=None):
        with self._lock:
            self.calls.append(name)
        gate = self.gates.get(name)
        if gate is not None:
            assert gate.wait(5.0), f"gate for {name} never released"
        return ImageMarker(
            position=GeoPoint(latitude=10.0, longitude=-20.0),
            name=name,
            source_ref=source_ref,
        )


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def minimal_gpx() -> str:
    return make_gpx()


@pytest.fixture
def geotagged_jpeg() -> bytes:
    return make_jpeg(lat=(10, 0, 0), lon=(20, 0, 0), lat_ref=b"N", lon_ref=b"W")


@pytest.fixture
def plain_jpeg() -> bytes:
    return make_jpeg()


@pytest.fixture
def gpx_factory() -> Callable[..., str]:
    return make_gpx


@pytest.fixture
def jpeg_factory() -> Callable[..., bytes]:
    return make_jpeg


@pytest.fixture
def gated_extractor() -> Callable[..., GatedExtractor]:
    return GatedExtractor


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    return wait_for
