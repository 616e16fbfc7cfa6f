"""Extract EXIF GPS positions from photo bytes."""

from __future__ import annotations

import io
import logging
import math
from typing import Any, Dict, Optional, Sequence

from PIL import ExifTags, Image

from .config import DEFAULT_LATITUDE_REF, DEFAULT_LONGITUDE_REF, IMAGE_MIME_PREFIX
from .coordinates import to_decimal_degrees
from .errors import ExtractionSkip
from .models import GeoPoint, ImageMarker, SourceFile

LOGGER = logging.getLogger(__name__)

# EXIF pointer tag for the GPS IFD.
GPS_INFO_TAG = 0x8825


def is_image_mime(mime_type: Optional[str]) -> bool:
    return bool(mime_type) and mime_type.lower().startswith(IMAGE_MIME_PREFIX)


def read_gps_tags(data: bytes) -> Dict[str, Any]:
    """Return the GPS IFD of an image keyed by EXIF tag name.

    Raises:
        ExtractionSkip: If the bytes are not a readable image or carry no
            GPS block.
    """

    try:
        with Image.open(io.BytesIO(data)) as img:
            gps_ifd = dict(img.getexif().get_ifd(GPS_INFO_TAG))
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise ExtractionSkip(f"unreadable image metadata: {exc}") from exc
    if not gps_ifd:
        raise ExtractionSkip("no GPS metadata")
    return {ExifTags.GPSTAGS.get(key, key): value for key, value in gps_ifd.items()}


def _component_to_float(value: Any) -> float:
    if isinstance(value, tuple) and len(value) == 2:
        numerator, denominator = value
        if not denominator:
            raise ExtractionSkip("zero denominator in GPS rational")
        result = float(numerator) / float(denominator)
    else:
        try:
            result = float(value)
        except (TypeError, ValueError, ZeroDivisionError) as exc:
            raise ExtractionSkip(f"non-numeric GPS component {value!r}") from exc
    if not math.isfinite(result):
        raise ExtractionSkip(f"non-finite GPS component {value!r}")
    return result


def _dms_components(value: Any) -> Sequence[float]:
    if not isinstance(value, (tuple, list)) or len(value) != 3:
        raise ExtractionSkip(f"GPS coordinate is not a DMS triple: {value!r}")
    return [_component_to_float(part) for part in value]


def _normalise_ref(value: Any, default: str) -> str:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not isinstance(value, str):
        return default
    cleaned = value.strip("\x00 ").upper()
    return cleaned or default


def position_from_gps_tags(tags: Dict[str, Any]) -> GeoPoint:
    """Convert named GPS tags to a :class:`GeoPoint`.

    Missing hemisphere references default to ``N`` and ``W``.
    """

    lat = tags.get("GPSLatitude")
    lon = tags.get("GPSLongitude")
    if lat is None or lon is None:
        raise ExtractionSkip("GPS block lacks latitude or longitude")
    lat_ref = _normalise_ref(tags.get("GPSLatitudeRef"), DEFAULT_LATITUDE_REF)
    lon_ref = _normalise_ref(tags.get("GPSLongitudeRef"), DEFAULT_LONGITUDE_REF)
    return GeoPoint(
        latitude=to_decimal_degrees(_dms_components(lat), lat_ref),
        longitude=to_decimal_degrees(_dms_components(lon), lon_ref),
    )


def extract_geotag(
    data: bytes,
    name: str,
    mime_type: Optional[str] = None,
    *,
    source_ref: Optional[SourceFile] = None,
) -> Optional[ImageMarker]:
    """Return an :class:`ImageMarker` for a geotagged photo, else ``None``.

    Files with a known non-image MIME type, unreadable metadata, or no GPS
    position are skipped silently; nothing is raised to the caller.
    """

    if mime_type is not None and not is_image_mime(mime_type):
        LOGGER.debug("Skipping %s: MIME type %s is not an image", name, mime_type)
        return None
    try:
        position = position_from_gps_tags(read_gps_tags(data))
    except ExtractionSkip as exc:
        LOGGER.debug("Skipping %s: %s", name, exc)
        return None
    return ImageMarker(position=position, name=name, source_ref=source_ref)


__all__ = [
    "extract_geotag",
    "is_image_mime",
    "position_from_gps_tags",
    "read_gps_tags",
]
