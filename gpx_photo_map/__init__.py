"""GPX track and photo geotag map package."""

from .coordinates import to_decimal_degrees
from .errors import ExtractionSkip, GpxPhotoMapError, TrackParseError
from .geo_model import GeospatialModel, ModelChange
from .geotag import extract_geotag
from .gpx_parser import parse_track_document, read_track_file
from .ingestion import ImageIngestionCoordinator, IngestionBatch, scan_directory
from .main import main
from .models import (
    BoundingRegion,
    GeoPoint,
    ImageAsset,
    ImageMarker,
    LookupMiss,
    ModelSnapshot,
    SourceFile,
    Track,
    Waypoint,
)

__all__ = [
    "main",
    "to_decimal_degrees",
    "parse_track_document",
    "read_track_file",
    "extract_geotag",
    "scan_directory",
    "GeospatialModel",
    "ModelChange",
    "ImageIngestionCoordinator",
    "IngestionBatch",
    "BoundingRegion",
    "GeoPoint",
    "ImageAsset",
    "ImageMarker",
    "LookupMiss",
    "ModelSnapshot",
    "SourceFile",
    "Track",
    "Waypoint",
    "GpxPhotoMapError",
    "TrackParseError",
    "ExtractionSkip",
]
