"""Central error types used across the application."""

from __future__ import annotations


class GpxPhotoMapError(RuntimeError):
    """Base error for GPX photo map failures."""


class TrackParseError(GpxPhotoMapError):
    """Raised when a track document is malformed or lacks the mandatory track path."""


class ExtractionSkip(GpxPhotoMapError):
    """Raised internally when an image carries no usable GPS metadata."""


__all__ = [
    "GpxPhotoMapError",
    "TrackParseError",
    "ExtractionSkip",
]
