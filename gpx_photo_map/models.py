"""Dataclasses describing tracks, waypoints, photos and derived map state."""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple, Union

LatLon = Tuple[float, float]
PathLike = Union[str, Path]


@dataclass(frozen=True, slots=True)
class GeoPoint:
    latitude: float
    longitude: float

    def as_tuple(self) -> LatLon:
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class Track:
    """One continuous path; point order is document order."""

    points: Tuple[GeoPoint, ...]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[GeoPoint]:
        return iter(self.points)

    def latlon_points(self) -> List[LatLon]:
        return [p.as_tuple() for p in self.points]


@dataclass(frozen=True, slots=True)
class Waypoint:
    position: GeoPoint
    name: str
    timestamp: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One entry of a directory selection.

    Bytes are read lazily through :meth:`read_bytes` so the read happens on
    the ingestion worker rather than on the caller's thread.
    """

    name: str
    mime_type: Optional[str] = None
    path: Optional[Path] = None
    data: Optional[bytes] = field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: PathLike) -> "SourceFile":
        file_path = Path(path)
        mime_type, _ = mimetypes.guess_type(file_path.name)
        return cls(name=file_path.name, mime_type=mime_type, path=file_path)

    @classmethod
    def from_bytes(
        cls, name: str, data: bytes, mime_type: Optional[str] = None
    ) -> "SourceFile":
        if mime_type is None:
            mime_type, _ = mimetypes.guess_type(name)
        return cls(name=name, mime_type=mime_type, data=data)

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ValueError(f"Source file {self.name!r} has neither data nor path")
        return self.path.read_bytes()


@dataclass(frozen=True, slots=True)
class ImageMarker:
    position: GeoPoint
    name: str
    # Opaque handle back to the originating file.
    source_ref: Optional[SourceFile] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class ImageAsset:
    """Raw bytes of a selected file, resolvable by file name."""

    name: str
    data: bytes = field(repr=False)
    mime_type: Optional[str] = None

    @property
    def data_url(self) -> str:
        mime = self.mime_type or "application/octet-stream"
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{mime};base64,{encoded}"


@dataclass(frozen=True, slots=True)
class LookupMiss:
    """Typed "not found" outcome of an image selection."""

    name: str
    reason: str = "missing"


@dataclass(frozen=True, slots=True)
class BoundingRegion:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @classmethod
    def from_points(cls, points: Iterable[GeoPoint]) -> "BoundingRegion":
        """Return the min/max lat/lon envelope of ``points``.

        Raises:
            ValueError: If ``points`` is empty.
        """

        pts = list(points)
        if not pts:
            raise ValueError("Cannot compute a bounding region without points")
        lats = [p.latitude for p in pts]
        lons = [p.longitude for p in pts]
        return cls(
            min_lat=min(lats),
            max_lat=max(lats),
            min_lon=min(lons),
            max_lon=max(lons),
        )

    def as_bounds(self) -> List[List[float]]:
        """South-west / north-east corner pair as taken by Leaflet's fitBounds."""

        return [[self.min_lat, self.min_lon], [self.max_lat, self.max_lon]]

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.min_lat <= point.latitude <= self.max_lat
            and self.min_lon <= point.longitude <= self.max_lon
        )


HighlightTarget = Union[Waypoint, ImageMarker]


@dataclass(frozen=True, slots=True)
class ModelSnapshot:
    """Consistent read-only view of the model handed to renderers."""

    track: Optional[Track]
    bounds: Optional[BoundingRegion]
    waypoints: Tuple[Waypoint, ...]
    image_markers: Tuple[ImageMarker, ...]
    image_assets: Mapping[str, ImageAsset] = field(default_factory=dict)
    highlighted: Optional[HighlightTarget] = None
    selected_image: Optional[ImageAsset] = None
    bounds_revision: int = 0

    def asset_for(self, name: str) -> Optional[ImageAsset]:
        return self.image_assets.get(name)
