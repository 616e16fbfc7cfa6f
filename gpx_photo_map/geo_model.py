"""Authoritative in-memory state observed by the map and list views.

The model owns the loaded track, its waypoints and bounding region, the
photo markers and assets of the current directory selection, and the
transient highlight/selection fields. Every mutation goes through one
re-entrant lock; listeners are notified after the lock is released.

Directory loads are tagged with a generation number. Deliveries from an
ingestion batch whose generation is no longer current are dropped, so a
slow straggler from an earlier selection never leaks into a newer one.
"""

from __future__ import annotations

import bisect
from enum import Enum
import logging
from pathlib import Path
import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .gpx_parser import parse_track_document, read_track_file
from .ingestion import ImageIngestionCoordinator, IngestionBatch
from .models import (
    BoundingRegion,
    HighlightTarget,
    ImageAsset,
    ImageMarker,
    LookupMiss,
    ModelSnapshot,
    SourceFile,
    Track,
    Waypoint,
)

PathLike = Union[str, Path]


class ModelChange(Enum):
    TRACK = "track"
    IMAGES = "images"
    ASSETS = "assets"
    HIGHLIGHT = "highlight"
    SELECTION = "selection"


Listener = Callable[[ModelChange, "GeospatialModel"], None]


def _marker_sort_key(marker: ImageMarker) -> str:
    return marker.name


class GeospatialModel:
    def __init__(self, coordinator: ImageIngestionCoordinator | None = None):
        self._coordinator = coordinator or ImageIngestionCoordinator()
        self._log = logging.getLogger(self.__class__.__name__)
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

        self._track: Optional[Track] = None
        self._waypoints: Tuple[Waypoint, ...] = ()
        self._bounds: Optional[BoundingRegion] = None
        self._bounds_revision = 0

        self._image_generation = 0
        self._image_markers: List[ImageMarker] = []
        self._image_assets: Dict[str, ImageAsset] = {}
        self._assets_ready = False

        self._highlighted: Optional[HighlightTarget] = None
        self._selected_image: Optional[ImageAsset] = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that removes it again."""

        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, change: ModelChange) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(change, self)
            except Exception:
                self._log.warning(
                    "Listener failed for %s change", change.value, exc_info=True
                )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def track(self) -> Optional[Track]:
        with self._lock:
            return self._track

    @property
    def waypoints(self) -> Tuple[Waypoint, ...]:
        with self._lock:
            return self._waypoints

    @property
    def bounds(self) -> Optional[BoundingRegion]:
        with self._lock:
            return self._bounds

    @property
    def bounds_revision(self) -> int:
        """Incremented every time a track installs a new bounding region."""

        with self._lock:
            return self._bounds_revision

    @property
    def image_markers(self) -> Tuple[ImageMarker, ...]:
        """Photo markers in display order (sorted by file name)."""

        with self._lock:
            return tuple(self._image_markers)

    @property
    def images_ready(self) -> bool:
        with self._lock:
            return self._assets_ready

    @property
    def image_generation(self) -> int:
        with self._lock:
            return self._image_generation

    @property
    def highlighted(self) -> Optional[HighlightTarget]:
        with self._lock:
            return self._highlighted

    @property
    def selected_image(self) -> Optional[ImageAsset]:
        with self._lock:
            return self._selected_image

    def snapshot(self) -> ModelSnapshot:
        with self._lock:
            return ModelSnapshot(
                track=self._track,
                bounds=self._bounds,
                waypoints=self._waypoints,
                image_markers=tuple(self._image_markers),
                image_assets=dict(self._image_assets),
                highlighted=self._highlighted,
                selected_image=self._selected_image,
                bounds_revision=self._bounds_revision,
            )

    # ------------------------------------------------------------------
    # Track documents
    # ------------------------------------------------------------------
    def load_track(self, doc: str) -> None:
        """Parse GPX text and replace the track, waypoints and bounds.

        Raises:
            TrackParseError: The document is malformed; state is unchanged.
        """

        track, waypoints = parse_track_document(doc)
        self._install_track(track, waypoints)

    def load_track_file(self, path: PathLike) -> None:
        track, waypoints = read_track_file(path)
        self._install_track(track, waypoints)

    def _install_track(self, track: Track, waypoints: Sequence[Waypoint]) -> None:
        bounds = BoundingRegion.from_points(track.points)
        with self._lock:
            self._track = track
            self._waypoints = tuple(waypoints)
            self._bounds = bounds
            self._bounds_revision += 1
        self._log.info(
            "Loaded track with %d points and %d waypoints", len(track), len(waypoints)
        )
        self._notify(ModelChange.TRACK)

    # ------------------------------------------------------------------
    # Photo directories
    # ------------------------------------------------------------------
    def load_image_directory(self, files: Sequence[SourceFile]) -> IngestionBatch:
        """Replace markers and assets with those of ``files``.

        Returns immediately; markers arrive as files resolve and assets once
        the whole selection has resolved. Any batch still in flight is
        superseded.
        """

        with self._lock:
            self._image_generation += 1
            generation = self._image_generation
            self._image_markers = []
            self._image_assets = {}
            self._assets_ready = False
        self._notify(ModelChange.IMAGES)
        return self._coordinator.submit(
            files,
            generation,
            on_marker=self._append_marker,
            on_assets=self._install_assets,
        )

    def _append_marker(self, generation: int, marker: ImageMarker) -> None:
        with self._lock:
            if generation != self._image_generation:
                self._log.debug(
                    "Dropping marker %s from stale generation %d (current %d)",
                    marker.name,
                    generation,
                    self._image_generation,
                )
                return
            bisect.insort(self._image_markers, marker, key=_marker_sort_key)
        self._notify(ModelChange.IMAGES)

    def _install_assets(self, generation: int, assets: Dict[str, ImageAsset]) -> None:
        with self._lock:
            if generation != self._image_generation:
                self._log.debug(
                    "Dropping %d assets from stale generation %d (current %d)",
                    len(assets),
                    generation,
                    self._image_generation,
                )
                return
            self._image_assets = dict(assets)
            self._assets_ready = True
        self._notify(ModelChange.ASSETS)

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------
    def highlight(self, entity: HighlightTarget) -> None:
        """Make ``entity`` the emphasised waypoint or photo marker (last wins)."""

        if not isinstance(entity, (Waypoint, ImageMarker)):
            raise TypeError(
                f"Only waypoints and image markers can be highlighted, got {type(entity).__name__}"
            )
        with self._lock:
            self._highlighted = entity
        self._notify(ModelChange.HIGHLIGHT)

    def select_image(self, name: str) -> Union[ImageAsset, LookupMiss]:
        """Resolve ``name`` to its asset and make it the selected image.

        A miss clears the selection and returns :class:`LookupMiss` with
        reason ``"pending"`` while the directory is still loading, otherwise
        ``"missing"``.
        """

        with self._lock:
            if not self._assets_ready:
                result: Union[ImageAsset, LookupMiss] = LookupMiss(name, "pending")
            else:
                asset = self._image_assets.get(name)
                result = asset if asset is not None else LookupMiss(name, "missing")
            self._selected_image = result if isinstance(result, ImageAsset) else None
        if isinstance(result, LookupMiss):
            self._log.debug("No image asset for %s (%s)", name, result.reason)
        self._notify(ModelChange.SELECTION)
        return result

    def activate(self, entity: HighlightTarget) -> Union[ImageAsset, LookupMiss, None]:
        """Row or pin click: highlight, and select the photo for image markers."""

        self.highlight(entity)
        if isinstance(entity, ImageMarker):
            return self.select_image(entity.name)
        return None


__all__ = ["GeospatialModel", "ModelChange"]
