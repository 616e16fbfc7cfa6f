"""Concurrent ingestion of a photo directory selection.

Each file becomes one task on a thread pool: read its bytes, then, for
image-typed files, extract a geotag. A single collector thread consumes the
futures as they complete and is the only caller of the delivery callbacks,
so the model sees one writer per batch. Every delivery carries the batch
generation so the model can drop results from a superseded selection.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
import logging
from pathlib import Path
import threading
from typing import Callable, Dict, List, Optional, Sequence, Union

from .config import INGEST_MAX_WORKERS
from .geotag import extract_geotag, is_image_mime
from .models import ImageAsset, ImageMarker, SourceFile

PathLike = Union[str, Path]
Extractor = Callable[..., Optional[ImageMarker]]
MarkerSink = Callable[[int, ImageMarker], None]
AssetSink = Callable[[int, Dict[str, ImageAsset]], None]


@dataclass(slots=True)
class FileOutcome:
    name: str
    asset: ImageAsset
    marker: Optional[ImageMarker] = None


class IngestionBatch:
    """Handle on one in-flight directory selection."""

    def __init__(self, generation: int, total: int):
        self.generation = generation
        self.total = total
        self.markers = 0
        self.skipped = 0
        self.failed = 0
        self._done = threading.Event()

    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every file has resolved; returns ``False`` on timeout."""

        return self._done.wait(timeout)

    def _finish(self) -> None:
        self._done.set()

    def __repr__(self) -> str:
        return (
            f"IngestionBatch(generation={self.generation}, total={self.total}, "
            f"markers={self.markers}, skipped={self.skipped}, "
            f"failed={self.failed}, done={self.done()})"
        )


def scan_directory(path: PathLike) -> List[SourceFile]:
    """Return every regular file below ``path`` as a :class:`SourceFile`."""

    root = Path(path)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")
    return [SourceFile.from_path(p) for p in sorted(root.rglob("*")) if p.is_file()]


class ImageIngestionCoordinator:
    def __init__(
        self,
        max_workers: int | None = None,
        extractor: Extractor = extract_geotag,
    ):
        self.max_workers = (
            INGEST_MAX_WORKERS if max_workers is None else max_workers
        )
        if self.max_workers <= 0:
            raise ValueError("max_workers must be positive")
        self._extractor = extractor
        self._log = logging.getLogger(self.__class__.__name__)

    def submit(
        self,
        files: Sequence[SourceFile],
        generation: int,
        on_marker: MarkerSink,
        on_assets: AssetSink,
    ) -> IngestionBatch:
        """Start ingesting ``files`` and return immediately.

        ``on_marker`` is called once per geotagged file as it resolves.
        ``on_assets`` is called once with the complete name -> asset mapping
        after every file has resolved. Both run on the batch collector thread.
        """

        ordered = sorted(files, key=lambda f: f.name)
        batch = IngestionBatch(generation, len(ordered))
        self._log.info(
            "Ingesting %d files (generation %d, max_workers=%d)",
            len(ordered),
            generation,
            self.max_workers,
        )
        if not ordered:
            self._deliver_assets(on_assets, batch, {})
            batch._finish()
            return batch

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(ordered)),
            thread_name_prefix=f"ingest-{generation}",
        )
        future_map = {
            executor.submit(self._ingest_file, source): source for source in ordered
        }
        # Queued tasks still run; this only stops new submissions.
        executor.shutdown(wait=False)
        collector = threading.Thread(
            target=self._collect,
            args=(batch, future_map, on_marker, on_assets),
            name=f"ingest-collector-{generation}",
            daemon=True,
        )
        collector.start()
        return batch

    def _ingest_file(self, source: SourceFile) -> FileOutcome:
        data = source.read_bytes()
        asset = ImageAsset(name=source.name, data=data, mime_type=source.mime_type)
        if not is_image_mime(source.mime_type):
            return FileOutcome(name=source.name, asset=asset)
        try:
            marker = self._extractor(
                data, source.name, source.mime_type, source_ref=source
            )
        except Exception as exc:
            self._log.warning(
                "Geotag extraction failed for %s: %s", source.name, exc, exc_info=True
            )
            marker = None
        return FileOutcome(name=source.name, asset=asset, marker=marker)

    def _collect(
        self,
        batch: IngestionBatch,
        future_map: Dict[Future[FileOutcome], SourceFile],
        on_marker: MarkerSink,
        on_assets: AssetSink,
    ) -> None:
        outcomes: Dict[int, FileOutcome] = {}
        try:
            for future in as_completed(future_map):
                source = future_map[future]
                try:
                    outcome = future.result()
                except Exception as exc:
                    batch.failed += 1
                    self._log.warning(
                        "Failed to read %s: %s", source.name, exc, exc_info=True
                    )
                    continue
                outcomes[id(source)] = outcome
                if outcome.marker is None:
                    batch.skipped += 1
                    continue
                batch.markers += 1
                try:
                    on_marker(batch.generation, outcome.marker)
                except Exception:
                    self._log.warning(
                        "Marker delivery failed for %s", source.name, exc_info=True
                    )

            # Sorted submission order decides which duplicate name wins.
            assets: Dict[str, ImageAsset] = {}
            for source in future_map.values():
                outcome = outcomes.get(id(source))
                if outcome is not None:
                    assets.setdefault(outcome.name, outcome.asset)
            self._deliver_assets(on_assets, batch, assets)
        finally:
            batch._finish()
        self._log.info(
            "Ingestion generation %d finished: %d markers, %d without geotag, %d failed",
            batch.generation,
            batch.markers,
            batch.skipped,
            batch.failed,
        )

    def _deliver_assets(
        self,
        on_assets: AssetSink,
        batch: IngestionBatch,
        assets: Dict[str, ImageAsset],
    ) -> None:
        try:
            on_assets(batch.generation, assets)
        except Exception:
            self._log.warning(
                "Asset delivery failed for generation %d",
                batch.generation,
                exc_info=True,
            )


__all__ = [
    "FileOutcome",
    "ImageIngestionCoordinator",
    "IngestionBatch",
    "scan_directory",
]
