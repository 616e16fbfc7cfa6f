"""Tests for the concurrent photo directory ingestion coordinator."""

from __future__ import annotations

import importlib
import logging
import threading
from pathlib import Path
from typing import Dict, List

import pytest

import gpx_photo_map.config as config_module
from gpx_photo_map.ingestion import ImageIngestionCoordinator, scan_directory
from gpx_photo_map.models import ImageAsset, ImageMarker, SourceFile


class Sink:
    def __init__(self) -> None:
        self.markers: List[ImageMarker] = []
        self.assets: Dict[str, ImageAsset] | None = None
        self.generations: set[int] = set()
        self._lock = threading.Lock()

    def on_marker(self, generation: int, marker: ImageMarker) -> None:
        with self._lock:
            self.generations.add(generation)
            self.markers.append(marker)

    def on_assets(self, generation: int, assets: Dict[str, ImageAsset]) -> None:
        self.generations.add(generation)
        self.assets = assets


def test_markers_and_assets_are_delivered(gated_extractor) -> None:
    extractor = gated_extractor()
    coordinator = ImageIngestionCoordinator(max_workers=2, extractor=extractor)
    sink = Sink()
    files = [
        SourceFile.from_bytes("b.jpg", b"bbb"),
        SourceFile.from_bytes("a.jpg", b"aaa"),
        SourceFile.from_bytes("notes.txt", b"hello"),
    ]

    batch = coordinator.submit(files, 7, sink.on_marker, sink.on_assets)

    assert batch.wait(5.0)
    assert batch.done()
    assert sorted(m.name for m in sink.markers) == ["a.jpg", "b.jpg"]
    assert sink.assets is not None
    assert set(sink.assets) == {"a.jpg", "b.jpg", "notes.txt"}
    assert sink.assets["notes.txt"].data == b"hello"
    assert sink.generations == {7}
    assert (batch.total, batch.markers, batch.skipped, batch.failed) == (3, 2, 1, 0)
    # Non-image files never reach the extractor.
    assert sorted(extractor.calls) == ["a.jpg", "b.jpg"]


def test_files_are_submitted_in_name_order(gated_extractor) -> None:
    extractor = gated_extractor()
    coordinator = ImageIngestionCoordinator(max_workers=1, extractor=extractor)
    sink = Sink()
    names = ["c.jpg", "a.jpg", "b.jpg"]

    batch = coordinator.submit(
        [SourceFile.from_bytes(n, b"x") for n in names], 1, sink.on_marker, sink.on_assets
    )

    assert batch.wait(5.0)
    assert extractor.calls == ["a.jpg", "b.jpg", "c.jpg"]


def test_unreadable_file_does_not_abort_siblings(
    tmp_path: Path, gated_extractor, caplog: pytest.LogCaptureFixture
) -> None:
    coordinator = ImageIngestionCoordinator(max_workers=2, extractor=gated_extractor())
    sink = Sink()
    files = [
        SourceFile.from_path(tmp_path / "missing.jpg"),
        SourceFile.from_bytes("ok.jpg", b"ok"),
    ]

    with caplog.at_level(logging.WARNING, logger="ImageIngestionCoordinator"):
        batch = coordinator.submit(files, 1, sink.on_marker, sink.on_assets)
        assert batch.wait(5.0)

    assert [m.name for m in sink.markers] == ["ok.jpg"]
    assert sink.assets is not None and set(sink.assets) == {"ok.jpg"}
    assert batch.failed == 1
    assert "failed to read missing.jpg" in caplog.text.lower()


def test_extractor_exception_still_yields_asset() -> None:
    def exploding_extractor(*_args, **_kwargs):
        raise RuntimeError("boom")

    coordinator = ImageIngestionCoordinator(max_workers=1, extractor=exploding_extractor)
    sink = Sink()

    batch = coordinator.submit(
        [SourceFile.from_bytes("x.jpg", b"x")], 1, sink.on_marker, sink.on_assets
    )

    assert batch.wait(5.0)
    assert sink.markers == []
    assert sink.assets is not None and "x.jpg" in sink.assets
    assert batch.skipped == 1


def test_duplicate_names_keep_first_asset(gated_extractor) -> None:
    coordinator = ImageIngestionCoordinator(max_workers=2, extractor=gated_extractor())
    sink = Sink()
    files = [
        SourceFile.from_bytes("same.jpg", b"first"),
        SourceFile.from_bytes("same.jpg", b"second"),
    ]

    batch = coordinator.submit(files, 1, sink.on_marker, sink.on_assets)

    assert batch.wait(5.0)
    assert sink.assets is not None
    assert sink.assets["same.jpg"].data == b"first"


def test_empty_selection_finishes_immediately() -> None:
    coordinator = ImageIngestionCoordinator(max_workers=1)
    sink = Sink()

    batch = coordinator.submit([], 3, sink.on_marker, sink.on_assets)

    assert batch.done()
    assert sink.assets == {}


@pytest.mark.parametrize("max_workers", [0, -1])
def test_invalid_worker_count(max_workers: int) -> None:
    with pytest.raises(ValueError):
        ImageIngestionCoordinator(max_workers=max_workers)


def test_default_worker_count_is_at_least_one(monkeypatch) -> None:
    monkeypatch.setenv("GPX_PHOTO_MAP_MAX_WORKERS", "0")
    try:
        importlib.reload(config_module)
        assert config_module.INGEST_MAX_WORKERS == 1
    finally:
        monkeypatch.undo()
        importlib.reload(config_module)


def test_scan_directory_recurses(tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "b.jpg").write_bytes(b"b")
    (tmp_path / "sub" / "a.png").write_bytes(b"a")
    (tmp_path / "readme.txt").write_text("hi", encoding="utf-8")

    files = scan_directory(tmp_path)

    by_name = {f.name: f for f in files}
    assert set(by_name) == {"a.png", "b.jpg", "readme.txt"}
    assert by_name["a.png"].mime_type == "image/png"
    assert by_name["b.jpg"].mime_type == "image/jpeg"
    assert by_name["readme.txt"].read_bytes() == b"hi"


def test_scan_directory_requires_directory(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        scan_directory(tmp_path / "nope")
