"""
Shared pytest fixtures for media art cache tests.

Provides temporary cache and music directories, generated images and a
fully wired reconciliation engine with in-process collaborators.
"""

import io
import os
from pathlib import Path

import pytest
from PIL import Image

from media_art_cache.collaborators.download import DownloadRequester
from media_art_cache.collaborators.image_codec import PillowImageCodec
from media_art_cache.collaborators.storage import StaticStorage
from media_art_cache.core.cache_store import CacheStore
from media_art_cache.core.candidates import CandidateClassifier
from media_art_cache.core.paths import PathResolver
from media_art_cache.core.reconciler import ReconciliationEngine
from media_art_cache.core.state import EngineState


class RecordingRequester(DownloadRequester):
    """Download requester that records calls instead of using the bus"""

    def __init__(self, result=True, error=None):
        self.calls = []
        self.result = result
        self.error = error

    def request_download(self, art_type, artist, album):
        self.calls.append((art_type, artist, album))
        if self.error is not None:
            raise self.error
        return self.result


def _encode(color=(255, 0, 0), size=(32, 32), mode="RGB", fmt="JPEG") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes():
    """Factory for JPEG encoded solid-color images."""
    def factory(color=(255, 0, 0), size=(32, 32)) -> bytes:
        return _encode(color, size, "RGB", "JPEG")
    return factory


@pytest.fixture
def png_bytes():
    """Factory for PNG encoded solid-color images (RGBA when color has alpha)."""
    def factory(color=(0, 0, 255), size=(32, 32)) -> bytes:
        mode = "RGBA" if len(color) == 4 else "RGB"
        return _encode(color, size, mode, "PNG")
    return factory


@pytest.fixture
def cache_root(tmp_path) -> Path:
    return tmp_path / "cache" / "media-art"


@pytest.fixture
def music_root(tmp_path) -> Path:
    root = tmp_path / "music"
    root.mkdir()
    return root


@pytest.fixture
def media_dir(music_root) -> Path:
    directory = music_root / "Beatles" / "Sgt Pepper"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def media_file(media_dir) -> Path:
    """Fake audio file with an mtime well in the past."""
    path = media_dir / "01 - Track 1.mp3"
    path.write_bytes(b"fake audio data for testing")
    past = 1_600_000_000
    os.utime(path, (past, past))
    return path


@pytest.fixture
def requester():
    return RecordingRequester()


@pytest.fixture
def storage():
    return StaticStorage()


@pytest.fixture
def engine(cache_root, requester, storage):
    return ReconciliationEngine(
        resolver=PathResolver(cache_root),
        store=CacheStore(),
        codec=PillowImageCodec(),
        classifier=CandidateClassifier(),
        requester=requester,
        storage=storage,
        state=EngineState(),
    )


def regular_files(directory: Path):
    """Non-symlink files directly inside ``directory``."""
    return sorted(p for p in directory.iterdir() if p.is_file() and not p.is_symlink())


@pytest.fixture
def list_regular_files():
    return regular_files
