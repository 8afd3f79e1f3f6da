"""
Unit tests for MediaArtProcess, the public handle.
"""

import asyncio
import os

import pytest

from media_art_cache.collaborators.download import DBusDownloadRequester, NullDownloadRequester
from media_art_cache.collaborators.storage import StaticStorage
from media_art_cache.core.cancellation import CancellationToken
from media_art_cache.core.config_manager import MediaArtConfig
from media_art_cache.core.errors import OperationCancelled, StorageUnavailable
from media_art_cache.core.models import ArtAction, MediaArtType
from media_art_cache.core.processor import MediaArtProcess


@pytest.fixture
def config(tmp_path):
    config = MediaArtConfig()
    config.cache.cache_dir = str(tmp_path / "cache")
    config.processing.max_workers = 4
    return config


@pytest.fixture
def process(config):
    with _make_process(config) as handle:
        yield handle


def _make_process(config, **kwargs):
    kwargs.setdefault("storage", StaticStorage())
    kwargs.setdefault("requester", NullDownloadRequester())
    return MediaArtProcess(config, **kwargs)


class TestMediaArtProcess:

    def test_cache_root_from_config(self, process, tmp_path):
        assert process.cache_root == tmp_path / "cache" / "media-art"

    def test_download_requester_from_config(self, config):
        process = _make_process(config, requester=None)
        assert isinstance(process.engine.requester, DBusDownloadRequester)

        config.download.enabled = False
        process = _make_process(config, requester=None)
        assert isinstance(process.engine.requester, NullDownloadRequester)

    def test_storage_failure_propagates(self, config, monkeypatch):
        """Test a broken mount table makes handle creation fail."""
        def broken(*args, **kwargs):
            raise OSError("no mounts")

        monkeypatch.setattr("media_art_cache.collaborators.storage.psutil.disk_partitions", broken)

        with pytest.raises(StorageUnavailable):
            _make_process(config, storage=None)

    def test_storage_detection_disabled(self, config):
        config.storage.detect_removable = False
        process = _make_process(config, storage=None)
        assert process.engine.storage is None

    def test_strip_and_get_path(self, process):
        assert process.strip("Cool Album (CD1)") == "cool album"
        path, local_uri = process.get_path("Beatles", "Sgt. Pepper", "album", "/music/a.mp3")
        assert path.parent == process.cache_root
        assert local_uri.startswith("file:///music/.mediaartlocal/album-")

    def test_process_file_sync(self, process, media_file, jpeg_bytes):
        result = process.process_file(media_file, MediaArtType.ALBUM, None, "Sgt. Pepper",
                                      data=jpeg_bytes(), mime="image/jpeg")

        assert result.action is ArtAction.WROTE
        assert process.get_performance_stats()["requests"] == 1

    def test_submit_returns_future(self, process, media_file, jpeg_bytes):
        future = process.submit(media_file, MediaArtType.ALBUM, "Beatles", "Sgt. Pepper",
                                data=jpeg_bytes(), mime="image/jpeg")

        result = future.result(timeout=30)

        assert result.success
        assert result.path.exists()

    def test_submit_cancelled(self, process, media_file, jpeg_bytes):
        token = CancellationToken()
        token.cancel()

        future = process.submit(media_file, MediaArtType.ALBUM, None, "Sgt. Pepper",
                                data=jpeg_bytes(), mime="image/jpeg", cancellation=token)

        assert isinstance(future.exception(timeout=30), OperationCancelled)

    def test_process_file_async(self, process, media_file, jpeg_bytes):
        async def run():
            return await process.process_file_async(
                media_file, MediaArtType.ALBUM, None, "Sgt. Pepper",
                data=jpeg_bytes(), mime="image/jpeg",
            )

        result = asyncio.run(run())

        assert result.action is ArtAction.WROTE

    def test_concurrent_album_tracks_share_one_file(self, process, media_dir, jpeg_bytes, list_regular_files):
        """Test concurrent requests for one album leave a single physical file."""
        data = jpeg_bytes()
        futures = []
        for index in range(8):
            track = media_dir / f"{index:02d}.mp3"
            track.write_bytes(b"fake audio")
            futures.append(process.submit(track, MediaArtType.ALBUM, f"Artist {index}", "Sgt. Pepper",
                                          data=data, mime="image/jpeg"))

        results = [future.result(timeout=30) for future in futures]

        assert all(result.success for result in results)
        assert list_regular_files(process.cache_root) == [process.engine.resolver.album_path("Sgt. Pepper")]
        assert not any(name.endswith(".tmp") for name in os.listdir(process.cache_root))

    def test_remove(self, process, media_file, jpeg_bytes):
        result = process.process_file(media_file, MediaArtType.ALBUM, "Beatles", "Sgt. Pepper",
                                      data=jpeg_bytes(), mime="image/jpeg")

        removed = process.remove("Beatles", "Sgt. Pepper")

        assert result.path in removed
        assert len(removed) == 2

    def test_remove_video(self, process, media_file, jpeg_bytes):
        result = process.process_file(media_file, MediaArtType.VIDEO, "Ridley Scott", "Alien",
                                      data=jpeg_bytes(), mime="image/jpeg")

        assert process.remove("Ridley Scott", "Alien") == []
        assert process.remove("Ridley Scott", "Alien", MediaArtType.VIDEO) == [result.path]
        assert result.path.name.startswith("video-")

    def test_shutdown_is_idempotent(self, config, media_file):
        process = _make_process(config)
        process.submit(media_file, MediaArtType.ALBUM, None, "Sgt. Pepper").result(timeout=30)

        process.shutdown()
        process.shutdown()

        assert process._executor is None
