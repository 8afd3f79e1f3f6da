"""
Media Art Process

Public entry point of the cache. One MediaArtProcess owns the engine, its
collaborators and a worker pool; requests may be run synchronously or
submitted to the pool and awaited as futures or from asyncio code.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .cache_store import CacheStore
from .cancellation import NEVER_CANCELLED, CancellationToken
from .candidates import CandidateClassifier
from .config_manager import MediaArtConfig
from .constants import MAX_WORKER_THREADS
from .models import MediaArtType, ReconcileResult
from .normalizer import strip_invalid_entities
from .paths import PathResolver
from .reconciler import ReconciliationEngine
from .state import EngineState
from ..collaborators.download import DBusDownloadRequester, DownloadRequester, NullDownloadRequester
from ..collaborators.image_codec import ImageCodec, PillowImageCodec
from ..collaborators.storage import PsutilStorage, StorageEnumerator
from ..utils.decorators import track_performance


class MediaArtProcess:
    """
    Handle for processing media art.

    Collaborators not passed in are built from ``config``. Building the
    removable storage detector raises StorageUnavailable when mounts cannot
    be enumerated.
    """

    def __init__(self,
                 config: Optional[MediaArtConfig] = None,
                 codec: Optional[ImageCodec] = None,
                 storage: Optional[StorageEnumerator] = None,
                 requester: Optional[DownloadRequester] = None,
                 state: Optional[EngineState] = None):
        self.logger = logging.getLogger(__name__)
        self.config = config or MediaArtConfig()
        self._performance_metrics = {}

        if codec is None:
            codec = PillowImageCodec(
                max_width=self.config.codec.max_width,
                jpeg_quality=self.config.codec.jpeg_quality,
                background_color=self.config.codec.background_color,
            )

        if storage is None and self.config.storage.detect_removable:
            storage = PsutilStorage()

        if requester is None:
            if self.config.download.enabled:
                requester = DBusDownloadRequester(
                    service=self.config.download.service,
                    object_path=self.config.download.object_path,
                    interface=self.config.download.interface,
                    method=self.config.download.method,
                    timeout=self.config.download.timeout,
                )
            else:
                requester = NullDownloadRequester()

        self.resolver = PathResolver(self.config.cache.resolve_root(), self.config.cache.sidecar_directory)
        self.engine = ReconciliationEngine(
            resolver=self.resolver,
            store=CacheStore(use_symlinks=self.config.cache.use_symlinks),
            codec=codec,
            classifier=CandidateClassifier(),
            requester=requester,
            storage=storage,
            state=state or EngineState(),
            serialize_per_key=self.config.processing.serialize_per_key,
            copy_to_removable=self.config.storage.copy_to_removable,
        )

        self.max_workers = min(max(1, self.config.processing.max_workers), MAX_WORKER_THREADS)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    @property
    def state(self) -> EngineState:
        return self.engine.state

    @property
    def cache_root(self) -> Path:
        return self.resolver.cache_root

    # Stateless helpers

    @staticmethod
    def strip(value: Optional[str]) -> Optional[str]:
        return strip_invalid_entities(value)

    def get_path(self,
                 artist: Optional[str],
                 title: Optional[str],
                 prefix: Optional[str] = None,
                 related_uri: Optional[Union[str, Path]] = None) -> Tuple[Optional[Path], Optional[str]]:
        """Cache path and local sidecar URI for (artist, title)"""
        return self.resolver.resolve(artist, title, prefix, related_uri)

    # Requests

    @track_performance(threshold_ms=2000)
    def process_file(self,
                     media: Union[str, Path],
                     art_type: MediaArtType = MediaArtType.ALBUM,
                     artist: Optional[str] = None,
                     title: Optional[str] = None,
                     data: Optional[bytes] = None,
                     mime: Optional[str] = None,
                     force: bool = False,
                     cancellation: CancellationToken = NEVER_CANCELLED) -> ReconcileResult:
        """Process one media file on the calling thread"""
        result = self.engine.process_file(media, art_type, artist, title,
                                          data=data, mime=mime, force=force,
                                          cancellation=cancellation)
        self.logger.debug(f"Processed '{media}': {result.action.value}")
        return result

    def set_from_buffer(self, data: bytes, mime: Optional[str], art_type: MediaArtType,
                        artist: Optional[str], title: str) -> ReconcileResult:
        return self.engine.set_from_buffer(data, mime, art_type, artist, title)

    def remove(self, artist: str, album: Optional[str],
               art_type: MediaArtType = MediaArtType.ALBUM) -> List[Path]:
        """Remove the art for (artist, album); returns the removed paths"""
        return self.engine.remove(artist, album, art_type)

    def submit(self, media: Union[str, Path], *args, **kwargs) -> Future:
        """
        Run process_file on the worker pool.

        Returns:
            Future resolving to the ReconcileResult, or raising what
            process_file raised
        """
        return self._get_executor().submit(self.process_file, media, *args, **kwargs)

    async def process_file_async(self, media: Union[str, Path], *args, **kwargs) -> ReconcileResult:
        """Await process_file without blocking the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._get_executor(),
            lambda: self.process_file(media, *args, **kwargs),
        )

    def get_performance_stats(self) -> dict:
        timings = self._performance_metrics.get("process_file", [])
        if not timings:
            return {"requests": 0}
        return {
            "requests": len(timings),
            "avg_ms": sum(timings) / len(timings),
            "max_ms": max(timings),
            "memoized_directories": self.state.memo_size,
        }

    def shutdown(self, wait: bool = True) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                                    thread_name_prefix="media-art")
            return self._executor
