"""
Reconciliation Engine

Decides, for one media item, whether cached art is current and how to make
it so: from a supplied image buffer, from a sidecar copy or an image found
next to the media file, or by asking the download service.

Album art is shared: every track of an album with a known artist gets its
own artifact, but when the bytes equal the title-only album artifact the
per-track artifact becomes a link to it, so one physical file backs the
whole album.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from .cache_store import CacheStore, LinkStrategy
from .cancellation import NEVER_CANCELLED, CancellationToken
from .candidates import CandidateClassifier
from .constants import JPEG_EXTENSIONS
from .errors import (
    CodecFailure,
    DownloadServiceUnavailable,
    FilesystemOperationFailed,
    MediaArtError,
    RequiredFieldMissing,
    ResourceNotFound,
)
from .models import ArtAction, MediaArtType, ReconcileResult, require_valid_type
from .paths import PathResolver, is_uri, local_uri_to_path
from .state import EngineState, memo_key
from ..collaborators.download import DownloadRequester
from ..collaborators.image_codec import ImageCodec
from ..collaborators.storage import StorageEnumerator
from ..utils.checksum import digest_of, is_buffer_jpeg, jpeg_checksum
from ..utils.decorators import handle_errors


def is_sharable(art_type: MediaArtType, artist: Optional[str]) -> bool:
    """Album art with a non-blank artist is deduplicated against the album artifact"""
    return art_type is MediaArtType.ALBUM and artist is not None and artist.strip() != ""


def _require_title(title: Optional[str]) -> None:
    if title is None or title == "":
        raise RequiredFieldMissing("title")


class ReconciliationEngine:
    """
    Keeps cache artifacts in sync with their media.

    Filesystem and codec failures are reported through ReconcileResult;
    invalid arguments, missing media and cancellation raise.
    """

    def __init__(self,
                 resolver: PathResolver,
                 store: CacheStore,
                 codec: ImageCodec,
                 classifier: Optional[CandidateClassifier] = None,
                 requester: Optional[DownloadRequester] = None,
                 storage: Optional[StorageEnumerator] = None,
                 state: Optional[EngineState] = None,
                 serialize_per_key: bool = True,
                 copy_to_removable: bool = True):
        self.logger = logging.getLogger(__name__)
        self.resolver = resolver
        self.store = store
        self.codec = codec
        self.classifier = classifier or CandidateClassifier()
        self.requester = requester
        self.storage = storage
        self.state = state or EngineState()
        self.serialize_per_key = serialize_per_key
        self.copy_to_removable = copy_to_removable

    # ------------------------------------------------------------------
    # Buffer path
    # ------------------------------------------------------------------

    def set_from_buffer(self,
                        data: bytes,
                        mime: Optional[str],
                        art_type: MediaArtType,
                        artist: Optional[str],
                        title: str) -> ReconcileResult:
        """
        Store an image buffer as the art for (artist, title).

        Returns:
            ReconcileResult with action WROTE, LINKED or CONVERTED
        """
        require_valid_type(art_type)
        _require_title(title)

        target = self.resolver.cache_path(artist, title, art_type.prefix)

        if not data:
            return ReconcileResult.failed(CodecFailure("Empty image buffer"), target)

        try:
            return self._set_from_buffer(data, mime, art_type, artist, title, target)
        except (CodecFailure, FilesystemOperationFailed) as e:
            self.logger.warning(f"Could not save media art for '{title}': {e}")
            return ReconcileResult.failed(e, target)

    def _set_from_buffer(self, data, mime, art_type, artist, title, target: Path) -> ReconcileResult:
        if not is_sharable(art_type, artist):
            self.logger.debug(f"Saving buffer to jpeg ({len(data)} bytes) --> '{target}'")
            self._write_buffer(data, mime, target)
            return ReconcileResult.ok(ArtAction.WROTE, target)

        album_path = self.resolver.album_path(title, art_type.prefix)

        if not self.store.exists(album_path):
            self.logger.debug(f"Saving buffer to album art ({len(data)} bytes) --> '{album_path}'")
            self._write_buffer(data, mime, album_path)
            self._share(album_path, target)
            return ReconcileResult.ok(ArtAction.LINKED, target)

        album_digest = digest_of(album_path)
        if album_digest is None:
            raise FilesystemOperationFailed("checksum", str(album_path), "album artifact is not readable")

        if is_buffer_jpeg(mime, data):
            if digest_of(data) == album_digest:
                self.logger.debug(f"Buffer matches album art, linking '{album_path}' --> '{target}'")
                self._share(album_path, target)
                return ReconcileResult.ok(ArtAction.LINKED, target)

            self.logger.debug(f"Saving buffer to jpeg ({len(data)} bytes) --> '{target}'")
            self._write_buffer(data, mime, target)
            return ReconcileResult.ok(ArtAction.WROTE, target)

        temp = self.store.unique_temp_path(album_path)
        try:
            self.codec.buffer_to_jpeg(data, mime, temp)
            return self._place_converted(temp, target, album_path, album_digest)
        finally:
            self.store.discard(temp)

    # ------------------------------------------------------------------
    # Heuristic path
    # ------------------------------------------------------------------

    def reconcile_by_heuristic(self,
                               art_type: MediaArtType,
                               artist: Optional[str],
                               title: str,
                               media_path: Union[str, Path],
                               local_uri: Optional[str] = None) -> ReconcileResult:
        """
        Fill the cache from a sidecar copy or an image beside the media file.

        Returns:
            ReconcileResult; action NO_CANDIDATE when nothing usable was found
        """
        require_valid_type(art_type)
        _require_title(title)

        target = self.resolver.cache_path(artist, title, art_type.prefix)

        try:
            return self._reconcile_by_heuristic(art_type, artist, title, Path(media_path), local_uri, target)
        except (CodecFailure, FilesystemOperationFailed) as e:
            self.logger.warning(f"Could not reconcile media art for '{media_path}': {e}")
            return ReconcileResult.failed(e, target)

    def _reconcile_by_heuristic(self, art_type, artist, title, media_path: Path,
                                local_uri: Optional[str], target: Path) -> ReconcileResult:
        sidecar = local_uri_to_path(local_uri) if local_uri else None
        if sidecar is not None and self.store.exists(sidecar):
            self.logger.debug(f"Album art being copied from local (.mediaartlocal) file:'{sidecar}'")
            self.store.copy_file(sidecar, target)
            return ReconcileResult.ok(ArtAction.COPIED_FROM_SIDECAR, target)

        candidate = self.classifier.find_art(media_path, art_type, artist, title)
        if candidate is None:
            return ReconcileResult.failed(
                ResourceNotFound(f"media art next to {media_path}"), target, ArtAction.NO_CANDIDATE
            )

        sharable = is_sharable(art_type, artist)
        album_path = self.resolver.album_path(title, art_type.prefix) if sharable else None

        if candidate.suffix.lower() in JPEG_EXTENSIONS:
            if album_path is None:
                self.logger.debug(f"Album art (JPEG) found in same directory being used:'{candidate}'")
                self.store.copy_file(candidate, target)
                return ReconcileResult.ok(ArtAction.COPIED, target)

            checked = jpeg_checksum(candidate)
            if not checked.readable:
                raise FilesystemOperationFailed("read", str(candidate), "candidate image is not readable")

            if checked.is_jpeg:
                return self._place_jpeg_candidate(candidate, checked.digest, target, album_path)

            self.logger.debug(f"Album art found in same directory but not a real JPEG file (trying to convert): '{candidate}'")

        return self._convert_candidate(candidate, target, album_path)

    def _place_jpeg_candidate(self, candidate: Path, digest: str, target: Path, album_path: Path) -> ReconcileResult:
        album_digest = digest_of(album_path) if self.store.exists(album_path) else None

        if album_digest is None:
            self.logger.debug(f"Copying album art from '{candidate}' to '{album_path}'")
            self.store.copy_file(candidate, album_path)
            self._share(album_path, target)
            return ReconcileResult.ok(ArtAction.LINKED, target)

        if album_digest == digest:
            self._share(album_path, target)
            return ReconcileResult.ok(ArtAction.LINKED, target)

        self.store.copy_file(candidate, target)
        return ReconcileResult.ok(ArtAction.COPIED, target)

    def _convert_candidate(self, candidate: Path, target: Path, album_path: Optional[Path]) -> ReconcileResult:
        self.logger.debug(f"Album art found in same directory being converted to JPEG:'{candidate}'")

        temp = self.store.unique_temp_path(album_path or target)
        try:
            self.codec.file_to_jpeg(candidate, temp)

            if album_path is None:
                self.store.commit(temp, target)
                return ReconcileResult.ok(ArtAction.CONVERTED, target)

            album_digest = digest_of(album_path) if self.store.exists(album_path) else None
            return self._place_converted(temp, target, album_path, album_digest)
        finally:
            self.store.discard(temp)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _write_buffer(self, data: bytes, mime: Optional[str], dest: Path) -> None:
        temp = self.store.unique_temp_path(dest)
        try:
            self.codec.buffer_to_jpeg(data, mime, temp)
            self.store.commit(temp, dest)
        except MediaArtError:
            self.store.discard(temp)
            raise

    def _share(self, album_path: Path, target: Path) -> LinkStrategy:
        strategy = self.store.link(album_path, target)
        if strategy is not LinkStrategy.SYMLINK:
            self.logger.debug(f"Linked '{target}' to '{album_path}' using {strategy.value}")
        return strategy

    def _place_converted(self, temp: Path, target: Path, album_path: Path,
                         album_digest: Optional[str]) -> ReconcileResult:
        """
        Place a freshly converted JPEG.

        With no album artifact the temp becomes the album artifact and the
        target links to it. Otherwise the target links to the album artifact
        when the bytes are equal, or receives the temp when they differ.
        """
        if album_digest is None:
            self.store.commit(temp, album_path)
            self._share(album_path, target)
            return ReconcileResult.ok(ArtAction.LINKED, target)

        temp_digest = digest_of(temp)
        if temp_digest is None:
            raise FilesystemOperationFailed("checksum", str(temp), "converted image is not readable")

        if temp_digest == album_digest:
            self._share(album_path, target)
            return ReconcileResult.ok(ArtAction.LINKED, target)

        self.store.commit(temp, target)
        return ReconcileResult.ok(ArtAction.CONVERTED, target)

    # ------------------------------------------------------------------
    # Request entry point
    # ------------------------------------------------------------------

    def process_file(self,
                     media: Union[str, Path],
                     art_type: MediaArtType,
                     artist: Optional[str],
                     title: str,
                     data: Optional[bytes] = None,
                     mime: Optional[str] = None,
                     force: bool = False,
                     cancellation: CancellationToken = NEVER_CANCELLED) -> ReconcileResult:
        """
        Bring the cache up to date for one media file.

        Args:
            media: Path or file:// URI of the media file
            art_type: ALBUM or VIDEO
            artist: Artist name, may be None
            title: Album or video title
            data: Embedded image bytes, if the caller has them
            mime: MIME type of ``data``
            force: Ignore staleness and the directory memo
            cancellation: Token checked before filesystem and collaborator work

        Raises:
            ValueError: art_type is not ALBUM or VIDEO
            RequiredFieldMissing: title is missing
            ResourceNotFound: the media file does not exist
            OperationCancelled: the token was cancelled
        """
        require_valid_type(art_type)
        _require_title(title)

        media_path = local_uri_to_path(media)
        if media_path is None or not media_path.exists():
            raise ResourceNotFound(str(media))

        cancellation.raise_if_cancelled("resolving cache path")

        related = media if isinstance(media, str) and is_uri(media) else media_path
        cache_path, local_uri = self.resolver.resolve(artist, title, art_type.prefix, related)

        if self.serialize_per_key:
            with self.state.serialized(cache_path):
                result = self._process_file(media_path, art_type, artist, title, data, mime,
                                            force, cancellation, cache_path, local_uri)
        else:
            result = self._process_file(media_path, art_type, artist, title, data, mime,
                                        force, cancellation, cache_path, local_uri)

        if self.copy_to_removable and local_uri is not None:
            cancellation.raise_if_cancelled("copying to removable media")
            self.copy_to_local(media_path, cache_path, local_uri)

        return result

    def _process_file(self, media_path: Path, art_type, artist, title, data, mime,
                      force: bool, cancellation: CancellationToken,
                      cache_path: Path, local_uri: Optional[str]) -> ReconcileResult:
        media_mtime = self.store.get_mtime(media_path) or 0
        cache_mtime = self.store.get_mtime(cache_path) if self.store.exists(cache_path) else None

        if not force and cache_mtime is not None and media_mtime <= cache_mtime:
            self.logger.debug(f"Album art already exists for uri:'{media_path}' as '{cache_path}'")
            return ReconcileResult.ok(ArtAction.UP_TO_DATE, cache_path)

        if data:
            cancellation.raise_if_cancelled("saving buffer")
            result = self.set_from_buffer(data, mime, art_type, artist, title)
            if result:
                self.store.set_mtime(cache_path, media_mtime)
            return result

        key = memo_key(art_type, artist, title, media_path.parent)
        if not force and self.state.was_attempted(key):
            self.logger.debug(f"Already checked directory for media art: {media_path.parent}")
            if self.store.exists(cache_path):
                return ReconcileResult.ok(ArtAction.MEMOIZED, cache_path)
            return ReconcileResult.failed(
                ResourceNotFound(f"media art next to {media_path}"), cache_path, ArtAction.MEMOIZED
            )

        cancellation.raise_if_cancelled("searching for media art")
        result = self.reconcile_by_heuristic(art_type, artist, title, media_path, local_uri)

        if result.action is ArtAction.NO_CANDIDATE:
            cancellation.raise_if_cancelled("requesting download")
            if self._request_download(art_type, artist, title):
                result = ReconcileResult.failed(result.error, cache_path, ArtAction.DOWNLOAD_REQUESTED)

        self.store.set_mtime(cache_path, media_mtime)
        self.state.record(key)
        return result

    def _request_download(self, art_type: MediaArtType, artist: Optional[str], album: str) -> bool:
        if self.requester is None or self.state.downloads_disabled:
            return False
        if art_type is not MediaArtType.ALBUM:
            return False

        try:
            return self.requester.request_download(art_type, artist, album)
        except DownloadServiceUnavailable as e:
            self.logger.info(f"Media art download service unavailable, disabling requests: {e}")
            self.state.disable_downloads()
            return False

    @handle_errors(log_level="info", return_on_error=False, error_types=(MediaArtError, OSError))
    def copy_to_local(self, media_path: Path, cache_path: Path, local_uri: str) -> bool:
        """
        Mirror the cache artifact into the media's sidecar directory.

        Only done for media on removable storage, and only when the sidecar
        does not exist yet. Failures are logged and ignored.
        """
        if self.storage is None:
            return False

        sidecar = local_uri_to_path(local_uri)
        if sidecar is None or self.store.exists(sidecar) or not self.store.exists(cache_path):
            return False

        if not self.storage.is_removable(media_path):
            return False

        self.store.ensure_directory(sidecar.parent)
        self.store.copy_file(cache_path, sidecar)
        self.logger.debug(f"Copied media art from '{cache_path}' to '{sidecar}'")
        return True

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove(self, artist: str, album: Optional[str],
               art_type: MediaArtType = MediaArtType.ALBUM) -> List[Path]:
        """
        Remove the art for (artist, album) and the album's shared artifact.

        Returns:
            Paths that were actually removed; empty when the cache does not exist

        Raises:
            RequiredFieldMissing: artist is missing
            FilesystemOperationFailed: an existing artifact could not be removed
        """
        require_valid_type(art_type)
        if artist is None or artist == "":
            raise RequiredFieldMissing("artist")

        if not self.resolver.cache_root.is_dir():
            return []

        candidates = [self.resolver.cache_path(artist, album, art_type.prefix)]
        if album:
            candidates.append(self.resolver.album_path(album, art_type.prefix))

        removed = []
        for path in candidates:
            if self.store.unlink(path):
                self.logger.debug(f"Removed media art '{path}'")
                removed.append(path)
        return removed
