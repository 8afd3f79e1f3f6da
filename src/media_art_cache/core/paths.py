"""
Cache path resolution.

Maps (artist, title, prefix) to the artifact path inside the art cache and,
when a related media resource is given, to the URI of the local sidecar
copy next to that resource.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import urlparse
from urllib.request import url2pathname

from .constants import CACHE_DIRECTORY_MODE, LOCAL_SIDECAR_DIRECTORY
from .errors import FilesystemOperationFailed
from .keys import derive_key


def is_uri(value: str) -> bool:
    return "://" in value


def local_uri_to_path(uri: Union[str, Path, None]) -> Optional[Path]:
    """
    Convert a ``file://`` URI or a plain path to a Path.

    Returns None for other URI schemes, which cannot be accessed locally.
    """
    if uri is None:
        return None
    if isinstance(uri, Path):
        return uri
    if not is_uri(uri):
        return Path(uri)

    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return None
    return Path(url2pathname(parsed.path))


def _parent_uri(related: str) -> Optional[str]:
    """Parent directory of a URI or path, as a URI without trailing slash"""
    if is_uri(related):
        scheme, rest = related.split("://", 1)
        rest = rest.rstrip("/")
        if "/" not in rest:
            return None
        parent = rest.rsplit("/", 1)[0]
        return f"{scheme}://{parent}"

    parent_uri = Path(os.path.abspath(related)).parent.as_uri()
    if parent_uri.endswith("/"):
        parent_uri = parent_uri[:-1]
    return parent_uri


class PathResolver:
    """
    Resolves cache artifact paths and local sidecar URIs.

    The cache root is created lazily with private permissions the first time
    a path is resolved.
    """

    def __init__(self, cache_root: Union[str, Path], sidecar_directory: str = LOCAL_SIDECAR_DIRECTORY):
        self.logger = logging.getLogger(__name__)
        self.cache_root = Path(cache_root)
        self.sidecar_directory = sidecar_directory
        self._root_ready = False
        self._lock = threading.Lock()

    def ensure_cache_root(self) -> Path:
        """Create the cache root (idempotent) and return it"""
        if self._root_ready:
            return self.cache_root

        with self._lock:
            if not self._root_ready:
                try:
                    self.cache_root.mkdir(mode=CACHE_DIRECTORY_MODE, parents=True, exist_ok=True)
                except OSError as e:
                    raise FilesystemOperationFailed.from_os_error("mkdir", self.cache_root, e)
                self._root_ready = True
                self.logger.debug(f"Using media art cache directory {self.cache_root}")

        return self.cache_root

    def resolve(self,
                artist: Optional[str],
                title: Optional[str],
                prefix: Optional[str] = None,
                related_uri: Optional[Union[str, Path]] = None) -> Tuple[Optional[Path], Optional[str]]:
        """
        Resolve the cache path and optional local sidecar URI.

        Args:
            artist: Artist name, or None
            title: Album or video title, or None
            prefix: Filename prefix, "album" when None
            related_uri: URI or path of the media file the art belongs to

        Returns:
            (cache_path, local_uri); both None when artist and title are None.
            local_uri is None when no related resource was given or it has
            no parent directory.
        """
        if artist is None and title is None:
            return None, None

        filename = derive_key(artist, title).filename(prefix)
        cache_path = self.ensure_cache_root() / filename

        local_uri = None
        if related_uri is not None:
            parent = _parent_uri(str(related_uri))
            if parent is not None:
                local_uri = f"{parent}/{self.sidecar_directory}/{filename}"

        return cache_path, local_uri

    def cache_path(self, artist: Optional[str], title: Optional[str], prefix: Optional[str] = None) -> Optional[Path]:
        return self.resolve(artist, title, prefix)[0]

    def album_path(self, title: str, prefix: Optional[str] = None) -> Path:
        """Path of the title-only artifact shared by an album's tracks"""
        return self.resolve(None, title, prefix)[0]
