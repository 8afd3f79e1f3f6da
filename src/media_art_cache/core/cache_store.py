"""
Filesystem facade for the art cache.

Every mutation of a final path goes through a uniquely named temp file in
the same directory followed by an atomic rename, so a failed step leaves
at most a stray temp file and never a half-written artifact.
"""

import logging
import os
import shutil
import uuid
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .constants import TEMP_SUFFIX
from .errors import FilesystemOperationFailed

PathLike = Union[str, Path]


class LinkStrategy(Enum):
    """How a per-entity artifact shares the album artifact's bytes"""
    SYMLINK = "symlink"
    HARDLINK = "hardlink"
    COPY = "copy"


def _default_strategies(use_symlinks: bool) -> List[LinkStrategy]:
    strategies = []
    if use_symlinks and hasattr(os, "symlink"):
        strategies.append(LinkStrategy.SYMLINK)
    if hasattr(os, "link"):
        strategies.append(LinkStrategy.HARDLINK)
    strategies.append(LinkStrategy.COPY)
    return strategies


class CacheStore:
    """
    Thin filesystem layer used by the reconciliation engine.

    Linking tries symbolic links first and degrades to hard links and then
    to a plain copy on filesystems that support neither.
    """

    def __init__(self, use_symlinks: bool = True, link_strategies: Optional[List[LinkStrategy]] = None):
        self.logger = logging.getLogger(__name__)
        self.link_strategies = link_strategies or _default_strategies(use_symlinks)

    # Queries

    def exists(self, path: PathLike) -> bool:
        return os.path.exists(path)

    def get_mtime(self, path: PathLike) -> Optional[int]:
        """Modification time in whole seconds, or None if it can't be read"""
        try:
            return int(os.stat(path).st_mtime)
        except OSError as e:
            self.logger.info(f"Could not get mtime for '{path}': {e.strerror}")
            return None

    # Mutations

    def set_mtime(self, path: PathLike, mtime: int) -> bool:
        try:
            os.utime(path, (mtime, mtime))
            return True
        except OSError as e:
            self.logger.debug(f"utime({path}) error: {e.strerror}")
            return False

    def unique_temp_path(self, target: PathLike) -> Path:
        """Temp path next to ``target``, unique per call"""
        target = Path(target)
        return target.with_name(f"{target.name}-{uuid.uuid4().hex[:12]}{TEMP_SUFFIX}")

    def commit(self, temp: PathLike, target: PathLike) -> None:
        """Atomically move ``temp`` into place as ``target``"""
        try:
            os.replace(temp, target)
        except OSError as e:
            self.logger.debug(f"rename({temp}, {target}) error: {e.strerror}")
            raise FilesystemOperationFailed.from_os_error("rename", target, e)

    def discard(self, path: PathLike) -> None:
        """Remove a temp file if present"""
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove temp file {path}: {e.strerror}")

    def unlink(self, path: PathLike) -> bool:
        """Remove a cache entry; returns False when there was nothing to remove"""
        try:
            os.unlink(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise FilesystemOperationFailed.from_os_error("unlink", path, e)

    def ensure_directory(self, path: PathLike) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemOperationFailed.from_os_error("mkdir", path, e)

    def copy_file(self, source: PathLike, target: PathLike) -> None:
        """Copy ``source`` over ``target`` via a temp file"""
        temp = self.unique_temp_path(target)
        try:
            shutil.copyfile(source, temp)
        except OSError as e:
            self.discard(temp)
            raise FilesystemOperationFailed.from_os_error("copy", source, e)

        try:
            self.commit(temp, target)
        except FilesystemOperationFailed:
            self.discard(temp)
            raise

    def link(self, shared: PathLike, target: PathLike) -> LinkStrategy:
        """
        Make ``target`` resolve to the content of ``shared``.

        Returns:
            The strategy that succeeded

        Raises:
            FilesystemOperationFailed: if every strategy failed
        """
        last_error: Optional[OSError] = None

        for strategy in self.link_strategies:
            temp = self.unique_temp_path(target)
            try:
                if strategy is LinkStrategy.SYMLINK:
                    os.symlink(os.fspath(shared), temp)
                elif strategy is LinkStrategy.HARDLINK:
                    os.link(shared, temp)
                else:
                    shutil.copyfile(shared, temp)
                os.replace(temp, target)
                return strategy
            except OSError as e:
                last_error = e
                self.discard(temp)
                self.logger.debug(f"{strategy.value}({shared}, {target}) error: {e.strerror}")

        raise FilesystemOperationFailed.from_os_error("link", target, last_error)
