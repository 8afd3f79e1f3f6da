"""
Removable media detection.

Only used to decide whether a media file lives on removable storage, in
which case a sidecar copy of its art is placed on the device.
"""

import logging
import os
from enum import Flag
from pathlib import Path
from typing import Iterable, List, Union

import psutil

from ..core.constants import OPTICAL_FILESYSTEMS, SYSFS_BLOCK_ROOT
from ..core.errors import StorageUnavailable


class StorageType(Flag):
    REMOVABLE = 1
    OPTICAL = 2


def is_under_root(path: Union[str, Path], roots: Iterable[str]) -> bool:
    """True when ``path`` equals or lies below one of ``roots``"""
    path = os.path.abspath(path)
    for root in roots:
        root = os.path.abspath(root)
        if path == root or path.startswith(root.rstrip(os.sep) + os.sep):
            return True
    return False


class StorageEnumerator:
    """Interface for listing mount roots of a given storage kind"""

    def roots_of(self, kind: StorageType) -> List[str]:
        raise NotImplementedError

    def is_removable(self, path: Union[str, Path]) -> bool:
        return is_under_root(path, self.roots_of(StorageType.REMOVABLE))


class StaticStorage(StorageEnumerator):
    """Fixed set of roots, for embedding applications that track mounts themselves"""

    def __init__(self, removable: Iterable[str] = (), optical: Iterable[str] = ()):
        self.removable = list(removable)
        self.optical = list(optical)

    def roots_of(self, kind: StorageType) -> List[str]:
        roots = []
        if kind & StorageType.REMOVABLE:
            roots.extend(self.removable)
        if kind & StorageType.OPTICAL:
            roots.extend(r for r in self.optical if r not in roots)
        return roots


class PsutilStorage(StorageEnumerator):
    """
    Mount enumeration via psutil.

    A partition counts as removable when its block device reports
    ``removable`` in sysfs, and as optical when it carries an optical disc
    filesystem. Optical media are reported as removable as well.
    """

    def __init__(self, sysfs_block_root: str = SYSFS_BLOCK_ROOT):
        self.logger = logging.getLogger(__name__)
        self.sysfs_block_root = Path(sysfs_block_root)
        try:
            psutil.disk_partitions(all=False)
        except (OSError, RuntimeError) as e:
            raise StorageUnavailable(f"Could not start storage module for removable media detection: {e}") from e

    def _device_is_removable(self, device: str) -> bool:
        name = Path(device).name
        if not name:
            return False

        # /dev/sdb1 -> /sys/block/sdb/removable; partitions share the disk's flag
        # and nvme0n1p2 / mmcblk0p1 -> nvme0n1 / mmcblk0
        for candidate in (name, name.rstrip("0123456789"), name.rsplit("p", 1)[0]):
            flag = self.sysfs_block_root / candidate / "removable"
            try:
                return flag.read_text().strip() == "1"
            except OSError:
                continue
        return False

    def roots_of(self, kind: StorageType) -> List[str]:
        roots = []
        for partition in psutil.disk_partitions(all=False):
            optical = partition.fstype.lower() in OPTICAL_FILESYSTEMS
            removable = optical or self._device_is_removable(partition.device)

            if (kind & StorageType.OPTICAL and optical) or (kind & StorageType.REMOVABLE and removable):
                roots.append(partition.mountpoint)

        self.logger.debug(f"Storage roots for {kind}: {roots}")
        return roots
