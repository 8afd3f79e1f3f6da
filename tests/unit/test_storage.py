"""
Unit tests for removable media detection.
"""

from types import SimpleNamespace

import pytest

from media_art_cache.collaborators.storage import (
    PsutilStorage,
    StaticStorage,
    StorageType,
    is_under_root,
)
from media_art_cache.core.errors import StorageUnavailable

PARTITIONS = "media_art_cache.collaborators.storage.psutil.disk_partitions"


class TestIsUnderRoot:

    def test_inside(self):
        assert is_under_root("/media/usb/music/a.mp3", ["/media/usb"])

    def test_root_itself(self):
        assert is_under_root("/media/usb", ["/media/usb/"])

    def test_sibling_prefix_not_matched(self):
        """Test /media/usb2 is not treated as being under /media/usb."""
        assert not is_under_root("/media/usb2/a.mp3", ["/media/usb"])

    def test_no_roots(self):
        assert not is_under_root("/home/a.mp3", [])


class TestStaticStorage:

    def test_roots_of(self):
        storage = StaticStorage(removable=["/media/usb"], optical=["/media/cdrom"])

        assert storage.roots_of(StorageType.REMOVABLE) == ["/media/usb"]
        assert storage.roots_of(StorageType.OPTICAL) == ["/media/cdrom"]
        assert storage.roots_of(StorageType.REMOVABLE | StorageType.OPTICAL) == ["/media/usb", "/media/cdrom"]

    def test_is_removable(self):
        storage = StaticStorage(removable=["/media/usb"])
        assert storage.is_removable("/media/usb/a.mp3")
        assert not storage.is_removable("/home/user/a.mp3")


class TestPsutilStorage:

    @pytest.fixture
    def sysfs(self, tmp_path):
        root = tmp_path / "sys" / "block"
        for device, flag in (("sda", "0"), ("sdb", "1"), ("mmcblk0", "1")):
            (root / device).mkdir(parents=True)
            (root / device / "removable").write_text(flag + "\n")
        return root

    @pytest.fixture
    def partitions(self, monkeypatch):
        mounts = [
            SimpleNamespace(device="/dev/sda1", mountpoint="/", fstype="ext4"),
            SimpleNamespace(device="/dev/sdb1", mountpoint="/media/usb", fstype="vfat"),
            SimpleNamespace(device="/dev/mmcblk0p1", mountpoint="/media/sd", fstype="exfat"),
            SimpleNamespace(device="/dev/sr0", mountpoint="/media/cdrom", fstype="iso9660"),
        ]
        monkeypatch.setattr(PARTITIONS, lambda all=False: mounts)
        return mounts

    def test_removable_roots(self, sysfs, partitions):
        storage = PsutilStorage(sysfs_block_root=str(sysfs))

        assert storage.roots_of(StorageType.REMOVABLE) == ["/media/usb", "/media/sd", "/media/cdrom"]

    def test_optical_roots(self, sysfs, partitions):
        storage = PsutilStorage(sysfs_block_root=str(sysfs))

        assert storage.roots_of(StorageType.OPTICAL) == ["/media/cdrom"]

    def test_is_removable(self, sysfs, partitions):
        storage = PsutilStorage(sysfs_block_root=str(sysfs))

        assert storage.is_removable("/media/usb/Beatles/01.mp3")
        assert not storage.is_removable("/home/user/01.mp3")

    def test_enumeration_failure(self, monkeypatch):
        def broken(all=False):
            raise OSError("no mounts")

        monkeypatch.setattr(PARTITIONS, broken)

        with pytest.raises(StorageUnavailable):
            PsutilStorage()
