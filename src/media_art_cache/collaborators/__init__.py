"""
Replaceable collaborators of the reconciliation engine: the image codec,
the download requester and removable storage detection.
"""

from .image_codec import ImageCodec, PillowImageCodec
from .download import DownloadRequester, NullDownloadRequester, DBusDownloadRequester
from .storage import StorageEnumerator, StorageType, StaticStorage, PsutilStorage

__all__ = [
    'ImageCodec',
    'PillowImageCodec',
    'DownloadRequester',
    'NullDownloadRequester',
    'DBusDownloadRequester',
    'StorageEnumerator',
    'StorageType',
    'StaticStorage',
    'PsutilStorage',
]
