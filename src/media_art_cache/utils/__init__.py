"""Utility functions for the media art cache."""

from .checksum import ChecksumResult, digest_of, is_buffer_jpeg, jpeg_checksum
from .decorators import handle_errors, track_performance

__all__ = [
    "ChecksumResult",
    "digest_of",
    "is_buffer_jpeg",
    "jpeg_checksum",
    "handle_errors",
    "track_performance",
]
