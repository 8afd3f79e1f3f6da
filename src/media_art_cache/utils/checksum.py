"""
Content checksums for duplicate artwork detection.

Digests always cover the whole byte stream. The JPEG-aware variant peeks at
the first three bytes before committing to a full read.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..core.constants import (
    CHECKSUM_CHUNK_SIZE,
    DIGEST_ALGORITHM,
    JPEG_MIME_TYPES,
    JPEG_SOI_MARKER,
)

logger = logging.getLogger(__name__)


@dataclass
class ChecksumResult:
    """Result of a JPEG-aware checksum read"""
    readable: bool
    is_jpeg: bool = False
    digest: Optional[str] = None


def _new_hasher(algorithm: str):
    if algorithm not in hashlib.algorithms_available:
        raise ValueError(f"Unsupported algorithm: {algorithm}")
    return hashlib.new(algorithm)


def digest_of(source: Union[str, Path, bytes, bytearray, memoryview],
              algorithm: str = DIGEST_ALGORITHM) -> Optional[str]:
    """
    Hex digest of a file or an in-memory buffer.

    Returns None when ``source`` is a path that cannot be read.
    """
    hasher = _new_hasher(algorithm)

    if isinstance(source, (bytes, bytearray, memoryview)):
        hasher.update(source)
        return hasher.hexdigest()

    try:
        with open(source, 'rb') as f:
            while chunk := f.read(CHECKSUM_CHUNK_SIZE):
                hasher.update(chunk)
    except OSError as e:
        logger.debug(f"{source} isn't readable while calculating {algorithm} checksum: {e}")
        return None

    return hasher.hexdigest()


def jpeg_checksum(path: Union[str, Path], algorithm: str = DIGEST_ALGORITHM) -> ChecksumResult:
    """
    Checksum a file only if it starts with the JPEG start-of-image marker.

    Files shorter than three bytes, or with any other header, are reported
    as readable but not JPEG and are not read any further.
    """
    hasher = _new_hasher(algorithm)

    try:
        with open(path, 'rb') as f:
            header = f.read(len(JPEG_SOI_MARKER))
            if len(header) < len(JPEG_SOI_MARKER) or header != JPEG_SOI_MARKER:
                return ChecksumResult(readable=True, is_jpeg=False)

            hasher.update(header)
            while chunk := f.read(CHECKSUM_CHUNK_SIZE):
                hasher.update(chunk)
    except OSError as e:
        logger.debug(f"{path} isn't readable while calculating {algorithm} checksum: {e}")
        return ChecksumResult(readable=False)

    return ChecksumResult(readable=True, is_jpeg=True, digest=hasher.hexdigest())


def is_buffer_jpeg(mime: Optional[str], data: Optional[bytes]) -> bool:
    """True when the buffer is declared or detected as JPEG"""
    if data is None or len(data) < len(JPEG_SOI_MARKER):
        return False

    if mime in JPEG_MIME_TYPES:
        return True

    return bytes(data[:3]) == JPEG_SOI_MARKER
