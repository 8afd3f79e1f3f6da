"""
Cache key derivation.

Every present field goes through normalization, NFKD decomposition and a
second lowercase pass before being hashed with MD5.
"""

import hashlib
import unicodedata
from typing import Optional

from .constants import SPACE_DIGEST
from .models import EntityKey
from .normalizer import strip_invalid_entities


def field_digest(value: str) -> str:
    """MD5 hex digest of a single metadata field in its canonical form"""
    stripped = strip_invalid_entities(value)
    decomposed = unicodedata.normalize("NFKD", stripped)
    return hashlib.md5(decomposed.lower().encode("utf-8")).hexdigest()


def derive_key(artist: Optional[str], title: Optional[str]) -> EntityKey:
    """
    Compute the EntityKey for an artist/title pair.

    An absent title is replaced by the space sentinel. An absent artist puts
    the title digest in the first slot and the sentinel in the second.

    Raises:
        ValueError: if both artist and title are None
    """
    if artist is None and title is None:
        raise ValueError("At least one of artist or title is required")

    if artist is not None:
        first = field_digest(artist)
        second = field_digest(title) if title is not None else SPACE_DIGEST
    else:
        first = field_digest(title)
        second = SPACE_DIGEST

    return EntityKey(first, second)


def album_key(title: str) -> EntityKey:
    """Key of the title-only artifact shared across an album"""
    return derive_key(None, title)
