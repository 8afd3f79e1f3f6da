"""
Data model for the media art cache: art types, entity keys, match tiers
and reconciliation results.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from .constants import ARTIFACT_EXTENSION, DEFAULT_PREFIX
from .errors import MediaArtError


class MediaArtType(Enum):
    """Kind of media the art belongs to; the value is the filename prefix"""
    NONE = "invalid"
    ALBUM = "album"
    VIDEO = "video"

    @property
    def prefix(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "MediaArtType":
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown media art type: {name}") from None


def require_valid_type(art_type: MediaArtType) -> None:
    """Reject NONE and anything that is not a MediaArtType"""
    if not isinstance(art_type, MediaArtType) or art_type is MediaArtType.NONE:
        raise ValueError(f"Invalid media art type: {art_type!r}")


@dataclass(frozen=True)
class EntityKey:
    """
    Derived identity of one cache artifact.

    The two digests are stored in filename-slot order. When the artist is
    absent the title digest occupies the first slot and the space sentinel
    the second, so ``artist_digest`` then holds the title digest. This
    layout is a fixed on-disk contract.
    """
    artist_digest: str
    title_digest: str

    def filename(self, prefix: Optional[str] = None) -> str:
        return f"{prefix or DEFAULT_PREFIX}-{self.artist_digest}-{self.title_digest}{ARTIFACT_EXTENSION}"


class MatchTier(Enum):
    """Relevance of a candidate image, in descending preference"""
    EXACT = 0
    EXACT_SMALL = 1
    SAME_DIRECTORY = 2


class ArtAction(Enum):
    """What the engine did for a request"""
    WROTE = "wrote"
    LINKED = "linked"
    COPIED = "copied"
    CONVERTED = "converted"
    COPIED_FROM_SIDECAR = "copied_from_sidecar"
    UP_TO_DATE = "up_to_date"
    MEMOIZED = "memoized"
    NO_CANDIDATE = "no_candidate"
    DOWNLOAD_REQUESTED = "download_requested"
    FAILED = "failed"


@dataclass
class ReconcileResult:
    """Outcome of an engine call; ``error`` is set whenever ``success`` is False"""
    success: bool
    action: ArtAction
    path: Optional[Path] = None
    error: Optional[MediaArtError] = None

    @classmethod
    def ok(cls, action: ArtAction, path: Optional[Path] = None) -> "ReconcileResult":
        return cls(True, action, path)

    @classmethod
    def failed(cls, error: MediaArtError, path: Optional[Path] = None,
               action: ArtAction = ArtAction.FAILED) -> "ReconcileResult":
        return cls(False, action, path, error)

    def __bool__(self) -> bool:
        return self.success
