"""
Media Art Cache

A shared on-disk cache of album and video artwork, keyed by normalized
artist and title names.

Features:
- Deterministic, normalization-tolerant cache filenames
- One physical file per album, shared by every track through links
- Art from embedded image buffers, sidecar copies or images next to the media
- Download requests for art that can't be found locally
- Sidecar copies on removable media
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Export main classes and functions
from .core.config_manager import get_config_manager, MediaArtConfig
from .core.errors import (
    MediaArtError,
    RequiredFieldMissing,
    ResourceNotFound,
    FilesystemOperationFailed,
    CodecFailure,
    StorageUnavailable,
    DownloadServiceUnavailable,
    OperationCancelled,
)
from .core.models import ArtAction, MediaArtType, ReconcileResult
from .core.normalizer import strip_invalid_entities
from .core.cancellation import CancellationToken
from .core.processor import MediaArtProcess

__all__ = [
    "__version__",
    "__license__",
    "MediaArtConfig",
    "get_config_manager",
    "MediaArtError",
    "RequiredFieldMissing",
    "ResourceNotFound",
    "FilesystemOperationFailed",
    "CodecFailure",
    "StorageUnavailable",
    "DownloadServiceUnavailable",
    "OperationCancelled",
    "ArtAction",
    "MediaArtType",
    "ReconcileResult",
    "strip_invalid_entities",
    "CancellationToken",
    "MediaArtProcess",
]
