"""Core components for the media art cache."""

from .config_manager import get_config_manager, MediaArtConfig
from .models import ArtAction, EntityKey, MatchTier, MediaArtType, ReconcileResult
from .normalizer import strip_invalid_entities
from .keys import derive_key
from .paths import PathResolver
from .cache_store import CacheStore, LinkStrategy
from .candidates import CandidateClassifier
from .state import EngineState
from .reconciler import ReconciliationEngine
from .processor import MediaArtProcess

__all__ = [
    "MediaArtConfig",
    "get_config_manager",
    "ArtAction",
    "EntityKey",
    "MatchTier",
    "MediaArtType",
    "ReconcileResult",
    "strip_invalid_entities",
    "derive_key",
    "PathResolver",
    "CacheStore",
    "LinkStrategy",
    "CandidateClassifier",
    "EngineState",
    "ReconciliationEngine",
    "MediaArtProcess",
]
