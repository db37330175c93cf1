"""
Content-addressed artifact caching.
"""

from .artifact_cache import ArtifactCache, CacheEntry, settings_key
from .fingerprint import content_hash, fingerprint
from .service import ArtifactService
from .stores import MemoryStore, SQLiteStore

__all__ = [
    "ArtifactCache",
    "ArtifactService",
    "CacheEntry",
    "MemoryStore",
    "SQLiteStore",
    "content_hash",
    "fingerprint",
    "settings_key",
]
