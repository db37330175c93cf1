"""
ReadCore - Main-content extraction and artifact caching for reading assistants.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .cache import ArtifactCache, ArtifactService
from .config import Config
from .container import DependencyContainer
from .document import DocumentTree
from .extractor import ExtractionResult, StrategyChain

__all__ = [
    "__version__",
    "ArtifactCache",
    "ArtifactService",
    "Config",
    "DependencyContainer",
    "DocumentTree",
    "ExtractionResult",
    "StrategyChain",
]
