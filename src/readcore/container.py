"""
Dependency injection container wiring configuration to ReadCore components.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Generic, Optional, TypeVar

import structlog

from readcore.analysis import ContentAnalyzer
from readcore.cache import ArtifactCache, ArtifactService, MemoryStore, SQLiteStore
from readcore.config import Config, find_config_file
from readcore.extractor import StrategyChain
from readcore.observability import configure_logging, set_enabled
from readcore.protocols import DurableStore, Summarizer

T = TypeVar("T")


class LazyInstance(Generic[T]):
    """Lazy-loaded instance with lifecycle management."""

    def __init__(self, factory: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._factory = factory
        self._args = args
        self._kwargs = kwargs
        self._instance: Optional[T] = None
        self._initialized = False

    def get(self) -> T:
        """Get or create the instance."""
        if not self._initialized:
            self._instance = self._factory(*self._args, **self._kwargs)
            self._initialized = True
        assert self._instance is not None
        return self._instance

    async def cleanup(self) -> None:
        """Close the instance if it owns resources."""
        close = getattr(self._instance, "close", None)
        if self._instance is not None and callable(close):
            result = close()
            if asyncio.iscoroutine(result):
                await result
        self._instance = None
        self._initialized = False


class DependencyContainer:
    """
    Builds and owns the extraction chain, durable store, artifact cache and
    artifact service for one configuration.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        config_path: Optional[Path] = None,
        summarizer: Optional[Summarizer] = None,
        store: Optional[DurableStore] = None,
    ) -> None:
        self.config_path = config_path
        self.config = config
        self.summarizer = summarizer
        self._store_override = store
        self.logger = structlog.get_logger(self.__class__.__name__)
        self._instances: Dict[str, LazyInstance[Any]] = {}
        self._instances_lock = asyncio.Lock()
        self.is_running = False

    async def initialize(self) -> None:
        """Load configuration, configure logging and metrics, and prepare instances."""
        if self.config is None:
            self.load_config()
        assert self.config is not None

        configure_logging(self.config.monitoring)
        set_enabled(self.config.monitoring.metrics_enabled)
        await self._create_instances()
        self.is_running = True

        self.logger.info(
            "Dependency container initialized",
            config_path=str(self.config_path) if self.config_path else "default",
            cache_backend=self.config.cache.backend,
        )

    def load_config(self) -> None:
        """Load the given config file, or one found in the working directory, else defaults."""
        if self.config_path is None:
            self.config_path = find_config_file()
        if self.config_path and self.config_path.exists():
            self.config = Config.from_yaml(self.config_path)
        else:
            self.config = Config()

    def _build_store(self) -> DurableStore:
        assert self.config is not None
        if self._store_override is not None:
            return self._store_override
        if self.config.cache.backend == "sqlite":
            return SQLiteStore(self.config.cache.db_path, wal_mode=self.config.cache.wal_mode)
        return MemoryStore()

    async def _create_instances(self) -> None:
        if self.config is None:
            raise RuntimeError("Configuration must be loaded before creating instances")

        await self._cleanup_instances()
        config = self.config
        store = LazyInstance(self._build_store)
        cache = LazyInstance(lambda: ArtifactCache(store.get(), config.cache))
        self._instances = {
            "chain": LazyInstance(StrategyChain, config.extraction),
            "analyzer": LazyInstance(ContentAnalyzer, config.analyzer),
            "store": store,
            "cache": cache,
        }
        if self.summarizer is not None:
            summarizer = self.summarizer
            self._instances["service"] = LazyInstance(
                lambda: ArtifactService(cache.get(), summarizer, config.cache)
            )

    async def reload_config(self) -> None:
        """Reload configuration and rebuild every component."""
        old_config = self.config
        self.load_config()
        async with self._instances_lock:
            await self._create_instances()
        self.logger.info("Configuration reloaded", changes_detected=old_config != self.config)

    async def _get(self, name: str) -> Any:
        async with self._instances_lock:
            if name not in self._instances:
                raise RuntimeError(f"'{name}' is not available; was the container initialized with its dependencies?")
            return self._instances[name].get()

    async def get_chain(self) -> StrategyChain:
        return await self._get("chain")  # type: ignore[no-any-return]

    async def get_analyzer(self) -> ContentAnalyzer:
        return await self._get("analyzer")  # type: ignore[no-any-return]

    async def get_store(self) -> DurableStore:
        return await self._get("store")  # type: ignore[no-any-return]

    async def get_cache(self) -> ArtifactCache:
        return await self._get("cache")  # type: ignore[no-any-return]

    async def get_service(self) -> ArtifactService:
        """Get the artifact service; requires a summarizer."""
        return await self._get("service")  # type: ignore[no-any-return]

    @asynccontextmanager
    async def lifecycle(self) -> AsyncIterator[DependencyContainer]:
        """Context manager for proper lifecycle management."""
        try:
            await self.initialize()
            yield self
        finally:
            await self.shutdown()

    async def _cleanup_instances(self) -> None:
        # Store last so the cache never outlives it
        for name in sorted(self._instances, key=lambda n: n == "store"):
            try:
                await self._instances[name].cleanup()
            except Exception as e:
                self.logger.error("Error cleaning up instance", instance=name, error=str(e))

    async def shutdown(self) -> None:
        self.is_running = False
        await self._cleanup_instances()
        self._instances = {}
        self.logger.info("Dependency container shutdown complete")
