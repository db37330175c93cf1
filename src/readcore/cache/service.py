"""
Cache-consulting layer around the external summarizer.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional

import structlog

from ..config.config import CacheConfig
from ..exceptions import SummarizerError
from ..extractor.models import ExtractionResult
from ..observability.logging import request_context
from ..observability.metrics import increment
from ..protocols import Summarizer
from .artifact_cache import ArtifactCache
from .fingerprint import fingerprint

logger = structlog.get_logger(__name__)


class ArtifactService:
    """
    Returns the artifact for an extraction, generating it only on a cache miss.

    Concurrent requests for the same text and settings share one generation.
    Nothing is cached when generation fails or times out.
    """

    def __init__(
        self,
        cache: ArtifactCache,
        summarizer: Summarizer,
        config: Optional[CacheConfig] = None,
    ) -> None:
        self.cache = cache
        self.summarizer = summarizer
        self.config = config or cache.config
        self.logger = logger.bind(component="ArtifactService")

    async def get_or_generate(self, result: ExtractionResult, settings: Mapping[str, Any]) -> Any:
        """
        Return the cached artifact for ``result`` or generate and cache it.

        Args:
            result: Extraction whose text the artifact is derived from
            settings: Summarizer settings; only the artifact-relevant subset forms the key

        Raises:
            ValueError: if the extraction carries no text
            SummarizerError: if generation fails or times out
        """
        text = result.text or result.main_content.text
        if not text:
            raise ValueError("Extraction result has no text to summarize")
        return await self.get_or_generate_text(text, settings)

    async def get_or_generate_text(self, text: str, settings: Mapping[str, Any]) -> Any:
        content_fingerprint = fingerprint(text)
        with request_context(fingerprint=content_fingerprint):
            return await self._get_or_generate(text, content_fingerprint, settings)

    async def _get_or_generate(self, text: str, content_fingerprint: str, settings: Mapping[str, Any]) -> Any:
        key_settings = self.cache.settings_key(settings)
        cache_key = self.cache.entry_key(content_fingerprint, key_settings)

        cached = await self.cache.get(content_fingerprint, key_settings)
        if cached is not None:
            self.logger.debug("Artifact served from cache", fingerprint=content_fingerprint)
            return cached

        # Single flight per key: a second caller waits and then finds the fresh entry
        async with self.cache.locked(f"generate:{cache_key}"):
            cached = await self.cache.get(content_fingerprint, key_settings)
            if cached is not None:
                return cached

            self.logger.info("Generating artifact", fingerprint=content_fingerprint, text_length=len(text))
            try:
                payload = await asyncio.wait_for(
                    self.summarizer.generate(text, settings),
                    timeout=self.config.summarizer_timeout_seconds,
                )
            except asyncio.TimeoutError as e:
                increment("summarizer_calls", labels={"outcome": "timeout"})
                self.logger.warning(
                    "Summarizer timed out",
                    fingerprint=content_fingerprint,
                    timeout=self.config.summarizer_timeout_seconds,
                )
                raise SummarizerError(
                    f"Summarizer timed out after {self.config.summarizer_timeout_seconds}s"
                ) from e
            except asyncio.CancelledError:
                increment("summarizer_calls", labels={"outcome": "cancelled"})
                raise
            except Exception as e:
                increment("summarizer_calls", labels={"outcome": "error"})
                self.logger.error(
                    "Summarizer failed",
                    fingerprint=content_fingerprint,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise SummarizerError(f"Summarizer failed: {e}") from e

            if payload is None:
                increment("summarizer_calls", labels={"outcome": "empty"})
                raise SummarizerError("Summarizer returned no artifact")

            increment("summarizer_calls", labels={"outcome": "success"})
            await self.cache.set(content_fingerprint, key_settings, payload)
            return payload
