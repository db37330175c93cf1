"""
Integration tests for extraction followed by cached artifact generation.
"""

from __future__ import annotations

from typing import Any, List, Mapping

import pytest

from readcore.analysis import ContentAnalyzer
from readcore.cache import ArtifactCache, ArtifactService, SQLiteStore
from readcore.config import CacheConfig
from readcore.document import DocumentTree
from readcore.extractor import StrategyChain
from tests.helpers import article_html

SETTINGS = {"summary_length": "short", "language": "en", "theme": "dark"}


class CountingSummarizer:
    def __init__(self) -> None:
        self.texts: List[str] = []

    async def generate(self, text: str, settings: Mapping[str, Any]) -> Any:
        self.texts.append(text)
        return {"summary": f"{len(text.split())} words", "length": settings["summary_length"]}


@pytest.mark.integration
class TestArtifactFlow:
    async def test_reformatted_page_reuses_artifact(self, artifact_cache: ArtifactCache):
        """Test that the same article with different markup layout hits the cache."""
        summarizer = CountingSummarizer()
        service = ArtifactService(artifact_cache, summarizer)
        chain = StrategyChain()

        compact = chain.extract(DocumentTree.from_html(article_html()))
        spaced = chain.extract(DocumentTree.from_html(article_html().replace("<p>", "\n    <p>\n      ")))

        first = await service.get_or_generate(compact, SETTINGS)
        second = await service.get_or_generate(spaced, SETTINGS)

        assert first == second == {"summary": "162 words", "length": "short"}
        assert len(summarizer.texts) == 1

    async def test_expired_artifact_is_regenerated(self, artifact_cache: ArtifactCache, clock):
        summarizer = CountingSummarizer()
        service = ArtifactService(artifact_cache, summarizer)
        result = StrategyChain().extract(DocumentTree.from_html(article_html()))

        await service.get_or_generate(result, SETTINGS)
        clock.advance(24 * 60 * 60 + 1)
        await service.get_or_generate(result, SETTINGS)

        assert len(summarizer.texts) == 2

    async def test_prepared_text_through_sqlite(self, tmp_path):
        """Test analyzer output as summarizer input, cached in SQLite across cache instances."""
        store = SQLiteStore(tmp_path / "artifacts.db")
        summarizer = CountingSummarizer()
        try:
            result = StrategyChain().extract(DocumentTree.from_html(article_html(paragraph_count=3)))
            analysis = ContentAnalyzer().analyze(result)
            assert analysis.success
            assert analysis.processed_content.startswith("Field Notes\n\n[CONTENT] ")

            first = ArtifactService(ArtifactCache(store, CacheConfig()), summarizer)
            await first.get_or_generate_text(analysis.processed_content, SETTINGS)

            second = ArtifactService(ArtifactCache(store, CacheConfig()), summarizer)
            await second.get_or_generate_text(analysis.processed_content, SETTINGS)

            assert summarizer.texts == [analysis.processed_content]
        finally:
            await store.close()
