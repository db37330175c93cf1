"""
Shared fixtures for ReadCore tests.
"""

import asyncio
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from readcore.cache import ArtifactCache, MemoryStore
from readcore.config import CacheConfig, Config, ExtractionSettings
from readcore.document import DocumentTree
from readcore.observability import set_enabled
from tests.helpers.documents import article_html

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


@pytest_asyncio.fixture(autouse=True)
async def cleanup_tasks() -> AsyncGenerator[None, None]:
    """Cancel any task a test leaves behind."""
    tasks_before = asyncio.all_tasks()
    yield
    new_tasks = asyncio.all_tasks() - tasks_before
    for task in new_tasks:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


@pytest.fixture(autouse=True)
def metrics_enabled():
    set_enabled(True)
    yield
    set_enabled(True)


# ============================================================================
# Document Fixtures
# ============================================================================


@pytest.fixture
def sample_html() -> str:
    """A small news-style page with navigation, an article and a footer."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Test Article</title>
        <meta name="author" content="Meta Author">
        <meta property="og:title" content="OG Title">
        <script>var tracking = "should never be read";</script>
        <style>.hidden { display: none; }</style>
    </head>
    <body>
        <nav class="nav"><a href="/">Home</a> <a href="/news">News</a></nav>
        <article>
            <h1>Test Article Title</h1>
            <span class="byline">Jane Writer</span>
            <time datetime="2024-03-01">March 1, 2024</time>
            <p>This is a sample paragraph with <strong>bold text</strong> and
               <a href="https://example.com">a link</a>.</p>
            <!-- a comment that is not content -->
            <p>Second paragraph<br>after a line break.</p>
        </article>
        <footer class="footer">Copyright</footer>
    </body>
    </html>
    """


@pytest.fixture
def sample_tree(sample_html: str) -> DocumentTree:
    return DocumentTree.from_html(sample_html, url="https://news.example.com/story")


@pytest.fixture
def article_document() -> DocumentTree:
    return DocumentTree.from_html(article_html(), url="https://blog.example.com/post/field-notes")


@pytest.fixture
def empty_document() -> DocumentTree:
    return DocumentTree.from_html("")


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def extraction_settings() -> ExtractionSettings:
    return ExtractionSettings()


@pytest.fixture
def test_config(tmp_path) -> Config:
    config = Config()
    config.cache.db_path = tmp_path / "artifacts.db"
    config.monitoring.log_level = "WARNING"
    return config


# ============================================================================
# Cache Fixtures
# ============================================================================


class FakeClock:
    """Manually advanced clock for TTL and eviction-order tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def artifact_cache(memory_store: MemoryStore, clock: FakeClock) -> ArtifactCache:
    return ArtifactCache(memory_store, CacheConfig(), clock=clock)
