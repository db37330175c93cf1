"""
Unit tests for metadata extraction and confidence scoring.
"""

from __future__ import annotations

import pytest

from readcore.document import DocumentTree
from readcore.extractor import ArticleMetadata, ConfidenceCalculator
from readcore.extractor.metadata import extract_author, extract_publish_date, extract_title
from tests.helpers import main_html, paragraphs


@pytest.mark.unit
class TestMetadata:
    def test_sample_page(self, sample_tree: DocumentTree):
        """Test metadata read from a typical news page."""
        content = sample_tree.clone([sample_tree.select_first("article")])
        metadata = ArticleMetadata.from_page(sample_tree, content)

        assert metadata == ArticleMetadata(
            title="Test Article Title",
            author="Jane Writer",
            publish_date="2024-03-01",
        )

    def test_title_fallbacks(self):
        page = DocumentTree.from_html("<h1>Page heading</h1><div><h1>Inner</h1></div>")
        content = DocumentTree.from_html("<div><h1>Content heading</h1></div>")

        assert extract_title(page, content) == "Content heading"
        assert extract_title(page) == "Page heading"
        assert extract_title(DocumentTree.from_html("<title>Doc title</title><p>x</p>")) == "Doc title"
        assert extract_title(DocumentTree.from_html('<meta property="og:title" content="OG">')) == "OG"
        assert extract_title(DocumentTree.from_html("<p>nothing</p>")) == "Untitled Article"

    def test_author_fallbacks(self):
        assert extract_author(DocumentTree.from_html('<a rel="author">Ann</a><span class="byline">Bo</span>')) == "Ann"
        assert extract_author(DocumentTree.from_html('<meta name="author" content="Meta Author">')) == "Meta Author"
        assert extract_author(DocumentTree.from_html("<p>anonymous</p>")) == ""

    def test_publish_date_fallbacks(self):
        assert extract_publish_date(DocumentTree.from_html('<span class="date">Yesterday</span>')) == "Yesterday"
        assert extract_publish_date(DocumentTree.from_html("<time>Today</time>")) == ""
        page = DocumentTree.from_html('<meta property="article:published_time" content="2024-05-01T10:00:00Z">')
        assert extract_publish_date(page) == "2024-05-01T10:00:00Z"


@pytest.mark.unit
class TestConfidenceCalculator:
    """Confidence signals and article classification."""

    @staticmethod
    def _main_confidence(html: str) -> float:
        page = DocumentTree.from_html(html)
        main = page.select_first("main")
        return ConfidenceCalculator().calculate(page, [main], page.clone([main]))

    def test_main_content_signals(self):
        """Test the signal sum for a clean main element with five paragraphs."""
        # 600 words, 5 paragraphs, main context, dense, clean
        assert self._main_confidence(main_html(paragraphs(5, 120))) == pytest.approx(0.85)

    def test_headings_inside_content(self):
        assert self._main_confidence(main_html(paragraphs(5, 120), headings_inside=True)) == pytest.approx(0.95)

    def test_page_markers_and_clamp(self):
        html = main_html(paragraphs(5, 120)).replace(
            "<body>", '<body><span class="author">Ann</span><time>Today</time>'
        )
        assert self._main_confidence(html) == 1.0

    def test_boilerplate_inside_content(self):
        html = main_html(paragraphs(5, 120)).replace("</main>", '<div class="share">Share</div></main>')
        assert self._main_confidence(html) == pytest.approx(0.75)

    def test_semantic_context(self):
        page = DocumentTree.from_html("<article><div><p>a</p></div></article><main><p>b</p></main><p>c</p>")
        calculator = ConfidenceCalculator()
        in_article, in_main, outside = page.select("p")

        assert calculator.semantic_context(page, [in_article]) == "article"
        assert calculator.semantic_context(page, [page.select_first("main")]) == "main"
        assert calculator.semantic_context(page, [in_main]) == "main"
        assert calculator.semantic_context(page, [outside]) is None
        assert calculator.semantic_context(page, [outside, in_article]) == "article"

    @pytest.mark.parametrize(
        "word_count, confidence, expected",
        [(100, 0.61, True), (99, 0.9, False), (100, 0.6, False), (2000, 1.0, True)],
    )
    def test_is_article(self, word_count: int, confidence: float, expected: bool):
        assert ConfidenceCalculator().is_article(word_count, confidence) is expected
