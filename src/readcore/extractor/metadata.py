"""
Article metadata (title, author, publish date) and detection confidence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from ..config.config import ConfidenceWeights
from ..document.tree import DocumentTree

logger = structlog.get_logger(__name__)

DEFAULT_TITLE = "Untitled Article"

AUTHOR_SELECTORS = (
    '[rel="author"]',
    ".author",
    ".byline",
    ".writer",
    '[itemprop="author"]',
    ".post-author",
    ".article-author",
)

DATE_SELECTORS = (
    "time[datetime]",
    ".date",
    ".published",
    ".publish-date",
    '[itemprop="datePublished"]',
    ".post-date",
    ".article-date",
)

DATE_MARKER_SELECTOR = 'time, .date, [itemprop="datePublished"]'
AUTHOR_MARKER_SELECTOR = '[rel="author"], .author, .byline'
BOILERPLATE_SELECTOR = "nav, aside, footer, form, .nav, .menu, .sidebar, .ad, .ads, .advertisement, .sponsored, .social, .share"


def _meta_content(tree: DocumentTree, selector: str) -> str:
    index = tree.select_first(selector)
    if index is None:
        return ""
    return (tree.node(index).get("content") or "").strip()


def extract_title(page: DocumentTree, content: Optional[DocumentTree] = None) -> str:
    title = ""
    if content is not None:
        h1 = content.select_first("h1")
        if h1 is not None:
            title = content.text_of(h1)
    if not title:
        h1 = page.select_first("h1")
        if h1 is not None:
            title = page.text_of(h1)
    if not title:
        tag = page.select_first("title")
        if tag is not None:
            title = page.text_of(tag)
    if not title:
        title = _meta_content(page, 'meta[property="og:title"]')
    return title or DEFAULT_TITLE


def extract_author(page: DocumentTree) -> str:
    for selector in AUTHOR_SELECTORS:
        index = page.select_first(selector)
        if index is not None:
            return page.text_of(index)
    return _meta_content(page, 'meta[name="author"]')


def extract_publish_date(page: DocumentTree) -> str:
    for selector in DATE_SELECTORS:
        index = page.select_first(selector)
        if index is not None:
            return (page.node(index).get("datetime") or "").strip() or page.text_of(index)
    return _meta_content(page, 'meta[property="article:published_time"]')


@dataclass(slots=True, frozen=True)
class ArticleMetadata:
    title: str
    author: str
    publish_date: str

    @classmethod
    def from_page(cls, page: DocumentTree, content: Optional[DocumentTree] = None) -> ArticleMetadata:
        return cls(
            title=extract_title(page, content),
            author=extract_author(page),
            publish_date=extract_publish_date(page),
        )


class ConfidenceCalculator:
    """
    Estimates how likely the extracted content is a real article.

    Content-level signals are read from the detached clone; page-level signals
    (semantic context, date and author markers) from the source document.
    """

    def __init__(self, weights: ConfidenceWeights | None = None) -> None:
        self.weights = weights or ConfidenceWeights()

    def semantic_context(self, page: DocumentTree, nodes: Sequence[int]) -> Optional[str]:
        """Return ``"article"`` or ``"main"`` when the content is, or sits inside, such an element."""
        tags = set()
        for index in nodes:
            tags.add(page.node(index).tag)
            tags.update(page.node(ancestor).tag for ancestor in page.ancestors(index))
        if "article" in tags:
            return "article"
        if "main" in tags:
            return "main"
        return None

    def calculate(self, page: DocumentTree, nodes: Sequence[int], content: DocumentTree) -> float:
        w = self.weights
        words = len(content.text.split())
        confidence = 0.0

        for min_words, weight in w.word_tiers:
            if words >= min_words:
                confidence += weight
                break

        paragraphs = content.count("p")
        if paragraphs > w.many_paragraphs:
            confidence += w.many_paragraphs_weight
        elif paragraphs > w.some_paragraphs:
            confidence += w.some_paragraphs_weight

        context = self.semantic_context(page, nodes)
        if context == "article":
            confidence += w.article_context_weight
        elif context == "main":
            confidence += w.main_context_weight

        if content.select_first("h1, h2, h3") is not None:
            confidence += w.heading_weight

        root = content.document_element
        if root is not None:
            density = content.text_length(root) / max(content.markup_length(root), 1)
            if density > w.density_threshold:
                confidence += w.density_weight

        if content.select_first(BOILERPLATE_SELECTOR) is None:
            confidence += w.clean_content_weight

        if page.select_first(DATE_MARKER_SELECTOR) is not None:
            confidence += w.date_marker_weight
        if page.select_first(AUTHOR_MARKER_SELECTOR) is not None:
            confidence += w.author_marker_weight

        return min(confidence, 1.0)

    def is_article(self, word_count: int, confidence: float) -> bool:
        return word_count >= self.weights.article_min_words and confidence > self.weights.article_min_confidence
