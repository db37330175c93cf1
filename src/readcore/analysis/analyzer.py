"""
Prepares extracted article content for the summarizer.

Pipeline: raw text → cleaned paragraphs → validation → truncation and
structure markers → metadata (readability, content type, structure flags).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import structlog

from ..config.config import AnalyzerConfig
from ..document.tree import DocumentTree
from ..extractor.models import ExtractionResult

logger = structlog.get_logger(__name__)

REMOVE_SELECTOR = (
    "iframe, object, embed, nav, header, footer, aside, "
    ".ads, .advertisement, .social-share, .comments, .sidebar, .menu"
)
TEXT_ELEMENT_SELECTOR = "p, h1, h2, h3, h4, h5, h6, li, blockquote"
HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"

_BRACKETS = re.compile(r"\[.*?\]")
_BRACES = re.compile(r"\{.*?\}")
_TABLE_SEPARATOR = re.compile(r"\|\s*\|")
_DOUBLE_QUOTES = re.compile(r"[“”„]")
_SINGLE_QUOTES = re.compile(r"[‘’‚]")
_URL = re.compile(r"https?://\S+")
_EMAIL = re.compile(r"\S+@\S+\.\S+")
_WHITESPACE = re.compile(r"\s+")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_LETTERS = re.compile(r"[a-z]+")
_VOWEL_GROUPS = re.compile(r"[aeiouy]+")
_NUMBERED = re.compile(r"^\s*\d+\.\s")
_CAPITALIZED_PHRASE = re.compile(r"^[A-Z][^.!?]*$")

URL_CONTENT_TYPES = (
    (("/blog/", "/post/"), "blog"),
    (("/news/", "/article/"), "news"),
    (("/docs/", "/documentation/"), "documentation"),
    (("/tutorial/", "/guide/"), "tutorial"),
)
DOMAIN_CONTENT_TYPES = (
    ("wikipedia.org", "encyclopedia"),
    ("medium.com", "blog"),
    ("stackoverflow.com", "technical"),
)


@dataclass(slots=True)
class ValidationReport:
    """Quality checks of cleaned text; ``issues`` is empty when the text is usable."""

    is_valid: bool = False
    issues: List[str] = field(default_factory=list)
    word_count: int = 0
    avg_word_length: float = 0.0
    unique_word_ratio: float = 0.0
    sentence_count: int = 0
    avg_sentence_length: float = 0.0


@dataclass(slots=True)
class AnalysisResult:
    success: bool
    processed_content: str = ""
    word_count: int = 0
    sentence_count: int = 0
    character_count: int = 0
    readability_score: int = 0
    content_type: str = "unknown"
    has_headings: bool = False
    has_lists: bool = False
    has_blockquotes: bool = False
    domain: str = ""
    url: str = ""
    validation: ValidationReport = field(default_factory=ValidationReport)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "processed_content": self.processed_content,
            "metadata": {
                "word_count": self.word_count,
                "content_type": self.content_type,
                "readability_score": self.readability_score,
                "has_headings": self.has_headings,
            },
            "error": self.error,
        }


def clean_text(text: str) -> str:
    """Strip markup artifacts, URLs and e-mail addresses from one block of text."""
    cleaned = _WHITESPACE.sub(" ", text)
    cleaned = _BRACKETS.sub("", cleaned)
    cleaned = _BRACES.sub("", cleaned)
    cleaned = _TABLE_SEPARATOR.sub("", cleaned)
    cleaned = _DOUBLE_QUOTES.sub('"', cleaned)
    cleaned = _SINGLE_QUOTES.sub("'", cleaned)
    cleaned = cleaned.replace("…", "...")
    cleaned = _URL.sub("", cleaned)
    cleaned = _EMAIL.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def estimate_syllables(text: str) -> int:
    syllables = 0
    for word in _LETTERS.findall(text.lower()):
        count = len(_VOWEL_GROUPS.findall(word)) or 1
        if word.endswith("e"):
            count -= 1
        syllables += max(1, count)
    return syllables


def readability_score(word_count: int, sentence_count: int, text: str) -> int:
    """Simplified Flesch reading ease, clamped to 0..100."""
    if sentence_count == 0 or word_count == 0:
        return 0
    avg_sentence_length = word_count / sentence_count
    avg_syllables = estimate_syllables(text) / word_count
    score = 206.835 - 1.015 * avg_sentence_length - 84.6 * avg_syllables
    return max(0, min(100, round(score)))


class ContentAnalyzer:
    """
    Turns extracted content into summarizer input.

    ``analyze`` never raises; failures come back as ``success=False``.
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or AnalyzerConfig()
        self.logger = logger.bind(component="ContentAnalyzer")

    def analyze(self, result: ExtractionResult) -> AnalysisResult:
        try:
            content = result.main_content
            if content.is_empty:
                raise ValueError("Extraction result has no content")

            paragraphs = self.extract_paragraphs(content)
            cleaned = [p for p in (clean_text(p) for p in paragraphs) if p]
            cleaned_text = "\n\n".join(cleaned)
            flat_text = " ".join(cleaned)

            validation = self.validate(flat_text)
            processed = self.prepare(cleaned_text)
            analysis = self._metadata(content, flat_text, result.url or "")
            analysis.processed_content = processed
            analysis.validation = validation

            self.logger.info(
                "Content analysis completed",
                paragraphs=len(cleaned),
                cleaned_length=len(cleaned_text),
                processed_length=len(processed),
                is_valid=validation.is_valid,
                readability_score=analysis.readability_score,
            )
            return analysis
        except Exception as e:
            self.logger.error("Content analysis failed", error=str(e), error_type=type(e).__name__)
            return AnalysisResult(success=False, error=str(e) or type(e).__name__)

    def extract_paragraphs(self, content: DocumentTree) -> List[str]:
        """Text blocks of the content, leaving out boilerplate regions."""
        excluded = set(content.select(REMOVE_SELECTOR))

        def kept(index: int) -> bool:
            return index not in excluded and not any(a in excluded for a in content.ancestors(index))

        blocks = [i for i in content.select(TEXT_ELEMENT_SELECTOR) if kept(i)]
        if blocks:
            return [text for text in (content.text_of(i) for i in blocks) if len(text) > 10]

        root = content.document_element
        if root is None or not kept(root):
            return []
        if not excluded:
            text = content.text_of(root)
            return [text] if text else []
        return [content.text_of(c) for c in content.node(root).children if kept(c) and content.text_of(c)]

    def validate(self, text: str) -> ValidationReport:
        c = self.config
        report = ValidationReport()

        if len(text) < c.min_content_length:
            report.issues.append(f"Content too short ({len(text)} < {c.min_content_length} chars)")
        if len(text) > c.max_content_length * 2:
            report.issues.append(f"Content very long ({len(text)} chars) - will be truncated")

        words = [w for w in text.split() if len(w) > 2]
        report.word_count = len(words)
        if words:
            report.avg_word_length = sum(len(w) for w in words) / len(words)
            report.unique_word_ratio = len({w.lower() for w in words}) / len(words)
        if len(words) < c.min_words:
            report.issues.append(f"Insufficient word count ({len(words)} < {c.min_words} words)")
        if report.unique_word_ratio < c.min_unique_word_ratio:
            report.issues.append(f"Content appears repetitive ({round(report.unique_word_ratio * 100)}% unique words)")

        sentences = [s for s in _SENTENCE_SPLIT.split(text) if len(s.strip()) > 10]
        report.sentence_count = len(sentences)
        if sentences:
            report.avg_sentence_length = len(text) / len(sentences)
        if len(sentences) < c.min_sentences:
            report.issues.append(f"Too few sentences ({len(sentences)} < {c.min_sentences})")

        report.is_valid = not report.issues
        return report

    def truncate(self, text: str) -> str:
        """Cut overly long text, preferring a sentence or paragraph boundary."""
        limit = self.config.max_content_length
        if len(text) <= limit:
            return text
        cut_point = max(text.rfind(".", 0, limit + 1), text.rfind("\n\n", 0, limit + 1))
        if cut_point > limit * self.config.truncate_boundary_ratio:
            truncated = text[: cut_point + 1]
        else:
            truncated = text[:limit] + "..."
        self.logger.info("Content truncated", original_length=len(text), truncated_length=len(truncated))
        return truncated

    def prepare(self, text: str) -> str:
        prepared = self.truncate(text)
        if self.config.add_structure_markers:
            prepared = self.add_structure_markers(prepared)
        return prepared

    def add_structure_markers(self, text: str) -> str:
        paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
        if len(paragraphs) <= 1:
            return text

        marked = []
        last = len(paragraphs) - 1
        for position, paragraph in enumerate(paragraphs):
            if len(paragraph) < 20:
                marked.append(paragraph)
            elif (
                len(paragraph) < 100
                and "." not in paragraph
                and (paragraph == paragraph.upper() or _CAPITALIZED_PHRASE.match(paragraph))
            ):
                marked.append(f"[SECTION_HEADER] {paragraph}")
            elif position == 0:
                marked.append(f"[INTRODUCTION] {paragraph}")
            elif position == last:
                marked.append(f"[CONCLUSION] {paragraph}")
            elif "definition" in paragraph.lower() or "means" in paragraph or _NUMBERED.match(paragraph):
                marked.append(f"[KEY_CONCEPT] {paragraph}")
            else:
                marked.append(f"[CONTENT] {paragraph}")
        return "\n\n".join(marked)

    def content_type(self, content: DocumentTree, text: str, url: str) -> str:
        lowered = url.lower()
        for needles, kind in URL_CONTENT_TYPES:
            if any(needle in lowered for needle in needles):
                return kind
        domain = (urlparse(url).hostname or "").lower()
        for needle, kind in DOMAIN_CONTENT_TYPES:
            if needle in domain:
                return kind
        if content.select_first("code, pre") is not None:
            return "technical"
        if content.count(HEADING_SELECTOR) > 3 and len(text) > 2000:
            return "long-form"
        return "article"

    def _metadata(self, content: DocumentTree, text: str, url: str) -> AnalysisResult:
        words = text.split()
        sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
        return AnalysisResult(
            success=True,
            word_count=len(words),
            sentence_count=len(sentences),
            character_count=len(text),
            readability_score=readability_score(len(words), len(sentences), text),
            content_type=self.content_type(content, text, url),
            has_headings=content.select_first(HEADING_SELECTOR) is not None,
            has_lists=content.select_first("ul, ol, li") is not None,
            has_blockquotes=content.select_first("blockquote") is not None,
            domain=(urlparse(url).hostname or "") if url else "",
            url=url,
        )
