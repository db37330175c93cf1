"""
Data models for extraction candidates and results.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..document.tree import DocumentTree


@dataclass(slots=True, frozen=True)
class Candidate:
    """A subtree (or a synthetic container of several subtrees) proposed by a strategy."""

    nodes: tuple[int, ...]
    strategy: str
    container: bool = False
    score: float = 0.0
    text_length: int = 0
    word_count: int = 0

    def __post_init__(self) -> None:
        if not self.nodes:
            raise ValueError("Candidate must reference at least one node")

    @property
    def is_synthetic(self) -> bool:
        return self.container or len(self.nodes) > 1


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """Result of locating the main readable content of a document."""

    is_article: bool
    confidence: float
    title: str
    author: str
    publish_date: str
    main_content: DocumentTree
    word_count: int
    text: str = ""
    strategy: str | None = None
    url: str | None = None

    def __post_init__(self) -> None:
        """Validate the result."""
        if not (0.0 <= self.confidence <= 1.0):
            raise ValueError("Confidence must be between 0.0 and 1.0")
        if self.word_count < 0:
            raise ValueError("Word count must not be negative")

    @property
    def found(self) -> bool:
        return self.strategy is not None

    @classmethod
    def not_found(cls, url: str | None = None, title: str = "") -> ExtractionResult:
        return cls(
            is_article=False,
            confidence=0.0,
            title=title,
            author="",
            publish_date="",
            main_content=DocumentTree.empty(url=url),
            word_count=0,
            url=url,
        )
