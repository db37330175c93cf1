"""
Significance gate applied to strategy candidates.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from ..config.config import SignificanceConfig
from ..document.tree import DocumentTree
from .scorer import combined_text, count_in

logger = structlog.get_logger(__name__)

STRUCTURAL_SELECTOR = "p, div[data-selectable-paragraph], h1, h2, h3"
PLATFORM_MARKER_SELECTOR = "div[data-selectable-paragraph]"


class SignificanceValidator:
    """Decides whether a candidate carries enough text to be the main content."""

    def __init__(self, config: SignificanceConfig | None = None) -> None:
        self.config = config or SignificanceConfig()
        self.logger = logger.bind(component="SignificanceValidator")

    def is_significant(self, tree: DocumentTree, nodes: Sequence[int], *, container: bool = False) -> bool:
        if not nodes:
            return False
        c = self.config
        text = combined_text(tree, nodes)
        words = len(text.split())

        has_minimum_text = len(text) > c.min_text_length and words > c.min_words
        structural = count_in(tree, nodes, STRUCTURAL_SELECTOR, container=container)
        has_structure = structural > c.min_structural_elements and words > c.min_structural_words
        has_platform_markers = (
            count_in(tree, nodes, PLATFORM_MARKER_SELECTOR, container=container) > c.min_platform_markers
        )

        significant = has_minimum_text or has_structure or has_platform_markers
        self.logger.debug(
            "Significance check",
            text_length=len(text),
            word_count=words,
            structural=structural,
            minimum_text=has_minimum_text,
            platform_markers=has_platform_markers,
            significant=significant,
        )
        return significant
