"""
Last-resort assembly of scattered text blocks.
"""

from __future__ import annotations

import re
from typing import List, Optional

import structlog

from ..config.config import EMERGENCY, EmergencyConfig
from ..document.tree import DocumentTree
from ..exceptions import EmergencyAssemblyFailure
from .models import Candidate
from .scorer import LINK_SELECTOR, combined_text

logger = structlog.get_logger(__name__)

TEXT_BLOCK_SELECTOR = "p, div, span, section, article"


class EmergencyAssembler:
    """
    Stitches the wordiest readable blocks of a page into one container.

    Blocks are taken as they are; a block and one of its ancestors can both be
    selected, in which case their text appears twice.
    """

    name = EMERGENCY

    def __init__(self, config: EmergencyConfig | None = None) -> None:
        self.config = config or EmergencyConfig()
        self._deny = re.compile(self.config.deny_pattern)
        self.logger = logger.bind(component="EmergencyAssembler")

    def _eligible(self, tree: DocumentTree, index: int) -> bool:
        c = self.config
        text = tree.text_of(index)
        if len(text) < c.min_element_text_length:
            return False
        if self._deny.search(tree.node(index).class_name.lower()):
            return False
        links = tree.count(LINK_SELECTOR, index)
        words = len(text.split())
        if links > 0 and words / links < c.min_words_per_link:
            return False
        return words > c.min_element_words

    def try_extract(self, tree: DocumentTree) -> Optional[Candidate]:
        """
        Build a synthetic container from the best text blocks.

        Returns:
            ``None`` when the page has no eligible block at all.

        Raises:
            EmergencyAssemblyFailure: if the selected blocks hold too few words.
        """
        blocks: List[tuple[int, int]] = [
            (index, tree.word_count(index))
            for index in tree.select(TEXT_BLOCK_SELECTOR)
            if self._eligible(tree, index)
        ]
        self.logger.debug("Collected emergency blocks", count=len(blocks))
        if not blocks:
            return None

        # sorted() is stable, so equal word counts keep document order
        selected = sorted(blocks, key=lambda block: -block[1])[: self.config.max_elements]
        nodes = tuple(index for index, _ in selected)
        # Word count of the assembled container, not the sum of its blocks
        text = combined_text(tree, nodes)
        total_words = len(text.split())
        if total_words <= self.config.min_total_words:
            raise EmergencyAssemblyFailure(
                f"Only {total_words} words in {len(selected)} blocks (need more than {self.config.min_total_words})"
            )

        self.logger.info("Emergency container assembled", blocks=len(nodes), words=total_words)
        return Candidate(
            nodes=nodes,
            strategy=self.name,
            container=True,
            text_length=len(text),
            word_count=total_words,
        )
