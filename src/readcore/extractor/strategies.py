"""
Content-location strategies, in the order the chain tries them.

Every strategy follows the same contract: return a :class:`Candidate` that
passed its acceptance check, return ``None`` when nothing applicable was found,
or raise :class:`ValidationFailure` when candidates were found but every one of
them was rejected by the significance gate.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

import structlog

from ..config.config import (
    AGGRESSIVE_DOMAIN,
    CLASS_ID_PATTERNS,
    HEURISTIC_SCORING,
    SEMANTIC_TAGS,
    SITE_SPECIFIC,
    ExtractionSettings,
)
from ..document.tree import DocumentTree
from ..exceptions import ValidationFailure
from .models import Candidate
from .scorer import CandidateScorer, combined_text
from .validator import SignificanceValidator

logger = structlog.get_logger(__name__)

SECTION_TAGS = frozenset({"article", "main"})


def aggregate_matches(tree: DocumentTree, matches: Sequence[int], min_text: int) -> tuple[list[int], int]:
    """
    Collect matches whose text is longer than ``min_text``.

    Matches nested inside an already collected match are skipped so the
    aggregated text never repeats itself.
    """
    kept: List[int] = []
    total = 0
    for index in matches:
        if kept and tree.is_descendant(index, kept[-1]):
            continue
        length = tree.text_length(index)
        if length > min_text:
            kept.append(index)
            total += length
    return kept, total


def enclosing_section(tree: DocumentTree, nodes: Sequence[int]) -> Optional[int]:
    """Nearest ``<article>`` or ``<main>`` that contains every one of ``nodes``."""
    if not nodes:
        return None
    for ancestor in tree.ancestors(nodes[0]):
        if tree.node(ancestor).tag not in SECTION_TAGS:
            continue
        if all(tree.is_descendant(index, ancestor) for index in nodes[1:]):
            return ancestor
    return None


class BaseStrategy:
    """Shared plumbing for the built-in strategies."""

    name: str = ""

    def __init__(self, settings: ExtractionSettings, validator: SignificanceValidator | None = None) -> None:
        self.settings = settings
        self.validator = validator or SignificanceValidator(settings.significance)
        self.logger = logger.bind(component=type(self).__name__, strategy=self.name)

    def _candidate(self, tree: DocumentTree, nodes: Sequence[int], *, container: bool = False, score: float = 0.0) -> Candidate:
        text = combined_text(tree, nodes)
        return Candidate(
            nodes=tuple(nodes),
            strategy=self.name,
            container=container,
            score=score,
            text_length=len(text),
            word_count=len(text.split()),
        )

    def _gate(self, tree: DocumentTree, candidate: Candidate, rejected: List[Candidate]) -> bool:
        if self.validator.is_significant(tree, candidate.nodes, container=candidate.container):
            return True
        rejected.append(candidate)
        return False

    def _rejected(self, rejected: List[Candidate]) -> None:
        """Raise for the last rejected candidate, if there was one."""
        if rejected:
            last = rejected[-1]
            raise ValidationFailure(self.name, last.text_length, last.word_count)


class SiteSpecificSelectorsStrategy(BaseStrategy):
    """
    Aggregates content blocks that follow well-known publishing-platform conventions.

    When every aggregated block sits inside one significant ``<article>`` or
    ``<main>``, that element is returned instead, so headings and lists
    between the blocks stay part of the content.
    """

    name = SITE_SPECIFIC

    def try_extract(self, tree: DocumentTree) -> Optional[Candidate]:
        rejected: List[Candidate] = []
        for selector in self.settings.site_selectors:
            matches = tree.select(selector)
            if not matches:
                continue
            kept, total = aggregate_matches(tree, matches, self.settings.site_min_element_text)
            self.logger.debug("Checked selector", selector=selector, matches=len(matches), kept=len(kept), total=total)
            if not kept or total <= self.settings.site_min_total_text:
                continue
            candidate = self._candidate(tree, kept, container=True)
            if self._gate(tree, candidate, rejected):
                return self._widen_to_section(tree, candidate)
        self._rejected(rejected)
        return None

    def _widen_to_section(self, tree: DocumentTree, candidate: Candidate) -> Candidate:
        section = enclosing_section(tree, candidate.nodes)
        if section is None or not self.validator.is_significant(tree, [section]):
            return candidate
        self.logger.debug("Widened to enclosing section", tag=tree.node(section).tag, blocks=len(candidate.nodes))
        return self._candidate(tree, [section])


class SemanticTagsStrategy(BaseStrategy):
    """Uses the first ``<article>``, then the first ``<main>`` element."""

    name = SEMANTIC_TAGS

    def try_extract(self, tree: DocumentTree) -> Optional[Candidate]:
        rejected: List[Candidate] = []
        for tag in ("article", "main"):
            index = tree.select_first(tag)
            if index is None:
                continue
            candidate = self._candidate(tree, [index])
            if self._gate(tree, candidate, rejected):
                return candidate
        self._rejected(rejected)
        return None


class ClassIdPatternsStrategy(BaseStrategy):
    """Tries conventional CMS, blog, news and documentation container names."""

    name = CLASS_ID_PATTERNS

    def try_extract(self, tree: DocumentTree) -> Optional[Candidate]:
        rejected: List[Candidate] = []
        for selector in self.settings.content_selectors:
            index = tree.select_first(selector)
            if index is None:
                continue
            candidate = self._candidate(tree, [index])
            if self._gate(tree, candidate, rejected):
                self.logger.debug("Matched content selector", selector=selector)
                return candidate
        self._rejected(rejected)
        return None


class HeuristicScoringStrategy(BaseStrategy):
    """Scores every block container and keeps the best one above the threshold."""

    name = HEURISTIC_SCORING

    def __init__(
        self,
        settings: ExtractionSettings,
        validator: SignificanceValidator | None = None,
        scorer: CandidateScorer | None = None,
    ) -> None:
        super().__init__(settings, validator)
        self.scorer = scorer or CandidateScorer(settings.scoring)

    def try_extract(self, tree: DocumentTree) -> Optional[Candidate]:
        best_index: Optional[int] = None
        best_score = 0.0
        for index in tree.select(self.settings.heuristic_selector):
            score = self.scorer.score(tree, index)
            # Strict comparison keeps the earliest node on ties
            if best_index is None or score > best_score:
                best_index, best_score = index, score

        if best_index is None:
            return None
        self.logger.debug("Best scored container", index=best_index, score=best_score)
        if best_score <= self.settings.heuristic_threshold:
            return None
        return self._candidate(tree, [best_index], score=best_score)


class AggressiveDomainStrategy(BaseStrategy):
    """Last structured attempt for platforms whose markup defeats the other strategies."""

    name = AGGRESSIVE_DOMAIN

    def __init__(self, settings: ExtractionSettings, validator: SignificanceValidator | None = None) -> None:
        super().__init__(settings, validator)
        self._hosts = [re.compile(pattern, re.IGNORECASE) for pattern in settings.aggressive_hosts]
        self._deny = re.compile(settings.aggressive_deny_pattern, re.IGNORECASE)

    def applies_to(self, tree: DocumentTree) -> bool:
        host = tree.hostname
        return bool(host) and any(pattern.search(host) for pattern in self._hosts)

    def try_extract(self, tree: DocumentTree) -> Optional[Candidate]:
        if not self.applies_to(tree):
            return None

        rejected: List[Candidate] = []
        for finder in (self._largest_article, self._paragraph_blocks, self._scan_selectors, self._longest_block):
            candidate = finder(tree)
            if candidate is None:
                continue
            if self._gate(tree, candidate, rejected):
                self.logger.debug("Aggressive sub-strategy matched", finder=finder.__name__)
                return candidate
        self._rejected(rejected)
        return None

    def _largest_article(self, tree: DocumentTree) -> Optional[Candidate]:
        best: Optional[int] = None
        best_length = self.settings.aggressive_article_min_text
        for index in tree.select("article"):
            length = tree.text_length(index)
            if length > best_length:
                best, best_length = index, length
        return self._candidate(tree, [best]) if best is not None else None

    def _paragraph_blocks(self, tree: DocumentTree) -> Optional[Candidate]:
        matches = tree.select(self.settings.aggressive_paragraph_selector)
        if len(matches) <= self.settings.aggressive_min_paragraphs:
            return None
        kept, total = aggregate_matches(tree, matches, self.settings.aggressive_paragraph_min_text)
        if not kept or total <= self.settings.aggressive_paragraph_total_text:
            return None
        return self._candidate(tree, kept, container=True)

    def _scan_selectors(self, tree: DocumentTree) -> Optional[Candidate]:
        for selector in self.settings.aggressive_scan_selectors:
            for index in tree.select(selector):
                if tree.text_length(index) > self.settings.aggressive_scan_min_text:
                    return self._candidate(tree, [index])
        return None

    def _longest_block(self, tree: DocumentTree) -> Optional[Candidate]:
        best: Optional[int] = None
        best_length = self.settings.aggressive_block_min_text
        for index in tree.select(self.settings.aggressive_block_selector):
            length = tree.text_length(index)
            if length <= best_length:
                continue
            node = tree.node(index)
            if self._deny.search(f"{node.class_name} {node.element_id}"):
                continue
            best, best_length = index, length
        return self._candidate(tree, [best]) if best is not None else None
