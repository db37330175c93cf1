"""
Weighted heuristic scoring of content containers.
"""

from __future__ import annotations

import re
from typing import Sequence

import structlog

from ..config.config import ScoringWeights
from ..document.tree import BLOCK_TAGS, DocumentTree, normalize_whitespace

logger = structlog.get_logger(__name__)

PARAGRAPH_SELECTOR = "p, div[data-selectable-paragraph]"
HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"
LIST_SELECTOR = "ul, ol, li"
NAV_SELECTOR = "nav, .nav, .navigation, .sidebar, .menu"
FORM_SELECTOR = "form, input, button, .form"
AD_SELECTOR = ".ad, .ads, .advertisement, .sponsored"
SOCIAL_SELECTOR = ".social, .share, .follow"
LINK_SELECTOR = "a"


def count_in(tree: DocumentTree, nodes: Sequence[int], selector: str, *, container: bool = False) -> int:
    """
    Count matches of ``selector`` below the given nodes.

    For a single real node only descendants are counted. For a synthetic
    container the member nodes are themselves children of the container, so
    members matching the selector count too.
    """
    total = 0
    include_members = container or len(nodes) > 1
    for index in nodes:
        if include_members and tree.matches(index, selector):
            total += 1
        total += tree.count(selector, index)
    return total


def combined_text(tree: DocumentTree, nodes: Sequence[int]) -> str:
    """Normalized text of a candidate, as its clone would render it."""
    if len(nodes) == 1:
        return tree.text_of(nodes[0])
    parts = []
    for index in nodes:
        text = tree.text_of(index)
        parts.append(f" {text} " if tree.node(index).tag in BLOCK_TAGS else text)
    return normalize_whitespace("".join(parts))


class CandidateScorer:
    """
    Scores a subtree as a likely main-content container.

    The score only looks at the node and its descendants, so content placed
    next to a candidate never changes that candidate's score.
    """

    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or ScoringWeights()
        self._content_hint = re.compile(self.weights.content_hint_pattern, re.IGNORECASE)
        self._text_hint = re.compile(self.weights.text_hint_pattern, re.IGNORECASE)
        self._platform_hint = re.compile(self.weights.platform_hint_pattern, re.IGNORECASE)

    def score(self, tree: DocumentTree, index: int) -> float:
        w = self.weights
        text = tree.text_of(index)
        text_length = len(text)
        if text_length < w.min_text_length:
            return 0.0

        node = tree.node(index)
        words = len(text.split())
        score = 0.0

        score += text_length / max(tree.markup_length(index), 1) * w.text_density_weight
        score += min(tree.count(PARAGRAPH_SELECTOR, index) * w.paragraph_weight, w.paragraph_cap)

        for min_words, bonus in w.word_tiers:
            if words > min_words:
                score += bonus

        score += min(tree.count(HEADING_SELECTOR, index) * w.heading_weight, w.heading_cap)
        score += min(tree.count(LIST_SELECTOR, index) * w.list_weight, w.list_cap)

        hints = f"{node.class_name} {node.element_id}".lower()
        if self._content_hint.search(hints):
            score += w.content_hint_bonus
        if self._text_hint.search(hints):
            score += w.text_hint_bonus
        if self._platform_hint.search(hints):
            score += w.platform_hint_bonus

        if node.has("data-selectable-paragraph"):
            score += w.selectable_paragraph_bonus
        if "story" in (node.get("data-testid") or ""):
            score += w.story_testid_bonus

        score -= min(tree.count(NAV_SELECTOR, index) * w.nav_penalty, w.nav_cap)
        score -= min(tree.count(FORM_SELECTOR, index) * w.form_penalty, w.form_cap)
        score -= min(tree.count(AD_SELECTOR, index) * w.ad_penalty, w.ad_cap)
        score -= min(tree.count(SOCIAL_SELECTOR, index) * w.social_penalty, w.social_cap)

        links = tree.count(LINK_SELECTOR, index)
        link_density = links / max(words / w.words_per_link_unit, 1)
        if link_density > w.link_density_threshold:
            score -= link_density * w.link_density_weight

        box = tree.box(index)
        if box is not None and tree.viewport_height:
            if 0 < box.top < tree.viewport_height * w.position_viewport_factor:
                score += w.position_bonus

        return max(0.0, score)
