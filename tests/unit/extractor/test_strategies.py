"""
Unit tests for the structured extraction strategies.
"""

from __future__ import annotations

import pytest

from readcore.config import ExtractionSettings
from readcore.document import DocumentTree
from readcore.exceptions import ValidationFailure
from readcore.extractor import (
    AggressiveDomainStrategy,
    ClassIdPatternsStrategy,
    HeuristicScoringStrategy,
    SemanticTagsStrategy,
    SiteSpecificSelectorsStrategy,
)
from readcore.extractor.strategies import aggregate_matches, enclosing_section
from tests.helpers import words

MEDIUM_URL = "https://medium.com/@writer/a-long-story-1234"


@pytest.mark.unit
class TestAggregateMatches:
    def test_nested_matches_are_skipped(self):
        """Test that a match inside an already kept match is not counted twice."""
        tree = DocumentTree.from_html(f"<section><section>{words(20)}</section></section><section>{words(20, 1)}</section>")
        outer, inner, last = tree.select("section")

        kept, total = aggregate_matches(tree, [outer, inner, last], 10)

        assert kept == [outer, last]
        assert total == tree.text_length(outer) + tree.text_length(last)

    def test_short_matches_are_dropped(self):
        tree = DocumentTree.from_html(f"<p>Hi there</p><p>{words(20)}</p>")
        short, long = tree.select("p")
        assert aggregate_matches(tree, [short, long], 10) == ([long], tree.text_length(long))


@pytest.mark.unit
class TestSiteSpecificSelectors:
    """Platform convention aggregation."""

    def test_selectable_paragraphs_become_container(self, extraction_settings: ExtractionSettings):
        """Test that all matches of the first productive selector form one container."""
        blocks = "".join(f"<div data-selectable-paragraph>{words(15, i)}</div>" for i in range(3))
        tree = DocumentTree.from_html(f"<section>{blocks}</section>")

        candidate = SiteSpecificSelectorsStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.strategy == "site_specific_selectors"
        assert candidate.container
        assert candidate.nodes == tuple(tree.select("div"))
        assert candidate.word_count == 45

    def test_short_elements_are_skipped(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(
            f'<div><p class="graf">Hi there</p><p class="graf">{words(20)}</p><p class="graf">{words(20, 2)}</p></div>'
        )
        candidate = SiteSpecificSelectorsStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == tuple(tree.select("p")[1:])

    def test_blocks_inside_one_article_widen_to_the_article(self, extraction_settings: ExtractionSettings):
        """Test that headings and lists around the matched paragraphs are kept."""
        tree = DocumentTree.from_html(
            f"<article><h2>Notes</h2><p>{words(60)}</p><ul><li>{words(45, 3)}</li></ul></article>"
        )

        candidate = SiteSpecificSelectorsStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.strategy == "site_specific_selectors"
        assert candidate.nodes == (tree.select_first("article"),)
        assert not candidate.container
        assert candidate.word_count == 106

    def test_blocks_in_separate_articles_stay_a_container(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(f"<article><p>{words(20)}</p></article><article><p>{words(20, 1)}</p></article>")

        candidate = SiteSpecificSelectorsStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.container
        assert candidate.nodes == tuple(tree.select("p"))

    def test_enclosing_section(self):
        tree = DocumentTree.from_html(
            "<main><article><p>a</p><p>b</p></article><p>c</p></main><article><p>d</p></article>"
        )
        a, b, c, d = tree.select("p")

        assert enclosing_section(tree, [a, b]) == tree.select_first("article")
        assert enclosing_section(tree, [a, c]) == tree.select_first("main")
        assert enclosing_section(tree, [a, d]) is None
        assert enclosing_section(tree, []) is None

    def test_no_platform_markup(self, extraction_settings: ExtractionSettings):
        """Test that pages without platform conventions yield no candidate."""
        tree = DocumentTree.from_html(f"<div><p>{words(50)}</p></div>")
        assert SiteSpecificSelectorsStrategy(extraction_settings).try_extract(tree) is None

    def test_total_text_too_short(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html("<article><p>short text here</p></article>")
        assert SiteSpecificSelectorsStrategy(extraction_settings).try_extract(tree) is None


@pytest.mark.unit
class TestSemanticTags:
    def test_article_before_main(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(f"<main><p>{words(40)}</p></main><article><p>{words(40, 3)}</p></article>")
        candidate = SemanticTagsStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select_first("article"),)
        assert not candidate.container

    def test_falls_back_to_main(self, extraction_settings: ExtractionSettings):
        """Test that an insignificant article gives way to main."""
        tree = DocumentTree.from_html(f"<article>Share this</article><main><p>{words(40)}</p></main>")
        candidate = SemanticTagsStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select_first("main"),)

    def test_rejected_candidates_raise(self, extraction_settings: ExtractionSettings):
        """Test that found-but-rejected candidates are reported as a validation failure."""
        tree = DocumentTree.from_html("<article>tiny</article><main>small</main>")

        with pytest.raises(ValidationFailure) as exc_info:
            SemanticTagsStrategy(extraction_settings).try_extract(tree)

        assert exc_info.value.strategy == "semantic_tags"
        assert exc_info.value.word_count == 1

    def test_no_semantic_tags(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(f"<div>{words(40)}</div>")
        assert SemanticTagsStrategy(extraction_settings).try_extract(tree) is None


@pytest.mark.unit
class TestClassIdPatterns:
    def test_selector_list_order_wins(self, extraction_settings: ExtractionSettings):
        """Test that selectors are tried in configured order, not document order."""
        tree = DocumentTree.from_html(
            f'<div class="entry-content">{words(40)}</div><div class="article-content">{words(40, 1)}</div>'
        )
        candidate = ClassIdPatternsStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select_first(".article-content"),)

    def test_insignificant_match_is_skipped(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(
            f'<div class="article-content">short</div><div class="post-content">{words(40)}</div>'
        )
        candidate = ClassIdPatternsStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select_first(".post-content"),)

    def test_id_selectors(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(f'<div id="story">{words(40)}</div>')
        candidate = ClassIdPatternsStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select_first("#story"),)


@pytest.mark.unit
class TestHeuristicScoring:
    def test_highest_score_wins(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(
            f'<div class="sidebar-wrap"><p>{words(60)}</p></div>'
            f'<div class="article-body"><p>{words(150)}</p><p>{words(150, 4)}</p></div>'
        )
        candidate = HeuristicScoringStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select_first(".article-body"),)
        assert candidate.score > extraction_settings.heuristic_threshold

    def test_ties_keep_earliest_node(self, extraction_settings: ExtractionSettings):
        """Test that equally scored containers resolve to the first in document order."""
        block = f"<div><p>{words(120)}</p></div>"
        tree = DocumentTree.from_html(block + block)
        candidate = HeuristicScoringStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select("div")[0],)

    def test_threshold(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html("<div>short words only</div>")
        assert HeuristicScoringStrategy(extraction_settings).try_extract(tree) is None

    def test_no_containers(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(f"<p>{words(200)}</p>")
        assert HeuristicScoringStrategy(extraction_settings).try_extract(tree) is None


@pytest.mark.unit
class TestAggressiveDomain:
    """Platform-specific sub-strategies."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            (MEDIUM_URL, True),
            ("https://blog.medium.com/post", True),
            ("https://notmedium.com/post", False),
            ("https://example.com/medium.com", False),
            (None, False),
        ],
    )
    def test_host_matching(self, extraction_settings: ExtractionSettings, url, expected):
        tree = DocumentTree.from_html("<p>x</p>", url=url)
        assert AggressiveDomainStrategy(extraction_settings).applies_to(tree) is expected

    def test_other_hosts_are_ignored(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(f"<article>{words(150)}</article>", url="https://example.com/a")
        assert AggressiveDomainStrategy(extraction_settings).try_extract(tree) is None

    def test_largest_article(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(f"<article>{words(100)}</article><article>{words(150, 2)}</article>", url=MEDIUM_URL)
        candidate = AggressiveDomainStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select("article")[1],)

    def test_paragraph_blocks(self, extraction_settings: ExtractionSettings):
        """Test that many medium-sized paragraphs are aggregated into a container."""
        body = "".join(f"<p>{words(10, i)}</p>" for i in range(6))
        tree = DocumentTree.from_html(f"<div>{body}</div>", url=MEDIUM_URL)
        candidate = AggressiveDomainStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.container
        assert candidate.nodes == tuple(tree.select("p"))

    def test_longest_block_skips_denied_names(self, extraction_settings: ExtractionSettings):
        tree = DocumentTree.from_html(
            f'<div class="sidebar-wrap">{words(150)}</div><div class="x-body">{words(100, 5)}</div>', url=MEDIUM_URL
        )
        candidate = AggressiveDomainStrategy(extraction_settings).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select_first(".x-body"),)
