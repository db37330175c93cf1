"""
Unit tests for the last-resort EmergencyAssembler.
"""

from __future__ import annotations

import pytest

from readcore.config import EmergencyConfig
from readcore.document import DocumentTree
from readcore.exceptions import EmergencyAssemblyFailure
from readcore.extractor import EmergencyAssembler
from tests.helpers import words


@pytest.mark.unit
class TestEmergencyAssembler:
    def test_blocks_are_ordered_by_word_count(self):
        tree = DocumentTree.from_html(f"<p>{words(20)}</p><p>{words(40, 1)}</p><p>{words(30, 2)}</p>")
        p20, p40, p30 = tree.select("p")

        candidate = EmergencyAssembler().try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (p40, p30, p20)
        assert candidate.container
        assert candidate.word_count == 90
        assert candidate.strategy == "emergency_assembler"

    def test_word_count_matches_assembled_text(self):
        """Test that adjacent inline blocks are counted as the assembled container reads."""
        tree = DocumentTree.from_html(f"<span>{words(30)}</span><span>{words(30, 1)}</span>")

        candidate = EmergencyAssembler().try_extract(tree)

        assert candidate is not None
        assembled = tree.clone(candidate.nodes, container=True).text
        assert candidate.word_count == len(assembled.split()) == 59
        assert candidate.text_length == len(assembled)

    def test_max_elements(self):
        tree = DocumentTree.from_html(f"<p>{words(20)}</p><p>{words(40, 1)}</p><p>{words(30, 2)}</p>")
        _, p40, p30 = tree.select("p")

        candidate = EmergencyAssembler(EmergencyConfig(max_elements=2)).try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (p40, p30)

    def test_nested_blocks_are_both_kept(self):
        """Test that a block and its ancestor can both be selected."""
        tree = DocumentTree.from_html(f"<div><p>{words(30)}</p><p>{words(30, 1)}</p></div>")
        div = tree.select_first("div")
        first, second = tree.select("p")

        candidate = EmergencyAssembler().try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (div, first, second)
        assert candidate.word_count == 120

    def test_denied_class_names(self):
        tree = DocumentTree.from_html(f'<p class="Share-Box">{words(40)}</p><p>{words(60, 1)}</p>')
        candidate = EmergencyAssembler().try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select("p")[1],)

    def test_link_heavy_blocks(self):
        """Test that blocks with fewer than ten words per link are skipped."""
        links = '<a href="/a">a</a> <a href="/b">b</a> <a href="/c">c</a>'
        tree = DocumentTree.from_html(f"<p>{words(17)} {links}</p><p>{words(60, 1)}</p>")
        candidate = EmergencyAssembler().try_extract(tree)

        assert candidate is not None
        assert candidate.nodes == (tree.select("p")[1],)

    def test_too_few_words_raises(self):
        tree = DocumentTree.from_html(f"<p>{words(30)}</p>")
        with pytest.raises(EmergencyAssemblyFailure):
            EmergencyAssembler().try_extract(tree)

    def test_no_eligible_blocks(self):
        assert EmergencyAssembler().try_extract(DocumentTree.from_html("<p>tiny</p>")) is None
        assert EmergencyAssembler().try_extract(DocumentTree.empty()) is None
