"""Immutable document snapshots for content extraction."""

from .tree import Box, DocumentTree, Node, count_words, normalize_whitespace

__all__ = ["Box", "DocumentTree", "Node", "count_words", "normalize_whitespace"]
