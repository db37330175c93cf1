"""
Protocols for pluggable content-location strategies.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..document.tree import DocumentTree
from .models import Candidate


@runtime_checkable
class ExtractionStrategy(Protocol):
    """One way of locating the main content of a document."""

    name: str

    def try_extract(self, tree: DocumentTree) -> Candidate | None:
        """Propose a content candidate, or ``None`` when this strategy does not apply.

        Args:
            tree: Document snapshot; never modified.

        Returns:
            An accepted candidate or ``None``.
        """
        ...
