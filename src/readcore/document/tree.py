"""
Immutable, arena-backed document tree.

Nodes are addressed by their index in document (pre-order) order, so the
descendants of node ``i`` are exactly the contiguous range
``i + 1 .. subtree_end(i) - 1``. Parent/child links are plain index tuples and
there are no back-references to mutate. The BeautifulSoup parse tree is kept
only to answer CSS queries through soupsieve; extraction never modifies it,
and selected subtrees are cloned into new, detached trees.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

import soupsieve
import structlog
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

logger = structlog.get_logger(__name__)

TEXT = "#text"
DOCUMENT = "#document"

# Subtrees that never carry readable content
SKIPPED_TAGS = frozenset({"script", "style", "noscript", "template"})

VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "param", "source", "track", "wbr"}
)

# Element boundaries that separate words in rendered text
BLOCK_TAGS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "body",
        "br",
        "caption",
        "dd",
        "details",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "li",
        "legend",
        "main",
        "nav",
        "ol",
        "option",
        "p",
        "pre",
        "section",
        "summary",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "title",
        "tr",
        "ul",
    }
)


@dataclass(frozen=True, slots=True)
class Box:
    """Layout box of a rendered element, in CSS pixels relative to the viewport."""

    top: float
    left: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True, slots=True)
class Node:
    """One element or text node of a document snapshot."""

    index: int
    tag: str
    attributes: Tuple[Tuple[str, str], ...] = ()
    text: str = ""
    parent: Optional[int] = None
    children: Tuple[int, ...] = ()

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT

    @property
    def is_element(self) -> bool:
        return not self.tag.startswith("#")

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        for key, value in self.attributes:
            if key == name:
                return value
        return default

    def has(self, name: str) -> bool:
        return any(key == name for key, _ in self.attributes)

    @property
    def class_name(self) -> str:
        return self.get("class") or ""

    @property
    def element_id(self) -> str:
        return self.get("id") or ""


@lru_cache(maxsize=512)
def _compile(selector: str) -> Any:
    return soupsieve.compile(selector)


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return " ".join(text.split())


def count_words(text: str) -> int:
    return len(text.split())


def _attribute_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


def _start_tag(node: Node) -> str:
    attrs = "".join(f' {key}="{html.escape(value, quote=True)}"' for key, value in node.attributes)
    return f"<{node.tag}{attrs}>"


def _build_arena(soup: BeautifulSoup) -> Tuple[List[Node], List[Optional[Tag]]]:
    """Flatten a parse tree into pre-order node records."""
    records: List[Dict[str, Any]] = []
    elements: List[Optional[Tag]] = []

    stack: List[Tuple[Any, Optional[int]]] = [(soup, None)]
    while stack:
        element, parent = stack.pop()
        index = len(records)

        if isinstance(element, NavigableString):
            records.append({"tag": TEXT, "attributes": (), "text": str(element), "parent": parent, "children": []})
            elements.append(None)
        else:
            if element is soup:
                tag_name = DOCUMENT
                attributes: Tuple[Tuple[str, str], ...] = ()
            else:
                tag_name = element.name.lower()
                attributes = tuple((str(k).lower(), _attribute_value(v)) for k, v in element.attrs.items())
            records.append(
                {"tag": tag_name, "attributes": attributes, "text": "", "parent": parent, "children": []}
            )
            elements.append(element)

            kept = []
            for child in element.children:
                if isinstance(child, PreformattedString):
                    continue  # comments, doctype, CDATA, processing instructions
                if isinstance(child, Tag) and child.name.lower() in SKIPPED_TAGS:
                    continue
                kept.append(child)
            for child in reversed(kept):
                stack.append((child, index))

        if parent is not None:
            records[parent]["children"].append(index)

    nodes = [
        Node(
            index=i,
            tag=r["tag"],
            attributes=r["attributes"],
            text=r["text"],
            parent=r["parent"],
            children=tuple(r["children"]),
        )
        for i, r in enumerate(records)
    ]
    return nodes, elements


class DocumentTree:
    """
    Read-only view over one parsed document snapshot.

    Build trees with :meth:`from_html`; layout metadata is optional and only
    feeds the position bonus of the candidate scorer.
    """

    def __init__(
        self,
        soup: BeautifulSoup,
        nodes: Sequence[Node],
        elements: Sequence[Optional[Tag]],
        *,
        url: Optional[str] = None,
        viewport_height: Optional[float] = None,
        boxes: Optional[Mapping[int, Box]] = None,
    ) -> None:
        self._soup = soup
        self._nodes: Tuple[Node, ...] = tuple(nodes)
        self._elements: Tuple[Optional[Tag], ...] = tuple(elements)
        self._index_by_tag: Dict[int, int] = {id(tag): i for i, tag in enumerate(self._elements) if tag is not None}
        self.url = url
        self.viewport_height = viewport_height
        self._boxes: Dict[int, Box] = dict(boxes or {})

        self._subtree_end: List[int] = [0] * len(self._nodes)
        self._inner_length: List[int] = [0] * len(self._nodes)
        self._outer_length: List[int] = [0] * len(self._nodes)
        self._measure()

        self._raw_text: Dict[int, str] = {}
        self._text: Dict[int, str] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_html(
        cls,
        markup: str | bytes,
        *,
        url: Optional[str] = None,
        viewport_height: Optional[float] = None,
    ) -> DocumentTree:
        """Parse an HTML document or fragment into a tree snapshot."""
        if isinstance(markup, bytes):
            markup = markup.decode("utf-8", errors="replace")
        soup = BeautifulSoup(markup or "", "html.parser")
        nodes, elements = _build_arena(soup)
        logger.debug("Document tree built", url=url, nodes=len(nodes))
        return cls(soup, nodes, elements, url=url, viewport_height=viewport_height)

    @classmethod
    def empty(cls, *, url: Optional[str] = None) -> DocumentTree:
        return cls.from_html("", url=url)

    def with_layout(self, viewport_height: float, boxes: Mapping[int, Box]) -> DocumentTree:
        """Return the same snapshot carrying layout metadata."""
        return DocumentTree(
            self._soup,
            self._nodes,
            self._elements,
            url=self.url,
            viewport_height=viewport_height,
            boxes=boxes,
        )

    def _measure(self) -> None:
        for i in range(len(self._nodes) - 1, -1, -1):
            node = self._nodes[i]
            self._subtree_end[i] = self._subtree_end[node.children[-1]] if node.children else i + 1
            if node.is_text:
                self._outer_length[i] = len(html.escape(node.text, quote=False))
                continue
            inner = sum(self._outer_length[c] for c in node.children)
            self._inner_length[i] = inner
            if node.tag == DOCUMENT:
                self._outer_length[i] = inner
            elif node.tag in VOID_TAGS:
                self._outer_length[i] = len(_start_tag(node)) + inner
            else:
                self._outer_length[i] = len(_start_tag(node)) + inner + len(node.tag) + 3

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DocumentTree):
            return NotImplemented
        return self.url == other.url and self._nodes == other._nodes

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"DocumentTree(url={self.url!r}, nodes={len(self._nodes)})"

    @property
    def root(self) -> int:
        return 0

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self._nodes

    def node(self, index: int) -> Node:
        return self._nodes[index]

    @property
    def is_empty(self) -> bool:
        return self.document_element is None

    @property
    def document_element(self) -> Optional[int]:
        """First element child of the root, i.e. the content node of a clone."""
        for child in self._nodes[0].children:
            if self._nodes[child].is_element:
                return child
        return None

    @property
    def hostname(self) -> str:
        if not self.url:
            return ""
        return (urlparse(self.url).hostname or "").lower()

    def subtree_end(self, index: int) -> int:
        return self._subtree_end[index]

    def descendants(self, index: int) -> range:
        return range(index + 1, self._subtree_end[index])

    def is_descendant(self, index: int, ancestor: int) -> bool:
        return ancestor < index < self._subtree_end[ancestor]

    def ancestors(self, index: int) -> Iterator[int]:
        parent = self._nodes[index].parent
        while parent is not None:
            yield parent
            parent = self._nodes[parent].parent

    def iter_elements(self) -> Iterator[int]:
        for node in self._nodes:
            if node.is_element:
                yield node.index

    def box(self, index: int) -> Optional[Box]:
        return self._boxes.get(index)

    # ------------------------------------------------------------------
    # Text and markup
    # ------------------------------------------------------------------

    def _raw(self, index: int) -> str:
        cached = self._raw_text.get(index)
        if cached is not None:
            return cached
        for j in range(self._subtree_end[index] - 1, index - 1, -1):
            if j in self._raw_text:
                continue
            node = self._nodes[j]
            if node.is_text:
                self._raw_text[j] = node.text
                continue
            parts: List[str] = []
            for c in node.children:
                piece = self._raw_text[c]
                if self._nodes[c].tag in BLOCK_TAGS:
                    parts.extend((" ", piece, " "))
                else:
                    parts.append(piece)
            self._raw_text[j] = "".join(parts)
        return self._raw_text[index]

    def text_of(self, index: int) -> str:
        """Rendered text of a subtree with whitespace normalized."""
        text = self._text.get(index)
        if text is None:
            text = normalize_whitespace(self._raw(index))
            self._text[index] = text
        return text

    def own_text(self, index: int) -> str:
        """Text of the direct text children only."""
        node = self._nodes[index]
        return normalize_whitespace(" ".join(self._nodes[c].text for c in node.children if self._nodes[c].is_text))

    def text_length(self, index: int) -> int:
        return len(self.text_of(index))

    def word_count(self, index: int) -> int:
        return count_words(self.text_of(index))

    def markup_length(self, index: int) -> int:
        """Length of the serialized inner markup of an element."""
        return self._inner_length[index]

    @property
    def text(self) -> str:
        return self.text_of(0)

    def outer_html(self, index: int) -> str:
        out: List[str] = []
        stack: List[Tuple[int, bool]] = [(index, False)]
        while stack:
            i, closing = stack.pop()
            node = self._nodes[i]
            if closing:
                out.append(f"</{node.tag}>")
                continue
            if node.is_text:
                out.append(html.escape(node.text, quote=False))
                continue
            if node.tag != DOCUMENT:
                out.append(_start_tag(node))
                if node.tag not in VOID_TAGS:
                    stack.append((i, True))
            for c in reversed(node.children):
                stack.append((c, False))
        return "".join(out)

    def inner_html(self, index: int) -> str:
        return "".join(self.outer_html(c) for c in self._nodes[index].children)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def select(self, selector: str, scope: Optional[int] = None) -> List[int]:
        """Indices of descendants of ``scope`` (default: whole document) matching a CSS selector."""
        root = self._soup if scope is None else self._elements[scope]
        if root is None:
            return []
        result = []
        for tag in _compile(selector).select(root):
            index = self._index_by_tag.get(id(tag))
            if index is not None:
                result.append(index)
        return result

    def select_first(self, selector: str, scope: Optional[int] = None) -> Optional[int]:
        matches = self.select(selector, scope)
        return matches[0] if matches else None

    def count(self, selector: str, scope: Optional[int] = None) -> int:
        return len(self.select(selector, scope))

    def matches(self, index: int, selector: str) -> bool:
        tag = self._elements[index]
        if tag is None or tag is self._soup:
            return False
        return bool(_compile(selector).match(tag))

    # ------------------------------------------------------------------
    # Cloning
    # ------------------------------------------------------------------

    def clone(self, indices: Sequence[int], *, container: bool = False) -> DocumentTree:
        """
        Copy subtrees into a new detached tree.

        A single index without ``container`` copies that subtree; otherwise the
        subtrees become children of a synthetic ``div`` in the given order.
        """
        if not indices:
            return DocumentTree.empty(url=self.url)
        if len(indices) == 1 and not container:
            markup = self.outer_html(indices[0])
        else:
            markup = "<div>" + "".join(self.outer_html(i) for i in indices) + "</div>"
        return DocumentTree.from_html(markup, url=self.url)
