"""
Document Tree

Parses HTML with BeautifulSoup and flattens the result into an arena of
nodes. Each node records its parent as an index into the arena, so ancestor
walks are plain index lookups.

Usage:
    from accessly.document import parse_document

    tree, index = parse_document(html)
    for i in tree.find_all(lambda node: node.name == 'img'):
        print(tree.nodes[i].attrs.get('src'))
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag
from bs4.element import PreformattedString

from .positions import PositionIndex

# Elements whose text content is raw data, not rendered text
RAW_TEXT_ELEMENTS = ('script', 'style')


@dataclass
class Node:
    """A single entry in the document arena."""
    index: int
    kind: str                      # tag, text, data, comment, doctype, directive
    name: Optional[str] = None
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List[int] = field(default_factory=list)
    text: Optional[str] = None
    start: Optional[int] = None

    @property
    def is_tag(self) -> bool:
        return self.kind == 'tag'


class DocumentTree:
    """
    Ordered forest of nodes stored in document (pre-)order.

    `parents[i]` is the arena index of node i's parent, or None for roots.
    """

    def __init__(self):
        self.nodes: List[Node] = []
        self.parents: List[Optional[int]] = []
        self.roots: List[int] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def add(self, node: Node, parent: Optional[int]) -> int:
        node.index = len(self.nodes)
        self.nodes.append(node)
        self.parents.append(parent)
        if parent is None:
            self.roots.append(node.index)
        else:
            self.nodes[parent].children.append(node.index)
        return node.index

    def parent(self, index: int) -> Optional[int]:
        return self.parents[index]

    def lineage(self, index: int) -> Iterator[int]:
        """Yield index itself, then each ancestor up to the root."""
        current: Optional[int] = index
        while current is not None:
            yield current
            current = self.parents[current]

    def find_all(self, predicate: Callable[[Node], bool]) -> List[int]:
        """Indices of all tag nodes matching predicate, in document order."""
        return [node.index for node in self.nodes
                if node.is_tag and predicate(node)]

    def find(self, predicate: Callable[[Node], bool]) -> Optional[int]:
        """Index of the first matching tag node, or None."""
        for node in self.nodes:
            if node.is_tag and predicate(node):
                return node.index
        return None

    def text_of(self, index: int) -> str:
        """Concatenated text of a style or script element."""
        return ''.join(
            self.nodes[child].text or ''
            for child in self.nodes[index].children
            if self.nodes[child].kind in ('text', 'data')
        )


def _classify_string(element: NavigableString, parent_name: Optional[str]) -> str:
    if isinstance(element, Doctype):
        return 'doctype'
    if isinstance(element, Comment):
        return 'comment'
    if isinstance(element, PreformattedString):
        return 'directive'
    if parent_name in RAW_TEXT_ELEMENTS:
        return 'data'
    return 'text'


def build_tree(soup: BeautifulSoup, index: PositionIndex) -> DocumentTree:
    """
    Flatten a parsed soup into a DocumentTree.

    Tag offsets come from the parser's (sourceline, sourcepos) pair, mapped
    through the position index.
    """
    tree = DocumentTree()
    # Stack of (element, parent index); children pushed in reverse keep pre-order
    stack: List[Tuple[object, Optional[int]]] = [
        (child, None) for child in reversed(soup.contents)
    ]

    while stack:
        element, parent = stack.pop()

        if isinstance(element, Tag):
            start = None
            if element.sourceline is not None:
                try:
                    start = index.offset_of(element.sourceline, element.sourcepos or 0)
                except ValueError:
                    start = None
            attrs = {
                name: value if isinstance(value, str) else ' '.join(value)
                for name, value in element.attrs.items()
            }
            position = tree.add(
                Node(index=-1, kind='tag', name=element.name.lower(),
                     attrs=attrs, start=start),
                parent,
            )
            for child in reversed(element.contents):
                stack.append((child, position))
        elif isinstance(element, NavigableString):
            parent_name = tree.nodes[parent].name if parent is not None else None
            tree.add(
                Node(index=-1, kind=_classify_string(element, parent_name),
                     text=str(element)),
                parent,
            )

    return tree


def parse_document(html: str) -> Tuple[DocumentTree, PositionIndex]:
    """
    Parse HTML source into a document tree and its position index.

    Args:
        html: HTML source text

    Returns:
        Tuple of (DocumentTree, PositionIndex)
    """
    index = PositionIndex.build(html)
    soup = BeautifulSoup(html, 'html.parser', multi_valued_attributes=None)
    return build_tree(soup, index), index
