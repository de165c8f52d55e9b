"""Read-only helpers over the BeautifulSoup tree.

bs4 compares Tags by markup, so two identical siblings are ``==``. Everything
here that locates a node among its siblings compares by identity instead.
"""

from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Doctype, ProcessingInstruction

# Never rendered, never counted in flow.
SKIP_TAGS = frozenset(
    {"script", "style", "meta", "link", "head", "title", "noscript", "template", "svg"}
)

# Phrasing elements whose text belongs to the surrounding block.
INLINE_TAGS = frozenset(
    {
        "a",
        "abbr",
        "b",
        "br",
        "cite",
        "code",
        "em",
        "i",
        "kbd",
        "mark",
        "q",
        "s",
        "samp",
        "small",
        "span",
        "strong",
        "sub",
        "sup",
        "time",
        "u",
        "var",
    }
)

_NON_TEXT_STRINGS = (Comment, Doctype, ProcessingInstruction)


def is_document(node) -> bool:
    return node is None or isinstance(node, BeautifulSoup)


def parent_element(node: Tag) -> Optional[Tag]:
    """The parent Tag, or None at the top of the tree."""
    parent = node.parent
    if is_document(parent):
        return None
    return parent


def element_children(node: Tag) -> list[Tag]:
    return [c for c in node.children if isinstance(c, Tag)]


def child_index(node: Tag) -> Optional[int]:
    """0-based position of *node* among its parent's element children."""
    parent = node.parent
    if parent is None:
        return None
    for i, child in enumerate(element_children(parent)):
        if child is node:
            return i
    return None


def class_list(node: Tag) -> list[str]:
    classes = node.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return list(classes)


def _collapse(text: str) -> str:
    return " ".join(text.split())


def own_text(node: Tag) -> str:
    """Text of *node* including inline descendants but not nested blocks.

    ``<br>`` becomes a newline; other whitespace runs collapse to one space.
    """
    chunks: list[str] = []

    def walk(el: Tag):
        for child in el.children:
            if isinstance(child, NavigableString):
                if not isinstance(child, _NON_TEXT_STRINGS):
                    chunks.append(str(child))
            elif isinstance(child, Tag):
                if child.name == "br":
                    chunks.append("\n")
                elif child.name in INLINE_TAGS:
                    walk(child)

    walk(node)
    lines = "".join(chunks).split("\n")
    return "\n".join(_collapse(line) for line in lines).strip()


def closest(node: Optional[Tag], name: str) -> Optional[Tag]:
    """Nearest ancestor-or-self with tag *name*."""
    while node is not None and not is_document(node):
        if node.name == name:
            return node
        node = node.parent
    return None
