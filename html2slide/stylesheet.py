"""Stylesheet parsing and the per-node style cascade.

The cascade is simpler than CSS: there is no specificity, only
"last writer wins" over a fixed order of origins::

    * rule  ->  tag rule  ->  class rules (class-list order)
            ->  <base>:nth-child(n) rules (declaration order)  ->  inline style

A ``StyleSheet`` is built once per document and never mutated afterwards.
"""

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from bs4 import BeautifulSoup, Tag

from html2slide.dom import child_index, class_list, is_document

logger = logging.getLogger(__name__)

_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_IMPORTANT = re.compile(r"\s*!\s*important\s*$", re.IGNORECASE)
_STRUCTURAL = re.compile(r"^(\.?[A-Za-z_][\w-]*):nth-child\(\s*(\d+)\s*\)$")
_VAR = re.compile(r"var\(\s*(--[\w-]+)\s*(?:,\s*([^()]*(?:\([^()]*\)[^()]*)*))?\)")

INHERITED_PROPERTIES = frozenset(
    {
        "color",
        "font",
        "font-family",
        "font-size",
        "font-style",
        "font-weight",
        "line-height",
        "text-align",
        "visibility",
    }
)


# ── Parsing ───────────────────────────────────────────────────────────────────


def parse_declarations(text: Optional[str]) -> dict[str, str]:
    """Parse ``prop: value; ...`` into a dict, skipping malformed fragments."""
    result: dict[str, str] = {}
    if not text:
        return result
    for part in text.split(";"):
        if ":" not in part:
            continue
        prop, value = part.split(":", 1)
        prop = prop.strip()
        value = _IMPORTANT.sub("", value.strip())
        if not prop or not value:
            continue
        if not prop.startswith("--"):
            prop = prop.lower()
        result[prop] = value
    return result


def _block_end(text: str, open_brace: int) -> int:
    """Index of the brace closing the block opened at *open_brace*."""
    depth = 0
    for i in range(open_brace, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return i
    return len(text)


def parse_css(text: Optional[str]) -> list[tuple[str, dict[str, str]]]:
    """Split stylesheet text into ``(selector, properties)`` pairs.

    Comma-separated selector lists produce one pair per selector. At-rule
    blocks (``@media``, ``@keyframes``, ``@font-face``...) are skipped whole.
    """
    text = _COMMENT.sub("", text or "")
    rules: list[tuple[str, dict[str, str]]] = []
    pos = 0
    while True:
        brace = text.find("{", pos)
        if brace == -1:
            break
        # Statement at-rules (@import ...;) end at a semicolon before the block.
        prelude = text[pos:brace].rsplit(";", 1)[-1].strip()
        end = _block_end(text, brace)
        if prelude and not prelude.startswith("@"):
            properties = parse_declarations(text[brace + 1 : end])
            for selector in prelude.split(","):
                selector = " ".join(selector.split())
                if selector:
                    rules.append((selector, dict(properties)))
        elif prelude.startswith("@"):
            logger.debug("Skipping at-rule block %r", prelude)
        pos = end + 1
    return rules


# ── StyleSheet ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StructuralRule:
    """A ``<base>:nth-child(n)`` rule. *position* is the 1-based n."""

    selector: str
    base: str
    position: int
    properties: Mapping[str, str]

    def matches(self, tag: str, classes: list[str], index: Optional[int]) -> bool:
        if index is None or index != self.position - 1:
            return False
        if self.base.startswith("."):
            return self.base[1:] in classes
        return self.base == tag


@dataclass(frozen=True)
class StyleSheet:
    rules: Mapping[str, Mapping[str, str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    structural: tuple[StructuralRule, ...] = ()
    variables: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def empty(cls) -> "StyleSheet":
        return cls()

    @classmethod
    def from_rules(cls, pairs: Iterable[tuple[str, Mapping[str, str]]]) -> "StyleSheet":
        """Build a stylesheet from ordered ``(selector, properties)`` pairs.

        Later declarations for the same selector overwrite earlier properties
        of that selector only.
        """
        merged: dict[str, dict[str, str]] = {}
        variables: dict[str, str] = {}
        for selector, properties in pairs:
            merged.setdefault(selector, {}).update(properties)
            for name, value in properties.items():
                if name.startswith("--"):
                    variables[name] = value

        plain: dict[str, Mapping[str, str]] = {}
        structural: list[StructuralRule] = []
        for selector, properties in merged.items():
            frozen = MappingProxyType(dict(properties))
            m = _STRUCTURAL.match(selector)
            if m:
                structural.append(
                    StructuralRule(selector, m.group(1), int(m.group(2)), frozen)
                )
            else:
                plain[selector] = frozen

        return cls(
            rules=MappingProxyType(plain),
            structural=tuple(structural),
            variables=MappingProxyType(variables),
        )

    @classmethod
    def from_css(cls, text: str) -> "StyleSheet":
        return cls.from_rules(parse_css(text))

    @classmethod
    def from_soup(cls, soup: BeautifulSoup) -> "StyleSheet":
        """Collect every ``<style>`` block of the document, in document order."""
        pairs: list[tuple[str, dict[str, str]]] = []
        for style_tag in soup.find_all("style"):
            pairs.extend(parse_css(style_tag.string or style_tag.get_text()))
        return cls.from_rules(pairs)

    def __len__(self) -> int:
        return len(self.rules) + len(self.structural)


# ── Cascade ───────────────────────────────────────────────────────────────────


class StyleCascadeResolver:
    """Resolves the flat computed style of one node against a StyleSheet."""

    def __init__(self, stylesheet: Optional[StyleSheet] = None):
        self.stylesheet = stylesheet or StyleSheet.empty()

    def resolve(self, node: Tag) -> dict[str, str]:
        """Return a fresh property map for *node*."""
        sheet = self.stylesheet
        tag = (node.name or "").lower()
        classes = class_list(node)

        computed: dict[str, str] = {}
        computed.update(sheet.rules.get("*", {}))
        computed.update(sheet.rules.get(tag, {}))
        for cls in classes:
            computed.update(sheet.rules.get("." + cls, {}))

        if sheet.structural:
            index = child_index(node)
            for rule in sheet.structural:
                if rule.matches(tag, classes, index):
                    computed.update(rule.properties)

        computed.update(parse_declarations(node.get("style")))

        if sheet.variables:
            for prop, value in computed.items():
                if "var(" in value:
                    computed[prop] = self.substitute_variables(value)
        return computed

    def substitute_variables(self, value: str) -> str:
        """Replace ``var(--name[, fallback])`` with stylesheet custom properties."""
        variables = self.stylesheet.variables
        for _ in range(5):
            replaced = _VAR.sub(
                lambda m: variables.get(m.group(1), (m.group(2) or "").strip()), value
            )
            if replaced == value:
                break
            value = replaced
        return value.strip()


def inherited_value(
    node: Optional[Tag],
    prop: str,
    style_of: Callable[[Tag], Mapping[str, str]],
    default: Optional[str] = None,
) -> Optional[str]:
    """Look *prop* up on *node*, then on its ancestors if it is inheritable."""
    while node is not None and not is_document(node):
        value = style_of(node).get(prop)
        if value and value != "inherit":
            return value
        if prop not in INHERITED_PROPERTIES:
            return default
        node = node.parent
    return default
