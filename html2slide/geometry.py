"""Box-model geometry for leaf text nodes, in source-document pixels.

The resolver approximates the author's layout rather than implementing CSS:

- ``position: absolute|fixed`` boxes use their own left/top/width/height as
  offsets from the slide origin. The nearest positioned ancestor is not
  searched for.
- Children of ``display: flex; flex-direction: column`` containers stack
  vertically with the container's gap; ``flex`` items share the container's
  height equally.
- Row flex containers are stacked like normal flow. Horizontal distribution
  is not modelled.
- Everything else stacks top to bottom in document order. A box's offset
  depends only on the boxes before it.

One resolver serves one slide conversion. Results are memoized per node for
the lifetime of the instance and never shared between conversions.
"""

import logging
import math
from typing import Iterator, Optional

from bs4 import BeautifulSoup, Tag

from html2slide.canvas import Canvas, Geometry
from html2slide.dom import (
    INLINE_TAGS,
    SKIP_TAGS,
    element_children,
    own_text,
    parent_element,
)
from html2slide.stylesheet import StyleCascadeResolver, inherited_value
from html2slide.units import BASE_FONT_PX, parse_box, parse_length

logger = logging.getLogger(__name__)

# ── Layout heuristics ─────────────────────────────────────────────────────────
CHARS_PER_LINE = 50
LINE_HEIGHT_FACTOR = 1.2
FALLBACK_WIDTH_RATIO = 0.8  # of the canvas width, when nothing else is known

ROOT_SELECTORS = (".slide-container", ".container", "body > div", "body")


def root_selector(soup: BeautifulSoup) -> Optional[str]:
    """CSS selector matching the slide containers of *soup*."""
    if soup.find(["div", "section"], class_="slide") is not None:
        return "div.slide, section.slide"
    for selector in ROOT_SELECTORS:
        if soup.select_one(selector) is not None:
            return selector
    return None


def find_slide_roots(soup: BeautifulSoup) -> list[Tag]:
    """Every ``div.slide``/``section.slide``, else the main content container."""
    slides = soup.find_all(["div", "section"], class_="slide")
    if slides:
        return slides
    selector = root_selector(soup)
    if selector is None:
        return []
    return [soup.select_one(selector)]


def is_hidden(style) -> bool:
    return style.get("display", "").strip() == "none"


def is_positioned(style) -> bool:
    return style.get("position", "").strip() in ("absolute", "fixed")


def is_flex(style) -> bool:
    return style.get("display", "").strip() in ("flex", "inline-flex")


def is_flex_column(style) -> bool:
    return is_flex(style) and style.get("flex-direction", "").strip() == "column"


def _renders(node: Tag, cascade: Optional[StyleCascadeResolver]) -> bool:
    if node.name in SKIP_TAGS:
        return False
    return cascade is None or not is_hidden(cascade.resolve(node))


def _has_block_text(node: Tag, cascade: Optional[StyleCascadeResolver]) -> bool:
    # Skipped and hidden subtrees are pruned whole.
    for child in element_children(node):
        if not _renders(child, cascade):
            continue
        if child.name not in INLINE_TAGS and own_text(child):
            return True
        if _has_block_text(child, cascade):
            return True
    return False


def is_text_block(node: Tag, cascade: Optional[StyleCascadeResolver] = None) -> bool:
    """True for a node carrying text with no rendered nested block that carries text."""
    return bool(own_text(node)) and not _has_block_text(node, cascade)


def iter_leaf_text_nodes(root: Tag, cascade: StyleCascadeResolver) -> Iterator[Tag]:
    """Yield the leaf text nodes under *root* in document order.

    The root itself is never yielded. Inline descendants of a yielded node
    belong to its text and are not visited.
    """

    def visit(node: Tag) -> Iterator[Tag]:
        for child in element_children(node):
            if not _renders(child, cascade):
                continue
            if is_text_block(child, cascade):
                yield child
            else:
                yield from visit(child)

    yield from visit(root)


class BoxModelGeometryResolver:
    """Computes ``Geometry`` for nodes under one slide root."""

    def __init__(
        self,
        root: Tag,
        cascade: Optional[StyleCascadeResolver] = None,
        canvas: Optional[Canvas] = None,
    ):
        self.root = root
        self.cascade = cascade or StyleCascadeResolver()
        self.canvas = canvas or Canvas()
        self._styles: dict[int, dict[str, str]] = {}
        self._widths: dict[int, float] = {}
        self._heights: dict[int, float] = {}
        self._offsets: dict[int, tuple[float, float]] = {}
        self._group_shifts: dict[int, float] = {}

    # ── Public API ───────────────────────────────────────────────────────────

    def resolve(self, node: Tag) -> Optional[Geometry]:
        """Absolute box of *node*, or None when it has no renderable area."""
        style = self.style(node)
        if is_hidden(style):
            return None
        w = self.width(node)
        h = self.height(node)
        if w <= 0 or h <= 0:
            logger.debug("No area for <%s> (w=%.1f, h=%.1f)", node.name, w, h)
            return None
        x, y = self.position(node)
        return Geometry(max(0.0, x), max(0.0, y), w, h)

    def style(self, node: Tag) -> dict[str, str]:
        key = id(node)
        if key not in self._styles:
            self._styles[key] = self.cascade.resolve(node)
        return self._styles[key]

    def parent(self, node: Tag) -> Optional[Tag]:
        """Layout parent; None for the slide root and for orphans."""
        if node is self.root:
            return None
        return parent_element(node)

    def flow_children(self, node: Tag) -> list[Tag]:
        """Element children that take part in vertical stacking."""
        children = []
        for child in element_children(node):
            if child.name in SKIP_TAGS:
                continue
            style = self.style(child)
            if is_hidden(style) or is_positioned(style):
                continue
            children.append(child)
        return children

    # ── Box properties ───────────────────────────────────────────────────────

    def padding(self, node: Tag) -> tuple[float, float, float, float]:
        return self._box(self.style(node), "padding")

    def margin(self, node: Tag) -> tuple[float, float, float, float]:
        return self._box(self.style(node), "margin")

    def _box(self, style, prop: str) -> tuple[float, float, float, float]:
        top, right, bottom, left = parse_box(style.get(prop))
        sides = []
        for side, value in zip(("top", "right", "bottom", "left"), (top, right, bottom, left)):
            override = parse_length(style.get(f"{prop}-{side}"))
            sides.append(value if override is None else override)
        return tuple(sides)

    def gap(self, node: Tag) -> float:
        style = self.style(node)
        value = style.get("row-gap") or style.get("gap")
        if not value:
            return 0.0
        return parse_length(value.split()[0]) or 0.0

    def font_size(self, node: Tag) -> float:
        value = inherited_value(node, "font-size", self.style)
        return parse_length(value, BASE_FONT_PX) or BASE_FONT_PX

    def line_height(self, node: Tag, font_size: float) -> float:
        value = self.style(node).get("line-height", "").strip()
        if value:
            try:
                return float(value) * font_size
            except ValueError:
                parsed = parse_length(value, font_size)
                if parsed is not None:
                    return parsed
        return font_size * LINE_HEIGHT_FACTOR

    # ── Width ────────────────────────────────────────────────────────────────

    def available_width(self, node: Optional[Tag]) -> float:
        """Content-box width of *node*; the whole canvas for None."""
        if node is None:
            return self.canvas.source_width
        _, right, _, left = self.padding(node)
        return max(0.0, self.width(node) - left - right)

    def width(self, node: Tag) -> float:
        key = id(node)
        if key not in self._widths:
            self._widths[key] = self._compute_width(node)
        return self._widths[key]

    def _compute_width(self, node: Tag) -> float:
        style = self.style(node)
        parent = self.parent(node)
        value = style.get("width")
        if value:
            reference = self.available_width(parent) if "%" in value else None
            declared = parse_length(value, reference)
            if declared is not None:
                return declared
        if parent is None:
            return self.canvas.source_width
        if not is_positioned(style) and is_flex_column(self.style(parent)):
            return self.available_width(parent)
        # Normal flow: only a parent with a known width is trusted.
        parent_declares = parse_length(self.style(parent).get("width")) is not None
        if parent_declares or self.parent(parent) is None:
            return self.available_width(parent)
        return min(
            self.canvas.source_width * FALLBACK_WIDTH_RATIO, self.available_width(parent)
        )

    # ── Height ───────────────────────────────────────────────────────────────

    def container_height(self, node: Optional[Tag]) -> float:
        """Declared height (or min-height) of a container, else the canvas height."""
        if node is None:
            return self.canvas.source_height
        style = self.style(node)
        for prop in ("height", "min-height"):
            value = parse_length(style.get(prop), self.canvas.source_height)
            if value is not None:
                return value
        return self.canvas.source_height

    def height(self, node: Tag) -> float:
        key = id(node)
        if key not in self._heights:
            self._heights[key] = self._compute_height(node)
        return self._heights[key]

    def _compute_height(self, node: Tag) -> float:
        style = self.style(node)
        parent = self.parent(node)
        if (
            parent is not None
            and style.get("flex")
            and not is_positioned(style)
            and is_flex_column(self.style(parent))
        ):
            return self._flex_share(parent)
        declared = parse_length(style.get("height"), self.container_height(parent))
        if declared is not None:
            return declared
        return self.content_height(node)

    def _flex_share(self, parent: Tag) -> float:
        siblings = self.flow_children(parent)
        flex_count = sum(1 for s in siblings if self.style(s).get("flex"))
        top, _, bottom, _ = self.padding(parent)
        available = (
            self.container_height(parent)
            - top
            - bottom
            - self.gap(parent) * (len(siblings) - 1)
        )
        return available / max(flex_count, 1)

    def content_height(self, node: Tag) -> float:
        """Intrinsic height: stacked flow children, or estimated text lines.

        Children are summed exactly as ``local_offset`` stacks them, so the
        next sibling starts below the last child.
        """
        children = self.flow_children(node)
        if children and not is_text_block(node, self.cascade):
            gap = self.gap(node) if is_flex_column(self.style(node)) else 0.0
            top, _, bottom, _ = self.padding(node)
            total = top + bottom + gap * (len(children) - 1)
            for child in children:
                m_top, _, m_bottom, _ = self.margin(child)
                total += self.height(child) + m_top + m_bottom
            return total
        return self.text_height(node)

    def text_height(self, node: Tag) -> float:
        """``lineHeight * ceil(chars / 50) + fontSize / 2``."""
        font_size = self.font_size(node)
        line_height = self.line_height(node, font_size)
        lines = math.ceil(len(own_text(node)) / CHARS_PER_LINE)
        return line_height * lines + font_size * 0.5

    # ── Offsets ──────────────────────────────────────────────────────────────

    def local_offset(self, node: Tag) -> tuple[float, float]:
        """Offset of *node*'s border box from its parent's border box."""
        key = id(node)
        if key not in self._offsets:
            self._offsets[key] = self._compute_local_offset(node)
        return self._offsets[key]

    def _compute_local_offset(self, node: Tag) -> tuple[float, float]:
        parent = self.parent(node)
        if parent is None:
            return (0.0, 0.0)
        style = self.style(node)
        parent_style = self.style(parent)
        pad_top, _, _, pad_left = self.padding(parent)
        m_top, _, _, m_left = self.margin(node)

        gap = self.gap(parent) if is_flex_column(parent_style) else 0.0
        y = pad_top
        for sibling in self.flow_children(parent):
            if sibling is node:
                break
            y += self.height(sibling) + self.margin(sibling)[2] + gap
        y += m_top
        y += self.group_shift(parent)

        if style.get("text-align", "").strip() == "center" or (
            parent_style.get("text-align", "").strip() == "center"
        ):
            x = pad_left + (self.available_width(parent) - self.width(node)) / 2
        else:
            x = pad_left + m_left
        return (x, y)

    def group_shift(self, parent: Tag) -> float:
        """Vertical shift shared by all children of *parent*.

        Non-zero when the grandparent is a column flex container with
        ``justify-content: center``; computed once per sibling group.
        """
        key = id(parent)
        if key in self._group_shifts:
            return self._group_shifts[key]
        shift = 0.0
        grandparent = self.parent(parent)
        if grandparent is not None:
            gp_style = self.style(grandparent)
            if is_flex_column(gp_style) and gp_style.get("justify-content", "").strip() == "center":
                total = 0.0
                for child in self.flow_children(parent):
                    m_top, _, m_bottom, _ = self.margin(child)
                    total += self.height(child) + m_top + m_bottom
                shift = (self.container_height(grandparent) - total) / 2
        self._group_shifts[key] = shift
        return shift

    def absolute_origin(self, node: Tag) -> tuple[float, float]:
        """Slide coordinates of an absolutely positioned box."""
        style = self.style(node)
        canvas = self.canvas
        x = parse_length(style.get("left"), canvas.source_width)
        y = parse_length(style.get("top"), canvas.source_height)
        if x is None:
            right = parse_length(style.get("right"), canvas.source_width)
            x = canvas.source_width - right - self.width(node) if right is not None else 0.0
        if y is None:
            bottom = parse_length(style.get("bottom"), canvas.source_height)
            y = canvas.source_height - bottom - self.height(node) if bottom is not None else 0.0
        return (x, y)

    def position(self, node: Tag) -> tuple[float, float]:
        """Slide coordinates of *node*'s border box.

        Local offsets are summed up the ancestor chain until the slide root
        (at the origin) or the first absolutely positioned box.
        """
        x = y = 0.0
        seen: set[int] = set()
        current: Optional[Tag] = node
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            if self.parent(current) is None:
                break
            if is_positioned(self.style(current)):
                ax, ay = self.absolute_origin(current)
                return (x + ax, y + ay)
            lx, ly = self.local_offset(current)
            x += lx
            y += ly
            current = self.parent(current)
        return (x, y)
