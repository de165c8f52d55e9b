"""Flattened text formatting handed to the presentation writer."""

import re
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from bs4 import NavigableString, Tag
from bs4.element import Comment
from pptx.dml.color import RGBColor

from html2slide.dom import INLINE_TAGS, closest
from html2slide.stylesheet import INHERITED_PROPERTIES, inherited_value
from html2slide.units import (
    DEFAULT_FONT,
    color_from_shorthand,
    parse_color,
    parse_font_family,
    parse_font_size_pt,
    parse_length,
    parse_rotation,
    PT_PER_PX,
)

DEFAULT_FONT_SIZE_PT = 12.0  # 16px
DEFAULT_TEXT_COLOR = RGBColor(0x00, 0x00, 0x00)

_WHITESPACE = re.compile(r"[ \t\r\n\f]+")
_ALIGNMENTS = ("left", "center", "right", "justify")
_ANCHORS = {"center": "middle", "flex-start": "top", "start": "top", "flex-end": "bottom", "end": "bottom"}


def is_bold(weight: Optional[str]) -> bool:
    if not weight:
        return False
    weight = weight.strip().lower()
    if weight in ("bold", "bolder"):
        return True
    try:
        return int(weight) >= 600
    except ValueError:
        return False


@dataclass
class TextFormat:
    font_face: str = DEFAULT_FONT
    font_size: float = DEFAULT_FONT_SIZE_PT
    bold: bool = False
    italic: bool = False
    color: RGBColor = DEFAULT_TEXT_COLOR
    fill: Optional[RGBColor] = None
    border_color: Optional[RGBColor] = None
    border_width: float = 0.0  # pt
    align: str = "left"
    valign: str = "middle"
    rotation: float = 0.0
    hyperlink: Optional[str] = None

    @classmethod
    def from_style(
        cls, style: Mapping[str, str], hyperlink: Optional[str] = None
    ) -> "TextFormat":
        """Build a format from a flat CSS property map."""
        fmt = cls(hyperlink=hyperlink)

        fmt.font_size = parse_font_size_pt(style.get("font-size")) or DEFAULT_FONT_SIZE_PT
        fmt.font_face = parse_font_family(style.get("font-family"))
        fmt.bold = is_bold(style.get("font-weight"))
        fmt.italic = style.get("font-style", "").strip() == "italic"
        fmt.color = parse_color(style.get("color")) or DEFAULT_TEXT_COLOR

        background = style.get("background-color") or style.get("background")
        fmt.fill = color_from_shorthand(background)

        border = style.get("border", "").strip()
        if border and border != "none":
            fmt.border_color = parse_color(style.get("border-color")) or color_from_shorthand(
                border
            )
            width = parse_length(style.get("border-width") or border.split()[0])
            fmt.border_width = round((width if width is not None else 1.0) * PT_PER_PX, 2)
        elif style.get("border-color"):
            fmt.border_color = parse_color(style.get("border-color"))
            width = parse_length(style.get("border-width"))
            fmt.border_width = round((width if width is not None else 1.0) * PT_PER_PX, 2)
        if fmt.border_color is None or fmt.border_width <= 0:
            fmt.border_color = None
            fmt.border_width = 0.0

        align = style.get("text-align", "").strip()
        if align in ("start", "end"):
            align = "left" if align == "start" else "right"
        if align in _ALIGNMENTS:
            fmt.align = align
        justify = style.get("justify-content", "").strip()
        if justify == "center":
            fmt.align = "center"
        elif justify == "flex-end":
            fmt.align = "right"

        fmt.valign = _ANCHORS.get(style.get("align-items", "").strip(), fmt.valign)
        fmt.rotation = parse_rotation(style.get("transform"))
        return fmt


@dataclass
class TextRun:
    text: str
    bold: bool = False
    italic: bool = False
    color: Optional[RGBColor] = None
    hyperlink: Optional[str] = None

    def same_format(self, other: "TextRun") -> bool:
        return (
            self.bold == other.bold
            and self.italic == other.italic
            and self.color == other.color
            and self.hyperlink == other.hyperlink
        )


def effective_style(
    node: Tag, style_of: Callable[[Tag], Mapping[str, str]]
) -> dict[str, str]:
    """The node's own style plus inheritable text properties from ancestors."""
    style = dict(style_of(node))
    for prop in INHERITED_PROPERTIES:
        if prop not in style:
            value = inherited_value(node.parent, prop, style_of)
            if value:
                style[prop] = value
    return style


def hyperlink_for(node: Tag) -> Optional[str]:
    """Target of the enclosing link, or of the only link inside *node*."""
    anchor = closest(node, "a")
    if anchor is None:
        links = node.find_all("a", href=True)
        anchor = links[0] if len(links) == 1 else None
    if anchor is None:
        return None
    return anchor.get("href") or None


def rich_runs(
    node: Tag, style_of: Callable[[Tag], Mapping[str, str]]
) -> list[TextRun]:
    """Extract formatted runs from a leaf node and its inline descendants.

    Bold/italic come from ``strong/b/em/i`` or the cascaded font weight/style
    of inline elements; color from an inline element's own ``color``.
    """
    runs: list[TextRun] = []

    def walk(el: Tag, bold: bool, italic: bool, color, link):
        for child in el.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString):
                text = _WHITESPACE.sub(" ", str(child))
                if text:
                    runs.append(TextRun(text, bold, italic, color, link))
            elif isinstance(child, Tag):
                if child.name == "br":
                    runs.append(TextRun("\n", bold, italic, color, link))
                    continue
                if child.name not in INLINE_TAGS:
                    continue
                style = style_of(child)
                child_bold = bold or child.name in ("strong", "b") or is_bold(
                    style.get("font-weight")
                )
                child_italic = (
                    italic
                    or child.name in ("em", "i")
                    or style.get("font-style", "").strip() == "italic"
                )
                child_color = parse_color(style.get("color")) or color
                child_link = child.get("href") if child.name == "a" else link
                walk(child, child_bold, child_italic, child_color, child_link)

    walk(node, False, False, None, None)
    return _normalize(runs)


def _normalize(runs: list[TextRun]) -> list[TextRun]:
    """Collapse whitespace across run boundaries and merge identical neighbours."""
    previous = "\n"
    for run in runs:
        chars = []
        for ch in run.text:
            if ch == " " and previous in (" ", "\n"):
                continue
            chars.append(ch)
            previous = ch
        run.text = "".join(chars).replace(" \n", "\n")

    # A space left at the end of a run is dropped before a break or the end.
    for i, run in enumerate(runs):
        following = runs[i + 1].text[:1] if i + 1 < len(runs) else "\n"
        if run.text.endswith(" ") and following == "\n":
            run.text = run.text[:-1]

    merged: list[TextRun] = []
    for run in runs:
        if not run.text:
            continue
        if merged and merged[-1].same_format(run):
            merged[-1].text += run.text
        else:
            merged.append(run)
    return merged
