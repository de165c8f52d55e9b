"""Tests for text formatting extraction."""

from bs4 import BeautifulSoup
from pptx.dml.color import RGBColor

from html2slide.formatting import (
    TextFormat,
    TextRun,
    effective_style,
    hyperlink_for,
    is_bold,
    rich_runs,
)
from html2slide.stylesheet import StyleCascadeResolver, StyleSheet


def _parse(html: str):
    soup = BeautifulSoup(html, "lxml")
    return soup, StyleCascadeResolver(StyleSheet.from_soup(soup))


class TestIsBold:
    def test_keywords(self):
        assert is_bold("bold")
        assert is_bold("bolder")
        assert not is_bold("normal")

    def test_numeric(self):
        assert is_bold("600")
        assert is_bold("800")
        assert not is_bold("400")

    def test_missing(self):
        assert not is_bold(None)
        assert not is_bold("")


class TestTextFormat:
    def test_defaults(self):
        fmt = TextFormat.from_style({})
        assert fmt.font_face == "Arial"
        assert fmt.font_size == 12.0
        assert fmt.color == RGBColor(0, 0, 0)
        assert fmt.fill is None
        assert fmt.border_color is None
        assert (fmt.align, fmt.valign) == ("left", "middle")
        assert fmt.rotation == 0.0

    def test_font(self):
        fmt = TextFormat.from_style(
            {
                "font-size": "32px",
                "font-weight": "700",
                "font-style": "italic",
                "font-family": "Georgia, serif",
                "color": "#3182ce",
            }
        )
        assert fmt.font_size == 24.0
        assert fmt.bold and fmt.italic
        assert fmt.font_face == "Georgia"
        assert fmt.color == RGBColor(0x31, 0x82, 0xCE)

    def test_background_fill(self):
        assert TextFormat.from_style({"background-color": "#f0f0f0"}).fill == RGBColor(
            0xF0, 0xF0, 0xF0
        )
        assert TextFormat.from_style({"background": "#333 no-repeat"}).fill == RGBColor(
            0x33, 0x33, 0x33
        )
        assert TextFormat.from_style({"background-color": "transparent"}).fill is None

    def test_border(self):
        fmt = TextFormat.from_style({"border": "2px solid #333"})
        assert fmt.border_color == RGBColor(0x33, 0x33, 0x33)
        assert fmt.border_width == 1.5

    def test_border_longhands(self):
        fmt = TextFormat.from_style({"border-color": "red", "border-width": "4px"})
        assert fmt.border_color == RGBColor(0xFF, 0, 0)
        assert fmt.border_width == 3.0

    def test_no_border(self):
        fmt = TextFormat.from_style({"border": "none"})
        assert fmt.border_color is None
        assert fmt.border_width == 0.0

    def test_text_align(self):
        assert TextFormat.from_style({"text-align": "center"}).align == "center"
        assert TextFormat.from_style({"text-align": "end"}).align == "right"
        assert TextFormat.from_style({"text-align": "inherit"}).align == "left"

    def test_flex_alignment(self):
        fmt = TextFormat.from_style({"justify-content": "center", "align-items": "flex-start"})
        assert (fmt.align, fmt.valign) == ("center", "top")
        fmt = TextFormat.from_style({"justify-content": "flex-end", "align-items": "flex-end"})
        assert (fmt.align, fmt.valign) == ("right", "bottom")

    def test_rotation_and_link(self):
        fmt = TextFormat.from_style({"transform": "rotate(90deg)"}, "https://example.com")
        assert fmt.rotation == 90.0
        assert fmt.hyperlink == "https://example.com"


class TestRichRuns:
    def test_bold_and_line_break(self):
        soup, cascade = _parse("<p>Hello <strong>World</strong><br>Line two</p>")
        runs = rich_runs(soup.find("p"), cascade.resolve)
        assert runs == [
            TextRun("Hello "),
            TextRun("World", bold=True),
            TextRun("\nLine two"),
        ]
        assert "".join(r.text for r in runs) == "Hello World\nLine two"

    def test_whitespace_collapses_across_runs(self):
        soup, cascade = _parse("<p>\n   Spaced   <em> out </em>  text\n</p>")
        runs = rich_runs(soup.find("p"), cascade.resolve)
        assert "".join(r.text for r in runs) == "Spaced out text"
        assert runs[1] == TextRun("out ", italic=True)

    def test_span_color(self):
        soup, cascade = _parse('<p>Plain <span style="color: #ff0000">red</span></p>')
        runs = rich_runs(soup.find("p"), cascade.resolve)
        assert runs == [TextRun("Plain "), TextRun("red", color=RGBColor(0xFF, 0, 0))]

    def test_bold_from_stylesheet(self):
        soup, cascade = _parse(
            '<style>.hl { font-weight: 700 }</style><p>a <span class="hl">b</span></p>'
        )
        runs = rich_runs(soup.find("p"), cascade.resolve)
        assert runs[-1] == TextRun("b", bold=True)

    def test_inline_link(self):
        soup, cascade = _parse('<p>See <a href="https://example.com">docs</a></p>')
        runs = rich_runs(soup.find("p"), cascade.resolve)
        assert runs[-1] == TextRun("docs", hyperlink="https://example.com")

    def test_comments_are_ignored(self):
        soup, cascade = _parse("<p>a<!-- hidden -->b</p>")
        assert rich_runs(soup.find("p"), cascade.resolve) == [TextRun("ab")]

    def test_nested_blocks_are_not_included(self):
        soup, cascade = _parse("<div>Label<div>Inner</div></div>")
        runs = rich_runs(soup.find("div"), cascade.resolve)
        assert "".join(r.text for r in runs) == "Label"


class TestHyperlinkFor:
    def test_single_link_inside(self):
        soup = BeautifulSoup('<p>See <a href="https://a.test">a</a></p>', "lxml")
        assert hyperlink_for(soup.find("p")) == "https://a.test"

    def test_ambiguous_links(self):
        soup = BeautifulSoup('<p><a href="https://a.test">a</a><a href="https://b.test">b</a></p>', "lxml")
        assert hyperlink_for(soup.find("p")) is None

    def test_enclosing_link(self):
        soup = BeautifulSoup('<a href="https://a.test"><div>card</div></a>', "html.parser")
        assert hyperlink_for(soup.find("div")) == "https://a.test"

    def test_no_link(self):
        soup = BeautifulSoup("<p>plain</p>", "lxml")
        assert hyperlink_for(soup.find("p")) is None


class TestEffectiveStyle:
    def test_inherits_text_properties_only(self):
        soup, cascade = _parse(
            '<div style="color: red; font-size: 20px; width: 100px">'
            '<p style="font-weight: bold">x</p></div>'
        )
        style = effective_style(soup.find("p"), cascade.resolve)
        assert style["color"] == "red"
        assert style["font-size"] == "20px"
        assert style["font-weight"] == "bold"
        assert "width" not in style

    def test_own_value_wins(self):
        soup, cascade = _parse('<div style="color: red"><p style="color: blue">x</p></div>')
        assert effective_style(soup.find("p"), cascade.resolve)["color"] == "blue"
