"""End-to-end tests for the conversion driver and the command line."""

import pytest
from pptx.dml.color import RGBColor
from pptx.util import Inches, Pt

from html2slide.cli import main
from html2slide.converter import SlideConverter, convert_file
from html2slide.errors import ConversionError, RendererUnavailable
from html2slide.geometry import BoxModelGeometryResolver
from html2slide.renderer import RenderedBox
from html2slide.verify import find_shape_by_text, verify_deck

STACKED = """
<html><head><style>
.slide { width: 1280px; height: 720px; padding: 40px; background-color: #1a202c; }
h1 { height: 80px; margin-bottom: 20px; font-size: 32px; font-weight: bold; color: #ffffff; }
p { height: 40px; }
</style></head>
<body><div class="slide"><h1>Title</h1><p>Body text</p></div></body></html>
"""


def _shapes(prs, index=0):
    return list(prs.slides[index].shapes)


class TestHeuristicConversion:
    def test_stacked_boxes(self):
        prs = SlideConverter(STACKED).convert()
        title, body = _shapes(prs)
        assert title.text_frame.text == "Title"
        assert (title.left, title.top) == (Inches(0.3125), Inches(0.3125))
        assert (title.width, title.height) == (Inches(9.375), Inches(0.625))
        assert body.text_frame.text == "Body text"
        assert body.top == Inches(1.09375)

    def test_slide_size(self):
        prs = SlideConverter(STACKED).convert()
        assert (prs.slide_width, prs.slide_height) == (Inches(10), Inches(5.625))

    def test_fonts_and_background(self):
        prs = SlideConverter(STACKED).convert()
        slide = prs.slides[0]
        run = slide.shapes[0].text_frame.paragraphs[0].runs[0]
        assert run.font.size == Pt(24)
        assert run.font.bold is True
        assert run.font.color.rgb == RGBColor(0xFF, 0xFF, 0xFF)
        assert slide.background.fill.fore_color.rgb == RGBColor(0x1A, 0x20, 0x2C)

    def test_saved_deck_is_clean(self, tmp_path):
        converter = SlideConverter(STACKED)
        converter.convert()
        output = tmp_path / "deck.pptx"
        converter.save(str(output))

        report = verify_deck(str(output))
        assert len(report.slides) == 1
        assert report.total_overlaps == 0
        assert report.total_out_of_bounds == 0
        box = find_shape_by_text(converter.prs.slides[0], "Body text")
        assert box.y == pytest.approx(1.09375)

    def test_zero_size_nodes_are_suppressed(self):
        html = '<div class="slide"><p style="width: 0">gone</p><p>kept</p></div>'
        prs = SlideConverter(html).convert()
        assert [s.text_frame.text for s in _shapes(prs)] == ["kept"]

    def test_line_breaks_become_paragraphs(self):
        html = '<div class="slide"><p>one<br>two</p></div>'
        prs = SlideConverter(html).convert()
        paragraphs = _shapes(prs)[0].text_frame.paragraphs
        assert [p.text for p in paragraphs] == ["one", "two"]

    def test_one_slide_per_container(self):
        html = '<div class="slide"><p>1</p></div><section class="slide"><p>2</p></section>'
        prs = SlideConverter(html).convert()
        assert len(prs.slides) == 2
        assert _shapes(prs, 1)[0].text_frame.text == "2"

    def test_empty_document_warns(self):
        with pytest.warns(UserWarning):
            prs = SlideConverter("").convert()
        assert len(prs.slides) == 0

    def test_failing_node_does_not_abort_slide(self, monkeypatch):
        original = BoxModelGeometryResolver.resolve

        def flaky(self, node):
            if "bad" in (node.get("class") or []):
                raise ValueError("boom")
            return original(self, node)

        monkeypatch.setattr(BoxModelGeometryResolver, "resolve", flaky)
        html = '<div class="slide"><p>a</p><p class="bad">b</p><p>c</p></div>'
        converter = SlideConverter(html)
        prs = converter.convert()
        assert [s.text_frame.text for s in _shapes(prs)] == ["a", "c"]
        assert converter.warnings == ["Skipped <p> .bad: boom"]

    def test_unwritable_output(self, tmp_path):
        converter = SlideConverter(STACKED)
        converter.convert()
        with pytest.raises(ConversionError):
            converter.save(str(tmp_path / "missing" / "deck.pptx"))


class TestBrowserConversion:
    def test_fetcher_boxes_are_scaled(self):
        calls = []

        async def fetcher(html, selector, viewport):
            calls.append((selector, viewport))
            return [
                RenderedBox(
                    tag="p",
                    element_id="",
                    class_name="",
                    x=640,
                    y=360,
                    w=100,
                    h=50,
                    text="Hello",
                    style={"color": "rgb(255, 0, 0)"},
                )
            ]

        prs = SlideConverter('<div class="slide"><p>Hello</p></div>', fetcher=fetcher).convert()
        assert calls == [("div.slide, section.slide", (1280, 720))]
        (shape,) = _shapes(prs)
        assert (shape.left, shape.top) == (Inches(5.0), Inches(2.8125))
        assert (shape.width, shape.height) == (Inches(0.78125), Inches(0.390625))
        run = shape.text_frame.paragraphs[0].runs[0]
        assert run.font.color.rgb == RGBColor(0xFF, 0, 0)

    def test_boxes_are_grouped_by_slide(self):
        async def fetcher(html, selector, viewport):
            return [
                RenderedBox("p", "", "", 0, 0, 10, 10, "second", slide=1),
                RenderedBox("p", "", "", 0, 0, 10, 10, "first", slide=0),
            ]

        html = '<div class="slide"><p>first</p></div><div class="slide"><p>second</p></div>'
        prs = SlideConverter(html, fetcher=fetcher).convert()
        assert _shapes(prs, 0)[0].text_frame.text == "first"
        assert _shapes(prs, 1)[0].text_frame.text == "second"

    def test_fetcher_failure(self):
        async def fetcher(html, selector, viewport):
            raise RuntimeError("crashed")

        with pytest.raises(ConversionError, match="crashed"):
            SlideConverter('<div class="slide"><p>x</p></div>', fetcher=fetcher).convert()

    def test_renderer_unavailable_propagates(self):
        async def fetcher(html, selector, viewport):
            raise RendererUnavailable("no browser")

        with pytest.raises(RendererUnavailable):
            SlideConverter('<div class="slide"><p>x</p></div>', fetcher=fetcher).convert()


class TestConvertFile:
    def test_default_output_path(self, tmp_path):
        source = tmp_path / "talk.html"
        source.write_text(STACKED, encoding="utf-8")
        converter = convert_file(str(source))
        assert (tmp_path / "talk.pptx").exists()
        assert len(converter.prs.slides) == 1

    def test_missing_input(self, tmp_path):
        with pytest.raises(ConversionError):
            convert_file(str(tmp_path / "nope.html"))


class TestCli:
    def test_converts(self, tmp_path, capsys):
        source = tmp_path / "talk.html"
        source.write_text(STACKED, encoding="utf-8")
        output = tmp_path / "out.pptx"
        assert main([str(source), str(output)]) == 0
        assert output.exists()
        assert "1 slides" in capsys.readouterr().out

    def test_custom_slide_size(self, tmp_path):
        source = tmp_path / "talk.html"
        source.write_text(STACKED, encoding="utf-8")
        output = tmp_path / "out.pptx"
        assert main([str(source), str(output), "--slide-size", "13.333x7.5"]) == 0
        report = verify_deck(str(output))
        assert report.slide_width == pytest.approx(13.333, abs=1e-3)

    def test_missing_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.html")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_bad_size(self, tmp_path):
        with pytest.raises(SystemExit):
            main([str(tmp_path / "x.html"), "--source-size", "wide"])
