"""Tests for the deck geometry verifier."""

import sys

import pytest
from pptx import Presentation
from pptx.util import Inches

from html2slide import verify
from html2slide.verify import (
    detect_out_of_bounds,
    detect_overlaps,
    find_shape_by_text,
    format_report,
    verify_deck,
)


def _slide(*boxes):
    """A 10x7.5 slide with one text box per (x, y, w, h, text) tuple."""
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[6])
    for x, y, w, h, text in boxes:
        shape = slide.shapes.add_textbox(Inches(x), Inches(y), Inches(w), Inches(h))
        shape.text_frame.text = text
    return prs, slide


class TestDetectOverlaps:
    def test_severe(self):
        _, slide = _slide((1, 1, 3, 1, "A"), (2, 1.2, 3, 1, "B"))
        (overlap,) = detect_overlaps(slide, 1)
        assert overlap.severity == "SEVERE"
        assert overlap.overlap_width == pytest.approx(2.0)
        assert overlap.overlap_height == pytest.approx(0.8)
        assert (overlap.shape_a_text, overlap.shape_b_text) == ("A", "B")

    def test_minor(self):
        _, slide = _slide((1, 1, 3, 1, "A"), (1, 1.85, 3, 1, "B"))
        assert detect_overlaps(slide, 1)[0].severity == "MINOR"

    def test_barely_touching_is_ignored(self):
        _, slide = _slide((1, 1, 3, 1, "A"), (1, 1.95, 3, 1, "B"))
        assert detect_overlaps(slide, 1) == []

    def test_empty_boxes_are_ignored(self):
        _, slide = _slide((1, 1, 3, 1, "A"), (1, 1, 3, 1, ""))
        assert detect_overlaps(slide, 1) == []

    def test_stacked_boxes(self):
        _, slide = _slide((1, 1, 3, 1, "A"), (1, 2, 3, 1, "B"))
        assert detect_overlaps(slide, 1) == []


class TestOutOfBounds:
    def test_box_past_right_edge(self):
        _, slide = _slide((9, 1, 2, 1, "wide"), (1, 1, 2, 1, "ok"))
        assert [b.text for b in detect_out_of_bounds(slide, 10, 7.5)] == ["wide"]

    def test_box_on_edge_is_fine(self):
        _, slide = _slide((8, 6.5, 2, 1, "corner"))
        assert detect_out_of_bounds(slide, 10, 7.5) == []


def test_find_shape_by_text():
    _, slide = _slide((1, 1, 3, 1, "Hello world"), (1, 3, 3, 1, "Hello"))
    assert find_shape_by_text(slide, "Hello").y == pytest.approx(3)
    assert find_shape_by_text(slide, "world").y == pytest.approx(1)
    assert find_shape_by_text(slide, "missing") is None


class TestDeckReport:
    def test_clean_deck(self, tmp_path):
        prs, _ = _slide((1, 1, 3, 1, "A"))
        path = tmp_path / "clean.pptx"
        prs.save(str(path))
        report = verify_deck(str(path))
        assert (report.slide_width, report.slide_height) == (10, 7.5)
        assert report.slides_with_issues == 0
        assert "ALL CLEAN" in format_report(report)

    def test_report_lists_issues(self, tmp_path):
        prs, _ = _slide((1, 1, 3, 1, "A"), (2, 1.2, 3, 1, "B"), (9, 7, 2, 1, "off"))
        path = tmp_path / "messy.pptx"
        prs.save(str(path))
        report = verify_deck(str(path))
        assert report.total_overlaps == 1
        assert report.total_out_of_bounds == 1
        text = format_report(report)
        assert "[OVERLAP-SEVERE] shapes 0 & 1" in text
        assert "[OFF-SLIDE] shape 2" in text

    def test_main_exit_codes(self, tmp_path, monkeypatch, capsys):
        prs, _ = _slide((1, 1, 3, 1, "A"), (2, 1.2, 3, 1, "B"))
        prs.save(str(tmp_path / "messy.pptx"))
        monkeypatch.setattr(sys, "argv", ["html2slide-verify", str(tmp_path)])
        with pytest.raises(SystemExit) as exc:
            verify.main()
        assert exc.value.code == 1
        assert "1 slide(s) with issues across 1 slides" in capsys.readouterr().out
