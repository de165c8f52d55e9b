#!/usr/bin/env python3
"""
PPTX geometry verifier.

Reads a generated deck back with python-pptx and reports where its text boxes
ended up: boxes that overlap each other and boxes that run off the slide.

Usage:
    html2slide-verify path/to/file.pptx
    html2slide-verify path/to/directory/  # checks all .pptx files
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pptx import Presentation

EMU_PER_INCH = 914400


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class ShapeBox:
    """Position of one shape, in inches."""

    index: int
    text: str
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h


@dataclass
class ShapeOverlap:
    """A detected overlap between two text shapes."""

    slide_num: int
    shape_a_index: int
    shape_b_index: int
    shape_a_text: str
    shape_b_text: str
    overlap_width: float  # inches
    overlap_height: float  # inches
    severity: str  # MINOR, MODERATE, SEVERE


@dataclass
class SlideReport:
    """Verification report for a single slide."""

    slide_num: int
    boxes: list[ShapeBox] = field(default_factory=list)
    overlaps: list[ShapeOverlap] = field(default_factory=list)
    out_of_bounds: list[ShapeBox] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.overlaps or self.out_of_bounds)


@dataclass
class DeckReport:
    """Verification report for an entire deck."""

    path: str
    slide_width: float
    slide_height: float
    slides: list[SlideReport] = field(default_factory=list)

    @property
    def total_overlaps(self) -> int:
        return sum(len(s.overlaps) for s in self.slides)

    @property
    def total_out_of_bounds(self) -> int:
        return sum(len(s.out_of_bounds) for s in self.slides)

    @property
    def slides_with_issues(self) -> int:
        return sum(1 for s in self.slides if s.has_issues)


# ---------------------------------------------------------------------------
# Shape geometry
# ---------------------------------------------------------------------------


def _preview(text: str, max_len: int = 30) -> str:
    txt = text.replace("\n", "|")[:max_len]
    return txt if txt.strip() else "(empty)"


def shape_boxes(slide) -> list[ShapeBox]:
    """Boxes of every shape on *slide* in z-order, in inches."""
    boxes = []
    for i, shape in enumerate(slide.shapes):
        text = shape.text_frame.text if shape.has_text_frame else ""
        boxes.append(
            ShapeBox(
                index=i,
                text=text,
                x=(shape.left or 0) / EMU_PER_INCH,
                y=(shape.top or 0) / EMU_PER_INCH,
                w=(shape.width or 0) / EMU_PER_INCH,
                h=(shape.height or 0) / EMU_PER_INCH,
            )
        )
    return boxes


def find_shape_by_text(slide, text: str) -> Optional[ShapeBox]:
    """First shape whose text equals (or else contains) *text*."""
    boxes = shape_boxes(slide)
    for box in boxes:
        if box.text.strip() == text:
            return box
    for box in boxes:
        if text in box.text:
            return box
    return None


def detect_overlaps(slide, slide_num: int) -> list[ShapeOverlap]:
    """Detect overlapping text-box bounding boxes on a slide.

    Only boxes that both carry text are compared. Overlaps thinner than
    0.1" are ignored. Severity follows the overlap thickness:
        MINOR    < 0.2"
        MODERATE 0.2" -- 0.5"
        SEVERE   > 0.5"
    """
    boxes = [b for b in shape_boxes(slide) if b.text.strip()]
    overlaps: list[ShapeOverlap] = []

    for ai, a in enumerate(boxes):
        for b in boxes[ai + 1 :]:
            overlap_w = min(a.right, b.right) - max(a.x, b.x)
            overlap_h = min(a.bottom, b.bottom) - max(a.y, b.y)
            if overlap_w <= 0 or overlap_h <= 0:
                continue

            min_dim = min(overlap_w, overlap_h)
            if min_dim < 0.10:
                continue  # barely touching

            if min_dim > 0.50:
                severity = "SEVERE"
            elif min_dim > 0.20:
                severity = "MODERATE"
            else:
                severity = "MINOR"

            overlaps.append(
                ShapeOverlap(
                    slide_num=slide_num,
                    shape_a_index=a.index,
                    shape_b_index=b.index,
                    shape_a_text=_preview(a.text),
                    shape_b_text=_preview(b.text),
                    overlap_width=overlap_w,
                    overlap_height=overlap_h,
                    severity=severity,
                )
            )

    return overlaps


def detect_out_of_bounds(
    slide, slide_width: float, slide_height: float, tolerance: float = 0.01
) -> list[ShapeBox]:
    """Shapes extending past the slide edges by more than *tolerance* inches."""
    return [
        b
        for b in shape_boxes(slide)
        if b.x < -tolerance
        or b.y < -tolerance
        or b.right > slide_width + tolerance
        or b.bottom > slide_height + tolerance
    ]


# ---------------------------------------------------------------------------
# Slide / deck verification
# ---------------------------------------------------------------------------


def verify_slide(slide, slide_num: int, slide_width: float, slide_height: float) -> SlideReport:
    return SlideReport(
        slide_num=slide_num,
        boxes=shape_boxes(slide),
        overlaps=detect_overlaps(slide, slide_num),
        out_of_bounds=detect_out_of_bounds(slide, slide_width, slide_height),
    )


def verify_deck(path: str) -> DeckReport:
    """Verify all slides in a PPTX deck."""
    prs = Presentation(path)
    width = prs.slide_width / EMU_PER_INCH
    height = prs.slide_height / EMU_PER_INCH
    report = DeckReport(path=path, slide_width=width, slide_height=height)
    for i, slide in enumerate(prs.slides):
        report.slides.append(verify_slide(slide, i + 1, width, height))
    return report


# ---------------------------------------------------------------------------
# Report formatting
# ---------------------------------------------------------------------------


def format_report(report: DeckReport, verbose: bool = False) -> str:
    """Format a deck report as human-readable text."""
    lines = []
    name = Path(report.path).stem
    lines.append(f"\n{'=' * 70}")
    lines.append(f"{name}")
    lines.append(f"{'=' * 70}")

    if report.total_overlaps == 0 and report.total_out_of_bounds == 0:
        lines.append("  ALL CLEAN - no overlap or off-slide boxes detected")
        if not verbose:
            return "\n".join(lines)

    for sr in report.slides:
        if not sr.has_issues:
            if verbose:
                lines.append(f"\n  Slide {sr.slide_num}: CLEAN ({len(sr.boxes)} shapes)")
                for box in sr.boxes:
                    lines.append(
                        f'    #{box.index} ({box.x:.2f}", {box.y:.2f}") '
                        f'{box.w:.2f}"x{box.h:.2f}" "{_preview(box.text)}"'
                    )
            continue

        lines.append(
            f"\n  Slide {sr.slide_num}: {len(sr.overlaps)} overlap(s), "
            f"{len(sr.out_of_bounds)} off-slide"
        )
        for ol in sr.overlaps:
            lines.append(
                f"    [OVERLAP-{ol.severity}] shapes {ol.shape_a_index} & "
                f"{ol.shape_b_index}: "
                f'{ol.overlap_width:.2f}"x{ol.overlap_height:.2f}" overlap'
            )
            lines.append(f'      A: "{ol.shape_a_text}"  B: "{ol.shape_b_text}"')
        for box in sr.out_of_bounds:
            lines.append(
                f'    [OFF-SLIDE] shape {box.index} right={box.right:.2f}" '
                f'bottom={box.bottom:.2f}" "{_preview(box.text)}"'
            )

    return "\n".join(lines)


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: html2slide-verify <file_or_dir> [--verbose]")
        sys.exit(1)

    path = Path(sys.argv[1])
    verbose = "--verbose" in sys.argv

    if path.is_dir():
        pptx_files = sorted(path.glob("*.pptx"))
    else:
        pptx_files = [path]

    if not pptx_files or not all(p.exists() for p in pptx_files):
        print(f"No .pptx files found at {path}")
        sys.exit(1)

    total_slides = 0
    total_issues = 0
    for pptx_file in pptx_files:
        report = verify_deck(str(pptx_file))
        print(format_report(report, verbose))
        total_slides += len(report.slides)
        total_issues += report.slides_with_issues

    print(f"\n{'=' * 70}")
    print(f"SUMMARY: {total_issues} slide(s) with issues across {total_slides} slides")
    print(f"{'=' * 70}")
    sys.exit(1 if total_issues else 0)


if __name__ == "__main__":
    main()
