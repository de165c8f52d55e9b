#!/usr/bin/env python3
"""
html2slide - Convert an HTML slide with embedded CSS into a PowerPoint deck.

Usage:
    html2slide <input.html> [output.pptx] [--browser] [--source-size 1280x720]

If output path is not specified, uses the input filename with .pptx extension.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from html2slide.canvas import SLIDE_HEIGHT, SLIDE_WIDTH, SOURCE_HEIGHT, SOURCE_WIDTH, Canvas
from html2slide.converter import SlideConverter
from html2slide.errors import Html2SlideError


def _size(value: str) -> tuple[float, float]:
    """Parse ``WxH`` into two positive floats."""
    try:
        width, height = (float(part) for part in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {value!r}")
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError(f"sizes must be positive, got {value!r}")
    return width, height


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert an HTML slide with embedded CSS into a PowerPoint presentation."
    )
    parser.add_argument("input", help="Input HTML file path")
    parser.add_argument(
        "output", nargs="?", help="Output PPTX file path (default: same name as input)"
    )
    parser.add_argument(
        "--browser",
        action="store_true",
        help="Measure boxes in headless Chromium instead of estimating them",
    )
    parser.add_argument(
        "--source-size",
        type=_size,
        default=(SOURCE_WIDTH, SOURCE_HEIGHT),
        metavar="WxH",
        help="Source canvas in px, unless the slide container declares its own (default: 1280x720)",
    )
    parser.add_argument(
        "--slide-size",
        type=_size,
        default=(SLIDE_WIDTH, SLIDE_HEIGHT),
        metavar="WxH",
        help="Output slide size in inches (default: 10x5.625)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = input_path.with_suffix(".pptx")

    print(f"Converting: {input_path}")
    print(f"Output: {output_path}")

    canvas = Canvas(
        source_width=args.source_size[0],
        source_height=args.source_size[1],
        output_width=args.slide_size[0],
        output_height=args.slide_size[1],
    )
    try:
        html_content = input_path.read_text(encoding="utf-8")
        converter = SlideConverter(html_content, canvas=canvas, use_browser=args.browser)
        converter.convert()
        converter.save(str(output_path))
    except (Html2SlideError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if converter.warnings:
        print(f"\nWarnings ({len(converter.warnings)}):", file=sys.stderr)
        for w in converter.warnings:
            print(f"  - {w}", file=sys.stderr)

    num_slides = len(converter.prs.slides)
    print(f"Done! Created {output_path} ({num_slides} slides)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
