"""Conversion driver: document -> per-node geometry and format -> PPTX.

Data flows one way per slide container::

    cascade -> geometry (source px) -> scale (inches) -> writer

A failure while resolving or writing one node is recorded and the next node
is processed; it never aborts the slide.
"""

import asyncio
import logging
import warnings
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Optional

from bs4 import BeautifulSoup, Tag
from pptx.dml.color import RGBColor

from html2slide.canvas import Canvas, Geometry, scale
from html2slide.dom import class_list
from html2slide.errors import ConversionError, RendererUnavailable
from html2slide.formatting import (
    TextFormat,
    TextRun,
    effective_style,
    hyperlink_for,
    rich_runs,
)
from html2slide.geometry import (
    BoxModelGeometryResolver,
    find_slide_roots,
    iter_leaf_text_nodes,
    root_selector,
)
from html2slide.renderer import RenderedBox, fetch_rendered_boxes
from html2slide.stylesheet import StyleCascadeResolver, StyleSheet
from html2slide.units import color_from_shorthand, parse_color
from html2slide.writer import SlideWriter

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, str, tuple[int, int]], Awaitable[list[RenderedBox]]]


@dataclass
class SlideItem:
    """One text box ready for the writer; geometry is in output units."""

    text: str
    geometry: Geometry
    format: TextFormat
    runs: list[TextRun] = field(default_factory=list)


class SlideConverter:
    """Converts an HTML document with embedded CSS into a PowerPoint deck."""

    def __init__(
        self,
        html_content: str,
        canvas: Optional[Canvas] = None,
        use_browser: bool = False,
        fetcher: Optional[Fetcher] = None,
    ):
        self.html = html_content
        self.soup = BeautifulSoup(html_content, "lxml")
        self.stylesheet = StyleSheet.from_soup(self.soup)
        self.cascade = StyleCascadeResolver(self.stylesheet)
        self.canvas = canvas or Canvas()
        self.use_browser = use_browser or fetcher is not None
        self.fetcher = fetcher or fetch_rendered_boxes
        self.writer = SlideWriter(self.canvas)

        # Per-node problems, in the order they happened
        self.warnings: list[str] = []

    @property
    def prs(self):
        return self.writer.prs

    def _warn(self, message: str):
        self.warnings.append(message)
        logger.warning(message)

    # ── Slide extraction ─────────────────────────────────────────────────────

    def extract_slides(self) -> list[Tag]:
        return find_slide_roots(self.soup)

    def slide_canvas(self, root: Tag) -> Canvas:
        """Output canvas with the source size taken from the slide container."""
        return self.canvas.for_root(self.cascade.resolve(root))

    def slide_background(self, root: Tag) -> Optional[RGBColor]:
        style = self.cascade.resolve(root)
        return parse_color(style.get("background-color")) or color_from_shorthand(
            style.get("background")
        )

    # ── Heuristic geometry ───────────────────────────────────────────────────

    def collect(self, root: Tag) -> list[SlideItem]:
        """Resolve every leaf text node under *root* into a SlideItem."""
        canvas = self.slide_canvas(root)
        resolver = BoxModelGeometryResolver(root, self.cascade, canvas)
        items: list[SlideItem] = []
        for node in iter_leaf_text_nodes(root, self.cascade):
            try:
                item = self._item_for(node, resolver, canvas)
            except Exception as exc:
                self._warn(f"Skipped <{node.name}> {_describe(node)}: {exc}")
                continue
            if item is not None:
                items.append(item)
        return items

    def _item_for(
        self, node: Tag, resolver: BoxModelGeometryResolver, canvas: Canvas
    ) -> Optional[SlideItem]:
        geometry = resolver.resolve(node)
        if geometry is None:
            logger.debug("Nothing to render for <%s> %s", node.name, _describe(node))
            return None
        runs = rich_runs(node, resolver.style)
        text = "".join(r.text for r in runs)
        if not text.strip():
            return None
        fmt = TextFormat.from_style(
            effective_style(node, resolver.style), hyperlink_for(node)
        )
        return SlideItem(text=text, geometry=scale(geometry, canvas), format=fmt, runs=runs)

    # ── Browser geometry ─────────────────────────────────────────────────────

    def render(self) -> dict[int, list[RenderedBox]]:
        """Ask the headless browser for every box of the document, once."""
        selector = root_selector(self.soup)
        if selector is None:
            return {}
        viewport = (int(self.canvas.source_width), int(self.canvas.source_height))
        try:
            boxes = asyncio.run(self.fetcher(self.html, selector, viewport))
        except RendererUnavailable:
            raise
        except Exception as exc:
            raise ConversionError(f"Browser rendering failed: {exc}") from exc
        grouped: dict[int, list[RenderedBox]] = defaultdict(list)
        for box in boxes:
            grouped[box.slide].append(box)
        return grouped

    def collect_rendered(
        self, boxes: list[RenderedBox], canvas: Canvas
    ) -> list[SlideItem]:
        items: list[SlideItem] = []
        for box in boxes:
            try:
                geometry = Geometry(box.x, box.y, box.w, box.h)
                if geometry.is_empty:
                    continue
                items.append(
                    SlideItem(
                        text=box.text,
                        geometry=scale(geometry, canvas),
                        format=TextFormat.from_style(box.style, box.hyperlink),
                        runs=[TextRun(box.text)],
                    )
                )
            except Exception as exc:
                self._warn(f"Skipped rendered <{box.tag}>: {exc}")
        return items

    # ── Convert & Save ───────────────────────────────────────────────────────

    def convert(self):
        """Convert the HTML to a PowerPoint presentation."""
        slides = self.extract_slides()

        if not slides:
            warnings.warn(
                "No slide container found in HTML. Check for <div class='slide'> or a <body>."
            )

        rendered = self.render() if self.use_browser else None

        for i, root in enumerate(slides):
            slide = self.writer.add_slide(self.slide_background(root))
            if rendered is not None:
                items = self.collect_rendered(rendered.get(i, []), self.slide_canvas(root))
            else:
                items = self.collect(root)
            for item in items:
                try:
                    self.writer.add_box(slide, item)
                except Exception as exc:
                    self._warn(f"Could not write box {item.text[:30]!r}: {exc}")
            logger.info("Slide %d: %d text box(es)", i + 1, len(items))

        return self.prs

    def save(self, output_path: str):
        """Save the presentation to a file."""
        try:
            self.writer.save(output_path)
        except OSError as exc:
            raise ConversionError(f"Cannot write {output_path}: {exc}") from exc


def _describe(node: Tag) -> str:
    return "".join("." + c for c in class_list(node))


def convert_file(
    input_path: str,
    output_path: Optional[str] = None,
    **options,
) -> SlideConverter:
    """Convert an HTML file; the output defaults to the input with ``.pptx``."""
    source = Path(input_path)
    try:
        html_content = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConversionError(f"Cannot read {source}: {exc}") from exc
    target = Path(output_path) if output_path else source.with_suffix(".pptx")
    converter = SlideConverter(html_content, **options)
    converter.convert()
    converter.save(str(target))
    return converter
