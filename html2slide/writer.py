"""python-pptx output: one positioned, styled text box per slide item."""

import logging
from typing import Optional

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt

from html2slide.canvas import Canvas
from html2slide.formatting import TextFormat, TextRun

logger = logging.getLogger(__name__)

BLANK_LAYOUT = 6
DEFAULT_BACKGROUND = RGBColor(0xFF, 0xFF, 0xFF)

ALIGNMENTS = {
    "left": PP_ALIGN.LEFT,
    "center": PP_ALIGN.CENTER,
    "right": PP_ALIGN.RIGHT,
    "justify": PP_ALIGN.JUSTIFY,
}
ANCHORS = {
    "top": MSO_ANCHOR.TOP,
    "middle": MSO_ANCHOR.MIDDLE,
    "bottom": MSO_ANCHOR.BOTTOM,
}


def set_slide_background(slide, color: RGBColor = DEFAULT_BACKGROUND):
    """Set solid background color for a slide."""
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = color


def _set_font(run, fmt: TextFormat, source: Optional[TextRun] = None):
    """Apply font properties to a text run; run-level formatting wins."""
    run.font.name = fmt.font_face
    run.font.size = Pt(fmt.font_size)
    run.font.bold = fmt.bold or (source is not None and source.bold)
    run.font.italic = fmt.italic or (source is not None and source.italic)
    color = source.color if source is not None and source.color is not None else fmt.color
    run.font.color.rgb = color
    link = source.hyperlink if source is not None and source.hyperlink else fmt.hyperlink
    if link:
        run.hyperlink.address = link


def _paragraphs(runs: list[TextRun]) -> list[list[TextRun]]:
    """Split runs on line breaks into per-paragraph run lists."""
    paragraphs: list[list[TextRun]] = [[]]
    for r in runs:
        for i, part in enumerate(r.text.split("\n")):
            if i > 0:
                paragraphs.append([])
            if part:
                paragraphs[-1].append(
                    TextRun(part, r.bold, r.italic, r.color, r.hyperlink)
                )
    return paragraphs


class SlideWriter:
    """Builds a presentation sized to the output canvas."""

    def __init__(self, canvas: Optional[Canvas] = None):
        self.canvas = canvas or Canvas()
        self.prs = Presentation()
        self.prs.slide_width = Inches(self.canvas.output_width)
        self.prs.slide_height = Inches(self.canvas.output_height)
        self.blank_layout = self.prs.slide_layouts[BLANK_LAYOUT]

    def add_slide(self, background: Optional[RGBColor] = None):
        slide = self.prs.slides.add_slide(self.blank_layout)
        set_slide_background(slide, background or DEFAULT_BACKGROUND)
        return slide

    def add_box(self, slide, item):
        """Add a text box for a scaled SlideItem. Every run gets explicit fonts."""
        geo, fmt = item.geometry, item.format
        box = slide.shapes.add_textbox(
            Inches(geo.x), Inches(geo.y), Inches(geo.w), Inches(geo.h)
        )
        tf = box.text_frame
        tf.word_wrap = True
        tf.auto_size = None
        tf.vertical_anchor = ANCHORS.get(fmt.valign, MSO_ANCHOR.MIDDLE)

        if fmt.fill is not None:
            box.fill.solid()
            box.fill.fore_color.rgb = fmt.fill
        if fmt.border_color is not None:
            box.line.color.rgb = fmt.border_color
            box.line.width = Pt(fmt.border_width)
        if fmt.rotation:
            box.rotation = fmt.rotation

        runs = item.runs or [TextRun(item.text)]
        for p_idx, p_runs in enumerate(_paragraphs(runs)):
            p = tf.paragraphs[0] if p_idx == 0 else tf.add_paragraph()
            p.alignment = ALIGNMENTS.get(fmt.align, PP_ALIGN.LEFT)
            if not p_runs:
                # Empty paragraph (blank line)
                run = p.add_run()
                run.text = ""
                _set_font(run, fmt)
                continue
            for r in p_runs:
                run = p.add_run()
                run.text = r.text
                _set_font(run, fmt, r)
        return box

    def save(self, output_path: str):
        """Save the presentation to a file."""
        self.prs.save(output_path)
        logger.info("Wrote %d slide(s) to %s", len(self.prs.slides), output_path)
