"""Ground-truth geometry from a headless Chromium (optional ``browser`` extra).

Boxes come back in source pixels relative to the padding box of the slide
container, so they feed the same scaler as the heuristic resolver.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from html2slide.errors import RendererUnavailable

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = (1280, 720)

# Runs inside the page. Only elements with their own text nodes are reported,
# tagged with the index of the slide container they belong to.
_EXTRACT_JS = """
(selector) => {
    const styleNode = document.createElement('style');
    styleNode.innerHTML = '*, *::before, *::after { box-sizing: border-box; }';
    document.head.appendChild(styleNode);

    const hasOwnText = (el) => Array.from(el.childNodes).some(
        (n) => n.nodeType === Node.TEXT_NODE && n.textContent.trim().length > 0
    );

    const containers = Array.from(document.querySelectorAll(selector));
    return containers.flatMap((container, slideIndex) => {
        const containerRect = container.getBoundingClientRect();
        const containerStyle = window.getComputedStyle(container);
        const paddingLeft = parseFloat(containerStyle.paddingLeft) || 0;
        const paddingTop = parseFloat(containerStyle.paddingTop) || 0;

        return Array.from(container.querySelectorAll('*')).filter((el) => {
            if (!hasOwnText(el)) return false;
            const style = window.getComputedStyle(el);
            if (style.display === 'none' || style.visibility === 'hidden'
                || parseFloat(style.opacity) === 0) {
                return false;
            }
            // Inline runs belong to the text of the block around them.
            if (style.display.startsWith('inline') && el.parentElement
                && hasOwnText(el.parentElement)) {
                return false;
            }
            return true;
        }).map((el) => {
            const rect = el.getBoundingClientRect();
            const style = window.getComputedStyle(el);
            const link = el.closest('a');
            return {
                slide: slideIndex,
                tag: el.tagName.toLowerCase(),
                id: el.id,
                className: typeof el.className === 'string' ? el.className : '',
                x: rect.left - containerRect.left - paddingLeft,
                y: rect.top - containerRect.top - paddingTop,
                w: rect.width,
                h: rect.height,
                text: el.innerText,
                style: {
                    'color': style.color,
                    'background-color': style.backgroundColor,
                    'font-size': style.fontSize,
                    'font-weight': style.fontWeight,
                    'font-style': style.fontStyle,
                    'font-family': style.fontFamily,
                    'text-align': style.textAlign,
                    'border': style.border,
                    'border-radius': style.borderRadius,
                    'transform': style.transform,
                },
                hyperlink: link ? link.href : null,
            };
        });
    });
}
"""


@dataclass
class RenderedBox:
    tag: str
    element_id: str
    class_name: str
    x: float
    y: float
    w: float
    h: float
    text: str
    style: dict[str, str] = field(default_factory=dict)
    hyperlink: Optional[str] = None
    slide: int = 0


def boxes_from_payload(payload: Iterable[dict[str, Any]]) -> list[RenderedBox]:
    """Convert the in-page JSON into RenderedBox values, dropping empty ones."""
    boxes: list[RenderedBox] = []
    for entry in payload:
        w = float(entry.get("w") or 0)
        h = float(entry.get("h") or 0)
        text = (entry.get("text") or "").strip()
        if w <= 0 or h <= 0 or not text:
            continue
        style = {k: str(v) for k, v in (entry.get("style") or {}).items() if v}
        boxes.append(
            RenderedBox(
                tag=entry.get("tag", ""),
                element_id=entry.get("id", "") or "",
                class_name=entry.get("className", "") or "",
                x=max(0.0, float(entry.get("x") or 0)),
                y=max(0.0, float(entry.get("y") or 0)),
                w=w,
                h=h,
                text=text,
                style=style,
                hyperlink=entry.get("hyperlink") or None,
                slide=int(entry.get("slide") or 0),
            )
        )
    return boxes


async def fetch_rendered_boxes(
    html: str,
    container_selector: str = ".slide",
    viewport: tuple[int, int] = DEFAULT_VIEWPORT,
) -> list[RenderedBox]:
    """Render *html* once and return the text boxes of every matching container.

    One browser session per call; it is closed whether or not extraction
    succeeds.
    """
    try:
        from playwright.async_api import async_playwright
    except ImportError as exc:
        raise RendererUnavailable(
            "playwright is not installed; install html2slide[browser] "
            "and run `playwright install chromium`"
        ) from exc

    width, height = viewport
    async with async_playwright() as p:
        browser = await p.chromium.launch(args=["--no-sandbox"])
        try:
            page = await browser.new_page(viewport={"width": width, "height": height})
            await page.set_content(html, wait_until="networkidle")
            payload = await page.evaluate(_EXTRACT_JS, container_selector)
        finally:
            await browser.close()

    boxes = boxes_from_payload(payload)
    logger.info("Browser reported %d text box(es) in %s", len(boxes), container_selector)
    return boxes
