"""Source/output canvas sizes and the coordinate scaler.

Geometry is computed in the source document's pixel space and converted to
output units (inches) exactly once, by ``scale``, after all layout resolution
is finished.
"""

from dataclasses import dataclass, replace
from typing import Mapping, Optional

from html2slide.units import parse_length

# ── Canvas defaults ───────────────────────────────────────────────────────────
SOURCE_WIDTH = 1280.0  # px
SOURCE_HEIGHT = 720.0  # px
SLIDE_WIDTH = 10.0  # inches
SLIDE_HEIGHT = 5.625  # inches (16:9)


@dataclass(frozen=True)
class Geometry:
    """An axis-aligned box. Units depend on the side of the scaler it is on."""

    x: float
    y: float
    w: float
    h: float

    @property
    def is_empty(self) -> bool:
        return self.w <= 0 or self.h <= 0

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h


@dataclass(frozen=True)
class Canvas:
    source_width: float = SOURCE_WIDTH
    source_height: float = SOURCE_HEIGHT
    output_width: float = SLIDE_WIDTH
    output_height: float = SLIDE_HEIGHT

    @property
    def scale_x(self) -> float:
        return self.output_width / self.source_width

    @property
    def scale_y(self) -> float:
        return self.output_height / self.source_height

    def with_source(
        self, width: Optional[float] = None, height: Optional[float] = None
    ) -> "Canvas":
        """Copy with the source size replaced; non-positive sizes are ignored."""
        return replace(
            self,
            source_width=width if width and width > 0 else self.source_width,
            source_height=height if height and height > 0 else self.source_height,
        )

    def for_root(self, style: Mapping[str, str]) -> "Canvas":
        """Apply the root container's declared width and height (or min-height)."""
        width = parse_length(style.get("width"), self.source_width)
        height = parse_length(style.get("height"), self.source_height)
        if height is None:
            height = parse_length(style.get("min-height"), self.source_height)
        return self.with_source(width, height)


def scale(geometry: Geometry, canvas: Canvas) -> Geometry:
    """Map a source-pixel geometry onto the output canvas."""
    return Geometry(
        x=geometry.x * canvas.scale_x,
        y=geometry.y * canvas.scale_y,
        w=geometry.w * canvas.scale_x,
        h=geometry.h * canvas.scale_y,
    )
