"""Convert an HTML slide with embedded CSS into positioned PowerPoint text boxes."""

from html2slide.canvas import Canvas, Geometry, scale
from html2slide.converter import SlideConverter, SlideItem, convert_file
from html2slide.geometry import BoxModelGeometryResolver
from html2slide.stylesheet import StyleCascadeResolver, StyleSheet

__version__ = "0.1.0"

__all__ = [
    "BoxModelGeometryResolver",
    "Canvas",
    "Geometry",
    "SlideConverter",
    "SlideItem",
    "StyleCascadeResolver",
    "StyleSheet",
    "convert_file",
    "scale",
]
