"""Exceptions raised by html2slide."""


class Html2SlideError(Exception):
    """Base class for html2slide errors."""


class ConversionError(Html2SlideError):
    """The document as a whole could not be converted or written."""


class RendererUnavailable(Html2SlideError):
    """The headless-browser geometry source was requested but cannot run."""
