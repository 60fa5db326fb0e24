"""Error types raised by link encoding, compositing and export."""

from __future__ import annotations


class ValidationError(ValueError):
    """A link could not be built from the supplied fields."""


class FetchFailure(RuntimeError):
    """The QR raster could not be fetched or decoded."""


class CompositingUnsupported(RuntimeError):
    """No drawing surface or PNG encoder is available."""


class ClipboardFailure(RuntimeError):
    """The link could not be copied to the clipboard."""


class CompositeCancelled(Exception):
    """A composite was abandoned before it finished."""
