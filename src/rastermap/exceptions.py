"""Exceptions raised by rastermap.

An empty overlay is not an error; see
:class:`rastermap.overlays.layers.EmptyOverlay`.
"""


class RasterMapError(Exception):
    """Base class for all rastermap errors."""


class InvalidRegion(RasterMapError, ValueError):
    """Malformed bounding box, out-of-range zoom or unknown neighbourhood."""


class UnsupportedStyle(RasterMapError, ValueError):
    """Style is not in the provider's style enumeration."""

    def __init__(self, provider, style, supported=()):
        self.provider = provider
        self.style = style
        self.supported = tuple(supported)
        msg = f"{provider} does not support style {style!r}"
        if self.supported:
            msg += f" (choose from {', '.join(self.supported)})"
        super().__init__(msg)


class ProviderUnavailable(RasterMapError):
    """Tile service failed, timed out or returned something unusable."""


class QuotaExceeded(ProviderUnavailable):
    """Usage quota or billing limit hit; try a free provider instead."""


class DegenerateBandwidth(RasterMapError):
    """Bandwidth cannot be estimated from fewer than two points."""
