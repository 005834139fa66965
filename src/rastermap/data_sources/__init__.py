"""Base map tile providers.

Each provider has its own style enumeration and addressing: Stamen and
OpenStreetMap are fetched by bounding box as slippy-map tile mosaics,
Google by center and zoom as a single static image.
"""
from .base import Mosaic, Provider, TileProvider
from .cache import TileCache
from .google import GoogleProvider, GoogleStyle
from .osm import OSMProvider, OSMStyle
from .stamen import StamenProvider, StamenStyle

PROVIDERS = {
    Provider.STAMEN: StamenProvider,
    Provider.GOOGLE: GoogleProvider,
    Provider.OSM: OSMProvider,
}


def get_provider(provider, **kwargs) -> TileProvider:
    """Instantiate a provider from a :class:`Provider` member or its value."""
    return PROVIDERS[Provider(provider)](**kwargs)


__all__ = ["Mosaic", "Provider", "TileProvider", "TileCache", "get_provider",
           "StamenProvider", "StamenStyle", "GoogleProvider", "GoogleStyle",
           "OSMProvider", "OSMStyle", "PROVIDERS"]
