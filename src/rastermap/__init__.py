"""rastermap: static raster map mosaics with point and density overlays.

Typical use::

    import rastermap
    from rastermap.area_definitions import BoundingBox

    region = rastermap.resolve(BoundingBox(-95.39, 29.73, -95.34, 29.78, 14))
    mosaic = rastermap.fetch(region, rastermap.Provider.STAMEN, "toner-lite")
    layer = rastermap.OverlayEngine().render(crimes, mosaic, "density-filled")
    rastermap.compose(mosaic, [layer]).save("crime.png")
"""
from . import config
from .area_definitions import (BoundingBox, CenterZoom, Region, from_bounding_box,
                               from_center_zoom, resolve)
from .colorscale import ColorScale
from .compositor import compose, compose_facets, save
from .data_sources import Mosaic, Provider, TileCache, get_provider
from .exceptions import (DegenerateBandwidth, InvalidRegion, ProviderUnavailable,
                         QuotaExceeded, RasterMapError, UnsupportedStyle)
from .overlays import OverlayEngine, PointStyle

cache = TileCache()
_providers = {}


def fetch(region, provider=Provider.STAMEN, style="terrain", **kwargs) -> Mosaic:
    """Fetch a base Mosaic through the process-wide tile cache.

    Parameters
    ----------
    region : Region, BoundingBox or CenterZoom
        Area to fetch.
    provider : Provider or str, optional
        Tile provider, by default Stamen.
    style : str, optional
        A style of that provider, by default ``"terrain"``.
    **kwargs
        Passed to the provider constructor (api_key, session, ...). Without
        them one provider instance, and its HTTP session, is reused per
        provider.
    """
    if kwargs:
        source = get_provider(provider, **kwargs)
    else:
        key = Provider(provider)
        source = _providers.get(key)
        if source is None:
            source = _providers.setdefault(key, get_provider(key))
    return cache.fetch(source, resolve(region), style)
