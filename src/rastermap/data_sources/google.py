"""Google Static Maps.

Google serves one image per request addressed by center and zoom, so a
bounding-box Region is reduced to its center and the returned extent is
whatever ``size`` pixels cover at that zoom. Requests are billed; quota
and key errors surface as QuotaExceeded.
"""
import enum

from .. import config
from ..area_definitions import Region, from_center_zoom
from ..exceptions import ProviderUnavailable
from ..utils import vprint
from .base import Mosaic, Provider, TileProvider

settings = config.settings


class GoogleStyle(enum.Enum):
    ROADMAP = "roadmap"
    SATELLITE = "satellite"
    HYBRID = "hybrid"
    TERRAIN = "terrain"


class GoogleProvider(TileProvider):
    """Google Static Maps API provider.

    Parameters
    ----------
    api_key : str, optional
        Google Maps API key. If None, uses the ``google_api_key`` setting.
    size : tuple of int, optional
        Image size in pixels (max 640x640 without premium). If None, uses
        the ``google_size`` setting.
    """

    provider = Provider.GOOGLE
    styles = GoogleStyle
    url_template = "https://maps.googleapis.com/maps/api/staticmap"
    attribution = "Map data © Google"
    min_zoom = 0
    max_zoom = 21
    billed = True

    def __init__(self, api_key=None, size=None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key or settings.get("google_api_key")
        self.size = tuple(size or settings.get("google_size", (640, 640)))

    def region_for(self, region: Region) -> Region:
        """Region actually covered when ``region`` is requested."""
        lon, lat = region.center
        return from_center_zoom(lon, lat, region.zoom, *self.size)

    def fetch(self, region: Region, style) -> Mosaic:
        style = self.validate_style(style)
        self.validate_region(region)
        if not self.api_key:
            raise ProviderUnavailable("google needs an API key (google_api_key)")
        lon, lat = region.center
        covered = self.region_for(region)
        params = {
            "center": f"{lat:.6f},{lon:.6f}",
            "zoom": region.zoom,
            "size": f"{self.size[0]}x{self.size[1]}",
            "maptype": style.value,
            "format": "png",
            "key": self.api_key,
        }
        vprint(f"Fetching google/{style.value} {params['size']} at {params['center']}")
        img = self.get_image(self.url_template, params=params)
        return Mosaic(img, covered, self.name, style.value, self.attribution)
