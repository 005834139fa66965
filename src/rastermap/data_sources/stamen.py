"""Stamen map tiles, served by Stadia Maps.

Stamen styles are requested by bounding box; the zoom is free to vary
over a fixed extent. An API key is optional for low-volume use and is
read from the ``stadia_api_key`` setting.
"""
import enum

from .. import config
from .base import Provider, TileProvider

settings = config.settings


class StamenStyle(enum.Enum):
    TERRAIN = "terrain"
    TERRAIN_BACKGROUND = "terrain-background"
    TERRAIN_LABELS = "terrain-labels"
    TERRAIN_LINES = "terrain-lines"
    TONER = "toner"
    TONER_LITE = "toner-lite"
    TONER_BACKGROUND = "toner-background"
    TONER_LABELS = "toner-labels"
    TONER_LINES = "toner-lines"
    WATERCOLOR = "watercolor"


class StamenProvider(TileProvider):
    """Stamen terrain, toner and watercolor tiles."""

    provider = Provider.STAMEN
    styles = StamenStyle
    url_template = "https://tiles.stadiamaps.com/tiles/stamen_{style}/{z}/{x}/{y}.{ext}"
    attribution = ("Map tiles by Stamen Design, under CC BY 4.0, hosted by "
                   "Stadia Maps. Data by OpenStreetMap, under ODbL.")
    min_zoom = 0
    max_zoom = 18
    billed = True

    def __init__(self, api_key=None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key or settings.get("stadia_api_key")

    def tile_url(self, tile, style):
        # underscores in the URL path, dashes in the style names
        ext = "jpg" if style is StamenStyle.WATERCOLOR else "png"
        url = self.url_template.format(style=style.value.replace("-", "_"),
                                       z=tile.z, x=tile.x, y=tile.y, ext=ext)
        if self.api_key:
            url += f"?api_key={self.api_key}"
        return url
