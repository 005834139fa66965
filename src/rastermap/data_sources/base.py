"""Base tile provider and the Mosaic it returns.

XYZ providers share one fetch path: the requested Region is covered
with whole slippy-map tiles (via mercantile), the tiles are downloaded
concurrently and pasted into one RGBA image. The Mosaic keeps the bounds
of the tiles it was built from, which usually extend past the request.
"""
import enum
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import mercantile
import requests
from PIL import Image, UnidentifiedImageError

from .. import config
from ..area_definitions import MAX_LATITUDE, Region, TILE_SIZE
from ..exceptions import (InvalidRegion, ProviderUnavailable, QuotaExceeded,
                          UnsupportedStyle)
from ..utils import vprint

settings = config.settings
logger = logging.getLogger(__name__)


class Provider(enum.Enum):
    """Tile providers rastermap knows how to talk to."""

    STAMEN = "stamen"
    GOOGLE = "google"
    OSM = "osm"


@dataclass(frozen=True, eq=False)
class Mosaic:
    """A stitched raster image and the Region it actually covers.

    Attributes
    ----------
    image : PIL.Image.Image
        RGBA image. Treat as read-only.
    region : Region
        True bounds of ``image``. Use these, not the requested Region,
        for every coordinate transform.
    provider : str
    style : str
    attribution : str
    """

    image: Image.Image
    region: Region
    provider: str = ""
    style: str = ""
    attribution: str = ""
    tiles: tuple = field(default=(), repr=False)

    @property
    def width(self):
        return self.image.size[0]

    @property
    def height(self):
        return self.image.size[1]

    @property
    def size(self):
        return self.image.size


class TileProvider:
    """Base class for XYZ tile providers.

    Subclasses set ``provider``, ``styles`` (an Enum), ``url_template``,
    the zoom range and ``attribution``, and may override
    :meth:`tile_url`.

    Parameters
    ----------
    session : requests.Session, optional
        Session used for downloads. A new one is created if omitted.
    timeout : float, optional
        Per-request timeout in seconds. If None, uses settings.
    max_workers : int, optional
        Concurrent tile downloads. If None, uses settings.
    """

    provider = None
    styles = None
    url_template = ""
    attribution = ""
    min_zoom = 0
    max_zoom = 18
    billed = False

    def __init__(self, session=None, timeout=None, max_workers=None):
        self.session = session or requests.Session()
        self.session.headers.setdefault(
            "User-Agent", settings.get("user_agent", "rastermap/0.1"))
        self.timeout = timeout or settings.get("request_timeout", 30)
        self.max_workers = max_workers or settings.get("max_workers", 8)

    def __repr__(self):
        return f"{type(self).__name__}()"

    @property
    def name(self):
        return self.provider.value

    def validate_style(self, style):
        """Return ``style`` as a member of this provider's style enum.

        Raises
        ------
        UnsupportedStyle
            If ``style`` is neither a member nor the value of one.
        """
        if isinstance(style, self.styles):
            return style
        try:
            return self.styles(style)
        except ValueError:
            raise UnsupportedStyle(self.name, style,
                                   [s.value for s in self.styles]) from None

    def validate_region(self, region: Region):
        if not self.min_zoom <= region.zoom <= self.max_zoom:
            raise InvalidRegion(
                f"{self.name} serves zoom {self.min_zoom}-{self.max_zoom}, "
                f"got {region.zoom}")
        if region.min_lat >= MAX_LATITUDE or region.max_lat <= -MAX_LATITUDE:
            raise InvalidRegion(
                f"region lies outside the Web Mercator latitude range "
                f"(±{MAX_LATITUDE:.4f})")

    def tiles_for_region(self, region: Region):
        """Get the tile range covering the region.

        Returns
        -------
        tuple of mercantile.Tile
            Upper-left and lower-right tiles (inclusive).
        """
        # Tiles stop at the Web Mercator latitude limit.
        north = min(region.max_lat, MAX_LATITUDE)
        south = max(region.min_lat, -MAX_LATITUDE)
        ul = mercantile.tile(region.min_lon, north, region.zoom)
        lr = mercantile.tile(region.max_lon, south, region.zoom)
        # A box edge on a tile seam belongs to the next tile; don't fetch it.
        if mercantile.bounds(ul).east <= region.min_lon:
            ul = mercantile.Tile(ul.x + 1, ul.y, ul.z)
        if mercantile.bounds(ul).south >= north:
            ul = mercantile.Tile(ul.x, ul.y + 1, ul.z)
        if lr.x > ul.x and mercantile.bounds(lr).west >= region.max_lon:
            lr = mercantile.Tile(lr.x - 1, lr.y, lr.z)
        if lr.y > ul.y and mercantile.bounds(lr).north <= south:
            lr = mercantile.Tile(lr.x, lr.y - 1, lr.z)
        ntiles = (lr.x - ul.x + 1) * (lr.y - ul.y + 1)
        max_tiles = settings.get("max_tiles", 256)
        if ntiles > max_tiles:
            raise InvalidRegion(
                f"region needs {ntiles} tiles at zoom {region.zoom} "
                f"(limit {max_tiles}); lower the zoom")
        return ul, lr

    def tile_url(self, tile, style):
        return self.url_template.format(style=style.value, z=tile.z, x=tile.x, y=tile.y)

    def fetch(self, region: Region, style) -> Mosaic:
        """Fetch and stitch the tiles covering ``region``.

        Parameters
        ----------
        region : Region
            Requested area.
        style : str or Enum
            One of this provider's styles.

        Returns
        -------
        Mosaic
            Image plus the bounds of the whole tiles it is made of.

        Raises
        ------
        UnsupportedStyle, InvalidRegion
            Before any network call.
        ProviderUnavailable, QuotaExceeded
            When a tile download fails.
        """
        style = self.validate_style(style)
        self.validate_region(region)
        ul, lr = self.tiles_for_region(region)
        tiles = [mercantile.Tile(x, y, region.zoom)
                 for y in range(ul.y, lr.y + 1)
                 for x in range(ul.x, lr.x + 1)]
        vprint(f"Fetching {len(tiles)} {self.name}/{style.value} tiles "
               f"at zoom {region.zoom}")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            images = list(executor.map(
                lambda t: self.fetch_tile(t, style), tiles))

        ncols = lr.x - ul.x + 1
        nrows = lr.y - ul.y + 1
        mosaic = Image.new("RGBA", (ncols * TILE_SIZE, nrows * TILE_SIZE), (0, 0, 0, 0))
        for tile, img in zip(tiles, images):
            if img.size != (TILE_SIZE, TILE_SIZE):
                img = img.resize((TILE_SIZE, TILE_SIZE), Image.LANCZOS)
            mosaic.paste(img, ((tile.x - ul.x) * TILE_SIZE, (tile.y - ul.y) * TILE_SIZE))

        west, north = mercantile.ul(ul)
        lr_bounds = mercantile.bounds(lr)
        bounds = Region(west, lr_bounds.south, lr_bounds.east, north, region.zoom)
        return Mosaic(mosaic, bounds, self.name, style.value,
                      self.attribution, tuple(tiles))

    def fetch_tile(self, tile, style) -> Image.Image:
        """Download one tile and decode it to RGBA."""
        return self.get_image(self.tile_url(tile, style))

    def get_image(self, url, params=None) -> Image.Image:
        """GET ``url`` and decode the body as an image.

        Network failures become ProviderUnavailable; HTTP 429 (and 403 on
        billed providers) becomes QuotaExceeded.
        """
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as err:
            logger.error("%s request failed: %s", self.name, err)
            raise ProviderUnavailable(f"{self.name}: {err}") from err

        if response.status_code == 429 or (self.billed and response.status_code == 403):
            raise QuotaExceeded(
                f"{self.name} refused the request (HTTP {response.status_code}); "
                "try a free provider")
        if response.status_code != 200:
            raise ProviderUnavailable(
                f"{self.name} returned HTTP {response.status_code} for {response.url}")
        try:
            img = Image.open(io.BytesIO(response.content))
            return img.convert("RGBA")
        except (UnidentifiedImageError, OSError) as err:
            raise ProviderUnavailable(f"{self.name} returned an unreadable image") from err
