"""Region definitions for map requests.

This module turns the two ways of asking for a map, a bounding box or a
center point with a zoom level, into one canonical :class:`Region`.
Zoom levels follow the slippy-map convention used by the tile providers:
each step doubles the number of pixels per degree.
"""
import math
from dataclasses import dataclass

import numpy as np
from pyproj import Transformer

from . import config
from .exceptions import InvalidRegion

settings = config.settings

WEBMERCATOR_RADIUS = 6378137.0
WEBMERCATOR_EXTENT = math.pi * WEBMERCATOR_RADIUS
MAX_LATITUDE = 85.0511287798066
TILE_SIZE = 256

_transformer_to_webmerc = Transformer.from_crs(
    "EPSG:4326", "EPSG:3857", always_xy=True
)
_transformer_from_webmerc = Transformer.from_crs(
    "EPSG:3857", "EPSG:4326", always_xy=True
)


def zoom_range():
    """Return the configured ``(min, max)`` zoom levels."""
    return int(settings.get("zoom_min", 3)), int(settings.get("zoom_max", 21))


def zoom_to_resolution_m(zoom: int) -> float:
    """Convert Web Mercator zoom level to resolution in meters per pixel.

    Parameters
    ----------
    zoom : int
        Web Mercator zoom level (slippy-map convention).

    Returns
    -------
    float
        Resolution in meters per pixel at the equator.
    """
    return (2 * math.pi * WEBMERCATOR_RADIUS) / (TILE_SIZE * 2**zoom)


def lonlat_to_webmercator(lons, lats):
    """Transform longitude/latitude values to Web Mercator coordinates.

    Parameters
    ----------
    lons : float or numpy.ndarray
        Longitude values in degrees.
    lats : float or numpy.ndarray
        Latitude values in degrees.

    Returns
    -------
    tuple
        (x, y) coordinates in Web Mercator meters.
    """
    lats = np.clip(lats, -MAX_LATITUDE, MAX_LATITUDE)
    return _transformer_to_webmerc.transform(lons, lats)


def webmercator_to_lonlat(x, y):
    """Inverse of :func:`lonlat_to_webmercator`."""
    return _transformer_from_webmerc.transform(x, y)


@dataclass(frozen=True)
class Region:
    """Canonical longitude/latitude bounding box plus zoom level.

    Instances are immutable and hashable so they can key the tile cache.
    Construction validates the box and the zoom level and raises
    :class:`~rastermap.exceptions.InvalidRegion` on failure.
    """

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float
    zoom: int

    def __post_init__(self):
        for name in ("min_lon", "min_lat", "max_lon", "max_lat"):
            value = getattr(self, name)
            if value is None or not math.isfinite(value):
                raise InvalidRegion(f"{name} must be a finite number, got {value!r}")
            object.__setattr__(self, name, float(value))
        if self.min_lon >= self.max_lon:
            raise InvalidRegion(
                f"left ({self.min_lon}) must be smaller than right ({self.max_lon})")
        if self.min_lat >= self.max_lat:
            raise InvalidRegion(
                f"bottom ({self.min_lat}) must be smaller than top ({self.max_lat})")
        if self.min_lon < -180 or self.max_lon > 180:
            raise InvalidRegion("longitudes must lie within [-180, 180]")
        if self.min_lat < -90 or self.max_lat > 90:
            raise InvalidRegion("latitudes must lie within [-90, 90]")
        if isinstance(self.zoom, bool) or int(self.zoom) != self.zoom:
            raise InvalidRegion(f"zoom must be an integer, got {self.zoom!r}")
        object.__setattr__(self, "zoom", int(self.zoom))
        zmin, zmax = zoom_range()
        if not zmin <= self.zoom <= zmax:
            raise InvalidRegion(f"zoom {self.zoom} outside supported range {zmin}-{zmax}")

    @property
    def bbox(self):
        """(left, bottom, right, top) tuple."""
        return (self.min_lon, self.min_lat, self.max_lon, self.max_lat)

    @property
    def center(self):
        """(lon, lat) of the box center, taken in Web Mercator space."""
        x1, y1 = lonlat_to_webmercator(self.min_lon, self.min_lat)
        x2, y2 = lonlat_to_webmercator(self.max_lon, self.max_lat)
        lon, lat = webmercator_to_lonlat((x1 + x2) / 2, (y1 + y2) / 2)
        return float(lon), float(lat)

    def contains(self, lon, lat):
        return (self.min_lon <= lon <= self.max_lon) and (self.min_lat <= lat <= self.max_lat)


@dataclass(frozen=True)
class BoundingBox:
    """Region request addressed by its edges."""

    left: float
    bottom: float
    right: float
    top: float
    zoom: int


@dataclass(frozen=True)
class CenterZoom:
    """Region request addressed by a center point and zoom.

    ``width`` and ``height`` are the output size in pixels; together with
    the zoom they fix the ground extent.
    """

    lon: float
    lat: float
    zoom: int
    width: int = 640
    height: int = 640


def from_bounding_box(left, bottom, right, top, zoom) -> Region:
    """Create a Region from its edges.

    Raises
    ------
    InvalidRegion
        If ``left >= right``, ``bottom >= top`` or zoom is out of range.
    """
    return Region(left, bottom, right, top, zoom)


def from_center_zoom(lon, lat, zoom, width=640, height=640) -> Region:
    """Create a Region from a center point, zoom level and pixel size.

    The extent is implied entirely by the zoom: at zoom ``z`` a pixel
    covers ``zoom_to_resolution_m(z)`` meters, so the box spans
    ``width`` by ``height`` such pixels around the center.

    Parameters
    ----------
    lon, lat : float
        Center in degrees.
    zoom : int
        Web Mercator zoom level.
    width, height : int, optional
        Output size in pixels, by default 640x640.

    Returns
    -------
    Region
    """
    zmin, zmax = zoom_range()
    if isinstance(zoom, bool) or int(zoom) != zoom or not zmin <= zoom <= zmax:
        raise InvalidRegion(f"zoom {zoom!r} outside supported range {zmin}-{zmax}")
    if width <= 0 or height <= 0:
        raise InvalidRegion("width and height must be positive")
    if not (-180 <= lon <= 180 and -MAX_LATITUDE <= lat <= MAX_LATITUDE):
        raise InvalidRegion(f"center ({lon}, {lat}) is outside the map")

    resolution_m = zoom_to_resolution_m(zoom)
    x, y = lonlat_to_webmercator(lon, lat)
    half_w = width * resolution_m / 2
    half_h = height * resolution_m / 2
    x1 = max(x - half_w, -WEBMERCATOR_EXTENT)
    x2 = min(x + half_w, WEBMERCATOR_EXTENT)
    y1 = max(y - half_h, -WEBMERCATOR_EXTENT)
    y2 = min(y + half_h, WEBMERCATOR_EXTENT)
    lon1, lat1 = webmercator_to_lonlat(x1, y1)
    lon2, lat2 = webmercator_to_lonlat(x2, y2)
    return Region(float(lon1), float(lat1), float(lon2), float(lat2), int(zoom))


def resolve(request) -> Region:
    """Turn a :class:`BoundingBox` or :class:`CenterZoom` into a Region."""
    if isinstance(request, BoundingBox):
        return from_bounding_box(request.left, request.bottom,
                                 request.right, request.top, request.zoom)
    if isinstance(request, CenterZoom):
        return from_center_zoom(request.lon, request.lat, request.zoom,
                                request.width, request.height)
    if isinstance(request, Region):
        return request
    raise TypeError(f"expected BoundingBox or CenterZoom, got {type(request).__name__}")


def make_bbox(lons, lats, f=0.05):
    """Compute a padded bounding box around a set of points.

    Parameters
    ----------
    lons, lats : array_like
        Point coordinates in degrees. NaNs are ignored.
    f : float, optional
        Fraction of the range added on each side, by default 0.05.

    Returns
    -------
    tuple of float
        (left, bottom, right, top)
    """
    lons = np.asarray(lons, dtype=float)
    lats = np.asarray(lats, dtype=float)
    if lons.size == 0 or np.all(np.isnan(lons)) or np.all(np.isnan(lats)):
        raise InvalidRegion("cannot build a bounding box from no points")
    lon1, lon2 = np.nanmin(lons), np.nanmax(lons)
    lat1, lat2 = np.nanmin(lats), np.nanmax(lats)
    dlon = (lon2 - lon1) * f
    dlat = (lat2 - lat1) * f
    return (float(max(lon1 - dlon, -180)), float(max(lat1 - dlat, -90)),
            float(min(lon2 + dlon, 180)), float(min(lat2 + dlat, 90)))


def calc_zoom(left, bottom, right, top, adjust=0):
    """Guess a zoom level that shows the whole box on about 2x2 tiles.

    Parameters
    ----------
    left, bottom, right, top : float
        Box edges in degrees.
    adjust : int, optional
        Added to the computed zoom, by default 0.

    Returns
    -------
    int
        Zoom level clamped to the configured range.
    """
    lon_span = right - left
    lat_span = top - bottom
    if lon_span <= 0 or lat_span <= 0:
        raise InvalidRegion("box must have positive width and height")
    zoom_lon = math.floor(math.log2(360 * 2 / lon_span))
    zoom_lat = math.floor(math.log2(180 * 2 / lat_span))
    zmin, zmax = zoom_range()
    return int(min(max(min(zoom_lon, zoom_lat) + adjust, zmin), zmax))


def from_boundary(boundaries, key, zoom=None, f=0.0) -> Region:
    """Resolve a named or numbered neighbourhood to a Region.

    Parameters
    ----------
    boundaries : iterable of rastermap.records.Boundary
        Boundary polygons from an external loader.
    key : int or str
        ``numeric_id`` (int) or ``name`` (str) of the neighbourhood.
    zoom : int, optional
        Zoom level. If None, chosen with :func:`calc_zoom`.
    f : float, optional
        Padding fraction passed to :func:`make_bbox`, by default 0.

    Raises
    ------
    InvalidRegion
        If no boundary matches ``key``.
    """
    for boundary in boundaries:
        if boundary.numeric_id == key or boundary.name == key:
            polygon = np.asarray(boundary.polygon, dtype=float)
            left, bottom, right, top = make_bbox(polygon[:, 0], polygon[:, 1], f=f)
            if zoom is None:
                zoom = calc_zoom(left, bottom, right, top)
            return from_bounding_box(left, bottom, right, top, zoom)
    raise InvalidRegion(f"no boundary named or numbered {key!r}")
