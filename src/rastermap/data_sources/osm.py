"""OpenStreetMap standard tiles.

Free, bounding-box addressed, a single style. The OSM tile usage policy
requires an identifying User-Agent, set from the ``user_agent`` setting.
"""
import enum

from .base import Provider, TileProvider


class OSMStyle(enum.Enum):
    STANDARD = "standard"


class OSMProvider(TileProvider):
    """OpenStreetMap Carto tiles from tile.openstreetmap.org."""

    provider = Provider.OSM
    styles = OSMStyle
    url_template = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"
    attribution = "© OpenStreetMap contributors"
    min_zoom = 0
    max_zoom = 19
