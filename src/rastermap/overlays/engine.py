"""Overlay engine: records in, drawable layers out.

Records are projected into the pixel space of the Mosaic they will be
drawn on, using the Mosaic's true bounds. Web Mercator is linear in both
pixel axes, so the projection is a linear interpolation in Web Mercator
meters between the Mosaic's corners.
"""
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .. import config
from ..area_definitions import lonlat_to_webmercator
from ..exceptions import DegenerateBandwidth
from ..records import as_frame, groups
from ..utils import vprint
from . import kde
from .layers import (DENSITY_CONTOUR, DENSITY_FILLED, MODES, POINTS,
                     DensityLayer, EmptyOverlay, FacetGrid, PointLayer,
                     PointStyle)
from .utils import contour_geometry

settings = config.settings
logger = logging.getLogger(__name__)

SHARED = "shared"
PER_FACET = "per_facet"


def project(lons, lats, mosaic):
    """Project lon/lat into the pixel space of ``mosaic``.

    Parameters
    ----------
    lons, lats : array_like
        Coordinates in degrees.
    mosaic : rastermap.data_sources.Mosaic
        Target image; its ``region`` gives the true bounds.

    Returns
    -------
    numpy.ndarray
        ``(n, 2)`` pixel coordinates. ``(min_lon, min_lat)`` maps to
        ``(0, height)`` and ``(max_lon, max_lat)`` to ``(width, 0)``.
    """
    region = mosaic.region
    width, height = mosaic.size
    x, y = lonlat_to_webmercator(np.asarray(lons, dtype=float),
                                 np.asarray(lats, dtype=float))
    x1, y1 = lonlat_to_webmercator(region.min_lon, region.min_lat)
    x2, y2 = lonlat_to_webmercator(region.max_lon, region.max_lat)
    px = (np.asarray(x) - x1) / (x2 - x1) * width
    py = (y2 - np.asarray(y)) / (y2 - y1) * height
    return np.column_stack([np.atleast_1d(px), np.atleast_1d(py)])


def inside(lons, lats, region):
    """Boolean mask of the points that fall within ``region``."""
    lons = np.asarray(lons, dtype=float)
    lats = np.asarray(lats, dtype=float)
    return ((lons >= region.min_lon) & (lons <= region.max_lon) &
            (lats >= region.min_lat) & (lats <= region.max_lat))


class OverlayEngine:
    """Compute point and density overlays for a Mosaic.

    Parameters
    ----------
    bins : int, optional
        Density bands or contour lines. If None, uses settings (5).
    grid_size : int, optional
        KDE grid cells per axis. If None, uses settings (100).
    bandwidth : float or tuple, optional
        KDE bandwidth in pixels. If None, estimated from the points.
    bandwidth_policy : str, optional
        ``"shared"`` estimates one bandwidth from all records and uses it
        for every facet; ``"per_facet"`` estimates it per group. If None,
        uses settings (``"shared"``).
    max_workers : int, optional
        Threads used to compute facets. If None, uses settings.
    min_vertices : int, optional
        Contour pieces with fewer vertices are dropped. If None, uses
        settings (2, i.e. keep everything drawable).
    """

    def __init__(self, bins=None, grid_size=None, bandwidth=None,
                 bandwidth_policy=None, max_workers=None, min_vertices=None):
        self.bins = int(bins or settings.get("bins", 5))
        self.grid_size = grid_size or settings.get("grid_size", 100)
        self.bandwidth = bandwidth
        self.bandwidth_policy = bandwidth_policy or settings.get("bandwidth_policy", SHARED)
        if self.bandwidth_policy not in (SHARED, PER_FACET):
            raise ValueError(f"unknown bandwidth_policy {self.bandwidth_policy!r}")
        self.max_workers = max_workers or settings.get("max_workers", 8)
        self.min_vertices = int(min_vertices or settings.get("min_vertices", 2))

    def render(self, records, mosaic, mode=POINTS, style=None, group_by=None):
        """Build the overlay for ``records`` on ``mosaic``.

        Parameters
        ----------
        records : pandas.DataFrame or iterable of Record
            Needs ``longitude`` and ``latitude``; ``category`` optional.
        mosaic : rastermap.data_sources.Mosaic
            Base image the overlay will be drawn on.
        mode : str, optional
            ``points``, ``density-contour`` or ``density-filled``.
        style : PointStyle, optional
            Marker style for point layers.
        group_by : str, optional
            Column to facet on. When given a FacetGrid is returned.

        Returns
        -------
        PointLayer, DensityLayer, EmptyOverlay or FacetGrid
        """
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {mode!r}")
        style = style or PointStyle()
        df = as_frame(records)
        mask = inside(df["longitude"], df["latitude"], mosaic.region)
        if group_by is not None:
            return self._facets(df, mask, mosaic, mode, style, group_by)

        df = df[mask]
        xy = project(df["longitude"], df["latitude"], mosaic)
        categories = df["category"].to_numpy(dtype=object)
        if mode == POINTS:
            return self.points(xy, categories, style)
        try:
            return self.density(xy, mosaic, mode, bandwidth=self.bandwidth)
        except DegenerateBandwidth as err:
            logger.warning("falling back to points: %s", err)
            return self.points(xy, categories, style)

    def points(self, xy, categories, style):
        if len(xy) == 0:
            return EmptyOverlay(POINTS)
        return PointLayer(np.asarray(xy, dtype=float), np.asarray(categories, dtype=object), style)

    def estimate(self, xy, mosaic, bandwidth=None):
        """Run the KDE over the whole image of ``mosaic``."""
        width, height = mosaic.size
        return kde.estimate(xy, (0, 0, width, height), self.grid_size, bandwidth)

    def density(self, xy, mosaic, mode, bandwidth=None, levels=None):
        """Density layer for projected points ``xy``.

        Parameters
        ----------
        levels : array_like, optional
            Fixed levels (shared across facets). If None, derived from
            this grid alone.
        """
        if len(xy) == 0:
            return EmptyOverlay(mode)
        grid = self.estimate(xy, mosaic, bandwidth)
        return self._layer(grid, mode, levels)

    def _layer(self, grid, mode, levels=None):
        filled = mode == DENSITY_FILLED
        if levels is None:
            levels = kde.levels(grid.z, self.bins, filled=filled)
        geometry = contour_geometry(grid.x, grid.y, grid.z, levels, filled=filled,
                                    min_vertices=self.min_vertices)
        return DensityLayer(grid.x, grid.y, grid.z, np.asarray(levels), mode,
                            bands=geometry if filled else [],
                            lines=[] if filled else geometry,
                            bandwidth=grid.bandwidth)

    def _facets(self, df, mask, mosaic, mode, style, group_by):
        # Keys come from every record so out-of-bounds groups still get a panel.
        xy = project(df["longitude"], df["latitude"], mosaic)
        df = df.assign(_px=xy[:, 0], _py=xy[:, 1], _inside=np.asarray(mask, dtype=bool))
        parts = {key: part[part["_inside"]] for key, part in groups(df, group_by).items()}
        vprint(f"Computing {len(parts)} {mode} facets on {group_by}")

        def points(part):
            pxy = part[["_px", "_py"]].to_numpy(dtype=float)
            return self.points(pxy, part[group_by].to_numpy(dtype=object), style)

        if mode == POINTS:
            layers = {key: points(part) for key, part in parts.items()}
            return FacetGrid(layers, (0.0, float(max(len(parts) - 1, 0))), mode)

        bandwidth = self.bandwidth
        union = xy[np.asarray(mask, dtype=bool)]
        if bandwidth is None and self.bandwidth_policy == SHARED and len(union) >= 2:
            width, height = mosaic.size
            x, y = kde.grid_axes((0, 0, width, height), self.grid_size)
            bandwidth = kde.resolve_bandwidth(union, None, x, y)

        def run(item):
            key, part = item
            pxy = part[["_px", "_py"]].to_numpy(dtype=float)
            if len(pxy) == 0:
                return key, None, None
            try:
                return key, self.estimate(pxy, mosaic, bandwidth), None
            except Exception as err:
                logger.warning("facet %r failed: %s", key, err)
                return key, None, err

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(run, parts.items()))

        grids = [grid for _, grid, _ in results if grid is not None]
        if grids:
            zs = np.concatenate([g.z.ravel() for g in grids])
            domain = (float(zs.min()), float(zs.max()))
            levels = kde.levels(zs, self.bins, filled=mode == DENSITY_FILLED)
        else:
            domain = (0.0, 0.0)
            levels = np.array([])

        layers, errors = {}, {}
        for key, grid, err in results:
            if err is not None:
                errors[key] = err
                layers[key] = points(parts[key])
            elif grid is None:
                layers[key] = EmptyOverlay(mode, key)
            else:
                layers[key] = self._layer(grid, mode, levels)
        return FacetGrid(layers, domain, mode, errors)
