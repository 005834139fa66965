"""Overlay layer types produced by the overlay engine.

All coordinates are image pixels of the Mosaic the layer was computed
for: x grows to the right, y grows downwards.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

POINTS = "points"
DENSITY_CONTOUR = "density-contour"
DENSITY_FILLED = "density-filled"
MODES = (POINTS, DENSITY_CONTOUR, DENSITY_FILLED)


@dataclass(frozen=True)
class PointStyle:
    """Marker appearance for point layers.

    ``color`` is used when no color scale is given or the points carry no
    category; ``alpha`` is applied per point.
    """

    size: float = 12.0
    alpha: float = 0.7
    color: str = "red"
    marker: str = "o"
    edgecolor: Optional[str] = None


@dataclass(frozen=True)
class EmptyOverlay:
    """An overlay with nothing to draw. Valid output, not an error."""

    mode: str = POINTS
    key: Optional[str] = None

    def __len__(self):
        return 0


@dataclass(frozen=True)
class PointLayer:
    """Projected points.

    Attributes
    ----------
    xy : numpy.ndarray
        ``(n, 2)`` pixel coordinates.
    categories : numpy.ndarray
        Category per point (object array, may hold None).
    style : PointStyle
    """

    xy: np.ndarray
    categories: np.ndarray
    style: PointStyle = field(default_factory=PointStyle)
    mode: str = POINTS

    def __len__(self):
        return len(self.xy)


@dataclass(frozen=True)
class DensityLayer:
    """Kernel density surface and the level geometry derived from it.

    Attributes
    ----------
    x, y : numpy.ndarray
        Grid cell centers in pixels.
    z : numpy.ndarray
        Density, shape ``(len(y), len(x))``.
    levels : numpy.ndarray
        Band edges (filled mode) or line levels (contour mode).
    mode : str
        ``density-contour`` or ``density-filled``.
    bands : list of list of numpy.ndarray
        Filled mode: polygons for each band ``[levels[i], levels[i+1]]``.
    lines : list of list of numpy.ndarray
        Contour mode: polylines for each level.
    bandwidth : tuple of float
        Kernel bandwidth in pixels.
    """

    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    levels: np.ndarray
    mode: str = DENSITY_FILLED
    bands: List[List[np.ndarray]] = field(default_factory=list)
    lines: List[List[np.ndarray]] = field(default_factory=list)
    bandwidth: Tuple[float, float] = (0.0, 0.0)

    def __len__(self):
        return len(self.bands) if self.mode == DENSITY_FILLED else len(self.lines)

    @property
    def domain(self):
        return (float(self.z.min()), float(self.z.max()))


@dataclass
class FacetGrid:
    """One overlay per category value, all on the same Mosaic.

    Attributes
    ----------
    layers : dict
        Category value -> OverlayLayer, in facet order.
    domain : tuple of float
        Color-scale domain shared by every facet: the density range over
        all groups, or ``(0, n_categories - 1)`` for point facets.
    mode : str
    errors : dict
        Category value -> exception for facets that fell back to a
        simpler layer.
    """

    layers: Dict[object, object]
    domain: Tuple[float, float]
    mode: str = POINTS
    errors: Dict[object, Exception] = field(default_factory=dict)

    def __len__(self):
        return len(self.layers)

    def __iter__(self):
        return iter(self.layers)

    def __getitem__(self, key):
        return self.layers[key]

    def keys(self):
        return self.layers.keys()

    def items(self):
        return self.layers.items()
