"""Point and density overlays computed in Mosaic pixel space."""
from .engine import OverlayEngine, project
from .layers import (DENSITY_CONTOUR, DENSITY_FILLED, MODES, POINTS,
                     DensityLayer, EmptyOverlay, FacetGrid, PointLayer,
                     PointStyle)

__all__ = ["OverlayEngine", "project", "DensityLayer", "EmptyOverlay",
           "FacetGrid", "PointLayer", "PointStyle", "MODES", "POINTS",
           "DENSITY_CONTOUR", "DENSITY_FILLED"]
