"""Composite base mosaics and overlay layers into output images.

Drawing order is fixed: the Mosaic first, then the layers in the order
given. Every call draws into a new matplotlib figure and returns a new
PIL image; the Mosaic itself is never modified.
"""
import io
import logging
import math
import pathlib
from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np
from matplotlib.cm import ScalarMappable
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure
from matplotlib.patches import PathPatch
from matplotlib.path import Path
from PIL import Image, ImageDraw

from . import config
from .colorscale import ColorScale
from .overlays.layers import (DENSITY_FILLED, POINTS, DensityLayer,
                              EmptyOverlay, PointLayer)

settings = config.settings
logger = logging.getLogger(__name__)

STRIP_HEIGHT = 22
LEGEND_HEIGHT = 60


@dataclass
class FacetImage:
    """Result of :func:`compose_facets`.

    Attributes
    ----------
    image : PIL.Image.Image
        All panels in a grid with a shared legend underneath.
    panels : dict
        Facet key -> single-panel image, all the size of the Mosaic.
    domain : tuple of float
        Color-scale domain shared by every panel and the legend.
    """

    image: Image.Image
    panels: Dict[object, Image.Image] = field(default_factory=dict)
    domain: Tuple[float, float] = (0.0, 1.0)
    ncol: int = 1
    nrow: int = 1

    def __len__(self):
        return len(self.panels)


def _figure(width, height):
    dpi = settings.get("dpi", 100)
    fig = Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.axis("off")
    return fig, ax


def _to_image(fig, size):
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=fig.dpi, pad_inches=0)
    buf.seek(0)
    img = Image.open(buf).convert("RGBA")
    if img.size != tuple(size):
        img = img.resize(tuple(size), Image.LANCZOS)
    buf.close()
    return img


def _polygon_path(polygons):
    vertices, codes = [], []
    for poly in polygons:
        if len(poly) < 3:
            continue
        vertices.extend(poly)
        vertices.append(poly[0])
        codes.append(Path.MOVETO)
        codes.extend([Path.LINETO] * (len(poly) - 1))
        codes.append(Path.CLOSEPOLY)
    if not vertices:
        return None
    return Path(np.asarray(vertices), codes)


def _density_scale(layer, color_scale):
    if color_scale is not None and color_scale.is_sequential:
        return color_scale
    levels = layer.levels
    domain = (float(levels[0]), float(levels[-1])) if len(levels) else layer.domain
    return ColorScale.sequential(settings.get("cmap", "viridis"), domain)


def draw_points(ax, layer: PointLayer, color_scale=None):
    style = layer.style
    if color_scale is not None and not color_scale.is_sequential:
        colors = color_scale.colors(layer.categories, default=style.color)
    else:
        colors = style.color
    ax.scatter(layer.xy[:, 0], layer.xy[:, 1], s=style.size, c=colors,
               alpha=style.alpha, marker=style.marker,
               edgecolors=style.edgecolor or "face", linewidths=0.5)


def draw_density(ax, layer: DensityLayer, color_scale=None, opacity=0.5):
    scale = _density_scale(layer, color_scale)
    if layer.mode == DENSITY_FILLED:
        for i, band in enumerate(layer.bands):
            path = _polygon_path(band)
            if path is None:
                continue
            value = (layer.levels[i] + layer.levels[i + 1]) / 2
            ax.add_patch(PathPatch(path, facecolor=scale.color(value),
                                   edgecolor="none", alpha=opacity))
    else:
        for level, lines in zip(layer.levels, layer.lines):
            if not lines:
                continue
            ax.add_collection(LineCollection(lines, colors=[scale.color(level)],
                                             linewidths=1.2, alpha=opacity))


def compose(mosaic, layers, color_scale=None, opacity=None):
    """Draw ``layers`` on top of ``mosaic``.

    Parameters
    ----------
    mosaic : rastermap.data_sources.Mosaic
        Base image, drawn first.
    layers : list
        Overlay layers, drawn in order (later on top).
    color_scale : ColorScale, optional
        Sequential scale for density layers, categorical scale for points.
        Density layers without a sequential scale use their own levels.
    opacity : float, optional
        Alpha applied per density layer. Points use their style's alpha.
        If None, uses settings (0.5).

    Returns
    -------
    PIL.Image.Image
        New RGBA image the size of the Mosaic.
    """
    if opacity is None:
        opacity = settings.get("opacity", 0.5)
    width, height = mosaic.size
    fig, ax = _figure(width, height)
    ax.imshow(np.asarray(mosaic.image), extent=(0, width, height, 0),
              interpolation="nearest", aspect="auto")
    for layer in layers:
        if isinstance(layer, EmptyOverlay):
            continue
        if isinstance(layer, PointLayer):
            draw_points(ax, layer, color_scale)
        elif isinstance(layer, DensityLayer):
            draw_density(ax, layer, color_scale, opacity)
        else:
            raise TypeError(f"cannot draw {type(layer).__name__}")
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    return _to_image(fig, (width, height))


def legend(color_scale, width, height=LEGEND_HEIGHT):
    """Render a horizontal legend for ``color_scale``."""
    dpi = settings.get("dpi", 100)
    fig = Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
    if color_scale.is_sequential:
        ax = fig.add_axes([0.1, 0.55, 0.8, 0.25])
        mappable = ScalarMappable(norm=color_scale.norm, cmap=color_scale.colormap)
        cbar = fig.colorbar(mappable, cax=ax, orientation="horizontal")
        cbar.ax.tick_params(labelsize=7)
    else:
        ax = fig.add_axes([0, 0, 1, 1])
        ax.axis("off")
        handles = [ax.scatter([], [], color=color_scale.color(c), label=str(c))
                   for c in color_scale.categories]
        if handles:
            ax.legend(handles=handles, loc="center", frameon=False,
                      ncol=min(len(handles), 6), fontsize=8)
    return _to_image(fig, (width, height))


def compose_facets(mosaic, facet_grid, color_scale=None, opacity=None, ncol=None):
    """Draw one panel per facet and tile them with a shared legend.

    Every panel is the size of the Mosaic. Empty facets show the base
    Mosaic only. The legend and every panel use the same color domain.

    Parameters
    ----------
    mosaic : rastermap.data_sources.Mosaic
    facet_grid : rastermap.overlays.FacetGrid
    color_scale : ColorScale, optional
        Colormap to use; its domain is replaced by the facet grid's
        shared domain for density facets.
    opacity : float, optional
        Per-layer alpha for density facets.
    ncol : int, optional
        Panels per row. If None, close to square.

    Returns
    -------
    FacetImage
    """
    keys = list(facet_grid.keys())
    if facet_grid.mode == POINTS:
        if color_scale is None or color_scale.is_sequential:
            color_scale = ColorScale.categorical(keys)
    else:
        if color_scale is None or not color_scale.is_sequential:
            color_scale = ColorScale.sequential(settings.get("cmap", "viridis"))
        color_scale = color_scale.with_domain(_shared_domain(facet_grid))

    panels = {key: compose(mosaic, [facet_grid[key]], color_scale, opacity)
              for key in keys}
    for key, err in facet_grid.errors.items():
        logger.warning("facet %r drawn as fallback: %s", key, err)

    width, height = mosaic.size
    n = max(len(keys), 1)
    ncol = ncol or math.ceil(math.sqrt(n))
    nrow = math.ceil(n / ncol)
    cell_h = height + STRIP_HEIGHT
    sheet = Image.new("RGBA", (ncol * width, nrow * cell_h + LEGEND_HEIGHT), "white")
    draw = ImageDraw.Draw(sheet)
    if not keys:
        sheet.paste(mosaic.image, (0, STRIP_HEIGHT))
    for i, key in enumerate(keys):
        col, row = i % ncol, i // ncol
        x0, y0 = col * width, row * cell_h
        draw.rectangle([x0, y0, x0 + width - 1, y0 + STRIP_HEIGHT - 1], fill=(217, 217, 217, 255))
        draw.text((x0 + 6, y0 + 5), str(key), fill=(26, 26, 26, 255))
        sheet.paste(panels[key], (x0, y0 + STRIP_HEIGHT))
    sheet.paste(legend(color_scale, ncol * width), (0, nrow * cell_h))
    return FacetImage(sheet, panels, color_scale.domain, ncol, nrow)


def _shared_domain(facet_grid):
    for layer in facet_grid.layers.values():
        if isinstance(layer, DensityLayer) and len(layer.levels):
            return (float(layer.levels[0]), float(layer.levels[-1]))
    return facet_grid.domain


def save(image, path):
    """Write ``image`` as PNG, creating parent directories."""
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format="PNG")
    return path
