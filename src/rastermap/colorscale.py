"""Color scales for overlays.

A sequential scale maps a density range monotonically onto a matplotlib
colormap. A categorical scale gives each category its own color from a
qualitative colormap.
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple

import matplotlib
import numpy as np
from matplotlib.colors import ListedColormap, Normalize, to_rgba

SEQUENTIAL = "sequential"
CATEGORICAL = "categorical"


@dataclass(frozen=True)
class ColorScale:
    """Mapping from a scalar or a category to an RGBA color.

    Use :meth:`sequential` or :meth:`categorical` to build one.
    """

    kind: str
    cmap: str = "viridis"
    domain: Tuple[float, float] = (0.0, 1.0)
    categories: Tuple = ()
    _palette: Dict = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def sequential(cls, cmap="viridis", domain=(0.0, 1.0)):
        vmin, vmax = (float(v) for v in domain)
        if vmax < vmin:
            raise ValueError(f"domain must be increasing, got {domain}")
        return cls(SEQUENTIAL, cmap, (vmin, vmax))

    @classmethod
    def categorical(cls, categories, cmap="tab10"):
        categories = tuple(categories)
        colormap = matplotlib.colormaps[cmap]
        n = max(len(categories), 1)
        if isinstance(colormap, ListedColormap) and colormap.N <= 20:
            palette = colormap.colors
            colors = [tuple(to_rgba(palette[i % len(palette)])) for i in range(n)]
        else:
            colors = [tuple(colormap(v)) for v in np.linspace(0, 1, n)]
        palette = dict(zip(categories, colors))
        return cls(CATEGORICAL, cmap, (0.0, float(n - 1)), categories, palette)

    @property
    def is_sequential(self):
        return self.kind == SEQUENTIAL

    @property
    def norm(self):
        vmin, vmax = self.domain
        if vmax == vmin:
            vmax = vmin + 1.0
        return Normalize(vmin=vmin, vmax=vmax, clip=True)

    @property
    def colormap(self):
        return matplotlib.colormaps[self.cmap]

    def color(self, value, default="gray"):
        """RGBA tuple for a density value or a category."""
        if self.is_sequential:
            return tuple(float(c) for c in self.colormap(self.norm(value)))
        return self._palette.get(value, tuple(to_rgba(default)))

    def colors(self, values, default="gray"):
        """``(n, 4)`` RGBA array for a sequence of values."""
        if self.is_sequential:
            return self.colormap(self.norm(np.asarray(values, dtype=float)))
        return np.array([self.color(v, default) for v in values]).reshape(-1, 4)

    def with_domain(self, domain):
        """Copy of a sequential scale with a new domain."""
        if not self.is_sequential:
            return self
        return ColorScale.sequential(self.cmap, domain)
