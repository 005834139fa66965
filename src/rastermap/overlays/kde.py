"""Two-dimensional kernel density estimation on a regular grid.

The Gaussian kernel is separable, so the density on an ``nx`` by ``ny``
grid is the matrix product of two one-dimensional kernel matrices,
``Ky.T @ Kx``, instead of a loop over every point and every cell.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..exceptions import DegenerateBandwidth

SQRT_2PI = np.sqrt(2 * np.pi)


@dataclass(frozen=True)
class DensityGrid:
    """Density values on cell centers.

    Attributes
    ----------
    x : numpy.ndarray
        Cell-center coordinates along the first axis, shape ``(nx,)``.
    y : numpy.ndarray
        Cell-center coordinates along the second axis, shape ``(ny,)``.
    z : numpy.ndarray
        Density, shape ``(ny, nx)``; ``z.sum() * dx * dy == 1``.
    bandwidth : tuple of float
        Kernel standard deviations ``(hx, hy)`` actually used.
    """

    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    bandwidth: Tuple[float, float]

    @property
    def cell_area(self):
        return _step(self.x) * _step(self.y)


def _step(values):
    return float(values[1] - values[0]) if len(values) > 1 else 1.0


def bandwidth_nrd(values) -> float:
    """Normal reference bandwidth for one axis.

    Uses ``1.06 * min(sd, IQR / 1.34) * n ** (-1/5)``. When the
    interquartile range is zero the standard deviation alone is used.

    Parameters
    ----------
    values : array_like
        One coordinate of the points.

    Returns
    -------
    float
        Kernel standard deviation; 0 when the values have no spread.

    Raises
    ------
    DegenerateBandwidth
        If fewer than two values are given.
    """
    values = np.asarray(values, dtype=float)
    n = values.size
    if n < 2:
        raise DegenerateBandwidth(
            f"need at least 2 points to estimate a bandwidth, got {n}")
    sd = float(np.std(values, ddof=1))
    q75, q25 = np.percentile(values, [75, 25])
    iqr = float(q75 - q25) / 1.34
    spread = min(sd, iqr) if iqr > 0 else sd
    return 1.06 * spread * n ** (-0.2)


def grid_axes(bounds, grid_size):
    """Cell-center coordinates for a ``(x1, y1, x2, y2)`` box."""
    x1, y1, x2, y2 = bounds
    if np.isscalar(grid_size):
        nx = ny = int(grid_size)
    else:
        nx, ny = (int(n) for n in grid_size)
    if nx < 2 or ny < 2:
        raise ValueError("grid_size must be at least 2 in each direction")
    dx = (x2 - x1) / nx
    dy = (y2 - y1) / ny
    x = x1 + dx * (np.arange(nx) + 0.5)
    y = y1 + dy * (np.arange(ny) + 0.5)
    return x, y


def resolve_bandwidth(points, bandwidth, x, y):
    """Per-axis bandwidth, estimated from ``points`` when not given.

    Bandwidths narrower than one grid cell are widened to one cell, so
    a zero-spread axis (repeated points) still gives a finite peak.
    """
    if bandwidth is not None:
        hx, hy = (bandwidth, bandwidth) if np.isscalar(bandwidth) else bandwidth
    else:
        points = np.asarray(points, dtype=float).reshape(-1, 2)
        hx = bandwidth_nrd(points[:, 0])
        hy = bandwidth_nrd(points[:, 1])
    hx = max(float(hx), abs(_step(x)))
    hy = max(float(hy), abs(_step(y)))
    return hx, hy


def _kernel(grid, centers, h):
    u = (grid[None, :] - centers[:, None]) / h
    return np.exp(-0.5 * u * u) / (SQRT_2PI * h)


def estimate(points, bounds, grid_size=100, bandwidth: Optional[float] = None) -> DensityGrid:
    """Estimate a Gaussian kernel density over ``bounds``.

    Parameters
    ----------
    points : array_like
        ``(n, 2)`` point coordinates.
    bounds : tuple of float
        ``(x1, y1, x2, y2)`` area covered by the grid.
    grid_size : int or tuple of int, optional
        Number of cells per axis, by default 100.
    bandwidth : float or tuple of float, optional
        Kernel standard deviation per axis. If None, estimated from the
        points with :func:`bandwidth_nrd` on each axis independently.

    Returns
    -------
    DensityGrid
        Non-negative density normalised to integrate to one over the grid.
        All zeros if no point has any weight inside the grid.

    Raises
    ------
    DegenerateBandwidth
        If fewer than two points are given and ``bandwidth`` is None.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 2)
    x, y = grid_axes(bounds, grid_size)
    hx, hy = resolve_bandwidth(points, bandwidth, x, y)

    if len(points) == 0:
        z = np.zeros((len(y), len(x)))
        return DensityGrid(x, y, z, (hx, hy))

    kx = _kernel(x, points[:, 0], hx)
    ky = _kernel(y, points[:, 1], hy)
    z = ky.T @ kx
    z = np.clip(z, 0, None)

    total = z.sum() * abs(_step(x) * _step(y))
    if total > 0:
        z = z / total
    return DensityGrid(x, y, z, (hx, hy))


def levels(z, bins=5, filled=True):
    """Evenly spaced density levels.

    The lower end is the smallest positive density, so empty areas of an
    otherwise populated grid do not get a level of their own.

    Parameters
    ----------
    z : numpy.ndarray
        Density values.
    bins : int, optional
        Number of bands (filled) or contour lines (not filled), by default 5.
    filled : bool, optional
        If True return ``bins + 1`` band edges spanning the whole range;
        otherwise ``bins`` line levels strictly inside it.

    Returns
    -------
    numpy.ndarray
        Increasing level values; empty if the grid is flat.
    """
    z = np.asarray(z, dtype=float)
    positive = z[z > 0]
    if positive.size == 0:
        return np.array([])
    lo = float(positive.min())
    hi = float(z.max())
    if not hi > lo:
        return np.array([])
    if filled:
        return np.linspace(lo, hi, bins + 1)
    return np.linspace(lo, hi, bins + 2)[1:-1]
