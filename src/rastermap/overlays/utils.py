"""Utility functions for density overlays.

This module provides helpers for turning matplotlib contour sets into
plain vertex arrays and for cleaning up small contour pieces.
"""
import numpy as np
from matplotlib.contour import ContourSet
from matplotlib.figure import Figure
from matplotlib.path import Path


def split_segments(path):
    """Split a matplotlib Path into its MOVETO-separated pieces.

    Parameters
    ----------
    path : matplotlib.path.Path
        Path as stored in a ContourSet (one per level).

    Returns
    -------
    list of numpy.ndarray
        ``(k, 2)`` vertex arrays. CLOSEPOLY vertices are dropped.
    """
    if len(path.vertices) == 0:
        return []
    if path.codes is None:
        return [np.asarray(path.vertices)]

    segments = []
    current_segment = []
    for vertex, code in zip(path.vertices, path.codes):
        if code == Path.MOVETO:
            if current_segment:
                segments.append(np.array(current_segment))
            current_segment = [vertex]
        elif code == Path.CLOSEPOLY:
            continue
        else:
            current_segment.append(vertex)
    if current_segment:
        segments.append(np.array(current_segment))
    return segments


def filter_small_contours(cs, min_vertices=5):
    """Remove small contour segments from a ContourSet.

    Filters out contour segments that have fewer vertices than the
    specified minimum, which helps clean up noisy or insignificant
    contour lines.

    Parameters
    ----------
    cs : matplotlib.contour.ContourSet
        The contour set to filter.
    min_vertices : int, optional
        Minimum number of vertices required for a segment to be kept,
        by default 5.

    Raises
    ------
    TypeError
        If ``cs`` is not a ContourSet.
    """
    if not isinstance(cs, ContourSet):
        raise TypeError(f"expected a ContourSet, got {type(cs).__name__}")

    new_paths = []
    for path in cs.get_paths():
        filtered_segments = [seg for seg in split_segments(path)
                             if len(seg) >= min_vertices]
        if filtered_segments:
            new_vertices = []
            new_codes = []
            for seg in filtered_segments:
                new_vertices.extend(seg)
                new_codes.append(Path.MOVETO)
                new_codes.extend([Path.LINETO] * (len(seg) - 1))
            new_paths.append(Path(new_vertices, new_codes))
        else:
            # Empty path needs proper 2D shape
            new_paths.append(Path(np.empty((0, 2)), []))

    cs.set_paths(new_paths)


def contour_geometry(x, y, z, levels, filled=True, min_vertices=2):
    """Extract contour lines or filled bands as vertex arrays.

    Parameters
    ----------
    x, y : numpy.ndarray
        Grid axes.
    z : numpy.ndarray
        Values of shape ``(len(y), len(x))``.
    levels : array_like
        Increasing levels. Filled mode yields ``len(levels) - 1`` bands.
    filled : bool, optional
        Bands between consecutive levels if True, else iso-lines.
    min_vertices : int, optional
        Pieces with fewer vertices are dropped, by default 2.

    Returns
    -------
    list of list of numpy.ndarray
        One entry per band (filled) or per level (lines).
    """
    levels = np.asarray(levels, dtype=float)
    nsets = len(levels) - 1 if filled else len(levels)
    if nsets <= 0 or not np.any(z > 0):
        return [[] for _ in range(max(nsets, 0))]

    # A bare Figure keeps pyplot's global state out of worker threads.
    fig = Figure()
    ax = fig.subplots()
    if filled:
        cs = ax.contourf(x, y, z, levels=levels)
    else:
        cs = ax.contour(x, y, z, levels=levels)
    filter_small_contours(cs, min_vertices)

    geometry = [split_segments(path) for path in cs.get_paths()]
    # contour() drops levels outside the data range; pad so indices match.
    geometry += [[] for _ in range(nsets - len(geometry))]
    return geometry[:nsets]
