# -*- coding: utf-8 -*-
"""Grid helpers: building north-up grids from bounds and moving between map and cell coordinates."""

import math

import numpy as np
from rasterio.transform import from_origin

from .layer import Layer


def resolution_pair(resolution):
    """Cell size as positive (xres, yres) from a single value or a pair."""
    if np.isscalar(resolution):
        xres = yres = float(resolution)
    else:
        xres, yres = (float(abs(r)) for r in resolution)

    if xres <= 0 or yres <= 0:
        raise ValueError(f"Resolution must be positive, got {resolution}")
    return xres, yres


def grid_from_bounds(bounds, resolution):
    """Build a north-up grid covering a bounding box.

    Parameters:
    -----------
    bounds : tuple
        (left, bottom, right, top) in map units
    resolution : float or tuple
        Cell size, a single value or (xres, yres)

    Returns:
    --------
    transform : affine.Affine
        Transform anchored at the top-left corner of the bounds
    shape : tuple
        (rows, cols); the grid is extended to whole cells and has at least one cell
    """
    left, bottom, right, top = (float(v) for v in bounds)
    if right < left or top < bottom:
        raise ValueError(f"Invalid bounds {bounds}")
    xres, yres = resolution_pair(resolution)

    cols = max(1, int(math.ceil((right - left) / xres)))
    rows = max(1, int(math.ceil((top - bottom) / yres)))
    transform = from_origin(left, top, xres, yres)

    return transform, (rows, cols)


def template_layer(bounds, resolution, crs, fill=0, dtype="float32", nodata=None, name=None):
    """Create an empty single-band raster layer covering ``bounds``.

    The result is typically used as the target grid of a rasterization.
    """
    transform, shape = grid_from_bounds(bounds, resolution)
    layer = Layer(name=name or "template", type="raster")
    layer.set_raster(np.full(shape, fill, dtype=dtype), transform, crs, nodata=nodata)
    return layer


def cell_centers(transform, shape):
    """Coordinates of cell centres.

    Returns:
    --------
    xs, ys : numpy.ndarray
        Arrays of shape ``shape`` with the x and y of every cell centre
    """
    rows, cols = shape
    col_idx, row_idx = np.meshgrid(np.arange(cols) + 0.5, np.arange(rows) + 0.5)
    xs, ys = transform * (col_idx, row_idx)
    return np.asarray(xs, dtype=float), np.asarray(ys, dtype=float)


def rowcol(transform, xs, ys):
    """Row and column indices of the cells containing the given coordinates."""
    cols, rows = ~transform * (np.atleast_1d(np.asarray(xs, dtype=float)), np.atleast_1d(np.asarray(ys, dtype=float)))
    return np.floor(rows).astype(int), np.floor(cols).astype(int)


def bounds_overlap(a, b):
    """Whether box ``b`` shares a positive area with box ``a``.

    A degenerate ``b`` (a point, or a horizontal or vertical line) overlaps when it lies on ``a``, edges included.
    """

    def _axis(a_min, a_max, b_min, b_max):
        if b_max > b_min:
            return min(a_max, b_max) > max(a_min, b_min)
        return a_min <= b_min <= a_max

    return _axis(a[0], a[2], b[0], b[2]) and _axis(a[1], a[3], b[1], b[3])


def _index_range(start, stop, size, eps):
    low = int(math.floor(min(start, stop) + eps))
    high = int(math.ceil(max(start, stop) - eps))
    if high <= low and abs(stop - start) <= eps:
        # Zero-width extent: the cell containing it, the last cell when it lies on the outer edge
        if low == size:
            low = size - 1
        high = low + 1
    return max(0, low), min(size, high)


def bounds_window(transform, shape, bounds, eps=1e-9):
    """Row/column slices of the cells of a grid intersecting a bounding box.

    The window is snapped outward to whole cells and clipped to the grid. A zero-width box (a point or a
    straight line) still selects the cells containing it.

    Returns:
    --------
    (row_start, row_stop), (col_start, col_stop) : tuple of tuple
        Half-open index ranges
    """
    left, bottom, right, top = bounds
    inverse = ~transform
    c0, r0 = inverse * (left, top)
    c1, r1 = inverse * (right, bottom)

    rows, cols = shape
    row_start, row_stop = _index_range(r0, r1, rows, eps)
    col_start, col_stop = _index_range(c0, c1, cols, eps)

    if row_stop <= row_start or col_stop <= col_start:
        raise ValueError(f"Bounds {tuple(bounds)} do not overlap the raster grid")

    return (row_start, row_stop), (col_start, col_stop)
