# -*- coding: utf-8 -*-
"""Tests for layers, grids and the layer manager."""

import numpy as np
import pytest
from rasterio.transform import from_origin

from geobridge import Layer, LayerManager
from geobridge.core.grid import (
    bounds_overlap,
    bounds_window,
    cell_centers,
    grid_from_bounds,
    rowcol,
    template_layer,
)


def test_set_raster_promotes_2d(small_layer):
    """A 2-D array becomes a single-band raster."""
    assert small_layer.raster.shape == (1, 4, 5)
    assert small_layer.count == 1
    assert small_layer.shape == (4, 5)
    assert small_layer.res == (10.0, 10.0)
    assert small_layer.bounds == (0.0, 0.0, 50.0, 40.0)


def test_set_raster_rejects_1d():
    """Only 2-D and 3-D arrays are rasters."""
    with pytest.raises(ValueError):
        Layer().set_raster(np.zeros(5), from_origin(0, 5, 1, 1), "EPSG:32633")


def test_band_access(two_band_layer):
    """Bands are 1-based and checked."""
    assert two_band_layer.band(2)[0, 0] == 10.0
    with pytest.raises(ValueError):
        two_band_layer.band(3)
    with pytest.raises(ValueError):
        two_band_layer.band(0)


def test_valid_mask_and_masked(small_layer):
    """Nodata cells are excluded from the valid mask and masked out."""
    valid = small_layer.valid_mask(1)
    assert valid.sum() == 19
    assert not valid[0, 0]
    masked = small_layer.masked(1)
    assert masked.count() == 19
    assert masked.min() == 1.0


def test_valid_mask_nan():
    """NaN cells are never valid, even without a nodata value."""
    layer = Layer().set_raster(np.array([[1.0, np.nan]]), from_origin(0, 1, 1, 1), None)
    assert layer.valid_mask().tolist() == [[[True, False]]]


def test_vector_only_bounds(sample):
    """Layers without raster use the bounds of their objects."""
    _, zones, _ = sample
    layer = Layer(name="zones", type="vector")
    layer.objects = zones
    assert layer.bounds == tuple(float(v) for v in zones.total_bounds)
    with pytest.raises(ValueError):
        _ = layer.height


def test_derive_and_copy(small_layer):
    """Derived layers inherit georeferencing; copies are independent."""
    child = small_layer.derive("child", "crop")
    assert child.parent is small_layer
    assert child.transform == small_layer.transform
    assert child.nodata == -9999.0
    assert child.raster is None

    duplicate = small_layer.copy()
    duplicate.raster[0, 1, 1] = 100.0
    assert small_layer.raster[0, 1, 1] == 6.0
    assert duplicate.nodata == small_layer.nodata
    assert "raster: 1x4x5" in str(small_layer)


def test_attach_function(small_layer):
    """Attached functions run immediately and keep their result."""

    def cell_count(layer, band=1):
        return int(layer.valid_mask(band).sum())

    small_layer.attach_function(cell_count, name="cells")
    assert small_layer.get_function_result("cells") == 19
    with pytest.raises(ValueError):
        small_layer.get_function_result("missing")


def test_layer_manager(small_layer):
    """Layers are found by id or name and removal updates the active layer."""
    manager = LayerManager()
    first = manager.add_layer(small_layer)
    second = manager.add_layer(Layer(name="second"))
    assert manager.active_layer is second
    assert manager.get_layer("small") is first
    assert manager.get_layer(second.id) is second
    assert manager.get_layer_names() == ["small", "second"]

    manager.remove_layer("second")
    assert manager.active_layer is first
    with pytest.raises(ValueError):
        manager.get_layer("second")


def test_grid_from_bounds():
    """Grids are anchored top-left and extended to whole cells."""
    transform, shape = grid_from_bounds((0, 0, 95, 40), 10)
    assert shape == (4, 10)
    assert (transform.c, transform.f, transform.a, transform.e) == (0.0, 40.0, 10.0, -10.0)

    _, shape = grid_from_bounds((0, 0, 0, 0), (5, 5))
    assert shape == (1, 1)

    with pytest.raises(ValueError):
        grid_from_bounds((0, 0, 10, 10), 0)
    with pytest.raises(ValueError):
        grid_from_bounds((10, 0, 0, 10), 1)


def test_template_layer():
    """Template layers are filled single-band rasters."""
    layer = template_layer((0, 0, 30, 20), 10, "EPSG:32633", fill=7, dtype="int16")
    assert layer.shape == (2, 3)
    assert layer.raster.dtype == np.int16
    assert (layer.raster == 7).all()


def test_cell_centers_and_rowcol(small_layer):
    """Cell centres and the inverse lookup agree."""
    xs, ys = cell_centers(small_layer.transform, small_layer.shape)
    assert (xs[0, 0], ys[0, 0]) == (5.0, 35.0)
    assert (xs[3, 4], ys[3, 4]) == (45.0, 5.0)

    rows, cols = rowcol(small_layer.transform, [5, 49.9, 50], [35, 0.1, 40])
    assert rows.tolist() == [0, 3, 0]
    assert cols.tolist() == [0, 4, 5]


def test_bounds_window(small_layer):
    """Windows snap outward to whole cells and are clipped to the grid."""
    assert bounds_window(small_layer.transform, small_layer.shape, (12, 5, 28, 33)) == ((0, 4), (1, 3))
    assert bounds_window(small_layer.transform, small_layer.shape, (-100, -100, 100, 100)) == ((0, 4), (0, 5))
    with pytest.raises(ValueError):
        bounds_window(small_layer.transform, small_layer.shape, (60, 0, 70, 10))

    assert bounds_window(small_layer.transform, small_layer.shape, (25, 25, 25, 25)) == ((1, 2), (2, 3))
    assert bounds_window(small_layer.transform, small_layer.shape, (50, 0, 50, 0)) == ((3, 4), (4, 5))
    assert bounds_window(small_layer.transform, small_layer.shape, (5, 20, 35, 20)) == ((2, 3), (0, 4))


def test_bounds_overlap():
    """Touching boxes do not overlap; points and lines lying on a box do."""
    assert bounds_overlap((0, 0, 10, 10), (5, 5, 15, 15))
    assert not bounds_overlap((0, 0, 10, 10), (10, 0, 20, 10))
    assert bounds_overlap((0, 0, 10, 10), (5, 5, 5, 5))
    assert bounds_overlap((0, 0, 10, 10), (10, 2, 10, 8))
    assert not bounds_overlap((0, 0, 10, 10), (11, 5, 11, 5))
