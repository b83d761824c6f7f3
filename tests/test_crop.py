# -*- coding: utf-8 -*-
"""Tests for cropping and masking rasters with vector data."""

import geopandas as gpd
import numpy as np
import pytest
from rasterio.transform import from_origin
from shapely.geometry import LineString, Point, box

from geobridge import Layer, LayerManager, crop_raster, mask_raster
from geobridge.ops.crop import resolve_nodata


def test_crop_to_bounds(small_layer):
    """The result covers the cells touched by the extent, values unchanged."""
    result = crop_raster(small_layer, (12, 5, 28, 33))
    assert result.shape == (4, 2)
    assert result.transform.c == 10.0
    assert result.transform.f == 40.0
    np.testing.assert_array_equal(result.raster[0], small_layer.raster[0][:, 1:3])
    assert result.parent is small_layer
    assert result.type == "crop"
    assert result.nodata == -9999.0
    assert result.metadata["window"] == [1, 0, 2, 4]


def test_crop_with_geometry_and_manager(small_layer):
    """Geometries and layers work as extents, results can be registered."""
    manager = LayerManager()
    result = crop_raster(small_layer, box(20, 0, 50, 20), layer_manager=manager, layer_name="corner")
    assert result.shape == (2, 3)
    assert result.raster[0, 0, 0] == 12.0
    assert manager.get_layer("corner") is result

    again = crop_raster(small_layer, result)
    assert again.shape == (2, 3)


def test_crop_no_overlap(small_layer):
    """Extents outside the raster are rejected."""
    with pytest.raises(ValueError):
        crop_raster(small_layer, box(100, 100, 200, 200))
    with pytest.raises(ValueError):
        crop_raster(small_layer, gpd.GeoDataFrame(geometry=[], crs="EPSG:32633"))


def test_crop_to_point_and_line(small_layer):
    """Zero-area extents keep the cells that contain them."""
    point = crop_raster(small_layer, Point(25, 25))
    assert point.shape == (1, 1)
    assert point.raster[0, 0, 0] == 7.0
    assert point.bounds == (20.0, 20.0, 30.0, 30.0)

    on_edge = crop_raster(small_layer, Point(20, 20))
    assert on_edge.raster[0].tolist() == [[12.0]]

    corner = crop_raster(small_layer, Point(50, 0))
    assert corner.raster[0].tolist() == [[19.0]]

    line = crop_raster(small_layer, LineString([(5, 25), (35, 25)]))
    assert line.shape == (1, 4)
    np.testing.assert_array_equal(line.raster[0, 0], small_layer.raster[0, 1, :4])

    vertical = crop_raster(small_layer, LineString([(45, 5), (45, 35)]))
    assert vertical.shape == (4, 1)

    with pytest.raises(ValueError):
        crop_raster(small_layer, Point(60, 25))


def test_mask_keeps_inside(small_layer):
    """Cells whose centre is outside the zones become nodata."""
    result = mask_raster(small_layer, box(0, 20, 30, 40))
    data = result.raster[0]
    assert result.shape == small_layer.shape
    assert result.nodata == -9999.0
    assert result.metadata["masked_cells"] == 14
    assert data[1, 2] == 7.0
    assert data[0, 3] == -9999.0
    assert data[3, 0] == -9999.0
    assert result.valid_mask(1).sum() == 5


def test_mask_invert(small_layer):
    """Inverted masks remove the inside instead."""
    result = mask_raster(small_layer, box(0, 20, 30, 40), invert=True)
    assert result.metadata["masked_cells"] == 6
    assert result.raster[0, 1, 2] == -9999.0
    assert result.raster[0, 3, 0] == 15.0


def test_mask_all_touched(small_layer):
    """all_touched keeps cells the zone only partly covers."""
    zone = box(11, 11, 14, 14)
    assert mask_raster(small_layer, zone).metadata["masked_cells"] == 20
    assert mask_raster(small_layer, zone, all_touched=True).metadata["masked_cells"] == 19


def test_mask_with_crop(small_layer):
    """crop=True also reduces the extent."""
    result = mask_raster(small_layer, box(20, 0, 50, 20), crop=True)
    assert result.shape == (2, 3)
    assert result.valid_mask(1).all()


def test_mask_default_nodata():
    """Rasters without nodata get one suited to their type."""
    layer = Layer(name="bytes").set_raster(np.ones((2, 2), dtype=np.uint8), from_origin(0, 2, 1, 1), "EPSG:32633")
    result = mask_raster(layer, box(0, 1, 1, 2))
    assert result.nodata == 0
    assert result.raster[0].tolist() == [[1, 0], [0, 0]]

    floats = Layer(name="floats").set_raster(np.ones((2, 2), dtype=np.float32), from_origin(0, 2, 1, 1), "EPSG:32633")
    result = mask_raster(floats, box(0, 1, 1, 2))
    assert np.isnan(result.nodata)
    assert np.isnan(result.raster[0, 1, 1])


def test_mask_new_nodata_rewrites_existing(small_layer):
    """Cells that were already nodata take the new nodata value."""
    result = mask_raster(small_layer, box(0, 0, 50, 40), nodata=-1)
    assert result.nodata == -1
    assert result.raster[0, 0, 0] == -1
    assert result.valid_mask(1).sum() == 19


def test_resolve_nodata():
    """Nodata values must fit the data type."""
    assert np.isnan(resolve_nodata("float32"))
    assert resolve_nodata("float64", -1) == -1
    assert resolve_nodata("int16") == -9999
    assert resolve_nodata("uint16") == 0
    assert resolve_nodata("int32", 5.0) == 5
    with pytest.raises(ValueError):
        resolve_nodata("uint8", -1)
    with pytest.raises(ValueError):
        resolve_nodata("int16", 0.5)
    with pytest.raises(ValueError):
        resolve_nodata("int16", float("nan"))


def test_mask_reprojects_zones(sample):
    """Zones in another CRS give the same mask as in the raster CRS."""
    elevation, zones, _ = sample
    direct = mask_raster(elevation, zones)
    reprojected = mask_raster(elevation, zones.to_crs("EPSG:4326"))
    difference = np.abs(direct.valid_mask(1).astype(int) - reprojected.valid_mask(1).astype(int)).sum()
    assert difference <= 0.02 * direct.valid_mask(1).sum()


def test_mask_without_crs(small_layer):
    """Vectors without CRS are taken to be in the raster CRS."""
    zones = gpd.GeoDataFrame(geometry=[box(0, 20, 30, 40)])
    assert mask_raster(small_layer, zones).metadata["masked_cells"] == 14
