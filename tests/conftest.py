# -*- coding: utf-8 -*-
"""Shared fixtures: small synthetic rasters and vectors, so no data files are needed."""

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pytest  # noqa: E402
from rasterio.transform import from_origin  # noqa: E402

from geobridge import Layer, create_sample_data, write_raster  # noqa: E402

CRS = "EPSG:32633"


@pytest.fixture
def small_layer():
    """A 4x5 float32 raster over (0, 0, 50, 40) holding 0..19 row by row; cell [0, 0] is nodata."""
    data = np.arange(20, dtype=np.float32).reshape(4, 5)
    data[0, 0] = -9999.0
    layer = Layer(name="small", type="raster")
    layer.set_raster(data, from_origin(0.0, 40.0, 10.0, 10.0), CRS, nodata=-9999.0)
    return layer


@pytest.fixture
def two_band_layer():
    """A 2-band 3x3 raster over (0, 0, 3, 3); band 2 is band 1 times ten, cell [1, 1] is nodata in band 1."""
    b1 = np.arange(1, 10, dtype=np.float32).reshape(3, 3)
    b2 = b1 * 10
    b1[1, 1] = -1.0
    layer = Layer(name="two_band", type="raster")
    layer.set_raster(np.stack([b1, b2]), from_origin(0.0, 3.0, 1.0, 1.0), CRS, nodata=-1.0)
    return layer


@pytest.fixture
def class_layer():
    """A 3x3 int32 class raster over (0, 0, 3, 3) without nodata."""
    data = np.array([[1, 1, 2], [1, 2, 2], [3, 3, 3]], dtype=np.int32)
    layer = Layer(name="classes", type="raster")
    layer.set_raster(data, from_origin(0.0, 3.0, 1.0, 1.0), CRS)
    return layer


@pytest.fixture
def sample():
    """Synthetic elevation layer with its zones and points."""
    return create_sample_data()


@pytest.fixture
def small_tif(tmp_path, small_layer):
    """The small layer written to a GeoTIFF."""
    path = str(tmp_path / "small.tif")
    write_raster(path, small_layer.raster, small_layer.transform, small_layer.crs, nodata=small_layer.nodata)
    return path


@pytest.fixture
def sample_paths(tmp_path, sample):
    """The sample elevation raster, zones and points written to files."""
    elevation, zones, points = sample
    dem = str(tmp_path / "dem.tif")
    write_raster(dem, elevation.raster, elevation.transform, elevation.crs, nodata=elevation.nodata)
    zones_path = str(tmp_path / "zones.gpkg")
    zones.to_file(zones_path, driver="GPKG")
    points_path = str(tmp_path / "points.geojson")
    points.to_file(points_path, driver="GeoJSON")
    return {"dem": dem, "zones": zones_path, "points": points_path}
