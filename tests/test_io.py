# -*- coding: utf-8 -*-
"""Tests for raster and vector input/output."""

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
from shapely.geometry import Point, box

from geobridge import (
    layer_to_raster,
    layer_to_vector,
    list_layers,
    points_from_table,
    raster_info,
    read_raster,
    read_raster_layer,
    read_vector,
    vector_info,
    vector_layer,
    write_raster,
    write_vector,
)
from geobridge.io.raster import raster_driver_for
from geobridge.io.vector import vector_driver_for


def test_read_raster_layer(small_tif, small_layer):
    """Values, georeferencing and nodata survive a write and read."""
    layer = read_raster_layer(small_tif)
    assert layer.type == "raster"
    assert layer.name == "small"
    assert layer.nodata == -9999.0
    assert layer.crs.to_epsg() == 32633
    assert layer.transform == small_layer.transform
    np.testing.assert_array_equal(layer.raster, small_layer.raster)
    assert layer.metadata["driver"] == "GTiff"

    data, transform, crs = read_raster(small_tif)
    assert data.shape == (1, 4, 5)
    assert transform == small_layer.transform


def test_windowed_read(small_tif):
    """Only the window covering the bounds is read."""
    layer = read_raster_layer(small_tif, bounds=(12, 5, 28, 33))
    assert layer.shape == (4, 2)
    assert layer.transform.c == 10.0
    assert layer.transform.f == 40.0
    assert layer.raster[0, 1, 0] == 6.0
    assert layer.metadata["window"] == [1, 0, 2, 4]

    with pytest.raises(ValueError):
        read_raster_layer(small_tif, bounds=(100, 100, 200, 200))


def test_band_selection(tmp_path, two_band_layer):
    """Selected bands are read in the requested order."""
    path = str(tmp_path / "two.tif")
    write_raster(path, two_band_layer.raster, two_band_layer.transform, two_band_layer.crs, nodata=-1.0)

    layer = read_raster_layer(path, bands=[2])
    assert layer.count == 1
    assert layer.raster[0, 0, 0] == 10.0
    with pytest.raises(ValueError):
        read_raster_layer(path, bands=3)

    numpy_band = read_raster_layer(path, bands=np.int64(2))
    assert numpy_band.metadata["bands"] == [2]
    np.testing.assert_array_equal(numpy_band.raster, layer.raster)


def test_write_raster_options(tmp_path, small_layer):
    """Driver inference, dtype casting and boolean rasters."""
    path = str(tmp_path / "nested" / "mask.tif")
    write_raster(path, small_layer.raster[0] > 10, small_layer.transform, small_layer.crs)
    layer = read_raster_layer(path)
    assert layer.raster.dtype == np.uint8
    assert int(layer.raster.sum()) == 9

    path = str(tmp_path / "cast.tif")
    write_raster(path, small_layer.raster, small_layer.transform, small_layer.crs, nodata=-9999, dtype="int16")
    assert read_raster_layer(path).raster.dtype == np.int16

    with pytest.raises(ValueError):
        write_raster(str(tmp_path / "out.xyz"), small_layer.raster, small_layer.transform, small_layer.crs)


def test_driver_lookup():
    """Drivers are inferred from extensions, case-insensitively."""
    assert raster_driver_for("dem.TIF") == "GTiff"
    assert raster_driver_for("dem.asc") == "AAIGrid"
    assert vector_driver_for("roads.gpkg") == "GPKG"
    assert vector_driver_for("parks.shp") == "ESRI Shapefile"
    with pytest.raises(ValueError):
        vector_driver_for("notes.txt")


def test_missing_files(tmp_path):
    """Missing files fail before GDAL is involved."""
    with pytest.raises(FileNotFoundError):
        read_raster_layer(str(tmp_path / "missing.tif"))
    with pytest.raises(FileNotFoundError):
        read_vector(str(tmp_path / "missing.gpkg"))
    with pytest.raises(FileNotFoundError):
        list_layers(str(tmp_path / "missing.gpkg"))


def test_unreadable_raster(tmp_path):
    """Files GDAL cannot open raise RuntimeError."""
    path = tmp_path / "broken.tif"
    path.write_text("not a raster")
    with pytest.raises(RuntimeError):
        read_raster_layer(str(path))


def test_raster_info(small_tif):
    """Per-band statistics ignore nodata."""
    info = raster_info(small_tif)
    assert info["driver"] == "GTiff"
    assert (info["height"], info["width"], info["count"]) == (4, 5, 1)
    assert info["nodata"] == -9999.0
    assert info["resolution"] == (10.0, 10.0)
    stats = info["band_stats"][0]
    assert stats["valid_cells"] == 19
    assert stats["min"] == 1.0
    assert stats["max"] == 19.0


def test_vector_round_trip(tmp_path, sample):
    """GeoPackage layers can be written, appended, listed and filtered."""
    _, zones, points = sample
    path = str(tmp_path / "data.gpkg")
    write_vector(zones, path, layer="zones")
    write_vector(points, path, layer="points")

    layers = list_layers(path)
    assert set(layers["name"]) == {"zones", "points"}
    assert list(layers.columns) == ["name", "geometry_type"]

    forest = read_vector(path, layer="zones", where="land_use = 'forest'")
    assert len(forest) == 1
    assert forest["zone_id"].iloc[0] == 1

    first_two = read_vector(path, layer="points", rows=2)
    assert len(first_two) == 2

    in_bbox = read_vector(path, layer="points", bbox=tuple(zones.total_bounds))
    expected = points[points.intersects(box(*zones.total_bounds))]
    assert sorted(in_bbox["point_id"]) == sorted(expected["point_id"])

    forest = zones.geometry.iloc[0]
    in_forest = read_vector(path, layer="points", mask=forest)
    expected = points[points.intersects(forest)]
    assert sorted(in_forest["point_id"]) == sorted(expected["point_id"])
    assert len(expected) < len(points)

    write_vector(zones.iloc[:1], path, layer="zones", mode="a")
    assert len(read_vector(path, layer="zones")) == 4

    with pytest.raises(ValueError):
        write_vector(zones, path, mode="x")


def test_csv_output(tmp_path, sample):
    """CSV output stores the geometry as WKT."""
    _, _, points = sample
    path = str(tmp_path / "points.csv")
    write_vector(points, path)
    table = pd.read_csv(path)
    assert list(table.columns) == ["point_id", "wkt"]
    assert table["wkt"].iloc[0].startswith("POINT")


def test_vector_info(sample_paths):
    """Vector summaries list counts, types and attributes."""
    info = vector_info(sample_paths["zones"])
    assert info["feature_count"] == 3
    assert info["geometry_types"] == {"Polygon": 3}
    assert info["attribute_names"] == ["zone_id", "land_use"]
    assert info["crs"] == "EPSG:32633"


def test_points_from_table(tmp_path):
    """Coordinate columns become point geometries."""
    table = pd.DataFrame({"lon": [1.0, 2.0], "lat": [3.0, 4.0], "name": ["a", "b"]})
    gdf = points_from_table(table, x="lon", y="lat", crs="EPSG:4326")
    assert list(gdf.columns) == ["name", "geometry"]
    assert gdf.geometry.iloc[1].equals(Point(2.0, 4.0))
    assert gdf.crs.to_epsg() == 4326

    path = tmp_path / "points.csv"
    table.to_csv(path, index=False)
    assert len(points_from_table(str(path), x="lon", y="lat")) == 2

    with pytest.raises(ValueError):
        points_from_table(table)


def test_layer_to_vector(tmp_path, sample):
    """Vector layers are written from their objects."""
    _, zones, _ = sample
    path = str(tmp_path / "zones.geojson")
    layer_to_vector(vector_layer(zones, name="zones"), path)
    assert len(gpd.read_file(path)) == 3

    with pytest.raises(ValueError):
        layer_to_vector(vector_layer(zones).derive("empty", "vector"), path)


def test_layer_to_raster_from_objects(tmp_path, small_layer):
    """Categorical columns are rasterized as codes and the mapping is recorded."""
    layer = small_layer.copy()
    layer.objects = gpd.GeoDataFrame(
        {"cover": ["grass", "rock"]},
        geometry=[box(0, 20, 20, 40), box(30, 0, 50, 20)],
        crs="EPSG:32633",
    )
    path = str(tmp_path / "cover.tif")
    layer_to_raster(layer, path, column="cover")

    assert layer.metadata["category_map"] == {"grass": 1, "rock": 2}
    written = read_raster_layer(path)
    assert written.raster[0, 0, 0] == 1
    assert written.raster[0, 3, 4] == 2
    assert written.raster[0, 3, 0] == 0

    with pytest.raises(ValueError):
        layer_to_raster(layer, path, column="missing")


def test_layer_to_raster_from_raster(tmp_path, small_layer):
    """Raster layers are written as they are."""
    path = str(tmp_path / "copy.tif")
    layer_to_raster(small_layer, path)
    np.testing.assert_array_equal(read_raster_layer(path).raster, small_layer.raster)
