# -*- coding: utf-8 -*-
"""Helpers , Aren't they useful ?"""

import json
import os

import geopandas as gpd
import numpy as np
from rasterio.transform import from_origin
from shapely.geometry import Polygon, box

from ..core.config import DEFAULT_NODATA_VALUE
from ..core.layer import Layer


def create_sample_data(shape=(60, 80), resolution=30.0, origin=(500000.0, 4650000.0), crs="EPSG:32633", seed=0):
    """Create a synthetic elevation raster with matching zones and sample points.

    The raster is a smooth hill with a little noise; its top-left 5x5 corner is nodata.

    Parameters:
    -----------
    shape : tuple
        (rows, cols) of the raster
    resolution : float
        Cell size in map units
    origin : tuple
        (x, y) of the top-left corner
    crs : str
        Coordinate reference system
    seed : int
        Seed of the random generator

    Returns:
    --------
    layer : Layer
        Single-band float32 raster layer named "elevation"
    zones : geopandas.GeoDataFrame
        Three polygons with ``zone_id`` and ``land_use`` columns
    points : geopandas.GeoDataFrame
        Ten points inside the raster with a ``point_id`` column
    """
    rows, cols = shape
    rng = np.random.default_rng(seed)

    row_idx, col_idx = np.mgrid[0:rows, 0:cols]
    centre_r, centre_c = rows * 0.45, cols * 0.4
    sigma = min(rows, cols) / 4.0
    hill = np.exp(-((row_idx - centre_r) ** 2 + (col_idx - centre_c) ** 2) / (2 * sigma**2))
    elevation = 1000.0 + 800.0 * hill + rng.normal(0.0, 2.0, size=shape)
    elevation = elevation.astype(np.float32)
    elevation[:5, :5] = DEFAULT_NODATA_VALUE

    x0, y0 = origin
    transform = from_origin(x0, y0, resolution, resolution)

    layer = Layer(name="elevation", type="raster")
    layer.set_raster(elevation, transform, crs, nodata=DEFAULT_NODATA_VALUE)
    layer.metadata = {"source": "synthetic", "seed": seed}

    def cell_box(r0, c0, r1, c1):
        return box(x0 + c0 * resolution, y0 - r1 * resolution, x0 + c1 * resolution, y0 - r0 * resolution)

    width, height = cols * resolution, rows * resolution
    triangle = Polygon(
        [
            (x0 + 0.6 * width, y0 - 0.1 * height),
            (x0 + 0.95 * width, y0 - 0.1 * height),
            (x0 + 0.95 * width, y0 - 0.45 * height),
        ]
    )
    zones = gpd.GeoDataFrame(
        {"zone_id": [1, 2, 3], "land_use": ["forest", "urban", "water"]},
        geometry=[
            cell_box(rows // 6, cols // 8, rows // 2, cols // 2),
            cell_box(rows // 2 + 5, cols // 2 + 5, rows - 5, cols - 5),
            triangle,
        ],
        crs=crs,
    )

    xs = x0 + rng.uniform(0.05, 0.95, size=10) * width
    ys = y0 - rng.uniform(0.05, 0.95, size=10) * height
    points = gpd.GeoDataFrame({"point_id": np.arange(1, 11)}, geometry=gpd.points_from_xy(xs, ys), crs=crs)

    return layer, zones, points


def calculate_statistics_summary(layer_manager, output_file=None):
    """Calculate summary statistics for all layers in a layer manager.

    Parameters:
    -----------
    layer_manager : LayerManager
        Layer manager containing layers
    output_file : str, optional
        Path to save the summary to (as JSON)

    Returns:
    --------
    summary : dict
        Dictionary with summary statistics
    """
    summary = {}

    for layer_name in layer_manager.get_layer_names():
        layer = layer_manager.get_layer(layer_name)

        layer_summary = {
            "type": layer.type,
            "created_at": str(layer.created_at),
            "parent": layer.parent.name if layer.parent else None,
            "crs": str(layer.crs) if layer.crs else None,
        }

        if layer.raster is not None:
            layer_summary["bands"] = layer.count
            layer_summary["shape"] = list(layer.shape)
            layer_summary["valid_cells"] = int(layer.valid_mask().sum())
            if layer.transform is not None:
                layer_summary["bounds"] = [float(v) for v in layer.bounds]

        if layer.objects is not None:
            layer_summary["object_count"] = len(layer.objects)
            layer_summary["geometry_types"] = {str(k): int(v) for k, v in layer.objects.geom_type.value_counts().items()}

        if "operation" in layer.metadata:
            layer_summary["operation"] = layer.metadata["operation"]

        if layer.attached_functions:
            layer_summary["functions"] = list(layer.attached_functions.keys())

        summary[layer_name] = layer_summary

    if output_file:
        output_dir = os.path.dirname(output_file)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        with open(output_file, "w") as f:
            json.dump(summary, f, indent=2)

    return summary
