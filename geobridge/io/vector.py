# -*- coding: utf-8 -*-
"""Manages vector data I/O, supporting formats like Shapefile, GeoJSON, GeoPackage and FlatGeobuf.

Reading exposes the row, column, bounding-box, mask and attribute filters of the OGR readers so only the
needed part of a file is loaded. Point tables (CSV files with coordinate columns) can also be turned into
GeoDataFrames.
"""

import os

import geopandas as gpd
import pandas as pd
import pyogrio
from pyogrio.errors import DataSourceError

from ..core.config import VECTOR_DRIVERS
from ..core.layer import Layer
from ..core.logging_config import get_module_logger

logger = get_module_logger(__name__)


def vector_driver_for(path):
    """Return the OGR driver name for a vector path based on its extension."""
    extension = os.path.splitext(path)[1].lower()
    if extension not in VECTOR_DRIVERS:
        raise ValueError(f"Unsupported vector format: {extension or path}")
    return VECTOR_DRIVERS[extension]


def read_vector(vector_path, layer=None, bbox=None, mask=None, where=None, rows=None, columns=None):
    """Read a vector file into a GeoDataFrame.

    Parameters:
    -----------
    vector_path : str
        Path to the vector file
    layer : str or int, optional
        Layer name or index for multi-layer sources (e.g. GeoPackage)
    bbox : tuple, optional
        (left, bottom, right, top); only features intersecting it are read
    mask : shapely geometry or GeoDataFrame, optional
        Only features intersecting it are read
    where : str, optional
        SQL WHERE clause applied to the attributes, e.g. ``"name = 'Zion'"``
    rows : int or slice, optional
        Number of rows, or slice of rows, to read
    columns : list of str, optional
        Attribute columns to read

    Returns:
    --------
    gdf : geopandas.GeoDataFrame
        GeoDataFrame with vector data
    """
    if not os.path.exists(vector_path):
        raise FileNotFoundError(f"Vector file not found: {vector_path}")

    kwargs = {}
    if layer is not None:
        kwargs["layer"] = layer
    if bbox is not None:
        kwargs["bbox"] = tuple(bbox)
    if mask is not None:
        kwargs["mask"] = mask
    if where is not None:
        kwargs["where"] = where
    if rows is not None:
        kwargs["rows"] = rows
    if columns is not None:
        kwargs["columns"] = list(columns)

    try:
        gdf = gpd.read_file(vector_path, **kwargs)
    except DataSourceError as e:
        logger.error(f"Failed to read vector {vector_path}: {e}")
        raise RuntimeError(f"Failed to read vector: {vector_path}") from e

    logger.info(f"Read {len(gdf)} feature(s) from {vector_path}")
    return gdf


def write_vector(gdf, output_path, driver=None, layer=None, mode="w"):
    """Write a GeoDataFrame to a vector file.

    Parameters:
    -----------
    gdf : geopandas.GeoDataFrame
        GeoDataFrame to write
    output_path : str
        Path to the output vector file
    driver : str, optional
        OGR driver. Inferred from the extension when omitted.
    layer : str, optional
        Layer name for multi-layer formats
    mode : str
        "w" to overwrite, "a" to append
    """
    if mode not in ("w", "a"):
        raise ValueError(f"Unsupported write mode: {mode}")

    driver = driver or vector_driver_for(output_path)

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    if driver == "CSV":
        table = pd.DataFrame(gdf.drop(columns=gdf.geometry.name))
        table["wkt"] = gdf.geometry.to_wkt()
        table.to_csv(output_path, index=False, mode=mode, header=not (mode == "a" and os.path.exists(output_path)))
    else:
        kwargs = {"driver": driver, "mode": mode}
        if layer is not None:
            kwargs["layer"] = layer
        gdf.to_file(output_path, **kwargs)

    logger.info(f"Wrote {len(gdf)} feature(s) to {output_path} ({driver})")


def list_layers(vector_path):
    """List the layers of a vector data source.

    Returns:
    --------
    layers : pandas.DataFrame
        Columns ``name`` and ``geometry_type``
    """
    if not os.path.exists(vector_path):
        raise FileNotFoundError(f"Vector file not found: {vector_path}")

    layers = pyogrio.list_layers(vector_path)
    return pd.DataFrame(layers, columns=["name", "geometry_type"])


def vector_info(vector_path, layer=None):
    """Collect basic information about a vector file.

    Returns:
    --------
    info : dict
        Feature count, CRS, geometry types, attribute names and bounds
    """
    gdf = read_vector(vector_path, layer=layer)
    return {
        "file_path": vector_path,
        "driver": vector_driver_for(vector_path),
        "feature_count": len(gdf),
        "crs": gdf.crs.to_string() if gdf.crs else None,
        "geometry_types": {str(k): int(v) for k, v in gdf.geom_type.value_counts().items()},
        "attribute_names": [col for col in gdf.columns if col != gdf.geometry.name],
        "bounds": [float(v) for v in gdf.total_bounds] if len(gdf) else None,
    }


def points_from_table(table, x="x", y="y", crs=None):
    """Create a point GeoDataFrame from a table with coordinate columns.

    Parameters:
    -----------
    table : pandas.DataFrame or str
        DataFrame, or path to a CSV file
    x, y : str
        Names of the coordinate columns
    crs : str or pyproj.CRS, optional
        Coordinate reference system of the coordinates

    Returns:
    --------
    gdf : geopandas.GeoDataFrame
        Points, with the remaining columns as attributes
    """
    if isinstance(table, (str, os.PathLike)):
        table = pd.read_csv(table)

    missing = [col for col in (x, y) if col not in table.columns]
    if missing:
        raise ValueError(f"Coordinate column(s) {missing} not found in table columns {list(table.columns)}")

    attributes = table.drop(columns=[x, y])
    return gpd.GeoDataFrame(attributes, geometry=gpd.points_from_xy(table[x], table[y]), crs=crs)


def layer_to_vector(layer, output_path):
    """Save a layer's objects to a vector file.

    Parameters:
    -----------
    layer : Layer
        Layer to save
    output_path : str
        Path to the output vector file
    """
    if layer.objects is None:
        raise ValueError("Layer has no vector objects")

    write_vector(layer.objects, output_path)


def vector_layer(gdf, name=None):
    """Wrap a GeoDataFrame in a Layer of type "vector"."""
    layer = Layer(name=name, type="vector")
    layer.objects = gdf
    layer.crs = gdf.crs
    return layer
