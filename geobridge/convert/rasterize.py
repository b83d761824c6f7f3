# -*- coding: utf-8 -*-
"""Rasterization: burning vector objects into a raster grid.

The grid comes from a template layer or from a resolution and the vector bounds. How several features
falling in the same cell combine is controlled by ``fun``: keep the last or first value, accumulate a sum or a
count, or keep the minimum, maximum or mean.
"""

import math

import numpy as np
import pandas as pd
import rasterio.features
from rasterio.enums import MergeAlg

from ..core.grid import grid_from_bounds, resolution_pair
from ..core.layer import Layer
from ..core.logging_config import get_module_logger
from ..utils.geometry import align_crs, to_geodataframe

logger = get_module_logger(__name__)

RASTERIZE_FUNCTIONS = ("last", "first", "sum", "count", "min", "max", "mean")


def _points_only(gdf):
    return len(gdf) > 0 and gdf.geom_type.isin(["Point", "MultiPoint"]).all()


def _grid_for(gdf, resolution):
    if len(gdf) == 0:
        raise ValueError("Cannot derive a grid from empty vector data; pass a template layer")

    xres, yres = resolution_pair(resolution)

    left, bottom, right, top = (float(v) for v in gdf.total_bounds)
    if _points_only(gdf):
        # Points on the right/bottom edge must fall inside the last cell
        right = left + (math.floor((right - left) / xres) + 1) * xres
        bottom = top - (math.floor((top - bottom) / yres) + 1) * yres

    transform, shape = grid_from_bounds((left, bottom, right, top), (xres, yres))
    return transform, shape, gdf.crs


def _encode_values(gdf, field):
    if field is None:
        return np.ones(len(gdf), dtype=float), None

    if field not in gdf.columns:
        raise ValueError(f"Column '{field}' not found in vector data")

    column = gdf[field]
    if pd.api.types.is_numeric_dtype(column) or pd.api.types.is_bool_dtype(column):
        return column.to_numpy(dtype=float, na_value=np.nan), None

    categories = [v for v in pd.unique(column) if pd.notna(v)]
    category_map = {value: code for code, value in enumerate(categories, start=1)}
    logger.info(f"Mapping categorical values: {category_map}")
    return column.map(category_map).to_numpy(dtype=float), category_map


def _default_dtype(field, fun, fill, categorical):
    if fill is not None and isinstance(fill, float) and np.isnan(fill):
        return "float32"
    if fun == "count" or (field is None and fun == "sum"):
        return "int32"
    if field is None and fun in ("last", "first", "min", "max"):
        return "uint8" if 0 <= fill <= 255 and float(fill).is_integer() else "float32"
    if categorical and fun in ("last", "first", "min", "max"):
        return "int32"
    return "float32"


def _burn(shapes, shape, transform, all_touched, merge_alg=MergeAlg.replace):
    return rasterio.features.rasterize(
        shapes,
        out_shape=shape,
        transform=transform,
        fill=0,
        all_touched=all_touched,
        merge_alg=merge_alg,
        dtype="float64",
    )


def rasterize_vector(
    vector,
    template=None,
    resolution=None,
    field=None,
    fun="last",
    all_touched=False,
    fill=0,
    dtype=None,
    boundary=False,
    nodata=None,
    layer_manager=None,
    layer_name=None,
):
    """Burn vector objects into a raster.

    Parameters:
    -----------
    vector : GeoDataFrame, GeoSeries, shapely geometry, list of geometries or Layer
        Objects to rasterize
    template : Layer, optional
        Raster layer whose grid (transform, shape, CRS) is used for the output
    resolution : float or tuple, optional
        Cell size used to build a grid over the vector bounds when no template is given
    field : str, optional
        Column with the values to burn. If None, every object burns 1 (presence raster).
        Non-numeric columns are encoded as integer codes starting at 1.
    fun : str
        How objects falling in the same cell combine: "last", "first", "sum", "count", "min", "max" or "mean"
    all_touched : bool
        If True, every cell touched by a geometry is burned; otherwise only cells whose centre is inside
        (lines always burn the cells they cross)
    fill : int or float
        Value of cells not covered by any object
    dtype : str or numpy.dtype, optional
        Output data type, chosen from ``field`` and ``fun`` when omitted
    boundary : bool
        If True, polygons burn their outline instead of their interior
    nodata : int or float, optional
        Nodata value recorded on the output layer
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Single-band raster layer
    """
    if fun not in RASTERIZE_FUNCTIONS:
        raise ValueError(f"Unsupported rasterize function '{fun}'. Expected one of {RASTERIZE_FUNCTIONS}")

    gdf = to_geodataframe(vector)
    parent = vector if isinstance(vector, Layer) else None

    if template is not None:
        if template.raster is None or template.transform is None:
            raise ValueError("Template layer must have a georeferenced raster")
        transform, shape, crs = template.transform, template.shape, template.crs
        gdf = align_crs(gdf, crs)
    elif resolution is not None:
        gdf = gdf[~(gdf.geometry.isna() | gdf.geometry.is_empty)]
        transform, shape, crs = _grid_for(gdf, resolution)
    else:
        raise ValueError("Either a template layer or a resolution must be given")

    gdf = gdf[~(gdf.geometry.isna() | gdf.geometry.is_empty)]
    values, category_map = _encode_values(gdf, field)

    geometries = gdf.geometry
    if boundary:
        geometries = geometries.boundary

    keep = ~np.isnan(values) & ~geometries.is_empty.to_numpy()
    shapes = [(geom, value) for geom, value, k in zip(geometries, values, keep, strict=False) if k]

    if dtype is None:
        dtype = _default_dtype(field, fun, fill, category_map is not None)

    if not shapes:
        out = np.full(shape, fill, dtype=dtype)
    else:
        counts = _burn([(geom, 1.0) for geom, _ in shapes], shape, transform, all_touched, MergeAlg.add)
        covered = counts > 0

        if fun == "count":
            burned = counts
        elif fun == "sum":
            burned = _burn(shapes, shape, transform, all_touched, MergeAlg.add)
        elif fun == "mean":
            sums = _burn(shapes, shape, transform, all_touched, MergeAlg.add)
            burned = np.divide(sums, counts, out=np.zeros_like(sums), where=covered)
        elif fun == "first":
            burned = _burn(list(reversed(shapes)), shape, transform, all_touched)
        elif fun == "min":
            burned = _burn(sorted(shapes, key=lambda s: s[1], reverse=True), shape, transform, all_touched)
        elif fun == "max":
            burned = _burn(sorted(shapes, key=lambda s: s[1]), shape, transform, all_touched)
        else:
            burned = _burn(shapes, shape, transform, all_touched)

        out = np.where(covered, burned, fill).astype(dtype)

    if not layer_name:
        layer_name = f"rasterized_{field}" if field else "rasterized"

    result_layer = Layer(name=layer_name, parent=parent, type="rasterized")
    result_layer.set_raster(out, transform, crs, nodata=nodata)
    result_layer.metadata = {
        "operation": "rasterize",
        "field": field,
        "fun": fun,
        "all_touched": all_touched,
        "boundary": boundary,
        "features": len(shapes),
    }
    if category_map is not None:
        result_layer.metadata["category_map"] = category_map

    logger.info(f"Rasterized {len(shapes)} feature(s) into a {shape[0]}x{shape[1]} grid (fun={fun})")

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer
