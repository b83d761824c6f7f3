# -*- coding: utf-8 -*-
"""Vectorization: turning raster cells into points, polygons or contour lines.

All functions return a Layer of type "vectorized" whose objects are a GeoDataFrame in the raster CRS.
"""

import geopandas as gpd
import numpy as np
import rasterio.features
from shapely.geometry import LineString, shape
from skimage import measure

from ..core.config import CONTOUR_CONFIG, EXTRACT_CONFIG
from ..core.grid import cell_centers
from ..core.logging_config import get_module_logger

logger = get_module_logger(__name__)


def _vector_result(source_layer, gdf, layer_name, metadata, layer_manager):
    result_layer = source_layer.derive(layer_name, "vectorized")
    result_layer.objects = gdf
    result_layer.metadata = metadata

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer


def raster_to_points(source_layer, band=None, skip_nodata=True, layer_manager=None, layer_name=None):
    """Convert raster cells to points at the cell centres.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer to convert
    band : int or list of int, optional
        1-based band indexes to carry as attributes. All bands by default.
    skip_nodata : bool
        If True, cells that are nodata in every selected band are dropped
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer whose objects have one point per cell and a ``band_<i>`` column per band
    """
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    if band is None:
        indexes = list(range(1, source_layer.count + 1))
    else:
        indexes = [int(band)] if isinstance(band, (int, np.integer)) else list(band)

    prefix = EXTRACT_CONFIG.get("value_prefix", "band_")
    xs, ys = cell_centers(source_layer.transform, source_layer.shape)

    keep = np.ones(source_layer.shape, dtype=bool)
    if skip_nodata:
        keep = np.zeros(source_layer.shape, dtype=bool)
        for index in indexes:
            keep |= source_layer.valid_mask(index)

    columns = {}
    for index in indexes:
        values = source_layer.band(index)[keep]
        invalid = ~source_layer.valid_mask(index)[keep]
        if invalid.any():
            values = values.astype(float)
            values[invalid] = np.nan
        columns[f"{prefix}{index}"] = values

    gdf = gpd.GeoDataFrame(columns, geometry=gpd.points_from_xy(xs[keep], ys[keep]), crs=source_layer.crs)

    logger.info(f"Converted {len(gdf)} cell(s) of '{source_layer.name}' to points")
    return _vector_result(
        source_layer,
        gdf,
        layer_name or f"{source_layer.name}_points",
        {"operation": "raster_to_points", "bands": indexes},
        layer_manager,
    )


def _shapes_source(data):
    """Band data in a type rasterio.features.shapes accepts, and the lookup from its values back to the cells.

    Types shapes cannot take losslessly (float64, 64-bit and unsigned 32-bit integers) are polygonized on integer
    codes of their distinct values, so no value is rounded and nearly equal cells never merge.
    """
    if data.dtype == np.bool_:
        return data.astype(np.uint8), None
    if data.dtype in (np.uint8, np.int16, np.uint16, np.int32, np.float32):
        return data, None

    uniques, codes = np.unique(data, return_inverse=True)
    return codes.reshape(data.shape).astype(np.int32), uniques


def _value_selection(data, values):
    if values is None:
        return np.ones(data.shape, dtype=bool)
    if isinstance(values, tuple):
        if len(values) != 2:
            raise ValueError(f"A value range must be a (min, max) tuple, got {values}")
        low, high = values
        return (data >= low) & (data <= high)
    return np.isin(data, np.atleast_1d(values))


def polygonize(
    source_layer,
    band=1,
    connectivity=4,
    values=None,
    dissolve=False,
    skip_nodata=True,
    layer_manager=None,
    layer_name=None,
):
    """Convert connected regions of equal cell value to polygons.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer to polygonize, typically a classified or boolean raster
    band : int
        1-based band index
    connectivity : int
        4 (edge neighbours) or 8 (edge and corner neighbours)
    values : number, list or tuple, optional
        Only polygonize these values: a single value, a list of values, or an inclusive (min, max) range
    dissolve : bool
        If True, all polygons with the same value are merged into one (multi)polygon
    skip_nodata : bool
        If True, nodata cells produce no polygons
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer whose objects have a ``value`` column
    """
    if connectivity not in (4, 8):
        raise ValueError(f"Connectivity must be 4 or 8, got {connectivity}")
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    data = source_layer.band(band)
    selection = _value_selection(data, values)
    if skip_nodata:
        selection &= source_layer.valid_mask(band)

    geometries = []
    cell_values = []
    if selection.any():
        source, lookup = _shapes_source(data)
        for geom, val in rasterio.features.shapes(
            source,
            mask=selection,
            connectivity=connectivity,
            transform=source_layer.transform,
        ):
            geometries.append(shape(geom))
            cell_values.append(val if lookup is None else lookup[int(val)])

    gdf = gpd.GeoDataFrame({"value": cell_values}, geometry=geometries, crs=source_layer.crs)
    if np.issubdtype(data.dtype, np.integer) or data.dtype == np.bool_:
        gdf["value"] = gdf["value"].astype(int)

    if dissolve and len(gdf):
        gdf = gdf.dissolve(by="value").reset_index()[["value", "geometry"]]

    logger.info(f"Polygonized band {band} of '{source_layer.name}' into {len(gdf)} polygon(s)")
    return _vector_result(
        source_layer,
        gdf,
        layer_name or f"{source_layer.name}_polygons",
        {
            "operation": "polygonize",
            "band": band,
            "connectivity": connectivity,
            "dissolve": dissolve,
        },
        layer_manager,
    )


def contour_levels(data, levels=None, interval=None, n_levels=None):
    """Contour levels for the valid values in ``data``.

    Explicit ``levels`` win; otherwise ``interval`` gives the multiples of the interval inside the data range,
    and by default ``n_levels`` evenly spaced levels strictly between the minimum and maximum are used.
    """
    if levels is not None:
        return np.sort(np.atleast_1d(np.asarray(levels, dtype=float)))

    if data.size == 0:
        return np.array([], dtype=float)

    low, high = float(np.min(data)), float(np.max(data))
    if interval is not None:
        if interval <= 0:
            raise ValueError(f"Contour interval must be positive, got {interval}")
        start = np.ceil(low / interval) * interval
        return np.arange(start, high + interval * 1e-9, interval)

    if high <= low:
        return np.array([], dtype=float)

    n_levels = n_levels or CONTOUR_CONFIG.get("n_levels", 10)
    return np.linspace(low, high, n_levels + 2)[1:-1]


def contours(source_layer, levels=None, interval=None, band=1, layer_manager=None, layer_name=None):
    """Generate contour lines (isolines) from a raster band.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer, typically an elevation model
    levels : list of float, optional
        Values to draw contours at
    interval : float, optional
        Contour spacing; levels are the multiples of the interval within the data range
    band : int
        1-based band index
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer whose objects are LineStrings in map coordinates with a ``level`` column
    """
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    data = source_layer.band(band).astype(float)
    valid = source_layer.valid_mask(band)
    selected = contour_levels(data[valid], levels=levels, interval=interval)

    # Invalid cells get a neutral value and are excluded through the mask
    image = np.where(valid, data, np.nanmean(data[valid]) if valid.any() else 0.0)
    min_vertices = CONTOUR_CONFIG.get("min_vertices", 2)
    transform = source_layer.transform

    lines = []
    line_levels = []
    if valid.any():
        for level in selected:
            for path in measure.find_contours(image, level, mask=valid):
                if len(path) < min_vertices:
                    continue
                # find_contours returns (row, col) in cell-centre index space
                xs, ys = transform * (path[:, 1] + 0.5, path[:, 0] + 0.5)
                lines.append(LineString(np.column_stack([xs, ys])))
                line_levels.append(float(level))

    gdf = gpd.GeoDataFrame({"level": line_levels}, geometry=lines, crs=source_layer.crs)

    logger.info(f"Generated {len(gdf)} contour line(s) at {len(selected)} level(s) from '{source_layer.name}'")
    return _vector_result(
        source_layer,
        gdf,
        layer_name or f"{source_layer.name}_contours",
        {"operation": "contours", "band": band, "levels": [float(v) for v in selected]},
        layer_manager,
    )
