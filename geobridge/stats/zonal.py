# -*- coding: utf-8 -*-
"""Zonal statistics: summarizing the raster cells that fall inside vector zones."""

import numpy as np
import pandas as pd
import rasterio.features
from affine import Affine
from shapely.geometry import box

from ..core.config import DEFAULT_ZONAL_STATS, SUPPORTED_ZONAL_STATS
from ..core.grid import bounds_window
from ..core.logging_config import get_module_logger
from ..utils.geometry import align_crs, to_geodataframe

logger = get_module_logger(__name__)


def _majority(values):
    uniques, counts = np.unique(values, return_counts=True)
    return uniques[np.argmax(counts)]


def _minority(values):
    uniques, counts = np.unique(values, return_counts=True)
    return uniques[np.argmin(counts)]


_STAT_FUNCTIONS = {
    "count": len,
    "sum": np.sum,
    "mean": np.mean,
    "min": np.min,
    "max": np.max,
    "std": np.std,
    "median": np.median,
    "range": np.ptp,
    "majority": _majority,
    "minority": _minority,
    "unique": lambda values: len(np.unique(values)),
}


def _check_stats(stats):
    if stats is None:
        return list(DEFAULT_ZONAL_STATS)
    if isinstance(stats, str):
        stats = stats.split()
    unknown = [s for s in stats if s not in SUPPORTED_ZONAL_STATS]
    if unknown:
        raise ValueError(f"Unsupported statistic(s) {unknown}. Supported: {SUPPORTED_ZONAL_STATS}")
    return list(stats)


def zone_cells(layer, geometry, band=1, all_touched=False):
    """Valid cells of one band that fall inside a geometry.

    Parameters:
    -----------
    layer : Layer
        Raster layer
    geometry : shapely geometry
        Zone geometry in the layer CRS
    band : int
        1-based band index
    all_touched : bool
        Whether every cell touched by the geometry counts, or only cells whose centre is inside

    Returns:
    --------
    values, rows, cols : numpy.ndarray
        Cell values and their row/column indices in the layer grid
    """
    empty = np.array([], dtype=int)
    data = layer.band(band)

    if geometry is None or geometry.is_empty or not geometry.intersects(box(*layer.bounds)):
        return data[empty, empty], empty, empty

    try:
        (row_start, row_stop), (col_start, col_stop) = bounds_window(layer.transform, layer.shape, _padded_bounds(layer, geometry))
    except ValueError:
        return data[empty, empty], empty, empty

    window_transform = layer.transform * Affine.translation(col_start, row_start)
    inside = rasterio.features.geometry_mask(
        [geometry],
        out_shape=(row_stop - row_start, col_stop - col_start),
        transform=window_transform,
        all_touched=all_touched,
        invert=True,
    )
    inside &= layer.valid_mask(band)[row_start:row_stop, col_start:col_stop]

    rows, cols = np.nonzero(inside)
    rows = rows + row_start
    cols = cols + col_start
    return data[rows, cols], rows, cols


def _padded_bounds(layer, geometry):
    xres, yres = layer.res
    left, bottom, right, top = geometry.bounds
    return left - xres, bottom - yres, right + xres, top + yres


def zonal_stats(source_layer, zones, stats=None, band=1, all_touched=False, categorical=False, prefix=""):
    """Summarize the raster cells inside each zone.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer with the values to summarize
    zones : GeoDataFrame, GeoSeries, shapely geometry or list of geometries
        Zone geometries; reprojected to the raster CRS when needed
    stats : list of str or str, optional
        Statistics to compute (see ``SUPPORTED_ZONAL_STATS``), ``DEFAULT_ZONAL_STATS`` by default
    band : int
        1-based band index
    all_touched : bool
        If True, every cell touched by a zone is included; otherwise only cells whose centre is inside
    categorical : bool
        If True, count the cells of each distinct value instead of computing ``stats``
    prefix : str
        Prefix for the result column names

    Returns:
    --------
    result : geopandas.GeoDataFrame
        Copy of the zones with one column per statistic (or per category)
    """
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    stats = _check_stats(stats)
    # Every input zone is kept; empty geometries summarize no cells
    gdf = align_crs(to_geodataframe(zones, crs=source_layer.crs), source_layer.crs)
    result = gdf.copy()

    rows = []
    for geometry in gdf.geometry:
        values, _, _ = zone_cells(source_layer, geometry, band=band, all_touched=all_touched)

        if categorical:
            uniques, counts = np.unique(values, return_counts=True)
            rows.append({f"{prefix}{_category_label(v)}": int(c) for v, c in zip(uniques, counts, strict=False)})
            continue

        row = {}
        for stat in stats:
            if stat == "count":
                row[f"{prefix}count"] = int(len(values))
            elif len(values) == 0:
                row[f"{prefix}{stat}"] = np.nan
            else:
                row[f"{prefix}{stat}"] = float(_STAT_FUNCTIONS[stat](values))
        rows.append(row)

    table = pd.DataFrame(rows, index=result.index)
    if categorical:
        table = table.reindex(sorted(table.columns, key=_category_sort_key), axis=1).fillna(0).astype(int)

    for col in table.columns:
        result[col] = table[col]

    logger.info(f"Computed zonal statistics for {len(result)} zone(s) of '{source_layer.name}'")
    return result


def _category_label(value):
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        value = int(value)
    return f"category_{value}"


def _category_sort_key(label):
    raw = label.rsplit("category_", 1)[-1]
    try:
        return (0, float(raw), label)
    except ValueError:
        return (1, 0.0, label)


def attach_zonal_stats(layer, raster_layer, **kwargs):
    """Calculate zonal statistics of a raster for the objects of a vector layer.

    Intended for ``layer.attach_function(attach_zonal_stats, raster_layer=...)``: the statistic columns are
    written onto ``layer.objects``.

    Parameters:
    -----------
    layer : Layer
        Layer whose objects are the zones
    raster_layer : Layer
        Raster layer with the values
    **kwargs : dict
        Passed to :func:`zonal_stats`

    Returns:
    --------
    summary : dict
        Mean of each new column over all zones
    """
    if layer.objects is None:
        raise ValueError("Layer has no vector objects")

    result = zonal_stats(raster_layer, layer.objects, **kwargs)
    new_columns = [col for col in result.columns if col not in layer.objects.columns]

    objects = layer.objects.copy()
    for col in new_columns:
        objects[col] = result[col]
    layer.objects = objects

    return {col: float(objects[col].mean()) for col in new_columns}
