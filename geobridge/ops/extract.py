# -*- coding: utf-8 -*-
"""Raster extraction: reading the cell values found at the locations of vector objects.

Points are sampled at the cell that contains them, lines are first turned into evenly spaced points so the
result is a profile along the line, and polygons are summarized (or listed cell by cell) over the cells they cover.
"""

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely
from shapely.geometry import LineString, MultiLineString
from shapely.ops import linemerge

from ..core.config import EXTRACT_CONFIG
from ..core.grid import cell_centers, rowcol
from ..core.logging_config import get_module_logger
from ..stats.zonal import zonal_stats, zone_cells
from ..utils.geometry import align_crs, to_geodataframe, vector_for_raster

logger = get_module_logger(__name__)


def _band_indexes(layer, bands):
    if bands is None:
        return list(range(1, layer.count + 1))
    indexes = [int(bands)] if isinstance(bands, (int, np.integer)) else list(bands)
    for index in indexes:
        layer.band(index)
    return indexes


def _with_id(frame, source_name):
    """Copy of ``frame`` with a 0-based ``ID`` column first, replacing any ``ID`` column of the input."""
    frame = frame.copy()
    if "ID" in frame.columns:
        logger.warning(f"Input {source_name} already have an ID column; it is replaced by the row position")
        frame = frame.drop(columns="ID")
    frame.insert(0, "ID", np.arange(len(frame)))
    return frame


def extract_points(source_layer, points, bands=None, prefix=None):
    """Extract raster values at point locations.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer to sample
    points : GeoDataFrame, GeoSeries, shapely Point or list of Points
        Sampling locations; reprojected to the raster CRS for sampling
    bands : int or list of int, optional
        1-based band indexes to sample. All bands by default.
    prefix : str, optional
        Prefix of the value columns, ``EXTRACT_CONFIG["value_prefix"]`` by default

    Returns:
    --------
    result : geopandas.GeoDataFrame
        Copy of the input points with an ``ID`` column (input order) and one value column per band.
        Points outside the raster or on nodata cells get NaN.
    """
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    prefix = EXTRACT_CONFIG.get("value_prefix", "band_") if prefix is None else prefix
    indexes = _band_indexes(source_layer, bands)

    original = to_geodataframe(points, crs=source_layer.crs)
    sampling = align_crs(original, source_layer.crs)

    geoms = sampling.geometry
    missing = geoms.isna() | geoms.is_empty
    if not (geoms[~missing].geom_type == "Point").all():
        raise ValueError("extract_points requires point geometries; use extract_along_line or extract_polygons")

    geom_array = geoms.to_numpy()
    xs = shapely.get_x(geom_array).astype(float)
    ys = shapely.get_y(geom_array).astype(float)

    n = len(sampling)
    values = {index: np.full(n, np.nan) for index in indexes}

    finite = np.isfinite(xs) & np.isfinite(ys)
    if finite.any():
        rows, cols = rowcol(source_layer.transform, xs[finite], ys[finite])
        inside = (rows >= 0) & (rows < source_layer.height) & (cols >= 0) & (cols < source_layer.width)
        positions = np.flatnonzero(finite)[inside]
        rows, cols = rows[inside], cols[inside]

        for index in indexes:
            band = source_layer.band(index)
            valid = source_layer.valid_mask(index)[rows, cols]
            sampled = band[rows, cols].astype(float)
            values[index][positions[valid]] = sampled[valid]

    result = _with_id(original, "points")
    for index in indexes:
        result[f"{prefix}{index}"] = values[index]

    hits = int(np.isfinite(values[indexes[0]]).sum()) if indexes else 0
    logger.info(f"Extracted values at {n} point(s) from '{source_layer.name}' ({hits} with data)")
    return result


def _single_line(gdf):
    if len(gdf) == 0:
        raise ValueError("No line geometry given")

    geom = gdf.geometry.iloc[0]
    if isinstance(geom, MultiLineString):
        geom = linemerge(geom)
    if not isinstance(geom, LineString):
        raise ValueError(f"extract_along_line requires a single LineString, got {geom.geom_type}")
    return geom


def extract_along_line(source_layer, line, spacing=None, n_points=None, bands=None, prefix=None):
    """Extract raster values along a line, e.g. an elevation profile.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer to sample
    line : LineString or GeoDataFrame
        Line to follow; only the first geometry of a GeoDataFrame is used
    spacing : float, optional
        Distance between sample points in map units. Defaults to the raster cell size times
        ``EXTRACT_CONFIG["line_spacing_factor"]``.
    n_points : int, optional
        Number of evenly spaced points, start and end included; overrides ``spacing``
    bands : int or list of int, optional
        1-based band indexes to sample
    prefix : str, optional
        Prefix of the value columns

    Returns:
    --------
    profile : geopandas.GeoDataFrame
        One row per sample point with ``ID``, ``distance`` along the line and the band values
    """
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    geom = _single_line(vector_for_raster(line, source_layer))
    length = geom.length

    if n_points is not None:
        if n_points < 2:
            raise ValueError(f"n_points must be at least 2, got {n_points}")
        distances = np.linspace(0.0, length, int(n_points))
    else:
        if spacing is None:
            spacing = min(source_layer.res) * EXTRACT_CONFIG.get("line_spacing_factor", 1.0)
        if spacing <= 0:
            raise ValueError(f"spacing must be positive, got {spacing}")
        distances = np.arange(0.0, length, spacing)
        if len(distances) == 0 or distances[-1] < length:
            distances = np.append(distances, length)

    samples = gpd.GeoDataFrame(
        {"distance": distances},
        geometry=shapely.line_interpolate_point(geom, distances),
        crs=source_layer.crs,
    )

    profile = extract_points(source_layer, samples, bands=bands, prefix=prefix)
    logger.debug(f"Sampled {len(profile)} point(s) along a {length:.2f} unit line")
    return profile


def extract_polygons(source_layer, polygons, stats=None, band=1, all_touched=False):
    """Extract raster values that fall inside polygons.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer with the values
    polygons : GeoDataFrame, GeoSeries, shapely geometry or list of geometries
        Polygons to extract; reprojected to the raster CRS
    stats : list of str or str, optional
        Statistics per polygon (see :func:`geobridge.stats.zonal.zonal_stats`). ``"raw"`` returns every
        cell value instead.
    band : int
        1-based band index
    all_touched : bool
        If True, every cell touched by a polygon is included; otherwise only cells whose centre is inside

    Returns:
    --------
    result : geopandas.GeoDataFrame or pandas.DataFrame
        Polygons with an ``ID`` column and statistic columns, or, for ``stats="raw"``, a table with one row
        per (``ID``, cell) holding the cell's ``row``, ``col``, centre ``x``/``y`` and ``value``
    """
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    if isinstance(stats, str) and stats == "raw":
        gdf = align_crs(to_geodataframe(polygons, crs=source_layer.crs), source_layer.crs)
        frames = []
        for position, geometry in enumerate(gdf.geometry):
            values, rows, cols = zone_cells(source_layer, geometry, band=band, all_touched=all_touched)
            frames.append(pd.DataFrame({"ID": position, "row": rows, "col": cols, "value": values}))

        table = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame(columns=["ID", "row", "col", "value"])
        if len(table):
            xs, ys = cell_centers(source_layer.transform, source_layer.shape)
            table["x"] = xs[table["row"].to_numpy(), table["col"].to_numpy()]
            table["y"] = ys[table["row"].to_numpy(), table["col"].to_numpy()]
        else:
            table["x"] = pd.Series(dtype=float)
            table["y"] = pd.Series(dtype=float)

        logger.info(f"Extracted {len(table)} cell value(s) inside {len(gdf)} polygon(s)")
        return table[["ID", "row", "col", "x", "y", "value"]]

    result = zonal_stats(source_layer, polygons, stats=stats, band=band, all_touched=all_touched)
    return _with_id(result, "polygons")
