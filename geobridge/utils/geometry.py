# -*- coding: utf-8 -*-
"""Normalizes the different ways a caller can pass vector input into a GeoDataFrame in the raster CRS."""

import geopandas as gpd
from shapely.geometry import box
from shapely.geometry.base import BaseGeometry

from ..core.layer import Layer
from ..core.logging_config import get_module_logger

logger = get_module_logger(__name__)


def to_geodataframe(obj, crs=None):
    """Convert vector-like input to a GeoDataFrame.

    Parameters:
    -----------
    obj : GeoDataFrame, GeoSeries, shapely geometry, list of geometries, Layer or bounds tuple
        Vector input. A Layer contributes its objects, or its extent when it only holds a raster.
    crs : optional
        CRS assigned to inputs that do not carry one (geometries, tuples)

    Returns:
    --------
    gdf : geopandas.GeoDataFrame
    """
    if isinstance(obj, gpd.GeoDataFrame):
        return obj
    if isinstance(obj, gpd.GeoSeries):
        return gpd.GeoDataFrame(geometry=obj)
    if isinstance(obj, Layer):
        if obj.objects is not None:
            return obj.objects
        return gpd.GeoDataFrame(geometry=[box(*obj.bounds)], crs=obj.crs)
    if isinstance(obj, BaseGeometry):
        return gpd.GeoDataFrame(geometry=[obj], crs=crs)
    if isinstance(obj, (tuple, list)) and len(obj) == 4 and all(isinstance(v, (int, float)) for v in obj):
        return gpd.GeoDataFrame(geometry=[box(*obj)], crs=crs)
    if isinstance(obj, (tuple, list)) and all(isinstance(g, BaseGeometry) for g in obj):
        return gpd.GeoDataFrame(geometry=list(obj), crs=crs)

    raise ValueError(f"Cannot interpret {type(obj).__name__} as vector data")


def align_crs(gdf, crs):
    """Return ``gdf`` in ``crs``, reprojecting when both CRSs are known and differ."""
    if crs is None:
        return gdf
    if gdf.crs is None:
        logger.warning("Vector data has no CRS; assuming it matches the raster CRS")
        return gdf.set_crs(crs)
    if gdf.crs != crs:
        logger.info(f"Reprojecting vector data from {gdf.crs} to {crs}")
        return gdf.to_crs(crs)
    return gdf


def vector_for_raster(obj, layer):
    """Vector input as a GeoDataFrame in the CRS of a raster layer, with empty geometries dropped."""
    gdf = align_crs(to_geodataframe(obj, crs=layer.crs), layer.crs)
    return gdf[~(gdf.geometry.isna() | gdf.geometry.is_empty)]
