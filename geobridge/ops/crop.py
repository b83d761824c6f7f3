# -*- coding: utf-8 -*-
"""Raster cropping and masking with vector data.

Cropping reduces the extent of a raster to the bounding box of a vector object, masking replaces the values
of cells outside (or, inverted, inside) the vector geometries with nodata. Vector objects are reprojected to
the raster CRS first, cell values are never resampled.
"""

import numpy as np
import rasterio.features
from affine import Affine

from ..core.config import DEFAULT_NODATA_VALUE
from ..core.grid import bounds_overlap, bounds_window
from ..core.logging_config import get_module_logger
from ..utils.geometry import vector_for_raster

logger = get_module_logger(__name__)


def resolve_nodata(dtype, nodata=None):
    """Pick a nodata value that can be stored in ``dtype``.

    Float rasters default to NaN; integer rasters default to ``DEFAULT_NODATA_VALUE`` when it fits the type,
    otherwise to the smallest value of the type.
    """
    dtype = np.dtype(dtype)

    if np.issubdtype(dtype, np.floating):
        return np.nan if nodata is None else nodata

    info = np.iinfo(dtype)
    if nodata is None:
        if info.min <= DEFAULT_NODATA_VALUE <= info.max:
            return int(DEFAULT_NODATA_VALUE)
        return int(info.min)

    if isinstance(nodata, float) and (np.isnan(nodata) or not nodata.is_integer()):
        raise ValueError(f"Nodata value {nodata} cannot be stored in an {dtype} raster")
    if not info.min <= nodata <= info.max:
        raise ValueError(f"Nodata value {nodata} is outside the range of {dtype}")
    return int(nodata)


def crop_raster(source_layer, extent, layer_manager=None, layer_name=None):
    """Crop a raster layer to the extent of a vector object.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer to crop
    extent : GeoDataFrame, GeoSeries, shapely geometry, Layer or tuple
        Object whose bounding box defines the output extent
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer covering the cells of the source that intersect the extent
    """
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    gdf = vector_for_raster(extent, source_layer)
    if len(gdf) == 0:
        raise ValueError("Crop extent contains no geometries")

    bounds = tuple(float(v) for v in gdf.total_bounds)
    if not bounds_overlap(source_layer.bounds, bounds):
        raise ValueError(f"Crop extent {bounds} does not overlap raster extent {source_layer.bounds}")

    (row_start, row_stop), (col_start, col_stop) = bounds_window(source_layer.transform, source_layer.shape, bounds)

    if not layer_name:
        layer_name = f"{source_layer.name}_cropped"

    result_layer = source_layer.derive(layer_name, "crop")
    result_layer.set_raster(
        source_layer.raster[:, row_start:row_stop, col_start:col_stop].copy(),
        source_layer.transform * Affine.translation(col_start, row_start),
        source_layer.crs,
        nodata=source_layer.nodata,
    )
    result_layer.metadata = {
        "operation": "crop",
        "extent": bounds,
        "window": [col_start, row_start, col_stop - col_start, row_stop - row_start],
    }

    logger.info(f"Cropped '{source_layer.name}' from {source_layer.height}x{source_layer.width} to {result_layer.height}x{result_layer.width}")

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer


def mask_raster(
    source_layer,
    zones,
    invert=False,
    all_touched=False,
    nodata=None,
    crop=False,
    layer_manager=None,
    layer_name=None,
):
    """Set raster cells outside vector geometries to nodata.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer to mask
    zones : GeoDataFrame, GeoSeries, shapely geometry or list of geometries
        Geometries defining the area to keep
    invert : bool
        If True, cells inside the geometries are set to nodata instead
    all_touched : bool
        If True, every cell touched by a geometry counts as inside; otherwise only cells whose centre is inside
    nodata : int or float, optional
        Value for masked cells. Defaults to the layer's nodata, then to a value suited to the data type.
    crop : bool
        If True, the extent is also reduced to the bounding box of the geometries
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Masked layer
    """
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    gdf = vector_for_raster(zones, source_layer)
    if len(gdf) == 0:
        raise ValueError("Mask contains no geometries")

    base = crop_raster(source_layer, gdf) if crop else source_layer

    nodata = resolve_nodata(base.raster.dtype, nodata if nodata is not None else source_layer.nodata)

    inside = rasterio.features.geometry_mask(
        gdf.geometry,
        out_shape=base.shape,
        transform=base.transform,
        all_touched=all_touched,
        invert=True,
    )
    keep = ~inside if invert else inside

    data = base.raster.copy()
    data[~base.valid_mask()] = nodata
    data[:, ~keep] = nodata

    if not layer_name:
        layer_name = f"{source_layer.name}_masked"

    result_layer = source_layer.derive(layer_name, "mask")
    result_layer.set_raster(data, base.transform, source_layer.crs, nodata=nodata)
    result_layer.metadata = {
        "operation": "mask",
        "invert": invert,
        "all_touched": all_touched,
        "crop": crop,
        "masked_cells": int((~keep).sum()),
    }

    logger.info(f"Masked {result_layer.metadata['masked_cells']} of {keep.size} cells in '{source_layer.name}'")

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer
