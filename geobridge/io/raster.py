# -*- coding: utf-8 -*-
"""Handles raster input and output operations, including reading and saving multi-band images.

Reading supports band selection and windowed reads of a bounding box, writing infers the GDAL driver
from the file extension. Functions in this module also provide metadata parsing for quick inspection of a file.
"""

import os

import numpy as np
import rasterio
from rasterio.errors import RasterioIOError
from rasterio.windows import Window

from ..core.config import RASTER_DRIVERS, RASTER_WRITE_CONFIG
from ..core.grid import bounds_window
from ..core.layer import Layer
from ..core.logging_config import get_module_logger

logger = get_module_logger(__name__)


def raster_driver_for(path):
    """Return the GDAL driver name for a raster path based on its extension."""
    extension = os.path.splitext(path)[1].lower()
    if extension not in RASTER_DRIVERS:
        raise ValueError(f"Unsupported raster format: {extension or path}")
    return RASTER_DRIVERS[extension]


def _open(raster_path):
    if not os.path.exists(raster_path):
        raise FileNotFoundError(f"Raster file not found: {raster_path}")
    try:
        return rasterio.open(raster_path)
    except RasterioIOError as e:
        logger.error(f"Failed to open raster {raster_path}: {e}")
        raise RuntimeError(f"Failed to open raster: {raster_path}") from e


def read_raster(raster_path):
    """Read a raster file and return its data, transform, and CRS.

    Parameters:
    -----------
    raster_path : str
        Path to the raster file

    Returns:
    --------
    image_data : numpy.ndarray
        Array with raster data values (bands, rows, cols)
    transform : affine.Affine
        Affine transformation for the raster
    crs : rasterio.crs.CRS
        Coordinate reference system
    """
    with _open(raster_path) as src:
        image_data = src.read()
        transform = src.transform
        crs = src.crs

    return image_data, transform, crs


def read_raster_layer(raster_path, bands=None, bounds=None, name=None):
    """Read a raster file into a Layer.

    Parameters:
    -----------
    raster_path : str
        Path to the raster file
    bands : int or list of int, optional
        1-based band indexes to read. All bands by default.
    bounds : tuple, optional
        (left, bottom, right, top) box in the raster CRS; only the window covering it is read
    name : str, optional
        Layer name, the file name without extension by default

    Returns:
    --------
    layer : Layer
        Raster layer with transform, CRS and nodata taken from the file
    """
    with _open(raster_path) as src:
        if bands is None:
            indexes = list(range(1, src.count + 1))
        else:
            indexes = [int(bands)] if isinstance(bands, (int, np.integer)) else list(bands)
            for index in indexes:
                if not 1 <= index <= src.count:
                    raise ValueError(f"Band {index} out of range for {raster_path} with {src.count} band(s)")

        window = None
        transform = src.transform
        if bounds is not None:
            try:
                (row_start, row_stop), (col_start, col_stop) = bounds_window(src.transform, (src.height, src.width), bounds)
            except ValueError as e:
                raise ValueError(f"Bounds {bounds} do not overlap raster {raster_path}") from e
            window = Window(col_start, row_start, col_stop - col_start, row_stop - row_start)
            transform = src.window_transform(window)

        data = src.read(indexes, window=window)
        layer = Layer(name=name or os.path.splitext(os.path.basename(raster_path))[0], type="raster")
        layer.set_raster(data, transform, src.crs, nodata=src.nodata)
        layer.metadata = {
            "source": raster_path,
            "driver": src.driver,
            "bands": indexes,
            "window": None if window is None else [int(window.col_off), int(window.row_off), int(window.width), int(window.height)],
        }

    logger.info(f"Read raster {raster_path}: {layer.count} band(s), {layer.height}x{layer.width} cells")
    return layer


def write_raster(output_path, data, transform, crs, nodata=None, driver=None, compress=None, dtype=None):
    """Write raster data to a file.

    Parameters:
    -----------
    output_path : str
        Path to the output raster file
    data : numpy.ndarray
        Array with raster data values, (rows, cols) or (bands, rows, cols)
    transform : affine.Affine
        Affine transformation for the raster
    crs : rasterio.crs.CRS
        Coordinate reference system
    nodata : int or float, optional
        No data value
    driver : str, optional
        GDAL driver. Inferred from the extension when omitted.
    compress : str, optional
        Compression for GeoTIFF outputs, ``RASTER_WRITE_CONFIG["compress"]`` by default
    dtype : str or numpy.dtype, optional
        Output data type; data is cast when given
    """
    driver = driver or raster_driver_for(output_path)

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    data = np.asarray(data)
    if len(data.shape) == 2:
        data = data.reshape(1, *data.shape)
    if dtype is not None:
        data = data.astype(dtype)
    if data.dtype == np.bool_:
        data = data.astype(np.uint8)

    height, width = data.shape[-2], data.shape[-1]
    count = data.shape[0]

    profile = {
        "driver": driver,
        "height": height,
        "width": width,
        "count": count,
        "dtype": data.dtype,
        "crs": crs,
        "transform": transform,
        "nodata": nodata,
    }
    if driver == "GTiff":
        compress = compress if compress is not None else RASTER_WRITE_CONFIG.get("compress")
        if compress:
            profile["compress"] = compress
        if RASTER_WRITE_CONFIG.get("tiled"):
            blocksize = RASTER_WRITE_CONFIG.get("blocksize", 256)
            profile.update(tiled=True, blockxsize=blocksize, blockysize=blocksize)

    with rasterio.open(output_path, "w", **profile) as dst:
        dst.write(data)

    logger.info(f"Wrote {count} band(s) {height}x{width} ({data.dtype}) to {output_path}")


def layer_to_raster(layer, output_path, column=None, nodata=0):
    """Save a layer to a raster file.

    Parameters:
    -----------
    layer : Layer
        Layer to save
    output_path : str
        Path to the output raster file
    column : str, optional
        Column to rasterize (if saving from vector objects)
    nodata : int or float, optional
        No data value used when rasterizing objects
    """
    if layer.raster is not None and column is None:
        write_raster(
            output_path,
            layer.raster,
            layer.transform,
            layer.crs,
            layer.nodata,
        )
        return

    if layer.objects is not None and column is not None:
        if column not in layer.objects.columns:
            raise ValueError(f"Column '{column}' not found in layer objects")

        from ..convert.rasterize import rasterize_vector

        if layer.raster is not None:
            template = layer
            resolution = None
        else:
            template = None
            resolution = layer.res if layer.transform is not None else None
            if resolution is None:
                raise ValueError("Layer has no grid; set layer.transform or rasterize with a template first")

        rasterized = rasterize_vector(layer.objects, template=template, resolution=resolution, field=column, fill=nodata)
        if "category_map" in rasterized.metadata:
            layer.metadata["category_map"] = rasterized.metadata["category_map"]
            logger.info(f"Mapped categorical values: {rasterized.metadata['category_map']}")

        write_raster(output_path, rasterized.raster, rasterized.transform, rasterized.crs, nodata)
    else:
        raise ValueError("Layer must have either raster data or objects with a specified column")


def raster_info(raster_path):
    """Collect basic information about a raster file.

    Parameters:
    -----------
    raster_path : str
        Path to the raster file

    Returns:
    --------
    info : dict
        Driver, size, band count, data types, CRS, transform, bounds, resolution, nodata
        and per-band statistics over valid cells
    """
    with _open(raster_path) as src:
        info = {
            "driver": src.driver,
            "width": src.width,
            "height": src.height,
            "count": src.count,
            "dtypes": list(src.dtypes),
            "crs": src.crs.to_string() if src.crs else None,
            "transform": list(src.transform)[:6],
            "bounds": tuple(src.bounds),
            "resolution": src.res,
            "nodata": src.nodata,
        }

        stats = []
        for i in range(1, src.count + 1):
            band = src.read(i, masked=True)
            band = np.ma.masked_invalid(band) if np.issubdtype(band.dtype, np.floating) else band
            valid = band.count()
            stats.append(
                {
                    "band": i,
                    "valid_cells": int(valid),
                    "min": float(band.min()) if valid else None,
                    "max": float(band.max()) if valid else None,
                    "mean": float(band.mean()) if valid else None,
                    "std": float(band.std()) if valid else None,
                }
            )
        info["band_stats"] = stats

    return info
