# -*- coding: utf-8 -*-
# geobridge/__init__.py

"""
geobridge: raster-vector interactions for geographic data
==========================================================

geobridge is a Python package for moving data between the raster and vector
worlds, built on rasterio, geopandas and shapely.

Key features:
- Reading and writing raster and vector files, including windowed and filtered reads
- Cropping and masking rasters with vector data
- Extracting raster values at points, along lines and inside polygons
- Zonal statistics
- Rasterization of points, lines and polygons
- Vectorization of rasters into points, polygons and contour lines
- Band algebra
"""

__version__ = "0.1.0"

from .core.config import load_config
from .core.grid import grid_from_bounds, template_layer
from .core.layer import Layer, LayerManager
from .core.logging_config import get_module_logger, setup_logging

from .io.raster import layer_to_raster, raster_info, read_raster, read_raster_layer, write_raster
from .io.vector import (
    layer_to_vector,
    list_layers,
    points_from_table,
    read_vector,
    vector_info,
    vector_layer,
    write_vector,
)

from .ops.calc import raster_calc
from .ops.crop import crop_raster, mask_raster
from .ops.extract import extract_along_line, extract_points, extract_polygons

from .convert.rasterize import rasterize_vector
from .convert.vectorize import contours, polygonize, raster_to_points

from .stats.basic import attach_basic_stats, get_band_statistics
from .stats.zonal import attach_zonal_stats, zonal_stats

from .utils.helpers import calculate_statistics_summary, create_sample_data

from .viz.maps import plot_categories, plot_layer, plot_profile
