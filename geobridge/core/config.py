# -*- coding: utf-8 -*-
"""Configuration settings shared by the geobridge modules.

Settings live in module-level dictionaries so they can be changed in one place,
either directly or by overlaying a JSON file with :func:`load_config`.
"""

import json
import os
from typing import Any, Dict

# General configuration
DEFAULT_NODATA_VALUE: float = -9999.0
DEFAULT_RESOLUTION: float = 30.0

# Raster file formats (extension -> GDAL driver)
RASTER_DRIVERS: Dict[str, str] = {
    ".tif": "GTiff",
    ".tiff": "GTiff",
    ".asc": "AAIGrid",
    ".img": "HFA",
    ".nc": "netCDF",
    ".vrt": "VRT",
    ".png": "PNG",
    ".jpg": "JPEG",
}

# Vector file formats (extension -> OGR driver)
VECTOR_DRIVERS: Dict[str, str] = {
    ".shp": "ESRI Shapefile",
    ".geojson": "GeoJSON",
    ".json": "GeoJSON",
    ".gpkg": "GPKG",
    ".fgb": "FlatGeobuf",
    ".gml": "GML",
    ".kml": "KML",
    ".csv": "CSV",
}

# Raster writing
RASTER_WRITE_CONFIG: Dict[str, Any] = {
    "compress": "deflate",  # Only applied to GTiff outputs
    "tiled": False,
    "blocksize": 256,
}

# Zonal statistics
DEFAULT_ZONAL_STATS = ["count", "min", "max", "mean", "std"]
SUPPORTED_ZONAL_STATS = [
    "count",
    "sum",
    "mean",
    "min",
    "max",
    "std",
    "median",
    "range",
    "majority",
    "minority",
    "unique",
]

# Extraction
EXTRACT_CONFIG: Dict[str, Any] = {
    "line_spacing_factor": 1.0,  # Line sampling spacing as a multiple of the cell size
    "value_prefix": "band_",
}

# Contour generation
CONTOUR_CONFIG: Dict[str, Any] = {
    "n_levels": 10,
    "min_vertices": 2,
}

# Logging configuration
LOGGING_CONFIG: Dict[str, Any] = {
    "level": "INFO",  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    "log_to_file": False,
    "log_file": os.path.join("output", "geobridge.log"),
    "log_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

_SECTIONS: Dict[str, Dict[str, Any]] = {
    "raster_write": RASTER_WRITE_CONFIG,
    "extract": EXTRACT_CONFIG,
    "contour": CONTOUR_CONFIG,
    "logging": LOGGING_CONFIG,
    "raster_drivers": RASTER_DRIVERS,
    "vector_drivers": VECTOR_DRIVERS,
}


def load_config(path: str) -> Dict[str, Dict[str, Any]]:
    """Overlay settings from a JSON file onto the module configuration.

    Parameters
    ----------
    path : str
        Path to a JSON file whose top-level keys are section names
        (``raster_write``, ``extract``, ``contour``, ``logging``,
        ``raster_drivers``, ``vector_drivers``).

    Returns
    -------
    dict
        The updated sections, keyed by section name.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        overrides = json.load(f)

    if not isinstance(overrides, dict):
        raise ValueError(f"Configuration file must contain a JSON object: {path}")

    for section, values in overrides.items():
        key = section.lower()
        if key not in _SECTIONS:
            raise ValueError(f"Unknown configuration section '{section}'. Expected one of {sorted(_SECTIONS)}")
        if not isinstance(values, dict):
            raise ValueError(f"Configuration section '{section}' must be a JSON object")
        _SECTIONS[key].update(values)

    return {key: _SECTIONS[key] for key in (s.lower() for s in overrides)}
