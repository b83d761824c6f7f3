# -*- coding: utf-8 -*-
"""Basic statistics for layer attributes and raster bands."""

import numpy as np
import pandas as pd

from ..core.layer import Layer

PERCENTILES = [10, 25, 50, 75, 90]


def attach_basic_stats(layer, column, prefix=None):
    """Attach basic statistics for a column to a layer.

    Parameters:
    -----------
    layer : Layer
        Layer to attach statistics to
    column : str
        Column to calculate statistics for, e.g. a zonal mean or an extracted band value
    prefix : str, optional
        Prefix for result names

    Returns:
    --------
    stats : dict
        Dictionary with calculated statistics; missing values are ignored
    """
    if layer.objects is None or column not in layer.objects.columns:
        raise ValueError(f"Column '{column}' not found in layer objects")
    if not pd.api.types.is_numeric_dtype(layer.objects[column]):
        raise ValueError(f"Column '{column}' is not numeric")

    prefix = f"{prefix}_" if prefix else ""

    values = layer.objects[column].dropna()
    stats = {
        f"{prefix}min": float(values.min()) if len(values) else np.nan,
        f"{prefix}max": float(values.max()) if len(values) else np.nan,
        f"{prefix}mean": float(values.mean()) if len(values) else np.nan,
        f"{prefix}median": float(values.median()) if len(values) else np.nan,
        f"{prefix}std": float(values.std()) if len(values) > 1 else np.nan,
        f"{prefix}sum": float(values.sum()),
        f"{prefix}count": len(values),
    }

    for p in PERCENTILES:
        stats[f"{prefix}percentile_{p}"] = float(np.percentile(values, p)) if len(values) else np.nan

    return stats


def get_band_statistics(source, band_names=None):
    """Calculate statistics for each band of a raster.

    Parameters:
    -----------
    source : Layer or numpy.ndarray
        Raster layer, or raster data (bands, height, width). For a layer, nodata cells are excluded;
        NaN cells are always excluded.
    band_names : list of str, optional
        Names of the bands

    Returns:
    --------
    stats : dict
        Dictionary with band statistics; bands without valid cells only report ``valid_cells`` = 0
    """
    if isinstance(source, Layer):
        image_data = source.raster
        if image_data is None:
            raise ValueError("Layer has no raster data")
        valid = source.valid_mask()
    else:
        image_data = np.asarray(source)
        if image_data.ndim == 2:
            image_data = image_data.reshape(1, *image_data.shape)
        valid = ~np.isnan(image_data) if np.issubdtype(image_data.dtype, np.floating) else np.ones(image_data.shape, bool)

    num_bands = image_data.shape[0]

    if band_names is None:
        band_names = [f"Band_{i + 1}" for i in range(num_bands)]

    stats = {}

    for i, band_name in enumerate(band_names):
        if i >= num_bands:
            break

        band_data = image_data[i][valid[i]]
        if band_data.size == 0:
            stats[band_name] = {"valid_cells": 0}
            continue

        stats[band_name] = {
            "valid_cells": int(band_data.size),
            "min": float(np.min(band_data)),
            "max": float(np.max(band_data)),
            "mean": float(np.mean(band_data)),
            "std": float(np.std(band_data)),
            "median": float(np.median(band_data)),
            "percentile_5": float(np.percentile(band_data, 5)),
            "percentile_95": float(np.percentile(band_data, 95)),
        }

    return stats
