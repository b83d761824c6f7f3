# -*- coding: utf-8 -*-
"""Raster algebra: evaluating band expressions such as ``"b1 > 3000"`` or ``"(b2 - b1) / (b2 + b1)"``.

Bands are exposed to the expression as ``b1``, ``b2``, ... and the expression is evaluated with numexpr.
A cell is nodata in the result when it is nodata in any band the expression uses.
"""

import re

import numexpr as ne
import numpy as np

from ..core.logging_config import get_module_logger
from .crop import resolve_nodata

logger = get_module_logger(__name__)

_BAND_NAME = re.compile(r"\bb(\d+)\b")

MASK_NODATA = 255


def raster_calc(source_layer, expression, dtype=None, layer_manager=None, layer_name=None):
    """Evaluate a band expression over a raster layer.

    Parameters:
    -----------
    source_layer : Layer
        Raster layer with the input bands
    expression : str
        numexpr expression over ``b1``, ``b2``, ... (1-based band numbers)
    dtype : str or numpy.dtype, optional
        Output data type. Comparisons give uint8 masks (0/1), everything else float32 by default.
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Single-band layer with the expression result
    """
    if source_layer.raster is None:
        raise ValueError("Source layer must have raster data")

    used = sorted({int(n) for n in _BAND_NAME.findall(expression)})
    if not used:
        raise ValueError(f"Expression '{expression}' does not reference any band (b1, b2, ...)")

    local_dict = {f"b{index}": source_layer.band(index).astype(np.float64) for index in used}

    try:
        result = ne.evaluate(expression, local_dict=local_dict)
    except (KeyError, SyntaxError, TypeError, ValueError) as e:
        raise ValueError(f"Error evaluating expression '{expression}': {str(e)}") from e

    result = np.broadcast_to(np.asarray(result), source_layer.shape)

    invalid = np.zeros(source_layer.shape, dtype=bool)
    for index in used:
        invalid |= ~source_layer.valid_mask(index)

    if dtype is None:
        dtype = np.uint8 if result.dtype == np.bool_ else np.float32
    dtype = np.dtype(dtype)

    if result.dtype == np.bool_ and dtype == np.uint8:
        nodata = MASK_NODATA
    else:
        source_nodata = source_layer.nodata
        if source_nodata is not None and np.isnan(source_nodata):
            source_nodata = None
        nodata = resolve_nodata(dtype, source_nodata if np.issubdtype(dtype, np.integer) else None)

    output = result.astype(dtype)
    output[invalid] = nodata

    if not layer_name:
        layer_name = f"{source_layer.name}_calc"

    result_layer = source_layer.derive(layer_name, "calc")
    result_layer.set_raster(output, source_layer.transform, source_layer.crs, nodata=nodata)
    result_layer.metadata = {
        "operation": "raster_calc",
        "expression": expression,
        "bands": used,
        "nodata_cells": int(invalid.sum()),
    }

    logger.info(f"Evaluated '{expression}' on '{source_layer.name}' ({int(invalid.sum())} nodata cell(s))")

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer
