# -*- coding: utf-8 -*-
"""The ops package provides raster operations driven by vector data.

It includes cropping and masking, value extraction at points, lines and polygons, and band algebra.
"""
