# -*- coding: utf-8 -*-
"""The convert package turns vector data into rasters and rasters into vector data.

Rasterization burns points, lines and polygons into a grid; vectorization produces points, polygons or contour lines.
"""
