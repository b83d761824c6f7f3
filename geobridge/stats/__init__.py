# -*- coding: utf-8 -*-
"""The stats package summarizes layer attributes, raster bands and the raster cells inside vector zones."""
