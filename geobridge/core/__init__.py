# -*- coding: utf-8 -*-
"""The core package encompasses fundamental data structures and settings for geobridge.

It defines the building blocks every operation shares: layers, grids, configuration and logging.
"""
