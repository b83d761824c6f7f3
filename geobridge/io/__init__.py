# -*- coding: utf-8 -*-
"""The io package contains modules for reading and writing both raster and vector data.

It abstracts file formats, driver selection and partial reads to facilitate I/O tasks.
"""
