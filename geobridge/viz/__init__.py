# -*- coding: utf-8 -*-
"""Plotting functions for layers and extraction results."""
