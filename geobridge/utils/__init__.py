# -*- coding: utf-8 -*-
"""Utilities for normalizing vector input and creating sample data."""
