# -*- coding: utf-8 -*-
"""Functions to create maps of layers and plots of extracted profiles."""

import matplotlib.patches as mpatches
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.colors import ListedColormap

from ..utils.geometry import align_crs, to_geodataframe


def plot_layer(
    layer,
    band=1,
    vector=None,
    title=None,
    cmap="viridis",
    figsize=(10, 8),
    ax=None,
):
    """Plot a raster band in map coordinates, optionally with vector data on top.

    Parameters:
    -----------
    layer : Layer
        Layer to plot. Vector-only layers are drawn from their objects.
    band : int
        1-based band index
    vector : GeoDataFrame, Layer or shapely geometry, optional
        Overlay drawn as outlines (polygons/lines) or markers (points), reprojected to the layer CRS
    title : str, optional
        Plot title, the layer name by default
    cmap : str
        Colormap for the raster
    figsize : tuple
        Figure size, used when ``ax`` is not given
    ax : matplotlib.axes.Axes, optional
        Axes to draw on

    Returns:
    --------
    fig : matplotlib.figure.Figure
        Figure object
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    ax.set_title(title if title else layer.name)

    if layer.raster is not None:
        left, bottom, right, top = layer.bounds
        image = ax.imshow(layer.masked(band), extent=(left, right, bottom, top), cmap=cmap, interpolation="nearest")
        fig.colorbar(image, ax=ax, shrink=0.8, label=f"Band {band}")
    elif layer.objects is not None:
        layer.objects.plot(ax=ax, cmap=cmap, edgecolor="black", linewidth=0.5)
    else:
        raise ValueError(f"Layer '{layer.name}' has nothing to plot")

    if vector is not None:
        overlay = align_crs(to_geodataframe(vector, crs=layer.crs), layer.crs)
        if len(overlay) and overlay.geom_type.isin(["Point", "MultiPoint"]).all():
            overlay.plot(ax=ax, color="red", markersize=15)
        else:
            overlay.plot(ax=ax, facecolor="none", edgecolor="red", linewidth=1.0)

    ax.set_xlabel("X Coordinate")
    ax.set_ylabel("Y Coordinate")
    ax.grid(alpha=0.3)
    return fig


def plot_categories(layer, column="value", figsize=(10, 8), legend=True):
    """Plot vector objects colored by a categorical column, e.g. the output of polygonize."""
    if layer.objects is None or column not in layer.objects.columns:
        raise ValueError(f"Column '{column}' not found in layer objects")

    fig, ax = plt.subplots(figsize=figsize)

    categories = [v for v in layer.objects[column].unique() if v is not None]
    colors = plt.cm.tab20(np.linspace(0, 1, max(len(categories), 1)))
    cmap = ListedColormap(colors[: max(len(categories), 1)])

    codes = layer.objects[column].map({value: i for i, value in enumerate(categories)})
    layer.objects.assign(_category=codes).plot(
        column="_category",
        cmap=cmap,
        ax=ax,
        edgecolor="black",
        linewidth=0.5,
        legend=False,
    )

    if legend and categories:
        patches = [mpatches.Patch(color=colors[i], label=str(value)) for i, value in enumerate(categories)]
        ax.legend(handles=patches, loc="upper right", title=column)

    ax.set_title(f"{layer.name} by {column}")
    ax.set_xlabel("X Coordinate")
    ax.set_ylabel("Y Coordinate")
    return fig


def plot_profile(profile, column="band_1", title=None, figsize=(10, 4)):
    """Plot values along a line against the distance from its start.

    Parameters:
    -----------
    profile : geopandas.GeoDataFrame
        Result of :func:`geobridge.ops.extract.extract_along_line`
    column : str
        Value column to plot
    title : str, optional
        Plot title

    Returns:
    --------
    fig : matplotlib.figure.Figure
        Figure object
    """
    for col in ("distance", column):
        if col not in profile.columns:
            raise ValueError(f"Column '{col}' not found in profile")

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(profile["distance"], profile[column], color="tab:brown", linewidth=1.5)
    ax.set_title(title if title else f"Profile of {column}")
    ax.set_xlabel("Distance along line")
    ax.set_ylabel(column)
    ax.grid(alpha=0.3)
    return fig
