# -*- coding: utf-8 -*-
"""Defines the Layer class and related functionality for organizing geospatial data.

A layer is the container every geobridge operation reads and returns: a georeferenced raster
(bands, rows, cols) with its affine transform, CRS and nodata value, and/or a GeoDataFrame of vector objects.
Layers derived from other layers keep a reference to their parent, so a chain of crops, masks and conversions
can be traced back to the data it came from. The LayerManager keeps track of the layers created in a session.
"""

import uuid

import numpy as np
import pandas as pd


class Layer:
    """A Layer represents a raster grid and/or a set of vector objects with associated properties.

    Layers can be read from files, or derived from cropping, masking, rasterization or vectorization.
    Each layer can have functions attached to calculate additional properties.
    """

    def __init__(self, name=None, parent=None, type="generic"):
        """Initialize a Layer.

        Parameters:
        -----------
        name : str, optional
            Name of the layer. If None, a unique name will be generated.
        parent : Layer, optional
            Parent layer that this layer is derived from.
        type : str
            Type of layer: "raster", "vector", "crop", "mask", "rasterized", "vectorized", "calc" or "generic"
        """
        self.id = str(uuid.uuid4())
        self.name = name if name else f"Layer_{self.id[:8]}"
        self.parent = parent
        self.type = type
        self.created_at = pd.Timestamp.now()

        self.raster = None
        self.objects = None
        self.metadata = {}
        self.transform = None
        self.crs = None
        self.nodata = None

        self.attached_functions = {}

    def set_raster(self, data, transform, crs, nodata=None):
        """Assign raster data to the layer.

        Parameters:
        -----------
        data : numpy.ndarray
            Array with raster values, (rows, cols) or (bands, rows, cols)
        transform : affine.Affine
            Affine transformation for the raster
        crs : rasterio.crs.CRS or str
            Coordinate reference system
        nodata : int or float, optional
            No data value

        Returns:
        --------
        self : Layer
            Returns self for chaining
        """
        data = np.asarray(data)
        if data.ndim == 2:
            data = data.reshape(1, *data.shape)
        if data.ndim != 3:
            raise ValueError(f"Raster data must be 2-D or 3-D, got shape {data.shape}")

        self.raster = data
        self.transform = transform
        self.crs = crs
        self.nodata = nodata
        return self

    @property
    def has_raster(self):
        """Whether the layer carries raster data."""
        return self.raster is not None

    @property
    def count(self):
        """Number of raster bands."""
        return 0 if self.raster is None else self.raster.shape[0]

    @property
    def height(self):
        """Number of raster rows."""
        return self._require_raster().shape[-2]

    @property
    def width(self):
        """Number of raster columns."""
        return self._require_raster().shape[-1]

    @property
    def shape(self):
        """Raster (rows, cols)."""
        return self.height, self.width

    @property
    def res(self):
        """Cell size as positive (x, y)."""
        if self.transform is None:
            raise ValueError(f"Layer '{self.name}' has no transform")
        return abs(self.transform.a), abs(self.transform.e)

    @property
    def bounds(self):
        """Extent as (left, bottom, right, top)."""
        if self.raster is not None and self.transform is not None:
            t = self.transform
            xs = [t.c, t.c + t.a * self.width]
            ys = [t.f, t.f + t.e * self.height]
            return min(xs), min(ys), max(xs), max(ys)

        if self.objects is not None and len(self.objects) > 0:
            return tuple(float(v) for v in self.objects.total_bounds)

        raise ValueError(f"Layer '{self.name}' has neither a georeferenced raster nor objects")

    def band(self, index):
        """Get one band as a 2-D array.

        Parameters:
        -----------
        index : int
            1-based band index

        Returns:
        --------
        band : numpy.ndarray
            Band values
        """
        raster = self._require_raster()
        if not 1 <= index <= raster.shape[0]:
            raise ValueError(f"Band {index} out of range for layer '{self.name}' with {raster.shape[0]} band(s)")
        return raster[index - 1]

    def valid_mask(self, index=None):
        """Boolean array that is True where cells hold data (not nodata and not NaN)."""
        data = self._require_raster() if index is None else self.band(index)
        valid = np.ones(data.shape, dtype=bool)
        if np.issubdtype(data.dtype, np.floating):
            valid &= ~np.isnan(data)
        if self.nodata is not None and not (isinstance(self.nodata, float) and np.isnan(self.nodata)):
            valid &= data != self.nodata
        return valid

    def masked(self, index=None):
        """Raster (or one band) as a numpy masked array with nodata cells masked."""
        data = self._require_raster() if index is None else self.band(index)
        return np.ma.masked_array(data, mask=~self.valid_mask(index))

    def attach_function(self, function, name=None, **kwargs):
        """Attach a function to this layer and execute it.

        Parameters:
        -----------
        function : callable
            Function to attach and execute
        name : str, optional
            Name for this function. If None, uses function.__name__
        **kwargs : dict
            Arguments to pass to the function

        Returns:
        --------
        self : Layer
            Returns self for chaining
        """
        func_name = name if name else function.__name__

        result = function(self, **kwargs)

        self.attached_functions[func_name] = {
            "function": function,
            "args": kwargs,
            "result": result,
        }

        return self

    def get_function_result(self, function_name):
        """Get the result of an attached function.

        Parameters:
        -----------
        function_name : str
            Name of the attached function

        Returns:
        --------
        result : any
            Result of the function
        """
        if function_name not in self.attached_functions:
            raise ValueError(f"Function '{function_name}' not attached to this layer")

        return self.attached_functions[function_name]["result"]

    def derive(self, name, type):
        """Create an empty child layer that inherits georeferencing from this one."""
        child = Layer(name=name, parent=self, type=type)
        child.transform = self.transform
        child.crs = self.crs
        child.nodata = self.nodata
        return child

    def copy(self):
        """Create a copy of this layer.

        Returns:
        --------
        layer_copy : Layer
            Copy of this layer
        """
        new_layer = Layer(name=f"{self.name}_copy", parent=self.parent, type=self.type)

        if self.raster is not None:
            new_layer.raster = self.raster.copy()

        if self.objects is not None:
            new_layer.objects = self.objects.copy()

        new_layer.metadata = self.metadata.copy()
        new_layer.transform = self.transform
        new_layer.crs = self.crs
        new_layer.nodata = self.nodata

        return new_layer

    def _require_raster(self):
        if self.raster is None:
            raise ValueError(f"Layer '{self.name}' has no raster data")
        return self.raster

    def __str__(self):
        """String representation of the layer."""
        if self.objects is not None:
            num_objects = len(self.objects)
        else:
            num_objects = 0

        parent_name = self.parent.name if self.parent else "None"
        grid = f"{self.count}x{self.height}x{self.width}" if self.raster is not None else "none"

        return f"Layer '{self.name}' (type: {self.type}, parent: {parent_name}, raster: {grid}, objects: {num_objects})"


class LayerManager:
    """Manages a collection of layers and their relationships."""

    def __init__(self):
        """Initialize the layer manager."""
        self.layers = {}
        self.active_layer = None

    def add_layer(self, layer, set_active=True):
        """Add a layer to the manager.

        Parameters:
        -----------
        layer : Layer
            Layer to add
        set_active : bool
            Whether to set this layer as the active layer

        Returns:
        --------
        layer : Layer
            The added layer
        """
        self.layers[layer.id] = layer

        if set_active:
            self.active_layer = layer

        return layer

    def get_layer(self, layer_id_or_name):
        """Get a layer by ID or name.

        Parameters:
        -----------
        layer_id_or_name : str
            Layer ID or name

        Returns:
        --------
        layer : Layer
            The requested layer
        """
        if layer_id_or_name in self.layers:
            return self.layers[layer_id_or_name]

        for layer in self.layers.values():
            if layer.name == layer_id_or_name:
                return layer

        raise ValueError(f"Layer '{layer_id_or_name}' not found")

    def get_layer_names(self):
        """Get a list of all layer names.

        Returns:
        --------
        names : list
            List of layer names
        """
        return [layer.name for layer in self.layers.values()]

    def remove_layer(self, layer_id_or_name):
        """Remove a layer from the manager.

        Parameters:
        -----------
        layer_id_or_name : str
            Layer ID or name
        """
        layer = self.get_layer(layer_id_or_name)

        if layer.id in self.layers:
            del self.layers[layer.id]

        if self.active_layer and self.active_layer.id == layer.id:
            if self.layers:
                self.active_layer = list(self.layers.values())[-1]
            else:
                self.active_layer = None
