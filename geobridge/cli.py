# -*- coding: utf-8 -*-
"""
Command line interface for geobridge.

Each subcommand reads its inputs, runs one raster-vector operation and writes the result:

    geobridge info -i dem.tif
    geobridge crop -i dem.tif --vector park.gpkg -o dem_park.tif
    geobridge extract -i dem.tif --vector points.geojson -o values.csv
    geobridge rasterize -i roads.gpkg --template dem.tif --field class -o roads.tif
"""

import argparse
import json
import os
import sys

import pandas as pd

from . import __version__
from .core.config import RASTER_DRIVERS, load_config
from .core.logging_config import get_module_logger, setup_logging

logger = get_module_logger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _add_common_arguments(parser, output_required=True):
    parser.add_argument("--input", "-i", required=True, help="Path to the input file")
    parser.add_argument("--output", "-o", required=output_required, help="Path to the output file")
    parser.add_argument("--config", "-c", help="Path to a JSON configuration file")
    parser.add_argument(
        "--log-level",
        "-l",
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging level (default: INFO)",
    )


def build_parser():
    """
    Build the argument parser with one subparser per operation.

    Returns
    -------
    argparse.ArgumentParser
        Configured parser.
    """
    parser = argparse.ArgumentParser(prog="geobridge", description="Raster-vector operations on geospatial files.")
    parser.add_argument("--version", action="version", version=f"geobridge {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    info_parser = subparsers.add_parser("info", help="Describe a raster or vector file")
    _add_common_arguments(info_parser, output_required=False)

    crop_parser = subparsers.add_parser("crop", help="Crop a raster to the extent of vector data or a bounding box")
    _add_common_arguments(crop_parser)
    extent = crop_parser.add_mutually_exclusive_group(required=True)
    extent.add_argument("--vector", "-v", help="Vector file whose extent is used")
    extent.add_argument("--bounds", nargs=4, type=float, metavar=("LEFT", "BOTTOM", "RIGHT", "TOP"))

    mask_parser = subparsers.add_parser("mask", help="Set raster cells outside vector geometries to nodata")
    _add_common_arguments(mask_parser)
    mask_parser.add_argument("--vector", "-v", required=True, help="Vector file with the mask geometries")
    mask_parser.add_argument("--invert", action="store_true", help="Mask the cells inside the geometries instead")
    mask_parser.add_argument("--all-touched", action="store_true", help="Count every touched cell as inside")
    mask_parser.add_argument("--crop", action="store_true", help="Also crop to the geometries")
    mask_parser.add_argument("--nodata", type=float, help="Value for masked cells")

    extract_parser = subparsers.add_parser("extract", help="Extract raster values at points, along a line or in polygons")
    _add_common_arguments(extract_parser)
    extract_parser.add_argument("--vector", "-v", required=True, help="Vector file with points, a line or polygons")
    extract_parser.add_argument("--band", "-b", type=int, action="append", help="Band to extract (repeatable)")
    extract_parser.add_argument("--stats", "-s", help="Polygon statistics, e.g. 'mean,max' or 'raw'")
    extract_parser.add_argument("--spacing", type=float, help="Sample spacing along a line")
    extract_parser.add_argument("--all-touched", action="store_true", help="Count every touched cell in polygons")

    rasterize_parser = subparsers.add_parser("rasterize", help="Burn vector data into a raster")
    _add_common_arguments(rasterize_parser)
    grid = rasterize_parser.add_mutually_exclusive_group(required=True)
    grid.add_argument("--template", "-t", help="Raster whose grid is used for the output")
    grid.add_argument("--resolution", "-r", type=float, help="Cell size of a grid over the vector extent")
    rasterize_parser.add_argument("--field", "-f", help="Attribute to burn (default: presence)")
    rasterize_parser.add_argument(
        "--fun",
        default="last",
        choices=["last", "first", "sum", "count", "min", "max", "mean"],
        help="How overlapping features combine (default: last)",
    )
    rasterize_parser.add_argument("--all-touched", action="store_true", help="Burn every touched cell")
    rasterize_parser.add_argument("--boundary", action="store_true", help="Burn polygon outlines only")
    rasterize_parser.add_argument("--fill", type=float, default=0, help="Background value (default: 0)")

    polygonize_parser = subparsers.add_parser("polygonize", help="Convert raster regions to polygons")
    _add_common_arguments(polygonize_parser)
    polygonize_parser.add_argument("--band", "-b", type=int, default=1, help="Band to polygonize (default: 1)")
    polygonize_parser.add_argument("--connectivity", type=int, choices=[4, 8], default=4)
    polygonize_parser.add_argument("--values", type=float, nargs="+", help="Only polygonize these cell values")
    polygonize_parser.add_argument("--dissolve", action="store_true", help="Merge polygons of the same value")

    contour_parser = subparsers.add_parser("contour", help="Generate contour lines")
    _add_common_arguments(contour_parser)
    contour_parser.add_argument("--band", "-b", type=int, default=1, help="Band to contour (default: 1)")
    levels = contour_parser.add_mutually_exclusive_group()
    levels.add_argument("--interval", type=float, help="Contour interval")
    levels.add_argument("--levels", type=float, nargs="+", help="Explicit contour levels")

    calc_parser = subparsers.add_parser("calc", help="Evaluate a band expression such as 'b1 > 1500'")
    _add_common_arguments(calc_parser)
    calc_parser.add_argument("--expression", "-e", required=True, help="Expression over b1, b2, ...")

    return parser


def parse_arguments(argv=None):
    """
    Parse command line arguments.

    Returns
    -------
    argparse.Namespace
        Parsed command line arguments.
    """
    return build_parser().parse_args(argv)


def _is_raster(path):
    return os.path.splitext(path)[1].lower() in RASTER_DRIVERS


def _write_layer_raster(layer, path):
    from .io.raster import write_raster

    write_raster(path, layer.raster, layer.transform, layer.crs, nodata=layer.nodata)


def _write_table(table, path):
    from .io.vector import write_vector

    if hasattr(table, "geometry"):
        write_vector(table, path)
    else:
        output_dir = os.path.dirname(path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        pd.DataFrame(table).to_csv(path, index=False)
        logger.info(f"Wrote {len(table)} row(s) to {path}")


def run_info(args):
    from .io.raster import raster_info
    from .io.vector import vector_info

    info = raster_info(args.input) if _is_raster(args.input) else vector_info(args.input)
    text = json.dumps(info, indent=2, default=str)

    if args.output:
        with open(args.output, "w") as f:
            f.write(text)
        logger.info(f"Saved info to {args.output}")
    else:
        print(text)
    return 0


def run_crop(args):
    from .io.raster import read_raster_layer
    from .io.vector import read_vector
    from .ops.crop import crop_raster

    layer = read_raster_layer(args.input)
    extent = tuple(args.bounds) if args.bounds else read_vector(args.vector)
    _write_layer_raster(crop_raster(layer, extent), args.output)
    return 0


def run_mask(args):
    from .io.raster import read_raster_layer
    from .io.vector import read_vector
    from .ops.crop import mask_raster

    layer = read_raster_layer(args.input)
    result = mask_raster(
        layer,
        read_vector(args.vector),
        invert=args.invert,
        all_touched=args.all_touched,
        nodata=args.nodata,
        crop=args.crop,
    )
    _write_layer_raster(result, args.output)
    return 0


def run_extract(args):
    from .io.raster import read_raster_layer
    from .io.vector import read_vector
    from .ops.extract import extract_along_line, extract_points, extract_polygons

    layer = read_raster_layer(args.input)
    vector = read_vector(args.vector)
    geom_types = set(vector.geom_type.dropna())

    if geom_types <= {"Point"}:
        result = extract_points(layer, vector, bands=args.band)
    elif geom_types <= {"LineString", "MultiLineString"}:
        result = extract_along_line(layer, vector, spacing=args.spacing, bands=args.band)
    elif geom_types <= {"Polygon", "MultiPolygon"}:
        stats = args.stats if args.stats == "raw" else (args.stats.split(",") if args.stats else None)
        band = args.band[0] if args.band else 1
        result = extract_polygons(layer, vector, stats=stats, band=band, all_touched=args.all_touched)
    else:
        raise ValueError(f"Cannot extract with mixed or unsupported geometry types: {sorted(geom_types)}")

    _write_table(result, args.output)
    return 0


def run_rasterize(args):
    from .convert.rasterize import rasterize_vector
    from .io.raster import read_raster_layer
    from .io.vector import read_vector

    template = read_raster_layer(args.template) if args.template else None
    result = rasterize_vector(
        read_vector(args.input),
        template=template,
        resolution=args.resolution,
        field=args.field,
        fun=args.fun,
        all_touched=args.all_touched,
        fill=args.fill,
        boundary=args.boundary,
    )
    _write_layer_raster(result, args.output)

    if "category_map" in result.metadata:
        logger.info(f"Category codes: {result.metadata['category_map']}")
    return 0


def run_polygonize(args):
    from .convert.vectorize import polygonize
    from .io.raster import read_raster_layer
    from .io.vector import layer_to_vector

    layer = read_raster_layer(args.input)
    result = polygonize(
        layer,
        band=args.band,
        connectivity=args.connectivity,
        values=args.values,
        dissolve=args.dissolve,
    )
    layer_to_vector(result, args.output)
    return 0


def run_contour(args):
    from .convert.vectorize import contours
    from .io.raster import read_raster_layer
    from .io.vector import layer_to_vector

    layer = read_raster_layer(args.input)
    result = contours(layer, levels=args.levels, interval=args.interval, band=args.band)
    layer_to_vector(result, args.output)
    return 0


def run_calc(args):
    from .io.raster import read_raster_layer
    from .ops.calc import raster_calc

    layer = read_raster_layer(args.input)
    _write_layer_raster(raster_calc(layer, args.expression), args.output)
    return 0


COMMANDS = {
    "info": run_info,
    "crop": run_crop,
    "mask": run_mask,
    "extract": run_extract,
    "rasterize": run_rasterize,
    "polygonize": run_polygonize,
    "contour": run_contour,
    "calc": run_calc,
}


def main(argv=None):
    """
    Run the command line interface.

    Returns
    -------
    int
        Exit code.
    """
    args = parse_arguments(argv)

    if not args.command:
        build_parser().print_help()
        return 1

    setup_logging(log_level=args.log_level)

    try:
        if args.config:
            load_config(args.config)
            logger.info(f"Loaded configuration from {args.config}")

        logger.info(f"Running {args.command} on {args.input}")
        return COMMANDS[args.command](args)
    except (ValueError, RuntimeError, FileNotFoundError) as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
