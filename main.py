# -*- coding: utf-8 -*-
"""Working document!

Just a workspace document to run the main raster-vector operations end to end on synthetic data.
"""

import os

from geobridge import (
    LayerManager,
    attach_zonal_stats,
    contours,
    create_sample_data,
    crop_raster,
    extract_along_line,
    extract_points,
    layer_to_vector,
    mask_raster,
    plot_layer,
    plot_profile,
    polygonize,
    raster_calc,
    rasterize_vector,
    read_raster_layer,
    setup_logging,
    vector_layer,
    write_raster,
)
from shapely.geometry import LineString


def run_example(output_dir="output"):
    """Run Example."""
    os.makedirs(output_dir, exist_ok=True)
    setup_logging()

    manager = LayerManager()

    elevation, zones, points = create_sample_data()
    dem_path = os.path.join(output_dir, "elevation.tif")
    write_raster(dem_path, elevation.raster, elevation.transform, elevation.crs, nodata=elevation.nodata)

    dem = read_raster_layer(dem_path)
    manager.add_layer(dem)
    print(dem)

    print("\nCropping and masking...")
    forest = zones[zones["land_use"] == "forest"]
    cropped = crop_raster(dem, forest, layer_manager=manager, layer_name="dem_forest")
    masked = mask_raster(dem, forest, crop=True, layer_manager=manager, layer_name="dem_forest_masked")
    print(cropped)
    print(masked)

    fig1 = plot_layer(dem, vector=zones, title="Elevation and zones", cmap="terrain")
    fig1.savefig(os.path.join(output_dir, "1_elevation.png"))

    print("\nExtracting values...")
    sampled = extract_points(dem, points)
    print(sampled[["ID", "point_id", "band_1"]])

    left, bottom, right, top = dem.bounds
    transect = LineString([(left + 100, bottom + 100), (right - 100, top - 100)])
    profile = extract_along_line(dem, transect)
    fig2 = plot_profile(profile, title="Elevation profile")
    fig2.savefig(os.path.join(output_dir, "2_profile.png"))

    zone_layer = vector_layer(zones, name="zones")
    zone_layer.attach_function(attach_zonal_stats, name="elevation_stats", raster_layer=dem, stats=["mean", "max"])
    print(zone_layer.objects[["land_use", "mean", "max"]])
    print(zone_layer.get_function_result("elevation_stats"))

    print("\nRasterizing zones...")
    zone_raster = rasterize_vector(zones, template=dem, field="land_use", layer_manager=manager, layer_name="zones_raster")
    print(zone_raster.metadata["category_map"])

    print("\nVectorizing...")
    high_ground = raster_calc(dem, "b1 > 1400", layer_manager=manager, layer_name="high_ground")
    high_polygons = polygonize(high_ground, values=[1], layer_manager=manager)
    layer_to_vector(high_polygons, os.path.join(output_dir, "high_ground.geojson"))

    isolines = contours(dem, interval=100, layer_manager=manager)
    layer_to_vector(isolines, os.path.join(output_dir, "contours.geojson"))

    fig3 = plot_layer(dem, vector=isolines, title="Contours", cmap="terrain")
    fig3.savefig(os.path.join(output_dir, "3_contours.png"))

    print("\nAvailable layers:")
    for name in manager.get_layer_names():
        print(f"  {name}")


if __name__ == "__main__":
    run_example()
