# tests/helpers.py

import numpy as np
from heightmapper.lidar import PointCloud, GridTransform, bin_points

def make_cloud(raster_points, width: int, height: int) -> PointCloud:
    """
    Builds a PointCloud whose world bounds are (0, width) x (0, height), so one world
    unit equals one raster cell.

    raster_points: iterable of (raster_x, raster_y, z, intensity_byte, classification).
    Raw intensities are intensity_byte * 256 so they normalize back to intensity_byte.
    """
    pts = list(raster_points)
    rx = np.array([p[0] for p in pts], dtype=np.float64)
    ry = np.array([p[1] for p in pts], dtype=np.float64)
    return PointCloud.from_arrays(
        x=rx,
        y=height - ry,
        z=[p[2] for p in pts],
        intensity=[p[3] * 256 for p in pts],
        classification=[p[4] for p in pts],
        bounds=(0.0, float(width), 0.0, float(height), 0.0, 0.0)
    )

def make_grid(raster_points, width: int, height: int, excluded_classes=()):
    """Bins raster-space points into a width x height grid with a zero vertical datum."""
    pc = make_cloud(raster_points, width, height)
    transform = GridTransform.from_point_cloud(pc, width, height)
    return bin_points(pc, transform, width, height, excluded_classes)

def assert_no_data(cell, col: int, row: int):
    """Check that a cell is the no-data sentinel."""
    assert not cell.has_data, f"Expected no data at ({col}, {row}), got {cell}"
    assert (cell.x, cell.y) == (col + 0.5, row + 0.5)
    assert cell.z == 0.0
    assert cell.intensity == 0
    assert cell.classification == 0
