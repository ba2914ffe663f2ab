# src/heightmapper/lidar/__init__.py
#
# Copyright (c) The heightmapper project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The lidar subpackage provides the point cloud data structure, the world-to-grid transform,
spatial binning of samples into grid cells and per-cell reconstruction.
"""

# Data structure
from .layer import (
    PointCloud
)

# Coordinate transform
from .transform import (
    GridTransform
)

# Binning
from .binning import (
    BINNED_POINT_DTYPE,
    DEFAULT_EXCLUDED_CLASSES,
    PointGrid,
    bin_points
)

# Reconstruction
from .reconstruct import (
    DEFAULT_SEARCH_RANGE,
    OutputCell,
    Heightmap,
    reconstruct,
    reconstruct_cell
)

__all__ = [
    # Data structure
    "PointCloud",

    # Coordinate transform
    "GridTransform",

    # Binning
    "BINNED_POINT_DTYPE",
    "DEFAULT_EXCLUDED_CLASSES",
    "PointGrid",
    "bin_points",

    # Reconstruction
    "DEFAULT_SEARCH_RANGE",
    "OutputCell",
    "Heightmap",
    "reconstruct",
    "reconstruct_cell",
]
