# src/heightmapper/__init__.py
#
# Copyright (c) The heightmapper project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
heightmapper converts irregularly spaced lidar samples into a regular heightmap raster.

The lidar subpackage bins samples into grid cells and reconstructs one value per cell;
the raster subpackage encodes and writes the result.
"""

from . import lidar, raster

from .exceptions import (
    HeightmapError,
    ConfigurationError,
    InvariantViolation
)

from .pipeline import (
    HeightmapParams,
    generate_heightmap,
    export_heightmap
)

__version__ = "0.1.0"

__all__ = [
    "lidar",
    "raster",

    # Errors
    "HeightmapError",
    "ConfigurationError",
    "InvariantViolation",

    # Pipeline
    "HeightmapParams",
    "generate_heightmap",
    "export_heightmap",
]
