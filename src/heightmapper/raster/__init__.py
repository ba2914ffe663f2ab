# src/heightmapper/raster/__init__.py
#
# Copyright (c) The heightmapper project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The raster subpackage provides pixel encoding of heightmaps, image I/O
and memory estimation for rasterization runs.
"""

# Encoding
from .encode import (
    ELEVATION_STEPS_PER_UNIT,
    BAND_NAMES,
    quantize_elevation,
    encode_rgb,
    decode_rgb
)

# I/O operations
from .io import (
    resolve_driver,
    save_heightmap,
    load_encoded
)

# Resource management
from .resources import (
    MemoryEstimate,
    estimate_memory
)

__all__ = [
    # Encoding
    "ELEVATION_STEPS_PER_UNIT",
    "BAND_NAMES",
    "quantize_elevation",
    "encode_rgb",
    "decode_rgb",

    # I/O
    "resolve_driver",
    "save_heightmap",
    "load_encoded",

    # Resources
    "MemoryEstimate",
    "estimate_memory",
]
