# src/heightmapper/raster/encode.py

"""
This module prepares reconstructed heightmaps for 8-bit image formats.

Elevation is clamped at zero, scaled to 1/256 unit steps and split over two 8-bit channels:
    band 1 (R): representative intensity
    band 2 (G): high byte of the 16-bit elevation
    band 3 (B): low byte of the 16-bit elevation
"""

import logging
from typing import Tuple

import numpy as np

from heightmapper.lidar.reconstruct import Heightmap

log = logging.getLogger(__name__)

__all__ = [
    "ELEVATION_STEPS_PER_UNIT",
    "BAND_NAMES",
    "quantize_elevation",
    "encode_rgb",
    "decode_rgb"
]

ELEVATION_STEPS_PER_UNIT = 256
BAND_NAMES = {"intensity": 1, "elevation_high": 2, "elevation_low": 3}

_UINT16_MAX = np.iinfo(np.uint16).max

def quantize_elevation(elevation: np.ndarray) -> np.ndarray:
    """
    Converts elevations to unsigned 16-bit steps of 1/256 unit.

    Negative elevations become 0 and elevations past the 16-bit range saturate at 65535.
    """
    scaled = np.clip(np.asarray(elevation, dtype=np.float64), 0.0, None) * ELEVATION_STEPS_PER_UNIT

    saturated = np.count_nonzero(scaled > _UINT16_MAX)
    if saturated:
        log.warning(
            f"{saturated} cells exceed the encodable elevation range "
            f"({_UINT16_MAX / ELEVATION_STEPS_PER_UNIT:.2f} units) and were saturated"
        )
    # truncation toward zero, as in an integer cast
    return np.minimum(scaled, _UINT16_MAX).astype(np.uint16)

def encode_rgb(heightmap: Heightmap) -> np.ndarray:
    """
    Packs a heightmap into a 3-band uint8 array of shape (3, height, width).

    No-data cells encode as (0, 0, 0).
    """
    iz = quantize_elevation(heightmap.elevation)

    rgb = np.empty((3,) + heightmap.shape, dtype=np.uint8)
    rgb[0] = heightmap.intensity
    rgb[1] = (iz >> 8).astype(np.uint8)
    rgb[2] = (iz & 0xFF).astype(np.uint8)
    return rgb

def decode_rgb(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Recovers (elevation, intensity) from an encoded (3, height, width) array.

    Elevation precision is limited to 1/256 unit and negative values read back as 0.
    """
    if rgb.ndim != 3 or rgb.shape[0] < 3:
        raise ValueError(f"Expected a (3, height, width) array, got shape {rgb.shape}")

    iz = (rgb[1].astype(np.uint16) << 8) | rgb[2].astype(np.uint16)
    elevation = iz.astype(np.float64) / ELEVATION_STEPS_PER_UNIT
    return elevation, rgb[0].copy()
