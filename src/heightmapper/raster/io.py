# src/heightmapper/raster/io.py

"""
This module handles all disk-based operations for encoded heightmap images.
"""

import logging
from pathlib import Path
from typing import Union, Optional, Tuple

import numpy as np
import rasterio
from rasterio.crs import CRS
from rasterio.errors import RasterioError

from heightmapper.lidar.reconstruct import Heightmap
from heightmapper.lidar.transform import GridTransform

from .encode import encode_rgb, decode_rgb, BAND_NAMES

log = logging.getLogger(__name__)

__all__ = [
    "resolve_driver",
    "save_heightmap",
    "load_encoded"
]

_DRIVERS = {
    ".png": "PNG",
    ".tif": "GTiff",
    ".tiff": "GTiff"
}

def resolve_driver(path: Union[str, Path], driver: Optional[str] = None) -> str:
    """
    Picks the GDAL driver for an output path.

    Args:
        path: Output file path.
        driver: Explicit driver name, returned unchanged when given.

    Returns:
        str: GDAL driver name.
    """
    if driver:
        return driver
    suffix = Path(path).suffix.lower()
    if suffix not in _DRIVERS:
        raise ValueError(
            f"Cannot infer an image format from '{suffix or path}'. "
            f"Use one of {sorted(_DRIVERS)} or pass a driver explicitly."
        )
    return _DRIVERS[suffix]

def save_heightmap(
    heightmap: Heightmap,
    path: Union[str, Path],
    transform: Optional[GridTransform] = None,
    crs: Optional[Union[str, CRS]] = None,
    driver: Optional[str] = None
) -> Path:
    """
    Encodes a heightmap as a 3-band 8-bit image and writes it to disk.

    Args:
        heightmap: Reconstructed heightmap.
        path: Output file path (.png, .tif or .tiff unless a driver is given).
        transform: Grid transform used to georeference the image. Defaults to the heightmap's own.
        crs: Optional coordinate reference system of the source points.
        driver: Optional GDAL driver name.

    Returns:
        Path: The written file.
    """
    path = Path(path)
    driver = resolve_driver(path, driver)
    path.parent.mkdir(parents=True, exist_ok=True)

    rgb = encode_rgb(heightmap)
    profile = {
        'driver': driver,
        'height': heightmap.height,
        'width': heightmap.width,
        'count': 3,
        'dtype': 'uint8'
    }
    if transform is None:
        transform = heightmap.transform
    if transform is not None:
        profile['transform'] = transform.to_affine()
    if crs is not None:
        profile['crs'] = crs

    log.info(f"Saving heightmap {heightmap.width}x{heightmap.height} → {path}")

    try:
        with rasterio.open(path, 'w', **profile) as dst:
            dst.write(rgb)

            if driver == 'GTiff':
                for name, idx in BAND_NAMES.items():
                    dst.set_band_description(idx, name)

    except RasterioError as e:
        raise IOError(f"Failed to save heightmap to {path}: {e}") from e

    return path

def load_encoded(path: Union[str, Path]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reads an encoded heightmap image back into (elevation, intensity) arrays.

    Args:
        path: Path to an image written by save_heightmap.

    Returns:
        Tuple[np.ndarray, np.ndarray]: Elevation (float64, 1/256 unit precision) and intensity (uint8).
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Heightmap image not found: {path}")

    log.debug(f"Loading encoded heightmap: {path.name}")

    try:
        with rasterio.open(path) as src:
            rgb = src.read()
    except RasterioError as e:
        raise IOError(f"Failed to read heightmap from {path}: {e}") from e

    return decode_rgb(rgb)
