# src/heightmapper/pipeline.py

"""
This module orchestrates a full rasterization run: read points, derive the grid transform,
bin, reconstruct and (optionally) encode the result to an image file.
"""

import logging
from dataclasses import dataclass
from numbers import Integral
from pathlib import Path
from typing import Union, Optional, Tuple

from rasterio.crs import CRS

from heightmapper.exceptions import ConfigurationError
from heightmapper.lidar.layer import PointCloud
from heightmapper.lidar.transform import GridTransform
from heightmapper.lidar.binning import bin_points, DEFAULT_EXCLUDED_CLASSES
from heightmapper.lidar.reconstruct import reconstruct, Heightmap, DEFAULT_SEARCH_RANGE
from heightmapper.raster.resources import estimate_memory
from heightmapper.raster.io import save_heightmap, resolve_driver

log = logging.getLogger(__name__)

__all__ = [
    "HeightmapParams",
    "generate_heightmap",
    "export_heightmap"
]

@dataclass
class HeightmapParams:
    """
    Parameters for a rasterization run.

    Args:
        width (int): Number of raster columns.
        height (int): Number of raster rows.
        search_range (int): Half-width, in cells, of the reconstruction neighbourhood.
        excluded_classes (Tuple[int, ...]): Classification tags discarded before binning.
        z_datum (float): Vertical datum subtracted from every elevation.
        extent (Optional[float]): Fixed world span of the grid. None derives it from the point cloud bounds.
    """
    width: int = 2048
    height: int = 2048
    search_range: int = DEFAULT_SEARCH_RANGE
    excluded_classes: Tuple[int, ...] = tuple(sorted(DEFAULT_EXCLUDED_CLASSES))
    z_datum: float = -16.0
    extent: Optional[float] = None

    def validate(self):
        """
        Rejects unusable parameters before any point is read or binned.

        Raises:
            ConfigurationError: On non-positive dimensions, a negative range,
                non-integer classes or a non-positive extent.
        """
        for name in ("width", "height"):
            value = getattr(self, name)
            if not isinstance(value, Integral) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        if not isinstance(self.search_range, Integral) or isinstance(self.search_range, bool) or self.search_range < 0:
            raise ConfigurationError(f"search_range must be a non-negative integer, got {self.search_range!r}")

        for c in self.excluded_classes:
            if not isinstance(c, Integral) or isinstance(c, bool):
                raise ConfigurationError(f"Excluded classes must be integers, got {c!r}")

        if self.extent is not None and not self.extent > 0:
            raise ConfigurationError(f"extent must be positive, got {self.extent!r}")

def generate_heightmap(
    source: Union[str, Path, PointCloud],
    params: Optional[HeightmapParams] = None
) -> Heightmap:
    """
    Rasterizes a point cloud into a heightmap.

    Args:
        source (Union[str, Path, PointCloud]): Path to a .las/.laz file or a loaded PointCloud.
        params (Optional[HeightmapParams]): Run parameters. Defaults to HeightmapParams().

    Returns:
        Heightmap: Reconstructed elevation, intensity and classification layers.
    """
    params = params or HeightmapParams()
    params.validate()

    if isinstance(source, PointCloud):
        pc = source
    else:
        log.info(f"Collecting all points from {Path(source).name}...")
        pc = PointCloud.from_file(source)

    estimate = estimate_memory(len(pc), params.width, params.height)
    if estimate.is_safe:
        log.debug(f"Memory check passed. {estimate.reason}")
    else:
        log.warning(f"Rasterization may exhaust system memory. {estimate.reason}")

    transform = GridTransform.from_point_cloud(
        pc,
        params.width,
        params.height,
        z_datum=params.z_datum,
        extent=params.extent
    )

    grid = bin_points(pc, transform, params.width, params.height, params.excluded_classes)

    log.info("Creating heightmap...")
    return reconstruct(grid, params.search_range)

def export_heightmap(
    source: Union[str, Path, PointCloud],
    output_path: Union[str, Path],
    params: Optional[HeightmapParams] = None,
    crs: Optional[Union[str, CRS]] = None
) -> Path:
    """
    Rasterizes a point cloud and writes the encoded heightmap image.

    Args:
        source (Union[str, Path, PointCloud]): Path to a .las/.laz file or a loaded PointCloud.
        output_path (Union[str, Path]): Destination image (.png, .tif, .tiff).
        params (Optional[HeightmapParams]): Run parameters.
        crs (Optional[Union[str, CRS]]): Coordinate reference system to tag the image with.

    Returns:
        Path: The written image.
    """
    # fail on an unsupported output format before the expensive part
    resolve_driver(output_path)

    heightmap = generate_heightmap(source, params)
    return save_heightmap(heightmap, output_path, crs=crs)
