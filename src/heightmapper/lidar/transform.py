# src/heightmapper/lidar/transform.py

"""
This module maps world coordinates onto the raster grid.

The transform is derived once from the dataset bounds and the target grid size.
Rows grow downward while world Y grows upward, so the Y origin is the maximum Y
and the Y scale is negative.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging

import numpy as np
from rasterio.transform import Affine

from heightmapper.exceptions import ConfigurationError

from .layer import PointCloud

log = logging.getLogger(__name__)

__all__ = [
    "GridTransform"
]

@dataclass(frozen=True)
class GridTransform:
    """
    World-to-raster coordinate transform.

    Args:
        offset_x (float): World X of the raster's left edge (minimum X).
        offset_y (float): World Y of the raster's top edge (maximum Y).
        offset_z (float): Vertical datum subtracted from every elevation.
        scale_x (float): Raster cells per world unit along X (positive).
        scale_y (float): Raster cells per world unit along Y (negative, flips the axis).
    """
    offset_x: float
    offset_y: float
    offset_z: float
    scale_x: float
    scale_y: float

    def __post_init__(self):
        if not (np.isfinite(self.scale_x) and self.scale_x > 0):
            raise ConfigurationError(f"scale_x must be finite and positive, got {self.scale_x}")
        if not (np.isfinite(self.scale_y) and self.scale_y < 0):
            raise ConfigurationError(f"scale_y must be finite and negative, got {self.scale_y}")

    @classmethod
    def from_bounds(
        cls,
        min_x: float,
        max_x: float,
        min_y: float,
        max_y: float,
        width: int,
        height: int,
        z_datum: float = 0.0,
        extent: Optional[float] = None
        ) -> 'GridTransform':
        """
        Derives the transform that spreads a bounding box over a width x height grid.

        Args:
            min_x, max_x, min_y, max_y (float): Horizontal bounds of the dataset.
            width (int): Number of raster columns.
            height (int): Number of raster rows.
            z_datum (float): Constant vertical datum subtracted from elevations.
            extent (Optional[float]): Fixed world span covered by the grid along both axes.
                When None, the X and Y spans of the bounds are used.

        Returns:
            GridTransform: Immutable transform.
        """
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Grid dimensions must be positive, got {width}x{height}")

        if extent is not None:
            if extent <= 0:
                raise ConfigurationError(f"extent must be positive, got {extent}")
            span_x = span_y = float(extent)
        else:
            span_x = float(max_x) - float(min_x)
            span_y = float(max_y) - float(min_y)
            if span_x <= 0 or span_y <= 0:
                raise ConfigurationError(
                    f"Degenerate bounds: X span {span_x}, Y span {span_y}. "
                    f"Pass an explicit extent for single-line or single-point datasets."
                )

        transform = cls(
            offset_x=float(min_x),
            offset_y=float(max_y),
            offset_z=float(z_datum),
            scale_x=width / span_x,
            scale_y=-height / span_y
        )
        log.debug(f"Derived {transform}")
        return transform

    @classmethod
    def from_point_cloud(
        cls,
        pc: PointCloud,
        width: int,
        height: int,
        z_datum: float = 0.0,
        extent: Optional[float] = None
        ) -> 'GridTransform':
        """Shortcut for from_bounds using the bounding box of a PointCloud."""
        return cls.from_bounds(
            pc.min_x, pc.max_x, pc.min_y, pc.max_y,
            width, height,
            z_datum=z_datum,
            extent=extent
        )

    def apply(
        self,
        x: np.ndarray,
        y: np.ndarray,
        z: np.ndarray
        ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Transforms world coordinates into raster space.

        Returns:
            Tuple[np.ndarray, np.ndarray, np.ndarray]: Raster x (columns), raster y (rows)
                and elevation above the datum. No clamping is applied.
        """
        tx = (np.asarray(x, dtype=np.float64) - self.offset_x) * self.scale_x
        ty = (np.asarray(y, dtype=np.float64) - self.offset_y) * self.scale_y
        tz = np.asarray(z, dtype=np.float64) - self.offset_z
        return tx, ty, tz

    def to_affine(self) -> Affine:
        """
        Pixel-to-world affine transform for georeferencing the output raster.

        Returns:
            Affine: Maps (col, row) to world (x, y).
        """
        return Affine.translation(self.offset_x, self.offset_y) * Affine.scale(1.0 / self.scale_x, 1.0 / self.scale_y)
