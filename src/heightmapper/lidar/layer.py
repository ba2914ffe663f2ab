# src/heightmapper/lidar/layer.py

"""
This module defines the core data structure for lidar point clouds, along with methods for loading them.
"""

from pathlib import Path
from dataclasses import dataclass
from typing import Union, Optional, Tuple
import logging

import laspy
import numpy as np

log = logging.getLogger(__name__)

__all__ = [
    "PointCloud"
]

@dataclass
class PointCloud:
    """
    Core data structure for holding LiDAR samples and their bounding box.

    Per-point attributes (all arrays share the same length and order):
        x (np.ndarray): X world coordinates (float64).
        y (np.ndarray): Y world coordinates (float64).
        z (np.ndarray): Z world coordinates (float64).
        classification (np.ndarray): Point classification tags (ground, vegetation, building, etc.).
        intensity (np.ndarray): Raw, non-negative reflectance measurements.

    Bounding properties, used to derive the grid transform before binning:
        min_x (float): Minimum X coordinate of the dataset.
        max_x (float): Maximum X coordinate of the dataset.
        min_y (float): Minimum Y coordinate of the dataset.
        max_y (float): Maximum Y coordinate of the dataset.
        min_z (float): Minimum Z coordinate of the dataset.
        max_z (float): Maximum Z coordinate of the dataset.
    """
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    classification: np.ndarray
    intensity: np.ndarray

    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_z: float
    max_z: float

    def __post_init__(self):
        n = len(self.x)
        for name in ("y", "z", "classification", "intensity"):
            if len(getattr(self, name)) != n:
                raise ValueError(
                    f"Point attribute '{name}' has {len(getattr(self, name))} values, expected {n}"
                )

    def __len__(self) -> int:
        return len(self.x)

    def __repr__(self):
        return (
            f"<PointCloud points={len(self)} "
            f"x=[{self.min_x:.2f}, {self.max_x:.2f}] y=[{self.min_y:.2f}, {self.max_y:.2f}]>"
        )

    @property
    def bounds(self) -> Tuple[float, float, float, float, float, float]:
        """(min_x, max_x, min_y, max_y, min_z, max_z) of the dataset."""
        return (self.min_x, self.max_x, self.min_y, self.max_y, self.min_z, self.max_z)

    @classmethod
    def from_arrays(
        cls,
        x,
        y,
        z,
        classification=None,
        intensity=None,
        bounds: Optional[Tuple[float, float, float, float, float, float]] = None
        ) -> 'PointCloud':
        """
        Builds a point cloud from in-memory sequences.

        Args:
            x, y, z: World coordinates of each sample.
            classification: Classification tags. Defaults to 1 (unclassified) for every point.
            intensity: Raw intensities. Defaults to 0 for every point.
            bounds (Optional[Tuple]): (min_x, max_x, min_y, max_y, min_z, max_z).
                Derived from the coordinates when omitted.

        Returns:
            PointCloud: Fully populated object.
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)
        n = len(x)

        if classification is None:
            classification = np.ones(n, dtype=np.uint8)
        if intensity is None:
            intensity = np.zeros(n, dtype=np.uint32)

        if bounds is None:
            if n == 0:
                raise ValueError("Bounds must be given explicitly for an empty point cloud")
            bounds = (x.min(), x.max(), y.min(), y.max(), z.min(), z.max())

        min_x, max_x, min_y, max_y, min_z, max_z = (float(b) for b in bounds)

        return cls(
            x=x,
            y=y,
            z=z,
            classification=np.asarray(classification, dtype=np.int64),
            intensity=np.asarray(intensity, dtype=np.int64),
            min_x=min_x,
            max_x=max_x,
            min_y=min_y,
            max_y=max_y,
            min_z=min_z,
            max_z=max_z
        )

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path]
        ) -> 'PointCloud':
        """
        Loads the entirety of a LiDAR point cloud into memory.

        Args:
            path (Union[str, Path]): Target .las or .laz file.

        Returns:
            PointCloud: Fully populated object, in file order.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Lidar file not found: {path}")

        log.debug(f"Reading point records from {path.name}")

        try:
            with laspy.open(path) as fh:
                las = fh.read()
        except laspy.errors.LaspyException as e:
            raise IOError(f"Failed to read lidar file {path}: {e}") from e

        # map laspy point attributes to our PointCloud structure
        return cls(
            x=np.array(las.x, dtype=np.float64),
            y=np.array(las.y, dtype=np.float64),
            z=np.array(las.z, dtype=np.float64),
            classification=np.array(las.classification, dtype=np.int64),
            intensity=np.array(las.intensity, dtype=np.int64),
            min_x=float(las.header.x_min),
            max_x=float(las.header.x_max),
            min_y=float(las.header.y_min),
            max_y=float(las.header.y_max),
            min_z=float(las.header.z_min),
            max_z=float(las.header.z_max)
        )
