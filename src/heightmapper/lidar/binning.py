# src/heightmapper/lidar/binning.py

"""
This module bins lidar samples into the cells of a dense raster grid.

The grid is stored as a flat arena: all binned points are kept in cell order,
and an offsets array of length width * height + 1 delimits each cell's bucket
(cell index = row * width + col). Within a bucket, points keep their input order.
"""

from dataclasses import dataclass
from numbers import Integral
from typing import Iterable, Optional
import logging

import numpy as np
from numba import jit

from heightmapper.exceptions import ConfigurationError, InvariantViolation

from .layer import PointCloud
from .transform import GridTransform

log = logging.getLogger(__name__)

__all__ = [
    "BINNED_POINT_DTYPE",
    "DEFAULT_EXCLUDED_CLASSES",
    "PointGrid",
    "bin_points"
]

# ASPRS medium and high vegetation
DEFAULT_EXCLUDED_CLASSES = frozenset({3, 5})

BINNED_POINT_DTYPE = np.dtype([
    ("x", np.float64),
    ("y", np.float64),
    ("z", np.float64),
    ("intensity", np.uint8),
    ("classification", np.int64)
])

@dataclass(frozen=True, eq=False)
class PointGrid:
    """
    Dense width x height grid of point buckets, populated once by bin_points.

    All arrays are read-only once binning has finished, so the grid can be shared
    between concurrent readers.

    Args:
        width (int): Number of columns.
        height (int): Number of rows.
        offsets (np.ndarray): int64 array of length width * height + 1. The points of
            cell (row, col) are at positions offsets[k]:offsets[k + 1] with k = row * width + col.
        x (np.ndarray): Raster x (fractional column) of each binned point.
        y (np.ndarray): Raster y (fractional row) of each binned point.
        z (np.ndarray): Elevation above the transform's datum.
        intensity (np.ndarray): uint8 intensity in [0, 255].
        classification (np.ndarray): Classification tag.
        n_excluded (int): Samples discarded by the classification filter.
        n_clamped (int): Samples moved onto the grid edge.
    """
    width: int
    height: int
    offsets: np.ndarray
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    intensity: np.ndarray
    classification: np.ndarray
    n_excluded: int = 0
    n_clamped: int = 0
    transform: Optional[GridTransform] = None

    def __post_init__(self):
        if self.offsets.shape != (self.width * self.height + 1,):
            raise InvariantViolation(
                f"Offsets length {self.offsets.shape} does not match a {self.width}x{self.height} grid"
            )
        for arr in (self.offsets, self.x, self.y, self.z, self.intensity, self.classification):
            arr.flags.writeable = False

    def __len__(self) -> int:
        return len(self.x)

    def __repr__(self):
        return f"<PointGrid {self.width}x{self.height} points={len(self)}>"

    @property
    def shape(self):
        return (self.height, self.width)

    def _cell_index(self, col: int, row: int) -> int:
        if not (0 <= col < self.width and 0 <= row < self.height):
            raise IndexError(f"Cell (col={col}, row={row}) outside {self.width}x{self.height} grid")
        return row * self.width + col

    def count_at(self, col: int, row: int) -> int:
        """Number of points binned directly into a cell."""
        k = self._cell_index(col, row)
        return int(self.offsets[k + 1] - self.offsets[k])

    def points_at(self, col: int, row: int) -> np.ndarray:
        """
        Returns the bucket of a single cell.

        Args:
            col (int): Column index.
            row (int): Row index.

        Returns:
            np.ndarray: Structured array (BINNED_POINT_DTYPE) in input order.

        Raises:
            IndexError: If the cell lies outside the grid.
        """
        k = self._cell_index(col, row)
        start, stop = self.offsets[k], self.offsets[k + 1]

        bucket = np.empty(stop - start, dtype=BINNED_POINT_DTYPE)
        bucket["x"] = self.x[start:stop]
        bucket["y"] = self.y[start:stop]
        bucket["z"] = self.z[start:stop]
        bucket["intensity"] = self.intensity[start:stop]
        bucket["classification"] = self.classification[start:stop]
        return bucket

    def counts(self) -> np.ndarray:
        """Per-cell point counts as a (height, width) array."""
        return np.diff(self.offsets).reshape(self.height, self.width)

def _check_dimensions(width: int, height: int):
    for name, value in (("width", width), ("height", height)):
        if not isinstance(value, Integral) or isinstance(value, bool):
            raise ConfigurationError(f"{name} must be an integer, got {type(value).__name__}")
        if value <= 0:
            raise ConfigurationError(f"{name} must be positive, got {value}")

def _normalize_classes(classes: Iterable[int]) -> np.ndarray:
    normalized = []
    for c in classes:
        if not isinstance(c, Integral) or isinstance(c, bool):
            raise ConfigurationError(f"Excluded classes must be integers, got {c!r}")
        normalized.append(int(c))
    return np.array(sorted(set(normalized)), dtype=np.int64)

@jit(nopython=True, cache=True)
def _scatter_to_cells(cells: np.ndarray, offsets: np.ndarray) -> np.ndarray:
    """
    Counting-sort scatter of point indices into their cells, in input order.

    Args:
        cells: Flat cell index of each point.
        offsets: Prefix sums of the per-cell counts (length n_cells + 1).

    Returns:
        Array of point indices ordered by cell, stable within each cell.
    """
    cursor = offsets[:-1].copy()
    order = np.empty(cells.shape[0], dtype=np.int64)
    for i in range(cells.shape[0]):
        c = cells[i]
        order[cursor[c]] = i
        cursor[c] += 1
    return order

def bin_points(
    pc: PointCloud,
    transform: GridTransform,
    width: int,
    height: int,
    excluded_classes: Iterable[int] = DEFAULT_EXCLUDED_CLASSES
) -> PointGrid:
    """
    Bins every sample of a point cloud into the cell that contains it.

    For each sample, in input order:
        1. Transform to raster space (see GridTransform.apply).
        2. Drop it if its classification is excluded.
        3. Normalize intensity to 0-255 (integer division by 256, then clamp).
        4. Clamp raster coordinates to [0, width - 1] and [0, height - 1].
        5. Append it to cell (floor(y), floor(x)).

    Args:
        pc (PointCloud): Source samples.
        transform (GridTransform): World-to-raster transform, computed beforehand.
        width (int): Number of columns.
        height (int): Number of rows.
        excluded_classes (Iterable[int]): Classification tags to discard.

    Returns:
        PointGrid: Read-only grid of buckets.
    """
    _check_dimensions(width, height)
    excluded = _normalize_classes(excluded_classes)

    log.info(f"Binning {len(pc)} points into a {width}x{height} grid")

    tx, ty, tz = transform.apply(pc.x, pc.y, pc.z)

    classification = np.asarray(pc.classification, dtype=np.int64)
    keep = ~np.isin(classification, excluded)
    n_excluded = int(len(keep) - np.count_nonzero(keep))
    if n_excluded:
        log.debug(f"Excluded {n_excluded} points with classes {excluded.tolist()}")

    tx, ty, tz = tx[keep], ty[keep], tz[keep]
    classification = classification[keep]
    intensity = np.clip(np.asarray(pc.intensity, dtype=np.int64)[keep] // 256, 0, 255).astype(np.uint8)

    if not (np.all(np.isfinite(tx)) and np.all(np.isfinite(ty))):
        raise InvariantViolation("Non-finite raster coordinates cannot be assigned to a grid cell")

    # Points past the far edge (e.g. exactly on max_x) and points outside the bounds
    # are pulled onto the grid rather than dropped
    outside = (tx >= width) | (tx < 0) | (ty >= height) | (ty < 0)
    n_clamped = int(np.count_nonzero(outside))
    if n_clamped:
        log.debug(f"Clamped {n_clamped} points onto the grid edge")

    tx = np.where(tx >= width, width - 1, tx)
    tx = np.where(tx < 0, 0.0, tx)
    ty = np.where(ty >= height, height - 1, ty)
    ty = np.where(ty < 0, 0.0, ty)

    cols = np.floor(tx).astype(np.int64)
    rows = np.floor(ty).astype(np.int64)
    if np.any((cols < 0) | (cols >= width) | (rows < 0) | (rows >= height)):
        raise InvariantViolation("Grid index outside the grid after clamping")

    cells = rows * width + cols
    offsets = np.zeros(width * height + 1, dtype=np.int64)
    np.cumsum(np.bincount(cells, minlength=width * height), out=offsets[1:])

    order = _scatter_to_cells(cells, offsets)

    log.debug(f"Binned {len(order)} points, {np.count_nonzero(np.diff(offsets))} cells occupied")

    return PointGrid(
        width=width,
        height=height,
        offsets=offsets,
        x=tx[order],
        y=ty[order],
        z=tz[order],
        intensity=intensity[order],
        classification=classification[order],
        n_excluded=n_excluded,
        n_clamped=n_clamped,
        transform=transform
    )
