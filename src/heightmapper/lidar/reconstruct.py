# src/heightmapper/lidar/reconstruct.py

"""
This module reconstructs one representative value per raster cell from a binned grid.

Each cell looks at the points of every cell within a square neighbourhood. Its elevation
is the (upper) median elevation of those points; its intensity and classification come
from the neighbourhood point closest to the cell centre at that median elevation. Cells
whose neighbourhood is empty are flagged as no-data.
"""

from dataclasses import dataclass
from numbers import Integral
from typing import Optional
import logging

import numpy as np
from numba import jit, prange

from heightmapper.exceptions import ConfigurationError, InvariantViolation

from .binning import PointGrid
from .transform import GridTransform

log = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_SEARCH_RANGE",
    "OutputCell",
    "Heightmap",
    "reconstruct",
    "reconstruct_cell"
]

DEFAULT_SEARCH_RANGE = 3

# Per-cell status codes written by the kernel
_NO_DATA = 0
_HAS_DATA = 1
_NO_REPRESENTATIVE = -1

@dataclass(frozen=True)
class OutputCell:
    """
    Reconstructed value of a single raster cell.

    Args:
        x (float): Cell centre column (col + 0.5).
        y (float): Cell centre row (row + 0.5).
        z (float): Median elevation above the datum. 0 for no-data cells.
        intensity (int): Intensity of the representative point, 0-255. 0 for no-data cells.
        classification (int): Classification of the representative point. 0 for no-data cells.
        has_data (bool): False when the neighbourhood held no points.
    """
    x: float
    y: float
    z: float = 0.0
    intensity: int = 0
    classification: int = 0
    has_data: bool = False

    @classmethod
    def no_data(cls, col: int, row: int) -> 'OutputCell':
        """Sentinel for a cell whose neighbourhood contains no points."""
        return cls(x=col + 0.5, y=row + 0.5)

@dataclass(eq=False)
class Heightmap:
    """
    Dense reconstruction result.

    Args:
        elevation (np.ndarray): (height, width) float64 median elevations, 0 where no data.
        intensity (np.ndarray): (height, width) uint8 representative intensities.
        classification (np.ndarray): (height, width) int64 representative classifications.
        valid (np.ndarray): (height, width) bool, False for no-data cells.
        transform (Optional[GridTransform]): Transform the source points were binned with.
    """
    elevation: np.ndarray
    intensity: np.ndarray
    classification: np.ndarray
    valid: np.ndarray
    transform: Optional[GridTransform] = None

    @property
    def shape(self):
        return self.elevation.shape

    @property
    def height(self) -> int:
        return self.elevation.shape[0]

    @property
    def width(self) -> int:
        return self.elevation.shape[1]

    @property
    def coverage(self) -> float:
        """Fraction of cells holding reconstructed data."""
        return float(np.count_nonzero(self.valid)) / self.valid.size

    def cell(self, col: int, row: int) -> OutputCell:
        """Returns the reconstructed value of one cell as an OutputCell."""
        if not (0 <= col < self.width and 0 <= row < self.height):
            raise IndexError(f"Cell (col={col}, row={row}) outside {self.width}x{self.height} heightmap")
        if not self.valid[row, col]:
            return OutputCell.no_data(col, row)
        return OutputCell(
            x=col + 0.5,
            y=row + 0.5,
            z=float(self.elevation[row, col]),
            intensity=int(self.intensity[row, col]),
            classification=int(self.classification[row, col]),
            has_data=True
        )

    def __repr__(self):
        return f"<Heightmap {self.width}x{self.height} coverage={self.coverage:.1%}>"

@jit(nopython=True, cache=True)
def _gather_neighbourhood(
    offsets: np.ndarray,
    width: int,
    height: int,
    col: int,
    row: int,
    search_range: int
    ) -> np.ndarray:
    """
    Collects the arena positions of every point within search_range cells of (col, row).

    Neighbour cells are scanned row by row, left to right; out-of-grid neighbours are skipped.

    Returns:
        int64 array of point positions in scan order.
    """
    r0 = max(row - search_range, 0)
    r1 = min(row + search_range, height - 1)
    c0 = max(col - search_range, 0)
    c1 = min(col + search_range, width - 1)

    total = 0
    for r in range(r0, r1 + 1):
        for c in range(c0, c1 + 1):
            k = r * width + c
            total += offsets[k + 1] - offsets[k]

    members = np.empty(total, dtype=np.int64)
    n = 0
    for r in range(r0, r1 + 1):
        for c in range(c0, c1 + 1):
            k = r * width + c
            for j in range(offsets[k], offsets[k + 1]):
                members[n] = j
                n += 1
    return members

@jit(nopython=True, cache=True)
def _select_representative(
    members: np.ndarray,
    x: np.ndarray,
    y: np.ndarray,
    z: np.ndarray,
    cx: float,
    cy: float
    ):
    """
    Median-then-nearest selection over a neighbourhood.

    The median is the element at index n // 2 of the sorted elevations (upper median for even n).
    The representative is the first member, in scan order, with the smallest squared distance
    to (cx, cy, median) in raster x, raster y and elevation.

    Returns:
        Tuple (position of the representative point or -1, median elevation).
    """
    n = members.shape[0]
    if n == 0:
        return -1, 0.0

    elevations = np.empty(n, dtype=np.float64)
    for k in range(n):
        elevations[k] = z[members[k]]
    elevations.sort()
    median = elevations[n // 2]

    best = -1
    best_d2 = np.inf
    for k in range(n):
        j = members[k]
        dx = x[j] - cx
        dy = y[j] - cy
        dz = z[j] - median
        d2 = dx * dx + dy * dy + dz * dz
        if d2 < best_d2:
            best_d2 = d2
            best = j
    return best, median

@jit(nopython=True, parallel=True, cache=True)
def _reconstruct_grid(
    offsets: np.ndarray,
    x: np.ndarray,
    y: np.ndarray,
    z: np.ndarray,
    intensity: np.ndarray,
    classification: np.ndarray,
    width: int,
    height: int,
    search_range: int,
    out_z: np.ndarray,
    out_intensity: np.ndarray,
    out_class: np.ndarray,
    out_status: np.ndarray
    ):
    """
    Fills the output arrays for every cell. Rows run in parallel; the grid is only read.

    Returns:
        None (the output arrays are modified in place).
    """
    for row in prange(height):
        for col in range(width):
            members = _gather_neighbourhood(offsets, width, height, col, row, search_range)
            if members.shape[0] == 0:
                out_status[row, col] = _NO_DATA
                continue

            best, median = _select_representative(members, x, y, z, col + 0.5, row + 0.5)
            if best < 0:
                out_status[row, col] = _NO_REPRESENTATIVE
                continue

            out_z[row, col] = median
            out_intensity[row, col] = intensity[best]
            out_class[row, col] = classification[best]
            out_status[row, col] = _HAS_DATA

def _check_search_range(search_range: int):
    if not isinstance(search_range, Integral) or isinstance(search_range, bool):
        raise ConfigurationError(f"search_range must be an integer, got {type(search_range).__name__}")
    if search_range < 0:
        raise ConfigurationError(f"search_range must be zero or positive, got {search_range}")

def reconstruct_cell(
    grid: PointGrid,
    col: int,
    row: int,
    search_range: int = DEFAULT_SEARCH_RANGE
    ) -> OutputCell:
    """
    Reconstructs a single cell.

    Args:
        grid (PointGrid): Fully binned grid.
        col (int): Column of the cell.
        row (int): Row of the cell.
        search_range (int): Half-width, in cells, of the square neighbourhood.

    Returns:
        OutputCell: Reconstructed value, or the no-data sentinel for an empty neighbourhood.
    """
    _check_search_range(search_range)
    if not (0 <= col < grid.width and 0 <= row < grid.height):
        raise IndexError(f"Cell (col={col}, row={row}) outside {grid.width}x{grid.height} grid")

    members = _gather_neighbourhood(grid.offsets, grid.width, grid.height, col, row, search_range)
    if len(members) == 0:
        return OutputCell.no_data(col, row)

    best, median = _select_representative(members, grid.x, grid.y, grid.z, col + 0.5, row + 0.5)
    if best < 0:
        raise InvariantViolation(
            f"No representative point found among {len(members)} neighbours of cell (col={col}, row={row})"
        )

    return OutputCell(
        x=col + 0.5,
        y=row + 0.5,
        z=float(median),
        intensity=int(grid.intensity[best]),
        classification=int(grid.classification[best]),
        has_data=True
    )

def reconstruct(
    grid: PointGrid,
    search_range: int = DEFAULT_SEARCH_RANGE
    ) -> Heightmap:
    """
    Reconstructs every cell of a binned grid.

    Args:
        grid (PointGrid): Fully binned grid. Binning must be complete; the grid is only read.
        search_range (int): Half-width, in cells, of the square neighbourhood (0 = own cell only).

    Returns:
        Heightmap: Dense result with a validity mask.
    """
    _check_search_range(search_range)

    shape = grid.shape
    out = Heightmap(
        elevation=np.zeros(shape, dtype=np.float64),
        intensity=np.zeros(shape, dtype=np.uint8),
        classification=np.zeros(shape, dtype=np.int64),
        valid=np.zeros(shape, dtype=np.bool_),
        transform=grid.transform
    )

    log.info(f"Reconstructing {grid.width}x{grid.height} cells (range={search_range}) from {len(grid)} points")

    status = np.zeros(shape, dtype=np.int8)
    _reconstruct_grid(
        grid.offsets,
        grid.x,
        grid.y,
        grid.z,
        grid.intensity,
        grid.classification,
        grid.width,
        grid.height,
        search_range,
        out.elevation,
        out.intensity,
        out.classification,
        status
    )

    broken = np.argwhere(status == _NO_REPRESENTATIVE)
    if len(broken):
        row, col = broken[0]
        raise InvariantViolation(
            f"No representative point found for {len(broken)} non-empty neighbourhoods, "
            f"first at cell (col={col}, row={row})"
        )

    out.valid[:] = status == _HAS_DATA

    log.info(f"Reconstruction complete: {out.coverage:.1%} of cells hold data")
    return out
