# src/heightmapper/raster/resources.py

"""
This module checks whether a rasterization run fits in memory before any buffer is allocated.

The whole point set and the whole grid are kept in RAM, so the estimate covers the binned
point arrays, the cell offsets and the output layers.
"""

import logging
from dataclasses import dataclass

import psutil

log = logging.getLogger(__name__)

__all__ = [
    "MemoryEstimate",
    "estimate_memory"
]

DEFAULT_SAFETY_FACTOR = 3.0
MIN_FREE_GB = 0.5

# x, y, z (float64), intensity (uint8), classification (int64), plus the scatter order (int64)
_BYTES_PER_POINT = 3 * 8 + 1 + 8 + 8
# offsets (int64), elevation (float64), intensity (uint8), classification (int64), valid (bool), status (int8)
_BYTES_PER_CELL = 8 + 8 + 1 + 8 + 1 + 1

@dataclass(frozen=True)
class MemoryEstimate:
    """
    Estimation of memory requirements and safety for a rasterization run.

    Args:
        total_required_bytes: Total bytes required (with overhead).
        available_system_bytes: Currently available system memory in bytes.
        is_safe: Boolean indicating if the run is considered safe.
        reason: Explanation for the safety assessment (e.g. "Req: 1.20GB, Avail: 8.00GB").
    """
    total_required_bytes: int
    available_system_bytes: int
    is_safe: bool
    reason: str

def estimate_memory(
    n_points: int,
    width: int,
    height: int,
    safety_factor: float = DEFAULT_SAFETY_FACTOR,
    min_free_gb: float = MIN_FREE_GB
) -> MemoryEstimate:
    """
    Checks if binning n_points into a width x height grid fits in RAM.

    Args:
        n_points: Number of samples that will be binned.
        width: Number of raster columns.
        height: Number of raster rows.
        safety_factor: Multiplier to account for temporaries (default 3.0).
        min_free_gb: Minimum free GB to leave available after allocation.

    Returns:
        MemoryEstimate: Contains total required bytes, available bytes, safety boolean, and reason.
    """
    raw_bytes = int(n_points) * _BYTES_PER_POINT + int(width) * int(height) * _BYTES_PER_CELL
    overhead_bytes = int(raw_bytes * (safety_factor - 1.0))
    total_required = raw_bytes + overhead_bytes

    mem = psutil.virtual_memory()
    min_free_bytes = int(min_free_gb * (1024**3))
    is_safe = (total_required + min_free_bytes) <= mem.available

    reason = f"Req: {total_required/1e9:.2f}GB, Avail: {mem.available/1e9:.2f}GB"

    return MemoryEstimate(total_required, mem.available, is_safe, reason)
