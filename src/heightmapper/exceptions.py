# src/heightmapper/exceptions.py

"""
Exception hierarchy shared by the heightmapper subpackages.
"""

__all__ = [
    "HeightmapError",
    "ConfigurationError",
    "InvariantViolation"
]

class HeightmapError(Exception):
    """Base class for all heightmapper errors."""

class ConfigurationError(HeightmapError, ValueError):
    """
    Raised when grid dimensions, search range, class filters or bounds are unusable.

    Always raised before any point is binned.
    """

class InvariantViolation(HeightmapError, AssertionError):
    """
    Raised when an internal guarantee of the binning or reconstruction stages is broken.

    This indicates a programming error or corrupt input (e.g. non-finite coordinates),
    never a normal "no data" condition.
    """
