"""
config.py - Configuration and exceptions for patternloji

Contains:
- PatternConfig: Column names and constants used by loaders and metrics
- PatternlojiError and its subclasses
"""

from dataclasses import dataclass

# Mean Earth radius (IUGG), metres
EARTH_RADIUS_M = 6_371_008.8


@dataclass
class PatternConfig:
    """Configuration for patternloji column names and settings."""

    # Column names
    x_col: str = "x"
    y_col: str = "y"
    id_col: str | None = None
    zone_key_col: str = "name"

    # Coordinate settings
    crs: str | None = None
    earth_radius: float = EARTH_RADIUS_M


class PatternlojiError(Exception):
    """Base exception for patternloji errors."""

    pass


class EmptyInputError(PatternlojiError):
    """Raised when a point or zone set is empty but at least one element is required."""

    pass


class InvalidGeometryError(PatternlojiError):
    """Raised when a polygon ring or extent is malformed."""

    pass


class DegenerateInputError(PatternlojiError):
    """Raised for too few distinct points, or coincident points."""

    pass


class IncompatibleExtentError(PatternlojiError):
    """Raised when inputs use different coordinate reference systems."""

    pass
