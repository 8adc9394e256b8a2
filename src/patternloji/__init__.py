# src/patternloji/__init__.py

"""
patternloji - Point pattern statistics and spatial interpolation
"""

# Core data structures
from .data.core import (
    Point,
    PointSet,
    Polygon,
    Zone,
    ZonePartition,
    BoundingExtent,
    Grid,
    RasterLayer,
)
from .data.config import (
    PatternConfig,
    PatternlojiError,
    EmptyInputError,
    InvalidGeometryError,
    DegenerateInputError,
    IncompatibleExtentError,
)

# Import submodules
from . import data
from . import spatial

__version__ = '0.1.0'

__all__ = [
    # Core classes
    'Point',
    'PointSet',
    'Polygon',
    'Zone',
    'ZonePartition',
    'BoundingExtent',
    'Grid',
    'RasterLayer',
    'PatternConfig',

    # Exceptions
    'PatternlojiError',
    'EmptyInputError',
    'InvalidGeometryError',
    'DegenerateInputError',
    'IncompatibleExtentError',

    # Submodules
    'data',
    'spatial',
]
