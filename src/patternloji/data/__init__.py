"""
data - Core data structures, configuration and loaders

This module contains the point, polygon and raster containers,
the configuration dataclass, the exception hierarchy and the
table/file loaders.
"""

from .config import (
    PatternConfig,
    PatternlojiError,
    EmptyInputError,
    InvalidGeometryError,
    DegenerateInputError,
    IncompatibleExtentError,
)

from .core import (
    Point,
    PointSet,
    Polygon,
    Zone,
    ZonePartition,
    BoundingExtent,
    Grid,
    RasterLayer,
    validate_ring,
)
from .loaders import (
    points_from_dataframe,
    points_from_geodataframe,
    read_points_csv,
    zones_from_geodataframe,
    read_zones,
)

__all__ = [
    # Points
    'Point',
    'PointSet',

    # Polygons
    'Polygon',
    'Zone',
    'ZonePartition',
    'validate_ring',

    # Rasters
    'BoundingExtent',
    'Grid',
    'RasterLayer',

    # Configuration
    'PatternConfig',

    # Loaders
    'points_from_dataframe',
    'points_from_geodataframe',
    'read_points_csv',
    'zones_from_geodataframe',
    'read_zones',

    # Exceptions
    'PatternlojiError',
    'EmptyInputError',
    'InvalidGeometryError',
    'DegenerateInputError',
    'IncompatibleExtentError',
]
