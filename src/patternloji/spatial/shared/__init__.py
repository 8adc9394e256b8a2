# src/patternloji/spatial/shared/__init__.py

"""
Shared utilities for spatial analysis.

Geometry primitives and helpers used by the point, polygon and
raster modules.
"""

from .geometry import (
    # Geometry primitives
    area,
    signed_area,
    contains,
    contains_points,
    interior_points,
    bounding_extent,
    as_polygon,
)
from .utils import (
    # CRS checks
    resolve_crs,
    same_crs,
    is_geographic,

    # Reducers
    REDUCERS,
    validate_reducer,
    reduce_by_group,
    window_reducer,
    empty_value,

    # Numeric helpers
    safe_divide,
)

__all__ = [
    # Geometry primitives
    'area',
    'signed_area',
    'contains',
    'contains_points',
    'interior_points',
    'bounding_extent',
    'as_polygon',

    # CRS checks
    'resolve_crs',
    'same_crs',
    'is_geographic',

    # Reducers
    'REDUCERS',
    'validate_reducer',
    'reduce_by_group',
    'window_reducer',
    'empty_value',

    # Numeric helpers
    'safe_divide',
]
