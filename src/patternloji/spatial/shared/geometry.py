"""
geometry.py - Planar geometry primitives

Area, containment and bounding extents for the core containers.
Containment is boundary-inclusive everywhere: a point on a polygon's
edge or vertex is contained.
"""

from __future__ import annotations

import numpy as np
import shapely

from ...data.config import EmptyInputError, InvalidGeometryError
from ...data.core import BoundingExtent, Point, PointSet, Polygon, validate_ring
from .utils import resolve_crs


def _shoelace(ring: np.ndarray) -> float:
    # shift to the first vertex to limit cancellation on large coordinates
    xy = ring - ring[0]
    x, y = xy[:-1, 0], xy[:-1, 1]
    x_next, y_next = xy[1:, 0], xy[1:, 1]
    return 0.5 * float(np.sum(x * y_next - x_next * y))


def signed_area(ring) -> float:
    """
    Signed shoelace area of a closed ring.

    Positive for counter-clockwise rings, negative for clockwise ones.
    The magnitude does not depend on orientation or on which vertex
    the ring starts at.

    Raises
    ------
    InvalidGeometryError
        If the ring has fewer than 3 vertices, is not closed, or
        intersects itself.
    """
    return _shoelace(validate_ring(ring))


def as_polygon(geom) -> Polygon:
    """
    Coerce to a Polygon.

    Accepts a Polygon, a shapely Polygon, or a sequence of rings
    (exterior first, then holes).
    """
    if isinstance(geom, Polygon):
        return geom
    if isinstance(geom, shapely.Geometry):
        return Polygon.from_shapely(geom)
    rings = list(geom)
    if not rings:
        raise InvalidGeometryError("Polygon needs at least one ring")
    return Polygon(rings[0], holes=rings[1:])


def area(polygon) -> float:
    """
    Planar area: exterior ring area minus hole areas.

    Parameters
    ----------
    polygon : Polygon, shapely Polygon or sequence of rings

    Returns
    -------
    float
        Non-negative area in squared CRS units.

    Examples
    --------
    >>> area([[(0, 0), (4, 0), (4, 3), (0, 3), (0, 0)]])
    12.0
    """
    polygon = as_polygon(polygon)
    outer = abs(_shoelace(polygon.exterior))
    holes = sum(abs(_shoelace(h)) for h in polygon.holes)
    return outer - holes


def contains(polygon: Polygon, point) -> bool:
    """
    Test whether a point lies inside or on the boundary of a polygon.

    Parameters
    ----------
    polygon : Polygon
    point : Point or (x, y)

    Returns
    -------
    bool
    """
    polygon = as_polygon(polygon)
    if isinstance(point, Point):
        resolve_crs(polygon.crs, point.crs, context="contains")
        x, y = point.x, point.y
    else:
        x, y = point
    return bool(shapely.intersects_xy(polygon.geometry, x, y))


def contains_points(polygon: Polygon, coords) -> np.ndarray:
    """Vectorised boundary-inclusive containment for an (n, 2) array."""
    polygon = as_polygon(polygon)
    coords = np.asarray(coords, dtype=float).reshape(-1, 2)
    if len(coords) == 0:
        return np.zeros(0, dtype=bool)
    return shapely.intersects_xy(polygon.geometry, coords[:, 0], coords[:, 1])


def interior_points(polygon: Polygon, coords) -> np.ndarray:
    """Vectorised strict-interior containment (boundary excluded)."""
    polygon = as_polygon(polygon)
    coords = np.asarray(coords, dtype=float).reshape(-1, 2)
    if len(coords) == 0:
        return np.zeros(0, dtype=bool)
    return shapely.contains_xy(polygon.geometry, coords[:, 0], coords[:, 1])


def bounding_extent(points) -> BoundingExtent:
    """
    Min/max bounding box of a point set.

    Parameters
    ----------
    points : PointSet or array-like (n, 2)

    Raises
    ------
    EmptyInputError
        If there are no points.
    """
    if isinstance(points, PointSet):
        if len(points) == 0:
            raise EmptyInputError("Cannot compute the extent of an empty point set")
        return points.bounds()
    return BoundingExtent.from_coords(points)
