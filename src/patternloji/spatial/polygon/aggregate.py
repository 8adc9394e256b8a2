"""
aggregate.py - Point-in-polygon aggregation over a zone partition

Counts (or otherwise reduces) point attributes per zone, e.g. the
number of docking stations or the total number of bikes per borough.
Every zone of the partition appears in the result, including empty
ones, so densities can be computed uniformly.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import shapely

from ...data.config import EmptyInputError
from ...data.core import PointSet, ZonePartition
from ..shared.geometry import area
from ..shared.utils import Reducer, reduce_by_group, resolve_crs, validate_reducer


def zone_membership(points: PointSet, zones: ZonePartition) -> tuple[np.ndarray, np.ndarray]:
    """
    Assign points to zones.

    A point inside the interior of one or more zones belongs to each of
    them (overlapping zones each count it). A point that lies only on
    zone boundaries belongs to the first zone, in partition order,
    whose boundary it touches, so a gap-free, non-overlapping partition
    assigns every point exactly once.

    Parameters
    ----------
    points : PointSet
    zones : ZonePartition

    Returns
    -------
    point_idx, zone_idx : np.ndarray
        Parallel arrays of (point position, zone position) pairs,
        sorted by zone then point.
    """
    if len(zones) == 0:
        raise EmptyInputError("Zone partition is empty")
    resolve_crs(points.crs, zones.crs, context='zone_membership')

    empty = np.zeros(0, dtype=int)
    if len(points) == 0:
        return empty, empty

    tree = shapely.STRtree([z.polygon.geometry for z in zones])
    geoms = shapely.points(points.coords)

    # a point is 'within' a polygon only if it is in its interior
    p_in, z_in = tree.query(geoms, predicate='within')
    p_cl, z_cl = tree.query(geoms, predicate='intersects')

    has_interior = np.zeros(len(points), dtype=bool)
    has_interior[p_in] = True

    on_boundary = ~has_interior[p_cl]
    p_b, z_b = p_cl[on_boundary], z_cl[on_boundary]
    order = np.lexsort((z_b, p_b))
    p_b, z_b = p_b[order], z_b[order]
    first = np.ones(len(p_b), dtype=bool)
    first[1:] = p_b[1:] != p_b[:-1]

    point_idx = np.concatenate([p_in, p_b[first]]).astype(int)
    zone_idx = np.concatenate([z_in, z_b[first]]).astype(int)
    order = np.lexsort((point_idx, zone_idx))
    return point_idx[order], zone_idx[order]


def aggregate(
    points: PointSet,
    zones: ZonePartition,
    attribute: str | None = None,
    reducer: Reducer = 'count',
) -> pd.Series:
    """
    Reduce point attributes per zone.

    Parameters
    ----------
    points : PointSet
        Points to aggregate.
    zones : ZonePartition
        Containers. Need not be contiguous or exhaustive.
    attribute : str, optional
        Point attribute to reduce. Not needed for ``'count'``.
    reducer : str or callable
        'count', 'sum', 'mean', 'median', 'min', 'max', 'std' or a
        function of a 1-D array.

    Returns
    -------
    pd.Series
        One value per zone, indexed by zone key in partition order.
        Empty zones get 0 for 'count' and 'sum' and NaN otherwise.

    Examples
    --------
    >>> n_stations = aggregate(stations, boroughs)
    >>> mean_bikes = aggregate(stations, boroughs, 'nbikes', 'mean')
    """
    reducer = validate_reducer(reducer)
    if attribute is None and reducer != 'count':
        raise ValueError(f"reducer {reducer!r} needs an attribute")

    point_idx, zone_idx = zone_membership(points, zones)
    values = points.values(attribute)[point_idx] if attribute is not None else None
    result = reduce_by_group(values, zone_idx, len(zones), reducer)

    label = getattr(reducer, '__name__', 'value') if callable(reducer) else reducer
    name = f"{attribute}_{label}" if attribute is not None else label
    print(f"  ✓ Aggregated {len(points)} points into {len(zones)} zones "
          f"({len(np.unique(point_idx))} assigned, reducer={label})")

    return pd.Series(result, index=zones.keys, name=name)


def zone_areas(zones: ZonePartition) -> pd.Series:
    """Planar area of every zone, indexed by zone key."""
    return pd.Series([area(z.polygon) for z in zones], index=zones.keys, name='area', dtype=float)


def zone_density(
    points: PointSet,
    zones: ZonePartition,
    attribute: str | None = None,
    reducer: Reducer = 'count',
) -> pd.Series:
    """
    Aggregate per zone divided by zone area.

    With the defaults this is the number of points per unit area
    (e.g. stations per square metre for a metric CRS).
    """
    values = aggregate(points, zones, attribute=attribute, reducer=reducer)
    density = values / zone_areas(zones)
    return density.rename(f"{values.name}_density")
