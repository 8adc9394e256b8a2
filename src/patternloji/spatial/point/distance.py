"""
distance.py - Distance matrices and nearest-neighbour statistics

Pairwise distances, per-point nearest-neighbour distances, isolation
rankings and the empirical nearest-neighbour distribution function
(the G function). The distance metric is always chosen explicitly:
'euclidean' for projected coordinates, 'haversine' (great-circle) for
lon/lat coordinates.
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.spatial.distance import cdist
from sklearn.metrics.pairwise import haversine_distances
from sklearn.neighbors import NearestNeighbors

from ...data.config import (
    DegenerateInputError,
    EmptyInputError,
    IncompatibleExtentError,
    PatternConfig,
)
from ...data.core import PointSet
from ..shared.utils import is_geographic

METRICS = ('euclidean', 'haversine')


@dataclass
class DistanceMatrix:
    """
    Square pairwise distance matrix over a point set.

    Attributes
    ----------
    values : np.ndarray
        (n, n) symmetric array with a zero diagonal.
    metric : str
        'euclidean' or 'haversine'.
    point_ids : pd.Index
        Point ids matching rows/columns.
    units : str
        'crs units' for euclidean, 'm' for haversine.
    """
    values: np.ndarray
    metric: str
    point_ids: pd.Index
    units: str

    @property
    def n_points(self) -> int:
        return self.values.shape[0]

    def without_diagonal(self) -> np.ndarray:
        """Copy with self-pairs marked undefined (NaN)."""
        masked = self.values.copy()
        np.fill_diagonal(masked, np.nan)
        return masked

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.values, index=self.point_ids, columns=self.point_ids)

    def __repr__(self) -> str:
        return f"DistanceMatrix({self.n_points} points, metric={self.metric}, units={self.units})"


def _check_metric(points: PointSet, metric: str) -> None:
    if metric not in METRICS:
        raise ValueError(f"Unknown metric: {metric!r}. Choose one of {METRICS}")
    geographic = is_geographic(points.crs)
    if metric == 'euclidean' and geographic is True:
        raise IncompatibleExtentError(
            f"Points use geographic CRS {points.crs!r}; use metric='haversine' or project them first"
        )
    if metric == 'haversine' and geographic is False:
        raise IncompatibleExtentError(
            f"Points use projected CRS {points.crs!r}; haversine expects lon/lat degrees"
        )
    if metric == 'haversine' and len(points):
        lat = points.coords[:, 1]
        if np.abs(lat).max() > 90:
            raise ValueError("Latitude out of range [-90, 90]; haversine expects (lon, lat) degrees")


def _lat_lon_radians(coords: np.ndarray) -> np.ndarray:
    # sklearn's haversine expects (lat, lon) in radians
    return np.radians(coords[:, ::-1])


def distance_matrix(
    points: PointSet,
    metric: str,
    config: PatternConfig | None = None,
) -> DistanceMatrix:
    """
    Compute all pairwise distances.

    Parameters
    ----------
    points : PointSet
        Points to compare.
    metric : str
        'euclidean' (planar, CRS units) or 'haversine' (great-circle,
        metres; coordinates must be lon/lat degrees). No default: the
        two give materially different results.
    config : PatternConfig, optional
        Supplies the sphere radius (``earth_radius``, metres) for
        'haversine'. Defaults to ``PatternConfig()``.

    Returns
    -------
    DistanceMatrix

    Raises
    ------
    IncompatibleExtentError
        If the metric does not suit the points' CRS.
    """
    _check_metric(points, metric)
    config = config or PatternConfig()
    coords = points.coords

    if metric == 'euclidean':
        values = cdist(coords, coords, metric='euclidean')
        units = 'crs units'
    else:
        values = haversine_distances(_lat_lon_radians(coords)) * config.earth_radius
        units = 'm'

    np.fill_diagonal(values, 0.0)
    print(f"  ✓ Distance matrix: n={len(points)}, metric={metric}")

    return DistanceMatrix(values=values, metric=metric, point_ids=points.ids, units=units)


def nearest_neighbor_distances(matrix: DistanceMatrix | np.ndarray) -> np.ndarray:
    """
    Distance from each point to its nearest other point.

    The diagonal (self-distance) is excluded from the search.

    Parameters
    ----------
    matrix : DistanceMatrix or np.ndarray
        Square distance matrix.

    Returns
    -------
    np.ndarray
        One non-negative value per point, in point order.

    Raises
    ------
    DegenerateInputError
        If fewer than 2 points are supplied.
    """
    values = matrix.values if isinstance(matrix, DistanceMatrix) else np.asarray(matrix, dtype=float)
    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise ValueError(f"Distance matrix must be square, got shape {values.shape}")
    if values.shape[0] < 2:
        raise DegenerateInputError(f"Nearest-neighbour distances need at least 2 points, got {values.shape[0]}")

    d = values.astype(float, copy=True)
    np.fill_diagonal(d, np.inf)
    return d.min(axis=1)


def nearest_neighbor_indices(matrix: DistanceMatrix | np.ndarray) -> np.ndarray:
    """Position of each point's nearest other point (first one on ties)."""
    values = matrix.values if isinstance(matrix, DistanceMatrix) else np.asarray(matrix, dtype=float)
    if values.shape[0] < 2:
        raise DegenerateInputError(f"Nearest-neighbour search needs at least 2 points, got {values.shape[0]}")
    d = values.astype(float, copy=True)
    np.fill_diagonal(d, np.inf)
    return d.argmin(axis=1)


def knn_distances(
    points: PointSet,
    metric: str,
    k: int = 1,
    config: PatternConfig | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Distances to the k nearest other points without a full matrix.

    Uses a tree index, so it scales to point sets too large for an
    (n, n) matrix.

    Parameters
    ----------
    points : PointSet
    metric : str
        'euclidean' or 'haversine', as in ``distance_matrix``.
    k : int
        Number of neighbours, between 1 and n - 1.
    config : PatternConfig, optional
        Supplies ``earth_radius`` for 'haversine'.

    Returns
    -------
    distances, indices : np.ndarray
        Both of shape (n, k), nearest first.
    """
    _check_metric(points, metric)
    config = config or PatternConfig()
    n = len(points)
    if n < 2:
        raise DegenerateInputError(f"Nearest-neighbour search needs at least 2 points, got {n}")
    if k < 1 or k > n - 1:
        raise ValueError(f"k must be between 1 and {n - 1}, got {k}")

    if metric == 'euclidean':
        X = points.coords
        nn = NearestNeighbors(n_neighbors=k + 1, metric='euclidean')
        scale = 1.0
    else:
        X = _lat_lon_radians(points.coords)
        nn = NearestNeighbors(n_neighbors=k + 1, metric='haversine', algorithm='ball_tree')
        scale = config.earth_radius
    nn.fit(X)
    dist, idx = nn.kneighbors(X)

    # k+1 because the query point is returned as its own neighbour;
    # drop it by position rather than assuming column 0 (coincident points)
    self_hit = idx == np.arange(n)[:, None]
    keep = ~self_hit
    keep[~self_hit.any(axis=1), -1] = False
    dist = dist[keep].reshape(n, k) * scale
    idx = idx[keep].reshape(n, k)
    return dist, idx


def isolation_ranking(distances, k: int) -> np.ndarray:
    """
    The ``k`` most isolated points.

    Parameters
    ----------
    distances : array-like
        Nearest-neighbour distance per point.
    k : int
        Number of points to return (capped at the number of points).

    Returns
    -------
    np.ndarray
        Point positions ordered by decreasing nearest-neighbour
        distance. Ties keep input order.
    """
    d = np.asarray(distances, dtype=float)
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    order = np.argsort(-d, kind='stable')
    return order[:k]


class EmpiricalGFunction:
    """
    Empirical cumulative distribution of nearest-neighbour distances.

    Iterating yields ``(d, G(d))`` pairs lazily, one per distinct
    distance in increasing order, where ``G(d)`` is the proportion of
    points whose nearest-neighbour distance is at most ``d``. The
    sequence is non-decreasing and ends at 1.0. Iteration can be
    repeated; each pass starts from the smallest distance.

    Parameters
    ----------
    distances : array-like
        Nearest-neighbour distance per point.
    """

    def __init__(self, distances):
        d = np.asarray(distances, dtype=float).ravel()
        if d.size == 0:
            raise EmptyInputError("G function needs at least one nearest-neighbour distance")
        if np.isnan(d).any() or (d < 0).any():
            raise ValueError("Nearest-neighbour distances must be non-negative numbers")
        self._sorted = np.sort(d)

    def __iter__(self) -> Iterator[tuple[float, float]]:
        d = self._sorted
        n = len(d)
        for i in range(n):
            if i + 1 < n and d[i + 1] == d[i]:
                continue
            yield float(d[i]), (i + 1) / n

    def __len__(self) -> int:
        return len(np.unique(self._sorted))

    @property
    def n_points(self) -> int:
        return len(self._sorted)

    def evaluate(self, r) -> np.ndarray:
        """G at arbitrary radii (step function, right-continuous)."""
        r = np.asarray(r, dtype=float)
        return np.searchsorted(self._sorted, r, side='right') / len(self._sorted)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(list(self), columns=['distance', 'proportion'])

    def __repr__(self) -> str:
        return f"EmpiricalGFunction(n={self.n_points}, steps={len(self)}, max_d={self._sorted[-1]:.4g})"


def empirical_g_function(distances) -> EmpiricalGFunction:
    """
    Empirical G function of nearest-neighbour distances.

    Examples
    --------
    >>> nnd = nearest_neighbor_distances(distance_matrix(points, 'euclidean'))
    >>> list(empirical_g_function(nnd))
    [(1.0, 1.0)]
    """
    return EmpiricalGFunction(distances)


def theoretical_g(r, intensity: float) -> np.ndarray:
    """
    G function under complete spatial randomness.

    ``G(r) = 1 - exp(-intensity * pi * r^2)`` for a Poisson process
    with the given intensity (points per unit area).
    """
    r = np.asarray(r, dtype=float)
    return 1.0 - np.exp(-intensity * np.pi * r**2)


def nearest_neighbor_summary(
    points: PointSet,
    metric: str = 'euclidean',
    area: float | None = None,
) -> dict:
    """
    Clark-Evans nearest-neighbour summary.

    Compares the observed mean nearest-neighbour distance with its
    expectation under complete spatial randomness, ``0.5 / sqrt(n / A)``.
    Ratios below 1 indicate clustering, above 1 dispersion.

    Parameters
    ----------
    points : PointSet
    metric : str
        Only 'euclidean' is meaningful for the CSR expectation.
    area : float, optional
        Study area. Defaults to the bounding-extent area.

    Returns
    -------
    dict with keys 'n_points', 'mean_nn_distance',
    'expected_nn_distance', 'clark_evans_ratio', 'intensity'.
    """
    if metric != 'euclidean':
        raise ValueError("Clark-Evans summary needs planar distances (metric='euclidean')")
    dist, _ = knn_distances(points, metric=metric, k=1)
    nnd = dist[:, 0]

    if area is None:
        area = points.bounds().area
    if area <= 0:
        raise DegenerateInputError("Study area must be positive (points are collinear?)")

    n = len(points)
    intensity = n / area
    expected = 0.5 / np.sqrt(intensity)
    observed = float(nnd.mean())

    print(f"  ✓ Nearest-neighbour summary: n={n}, mean={observed:.4g}, "
          f"R={observed / expected:.3f}")

    return {
        'n_points': n,
        'mean_nn_distance': observed,
        'expected_nn_distance': float(expected),
        'clark_evans_ratio': float(observed / expected),
        'intensity': float(intensity),
    }
