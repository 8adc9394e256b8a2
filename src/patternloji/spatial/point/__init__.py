# src/patternloji/spatial/point/__init__.py

"""
Point-based distance analysis.

Modules
-------
- distance: distance matrices, nearest-neighbour distances,
  isolation ranking and the empirical G function

Quick Start
-----------
>>> import patternloji as pl
>>>
>>> dm = pl.spatial.point.distance_matrix(stations, metric='euclidean')
>>> nnd = pl.spatial.point.nearest_neighbor_distances(dm)
>>>
>>> # Five most isolated stations
>>> idx = pl.spatial.point.isolation_ranking(nnd, k=5)
>>> stations.subset(idx).to_dataframe()
>>>
>>> # Empirical G against its CSR expectation
>>> g = pl.spatial.point.empirical_g_function(nnd)
>>> df = g.to_dataframe()
>>> df['csr'] = pl.spatial.point.theoretical_g(df['distance'], len(stations) / area)

Notes
-----
- The metric is never inferred: pass 'euclidean' for projected
  coordinates and 'haversine' for lon/lat degrees. A metric that does
  not match the points' CRS raises IncompatibleExtentError.
- ``knn_distances`` avoids the (n, n) matrix for large point sets.
"""

from .distance import (
    METRICS,
    DistanceMatrix,
    EmpiricalGFunction,
    distance_matrix,
    nearest_neighbor_distances,
    nearest_neighbor_indices,
    knn_distances,
    isolation_ranking,
    empirical_g_function,
    theoretical_g,
    nearest_neighbor_summary,
)

__all__ = [
    # Classes
    'DistanceMatrix',
    'EmpiricalGFunction',

    # Distances
    'METRICS',
    'distance_matrix',
    'nearest_neighbor_distances',
    'nearest_neighbor_indices',
    'knn_distances',

    # Pattern statistics
    'isolation_ranking',
    'empirical_g_function',
    'theoretical_g',
    'nearest_neighbor_summary',
]
