"""
spatial - Point pattern analysis for patternloji

point : Distance-based analysis
    Distance matrices, nearest-neighbour distances, isolation
    ranking and the empirical G function.

polygon : Zone-based analysis
    Point-in-polygon aggregation, zone densities and Voronoi
    tessellation.

raster : Grid-based analysis
    Point binning, thresholds, focal smoothing and IDW interpolation.

shared : Geometry primitives and utilities used by all three

Usage
-----
>>> import patternloji as pl
>>>
>>> pl.spatial.shared.area(borough.polygon)
>>> pl.spatial.polygon.aggregate(stations, boroughs, 'nbikes', 'sum')
>>> dm = pl.spatial.point.distance_matrix(stations, metric='euclidean')
>>> pl.spatial.raster.idw_interpolate(stations, grid, 'nbikes')
"""

from . import shared
from . import point
from . import polygon
from . import raster

__all__ = [
    'shared',
    'point',
    'polygon',
    'raster',
]
