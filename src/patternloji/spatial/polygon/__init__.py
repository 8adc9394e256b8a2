"""
polygon - Zone aggregation and tessellation

Modules
-------
aggregate : Point-in-polygon aggregation over a zone partition
    zone_membership, aggregate, zone_areas, zone_density
voronoi : Nearest-point tessellation clipped to an extent
    VoronoiDiagram, voronoi

Typical workflow
----------------
>>> import patternloji as pl
>>>
>>> # 1. Stations per borough, and stations per unit area
>>> counts = pl.spatial.polygon.aggregate(stations, boroughs)
>>> density = pl.spatial.polygon.zone_density(stations, boroughs)
>>>
>>> # 2. Bikes per borough
>>> bikes = pl.spatial.polygon.aggregate(stations, boroughs, 'nbikes', 'sum')
>>>
>>> # 3. Nearest-station regions
>>> vor = pl.spatial.polygon.voronoi(stations, stations.bounds())
>>> vor.to_geopandas()
"""

from .aggregate import (
    zone_membership,
    aggregate,
    zone_areas,
    zone_density,
)
from .voronoi import (
    VoronoiDiagram,
    voronoi,
)

__all__ = [
    # Aggregation
    'zone_membership',
    'aggregate',
    'zone_areas',
    'zone_density',

    # Tessellation
    'VoronoiDiagram',
    'voronoi',
]
