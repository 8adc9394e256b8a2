"""
raster - Grid-based analysis

Modules
-------
binning : Point-to-raster binning
    rasterize, threshold, cell_density
interpolation : Focal smoothing and inverse-distance weighting
    focal_smooth, idw_predict, idw_interpolate

Typical workflow
----------------
>>> import patternloji as pl
>>> from patternloji.data import Grid
>>>
>>> grid = Grid(stations.bounds(), n_rows=6, n_cols=6)
>>>
>>> # 1. Mean bikes per cell, gaps filled from neighbouring cells
>>> bikes = pl.spatial.raster.rasterize(stations, grid, 'nbikes', 'mean')
>>> filled = pl.spatial.raster.focal_smooth(bikes, 3, 'mean', fill_only_missing=True)
>>>
>>> # 2. Boolean cluster map
>>> counts = pl.spatial.raster.rasterize(stations, grid, background=0)
>>> clusters = pl.spatial.raster.threshold(counts, 12)
>>>
>>> # 3. Continuous surface
>>> surface = pl.spatial.raster.idw_interpolate(stations, grid, 'nbikes', power=2)
"""

from .binning import (
    rasterize,
    threshold,
    cell_density,
)
from .interpolation import (
    focal_smooth,
    idw_predict,
    idw_interpolate,
)

__all__ = [
    # Binning
    'rasterize',
    'threshold',
    'cell_density',

    # Interpolation
    'focal_smooth',
    'idw_predict',
    'idw_interpolate',
]
