"""
binning.py - Point-to-raster binning

Overlays a regular grid on an extent and reduces the points that fall
in each cell. Typical uses: station counts per cell, mean bikes per
cell, and boolean "cluster" maps from a density threshold.
"""

from __future__ import annotations

import logging

import numpy as np

from ...data.core import Grid, PointSet, RasterLayer
from ..shared.utils import Reducer, reduce_by_group, resolve_crs, safe_divide, validate_reducer

logger = logging.getLogger(__name__)

_COMPARISONS = {
    'gt': np.greater,
    'ge': np.greater_equal,
    'lt': np.less,
    'le': np.less_equal,
    'eq': np.equal,
}


def rasterize(
    points: PointSet,
    grid: Grid,
    attribute: str | None = None,
    reducer: Reducer = 'count',
    background: float = np.nan,
    name: str | None = None,
) -> RasterLayer:
    """
    Bin points into grid cells and reduce each cell.

    Cells are half-open ``[x0, x1) x [y0, y1)``; the last column and
    the top row are closed on the extent edge so boundary points are
    kept. Points outside the extent are dropped.

    Parameters
    ----------
    points : PointSet
        Points to bin.
    grid : Grid
        Target grid.
    attribute : str, optional
        Attribute to reduce. Not needed for 'count'.
    reducer : str or callable
        'count', 'sum', 'mean', 'median', 'min', 'max', 'std' or a
        function of a 1-D array.
    background : float
        Value for cells without points. Defaults to NaN ("no data");
        pass 0 for count maps where empty means zero.
    name : str, optional
        Layer name. Defaults to '<attribute>_<reducer>'.

    Returns
    -------
    RasterLayer

    Examples
    --------
    >>> grid = Grid(stations.bounds(), n_rows=6, n_cols=6)
    >>> counts = rasterize(stations, grid, background=0)
    >>> bikes = rasterize(stations, grid, 'nbikes', 'mean')
    """
    reducer = validate_reducer(reducer)
    if attribute is None and reducer != 'count':
        raise ValueError(f"reducer {reducer!r} needs an attribute")
    resolve_crs(points.crs, grid.crs, context='rasterize')

    rows, cols, inside = grid.locate(points.coords)
    n_outside = int((~inside).sum())
    if n_outside:
        logger.warning(f"{n_outside} of {len(points)} points lie outside the grid extent and were dropped")

    flat = rows[inside] * grid.n_cols + cols[inside]
    n_cells = grid.n_rows * grid.n_cols
    values = points.values(attribute)[inside] if attribute is not None else None

    reduced = reduce_by_group(values, flat, n_cells, reducer)
    occupied = np.bincount(flat, minlength=n_cells) > 0
    reduced[~occupied] = background

    label = getattr(reducer, '__name__', 'value') if callable(reducer) else reducer
    if name is None:
        name = f"{attribute}_{label}" if attribute is not None else label

    print(f"  ✓ Rasterized {int(inside.sum())} points onto {grid.n_rows}x{grid.n_cols} grid "
          f"({int(occupied.sum())} occupied cells, reducer={label})")

    return RasterLayer(grid, reduced.reshape(grid.shape), name=name)


def threshold(layer: RasterLayer, value: float, op: str = 'gt') -> RasterLayer:
    """
    Binary layer from a comparison: 1 where true, 0 where false.

    "No data" cells stay NaN.

    Parameters
    ----------
    layer : RasterLayer
    value : float
        Threshold, e.g. 12 for "density > 12".
    op : str
        'gt', 'ge', 'lt', 'le' or 'eq'.
    """
    if op not in _COMPARISONS:
        raise ValueError(f"Unknown comparison: {op!r}. Available: {list(_COMPARISONS)}")

    missing = layer.missing
    with np.errstate(invalid='ignore'):
        result = _COMPARISONS[op](layer.values, value).astype(float)
    result[missing] = np.nan
    return RasterLayer(layer.grid, result, name=f"{layer.name}_{op}_{value}")


def cell_density(layer: RasterLayer) -> RasterLayer:
    """Values per unit area of each cell (e.g. counts -> points per area)."""
    values = safe_divide(layer.values, layer.grid.cell_area)
    return RasterLayer(layer.grid, values, name=f"{layer.name}_density")
