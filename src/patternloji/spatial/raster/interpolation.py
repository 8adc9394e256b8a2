"""
interpolation.py - Raster smoothing and interpolation

- focal_smooth: moving-window reduction over a raster, e.g. to fill
  "no data" gaps in a binned layer
- idw_interpolate / idw_predict: inverse-distance-weighted prediction
  from scattered samples
"""

from __future__ import annotations

import warnings

import numpy as np
from scipy import ndimage
from scipy.spatial import KDTree
from scipy.spatial.distance import cdist

from ...data.config import EmptyInputError
from ...data.core import Grid, PointSet, RasterLayer
from ..shared.utils import Reducer, is_geographic, resolve_crs, window_reducer

# pad mode -> scipy.ndimage boundary mode
_PAD_MODES = {
    'nodata': 'constant',
    'nearest': 'nearest',
    'reflect': 'reflect',
    'wrap': 'wrap',
}

# rows of cell centres processed per cdist call
_IDW_CHUNK = 2048


def focal_smooth(
    layer: RasterLayer,
    window_size: int = 3,
    reducer: Reducer = 'mean',
    fill_only_missing: bool = False,
    pad_mode: str = 'nodata',
) -> RasterLayer:
    """
    Moving-window (focal) reduction.

    Every output cell is computed from the ``window_size x window_size``
    neighbourhood of the *input* layer, so results do not depend on the
    order cells are visited. "No data" cells inside the window are
    ignored; a window without any data yields NaN (0 for 'count').

    Parameters
    ----------
    layer : RasterLayer
        Input layer (not modified).
    window_size : int
        Odd, positive window side in cells.
    reducer : str or callable
        'mean', 'sum', 'median', 'min', 'max', 'std', 'count' or a
        function of a 1-D array of valid values.
    fill_only_missing : bool
        If True, only cells that are "no data" in the input are
        replaced; other cells keep their values.
    pad_mode : str
        Handling of window cells beyond the extent: 'nodata' (ignored,
        default), 'nearest', 'reflect' or 'wrap'.

    Returns
    -------
    RasterLayer
        New layer.
    """
    if int(window_size) != window_size or window_size < 1 or window_size % 2 == 0:
        raise ValueError(f"window_size must be an odd positive integer, got {window_size}")
    if pad_mode not in _PAD_MODES:
        raise ValueError(f"Unknown pad_mode: {pad_mode!r}. Available: {list(_PAD_MODES)}")

    snapshot = layer.values.copy()
    smoothed = ndimage.generic_filter(
        snapshot,
        window_reducer(reducer),
        size=int(window_size),
        mode=_PAD_MODES[pad_mode],
        cval=np.nan,
    )

    if fill_only_missing:
        smoothed = np.where(np.isnan(snapshot), smoothed, snapshot)

    n_filled = int((np.isnan(snapshot) & ~np.isnan(smoothed)).sum())
    print(f"  ✓ Focal {window_size}x{window_size}: {n_filled} missing cells filled"
          f"{' (missing cells only)' if fill_only_missing else ''}")

    return RasterLayer(layer.grid, smoothed, name=f"{layer.name}_focal{window_size}")


def _idw_block(dist: np.ndarray, vals: np.ndarray, power: float) -> np.ndarray:
    """
    IDW estimate per row of a (m, k) distance block.

    ``vals`` holds the matching sample values (same shape). Infinite
    distances mark absent neighbours. A zero distance returns the mean
    of the coincident samples' values.

    Weights are taken relative to the nearest sample of each row,
    ``(d_min / d) ** power``, so they stay within [0, 1] and the
    nearest sample always has weight 1 whatever the distance scale.
    """
    exact = dist == 0
    has_exact = exact.any(axis=1)
    usable = np.isfinite(dist) & ~exact

    with np.errstate(divide='ignore', invalid='ignore', under='ignore'):
        d = np.where(usable, dist, np.inf)
        d_min = d.min(axis=1, keepdims=True)
        weights = np.where(usable, (d_min / d) ** power, 0.0)
        vals = np.where(np.isfinite(dist), vals, 0.0)
        estimate = (weights * vals).sum(axis=1) / weights.sum(axis=1)
        exact_mean = (exact * vals).sum(axis=1) / exact.sum(axis=1)

    return np.where(has_exact, exact_mean, estimate)


def idw_predict(
    samples: PointSet,
    locations,
    attribute: str,
    power: float = 2.0,
    n_neighbors: int | None = None,
    max_distance: float | None = None,
) -> np.ndarray:
    """
    Inverse-distance-weighted prediction at arbitrary locations.

    ``z(x) = sum(w_i * z_i) / sum(w_i)`` with ``w_i = 1 / d(x, x_i)^power``.
    At a location that coincides with a sample the sample's value is
    returned exactly.

    Parameters
    ----------
    samples : PointSet
        Known values. Samples with a missing attribute are ignored.
    locations : array-like (m, 2)
        Prediction coordinates.
    attribute : str
        Sample attribute to interpolate.
    power : float
        Distance exponent, must be > 0.
    n_neighbors : int, optional
        Use only the nearest samples. Default: all samples.
    max_distance : float, optional
        Ignore samples farther than this. Locations with no sample in
        range get NaN.

    Returns
    -------
    np.ndarray
        One prediction per location.
    """
    if power <= 0:
        raise ValueError(f"power must be > 0, got {power}")
    if n_neighbors is not None and n_neighbors < 1:
        raise ValueError(f"n_neighbors must be >= 1, got {n_neighbors}")

    values = np.asarray(samples.values(attribute), dtype=float)
    valid = ~np.isnan(values)
    coords = samples.coords[valid]
    values = values[valid]
    if len(values) == 0:
        raise EmptyInputError(f"No samples with a value for '{attribute}'")

    locations = np.asarray(locations, dtype=float).reshape(-1, 2)
    result = np.empty(len(locations), dtype=float)

    if n_neighbors is None and max_distance is None:
        for start in range(0, len(locations), _IDW_CHUNK):
            block = locations[start:start + _IDW_CHUNK]
            dist = cdist(block, coords)
            vals = np.broadcast_to(values, dist.shape)
            result[start:start + len(block)] = _idw_block(dist, vals, power)
        return result

    k = min(n_neighbors or len(values), len(values))
    upper = np.inf if max_distance is None else max_distance
    tree = KDTree(coords)
    dist, idx = tree.query(locations, k=k, distance_upper_bound=upper)
    dist = dist.reshape(len(locations), k)
    idx = idx.reshape(len(locations), k)
    # missing neighbours come back with index == len(values)
    padded = np.append(values, np.nan)
    result[:] = _idw_block(dist, padded[idx], power)
    return result


def idw_interpolate(
    samples: PointSet,
    grid: Grid,
    attribute: str,
    power: float = 2.0,
    n_neighbors: int | None = None,
    max_distance: float | None = None,
) -> RasterLayer:
    """
    Inverse-distance-weighted surface over a grid.

    Each cell takes the IDW prediction at its centre (see
    ``idw_predict``). A cell centre that coincides with a sample takes
    that sample's value.

    Parameters
    ----------
    samples : PointSet
        Known values.
    grid : Grid
        Output grid; must share the samples' CRS.
    attribute : str
        Sample attribute to interpolate.
    power : float
        Distance exponent (> 0). 2 is the usual choice.
    n_neighbors, max_distance : optional
        Restrict each prediction to nearby samples.

    Returns
    -------
    RasterLayer

    Examples
    --------
    >>> grid = Grid.from_resolution(stations.bounds(), 500)
    >>> surface = idw_interpolate(stations, grid, 'nbikes', power=2)
    """
    if len(samples) == 0:
        raise EmptyInputError("IDW needs at least one sample")
    resolve_crs(samples.crs, grid.crs, context='idw_interpolate')
    if is_geographic(samples.crs):
        warnings.warn(
            "IDW uses planar distances; lon/lat coordinates give distorted weights. "
            "Project the samples first for metric results.",
            stacklevel=2,
        )

    centers = grid.cell_centers().reshape(-1, 2)
    predicted = idw_predict(
        samples, centers, attribute, power=power,
        n_neighbors=n_neighbors, max_distance=max_distance,
    )

    print(f"  ✓ IDW: {len(samples)} samples -> {grid.n_rows}x{grid.n_cols} grid (power={power})")
    return RasterLayer(grid, predicted.reshape(grid.shape), name=f"{attribute}_idw")
