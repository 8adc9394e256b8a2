"""
utils.py - Shared utilities for spatial analysis

CRS consistency checks, the reducer registry used by aggregation,
binning and focal operations, and small numeric helpers.
"""
from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache

import numpy as np
import pandas as pd
from pyproj import CRS

from ...data.config import IncompatibleExtentError

Reducer = str | Callable

# name -> function applied to a 1-D array of valid values
REDUCERS: dict[str, Callable[[np.ndarray], float]] = {
    'count': len,
    'sum': np.sum,
    'mean': np.mean,
    'median': np.median,
    'min': np.min,
    'max': np.max,
    'std': np.std,
}


# ===========================================================================
# Coordinate reference systems
# ===========================================================================


@lru_cache(maxsize=64)
def _to_crs(crs) -> CRS:
    return CRS.from_user_input(crs)


def same_crs(left, right) -> bool:
    """True if two CRS identifiers describe the same system."""
    if left == right:
        return True
    return _to_crs(left) == _to_crs(right)


def resolve_crs(*crs_values, context: str = ''):
    """
    Return the single CRS shared by the inputs.

    ``None`` marks unreferenced (local planar) coordinates. It only
    matches other ``None`` values: mixing georeferenced and
    unreferenced inputs is an error.

    Raises
    ------
    IncompatibleExtentError
        If two values describe different systems, or only some inputs
        have a CRS.
    """
    where = f' in {context}' if context else ''
    specified = [c for c in crs_values if c is not None]
    if not specified:
        return None
    if len(specified) != len(crs_values):
        raise IncompatibleExtentError(
            f"Coordinate reference system missing on some inputs{where}: {list(crs_values)!r}"
        )
    first = specified[0]
    for other in specified[1:]:
        if not same_crs(first, other):
            raise IncompatibleExtentError(
                f"Incompatible coordinate reference systems{where}: {first!r} vs {other!r}"
            )
    return first


def is_geographic(crs) -> bool | None:
    """True for lon/lat systems, False for projected ones, None if unknown."""
    if crs is None:
        return None
    return _to_crs(crs).is_geographic


# ===========================================================================
# Reducers
# ===========================================================================


def validate_reducer(reducer: Reducer) -> Reducer:
    if callable(reducer):
        return reducer
    if reducer not in REDUCERS:
        raise ValueError(f"Unknown reducer: {reducer!r}. Available: {list(REDUCERS)} or a callable")
    return reducer


def empty_value(reducer: Reducer) -> float:
    """Result for an empty group: 0 for count and sum, NaN ("no data") otherwise."""
    if reducer in ('count', 'sum'):
        return 0.0
    return np.nan


def reduce_by_group(
    values: np.ndarray | None,
    groups: np.ndarray,
    n_groups: int,
    reducer: Reducer,
) -> np.ndarray:
    """
    Apply a reducer per integer group label.

    Parameters
    ----------
    values : np.ndarray or None
        One value per member. May be None for ``'count'``.
    groups : np.ndarray
        Group label (0..n_groups-1) per member.
    n_groups : int
        Number of groups, including empty ones.
    reducer : str or callable
        Reducer name from ``REDUCERS`` or a function of a 1-D array.

    Returns
    -------
    np.ndarray
        One value per group; empty groups get ``empty_value(reducer)``.
    """
    reducer = validate_reducer(reducer)
    out = np.full(n_groups, empty_value(reducer), dtype=float)
    groups = np.asarray(groups, dtype=int)
    if len(groups) == 0:
        return out

    if reducer == 'count':
        counts = np.bincount(groups, minlength=n_groups)
        return counts.astype(float)

    if values is None:
        raise ValueError(f"reducer {reducer!r} needs an attribute")
    series = pd.Series(np.asarray(values, dtype=float))
    func = reducer if callable(reducer) else REDUCERS[reducer]
    # drop missing attribute values before reducing
    valid = series.notna().to_numpy()
    grouped = series[valid].groupby(groups[valid]).agg(lambda s: func(s.to_numpy()))
    out[grouped.index.to_numpy(dtype=int)] = grouped.to_numpy(dtype=float)
    return out


def window_reducer(reducer: Reducer) -> Callable[[np.ndarray], float]:
    """
    Wrap a reducer so it ignores NaN ("no data") entries.

    A window with no valid entries yields 0 for ``'count'`` and NaN
    for everything else.
    """
    reducer = validate_reducer(reducer)
    func = reducer if callable(reducer) else REDUCERS[reducer]
    is_count = reducer == 'count'

    def _reduce(window: np.ndarray) -> float:
        valid = window[~np.isnan(window)]
        if valid.size == 0:
            return 0.0 if is_count else np.nan
        return float(func(valid))

    return _reduce


def safe_divide(numerator: np.ndarray,
                denominator: np.ndarray,
                fill_value: float = np.nan) -> np.ndarray:
    """
    Divide arrays, replacing non-finite results with ``fill_value``.

    NaN numerators stay NaN.
    """
    numerator = np.asarray(numerator, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        result = np.asarray(numerator / denominator, dtype=float)
        result[~np.isfinite(result) & ~np.isnan(numerator)] = fill_value
    return result
