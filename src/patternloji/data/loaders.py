"""
loaders.py - Build point sets and zone partitions from tables and files

Reads coordinates only: points from pandas DataFrames, CSV files or
GeoDataFrames; zones from GeoDataFrames or any vector file that
geopandas can open.
"""

import logging
from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd

from .config import EmptyInputError, InvalidGeometryError, PatternConfig
from .core import PointSet, Polygon, Zone, ZonePartition

logger = logging.getLogger(__name__)


def points_from_dataframe(df: pd.DataFrame, config: PatternConfig | None = None) -> PointSet:
    """
    Create a PointSet from a DataFrame with coordinate columns.

    Rows with missing coordinates are dropped with a warning. Every
    remaining non-coordinate column becomes a point attribute.

    Parameters
    ----------
    df : pd.DataFrame
        Table with x/y columns (names from ``config``).
    config : PatternConfig, optional
        Column names and CRS. Defaults to ``PatternConfig()``.

    Returns
    -------
    PointSet
    """
    config = config or PatternConfig()
    x_col, y_col = config.x_col, config.y_col

    missing = [col for col in (x_col, y_col) if col not in df.columns]
    if missing:
        raise ValueError(f"Missing coordinate columns: {missing}. Available: {list(df.columns)}")

    valid = df[x_col].notna() & df[y_col].notna()
    n_dropped = int((~valid).sum())
    if n_dropped:
        logger.warning(f"Dropping {n_dropped} rows with missing coordinates")
    df = df.loc[valid]

    ids = None
    drop_cols = [x_col, y_col]
    if config.id_col is not None:
        if config.id_col not in df.columns:
            raise ValueError(f"Id column '{config.id_col}' not found")
        ids = df[config.id_col].to_numpy()
        drop_cols.append(config.id_col)

    coords = df[[x_col, y_col]].to_numpy(dtype=float)
    return PointSet(coords, attributes=df.drop(columns=drop_cols), crs=config.crs, ids=ids)


def read_points_csv(path: str | Path, config: PatternConfig | None = None, **read_kwargs) -> PointSet:
    """Read a CSV file of points (see ``points_from_dataframe``)."""
    df = pd.read_csv(path, **read_kwargs)
    return points_from_dataframe(df, config=config)


def points_from_geodataframe(gdf: gpd.GeoDataFrame) -> PointSet:
    """
    Create a PointSet from a GeoDataFrame of Point geometries.

    The GeoDataFrame's CRS becomes the PointSet CRS.
    """
    geom_types = set(gdf.geometry.geom_type.dropna().unique())
    if geom_types - {"Point"}:
        raise InvalidGeometryError(f"Expected Point geometries, got {sorted(geom_types)}")

    valid = gdf.geometry.notna() & ~gdf.geometry.is_empty
    if (~valid).any():
        logger.warning(f"Dropping {int((~valid).sum())} rows with empty geometry")
    gdf = gdf.loc[valid]

    coords = np.column_stack([gdf.geometry.x.to_numpy(), gdf.geometry.y.to_numpy()])
    attributes = pd.DataFrame(gdf.drop(columns=gdf.geometry.name))
    crs = gdf.crs.to_string() if gdf.crs is not None else None
    return PointSet(coords, attributes=attributes, crs=crs, ids=gdf.index)


def zones_from_geodataframe(gdf: gpd.GeoDataFrame, config: PatternConfig | None = None) -> ZonePartition:
    """
    Create a ZonePartition from a GeoDataFrame of Polygon geometries.

    Parameters
    ----------
    gdf : gpd.GeoDataFrame
        One row per zone.
    config : PatternConfig, optional
        ``zone_key_col`` names the key column; if it is absent the
        GeoDataFrame index is used.

    Returns
    -------
    ZonePartition
    """
    config = config or PatternConfig()
    if len(gdf) == 0:
        raise EmptyInputError("GeoDataFrame has no zones")

    crs = gdf.crs.to_string() if gdf.crs is not None else config.crs
    key_col = config.zone_key_col
    if key_col in gdf.columns:
        keys = gdf[key_col].tolist()
    else:
        logger.warning(f"Column '{key_col}' not found, using the GeoDataFrame index as zone keys")
        keys = gdf.index.tolist()

    attr_df = pd.DataFrame(gdf.drop(columns=gdf.geometry.name))
    zones = []
    for key, geom, (_, attrs) in zip(keys, gdf.geometry, attr_df.iterrows(), strict=True):
        if geom is None:
            raise InvalidGeometryError(f"Zone '{key}' has no geometry")
        if geom.geom_type == "MultiPolygon" and len(geom.geoms) == 1:
            geom = geom.geoms[0]
        zones.append(Zone(key, Polygon.from_shapely(geom, crs=crs), attrs.to_dict()))

    print(f"  ✓ Loaded {len(zones)} zones (crs={crs})")
    return ZonePartition(zones, crs=crs)


def read_zones(path: str | Path, config: PatternConfig | None = None, **read_kwargs) -> ZonePartition:
    """Read zones from a vector file (GeoPackage, shapefile, GeoJSON, ...)."""
    gdf = gpd.read_file(path, **read_kwargs)
    return zones_from_geodataframe(gdf, config=config)
