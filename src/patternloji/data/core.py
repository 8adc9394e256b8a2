"""
core.py - Core data structures for point pattern analysis

Geometry and raster containers shared by every analysis module:

- Point / PointSet: located observations with attributes
- Polygon / Zone / ZonePartition: containers for spatial aggregation
- BoundingExtent / Grid / RasterLayer: regular raster surfaces

Every entity carries a coordinate reference system (``crs``); ``None``
marks unreferenced local coordinates and only combines with ``None``.
Analysis functions check that the CRS of their inputs agree before
combining them. Coordinates are stored as numpy arrays; attributes as
pandas DataFrames.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Any

import numpy as np
import pandas as pd
import shapely
from shapely.geometry import LinearRing
from shapely.geometry import Polygon as ShapelyPolygon

from .config import EmptyInputError, IncompatibleExtentError, InvalidGeometryError


def _common_crs(member_crs: list, crs: str | None, what: str) -> str | None:
    """
    CRS shared by the members of a collection.

    Members must either all have the same CRS or all have none. An
    explicit ``crs`` must agree with the members' CRS when they have
    one; when they have none it labels the collection.
    """
    distinct = set(member_crs)
    if len(distinct) > 1:
        raise IncompatibleExtentError(f"{what} use more than one CRS: {sorted(map(str, distinct))}")
    member = distinct.pop() if distinct else None
    if crs is not None and member is not None and member != crs:
        raise IncompatibleExtentError(f"{what} use CRS {member!r}, expected {crs!r}")
    return crs if crs is not None else member


# ===========================================================================
# Points
# ===========================================================================


@dataclass(frozen=True)
class Point:
    """
    A single located observation.

    Attributes
    ----------
    x, y : float
        Planar coordinates (or lon/lat for geographic CRS).
    attributes : Mapping
        Read-only attribute mapping, e.g. ``{'nbikes': 12}``.
    crs : str, optional
        Coordinate reference system identifier.
    """

    x: float
    y: float
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)
    crs: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def coords(self) -> tuple[float, float]:
        return (self.x, self.y)


class PointSet:
    """
    Ordered, immutable collection of points.

    Coordinates live in a read-only (n, 2) array; attributes in a
    DataFrame indexed by point id. Index order is stable and is the
    order used by every derived artifact (distance matrices, Voronoi
    cells, rankings).

    Parameters
    ----------
    coords : array-like, shape (n, 2)
        Point coordinates.
    attributes : pd.DataFrame, optional
        One row per point, in the same order as ``coords``.
    crs : str, optional
        Coordinate reference system shared by all points.
    ids : sequence, optional
        Point identifiers. Defaults to 0..n-1.
    """

    def __init__(
        self,
        coords,
        attributes: pd.DataFrame | None = None,
        crs: str | None = None,
        ids: Sequence[Hashable] | None = None,
    ):
        coords = np.asarray(coords, dtype=float)
        if coords.size == 0:
            coords = coords.reshape(0, 2)
        if coords.ndim != 2 or coords.shape[1] != 2:
            raise ValueError(f"coords must have shape (n, 2), got {coords.shape}")
        if not np.isfinite(coords).all():
            raise InvalidGeometryError("Point coordinates must be finite")

        n = len(coords)
        index = pd.Index(ids) if ids is not None else pd.RangeIndex(n)
        if len(index) != n:
            raise ValueError(f"Got {len(index)} ids for {n} points")

        if attributes is None:
            attributes = pd.DataFrame(index=index)
        else:
            if len(attributes) != n:
                raise ValueError(f"Attribute table has {len(attributes)} rows for {n} points")
            attributes = attributes.reset_index(drop=True).set_axis(index, axis=0)

        coords = coords.copy()
        coords.setflags(write=False)
        self._coords = coords
        self._attributes = attributes
        self._crs = crs

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------

    @classmethod
    def from_points(cls, points: Iterable[Point], crs: str | None = None) -> PointSet:
        """
        Build a PointSet from individual Point objects.

        All points must share one CRS, or all have none.
        """
        points = list(points)
        crs = _common_crs([p.crs for p in points], crs, "Points")

        coords = np.array([p.coords for p in points], dtype=float).reshape(-1, 2)
        attributes = pd.DataFrame([dict(p.attributes) for p in points])
        return cls(coords, attributes=attributes, crs=crs)

    # -----------------------------------------------------------------------
    # Properties
    # -----------------------------------------------------------------------

    @property
    def coords(self) -> np.ndarray:
        """Read-only (n, 2) coordinate array."""
        return self._coords

    @property
    def x(self) -> np.ndarray:
        return self._coords[:, 0]

    @property
    def y(self) -> np.ndarray:
        return self._coords[:, 1]

    @property
    def ids(self) -> pd.Index:
        return self._attributes.index

    @property
    def attributes(self) -> pd.DataFrame:
        """Copy of the attribute table."""
        return self._attributes.copy()

    @property
    def crs(self) -> str | None:
        return self._crs

    def __len__(self) -> int:
        return len(self._coords)

    def __getitem__(self, i: int) -> Point:
        x, y = self._coords[i]
        attrs = self._attributes.iloc[i].to_dict() if len(self._attributes.columns) else {}
        return Point(x, y, attrs, crs=self._crs)

    def __iter__(self) -> Iterator[Point]:
        for i in range(len(self)):
            yield self[i]

    def values(self, attribute: str) -> np.ndarray:
        """Get one attribute column as a numpy array."""
        if attribute not in self._attributes.columns:
            raise ValueError(f"'{attribute}' not found in point attributes. Available: {list(self._attributes.columns)}")
        return self._attributes[attribute].to_numpy()

    def subset(self, indices) -> PointSet:
        """
        Subset by integer positions or a boolean mask.

        Parameters
        ----------
        indices : np.ndarray
            Integer positions or boolean mask.

        Returns
        -------
        PointSet
            New PointSet with the selected points, in the given order.
        """
        indices = np.asarray(indices)
        if indices.dtype == bool:
            indices = np.flatnonzero(indices)
        indices = indices.astype(int, copy=False)
        return PointSet(
            self._coords[indices],
            attributes=self._attributes.iloc[indices],
            crs=self._crs,
            ids=self.ids[indices],
        )

    def bounds(self) -> BoundingExtent:
        """Bounding extent of all points."""
        return BoundingExtent.from_coords(self._coords, crs=self._crs)

    # -----------------------------------------------------------------------
    # Export
    # -----------------------------------------------------------------------

    def to_dataframe(self) -> pd.DataFrame:
        """Attributes with 'x' and 'y' columns prepended."""
        df = self._attributes.copy()
        df.insert(0, "y", self.y)
        df.insert(0, "x", self.x)
        return df

    def to_geopandas(self) -> gpd.GeoDataFrame:  # noqa: F821
        """Convert to a GeoDataFrame with Point geometry."""
        import geopandas as gpd

        return gpd.GeoDataFrame(
            self._attributes.copy(),
            geometry=shapely.points(self._coords),
            crs=self._crs,
        )

    def summary(self) -> dict:
        return {
            "n_points": len(self),
            "crs": self._crs,
            "attributes": list(self._attributes.columns),
        }

    def __repr__(self) -> str:
        return f"PointSet({len(self)} points, crs={self._crs}, attributes={list(self._attributes.columns)})"


# ===========================================================================
# Polygons and zones
# ===========================================================================


def validate_ring(ring) -> np.ndarray:
    """
    Validate a polygon ring and return it as an (k, 2) float array.

    A valid ring is closed (first vertex == last vertex), has at least
    three distinct vertices and does not intersect itself.

    Raises
    ------
    InvalidGeometryError
    """
    arr = np.asarray(ring, dtype=float)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise InvalidGeometryError(f"Ring must be a sequence of (x, y) pairs, got shape {arr.shape}")
    if not np.isfinite(arr).all():
        raise InvalidGeometryError("Ring coordinates must be finite")
    if len(arr) < 2 or not np.array_equal(arr[0], arr[-1]):
        raise InvalidGeometryError("Ring is not closed (first vertex must equal last vertex)")
    if len(np.unique(arr[:-1], axis=0)) < 3:
        raise InvalidGeometryError(f"Ring has fewer than 3 distinct vertices ({len(arr) - 1} listed)")
    if not LinearRing(arr).is_simple:
        raise InvalidGeometryError("Ring is self-intersecting")
    return arr


class Polygon:
    """
    Polygon with one exterior ring and optional hole rings.

    Rings are validated on construction; invalid rings raise
    InvalidGeometryError.

    Parameters
    ----------
    exterior : sequence of (x, y)
        Closed outer ring.
    holes : sequence of rings, optional
        Closed inner rings.
    crs : str, optional
        Coordinate reference system.
    """

    def __init__(self, exterior, holes: Sequence = (), crs: str | None = None):
        exterior = validate_ring(exterior)
        holes = tuple(validate_ring(h) for h in holes)
        for ring in (exterior, *holes):
            ring.setflags(write=False)
        self._exterior = exterior
        self._holes = holes
        self._crs = crs

    @classmethod
    def from_shapely(cls, geom, crs: str | None = None) -> Polygon:
        """Build from a shapely Polygon."""
        if geom.geom_type != "Polygon":
            raise InvalidGeometryError(f"Expected a Polygon geometry, got {geom.geom_type}; explode multi-part geometries first")
        if geom.is_empty:
            raise InvalidGeometryError("Polygon geometry is empty")
        return cls(
            np.asarray(geom.exterior.coords)[:, :2],
            holes=[np.asarray(h.coords)[:, :2] for h in geom.interiors],
            crs=crs,
        )

    @classmethod
    def from_bounds(cls, xmin: float, ymin: float, xmax: float, ymax: float, crs: str | None = None) -> Polygon:
        """Axis-aligned rectangle, counter-clockwise."""
        return cls([(xmin, ymin), (xmax, ymin), (xmax, ymax), (xmin, ymax), (xmin, ymin)], crs=crs)

    @property
    def exterior(self) -> np.ndarray:
        return self._exterior

    @property
    def holes(self) -> tuple[np.ndarray, ...]:
        return self._holes

    @property
    def rings(self) -> tuple[np.ndarray, ...]:
        return (self._exterior, *self._holes)

    @property
    def crs(self) -> str | None:
        return self._crs

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        xmin, ymin = self._exterior.min(axis=0)
        xmax, ymax = self._exterior.max(axis=0)
        return (float(xmin), float(ymin), float(xmax), float(ymax))

    @cached_property
    def geometry(self) -> ShapelyPolygon:
        """Equivalent shapely geometry (prepared for repeated queries)."""
        geom = ShapelyPolygon(self._exterior, [h for h in self._holes])
        shapely.prepare(geom)
        return geom

    def __repr__(self) -> str:
        return f"Polygon({len(self._exterior) - 1} vertices, {len(self._holes)} holes, crs={self._crs})"


@dataclass(frozen=True)
class Zone:
    """A keyed polygon with attributes (e.g. an administrative area)."""

    key: Hashable
    polygon: Polygon
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))


class ZonePartition:
    """
    Ordered set of zones used as containers for aggregation.

    Zones need not be contiguous or exhaustive. Keys must be unique.
    All zone polygons must share the partition's CRS.
    """

    def __init__(self, zones: Iterable[Zone], crs: str | None = None):
        zones = list(zones)
        keys = [z.key for z in zones]
        if len(set(keys)) != len(keys):
            dupes = pd.Index(keys)[pd.Index(keys).duplicated()].unique().tolist()
            raise ValueError(f"Zone keys must be unique; duplicated: {dupes}")

        self._zones = tuple(zones)
        self._crs = _common_crs([z.polygon.crs for z in zones], crs, "Zones")

    @property
    def zones(self) -> tuple[Zone, ...]:
        return self._zones

    @property
    def keys(self) -> pd.Index:
        return pd.Index([z.key for z in self._zones], name="zone")

    @property
    def crs(self) -> str | None:
        return self._crs

    def __len__(self) -> int:
        return len(self._zones)

    def __iter__(self) -> Iterator[Zone]:
        return iter(self._zones)

    def __getitem__(self, i: int) -> Zone:
        return self._zones[i]

    def to_geopandas(self) -> gpd.GeoDataFrame:  # noqa: F821
        """One row per zone with its attributes and geometry."""
        import geopandas as gpd

        return gpd.GeoDataFrame(
            [dict(z.attributes) for z in self._zones],
            index=self.keys,
            geometry=[z.polygon.geometry for z in self._zones],
            crs=self._crs,
        )

    def __repr__(self) -> str:
        return f"ZonePartition({len(self)} zones, crs={self._crs})"


# ===========================================================================
# Extents and rasters
# ===========================================================================


@dataclass(frozen=True)
class BoundingExtent:
    """Axis-aligned box (xmin, ymin, xmax, ymax)."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float
    crs: str | None = None

    def __post_init__(self):
        values = np.array([self.xmin, self.ymin, self.xmax, self.ymax], dtype=float)
        if not np.isfinite(values).all():
            raise InvalidGeometryError("Extent bounds must be finite")
        if self.xmin > self.xmax or self.ymin > self.ymax:
            raise InvalidGeometryError(
                f"Invalid extent: xmin={self.xmin}, xmax={self.xmax}, ymin={self.ymin}, ymax={self.ymax}"
            )

    @classmethod
    def from_coords(cls, coords, crs: str | None = None) -> BoundingExtent:
        coords = np.asarray(coords, dtype=float).reshape(-1, 2)
        if len(coords) == 0:
            raise EmptyInputError("Cannot compute the extent of an empty point set")
        xmin, ymin = coords.min(axis=0)
        xmax, ymax = coords.max(axis=0)
        return cls(float(xmin), float(ymin), float(xmax), float(ymax), crs=crs)

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.xmin, self.ymin, self.xmax, self.ymax)

    def buffer(self, margin: float) -> BoundingExtent:
        """Grow the extent by ``margin`` on every side."""
        return BoundingExtent(
            self.xmin - margin, self.ymin - margin, self.xmax + margin, self.ymax + margin, crs=self.crs
        )

    def contains_points(self, coords) -> np.ndarray:
        """Boolean mask of coordinates inside the closed extent."""
        coords = np.asarray(coords, dtype=float).reshape(-1, 2)
        x, y = coords[:, 0], coords[:, 1]
        return (x >= self.xmin) & (x <= self.xmax) & (y >= self.ymin) & (y <= self.ymax)

    def to_polygon(self) -> Polygon:
        return Polygon.from_bounds(*self.as_tuple(), crs=self.crs)

    def to_shapely(self) -> ShapelyPolygon:
        return shapely.box(*self.as_tuple())


@dataclass(frozen=True)
class Grid:
    """
    Regular grid of ``n_rows x n_cols`` equal cells over an extent.

    Row 0 is the top row (largest y), column 0 the leftmost column.
    """

    extent: BoundingExtent
    n_rows: int
    n_cols: int

    def __post_init__(self):
        if int(self.n_rows) != self.n_rows or int(self.n_cols) != self.n_cols:
            raise ValueError("n_rows and n_cols must be integers")
        if self.n_rows < 1 or self.n_cols < 1:
            raise ValueError(f"Grid needs at least one row and column, got {self.n_rows}x{self.n_cols}")
        if self.extent.width <= 0 or self.extent.height <= 0:
            raise InvalidGeometryError("Grid extent must have positive width and height")

    @classmethod
    def from_resolution(cls, extent: BoundingExtent, resolution: float) -> Grid:
        """
        Grid with square cells of side ``resolution`` anchored at (xmin, ymin).

        The extent is grown to the right and upwards so that it is
        covered by whole cells.
        """
        if resolution <= 0:
            raise ValueError(f"resolution must be positive, got {resolution}")
        n_cols = max(1, int(np.ceil(extent.width / resolution)))
        n_rows = max(1, int(np.ceil(extent.height / resolution)))
        snapped = BoundingExtent(
            extent.xmin,
            extent.ymin,
            extent.xmin + n_cols * resolution,
            extent.ymin + n_rows * resolution,
            crs=extent.crs,
        )
        return cls(snapped, n_rows, n_cols)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.n_rows, self.n_cols)

    @property
    def crs(self) -> str | None:
        return self.extent.crs

    @property
    def cell_width(self) -> float:
        return self.extent.width / self.n_cols

    @property
    def cell_height(self) -> float:
        return self.extent.height / self.n_rows

    @property
    def cell_area(self) -> float:
        return self.cell_width * self.cell_height

    def cell_centers(self) -> np.ndarray:
        """Cell centre coordinates, shape (n_rows, n_cols, 2)."""
        xs = self.extent.xmin + (np.arange(self.n_cols) + 0.5) * self.cell_width
        ys = self.extent.ymax - (np.arange(self.n_rows) + 0.5) * self.cell_height
        xx, yy = np.meshgrid(xs, ys)
        return np.stack([xx, yy], axis=-1)

    def x_edges(self) -> np.ndarray:
        """Column boundaries, left to right (``n_cols + 1`` values)."""
        return self.extent.xmin + np.arange(self.n_cols + 1) * self.extent.width / self.n_cols

    def y_edges(self) -> np.ndarray:
        """Row boundaries, bottom to top (``n_rows + 1`` values)."""
        return self.extent.ymin + np.arange(self.n_rows + 1) * self.extent.height / self.n_rows

    def locate(self, coords) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Map coordinates to cells.

        Cells are half-open ``[x0, x1) x [y0, y1)``; the last column and
        the top row are closed so points on the extent edge are kept.
        Coordinates are compared against the cell edges directly, so a
        point on an interior edge always lands in the cell above/right.

        Returns
        -------
        rows, cols : np.ndarray
            Cell indices (only meaningful where ``inside`` is True).
        inside : np.ndarray
            Mask of coordinates within the extent.
        """
        coords = np.asarray(coords, dtype=float).reshape(-1, 2)
        inside = self.extent.contains_points(coords)
        cols = np.searchsorted(self.x_edges(), coords[:, 0], side='right') - 1
        rows_from_bottom = np.searchsorted(self.y_edges(), coords[:, 1], side='right') - 1
        cols = np.clip(cols, 0, self.n_cols - 1)
        rows_from_bottom = np.clip(rows_from_bottom, 0, self.n_rows - 1)
        return self.n_rows - 1 - rows_from_bottom, cols, inside

    def cell_geometries(self) -> np.ndarray:
        """Shapely boxes for all cells, row-major."""
        rows, cols = np.indices(self.shape)
        rows, cols = rows.ravel(), cols.ravel()
        xe, ye = self.x_edges(), self.y_edges()
        top = self.n_rows - rows
        return shapely.box(xe[cols], ye[top - 1], xe[cols + 1], ye[top])

    def __repr__(self) -> str:
        return f"Grid({self.n_rows}x{self.n_cols}, extent={self.extent.as_tuple()}, crs={self.crs})"


@dataclass
class RasterLayer:
    """
    A grid plus one value per cell.

    Attributes
    ----------
    grid : Grid
        Immutable cell geometry.
    values : np.ndarray
        Float array of shape ``grid.shape``. NaN marks "no data".
    name : str
        Label for the layer (e.g. 'nbikes_mean').
    """

    grid: Grid
    values: np.ndarray
    name: str = ""

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=float)
        if self.values.shape != self.grid.shape:
            raise ValueError(f"values shape {self.values.shape} does not match grid shape {self.grid.shape}")

    @property
    def missing(self) -> np.ndarray:
        """Mask of "no data" cells."""
        return np.isnan(self.values)

    @property
    def n_missing(self) -> int:
        return int(self.missing.sum())

    def copy(self, name: str | None = None) -> RasterLayer:
        return RasterLayer(self.grid, self.values.copy(), name=self.name if name is None else name)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per cell: row, col, cell centre x/y and value."""
        rows, cols = np.indices(self.grid.shape)
        centers = self.grid.cell_centers()
        return pd.DataFrame(
            {
                "row": rows.ravel(),
                "col": cols.ravel(),
                "x": centers[..., 0].ravel(),
                "y": centers[..., 1].ravel(),
                self.name or "value": self.values.ravel(),
            }
        )

    def to_geopandas(self) -> gpd.GeoDataFrame:  # noqa: F821
        """Cells as polygons with their values."""
        import geopandas as gpd

        df = self.to_dataframe()
        return gpd.GeoDataFrame(df, geometry=self.grid.cell_geometries(), crs=self.grid.crs)

    def summary(self) -> dict:
        valid = self.values[~self.missing]
        return {
            "name": self.name,
            "shape": self.grid.shape,
            "n_missing": self.n_missing,
            "min": float(valid.min()) if valid.size else np.nan,
            "max": float(valid.max()) if valid.size else np.nan,
            "mean": float(valid.mean()) if valid.size else np.nan,
        }

    def __repr__(self) -> str:
        s = self.summary()
        return f"RasterLayer(name={s['name']!r}, shape={s['shape']}, n_missing={s['n_missing']})"
