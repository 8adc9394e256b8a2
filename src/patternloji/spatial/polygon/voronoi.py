"""
voronoi.py - Voronoi tessellation clipped to an extent

Partitions an extent into nearest-point regions, one per input point.
Each region carries its generating point's id and attributes, so the
tessellation can be used as a simple nearest-neighbour interpolation
(every location takes the value of its closest sample).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import shapely
from shapely.geometry import Polygon as ShapelyPolygon

from ...data.config import DegenerateInputError, EmptyInputError
from ...data.core import BoundingExtent, PointSet, Polygon
from ..shared.utils import resolve_crs

logger = logging.getLogger(__name__)


@dataclass
class VoronoiDiagram:
    """
    Container for a clipped Voronoi tessellation.

    Attributes
    ----------
    cells : np.ndarray
        Shapely polygons, one per input point, in input order. A point
        outside the clip extent may have an empty cell.
    point_ids : pd.Index
        Ids of the generating points.
    attributes : pd.DataFrame
        Generating point attributes, indexed by point id.
    clip_extent : BoundingExtent
        Extent covered by the union of the cells.
    """

    cells: np.ndarray
    point_ids: pd.Index
    attributes: pd.DataFrame
    clip_extent: BoundingExtent
    _polygons: dict = field(default_factory=dict, repr=False)

    def __len__(self) -> int:
        return len(self.cells)

    @property
    def crs(self) -> str | None:
        return self.clip_extent.crs

    def areas(self) -> pd.Series:
        """Cell areas indexed by point id."""
        return pd.Series(shapely.area(self.cells), index=self.point_ids, name='area')

    def polygon(self, i: int) -> Polygon | None:
        """Cell ``i`` as a Polygon, or None if the cell is empty."""
        if i not in self._polygons:
            cell = self.cells[i]
            self._polygons[i] = None if cell.is_empty else Polygon.from_shapely(cell, crs=self.crs)
        return self._polygons[i]

    def locate(self, coords) -> np.ndarray:
        """
        Index of the cell containing each coordinate (-1 if outside).

        Coordinates on a shared edge go to the lowest-index cell.
        """
        coords = np.asarray(coords, dtype=float).reshape(-1, 2)
        tree = shapely.STRtree(self.cells)
        p_idx, c_idx = tree.query(shapely.points(coords), predicate='intersects')
        result = np.full(len(coords), len(self.cells), dtype=int)
        np.minimum.at(result, p_idx, c_idx)
        result[result == len(self.cells)] = -1
        return result

    def to_geopandas(self) -> 'gpd.GeoDataFrame':  # noqa: F821
        """Cells with their generating point attributes."""
        import geopandas as gpd

        gdf = gpd.GeoDataFrame(self.attributes.copy(), geometry=list(self.cells), crs=self.crs)
        gdf['area'] = shapely.area(self.cells)
        return gdf

    def summary(self) -> dict:
        areas = shapely.area(self.cells)
        return {
            'n_cells': len(self),
            'n_empty': int(shapely.is_empty(self.cells).sum()),
            'total_area': float(areas.sum()),
            'extent_area': self.clip_extent.area,
            'mean_area': float(areas.mean()),
        }

    def __repr__(self) -> str:
        s = self.summary()
        return (f"VoronoiDiagram({s['n_cells']} cells, "
                f"total_area={s['total_area']:.4g}, extent_area={s['extent_area']:.4g})")


def _check_coincident(coords: np.ndarray) -> None:
    _, inverse, counts = np.unique(coords, axis=0, return_inverse=True, return_counts=True)
    if (counts > 1).any():
        dup_positions = np.flatnonzero(counts[inverse.ravel()] > 1)
        raise DegenerateInputError(
            f"{int((counts > 1).sum())} locations hold more than one point "
            f"(positions {dup_positions[:10].tolist()}); remove or merge duplicates before tessellating"
        )


def voronoi(points: PointSet, clip_extent: BoundingExtent | None = None) -> VoronoiDiagram:
    """
    Compute the Voronoi tessellation of a point set, clipped to an extent.

    Parameters
    ----------
    points : PointSet
        Generating points. Coincident points are rejected.
    clip_extent : BoundingExtent, optional
        Extent to clip to. Defaults to the points' bounding extent.

    Returns
    -------
    VoronoiDiagram
        One cell per point in input order. Cells do not overlap and
        their union equals ``clip_extent``.

    Raises
    ------
    EmptyInputError
        If there are no points.
    DegenerateInputError
        If two points share a location.
    """
    if len(points) == 0:
        raise EmptyInputError("Cannot tessellate an empty point set")
    if clip_extent is None:
        clip_extent = points.bounds()
    crs = resolve_crs(points.crs, clip_extent.crs, context='voronoi')
    if clip_extent.area <= 0:
        raise DegenerateInputError("Clip extent has zero area")

    coords = points.coords
    _check_coincident(coords)

    n_outside = int((~clip_extent.contains_points(coords)).sum())
    if n_outside:
        logger.warning(f"{n_outside} points lie outside the clip extent; their cells may be empty")

    # envelope comfortably larger than both the points and the clip box
    xmin = min(clip_extent.xmin, coords[:, 0].min())
    ymin = min(clip_extent.ymin, coords[:, 1].min())
    xmax = max(clip_extent.xmax, coords[:, 0].max())
    ymax = max(clip_extent.ymax, coords[:, 1].max())
    margin = max(xmax - xmin, ymax - ymin)
    envelope = shapely.box(xmin - margin, ymin - margin, xmax + margin, ymax + margin)

    if len(points) == 1:
        ordered = np.array([envelope], dtype=object)
    else:
        regions = shapely.voronoi_polygons(shapely.multipoints(coords), extend_to=envelope)
        raw_cells = shapely.get_parts(regions)

        # generators lie strictly inside their own cell
        tree = shapely.STRtree(raw_cells)
        p_idx, c_idx = tree.query(shapely.points(coords), predicate='within')
        if len(p_idx) != len(points) or len(np.unique(p_idx)) != len(points):
            raise DegenerateInputError("Could not match every point to exactly one Voronoi cell")
        ordered = np.empty(len(points), dtype=object)
        ordered[p_idx] = raw_cells[c_idx]

    clipped = shapely.intersection(ordered, clip_extent.to_shapely())
    # slivers that only touch the extent collapse to lines or points
    cells = np.array(
        [c if c.geom_type == 'Polygon' and not c.is_empty else ShapelyPolygon() for c in clipped],
        dtype=object,
    )

    diagram = VoronoiDiagram(
        cells=cells,
        point_ids=points.ids,
        attributes=points.attributes,
        clip_extent=BoundingExtent(*clip_extent.as_tuple(), crs=crs),
    )
    print(f"  ✓ Voronoi: {len(points)} cells clipped to extent "
          f"{tuple(round(v, 3) for v in clip_extent.as_tuple())}")
    return diagram
