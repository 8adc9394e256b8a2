"""
test_voronoi.py - Tests for the clipped Voronoi tessellation
"""

import numpy as np
import pandas as pd
import pytest
import shapely

from patternloji.data import BoundingExtent, DegenerateInputError, EmptyInputError, IncompatibleExtentError, PointSet
from patternloji.spatial.polygon import voronoi
from patternloji.spatial.shared import area


@pytest.fixture
def unit_square():
    return BoundingExtent(0.0, 0.0, 1.0, 1.0)


class TestPartition:

    def test_ten_thousand_points_cover_extent(self, unit_square):
        """Cell areas of 10,000 random points sum to the clip extent area."""
        rng = np.random.default_rng(7)
        ps = PointSet(rng.uniform(0, 1, size=(10_000, 2)))
        vor = voronoi(ps, unit_square)
        assert len(vor) == 10_000
        assert vor.areas().sum() == pytest.approx(1.0, rel=1e-6)

    def test_cells_do_not_overlap(self, stations, square_extent):
        """Union area equals the sum of areas, so overlaps have zero area."""
        vor = voronoi(stations, square_extent)
        union = shapely.union_all(vor.cells)
        assert union.area == pytest.approx(vor.areas().sum())
        assert union.area == pytest.approx(square_extent.area)

    def test_each_point_inside_its_own_cell(self, stations, square_extent):
        vor = voronoi(stations, square_extent)
        inside = shapely.intersects_xy(vor.cells, stations.x, stations.y)
        assert inside.all()

    def test_cells_are_nearest_point_regions(self, stations, square_extent):
        """A query location falls in the cell of its nearest generator."""
        vor = voronoi(stations, square_extent)
        rng = np.random.default_rng(3)
        queries = rng.uniform(0, 10, size=(100, 2))
        located = vor.locate(queries)
        d = ((queries[:, None, :] - stations.coords[None, :, :]) ** 2).sum(axis=2)
        np.testing.assert_array_equal(located, d.argmin(axis=1))

    def test_four_symmetric_points(self, square_extent):
        ps = PointSet([(2.5, 2.5), (7.5, 2.5), (2.5, 7.5), (7.5, 7.5)])
        vor = voronoi(ps, square_extent)
        np.testing.assert_allclose(vor.areas().to_numpy(), 25.0)
        assert area(vor.polygon(0)) == pytest.approx(25.0)


class TestAttributes:

    def test_cells_carry_point_attributes(self, stations, square_extent):
        vor = voronoi(stations, square_extent)
        gdf = vor.to_geopandas()
        assert len(gdf) == len(stations)
        assert list(gdf["nbikes"]) == list(stations.values("nbikes"))
        assert list(vor.point_ids) == list(stations.ids)

    def test_default_extent_is_point_bounds(self, corner_samples):
        vor = voronoi(corner_samples)
        assert vor.clip_extent.as_tuple() == (0.0, 0.0, 10.0, 10.0)
        assert vor.areas().sum() == pytest.approx(100.0)


class TestEdgeCases:

    def test_single_point_gets_whole_extent(self, square_extent):
        vor = voronoi(PointSet([(3, 3)]), square_extent)
        assert vor.areas().iloc[0] == pytest.approx(100.0)

    def test_coincident_points_rejected(self, square_extent):
        ps = PointSet([(1, 1), (2, 2), (1, 1)])
        with pytest.raises(DegenerateInputError, match="more than one point"):
            voronoi(ps, square_extent)

    def test_empty_input(self, square_extent):
        with pytest.raises(EmptyInputError):
            voronoi(PointSet(np.empty((0, 2))), square_extent)

    def test_point_outside_extent(self, square_extent):
        ps = PointSet([(5, 5), (50, 50)], attributes=pd.DataFrame({"v": [1, 2]}))
        vor = voronoi(ps, square_extent)
        assert len(vor) == 2
        assert vor.areas().sum() == pytest.approx(100.0)
        assert vor.polygon(1) is None

    def test_crs_mismatch(self):
        ps = PointSet([(0.2, 0.2), (0.8, 0.8)], crs="EPSG:27700")
        with pytest.raises(IncompatibleExtentError):
            voronoi(ps, BoundingExtent(0, 0, 1, 1, crs="EPSG:3857"))
