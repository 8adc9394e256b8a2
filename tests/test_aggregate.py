"""
test_aggregate.py - Tests for point-in-polygon aggregation
"""

import numpy as np
import pandas as pd
import pytest

from patternloji.data import EmptyInputError, IncompatibleExtentError, PointSet, Polygon, Zone, ZonePartition
from patternloji.spatial.polygon import aggregate, zone_areas, zone_density, zone_membership


@pytest.fixture
def boundary_points():
    """Points on shared edges, the shared corner and the outer edge."""
    coords = [(5, 5), (5, 2), (2, 5), (0, 0), (10, 10), (7, 5)]
    return PointSet(coords, attributes=pd.DataFrame({"nbikes": [1, 2, 3, 4, 5, 6]}))


class TestAggregateCounts:

    def test_partition_counts_sum_to_total(self, stations, quadrants):
        """Every point of the square falls in exactly one quadrant."""
        counts = aggregate(stations, quadrants)
        assert counts.sum() == len(stations)

    def test_boundary_points_counted_once(self, boundary_points, quadrants):
        counts = aggregate(boundary_points, quadrants)
        assert counts.sum() == len(boundary_points)

    def test_boundary_tie_break_first_zone(self, boundary_points, quadrants):
        """
        Boundary-only points go to the first touching zone in partition
        order (SW, SE, NW, NE):
          (5,5) -> SW, (5,2) -> SW, (2,5) -> SW, (0,0) -> SW,
          (10,10) -> NE, (7,5) -> SE
        """
        counts = aggregate(boundary_points, quadrants)
        assert counts.to_dict() == {"SW": 4.0, "SE": 1.0, "NW": 0.0, "NE": 1.0}

    def test_result_indexed_by_zone_key_in_order(self, stations, quadrants):
        counts = aggregate(stations, quadrants)
        assert list(counts.index) == ["SW", "SE", "NW", "NE"]

    def test_matches_brute_force(self, stations, quadrants):
        counts = aggregate(stations, quadrants)
        x, y = stations.x, stations.y
        sw = int(((x < 5) & (y < 5)).sum())
        assert counts["SW"] == sw

    def test_points_outside_all_zones(self, quadrants):
        ps = PointSet([(20, 20), (-1, 3)])
        counts = aggregate(ps, quadrants)
        assert counts.sum() == 0


class TestAggregateReducers:

    def test_empty_zone_values(self, quadrants):
        """Zones without points: 0 for count/sum, NaN for mean."""
        ps = PointSet([(1, 1), (2, 2)], attributes=pd.DataFrame({"nbikes": [4, 6]}))
        counts = aggregate(ps, quadrants)
        sums = aggregate(ps, quadrants, "nbikes", "sum")
        means = aggregate(ps, quadrants, "nbikes", "mean")

        assert counts["SE"] == 0
        assert sums["SE"] == 0
        assert np.isnan(means["SE"])
        assert means["SW"] == pytest.approx(5.0)
        assert sums["SW"] == pytest.approx(10.0)

    def test_callable_reducer(self, quadrants):
        ps = PointSet([(1, 1), (2, 2), (3, 3)], attributes=pd.DataFrame({"nbikes": [1, 5, 3]}))
        spread = aggregate(ps, quadrants, "nbikes", lambda v: v.max() - v.min())
        assert spread["SW"] == pytest.approx(4.0)
        assert np.isnan(spread["NE"])

    def test_mean_needs_attribute(self, stations, quadrants):
        with pytest.raises(ValueError, match="needs an attribute"):
            aggregate(stations, quadrants, reducer="mean")

    def test_unknown_reducer(self, stations, quadrants):
        with pytest.raises(ValueError, match="Unknown reducer"):
            aggregate(stations, quadrants, "nbikes", "mode")


class TestOverlapsAndErrors:

    def test_overlapping_zones_count_point_in_each(self):
        zones = ZonePartition([
            Zone("A", Polygon.from_bounds(0, 0, 6, 6)),
            Zone("B", Polygon.from_bounds(4, 4, 10, 10)),
        ])
        ps = PointSet([(5, 5), (1, 1)])
        counts = aggregate(ps, zones)
        assert counts.to_dict() == {"A": 2.0, "B": 1.0}

    def test_membership_pairs(self, quadrants):
        ps = PointSet([(1, 1), (9, 9)])
        point_idx, zone_idx = zone_membership(ps, quadrants)
        assert list(zip(point_idx, zone_idx)) == [(0, 0), (1, 3)]

    def test_empty_partition(self, stations):
        with pytest.raises(EmptyInputError):
            aggregate(stations, ZonePartition([]))

    def test_crs_mismatch(self):
        zones = ZonePartition([Zone("A", Polygon.from_bounds(0, 0, 1, 1, crs="EPSG:27700"))])
        ps = PointSet([(0.5, 0.5)], crs="EPSG:4326")
        with pytest.raises(IncompatibleExtentError):
            aggregate(ps, zones)

    def test_referenced_zones_with_unreferenced_points(self):
        """A missing CRS does not match a real one."""
        zones = ZonePartition([Zone("A", Polygon.from_bounds(0, 0, 1, 1, crs="EPSG:27700"))])
        with pytest.raises(IncompatibleExtentError, match="missing"):
            aggregate(PointSet([(0.5, 0.5)]), zones)

    def test_empty_point_set(self, quadrants):
        counts = aggregate(PointSet(np.empty((0, 2))), quadrants)
        assert (counts == 0).all()


class TestDensity:

    def test_zone_areas(self, quadrants):
        assert list(zone_areas(quadrants)) == [25.0, 25.0, 25.0, 25.0]

    def test_density_is_count_over_area(self, stations, quadrants):
        counts = aggregate(stations, quadrants)
        density = zone_density(stations, quadrants)
        np.testing.assert_allclose(density.to_numpy(), counts.to_numpy() / 25.0)
