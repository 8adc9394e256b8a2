"""
test_geometry.py - Tests for area, containment and bounding extents
"""

import numpy as np
import pytest

from patternloji.data import EmptyInputError, IncompatibleExtentError, InvalidGeometryError, Point, PointSet, Polygon
from patternloji.spatial.shared import (
    area,
    bounding_extent,
    contains,
    contains_points,
    interior_points,
    signed_area,
)

SQUARE = [(0, 0), (4, 0), (4, 4), (0, 4), (0, 0)]
HOLE = [(1, 1), (2, 1), (2, 2), (1, 2), (1, 1)]
# an irregular simple pentagon
PENTAGON = [(0, 0), (5, 1), (6, 4), (2, 6), (-1, 3), (0, 0)]


class TestArea:

    def test_square(self):
        assert area([SQUARE]) == pytest.approx(16.0)

    def test_hole_is_subtracted(self):
        assert area(Polygon(SQUARE, holes=[HOLE])) == pytest.approx(15.0)

    def test_reversed_ring_flips_sign_only(self):
        """Reversing vertex order flips the signed area, magnitude unchanged."""
        forward = signed_area(PENTAGON)
        backward = signed_area(PENTAGON[::-1])
        assert forward == pytest.approx(-backward)
        assert area([PENTAGON]) == pytest.approx(area([PENTAGON[::-1]]))

    def test_counter_clockwise_is_positive(self):
        assert signed_area(SQUARE) > 0

    @pytest.mark.parametrize("start", [1, 2, 3, 4])
    def test_start_vertex_invariance(self, start):
        """Re-listing the ring from another vertex keeps the area."""
        ring = PENTAGON[:-1]
        rotated = ring[start:] + ring[:start]
        rotated = rotated + [rotated[0]]
        assert signed_area(rotated) == pytest.approx(signed_area(PENTAGON))

    def test_matches_shapely(self):
        poly = Polygon(PENTAGON)
        assert area(poly) == pytest.approx(poly.geometry.area)

    def test_large_offset_coordinates(self):
        """British National Grid sized coordinates keep full precision."""
        offset = np.array([530000.0, 180000.0])
        ring = [tuple(np.array(v) + offset) for v in SQUARE]
        assert area([ring]) == pytest.approx(16.0)


class TestInvalidRings:

    def test_unclosed_ring(self):
        with pytest.raises(InvalidGeometryError, match="not closed"):
            area([[(0, 0), (1, 0), (1, 1), (0, 1)]])

    def test_too_few_vertices(self):
        with pytest.raises(InvalidGeometryError, match="fewer than 3"):
            signed_area([(0, 0), (1, 1), (0, 0)])

    def test_self_intersecting(self):
        bowtie = [(0, 0), (2, 2), (2, 0), (0, 2), (0, 0)]
        with pytest.raises(InvalidGeometryError, match="self-intersecting"):
            Polygon(bowtie)

    def test_empty_polygon(self):
        with pytest.raises(InvalidGeometryError):
            area([])


class TestContains:

    @pytest.fixture
    def square(self):
        return Polygon(SQUARE)

    def test_interior(self, square):
        assert contains(square, (2, 2))

    def test_outside(self, square):
        assert not contains(square, (5, 2))

    @pytest.mark.parametrize("pt", [(0, 2), (4, 4), (2, 0), (0, 0)])
    def test_boundary_is_contained(self, square, pt):
        """Edges and vertices count as inside."""
        assert contains(square, pt)

    def test_hole_excluded(self):
        poly = Polygon(SQUARE, holes=[HOLE])
        assert not contains(poly, (1.5, 1.5))
        assert contains(poly, (1, 1.5))  # hole edge is polygon boundary

    def test_point_object_crs_checked(self):
        poly = Polygon(SQUARE, crs="EPSG:27700")
        with pytest.raises(IncompatibleExtentError):
            contains(poly, Point(1, 1, crs="EPSG:3857"))

    def test_vectorised_matches_scalar(self):
        poly = Polygon(PENTAGON)
        rng = np.random.default_rng(0)
        coords = rng.uniform(-2, 7, size=(300, 2))
        expected = [contains(poly, tuple(c)) for c in coords]
        assert list(contains_points(poly, coords)) == expected

    def test_interior_excludes_boundary(self, square):
        mask = interior_points(square, [(2, 2), (0, 2)])
        assert list(mask) == [True, False]


class TestBoundingExtent:

    def test_from_point_set(self, corner_samples):
        ext = bounding_extent(corner_samples)
        assert ext.as_tuple() == (0.0, 0.0, 10.0, 10.0)
        assert ext.area == 100.0

    def test_from_array(self):
        ext = bounding_extent(np.array([(3, -1), (-2, 5)]))
        assert ext.as_tuple() == (-2.0, -1.0, 3.0, 5.0)

    def test_empty(self):
        with pytest.raises(EmptyInputError):
            bounding_extent(PointSet(np.empty((0, 2))))
