"""
conftest.py - Shared test fixtures for patternloji

pytest reads this file before running any test. Every fixture defined
here is available to all test files by name, without importing it.

    @pytest.fixture
    def my_fixture():
        return something_useful

    def test_something(my_fixture):   ← pytest injects the fixture by name
        assert my_fixture == expected
"""

import numpy as np
import pandas as pd
import pytest

from patternloji.data.core import BoundingExtent, Grid, PointSet, Polygon, Zone, ZonePartition

# ===========================================================================
# Constants — the size of our fake dataset
# ===========================================================================

N_POINTS = 200   # fake docking stations
EXTENT = 10.0    # square study area 0..10 in both directions


# ===========================================================================
# Fixture 1: random stations with a bike count attribute
# ===========================================================================


@pytest.fixture
def stations():
    """
    200 points scattered uniformly over a 10 × 10 square.

    Attributes:
      - nbikes : integer bike count 0–29
      - name   : 'station_<i>'
    """
    rng = np.random.default_rng(42)  # fixed seed → reproducible
    coords = rng.uniform(0, EXTENT, size=(N_POINTS, 2))
    attributes = pd.DataFrame(
        {
            "nbikes": rng.integers(0, 30, N_POINTS),
            "name": [f"station_{i}" for i in range(N_POINTS)],
        }
    )
    return PointSet(coords, attributes=attributes)


# ===========================================================================
# Fixture 2: the four-corner scenario
# ===========================================================================


@pytest.fixture
def corner_samples():
    """
    Four samples on the corners of the 10 × 10 square:

        (0, 10) = 6    (10, 10) = 8
        (0,  0) = 2    (10,  0) = 4
    """
    coords = [(0, 0), (10, 0), (0, 10), (10, 10)]
    return PointSet(coords, attributes=pd.DataFrame({"value": [2.0, 4.0, 6.0, 8.0]}))


@pytest.fixture
def square_extent():
    return BoundingExtent(0.0, 0.0, EXTENT, EXTENT)


# ===========================================================================
# Fixture 3: a 2 × 2 partition of the square into quadrants
# ===========================================================================


@pytest.fixture
def quadrants():
    """
    Four 5 × 5 zones that tile the study square with no gaps or overlaps.

    Order: SW, SE, NW, NE.
    """
    zones = [
        Zone("SW", Polygon.from_bounds(0, 0, 5, 5), {"code": 1}),
        Zone("SE", Polygon.from_bounds(5, 0, 10, 5), {"code": 2}),
        Zone("NW", Polygon.from_bounds(0, 5, 5, 10), {"code": 3}),
        Zone("NE", Polygon.from_bounds(5, 5, 10, 10), {"code": 4}),
    ]
    return ZonePartition(zones)


@pytest.fixture
def grid_5x5(square_extent):
    """5 × 5 grid of 2 × 2 cells over the study square."""
    return Grid(square_extent, n_rows=5, n_cols=5)
