"""Root pytest configuration for all tests.

Provides the standard rooms used across bounded contexts. Geometry is built
directly in memory; only tests/floorplan touches the filesystem.
"""

from __future__ import annotations

import pytest

from domain.geometry.value_objects import Polygon
from domain.siting.value_objects import PlacementConfig
from tests.conftest_utils import rectangle, square


@pytest.fixture
def square_room() -> Polygon:
    """40x40 room; with radius 10 the wall buffer is 6."""
    return square(40.0)


@pytest.fixture
def centre_column() -> Polygon:
    """10x10 exclusion centred in square_room."""
    return rectangle(15.0, 15.0, 25.0, 25.0)


@pytest.fixture
def corridor() -> Polygon:
    """100x8 corridor; narrower than 1.2 * radius for radius 10."""
    return rectangle(0.0, 0.0, 100.0, 8.0)


@pytest.fixture
def default_config() -> PlacementConfig:
    return PlacementConfig()
