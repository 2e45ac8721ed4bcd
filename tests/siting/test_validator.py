"""Tests for the placement validator and relaxer.

Standard setup: 40x40 room, optional 10x10 centre column, radius 10, so both
the wall buffer and the exclusion buffer are 6.
"""

from __future__ import annotations

import pytest

from domain.geometry.services import min_distance_to_polygon_edges, min_distance_to_polygons
from domain.geometry.value_objects import Point, Polygon
from tests.conftest_utils import l_shape, rectangle

RADIUS = 10.0
BUFFER = 6.0


# =============================================================================
# is_placement_allowed
# =============================================================================
def test_open_floor_point_allowed(square_room, centre_column, default_config):
    from domain.siting.validator import is_placement_allowed

    assert is_placement_allowed(
        Point(x=8, y=8), square_room, [centre_column], RADIUS, default_config
    )


@pytest.mark.parametrize(
    "p",
    [
        Point(x=50, y=20),  # outside the boundary
        Point(x=20, y=20),  # inside the column
        Point(x=12, y=20),  # 3 units from the column
        Point(x=3, y=20),  # 3 units from the wall, not a corridor
    ],
)
def test_rejected_points(p, square_room, centre_column, default_config):
    from domain.siting.validator import is_placement_allowed

    assert not is_placement_allowed(p, square_room, [centre_column], RADIUS, default_config)


def test_corridor_waives_wall_buffer(corridor, default_config):
    from domain.siting.validator import is_placement_allowed

    assert is_placement_allowed(Point(x=50, y=4), corridor, [], RADIUS, default_config)


def test_corridor_never_waives_exclusion_buffer(corridor, default_config):
    from domain.siting.validator import is_placement_allowed

    pillar = rectangle(52, 3, 54, 5)
    assert not is_placement_allowed(Point(x=50, y=4), corridor, [pillar], RADIUS, default_config)


def test_degenerate_exclusions_are_ignored(square_room, default_config):
    from domain.siting.validator import is_placement_allowed

    line = Polygon.of([(0, 20), (40, 20)])
    assert is_placement_allowed(Point(x=20, y=20), square_room, [line], RADIUS, default_config)


# =============================================================================
# find_nearest_allowed_placement
# =============================================================================
def assert_allowed(p, boundary, exclusions, config):
    from domain.siting.validator import is_placement_allowed

    assert p is not None
    assert is_placement_allowed(p, boundary, exclusions, RADIUS, config)


def test_allowed_point_returned_unchanged(square_room, centre_column, default_config):
    from domain.siting.validator import find_nearest_allowed_placement

    p = Point(x=20, y=8)
    out = find_nearest_allowed_placement(p, square_room, [centre_column], RADIUS, default_config)
    assert out == p


def test_corner_point_pushed_off_walls(square_room, default_config):
    from domain.siting.validator import find_nearest_allowed_placement

    out = find_nearest_allowed_placement(Point(x=2, y=2), square_room, [], RADIUS, default_config)
    assert_allowed(out, square_room, [], default_config)
    assert min_distance_to_polygon_edges(out, square_room) >= BUFFER


def test_point_inside_exclusion_exits_it(square_room, centre_column, default_config):
    from domain.siting.validator import find_nearest_allowed_placement

    out = find_nearest_allowed_placement(
        Point(x=20, y=16), square_room, [centre_column], RADIUS, default_config
    )
    assert_allowed(out, square_room, [centre_column], default_config)
    assert min_distance_to_polygons(out, [centre_column]) >= BUFFER
    # Exits through the nearest (bottom) edge
    assert out.y < 15


def test_point_near_exclusion_moves_away(square_room, centre_column, default_config):
    from domain.siting.validator import find_nearest_allowed_placement

    p = Point(x=12, y=20)
    out = find_nearest_allowed_placement(p, square_room, [centre_column], RADIUS, default_config)
    assert_allowed(out, square_room, [centre_column], default_config)
    assert out.x < p.x


def test_corridor_point_settles_near_centreline(corridor, default_config):
    """Wall pushes alone oscillate across an 8-unit corridor."""
    from domain.siting.validator import find_nearest_allowed_placement

    for y in (0.5, 2.5, 7.5):
        out = find_nearest_allowed_placement(
            Point(x=30, y=y), corridor, [], RADIUS, default_config
        )
        assert_allowed(out, corridor, [], default_config)
        assert abs(out.y - 4.0) <= 0.5 + 1e-9


def test_concave_room_result_stays_inside(default_config):
    from domain.geometry.services import point_in_polygon
    from domain.siting.validator import find_nearest_allowed_placement

    room = l_shape(60.0, 30.0)
    out = find_nearest_allowed_placement(Point(x=31, y=31), room, [], RADIUS, default_config)
    assert_allowed(out, room, [], default_config)
    assert point_in_polygon(out, room)


def test_no_allowed_point_returns_none(square_room, default_config):
    from domain.siting.validator import find_nearest_allowed_placement

    blanket = rectangle(-5, -5, 45, 45)
    out = find_nearest_allowed_placement(
        Point(x=20, y=20), square_room, [blanket], RADIUS, default_config
    )
    assert out is None


def test_degenerate_boundary_returns_none(default_config):
    from domain.siting.validator import find_nearest_allowed_placement

    line = Polygon.of([(0, 0), (10, 0)])
    assert find_nearest_allowed_placement(Point(x=5, y=0), line, [], RADIUS, default_config) is None


def test_active_exclusions_filters_short_rings(centre_column):
    from domain.siting.validator import active_exclusions

    line = Polygon.of([(0, 0), (1, 1)])
    assert active_exclusions([line, centre_column]) == [centre_column]
