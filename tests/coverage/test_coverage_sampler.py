"""Tests for the coverage sampler domain services.

Sample grids are built directly from in-memory polygons. Expected lattice
coordinates are worked out by hand for small boxes.
"""

from __future__ import annotations

import math

import numpy as np
import pytest
from pydantic import ValidationError

from domain.coverage.value_objects import Lattice, SampleGrid
from domain.geometry.value_objects import Bounds, Point, Polygon
from tests.conftest_utils import rectangle, square


# ---------------------------------------------------------------------------
# Test Fixture Helpers
# ---------------------------------------------------------------------------
def create_test_bounds(size: float = 10.0) -> Bounds:
    return Bounds(min_x=0.0, min_y=0.0, max_x=size, max_y=size)


def brute_force_within(points: np.ndarray, x: float, y: float, r: float) -> list[int]:
    d2 = (points[:, 0] - x) ** 2 + (points[:, 1] - y) ** 2
    return [int(i) for i in np.flatnonzero(d2 <= r * r)]


def brute_force_clusters(points: np.ndarray, link: float) -> list[list[int]]:
    """Union-find over every pair within link distance."""
    n = len(points)
    parent = list(range(n))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    for i in range(n):
        for j in range(i + 1, n):
            if np.hypot(*(points[i] - points[j])) <= link:
                parent[find(i)] = find(j)

    groups: dict[int, list[int]] = {}
    for i in range(n):
        groups.setdefault(find(i), []).append(i)
    return sorted(groups.values(), key=lambda g: g[0])


# =============================================================================
# Lattices
# =============================================================================
def test_grid_lattice_cell_centres():
    from domain.coverage.services import lattice_points

    pts = lattice_points(create_test_bounds(10.0), 5.0, Lattice.GRID)
    assert pts.tolist() == [[2.5, 2.5], [7.5, 2.5], [2.5, 7.5], [7.5, 7.5]]


def test_hex_lattice_staggers_odd_rows():
    from domain.coverage.services import lattice_points

    pts = lattice_points(create_test_bounds(10.0), 4.0, Lattice.HEX)
    row_step = 4.0 * math.sqrt(3.0) / 2.0
    ys = sorted(set(np.round(pts[:, 1], 9)))
    assert len(ys) == 3
    assert ys[1] - ys[0] == pytest.approx(row_step)

    row0 = pts[np.isclose(pts[:, 1], ys[0])][:, 0]
    row1 = pts[np.isclose(pts[:, 1], ys[1])][:, 0]
    row2 = pts[np.isclose(pts[:, 1], ys[2])][:, 0]
    assert row0.tolist() == pytest.approx([2.0, 6.0, 10.0])
    assert row1.tolist() == pytest.approx([4.0, 8.0])
    assert row2.tolist() == pytest.approx([2.0, 6.0, 10.0])
    assert len(pts) == 8


def test_lattice_rejects_non_positive_spacing():
    from domain.coverage.services import lattice_points

    with pytest.raises(ValueError, match="spacing"):
        lattice_points(create_test_bounds(), 0.0)


def test_lattice_over_tiny_box_is_empty():
    from domain.coverage.services import lattice_points

    pts = lattice_points(create_test_bounds(1.0), 5.0)
    assert pts.shape == (0, 2)


# =============================================================================
# Cell size
# =============================================================================
def test_derive_cell_size_from_radius():
    from domain.coverage.services import derive_cell_size

    assert derive_cell_size(9.0, Lattice.GRID) == pytest.approx(3.0)
    assert derive_cell_size(9.0, Lattice.HEX) == pytest.approx(4.5)


def test_derive_cell_size_honours_minimum():
    from domain.coverage.services import derive_cell_size

    assert derive_cell_size(1e-6, Lattice.GRID, min_cell_size=0.01) == pytest.approx(0.01)


def test_derive_cell_size_widens_for_large_bounds():
    from domain.coverage.services import derive_cell_size

    bounds = create_test_bounds(10_000.0)
    cell = derive_cell_size(3.0, Lattice.GRID, bounds, max_samples=10_000)
    assert cell > 1.0
    estimated = (bounds.width / cell + 1) * (bounds.height / cell + 1)
    assert estimated <= 10_000


def test_bounded_spacing_unchanged_when_small():
    from domain.coverage.services import bounded_spacing

    assert bounded_spacing(create_test_bounds(40.0), 5.0, 1_000) == 5.0


@pytest.mark.parametrize("lattice", [Lattice.GRID, Lattice.HEX])
def test_bounded_spacing_caps_thin_strip(lattice):
    """A long thin box only shrinks linearly, so one widening pass is not enough."""
    from domain.coverage.services import bounded_spacing, lattice_points

    bounds = Bounds(min_x=0.0, min_y=0.0, max_x=100_000.0, max_y=1.0)
    spacing = bounded_spacing(bounds, 1.0, 1_000, lattice)

    assert spacing > 1.0
    assert lattice_points(bounds, spacing, lattice).shape[0] <= 1_000


# =============================================================================
# Sampler
# =============================================================================
def test_build_grid_square_room():
    from domain.coverage.services import build_grid

    pts = build_grid(square(40.0), [], 10.0 / 3.0)
    assert pts.shape == (144, 2)


def test_build_grid_removes_exclusions():
    from domain.coverage.services import build_grid
    from domain.geometry.services import point_in_polygon

    column = rectangle(15, 15, 25, 25)
    pts = build_grid(square(40.0), [column], 2.0)
    assert len(pts) == 400 - 25
    assert not any(point_in_polygon(Point(x=x, y=y), column) for x, y in pts)


def test_build_grid_ignores_degenerate_exclusions():
    from domain.coverage.services import build_grid

    pts = build_grid(square(40.0), [Polygon.of([(0, 0), (40, 40)])], 2.0)
    assert len(pts) == 400


def test_build_grid_degenerate_region_is_empty():
    from domain.coverage.services import build_grid

    assert build_grid(Polygon.of([(0, 0), (1, 1)]), [], 1.0).shape == (0, 2)


def test_build_sample_grid_small_triangle_large_radius_is_empty():
    """A region smaller than one cell yields no samples."""
    from domain.coverage.services import build_sample_grid

    tri = Polygon.of([(0, 0), (10, 0), (0, 10)])
    grid = build_sample_grid(tri, [], 100.0)
    assert grid.is_empty()
    assert grid.cell_size == pytest.approx(100.0 / 3.0)


def test_sample_grid_points_are_read_only():
    from domain.coverage.services import build_sample_grid

    grid = build_sample_grid(square(40.0), [], 10.0)
    assert grid.size == 144
    with pytest.raises(ValueError):
        grid.points[0, 0] = 99.0


def test_sample_grid_rejects_bad_shape():
    with pytest.raises(ValidationError, match="must be"):
        SampleGrid(points=np.zeros((3, 3)), cell_size=1.0)


def test_sampled_area_tracks_region_area():
    from domain.coverage.services import build_sample_grid

    grid = build_sample_grid(square(40.0), [], 10.0)
    assert grid.sampled_area() == pytest.approx(1600.0)


# =============================================================================
# Coverage measurement
# =============================================================================
def test_measure_coverage_boundary_is_inclusive():
    from domain.coverage.services import measure_coverage

    samples = np.array([[10.0, 0.0], [10.5, 0.0]])
    percent, uncovered = measure_coverage(samples, [Point(x=0, y=0)], 10.0)
    assert uncovered == 1
    assert percent == pytest.approx(50.0)


def test_measure_coverage_empty_inputs():
    from domain.coverage.services import measure_coverage

    assert measure_coverage(np.empty((0, 2)), [Point(x=0, y=0)], 1.0) == (0.0, 0)
    percent, uncovered = measure_coverage(np.array([[1.0, 1.0]]), [], 1.0)
    assert percent == 0.0
    assert uncovered == 1


def test_theoretical_minimum():
    from domain.coverage.services import theoretical_minimum

    assert theoretical_minimum(math.pi * 100 * 0.5, 10.0, 0.5) == pytest.approx(1.0)
    assert theoretical_minimum(0.0, 10.0, 0.5) == 0.0


# =============================================================================
# Spatial index / clustering
# =============================================================================
def test_sample_index_matches_brute_force():
    from domain.coverage.services import SampleIndex

    rng = np.random.default_rng(11)
    points = rng.uniform(0, 50, size=(400, 2))
    index = SampleIndex(points, cell=5.0)
    for x, y in [(0.0, 0.0), (25.0, 25.0), (49.0, 3.0), (-10.0, -10.0)]:
        assert index.within(x, y, 5.0).tolist() == brute_force_within(points, x, y, 5.0)
    # Radius larger than the bucket size still finds everything
    assert index.within(25.0, 25.0, 12.0).tolist() == brute_force_within(points, 25, 25, 12)


def test_sample_index_empty_points():
    from domain.coverage.services import SampleIndex

    index = SampleIndex(np.empty((0, 2)), cell=1.0)
    assert index.within(0.0, 0.0, 1.0).size == 0


def test_cluster_points_chain_linking():
    from domain.coverage.services import cluster_points

    chain = np.array([[0.0, 0.0], [0.9, 0.0], [1.8, 0.0], [2.7, 0.0], [10.0, 0.0]])
    clusters = cluster_points(chain, 1.0)
    assert [c.tolist() for c in clusters] == [[0, 1, 2, 3], [4]]


def test_cluster_points_ordered_by_lowest_index():
    from domain.coverage.services import cluster_points

    pts = np.array([[10.0, 10.0], [0.0, 0.0], [10.5, 10.0]])
    assert [c.tolist() for c in cluster_points(pts, 1.0)] == [[0, 2], [1]]


def test_cluster_points_matches_union_find():
    from domain.coverage.services import cluster_points

    rng = np.random.default_rng(3)
    pts = rng.uniform(0, 30, size=(150, 2))
    got = [c.tolist() for c in cluster_points(pts, 2.5)]
    assert got == brute_force_clusters(pts, 2.5)


def test_cluster_points_empty():
    from domain.coverage.services import cluster_points

    assert cluster_points(np.empty((0, 2)), 1.0) == []
