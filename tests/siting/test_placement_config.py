"""Tests for PlacementConfig and the siting value objects."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from domain.geometry.value_objects import AxisClearances, Point
from domain.siting.value_objects import (
    CorridorAxis,
    CorridorInfo,
    FloorPlan,
    Placement,
    PlacementConfig,
    PlacementResult,
    PlacementStrategy,
    PlacementTrace,
    StopReason,
)
from tests.conftest_utils import rectangle, square


# =============================================================================
# PlacementConfig
# =============================================================================
def test_defaults():
    cfg = PlacementConfig()
    assert cfg.radius is None
    assert cfg.wall_buffer(10.0) == pytest.approx(6.0)
    assert cfg.exclusion_buffer(10.0) == pytest.approx(6.0)
    assert cfg.corridor_max_width(10.0) == pytest.approx(12.0)
    assert cfg.target_percent == pytest.approx(99.0)
    assert cfg.overlap_percent == pytest.approx(0.0)
    assert cfg.strategy == PlacementStrategy.ADAPTIVE


def test_tolerance_count():
    cfg = PlacementConfig(tolerance_percent=2.5)
    assert cfg.tolerance_count(1000) == pytest.approx(25.0)
    assert cfg.tolerance_count(0) == 0.0


def test_config_is_frozen():
    cfg = PlacementConfig()
    with pytest.raises(ValidationError):
        cfg.tolerance_percent = 5.0  # type: ignore[misc]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"radius": 0.0},
        {"radius": -1.0},
        {"tolerance_percent": -0.1},
        {"tolerance_percent": 100.1},
        {"max_placements": 0},
        {"packing_efficiency": 1.5},
        {"stagnation_limit": 0},
        {"time_budget_s": 0.0},
        {"lattice": "triangle"},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValidationError):
        PlacementConfig(**kwargs)


def test_min_cell_size_must_be_below_radius():
    with pytest.raises(ValidationError, match="min_cell_size"):
        PlacementConfig(radius=0.001, min_cell_size=0.001)
    assert PlacementConfig(radius=0.01, min_cell_size=0.001).radius == 0.01


def test_from_grid_spacing_percent():
    cfg = PlacementConfig.from_grid_spacing_percent(50.0, tolerance_percent=2.0)
    assert cfg.spacing_factor == pytest.approx(0.5)
    assert cfg.overlap_percent == pytest.approx(50.0)
    assert cfg.tolerance_percent == 2.0


def test_string_enums_accepted():
    cfg = PlacementConfig(strategy="grid_seed", lattice="hex")
    assert cfg.strategy == PlacementStrategy.GRID_SEED
    assert cfg.lattice.value == "hex"


# =============================================================================
# Placement / CorridorInfo / PlacementResult
# =============================================================================
def test_placement_covers_inclusive():
    p = Placement(id="ant-0-1", position=Point(x=0, y=0), radius=5.0)
    assert p.covers(Point(x=3, y=4)) is True
    assert p.covers(Point(x=3, y=4.1)) is False


def test_placement_requires_id_and_positive_radius():
    with pytest.raises(ValidationError):
        Placement(id="", position=Point(x=0, y=0), radius=1.0)
    with pytest.raises(ValidationError):
        Placement(id="a", position=Point(x=0, y=0), radius=0.0)


def test_corridor_info_axis_consistency():
    c = AxisClearances()
    with pytest.raises(ValidationError, match="axis"):
        CorridorInfo(is_corridor=True, axis=None, clearances=c)
    with pytest.raises(ValidationError, match="axis"):
        CorridorInfo(is_corridor=False, axis=CorridorAxis.VERTICAL, clearances=c)


def test_placement_result_counts_validated():
    trace = PlacementTrace(strategy=PlacementStrategy.ADAPTIVE)
    with pytest.raises(ValidationError, match="exceeds"):
        PlacementResult(
            placements=(),
            coverage_percent=0.0,
            uncovered_count=5,
            total_samples=4,
            incomplete=True,
            trace=trace,
        )


def test_stopped_early_follows_stop_reason():
    def result(stop):
        return PlacementResult(
            placements=(),
            coverage_percent=0.0,
            uncovered_count=0,
            total_samples=0,
            incomplete=False,
            trace=PlacementTrace(strategy=PlacementStrategy.ADAPTIVE, stop_reason=stop),
        )

    assert result(StopReason.HARD_CAP).stopped_early is True
    assert result(StopReason.TIME_BUDGET).stopped_early is True
    assert result(StopReason.DYNAMIC_CAP).stopped_early is False
    assert result(StopReason.CONVERGED).stopped_early is False


# =============================================================================
# FloorPlan
# =============================================================================
def test_floor_plan_scale_conversion():
    plan = FloorPlan(name="L2", areas=(square(40.0),), meters_per_unit=0.05)
    assert plan.radius_to_units(10.0) == pytest.approx(200.0)
    assert plan.total_area() == pytest.approx(1600.0)
    assert plan.total_area_m2() == pytest.approx(4.0)


def test_floor_plan_without_scale():
    plan = FloorPlan(areas=(rectangle(0, 0, 10, 20),))
    assert plan.total_area_m2() is None
    with pytest.raises(ValueError, match="no scale"):
        plan.radius_to_units(5.0)


def test_floor_plan_rejects_non_positive_radius():
    plan = FloorPlan(areas=(), meters_per_unit=1.0)
    with pytest.raises(ValueError, match="positive"):
        plan.radius_to_units(0.0)
