"""Siting Bounded Context - Value Objects.

Immutable configuration, placement and result structures for the antenna
coverage-placement engine. All validation occurs at construction time via
Pydantic; a PlacementConfig that exists is a usable configuration.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.coverage.value_objects import Lattice
from domain.geometry.services import polygon_area
from domain.geometry.value_objects import AxisClearances, Point, Polygon
from domain.siting.spacing import spacing_multiplier_from_percent

# ---------------------------------------------------------------------------
# Policy defaults
# ---------------------------------------------------------------------------
# Empirically tuned, not derived: treat as tunable policy.
WALL_BUFFER_FACTOR = 0.6
CORRIDOR_TOTAL_WIDTH_FACTOR = 1.2
DEFAULT_TOLERANCE_PERCENT = 1.0
DEFAULT_MAX_PLACEMENTS = 1000


class PlacementStrategy(str, Enum):
    """Placement loop selection.

    ADAPTIVE is the tolerance-driven greedy with gap re-seeding. GRID_SEED
    relaxes a fixed seed lattice and runs a plain greedy cover under the
    minimum-spacing rule; it is fully repeatable.
    """

    ADAPTIVE = "adaptive"
    GRID_SEED = "grid_seed"


# ---------------------------------------------------------------------------
# PlacementConfig
# ---------------------------------------------------------------------------
class PlacementConfig(BaseModel):
    """Placement engine configuration (Value Object).

    Distances are expressed as factors of the coverage radius, so one config
    serves regions drawn in pixels or meters alike.
    """

    radius: float | None = Field(default=None, gt=0, allow_inf_nan=False)

    # Clearance policy
    wall_buffer_factor: float = Field(default=WALL_BUFFER_FACTOR, ge=0)
    exclusion_buffer_factor: float = Field(default=WALL_BUFFER_FACTOR, ge=0)
    corridor_width_factor: float = Field(default=CORRIDOR_TOTAL_WIDTH_FACTOR, ge=0)

    # Convergence
    tolerance_percent: float = Field(default=DEFAULT_TOLERANCE_PERCENT, ge=0, le=100)
    max_placements: int = Field(default=DEFAULT_MAX_PLACEMENTS, ge=1)
    spacing_factor: float = Field(default=1.0, gt=0)

    # Lattices / strategy
    lattice: Lattice = Lattice.GRID  # coverage samples
    seed_lattice: Lattice = Lattice.HEX  # GRID_SEED candidate seeds
    strategy: PlacementStrategy = PlacementStrategy.ADAPTIVE

    # Adaptive greedy scoring
    candidate_spacing_factor: float = Field(default=0.5, gt=0)
    max_candidates: int = Field(default=10_000, ge=1)  # caps the candidate/seed lattice
    edge_penalty_weight: float = Field(default=0.3, ge=0)
    overlap_penalty_weight: float = Field(default=0.6, ge=0)
    packing_efficiency: float = Field(default=0.65, gt=0, le=1)
    safety_factor: float = Field(default=2.5, gt=0)
    stagnation_limit: int = Field(default=5, ge=1)
    reseed_interval: int = Field(default=3, ge=1)
    reseed_count: int = Field(default=3, ge=0)
    cluster_radius_factor: float = Field(default=0.9, gt=0)

    # Relaxer
    max_relax_iterations: int = Field(default=30, ge=0)
    radial_step_factor: float = Field(default=0.2, gt=0)
    radial_max_factor: float = Field(default=4.0, gt=0)

    # Sampling and budgets
    min_cell_size: float = Field(default=1e-3, gt=0)
    max_samples: int = Field(default=60_000, ge=1)
    time_budget_s: float | None = Field(default=None, gt=0)
    max_iterations: int = Field(default=10_000, ge=1)

    # Post-processing
    post_filter_spacing: bool = False
    prune_redundant: bool = True

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_scale(self) -> "PlacementConfig":
        if self.radius is not None and self.min_cell_size >= self.radius:
            raise ValueError(
                f"min_cell_size ({self.min_cell_size}) must be smaller than "
                f"radius ({self.radius})"
            )
        return self

    @classmethod
    def from_grid_spacing_percent(
        cls, percent: float, **overrides: object
    ) -> "PlacementConfig":
        """Build a config from a "grid spacing %" slider value.

        100 % spaces centres one diameter apart; lower values overlap disks,
        higher values leave gaps. The value is clamped to [20, 150].
        """
        return cls(spacing_factor=spacing_multiplier_from_percent(percent), **overrides)

    # Derived distances -----------------------------------------------------
    def wall_buffer(self, radius: float) -> float:
        return radius * self.wall_buffer_factor

    def exclusion_buffer(self, radius: float) -> float:
        return radius * self.exclusion_buffer_factor

    def corridor_max_width(self, radius: float) -> float:
        return radius * self.corridor_width_factor

    @property
    def target_percent(self) -> float:
        return 100.0 - self.tolerance_percent

    @property
    def overlap_percent(self) -> float:
        """Overlap implied by spacing_factor (negative means gaps)."""
        return 100.0 - self.spacing_factor * 100.0

    def tolerance_count(self, total_samples: int) -> float:
        """Uncovered samples allowed before the region counts as covered."""
        return total_samples * self.tolerance_percent / 100.0


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------
class Placement(BaseModel):
    """A placed coverage disk (Value Object).

    radius is in the same unit as the position coordinates.
    """

    id: str = Field(min_length=1)
    position: Point
    radius: float = Field(gt=0, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    def covers(self, p: Point) -> bool:
        return self.position.distance_to(p) <= self.radius


# ---------------------------------------------------------------------------
# Corridor classification
# ---------------------------------------------------------------------------
class CorridorAxis(str, Enum):
    HORIZONTAL = "horizontal"  # walls to the left and right (X scan)
    VERTICAL = "vertical"  # walls above and below (Y scan)


class CorridorInfo(BaseModel):
    """Narrow-corridor classification of one point (Value Object).

    Invariants:
        is_corridor is True exactly when axis is set.
    """

    is_corridor: bool
    axis: CorridorAxis | None = None
    clearances: AxisClearances

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_axis(self) -> "CorridorInfo":
        if self.is_corridor != (self.axis is not None):
            raise ValueError("is_corridor must be True exactly when axis is set")
        return self


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------
class PlacementIssue(str, Enum):
    """Recoverable conditions reported instead of raised."""

    DEGENERATE_REGION = "degenerate_region"
    FULLY_EXCLUDED_REGION = "fully_excluded_region"
    UNPLACEABLE_CANDIDATE = "unplaceable_candidate"
    BUDGET_EXCEEDED = "budget_exceeded"


class StopReason(str, Enum):
    """Why the placement loop ended."""

    EMPTY = "empty"  # nothing to cover
    CONVERGED = "converged"
    DYNAMIC_CAP = "dynamic_cap"
    HARD_CAP = "hard_cap"
    STAGNATION = "stagnation"
    CANDIDATES_EXHAUSTED = "candidates_exhausted"
    TIME_BUDGET = "time_budget"
    ITERATION_BUDGET = "iteration_budget"


BUDGET_STOPS = frozenset(
    {StopReason.HARD_CAP, StopReason.TIME_BUDGET, StopReason.ITERATION_BUDGET}
)


class PlacementTrace(BaseModel):
    """Structured diagnostics of one placement computation (Value Object)."""

    strategy: PlacementStrategy
    sample_step: float = Field(default=0.0, ge=0)  # sample cell size
    candidate_count: int = Field(default=0, ge=0)  # relaxed candidates/seeds
    hard_cap: int = Field(default=0, ge=0)  # effective placement cap
    iterations: int = Field(default=0, ge=0)
    stagnation_events: int = Field(default=0, ge=0)
    reseed_events: int = Field(default=0, ge=0)
    seeds_added: int = Field(default=0, ge=0)
    unplaceable_seeds: int = Field(default=0, ge=0)
    spacing_rejections: int = Field(default=0, ge=0)
    pruned: int = Field(default=0, ge=0)
    theoretical_min: float = Field(default=0.0, ge=0)
    stop_reason: StopReason = StopReason.EMPTY
    elapsed_s: float = Field(default=0.0, ge=0)
    issues: tuple[PlacementIssue, ...] = ()

    model_config = ConfigDict(frozen=True)


class PlacementResult(BaseModel):
    """Outcome of place_coverage for one region (Value Object).

    Invariants:
        0 <= uncovered_count <= total_samples
        coverage_percent in [0, 100]
    """

    placements: tuple[Placement, ...]
    coverage_percent: float = Field(ge=0, le=100)
    uncovered_count: int = Field(ge=0)
    total_samples: int = Field(ge=0)
    incomplete: bool
    trace: PlacementTrace

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_counts(self) -> "PlacementResult":
        if self.uncovered_count > self.total_samples:
            raise ValueError(
                f"uncovered_count ({self.uncovered_count}) exceeds "
                f"total_samples ({self.total_samples})"
            )
        return self

    @property
    def stopped_early(self) -> bool:
        """True when a cap or budget, not convergence, ended the loop."""
        return self.trace.stop_reason in BUDGET_STOPS

    def positions(self) -> tuple[Point, ...]:
        return tuple(p.position for p in self.placements)


# ---------------------------------------------------------------------------
# Floor plans (multi-area)
# ---------------------------------------------------------------------------
class FloorPlan(BaseModel):
    """Coverage areas and exclusions of one floor (Value Object).

    Coordinates are in plan units (typically image pixels); meters_per_unit
    is the host's scale, when known.
    """

    name: str = ""
    areas: tuple[Polygon, ...]
    exclusions: tuple[Polygon, ...] = ()
    meters_per_unit: float | None = Field(default=None, gt=0, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    def radius_to_units(self, radius_m: float) -> float:
        """Convert a radius in meters to plan units.

        Raises:
            ValueError: If the plan has no scale or radius_m is not positive.
        """
        if self.meters_per_unit is None:
            raise ValueError(f"Floor plan {self.name!r} has no scale")
        if not radius_m > 0:
            raise ValueError(f"radius_m must be positive, got {radius_m}")
        return radius_m / self.meters_per_unit

    def total_area(self) -> float:
        """Sum of coverage area polygons, in square plan units."""
        return sum(polygon_area(a) for a in self.areas)

    def total_area_m2(self) -> float | None:
        if self.meters_per_unit is None:
            return None
        return self.total_area() * self.meters_per_unit**2


class FloorPlacementResult(BaseModel):
    """Per-area results of one floor, in area order (Value Object)."""

    results: tuple[PlacementResult, ...]

    model_config = ConfigDict(frozen=True)

    @property
    def placements(self) -> tuple[Placement, ...]:
        return tuple(p for r in self.results for p in r.placements)

    @property
    def total_samples(self) -> int:
        return sum(r.total_samples for r in self.results)

    @property
    def uncovered_count(self) -> int:
        return sum(r.uncovered_count for r in self.results)

    @property
    def coverage_percent(self) -> float:
        """Sample-weighted coverage over all areas."""
        total = self.total_samples
        if total == 0:
            return 0.0
        return (total - self.uncovered_count) / total * 100.0

    @property
    def incomplete(self) -> bool:
        return any(r.incomplete for r in self.results)


# ---------------------------------------------------------------------------
# Advisory report
# ---------------------------------------------------------------------------
class CoverageReport(BaseModel):
    """Summary for the host's coverage advisory panel (Value Object)."""

    coverage_percent: float = Field(ge=0, le=100)
    target_percent: float = Field(ge=0, le=100)
    uncovered_samples: int = Field(ge=0)
    sample_count: int = Field(ge=0)
    antenna_count: int = Field(ge=0)
    theoretical_min: float = Field(ge=0)
    overlap_percent: float
    solver: PlacementStrategy
    incomplete: bool
    stop_reason: StopReason

    model_config = ConfigDict(frozen=True)

    @property
    def meets_target(self) -> bool:
        return self.coverage_percent >= self.target_percent - 1e-9

    def summary_lines(self) -> list[str]:
        """Human-readable lines, one metric per line."""
        lines = [
            f"Coverage achieved: {self.coverage_percent:.2f}%",
            f"Target coverage: {self.target_percent:.2f}%",
            f"Antennas placed: {self.antenna_count}",
            f"Theoretical minimum antennas: {self.theoretical_min:.1f}",
            f"Overlap setting: {self.overlap_percent:.1f}%",
            f"Solver mode: {self.solver.value}",
            f"Uncovered samples: {self.uncovered_samples} of {self.sample_count}",
        ]
        if self.incomplete:
            lines.append(f"Stopped: {self.stop_reason.value} (coverage below target)")
        return lines
