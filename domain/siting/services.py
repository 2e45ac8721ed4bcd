"""Siting Bounded Context - Domain Services.

Entry points of the placement engine. Pure computation: no I/O, no state
between calls. Floor-plan loading is implemented by infrastructure adapters
under `src/infrastructure/floorplan/json_adapter.py` via domain ports.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import ValidationError

from domain.coverage.services import build_sample_grid, measure_coverage, theoretical_minimum
from domain.geometry.services import AREA_EPSILON, polygon_area
from domain.geometry.value_objects import Polygon, as_polygons
from domain.siting.errors import InvalidConfigError
from domain.siting.selector import adaptive_select, grid_seed_select
from domain.siting.value_objects import (
    BUDGET_STOPS,
    CoverageReport,
    FloorPlacementResult,
    FloorPlan,
    Placement,
    PlacementConfig,
    PlacementIssue,
    PlacementResult,
    PlacementStrategy,
    PlacementTrace,
    StopReason,
)

logger = logging.getLogger(__name__)

ID_PREFIXES = {
    PlacementStrategy.ADAPTIVE: "ant",
    PlacementStrategy.GRID_SEED: "grid",
}
UNPLACEABLE_WARN_RATIO = 0.5


# ---------------------------------------------------------------------------
# Input normalisation
# ---------------------------------------------------------------------------
def resolve_config(
    config: PlacementConfig | Mapping[str, Any] | None, radius: float
) -> PlacementConfig:
    """Validate radius and config together at the API boundary.

    Raises:
        InvalidConfigError: radius is not a positive finite number, the
            mapping fails validation, or config.radius disagrees with radius.
    """
    if isinstance(radius, bool) or not isinstance(radius, (int, float)):
        raise InvalidConfigError(f"radius must be a number, got {type(radius).__name__}")
    if not math.isfinite(radius) or radius <= 0:
        raise InvalidConfigError(f"radius must be positive and finite, got {radius}")

    if config is None:
        cfg = PlacementConfig()
    elif isinstance(config, PlacementConfig):
        cfg = config
    elif isinstance(config, Mapping):
        try:
            cfg = PlacementConfig.model_validate(dict(config))
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid placement config: {e}") from e
    else:
        raise InvalidConfigError(f"Unsupported config type: {type(config).__name__}")

    if cfg.radius is not None and not math.isclose(cfg.radius, radius):
        raise InvalidConfigError(
            f"config.radius ({cfg.radius}) conflicts with radius ({radius})"
        )
    return cfg


def _empty_result(
    cfg: PlacementConfig, issue: PlacementIssue, started: float, sample_step: float = 0.0
) -> PlacementResult:
    return PlacementResult(
        placements=(),
        coverage_percent=0.0,
        uncovered_count=0,
        total_samples=0,
        incomplete=False,
        trace=PlacementTrace(
            strategy=cfg.strategy,
            sample_step=sample_step,
            stop_reason=StopReason.EMPTY,
            elapsed_s=time.perf_counter() - started,
            issues=(issue,),
        ),
    )


# ---------------------------------------------------------------------------
# Main Service: place_coverage
# ---------------------------------------------------------------------------
def place_coverage(
    region: Polygon | Sequence[Any],
    exclusions: Sequence[Any] | None,
    radius: float,
    config: PlacementConfig | Mapping[str, Any] | None = None,
    *,
    area_index: int = 0,
) -> PlacementResult:
    """Compute placements whose disks cover region to within tolerance.

    Degenerate regions, fully excluded regions and exhausted budgets are not
    errors: they come back as a PlacementResult with the condition recorded
    on the trace.

    Args:
        region: Boundary polygon (Polygon, or a sequence of points)
        exclusions: Keep-out polygons; may be empty or None
        radius: Coverage radius, in the polygon's units
        config: PlacementConfig, a mapping of its fields, or None for defaults
        area_index: Index used in placement ids

    Returns:
        PlacementResult with placements in selection order

    Raises:
        InvalidConfigError: If radius or config is unusable

    Example:
        >>> square = [(0, 0), (40, 0), (40, 40), (0, 40)]
        >>> result = place_coverage(square, [], radius=10.0)
        >>> print(f"{len(result.placements)} antennas, {result.coverage_percent:.1f}%")
    """
    started = time.perf_counter()
    cfg = resolve_config(config, radius)
    region = Polygon.coerce(region)
    exclusions = as_polygons(exclusions)

    if region.is_degenerate or polygon_area(region) < AREA_EPSILON:
        logger.info(
            "Area %d: degenerate region (%d vertices), nothing to place",
            area_index,
            len(region),
        )
        return _empty_result(cfg, PlacementIssue.DEGENERATE_REGION, started)

    grid = build_sample_grid(
        region,
        exclusions,
        radius,
        lattice=cfg.lattice,
        min_cell_size=cfg.min_cell_size,
        max_samples=cfg.max_samples,
    )
    if grid.is_empty():
        logger.info("Area %d: no coverage samples outside exclusions", area_index)
        return _empty_result(
            cfg, PlacementIssue.FULLY_EXCLUDED_REGION, started, grid.cell_size
        )

    area = grid.sampled_area()
    select = adaptive_select if cfg.strategy == PlacementStrategy.ADAPTIVE else grid_seed_select
    selection = select(grid.points, region, exclusions, radius, cfg, area=area)

    percent, uncovered = measure_coverage(grid.points, selection.positions, radius)
    stopped_early = selection.stop_reason in BUDGET_STOPS
    incomplete = uncovered > cfg.tolerance_count(grid.size) or stopped_early

    issues: list[PlacementIssue] = []
    if selection.unplaceable_seeds:
        issues.append(PlacementIssue.UNPLACEABLE_CANDIDATE)
    if stopped_early:
        issues.append(PlacementIssue.BUDGET_EXCEEDED)

    prefix = ID_PREFIXES[cfg.strategy]
    placements = tuple(
        Placement(id=f"{prefix}-{area_index}-{n}", position=p, radius=radius)
        for n, p in enumerate(selection.positions, start=1)
    )
    trace = PlacementTrace(
        strategy=cfg.strategy,
        sample_step=grid.cell_size,
        candidate_count=selection.candidate_count,
        hard_cap=selection.hard_cap,
        iterations=selection.iterations,
        stagnation_events=selection.stagnation_events,
        reseed_events=selection.reseed_events,
        seeds_added=selection.seeds_added,
        unplaceable_seeds=selection.unplaceable_seeds,
        spacing_rejections=selection.spacing_rejections,
        pruned=selection.pruned,
        theoretical_min=theoretical_minimum(area, radius, cfg.packing_efficiency),
        stop_reason=selection.stop_reason,
        elapsed_s=time.perf_counter() - started,
        issues=tuple(issues),
    )

    logger.info(
        "Area %d: %d placements, %.2f%% coverage (%d/%d uncovered), stop=%s",
        area_index,
        len(placements),
        percent,
        uncovered,
        grid.size,
        selection.stop_reason.value,
    )
    if incomplete:
        logger.warning(
            "Area %d: coverage %.2f%% below target %.2f%% (stop=%s)",
            area_index,
            percent,
            cfg.target_percent,
            selection.stop_reason.value,
        )
    attempts = selection.candidate_count + selection.unplaceable_seeds
    if attempts and selection.unplaceable_seeds / attempts > UNPLACEABLE_WARN_RATIO:
        logger.warning(
            "Area %d: %d of %d candidates could not be placed",
            area_index,
            selection.unplaceable_seeds,
            attempts,
        )

    return PlacementResult(
        placements=placements,
        coverage_percent=percent,
        uncovered_count=uncovered,
        total_samples=grid.size,
        incomplete=incomplete,
        trace=trace,
    )


# ---------------------------------------------------------------------------
# Multi-area floors
# ---------------------------------------------------------------------------
def place_floor(
    plan: FloorPlan,
    radius: float,
    config: PlacementConfig | Mapping[str, Any] | None = None,
    *,
    max_workers: int | None = None,
) -> FloorPlacementResult:
    """Run place_coverage for every area of a floor plan.

    Areas are independent and run in a thread pool; every plan exclusion
    applies to every area. Results come back in area order.
    """
    cfg = resolve_config(config, radius)
    if not plan.areas:
        return FloorPlacementResult(results=())

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [
            pool.submit(place_coverage, area, plan.exclusions, radius, cfg, area_index=i)
            for i, area in enumerate(plan.areas)
        ]
        results = tuple(f.result() for f in futures)

    floor = FloorPlacementResult(results=results)
    logger.info(
        "Floor %r: %d areas, %d placements, %.2f%% coverage",
        plan.name,
        len(results),
        len(floor.placements),
        floor.coverage_percent,
    )
    return floor


# ---------------------------------------------------------------------------
# Advisory report
# ---------------------------------------------------------------------------
def coverage_report(
    result: PlacementResult | FloorPlacementResult,
    config: PlacementConfig | None = None,
) -> CoverageReport:
    """Summarise a placement outcome for the host's coverage advisory panel."""
    cfg = config or PlacementConfig()
    if isinstance(result, PlacementResult):
        results: tuple[PlacementResult, ...] = (result,)
    else:
        results = result.results

    incomplete = [r for r in results if r.incomplete]
    if incomplete:
        stop = incomplete[0].trace.stop_reason
    elif results:
        stop = results[-1].trace.stop_reason
    else:
        stop = StopReason.EMPTY

    total = sum(r.total_samples for r in results)
    uncovered = sum(r.uncovered_count for r in results)
    return CoverageReport(
        coverage_percent=0.0 if total == 0 else (total - uncovered) / total * 100.0,
        target_percent=cfg.target_percent,
        uncovered_samples=uncovered,
        sample_count=total,
        antenna_count=sum(len(r.placements) for r in results),
        theoretical_min=sum(r.trace.theoretical_min for r in results),
        overlap_percent=cfg.overlap_percent,
        solver=results[0].trace.strategy if results else cfg.strategy,
        incomplete=bool(incomplete),
        stop_reason=stop,
    )
