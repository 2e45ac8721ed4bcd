"""Siting Bounded Context - Minimum-Spacing Enforcer.

Keeps placement centres at least a configurable distance apart. The spacing
is derived from the coverage radius and a spacing factor; 1.0 puts centres one
diameter apart, lower values allow overlap.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from domain.geometry.value_objects import Point

logger = logging.getLogger(__name__)

MIN_SPACING_FACTOR = 0.3
MAX_SPACING_FACTOR = 2.5
MIN_SPACING_RADIUS_FRACTION = 0.4  # floor: centres never closer than 0.4 r
MIN_SPACING_PERCENT = 20.0
MAX_SPACING_PERCENT = 150.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def spacing_multiplier_from_percent(percent: float) -> float:
    """Map a "grid spacing %" value (20-150) onto a spacing factor."""
    clamped = _clamp(percent, MIN_SPACING_PERCENT, MAX_SPACING_PERCENT)
    return _clamp(clamped / 100.0, MIN_SPACING_FACTOR, MAX_SPACING_FACTOR)


def min_center_spacing(radius: float, spacing_factor: float) -> float:
    """Minimum distance between two placement centres.

    max(0.4 * r, 2 * r * clamp(spacing_factor, 0.3, 2.5))
    """
    factor = _clamp(spacing_factor, MIN_SPACING_FACTOR, MAX_SPACING_FACTOR)
    return max(radius * MIN_SPACING_RADIUS_FRACTION, 2.0 * radius * factor)


def spacing_threshold(radius: float, min_spacing: float) -> float:
    """Spacing actually enforced: min_spacing less a small float tolerance."""
    return min_spacing - min(radius * 0.02, min_spacing * 0.05)


def is_spacing_allowed(
    candidate: Point, placed_so_far: Iterable[Point], min_spacing: float
) -> bool:
    """True if candidate is at least min_spacing from every placed point."""
    return all(candidate.distance_to(p) >= min_spacing for p in placed_so_far)


def filter_by_spacing(points: Sequence[Point], min_spacing: float) -> list[Point]:
    """Keep points in order, dropping any closer than min_spacing to a kept one."""
    kept: list[Point] = []
    for p in points:
        if is_spacing_allowed(p, kept, min_spacing):
            kept.append(p)
    if len(kept) < len(points):
        logger.debug(
            "Spacing filter dropped %d of %d points (min spacing %.3f)",
            len(points) - len(kept),
            len(points),
            min_spacing,
        )
    return kept
