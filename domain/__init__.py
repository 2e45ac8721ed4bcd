"""Antenna Planner Domain Layer.

This package contains the core business logic organized by bounded contexts:
- geometry: Planar primitives and the geometry kernel
- coverage: Sample grids, coverage measurement, uncovered-sample clustering
- siting: Placement rules, corridor handling, greedy/adaptive selection
"""

# Imports alphabetized per project style (isort)
from domain import coverage, geometry, siting

__all__ = ["coverage", "geometry", "siting"]
