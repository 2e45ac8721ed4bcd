"""Siting Bounded Context.

Responsible for antenna placement over a floor region:
- Value Objects: PlacementConfig, Placement, PlacementResult, PlacementTrace,
  CorridorInfo, FloorPlan, CoverageReport
- Services: classify_corridor, is_placement_allowed,
  find_nearest_allowed_placement, is_spacing_allowed, place_coverage,
  place_floor, coverage_report
- Ports: FloorPlanRepository
"""
