"""Infrastructure adapters for the siting bounded context.

This module provides the infrastructure layer implementations for floor-plan
operations, including loading FloorPlans from JSON documents.
"""

from .json_adapter import JsonFloorPlanAdapter

__all__ = ["JsonFloorPlanAdapter"]
