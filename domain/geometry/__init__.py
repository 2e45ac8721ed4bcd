"""Geometry Bounded Context.

Responsible for planar primitives and pure spatial queries:
- Value Objects: Point, Polygon, Bounds, EdgeInfo, AxisClearances
- Services: point_in_polygon, polygon_area, polygon_centroid,
  nearest_edge_info, compute_axis_clearances (the Geometry Kernel)
"""
