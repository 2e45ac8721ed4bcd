"""Coverage Bounded Context.

Responsible for discretising regions and measuring coverage:
- Value Objects: Lattice, SampleGrid
- Services: build_grid / build_sample_grid (Coverage Sampler),
  measure_coverage, cluster_points, SampleIndex
"""
