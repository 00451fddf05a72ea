"""
Weighted k-centre engine.

Provides:
  run_kmeans(points, counts, k, fmt, *, max_iterations, pruning=True, workers=1, debug=False)
    Cluster (N,S,4) weighted points into at most k centres representable in fmt.

  quantize_groups(groups, fmt, k=256, **kwargs) -> (centres, members)
    Same, on Grouped colours or composites.

Notes:
  - Seeding splits the cluster with the largest cost at its worst-served member.
  - Refinement stops when the partition no longer changes.
  - Reassignment prunes centres ruled out by the triangle inequality.
"""

from .run import KMeansResult, quantize_groups, reposition_centres, run_kmeans
from .seed import initialize_centres
from .assign import assign_exhaustive, assign_pruned

__all__ = [
    "KMeansResult",
    "run_kmeans",
    "quantize_groups",
    "reposition_centres",
    "initialize_centres",
    "assign_pruned",
    "assign_exhaustive",
]
