# colour_smash/kmeans/run.py
from __future__ import annotations

"""
Weighted k-centre clustering of grouped colours (Lloyd iterations).

Each iteration repositions every centre to the weighted mean of its groups,
then reassigns groups with the pruned nearest-centre scan. The loop stops at
a fixed point: the partition is identical to the previous iteration's.
"""

import time
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from ..codec import ColourFormat
from ..combination import cluster_means, points_from_groups
from ..constants import DEFAULT_COLOURS, MAX_ITERATIONS
from ..core_types import Grouped, Labels, OutputColour, PointArray
from ..utils import debug_log, format_seconds_compact, key_value_pairs_to_string, warn
from .assign import assign_exhaustive, assign_pruned
from .seed import initialize_centres


@dataclass(frozen=True)
class KMeansResult:
    """Final centres (representable components), labels per group, iterations run."""

    centres: PointArray  # (K, S, 4)
    labels: Labels  # (N,)
    iterations: int
    converged: bool


def reposition_centres(
    points: PointArray,
    counts: np.ndarray,
    labels: Labels,
    centres: PointArray,
    fmt: ColourFormat,
) -> Tuple[PointArray, int]:
    """
    Move each centre to the output value nearest its groups' weighted mean.
    Empty clusters keep their previous centre.

    Returns:
      (new centres, number of empty clusters)
    """
    k = centres.shape[0]
    means, totals = cluster_means(points, counts, labels, k)
    updated = fmt.quantise(means)
    empty = totals <= 0.0
    updated[empty] = centres[empty]
    return updated, int(np.count_nonzero(empty))


def run_kmeans(
    points: PointArray,
    counts: np.ndarray,
    k: int,
    fmt: ColourFormat,
    *,
    max_iterations: int = MAX_ITERATIONS,
    pruning: bool = True,
    workers: int = 1,
    debug: bool = False,
) -> KMeansResult:
    """
    Cluster weighted points into at most k representable centres.

    Args:
      points: float64 [N,S,4] distinct colours or composites, components in [0,1]
      counts: int64 [N] occurrences per point
      k: palette size
      fmt: output colour format
      max_iterations: safety cap on refinement iterations
      pruning: use the pruned reassignment (False runs the exhaustive scan)
      workers: threads for the pruned reassignment
      debug: print per-iteration diagnostics
    """
    if k < 1:
        raise ValueError(f"colour count must be >= 1, got {k}")
    if points.shape[0] != counts.shape[0]:
        raise ValueError("points and counts differ in length")

    centres, labels = initialize_centres(points, counts, k, fmt, debug=debug)
    if points.shape[0] <= k:
        return KMeansResult(centres=centres, labels=labels, iterations=0, converged=True)

    t_start = time.perf_counter()
    converged = False
    iteration = 0
    while iteration < max_iterations:
        iteration += 1
        prior = labels
        centres, empty_clusters = reposition_centres(points, counts, labels, centres, fmt)
        if pruning:
            labels = assign_pruned(points, centres, labels, workers=workers)
        else:
            labels = assign_exhaustive(points, centres, labels)

        if debug:
            moved = int(np.count_nonzero(labels != prior))
            pairs = [("Iteration", iteration), ("Moved", moved)]
            if empty_clusters:
                pairs.append(("Empty clusters", empty_clusters))
            debug_log(key_value_pairs_to_string(pairs))

        if np.array_equal(labels, prior):
            converged = True
            break

    if not converged:
        warn(f"no fixed point after {iteration} iterations; using last partition")
    if debug:
        debug_log(
            f"refinement {'converged' if converged else 'stopped'} after "
            f"{iteration} iterations in {format_seconds_compact(time.perf_counter() - t_start)}"
        )
    return KMeansResult(
        centres=centres, labels=labels, iterations=iteration, converged=converged
    )


def _is_composite(data) -> bool:
    return isinstance(data, tuple) and bool(data) and isinstance(data[0], tuple)


def quantize_groups(
    groups: Sequence[Grouped],
    fmt: ColourFormat,
    k: int = DEFAULT_COLOURS,
    **kwargs,
) -> Tuple[List[OutputColour], List[List[Grouped]]]:
    """
    Cluster grouped colours (or composites) and return the palette and members.

    Returns:
      centres: one output value per centre (a tuple of values for composites)
      members: the groups assigned to each centre, every group exactly once
    """
    points, counts = points_from_groups(groups)
    result = run_kmeans(points, counts, k, fmt, **kwargs)

    composite = bool(groups) and _is_composite(groups[0].data)
    centres: List[OutputColour] = []
    for centre in result.centres:
        values = fmt.convert_many(centre)
        centres.append(tuple(values) if composite else values[0])  # type: ignore[arg-type]

    members: List[List[Grouped]] = [[] for _ in range(len(centres))]
    for grp, label in zip(groups, result.labels.tolist()):
        members[label].append(grp)
    return centres, members


__all__ = ["KMeansResult", "reposition_centres", "run_kmeans", "quantize_groups"]
