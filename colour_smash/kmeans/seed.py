# colour_smash/kmeans/seed.py
from __future__ import annotations

"""
Centre seeding by repeated splitting of the costliest cluster.

Start from the most frequent group, then keep promoting the worst-served
member of the cluster with the largest cost (sum of distance * count) to a
new centre. Distances are normalised: each group's unavoidable quantization
error under the output format is subtracted, so seeding chases error that a
better centre could actually remove.
"""

from typing import Tuple

import numpy as np

from ..codec import ColourFormat
from ..combination import combination_distance
from ..core_types import Labels, PointArray, require_ordered
from ..utils import debug_log, key_value_pairs_to_string, warn


def quantisation_floor(points: PointArray, fmt: ColourFormat) -> np.ndarray:
    """Distance from every point to its own nearest representable value."""
    return combination_distance(points, fmt.quantise(points))


def _worst_cluster(cost: np.ndarray, labels: Labels, num_centres: int) -> int:
    """Index of the occupied cluster with the largest cost (first on ties)."""
    occupied = np.bincount(labels, minlength=num_centres) > 0
    ranked = np.where(occupied, require_ordered(cost[:num_centres], "cluster costs"), -np.inf)
    return int(np.argmax(ranked))


def _farthest_point_of(cluster: int, labels: Labels, distance: np.ndarray) -> int:
    members = np.flatnonzero(labels == cluster)
    return int(members[int(np.argmax(require_ordered(distance[members])))])


def initialize_centres(
    points: PointArray,
    counts: np.ndarray,
    k: int,
    fmt: ColourFormat,
    debug: bool = False,
) -> Tuple[PointArray, Labels]:
    """
    Seed up to k centres.

    Args:
      points: float64 [N,S,4] group components
      counts: int64 [N] occurrences per group
      k: target number of centres
      fmt: output format; centres are always representable in it

    Returns:
      centres: float64 [K,S,4] with K = min(k, N)
      labels:  int64 [N] nearest seeded centre per group
    """
    num_points, slots = points.shape[0], points.shape[1]
    if num_points <= k:
        # One centre per group: every group keeps its own nearest output value.
        if debug:
            debug_log(f"seed: {num_points} groups <= {k} colours, no clustering needed")
        return fmt.quantise(points), np.arange(num_points, dtype=np.int64)

    weights = counts.astype(np.float64)
    floor = quantisation_floor(points, fmt)

    def normalised(centre: np.ndarray) -> np.ndarray:
        return np.maximum(combination_distance(points, centre) - floor, 0.0)

    centres = np.empty((k, slots, 4), dtype=np.float64)
    cost = np.zeros(k, dtype=np.float64)

    first = int(np.argmax(counts))
    centres[0] = fmt.quantise(points[first])
    distance = normalised(centres[0])
    labels: Labels = np.zeros(num_points, dtype=np.int64)
    cost[0] = float(np.sum(distance * weights))

    duplicates = 0
    for new_index in range(1, k):
        cluster_to_split = _worst_cluster(cost, labels, new_index)
        farthest = _farthest_point_of(cluster_to_split, labels, distance)
        new_centre = fmt.quantise(points[farthest])

        if np.any(np.all(centres[:new_index] == new_centre, axis=(1, 2))):
            duplicates += 1
            warn(f"created duplicate centre: {fmt.convert_many(new_centre)}")

        new_distance = normalised(new_centre)
        improved = new_distance < distance
        if np.any(improved):
            moved = labels[improved]
            cost[:new_index] -= np.bincount(
                moved, weights=distance[improved] * weights[improved], minlength=new_index
            )
            cost[new_index] = float(np.sum(new_distance[improved] * weights[improved]))
            labels[improved] = new_index
            distance[improved] = new_distance[improved]
        centres[new_index] = new_centre

    if debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Seeded", k),
                    ("Groups", num_points),
                    ("Duplicates", duplicates),
                    ("Seed cost", float(np.sum(cost))),
                ]
            )
        )
    return centres, labels


__all__ = ["quantisation_floor", "initialize_centres"]
