# colour_smash/kmeans/assign.py
from __future__ import annotations

"""
Reassignment of groups to their nearest centre.

assign_pruned scans, for the groups of centre i, the other centres in order of
their distance from centre i and stops as soon as
    PRUNE_FACTOR * d(group, centre i) <= d(centre i, centre j).
Past that point the triangle inequality rules out any closer centre, so the
result equals the exhaustive scan.

Tie rule shared by both scans: a group stays with its prior centre when an
alternative is only equally close; among equally close better centres the
lowest index wins.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

import numpy as np

from ..combination import combination_distance
from ..constants import MIN_GROUPS_PER_WORKER_TASK, PRUNE_FACTOR
from ..core_types import Labels, PointArray, require_ordered


def centre_distance_table(centres: PointArray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Pairwise centre distances and, per centre, the other centres sorted nearest first.

    Returns:
      table: float64 [K,K]
      order: int64 [K,K-1]
    """
    k = centres.shape[0]
    table = np.empty((k, k), dtype=np.float64)
    for i in range(k):
        table[i] = combination_distance(centres, centres[i])
    require_ordered(table, "centre distances")
    order = np.argsort(table, axis=1, kind="stable")
    others = np.empty((k, max(k - 1, 0)), dtype=np.int64)
    for i in range(k):
        row = order[i]
        others[i] = row[row != i]
    return table, others


def members_per_centre(labels: Labels, k: int) -> List[np.ndarray]:
    """Group indices per centre, ascending within each centre."""
    by_label = np.argsort(labels, kind="stable")
    bounds = np.cumsum(np.bincount(labels, minlength=k))[:-1]
    return np.split(by_label, bounds)


def _reassign_members(
    centre: int,
    members: np.ndarray,
    points: PointArray,
    centres: PointArray,
    table: np.ndarray,
    others: np.ndarray,
    prune_factor: float,
) -> np.ndarray:
    best = np.full(members.size, centre, dtype=np.int64)
    if members.size == 0:
        return best
    member_points = points[members]
    best_d = combination_distance(member_points, centres[centre])
    bound = prune_factor * best_d
    active = np.arange(members.size)

    for j in others[centre]:
        active = active[bound[active] > table[centre, j]]
        if active.size == 0:
            break
        d = combination_distance(member_points[active], centres[j])
        current = best_d[active]
        current_best = best[active]
        take = (d < current) | (
            (d == current) & (current_best != centre) & (j < current_best)
        )
        if np.any(take):
            hit = active[take]
            best[hit] = j
            best_d[hit] = d[take]
    return best


def assign_pruned(
    points: PointArray,
    centres: PointArray,
    labels: Labels,
    *,
    workers: int = 1,
    prune_factor: float = PRUNE_FACTOR,
) -> Labels:
    """Nearest centre per group, scanning only centres that could beat the prior one."""
    k = centres.shape[0]
    table, others = centre_distance_table(centres)
    groups = members_per_centre(labels, k)

    def task(i: int) -> np.ndarray:
        return _reassign_members(i, groups[i], points, centres, table, others, prune_factor)

    if workers > 1 and points.shape[0] >= workers * MIN_GROUPS_PER_WORKER_TASK:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            results = list(ex.map(task, range(k)))
    else:
        results = [task(i) for i in range(k)]

    new_labels = labels.copy()
    for members, best in zip(groups, results):
        new_labels[members] = best
    return new_labels


def assign_exhaustive(points: PointArray, centres: PointArray, labels: Labels) -> Labels:
    """Reference O(N*K) scan over every centre with the same tie rule."""
    best = labels.copy()
    best_d = combination_distance(points, centres[labels])
    for j in range(centres.shape[0]):
        d = combination_distance(points, centres[j])
        take = d < best_d
        best[take] = j
        best_d[take] = d[take]
    return best


__all__ = [
    "centre_distance_table",
    "members_per_centre",
    "assign_pruned",
    "assign_exhaustive",
]
