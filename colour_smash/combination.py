# colour_smash/combination.py
from __future__ import annotations

"""
Colour combinations: one composite point per pixel coordinate across N images.

A composite is an ordered tuple of RGBA colours, one per image (slot). The
clustering engine always works on composites shaped (N, S, 4); a single image
is simply S = 1. Distance sums per-slot distances and means are per slot, so
one shared palette of tuples quantizes every image consistently.

Exports:
- stack_images(images) -> (P, S, 4) uint8 pixels
- unstack_images(pixels, height, width) -> list of (H, W, 4) images
- as_combination(data) -> tuple of RGBA
- points_from_groups(groups) -> (points, counts)
- combination_distance(points, centre)
- cluster_means(points, counts, labels, k)
- mean_of_combinations(groups, fmt)
- unzip_palette(palette), unzip_quantization_map(qmap)
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np

from .codec import ColourFormat, colour_distance, pixels_to_components
from .core_types import (
    RGBA,
    Combination,
    Grouped,
    OutputColour,
    PointArray,
    QuantizationError,
    QuantizationMap,
    U8Image,
    U8Pixels,
    assert_u8_image_rgba,
    coerce_to_rgba,
)


# Building composites


def stack_images(images: Sequence[U8Image]) -> U8Pixels:
    """Stack same-sized RGBA images into (H*W, S, 4) composite pixels."""
    if not images:
        raise ValueError("at least one image is required")
    arrays = [assert_u8_image_rgba(np.asarray(im)) for im in images]
    shape = arrays[0].shape[:2]
    for idx, arr in enumerate(arrays[1:], start=1):
        if arr.shape[:2] != shape:
            raise ValueError(
                f"image {idx} is {arr.shape[1]}x{arr.shape[0]}, "
                f"expected {shape[1]}x{shape[0]}"
            )
    stacked = np.stack(arrays, axis=2)  # (H, W, S, 4)
    return stacked.reshape(-1, len(arrays), 4)


def unstack_images(pixels: U8Pixels, height: int, width: int) -> List[U8Image]:
    """Inverse of stack_images."""
    slots = pixels.shape[1]
    grid = pixels.reshape(height, width, slots, 4)
    return [np.ascontiguousarray(grid[:, :, s, :]) for s in range(slots)]


def as_combination(data) -> Combination:
    """Normalise a group's data (RGBA or tuple of RGBA) to a tuple of RGBA."""
    arr = np.asarray(data)
    if arr.ndim == 1:
        return (coerce_to_rgba(arr),)
    return tuple(coerce_to_rgba(row) for row in arr)


def points_from_groups(groups: Sequence[Grouped]) -> Tuple[PointArray, np.ndarray]:
    """Grouped RGBA colours or composites -> (N, S, 4) components and (N,) counts."""
    if not groups:
        return np.zeros((0, 1, 4), dtype=np.float64), np.zeros((0,), dtype=np.int64)
    combos = [as_combination(g.data) for g in groups]
    slots = len(combos[0])
    if any(len(c) != slots for c in combos):
        raise QuantizationError("composites with different slot counts")
    pixels = np.array(combos, dtype=np.uint8).reshape(len(combos), slots, 4)
    counts = np.array([g.count for g in groups], dtype=np.int64)
    return pixels_to_components(pixels), counts


# Metric and means


def combination_distance(points: np.ndarray, centre: np.ndarray) -> np.ndarray:
    """Sum of per-slot colour distances; (N, S, 4) x (S, 4) -> (N,)."""
    return colour_distance(points, centre).sum(axis=-1)


def cluster_means(
    points: PointArray, counts: np.ndarray, labels: np.ndarray, k: int
) -> Tuple[PointArray, np.ndarray]:
    """
    Per-cluster, per-slot weighted means.

    RGB of each slot is weighted by count * alpha, alpha by count. A slot whose
    members are all transparent averages to (0, 0, 0, 0).

    Returns:
      means:   float64 [K,S,4] (unquantised)
      weights: float64 [K] total count per cluster (0 for empty clusters)
    """
    slots = points.shape[1]
    weights = counts.astype(np.float64)
    weighted_a = points[..., 3] * weights[:, None]  # (N, S)

    a_sum = np.zeros((k, slots), dtype=np.float64)
    rgb_sum = np.zeros((k, slots, 3), dtype=np.float64)
    for s in range(slots):
        a_sum[:, s] = np.bincount(labels, weights=weighted_a[:, s], minlength=k)
        for ch in range(3):
            rgb_sum[:, s, ch] = np.bincount(
                labels, weights=points[:, s, ch] * weighted_a[:, s], minlength=k
            )
    totals = np.bincount(labels, weights=weights, minlength=k)

    visible = a_sum > 0.0
    safe_a = np.where(visible, a_sum, 1.0)
    safe_totals = np.where(totals > 0.0, totals, 1.0)

    means = np.zeros((k, slots, 4), dtype=np.float64)
    means[..., :3] = np.where(visible[..., None], rgb_sum / safe_a[..., None], 0.0)
    means[..., 3] = np.where(visible, a_sum / safe_totals[:, None], 0.0)
    return means, totals


def mean_of_combinations(groups: Sequence[Grouped], fmt: ColourFormat) -> Tuple[OutputColour, ...]:
    """Position-wise weighted mean of grouped composites, as output values."""
    if not groups:
        raise QuantizationError("mean of an empty set of combinations")
    points, counts = points_from_groups(groups)
    labels = np.zeros(points.shape[0], dtype=np.int64)
    means, _ = cluster_means(points, counts, labels, 1)
    return tuple(fmt.convert_many(fmt.quantise(means[0])))


# Unzipping the joint result


def unzip_palette(palette: Sequence[Sequence[OutputColour]]) -> List[List[OutputColour]]:
    """Split a palette of tuples into one index-aligned palette per image."""
    if not palette:
        return []
    slots = len(palette[0])
    return [[entry[s] for entry in palette] for s in range(slots)]


def unzip_quantization_map(qmap: QuantizationMap) -> List[Dict[Combination, RGBA]]:
    """
    Per-image maps from the composite at a coordinate to that image's pixel.

    Keyed by the full composite: the same colour in one image can map to
    different outputs depending on its partners in the other images.
    """
    if not qmap:
        return []
    slots = len(next(iter(qmap)))
    return [{key: value[s] for key, value in qmap.items()} for s in range(slots)]


__all__ = [
    "stack_images",
    "unstack_images",
    "as_combination",
    "points_from_groups",
    "combination_distance",
    "cluster_means",
    "mean_of_combinations",
    "unzip_palette",
    "unzip_quantization_map",
]
