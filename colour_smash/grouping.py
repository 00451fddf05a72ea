# colour_smash/grouping.py
from __future__ import annotations

"""
Grouping of raw colour samples into (value, count) pairs.

Clustering cost then scales with the number of distinct values instead of
the number of pixels. Transparent samples are canonicalised to (0, 0, 0, 0)
first so they all land in one group.
"""

from collections import Counter
from typing import Hashable, Iterable, List, Tuple

import numpy as np

from .core_types import RGBA, Grouped, U8Pixels


def canonical_rgba(rgba: Iterable[int]) -> RGBA:
    """RGBA tuple with any alpha-0 colour collapsed to (0, 0, 0, 0)."""
    r, g, b, a = (int(c) for c in rgba)
    if a == 0:
        return (0, 0, 0, 0)
    return (r, g, b, a)


def canonicalise_pixels(pixels: np.ndarray) -> np.ndarray:
    """Copy of uint8 [...,4] pixels with RGB zeroed wherever alpha is 0."""
    out = np.array(pixels, dtype=np.uint8, copy=True)
    out[out[..., 3] == 0] = 0
    return out


def _canonical_key(item: Hashable) -> Hashable:
    # RGBA tuples and tuples of RGBA tuples (composites)
    if isinstance(item, tuple) and len(item) == 4 and all(
        isinstance(c, (int, np.integer)) for c in item
    ):
        return canonical_rgba(item)
    if isinstance(item, tuple) and item and all(isinstance(c, tuple) for c in item):
        return tuple(canonical_rgba(c) for c in item)
    return item


def group(colours: Iterable[Hashable]) -> List[Grouped]:
    """
    Count each distinct colour (or composite) in a single pass.

    Returns one Grouped per distinct canonical value, in first-seen order.
    """
    counts: Counter = Counter()
    for colour in colours:
        counts[_canonical_key(colour)] += 1
    return [Grouped(data=value, count=count) for value, count in counts.items()]


def group_pixels(pixels: U8Pixels) -> Tuple[U8Pixels, np.ndarray, np.ndarray]:
    """
    Distinct rows of a (P, S, 4) uint8 pixel array.

    Returns:
      uniques: uint8 [N,S,4], sorted
      counts:  int64 [N]
      inverse: int64 [P], where uniques[inverse] reconstructs the canonicalised input
    """
    pixels = np.asarray(pixels, dtype=np.uint8)
    if pixels.ndim != 3 or pixels.shape[-1] != 4:
        raise TypeError("expected uint8 (P,S,4) pixels")
    num_pixels, slots = pixels.shape[0], pixels.shape[1]
    if num_pixels == 0:
        return (
            np.zeros((0, slots, 4), dtype=np.uint8),
            np.zeros((0,), dtype=np.int64),
            np.zeros((0,), dtype=np.int64),
        )
    flat = canonicalise_pixels(pixels).reshape(num_pixels, slots * 4)
    uniques, inverse, counts = np.unique(
        flat, axis=0, return_inverse=True, return_counts=True
    )
    return (
        uniques.reshape(-1, slots, 4).astype(np.uint8, copy=False),
        counts.astype(np.int64, copy=False),
        inverse.reshape(-1).astype(np.int64, copy=False),
    )


__all__ = ["canonical_rgba", "canonicalise_pixels", "group", "group_pixels"]
