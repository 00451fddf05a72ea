# colour_smash/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, and lightweight helpers.
"""

from dataclasses import dataclass
from typing import Dict, Generic, Hashable, Sequence, Tuple, TypeVar, Union

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBA = Tuple[int, int, int, int]
Components = Tuple[float, float, float, float]
Combination = Tuple[RGBA, ...]

U8Image = NDArray[np.uint8]  # (H, W, 4)
U8Pixels = NDArray[np.uint8]  # (P, S, 4)
PointArray = NDArray[np.float64]  # (N, S, 4) components in [0, 1]
Labels = NDArray[np.int64]  # (N,) centre index per group

# Output values: RGBA tuple for RGBA8, packed int for RGB5A3
OutputColour = Union[RGBA, int]

QuantizationMap = Dict[Combination, Combination]

T = TypeVar("T", bound=Hashable)


class CodecError(ValueError):
    """Components or packed levels outside the codec's domain."""


class QuantizationError(RuntimeError):
    """Internal invariant violated while building or applying a palette."""


# Value objects


@dataclass(frozen=True)
class Grouped(Generic[T]):
    """Distinct value with its occurrence count."""

    data: T
    count: int

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError(f"group count must be >= 1, got {self.count}")


# Small helpers


def clamp_value(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def require_ordered(values: np.ndarray, what: str = "distances") -> np.ndarray:
    """
    Reject NaN before values are ranked with argmin/argmax/argsort.
    NumPy orders NaN inconsistently across those calls.
    """
    if np.isnan(values).any():
        raise QuantizationError(f"NaN found in {what}")
    return values


def coerce_to_rgba(value: Union[Sequence[int], np.ndarray]) -> RGBA:
    """Coerce a 4-length sequence or array row to an (int, int, int, int) tuple."""
    if len(value) < 4:
        raise ValueError("sequence too small for RGBA")
    return (int(value[0]), int(value[1]), int(value[2]), int(value[3]))


def assert_u8_image_rgba(image: np.ndarray) -> U8Image:
    """Validate a uint8 (H,W,4) image and return it typed as U8Image."""
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[-1] != 4:
        raise TypeError("expected uint8 (H,W,4) image")
    return image  # type: ignore[return-value]


__all__ = [
    # aliases / types
    "RGBA",
    "Components",
    "Combination",
    "U8Image",
    "U8Pixels",
    "PointArray",
    "Labels",
    "OutputColour",
    "QuantizationMap",
    # errors
    "CodecError",
    "QuantizationError",
    # value objects
    "Grouped",
    # helpers
    "clamp_value",
    "require_ordered",
    "coerce_to_rgba",
    "assert_u8_image_rgba",
]
