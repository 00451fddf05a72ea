# colour_smash/codec.py
from __future__ import annotations

"""
Colour codec: RGBA8 and RGB5A3 output formats.

Exports:
- rgba_to_components(rgba) / pixels_to_components(pixels)
- colour_distance(a, b)           # premultiplied RGB + weighted alpha, vectorised
- mean_of_colours(groups)         # alpha-weighted mean of grouped RGBA colours
- ColourFormat, Rgba8Format, Rgb5a3Format
- get_format(name)

Notes:
- All components are floats in [0, 1]. Rounding is half up.
- RGB5A3 packs either opaque 5-bit RGB (top bit set) or 4-bit RGB with a
  3-bit alpha level. Alpha is coarsened first; it decides the RGB precision.
- Up-scaling back to 8 bits uses bit replication: (v * 255 + max // 2) // max.
"""

import math
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Sequence

import numpy as np

from .constants import ALPHA_DISTANCE_WEIGHT, COMPONENT_TOLERANCE
from .core_types import (
    RGBA,
    CodecError,
    Components,
    Grouped,
    OutputColour,
    clamp_value,
)


# Bit-depth helpers


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (inputs are non-negative)."""
    return int(math.floor(value + 0.5))


def _round_half_up_array(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def convert_5_bits_to_8(value: int) -> int:
    return (value * 255 + 15) // 31


def convert_4_bits_to_8(value: int) -> int:
    return value * 17


def convert_3_bits_to_8(value: int) -> int:
    return (value * 255 + 3) // 7


def rgba_to_components(rgba: Sequence[int]) -> Components:
    """8-bit RGBA to four floats in [0, 1]."""
    r, g, b, a = rgba
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def pixels_to_components(pixels: np.ndarray) -> np.ndarray:
    """uint8 [...,4] -> float64 [...,4] in [0, 1]."""
    return np.asarray(pixels, dtype=np.float64) / 255.0


def _checked_components(components: Sequence[float]) -> Components:
    """Validate and clamp components; NaN or far out of range is a defect."""
    if len(components) != 4:
        raise CodecError(f"expected 4 components, got {len(components)}")
    out: List[float] = []
    for c in components:
        c = float(c)
        if math.isnan(c) or c < -COMPONENT_TOLERANCE or c > 1.0 + COMPONENT_TOLERANCE:
            raise CodecError(f"component outside [0, 1]: {tuple(components)!r}")
        out.append(clamp_value(c, 0.0, 1.0))
    return (out[0], out[1], out[2], out[3])


# Metric


def colour_distance(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    (dr^2 + dg^2 + db^2) * a1 * a2 + 3 * da^2 on normalised components.

    Accepts any broadcastable shapes (..., 4); returns shape (...).
    The RGB term vanishes when either side is transparent.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    dr = a[..., 0] - b[..., 0]
    dg = a[..., 1] - b[..., 1]
    db = a[..., 2] - b[..., 2]
    da = a[..., 3] - b[..., 3]
    # alpha product first so the result is bitwise symmetric
    opaque = (dr * dr + dg * dg + db * db) * (a[..., 3] * b[..., 3])
    return opaque + ALPHA_DISTANCE_WEIGHT * (da * da)


def mean_of_colours(groups: Iterable[Grouped[RGBA]]) -> Components:
    """
    Weighted mean of grouped 8-bit colours.

    RGB is weighted by count * alpha so near-transparent colours barely move
    the mean; alpha is the count-weighted average. All-transparent input
    yields (0, 0, 0, 0).
    """
    r_sum = g_sum = b_sum = a_sum = 0.0
    total_count = 0
    for grp in groups:
        r, g, b, a = rgba_to_components(grp.data)
        weighted_a = a * grp.count
        r_sum += r * weighted_a
        g_sum += g * weighted_a
        b_sum += b * weighted_a
        a_sum += weighted_a
        total_count += grp.count

    if a_sum > 0.0:
        return (r_sum / a_sum, g_sum / a_sum, b_sum / a_sum, a_sum / total_count)
    return (0.0, 0.0, 0.0, 0.0)


# Formats


class ColourFormat(ABC):
    """
    Output colour format capability.

    Subclasses implement the scalar codec (convert / to_components / as_pixel)
    and the vectorised forms used by the clustering engine (quantise / to_pixels).
    """

    name: str = ""

    @abstractmethod
    def convert(self, components: Sequence[float]) -> OutputColour:
        raise NotImplementedError

    @abstractmethod
    def to_components(self, value: OutputColour) -> Components:
        raise NotImplementedError

    @abstractmethod
    def as_pixel(self, value: OutputColour) -> RGBA:
        raise NotImplementedError

    @abstractmethod
    def quantise(self, components: np.ndarray) -> np.ndarray:
        """Nearest representable components for every row of [...,4]."""
        raise NotImplementedError

    @abstractmethod
    def to_pixels(self, components: np.ndarray) -> np.ndarray:
        """Components [...,4] -> uint8 [...,4] of the converted output values."""
        raise NotImplementedError

    # Shared behaviour

    def from_pixel(self, rgba: Sequence[int]) -> OutputColour:
        return self.convert(rgba_to_components(rgba))

    def convert_many(self, components: np.ndarray) -> List[OutputColour]:
        rows = np.asarray(components, dtype=np.float64).reshape(-1, 4)
        return [self.convert(row) for row in rows]

    def distance(self, a: OutputColour, b: OutputColour) -> float:
        return float(colour_distance(self.to_components(a), self.to_components(b)))

    def normalised_distance(self, rgba: Sequence[int], candidate: OutputColour) -> float:
        """
        Distance from an input colour to a candidate output, minus the distance
        to the input's own nearest representable value. Never negative.
        """
        src = np.asarray(rgba_to_components(rgba), dtype=np.float64)
        floor = colour_distance(src, self.quantise(src))
        raw = colour_distance(src, np.asarray(self.to_components(candidate)))
        return max(0.0, float(raw - floor))

    def mean_of(self, groups: Iterable[Grouped[RGBA]]) -> OutputColour:
        return self.convert(mean_of_colours(groups))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Rgba8Format(ColourFormat):
    """8 bits per channel; alpha 0 collapses to (0, 0, 0, 0)."""

    name = "RGBA8"

    def convert(self, components: Sequence[float]) -> RGBA:
        r, g, b, a = _checked_components(components)
        a8 = round_half_up(a * 255.0)
        if a8 == 0:
            return (0, 0, 0, 0)
        return (
            round_half_up(r * 255.0),
            round_half_up(g * 255.0),
            round_half_up(b * 255.0),
            a8,
        )

    def to_components(self, value: OutputColour) -> Components:
        return rgba_to_components(value)  # type: ignore[arg-type]

    def as_pixel(self, value: OutputColour) -> RGBA:
        return value  # type: ignore[return-value]

    def to_pixels(self, components: np.ndarray) -> np.ndarray:
        levels = _round_half_up_array(np.asarray(components, dtype=np.float64) * 255.0)
        levels = np.clip(levels, 0, 255)
        levels[levels[..., 3] == 0] = 0
        return levels.astype(np.uint8)

    def quantise(self, components: np.ndarray) -> np.ndarray:
        return self.to_pixels(components).astype(np.float64) / 255.0


class Rgb5a3Format(ColourFormat):
    """
    16-bit packed format.

    Bit 15 set   : 1 rrrrr ggggg bbbbb        (opaque, 5-bit RGB)
    Bit 15 clear : 0 aaa rrrr gggg bbbb       (3-bit alpha level 1..6, 4-bit RGB)
    Value 0      : fully transparent
    """

    name = "RGB5A3"

    OPAQUE_FLAG = 0x8000

    def convert(self, components: Sequence[float]) -> int:
        r, g, b, a = _checked_components(components)
        level = round_half_up(a * 7.0)
        if level == 0:
            return 0
        if level == 7:
            r5 = round_half_up(r * 31.0)
            g5 = round_half_up(g * 31.0)
            b5 = round_half_up(b * 31.0)
            return self.OPAQUE_FLAG | (r5 << 10) | (g5 << 5) | b5
        if 1 <= level <= 6:
            r4 = round_half_up(r * 15.0)
            g4 = round_half_up(g * 15.0)
            b4 = round_half_up(b * 15.0)
            return (level << 12) | (r4 << 8) | (g4 << 4) | b4
        raise CodecError(f"invalid alpha {a!r} for RGB5A3 (as 3 bit level {level})")

    @staticmethod
    def is_opaque(value: int) -> bool:
        return (value >> 15) & 1 == 1

    @staticmethod
    def rgb5(value: int) -> tuple:
        return ((value >> 10) & 0x1F, (value >> 5) & 0x1F, value & 0x1F)

    @staticmethod
    def rgb4a3(value: int) -> tuple:
        return ((value >> 8) & 0x0F, (value >> 4) & 0x0F, value & 0x0F, (value >> 12) & 0x07)

    def to_components(self, value: OutputColour) -> Components:
        v = int(value)  # type: ignore[arg-type]
        if self.is_opaque(v):
            r5, g5, b5 = self.rgb5(v)
            return (r5 / 31.0, g5 / 31.0, b5 / 31.0, 1.0)
        r4, g4, b4, a3 = self.rgb4a3(v)
        return (r4 / 15.0, g4 / 15.0, b4 / 15.0, a3 / 7.0)

    def as_pixel(self, value: OutputColour) -> RGBA:
        v = int(value)  # type: ignore[arg-type]
        if self.is_opaque(v):
            r5, g5, b5 = self.rgb5(v)
            return (
                convert_5_bits_to_8(r5),
                convert_5_bits_to_8(g5),
                convert_5_bits_to_8(b5),
                0xFF,
            )
        r4, g4, b4, a3 = self.rgb4a3(v)
        return (
            convert_4_bits_to_8(r4),
            convert_4_bits_to_8(g4),
            convert_4_bits_to_8(b4),
            convert_3_bits_to_8(a3),
        )

    def _levels(self, components: np.ndarray):
        comps = np.clip(np.asarray(components, dtype=np.float64), 0.0, 1.0)
        level = _round_half_up_array(comps[..., 3] * 7.0)
        opaque = level == 7
        transparent = level == 0
        rgb = comps[..., :3]
        rgb_levels = np.where(
            opaque[..., None],
            _round_half_up_array(rgb * 31.0),
            _round_half_up_array(rgb * 15.0),
        )
        rgb_levels[transparent] = 0
        return rgb_levels, level, opaque

    def quantise(self, components: np.ndarray) -> np.ndarray:
        rgb_levels, level, opaque = self._levels(components)
        out = np.empty(rgb_levels.shape[:-1] + (4,), dtype=np.float64)
        out[..., :3] = rgb_levels / np.where(opaque, 31.0, 15.0)[..., None]
        out[..., 3] = level / 7.0
        return out

    def to_pixels(self, components: np.ndarray) -> np.ndarray:
        rgb_levels, level, opaque = self._levels(components)
        rgb_levels = rgb_levels.astype(np.int64)
        level = level.astype(np.int64)
        out = np.empty(rgb_levels.shape[:-1] + (4,), dtype=np.int64)
        out[..., :3] = np.where(
            opaque[..., None], (rgb_levels * 255 + 15) // 31, rgb_levels * 17
        )
        out[..., 3] = (level * 255 + 3) // 7
        return out.astype(np.uint8)

    def __repr__(self) -> str:
        return "Rgb5a3Format()"


FORMATS: Dict[str, ColourFormat] = {
    "RGBA8": Rgba8Format(),
    "RGB5A3": Rgb5a3Format(),
}


def get_format(name: str) -> ColourFormat:
    """Resolve a colour type name (case-insensitive) to its format."""
    key = str(name).strip().upper()
    try:
        return FORMATS[key]
    except KeyError:
        raise ValueError(f"Unknown color type {name}") from None


__all__ = [
    "round_half_up",
    "convert_5_bits_to_8",
    "convert_4_bits_to_8",
    "convert_3_bits_to_8",
    "rgba_to_components",
    "pixels_to_components",
    "colour_distance",
    "mean_of_colours",
    "ColourFormat",
    "Rgba8Format",
    "Rgb5a3Format",
    "FORMATS",
    "get_format",
]
