# colour_smash/quantize.py
from __future__ import annotations

"""
Image pipeline: pixels -> groups -> clustering -> quantization map -> pixels.

Exports:
- quantization_map_from_images(images, fmt, colours, ...) -> (qmap, palette, result)
- apply_quantization_map(images, qmap) -> rewritten images
- smash_images(images, colour_type, colours, ...) -> SmashResult
- smash_files(input_paths, output_paths, colour_type, ...) -> list of written paths

Notes:
- Several images are quantized jointly: each coordinate's tuple of pixels is
  one composite point, so all images share one palette of tuples.
- Every distinct input composite must be present in the map; a miss is an
  internal error (QuantizationError), not a recoverable condition.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np

from .codec import ColourFormat, get_format, pixels_to_components
from .combination import stack_images, unstack_images, unzip_quantization_map
from .constants import DEFAULT_COLOURS, MAX_ITERATIONS
from .core_types import (
    Combination,
    OutputColour,
    QuantizationError,
    QuantizationMap,
    U8Image,
    U8Pixels,
    coerce_to_rgba,
)
from .grouping import group_pixels
from .image_io import load_image_rgba, save_image_rgba
from .kmeans import KMeansResult, run_kmeans
from .utils import (
    colour_usage_report,
    count_distinct_combinations,
    debug_log,
    format_seconds_compact,
    key_value_pairs_to_string,
    log,
)

Palette = List[Tuple[OutputColour, ...]]


@dataclass(frozen=True)
class SmashResult:
    """Quantized images plus the joint palette and map that produced them."""

    images: List[U8Image]
    palette: Palette
    quantization_map: QuantizationMap
    iterations: int


def _combination_key(row: np.ndarray) -> Combination:
    return tuple(coerce_to_rgba(px) for px in row)


def build_quantization_map(
    uniques: U8Pixels, labels: np.ndarray, centre_pixels: U8Pixels
) -> QuantizationMap:
    """Map every distinct input composite to the pixels of its centre."""
    centre_keys = [_combination_key(row) for row in centre_pixels]
    return {
        _combination_key(row): centre_keys[label]
        for row, label in zip(uniques, labels.tolist())
    }


def quantization_map_from_images(
    images: Sequence[U8Image],
    fmt: ColourFormat,
    colours: int = DEFAULT_COLOURS,
    *,
    max_iterations: int = MAX_ITERATIONS,
    workers: int = 1,
    debug: bool = False,
) -> Tuple[QuantizationMap, Palette, KMeansResult]:
    """
    Cluster the distinct pixel composites of one or more same-sized images.

    Returns:
      qmap: input composite -> quantized composite (RGBA8 pixels)
      palette: centres as output values, one tuple per centre
      result: raw clustering result
    """
    pixels = stack_images(images)
    uniques, counts, _ = group_pixels(pixels)
    if debug:
        debug_log(f"{uniques.shape[0]:,} colour combinations in input images")

    points = pixels_to_components(uniques)
    result = run_kmeans(
        points,
        counts,
        colours,
        fmt,
        max_iterations=max_iterations,
        workers=workers,
        debug=debug,
    )
    centre_pixels = fmt.to_pixels(result.centres)
    qmap = build_quantization_map(uniques, result.labels, centre_pixels)
    palette: Palette = [tuple(fmt.convert_many(centre)) for centre in result.centres]
    return qmap, palette, result


def apply_quantization_map(
    images: Sequence[U8Image], qmap: QuantizationMap
) -> List[U8Image]:
    """Rewrite every pixel through the per-image maps unzipped from qmap."""
    height, width = images[0].shape[:2]
    pixels = stack_images(images)
    uniques, _, inverse = group_pixels(pixels)
    per_image = unzip_quantization_map(qmap)
    if uniques.shape[0] and len(per_image) != uniques.shape[1]:
        raise QuantizationError(
            f"map covers {len(per_image)} images, got {uniques.shape[1]}"
        )

    mapped = np.empty_like(uniques)
    for i, row in enumerate(uniques):
        key = _combination_key(row)
        for slot, slot_map in enumerate(per_image):
            try:
                mapped[i, slot] = slot_map[key]
            except KeyError:
                raise QuantizationError(f"no quantized value for {key}") from None
    return unstack_images(mapped[inverse], height, width)


def smash_images(
    images: Sequence[U8Image],
    colour_type: Union[str, ColourFormat] = "RGBA8",
    colours: int = DEFAULT_COLOURS,
    *,
    max_iterations: int = MAX_ITERATIONS,
    workers: int = 1,
    debug: bool = False,
) -> SmashResult:
    """Quantize one or more same-sized RGBA images to a shared palette."""
    fmt = colour_type if isinstance(colour_type, ColourFormat) else get_format(colour_type)
    qmap, palette, result = quantization_map_from_images(
        images,
        fmt,
        colours,
        max_iterations=max_iterations,
        workers=workers,
        debug=debug,
    )
    out = apply_quantization_map(images, qmap)
    if debug:
        distinct_out = count_distinct_combinations(stack_images(out))
        debug_log(f"{distinct_out:,} colour combinations in output images")
    return SmashResult(
        images=out, palette=palette, quantization_map=qmap, iterations=result.iterations
    )


def smash_files(
    input_paths: Sequence[Path],
    output_paths: Sequence[Path],
    colour_type: Union[str, ColourFormat] = "RGBA8",
    colours: int = DEFAULT_COLOURS,
    *,
    max_iterations: int = MAX_ITERATIONS,
    workers: int = 1,
    debug: bool = False,
) -> List[Path]:
    """
    Load, jointly quantize, and save images end-to-end.

    Any open or save failure propagates; nothing is written unless every
    input loaded.
    """
    if len(input_paths) != len(output_paths):
        raise ValueError("need one output path per input path")
    t_start = time.perf_counter()
    images = [load_image_rgba(Path(p)) for p in input_paths]
    t_loaded = time.perf_counter()

    if debug:
        for path, img in zip(input_paths, images):
            debug_log(
                key_value_pairs_to_string(
                    [("Loaded", Path(path).name), ("Size", f"{img.shape[1]}x{img.shape[0]}")]
                )
            )

    result = smash_images(
        images,
        colour_type,
        colours,
        max_iterations=max_iterations,
        workers=workers,
        debug=debug,
    )
    t_mapped = time.perf_counter()

    written = [save_image_rgba(Path(dst), img) for dst, img in zip(output_paths, result.images)]
    t_saved = time.perf_counter()

    for path in written:
        log(f"Wrote {path.name}")
    log(
        key_value_pairs_to_string(
            [
                ("Palette", len(set(result.palette))),
                ("Iterations", result.iterations),
            ]
        )
    )
    if debug:
        debug_log("most used output colours:")
        for label, count in colour_usage_report(stack_images(result.images)):
            debug_log(f"  {label}: {count:,}")
        debug_log(
            f"load={format_seconds_compact(t_loaded - t_start)}, "
            f"quantize={format_seconds_compact(t_mapped - t_loaded)}, "
            f"save={format_seconds_compact(t_saved - t_mapped)}"
        )
    return written


__all__ = [
    "SmashResult",
    "build_quantization_map",
    "quantization_map_from_images",
    "apply_quantization_map",
    "smash_images",
    "smash_files",
]
