# colour_smash/utils.py
from __future__ import annotations

"""
Shared utilities for colour_smash.

Includes duration formatting, palette usage reporting, and tidy logging.
"""

import sys
from typing import Any, Iterable, List, Tuple

import numpy as np

from .core_types import U8Pixels


#  Time formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes, rem = divmod(seconds, 60.0)
    return f"{int(minutes)}m {rem:.1f}s"


def format_total_duration_compact(seconds: float) -> str:
    """Whole-run total: 'Mm Ss' past a minute, 'S.Ss' past a second, else milliseconds."""
    if seconds < 1.0:
        return format_seconds_compact(seconds)
    if seconds < 60.0:
        return f"{seconds:.1f}s"
    minutes, rem = divmod(int(round(seconds)), 60)
    return f"{minutes}m {rem}s"


# Palette usage


def rgba_to_hex(rgba: Iterable[int]) -> str:
    """RGBA to lowercase '#rrggbbaa'."""
    r, g, b, a = (int(c) for c in rgba)
    return f"#{r:02x}{g:02x}{b:02x}{a:02x}"


def count_distinct_combinations(pixels: U8Pixels) -> int:
    """Number of distinct (S,4) rows in a (P,S,4) pixel array."""
    if pixels.shape[0] == 0:
        return 0
    flat = pixels.reshape(pixels.shape[0], -1)
    return int(np.unique(flat, axis=0).shape[0])


def colour_usage_report(pixels: U8Pixels, top_k: int = 10) -> List[Tuple[str, int]]:
    """
    Most used composites in a (P,S,4) pixel array.

    Returns a list of ('#rrggbbaa[/#rrggbbaa...]', count) sorted by count descending.
    """
    if pixels.shape[0] == 0:
        return []
    slots = pixels.shape[1]
    flat = pixels.reshape(pixels.shape[0], -1)
    uniques, counts = np.unique(flat, axis=0, return_counts=True)
    order = np.argsort(-counts, kind="stable")[:top_k]
    report: List[Tuple[str, int]] = []
    for idx in order.tolist():
        row = uniques[idx].reshape(slots, 4)
        label = "/".join(rgba_to_hex(px) for px in row)
        report.append((label, int(counts[idx])))
    return report


#  CLI logging


def enable_line_buffered_stdout() -> None:
    """
    Line-buffer stdout so per-iteration lines appear as they are printed.
    Streams without .reconfigure() (or that refuse it) are left unchanged.
    """
    reconfig = getattr(sys.stdout, "reconfigure", None)
    if not callable(reconfig):
        return
    try:
        reconfig(line_buffering=True, write_through=True)
    except (OSError, ValueError) as exc:
        debug_log(f"stdout left as is: {exc}")


# Pretty logging


def format_bool_on_off(value: Any) -> str:
    """'on'/'off' for bools; str(value) otherwise."""
    if isinstance(value, (bool, np.bool_)):
        return "on" if value else "off"
    return str(value)


def format_number_compact(value: Any) -> str:
    """1,234 for integers, up to 3 decimals for floats; NumPy scalars included."""
    if isinstance(value, (int, np.integer)):
        return f"{int(value):,}"
    if isinstance(value, (float, np.floating)):
        return f"{float(value):.3f}".rstrip("0").rstrip(".")
    return str(value)


def key_value_pairs_to_string(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """Join (name, value) pairs as 'Name: value' blocks, e.g. 'Iteration: 3  Moved: 1,204'."""
    out: List[str] = []
    for name, value in pairs:
        if isinstance(value, (bool, np.bool_)):
            out.append(f"{name}{eq}{format_bool_on_off(value)}")
        else:
            out.append(f"{name}{eq}{format_number_compact(value)}")
    return sep.join(out)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool
) -> None:
    """
    One config line per run, e.g.:
      [run] Colour type: RGB5A3  Colours: 256  Files: 2  Palette: joint  Workers: 1
    Goes through debug_log() when debug=True, else log().
    """
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


def print_banner(title: str) -> None:
    """Per-batch banner, e.g. '=== a.png, b.png ==='."""
    _emit(f"\n=== {title} ===")


def _emit(message: str, prefix: str = "", to_stderr: bool = False) -> None:
    print(f"{prefix}{message}", file=sys.stderr if to_stderr else sys.stdout, flush=True)


def log(message: str) -> None:
    """Plain progress line on stdout."""
    _emit(message)


def debug_log(message: str) -> None:
    """Diagnostic line, printed only by callers running with debug set."""
    _emit(message, "[debug] ")


def warn(message: str) -> None:
    """Recoverable oddity (duplicate centre, iteration cap); always printed."""
    _emit(message, "[warn] ")


def error(message: str) -> None:
    """Failure of one run, on stderr."""
    _emit(message, "[error] ", to_stderr=True)


__all__ = [
    "format_seconds_compact",
    "format_total_duration_compact",
    "rgba_to_hex",
    "count_distinct_combinations",
    "colour_usage_report",
    "enable_line_buffered_stdout",
    "format_bool_on_off",
    "format_number_compact",
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "log",
    "debug_log",
    "warn",
    "error",
]
