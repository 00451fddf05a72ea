# colour_smash/cli.py
"""
Reduce RGBA images to a fixed colour budget for RGBA8 or RGB5A3 textures.

Usage:
  colour-smash FILE [FILE ...] [--colortype RGBA8|RGB5A3] [--suffix S] [--colours K]
               [--outdir DIR] [--separate] [--workers N] [--max-iterations N] [--verbose]

Modes:
  joint    : (default) all files share one palette of pixel tuples. Files must
             have identical dimensions.
  separate : every file gets its own palette; a failing file does not stop the rest.

Output:
  PNG. '<stem><suffix>.png' next to each input unless --outdir is given.
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from PIL import UnidentifiedImageError

from . import __version__
from .codec import ColourFormat, get_format
from .constants import (
    COLOUR_TYPES,
    DEFAULT_COLOUR_TYPE,
    DEFAULT_COLOURS,
    DEFAULT_SUFFIX,
    MAX_ITERATIONS,
)
from .core_types import CodecError, QuantizationError
from .image_io import output_path_for
from .quantize import smash_files
from .utils import (
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_total_duration_compact,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
)

# Failures that end one run but are reported, not raised. CodecError (a
# ValueError) is a codec defect and propagates.
RUN_ERRORS = (OSError, UnidentifiedImageError, ValueError, QuantizationError)


def _colour_type(value: str) -> ColourFormat:
    try:
        return get_format(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"{exc} (choose from {', '.join(COLOUR_TYPES)})"
        ) from None


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="colour-smash",
        description="Reduce image(s) to a fixed colour budget (RGBA8 or RGB5A3).",
    )
    parser.add_argument("inputs", type=Path, nargs="+", metavar="FILE", help="Input image(s)")
    parser.add_argument(
        "-c",
        "--colortype",
        type=_colour_type,
        default=get_format(DEFAULT_COLOUR_TYPE),
        metavar="TYPE",
        help=f"Output colour type: {' or '.join(COLOUR_TYPES)} (default {DEFAULT_COLOUR_TYPE}).",
    )
    parser.add_argument(
        "-s",
        "--suffix",
        default=DEFAULT_SUFFIX,
        help=f"Suffix for output filenames (default {DEFAULT_SUFFIX!r}).",
    )
    parser.add_argument(
        "-k",
        "--colours",
        type=_positive_int,
        default=DEFAULT_COLOURS,
        help=f"Palette size (default {DEFAULT_COLOURS}).",
    )
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    parser.add_argument(
        "--separate",
        action="store_true",
        help="Give every file its own palette instead of one joint palette.",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=1,
        help="Threads for the cluster reassignment step.",
    )
    parser.add_argument(
        "--max-iterations",
        type=_positive_int,
        default=MAX_ITERATIONS,
        help="Safety cap on refinement iterations.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose diagnostics")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with:
        inputs: list of input Paths
        colortype: ColourFormat
        suffix: output filename suffix
        colours: palette size
        outdir: optional Path
        separate: bool
        workers: int
        max_iterations: int
        verbose: bool
    """
    return build_parser().parse_args(argv)


def _run_once(inputs: List[Path], args: argparse.Namespace) -> bool:
    """Quantize one batch (joint palette). Returns False after a reported failure."""
    outputs = [output_path_for(p, args.suffix, args.outdir) for p in inputs]
    t_start = time.perf_counter()
    try:
        smash_files(
            inputs,
            outputs,
            args.colortype,
            args.colours,
            max_iterations=args.max_iterations,
            workers=args.workers,
            debug=args.verbose,
        )
    except CodecError:
        raise
    except FileNotFoundError as exc:
        error(f"not found: {exc.filename or exc}")
        return False
    except RUN_ERRORS as exc:
        error(str(exc) or type(exc).__name__)
        return False
    log(f"Total time {format_total_duration_compact(time.perf_counter() - t_start)}")
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.

    Returns the process exit code: 0 on success, 1 if any file failed.
    Argument errors exit with code 2 from argparse.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)
    inputs: List[Path] = list(args.inputs)

    print_config_line(
        "run",
        [
            ("Colour type", args.colortype.name),
            ("Colours", args.colours),
            ("Files", len(inputs)),
            ("Palette", "separate" if args.separate else "joint"),
            ("Workers", args.workers),
        ],
        debug=False,
    )
    if args.verbose:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("CPU cores", os.cpu_count() or 1),
                    ("Suffix", repr(args.suffix)),
                    ("Max iterations", args.max_iterations),
                ]
            )
        )

    if args.separate or len(inputs) == 1:
        failures = 0
        for path in inputs:
            print_banner(path.name)
            if not _run_once([path], args):
                failures += 1
        return 1 if failures else 0

    print_banner(", ".join(p.name for p in inputs))
    return 0 if _run_once(inputs, args) else 1


if __name__ == "__main__":
    sys.exit(main())
