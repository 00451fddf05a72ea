# colour_smash/__init__.py
"""
colour_smash package.

Purpose:
  Reduce RGBA images to a fixed number of colours representable in an output
  texture format (RGBA8 or RGB5A3). See colour_smash.cli for the command line.

Public API:
  smash_images   : quantize in-memory RGBA images to a shared palette.
  smash_files    : load, quantize and save images end-to-end.
  run_kmeans     : weighted k-centre clustering on (N,S,4) component arrays.
  quantize_groups: same, on Grouped colours or composites.
  get_format     : look up a colour format by name ("RGBA8", "RGB5A3").
  codec          : component conversions, distance and mean.
  grouping       : counting of identical colours.
  combination    : multi-image composites, palette and map unzipping.
  utils          : formatting and logging helpers.

Quick start:
  from colour_smash import smash_images
  result = smash_images([rgba], "RGB5A3", 256)
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import codec
from . import combination
from . import core_types
from . import grouping
from . import utils

from .codec import Rgb5a3Format, Rgba8Format, get_format  # noqa: E402
from .core_types import CodecError, Grouped, QuantizationError  # noqa: E402
from .grouping import group  # noqa: E402
from .kmeans import quantize_groups, run_kmeans  # noqa: E402
from .quantize import SmashResult, smash_files, smash_images  # noqa: E402

__all__ = [
    "__version__",
    "codec",
    "combination",
    "core_types",
    "grouping",
    "utils",
    "Rgba8Format",
    "Rgb5a3Format",
    "get_format",
    "CodecError",
    "QuantizationError",
    "Grouped",
    "group",
    "run_kmeans",
    "quantize_groups",
    "SmashResult",
    "smash_images",
    "smash_files",
]
