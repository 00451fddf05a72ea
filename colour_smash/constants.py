# colour_smash/constants.py
"""
Tunables used across the project.

- Palette budget and CLI defaults
- Distance metric weights
- Refinement loop limits
"""
from __future__ import annotations

from typing import Tuple

# =========================
# CLI defaults
# =========================
DEFAULT_COLOURS: int = 256
DEFAULT_COLOUR_TYPE: str = "RGBA8"
DEFAULT_SUFFIX: str = " (smashed)"
OUTPUT_EXTENSION: str = ".png"
COLOUR_TYPES: Tuple[str, ...] = ("RGBA8", "RGB5A3")

# =========================
# Distance metric
# =========================
# Squared alpha difference weight relative to premultiplied RGB.
ALPHA_DISTANCE_WEIGHT: float = 3.0

# Components may drift this far outside [0, 1] through float sums and are clamped.
COMPONENT_TOLERANCE: float = 1e-9

# =========================
# Refinement
# =========================
# Stop scanning other centres once PRUNE_FACTOR * d(point, prior) <= d(prior, other).
PRUNE_FACTOR: float = 4.0

# Safety cap; a partition normally stabilises long before this.
MAX_ITERATIONS: int = 1000

# Below this many groups per centre, thread dispatch costs more than it saves.
MIN_GROUPS_PER_WORKER_TASK: int = 64

__all__ = [
    "DEFAULT_COLOURS",
    "DEFAULT_COLOUR_TYPE",
    "DEFAULT_SUFFIX",
    "OUTPUT_EXTENSION",
    "COLOUR_TYPES",
    "ALPHA_DISTANCE_WEIGHT",
    "COMPONENT_TOLERANCE",
    "PRUNE_FACTOR",
    "MAX_ITERATIONS",
    "MIN_GROUPS_PER_WORKER_TASK",
]
