# colour_smash/image_io.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from .constants import DEFAULT_SUFFIX, OUTPUT_EXTENSION
from .core_types import U8Image, assert_u8_image_rgba

"""
Image I/O helpers (RGBA8) and output naming.
"""


def load_image_rgba(path: Path) -> U8Image:
    """Load an image with Pillow and return uint8 [H,W,4] RGBA."""
    with Image.open(path) as im:
        rgba = im.convert("RGBA")
    return np.array(rgba, dtype=np.uint8)


def save_image_rgba(path: Path, rgba: np.ndarray) -> Path:
    """Write uint8 [H,W,4] RGBA as PNG; the suffix is forced to .png."""
    if path.suffix.lower() != OUTPUT_EXTENSION:
        path = path.with_name(path.name + OUTPUT_EXTENSION)
    out = np.ascontiguousarray(assert_u8_image_rgba(np.asarray(rgba)))
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(out).save(path)
    return path


def output_path_for(
    src: Path, suffix: str = DEFAULT_SUFFIX, outdir: Optional[Path] = None
) -> Path:
    """'<stem><suffix>.png' next to the source, or inside outdir when given."""
    name = f"{src.stem}{suffix}{OUTPUT_EXTENSION}"
    return (outdir / name) if outdir is not None else src.with_name(name)


__all__ = ["load_image_rgba", "save_image_rgba", "output_path_for"]
