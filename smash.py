#!/usr/bin/env python3
"""
smash.py
Reduce RGBA images to 256 colours for RGBA8 or RGB5A3 textures.

Usage:
  python smash.py FILE [FILE ...] --colortype [RGBA8|RGB5A3] --suffix " (smashed)" --verbose

Input:
  Any Pillow-readable image(s). Several files are quantized jointly and must
  share dimensions; pass --separate to give each its own palette.

Output:
  PNG. Writes <stem><suffix>.png next to each input.
"""

import sys

from colour_smash.cli import main

if __name__ == "__main__":
    sys.exit(main())
