"""Random color generation."""
from __future__ import annotations

from typing import Tuple

import numpy as np


def random_rgb(rng: np.random.Generator, light_only: bool = True) -> Tuple[int, int, int]:
    """Draw a random RGB color.

    With `light_only`, blue is derived from red and green so the color never
    gets too dark.
    """
    r, g = (int(v) for v in rng.integers(0, 256, size=2))
    if light_only:
        b = 255 - (r + g) // 2
    else:
        b = int(rng.integers(0, 256))
    return r, g, b
