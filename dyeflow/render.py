"""
render.py — Cell Colour Mapping
================================
Maps a grid buffer to an RGBA image:

  mode 0 (dye)      rgb = dye * (1, 1, 1) + (vx, vy, pressure) * 0.1
  mode 1 (velocity) rgb = (vx, vy, pressure) + 0.5

Alpha is always 1. Values are NOT clipped here; the viewer clips to [0, 1]
before display.
"""

import numpy as np

from .grid import DYE, PRESSURE, VX

MODE_DYE = 0
MODE_VELOCITY = 1
RENDER_MODES = (MODE_DYE, MODE_VELOCITY)


def colorize(buf: np.ndarray, mode: int = MODE_DYE) -> np.ndarray:
    """Return an (H, W, 4) float32 RGBA image of `buf`."""
    xyz = buf[..., VX:PRESSURE + 1].astype(np.float32)
    rgba = np.ones(buf.shape[:2] + (4,), dtype=np.float32)

    if mode == MODE_DYE:
        rgba[..., :3] = buf[..., DYE, np.newaxis] + xyz * 0.1
    elif mode == MODE_VELOCITY:
        rgba[..., :3] = xyz + 0.5
    else:
        raise ValueError(f"Unknown render mode: {mode}. Use {MODE_DYE} or {MODE_VELOCITY}.")
    return rgba
