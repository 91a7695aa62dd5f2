"""
advect.py — Pass 1: Self-Advection, Pressure Gradient, Pointer Force
=====================================================================
The first pass of every tick. Per cell p, reading only the previous buffer:

  1. Trace BACKWARD along the velocity by one tick:
       advection = velocity sampled at (p - velocity(p))
     The sample is bilinear and wraps around the edges. One step, no
     sub-stepping: the interpolation is the only smoothing.
  2. Push away from high pressure (central difference, density = 1):
       pressureTerm = -(r.p - l.p, t.p - b.p) / (2 * density)
  3. Add the pointer brush:
       forceTerm = forceVector * forceFactor
       dye      += feed * forceFactor, clamped to [0, 1]

  newVelocity = advection + pressureTerm + forceTerm

The result is NOT divergence-free yet; the relaxation and projection passes
take care of that.

There is no viscosity term. The bilinear resampling dissipates enough
energy on its own to keep the solver stable.

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

import numpy as np

from .forces import ForceSample
from .grid import DYE, PRESSURE, VX, VY, cell_positions, neighbors, sample_wrapped


def advect_force(src: np.ndarray, dst: np.ndarray, rows: slice,
                 force: ForceSample, density: float = 1.0):
    """
    Compute rows `rows` of pass 1 from `src` into `dst`.

    Args:
        src     : Read buffer (H, W, 4), never modified
        dst     : Write buffer (H, W, 4), only dst[rows] is written
        rows    : Band of rows to evaluate
        force   : The tick's ForceSample
        density : Fluid density in the pressure term
    """
    width = src.shape[1]
    c, t, l, r, b = neighbors(src, rows)
    px, py = cell_positions(width, rows)

    # Semi-Lagrangian backtrace of the velocity field through itself
    advection = sample_wrapped(src[..., VX:VY + 1], px - c[..., VX], py - c[..., VY])

    pressure_x = -(r[..., PRESSURE] - l[..., PRESSURE]) / (2.0 * density)
    pressure_y = -(t[..., PRESSURE] - b[..., PRESSURE]) / (2.0 * density)

    factor = force.falloff(px, py)
    fx, fy = force.force_vector

    out = dst[rows]
    out[..., VX] = advection[..., 0] + pressure_x + fx * factor
    out[..., VY] = advection[..., 1] + pressure_y + fy * factor
    out[..., PRESSURE] = c[..., PRESSURE]
    out[..., DYE] = np.clip(c[..., DYE] + force.feed * factor, 0.0, 1.0)
