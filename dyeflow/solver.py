"""
solver.py — Pressure Relaxation and Projection (Passes 2 and 3)
================================================================
After pass 1 the velocity field is generally NOT divergence-free (fluid
"piles up" in some cells). We fix this in two stages:

  Pass 2: Jacobi relaxation of the pressure Poisson equation ∇²p = div(v).
          One call is ONE iteration; the Simulator runs it a fixed number
          of times per tick (10 by default):

            p'(x) = (p(t) + p(b) + p(l) + p(r) - div(x)) / 4
            div(x) = (r.vx - l.vx + t.vy - b.vy) / 2

          Velocity and dye pass through untouched.

  Pass 3: Subtract the pressure gradient from velocity, then carry the dye
          along the corrected velocity:

            v'   = v - 0.5 * (p(r) - p(l), p(t) - p(b))
            dye' = dye sampled at (x - v')

          Pressure passes through, so next tick starts from this tick's
          solution (a warm start for the relaxation).

Jacobi (ping-pong between two buffers) converges slower than Gauss-Seidel,
but every cell only reads the previous iterate, so a whole iteration is one
vectorised numpy expression and bands of rows can run on separate threads.
"""

import numpy as np

from .grid import DYE, PRESSURE, VX, VY, cell_positions, neighbors, sample_wrapped


def relax_pressure(src: np.ndarray, dst: np.ndarray, rows: slice):
    """One Jacobi iteration for rows `rows`, reading `src`, writing `dst`."""
    c, t, l, r, b = neighbors(src, rows)

    divergence = (r[..., VX] - l[..., VX] + t[..., VY] - b[..., VY]) / 2.0
    neighbor_sum = t[..., PRESSURE] + b[..., PRESSURE] + l[..., PRESSURE] + r[..., PRESSURE]

    out = dst[rows]
    out[..., VX] = c[..., VX]
    out[..., VY] = c[..., VY]
    out[..., PRESSURE] = (neighbor_sum - divergence) / 4.0
    out[..., DYE] = c[..., DYE]


def project_advect_dye(src: np.ndarray, dst: np.ndarray, rows: slice):
    """
    Remove divergence with the relaxed pressure, then advect dye along the
    corrected velocity. Rows `rows` only.

    The dye is sampled from `src` (the pre-pass buffer) at the backtraced
    position, so dye never moves more than one interpolation step per tick.
    """
    width = src.shape[1]
    c, t, l, r, b = neighbors(src, rows)
    px, py = cell_positions(width, rows)

    vx = c[..., VX] - 0.5 * (r[..., PRESSURE] - l[..., PRESSURE])
    vy = c[..., VY] - 0.5 * (t[..., PRESSURE] - b[..., PRESSURE])

    dye = sample_wrapped(src[..., DYE], px - vx, py - vy)

    out = dst[rows]
    out[..., VX] = vx
    out[..., VY] = vy
    out[..., PRESSURE] = c[..., PRESSURE]
    out[..., DYE] = np.clip(dye, 0.0, 1.0)
