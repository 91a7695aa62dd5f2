"""
grid.py — Double-Buffered Toroidal Grid
========================================
The foundation of the entire simulation.

Every cell stores four floats, packed along the last axis:

    channel 0  VX        x-velocity   (grid units per tick)
    channel 1  VY        y-velocity
    channel 2  PRESSURE
    channel 3  DYE       passive tracer in [0, 1]

A buffer is an array of shape (height, width, 4). Row index is y (0 at the
bottom, increasing upward), column index is x, so cell (x, y) lives at
buffer[y, x].

There are exactly two buffers. Each pass reads one and writes the other,
then the buffer index flips. Nothing ever reads and writes the same array
inside a pass.

Edges wrap: the left neighbour of column 0 is column width-1, the top
neighbour of row height-1 is row 0. All wrapping is done with explicit
modulo indexing.
"""

from enum import IntEnum

import numpy as np

from .errors import ComputeResourceLost, SimulationInitError


VX, VY, PRESSURE, DYE = 0, 1, 2, 3
CHANNELS = 4


class BufferIndex(IntEnum):
    """Which of the two buffers currently holds the readable state."""
    A = 0
    B = 1

    def flip(self) -> "BufferIndex":
        return BufferIndex(self ^ 1)


# ── Wrapped addressing ───────────────────────────────────────────────────────

def neighbors(buf: np.ndarray, rows: slice) -> tuple:
    """
    Fetch the centre cells of `rows` and their four axis neighbours.

    Returns (c, t, l, r, b), each of shape (len(rows), width, 4):
      t = row y+1, b = row y-1, l = column x-1, r = column x+1
    with both axes wrapped.
    """
    height, width = buf.shape[:2]
    y = np.arange(rows.start, rows.stop)
    x = np.arange(width)

    c = buf[y]
    t = buf[(y + 1) % height]
    b = buf[(y - 1) % height]
    l = c[:, (x - 1) % width]
    r = c[:, (x + 1) % width]
    return c, t, l, r, b


def cell_positions(width: int, rows: slice) -> tuple[np.ndarray, np.ndarray]:
    """(px, py) grid coordinates of every cell in `rows`, shape (len(rows), width)."""
    py, px = np.meshgrid(
        np.arange(rows.start, rows.stop, dtype=np.float64),
        np.arange(width, dtype=np.float64),
        indexing="ij",
    )
    return px, py


def sample_wrapped(field: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Bilinear interpolation of `field` at fractional positions (x, y),
    wrapping around both edges.

    `field` is (H, W) or (H, W, C); x and y share any shape S and the
    result has shape S (or S + (C,)). A sample exactly on a cell returns
    that cell's value unchanged.
    """
    height, width = field.shape[:2]

    x0 = np.floor(x)
    y0 = np.floor(y)
    tx = x - x0
    ty = y - y0

    i0 = x0.astype(np.int64) % width
    j0 = y0.astype(np.int64) % height
    i1 = (i0 + 1) % width
    j1 = (j0 + 1) % height

    if field.ndim == 3:
        tx = tx[..., np.newaxis]
        ty = ty[..., np.newaxis]

    c00 = field[j0, i0]
    c10 = field[j0, i1]
    c01 = field[j1, i0]
    c11 = field[j1, i1]

    lower = c00 * (1 - tx) + c10 * tx
    upper = c01 * (1 - tx) + c11 * tx
    return lower * (1 - ty) + upper * ty


# ── Grid state ───────────────────────────────────────────────────────────────

def _check_size(width, height, error):
    if not isinstance(width, (int, np.integer)) or not isinstance(height, (int, np.integer)):
        raise error(f"Grid size must be integers, got {width!r} x {height!r}")
    if width < 1 or height < 1:
        raise error(f"Grid size must be positive, got {width} x {height}")


class GridState:
    """
    The two grid buffers plus the index of the readable one.

    Owned by the Simulator. Passes get `read` and `write`; the Simulator
    calls `flip()` once after every pass it executes.
    """

    def __init__(self, width: int, height: int, dtype=np.float32):
        """
        Args:
            width, height : Grid size in cells, fixed until resize()
            dtype         : Floating dtype of both buffers
        """
        _check_size(width, height, SimulationInitError)
        if not np.issubdtype(np.dtype(dtype), np.floating):
            raise SimulationInitError(f"Grid buffers need a floating dtype, got {np.dtype(dtype)}")

        self.width = int(width)
        self.height = int(height)
        self.dtype = np.dtype(dtype)
        self.current = BufferIndex.A
        self._buffers = None
        self.allocate()

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self.height, self.width, CHANNELS)

    @property
    def allocated(self) -> bool:
        return self._buffers is not None

    def allocate(self):
        """(Re)allocate both buffers, zero-filled."""
        self._buffers = (
            np.zeros(self.shape, dtype=self.dtype),
            np.zeros(self.shape, dtype=self.dtype),
        )

    def release(self):
        """Drop both buffers. Any access before allocate() raises ComputeResourceLost."""
        self._buffers = None

    def resize(self, width: int, height: int):
        """Change the grid size. Contents are not resampled: both buffers restart at zero."""
        _check_size(width, height, ValueError)
        self.width = int(width)
        self.height = int(height)
        self.allocate()

    def buffer(self, index: BufferIndex) -> np.ndarray:
        if self._buffers is None:
            raise ComputeResourceLost("Grid buffers are not allocated")
        return self._buffers[index]

    @property
    def read(self) -> np.ndarray:
        """The buffer holding valid state (pass input)."""
        return self.buffer(self.current)

    @property
    def write(self) -> np.ndarray:
        """The other buffer (pass output)."""
        return self.buffer(self.current.flip())

    def flip(self) -> BufferIndex:
        self.current = self.current.flip()
        return self.current

    def reset(self):
        """Zero both buffers in place. The buffer index is left alone."""
        for buf in (self.buffer(BufferIndex.A), self.buffer(BufferIndex.B)):
            buf[:] = 0.0

    # ── Field views on the readable buffer ────────────────────────────────

    @property
    def velocity(self) -> np.ndarray:
        return self.read[..., VX:VY + 1]

    @property
    def pressure(self) -> np.ndarray:
        return self.read[..., PRESSURE]

    @property
    def dye(self) -> np.ndarray:
        return self.read[..., DYE]

    def compute_divergence(self) -> np.ndarray:
        """
        Central-difference divergence of the readable velocity field,
        (r.vx - l.vx + t.vy - b.vy) / 2 per cell, wrapped.

        This is the source term the pressure relaxation works against.
        """
        c, t, l, r, b = neighbors(self.read, slice(0, self.height))
        return 0.5 * (r[..., VX] - l[..., VX] + t[..., VY] - b[..., VY])

    def __repr__(self):
        if not self.allocated:
            return f"GridState({self.width}x{self.height}, released)"
        speed = np.sqrt((self.velocity ** 2).sum(axis=-1))
        return (
            f"GridState({self.width}x{self.height}, current={self.current.name})\n"
            f"  dye       : max={self.dye.max():.4f}, sum={self.dye.sum():.2f}\n"
            f"  velocity  : max_magnitude={speed.max():.4f}\n"
            f"  divergence: max={np.abs(self.compute_divergence()).max():.6f}"
        )
