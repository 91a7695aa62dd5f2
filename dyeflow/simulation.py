"""
simulation.py — Master Tick Loop
=================================
One call to `step()` advances the fluid by one tick.

Pipeline per tick (strictly in this order, nothing skipped):
  1. Snapshot the pointer once → ForceSample for the whole tick
  2. Pass 1  advect velocity, pressure gradient, pointer force, dye feed
  3. Pass 2  Jacobi pressure relaxation, N times (N = 10 by default)
  4. Pass 3  subtract pressure gradient, advect dye
  5. The readable buffer now holds the tick's final state → render it

Each pass reads the current buffer, writes the other one, and the buffer
index flips exactly once. The Simulator counts those flips itself; with
N = 10 that's 12 per tick and the index ends where it started.
"""

import dataclasses
import time
from typing import Callable, Optional

import numpy as np

from .advect import advect_force
from .config import SimConfig
from .errors import ComputeResourceLost, SimulationInitError
from .forces import ForceInput, ForceSample
from .grid import GridState
from .parallel import PassExecutor
from .render import MODE_DYE, MODE_VELOCITY, colorize
from .solver import project_advect_dye, relax_pressure


class Simulator:
    """
    The complete 2D dye simulation.

    Usage:
        sim = Simulator(width=128, height=128)
        sim.pointer.press(0, 64, 64)
        for frame in range(100):
            sim.step()
            image = sim.render()        # Hand to a display
    """

    def __init__(self, width: int = 128, height: int = 128,
                 config: Optional[SimConfig] = None,
                 pointer: Optional[ForceInput] = None,
                 verbose: bool = True, **overrides):
        """
        Args:
            width, height : Grid resolution in cells
            config        : SimConfig (defaults if None)
            pointer       : ForceInput to read each tick (a new one if None)
            verbose       : Print lifecycle messages
            overrides     : Individual SimConfig fields, e.g. workers=4
        """
        config = config if config is not None else SimConfig()
        unknown = set(overrides) - SimConfig.names()
        if unknown:
            raise SimulationInitError(f"Unknown config fields: {sorted(unknown)}")
        config = dataclasses.replace(config, **overrides)
        try:
            config.validate()
        except ValueError as e:
            raise SimulationInitError(f"Invalid simulator config: {e}") from e

        self.config = config
        self.verbose = verbose
        self.grid = GridState(width, height)
        self.pointer = pointer if pointer is not None else ForceInput()
        self._configure_pointer()
        self.executor = PassExecutor(config.workers)

        self.frame = 0
        self.render_mode = MODE_DYE
        self.recoveries = 0
        self.perf_log = []   # stores timing data per tick

        self._last_tick_time = None
        self._running = False

    # ── Tick ──────────────────────────────────────────────────────────────

    @property
    def current(self):
        """Index of the buffer holding the latest complete state."""
        return self.grid.current

    @property
    def state(self) -> np.ndarray:
        """The latest complete grid buffer (read-only by convention)."""
        return self.grid.read

    def step(self, force: Optional[ForceSample] = None) -> dict:
        """
        Advance the simulation by one tick.

        Args:
            force : Forcing for this tick. None = sample self.pointer.

        Returns performance metrics dict for benchmarking.
        """
        t_total_start = time.perf_counter()

        dt = self._tick_dt()
        if force is None:
            force = self.pointer.sample(dt)

        start = self.grid.current
        try:
            metrics = self._run_passes(force)
        except ComputeResourceLost as e:
            self._recover(e)
            # restart the tick from the buffer it began on
            self.grid.current = start
            metrics = self._run_passes(force)

        self.frame += 1
        t_total = (time.perf_counter() - t_total_start) * 1000

        metrics.update({
            "frame"          : self.frame,
            "dt_ms"          : dt,
            "total_ms"       : t_total,
            "fps"            : 1000.0 / t_total if t_total > 0 else 0,
            "force_active"   : force.active,
            "dye_total"      : self.dye_total(),
            "divergence_max" : float(np.abs(self.divergence()).max()),
        })
        self.perf_log.append(metrics)
        return metrics

    def _run_passes(self, force: ForceSample) -> dict:
        g = self.grid
        run = self.executor.run
        start = g.current
        flips = 0

        # ── Pass 1: advect + forces ────────────────────────────────────────
        t0 = time.perf_counter()
        run(advect_force, g.read, g.write, force, self.config.density)
        g.flip()
        flips += 1
        t_advect = (time.perf_counter() - t0) * 1000

        # ── Pass 2: pressure relaxation ────────────────────────────────────
        t0 = time.perf_counter()
        for _ in range(self.config.relaxation_iterations):
            run(relax_pressure, g.read, g.write)
            g.flip()
            flips += 1
        t_relax = (time.perf_counter() - t0) * 1000

        # ── Pass 3: projection + dye advection ─────────────────────────────
        t0 = time.perf_counter()
        run(project_advect_dye, g.read, g.write)
        g.flip()
        flips += 1
        t_project = (time.perf_counter() - t0) * 1000

        return {
            "advect_ms"    : t_advect,
            "relax_ms"     : t_relax,
            "project_ms"   : t_project,
            "flips"        : flips,
            "start_buffer" : start,
            "buffer"       : g.current,
        }

    def _tick_dt(self) -> float:
        """Tick length in ms: fixed, or measured since the previous tick."""
        now = time.perf_counter()
        last, self._last_tick_time = self._last_tick_time, now
        if not self.config.measured_dt or last is None:
            return self.config.dt_ms
        return max((now - last) * 1000.0, 1e-3)

    def _recover(self, error: Exception):
        """Reallocate zeroed buffers and a fresh worker pool after a resource loss."""
        self._log(f"Compute resource lost ({error}); reallocating buffers")
        self.executor.shutdown()
        self.grid.allocate()
        self.executor = PassExecutor(self.config.workers)
        self.recoveries += 1

    # ── Control ───────────────────────────────────────────────────────────

    def reset(self):
        """Zero both buffers and forget any pointer interaction."""
        self.grid.reset()
        self.pointer.reset()
        self._last_tick_time = None
        self._log("Reset to zero")

    def resize(self, width: int, height: int):
        """New grid size. No resampling: the fluid restarts from zero."""
        self.grid.resize(width, height)
        self.pointer.reset()
        self._log(f"Resized to {width}x{height}")

    def update_config(self, **kwargs):
        """Change SimConfig fields at runtime, e.g. update_config(relaxation_iterations=20)."""
        unknown = set(kwargs) - SimConfig.names()
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        config = dataclasses.replace(self.config, **kwargs)
        config.validate()

        workers_changed = config.workers != self.config.workers
        self.config = config
        self._configure_pointer()
        if workers_changed:
            self.executor.shutdown()
            self.executor = PassExecutor(config.workers)
        self._log(f"Config updated: {kwargs}")

    def _configure_pointer(self):
        self.pointer.radius = self.config.force_radius
        self.pointer.force_scale = self.config.force_scale
        self.pointer.smoothing = self.config.velocity_smoothing

    def toggle_render_mode(self) -> int:
        self.render_mode = MODE_VELOCITY if self.render_mode == MODE_DYE else MODE_DYE
        return self.render_mode

    def render(self, mode: Optional[int] = None) -> np.ndarray:
        """RGBA image of the current state (see render.colorize)."""
        return colorize(self.state, self.render_mode if mode is None else mode)

    # ── Scheduler ─────────────────────────────────────────────────────────

    def run(self, ticks: Optional[int] = None, fps: Optional[float] = None,
            on_tick: Optional[Callable[["Simulator", dict], None]] = None) -> int:
        """
        Fixed-period tick loop. Runs until `ticks` ticks have elapsed or
        stop() is called (e.g. from on_tick or another thread).

        Returns the number of ticks executed.
        """
        period = 1.0 / (fps if fps is not None else self.config.fps)
        self._running = True
        done = 0
        while self._running and (ticks is None or done < ticks):
            frame_start = time.perf_counter()
            metrics = self.step()
            done += 1
            if on_tick is not None:
                on_tick(self, metrics)

            elapsed = time.perf_counter() - frame_start
            if elapsed < period:
                time.sleep(period - elapsed)
        self._running = False
        return done

    def stop(self):
        self._running = False

    def close(self):
        self.stop()
        self.executor.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── Diagnostics ───────────────────────────────────────────────────────

    def divergence(self) -> np.ndarray:
        return self.grid.compute_divergence()

    def dye_total(self) -> float:
        return float(self.grid.dye.sum(dtype=np.float64))

    def _log(self, message: str):
        if self.verbose:
            print(f"[Simulator] {message}")

    def print_status(self):
        """Pretty-print current simulation state."""
        g = self.grid
        div = self.divergence()
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  Grid: {g.width}x{g.height}  |  Buffer: {g.current.name}")
        print(f"  Dye       : max={g.dye.max():.4f}, total={self.dye_total():.2f}")
        print(f"  Velocity  : max_x={np.abs(g.velocity[..., 0]).max():.4f}, "
              f"max_y={np.abs(g.velocity[..., 1]).max():.4f}")
        print(f"  Divergence: max={np.abs(div).max():.6f}, mean={np.abs(div).mean():.8f}")
        print(f"  Pressure  : max={g.pressure.max():.4f}, min={g.pressure.min():.4f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Perf      : {last['total_ms']:.1f}ms/tick ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")
