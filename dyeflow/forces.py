"""
forces.py — Pointer Forcing (Push and Dye Feed)
================================================
Turns raw pointer events into one ForceSample per tick.

Pointer events arrive whenever the user moves the mouse, on whatever thread
the windowing toolkit uses. The simulation only looks at the pointer once,
at the start of each tick, through `ForceInput.sample(dt)`.

Pointer velocity is smoothed with a one-pole filter:

  v' = s * v_prev + (1 - s) * (Δposition / Δt),   s = 0.5

and the brush falls off linearly from its centre:

  forceFactor = max(0, (radius - distance) / (radius + 0.01))

Button 0 pushes fluid along the pointer's motion (force = v' * 4).
Any other button feeds dye (feed = 1) without pushing.
"""

import copy
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np


Vec2 = Tuple[float, float]

FORCE_RADIUS = 16.0
FORCE_SCALE = 4.0
VELOCITY_SMOOTHING = 0.5
FALLOFF_EPSILON = 0.01   # keeps the falloff finite for radius 0


class PointerMode(Enum):
    NONE = "none"
    PUSH = "push"
    FEED_DYE = "feed_dye"


@dataclass(frozen=True)
class ForceSample:
    """The forcing applied during one tick."""
    location: Vec2 = (0.0, 0.0)
    radius: float = 0.0
    force_vector: Vec2 = (0.0, 0.0)
    feed: float = 0.0

    @classmethod
    def zero(cls) -> "ForceSample":
        return cls()

    @property
    def active(self) -> bool:
        return self.radius > 0.0 and (self.feed != 0.0 or any(self.force_vector))

    def falloff(self, px: np.ndarray, py: np.ndarray) -> np.ndarray:
        """Linear brush falloff at positions (px, py). Distance is not wrapped."""
        distance = np.hypot(px - self.location[0], py - self.location[1])
        return np.maximum(0.0, (self.radius - distance) / (self.radius + FALLOFF_EPSILON))


@dataclass
class PointerState:
    current_location: Optional[Vec2] = None
    previous_location: Optional[Vec2] = None
    smoothed_velocity: Optional[Vec2] = None
    mode: PointerMode = PointerMode.NONE


class ForceInput:
    """
    Pointer tracker. Thread-safe: event methods and sample() may be called
    from different threads.

    Usage:
        pointer = ForceInput()
        pointer.press(0, 12.0, 30.0)
        pointer.move(14.0, 30.5)
        force = pointer.sample(dt_ms)     # once per tick
        pointer.release()
    """

    def __init__(self, radius: float = FORCE_RADIUS, force_scale: float = FORCE_SCALE,
                 smoothing: float = VELOCITY_SMOOTHING):
        self.radius = radius
        self.force_scale = force_scale
        self.smoothing = smoothing
        self._state = PointerState()
        self._lock = threading.Lock()

    # ── Pointer source events ─────────────────────────────────────────────

    def press(self, button: int, x: float, y: float):
        """Start an interaction. Button 0 pushes, any other button feeds dye."""
        with self._lock:
            self._state.mode = PointerMode.PUSH if button == 0 else PointerMode.FEED_DYE
            self._state.current_location = (float(x), float(y))

    def move(self, x: float, y: float):
        with self._lock:
            self._state.current_location = (float(x), float(y))

    def release(self):
        """End the interaction. The next press starts unsmoothed."""
        with self._lock:
            self._state = PointerState()

    # ── Per-tick sampling ─────────────────────────────────────────────────

    def sample(self, dt: float) -> ForceSample:
        """
        Advance the smoothed pointer velocity by one tick and return the
        forcing for that tick.

        Args:
            dt : Tick length in milliseconds (position units per ms)
        """
        with self._lock:
            s = self._state
            if s.mode is PointerMode.NONE or s.current_location is None:
                return ForceSample.zero()

            if s.previous_location is None:
                s.previous_location = s.current_location
            if s.smoothed_velocity is None:
                s.smoothed_velocity = (0.0, 0.0)

            dx = s.current_location[0] - s.previous_location[0]
            dy = s.current_location[1] - s.previous_location[1]
            k = self.smoothing
            vx = s.smoothed_velocity[0] * k + (dx / dt) * (1.0 - k)
            vy = s.smoothed_velocity[1] * k + (dy / dt) * (1.0 - k)
            s.smoothed_velocity = (vx, vy)
            s.previous_location = s.current_location

            if s.mode is PointerMode.PUSH:
                force_vector = (vx * self.force_scale, vy * self.force_scale)
                feed = 0.0
            else:
                force_vector = (0.0, 0.0)
                feed = 1.0

            return ForceSample(location=s.current_location, radius=self.radius,
                               force_vector=force_vector, feed=feed)

    def snapshot(self) -> PointerState:
        """Copy of the pointer state (for display and tests)."""
        with self._lock:
            return copy.copy(self._state)

    def reset(self):
        with self._lock:
            self._state = PointerState()
