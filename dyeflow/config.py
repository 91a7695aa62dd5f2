"""
config.py — Simulation Parameters
==================================
Every tunable of the solver, the pointer brush and the run loop lives in
one dataclass. Field metadata carries the help text and the allowed range;
`validate()` checks values against those ranges.

Simulator(..., relaxation_iterations=20) and Simulator.update_config(...)
both go through `dataclasses.replace` + `validate()`.
"""

from dataclasses import dataclass, field, fields


@dataclass
class SimConfig:
    """Tunable parameters for the dye simulation."""

    # --- Solver ---
    relaxation_iterations: int = field(default=10, metadata={"help": "Jacobi pressure iterations per tick.", "min": 0, "max": 200})
    density: float = field(default=1.0, metadata={"help": "Fluid density in the pressure-gradient term.", "min": 0.01, "max": 100.0})

    # --- Timing ---
    dt_ms: float = field(default=1000.0 / 60.0, metadata={"help": "Fixed tick length in milliseconds.", "min": 1.0, "max": 1000.0})
    measured_dt: bool = field(default=False, metadata={"help": "Use wall-clock time between ticks instead of dt_ms."})
    fps: float = field(default=60.0, metadata={"help": "Target tick rate of the run loop.", "min": 1.0, "max": 240.0})

    # --- Pointer forcing ---
    force_radius: float = field(default=16.0, metadata={"help": "Radius of the pointer brush in cells.", "min": 0.0, "max": 512.0})
    force_scale: float = field(default=4.0, metadata={"help": "Multiplier from pointer velocity to force.", "min": 0.0, "max": 100.0})
    velocity_smoothing: float = field(default=0.5, metadata={"help": "Weight kept from the previous pointer velocity.", "min": 0.0, "max": 1.0})

    # --- Execution ---
    workers: int = field(default=1, metadata={"help": "Threads per pass (1 = inline).", "min": 1, "max": 64})

    @classmethod
    def names(cls) -> set:
        return {f.name for f in fields(cls)}

    def validate(self):
        """Raise ValueError for any value outside its declared range."""
        for f in fields(self):
            value = getattr(self, f.name)
            lo = f.metadata.get("min")
            hi = f.metadata.get("max")
            if lo is not None and value < lo:
                raise ValueError(f"{f.name}={value} is below the minimum {lo}")
            if hi is not None and value > hi:
                raise ValueError(f"{f.name}={value} is above the maximum {hi}")
        if int(self.relaxation_iterations) != self.relaxation_iterations:
            raise ValueError(f"relaxation_iterations must be an integer, got {self.relaxation_iterations}")
        if int(self.workers) != self.workers:
            raise ValueError(f"workers must be an integer, got {self.workers}")
