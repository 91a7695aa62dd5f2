"""
dyeflow — Real-Time 2D Dye-in-Fluid Simulator
==============================================
Exports the main interfaces.

The viewer imports: Simulator, ForceInput
Tests and headless runs also use: ForceSample, SimConfig, colorize
"""

from .config import SimConfig
from .errors import ComputeResourceLost, SimulationInitError
from .forces import ForceInput, ForceSample, PointerMode
from .grid import BufferIndex, GridState
from .render import MODE_DYE, MODE_VELOCITY, colorize
from .simulation import Simulator

__version__ = "0.1.0"

__all__ = [
    "BufferIndex",
    "ComputeResourceLost",
    "ForceInput",
    "ForceSample",
    "GridState",
    "MODE_DYE",
    "MODE_VELOCITY",
    "PointerMode",
    "SimConfig",
    "SimulationInitError",
    "Simulator",
    "colorize",
]
