"""Exceptions raised by the simulator."""


class SimulationInitError(RuntimeError):
    """The simulator cannot be constructed with the requested setup."""


class ComputeResourceLost(RuntimeError):
    """Buffers or worker pool became unusable mid-session; the Simulator recovers from this."""
