"""Chain host and scenario runner."""

from .chain import Chain, Receipt, derive_address
from .runner import SimulationResult, SimulationRunner, StateSnapshot

__all__ = [
    "Chain",
    "Receipt",
    "derive_address",
    "SimulationRunner",
    "SimulationResult",
    "StateSnapshot",
]
