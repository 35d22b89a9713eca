"""splitcheck execution utilities - process runner and implementation slot."""

from splitcheck.execution.process import ProcessRunner, SpawnError
from splitcheck.execution.slot import ImplementationSlot

__all__ = [
    "ImplementationSlot",
    "ProcessRunner",
    "SpawnError",
]
