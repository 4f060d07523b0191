"""Trash backends.

Use refuse.backends.factory to build the backends a configuration
enables.
"""

from refuse.backends.base import Backend
from refuse.backends.legacy import LegacyBackend
from refuse.backends.trashinfo import TrashInfoError, TrashInfoRecord
from refuse.backends.xdg import OrphanReport, SpecBackend, TrashLocation

__all__ = [
    "Backend",
    "LegacyBackend",
    "OrphanReport",
    "SpecBackend",
    "TrashInfoError",
    "TrashInfoRecord",
    "TrashLocation",
]
