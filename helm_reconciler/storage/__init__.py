"""
The storage module provides the key-value release storage written to by Helm
actions.

- Releases are stored under a key derived from the release name and revision.
- The ObservingDriver reports every write so that reconcilers can record
  what an action changed, even when the action itself failed.
"""

from .driver import Driver, release_key
from .in_memory import InMemoryDriver
from .observer import ObservingDriver, ObserveFunc

__all__ = [
    "Driver",
    "release_key",
    "InMemoryDriver",
    "ObservingDriver",
    "ObserveFunc",
]
