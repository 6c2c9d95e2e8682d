"""
Snapshot module - Save/load text format and rewind history.

Provides:
- Snapshot: a round and its tournament flattened to plain values
- serialize / deserialize: the save-file text format
- capture / restore: between live objects and Snapshots
- History: labelled snapshots for rewinding
"""

from .codec import (
    Snapshot,
    RestoredGame,
    capture,
    restore,
    serialize,
    serialize_state,
    deserialize,
)
from .history import History, HistoryEntry

__all__ = [
    "Snapshot",
    "RestoredGame",
    "capture",
    "restore",
    "serialize",
    "serialize_state",
    "deserialize",
    "History",
    "HistoryEntry",
]
