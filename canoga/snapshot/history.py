"""
History - Ordered log of labelled snapshots for rewinding.

Entries are appended as play goes on. Rewinding to an index makes that
snapshot the live state again and discards every entry after it, so the
log always describes a single line of play.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..engine_core.errors import OutOfRange
from .codec import Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """One labelled point in the game."""
    index: int
    label: str
    snapshot: Snapshot


@dataclass
class History:
    """Append-only until rewound."""
    _entries: list[HistoryEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def push(self, label: str, snapshot: Snapshot) -> HistoryEntry:
        entry = HistoryEntry(index=len(self._entries), label=label, snapshot=snapshot)
        self._entries.append(entry)
        return entry

    def entries(self) -> list[tuple[int, str]]:
        """(index, label) pairs for a rewind menu."""
        return [(e.index, e.label) for e in self._entries]

    def get(self, index: int) -> HistoryEntry:
        self._check_index(index)
        return self._entries[index]

    @property
    def latest(self) -> HistoryEntry | None:
        return self._entries[-1] if self._entries else None

    def rewind(self, index: int) -> Snapshot:
        """
        Return the snapshot at index and drop all later entries.

        The rewound entry itself stays as the new last entry.
        """
        self._check_index(index)
        dropped = len(self._entries) - index - 1
        del self._entries[index + 1:]
        logger.info("Rewound to %r, dropped %d later entries", self._entries[index].label, dropped)
        return self._entries[index].snapshot

    def clear(self):
        self._entries.clear()

    def _check_index(self, index: int):
        if not 0 <= index < len(self._entries):
            raise OutOfRange(
                f"History index must be between 0 and {len(self._entries) - 1}, got {index}",
                details={"index": index, "length": len(self._entries)},
            )
