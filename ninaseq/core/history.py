"""
Snapshot based undo/redo history for ninaseq.
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .models import Sequence


@dataclass
class HistoryEntry:
    """A deep snapshot of the document and when it was taken."""
    sequence: Sequence
    timestamp: datetime = field(default_factory=datetime.now)


class HistoryManager:
    """
    Linear undo/redo stack of whole-document snapshots.

    The entry under the cursor is always the live document. Recording a new
    state drops every entry after the cursor; there is no redo tree. Past
    ``max_entries`` the oldest snapshots are evicted first.
    """

    def __init__(self, max_entries: int = 50, initial: Optional[Sequence] = None):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.logger = logging.getLogger(self.__class__.__name__)
        self._entries: List[HistoryEntry] = []
        self._cursor = -1
        if initial is not None:
            self.reset(initial)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def reset(self, sequence: Sequence) -> None:
        """Forget all history and seed the baseline with ``sequence``."""
        self._entries = [HistoryEntry(copy.deepcopy(sequence))]
        self._cursor = 0

    def clear(self) -> None:
        self._entries = []
        self._cursor = -1

    def record(self, sequence: Sequence) -> None:
        """
        Push the post-mutation document.

        Args:
            sequence: The document as it is after the change
        """
        if self.can_redo():
            dropped = len(self._entries) - self._cursor - 1
            del self._entries[self._cursor + 1:]
            self.logger.debug(f"Discarded {dropped} redo entries")

        self._entries.append(HistoryEntry(copy.deepcopy(sequence)))

        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            del self._entries[:overflow]

        self._cursor = len(self._entries) - 1

    def undo(self) -> Optional[Sequence]:
        """Step back one snapshot. Returns None when there is nothing to undo."""
        if not self.can_undo():
            return None
        self._cursor -= 1
        return copy.deepcopy(self._entries[self._cursor].sequence)

    def redo(self) -> Optional[Sequence]:
        """Step forward one snapshot. Returns None when there is nothing to redo."""
        if not self.can_redo():
            return None
        self._cursor += 1
        return copy.deepcopy(self._entries[self._cursor].sequence)

    def current(self) -> Optional[Sequence]:
        if self._cursor < 0:
            return None
        return copy.deepcopy(self._entries[self._cursor].sequence)
