"""
Selection and clipboard state for the sequence editor.
"""

import copy
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .models import SequenceItem


@dataclass
class Selection:
    """
    Primary focus plus an independent ordered multi-selection.

    At most one of ``item_id``, ``condition_id`` and ``trigger_id`` drives the
    property panel; ``multi`` is used for bulk operations. The two do not have
    to agree.
    """
    item_id: Optional[str] = None
    condition_id: Optional[str] = None
    trigger_id: Optional[str] = None
    multi: List[str] = field(default_factory=list)

    def select_item(self, item_id: Optional[str]) -> None:
        self.item_id = item_id
        self.condition_id = None
        self.trigger_id = None

    def select_condition(self, condition_id: Optional[str]) -> None:
        self.condition_id = condition_id
        self.trigger_id = None

    def select_trigger(self, trigger_id: Optional[str]) -> None:
        self.trigger_id = trigger_id
        self.condition_id = None

    def toggle(self, item_id: str) -> None:
        if item_id in self.multi:
            self.multi.remove(item_id)
        else:
            self.multi.append(item_id)

    def set_multi(self, item_ids: Iterable[str]) -> None:
        self.multi = list(dict.fromkeys(item_ids))

    def clear_multi(self) -> None:
        self.multi = []

    def clear(self) -> None:
        self.select_item(None)
        self.clear_multi()

    def targets(self) -> List[str]:
        """Ids a bulk operation should act on: the multi-selection, else the focus."""
        if self.multi:
            return list(self.multi)
        return [self.item_id] if self.item_id else []

    def forget(self, ids: Iterable[str]) -> bool:
        """Drop every reference to ``ids``. Returns True if anything changed."""
        gone = set(ids)
        changed = False
        if self.item_id in gone:
            self.item_id = None
            changed = True
        if self.condition_id in gone:
            self.condition_id = None
            changed = True
        if self.trigger_id in gone:
            self.trigger_id = None
            changed = True
        remaining = [item_id for item_id in self.multi if item_id not in gone]
        if len(remaining) != len(self.multi):
            self.multi = remaining
            changed = True
        return changed


COPY = 'copy'
CUT = 'cut'


@dataclass
class Clipboard:
    """Deep snapshots of items taken at copy or cut time."""
    mode: Optional[str] = None
    items: List[SequenceItem] = field(default_factory=list)

    def store(self, items: Iterable[SequenceItem], mode: str) -> None:
        if mode not in (COPY, CUT):
            raise ValueError(f"Unknown clipboard mode: {mode}")
        self.items = [copy.deepcopy(item) for item in items]
        self.mode = mode

    def clear(self) -> None:
        self.items = []
        self.mode = None

    def __bool__(self) -> bool:
        return bool(self.items)
