"""
Core data models for ninaseq.
"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional


class ItemStatus:
    """Lifecycle states of a sequence item."""
    CREATED = 'CREATED'
    RUNNING = 'RUNNING'
    FINISHED = 'FINISHED'
    FAILED = 'FAILED'
    SKIPPED = 'SKIPPED'
    DISABLED = 'DISABLED'

    ALL = (CREATED, RUNNING, FINISHED, FAILED, SKIPPED, DISABLED)


AREAS = ('start', 'target', 'end')


@dataclass
class Condition:
    """
    Represents a loop or guard condition attached to a container.
    """
    id: str
    type: str
    name: str
    category: str = "Condition"
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Trigger:
    """
    Represents an event-driven trigger.

    ``trigger_items`` is the runner sub-sequence executed when the trigger fires.
    """
    id: str
    type: str
    name: str
    category: str = "Trigger"
    data: Dict[str, Any] = field(default_factory=dict)
    trigger_items: List['SequenceItem'] = field(default_factory=list)


@dataclass
class SequenceItem:
    """
    Represents an instruction node in a sequence.

    ``items``, ``conditions`` and ``triggers`` are lists on containers and
    ``None`` on every other item.
    """
    id: str
    type: str
    name: str
    category: str
    status: str = ItemStatus.CREATED
    data: Dict[str, Any] = field(default_factory=dict)
    description: Optional[str] = None
    is_expanded: Optional[bool] = None
    items: Optional[List['SequenceItem']] = None
    conditions: Optional[List[Condition]] = None
    triggers: Optional[List[Trigger]] = None

    @property
    def is_container(self) -> bool:
        return self.items is not None

    @property
    def is_enabled(self) -> bool:
        return self.status != ItemStatus.DISABLED


@dataclass
class Target:
    """
    Celestial target embedded in a deep sky object container.
    """
    name: str = ""
    ra_hours: float = 0
    ra_minutes: float = 0
    ra_seconds: float = 0
    dec_degrees: float = 0
    dec_minutes: float = 0
    dec_seconds: float = 0
    dec_negative: bool = False
    rotation: float = 0

    def to_dict(self) -> Dict[str, Any]:
        """Return the mapping stored under ``data['Target']``."""
        return {
            'name': self.name,
            'ra': {
                'hours': self.ra_hours,
                'minutes': self.ra_minutes,
                'seconds': self.ra_seconds,
            },
            'dec': {
                'degrees': self.dec_degrees,
                'minutes': self.dec_minutes,
                'seconds': self.dec_seconds,
                'negative': self.dec_negative,
            },
            'rotation': self.rotation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Target':
        ra = data.get('ra') or {}
        dec = data.get('dec') or {}
        return cls(
            name=data.get('name', ''),
            ra_hours=ra.get('hours', 0),
            ra_minutes=ra.get('minutes', 0),
            ra_seconds=ra.get('seconds', 0),
            dec_degrees=dec.get('degrees', 0),
            dec_minutes=dec.get('minutes', 0),
            dec_seconds=dec.get('seconds', 0),
            dec_negative=bool(dec.get('negative', False)),
            rotation=data.get('rotation', 0),
        )


@dataclass
class Sequence:
    """
    Represents a complete sequence document.
    """
    id: str
    title: str
    start_items: List[SequenceItem] = field(default_factory=list)
    target_items: List[SequenceItem] = field(default_factory=list)
    end_items: List[SequenceItem] = field(default_factory=list)
    global_triggers: List[Trigger] = field(default_factory=list)

    def get_area(self, area: str) -> List[SequenceItem]:
        """Return the forest for ``area`` ('start', 'target' or 'end')."""
        if area not in AREAS:
            raise ValueError(f"Unknown area: {area}")
        return getattr(self, f"{area}_items")

    def with_area(self, area: str, items: List[SequenceItem]) -> 'Sequence':
        """Return a shallow copy of the sequence with one area forest replaced."""
        if area not in AREAS:
            raise ValueError(f"Unknown area: {area}")
        forests = {f"{name}_items": self.get_area(name) for name in AREAS}
        forests[f"{area}_items"] = items
        return Sequence(id=self.id, title=self.title,
                        global_triggers=self.global_triggers, **forests)

    def areas(self):
        """Yield ``(area, forest)`` pairs in document order."""
        for name in AREAS:
            yield name, self.get_area(name)
