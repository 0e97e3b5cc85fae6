"""Core functionality module for ninaseq."""

from .models import Condition, ItemStatus, Sequence, SequenceItem, Target, Trigger
from .history import HistoryManager
from .selection import Clipboard, Selection
from .event_bus import EventBus, get_event_bus
from .editor import SequenceEditor
from .templates import SequenceTemplate, TemplateLibrary

__all__ = [
    'Condition', 'ItemStatus', 'Sequence', 'SequenceItem', 'Target', 'Trigger',
    'HistoryManager', 'Clipboard', 'Selection', 'EventBus', 'get_event_bus',
    'SequenceEditor', 'SequenceTemplate', 'TemplateLibrary',
]
