"""
Sequence editor for ninaseq.

``SequenceEditor`` owns the one authoritative document and is the only path
through which it changes. Every accepted mutation is applied through the
tree engine, recorded in the history and announced on the event bus.
Operations that reference ids which no longer exist are no-ops: they log a
warning and return a falsy value instead of raising.
"""

import copy
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from ..config.config import Config
from ..parsers.sequence_serializer import SequenceSerializer, ValidationResult
from .catalog import check_choices
from . import tree
from .event_bus import (
    CLIPBOARD_CHANGED,
    HISTORY_CHANGED,
    SELECTION_CHANGED,
    SEQUENCE_CHANGED,
    SEQUENCE_LOADED,
    ClipboardEvent,
    EventBus,
    HistoryEvent,
    SelectionEvent,
    SequenceEvent,
    get_event_bus,
)
from .factories import create_empty_sequence
from .history import HistoryManager
from .models import AREAS, Condition, ItemStatus, Sequence, SequenceItem, Trigger
from .selection import COPY, CUT, Clipboard, Selection
from ..utils.coordinate_utils import CoordinateUtils


# Fields of an item that may not be changed through update_item
_STRUCTURAL_FIELDS = frozenset(['id', 'type', 'items', 'conditions', 'triggers'])


class SequenceEditor:
    """
    Editing session over a single sequence document.
    """

    def __init__(self, config: Optional[Config] = None, event_bus: Optional[EventBus] = None,
                 sequence: Optional[Sequence] = None):
        self.config = config or Config()
        self.logger = logging.getLogger(self.__class__.__name__)
        self.event_bus = event_bus if event_bus is not None else get_event_bus()
        self.serializer = SequenceSerializer(self.config)

        self._sequence = sequence or create_empty_sequence(self.config.editor.default_title)
        self.history = HistoryManager(self.config.history.max_entries, initial=self._sequence)
        self.selection = Selection()
        self.clipboard = Clipboard()
        self.active_area = self.config.editor.default_area
        self.is_dirty = False

    @property
    def sequence(self) -> Sequence:
        """The live document. Treat it as read-only; change it through the editor."""
        return self._sequence

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _publish(self, event) -> None:
        event.source = 'editor'
        self.event_bus.publish(event)

    def _commit(self, sequence: Sequence, action: str, **details: Any) -> bool:
        self._sequence = sequence
        self.history.record(sequence)
        self.is_dirty = True
        self._publish(SequenceEvent(SEQUENCE_CHANGED, {'action': action, **details}))
        return True

    def _selection_changed(self) -> None:
        self._publish(SelectionEvent(SELECTION_CHANGED, {
            'item_id': self.selection.item_id,
            'condition_id': self.selection.condition_id,
            'trigger_id': self.selection.trigger_id,
            'multi': list(self.selection.multi),
        }))

    def _check_area(self, area: str) -> bool:
        if area not in AREAS:
            self.logger.warning(f"Unknown area: {area}")
            return False
        return True

    def area_of(self, item_id: str, sequence: Optional[Sequence] = None) -> Optional[str]:
        """Return the area holding ``item_id``, or None."""
        sequence = sequence or self._sequence
        for area, forest in sequence.areas():
            if tree.find_by_id(forest, item_id) is not None:
                return area
        return None

    def _map_container(self, sequence: Sequence, container_id: str,
                       fn: Callable[[SequenceItem], Optional[SequenceItem]]) -> Optional[Sequence]:
        """Rebuild ``container_id`` with ``fn``; None when it is missing or fn declines."""
        area = self.area_of(container_id, sequence)
        if area is None:
            return None
        container = tree.find_by_id(sequence.get_area(area), container_id)
        if not container.is_container:
            return None
        rebuilt = fn(container)
        if rebuilt is None:
            return None
        forest = tree.map_by_id(sequence.get_area(area), container_id, lambda _: rebuilt)
        return sequence.with_area(area, forest)

    def _without_item(self, sequence: Sequence, item_id: str) -> Optional[Tuple[Sequence, List[str]]]:
        area = self.area_of(item_id, sequence)
        if area is None:
            return None
        forest, node = tree.detach(sequence.get_area(area), item_id)
        return sequence.with_area(area, forest), tree.collect_ids(node)

    def _with_duplicate(self, sequence: Sequence, item_id: str) -> Optional[Tuple[Sequence, str]]:
        area = self.area_of(item_id, sequence)
        if area is None:
            return None
        forest = sequence.get_area(area)
        original = tree.find_by_id(forest, item_id)
        clone = tree.clone_with_new_identities(original)
        clone.name = f"{clone.name}{self.config.editor.copy_suffix}"

        parent = tree.find_parent(forest, item_id)
        index = tree.index_of(forest, item_id) + 1
        forest = tree.insert_at(forest, parent.id if parent else None, index, clone)
        return sequence.with_area(area, forest), clone.id

    def _with_toggled(self, sequence: Sequence, item_id: str) -> Optional[Sequence]:
        area = self.area_of(item_id, sequence)
        if area is None:
            return None

        def toggle(item: SequenceItem) -> SequenceItem:
            status = ItemStatus.CREATED if item.status == ItemStatus.DISABLED else ItemStatus.DISABLED
            return replace(item, status=status)

        return sequence.with_area(area, tree.map_by_id(sequence.get_area(area), item_id, toggle))

    def _duplicates_ids(self, node) -> bool:
        if self._all_ids(self._sequence) & set(tree.collect_ids(node)):
            self.logger.warning(f"{type(node).__name__} {node.id} would duplicate existing ids; not added")
            return True
        return False

    @staticmethod
    def _absolute_index(forest: List[SequenceItem], parent_id: Optional[str],
                        index: Optional[int]) -> Optional[int]:
        """Turn a negative insert index into a position so a run of inserts keeps its order."""
        if index is None or index >= 0:
            return index
        siblings = forest if parent_id is None else tree.find_by_id(forest, parent_id).items
        return max(0, len(siblings) + index)

    def _all_ids(self, sequence: Sequence) -> set:
        ids = set()
        for _, forest in sequence.areas():
            for item in forest:
                ids.update(tree.collect_ids(item))
        for trigger in sequence.global_triggers:
            ids.update(tree.collect_ids(trigger))
        return ids

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------

    def new_sequence(self, title: Optional[str] = None) -> Sequence:
        """Replace the document with an empty one. Undo brings the old one back."""
        return self.load_sequence(create_empty_sequence(title or self.config.editor.default_title))

    def load_sequence(self, sequence: Sequence) -> Sequence:
        """Replace the document wholesale, as one undoable step."""
        self._commit(sequence, 'load', title=sequence.title)
        self.is_dirty = False
        self.selection.clear()
        self._selection_changed()
        self._publish(SequenceEvent(SEQUENCE_LOADED, {'title': sequence.title}))
        return sequence

    def set_title(self, title: str) -> bool:
        if title == self._sequence.title:
            return False
        return self._commit(replace(self._sequence, title=title), 'set_title', title=title)

    def set_active_area(self, area: str) -> bool:
        if not self._check_area(area):
            return False
        self.active_area = area
        return True

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def add_item(self, area: str, item: SequenceItem, parent_id: Optional[str] = None,
                 index: Optional[int] = None) -> bool:
        """
        Insert ``item`` into an area, optionally inside the container ``parent_id``.
        """
        if not self._check_area(area):
            return False
        if self._duplicates_ids(item):
            return False

        forest = self._sequence.get_area(area)
        updated = tree.insert_at(forest, parent_id, index, item)
        if updated is forest:
            self.logger.warning(f"Container not found for new item: {parent_id}")
            return False
        return self._commit(self._sequence.with_area(area, updated), 'add_item',
                            item_id=item.id, area=area, parent_id=parent_id)

    def update_item(self, item_id: str, updates: Dict[str, Any]) -> bool:
        """
        Shallow-update fields of an item.

        Structural fields (id, type and the child collections) are ignored so
        the container invariant cannot be broken from here.
        """
        ignored = _STRUCTURAL_FIELDS.intersection(updates)
        if ignored:
            self.logger.warning(f"Ignoring structural fields in update of {item_id}: {sorted(ignored)}")
        updates = {key: value for key, value in updates.items() if key not in _STRUCTURAL_FIELDS}

        area = self.area_of(item_id)
        if area is None:
            self.logger.warning(f"Item not found for update: {item_id}")
            return False
        if not updates:
            return False
        forest = tree.update_by_id(self._sequence.get_area(area), item_id, updates)
        return self._commit(self._sequence.with_area(area, forest), 'update_item', item_id=item_id)

    def update_item_data(self, item_id: str, data: Dict[str, Any]) -> bool:
        """Merge ``data`` key-wise into an item's data map."""
        item = self.get_item_by_id(item_id)
        if item is None:
            self.logger.warning(f"Item not found for update: {item_id}")
            return False
        return self.update_item(item_id, {'data': {**item.data, **data}})

    def delete_item(self, item_id: str) -> bool:
        """Remove an item with its whole subtree and drop selections inside it."""
        result = self._without_item(self._sequence, item_id)
        if result is None:
            self.logger.warning(f"Item not found for deletion: {item_id}")
            return False
        sequence, removed_ids = result
        self._commit(sequence, 'delete_item', item_id=item_id)
        if self.selection.forget(removed_ids):
            self._selection_changed()
        return True

    def move_item(self, item_id: str, target_area: str, target_parent_id: Optional[str],
                  target_index: Optional[int]) -> bool:
        """
        Move an item, possibly across areas, keeping it and its descendants' ids.

        ``target_index`` refers to positions after the item has been removed.
        Moving an item into itself or into one of its descendants is refused.
        """
        if not self._check_area(target_area):
            return False
        source_area = self.area_of(item_id)
        if source_area is None:
            self.logger.warning(f"Item not found for move: {item_id}")
            return False

        node = tree.find_by_id(self._sequence.get_area(source_area), item_id)
        try:
            tree.check_move(node, target_parent_id)
        except tree.InvalidMoveError as e:
            self.logger.warning(str(e))
            return False

        if target_parent_id is not None:
            target = tree.find_by_id(self._sequence.get_area(target_area), target_parent_id)
            if target is None or not target.is_container:
                self.logger.warning(f"Target container not found for move: {target_parent_id}")
                return False

        sequence = self._sequence.with_area(
            source_area, tree.remove_by_id(self._sequence.get_area(source_area), item_id))
        sequence = sequence.with_area(
            target_area, tree.insert_at(sequence.get_area(target_area), target_parent_id, target_index, node))
        return self._commit(sequence, 'move_item', item_id=item_id, area=target_area,
                            parent_id=target_parent_id, index=target_index)

    def _move_in_direction(self, item_id: str, direction: str) -> bool:
        area = self.area_of(item_id)
        if area is None:
            self.logger.warning(f"Item not found for move: {item_id}")
            return False
        forest = self._sequence.get_area(area)
        moved = tree.move_in_direction(forest, item_id, direction)
        if moved is forest:
            return False
        return self._commit(self._sequence.with_area(area, moved), f"move_{direction}", item_id=item_id)

    def move_item_up(self, item_id: str) -> bool:
        return self._move_in_direction(item_id, 'up')

    def move_item_down(self, item_id: str) -> bool:
        return self._move_in_direction(item_id, 'down')

    def move_item_to_area(self, item_id: str, target_area: str, index: Optional[int] = None) -> bool:
        """Move an item to the top level of another area, appending by default."""
        return self.move_item(item_id, target_area, None, index)

    def duplicate_item(self, item_id: str) -> Optional[str]:
        """
        Insert a renamed deep copy with fresh ids right after the original.

        Returns:
            The id of the copy, or None if the item does not exist
        """
        result = self._with_duplicate(self._sequence, item_id)
        if result is None:
            self.logger.warning(f"Item not found for duplication: {item_id}")
            return None
        sequence, clone_id = result
        self._commit(sequence, 'duplicate_item', item_id=item_id, clone_id=clone_id)
        return clone_id

    def toggle_item_enabled(self, item_id: str) -> bool:
        """Switch an item between DISABLED and CREATED."""
        sequence = self._with_toggled(self._sequence, item_id)
        if sequence is None:
            self.logger.warning(f"Item not found for toggle: {item_id}")
            return False
        return self._commit(sequence, 'toggle_item_enabled', item_id=item_id)

    def _set_expanded(self, expanded: bool, area: Optional[str]) -> bool:
        area = area or self.active_area
        if not self._check_area(area):
            return False

        def apply(item: SequenceItem) -> SequenceItem:
            if item.is_container and item.is_expanded != expanded:
                return replace(item, is_expanded=expanded)
            return item

        forest = tree.map_items(self._sequence.get_area(area), apply)
        return self._commit(self._sequence.with_area(area, forest),
                            'expand_all' if expanded else 'collapse_all', area=area)

    def expand_all_items(self, area: Optional[str] = None) -> bool:
        return self._set_expanded(True, area)

    def collapse_all_items(self, area: Optional[str] = None) -> bool:
        return self._set_expanded(False, area)

    # ------------------------------------------------------------------
    # Conditions and triggers
    # ------------------------------------------------------------------

    def add_condition(self, container_id: str, condition: Condition) -> bool:
        if self._duplicates_ids(condition):
            return False
        sequence = self._map_container(
            self._sequence, container_id,
            lambda c: replace(c, conditions=list(c.conditions) + [condition]))
        if sequence is None:
            self.logger.warning(f"Container not found for condition: {container_id}")
            return False
        return self._commit(sequence, 'add_condition', container_id=container_id, condition_id=condition.id)

    def update_condition(self, container_id: str, condition_id: str, updates: Dict[str, Any]) -> bool:
        updates = {key: value for key, value in updates.items() if key != 'id'}

        def apply(container: SequenceItem) -> Optional[SequenceItem]:
            if not any(c.id == condition_id for c in container.conditions):
                return None
            return replace(container, conditions=[
                replace(c, **updates) if c.id == condition_id else c for c in container.conditions])

        sequence = self._map_container(self._sequence, container_id, apply)
        if sequence is None:
            self.logger.warning(f"Condition not found for update: {condition_id}")
            return False
        return self._commit(sequence, 'update_condition', container_id=container_id, condition_id=condition_id)

    def delete_condition(self, container_id: str, condition_id: str) -> bool:
        def apply(container: SequenceItem) -> Optional[SequenceItem]:
            remaining = [c for c in container.conditions if c.id != condition_id]
            if len(remaining) == len(container.conditions):
                return None
            return replace(container, conditions=remaining)

        sequence = self._map_container(self._sequence, container_id, apply)
        if sequence is None:
            self.logger.warning(f"Condition not found for deletion: {condition_id}")
            return False
        self._commit(sequence, 'delete_condition', container_id=container_id, condition_id=condition_id)
        if self.selection.forget([condition_id]):
            self._selection_changed()
        return True

    def add_trigger(self, container_id: str, trigger: Trigger) -> bool:
        if self._duplicates_ids(trigger):
            return False
        sequence = self._map_container(
            self._sequence, container_id,
            lambda c: replace(c, triggers=list(c.triggers) + [trigger]))
        if sequence is None:
            self.logger.warning(f"Container not found for trigger: {container_id}")
            return False
        return self._commit(sequence, 'add_trigger', container_id=container_id, trigger_id=trigger.id)

    def update_trigger(self, container_id: str, trigger_id: str, updates: Dict[str, Any]) -> bool:
        updates = {key: value for key, value in updates.items() if key != 'id'}

        def apply(container: SequenceItem) -> Optional[SequenceItem]:
            if not any(t.id == trigger_id for t in container.triggers):
                return None
            return replace(container, triggers=[
                replace(t, **updates) if t.id == trigger_id else t for t in container.triggers])

        sequence = self._map_container(self._sequence, container_id, apply)
        if sequence is None:
            self.logger.warning(f"Trigger not found for update: {trigger_id}")
            return False
        return self._commit(sequence, 'update_trigger', container_id=container_id, trigger_id=trigger_id)

    def delete_trigger(self, container_id: str, trigger_id: str) -> bool:
        removed: List[Trigger] = []

        def apply(container: SequenceItem) -> Optional[SequenceItem]:
            removed.extend(t for t in container.triggers if t.id == trigger_id)
            if not removed:
                return None
            return replace(container, triggers=[t for t in container.triggers if t.id != trigger_id])

        sequence = self._map_container(self._sequence, container_id, apply)
        if sequence is None:
            self.logger.warning(f"Trigger not found for deletion: {trigger_id}")
            return False
        self._commit(sequence, 'delete_trigger', container_id=container_id, trigger_id=trigger_id)
        if self.selection.forget(tree.collect_ids(removed[0])):
            self._selection_changed()
        return True

    def add_global_trigger(self, trigger: Trigger) -> bool:
        if self._duplicates_ids(trigger):
            return False
        sequence = replace(self._sequence, global_triggers=list(self._sequence.global_triggers) + [trigger])
        return self._commit(sequence, 'add_global_trigger', trigger_id=trigger.id)

    def update_global_trigger(self, trigger_id: str, updates: Dict[str, Any]) -> bool:
        triggers = self._sequence.global_triggers
        if not any(t.id == trigger_id for t in triggers):
            self.logger.warning(f"Global trigger not found for update: {trigger_id}")
            return False
        updates = {key: value for key, value in updates.items() if key != 'id'}
        sequence = replace(self._sequence, global_triggers=[
            replace(t, **updates) if t.id == trigger_id else t for t in triggers])
        return self._commit(sequence, 'update_global_trigger', trigger_id=trigger_id)

    def delete_global_trigger(self, trigger_id: str) -> bool:
        triggers = self._sequence.global_triggers
        removed = [t for t in triggers if t.id == trigger_id]
        if not removed:
            self.logger.warning(f"Global trigger not found for deletion: {trigger_id}")
            return False
        sequence = replace(self._sequence, global_triggers=[t for t in triggers if t.id != trigger_id])
        self._commit(sequence, 'delete_global_trigger', trigger_id=trigger_id)
        if self.selection.forget(tree.collect_ids(removed[0])):
            self._selection_changed()
        return True

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_item(self, item_id: Optional[str]) -> None:
        self.selection.select_item(item_id)
        self._selection_changed()

    def select_condition(self, condition_id: Optional[str]) -> None:
        self.selection.select_condition(condition_id)
        self._selection_changed()

    def select_trigger(self, trigger_id: Optional[str]) -> None:
        self.selection.select_trigger(trigger_id)
        self._selection_changed()

    def toggle_item_selection(self, item_id: str) -> None:
        self.selection.toggle(item_id)
        self._selection_changed()

    def select_multiple_items(self, item_ids: List[str]) -> None:
        self.selection.set_multi(item_ids)
        self._selection_changed()

    def clear_multi_selection(self) -> None:
        self.selection.clear_multi()
        self._selection_changed()

    def select_all_items(self) -> List[str]:
        """Multi-select every item in the active area, nested ones included."""
        ids = [item.id for item in tree.iter_items(self._sequence.get_area(self.active_area))]
        self.select_multiple_items(ids)
        return ids

    def get_selected_items(self) -> List[SequenceItem]:
        items = (self.get_item_by_id(item_id) for item_id in self.selection.targets())
        return [item for item in items if item is not None]

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def delete_selected_items(self) -> int:
        """Delete every selected item as one undoable step. Returns the count."""
        sequence = self._sequence
        removed_ids: List[str] = []
        count = 0
        for item_id in self.selection.targets():
            result = self._without_item(sequence, item_id)
            if result is None:
                continue
            sequence, ids = result
            removed_ids.extend(ids)
            count += 1
        if not count:
            return 0
        self._commit(sequence, 'delete_selected_items', count=count)
        self.selection.forget(removed_ids)
        self.selection.clear_multi()
        self._selection_changed()
        return count

    def duplicate_selected_items(self) -> List[str]:
        """Duplicate every selected item; the copies become the new selection."""
        sequence = self._sequence
        clone_ids: List[str] = []
        for item_id in self.selection.targets():
            result = self._with_duplicate(sequence, item_id)
            if result is None:
                continue
            sequence, clone_id = result
            clone_ids.append(clone_id)
        if not clone_ids:
            return []
        self._commit(sequence, 'duplicate_selected_items', count=len(clone_ids))
        self.select_multiple_items(clone_ids)
        return clone_ids

    def toggle_selected_items_enabled(self) -> int:
        sequence = self._sequence
        count = 0
        for item_id in self.selection.targets():
            toggled = self._with_toggled(sequence, item_id)
            if toggled is None:
                continue
            sequence = toggled
            count += 1
        if count:
            self._commit(sequence, 'toggle_selected_items_enabled', count=count)
        return count

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------

    def _selected_roots(self) -> List[SequenceItem]:
        # Items whose ancestor is also selected travel with that ancestor
        selected = self.get_selected_items()
        covered = set()
        for item in selected:
            covered.update(child.id for child in tree.iter_items(item.items or []))
        return [item for item in selected if item.id not in covered]

    def copy_selected_items(self) -> int:
        items = self._selected_roots()
        if not items:
            return 0
        self.clipboard.store(items, COPY)
        self._publish(ClipboardEvent(CLIPBOARD_CHANGED, {'mode': COPY, 'count': len(items)}))
        return len(items)

    def cut_selected_items(self) -> int:
        """Copy the selection to the clipboard and remove it as one undoable step."""
        items = self._selected_roots()
        if not items:
            return 0
        self.clipboard.store(items, CUT)
        self._publish(ClipboardEvent(CLIPBOARD_CHANGED, {'mode': CUT, 'count': len(items)}))

        sequence = self._sequence
        removed_ids: List[str] = []
        for item in items:
            result = self._without_item(sequence, item.id)
            if result is not None:
                sequence, ids = result
                removed_ids.extend(ids)
        self._commit(sequence, 'cut_selected_items', count=len(items))
        self.selection.forget(removed_ids)
        self._selection_changed()
        return len(items)

    def paste_items(self, parent_id: Optional[str] = None, index: Optional[int] = None) -> List[str]:
        """
        Paste fresh clones of the clipboard into the active area.

        Returns:
            Ids of the pasted items, which also become the multi-selection
        """
        if not self.clipboard:
            return []

        area = self.active_area
        forest = self._sequence.get_area(area)
        if parent_id is not None:
            target = tree.find_by_id(forest, parent_id)
            if target is None or not target.is_container:
                self.logger.warning(f"Container not found for paste: {parent_id}")
                return []
        index = self._absolute_index(forest, parent_id, index)

        pasted: List[str] = []
        for offset, item in enumerate(self.clipboard.items):
            clone = tree.clone_with_new_identities(item)
            position = None if index is None else index + offset
            forest = tree.insert_at(forest, parent_id, position, clone)
            pasted.append(clone.id)

        self._commit(self._sequence.with_area(area, forest), 'paste_items', area=area, count=len(pasted))
        self.select_multiple_items(pasted)
        return pasted

    def has_clipboard(self) -> bool:
        return bool(self.clipboard)

    def clear_clipboard(self) -> None:
        self.clipboard.clear()
        self._publish(ClipboardEvent(CLIPBOARD_CHANGED, {'mode': None, 'count': 0}))

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _restore(self, sequence: Optional[Sequence], action: str) -> bool:
        if sequence is None:
            return False
        self._sequence = sequence
        self.is_dirty = True
        self._publish(HistoryEvent(HISTORY_CHANGED, {
            'action': action,
            'can_undo': self.history.can_undo(),
            'can_redo': self.history.can_redo(),
        }))
        if self.selection.forget(self._stale_selection()):
            self._selection_changed()
        return True

    def _stale_selection(self) -> List[str]:
        live = self._all_ids(self._sequence)
        referenced = [self.selection.item_id, self.selection.condition_id,
                      self.selection.trigger_id] + self.selection.multi
        return [item_id for item_id in referenced if item_id and item_id not in live]

    def undo(self) -> bool:
        return self._restore(self.history.undo(), 'undo')

    def redo(self) -> bool:
        return self._restore(self.history.redo(), 'redo')

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_item_by_id(self, item_id: str) -> Optional[SequenceItem]:
        for _, forest in self._sequence.areas():
            item = tree.find_by_id(forest, item_id)
            if item is not None:
                return item
        return None

    def get_condition_by_id(self, condition_id: str) -> Optional[Condition]:
        for _, forest in self._sequence.areas():
            for item in tree.iter_items(forest):
                for condition in item.conditions or []:
                    if condition.id == condition_id:
                        return condition
        return None

    def get_trigger_by_id(self, trigger_id: str) -> Optional[Trigger]:
        for trigger in self._sequence.global_triggers:
            if trigger.id == trigger_id:
                return trigger
        for _, forest in self._sequence.areas():
            for item in tree.iter_items(forest):
                for trigger in item.triggers or []:
                    if trigger.id == trigger_id:
                        return trigger
        return None

    def get_sequence_stats(self) -> Dict[str, int]:
        """Count items per area (nested included), disabled items, conditions and triggers."""
        stats = {
            'total_items': 0,
            'start_items': 0,
            'target_items': 0,
            'end_items': 0,
            'containers': 0,
            'disabled_items': 0,
            'conditions': 0,
            'triggers': 0,
            'global_triggers': len(self._sequence.global_triggers),
        }
        for area, forest in self._sequence.areas():
            for item in tree.iter_items(forest):
                stats[f"{area}_items"] += 1
                stats['total_items'] += 1
                if item.is_container:
                    stats['containers'] += 1
                if item.status == ItemStatus.DISABLED:
                    stats['disabled_items'] += 1
                stats['conditions'] += len(item.conditions or [])
                stats['triggers'] += len(item.triggers or [])
        return stats

    def iter_nodes(self) -> Iterator[Union[SequenceItem, Condition, Trigger]]:
        """
        Yield every item, condition and trigger in the document.

        Trigger runner items and global triggers are included.
        """
        def walk_trigger(trigger: Trigger):
            yield trigger
            for runner_item in tree.iter_items(trigger.trigger_items):
                yield from walk_item(runner_item)

        def walk_item(item: SequenceItem):
            yield item
            yield from item.conditions or []
            for trigger in item.triggers or []:
                yield from walk_trigger(trigger)

        for _, forest in self._sequence.areas():
            for item in tree.iter_items(forest):
                yield from walk_item(item)
        for trigger in self._sequence.global_triggers:
            yield from walk_trigger(trigger)

    def check_items(self) -> Dict[str, List[str]]:
        """
        Check target, exposure and lookup-table values across the document.

        Returns:
            Mapping of node id to its problems, only for nodes that have any
        """
        problems: Dict[str, List[str]] = {}
        for node in self.iter_nodes():
            found = check_choices(node.data)
            if isinstance(node, SequenceItem):
                if isinstance(node.data.get('Target'), dict):
                    found.extend(CoordinateUtils.validate_target(node.data['Target']))
                if 'ExposureTime' in node.data:
                    found.extend(CoordinateUtils.validate_exposure(node.data))
            if found:
                problems[node.id] = found
        return problems

    def clear_dirty(self) -> None:
        self.is_dirty = False

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def export_json(self) -> str:
        return self.serializer.export(self._sequence)

    def import_json(self, text: str) -> Sequence:
        """
        Replace the document with one read from ``text``.

        Raises:
            SequenceFormatError: If the text is not a readable sequence
        """
        sequence = self.serializer.import_sequence(text)
        return self.load_sequence(sequence)

    def export_template_json(self, name: str, area: Optional[str] = None,
                             item_ids: Optional[List[str]] = None) -> str:
        """
        Export selected items, or a whole area, as a reusable template.
        """
        if item_ids is not None:
            items = [item for item in (self.get_item_by_id(i) for i in item_ids) if item is not None]
        else:
            items = self._sequence.get_area(area or self.active_area)
        return self.serializer.export_template(copy.deepcopy(items), name)

    def import_template_json(self, text: str, parent_id: Optional[str] = None,
                             index: Optional[int] = None) -> List[str]:
        """Insert the items of a template into the active area."""
        items = self.serializer.parse_template(text)
        area = self.active_area
        forest = self._sequence.get_area(area)
        if parent_id is not None:
            target = tree.find_by_id(forest, parent_id)
            if target is None or not target.is_container:
                self.logger.warning(f"Container not found for template: {parent_id}")
                return []
        index = self._absolute_index(forest, parent_id, index)
        for offset, item in enumerate(items):
            forest = tree.insert_at(forest, parent_id, None if index is None else index + offset, item)
        self._commit(self._sequence.with_area(area, forest), 'import_template', area=area, count=len(items))
        return [item.id for item in items]

    def validate_json(self, text: str) -> ValidationResult:
        return self.serializer.validate(text)
