"""
Structural operations over forests of sequence items.

Every function here is pure: the input forest is never mutated. Functions
that change structure return a new list in which only the containers on the
path to the change are rebuilt; untouched subtrees are shared with the input.
When nothing matches, the input forest itself is returned, so callers can
detect a no-op with an identity check.
"""

import copy
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from .factories import generate_id
from .models import Condition, SequenceItem, Trigger


logger = logging.getLogger(__name__)

Forest = List[SequenceItem]
Node = Union[SequenceItem, Condition, Trigger]


class InvalidMoveError(ValueError):
    """Raised when a node would be moved into itself or one of its descendants."""


def find_by_id(forest: Forest, item_id: str) -> Optional[SequenceItem]:
    """Depth-first search for an item, including nested children."""
    for item in forest:
        if item.id == item_id:
            return item
        if item.items:
            found = find_by_id(item.items, item_id)
            if found is not None:
                return found
    return None


def find_parent(forest: Forest, item_id: str) -> Optional[SequenceItem]:
    """
    Return the container directly holding ``item_id``.

    Returns None both for root level items and for ids that are not present.
    """
    for item in forest:
        if item.items:
            if any(child.id == item_id for child in item.items):
                return item
            parent = find_parent(item.items, item_id)
            if parent is not None:
                return parent
    return None


def index_of(forest: Forest, item_id: str) -> int:
    """Return the position of ``item_id`` among its siblings, or -1."""
    parent = find_parent(forest, item_id)
    siblings = parent.items if parent is not None else forest
    for index, item in enumerate(siblings):
        if item.id == item_id:
            return index
    return -1


def iter_items(forest: Forest) -> Iterator[SequenceItem]:
    """Pre-order walk over every item in the forest."""
    for item in forest:
        yield item
        if item.items:
            yield from iter_items(item.items)


def collect_ids(node: Node) -> List[str]:
    """Return the ids of a node and everything it owns, in pre-order."""
    ids = [node.id]
    if isinstance(node, Trigger):
        for item in node.trigger_items:
            ids.extend(collect_ids(item))
    elif isinstance(node, SequenceItem):
        for condition in node.conditions or []:
            ids.append(condition.id)
        for trigger in node.triggers or []:
            ids.extend(collect_ids(trigger))
        for child in node.items or []:
            ids.extend(collect_ids(child))
    return ids


def map_by_id(forest: Forest, item_id: str,
              fn: Callable[[SequenceItem], SequenceItem]) -> Forest:
    """Replace the item ``item_id`` with ``fn(item)``, rebuilding its ancestors."""
    result = []
    changed = False
    for item in forest:
        if not changed:
            if item.id == item_id:
                item = fn(item)
                changed = True
            elif item.items:
                children = map_by_id(item.items, item_id, fn)
                if children is not item.items:
                    item = replace(item, items=children)
                    changed = True
        result.append(item)
    return result if changed else forest


def update_by_id(forest: Forest, item_id: str, updates: Dict[str, Any]) -> Forest:
    """Shallow-update fields of one item. The id itself cannot be changed."""
    updates = {key: value for key, value in updates.items() if key != 'id'}
    return map_by_id(forest, item_id, lambda item: replace(item, **updates))


def map_items(forest: Forest, fn: Callable[[SequenceItem], SequenceItem]) -> Forest:
    """Apply ``fn`` to every item, children before their container."""
    result = []
    for item in forest:
        if item.items:
            item = replace(item, items=map_items(item.items, fn))
        result.append(fn(item))
    return result


def remove_by_id(forest: Forest, item_id: str) -> Forest:
    """Remove ``item_id`` wherever it sits in the forest."""
    result = []
    changed = False
    for item in forest:
        if item.id == item_id:
            changed = True
            continue
        if item.items:
            children = remove_by_id(item.items, item_id)
            if children is not item.items:
                item = replace(item, items=children)
                changed = True
        result.append(item)
    return result if changed else forest


def insert_at(forest: Forest, parent_id: Optional[str], index: Optional[int],
              node: SequenceItem) -> Forest:
    """
    Insert ``node`` into the forest or into the container ``parent_id``.

    ``index`` follows ``list.insert`` semantics: past the end appends and
    negative values count from the end. ``None`` appends. An unknown or
    non-container parent leaves the forest unchanged.
    """
    if parent_id is None:
        result = list(forest)
        result.insert(len(result) if index is None else index, node)
        return result

    def splice(container: SequenceItem) -> SequenceItem:
        children = list(container.items)
        children.insert(len(children) if index is None else index, node)
        return replace(container, items=children)

    target = find_by_id(forest, parent_id)
    if target is None or not target.is_container:
        logger.debug(f"Insert target {parent_id} is not a container in this forest")
        return forest
    return map_by_id(forest, parent_id, splice)


def detach(forest: Forest, item_id: str) -> Tuple[Forest, Optional[SequenceItem]]:
    """Remove an item and return it together with the new forest."""
    node = find_by_id(forest, item_id)
    if node is None:
        return forest, None
    return remove_by_id(forest, item_id), node


def check_move(node: SequenceItem, target_parent_id: Optional[str]) -> None:
    """
    Raise InvalidMoveError if ``target_parent_id`` is ``node`` or lies inside it.
    """
    if target_parent_id is None:
        return
    if target_parent_id == node.id or find_by_id(node.items or [], target_parent_id) is not None:
        raise InvalidMoveError(f"Cannot move {node.id} into itself or one of its descendants")


def move_by_id(forest: Forest, item_id: str, target_parent_id: Optional[str],
               target_index: Optional[int]) -> Forest:
    """
    Move an item to ``target_index`` within ``target_parent_id`` (None for root).

    The moved item is the same object, so its id and every descendant id are
    preserved. ``target_index`` refers to positions after the item has been
    removed from its current place.

    Raises:
        InvalidMoveError: If the target is the item itself or one of its descendants
    """
    node = find_by_id(forest, item_id)
    if node is None:
        return forest
    check_move(node, target_parent_id)

    if target_parent_id is not None:
        target = find_by_id(forest, target_parent_id)
        if target is None or not target.is_container:
            return forest

    return insert_at(remove_by_id(forest, item_id), target_parent_id, target_index, node)


def move_in_direction(forest: Forest, item_id: str, direction: str) -> Forest:
    """
    Move an item one slot up or down among its siblings.

    Returns the input forest when the item is already at that edge or absent.
    """
    if direction not in ('up', 'down'):
        raise ValueError(f"Unknown direction: {direction}")

    parent = find_parent(forest, item_id)
    siblings = parent.items if parent is not None else forest
    index = next((i for i, item in enumerate(siblings) if item.id == item_id), -1)
    if index < 0:
        return forest

    new_index = index - 1 if direction == 'up' else index + 1
    if new_index < 0 or new_index >= len(siblings):
        return forest

    return move_by_id(forest, item_id, parent.id if parent is not None else None, new_index)


def _reassign_ids(node: Node) -> None:
    node.id = generate_id()
    if isinstance(node, Trigger):
        for item in node.trigger_items:
            _reassign_ids(item)
    elif isinstance(node, SequenceItem):
        for condition in node.conditions or []:
            _reassign_ids(condition)
        for trigger in node.triggers or []:
            _reassign_ids(trigger)
        for child in node.items or []:
            _reassign_ids(child)


def clone_with_new_identities(node: Node) -> Node:
    """Deep-clone a node, giving it and everything it owns fresh ids."""
    clone = copy.deepcopy(node)
    _reassign_ids(clone)
    return clone
