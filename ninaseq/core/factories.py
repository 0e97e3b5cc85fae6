"""
Factories for sequence items, conditions, triggers and targets.

All nodes are created from the catalog so that default data and
container-ness stay consistent across the editor, the tree engine and the
serializer.
"""

import uuid
from typing import Any, Dict, Optional

from .catalog import DEEP_SKY_OBJECT_CONTAINER, get_item_definition, is_container_type
from .models import Condition, ItemStatus, Sequence, SequenceItem, Target, Trigger


def generate_id() -> str:
    """Return a fresh internal identity."""
    return uuid.uuid4().hex


def _merge_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    data_overrides = overrides.pop('data', None)
    base.update(overrides)
    if data_overrides:
        base['data'].update(data_overrides)
    return base


def create_item(type_tag: str, **overrides: Any) -> SequenceItem:
    """
    Create a sequence item for ``type_tag`` seeded from the catalog.

    Overrides replace top level fields, except ``data`` which is merged
    key by key into the defaults.
    """
    definition = get_item_definition(type_tag)
    fields: Dict[str, Any] = {
        'id': generate_id(),
        'type': type_tag,
        'name': definition.name if definition else 'Unknown Item',
        'category': definition.category if definition else 'Unknown',
        'description': definition.description if definition else None,
        'status': ItemStatus.CREATED,
        'data': definition.new_data() if definition else {},
    }
    if is_container_type(type_tag):
        fields.update(is_expanded=True, items=[], conditions=[], triggers=[])

    return SequenceItem(**_merge_overrides(fields, dict(overrides)))


def create_condition(type_tag: str, **overrides: Any) -> Condition:
    """Create a condition for ``type_tag`` seeded from the catalog."""
    definition = get_item_definition(type_tag)
    fields: Dict[str, Any] = {
        'id': generate_id(),
        'type': type_tag,
        'name': definition.name if definition else 'Unknown Condition',
        'category': definition.category if definition else 'Condition',
        'data': definition.new_data() if definition else {},
    }
    return Condition(**_merge_overrides(fields, dict(overrides)))


def create_trigger(type_tag: str, **overrides: Any) -> Trigger:
    """Create a trigger for ``type_tag`` seeded from the catalog."""
    definition = get_item_definition(type_tag)
    fields: Dict[str, Any] = {
        'id': generate_id(),
        'type': type_tag,
        'name': definition.name if definition else 'Unknown Trigger',
        'category': definition.category if definition else 'Trigger',
        'data': definition.new_data() if definition else {},
        'trigger_items': [],
    }
    return Trigger(**_merge_overrides(fields, dict(overrides)))


def create_empty_sequence(title: str = "New Sequence") -> Sequence:
    return Sequence(id=generate_id(), title=title)


def create_empty_target() -> Dict[str, Any]:
    """Return an empty target mapping suitable for ``data['Target']``."""
    return Target().to_dict()


def create_target(name: str, ra: Dict[str, float], dec: Dict[str, Any],
                  rotation: float = 0) -> Dict[str, Any]:
    """
    Build a target mapping from RA and Dec component dictionaries.

    ``dec['negative']`` is optional and defaults to False.
    """
    return {
        'name': name,
        'ra': dict(ra),
        'dec': dict(dec, negative=bool(dec.get('negative', False))),
        'rotation': rotation,
    }


def create_deep_sky_object(target: Optional[Dict[str, Any]] = None, **overrides: Any) -> SequenceItem:
    """Create a deep sky object container, optionally with a target mapping."""
    item = create_item(DEEP_SKY_OBJECT_CONTAINER, **overrides)
    if target is not None:
        item.data['Target'] = target
        if target.get('name') and 'name' not in overrides:
            item.name = target['name']
    return item
