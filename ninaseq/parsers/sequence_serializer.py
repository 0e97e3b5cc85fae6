"""
Sequence serializer for ninaseq.

Converts between the in-memory sequence model and the N.I.N.A. JSON document
format. In that format every object carries a ``$id`` and a fully qualified
``$type``; back references are ``{"$ref": id}`` objects and collections are
``{"$id", "$type", "$values": [...]}`` objects.

Wire ids and internal ids are separate namespaces. Export mints fresh wire
ids on every call and import generates fresh internal ids, so neither side
ever reuses the other's identities.
"""

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from .base_parser import BaseParser
from ..core.catalog import (
    DEEP_SKY_OBJECT_CONTAINER,
    END_AREA_CONTAINER,
    SEQUENCE_ROOT_CONTAINER,
    SEQUENTIAL_CONTAINER,
    START_AREA_CONTAINER,
    TARGET_AREA_CONTAINER,
    get_item_definition,
    is_container_type,
    short_type_name,
)
from ..core.factories import generate_id
from ..core.models import AREAS, Condition, ItemStatus, Sequence, SequenceItem, Trigger
from ..utils.file_utils import FileUtils


ITEMS_COLLECTION_TYPE = ("System.Collections.ObjectModel.ObservableCollection`1"
                         "[[NINA.Sequencer.SequenceItem.ISequenceItem, NINA.Sequencer]], System.ObjectModel")
CONDITIONS_COLLECTION_TYPE = ("System.Collections.ObjectModel.ObservableCollection`1"
                              "[[NINA.Sequencer.Conditions.ISequenceCondition, NINA.Sequencer]], System.ObjectModel")
TRIGGERS_COLLECTION_TYPE = ("System.Collections.ObjectModel.ObservableCollection`1"
                            "[[NINA.Sequencer.Trigger.ISequenceTrigger, NINA.Sequencer]], System.ObjectModel")

SEQUENTIAL_STRATEGY = "NINA.Sequencer.Container.ExecutionStrategy.SequentialStrategy, NINA.Sequencer"
PARALLEL_STRATEGY = "NINA.Sequencer.Container.ExecutionStrategy.ParallelStrategy, NINA.Sequencer"

BINNING_TYPE = "NINA.Core.Model.Equipment.BinningMode, NINA.Core"
INPUT_TARGET_TYPE = "NINA.Astrometry.InputTarget, NINA.Astrometry"
INPUT_COORDINATES_TYPE = "NINA.Astrometry.InputCoordinates, NINA.Astrometry"

AREA_WRAPPERS = (
    ('start', START_AREA_CONTAINER, "Start Area"),
    ('target', TARGET_AREA_CONTAINER, "Target Area"),
    ('end', END_AREA_CONTAINER, "End Area"),
)
_AREA_BY_CLASS = {short_type_name(type_tag): area for area, type_tag, _ in AREA_WRAPPERS}

ITEM_RESERVED_KEYS = frozenset(
    ['$id', '$type', 'Name', 'Parent', 'Items', 'Conditions', 'Triggers', 'Strategy', 'IsExpanded'])
CONDITION_RESERVED_KEYS = frozenset(['$id', '$type', 'Name', 'Parent'])
TRIGGER_RESERVED_KEYS = frozenset(['$id', '$type', 'Name', 'Parent', 'TriggerRunner'])

# Nested data objects that carry their own wire identity
_WIRE_OBJECTS = {
    'Binning': BINNING_TYPE,
    'Coordinates': INPUT_COORDINATES_TYPE,
}


class SequenceFormatError(ValueError):
    """Raised when a document cannot be read as a sequence."""


@dataclass
class ValidationResult:
    """Outcome of a pre-import check."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'valid': self.valid, 'errors': list(self.errors), 'warnings': list(self.warnings)}


class WireIdAllocator:
    """
    Mints sequential wire ids for a single export.

    ``id_for`` keeps internal ids and wire ids apart: the same internal id
    always maps to the same wire id within one export, and nothing leaks into
    the next one.
    """

    def __init__(self):
        self._counter = 0
        self._ids: Dict[str, str] = {}

    def mint(self) -> str:
        self._counter += 1
        return str(self._counter)

    def id_for(self, internal_id: str) -> str:
        if internal_id not in self._ids:
            self._ids[internal_id] = self.mint()
        return self._ids[internal_id]


def _values(collection: Any) -> List[Any]:
    if isinstance(collection, dict) and isinstance(collection.get('$values'), list):
        return collection['$values']
    return []


def _walk(node: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(node, dict):
        yield node
        for value in node.values():
            yield from _walk(value)
    elif isinstance(node, list):
        for value in node:
            yield from _walk(value)


def _remint(ids: WireIdAllocator, value: Any, renamed: Dict[str, str]) -> Any:
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if key == '$id':
                result[key] = renamed[str(item)] = ids.mint()
            else:
                result[key] = _remint(ids, item, renamed)
        return result
    if isinstance(value, list):
        return [_remint(ids, item, renamed) for item in value]
    return copy.deepcopy(value)


def _relink(value: Any, renamed: Dict[str, str]) -> Any:
    if isinstance(value, dict):
        if str(value.get('$ref')) in renamed:
            return dict(value, **{'$ref': renamed[str(value['$ref'])]})
        return {key: _relink(item, renamed) for key, item in value.items()}
    if isinstance(value, list):
        return [_relink(item, renamed) for item in value]
    return value


def find_dangling_references(document: Any) -> List[str]:
    """Return the ``$ref`` values that do not match any ``$id`` in the document."""
    ids = set()
    refs = []
    for node in _walk(document):
        if '$id' in node:
            ids.add(str(node['$id']))
        if '$ref' in node:
            refs.append(str(node['$ref']))
    return [ref for ref in dict.fromkeys(refs) if ref not in ids]


class SequenceSerializer(BaseParser):
    """
    Reads and writes N.I.N.A. sequence documents.
    """

    def __init__(self, config=None):
        super().__init__(config)
        self.indent = config.export.indent if config is not None else 2

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self, sequence: Sequence) -> str:
        """
        Serialize a whole sequence with its three areas and global triggers.

        Args:
            sequence: Sequence to export

        Returns:
            JSON document text
        """
        ids = WireIdAllocator()
        root_id = ids.mint()

        areas = [
            self._container_to_wire(ids, ids.mint(), type_tag, name,
                                    {'$ref': root_id}, sequence.get_area(area))
            for area, type_tag, name in AREA_WRAPPERS
        ]

        root = {
            '$id': root_id,
            '$type': SEQUENCE_ROOT_CONTAINER,
            'Name': sequence.title,
            'SequenceTitle': sequence.title,
            'Strategy': {'$type': SEQUENTIAL_STRATEGY},
            'IsExpanded': True,
            'Items': self._collection(ids, ITEMS_COLLECTION_TYPE, areas),
            'Conditions': self._collection(ids, CONDITIONS_COLLECTION_TYPE, []),
            'Triggers': self._collection(ids, TRIGGERS_COLLECTION_TYPE, [
                self._trigger_to_wire(ids, trigger, root_id) for trigger in sequence.global_triggers
            ]),
            'Parent': None,
        }

        self.logger.debug(f"Exported sequence '{sequence.title}'")
        return json.dumps(root, indent=self.indent)

    def export_template(self, items: List[SequenceItem], name: str) -> str:
        """
        Serialize a bare list of items as one sequential container.

        There are no area wrappers and no global triggers in a template.
        """
        ids = WireIdAllocator()
        container = self._container_to_wire(ids, ids.mint(), SEQUENTIAL_CONTAINER, name, None, items)
        return json.dumps(container, indent=self.indent)

    def save(self, sequence: Sequence, path: Union[str, Path]) -> bool:
        """Export ``sequence`` and write it to ``path``."""
        return FileUtils.write_text(Path(path), self.export(sequence))

    def _collection(self, ids: WireIdAllocator, type_tag: str, values: List[Any]) -> Dict[str, Any]:
        return {'$id': ids.mint(), '$type': type_tag, '$values': values}

    def _container_to_wire(self, ids: WireIdAllocator, wire_id: str, type_tag: str, name: Optional[str],
                           parent: Optional[Dict[str, str]], items: List[SequenceItem]) -> Dict[str, Any]:
        return {
            '$id': wire_id,
            '$type': type_tag,
            'Name': name,
            'Strategy': {'$type': SEQUENTIAL_STRATEGY},
            'IsExpanded': True,
            'Items': self._collection(ids, ITEMS_COLLECTION_TYPE,
                                      [self._item_to_wire(ids, item, wire_id) for item in items]),
            'Conditions': self._collection(ids, CONDITIONS_COLLECTION_TYPE, []),
            'Triggers': self._collection(ids, TRIGGERS_COLLECTION_TYPE, []),
            'Parent': parent,
        }

    def _item_to_wire(self, ids: WireIdAllocator, item: SequenceItem, parent_id: str) -> Dict[str, Any]:
        wire_id = ids.id_for(item.id)
        node: Dict[str, Any] = {
            '$id': wire_id,
            '$type': item.type,
            'Name': item.name,
            'Parent': {'$ref': parent_id},
        }
        node.update(self._data_to_wire(ids, item.data))

        if not item.is_container:
            return node

        parallel = short_type_name(item.type) == 'ParallelContainer'
        node['Strategy'] = {'$type': PARALLEL_STRATEGY if parallel else SEQUENTIAL_STRATEGY}
        node['IsExpanded'] = True if item.is_expanded is None else item.is_expanded
        node['Items'] = self._collection(ids, ITEMS_COLLECTION_TYPE, [
            self._item_to_wire(ids, child, wire_id) for child in item.items
        ])
        node['Conditions'] = self._collection(ids, CONDITIONS_COLLECTION_TYPE, [
            self._condition_to_wire(ids, condition, wire_id) for condition in item.conditions or []
        ])
        node['Triggers'] = self._collection(ids, TRIGGERS_COLLECTION_TYPE, [
            self._trigger_to_wire(ids, trigger, wire_id) for trigger in item.triggers or []
        ])

        target = item.data.get('Target')
        if item.type == DEEP_SKY_OBJECT_CONTAINER and isinstance(target, dict) and 'ra' in target:
            node['Target'] = self._target_to_wire(ids, target)

        return node

    def _condition_to_wire(self, ids: WireIdAllocator, condition: Condition, parent_id: str) -> Dict[str, Any]:
        node = {
            '$id': ids.id_for(condition.id),
            '$type': condition.type,
            'Name': condition.name,
            'Parent': {'$ref': parent_id},
        }
        node.update(self._data_to_wire(ids, condition.data))
        return node

    def _trigger_to_wire(self, ids: WireIdAllocator, trigger: Trigger, parent_id: str) -> Dict[str, Any]:
        wire_id = ids.id_for(trigger.id)
        runner = self._container_to_wire(ids, ids.mint(), SEQUENTIAL_CONTAINER, None, None,
                                         trigger.trigger_items)
        node = {
            '$id': wire_id,
            '$type': trigger.type,
            'Name': trigger.name,
            'Parent': {'$ref': parent_id},
            'TriggerRunner': runner,
        }
        node.update(self._data_to_wire(ids, trigger.data))
        return node

    def _data_to_wire(self, ids: WireIdAllocator, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Copy a data map for export.

        Nested wire objects get fresh ids from ``ids`` so they cannot collide
        with the ids minted for this document. References between them are
        relinked. Binning and coordinates get their own id and discriminator
        back.
        """
        renamed: Dict[str, str] = {}
        wire = _relink(_remint(ids, data, renamed), renamed)
        for key, type_tag in _WIRE_OBJECTS.items():
            if isinstance(wire.get(key), dict):
                wire[key] = {'$id': ids.mint(), '$type': type_tag, **self._strip_markers(wire[key])}
        return wire

    def _target_to_wire(self, ids: WireIdAllocator, target: Dict[str, Any]) -> Dict[str, Any]:
        ra = target.get('ra') or {}
        dec = target.get('dec') or {}
        rotation = target.get('rotation', 0)
        return {
            '$id': ids.mint(),
            '$type': INPUT_TARGET_TYPE,
            'Expanded': True,
            'TargetName': target.get('name', ''),
            'PositionAngle': rotation,
            'Rotation': rotation,
            'InputCoordinates': {
                '$id': ids.mint(),
                '$type': INPUT_COORDINATES_TYPE,
                'RAHours': ra.get('hours', 0),
                'RAMinutes': ra.get('minutes', 0),
                'RASeconds': ra.get('seconds', 0),
                'DecDegrees': dec.get('degrees', 0),
                'DecMinutes': dec.get('minutes', 0),
                'DecSeconds': dec.get('seconds', 0),
                'NegativeDec': dec.get('negative', False),
            },
        }

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def parse(self, source: Union[str, Path]) -> Sequence:
        """
        Parse a sequence from a file path or from inline JSON text.

        Raises:
            SequenceFormatError: If the source cannot be read or is not a sequence
        """
        return self.import_sequence(self._load_text(source))

    def import_sequence(self, text: str) -> Sequence:
        """
        Build a sequence from document text.

        A root container is unwrapped into its three areas. Any other
        container is read as a template whose items land in the target area.

        Raises:
            SequenceFormatError: On malformed JSON or an unrecognized root
        """
        document = self._decode(text)
        type_tag = document.get('$type')

        for ref in find_dangling_references(document):
            self.logger.warning(f"Unresolved reference in document: $ref {ref}")

        if isinstance(type_tag, str) and short_type_name(type_tag) == 'SequenceRootContainer':
            return self._root_from_wire(document)
        if isinstance(type_tag, str) and is_container_type(type_tag):
            return Sequence(
                id=generate_id(),
                title=document.get('Name') or 'Imported Template',
                target_items=self._items_from_wire(document.get('Items')),
            )
        raise SequenceFormatError('Invalid NINA sequence format')

    def parse_template(self, source: Union[str, Path]) -> List[SequenceItem]:
        """
        Read the items of a template container.

        A full sequence document yields its target area items.
        """
        return self.import_sequence(self._load_text(source)).target_items

    def _load_text(self, source: Union[str, Path]) -> str:
        if not self._is_file_path(source):
            return source
        if not self.validate_source(source):
            raise SequenceFormatError(f"Cannot read sequence file: {source}")
        content = self.read_file(source)
        if content is None:
            raise SequenceFormatError(f"Cannot read sequence file: {source}")
        return content

    def _decode(self, text: str) -> Dict[str, Any]:
        try:
            document = json.loads(text)
        except (TypeError, ValueError) as e:
            raise SequenceFormatError(f"Invalid JSON: {e}") from e
        if not isinstance(document, dict):
            raise SequenceFormatError('Invalid NINA sequence format')
        return document

    def _root_from_wire(self, root: Dict[str, Any]) -> Sequence:
        forests: Dict[str, List[SequenceItem]] = {}
        for position, wrapper in enumerate(_values(root.get('Items'))):
            if not isinstance(wrapper, dict):
                continue
            area = _AREA_BY_CLASS.get(short_type_name(str(wrapper.get('$type', ''))))
            if area is None and position < len(AREAS):
                area = AREAS[position]
            if area is None or area in forests:
                self.logger.warning(f"Ignoring unexpected root child at position {position}")
                continue
            forests[f"{area}_items"] = self._items_from_wire(wrapper.get('Items'))

        return Sequence(
            id=generate_id(),
            title=root.get('SequenceTitle') or root.get('Name') or 'Imported Sequence',
            global_triggers=[self._trigger_from_wire(node) for node in _values(root.get('Triggers'))],
            **forests,
        )

    def _items_from_wire(self, collection: Any) -> List[SequenceItem]:
        return [self._item_from_wire(node) for node in _values(collection)]

    def _data_from_wire(self, node: Dict[str, Any], reserved: frozenset) -> Dict[str, Any]:
        data = {key: copy.deepcopy(value) for key, value in node.items() if key not in reserved}
        for key in _WIRE_OBJECTS:
            if isinstance(data.get(key), dict):
                data[key] = self._strip_markers(data[key])
        return data

    @staticmethod
    def _strip_markers(value: Dict[str, Any]) -> Dict[str, Any]:
        return {key: item for key, item in value.items() if key not in ('$id', '$type')}

    @staticmethod
    def _require_type(node: Any) -> str:
        if not isinstance(node, dict) or not isinstance(node.get('$type'), str):
            raise SequenceFormatError('Missing $type field')
        return node['$type']

    def _item_from_wire(self, node: Dict[str, Any]) -> SequenceItem:
        type_tag = self._require_type(node)
        definition = get_item_definition(type_tag)
        data = self._data_from_wire(node, ITEM_RESERVED_KEYS)

        item = SequenceItem(
            id=generate_id(),
            type=type_tag,
            name=node.get('Name') or (definition.name if definition else 'Unknown'),
            category=definition.category if definition else 'Unknown',
            description=definition.description if definition else None,
            status=ItemStatus.CREATED,
            data=data,
        )

        if is_container_type(type_tag):
            expanded = node.get('IsExpanded')
            item.is_expanded = True if expanded is None else bool(expanded)
            item.items = self._items_from_wire(node.get('Items'))
            item.conditions = [self._condition_from_wire(c) for c in _values(node.get('Conditions'))]
            item.triggers = [self._trigger_from_wire(t) for t in _values(node.get('Triggers'))]

            target = data.get('Target')
            if type_tag == DEEP_SKY_OBJECT_CONTAINER and isinstance(target, dict) and 'ra' not in target:
                data['Target'] = self._target_from_wire(target)

        return item

    def _condition_from_wire(self, node: Dict[str, Any]) -> Condition:
        type_tag = self._require_type(node)
        definition = get_item_definition(type_tag)
        return Condition(
            id=generate_id(),
            type=type_tag,
            name=node.get('Name') or (definition.name if definition else 'Unknown Condition'),
            category=definition.category if definition else 'Condition',
            data=self._data_from_wire(node, CONDITION_RESERVED_KEYS),
        )

    def _trigger_from_wire(self, node: Dict[str, Any]) -> Trigger:
        type_tag = self._require_type(node)
        definition = get_item_definition(type_tag)
        runner = node.get('TriggerRunner') or {}
        return Trigger(
            id=generate_id(),
            type=type_tag,
            name=node.get('Name') or (definition.name if definition else 'Unknown Trigger'),
            category=definition.category if definition else 'Trigger',
            data=self._data_from_wire(node, TRIGGER_RESERVED_KEYS),
            trigger_items=self._items_from_wire(runner.get('Items') if isinstance(runner, dict) else None),
        )

    @staticmethod
    def _target_from_wire(target: Dict[str, Any]) -> Dict[str, Any]:
        coords = target.get('InputCoordinates') or {}
        return {
            'name': target.get('TargetName') or '',
            'ra': {
                'hours': coords.get('RAHours') or 0,
                'minutes': coords.get('RAMinutes') or 0,
                'seconds': coords.get('RASeconds') or 0,
            },
            'dec': {
                'degrees': coords.get('DecDegrees') or 0,
                'minutes': coords.get('DecMinutes') or 0,
                'seconds': coords.get('DecSeconds') or 0,
                'negative': bool(coords.get('NegativeDec') or False),
            },
            'rotation': target.get('PositionAngle') or target.get('Rotation') or 0,
        }

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, text: str) -> ValidationResult:
        """
        Check a document before import. Never raises.

        Errors make the document unusable; warnings (such as unresolved
        ``$ref`` values) are left to the caller to judge.
        """
        try:
            document = json.loads(text)
        except (TypeError, ValueError) as e:
            return ValidationResult(valid=False, errors=[f"Invalid JSON: {e}"])

        if not isinstance(document, dict):
            return ValidationResult(valid=False, errors=['Root element must be a JSON object'])

        errors: List[str] = []
        type_tag = document.get('$type')
        if not type_tag:
            errors.append('Missing $type field')
        elif not isinstance(type_tag, str) or not is_container_type(type_tag):
            errors.append('Root element must be a container type')

        self._check_collections(document, '', errors)
        warnings = [f"Unresolved reference: $ref {ref}" for ref in find_dangling_references(document)]

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def _check_collections(self, node: Dict[str, Any], path: str, errors: List[str]) -> None:
        prefix = f"{path}." if path else ''
        for key in ('Items', 'Conditions', 'Triggers'):
            if key not in node or node[key] is None:
                continue
            collection = node[key]
            if not isinstance(collection, dict) or not isinstance(collection.get('$values'), list):
                errors.append(f"{prefix}{key} collection missing $values array")
                continue
            for index, child in enumerate(collection['$values']):
                child_path = f"{prefix}{key}[{index}]"
                if not isinstance(child, dict) or not child.get('$type'):
                    errors.append(f"{child_path}: Missing $type field")
                    continue
                self._check_collections(child, child_path, errors)

        runner = node.get('TriggerRunner')
        if isinstance(runner, dict):
            self._check_collections(runner, f"{prefix}TriggerRunner", errors)


_default_serializer: Optional[SequenceSerializer] = None


def get_serializer() -> SequenceSerializer:
    """Return a shared serializer built with default settings."""
    global _default_serializer
    if _default_serializer is None:
        _default_serializer = SequenceSerializer()
    return _default_serializer


def export_to_nina(sequence: Sequence) -> str:
    return get_serializer().export(sequence)


def import_from_nina(text: str) -> Sequence:
    return get_serializer().import_sequence(text)


def export_template_to_nina(items: List[SequenceItem], name: str) -> str:
    return get_serializer().export_template(items, name)


def import_template_from_nina(text: str) -> List[SequenceItem]:
    return get_serializer().parse_template(text)


def validate_nina_json(text: str) -> ValidationResult:
    return get_serializer().validate(text)
