"""
Tests for selection, clipboard and the sequence editor.
"""

import pytest

from ninaseq.config.config import Config
from ninaseq.core.catalog import SEQUENTIAL_CONTAINER
from ninaseq.core.editor import SequenceEditor
from ninaseq.core.event_bus import (
    CLIPBOARD_CHANGED,
    HISTORY_CHANGED,
    SELECTION_CHANGED,
    SEQUENCE_CHANGED,
)
from ninaseq.core.factories import create_condition, create_item, create_trigger
from ninaseq.core.models import ItemStatus
from ninaseq.core.selection import COPY, CUT, Clipboard, Selection
from ninaseq.core.tree import collect_ids, iter_items

from .conftest import ALTITUDE_CONDITION, LOOP_CONDITION, MERIDIAN_FLIP, TAKE_EXPOSURE


class TestSelection:
    """Tests for the Selection state."""

    def test_select_item_clears_sub_selection(self):
        selection = Selection(condition_id='c', trigger_id='t')
        selection.select_item('i')
        assert (selection.item_id, selection.condition_id, selection.trigger_id) == ('i', None, None)

    def test_condition_and_trigger_are_exclusive(self):
        selection = Selection()
        selection.select_condition('c')
        selection.select_trigger('t')
        assert selection.condition_id is None and selection.trigger_id == 't'

    def test_toggle_and_targets(self):
        selection = Selection(item_id='focus')
        assert selection.targets() == ['focus']
        selection.toggle('a')
        selection.toggle('b')
        selection.toggle('a')
        assert selection.targets() == ['b']

    def test_set_multi_deduplicates(self):
        selection = Selection()
        selection.set_multi(['a', 'b', 'a'])
        assert selection.multi == ['a', 'b']

    def test_forget(self):
        selection = Selection(item_id='a', multi=['a', 'b'])
        assert selection.forget(['a'])
        assert selection.item_id is None and selection.multi == ['b']
        assert not selection.forget(['zzz'])


class TestClipboard:
    """Tests for the Clipboard."""

    def test_store_is_snapshot(self):
        item = create_item(TAKE_EXPOSURE)
        clipboard = Clipboard()
        clipboard.store([item], COPY)
        item.name = "changed"
        assert clipboard.items[0].name == "Take Exposure"
        assert clipboard

    def test_bad_mode(self):
        with pytest.raises(ValueError):
            Clipboard().store([], 'move')


class TestEditorItems:
    """Tests for item CRUD through the editor."""

    def test_add_item_records_history_and_publishes(self, editor, event_bus):
        events = []
        event_bus.subscribe(SEQUENCE_CHANGED, events.append)

        item = create_item(TAKE_EXPOSURE)
        assert editor.add_item('target', item)
        assert editor.sequence.target_items[0].id == item.id
        assert editor.is_dirty
        assert editor.can_undo()
        assert events[-1].data['action'] == 'add_item'

    def test_add_duplicate_id_rejected(self, editor):
        item = create_item(TAKE_EXPOSURE)
        editor.add_item('target', item)
        assert not editor.add_item('start', item)

    def test_add_into_missing_container(self, editor):
        assert not editor.add_item('target', create_item(TAKE_EXPOSURE), parent_id='missing')
        assert not editor.can_undo()

    def test_add_to_unknown_area(self, editor):
        assert not editor.add_item('middle', create_item(TAKE_EXPOSURE))

    def test_update_item_ignores_structural_fields(self, editor):
        container = create_item(SEQUENTIAL_CONTAINER)
        editor.add_item('target', container)
        assert editor.update_item(container.id, {'name': 'Outer', 'items': None, 'type': 'x'})
        updated = editor.get_item_by_id(container.id)
        assert updated.name == 'Outer'
        assert updated.items == []
        assert updated.type == SEQUENTIAL_CONTAINER

    def test_update_item_data_merges(self, editor):
        item = create_item(TAKE_EXPOSURE)
        editor.add_item('target', item)
        editor.update_item_data(item.id, {'ExposureTime': 5})
        data = editor.get_item_by_id(item.id).data
        assert data['ExposureTime'] == 5 and data['Gain'] == -1

    def test_delete_item_forgets_selection(self, editor):
        container = create_item(SEQUENTIAL_CONTAINER)
        child = create_item(TAKE_EXPOSURE)
        editor.add_item('target', container)
        editor.add_item('target', child, parent_id=container.id)
        editor.select_item(child.id)

        assert editor.delete_item(container.id)
        assert editor.sequence.target_items == []
        assert editor.selection.item_id is None

    def test_missing_ids_are_noops(self, editor):
        assert not editor.delete_item('missing')
        assert not editor.update_item('missing', {'name': 'x'})
        assert not editor.toggle_item_enabled('missing')
        assert editor.duplicate_item('missing') is None
        assert not editor.can_undo()

    def test_toggle_enabled(self, editor):
        item = create_item(TAKE_EXPOSURE)
        editor.add_item('target', item)
        editor.toggle_item_enabled(item.id)
        assert editor.get_item_by_id(item.id).status == ItemStatus.DISABLED
        editor.toggle_item_enabled(item.id)
        assert editor.get_item_by_id(item.id).status == ItemStatus.CREATED

    def test_duplicate_inserts_after_original(self, editor):
        first = create_item(TAKE_EXPOSURE)
        last = create_item(TAKE_EXPOSURE, name="Last")
        editor.add_item('target', first)
        editor.add_item('target', last)

        clone_id = editor.duplicate_item(first.id)
        names = [item.name for item in editor.sequence.target_items]
        assert names == ['Take Exposure', 'Take Exposure (Copy)', 'Last']
        assert editor.sequence.target_items[1].id == clone_id

    def test_expand_and_collapse_all(self, editor):
        outer = create_item(SEQUENTIAL_CONTAINER)
        inner = create_item(SEQUENTIAL_CONTAINER)
        editor.add_item('target', outer)
        editor.add_item('target', inner, parent_id=outer.id)

        editor.collapse_all_items()
        assert all(item.is_expanded is False for item in iter_items(editor.sequence.target_items))
        editor.expand_all_items()
        assert all(item.is_expanded for item in iter_items(editor.sequence.target_items))


class TestEditorMoves:
    """Tests for moving items."""

    def test_move_keeps_identity(self, editor, sample_sequence):
        editor.load_sequence(sample_sequence)
        dso = editor.sequence.target_items[0]
        before = collect_ids(dso)

        assert editor.move_item(dso.id, 'end', None, 0)
        assert editor.sequence.end_items[0] is dso
        assert collect_ids(editor.sequence.end_items[0]) == before
        assert editor.area_of(dso.id) == 'end'

    def test_move_into_descendant_is_refused(self, editor):
        outer = create_item(SEQUENTIAL_CONTAINER)
        inner = create_item(SEQUENTIAL_CONTAINER)
        editor.add_item('target', outer)
        editor.add_item('target', inner, parent_id=outer.id)
        snapshot = editor.sequence

        assert not editor.move_item(outer.id, 'target', inner.id, 0)
        assert editor.sequence is snapshot

    def test_move_up_down(self, editor):
        a = create_item(TAKE_EXPOSURE, name='a')
        b = create_item(TAKE_EXPOSURE, name='b')
        editor.add_item('target', a)
        editor.add_item('target', b)

        assert editor.move_item_down(a.id)
        assert [i.name for i in editor.sequence.target_items] == ['b', 'a']
        assert not editor.move_item_down(a.id)
        assert editor.move_item_up(a.id)
        assert [i.name for i in editor.sequence.target_items] == ['a', 'b']

    def test_move_to_area(self, editor):
        item = create_item(TAKE_EXPOSURE)
        editor.add_item('start', item)
        assert editor.move_item_to_area(item.id, 'end')
        assert editor.sequence.start_items == []
        assert editor.sequence.end_items[0].id == item.id


class TestEditorConditionsTriggers:
    """Tests for conditions, triggers and global triggers."""

    def test_condition_lifecycle(self, editor):
        container = create_item(SEQUENTIAL_CONTAINER)
        editor.add_item('target', container)
        condition = create_condition(LOOP_CONDITION)

        assert editor.add_condition(container.id, condition)
        assert editor.update_condition(container.id, condition.id, {'data': {'Iterations': 3}})
        assert editor.get_condition_by_id(condition.id).data == {'Iterations': 3}
        assert editor.delete_condition(container.id, condition.id)
        assert editor.get_item_by_id(container.id).conditions == []

    def test_condition_on_leaf_refused(self, editor):
        leaf = create_item(TAKE_EXPOSURE)
        editor.add_item('target', leaf)
        assert not editor.add_condition(leaf.id, create_condition(LOOP_CONDITION))

    def test_trigger_lifecycle(self, editor):
        container = create_item(SEQUENTIAL_CONTAINER)
        editor.add_item('target', container)
        trigger = create_trigger(MERIDIAN_FLIP)

        assert editor.add_trigger(container.id, trigger)
        editor.select_trigger(trigger.id)
        assert editor.update_trigger(container.id, trigger.id, {'name': 'Flip'})
        assert editor.get_trigger_by_id(trigger.id).name == 'Flip'
        assert editor.delete_trigger(container.id, trigger.id)
        assert editor.selection.trigger_id is None
        assert not editor.delete_trigger(container.id, trigger.id)

    def test_duplicate_identities_refused(self, editor):
        container = create_item(SEQUENTIAL_CONTAINER)
        editor.add_item('target', container)
        condition = create_condition(LOOP_CONDITION)
        trigger = create_trigger(MERIDIAN_FLIP)

        assert editor.add_condition(container.id, condition)
        assert not editor.add_condition(container.id, condition)
        assert editor.add_trigger(container.id, trigger)
        assert not editor.add_trigger(container.id, trigger)
        assert not editor.add_global_trigger(trigger)
        assert not editor.add_condition(container.id, create_condition(LOOP_CONDITION, id=container.id))

        stored = editor.get_item_by_id(container.id)
        assert [c.id for c in stored.conditions] == [condition.id]
        assert [t.id for t in stored.triggers] == [trigger.id]
        assert editor.sequence.global_triggers == []

    def test_global_triggers(self, editor):
        trigger = create_trigger(MERIDIAN_FLIP)
        assert editor.add_global_trigger(trigger)
        assert editor.update_global_trigger(trigger.id, {'name': 'Flip'})
        assert editor.sequence.global_triggers[0].name == 'Flip'
        assert editor.delete_global_trigger(trigger.id)
        assert editor.sequence.global_triggers == []
        assert not editor.delete_global_trigger(trigger.id)


class TestEditorHistory:
    """Tests for undo and redo through the editor."""

    def test_undo_redo_inverse(self, editor, event_bus):
        events = []
        event_bus.subscribe(HISTORY_CHANGED, events.append)
        item = create_item(TAKE_EXPOSURE)
        editor.add_item('target', item)

        assert editor.undo()
        assert editor.sequence.target_items == []
        assert editor.redo()
        assert editor.sequence.target_items[0].id == item.id
        assert [e.data['action'] for e in events] == ['undo', 'redo']

    def test_new_then_undo_restores_previous(self, editor, sample_sequence):
        editor.load_sequence(sample_sequence)
        editor.new_sequence("Fresh")
        assert editor.sequence.title == "Fresh"
        assert editor.sequence.target_items == []

        editor.undo()
        assert editor.sequence.title == "M42 Night"
        assert len(editor.sequence.target_items) == 2

    def test_undo_prunes_stale_selection(self, editor):
        item = create_item(TAKE_EXPOSURE)
        editor.add_item('target', item)
        editor.select_item(item.id)
        editor.undo()
        assert editor.selection.item_id is None

    def test_history_is_bounded(self, event_bus):
        config = Config()
        config.history.max_entries = 3
        editor = SequenceEditor(config, event_bus=event_bus)
        for _ in range(5):
            editor.add_item('target', create_item(TAKE_EXPOSURE))

        undone = 0
        while editor.undo():
            undone += 1
        assert undone == 2
        assert len(editor.sequence.target_items) == 3

    def test_load_resets_dirty(self, editor, sample_sequence):
        editor.load_sequence(sample_sequence)
        assert not editor.is_dirty
        editor.set_title("Other")
        assert editor.is_dirty
        editor.clear_dirty()
        assert not editor.is_dirty


class TestEditorBulkAndClipboard:
    """Tests for multi-selection, bulk operations and the clipboard."""

    @pytest.fixture
    def populated(self, editor):
        for name in ('a', 'b', 'c'):
            editor.add_item('target', create_item(TAKE_EXPOSURE, name=name))
        return editor

    def test_select_all_includes_nested(self, editor, sample_sequence):
        editor.load_sequence(sample_sequence)
        ids = editor.select_all_items()
        assert len(ids) == 5
        assert editor.selection.multi == ids

    def test_delete_selected_is_one_step(self, populated):
        ids = [item.id for item in populated.sequence.target_items]
        populated.select_multiple_items(ids[:2] + ['missing'])
        assert populated.delete_selected_items() == 2
        assert [i.name for i in populated.sequence.target_items] == ['c']
        assert populated.selection.multi == []

        populated.undo()
        assert len(populated.sequence.target_items) == 3

    def test_duplicate_selected(self, populated):
        ids = [item.id for item in populated.sequence.target_items]
        populated.select_multiple_items([ids[0], ids[2]])
        clones = populated.duplicate_selected_items()
        names = [i.name for i in populated.sequence.target_items]
        assert names == ['a', 'a (Copy)', 'b', 'c', 'c (Copy)']
        assert populated.selection.multi == clones

    def test_toggle_selected(self, populated):
        ids = [item.id for item in populated.sequence.target_items]
        populated.select_multiple_items(ids)
        assert populated.toggle_selected_items_enabled() == 3
        assert all(not i.is_enabled for i in populated.sequence.target_items)

    def test_copy_paste_creates_fresh_ids(self, populated, event_bus):
        events = []
        event_bus.subscribe(CLIPBOARD_CHANGED, events.append)
        first = populated.sequence.target_items[0]
        populated.select_item(first.id)

        assert populated.copy_selected_items() == 1
        pasted = populated.paste_items()
        assert len(pasted) == 1 and pasted[0] != first.id
        assert populated.sequence.target_items[-1].name == 'a'
        assert events[0].data == {'mode': COPY, 'count': 1}

        second = populated.paste_items()
        assert second != pasted

    def test_cut_paste_into_container(self, populated):
        container = create_item(SEQUENTIAL_CONTAINER)
        populated.add_item('target', container)
        first = populated.sequence.target_items[0]
        populated.select_item(first.id)

        assert populated.cut_selected_items() == 1
        assert populated.clipboard.mode == CUT
        assert populated.get_item_by_id(first.id) is None

        populated.paste_items(parent_id=container.id)
        assert [i.name for i in populated.get_item_by_id(container.id).items] == ['a']

    def test_copy_skips_descendants_of_selected(self, editor):
        outer = create_item(SEQUENTIAL_CONTAINER)
        inner = create_item(TAKE_EXPOSURE)
        editor.add_item('target', outer)
        editor.add_item('target', inner, parent_id=outer.id)
        editor.select_multiple_items([outer.id, inner.id])
        assert editor.copy_selected_items() == 1

    def test_paste_uses_active_area(self, populated):
        populated.select_item(populated.sequence.target_items[0].id)
        populated.copy_selected_items()
        populated.set_active_area('start')
        populated.paste_items()
        assert len(populated.sequence.start_items) == 1

    def test_paste_negative_index_keeps_order(self, populated):
        populated.select_multiple_items([item.id for item in populated.sequence.target_items[:2]])
        populated.copy_selected_items()
        populated.paste_items(index=-1)
        assert [item.name for item in populated.sequence.target_items] == ['a', 'b', 'a', 'b', 'c']

    def test_template_negative_index_keeps_order(self, populated):
        ids = [item.id for item in populated.sequence.target_items[:2]]
        text = populated.export_template_json("AB", item_ids=ids)
        inserted = populated.import_template_json(text, index=-1)
        assert len(inserted) == 2
        assert [item.name for item in populated.sequence.target_items] == ['a', 'b', 'a', 'b', 'c']

    def test_empty_clipboard(self, editor):
        assert not editor.has_clipboard()
        assert editor.paste_items() == []

    def test_selection_events(self, editor, event_bus):
        events = []
        event_bus.subscribe(SELECTION_CHANGED, events.append)
        editor.toggle_item_selection('x')
        editor.clear_multi_selection()
        assert [e.data['multi'] for e in events] == [['x'], []]


class TestEditorStats:
    """Tests for get_sequence_stats."""

    def test_stats(self, editor, sample_sequence):
        editor.load_sequence(sample_sequence)
        dso = editor.sequence.target_items[0]
        editor.toggle_item_enabled(dso.items[0].id)

        stats = editor.get_sequence_stats()
        assert stats['start_items'] == 1
        assert stats['target_items'] == 5
        assert stats['end_items'] == 2
        assert stats['total_items'] == 8
        assert stats['containers'] == 3
        assert stats['disabled_items'] == 1
        assert stats['conditions'] == 1
        assert stats['triggers'] == 1
        assert stats['global_triggers'] == 1

    def test_check_items(self, editor, sample_sequence):
        editor.load_sequence(sample_sequence)
        assert editor.check_items() == {}

        exposure = create_item(TAKE_EXPOSURE, data={'ExposureTime': 0, 'Gain': -3})
        editor.add_item('end', exposure)
        assert editor.check_items() == {exposure.id: [
            'Exposure time must be positive',
            'Gain must be -1 (default) or a positive value',
        ]}

    def test_check_items_reports_unknown_choices(self, editor):
        container = create_item(SEQUENTIAL_CONTAINER)
        exposure = create_item(TAKE_EXPOSURE, data={'ImageType': 'NIGHT'})
        condition = create_condition(ALTITUDE_CONDITION, data={'Comparator': '!='})
        editor.add_item('target', container)
        editor.add_item('target', exposure, parent_id=container.id)
        editor.add_condition(container.id, condition)

        assert editor.check_items() == {
            exposure.id: ["Image type 'NIGHT' is not one of the known values"],
            condition.id: ["Comparator '!=' is not one of the known values"],
        }
