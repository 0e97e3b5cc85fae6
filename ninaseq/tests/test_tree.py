"""
Tests for the structural tree operations.
"""

import pytest

from ninaseq.core.catalog import SEQUENTIAL_CONTAINER
from ninaseq.core.factories import create_condition, create_item, create_trigger
from ninaseq.core import tree

from .conftest import LOOP_CONDITION, MERIDIAN_FLIP, TAKE_EXPOSURE


@pytest.fixture
def forest():
    """
    a (container)
      a1
      b (container)
        b1
    c
    """
    b = create_item(SEQUENTIAL_CONTAINER, id='b', items=[create_item(TAKE_EXPOSURE, id='b1')])
    a = create_item(SEQUENTIAL_CONTAINER, id='a', items=[create_item(TAKE_EXPOSURE, id='a1'), b])
    c = create_item(TAKE_EXPOSURE, id='c')
    return [a, c]


def ids(forest):
    return [item.id for item in tree.iter_items(forest)]


class TestLookups:
    """Tests for find, parent and index lookups."""

    def test_find_by_id(self, forest):
        assert tree.find_by_id(forest, 'b1').id == 'b1'
        assert tree.find_by_id(forest, 'missing') is None

    def test_find_parent(self, forest):
        assert tree.find_parent(forest, 'b1').id == 'b'
        assert tree.find_parent(forest, 'a') is None
        assert tree.find_parent(forest, 'missing') is None

    def test_index_of(self, forest):
        assert tree.index_of(forest, 'c') == 1
        assert tree.index_of(forest, 'b') == 1
        assert tree.index_of(forest, 'missing') == -1

    def test_iter_items_is_pre_order(self, forest):
        assert ids(forest) == ['a', 'a1', 'b', 'b1', 'c']

    def test_collect_ids_includes_conditions_and_triggers(self):
        runner_item = create_item(TAKE_EXPOSURE, id='r1')
        container = create_item(SEQUENTIAL_CONTAINER, id='x',
                                conditions=[create_condition(LOOP_CONDITION, id='cond')],
                                triggers=[create_trigger(MERIDIAN_FLIP, id='trig', trigger_items=[runner_item])])
        assert tree.collect_ids(container) == ['x', 'cond', 'trig', 'r1']


class TestUpdates:
    """Tests for mapping, updating, inserting and removing."""

    def test_update_by_id_does_not_mutate(self, forest):
        updated = tree.update_by_id(forest, 'b1', {'name': 'Renamed', 'id': 'hijack'})
        assert tree.find_by_id(updated, 'b1').name == 'Renamed'
        assert tree.find_by_id(forest, 'b1').name == 'Take Exposure'
        assert tree.find_by_id(updated, 'hijack') is None

    def test_update_shares_untouched_subtrees(self, forest):
        updated = tree.update_by_id(forest, 'b1', {'name': 'Renamed'})
        assert updated[1] is forest[1]
        assert tree.find_by_id(updated, 'a1') is tree.find_by_id(forest, 'a1')

    def test_missing_id_returns_same_forest(self, forest):
        assert tree.update_by_id(forest, 'missing', {'name': 'x'}) is forest
        assert tree.remove_by_id(forest, 'missing') is forest

    def test_remove_nested(self, forest):
        updated = tree.remove_by_id(forest, 'b')
        assert ids(updated) == ['a', 'a1', 'c']
        assert ids(forest) == ['a', 'a1', 'b', 'b1', 'c']

    def test_insert_at_root_and_nested(self, forest):
        new = create_item(TAKE_EXPOSURE, id='n')
        assert ids(tree.insert_at(forest, None, 0, new))[0] == 'n'
        assert ids(tree.insert_at(forest, None, None, new))[-1] == 'n'
        nested = tree.insert_at(forest, 'b', 0, new)
        assert [child.id for child in tree.find_by_id(nested, 'b').items] == ['n', 'b1']

    def test_insert_past_end_appends(self, forest):
        new = create_item(TAKE_EXPOSURE, id='n')
        assert ids(tree.insert_at(forest, None, 99, new))[-1] == 'n'

    def test_insert_into_leaf_is_noop(self, forest):
        new = create_item(TAKE_EXPOSURE, id='n')
        assert tree.insert_at(forest, 'c', 0, new) is forest
        assert tree.insert_at(forest, 'missing', 0, new) is forest

    def test_map_items_children_first(self, forest):
        seen = []

        def visit(item):
            seen.append(item.id)
            return item

        tree.map_items(forest, visit)
        assert seen == ['a1', 'b1', 'b', 'a', 'c']


class TestMoves:
    """Tests for move operations."""

    def test_move_preserves_identity(self, forest):
        original = tree.find_by_id(forest, 'b')
        moved = tree.move_by_id(forest, 'b', None, 0)
        assert moved[0] is original
        assert ids(moved) == ['b', 'b1', 'a', 'a1', 'c']

    def test_move_index_is_after_removal(self, forest):
        moved = tree.move_by_id(forest, 'a', None, 1)
        assert [item.id for item in moved] == ['c', 'a']

    def test_move_into_descendant_rejected(self, forest):
        with pytest.raises(tree.InvalidMoveError):
            tree.move_by_id(forest, 'a', 'b', 0)
        with pytest.raises(tree.InvalidMoveError):
            tree.move_by_id(forest, 'a', 'a', 0)
        assert ids(forest) == ['a', 'a1', 'b', 'b1', 'c']

    def test_move_to_unknown_parent_is_noop(self, forest):
        assert tree.move_by_id(forest, 'c', 'missing', 0) is forest
        assert tree.move_by_id(forest, 'missing', None, 0) is forest

    def test_move_up_and_down(self, forest):
        down = tree.move_in_direction(forest, 'a1', 'down')
        assert [child.id for child in tree.find_by_id(down, 'a').items] == ['b', 'a1']
        up = tree.move_in_direction(forest, 'c', 'up')
        assert [item.id for item in up] == ['c', 'a']

    def test_move_at_edges_is_noop(self, forest):
        assert tree.move_in_direction(forest, 'a', 'up') is forest
        assert tree.move_in_direction(forest, 'c', 'down') is forest

    def test_move_bad_direction(self, forest):
        with pytest.raises(ValueError):
            tree.move_in_direction(forest, 'a', 'sideways')


class TestClone:
    """Tests for deep cloning with fresh identities."""

    def test_clone_has_all_new_ids(self, forest):
        original = forest[0]
        clone = tree.clone_with_new_identities(original)
        original_ids = tree.collect_ids(original)
        clone_ids = tree.collect_ids(clone)
        assert len(clone_ids) == len(original_ids)
        assert len(set(original_ids) | set(clone_ids)) == 2 * len(original_ids)

    def test_clone_keeps_shape(self, forest):
        clone = tree.clone_with_new_identities(forest[0])
        assert [i.name for i in tree.iter_items([clone])] == [i.name for i in tree.iter_items([forest[0]])]
        assert clone.items[1].items[0] is not forest[0].items[1].items[0]
