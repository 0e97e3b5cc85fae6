"""
Tests for the template library.
"""

import pytest

from ninaseq.core.catalog import SEQUENTIAL_CONTAINER
from ninaseq.core.factories import create_item
from ninaseq.core.templates import TemplateLibrary
from ninaseq.core.tree import collect_ids

from .conftest import PARK_SCOPE, TAKE_EXPOSURE, WARM_CAMERA


@pytest.fixture
def library():
    return TemplateLibrary()


@pytest.fixture
def shutdown_editor(editor):
    editor.add_item('end', create_item(WARM_CAMERA))
    editor.add_item('end', create_item(PARK_SCOPE))
    return editor


class TestTemplateLibrary:
    """Tests for saving, listing, applying and deleting templates."""

    def test_save_area_as_template(self, library, shutdown_editor):
        template_id = library.save_as_template(shutdown_editor, "Shutdown", "Warm and park", area='end')
        template = library.get_template(template_id)
        assert template.name == "Shutdown"
        assert template.description == "Warm and park"
        assert len(library) == 1

    def test_save_selection_as_template(self, library, shutdown_editor):
        park = shutdown_editor.sequence.end_items[1]
        shutdown_editor.select_multiple_items([park.id])
        template_id = library.save_as_template(shutdown_editor, "Park")

        shutdown_editor.set_active_area('start')
        library.apply_template(shutdown_editor, template_id)
        assert [item.type for item in shutdown_editor.sequence.start_items] == [PARK_SCOPE]

    def test_empty_capture_is_refused(self, library, editor):
        assert library.save_as_template(editor, "Nothing", area='start') is None
        assert len(library) == 0

    def test_apply_gives_fresh_ids_each_time(self, library, editor):
        container = create_item(SEQUENTIAL_CONTAINER)
        editor.add_item('target', container)
        editor.add_item('target', create_item(TAKE_EXPOSURE), parent_id=container.id)
        template_id = library.save_as_template(editor, "Block", area='target')

        first = library.apply_template(editor, template_id)
        second = library.apply_template(editor, template_id)

        all_ids = [i for item in editor.sequence.target_items for i in collect_ids(item)]
        assert len(all_ids) == len(set(all_ids)) == 6
        assert first != second
        assert editor.can_undo()

    def test_apply_unknown_template(self, library, editor):
        assert library.apply_template(editor, "missing") == []

    def test_update_and_delete(self, library, shutdown_editor):
        template_id = library.save_as_template(shutdown_editor, "Shutdown", area='end')
        assert library.update_template(template_id, name="End of night")
        assert library.get_template(template_id).name == "End of night"

        assert library.delete_template(template_id)
        assert not library.delete_template(template_id)
        assert not library.update_template(template_id, name="x")

    def test_list_is_sorted_by_name(self, library):
        library.add_template("beta", "{}")
        library.add_template("Alpha", "{}")
        assert [t.name for t in library.list_templates()] == ["Alpha", "beta"]

    def test_save_and_load(self, tmp_path, library, shutdown_editor):
        template_id = library.save_as_template(shutdown_editor, "Shutdown", area='end')
        path = tmp_path / "templates.yaml"
        library.save(path)

        loaded = TemplateLibrary.load(path)
        assert loaded.get_template(template_id).document == library.get_template(template_id).document

        shutdown_editor.set_active_area('start')
        loaded.apply_template(shutdown_editor, template_id)
        assert [item.type for item in shutdown_editor.sequence.start_items] == [WARM_CAMERA, PARK_SCOPE]

    def test_load_missing_and_invalid(self, tmp_path):
        assert len(TemplateLibrary.load(tmp_path / "missing.yaml")) == 0

        bad = tmp_path / "bad.yaml"
        bad.write_text("templates:\n  - name: only a name\n")
        with pytest.raises(ValueError):
            TemplateLibrary.load(bad)
