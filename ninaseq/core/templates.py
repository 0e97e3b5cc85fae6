"""
Template library for ninaseq.

Templates are stored as template documents (a bare sequential container in
wire form), so applying one always goes through the import path and yields
fresh identities, no matter how often it is applied.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from .factories import generate_id


@dataclass
class SequenceTemplate:
    """A named, reusable group of items."""
    id: str
    name: str
    document: str
    description: str = ""
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())


class TemplateLibrary:
    """
    In-memory collection of templates with YAML persistence.
    """

    def __init__(self):
        self._templates: Dict[str, SequenceTemplate] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def __len__(self) -> int:
        return len(self._templates)

    def add_template(self, name: str, document: str, description: str = "") -> str:
        """
        Register a template document.

        Returns:
            Id of the new template
        """
        template = SequenceTemplate(id=generate_id(), name=name, document=document, description=description)
        self._templates[template.id] = template
        self.logger.debug(f"Added template '{name}' ({template.id})")
        return template.id

    def save_as_template(self, editor, name: str, description: str = "", area: Optional[str] = None,
                         item_ids: Optional[List[str]] = None) -> Optional[str]:
        """
        Capture the selected items, or a whole area, of ``editor`` as a template.

        ``item_ids`` defaults to the editor's multi-selection; with no
        selection the area (the active one unless given) is captured.
        """
        if item_ids is None and area is None and editor.selection.multi:
            item_ids = list(editor.selection.multi)
        document = editor.export_template_json(name, area=area, item_ids=item_ids)
        if not editor.serializer.parse_template(document):
            self.logger.warning(f"Nothing to save as template '{name}'")
            return None
        return self.add_template(name, document, description)

    def get_template(self, template_id: str) -> Optional[SequenceTemplate]:
        return self._templates.get(template_id)

    def list_templates(self) -> List[SequenceTemplate]:
        return sorted(self._templates.values(), key=lambda t: (t.name.lower(), t.created_at))

    def update_template(self, template_id: str, name: Optional[str] = None,
                        description: Optional[str] = None) -> bool:
        template = self._templates.get(template_id)
        if template is None:
            self.logger.warning(f"Template not found for update: {template_id}")
            return False
        if name is not None:
            template.name = name
        if description is not None:
            template.description = description
        template.updated_at = datetime.now().isoformat()
        return True

    def delete_template(self, template_id: str) -> bool:
        if self._templates.pop(template_id, None) is None:
            self.logger.warning(f"Template not found for deletion: {template_id}")
            return False
        return True

    def apply_template(self, editor, template_id: str, parent_id: Optional[str] = None,
                       index: Optional[int] = None) -> List[str]:
        """
        Insert a template's items into the editor's active area.

        Returns:
            Ids of the inserted top-level items, empty when the template is unknown
        """
        template = self._templates.get(template_id)
        if template is None:
            self.logger.warning(f"Template not found: {template_id}")
            return []
        return editor.import_template_json(template.document, parent_id=parent_id, index=index)

    def save(self, path: Path) -> None:
        """Write every template to a YAML file."""
        data = {'templates': [asdict(t) for t in self.list_templates()]}
        with open(path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load(cls, path: Path) -> 'TemplateLibrary':
        """
        Read a library written by ``save``. A missing file gives an empty library.

        Raises:
            ValueError: If an entry lacks one of the required fields
        """
        library = cls()
        if not Path(path).exists():
            return library

        with open(path, 'r') as f:
            data: Dict[str, Any] = yaml.safe_load(f) or {}

        for entry in data.get('templates') or []:
            try:
                template = SequenceTemplate(**entry)
            except TypeError as e:
                raise ValueError(f"Invalid template entry in {path}: {e}") from e
            library._templates[template.id] = template
        return library
