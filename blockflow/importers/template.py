"""
Template importer for blockflow.

Loads one of the built-in automation templates, which makes it the
zero-setup source for trying the editor or the command line.
"""

from typing import List, Optional

from ..catalog import TemplateLibrary, template_library
from ..models import Block
from .base import BaseImporter


class TemplateImporter(BaseImporter):
    """
    Importer that returns a built-in template's blocks.
    """

    def __init__(self, template_id: str, library: Optional[TemplateLibrary] = None):
        library = library or template_library
        template = library.get_template(template_id)
        if not template:
            raise ValueError(f"Template '{template_id}' not found")
        self.template = template

    def get_blocks(self) -> List[Block]:
        return self.template.instantiate()

    def get_name(self) -> str:
        return self.template.name
