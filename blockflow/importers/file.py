"""
File importer for blockflow.

Reads an automation document from YAML or JSON. The document is either a
mapping ``{name: ..., blocks: [...]}`` or a bare list of blocks; each block
uses the same fields the persistence layer stores (id, kind, position,
configured, config, connections).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from ..models import Block
from .base import BaseImporter


class FileImporter(BaseImporter):
    """
    Importer for automation documents stored on disk.
    """

    def __init__(self, path: str):
        """
        Initialize the file importer.

        Args:
            path: Path to a .yaml, .yml or .json automation document
        """
        self.path = Path(path)
        self._document: Dict[str, Any] = {}
        self._loaded = False

    def _load(self) -> Dict[str, Any]:
        if self._loaded:
            return self._document

        if not self.path.exists():
            raise FileNotFoundError(f"Automation file not found: {self.path}")

        with open(self.path, 'r', encoding='utf-8') as f:
            if self.path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        if isinstance(data, list):
            data = {"blocks": data}
        if not isinstance(data, dict) or not isinstance(data.get("blocks", []), list):
            raise ValueError(f"{self.path} is not an automation document")

        self._document = data
        self._loaded = True
        logging.info(f"Loaded automation document {self.path}")
        return self._document

    def get_blocks(self) -> List[Block]:
        """
        Parse the document's blocks.

        Raises:
            ValueError: If a block entry is malformed
        """
        blocks = []
        for index, item in enumerate(self._load().get("blocks") or []):
            try:
                blocks.append(Block.model_validate(item))
            except ValidationError as e:
                raise ValueError(f"Invalid block #{index} in {self.path}: {e}") from e
        return blocks

    def get_name(self) -> str:
        return str(self._load().get("name") or self.path.stem)
