"""
blockflow: the block graph engine behind a visual automation builder.

Models trigger -> condition -> action flows, enforces which connections are
legal, validates whole graphs before save, and simulates runs with
fictitious data.
"""

__version__ = "0.1.0"
__author__ = "blockflow Project"

# Import main components
from .models import Block, BlockCategory, BlockKind, Position
from .catalog import BlockCatalog, block_catalog, template_library
from .engine import BlockStore, EditorSession, ExecutionSimulator, StructuralValidator
from .database import DatabaseManager
from .importers import BaseImporter, FileImporter, TemplateImporter
from .versioning import VersionManager

__all__ = [
    "Block",
    "BlockCategory",
    "BlockKind",
    "Position",
    "BlockCatalog",
    "block_catalog",
    "template_library",
    "BlockStore",
    "EditorSession",
    "ExecutionSimulator",
    "StructuralValidator",
    "DatabaseManager",
    "BaseImporter",
    "FileImporter",
    "TemplateImporter",
    "VersionManager",
]
