"""
Block Catalog for blockflow.

This module defines the registry of every block kind the editor palette
offers, grouped by category, together with its display metadata and the
canned text used when a block is exercised by a test run. The registry is the
authoritative source of valid kinds for a deployment.
"""

import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from ..models import BlockCategory, BlockKind, category_for_kind
from ..config import config


@dataclass
class BlockDefinition:
    """
    Palette entry for one block kind.
    """
    kind: BlockKind
    name: str
    description: str
    test_message: str
    default_config: Dict[str, Any] = field(default_factory=dict)

    @property
    def category(self) -> BlockCategory:
        return category_for_kind(self.kind)


class BlockCatalog:
    """
    Registry of all available block kinds and their metadata.
    """

    def __init__(self):
        """Initialize the catalog with the default block kinds."""
        self._blocks: Dict[BlockKind, BlockDefinition] = {}
        self._register_default_blocks()

    def _register_default_blocks(self):
        """Register the default kinds shipped with blockflow."""

        # Triggers - start a flow
        self.register_block(BlockDefinition(
            kind=BlockKind.NEW_LEAD,
            name="New Lead",
            description="Starts the flow when a lead is created",
            test_message="Fictitious lead created",
            default_config={"source": "none"}
        ))
        self.register_block(BlockDefinition(
            kind=BlockKind.LEAD_MOVED,
            name="Lead Moved",
            description="Starts the flow when a lead changes pipeline stage",
            test_message="Fictitious lead moved between stages",
            default_config={"fromStage": "any", "toStage": "none"}
        ))
        self.register_block(BlockDefinition(
            kind=BlockKind.MESSAGE_RECEIVED,
            name="Message Received",
            description="Starts the flow when a lead sends a message",
            test_message="Fictitious message received",
            default_config={"channel": "any"}
        ))

        # Conditions - gate the rest of the branch
        self.register_block(BlockDefinition(
            kind=BlockKind.LEAD_STATUS,
            name="Lead Status",
            description="Continues only when a lead field matches a value",
            test_message="Lead status condition met",
            default_config={"field": "status", "operator": "equals"}
        ))
        self.register_block(BlockDefinition(
            kind=BlockKind.LEAD_SOURCE,
            name="Lead Source",
            description="Continues only for leads from a given channel",
            test_message="Lead source condition met",
            default_config={"operator": "equals", "value": "none"}
        ))
        self.register_block(BlockDefinition(
            kind=BlockKind.VALUE_GREATER,
            name="Value Greater Than",
            description="Continues only when the deal value exceeds a threshold",
            test_message="Deal value above threshold",
            default_config={"field": "valor", "operator": "greater"}
        ))

        # Actions - effects performed by the flow
        self.register_block(BlockDefinition(
            kind=BlockKind.SEND_MESSAGE,
            name="Send Message",
            description="Sends a message to the lead",
            test_message="Message sent to the fictitious lead",
            default_config={"channel": "none"}
        ))
        self.register_block(BlockDefinition(
            kind=BlockKind.CREATE_TASK,
            name="Create Task",
            description="Creates a follow-up task",
            test_message="Task created for the fictitious lead",
            default_config={"priority": "medium", "taskType": "general"}
        ))
        self.register_block(BlockDefinition(
            kind=BlockKind.MOVE_PIPELINE,
            name="Move in Pipeline",
            description="Moves the lead to another pipeline stage",
            test_message="Fictitious lead moved in the pipeline",
            default_config={"pipeline": "default", "stage": "none"}
        ))

    def register_block(self, definition: BlockDefinition) -> None:
        """
        Register (or replace) a block definition.

        Args:
            definition: The block definition to register
        """
        self._blocks[definition.kind] = definition

    def get_block(self, kind: Any) -> Optional[BlockDefinition]:
        """
        Get a block definition by kind.

        Args:
            kind: A BlockKind or its string value

        Returns:
            The block definition, or None if the kind is unknown
        """
        try:
            return self._blocks.get(BlockKind(kind))
        except ValueError:
            return None

    def category_for(self, kind: Any) -> BlockCategory:
        """
        Get the category of a block kind.

        Raises:
            ValueError: If the kind is not in the catalog
        """
        definition = self.get_block(kind)
        if not definition:
            raise ValueError(f"Unknown block kind '{kind}'")
        return definition.category

    def list_kinds(self) -> List[BlockKind]:
        """
        Get all registered kinds in palette order.

        Returns:
            List of block kinds
        """
        return list(self._blocks.keys())

    def list_by_category(self, category: Any) -> List[BlockDefinition]:
        """
        Get the palette entries of one category.

        Args:
            category: A BlockCategory or its string value

        Returns:
            Definitions belonging to the category, in palette order
        """
        category = BlockCategory(category)
        return [
            definition for definition in self._blocks.values()
            if definition.category == category
        ]

    def palette(self) -> Dict[str, List[BlockDefinition]]:
        """Group every definition by category value, as the sidebar shows them."""
        return {
            category.value: self.list_by_category(category)
            for category in BlockCategory
        }

    def apply_overrides(self, definitions: Dict[str, Any]) -> List[str]:
        """
        Apply per-kind display overrides loaded from configuration.

        Only existing kinds can be overridden: the set of kinds is closed per
        deployment, so unknown entries are logged and skipped.

        Args:
            definitions: Mapping of kind value to overridden fields

        Returns:
            Kinds that were updated
        """
        updated = []
        for kind_name, overrides in (definitions or {}).items():
            definition = self.get_block(kind_name)
            if not definition:
                logging.error(f"Ignoring catalog override for unknown block kind '{kind_name}'")
                continue
            if not isinstance(overrides, dict):
                logging.error(f"Catalog override for '{kind_name}' must be a mapping")
                continue

            for attribute in ("name", "description", "test_message"):
                if attribute in overrides:
                    setattr(definition, attribute, str(overrides[attribute]))
            if "default_config" in overrides:
                definition.default_config = dict(overrides["default_config"] or {})

            updated.append(definition.kind.value)
            logging.info(f"Applied catalog override: {kind_name}")
        return updated


def load_catalog(definitions: Optional[Dict[str, Any]] = None) -> BlockCatalog:
    """
    Build a catalog with configuration overrides applied.

    Args:
        definitions: Overrides to apply; defaults to ``catalog.definitions`` from config

    Returns:
        A new BlockCatalog
    """
    catalog = BlockCatalog()
    catalog.apply_overrides(config.catalog_definitions if definitions is None else definitions)
    return catalog


# Global block catalog instance
block_catalog = load_catalog()
