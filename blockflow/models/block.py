"""
Block graph data models for blockflow.

This module defines the nodes of an automation graph. A block's category is
never stored on its own: it is always derived from the block's kind through
a constant lookup table so the two can never disagree.
"""

import math
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field, computed_field


class BlockCategory(str, Enum):
    """The three stages a flow reads through, left to right."""

    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"


class BlockKind(str, Enum):
    """Closed set of block kinds available in this deployment."""

    # Triggers
    NEW_LEAD = "new_lead"
    LEAD_MOVED = "lead_moved"
    MESSAGE_RECEIVED = "message_received"
    # Conditions
    LEAD_STATUS = "lead_status"
    LEAD_SOURCE = "lead_source"
    VALUE_GREATER = "value_greater"
    # Actions
    SEND_MESSAGE = "send_message"
    CREATE_TASK = "create_task"
    MOVE_PIPELINE = "move_pipeline"


CATEGORY_BY_KIND: Dict[BlockKind, BlockCategory] = {
    BlockKind.NEW_LEAD: BlockCategory.TRIGGER,
    BlockKind.LEAD_MOVED: BlockCategory.TRIGGER,
    BlockKind.MESSAGE_RECEIVED: BlockCategory.TRIGGER,
    BlockKind.LEAD_STATUS: BlockCategory.CONDITION,
    BlockKind.LEAD_SOURCE: BlockCategory.CONDITION,
    BlockKind.VALUE_GREATER: BlockCategory.CONDITION,
    BlockKind.SEND_MESSAGE: BlockCategory.ACTION,
    BlockKind.CREATE_TASK: BlockCategory.ACTION,
    BlockKind.MOVE_PIPELINE: BlockCategory.ACTION,
}


def category_for_kind(kind: BlockKind) -> BlockCategory:
    """
    Derive the category of a block kind.

    Args:
        kind: A block kind (enum member or its string value)

    Returns:
        The category the kind belongs to

    Raises:
        ValueError: If the kind is not part of the catalog
    """
    return CATEGORY_BY_KIND[BlockKind(kind)]


class Position(BaseModel):
    """
    A canvas-space coordinate. Never negative.
    """

    x: float = Field(default=0, ge=0, description="Horizontal canvas offset")
    y: float = Field(default=0, ge=0, description="Vertical canvas offset")


def snap_to_grid(x: float, y: float, grid_size: int = 20) -> Position:
    """
    Snap a raw coordinate to the nearest grid intersection.

    Halves round up and negative input is clamped to zero first.
    """
    def snap(value: float) -> int:
        return int(math.floor(max(0.0, value) / grid_size + 0.5)) * grid_size

    return Position(x=snap(x), y=snap(y))


class Block(BaseModel):
    """
    A single trigger, condition or action node in an automation graph.

    Connections are directed and owned by the source block: each entry in
    ``connections`` is the id of a block this one flows into.
    """

    id: str = Field(
        ...,
        description="Opaque identifier assigned at creation, stable for the block's lifetime"
    )

    kind: BlockKind = Field(
        ...,
        description="The catalog kind of the block (e.g. 'send_message')"
    )

    position: Position = Field(
        default_factory=Position,
        description="Grid-aligned canvas position"
    )

    configured: bool = Field(
        default=False,
        description="True once the kind-specific configuration form was completed"
    )

    config: Dict[str, Any] = Field(
        default_factory=dict,
        description="Kind-specific settings written by the configuration form"
    )

    connections: List[str] = Field(
        default_factory=list,
        description="Ordered ids of the blocks this block connects to"
    )

    @computed_field  # type: ignore[misc]
    @property
    def category(self) -> BlockCategory:
        """Category derived from ``kind``."""
        return category_for_kind(self.kind)

    def is_trigger(self) -> bool:
        return self.category == BlockCategory.TRIGGER
