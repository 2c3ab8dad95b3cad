"""
Block Store for blockflow.

The single source of truth for the blocks of one automation while it is
being edited. Every mutation is a plain in-memory edit, visible immediately
to anything holding the store.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from ..config import config
from ..models import Block, BlockKind, ConnectionResult, ConnectionStatus, Position, snap_to_grid
from .connections import validate_connection


def coerce_point(position: Any) -> Tuple[float, float]:
    """
    Read an (x, y) pair from a Position, a mapping or a 2-sequence.
    """
    if isinstance(position, Position):
        return position.x, position.y
    if isinstance(position, dict):
        return float(position.get("x", 0)), float(position.get("y", 0))
    x, y = position
    return float(x), float(y)


class BlockStore:
    """
    Owns the mutable block list and its connections for one automation.
    """

    def __init__(self, blocks: Optional[Iterable[Block]] = None,
                 grid_size: Optional[int] = None, id_prefix: Optional[str] = None):
        """
        Initialize the store.

        Args:
            blocks: Optional blocks to start from (e.g. loaded from persistence)
            grid_size: Grid unit positions snap to (defaults to config value)
            id_prefix: Prefix for generated block ids (defaults to config value)
        """
        self.grid_size = grid_size or config.grid_size
        self.id_prefix = id_prefix or config.id_prefix
        self._blocks: List[Block] = []
        if blocks:
            self.replace_all(blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(list(self._blocks))

    def __contains__(self, block_id: object) -> bool:
        return self.get_block(block_id) is not None  # type: ignore[arg-type]

    @property
    def blocks(self) -> List[Block]:
        """The live blocks, in creation order."""
        return list(self._blocks)

    def by_id(self) -> Dict[str, Block]:
        return {block.id: block for block in self._blocks}

    def get_block(self, block_id: str) -> Optional[Block]:
        for block in self._blocks:
            if block.id == block_id:
                return block
        return None

    def generate_block_id(self) -> str:
        """Generate an id that is unique within this store."""
        while True:
            block_id = f"{self.id_prefix}-{uuid.uuid4().hex[:12]}"
            if block_id not in self:
                return block_id

    def snap(self, position: Any) -> Position:
        x, y = coerce_point(position)
        return snap_to_grid(x, y, self.grid_size)

    def add_block(self, kind: Any, position: Any = (0, 0)) -> Block:
        """
        Create a block of ``kind`` at ``position`` and append it.

        Args:
            kind: A catalog kind (BlockKind or its string value)
            position: Drop position; snapped to the grid

        Returns:
            The new, unconfigured and unconnected block
        """
        block = Block(
            id=self.generate_block_id(),
            kind=BlockKind(kind),
            position=self.snap(position),
            configured=False,
            config={},
            connections=[]
        )
        self._blocks.append(block)
        logging.info(f"Added {block.kind.value} block {block.id} at ({block.position.x:g}, {block.position.y:g})")
        return block

    def move_block(self, block_id: str, new_position: Any) -> Optional[Block]:
        """
        Move a block; the position is snapped before it is stored.

        Returns:
            The moved block, or None if the id is unknown
        """
        block = self.get_block(block_id)
        if not block:
            logging.warning(f"Cannot move unknown block {block_id}")
            return None
        block.position = self.snap(new_position)
        return block

    def configure_block(self, block_id: str, settings: Optional[Dict[str, Any]] = None) -> Optional[Block]:
        """
        Mark a block's configuration as completed.

        Args:
            block_id: The block to configure
            settings: Optional settings written by the configuration form

        Returns:
            The configured block, or None if the id is unknown
        """
        block = self.get_block(block_id)
        if not block:
            logging.warning(f"Cannot configure unknown block {block_id}")
            return None
        if settings is not None:
            block.config = dict(settings)
        block.configured = True
        logging.info(f"Configured block {block_id}")
        return block

    def delete_block(self, block_id: str) -> bool:
        """
        Remove a block and every edge pointing at it.

        Returns:
            True if a block was removed
        """
        remaining = [block for block in self._blocks if block.id != block_id]
        removed = len(remaining) != len(self._blocks)

        for block in remaining:
            if block_id in block.connections:
                block.connections = [target for target in block.connections if target != block_id]

        self._blocks = remaining
        if removed:
            logging.info(f"Deleted block {block_id}")
        return removed

    def connect(self, from_id: str, to_id: str) -> ConnectionResult:
        """
        Add a directed edge if the connection rules allow it.

        Returns:
            connected on success, duplicate if the edge already exists,
            invalid otherwise; the graph is unchanged unless connected
        """
        rejection = validate_connection(self.by_id(), from_id, to_id)
        if rejection:
            logging.info(f"Connection {from_id} -> {to_id} not added: {rejection.reason}")
            return rejection

        source = self.get_block(from_id)
        source.connections.append(to_id)  # type: ignore[union-attr]
        logging.info(f"Connected {from_id} -> {to_id}")
        return ConnectionResult(status=ConnectionStatus.CONNECTED, reason="Blocks connected.")

    def replace_all(self, blocks: Iterable[Block]) -> None:
        """
        Replace the whole block list (template application, loading).

        Incoming blocks are copied, snapped, and stripped of self-loops and
        repeated edges so the store's invariants hold from the start.

        Raises:
            ValueError: If two incoming blocks share an id; the store is left unchanged
        """
        fresh: List[Block] = []
        seen: Set[str] = set()
        for block in blocks:
            if block.id in seen:
                raise ValueError(f"Duplicate block id '{block.id}'")
            seen.add(block.id)

            block = block.model_copy(deep=True)
            block.position = self.snap(block.position)

            connections: List[str] = []
            for target_id in block.connections:
                if target_id == block.id or target_id in connections:
                    logging.warning(f"Dropping invalid edge {block.id} -> {target_id}")
                    continue
                connections.append(target_id)
            block.connections = connections
            fresh.append(block)

        self._blocks = fresh
        logging.info(f"Loaded {len(fresh)} blocks into the store")

    def to_dicts(self) -> List[Dict[str, Any]]:
        """Serializable snapshot of the block list."""
        return [block.model_dump(mode="json") for block in self._blocks]

    @classmethod
    def from_dicts(cls, data: Iterable[Dict[str, Any]], **kwargs) -> "BlockStore":
        return cls([Block.model_validate(item) for item in data], **kwargs)
