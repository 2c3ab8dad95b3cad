"""
Connection rules for blockflow.

A flow always reads left to right: trigger, then an optional chain of
conditions, then a chain of actions. Nothing may point back into a trigger
and actions never feed conditions. Longer cycles (action A -> action B ->
action A) are legal edges; the simulator guards against them.
"""

from typing import Dict, FrozenSet, Mapping, Optional

from ..models import Block, BlockCategory, ConnectionResult, ConnectionStatus


LEGAL_TARGETS: Dict[BlockCategory, FrozenSet[BlockCategory]] = {
    BlockCategory.TRIGGER: frozenset({BlockCategory.CONDITION, BlockCategory.ACTION}),
    BlockCategory.CONDITION: frozenset({BlockCategory.CONDITION, BlockCategory.ACTION}),
    BlockCategory.ACTION: frozenset({BlockCategory.ACTION}),
}


def is_connection_valid(source: BlockCategory, target: BlockCategory) -> bool:
    """
    Check whether an edge between two categories is legal.

    Args:
        source: Category of the block the edge starts from
        target: Category of the block the edge points to

    Returns:
        True if the pair appears in the legality table
    """
    return BlockCategory(target) in LEGAL_TARGETS.get(BlockCategory(source), frozenset())


def is_duplicate(source: Block, target_id: str) -> bool:
    return target_id in source.connections


def validate_connection(
    blocks: Mapping[str, Block],
    from_id: str,
    to_id: str
) -> Optional[ConnectionResult]:
    """
    Decide whether a new edge may be added.

    Duplicates are reported before legality so that re-drawing an existing
    edge reads as "already connected" rather than as a mistake.

    Args:
        blocks: Live blocks keyed by id
        from_id: Id of the source block
        to_id: Id of the target block

    Returns:
        None if the edge may be added, otherwise the rejection
    """
    source = blocks.get(from_id)

    if source is not None and is_duplicate(source, to_id):
        return ConnectionResult(
            status=ConnectionStatus.DUPLICATE,
            reason="These blocks are already connected."
        )

    target = blocks.get(to_id)
    if source is None or target is None:
        return ConnectionResult(
            status=ConnectionStatus.INVALID,
            reason="Block not found."
        )

    if from_id == to_id:
        return ConnectionResult(
            status=ConnectionStatus.INVALID,
            reason="A block cannot connect to itself."
        )

    if not is_connection_valid(source.category, target.category):
        return ConnectionResult(
            status=ConnectionStatus.INVALID,
            reason=(
                f"A {source.category.value} block cannot connect to "
                f"a {target.category.value} block."
            )
        )

    return None
