"""
Structural validation for blockflow.

Whole-graph checks that run before an automation is saved or tested. Every
check runs on every call and errors come back in a fixed order, so the same
graph always produces the same list.
"""

import logging
from typing import Iterable, List, Set

from ..models import Block, BlockCategory, ValidationResult


class StructuralValidator:
    """
    Reports the user-facing reasons a graph cannot be saved yet.
    """

    def validate(self, blocks: Iterable[Block]) -> ValidationResult:
        """
        Validate a block list.

        Args:
            blocks: The blocks of one automation

        Returns:
            ValidationResult; ``valid`` is true exactly when ``errors`` is empty
        """
        blocks = list(blocks)
        errors: List[str] = []

        triggers = [block for block in blocks if block.category == BlockCategory.TRIGGER]
        if not triggers:
            errors.append("Your automation needs at least one trigger.")

        unconfigured = [block for block in blocks if not block.configured]
        if unconfigured:
            errors.append(f"There are {len(unconfigured)} unconfigured block(s).")

        disconnected = self.disconnected_blocks(blocks)
        if disconnected:
            errors.append(f"There are {len(disconnected)} block(s) disconnected from the flow.")

        result = ValidationResult(errors=errors)
        if not result.valid:
            logging.debug(f"Validation failed with {len(errors)} error(s)")
        return result

    def disconnected_blocks(self, blocks: Iterable[Block]) -> List[Block]:
        """
        Non-trigger blocks that no block connects to.

        This only asks "is the block the target of some edge", not "can a
        trigger reach it": an island of blocks pointing at each other passes.
        See ``unreachable_blocks`` for the full analysis.
        """
        blocks = list(blocks)
        targets: Set[str] = set()
        for block in blocks:
            targets.update(block.connections)

        return [
            block for block in blocks
            if block.category != BlockCategory.TRIGGER and block.id not in targets
        ]

    def unreachable_blocks(self, blocks: Iterable[Block]) -> List[Block]:
        """
        Non-trigger blocks that no path from any trigger reaches.

        Not part of ``validate``; reported separately as a warning.
        """
        blocks = list(blocks)
        by_id = {block.id: block for block in blocks}

        reached: Set[str] = set()
        stack = [block.id for block in blocks if block.category == BlockCategory.TRIGGER]
        while stack:
            block_id = stack.pop()
            if block_id in reached or block_id not in by_id:
                continue
            reached.add(block_id)
            stack.extend(by_id[block_id].connections)

        return [
            block for block in blocks
            if block.category != BlockCategory.TRIGGER and block.id not in reached
        ]


def validate_automation(blocks: Iterable[Block]) -> ValidationResult:
    """Validate a block list with a default validator."""
    return StructuralValidator().validate(blocks)
