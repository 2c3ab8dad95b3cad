"""
Execution simulator for blockflow.

Runs an automation against fictitious data without touching any external
system. Each visited block first shows as ``pending`` and, after a short
delay, receives its terminal ``success`` or ``error`` outcome, so an editor
can animate the run block by block.

Traversal is depth-first from every trigger, children in the order their
connections were added. A condition that fails prunes its branch; a visited
set per trigger keeps action cycles from looping forever.
"""

import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..catalog import BlockCatalog, block_catalog
from ..config import config
from ..models import (
    Block,
    BlockCategory,
    BlockOutcome,
    BlockStatus,
    SimulationTrace,
    TestSummary,
)
from .validation import StructuralValidator


OutcomeProvider = Callable[[Block], Tuple[BlockStatus, str]]
ProgressCallback = Callable[[BlockOutcome], None]


class ExecutionSimulator:
    """
    Produces a dry-run trace over a block graph.
    """

    def __init__(self, catalog: Optional[BlockCatalog] = None,
                 validator: Optional[StructuralValidator] = None,
                 step_delay: Optional[float] = None,
                 outcome_provider: Optional[OutcomeProvider] = None):
        """
        Initialize the simulator.

        Args:
            catalog: Catalog providing the canned text per kind
            validator: Structural validator run before every simulation
            step_delay: Seconds a block stays pending (defaults to config value)
            outcome_provider: Decides each configured block's synthetic outcome;
                defaults to the catalog's canned success message
        """
        self.catalog = catalog or block_catalog
        self.validator = validator or StructuralValidator()
        self.step_delay = config.step_delay if step_delay is None else step_delay
        self.outcome_provider = outcome_provider or self.canned_outcome

    def canned_outcome(self, block: Block) -> Tuple[BlockStatus, str]:
        """Every configured block succeeds with its kind's test message."""
        definition = self.catalog.get_block(block.kind)
        message = definition.test_message if definition else f"{block.kind.value} executed"
        return BlockStatus.SUCCESS, message

    async def run(self, blocks: Iterable[Block],
                  on_progress: Optional[ProgressCallback] = None,
                  should_continue: Optional[Callable[[], bool]] = None,
                  run_id: int = 0) -> SimulationTrace:
        """
        Simulate an automation.

        Args:
            blocks: The graph to simulate; a snapshot is taken up front
            on_progress: Called with a copy of each record whenever it changes
            should_continue: Polled between steps; returning False abandons the run
            run_id: Sequence number stamped on the trace

        Returns:
            The trace. When structural validation fails, ``errors`` holds the
            validator's messages and no block is visited.
        """
        blocks = [block.model_copy(deep=True) for block in blocks]

        validation = self.validator.validate(blocks)
        if not validation.valid:
            logging.warning(f"Test run {run_id} aborted: {'; '.join(validation.errors)}")
            return SimulationTrace(run_id=run_id, errors=list(validation.errors))

        triggers = [block for block in blocks if block.category == BlockCategory.TRIGGER]
        if not triggers:
            return SimulationTrace(run_id=run_id, errors=["Your automation needs at least one trigger."])

        by_id = {block.id: block for block in blocks}
        results: List[BlockOutcome] = []
        logging.info(f"Test run {run_id} started with {len(triggers)} trigger(s)")

        for trigger in triggers:
            completed = await self._traverse(trigger, by_id, results, on_progress, should_continue)
            if not completed:
                logging.info(f"Test run {run_id} cancelled")
                return SimulationTrace(run_id=run_id, results=results, cancelled=True)

        summary = self._summarize(results, by_id)
        logging.info(f"Test run {run_id} finished: {summary.message}")
        return SimulationTrace(run_id=run_id, results=results, summary=summary)

    async def _traverse(self, trigger: Block, by_id: Dict[str, Block],
                        results: List[BlockOutcome],
                        on_progress: Optional[ProgressCallback],
                        should_continue: Optional[Callable[[], bool]]) -> bool:
        """Walk one trigger's flow. Returns False if the run was abandoned."""
        visited: Set[str] = set()
        stack = [trigger.id]

        while stack:
            if should_continue and not should_continue():
                return False

            block_id = stack.pop()
            if block_id in visited:
                continue

            block = by_id.get(block_id)
            if block is None:
                logging.warning(f"Skipping connection to missing block {block_id}")
                continue
            visited.add(block_id)

            record = await self._visit(block, results, on_progress)
            if should_continue and not should_continue():
                return False

            if record.status == BlockStatus.ERROR:
                if not block.configured or block.category == BlockCategory.CONDITION:
                    continue

            # Reversed so the first connection is popped first
            for target_id in reversed(block.connections):
                if target_id not in visited:
                    stack.append(target_id)

        return True

    async def _visit(self, block: Block, results: List[BlockOutcome],
                     on_progress: Optional[ProgressCallback]) -> BlockOutcome:
        record = BlockOutcome(block_id=block.id, status=BlockStatus.PENDING, message="Running...")
        results.append(record)
        self._notify(on_progress, record)

        await asyncio.sleep(self.step_delay)

        if not block.configured:
            status, message = BlockStatus.ERROR, "Block not configured"
        else:
            status, message = self.outcome_provider(block)

        record.status = status
        record.message = message
        self._notify(on_progress, record)
        return record

    def _notify(self, on_progress: Optional[ProgressCallback], record: BlockOutcome) -> None:
        if on_progress:
            on_progress(record.model_copy())

    def _summarize(self, results: List[BlockOutcome], by_id: Dict[str, Block]) -> TestSummary:
        succeeded = [record for record in results if record.status == BlockStatus.SUCCESS]
        failed = [record for record in results if record.status == BlockStatus.ERROR]

        details = [
            f"Blocks visited: {len(results)}",
            f"Succeeded: {len(succeeded)}",
            f"Failed: {len(failed)}",
        ]
        for record in failed:
            block = by_id.get(record.block_id)
            definition = self.catalog.get_block(block.kind) if block else None
            name = definition.name if definition else record.block_id
            details.append(f"{name}: {record.message}")

        if failed:
            message = f"Test finished with {len(failed)} error(s)."
        else:
            message = "Test finished successfully. The automation flow works with fictitious data."

        return TestSummary(success=not failed, message=message, details=details)
