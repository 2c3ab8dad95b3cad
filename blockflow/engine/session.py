"""
Editor session for blockflow.

The facade an interactive canvas talks to while one automation is being
edited. It owns the session's BlockStore, routes gestures into store
mutations, and exposes the save and test entry points. None of its
operations raise for user mistakes: illegal connections, invalid graphs and
failed test steps all come back as result models and leave the session
usable.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

import duckdb

from ..catalog import BlockCatalog, TemplateLibrary, block_catalog, template_library
from ..config import config
from ..models import (
    Block,
    BlockKind,
    ConnectionResult,
    ConnectionStatus,
    SaveResult,
    SimulationTrace,
    ValidationResult,
)
from .simulator import ExecutionSimulator, ProgressCallback
from .store import BlockStore, coerce_point
from .validation import StructuralValidator


class Gesture(str, Enum):
    """The pointer gesture currently holding the active block."""

    DRAG = "drag"
    CONNECTION = "connection"


class EditorSession:
    """
    One editing session of one automation.
    """

    def __init__(self, name: str = "New automation",
                 store: Optional[BlockStore] = None,
                 catalog: Optional[BlockCatalog] = None,
                 simulator: Optional[ExecutionSimulator] = None,
                 persistence: Optional[Any] = None,
                 automation_id: Optional[str] = None):
        """
        Initialize the editor session.

        Args:
            name: Display name of the automation
            store: Block store to edit (a fresh one by default)
            catalog: Catalog of available block kinds
            simulator: Simulator used by ``test``
            persistence: Object with ``save_automation``/``load_automation``,
                usually a connected DatabaseManager
            automation_id: Id of the stored automation being edited, if any
        """
        self.name = name
        self.store = store or BlockStore()
        self.catalog = catalog or block_catalog
        self.validator = StructuralValidator()
        self.simulator = simulator or ExecutionSimulator(catalog=self.catalog, validator=self.validator)
        self.persistence = persistence
        self.automation_id = automation_id
        self.version: Optional[int] = None

        self.active_block: Optional[Block] = None
        self.active_gesture: Optional[Gesture] = None

        self.last_trace: Optional[SimulationTrace] = None
        self.is_test_running = False
        self._test_run = 0

    @property
    def blocks(self) -> List[Block]:
        return self.store.blocks

    # Graph editing

    def add_block_at(self, kind: Any, position: Any = None) -> Block:
        """
        Drop a catalog block onto the canvas.

        Args:
            kind: Catalog kind of the new block
            position: Drop position; the configured default when omitted

        Raises:
            ValueError: If the kind is not in the catalog
        """
        if not self.catalog.get_block(kind):
            raise ValueError(f"Unknown block kind '{kind}'")
        if position is None:
            position = config.default_position
        return self.store.add_block(kind, position)

    def move_block_by(self, block_id: str, delta: Any) -> Optional[Block]:
        """
        Move a block by a drag delta, clamped to the canvas and snapped.
        """
        block = self.store.get_block(block_id)
        if not block:
            return None
        dx, dy = coerce_point(delta)
        x = max(0.0, block.position.x + dx)
        y = max(0.0, block.position.y + dy)
        return self.store.move_block(block_id, (x, y))

    def request_connection(self, from_id: str, to_id: str) -> ConnectionResult:
        """Ask for an edge; the result says connected, duplicate or invalid."""
        return self.store.connect(from_id, to_id)

    def delete_block(self, block_id: str) -> bool:
        if self.active_block is not None and self.active_block.id == block_id:
            self._clear_gesture()
        return self.store.delete_block(block_id)

    def configure_block(self, block_id: str, settings: Optional[Dict[str, Any]] = None) -> Optional[Block]:
        """
        Called by the configuration form once the user completes it.
        """
        return self.store.configure_block(block_id, settings)

    def apply_template(self, template_id: str, library: Optional[TemplateLibrary] = None) -> bool:
        """
        Replace the whole graph with a template's blocks.

        Returns:
            False if the template does not exist
        """
        template = (library or template_library).get_template(template_id)
        if not template:
            logging.error(f"Template '{template_id}' not found")
            return False

        self._clear_gesture()
        self.store.replace_all(template.instantiate())
        logging.info(f"Applied template '{template.name}'")
        return True

    # Gestures

    def begin_drag(self, block_id: str) -> Optional[Block]:
        """Start dragging an existing block."""
        block = self.store.get_block(block_id)
        if not block:
            self._clear_gesture()
            return None
        self.active_block = block
        self.active_gesture = Gesture.DRAG
        return block

    def begin_palette_drag(self, kind: Any) -> Block:
        """
        Start dragging a new block out of the palette.

        The block is provisional until the drag ends; it is not in the store.
        """
        if not self.catalog.get_block(kind):
            raise ValueError(f"Unknown block kind '{kind}'")
        self.active_block = Block(id=self.store.generate_block_id(), kind=BlockKind(kind))
        self.active_gesture = Gesture.DRAG
        return self.active_block

    def end_drag(self, delta: Any = (0, 0), drop_position: Any = None) -> Optional[Block]:
        """
        Finish a drag.

        An existing block moves by ``delta``. A palette block is added at
        ``drop_position``, or at the default position offset by ``delta``.
        The active block is cleared whatever happens.
        """
        try:
            block = self.active_block
            if block is None or self.active_gesture != Gesture.DRAG:
                return None

            if block.id in self.store:
                return self.move_block_by(block.id, delta)

            if drop_position is None:
                dx, dy = coerce_point(delta)
                default = config.default_position
                drop_position = (default["x"] + dx, default["y"] + dy)
            return self.add_block_at(block.kind, drop_position)
        finally:
            self._clear_gesture()

    def begin_connection(self, from_id: str) -> bool:
        """Start drawing a connection out of a block."""
        block = self.store.get_block(from_id)
        if not block:
            self._clear_gesture()
            return False
        self.active_block = block
        self.active_gesture = Gesture.CONNECTION
        return True

    def complete_connection(self, to_id: str) -> ConnectionResult:
        """Drop the connection being drawn onto a target block."""
        try:
            if self.active_block is None or self.active_gesture != Gesture.CONNECTION:
                return ConnectionResult(
                    status=ConnectionStatus.INVALID,
                    reason="No connection is being drawn."
                )
            return self.request_connection(self.active_block.id, to_id)
        finally:
            self._clear_gesture()

    def cancel_gesture(self) -> None:
        """Abandon the current drag or connection (cancel, pointer lost)."""
        self._clear_gesture()

    @contextmanager
    def gesture_scope(self) -> Iterator["EditorSession"]:
        """Guarantee the active block is released when a gesture handler exits."""
        try:
            yield self
        finally:
            self._clear_gesture()

    def _clear_gesture(self) -> None:
        self.active_block = None
        self.active_gesture = None

    # Save and test

    def validate(self) -> ValidationResult:
        return self.validator.validate(self.store.blocks)

    def save(self, description: Optional[str] = None) -> SaveResult:
        """
        Validate the graph and hand it to persistence.

        An invalid graph is not persisted; its errors are returned instead.
        Storage failures are returned the same way.
        """
        validation = self.validate()
        if not validation.valid:
            for error in validation.errors:
                logging.warning(f"Cannot save '{self.name}': {error}")
            return SaveResult(saved=False, errors=list(validation.errors))

        if self.persistence is None:
            logging.info(f"'{self.name}' is valid; no persistence attached, nothing stored")
            return SaveResult(saved=True, automation_id=self.automation_id, version=self.version)

        try:
            record = self.persistence.save_automation(
                self.name,
                self.store.blocks,
                automation_id=self.automation_id,
                description=description
            )
        except (RuntimeError, duckdb.Error) as e:
            logging.error(f"Failed to save '{self.name}': {e}")
            return SaveResult(saved=False, errors=[f"Could not save the automation: {e}"])

        self.automation_id = record.automation_id
        self.version = record.version
        return SaveResult(saved=True, automation_id=record.automation_id, version=record.version)

    def load(self, automation_id: str, version: Optional[int] = None) -> None:
        """
        Replace the session's graph with a stored automation.

        Raises:
            RuntimeError: If no persistence is attached
            ValueError: If the automation (or version) does not exist
        """
        if self.persistence is None:
            raise RuntimeError("No persistence attached to this session")

        record = self.persistence.load_automation(automation_id, version)
        if not record:
            raise ValueError(f"Automation {automation_id} not found")

        self._clear_gesture()
        self.store.replace_all(record.blocks)
        self.name = record.name
        self.automation_id = record.automation_id
        self.version = record.version

    async def test(self, on_progress: Optional[ProgressCallback] = None) -> SimulationTrace:
        """
        Run a simulated test of the current graph.

        Starting a new test abandons any test still in flight; the abandoned
        run's trace comes back flagged ``cancelled`` and never becomes
        ``last_trace``.
        """
        self._test_run += 1
        run_id = self._test_run
        self.is_test_running = True

        try:
            trace = await self.simulator.run(
                self.store.blocks,
                on_progress=on_progress,
                should_continue=lambda: run_id == self._test_run,
                run_id=run_id
            )
        finally:
            if run_id == self._test_run:
                self.is_test_running = False

        if run_id != self._test_run:
            trace.cancelled = True
            return trace

        self.last_trace = trace
        return trace

    def cancel_test(self) -> None:
        """Abandon the test in flight, if any."""
        self._test_run += 1
        self.is_test_running = False
