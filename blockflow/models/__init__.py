"""Data models for blockflow."""

from .block import (
    Block,
    BlockCategory,
    BlockKind,
    Position,
    CATEGORY_BY_KIND,
    category_for_kind,
    snap_to_grid,
)
from .automation import AutomationRecord, AutomationVersion
from .results import (
    BlockOutcome,
    BlockStatus,
    ConnectionResult,
    ConnectionStatus,
    SaveResult,
    SimulationTrace,
    TestSummary,
    ValidationResult,
)

__all__ = [
    "Block",
    "BlockCategory",
    "BlockKind",
    "Position",
    "CATEGORY_BY_KIND",
    "category_for_kind",
    "snap_to_grid",
    "AutomationRecord",
    "AutomationVersion",
    "BlockOutcome",
    "BlockStatus",
    "ConnectionResult",
    "ConnectionStatus",
    "SaveResult",
    "SimulationTrace",
    "TestSummary",
    "ValidationResult",
]
