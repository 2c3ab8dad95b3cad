"""The automation block graph engine."""

from .connections import LEGAL_TARGETS, is_connection_valid, validate_connection
from .store import BlockStore
from .validation import StructuralValidator, validate_automation
from .simulator import ExecutionSimulator
from .session import EditorSession, Gesture

__all__ = [
    "LEGAL_TARGETS",
    "is_connection_valid",
    "validate_connection",
    "BlockStore",
    "StructuralValidator",
    "validate_automation",
    "ExecutionSimulator",
    "EditorSession",
    "Gesture",
]
