"""
Result models returned by the blockflow engine.

Every recoverable condition the engine can hit (illegal or duplicate
connection, invalid graph, simulated block failure) is reported through one
of these models rather than raised.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field


class ConnectionStatus(str, Enum):
    """Outcome of a connection request."""

    CONNECTED = "connected"
    DUPLICATE = "duplicate"
    INVALID = "invalid"


class ConnectionResult(BaseModel):
    """
    The answer to "may these two blocks be connected?".
    """

    status: ConnectionStatus = Field(
        ...,
        description="connected, duplicate (informational) or invalid"
    )

    reason: str = Field(
        default="",
        description="Human-readable explanation for the user"
    )

    @property
    def connected(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED


class ValidationResult(BaseModel):
    """
    Output of the structural validator.
    """

    errors: List[str] = Field(
        default_factory=list,
        description="User-facing error messages, in check order"
    )

    @computed_field  # type: ignore[misc]
    @property
    def valid(self) -> bool:
        """A graph is valid exactly when there are no errors."""
        return len(self.errors) == 0


class BlockStatus(str, Enum):
    """Status of one block in a simulated run."""

    SUCCESS = "success"
    ERROR = "error"
    PENDING = "pending"


class BlockOutcome(BaseModel):
    """
    The outcome record a visited block receives during simulation.
    """

    block_id: str = Field(..., description="The visited block")
    status: BlockStatus = Field(default=BlockStatus.PENDING)
    message: str = Field(default="", description="Canned, kind-specific text")


class TestSummary(BaseModel):
    """
    Aggregate of a simulated run.
    """

    __test__ = False  # not a pytest test class

    success: bool = Field(..., description="True when no block recorded an error")
    message: str = Field(..., description="Headline for the user")
    details: List[str] = Field(default_factory=list)


class SimulationTrace(BaseModel):
    """
    Everything a test run produced: one record per visited block plus the
    summary, or the structural errors that prevented the run.
    """

    run_id: int = Field(default=0, description="Sequence number of the run within its session")
    results: List[BlockOutcome] = Field(default_factory=list)
    summary: Optional[TestSummary] = None
    errors: List[str] = Field(
        default_factory=list,
        description="Structural validation errors that aborted the run"
    )
    cancelled: bool = Field(
        default=False,
        description="True when a newer run superseded this one"
    )

    @property
    def aborted(self) -> bool:
        return bool(self.errors)

    def outcome_for(self, block_id: str) -> Optional[BlockOutcome]:
        """Return the first outcome recorded for a block, if any."""
        for outcome in self.results:
            if outcome.block_id == block_id:
                return outcome
        return None


class SaveResult(BaseModel):
    """
    Output of an editor session save.
    """

    saved: bool = Field(..., description="True when the graph was valid and handed to persistence")
    errors: List[str] = Field(default_factory=list)
    automation_id: Optional[str] = None
    version: Optional[int] = None
