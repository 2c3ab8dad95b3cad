"""
Persisted automation models for blockflow.

These are the shapes exchanged with the persistence layer: a saved automation
is its name plus a numbered history of block lists.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .block import Block


class AutomationRecord(BaseModel):
    """
    One stored version of an automation.
    """

    automation_id: str = Field(..., description="Identifier of the automation")
    name: str = Field(..., description="Display name of the automation")
    version: int = Field(..., ge=1, description="Version number, starting at 1")
    blocks: List[Block] = Field(default_factory=list)
    description: Optional[str] = Field(
        None,
        description="Optional note describing what changed in this version"
    )
    saved_at: Optional[datetime] = None


class AutomationVersion(BaseModel):
    """
    Summary row of an automation's version history.
    """

    automation_id: str
    version: int
    content_hash: str = Field(..., description="SHA-256 hash of the version's canonical JSON")
    block_count: int = 0
    description: Optional[str] = None
    saved_at: Optional[datetime] = None
