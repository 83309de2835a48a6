"""
Profile Change Event Models
Inputs and completion signals of a regeneration pass.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class RegenerationAction(str, Enum):
    """What a profile change leads to."""
    SKIP = "skip"
    DELETE = "delete"
    GENERATE = "generate"


class ProfileChangeEvent(BaseModel):
    """Before and after state of one child-profile document. None means absent."""

    child_id: str = Field(min_length=1, description="Child document ID")
    before: Optional[Dict[str, Any]] = Field(default=None, description="Document data before the write")
    after: Optional[Dict[str, Any]] = Field(default=None, description="Document data after the write")

    @property
    def is_deletion(self) -> bool:
        return self.after is None


class RegenerationResult(BaseModel):
    """Outcome of handling one profile change event."""

    child_id: str = Field(description="Child document ID")
    action: RegenerationAction = Field(description="Action taken")
    success: bool = Field(default=True, description="Whether every write committed")
    stories_written: int = Field(default=0, ge=0, description="Stories upserted")
    stories_deleted: int = Field(default=0, ge=0, description="Stories deleted")
    batches_committed: int = Field(default=0, ge=0, description="Batches committed")
    error: Optional[str] = Field(default=None, description="Error message when success is False")
