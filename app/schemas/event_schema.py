"""
Profile Event Request Schemas
API schemas for pushed profile change notifications.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProfileChangeRequest(BaseModel):
    """Before and after state of a child profile; null means the document did not exist."""

    before: Optional[Dict[str, Any]] = Field(default=None, description="Profile data before the write")
    after: Optional[Dict[str, Any]] = Field(default=None, description="Profile data after the write")
