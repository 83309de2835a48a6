"""
StoryWeaver Schemas
Pydantic request/response schemas for API validation and documentation.
"""

from app.schemas.event_schema import ProfileChangeRequest
from app.schemas.responses import ApiResponse

__all__ = [
    "ProfileChangeRequest",
    "ApiResponse",
]
