"""
Standard API Response Wrappers
Generic response schemas for API endpoints.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = Field(description="Whether the operation was successful")
    data: Optional[T] = Field(default=None, description="Response data")
    message: str = Field(default="", description="Response message")
    errors: List[Dict[str, Any]] = Field(default_factory=list, description="List of errors")
