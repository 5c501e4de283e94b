"""Pydantic schemas for API request and response models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator, field_serializer


class BaseAPIModel(BaseModel):
    """Base model for all API schemas with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        arbitrary_types_allowed=False,
    )


# ============================================================================
# Merge Schemas
# ============================================================================

class MergeThreadsRequest(BaseAPIModel):
    """Request model for merging threads into a destination."""

    ids: List[int] = Field(
        min_length=1,
        description="IDs of the threads to merge into the destination"
    )
    merge: bool = Field(
        default=False,
        description="Commit the merge; when false only a preview is returned"
    )

    @field_validator('ids')
    @classmethod
    def validate_ids(cls, v: List[int]) -> List[int]:
        if any(thread_id <= 0 for thread_id in v):
            raise ValueError("Thread IDs must be positive")
        return v


class PostResponse(BaseAPIModel):
    """Response model for a post."""

    id: int = Field(description="Post ID")
    thread_id: int = Field(description="Owning thread ID")
    number: int = Field(ge=1, description="Position of the post in its thread")
    user_id: Optional[int] = Field(None, description="Author ID")
    type: str = Field(description="Post type")
    content: str = Field(description="Post body")
    created_at: datetime = Field(description="Creation timestamp")

    @field_serializer('created_at')
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()


class ThreadResponse(BaseAPIModel):
    """Response model for a thread with its posts."""

    id: int = Field(description="Thread ID")
    title: str = Field(description="Thread title")
    post_number_index: int = Field(ge=0, description="Highest assigned post number")
    comment_count: int = Field(ge=0, description="Visible comment count")
    participant_count: int = Field(ge=0, description="Distinct comment authors")
    first_post_id: Optional[int] = Field(None, description="Earliest post ID")
    last_post_id: Optional[int] = Field(None, description="Latest visible comment ID")
    posts: List[PostResponse] = Field(default_factory=list, description="Posts ordered by number")


# ============================================================================
# Utility Response Schemas
# ============================================================================

class ErrorDetail(BaseAPIModel):
    """Individual error detail."""

    code: str = Field(description="Error code")
    message: str = Field(description="Human readable error message")
    field: Optional[str] = Field(None, description="Field that caused error")


class ErrorResponse(BaseAPIModel):
    """Standard error response format."""

    detail: str = Field(description="Main error message")
    type: str = Field(description="Error type")
    errors: Optional[List[ErrorDetail]] = Field(None, description="Detailed error list")
    timestamp: datetime = Field(description="Error timestamp")
    request_id: Optional[str] = Field(None, description="Request ID for tracking")

    @field_serializer('timestamp')
    def serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat()


class ValidationErrorResponse(ErrorResponse):
    """Validation error response format."""

    type: str = Field(default="validation_error", description="Error type")
    errors: List[ErrorDetail] = Field(description="Validation error details")


class HealthResponse(BaseAPIModel):
    """Health check response."""

    status: str = Field(description="Service health status")
    version: str = Field(description="API version")
    timestamp: datetime = Field(description="Health check timestamp")

    @field_serializer('timestamp')
    def serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat()
