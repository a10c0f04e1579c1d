"""
StackIt Backend — Shared Pydantic Schemas
==========================================

What:  Base model and small response types shared by every resource.
Why:   The frontend speaks camelCase JSON (`voteCount`, `questionId`); Python
       code speaks snake_case. `APIModel` bridges the two with an alias
       generator, so fields are declared once in Python style.
How:   FastAPI serializes response models by alias (camelCase) and accepts
       either spelling on input because `populate_by_name` is enabled.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for all request/response schemas: camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserSummary(APIModel):
    """Author / sender block embedded in other resources."""
    id: uuid.UUID
    username: str
    avatar: Optional[str] = None
    reputation: int = 0


class Pagination(APIModel):
    page: int = Field(description="Current page (1-based)")
    limit: int = Field(description="Items per page")
    total: int = Field(description="Total items matching the filters")
    pages: int = Field(description="Total number of pages")


class MessageResponse(APIModel):
    """Plain acknowledgement for operations with no resource to return."""
    message: str


class ErrorResponse(APIModel):
    """
    Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "forbidden", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(APIModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


def page_count(total: int, limit: int) -> int:
    return (total + limit - 1) // limit if limit else 0


def user_summary(user) -> UserSummary:
    """Build the embedded author/sender block from a User row."""
    return UserSummary(
        id=user.id,
        username=user.username,
        avatar=user.avatar,
        reputation=user.reputation,
    )
