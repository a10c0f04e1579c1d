"""
StackIt Backend — Question Schemas
===================================

Length rules for titles, descriptions and tags are configuration-driven
(app.config) and checked by QuestionService, which raises ValidationError (400)
before anything is written. The schemas only enforce shape.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from app.schemas.common import APIModel, Pagination, UserSummary

QuestionSort = Literal["newest", "votes", "views", "unanswered"]


class QuestionCreate(APIModel):
    title: str
    description: str
    tags: List[str] = Field(description="Between 1 and QUESTION_MAX_TAGS tag names")


class QuestionUpdate(APIModel):
    """Partial update; omitted fields keep their current value."""
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None


class QuestionResponse(APIModel):
    id: uuid.UUID
    title: str
    description: str
    author: UserSummary
    tags: List[str]
    views: int
    is_accepted: bool
    status: str
    last_activity: datetime
    created_at: datetime
    updated_at: datetime
    vote_count: int = Field(description="Upvotes minus downvotes, computed on read")
    answer_count: int
    has_upvoted: bool = False
    has_downvoted: bool = False


class QuestionListResponse(APIModel):
    data: List[QuestionResponse]
    pagination: Pagination
