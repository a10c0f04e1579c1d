"""
StackIt Backend — Answer Schemas
=================================
"""

import uuid
from datetime import datetime
from typing import List, Literal

from pydantic import Field

from app.schemas.common import APIModel, Pagination, UserSummary

AnswerSort = Literal["votes", "newest", "oldest"]


class AnswerCreate(APIModel):
    content: str
    question_id: uuid.UUID


class AnswerUpdate(APIModel):
    content: str


class CommentCreate(APIModel):
    content: str = Field(min_length=1)


class CommentResponse(APIModel):
    id: uuid.UUID
    content: str
    author: UserSummary
    created_at: datetime


class EditRecord(APIModel):
    content: str
    edited_at: datetime
    edited_by: uuid.UUID


class AnswerResponse(APIModel):
    id: uuid.UUID
    content: str
    question_id: uuid.UUID
    author: UserSummary
    is_accepted: bool
    is_edited: bool
    edit_history: List[EditRecord]
    comments: List[CommentResponse]
    created_at: datetime
    updated_at: datetime
    vote_count: int
    has_upvoted: bool = False
    has_downvoted: bool = False


class AnswerListResponse(APIModel):
    data: List[AnswerResponse]
    pagination: Pagination


class AcceptResponse(APIModel):
    message: str = "Answer accepted successfully"
    answer_id: uuid.UUID
    question_id: uuid.UUID
    is_accepted: bool = True
