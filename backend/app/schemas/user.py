"""StackIt Backend — User Schemas"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import APIModel


class UserCreate(APIModel):
    username: str = Field(min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_-]+$")
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    avatar: Optional[str] = Field(default=None, max_length=500)


class UserProfile(APIModel):
    id: uuid.UUID
    username: str
    email: str
    avatar: Optional[str] = None
    reputation: int
    created_at: datetime
    question_count: int = 0
    answer_count: int = 0


class UserStats(APIModel):
    """Activity counters for a profile page."""
    question_count: int
    answer_count: int
    total_votes: int = Field(description="Net votes received on the user's questions and answers")
    accepted_answers: int
    reputation: int
