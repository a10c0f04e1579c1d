"""
StackIt Backend — Notification Schemas
=======================================

`metadata` mirrors the snapshot stored on the row at creation time; it is not
re-read from the question or answer when serving.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import APIModel, Pagination, UserSummary


class NotificationMetadata(APIModel):
    vote_type: Optional[str] = None
    question_title: Optional[str] = None
    answer_preview: Optional[str] = None


class NotificationResponse(APIModel):
    id: uuid.UUID
    recipient_id: uuid.UUID
    sender: UserSummary
    type: str
    question_id: Optional[uuid.UUID] = None
    answer_id: Optional[uuid.UUID] = None
    content: str
    message: str
    read: bool
    metadata: NotificationMetadata
    created_at: datetime


class NotificationListResponse(APIModel):
    data: List[NotificationResponse]
    pagination: Pagination
    unread_count: int


class MarkReadRequest(APIModel):
    notification_ids: List[uuid.UUID] = Field(description="Ids to mark as read")


class UnreadCountResponse(APIModel):
    unread_count: int


class ReadStateResponse(APIModel):
    message: str
    unread_count: int
