"""
StackIt Backend — Notification Route Handlers
==============================================

What:  /api/notifications: list, unread count, mark read, mark all read,
       delete. Every route requires an identity and only ever touches the
       caller's own notifications.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.notification import (
    MarkReadRequest,
    NotificationListResponse,
    ReadStateResponse,
    UnreadCountResponse,
)
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/notifications",
    tags=["Notifications"],
    responses={401: {"description": "Missing or unknown user", "model": ErrorResponse}},
)


@router.get("", response_model=NotificationListResponse, summary="List my notifications")
async def list_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationListResponse:
    return await notification_service.list_notifications(
        db, user.id, unread_only=unread_only, page=page, limit=limit
    )


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread count")
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await notification_service.unread_count(db, user.id))


@router.put("/mark-read", response_model=ReadStateResponse, summary="Mark notifications read")
async def mark_read(
    payload: MarkReadRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReadStateResponse:
    await notification_service.mark_read(db, user.id, payload.notification_ids)
    return ReadStateResponse(
        message="Notifications marked as read",
        unread_count=await notification_service.unread_count(db, user.id),
    )


@router.put(
    "/mark-all-read", response_model=ReadStateResponse, summary="Mark all notifications read"
)
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReadStateResponse:
    await notification_service.mark_all_read(db, user.id)
    return ReadStateResponse(message="All notifications marked as read", unread_count=0)


@router.delete(
    "/{notification_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Not found or not yours", "model": ErrorResponse}},
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await notification_service.delete_notification(db, user.id, notification_id)
    return MessageResponse(message="Notification deleted successfully")
