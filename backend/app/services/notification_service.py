"""
StackIt Backend — Notification Dispatcher & Read-State Service
===============================================================

What:  Turns domain events into persisted Notification rows, and serves the
       recipient-only read/delete operations on them.
Why:   Keeps "who gets told what" in one place instead of scattered across
       the answer and vote handlers.
How:   Dispatch methods are called by AnswerService / QuestionService inside
       the same transaction as the event they describe, so a rolled-back
       answer never leaves a dangling notification behind.

Dispatch table:
    answer created on Q by U  → recipient Q.author, type 'answer'
                                 (skipped when U is Q.author)
    vote changed on T by V    → recipient T.author, type 'vote'
                                 (only with NOTIFY_ON_VOTE; skipped for self)
    answer accepted           → nothing is sent

Snapshot semantics:
    The question title and an answer preview are copied into `metadata` at
    creation time. Editing the question or answer later does NOT touch
    existing notifications.

Ownership:
    Every read-state query filters on recipient_id. Ids that belong to someone
    else are silently skipped by mark_read and reported as NotFound by delete,
    so callers cannot probe for other users' notifications.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import NotFoundError
from app.models.answer import Answer
from app.models.notification import Notification
from app.models.question import Question
from app.models.user import User
from app.schemas.common import Pagination, page_count, user_summary
from app.schemas.notification import (
    NotificationListResponse,
    NotificationMetadata,
    NotificationResponse,
)

logger = logging.getLogger(__name__)


def preview_text(content: str, length: Optional[int] = None) -> str:
    """First `length` characters of `content`, with '...' appended when cut."""
    length = length or settings.notification_preview_length
    if len(content) <= length:
        return content
    return content[:length] + "..."


class NotificationService:
    """
    Responsibilities:
        - dispatch_answer(): notify a question author of a new answer
        - dispatch_vote(): notify a content author of a vote (opt-in)
        - list / unread_count / mark_read / mark_all_read / delete
    """

    # ── Dispatch ──────────────────────────────────────────────────────────

    async def dispatch_answer(
        self,
        db: AsyncSession,
        question: Question,
        answer: Answer,
        sender: User,
    ) -> Optional[Notification]:
        if question.author_id == sender.id:
            return None

        notification = Notification(
            recipient_id=question.author_id,
            sender_id=sender.id,
            type="answer",
            question_id=question.id,
            answer_id=answer.id,
            content=f'{sender.username} answered your question "{question.title}"',
            meta={
                "question_title": question.title,
                "answer_preview": preview_text(answer.content),
            },
        )
        notification.sender = sender
        db.add(notification)
        await db.flush()
        logger.info(
            "Notified user %s of answer %s on question %s",
            question.author_id, answer.id, question.id,
        )
        return notification

    async def dispatch_vote(
        self,
        db: AsyncSession,
        recipient_id: UUID,
        sender: User,
        direction: str,
        question: Question,
        answer: Optional[Answer] = None,
    ) -> Optional[Notification]:
        if not settings.notify_on_vote or recipient_id == sender.id:
            return None

        action = "upvoted" if direction == "upvote" else "downvoted"
        target = "answer" if answer is not None else "question"
        meta = {"vote_type": direction, "question_title": question.title}
        if answer is not None:
            meta["answer_preview"] = preview_text(answer.content)

        notification = Notification(
            recipient_id=recipient_id,
            sender_id=sender.id,
            type="vote",
            question_id=question.id,
            answer_id=answer.id if answer is not None else None,
            content=f"{sender.username} {action} your {target}",
            meta=meta,
        )
        notification.sender = sender
        db.add(notification)
        await db.flush()
        return notification

    # ── Read State ────────────────────────────────────────────────────────

    async def list_notifications(
        self,
        db: AsyncSession,
        recipient_id: UUID,
        unread_only: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> NotificationListResponse:
        filters = [Notification.recipient_id == recipient_id]
        if unread_only:
            filters.append(Notification.read.is_(False))

        result = await db.execute(
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc(), Notification.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        notifications = list(result.scalars().all())

        total = (
            await db.execute(select(func.count()).select_from(Notification).where(*filters))
        ).scalar() or 0

        return NotificationListResponse(
            data=[self.to_response(n) for n in notifications],
            pagination=Pagination(
                page=page, limit=limit, total=total, pages=page_count(total, limit)
            ),
            unread_count=await self.unread_count(db, recipient_id),
        )

    async def unread_count(self, db: AsyncSession, recipient_id: UUID) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.read.is_(False),
            )
        )
        return result.scalar() or 0

    async def mark_read(
        self, db: AsyncSession, recipient_id: UUID, notification_ids: List[UUID]
    ) -> int:
        """Mark the recipient's notifications in `notification_ids` as read."""
        if not notification_ids:
            return 0
        result = await db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.id.in_(notification_ids),
                Notification.read.is_(False),
            )
            .values(read=True)
        )
        return result.rowcount or 0

    async def mark_all_read(self, db: AsyncSession, recipient_id: UUID) -> int:
        result = await db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.read.is_(False),
            )
            .values(read=True)
        )
        return result.rowcount or 0

    async def delete_notification(
        self, db: AsyncSession, recipient_id: UUID, notification_id: UUID
    ) -> None:
        result = await db.execute(
            delete(Notification).where(
                Notification.id == notification_id,
                Notification.recipient_id == recipient_id,
            )
        )
        if not result.rowcount:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))

    # ── Serialization ─────────────────────────────────────────────────────

    @staticmethod
    def to_response(notification: Notification) -> NotificationResponse:
        return NotificationResponse(
            id=notification.id,
            recipient_id=notification.recipient_id,
            sender=user_summary(notification.sender),
            type=notification.type,
            question_id=notification.question_id,
            answer_id=notification.answer_id,
            content=notification.content,
            message=notification.message,
            read=notification.read,
            metadata=NotificationMetadata(**notification.meta),
            created_at=notification.created_at,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
notification_service = NotificationService()
