"""
StackIt Backend — Notification SQLAlchemy Model
================================================

What:  ORM model representing the `notifications` table.
Why:   Persists events worth telling a user about (someone answered their
       question, optionally someone voted on their content).
How:   Rows are written only by NotificationService.dispatch_* methods.
       Display data (question title, answer preview) is copied into the JSON
       `metadata` column at creation time, so a notification is a snapshot and
       later edits to the source question/answer never change it.

Query Patterns:
    - List a user's notifications newest first, optionally unread only
      → idx_notifications_recipient_read_created
    - Unread count → same index (recipient_id, read)
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.user import User

NOTIFICATION_TYPES = ("answer", "vote", "mention", "comment", "accept")


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Optional references; cleared when the referenced row is deleted
    question_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="SET NULL"), nullable=True
    )
    answer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("answers.id", ondelete="SET NULL"), nullable=True
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    # `metadata` is reserved on declarative classes, hence the attribute name.
    # Keys: vote_type, question_title, answer_preview
    meta: Mapped[Dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    sender: Mapped[User] = relationship(foreign_keys=[sender_id], lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "type IN ('answer', 'vote', 'mention', 'comment', 'accept')",
            name="ck_notifications_type",
        ),
        Index(
            "idx_notifications_recipient_read_created",
            "recipient_id",
            "read",
            created_at.desc(),
        ),
    )

    @property
    def message(self) -> str:
        """Human-readable line rendered from the sender and cached metadata."""
        who = self.sender.username if self.sender else "Someone"
        target = "answer" if self.meta.get("answer_preview") else "question"
        if self.type == "answer":
            return f'{who} answered your question "{self.meta.get("question_title", "")}"'
        if self.type == "vote":
            action = "upvoted" if self.meta.get("vote_type") == "upvote" else "downvoted"
            return f"{who} {action} your {target}"
        if self.type == "mention":
            return f"{who} mentioned you in a comment"
        if self.type == "comment":
            return f"{who} commented on your {target}"
        if self.type == "accept":
            return f"{who} accepted your answer"
        return self.content

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, type='{self.type}', "
            f"recipient_id={self.recipient_id}, read={self.read})>"
        )
