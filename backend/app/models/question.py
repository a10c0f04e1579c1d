"""
StackIt Backend — Question SQLAlchemy Model
============================================

What:  ORM model representing the `questions` table.
Why:   Root entity of the Q&A workflow: answers, votes and tags hang off it.
How:   Vote sets live in `question_votes` (see app/models/vote.py) and are
       only ever read and written through the vote ledger; the net vote count
       is computed on read and never stored on this row.

Lifecycle:
    1. Created by an authenticated user (tags resolved by TagService)
    2. Mutated by votes (any other user), edits (author) and view counting
    3. `is_accepted` flips to true when any child answer is accepted and is
       never reset afterwards
    4. Deleted by the author: child answers go with it, tag usage drops

Relationships are loaded with `selectin` because lazy loading is not available
on an AsyncSession outside of an explicit await.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.tag import Tag, question_tags
from app.models.user import User

QUESTION_STATUSES = ("open", "closed", "duplicate", "off-topic")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    views: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    is_accepted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="open", server_default=text("'open'")
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    # last_activity moves on answer create/edit/delete and question edits
    last_activity: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # ── Relationships ─────────────────────────────────────────────────────
    author: Mapped[User] = relationship(lazy="selectin")
    tags: Mapped[List[Tag]] = relationship(
        secondary=question_tags, lazy="selectin", order_by=Tag.name
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('open', 'closed', 'duplicate', 'off-topic')",
            name="ck_questions_status",
        ),
        Index("idx_questions_created_at", created_at.desc()),
        Index("idx_questions_last_activity", last_activity.desc()),
    )

    @property
    def tag_names(self) -> List[str]:
        return [tag.name for tag in self.tags]

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, title='{self.title[:30]}')>"
