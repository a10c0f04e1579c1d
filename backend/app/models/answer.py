"""
StackIt Backend — Answer SQLAlchemy Models
===========================================

What:  ORM models for `answers` and the two ordered child collections an
       answer owns: `answer_comments` and `answer_edits` (edit history).
Why:   Answers carry the acceptance flag and their own vote ledger
       (`answer_votes`, see app/models/vote.py).

Invariants enforced by the schema:
    - One answer per (question, author): uq_answers_question_author
      (AnswerService also checks first to return a friendly Conflict)
    - `question_id` never changes after insert; no service writes it

The single-accepted-answer invariant spans rows, so it is enforced by
AnswerService.accept_answer under a lock on the parent question row.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnswerComment(Base):
    __tablename__ = "answer_comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    answer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("answers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    author: Mapped[User] = relationship(lazy="selectin")


class AnswerEdit(Base):
    """Previous content of an answer, captured just before each edit."""

    __tablename__ = "answer_edits"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    answer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("answers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    editor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    edited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class Answer(Base):
    __tablename__ = "answers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    is_accepted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    is_edited: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
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
    comments: Mapped[List[AnswerComment]] = relationship(
        lazy="selectin",
        order_by=AnswerComment.created_at,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    edit_history: Mapped[List[AnswerEdit]] = relationship(
        lazy="selectin",
        order_by=AnswerEdit.edited_at,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("question_id", "author_id", name="uq_answers_question_author"),
        Index("idx_answers_question_created", "question_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Answer(id={self.id}, question_id={self.question_id}, accepted={self.is_accepted})>"
