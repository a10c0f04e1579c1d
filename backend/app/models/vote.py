"""
StackIt Backend — Vote Ledger Tables
=====================================

What:  One table per votable entity: `question_votes` and `answer_votes`.
Why:   Each row is one user's membership in either the upvote set or the
       downvote set of one target.
How:   The composite primary key (target_id, user_id) means a user can hold
       at most ONE direction per target at the storage level. Switching
       direction is an in-place update of that row, never a second row.

Both tables share the column names `target_id`, `user_id`, `direction`,
`created_at`, which is the whole contract the VoteLedger service relies on.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

UPVOTE = "upvote"
DOWNVOTE = "downvote"
VOTE_DIRECTIONS = (UPVOTE, DOWNVOTE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuestionVote(Base):
    __tablename__ = "question_votes"

    target_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    direction: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "direction IN ('upvote', 'downvote')", name="ck_question_votes_direction"
        ),
        Index("idx_question_votes_user", "user_id"),
    )


class AnswerVote(Base):
    __tablename__ = "answer_votes"

    target_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("answers.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    direction: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "direction IN ('upvote', 'downvote')", name="ck_answer_votes_direction"
        ),
        Index("idx_answer_votes_user", "user_id"),
    )
