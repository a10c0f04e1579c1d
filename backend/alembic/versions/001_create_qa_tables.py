"""Create Q&A tables

Revision ID: 001
Revises: None
Create Date: 2024-07-12 00:00:00.000000+00:00

What:  Creates the full StackIt schema: users, tags, questions, question_tags,
       answers with their comments and edit history, the two vote ledger
       tables, and notifications.
How:   PostgreSQL types (UUID, TIMESTAMP WITH TIME ZONE, JSONB).

Storage-level invariants:
    - question_votes / answer_votes: PRIMARY KEY (target_id, user_id), so a
      user holds at most one direction per target
    - answers: UNIQUE (question_id, author_id), one answer per user per question

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _vote_table(name: str, target_table: str) -> None:
    op.create_table(
        name,
        sa.Column(
            "target_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(f"{target_table}.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("direction", sa.String(10), nullable=False),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "direction IN ('upvote', 'downvote')", name=f"ck_{name}_direction"
        ),
    )
    op.create_index(f"idx_{name}_user", name, ["user_id"])


def upgrade() -> None:
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("username", sa.String(30), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.Column("reputation", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
    )

    op.create_table(
        "tags",
        _uuid_pk(),
        sa.Column("name", sa.String(30), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "synonyms",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        _timestamp("last_used"),
    )
    op.create_index("idx_tags_usage_count", "tags", [sa.text("usage_count DESC")])

    op.create_table(
        "questions",
        _uuid_pk(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "author_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_accepted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'open'")),
        _timestamp("last_activity"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "status IN ('open', 'closed', 'duplicate', 'off-topic')",
            name="ck_questions_status",
        ),
    )
    op.create_index("ix_questions_author_id", "questions", ["author_id"])
    op.create_index("idx_questions_created_at", "questions", [sa.text("created_at DESC")])
    op.create_index(
        "idx_questions_last_activity", "questions", [sa.text("last_activity DESC")]
    )

    op.create_table(
        "question_tags",
        sa.Column(
            "question_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "tag_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "answers",
        _uuid_pk(),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "question_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "author_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("is_accepted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_edited", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("question_id", "author_id", name="uq_answers_question_author"),
    )
    op.create_index("ix_answers_author_id", "answers", ["author_id"])
    op.create_index("idx_answers_question_created", "answers", ["question_id", "created_at"])

    op.create_table(
        "answer_comments",
        _uuid_pk(),
        sa.Column(
            "answer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("answers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "author_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.String(500), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_answer_comments_answer_id", "answer_comments", ["answer_id"])

    op.create_table(
        "answer_edits",
        _uuid_pk(),
        sa.Column(
            "answer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("answers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "editor_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("edited_at"),
    )
    op.create_index("ix_answer_edits_answer_id", "answer_edits", ["answer_id"])

    _vote_table("question_votes", "questions")
    _vote_table("answer_votes", "answers")

    op.create_table(
        "notifications",
        _uuid_pk(),
        sa.Column(
            "recipient_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "sender_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column(
            "question_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("questions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "answer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("answers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "metadata",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "type IN ('answer', 'vote', 'mention', 'comment', 'accept')",
            name="ck_notifications_type",
        ),
    )
    op.create_index(
        "idx_notifications_recipient_read_created",
        "notifications",
        ["recipient_id", "read", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("answer_votes")
    op.drop_table("question_votes")
    op.drop_table("answer_edits")
    op.drop_table("answer_comments")
    op.drop_table("answers")
    op.drop_table("question_tags")
    op.drop_table("questions")
    op.drop_table("tags")
    op.drop_table("users")
