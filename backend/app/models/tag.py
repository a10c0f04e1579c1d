"""
StackIt Backend — Tag SQLAlchemy Model
=======================================

What:  ORM model for the `tags` table plus the `question_tags` association table.
Why:   Tags are shared across questions; `usage_count` tracks how many
       questions currently reference each tag.
How:   Names are stored lower-cased and unique. TagService increments the
       counter when a question starts referencing a tag and decrements it
       (never below zero) when the reference goes away.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


# ── Association Table ─────────────────────────────────────────────────────
# One row per (question, tag). Composite primary key makes tags a set per question.
question_tags = Table(
    "question_tags",
    Base.metadata,
    Column(
        "question_id",
        Uuid,
        ForeignKey("questions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Uuid,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    usage_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    # Alternate spellings that resolve to this tag (maintained outside this service)
    synonyms: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    last_used: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_tags_usage_count", usage_count.desc()),
    )

    def __repr__(self) -> str:
        return f"<Tag(name='{self.name}', usage_count={self.usage_count})>"
