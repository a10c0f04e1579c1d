"""
StackIt Backend — User SQLAlchemy Model
========================================

What:  ORM model for the `users` table.
Why:   Every question, answer, vote and notification references a user.
Who:   Resolved per request by the identity dependency (app.dependencies);
       registered through POST /api/users.

Credentials are not stored here: identity is verified upstream and arrives as
a user id header, so the table only carries profile data.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    username: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True, default=None)

    # Display-only; no operation in this service changes it
    reputation: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
