"""
StackIt Backend — User Service
===============================

Registration, profile reads and activity stats. Identity resolution for
protected routes lives in app.dependencies and uses `get_user` from here.
"""

import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError
from app.models.answer import Answer
from app.models.question import Question
from app.models.user import User
from app.schemas.user import UserCreate, UserProfile, UserStats
from app.services.vote_ledger import answer_ledger, question_ledger

logger = logging.getLogger(__name__)


class UserService:

    async def get_user(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        return await db.get(User, user_id)

    async def create_user(self, db: AsyncSession, payload: UserCreate) -> UserProfile:
        """
        Register a user profile.

        Raises:
            ConflictError: username or email already taken
        """
        email = payload.email.lower()
        taken = await db.execute(
            select(User.id).where(or_(User.username == payload.username, User.email == email))
        )
        if taken.first() is not None:
            raise ConflictError("Username or email already registered")

        user = User(username=payload.username, email=email, avatar=payload.avatar)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            raise ConflictError("Username or email already registered") from e

        logger.info("Registered user %s (%s)", user.id, user.username)
        return self._profile(user, 0, 0)

    async def get_profile(self, db: AsyncSession, user_id: UUID) -> UserProfile:
        user = await self._require_user(db, user_id)
        questions, answers = await self._content_counts(db, user.id)
        return self._profile(user, questions, answers)

    async def get_stats(self, db: AsyncSession, user_id: UUID) -> UserStats:
        """Profile counts plus net votes received and accepted answers."""
        user = await self._require_user(db, user_id)
        questions, answers = await self._content_counts(db, user.id)

        question_ids = select(Question.id).where(Question.author_id == user.id)
        answer_ids = select(Answer.id).where(Answer.author_id == user.id)
        question_votes = await question_ledger.total_score(db, question_ids)
        answer_votes = await answer_ledger.total_score(db, answer_ids)

        accepted = (
            await db.execute(
                select(func.count())
                .select_from(Answer)
                .where(Answer.author_id == user.id, Answer.is_accepted.is_(True))
            )
        ).scalar() or 0

        return UserStats(
            question_count=questions,
            answer_count=answers,
            total_votes=question_votes + answer_votes,
            accepted_answers=accepted,
            reputation=user.reputation,
        )

    async def _require_user(self, db: AsyncSession, user_id: UUID) -> User:
        user = await self.get_user(db, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def _content_counts(self, db: AsyncSession, user_id: UUID) -> Tuple[int, int]:
        questions = (
            await db.execute(
                select(func.count()).select_from(Question).where(Question.author_id == user_id)
            )
        ).scalar() or 0
        answers = (
            await db.execute(
                select(func.count()).select_from(Answer).where(Answer.author_id == user_id)
            )
        ).scalar() or 0
        return questions, answers

    @staticmethod
    def _profile(user: User, question_count: int, answer_count: int) -> UserProfile:
        return UserProfile(
            id=user.id,
            username=user.username,
            email=user.email,
            avatar=user.avatar,
            reputation=user.reputation,
            created_at=user.created_at,
            question_count=question_count,
            answer_count=answer_count,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
