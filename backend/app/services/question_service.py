"""
StackIt Backend — Question Service
===================================

What:  Business logic for questions: create, read, list, edit, delete, and
       the question side of voting.
Why:   Keeps route handlers thin and puts every ownership rule for questions
       in one testable place.
How:   Stateless; each method receives the request's AsyncSession. Writes are
       flushed, and the commit happens in `get_db_session`.

Voting flow (POST /api/questions/{id}/vote):
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐
    │  Load Q  │───▶│ Self-vote?   │───▶│ Vote ledger  │───▶│ Vote summary │
    │ (404)    │    │ (403)        │    │ add_vote     │    │ (derived)    │
    └──────────┘    └──────────────┘    └──────────────┘    └──────────────┘

Deletion cascades explicitly (answers, their votes/comments/edit history, the
question's votes) so behaviour is the same on databases that do not enforce
foreign keys, such as SQLite in the test suite.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models.answer import Answer, AnswerComment, AnswerEdit
from app.models.notification import Notification
from app.models.question import QUESTION_STATUSES, Question
from app.models.tag import Tag, question_tags
from app.models.user import User
from app.models.vote import DOWNVOTE, UPVOTE, AnswerVote
from app.schemas.common import Pagination, page_count, user_summary
from app.schemas.question import (
    QuestionCreate,
    QuestionListResponse,
    QuestionResponse,
    QuestionUpdate,
)
from app.schemas.vote import VoteResponse
from app.services.notification_service import notification_service
from app.services.tag_service import tag_service
from app.services.vote_ledger import question_ledger

logger = logging.getLogger(__name__)


class QuestionService:

    # ── Validation ────────────────────────────────────────────────────────

    def _validate_title(self, title: str) -> str:
        title = title.strip()
        if not (settings.question_title_min <= len(title) <= settings.question_title_max):
            raise ValidationError(
                message=(
                    f"Title must be between {settings.question_title_min} and "
                    f"{settings.question_title_max} characters"
                ),
                field="title",
            )
        return title

    def _validate_description(self, description: str) -> str:
        if len(description.strip()) < settings.question_description_min:
            raise ValidationError(
                message=(
                    f"Description must be at least "
                    f"{settings.question_description_min} characters"
                ),
                field="description",
            )
        return description

    def _validate_tags(self, tags: List[str]) -> List[str]:
        names = tag_service.normalize(tags)
        if not (1 <= len(names) <= settings.question_max_tags):
            raise ValidationError(
                message=f"Must provide between 1 and {settings.question_max_tags} tags",
                field="tags",
            )
        return names

    # ── Loading ───────────────────────────────────────────────────────────

    async def load_question(self, db: AsyncSession, question_id: UUID) -> Question:
        """Fetch a question or raise NotFoundError."""
        result = await db.execute(select(Question).where(Question.id == question_id))
        question = result.scalar_one_or_none()
        if question is None:
            raise NotFoundError(resource="question", resource_id=str(question_id))
        return question

    async def _answer_counts(self, db: AsyncSession, ids: List[UUID]) -> Dict[UUID, int]:
        if not ids:
            return {}
        result = await db.execute(
            select(Answer.question_id, func.count(Answer.id))
            .where(Answer.question_id.in_(ids))
            .group_by(Answer.question_id)
        )
        return dict(result.all())

    async def _build_responses(
        self, db: AsyncSession, questions: List[Question], viewer_id: Optional[UUID]
    ) -> List[QuestionResponse]:
        ids = [q.id for q in questions]
        votes = await question_ledger.vote_counts(db, ids)
        held = await question_ledger.user_directions(db, ids, viewer_id)
        answers = await self._answer_counts(db, ids)
        return [
            QuestionResponse(
                id=q.id,
                title=q.title,
                description=q.description,
                author=user_summary(q.author),
                tags=q.tag_names,
                views=q.views,
                is_accepted=q.is_accepted,
                status=q.status,
                last_activity=q.last_activity,
                created_at=q.created_at,
                updated_at=q.updated_at,
                vote_count=votes.get(q.id, 0),
                answer_count=answers.get(q.id, 0),
                has_upvoted=held.get(q.id) == UPVOTE,
                has_downvoted=held.get(q.id) == DOWNVOTE,
            )
            for q in questions
        ]

    async def to_response(
        self, db: AsyncSession, question: Question, viewer_id: Optional[UUID] = None
    ) -> QuestionResponse:
        return (await self._build_responses(db, [question], viewer_id))[0]

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create_question(
        self, db: AsyncSession, author: User, payload: QuestionCreate
    ) -> QuestionResponse:
        title = self._validate_title(payload.title)
        description = self._validate_description(payload.description)
        names = self._validate_tags(payload.tags)

        tags = await tag_service.acquire(db, names)
        question = Question(
            title=title,
            description=description,
            author_id=author.id,
            tags=sorted(tags, key=lambda t: t.name),
        )
        question.author = author
        db.add(question)
        await db.flush()
        logger.info("Question %s created by %s with tags %s", question.id, author.id, names)
        return await self.to_response(db, question, author.id)

    async def get_question(
        self, db: AsyncSession, question_id: UUID, viewer_id: Optional[UUID] = None
    ) -> QuestionResponse:
        """Read one question, counting the view."""
        result = await db.execute(
            update(Question)
            .where(Question.id == question_id)
            .values(views=Question.views + 1, updated_at=Question.updated_at)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            raise NotFoundError(resource="question", resource_id=str(question_id))

        question = (
            await db.execute(
                select(Question)
                .where(Question.id == question_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one()
        return await self.to_response(db, question, viewer_id)

    async def list_questions(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        sort: str = "newest",
        tag: Optional[str] = None,
        status: str = "open",
        viewer_id: Optional[UUID] = None,
    ) -> QuestionListResponse:
        filters = []
        if status != "all":
            if status not in QUESTION_STATUSES:
                raise ValidationError(
                    message=f"Invalid status '{status}'",
                    field="status",
                    context={"allowed": list(QUESTION_STATUSES) + ["all"]},
                )
            filters.append(Question.status == status)
        if tag:
            filters.append(
                Question.id.in_(
                    select(question_tags.c.question_id)
                    .join(Tag, Tag.id == question_tags.c.tag_id)
                    .where(Tag.name == tag.strip().lower())
                )
            )
        if sort == "unanswered":
            filters.append(~exists().where(Answer.question_id == Question.id))

        query = select(Question).where(*filters)
        if sort == "votes":
            query = query.order_by(
                question_ledger.net_score_subquery(Question.id).desc(),
                Question.created_at.desc(),
            )
        elif sort == "views":
            query = query.order_by(Question.views.desc(), Question.created_at.desc())
        else:
            query = query.order_by(Question.created_at.desc())

        result = await db.execute(query.offset((page - 1) * limit).limit(limit))
        questions = list(result.scalars().all())

        total = (
            await db.execute(select(func.count()).select_from(Question).where(*filters))
        ).scalar() or 0

        return QuestionListResponse(
            data=await self._build_responses(db, questions, viewer_id),
            pagination=Pagination(
                page=page, limit=limit, total=total, pages=page_count(total, limit)
            ),
        )

    async def list_by_author(
        self,
        db: AsyncSession,
        author_id: UUID,
        page: int = 1,
        limit: int = 10,
        viewer_id: Optional[UUID] = None,
    ) -> QuestionListResponse:
        """Every question asked by one user, newest first, any status."""
        result = await db.execute(
            select(Question)
            .where(Question.author_id == author_id)
            .order_by(Question.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        questions = list(result.scalars().all())

        total = (
            await db.execute(
                select(func.count())
                .select_from(Question)
                .where(Question.author_id == author_id)
            )
        ).scalar() or 0

        return QuestionListResponse(
            data=await self._build_responses(db, questions, viewer_id),
            pagination=Pagination(
                page=page, limit=limit, total=total, pages=page_count(total, limit)
            ),
        )

    async def update_question(
        self, db: AsyncSession, question_id: UUID, actor: User, payload: QuestionUpdate
    ) -> QuestionResponse:
        question = await self.load_question(db, question_id)
        if question.author_id != actor.id:
            raise ForbiddenError("Not authorized to update this question")

        # Validate everything before the first write. Only omitted fields are
        # skipped; an explicit empty string is checked like any other value.
        title = self._validate_title(payload.title) if payload.title is not None else None
        description = (
            self._validate_description(payload.description)
            if payload.description is not None
            else None
        )
        names = self._validate_tags(payload.tags) if payload.tags is not None else None

        if title is not None:
            question.title = title
        if description is not None:
            question.description = description
        if names is not None:
            current = question.tag_names
            await tag_service.release(db, [n for n in current if n not in names])
            acquired = await tag_service.acquire(db, [n for n in names if n not in current])
            kept = [t for t in question.tags if t.name in names]
            question.tags = sorted(kept + acquired, key=lambda t: t.name)
        question.last_activity = datetime.now(timezone.utc)

        await db.flush()
        logger.info("Question %s edited by %s", question.id, actor.id)
        return await self.to_response(db, question, actor.id)

    async def delete_question(self, db: AsyncSession, question_id: UUID, actor: User) -> None:
        question = await self.load_question(db, question_id)
        if question.author_id != actor.id:
            raise ForbiddenError("Not authorized to delete this question")

        tag_names = question.tag_names
        answer_ids = select(Answer.id).where(Answer.question_id == question.id)

        # Notifications are snapshots; keep them but drop the dangling references
        await db.execute(
            update(Notification)
            .where(Notification.question_id == question.id)
            .values(question_id=None, answer_id=None)
            .execution_options(synchronize_session=False)
        )
        for model, column in (
            (AnswerVote, AnswerVote.target_id),
            (AnswerComment, AnswerComment.answer_id),
            (AnswerEdit, AnswerEdit.answer_id),
        ):
            await db.execute(
                delete(model)
                .where(column.in_(answer_ids))
                .execution_options(synchronize_session=False)
            )
        await db.execute(
            delete(Answer)
            .where(Answer.question_id == question.id)
            .execution_options(synchronize_session=False)
        )
        await question_ledger.clear(db, question.id)
        await db.execute(
            delete(question_tags).where(question_tags.c.question_id == question.id)
        )
        await db.execute(
            delete(Question)
            .where(Question.id == question.id)
            .execution_options(synchronize_session=False)
        )
        db.expunge(question)
        await tag_service.release(db, tag_names)
        logger.info("Question %s deleted by %s", question_id, actor.id)

    # ── Voting ────────────────────────────────────────────────────────────

    async def vote(
        self, db: AsyncSession, question_id: UUID, actor: User, direction: str
    ) -> VoteResponse:
        question = await self.load_question(db, question_id)
        if question.author_id == actor.id:
            raise ForbiddenError("Cannot vote on your own question")

        changed = await question_ledger.add_vote(db, question.id, actor.id, direction)
        if changed:
            await notification_service.dispatch_vote(
                db, question.author_id, actor, direction, question
            )
        return await question_ledger.summary(db, question.id, actor.id)

    async def remove_vote(
        self, db: AsyncSession, question_id: UUID, actor: User, direction: str
    ) -> VoteResponse:
        question = await self.load_question(db, question_id)
        await question_ledger.remove_vote(db, question.id, actor.id, direction)
        return await question_ledger.summary(db, question.id, actor.id)

    async def touch(self, db: AsyncSession, question_id: UUID) -> None:
        """Move `last_activity` to now."""
        await db.execute(
            update(Question)
            .where(Question.id == question_id)
            .values(
                last_activity=datetime.now(timezone.utc),
                updated_at=Question.updated_at,
            )
            .execution_options(synchronize_session=False)
        )


# ── Singleton Instance ────────────────────────────────────────────────────
question_service = QuestionService()
