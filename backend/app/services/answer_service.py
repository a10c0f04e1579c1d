"""
StackIt Backend — Answer Service & Acceptance Rule
===================================================

What:  Business logic for answers: create (with the `answer` notification),
       read, list, edit with history, delete, comments, voting, and accepting.
Why:   Acceptance and the one-answer-per-author rule both span rows, so they
       need a single owner that runs them inside one transaction.
How:   Stateless; each method receives the request's AsyncSession and flushes.
       The commit (or rollback) happens in `get_db_session`.

Acceptance (POST /api/answers/{id}/accept):
    1. Load the answer                              → 404 if missing
    2. SELECT question ... FOR UPDATE               → 404 if missing
    3. actor must be the question author            → 403 otherwise
    4. UPDATE answers SET is_accepted = false  (siblings)
       UPDATE answers SET is_accepted = true   (target)
       UPDATE questions SET is_accepted = true
    The row lock serialises concurrent accepts on the same question, so at
    most one answer per question ends up accepted. There is no unaccept path
    and the question flag is never reset.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.models.answer import Answer, AnswerComment, AnswerEdit
from app.models.notification import Notification
from app.models.question import Question
from app.models.user import User
from app.models.vote import DOWNVOTE, UPVOTE
from app.schemas.answer import (
    AcceptResponse,
    AnswerCreate,
    AnswerListResponse,
    AnswerResponse,
    CommentResponse,
    EditRecord,
)
from app.schemas.common import Pagination, page_count, user_summary
from app.schemas.vote import VoteResponse
from app.services.notification_service import notification_service
from app.services.question_service import question_service
from app.services.vote_ledger import answer_ledger

logger = logging.getLogger(__name__)


class AnswerService:

    def _validate_content(self, content: str) -> str:
        if len(content.strip()) < settings.answer_min_length:
            raise ValidationError(
                message=f"Answer must be at least {settings.answer_min_length} characters",
                field="content",
            )
        return content

    async def load_answer(self, db: AsyncSession, answer_id: UUID) -> Answer:
        """Fetch an answer or raise NotFoundError."""
        result = await db.execute(select(Answer).where(Answer.id == answer_id))
        answer = result.scalar_one_or_none()
        if answer is None:
            raise NotFoundError(resource="answer", resource_id=str(answer_id))
        return answer

    # ── Serialization ─────────────────────────────────────────────────────

    async def _build_responses(
        self, db: AsyncSession, answers: List[Answer], viewer_id: Optional[UUID]
    ) -> List[AnswerResponse]:
        ids = [a.id for a in answers]
        votes = await answer_ledger.vote_counts(db, ids)
        held = await answer_ledger.user_directions(db, ids, viewer_id)
        return [
            AnswerResponse(
                id=a.id,
                content=a.content,
                question_id=a.question_id,
                author=user_summary(a.author),
                is_accepted=a.is_accepted,
                is_edited=a.is_edited,
                edit_history=[
                    EditRecord(content=e.content, edited_at=e.edited_at, edited_by=e.editor_id)
                    for e in a.edit_history
                ],
                comments=[self.comment_response(c) for c in a.comments],
                created_at=a.created_at,
                updated_at=a.updated_at,
                vote_count=votes.get(a.id, 0),
                has_upvoted=held.get(a.id) == UPVOTE,
                has_downvoted=held.get(a.id) == DOWNVOTE,
            )
            for a in answers
        ]

    async def to_response(
        self, db: AsyncSession, answer: Answer, viewer_id: Optional[UUID] = None
    ) -> AnswerResponse:
        return (await self._build_responses(db, [answer], viewer_id))[0]

    @staticmethod
    def comment_response(comment: AnswerComment) -> CommentResponse:
        return CommentResponse(
            id=comment.id,
            content=comment.content,
            author=user_summary(comment.author),
            created_at=comment.created_at,
        )

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create_answer(
        self, db: AsyncSession, author: User, payload: AnswerCreate
    ) -> AnswerResponse:
        """
        Post an answer and notify the question author.

        Raises:
            ValidationError: content shorter than ANSWER_MIN_LENGTH
            NotFoundError:   the question does not exist
            ConflictError:   the author already answered this question
        """
        content = self._validate_content(payload.content)
        question = await question_service.load_question(db, payload.question_id)

        existing = await db.execute(
            select(Answer.id).where(
                Answer.question_id == question.id, Answer.author_id == author.id
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                "You have already answered this question",
                context={"question_id": str(question.id)},
            )

        answer = Answer(
            content=content,
            question_id=question.id,
            author_id=author.id,
            comments=[],
            edit_history=[],
        )
        answer.author = author
        db.add(answer)
        try:
            await db.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent answer from the same author
            raise ConflictError(
                "You have already answered this question",
                context={"question_id": str(question.id)},
            ) from e

        await question_service.touch(db, question.id)
        await notification_service.dispatch_answer(db, question, answer, author)
        logger.info("Answer %s posted on question %s by %s", answer.id, question.id, author.id)
        return await self.to_response(db, answer, author.id)

    async def get_answer(
        self, db: AsyncSession, answer_id: UUID, viewer_id: Optional[UUID] = None
    ) -> AnswerResponse:
        answer = await self.load_answer(db, answer_id)
        return await self.to_response(db, answer, viewer_id)

    async def list_answers(
        self,
        db: AsyncSession,
        question_id: UUID,
        page: int = 1,
        limit: int = 10,
        sort: str = "votes",
        viewer_id: Optional[UUID] = None,
    ) -> AnswerListResponse:
        await question_service.load_question(db, question_id)

        query = select(Answer).where(Answer.question_id == question_id)
        if sort == "newest":
            query = query.order_by(Answer.created_at.desc())
        elif sort == "oldest":
            query = query.order_by(Answer.created_at.asc())
        else:
            query = query.order_by(
                answer_ledger.net_score_subquery(Answer.id).desc(),
                Answer.created_at.desc(),
            )

        result = await db.execute(query.offset((page - 1) * limit).limit(limit))
        answers = list(result.scalars().all())

        total = (
            await db.execute(
                select(func.count())
                .select_from(Answer)
                .where(Answer.question_id == question_id)
            )
        ).scalar() or 0

        return AnswerListResponse(
            data=await self._build_responses(db, answers, viewer_id),
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
    ) -> AnswerListResponse:
        """Every answer written by one user across all questions, newest first."""
        result = await db.execute(
            select(Answer)
            .where(Answer.author_id == author_id)
            .order_by(Answer.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        answers = list(result.scalars().all())

        total = (
            await db.execute(
                select(func.count()).select_from(Answer).where(Answer.author_id == author_id)
            )
        ).scalar() or 0

        return AnswerListResponse(
            data=await self._build_responses(db, answers, viewer_id),
            pagination=Pagination(
                page=page, limit=limit, total=total, pages=page_count(total, limit)
            ),
        )

    async def update_answer(
        self, db: AsyncSession, answer_id: UUID, actor: User, content: str
    ) -> AnswerResponse:
        """Replace the content, keeping the previous version in edit history."""
        answer = await self.load_answer(db, answer_id)
        if answer.author_id != actor.id:
            raise ForbiddenError("Not authorized to update this answer")
        content = self._validate_content(content)

        answer.edit_history.append(
            AnswerEdit(answer_id=answer.id, editor_id=actor.id, content=answer.content)
        )
        answer.content = content
        answer.is_edited = True
        await db.flush()

        await question_service.touch(db, answer.question_id)
        logger.info("Answer %s edited by %s", answer.id, actor.id)
        return await self.to_response(db, answer, actor.id)

    async def delete_answer(self, db: AsyncSession, answer_id: UUID, actor: User) -> None:
        answer = await self.load_answer(db, answer_id)
        if answer.author_id != actor.id:
            raise ForbiddenError("Not authorized to delete this answer")

        question_id = answer.question_id
        await db.execute(
            update(Notification)
            .where(Notification.answer_id == answer.id)
            .values(answer_id=None)
            .execution_options(synchronize_session=False)
        )
        await answer_ledger.clear(db, answer.id)
        for model, column in (
            (AnswerComment, AnswerComment.answer_id),
            (AnswerEdit, AnswerEdit.answer_id),
        ):
            await db.execute(
                delete(model)
                .where(column == answer.id)
                .execution_options(synchronize_session=False)
            )
        await db.execute(
            delete(Answer)
            .where(Answer.id == answer.id)
            .execution_options(synchronize_session=False)
        )
        db.expunge(answer)

        await question_service.touch(db, question_id)
        logger.info("Answer %s deleted by %s", answer_id, actor.id)

    async def add_comment(
        self, db: AsyncSession, answer_id: UUID, actor: User, content: str
    ) -> CommentResponse:
        content = content.strip()
        if not (1 <= len(content) <= settings.comment_max_length):
            raise ValidationError(
                message=(
                    f"Comment must be between 1 and {settings.comment_max_length} characters"
                ),
                field="content",
            )
        answer = await self.load_answer(db, answer_id)

        comment = AnswerComment(answer_id=answer.id, author_id=actor.id, content=content)
        comment.author = actor
        answer.comments.append(comment)
        await db.flush()
        return self.comment_response(comment)

    # ── Voting ────────────────────────────────────────────────────────────

    async def vote(
        self, db: AsyncSession, answer_id: UUID, actor: User, direction: str
    ) -> VoteResponse:
        answer = await self.load_answer(db, answer_id)
        if answer.author_id == actor.id:
            raise ForbiddenError("Cannot vote on your own answer")

        changed = await answer_ledger.add_vote(db, answer.id, actor.id, direction)
        if changed and settings.notify_on_vote:
            question = await question_service.load_question(db, answer.question_id)
            await notification_service.dispatch_vote(
                db, answer.author_id, actor, direction, question, answer
            )
        return await answer_ledger.summary(db, answer.id, actor.id)

    async def remove_vote(
        self, db: AsyncSession, answer_id: UUID, actor: User, direction: str
    ) -> VoteResponse:
        answer = await self.load_answer(db, answer_id)
        await answer_ledger.remove_vote(db, answer.id, actor.id, direction)
        return await answer_ledger.summary(db, answer.id, actor.id)

    # ── Acceptance ────────────────────────────────────────────────────────

    async def accept_answer(
        self, db: AsyncSession, answer_id: UUID, actor: User
    ) -> AcceptResponse:
        """
        Mark `answer_id` as the accepted answer of its question.

        Raises:
            NotFoundError:  answer or parent question missing
            ForbiddenError: actor is not the question author
        """
        answer = await self.load_answer(db, answer_id)

        # Lock the parent question row for the rest of the transaction
        row = (
            await db.execute(
                select(Question.id, Question.author_id)
                .where(Question.id == answer.question_id)
                .with_for_update()
            )
        ).one_or_none()
        if row is None:
            raise NotFoundError(resource="question", resource_id=str(answer.question_id))
        question_id, question_author_id = row

        if question_author_id != actor.id:
            raise ForbiddenError("Only the question author can accept answers")

        now = datetime.now(timezone.utc)
        await db.execute(
            update(Answer)
            .where(
                Answer.question_id == question_id,
                Answer.id != answer.id,
                Answer.is_accepted.is_(True),
            )
            .values(is_accepted=False, updated_at=now)
        )
        await db.execute(
            update(Answer)
            .where(Answer.id == answer.id)
            .values(is_accepted=True, updated_at=now)
        )
        await db.execute(
            update(Question)
            .where(Question.id == question_id)
            .values(is_accepted=True, updated_at=now)
        )
        logger.info("Answer %s accepted on question %s", answer.id, question_id)
        return AcceptResponse(answer_id=answer.id, question_id=question_id)


# ── Singleton Instance ────────────────────────────────────────────────────
answer_service = AnswerService()
