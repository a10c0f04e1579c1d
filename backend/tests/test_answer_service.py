"""
StackIt Backend — Answer Service Unit Tests
============================================

What:  Tests for AnswerService: posting, acceptance, edits, comments, deletion.

What we test:
    ✅ Posting an answer notifies the question author
    ✅ Answering your own question sends no notification
    ✅ One answer per user per question (Conflict)
    ✅ At most one accepted answer per question; question flag is sticky
    ✅ Only the question author may accept
    ✅ Edit history keeps the previous content
    ✅ Comment length rules
    ✅ Per-author listing across questions
"""

import uuid

import pytest
from sqlalchemy import select

from app.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.models.answer import Answer
from app.models.notification import Notification
from app.models.question import Question
from app.schemas.answer import AnswerCreate
from app.schemas.question import QuestionCreate, QuestionUpdate
from app.services.answer_service import answer_service
from app.services.question_service import question_service
from app.services.vote_ledger import answer_ledger


async def _answer(db, user, question_id, content="A sufficiently long answer body."):
    return await answer_service.create_answer(
        db, user, AnswerCreate(content=content, question_id=question_id)
    )


async def _is_accepted(db, model, row_id) -> bool:
    result = await db.execute(
        select(model.is_accepted)
        .where(model.id == row_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestCreateAnswer:

    def setup_method(self):
        self.service = answer_service

    @pytest.mark.asyncio
    async def test_answer_notifies_question_author(self, db_session, question, answer, alice, bob):
        result = await db_session.execute(select(Notification))
        notifications = list(result.scalars().all())

        assert len(notifications) == 1
        n = notifications[0]
        assert n.recipient_id == alice.id
        assert n.sender_id == bob.id
        assert n.type == "answer"
        assert n.question_id == question.id
        assert n.answer_id == answer.id
        assert n.meta["question_title"] == "How to implement JWT authentication in React?"
        assert n.content == 'bob answered your question "How to implement JWT authentication in React?"'

    @pytest.mark.asyncio
    async def test_answer_preview_truncated(self, db_session, question, carol):
        long_content = "x" * 150
        await _answer(db_session, carol, question.id, content=long_content)

        n = (await db_session.execute(select(Notification))).scalars().one()
        assert n.meta["answer_preview"] == "x" * 100 + "..."

    @pytest.mark.asyncio
    async def test_own_question_answer_sends_nothing(self, db_session, question, alice):
        await _answer(db_session, alice, question.id)

        result = await db_session.execute(select(Notification))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_second_answer_by_same_user_conflicts(self, db_session, question, answer, bob):
        with pytest.raises(ConflictError):
            await _answer(db_session, bob, question.id)

    @pytest.mark.asyncio
    async def test_short_answer_rejected(self, db_session, question, carol):
        with pytest.raises(ValidationError) as exc_info:
            await _answer(db_session, carol, question.id, content="   too short  ")
        assert exc_info.value.field == "content"

    @pytest.mark.asyncio
    async def test_answer_to_missing_question(self, db_session, carol):
        with pytest.raises(NotFoundError):
            await _answer(db_session, carol, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_notification_is_a_snapshot(self, db_session, question, answer, alice):
        """Editing the question later does not rewrite the stored notification."""
        await question_service.update_question(
            db_session,
            question.id,
            alice,
            QuestionUpdate(title="JWT auth in React: where should tokens live?"),
        )

        n = (await db_session.execute(select(Notification))).scalars().one()
        assert n.meta["question_title"] == "How to implement JWT authentication in React?"


class TestAcceptAnswer:

    def setup_method(self):
        self.service = answer_service

    @pytest.mark.asyncio
    async def test_accept_marks_answer_and_question(self, db_session, question, answer, alice):
        result = await self.service.accept_answer(db_session, answer.id, alice)

        assert result.answer_id == answer.id
        assert result.question_id == question.id
        assert await _is_accepted(db_session, Answer, answer.id) is True
        assert await _is_accepted(db_session, Question, question.id) is True

    @pytest.mark.asyncio
    async def test_accepting_another_answer_moves_acceptance(
        self, db_session, question, answer, alice, carol
    ):
        other = await _answer(db_session, carol, question.id)

        await self.service.accept_answer(db_session, answer.id, alice)
        assert await _is_accepted(db_session, Question, question.id) is True

        await self.service.accept_answer(db_session, other.id, alice)

        assert await _is_accepted(db_session, Answer, answer.id) is False
        assert await _is_accepted(db_session, Answer, other.id) is True
        assert await _is_accepted(db_session, Question, question.id) is True

    @pytest.mark.asyncio
    async def test_only_question_author_can_accept(self, db_session, answer, bob):
        with pytest.raises(ForbiddenError):
            await self.service.accept_answer(db_session, answer.id, bob)

        assert await _is_accepted(db_session, Answer, answer.id) is False

    @pytest.mark.asyncio
    async def test_accept_missing_answer(self, db_session, alice):
        with pytest.raises(NotFoundError):
            await self.service.accept_answer(db_session, uuid.uuid4(), alice)

    @pytest.mark.asyncio
    async def test_accept_sends_no_notification(self, db_session, answer, alice):
        before = len((await db_session.execute(select(Notification))).scalars().all())
        await self.service.accept_answer(db_session, answer.id, alice)
        after = len((await db_session.execute(select(Notification))).scalars().all())

        assert after == before

    @pytest.mark.asyncio
    async def test_question_stays_accepted_after_answer_deleted(
        self, db_session, question, answer, alice, bob
    ):
        await self.service.accept_answer(db_session, answer.id, alice)
        await self.service.delete_answer(db_session, answer.id, bob)

        assert await _is_accepted(db_session, Question, question.id) is True


class TestEditAndComments:

    def setup_method(self):
        self.service = answer_service

    @pytest.mark.asyncio
    async def test_edit_keeps_history(self, db_session, answer, bob):
        updated = await self.service.update_answer(
            db_session, answer.id, bob, "Use httpOnly cookies for the refresh token only."
        )

        assert updated.is_edited is True
        assert updated.content == "Use httpOnly cookies for the refresh token only."
        assert len(updated.edit_history) == 1
        assert updated.edit_history[0].content == answer.content
        assert updated.edit_history[0].edited_by == bob.id

    @pytest.mark.asyncio
    async def test_edit_by_other_user_forbidden(self, db_session, answer, carol):
        with pytest.raises(ForbiddenError):
            await self.service.update_answer(db_session, answer.id, carol, "Hijacked content here.")

    @pytest.mark.asyncio
    async def test_add_comment(self, db_session, answer, carol):
        comment = await self.service.add_comment(db_session, answer.id, carol, "  Thanks, works!  ")

        assert comment.content == "Thanks, works!"
        assert comment.author.username == "carol"

        fetched = await self.service.get_answer(db_session, answer.id)
        assert [c.content for c in fetched.comments] == ["Thanks, works!"]

    @pytest.mark.asyncio
    async def test_comment_too_long(self, db_session, answer, carol):
        with pytest.raises(ValidationError):
            await self.service.add_comment(db_session, answer.id, carol, "y" * 501)

    @pytest.mark.asyncio
    async def test_blank_comment_rejected(self, db_session, answer, carol):
        with pytest.raises(ValidationError):
            await self.service.add_comment(db_session, answer.id, carol, "   ")


class TestListAndDelete:

    def setup_method(self):
        self.service = answer_service

    @pytest.mark.asyncio
    async def test_list_sorted_by_votes(self, db_session, question, answer, carol, make_user):
        dave = await make_user("dave")
        other = await _answer(db_session, carol, question.id)
        await answer_ledger.add_vote(db_session, other.id, dave.id, "upvote")

        listing = await self.service.list_answers(db_session, question.id, sort="votes")

        assert [a.id for a in listing.data] == [other.id, answer.id]
        assert listing.data[0].vote_count == 1
        assert listing.pagination.total == 2

    @pytest.mark.asyncio
    async def test_delete_answer_removes_votes(self, db_session, answer, bob, carol):
        await answer_ledger.add_vote(db_session, answer.id, carol.id, "upvote")
        await self.service.delete_answer(db_session, answer.id, bob)

        with pytest.raises(NotFoundError):
            await self.service.get_answer(db_session, answer.id)
        assert await answer_ledger.vote_count(db_session, answer.id) == 0

    @pytest.mark.asyncio
    async def test_delete_by_other_user_forbidden(self, db_session, answer, alice):
        with pytest.raises(ForbiddenError):
            await self.service.delete_answer(db_session, answer.id, alice)


class TestListByAuthor:

    def setup_method(self):
        self.service = answer_service

    @pytest.mark.asyncio
    async def test_answers_across_questions_newest_first(
        self, db_session, question, answer, bob, carol
    ):
        other = await question_service.create_question(
            db_session,
            carol,
            QuestionCreate(
                title="Where should refresh tokens be stored?",
                description="Cookies, localStorage or memory for a single page app?",
                tags=["jwt"],
            ),
        )
        later = await _answer(db_session, bob, other.id)
        await _answer(db_session, carol, question.id)

        listing = await self.service.list_by_author(db_session, bob.id)

        assert [a.id for a in listing.data] == [later.id, answer.id]
        assert [a.question_id for a in listing.data] == [other.id, question.id]
        assert listing.pagination.total == 2

    @pytest.mark.asyncio
    async def test_reports_viewer_vote(self, db_session, answer, bob, carol):
        await answer_ledger.add_vote(db_session, answer.id, carol.id, "upvote")

        listing = await self.service.list_by_author(db_session, bob.id, viewer_id=carol.id)

        assert listing.data[0].vote_count == 1
        assert listing.data[0].has_upvoted is True
