"""
StackIt Backend — Vote Ledger Unit Tests
=========================================

What:  Tests for VoteLedger against a real SQLite database.
Why:   The ledger is the only state any user may change on content they do
       not own; its set semantics must hold exactly.

What we test:
    ✅ A user is never in both the upvote and the downvote set
    ✅ Re-adding the same vote is a no-op
    ✅ Switching direction moves the user (toggle)
    ✅ Removing an absent vote is a no-op
    ✅ voteCount is always |up| - |down|
    ✅ Voting on one's own answer/question is Forbidden at the service layer
"""

import pytest

from app.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.services.answer_service import answer_service
from app.services.question_service import question_service
from app.services.vote_ledger import answer_ledger, question_ledger


class TestVoteLedgerSets:
    """Direct ledger operations."""

    @pytest.mark.asyncio
    async def test_add_vote_records_membership(self, db_session, question, bob):
        changed = await question_ledger.add_vote(db_session, question.id, bob.id, "upvote")

        assert changed is True
        assert await question_ledger.has_voted(db_session, question.id, bob.id, "upvote")
        assert not await question_ledger.has_voted(db_session, question.id, bob.id, "downvote")
        assert await question_ledger.vote_count(db_session, question.id) == 1

    @pytest.mark.asyncio
    async def test_repeat_vote_is_idempotent(self, db_session, question, bob):
        await question_ledger.add_vote(db_session, question.id, bob.id, "upvote")
        changed = await question_ledger.add_vote(db_session, question.id, bob.id, "upvote")

        assert changed is False
        assert await question_ledger.vote_count(db_session, question.id) == 1

    @pytest.mark.asyncio
    async def test_toggle_moves_user_between_sets(self, db_session, question, bob):
        await question_ledger.add_vote(db_session, question.id, bob.id, "upvote")
        changed = await question_ledger.add_vote(db_session, question.id, bob.id, "downvote")

        assert changed is True
        assert not await question_ledger.has_voted(db_session, question.id, bob.id, "upvote")
        assert await question_ledger.has_voted(db_session, question.id, bob.id, "downvote")
        assert await question_ledger.vote_count(db_session, question.id) == -1

    @pytest.mark.asyncio
    async def test_remove_absent_vote_is_noop(self, db_session, question, bob):
        removed = await question_ledger.remove_vote(db_session, question.id, bob.id, "downvote")

        assert removed is False
        assert await question_ledger.vote_count(db_session, question.id) == 0

    @pytest.mark.asyncio
    async def test_remove_only_matching_direction(self, db_session, question, bob):
        await question_ledger.add_vote(db_session, question.id, bob.id, "upvote")

        # Withdrawing a downvote leaves the upvote in place
        assert await question_ledger.remove_vote(db_session, question.id, bob.id, "downvote") is False
        assert await question_ledger.has_voted(db_session, question.id, bob.id, "upvote")

        assert await question_ledger.remove_vote(db_session, question.id, bob.id, "upvote") is True
        assert await question_ledger.vote_count(db_session, question.id) == 0

    @pytest.mark.asyncio
    async def test_vote_count_across_users(self, db_session, question, bob, carol, make_user):
        dave = await make_user("dave")
        await question_ledger.add_vote(db_session, question.id, bob.id, "upvote")
        await question_ledger.add_vote(db_session, question.id, carol.id, "upvote")
        await question_ledger.add_vote(db_session, question.id, dave.id, "downvote")

        assert await question_ledger.vote_count(db_session, question.id) == 1
        counts = await question_ledger.vote_counts(db_session, [question.id])
        assert counts == {question.id: 1}

    @pytest.mark.asyncio
    async def test_ledgers_are_independent(self, db_session, question, answer, carol):
        await answer_ledger.add_vote(db_session, answer.id, carol.id, "upvote")

        assert await answer_ledger.vote_count(db_session, answer.id) == 1
        assert await question_ledger.vote_count(db_session, question.id) == 0

    @pytest.mark.asyncio
    async def test_unknown_direction_rejected(self, db_session, question, bob):
        with pytest.raises(ValidationError) as exc_info:
            await question_ledger.add_vote(db_session, question.id, bob.id, "sideways")
        assert exc_info.value.context["field"] == "voteType"

        with pytest.raises(ValidationError):
            await question_ledger.remove_vote(db_session, question.id, bob.id, "sideways")
        assert await question_ledger.vote_count(db_session, question.id) == 0


class TestVotingThroughServices:
    """Votes cast through QuestionService / AnswerService."""

    @pytest.mark.asyncio
    async def test_upvote_then_downvote_answer(self, db_session, answer, alice):
        """Upvote moves the count 0 → 1; switching to downvote gives -1."""
        summary = await answer_service.vote(db_session, answer.id, alice, "upvote")
        assert summary.vote_count == 1
        assert summary.has_upvoted is True
        assert summary.has_downvoted is False

        summary = await answer_service.vote(db_session, answer.id, alice, "downvote")
        assert summary.vote_count == -1
        assert summary.has_upvoted is False
        assert summary.has_downvoted is True

    @pytest.mark.asyncio
    async def test_self_vote_on_question_forbidden(self, db_session, question, alice):
        with pytest.raises(ForbiddenError):
            await question_service.vote(db_session, question.id, alice, "upvote")

        assert await question_ledger.vote_count(db_session, question.id) == 0
        assert not await question_ledger.has_voted(db_session, question.id, alice.id, "upvote")

    @pytest.mark.asyncio
    async def test_self_vote_on_answer_forbidden(self, db_session, answer, bob):
        with pytest.raises(ForbiddenError):
            await answer_service.vote(db_session, answer.id, bob, "downvote")

        assert await answer_ledger.vote_count(db_session, answer.id) == 0

    @pytest.mark.asyncio
    async def test_remove_vote_returns_summary(self, db_session, question, bob):
        await question_service.vote(db_session, question.id, bob, "upvote")
        summary = await question_service.remove_vote(db_session, question.id, bob, "upvote")

        assert summary.vote_count == 0
        assert summary.has_upvoted is False

    @pytest.mark.asyncio
    async def test_vote_on_missing_answer_not_found(self, db_session, alice):
        import uuid

        with pytest.raises(NotFoundError):
            await answer_service.vote(db_session, uuid.uuid4(), alice, "upvote")
