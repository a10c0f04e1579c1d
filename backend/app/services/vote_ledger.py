"""
StackIt Backend — Vote Ledger
==============================

What:  Bookkeeping of which users hold an upvote or a downvote on a target
       (a question or an answer), and the derived net vote count.
Why:   Votes are the only state that every authenticated user may mutate on
       content they do not own, so every write must be safe under concurrent
       requests against the same target.
How:   One VoteLedger instance per vote table. Each mutation is a single SQL
       statement on the (target_id, user_id) row:

           add_vote     INSERT ... ON CONFLICT (target_id, user_id)
                        DO UPDATE SET direction = excluded.direction
                        WHERE direction <> excluded.direction
           remove_vote  DELETE ... WHERE target_id, user_id, direction

       There is no read-whole-entity / mutate / write-back cycle, so two users
       voting at the same time cannot lose each other's vote, and the primary
       key makes "present in both sets" unrepresentable.

Semantics:
    - Adding a vote in the opposite direction moves the user (toggle)
    - Re-adding the same direction is a no-op, not an error (network retries)
    - Removing a vote that is not there is a no-op, not an error
    - The ledger has no idea who authored the target; the self-vote rule is
      checked by the caller (QuestionService / AnswerService) before add_vote
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Type
from uuid import UUID

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import insert_for
from app.exceptions import ValidationError
from app.models.vote import DOWNVOTE, UPVOTE, VOTE_DIRECTIONS, AnswerVote, QuestionVote
from app.schemas.vote import VoteResponse

logger = logging.getLogger(__name__)


class VoteLedger:
    """
    Vote operations over one vote table.

    Args:
        vote_model: ORM class with `target_id`, `user_id`, `direction`, `created_at`
        target_name: Used in log lines only ("question" / "answer")
    """

    def __init__(self, vote_model: Type, target_name: str):
        self.vote_model = vote_model
        self.target_name = target_name

    @staticmethod
    def _check_direction(direction: str) -> None:
        # Requests are validated at the schema layer; this guards direct callers
        if direction not in VOTE_DIRECTIONS:
            raise ValidationError(
                message=f"Unknown vote direction '{direction}'",
                field="voteType",
                context={"allowed": list(VOTE_DIRECTIONS)},
            )

    async def has_voted(
        self, db: AsyncSession, target_id: UUID, user_id: UUID, direction: str
    ) -> bool:
        """True iff `user_id` is in the `direction` set of the target."""
        self._check_direction(direction)
        model = self.vote_model
        result = await db.execute(
            select(func.count())
            .select_from(model)
            .where(
                model.target_id == target_id,
                model.user_id == user_id,
                model.direction == direction,
            )
        )
        return (result.scalar() or 0) > 0

    async def add_vote(
        self, db: AsyncSession, target_id: UUID, user_id: UUID, direction: str
    ) -> bool:
        """
        Put `user_id` in the `direction` set, removing it from the other set.

        Returns:
            True if ledger state changed (new vote or switched direction),
            False if the user already held this vote.
        """
        self._check_direction(direction)
        model = self.vote_model
        stmt = insert_for(db, model).values(
            target_id=target_id,
            user_id=user_id,
            direction=direction,
            created_at=datetime.now(timezone.utc),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["target_id", "user_id"],
            set_={
                "direction": stmt.excluded.direction,
                "created_at": stmt.excluded.created_at,
            },
            where=model.direction != stmt.excluded.direction,
        )
        result = await db.execute(stmt)
        changed = bool(result.rowcount)
        if changed:
            logger.info(
                "%s %s: user %s now holds %s",
                self.target_name, target_id, user_id, direction,
            )
        return changed

    async def remove_vote(
        self, db: AsyncSession, target_id: UUID, user_id: UUID, direction: str
    ) -> bool:
        """Drop `user_id` from the `direction` set; False when it was not there."""
        self._check_direction(direction)
        model = self.vote_model
        result = await db.execute(
            delete(model).where(
                model.target_id == target_id,
                model.user_id == user_id,
                model.direction == direction,
            )
        )
        removed = bool(result.rowcount)
        if removed:
            logger.info(
                "%s %s: user %s withdrew %s",
                self.target_name, target_id, user_id, direction,
            )
        return removed

    async def clear(self, db: AsyncSession, target_id: UUID) -> None:
        """Drop every vote on a target that is being deleted."""
        model = self.vote_model
        await db.execute(delete(model).where(model.target_id == target_id))

    async def vote_count(self, db: AsyncSession, target_id: UUID) -> int:
        """|upvotes| - |downvotes|, computed from the table on every call."""
        counts = await self.vote_counts(db, [target_id])
        return counts.get(target_id, 0)

    async def vote_counts(
        self, db: AsyncSession, target_ids: Iterable[UUID]
    ) -> Dict[UUID, int]:
        """Net vote count for many targets in one query; missing ids count 0."""
        ids = list(target_ids)
        if not ids:
            return {}
        model = self.vote_model
        result = await db.execute(
            select(model.target_id, self.net_score_expression())
            .where(model.target_id.in_(ids))
            .group_by(model.target_id)
        )
        counts = {target_id: int(score or 0) for target_id, score in result.all()}
        return {target_id: counts.get(target_id, 0) for target_id in ids}

    async def total_score(self, db: AsyncSession, target_ids) -> int:
        """Net vote count summed over every target in the `target_ids` subquery."""
        model = self.vote_model
        result = await db.execute(
            select(self.net_score_expression()).where(model.target_id.in_(target_ids))
        )
        return int(result.scalar() or 0)

    async def user_directions(
        self, db: AsyncSession, target_ids: Iterable[UUID], user_id: Optional[UUID]
    ) -> Dict[UUID, str]:
        """Map target id → direction held by `user_id` (absent when no vote)."""
        ids = list(target_ids)
        if not ids or user_id is None:
            return {}
        model = self.vote_model
        result = await db.execute(
            select(model.target_id, model.direction).where(
                model.target_id.in_(ids), model.user_id == user_id
            )
        )
        return {target_id: direction for target_id, direction in result.all()}

    async def summary(
        self, db: AsyncSession, target_id: UUID, user_id: Optional[UUID]
    ) -> VoteResponse:
        """The `{voteCount, hasUpvoted, hasDownvoted}` view for one target."""
        count = await self.vote_count(db, target_id)
        held = (await self.user_directions(db, [target_id], user_id)).get(target_id)
        return VoteResponse(
            vote_count=count,
            has_upvoted=held == UPVOTE,
            has_downvoted=held == DOWNVOTE,
        )

    def net_score_expression(self):
        """SUM(+1 for upvote, -1 for downvote); usable in ORDER BY subqueries."""
        model = self.vote_model
        return func.coalesce(
            func.sum(case((model.direction == UPVOTE, 1), else_=-1)), 0
        )

    def net_score_subquery(self, target_column):
        """Correlated scalar subquery of the net score for `target_column`."""
        model = self.vote_model
        return (
            select(self.net_score_expression())
            .where(model.target_id == target_column)
            .correlate_except(model)
            .scalar_subquery()
        )


# ── Ledger Instances ──────────────────────────────────────────────────────
question_ledger = VoteLedger(QuestionVote, "question")
answer_ledger = VoteLedger(AnswerVote, "answer")
