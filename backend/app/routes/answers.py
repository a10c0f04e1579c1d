"""
StackIt Backend — Answer Route Handlers
========================================

What:  /api/answers: per-question and per-user listing, detail, create,
       edit, delete, vote, unvote, accept, and comments.
How:   Thin handlers over AnswerService.

Route order matters: `/question/{question_id}` and `/user/{user_id}` are
declared before `/{answer_id}` so the literal segment is never parsed as an
answer id.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.dependencies import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.answer import (
    AcceptResponse,
    AnswerCreate,
    AnswerListResponse,
    AnswerResponse,
    AnswerSort,
    AnswerUpdate,
    CommentCreate,
    CommentResponse,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.vote import VoteRequest, VoteResponse, VoteType
from app.services.answer_service import answer_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/answers", tags=["Answers"])

_ERRORS = {
    401: {"description": "Missing or unknown user", "model": ErrorResponse},
    403: {"description": "Not allowed", "model": ErrorResponse},
    404: {"description": "Answer or question not found", "model": ErrorResponse},
}


@router.get(
    "/question/{question_id}",
    response_model=AnswerListResponse,
    responses={404: _ERRORS[404]},
    summary="List the answers of a question",
)
async def list_answers(
    question_id: UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    sort: AnswerSort = Query(default="votes"),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnswerListResponse:
    return await answer_service.list_answers(
        db,
        question_id,
        page=page,
        limit=limit,
        sort=sort,
        viewer_id=viewer.id if viewer else None,
    )


@router.get(
    "/user/{user_id}",
    response_model=AnswerListResponse,
    summary="List the answers written by a user",
)
async def list_user_answers(
    user_id: UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnswerListResponse:
    return await answer_service.list_by_author(
        db, user_id, page=page, limit=limit, viewer_id=viewer.id if viewer else None
    )


@router.get(
    "/{answer_id}",
    response_model=AnswerResponse,
    responses={404: _ERRORS[404]},
    summary="Get an answer",
)
async def get_answer(
    answer_id: UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnswerResponse:
    return await answer_service.get_answer(db, answer_id, viewer.id if viewer else None)


@router.post(
    "",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: _ERRORS[401],
        404: _ERRORS[404],
        409: {"description": "Already answered", "model": ErrorResponse},
    },
    summary="Answer a question",
)
async def create_answer(
    payload: AnswerCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnswerResponse:
    return await answer_service.create_answer(db, user, payload)


@router.put(
    "/{answer_id}",
    response_model=AnswerResponse,
    responses=_ERRORS,
    summary="Edit an answer (author only)",
)
async def update_answer(
    answer_id: UUID,
    payload: AnswerUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnswerResponse:
    return await answer_service.update_answer(db, answer_id, user, payload.content)


@router.delete(
    "/{answer_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Delete an answer (author only)",
)
async def delete_answer(
    answer_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await answer_service.delete_answer(db, answer_id, user)
    return MessageResponse(message="Answer deleted successfully")


@router.post(
    "/{answer_id}/vote",
    response_model=VoteResponse,
    responses=_ERRORS,
    summary="Upvote or downvote an answer",
)
async def vote_answer(
    answer_id: UUID,
    payload: VoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await answer_service.vote(db, answer_id, user, payload.vote_type)


@router.delete(
    "/{answer_id}/vote",
    response_model=VoteResponse,
    responses=_ERRORS,
    summary="Withdraw a vote on an answer",
)
async def remove_answer_vote(
    answer_id: UUID,
    vote_type: VoteType = Query(alias="voteType"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await answer_service.remove_vote(db, answer_id, user, vote_type)


@router.post(
    "/{answer_id}/accept",
    response_model=AcceptResponse,
    responses=_ERRORS,
    summary="Accept an answer (question author only)",
)
async def accept_answer(
    answer_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AcceptResponse:
    return await answer_service.accept_answer(db, answer_id, user)


@router.post(
    "/{answer_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Comment on an answer",
)
async def add_comment(
    answer_id: UUID,
    payload: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await answer_service.add_comment(db, answer_id, user, payload.content)
