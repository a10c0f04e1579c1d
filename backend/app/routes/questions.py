"""
StackIt Backend — Question Route Handlers
==========================================

What:  /api/questions: list, per-user list, detail, create, edit, delete,
       vote, unvote.
How:   Thin handlers; identity comes from app.dependencies and every rule
       lives in QuestionService.
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
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.question import (
    QuestionCreate,
    QuestionListResponse,
    QuestionResponse,
    QuestionSort,
    QuestionUpdate,
)
from app.schemas.vote import VoteRequest, VoteResponse, VoteType
from app.services.question_service import question_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/questions", tags=["Questions"])

_ERRORS = {
    401: {"description": "Missing or unknown user", "model": ErrorResponse},
    403: {"description": "Not allowed", "model": ErrorResponse},
    404: {"description": "Question not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=QuestionListResponse,
    summary="List questions",
)
async def list_questions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    sort: QuestionSort = Query(default="newest"),
    tag: Optional[str] = Query(default=None, description="Only questions with this tag"),
    status_filter: str = Query(
        default="open", alias="status", description="Question status, or 'all'"
    ),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuestionListResponse:
    return await question_service.list_questions(
        db,
        page=page,
        limit=limit,
        sort=sort,
        tag=tag,
        status=status_filter,
        viewer_id=viewer.id if viewer else None,
    )


@router.get(
    "/user/{user_id}",
    response_model=QuestionListResponse,
    summary="List the questions asked by a user",
)
async def list_user_questions(
    user_id: UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuestionListResponse:
    return await question_service.list_by_author(
        db, user_id, page=page, limit=limit, viewer_id=viewer.id if viewer else None
    )


@router.get(
    "/{question_id}",
    response_model=QuestionResponse,
    responses={404: _ERRORS[404]},
    summary="Get a question (counts a view)",
)
async def get_question(
    question_id: UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuestionResponse:
    return await question_service.get_question(
        db, question_id, viewer.id if viewer else None
    )


@router.post(
    "",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: _ERRORS[401]},
    summary="Ask a question",
)
async def create_question(
    payload: QuestionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuestionResponse:
    return await question_service.create_question(db, user, payload)


@router.put(
    "/{question_id}",
    response_model=QuestionResponse,
    responses=_ERRORS,
    summary="Edit a question (author only)",
)
async def update_question(
    question_id: UUID,
    payload: QuestionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuestionResponse:
    return await question_service.update_question(db, question_id, user, payload)


@router.delete(
    "/{question_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Delete a question and its answers (author only)",
)
async def delete_question(
    question_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await question_service.delete_question(db, question_id, user)
    return MessageResponse(message="Question deleted successfully")


@router.post(
    "/{question_id}/vote",
    response_model=VoteResponse,
    responses=_ERRORS,
    summary="Upvote or downvote a question",
)
async def vote_question(
    question_id: UUID,
    payload: VoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await question_service.vote(db, question_id, user, payload.vote_type)


@router.delete(
    "/{question_id}/vote",
    response_model=VoteResponse,
    responses=_ERRORS,
    summary="Withdraw a vote on a question",
)
async def remove_question_vote(
    question_id: UUID,
    vote_type: VoteType = Query(alias="voteType"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await question_service.remove_vote(db, question_id, user, vote_type)
