"""StackIt Backend — User Route Handlers (register, profile, stats)."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.user import UserCreate, UserProfile, UserStats
from app.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post(
    "",
    response_model=UserProfile,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Username or email taken", "model": ErrorResponse}},
    summary="Register a user profile",
)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    return await user_service.create_user(db, payload)


@router.get(
    "/{user_id}",
    response_model=UserProfile,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user profile",
)
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    return await user_service.get_profile(db, user_id)


@router.get(
    "/{user_id}/stats",
    response_model=UserStats,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user's activity stats",
)
async def get_user_stats(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> UserStats:
    return await user_service.get_stats(db, user_id)
