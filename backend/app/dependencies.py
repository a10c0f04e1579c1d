"""
StackIt Backend — Request Identity Dependencies
================================================

What:  FastAPI dependencies that resolve the acting user for a request.
Why:   Token verification happens upstream; the API receives the verified
       user id in a header (USER_ID_HEADER, default `X-User-ID`).
How:   `get_current_user` guards protected routes (401 when the header is
       missing, malformed or names an unknown user); `get_optional_user` is
       used by public reads that still report the caller's own vote state.
"""

import uuid
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.exceptions import UnauthorizedError
from app.models.user import User
from app.services.user_service import user_service


def _header_user_id(request: Request) -> Optional[uuid.UUID]:
    raw = request.headers.get(settings.user_id_header)
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise UnauthorizedError("Invalid user identity")


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    user_id = _header_user_id(request)
    if user_id is None:
        raise UnauthorizedError()
    user = await user_service.get_user(db, user_id)
    if user is None:
        raise UnauthorizedError("Unknown user")
    return user


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    try:
        user_id = _header_user_id(request)
    except UnauthorizedError:
        return None
    if user_id is None:
        return None
    return await user_service.get_user(db, user_id)
