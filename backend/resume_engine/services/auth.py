"""
Caller identity.

Authentication happens upstream in the API gateway, which forwards the
authenticated user's id in the X-User-Id header.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User

USER_ID_HEADER = "X-User-Id"


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
    db: AsyncSession = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
    )
    if not x_user_id or not x_user_id.strip().isdigit():
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == int(x_user_id)))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exception
    return user
