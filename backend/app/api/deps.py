"""Comptoir: FastAPI dependencies (auth, DB)."""
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identity import CurrentUser
from app.db.session import get_db

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user. Raise 401 if not logged in."""
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


AuthUser = Annotated[CurrentUser, Depends(require_auth)]
