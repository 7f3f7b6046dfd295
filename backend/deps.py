"""
Shared FastAPI dependencies.

Routers import from here: DB session, current user, role guards, pagination,
and the order event bus.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from domain.enums import UserRole
from domain.errors import PermissionDeniedError, UnauthorizedError
from middleware.auth import require_authenticated_user_id
from services import user_service
from services.order_events import OrderEventBus


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


async def get_current_user(
    user_id: int = Depends(require_authenticated_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the token subject to a stored user (401 if it no longer exists)."""
    user = await user_service.get_user(db, user_id)
    if not user:
        raise UnauthorizedError("Account not found for access token.")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if UserRole(user.role) != UserRole.ADMIN:
        raise PermissionDeniedError("Admin role required for this endpoint.")
    return user


async def require_client(user: User = Depends(get_current_user)) -> User:
    if UserRole(user.role) != UserRole.CLIENT:
        raise PermissionDeniedError("Client role required for this endpoint.")
    return user


def get_order_events(request: Request) -> OrderEventBus:
    return request.app.state.order_events
