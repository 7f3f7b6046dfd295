"""
Auth endpoints — identity-provider ID token exchange.

Flow:
  1) Client signs in with the hosting identity provider and gets an ID token
  2) POST /auth/register -> verifies the ID token, creates the account, returns a JWT
  3) POST /auth/login    -> verifies the ID token, returns a fresh JWT
  4) Send Authorization: Bearer <token> on every other endpoint

The account email (and with it the admin role) is always taken from the
verified ID token.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import get_current_user
from domain.errors import UnauthorizedError
from domain.responses import success_response
from middleware.auth import issue_access_token, verify_identity_token
from middleware.rate_limit import rate_limit
from models import LoginRequest, RegisterRequest
from services import user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def _token_payload(user: User) -> dict:
    return {
        "user": user_service.user_to_dict(user),
        "access_token": issue_access_token(user_id=user.id, role=user.role),
        "token_type": "bearer",
    }


@router.post("/register", dependencies=[Depends(rate_limit(10, 3600))])
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    claims = verify_identity_token(request.id_token)
    user = await user_service.register_user(
        db,
        name=request.name,
        email=claims["email"],
        phone=request.phone,
    )
    await db.commit()
    await db.refresh(user)
    return success_response(data=_token_payload(user))


@router.post("/login", dependencies=[Depends(rate_limit(20, 300))])
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    claims = verify_identity_token(request.id_token)
    user = await user_service.get_user_by_email(db, claims["email"])
    if not user:
        logger.warning("Login with a verified identity but no account")
        raise UnauthorizedError("No account for this identity. Register first.")
    logger.info(f"Login: {user.role} {user.id}")
    return success_response(data=_token_payload(user))


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return success_response(data=user_service.user_to_dict(user))
