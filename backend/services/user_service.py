"""
User service — client/admin accounts.

Credentials are handled by the hosting identity provider; this service only
keeps the profile and role used for authorization.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import User
from domain.enums import UserRole
from domain.errors import ConflictError

logger = logging.getLogger(__name__)


def role_for_email(email: str) -> UserRole:
    return UserRole.ADMIN if email.strip().lower() in settings.admin_emails_list else UserRole.CLIENT


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    res = await db.execute(select(User).where(User.email == email.strip().lower()))
    return res.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    phone: str | None = None,
) -> User:
    email = email.strip().lower()
    if await get_user_by_email(db, email):
        raise ConflictError(f"An account already exists for {email}")

    role = role_for_email(email)
    user = User(name=name.strip(), email=email, phone=phone, role=role.value)
    db.add(user)
    await db.flush()
    logger.info(f"Registered {role.value} {user.id}")
    return user


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "phone": user.phone,
    }
