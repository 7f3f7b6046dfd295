"""
Access-token helpers.

Clients and admins receive a short-lived HS256 JWT from /auth/register or
/auth/login in exchange for a verified identity-provider ID token. The token
subject is the user id; the role claim is informational (authorization always
re-reads the role from the users table).

Endpoints accept:
    Authorization: Bearer <jwt>
WebSocket endpoints take the same token as a ``token`` query parameter.
"""
import logging
from datetime import datetime, timezone, timedelta
from fastapi import HTTPException, Header
from typing import Optional

import jwt

from config import settings

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def decode_access_token(token: str) -> dict:
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Access token expired.")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid access token.")


def issue_access_token(*, user_id: int, role: str) -> str:
    now = _now_utc()
    exp = now.replace(microsecond=0) + timedelta(minutes=settings.jwt_access_ttl_minutes)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def verify_identity_token(id_token: str) -> dict:
    """
    Verify an ID token issued by the hosting identity provider.

    Register and login only ever trust the email carried by a token that
    verifies here; a bare email in a request body is never enough.

    Returns:
        The token claims, with ``email`` lower-cased

    Raises:
        HTTPException(500) if no identity-provider key is configured
        HTTPException(401) if the token is invalid, expired or unverified
    """
    if not settings.idp_jwt_key:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (identity provider key missing).",
        )
    options = {"require": ["exp", "iat", "email"]}
    if not settings.idp_audience:
        options["verify_aud"] = False
    try:
        claims = jwt.decode(
            id_token,
            settings.idp_jwt_key,
            algorithms=[settings.idp_jwt_algorithm],
            issuer=settings.idp_issuer or None,
            audience=settings.idp_audience or None,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Identity token expired.")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Identity token rejected: {e}")
        raise HTTPException(status_code=401, detail="Invalid identity token.")

    email = claims.get("email")
    if not isinstance(email, str) or "@" not in email:
        raise HTTPException(status_code=401, detail="Identity token carries no email.")
    if claims.get("email_verified") is False:
        raise HTTPException(status_code=401, detail="Email address is not verified.")
    claims["email"] = email.strip().lower()
    return claims


def user_id_from_token(token: str) -> int:
    payload = decode_access_token(token)
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid access token subject.")


async def require_authenticated_user_id(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> int:
    """Dependency: user id from the Bearer token, or 401."""
    token = _parse_bearer_token(authorization)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Provide Authorization: Bearer <token>.",
        )
    return user_id_from_token(token)
