"""
Authentication Dependencies for FastAPI Routes

This module is the auth gate. Protected routes depend on get_current_user
(or get_auth_context when they also need the presented token), which
turns the request's Authorization header into a live User or rejects the
request with 401.

FastAPI caches dependencies per request, so the session used here is the
same one the route handler receives from get_db.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from datetime import timedelta

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.exceptions import Unauthorized
from app.models import User
from app.services.auth import TokenService
from app.services.credentials import get_user

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    """The resolved user and the token they presented."""

    user: User
    token: str


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service built from settings."""
    return TokenService(
        settings.SECRET_KEY,
        expires_delta=timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS),
    )


def extract_bearer_token(authorization: str | None) -> str:
    """
    Pull the token out of an "Authorization: Bearer <token>" header value.

    Raises:
        Unauthorized: header missing, wrong scheme, or empty token
    """
    if not authorization:
        raise Unauthorized("Not authenticated")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Invalid token scheme")
    return token.strip()


async def authenticate(
    db: AsyncSession,
    tokens: TokenService,
    authorization: str | None,
) -> AuthContext:
    """
    Resolve an Authorization header to an authenticated user.

    Steps:
    1. Extract the bearer token
    2. Verify signature and expiry (TokenInvalid / TokenExpired)
    3. Look up the user by the id in the token
    4. Require the presented token to equal the user's stored token;
       tokens replaced by a later login, or cleared by logout, fail here

    Raises:
        Unauthorized: at any failed step
    """
    token = extract_bearer_token(authorization)
    claims = tokens.verify(token)

    user = await get_user(db, claims.user_id)
    if not user:
        raise Unauthorized("User not found")

    if not user.token or user.token != token:
        logger.warning(f"Stale token presented for user {user.id}")
        raise Unauthorized("Token is no longer valid")

    return AuthContext(user=user, token=token)


async def get_auth_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthContext:
    """
    Dependency that requires an authenticated request.

    Usage in routes:
        @router.post("/logout")
        async def logout(auth: AuthContext = Depends(get_auth_context)):
            ...
    """
    return await authenticate(db, tokens, request.headers.get("Authorization"))


async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
) -> User:
    """
    Dependency that requires an authenticated user.

    Usage in routes:
        @router.get("/me")
        async def me(user: User = Depends(get_current_user)):
            return {"email": user.email}
    """
    return auth.user
