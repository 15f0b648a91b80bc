"""
User Routes

Account endpoints, mounted under /api/users:
- POST /signup: Register and receive a first token
- POST /login: Exchange email + password for a new token
- POST /logout: Invalidate the current token
- GET /me: The authenticated user's profile
- PUT /me: Update name, email and/or password

Handlers only translate between HTTP and app.services.credentials.
Failures are raised as app.exceptions errors and turned into status codes
by the handlers registered in app.main.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import AuthContext, get_auth_context, get_current_user, get_token_service
from app.models import User
from app.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    SignupRequest,
    UserRead,
    UserUpdate,
)
from app.services import credentials
from app.services.auth import TokenService


router = APIRouter(prefix="/api/users", tags=["users"])


def _auth_response(user: User, token: str) -> AuthResponse:
    return AuthResponse(user=UserRead.model_validate(user), token=token)


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Register a new user.

    Returns the created user and a bearer token for immediate use.

    Errors:
        400: invalid name, email or password
        409: email already registered
    """
    user, token = await credentials.signup(
        db, tokens, payload.name, payload.email, payload.password
    )
    return _auth_response(user, token)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Log in with email and password.

    The returned token replaces any token issued before it.
    """
    user, token = await credentials.login(db, tokens, payload.email, payload.password)
    return _auth_response(user, token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await credentials.logout(db, auth.user)
    return {"msg": "logged out"}


@router.get("/me", response_model=UserRead)
async def read_me(user: User = Depends(get_current_user)):
    return UserRead.model_validate(user)


@router.put("/me", response_model=UserRead)
async def update_me(
    payload: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update the authenticated user's profile.

    Only the fields present in the body are changed. Any field other than
    name, email or password is rejected with 400.
    """
    user = await credentials.update_user(db, user, payload.model_dump(exclude_unset=True))
    return UserRead.model_validate(user)
