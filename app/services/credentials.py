"""
Credential Store and Account Service

Password hashing plus the account operations built on it:
signup, login, logout and self-service profile updates.

Passwords are hashed with bcrypt. bcrypt generates a fresh salt per call
and embeds it in the returned hash string, so the hash column is all that
needs storing.
"""

import logging

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import EmailTaken, InvalidCredentials, ValidationError
from app.models import User
from app.services.audit import log_action
from app.services.auth import TokenService
from app.utils.validators import (
    USER_FIELD_VALIDATORS,
    USER_UPDATABLE_FIELDS,
    validate_email,
    validate_name,
    validate_password,
    validate_updates,
)

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12


def hash_password(plain_password: str) -> str:
    """Hash a plaintext password with a freshly generated salt."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    Returns False for a wrong password or an unreadable hash; never raises.
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8")
        )
    except (ValueError, TypeError):
        return False


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).filter(User.id == user_id))
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).filter(User.email == email))
    return result.scalars().first()


async def _commit_unique_email(db: AsyncSession) -> None:
    # The unique index on users.email catches registrations that race
    # past the pre-check
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise EmailTaken()


async def signup(
    db: AsyncSession,
    tokens: TokenService,
    name: str,
    email: str,
    password: str,
) -> tuple[User, str]:
    """
    Register a new user and start their first session.

    Validation runs before anything is written.

    Returns:
        (user, token) for the freshly created account

    Raises:
        ValidationError: bad name, email syntax or password policy violation
        EmailTaken: an account with this email already exists
    """
    name = validate_name(name)
    email = validate_email(email)
    password = validate_password(password)

    if await get_user_by_email(db, email):
        raise EmailTaken()

    user = User(name=name, email=email, password=hash_password(password))
    db.add(user)
    # Flush assigns the primary key the token needs
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise EmailTaken()

    token = tokens.issue_for(user)
    await log_action(db, "user_created", user)
    await _commit_unique_email(db)

    logger.info(f"Registered user {user.id}")
    return user, token


async def find_by_credentials(db: AsyncSession, email: str, password: str) -> User:
    """
    Look up the user owning `email` and check their password.

    Unknown email and wrong password fail the same way.
    """
    try:
        email = validate_email(email)
    except ValidationError:
        raise InvalidCredentials()

    # Signup stores the trimmed password, so compare against the same form
    password = password.strip() if isinstance(password, str) else ""

    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password):
        raise InvalidCredentials()
    return user


async def login(
    db: AsyncSession,
    tokens: TokenService,
    email: str,
    password: str,
) -> tuple[User, str]:
    """
    Authenticate with email and password and start a new session.

    The new token replaces the stored one, which logs out any other
    session the user had open.
    """
    try:
        user = await find_by_credentials(db, email, password)
    except InvalidCredentials:
        logger.warning("Failed login attempt")
        raise

    token = tokens.issue_for(user)
    await log_action(db, "user_login", user)
    await db.commit()

    logger.info(f"Login: {user.id}")
    return user, token


async def logout(db: AsyncSession, user: User) -> None:
    """End the user's session by clearing the stored token."""
    user.token = ""
    await log_action(db, "user_logout", user)
    await db.commit()
    logger.info(f"Logout: {user.id}")


async def update_user(db: AsyncSession, user: User, changes: dict) -> User:
    """
    Apply a partial profile update.

    Only name, email and password may change. Every value is validated
    before the user record is touched; a new password is hashed once here.

    Raises:
        ValidationError: unknown field or invalid value
        EmailTaken: the new email belongs to another account
    """
    validate_updates(changes, USER_UPDATABLE_FIELDS)
    cleaned = {
        field: USER_FIELD_VALIDATORS[field](value)
        for field, value in changes.items()
    }

    new_email = cleaned.get("email")
    if new_email and new_email != user.email:
        other = await get_user_by_email(db, new_email)
        if other and other.id != user.id:
            raise EmailTaken()

    if "password" in cleaned:
        cleaned["password"] = hash_password(cleaned["password"])

    details = {"fields": sorted(cleaned)}
    if new_email and new_email != user.email:
        details["previous_email"] = user.email

    for field, value in cleaned.items():
        setattr(user, field, value)

    await log_action(db, "user_updated", user, details)
    await _commit_unique_email(db)
    return user
