"""
JWT Token Authentication Service

This module handles creation and verification of the bearer tokens that
authenticate API requests. Tokens are JSON Web Tokens signed with
HMAC-SHA256 and carry:

- "sub": the user id
- "email": the user's email at issue time
- "exp": expiry, 8 hours after issue by default
- "jti": a random id making every issued token unique

A token being cryptographically valid is not enough to be accepted: the
auth gate (app.dependencies) also requires it to equal the token stored on
the user, so only the most recently issued token for a user is live.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from jose import ExpiredSignatureError, JWTError, jwt

from app.exceptions import TokenExpired, TokenInvalid


ALGORITHM = "HS256"

DEFAULT_EXPIRES = timedelta(hours=8)


@dataclass(frozen=True)
class TokenClaims:
    """Identity decoded from a verified token."""

    user_id: str
    email: str


class TokenService:
    """
    Issues and verifies signed, time-limited bearer tokens.

    The signing secret is passed in at construction; the service never reads
    configuration on its own. app.dependencies.get_token_service builds the
    process-wide instance from settings.

    Example:
        tokens = TokenService("change-me")
        token = tokens.issue("3f2a...", "ann@x.com")
        claims = tokens.verify(token)   # TokenClaims(user_id="3f2a...", ...)
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = ALGORITHM,
        expires_delta: timedelta = DEFAULT_EXPIRES,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        if not secret_key:
            raise ValueError("TokenService needs a non-empty secret key")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires_delta = expires_delta
        self._clock = clock

    def issue(self, user_id: str, email: str) -> str:
        """
        Create a signed token for the given identity.

        Args:
            user_id: Id of the user the token authenticates
            email: The user's email, embedded for convenience

        Returns:
            Encoded JWT string
        """
        expire = self._clock() + self._expires_delta
        # jti keeps two tokens issued within the same second distinct
        to_encode = {"sub": user_id, "email": email, "exp": expire, "jti": uuid.uuid4().hex}
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def issue_for(self, user) -> str:
        """
        Issue a token for `user` and make it the user's current session token.

        Any token issued earlier for this user stops being accepted by the
        auth gate once the change is committed. Committing is left to the
        caller so it happens together with the rest of the request's writes.
        """
        token = self.issue(user.id, user.email)
        user.token = token
        return token

    def verify(self, token: str) -> TokenClaims:
        """
        Check signature and expiry and return the embedded identity.

        Raises:
            TokenExpired: the token's "exp" is in the past
            TokenInvalid: bad signature, malformed token or missing claims
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError:
            raise TokenInvalid()

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            raise TokenInvalid("Invalid token payload")
        return TokenClaims(user_id=user_id, email=email)
