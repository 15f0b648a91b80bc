"""
Application Error Types

Every failure the services detect is raised as a subclass of AppError.
Each class carries the HTTP status the boundary layer answers with, so
services stay free of FastAPI imports and main.py maps them in one place.
"""


class AppError(Exception):
    """Base class for all expected application failures."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed input: bad email, weak password, short title, unknown field."""

    status_code = 400
    default_message = "Invalid input"


class Unauthorized(AppError):
    """Missing, invalid, expired or stale credentials."""

    status_code = 401
    default_message = "Not authenticated"


class TokenInvalid(Unauthorized):
    default_message = "Invalid token"


class TokenExpired(Unauthorized):
    default_message = "Token has expired"


class InvalidCredentials(Unauthorized):
    default_message = "Unable to login"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    """The request clashes with the current state of a record."""

    status_code = 409
    default_message = "Conflict"


class EmailTaken(Conflict):
    default_message = "Email is already registered"


class AlreadyLiked(Conflict):
    default_message = "Post already liked"


class NothingToUnlike(Conflict):
    default_message = "Post has not been liked"


class InternalError(AppError):
    """The backing store failed; surfaced as an opaque 500."""
