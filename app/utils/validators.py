"""
Input Validation Utilities

Pure validation functions for user and post input. They never touch the
database: services call them first and only build a store write from
values that passed.

Every function returns the cleaned (trimmed) value or raises
app.exceptions.ValidationError.
"""

from email_validator import EmailNotValidError, validate_email as check_email

from app.exceptions import ValidationError


PASSWORD_MIN_LENGTH = 7

# bcrypt only looks at the first 72 bytes of its input
PASSWORD_MAX_BYTES = 72

# Passwords containing this word (any case) are rejected
FORBIDDEN_PASSWORD_WORD = "password"

TITLE_MIN_LENGTH = 5
BODY_MIN_LENGTH = 20

# Fields a client may change through the update endpoints
USER_UPDATABLE_FIELDS = {"name", "email", "password"}
POST_UPDATABLE_FIELDS = {"title", "description", "body"}


def _require_text(value, field: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if not value:
        raise ValidationError(f"{field} is required")
    return value


def validate_name(name) -> str:
    return _require_text(name, "name")


def validate_email(email) -> str:
    """
    Check email syntax and return the normalized address.

    Deliverability (DNS lookups) is not checked.

    Examples:
        >>> validate_email(" ann@x.com ")
        'ann@x.com'
    """
    email = _require_text(email, "email")
    try:
        info = check_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Email is invalid")
    return info.normalized


def validate_password(password) -> str:
    """
    Enforce the password policy on a plaintext password.

    - at least 7 characters after trimming
    - must not contain "password" in any case
    """
    password = _require_text(password, "password")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        )
    if FORBIDDEN_PASSWORD_WORD in password.lower():
        raise ValidationError('Password cannot contain "password"')
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return password


def validate_title(title) -> str:
    title = _require_text(title, "title")
    if len(title) < TITLE_MIN_LENGTH:
        raise ValidationError(f"Title must be at least {TITLE_MIN_LENGTH} characters")
    return title


def validate_description(description) -> str:
    return _require_text(description, "description")


def validate_body(body) -> str:
    body = _require_text(body, "body")
    if len(body) < BODY_MIN_LENGTH:
        raise ValidationError(f"Body must be at least {BODY_MIN_LENGTH} characters")
    return body


def validate_updates(changes: dict, allowed: set[str]) -> None:
    """Reject an update that names no field or any field outside `allowed`."""
    if not changes:
        raise ValidationError("Invalid updates!")
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError("Invalid updates!")


USER_FIELD_VALIDATORS = {
    "name": validate_name,
    "email": validate_email,
    "password": validate_password,
}

POST_FIELD_VALIDATORS = {
    "title": validate_title,
    "description": validate_description,
    "body": validate_body,
}
