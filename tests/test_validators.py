"""
Unit tests for app.utils.validators
"""
import pytest

from app.exceptions import ValidationError
from app.utils.validators import (
    POST_UPDATABLE_FIELDS,
    validate_body,
    validate_email,
    validate_name,
    validate_password,
    validate_title,
    validate_updates,
)


class TestPasswordPolicy:

    def test_accepts_and_trims(self):
        assert validate_password("  secretpw ") == "secretpw"

    @pytest.mark.parametrize("password", ["short", "      ", "abc123"])
    def test_too_short(self, password):
        with pytest.raises(ValidationError):
            validate_password(password)

    @pytest.mark.parametrize("password", ["mypassword1", "PassWord!!", "xxPASSWORDxx"])
    def test_forbidden_word_any_case(self, password):
        with pytest.raises(ValidationError) as exc_info:
            validate_password(password)
        assert "password" in exc_info.value.message

    def test_over_bcrypt_limit(self):
        with pytest.raises(ValidationError):
            validate_password("x" * 73)

    def test_non_string(self):
        with pytest.raises(ValidationError):
            validate_password(None)


class TestEmail:

    def test_valid_email_trimmed(self):
        assert validate_email("  ann@x.com ") == "ann@x.com"

    @pytest.mark.parametrize("email", ["", "ann", "ann@", "@x.com", "ann@@x.com"])
    def test_invalid(self, email):
        with pytest.raises(ValidationError):
            validate_email(email)


class TestPostFields:

    def test_title_min_length(self):
        assert validate_title(" Hello ") == "Hello"
        with pytest.raises(ValidationError):
            validate_title("Hey")

    def test_body_min_length(self):
        assert validate_body("x" * 20) == "x" * 20
        with pytest.raises(ValidationError):
            validate_body("x" * 19)

    def test_name_required(self):
        with pytest.raises(ValidationError):
            validate_name("   ")


class TestUpdates:

    def test_allowed(self):
        validate_updates({"title": "New title"}, POST_UPDATABLE_FIELDS)

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            validate_updates({"likes": 100}, POST_UPDATABLE_FIELDS)

    def test_empty(self):
        with pytest.raises(ValidationError):
            validate_updates({}, POST_UPDATABLE_FIELDS)
