"""
Unit tests for payload validation.
"""

import pytest

from userapi.errors import BadRequestError, ValidationError
from userapi.users.models import User
from userapi.users.validation import (
    validate_user_payload,
    is_valid_email,
    next_id,
    email_taken,
)


def make_user(user_id: int, email: str) -> User:
    return User(id=user_id, name="n", email=email, created_at="c")


class TestValidateUserPayload:
    """Tests for validate_user_payload."""

    def test_normalizes_fields(self):
        """Test trimming and lower-casing."""
        fields = validate_user_payload({"name": "  Ada  ", "email": "Ada@Example.COM", "age": 36})

        assert fields.name == "Ada"
        assert fields.email == "ada@example.com"
        assert fields.age == 36

    def test_age_optional(self):
        """Test that age may be left out."""
        assert validate_user_payload({"name": "A", "email": "a@b.co"}).age is None

    @pytest.mark.parametrize("payload", [
        {"name": "Test"},
        {"email": "a@b.co"},
        {"name": "", "email": "a@b.co"},
        {"name": "   ", "email": "a@b.co"},
        {"name": "A", "email": None},
        {},
        None,
        ["name", "email"],
        "a string",
    ])
    def test_missing_fields(self, payload):
        """Test 400 for missing name or email."""
        with pytest.raises(BadRequestError) as exc_info:
            validate_user_payload(payload)

        assert exc_info.value.status == 400
        assert exc_info.value.extra == {"requiredFields": ["name", "email"]}
        assert exc_info.value.message == "Name and email are required fields"

    def test_non_string_name(self):
        """Test 422 for a non-string name."""
        with pytest.raises(ValidationError) as exc_info:
            validate_user_payload({"name": 42, "email": "a@b.co"})

        assert exc_info.value.extra == {"field": "name"}

    @pytest.mark.parametrize("email", [
        "invalid-email", "a@b", "@b.co", "a@.co", "a b@c.co", "a@b@c.co", 12345,
        " a@b.co", "a@b.co ", "\ta@b.co",
    ])
    def test_invalid_email(self, email):
        """Test 422 for malformed email."""
        with pytest.raises(ValidationError) as exc_info:
            validate_user_payload({"name": "Test", "email": email})

        assert exc_info.value.status == 422
        assert exc_info.value.message == "Invalid email format"
        assert exc_info.value.extra == {"field": "email"}

    @pytest.mark.parametrize("age", [0, 150, 42, 29.5])
    def test_valid_age(self, age):
        """Test ages inside the range, including both bounds."""
        assert validate_user_payload({"name": "A", "email": "a@b.co", "age": age}).age == age

    @pytest.mark.parametrize("age", [-1, 151, "30", None, True, float("inf"), 10 ** 400, -(10 ** 400)])
    def test_invalid_age(self, age):
        """Test 422 for ages outside the range or of the wrong type."""
        with pytest.raises(ValidationError) as exc_info:
            validate_user_payload({"name": "A", "email": "a@b.co", "age": age})

        assert exc_info.value.message == "Age must be a number between 0 and 150"
        assert exc_info.value.extra == {"field": "age"}

    def test_missing_checked_before_email(self):
        """Test that presence is checked first."""
        with pytest.raises(BadRequestError):
            validate_user_payload({"email": "invalid-email", "age": -5})

    def test_email_checked_before_age(self):
        """Test check order between email and age."""
        with pytest.raises(ValidationError) as exc_info:
            validate_user_payload({"name": "A", "email": "bad", "age": -5})

        assert exc_info.value.extra["field"] == "email"


class TestHelpers:
    """Tests for email and id helpers."""

    def test_is_valid_email(self):
        """Test the email shape check."""
        assert is_valid_email("user@example.com")
        assert is_valid_email("first.last+tag@sub.example.co.uk")
        assert not is_valid_email("user@example")

    def test_next_id(self):
        """Test max + 1, or 1 when empty."""
        assert next_id([]) == 1
        assert next_id([make_user(3, "a@b.co"), make_user(1, "c@d.co")]) == 4

    def test_email_taken_case_insensitive(self):
        """Test collision detection ignores case."""
        users = [make_user(1, "John@Example.com")]

        assert email_taken(users, "john@example.com")
        assert email_taken(users, "JOHN@EXAMPLE.COM")
        assert not email_taken(users, "jane@example.com")

    def test_email_taken_excludes_self(self):
        """Test that a record does not collide with itself."""
        users = [make_user(1, "john@example.com"), make_user(2, "jane@example.com")]

        assert not email_taken(users, "john@example.com", exclude_id=1)
        assert email_taken(users, "jane@example.com", exclude_id=1)
