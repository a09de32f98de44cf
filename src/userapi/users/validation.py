"""
Request payload validation for create and update.

Checks run in a fixed order and stop at the first failure:

    1. name and email present           -> 400 BadRequestError
    2. name is a string                 -> 422 ValidationError(field="name")
    3. email is a string of shape a@b.c -> 422 ValidationError(field="email")
    4. age, if given, is 0..150         -> 422 ValidationError(field="age")

Nothing here touches the store, so a rejected request never mutates it.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..errors import BadRequestError, ValidationError
from .models import Number, User, is_number

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

MIN_AGE = 0
MAX_AGE = 150

REQUIRED_FIELDS = ["name", "email"]


@dataclass
class UserInput:
    """A validated, normalized create/update payload."""

    name: str
    email: str
    age: Optional[Number] = None


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def validate_user_payload(payload: Any) -> UserInput:
    """
    Validate a decoded JSON body and return the normalized fields.

    A body that is not a JSON object is treated as an empty object. The name
    is trimmed. The email must match as sent, then is trimmed and lower-cased.

    Raises:
        BadRequestError: name or email missing.
        ValidationError: a field has an invalid value.
    """
    data = payload if isinstance(payload, dict) else {}
    name = data.get("name")
    email = data.get("email")

    if _is_missing(name) or _is_missing(email):
        raise BadRequestError(
            "Name and email are required fields",
            requiredFields=list(REQUIRED_FIELDS),
        )

    if not isinstance(name, str):
        raise ValidationError("Name must be a string", field="name")

    if not isinstance(email, str) or not is_valid_email(email):
        raise ValidationError("Invalid email format", field="email")

    age = None
    if "age" in data:
        age = data["age"]
        if not is_number(age) or not MIN_AGE <= age <= MAX_AGE:
            raise ValidationError(
                f"Age must be a number between {MIN_AGE} and {MAX_AGE}",
                field="age",
            )

    return UserInput(name=name.strip(), email=email.strip().lower(), age=age)


def next_id(users: Iterable[User]) -> int:
    """Highest existing id plus one, or 1 for an empty collection."""
    return max((u.id for u in users), default=0) + 1


def email_taken(users: Iterable[User], email: str, exclude_id: Optional[int] = None) -> bool:
    """Case-insensitive email collision check, ignoring the record being updated."""
    email = email.lower()
    return any(u.email.lower() == email and u.id != exclude_id for u in users)
