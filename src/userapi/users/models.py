"""User record model and its JSON representation."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
import math

Number = Union[int, float]


def utc_now_iso() -> str:
    """Current UTC time as '2026-10-19T12:00:00.123Z' (millisecond precision)."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def is_number(value: Any) -> bool:
    """True for ints and finite floats. bool is excluded."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # ints of any size; isfinite would overflow converting a huge int
    return isinstance(value, int) or math.isfinite(value)


@dataclass
class User:
    """
    One user record.

    Serialized with camelCase keys in the order
    id, name, email, age, createdAt, updatedAt; age and updatedAt are
    left out while unset.
    """

    id: int
    name: str
    email: str
    created_at: str
    age: Optional[Number] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "name": self.name, "email": self.email}
        if self.age is not None:
            data["age"] = self.age
        data["createdAt"] = self.created_at
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data

    def summary(self) -> Dict[str, Any]:
        """The {id, name, email} view returned after a delete."""
        return {"id": self.id, "name": self.name, "email": self.email}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """
        Build a User from its JSON representation.

        Raises:
            ValueError: If a field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError(f"User record must be an object, got {type(data).__name__}")

        user_id = data.get("id")
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id < 1:
            raise ValueError(f"Invalid id: {user_id!r}")

        for key in ("name", "email", "createdAt"):
            if not isinstance(data.get(key), str) or not data[key].strip():
                raise ValueError(f"User {user_id}: missing or invalid {key}")

        age = data.get("age")
        if age is not None and not (is_number(age) and 0 <= age <= 150):
            raise ValueError(f"User {user_id}: invalid age {age!r}")

        updated_at = data.get("updatedAt")
        if updated_at is not None and not isinstance(updated_at, str):
            raise ValueError(f"User {user_id}: invalid updatedAt")

        return cls(
            id=user_id,
            name=data["name"],
            email=data["email"],
            created_at=data["createdAt"],
            age=age,
            updated_at=updated_at,
        )
