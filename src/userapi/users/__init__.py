"""
User records domain: model, seed data, store, validation and routes.
"""

from .models import User, utc_now_iso
from .seed import Seed, default_users
from .store import UserStore
from .validation import UserInput, validate_user_payload, next_id, email_taken
from .handlers import register_routes

__all__ = [
    "User",
    "utc_now_iso",
    "Seed",
    "default_users",
    "UserStore",
    "UserInput",
    "validate_user_payload",
    "next_id",
    "email_taken",
    "register_routes",
]
