"""
=============================================================================
USER ROUTES
=============================================================================

    GET    /                 service metadata
    GET    /api/users        list
    GET    /api/users/:id    fetch one
    POST   /api/users        create                 400 / 422 / 409
    PUT    /api/users/:id    full replace           400 / 422 / 404 / 409
    DELETE /api/users/:id    remove                 404
    GET    /api/reset        reload the seed data
    (anything else)          404 + endpoint catalog

Handlers raise APIError subclasses for every expected failure. Each one
is wrapped by `guarded`, which turns any other exception into a 500 with
that handler's own message ("Failed to create user", ...).
"""

import functools
import logging
from typing import Callable, Optional

from ..errors import APIError, ConflictError, InternalError, NotFoundError
from ..http import HTTPParseError, HTTPRequest, HTTPResponse, HTTPStatus, Router, created, ok, error_response
from .models import User, utc_now_iso
from .seed import Seed
from .store import UserStore
from .validation import email_taken, next_id, validate_user_payload

logger = logging.getLogger(__name__)


SERVICE_INFO = {
    "message": "Welcome to API Learning 101",
    "name": "User Records API",
    "version": "1.0.0",
    "storage": "In-memory (data persists while the server process runs)",
    "note": "Changes are temporary. Use GET /api/reset to reload initial data.",
}


def guarded(failure_message: str) -> Callable:
    """Decorator: re-raise API errors, turn anything else into InternalError(failure_message)."""
    def decorator(handler: Callable[[HTTPRequest], HTTPResponse]) -> Callable[[HTTPRequest], HTTPResponse]:
        @functools.wraps(handler)
        def wrapper(request: HTTPRequest) -> HTTPResponse:
            try:
                return handler(request)
            except (APIError, HTTPParseError):
                raise
            except Exception as e:
                logger.exception(f"{handler.__name__} failed: {e}")
                raise InternalError(failure_message) from e
        return wrapper
    return decorator


def parse_user_id(raw: str) -> Optional[int]:
    """Path id as an int, or None when it is not a plain decimal integer."""
    # "5abc" is not read as 5; the 404 message echoes the id as sent
    if raw.isascii() and raw.isdigit():
        return int(raw)
    return None


def user_not_found(raw_id: str) -> NotFoundError:
    return NotFoundError(f"User with ID {raw_id} not found")


def register_routes(router: Router, store: UserStore, seed: Seed) -> None:
    """Register every user route, plus the unmatched-route fallback, on router."""

    @router.get("/", description="Service metadata")
    def index(request: HTTPRequest) -> HTTPResponse:
        store.list()  # dataSource is only known once the seed has been read
        endpoints = {
            route.signature: route.meta.get("description", "")
            for route in router.routes()
            if route.path.startswith("/api/")
        }
        return ok({
            **SERVICE_INFO,
            "dataSource": seed.source,
            "endpoints": {"users": endpoints},
        })

    @router.get("/api/users", description="Get all users")
    @guarded("Failed to retrieve users")
    def list_users(request: HTTPRequest) -> HTTPResponse:
        users = store.list()
        return ok({"count": len(users), "data": [u.to_dict() for u in users]})

    @router.get("/api/users/:id", description="Get user by ID")
    @guarded("Failed to retrieve user")
    def get_user(request: HTTPRequest) -> HTTPResponse:
        raw_id = request.path_params["id"]
        user_id = parse_user_id(raw_id)
        for user in store.list():
            if user.id == user_id:
                return ok({"data": user.to_dict()})
        raise user_not_found(raw_id)

    @router.post("/api/users", description="Create new user")
    @guarded("Failed to create user")
    def create_user(request: HTTPRequest) -> HTTPResponse:
        fields = validate_user_payload(request.json)

        with store.locked():
            users = store.list()
            if email_taken(users, fields.email):
                raise ConflictError("User with this email already exists", field="email")

            user = User(
                id=next_id(users),
                name=fields.name,
                email=fields.email,
                age=fields.age,
                created_at=utc_now_iso(),
            )
            users.append(user)
            if not store.replace(users):
                raise InternalError("Failed to save user")

        logger.info(f"Created user {user.id} <{user.email}>")
        return created(
            {"message": "User created successfully", "data": user.to_dict()},
            location=f"/api/users/{user.id}",
        )

    @router.put("/api/users/:id", description="Update user (full)")
    @guarded("Failed to update user")
    def update_user(request: HTTPRequest) -> HTTPResponse:
        raw_id = request.path_params["id"]
        fields = validate_user_payload(request.json)
        user_id = parse_user_id(raw_id)

        with store.locked():
            users = store.list()
            index = next((i for i, u in enumerate(users) if u.id == user_id), None)
            if index is None:
                raise user_not_found(raw_id)

            if email_taken(users, fields.email, exclude_id=user_id):
                raise ConflictError("Another user with this email already exists", field="email")

            user = User(
                id=user_id,
                name=fields.name,
                email=fields.email,
                age=fields.age,
                created_at=users[index].created_at,
                updated_at=utc_now_iso(),
            )
            users[index] = user
            if not store.replace(users):
                raise InternalError("Failed to update user")

        logger.info(f"Updated user {user.id}")
        return ok({"message": "User updated successfully", "data": user.to_dict()})

    @router.delete("/api/users/:id", description="Delete user")
    @guarded("Failed to delete user")
    def delete_user(request: HTTPRequest) -> HTTPResponse:
        raw_id = request.path_params["id"]
        user_id = parse_user_id(raw_id)

        with store.locked():
            users = store.list()
            index = next((i for i, u in enumerate(users) if u.id == user_id), None)
            if index is None:
                raise user_not_found(raw_id)

            deleted = users.pop(index)
            if not store.replace(users):
                raise InternalError("Failed to delete user")

        logger.info(f"Deleted user {deleted.id}")
        return ok({"message": "User deleted successfully", "data": deleted.summary()})

    @router.get("/api/reset", description="Reset data to initial state")
    @guarded("Failed to reset data")
    def reset_data(request: HTTPRequest) -> HTTPResponse:
        users = store.reset()
        logger.info(f"Store reset to {len(users)} users ({seed.source})")
        return ok({
            "message": "Data reset to initial state",
            "count": len(users),
            "data": [u.to_dict() for u in users],
        })

    @router.fallback
    def unknown_route(request: HTTPRequest) -> HTTPResponse:
        return error_response(
            HTTPStatus.NOT_FOUND,
            "Not Found",
            f"Route {request.method} {request.target} not found",
            availableEndpoints=[route.signature for route in router.routes()],
        )
