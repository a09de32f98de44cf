"""
Seed data for the user store.

The seed file is a JSON array of user records. Anything wrong with it (no
path configured, missing file, bad JSON, wrong shape, an invalid record)
makes load() fall back to a fixed two-record fixture. API callers never see
the failure; it is logged and reported through `degraded`.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from .models import User

logger = logging.getLogger(__name__)


DEFAULT_CREATED_AT = "2024-01-01T00:00:00.000Z"


def default_users() -> List[User]:
    """The fallback fixture. Fixed timestamps keep repeated resets identical."""
    return [
        User(id=1, name="John Doe", email="john@example.com", age=30, created_at=DEFAULT_CREATED_AT),
        User(id=2, name="Jane Smith", email="jane@example.com", age=25, created_at=DEFAULT_CREATED_AT),
    ]


class SeedError(Exception):
    """The seed file exists but its content is unusable."""


class Seed:
    """
    Loads the initial user records.

        seed = Seed("data/users.json")
        users = seed.load()
        seed.degraded      # True when the default fixture was used
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self.degraded = False

    @property
    def source(self) -> str:
        """Shown as dataSource in the root metadata: 'file' or 'default'."""
        return "default" if self.degraded else "file"

    def load(self) -> List[User]:
        try:
            users = self._read()
        except (OSError, SeedError) as e:
            logger.warning(f"Could not load seed data ({e}); using default users")
            self.degraded = True
            return default_users()

        self.degraded = False
        logger.info(f"Loaded {len(users)} users from {self.path}")
        return users

    def _read(self) -> List[User]:
        if self.path is None:
            raise SeedError("no seed file configured")

        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise SeedError(f"invalid JSON in {self.path}: {e}") from e

        if not isinstance(data, list):
            raise SeedError(f"{self.path} must contain a JSON array")

        users = []
        for record in data:
            try:
                users.append(User.from_dict(record))
            except (ValueError, OverflowError) as e:
                raise SeedError(f"{self.path}: {e}") from e

        ids = [u.id for u in users]
        if len(ids) != len(set(ids)):
            raise SeedError(f"{self.path} contains duplicate ids")
        return users
