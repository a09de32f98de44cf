"""
In-memory user store.

    store = UserStore(seed)
    with store.locked():
        users = store.list()          # copy, loaded from the seed on first read
        users.append(new_user)
        store.replace(users)

Handlers run on worker threads, so every read-modify-write must happen
inside locked(). The lock is re-entrant; list() and replace() take it too.
"""

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .models import User
from .seed import Seed

logger = logging.getLogger(__name__)


class UserStore:
    """The single shared collection of user records."""

    def __init__(self, seed: Seed):
        self.seed = seed
        self._users: Optional[List[User]] = None
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator["UserStore"]:
        with self._lock:
            yield self

    def list(self) -> List[User]:
        """Current records in insertion order, as a deep copy."""
        with self._lock:
            if self._users is None:
                self._users = self.seed.load()
            return copy.deepcopy(self._users)

    def replace(self, users: List[User]) -> bool:
        """
        Install a whole new collection.

        Returns:
            False, leaving the store unchanged, if two records share an id.
        """
        ids = [u.id for u in users]
        if len(ids) != len(set(ids)):
            logger.error("Rejected store write: duplicate user ids")
            return False

        with self._lock:
            self._users = copy.deepcopy(users)
        logger.debug(f"Store updated: {len(users)} users")
        return True

    def reset(self) -> List[User]:
        """Forget every change and reload from the seed."""
        with self._lock:
            self._users = None
            return self.list()
