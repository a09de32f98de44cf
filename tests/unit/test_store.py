"""
Unit tests for the seed loader, the user model and the in-memory store.
"""

import json
import logging
import re
import threading

import pytest

from userapi.users.models import User, utc_now_iso, is_number
from userapi.users.seed import Seed, default_users
from userapi.users.store import UserStore


class TestUser:
    """Tests for the User model."""

    def test_to_dict_key_order(self):
        """Test camelCase keys in the documented order."""
        user = User(id=1, name="A", email="a@b.co", age=5,
                    created_at="c", updated_at="u")

        assert list(user.to_dict()) == ["id", "name", "email", "age", "createdAt", "updatedAt"]

    def test_to_dict_omits_unset_fields(self):
        """Test that age and updatedAt are left out while unset."""
        user = User(id=1, name="A", email="a@b.co", created_at="c")

        assert user.to_dict() == {"id": 1, "name": "A", "email": "a@b.co", "createdAt": "c"}

    def test_age_zero_is_kept(self):
        """Test that age 0 is not mistaken for a missing age."""
        user = User(id=1, name="A", email="a@b.co", age=0, created_at="c")
        assert user.to_dict()["age"] == 0

    def test_from_dict_round_trip(self):
        """Test loading the JSON representation back."""
        data = {"id": 7, "name": "A", "email": "a@b.co", "createdAt": "c", "updatedAt": "u"}
        assert User.from_dict(data).to_dict() == data

    @pytest.mark.parametrize("data", [
        {"name": "A", "email": "a@b.co", "createdAt": "c"},
        {"id": True, "name": "A", "email": "a@b.co", "createdAt": "c"},
        {"id": 1, "email": "a@b.co", "createdAt": "c"},
        {"id": 1, "name": "A", "email": "a@b.co"},
        {"id": 1, "name": "A", "email": "a@b.co", "createdAt": "c", "age": 200},
        ["not", "an", "object"],
    ])
    def test_from_dict_rejects_invalid(self, data):
        """Test invalid seed records."""
        with pytest.raises(ValueError):
            User.from_dict(data)

    def test_utc_now_iso_format(self):
        """Test millisecond precision and Z suffix."""
        assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", utc_now_iso())

    def test_is_number(self):
        """Test numeric detection."""
        assert is_number(0)
        assert is_number(1.5)
        assert not is_number(True)
        assert not is_number("30")
        assert not is_number(float("nan"))
        assert not is_number(None)
        assert is_number(10 ** 400)


class TestSeed:
    """Tests for the Seed loader."""

    def test_load_file(self, seed_file):
        """Test loading a valid seed file."""
        seed = Seed(seed_file)
        users = seed.load()

        assert [u.id for u in users] == [1, 2, 5]
        assert users[2].age is None
        assert seed.degraded is False
        assert seed.source == "file"

    def test_missing_file_falls_back(self, tmp_path, caplog):
        """Test the default fixture when the file does not exist."""
        seed = Seed(tmp_path / "nope.json")

        with caplog.at_level(logging.WARNING, logger="userapi.users.seed"):
            users = seed.load()

        assert [u.to_dict() for u in users] == [u.to_dict() for u in default_users()]
        assert seed.degraded is True
        assert seed.source == "default"
        assert "using default users" in caplog.text

    @pytest.mark.parametrize("content", [
        "{not json",
        json.dumps({"id": 1}),
        json.dumps([{"id": 1, "name": "A"}]),
        json.dumps([
            {"id": 1, "name": "A", "email": "a@b.co", "createdAt": "c"},
            {"id": 1, "name": "B", "email": "b@b.co", "createdAt": "c"},
        ]),
    ])
    def test_bad_content_falls_back(self, tmp_path, content):
        """Test the default fixture for unusable content."""
        path = tmp_path / "users.json"
        path.write_text(content, encoding="utf-8")
        seed = Seed(path)

        users = seed.load()

        assert [u.email for u in users] == ["john@example.com", "jane@example.com"]
        assert seed.degraded is True

    def test_undecodable_file_falls_back(self, tmp_path):
        """Test that a file that is not UTF-8 uses the fixture."""
        path = tmp_path / "users.json"
        path.write_bytes(b'[{"id": 1, "name": "\xff\xfe", "email": "a@b.co", "createdAt": "c"}]')
        seed = Seed(path)

        assert [u.id for u in seed.load()] == [1, 2]
        assert seed.degraded is True

    def test_huge_age_falls_back(self, tmp_path):
        """Test that an out-of-range integer age in the file uses the fixture."""
        path = tmp_path / "users.json"
        record = {"id": 1, "name": "A", "email": "a@b.co", "age": 10 ** 400, "createdAt": "c"}
        path.write_text(json.dumps([record]), encoding="utf-8")
        seed = Seed(path)

        assert len(seed.load()) == 2
        assert seed.degraded is True

    def test_no_path_falls_back(self):
        """Test that no configured path uses the fixture."""
        seed = Seed(None)
        assert len(seed.load()) == 2
        assert seed.degraded is True

    def test_degraded_clears_after_recovery(self, tmp_path, seed_file):
        """Test that a later successful load clears the flag."""
        seed = Seed(tmp_path / "later.json")
        seed.load()
        assert seed.degraded is True

        (tmp_path / "later.json").write_text(seed_file.read_text(encoding="utf-8"), encoding="utf-8")
        seed.load()
        assert seed.degraded is False

    def test_default_fixture_is_deterministic(self):
        """Test that two fixtures are identical."""
        assert [u.to_dict() for u in default_users()] == [u.to_dict() for u in default_users()]
        assert default_users()[0].created_at == "2024-01-01T00:00:00.000Z"

    def test_bundled_seed_file_loads(self):
        """Test that the packaged data file is valid."""
        from userapi.config import DEFAULT_SEED_FILE

        seed = Seed(DEFAULT_SEED_FILE)
        users = seed.load()

        assert seed.degraded is False
        assert len(users) >= 2


class TestUserStore:
    """Tests for UserStore."""

    def test_lazy_load(self, seed_file):
        """Test that the seed is read on first list()."""
        store = UserStore(Seed(seed_file))
        assert store._users is None

        assert len(store.list()) == 3
        assert store._users is not None

    def test_list_returns_copy(self, seed_file):
        """Test that mutating the returned list does not touch the store."""
        store = UserStore(Seed(seed_file))
        users = store.list()
        users.pop()
        users[0].name = "Changed"

        fresh = store.list()
        assert len(fresh) == 3
        assert fresh[0].name == "John Doe"

    def test_replace(self, seed_file):
        """Test installing a new collection."""
        store = UserStore(Seed(seed_file))
        users = store.list()[:1]

        assert store.replace(users) is True
        assert [u.id for u in store.list()] == [1]

    def test_replace_rejects_duplicate_ids(self, seed_file, caplog):
        """Test that duplicate ids leave the store unchanged."""
        store = UserStore(Seed(seed_file))
        users = store.list()
        users.append(users[0])

        with caplog.at_level(logging.ERROR, logger="userapi.users.store"):
            assert store.replace(users) is False

        assert len(store.list()) == 3
        assert "duplicate" in caplog.text

    def test_reset_reloads_seed(self, seed_file):
        """Test that reset() discards changes."""
        store = UserStore(Seed(seed_file))
        store.replace([])

        users = store.reset()

        assert [u.id for u in users] == [1, 2, 5]
        assert [u.to_dict() for u in store.reset()] == [u.to_dict() for u in users]

    def test_locked_is_reentrant(self, seed_file):
        """Test nested use of the store lock."""
        store = UserStore(Seed(seed_file))

        with store.locked():
            with store.locked():
                assert store.replace(store.list()) is True

    def test_locked_serializes_writers(self, seed_file):
        """Test that concurrent read-modify-write sequences do not lose updates."""
        store = UserStore(Seed(seed_file))
        store.replace([])

        def add_users():
            for _ in range(50):
                with store.locked():
                    users = store.list()
                    next_id = max((u.id for u in users), default=0) + 1
                    users.append(User(id=next_id, name="n", email=f"{next_id}@x.io", created_at="c"))
                    store.replace(users)

        threads = [threading.Thread(target=add_users) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert [u.id for u in store.list()] == list(range(1, 201))
