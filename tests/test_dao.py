"""
Tests for the key/value Dao against SQLite.
"""

import pytest
from pydantic import BaseModel

from sqlbridge.core.exceptions import TransactionError
from sqlbridge.executor.dao import Dao


class Profile(BaseModel):
    name: str
    level: int = 1


@pytest.fixture
def dao(executor):
    dao = Dao("profiles", Profile, executor)
    dao.create_table()
    return dao


class TestDao:
    """Test CRUD on JSON documents."""

    def test_save_and_select_one(self, dao):
        dao.save_one("p1", Profile(name="ada", level=3)).result(timeout=5)
        assert dao.select_one("p1") == Profile(name="ada", level=3)
        assert dao.select_one("missing") is None

    def test_save_all_and_select_all(self, dao):
        values = {"p1": Profile(name="ada"), "p2": Profile(name="bob"), "p3": Profile(name="cy")}
        dao.save_all(values).result(timeout=5)
        assert sorted(p.name for p in dao.select_all()) == ["ada", "bob", "cy"]

    def test_save_replaces_existing(self, dao):
        dao.save_one("p1", Profile(name="ada")).result(timeout=5)
        dao.save_one("p1", Profile(name="ada", level=9)).result(timeout=5)
        assert dao.select_all() == [Profile(name="ada", level=9)]

    def test_delete_one(self, dao):
        dao.save_all({"p1": Profile(name="ada"), "p2": Profile(name="bob")}).result(timeout=5)
        dao.delete_one("p1").result(timeout=5)
        assert dao.select_one("p1") is None
        assert dao.select_one("p2") == Profile(name="bob")

    def test_key_adapter(self, executor):
        dao = Dao("numbered", Profile, executor, key_adapter=lambda key: f"n-{key}")
        dao.create_table()
        dao.save_one(7, Profile(name="seven")).result(timeout=5)
        assert dao.select_one(7) == Profile(name="seven")
        assert executor.query_rows("SELECT id FROM numbered") == [{"id": "n-7"}]

    def test_create_table_is_idempotent(self, dao):
        dao.create_table()
        assert dao.select_all() == []

    def test_invalid_table_name(self, executor):
        with pytest.raises(ValueError, match="invalid table name"):
            Dao("profiles; DROP TABLE x", Profile, executor)

    def test_writes_inside_transaction(self, dao, executor):
        def body():
            dao.save_one("p1", Profile(name="ada"))
            dao.save_one("p2", Profile(name="bob"))
            raise RuntimeError("abort")

        with pytest.raises(TransactionError):
            executor.run_in_transaction(body)
        assert dao.select_all() == []

    def test_failed_write_future_left_unread_rolls_back(self, dao, executor):
        """A DAO write that fails inside a transaction undoes the writes before it."""
        other = Dao("missing_table", Profile, executor)

        def body():
            dao.save_one("p1", Profile(name="ada"))
            other.save_one("x", Profile(name="lost"))
            dao.delete_one("p1")
            dao.save_one("p2", Profile(name="bob"))

        with pytest.raises(TransactionError, match="missing_table"):
            executor.run_in_transaction(body)
        assert dao.select_all() == []
