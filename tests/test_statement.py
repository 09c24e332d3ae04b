"""
Tests for the Statement and ResultSet handles over a plain sqlite3 cursor.
"""

import sqlite3

import pytest

from sqlbridge.executor.statement import ResultSet, Statement


@pytest.fixture
def cursor():
    connection = sqlite3.connect(":memory:")
    connection.execute("CREATE TABLE t(id TEXT, v INT)")
    connection.executemany("INSERT INTO t VALUES(?,?)", [("a", 1), ("b", 2)])
    cursor = connection.cursor()
    yield cursor
    cursor.close()
    connection.close()


class TestStatement:
    """Test parameter binding."""

    def test_set_is_one_based(self, cursor):
        statement = Statement(cursor, "SELECT ?, ?")
        statement.set(2, "second").set(1, "first")
        assert statement.parameters == ("first", "second")

    def test_index_below_one_is_rejected(self, cursor):
        with pytest.raises(ValueError):
            Statement(cursor, "SELECT ?").set(0, "x")

    def test_missing_parameter_is_reported(self, cursor):
        statement = Statement(cursor, "SELECT ?, ?, ?").set(1, "a").set(3, "c")
        with pytest.raises(ValueError, match=r"\[2\]"):
            statement.parameters

    def test_bind_replaces_everything(self, cursor):
        statement = Statement(cursor, "SELECT ?").set(1, "a").set(2, "b")
        statement.bind("only")
        assert statement.parameters == ("only",)

    def test_clear(self, cursor):
        statement = Statement(cursor, "SELECT 1").set(1, "a")
        statement.clear()
        assert statement.parameters == ()

    def test_execute_query(self, cursor):
        result = Statement(cursor, "SELECT v FROM t WHERE id = ?").set(1, "b").execute_query()
        assert result.next()
        assert result.get("v") == 2
        assert not result.next()

    def test_execute_many(self, cursor):
        Statement(cursor, "INSERT INTO t VALUES(?,?)").execute_many([("c", 3), ("d", 4)])
        cursor.execute("SELECT COUNT(*) FROM t")
        assert cursor.fetchone()[0] == 4


class TestResultSet:
    """Test row navigation and column access."""

    def test_iterate_rows(self, cursor):
        cursor.execute("SELECT id, v FROM t ORDER BY id")
        result = ResultSet(cursor)
        assert result.columns == ["id", "v"]
        assert list(result) == [{"id": "a", "v": 1}, {"id": "b", "v": 2}]

    def test_get_by_name_and_position(self, cursor):
        cursor.execute("SELECT id, v FROM t ORDER BY id")
        result = ResultSet(cursor)
        result.next()
        assert result.get("id") == "a"
        assert result.get(2) == 1
        assert result["v"] == 1
        assert result.row == {"id": "a", "v": 1}

    def test_get_before_next(self, cursor):
        cursor.execute("SELECT id FROM t")
        with pytest.raises(RuntimeError, match="call next"):
            ResultSet(cursor).get("id")

    def test_unknown_column(self, cursor):
        cursor.execute("SELECT id FROM t")
        result = ResultSet(cursor)
        result.next()
        with pytest.raises(KeyError):
            result.get("missing")
        with pytest.raises(KeyError):
            result.get(5)

    def test_statement_without_rows(self, cursor):
        cursor.execute("UPDATE t SET v = v + 1")
        result = ResultSet(cursor)
        assert result.columns == []
        assert result.next() is False
        assert result.row_count == 2

    def test_last_row_id(self, cursor):
        cursor.execute("INSERT INTO t VALUES('c', 3)")
        assert ResultSet(cursor).last_row_id == 3
