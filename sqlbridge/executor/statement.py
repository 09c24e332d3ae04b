"""
Statement and Result Handles

Thin wrappers around a DB-API cursor that are handed to caller callbacks:
- Statement: collects positional parameters for one parameterized SQL text
- ResultSet: forward-only view over the rows produced by a statement

SQL text is passed to the driver untouched, so placeholders follow the
driver's paramstyle ("?" for SQLite, "%s" for PyMySQL).
"""

from typing import Any, Iterator, Optional, Sequence, Union


class Statement:
    """
    Parameter binder handle for one prepared SQL text.

    Parameters are positional and 1-based:

        statement.set(1, "a")
        statement.set(2, 1)

    or all at once with statement.bind("a", 1).
    """

    def __init__(self, cursor: Any, sql: str):
        self.cursor = cursor
        self.sql = sql
        self._values: dict[int, Any] = {}

    def set(self, index: int, value: Any) -> "Statement":
        """
        Set the parameter at a 1-based position.

        Args:
            index: Parameter position, starting at 1
            value: Value passed to the driver

        Returns:
            This statement
        """
        if index < 1:
            raise ValueError(f"parameter index must start at 1, got {index}")
        self._values[index] = value
        return self

    def bind(self, *values: Any) -> "Statement":
        """Replace all parameters with values, in order."""
        self._values = {position: value for position, value in enumerate(values, start=1)}
        return self

    def clear(self) -> None:
        self._values.clear()

    @property
    def parameters(self) -> tuple:
        """
        Parameters in positional order.

        Raises:
            ValueError: If a position between 1 and the highest one was never set
        """
        if not self._values:
            return ()
        highest = max(self._values)
        missing = [position for position in range(1, highest + 1) if position not in self._values]
        if missing:
            raise ValueError(f"parameters {missing} were not set for: {self.sql}")
        return tuple(self._values[position] for position in range(1, highest + 1))

    def execute(self) -> None:
        parameters = self.parameters
        if parameters:
            self.cursor.execute(self.sql, parameters)
        else:
            self.cursor.execute(self.sql)

    def execute_query(self) -> "ResultSet":
        self.execute()
        return ResultSet(self.cursor)

    def execute_many(self, parameter_sets: Sequence[tuple]) -> None:
        self.cursor.executemany(self.sql, list(parameter_sets))


class ResultSet:
    """
    Forward-only row cursor.

    Call next() to move to the first row before reading columns:

        while result.next():
            name = result.get("name")
    """

    def __init__(self, cursor: Any):
        self.cursor = cursor
        description = cursor.description or ()
        self.columns: list[str] = [column[0] for column in description]
        self._row: Optional[Sequence[Any]] = None

    def next(self) -> bool:
        """Advance to the next row; False once the rows are exhausted."""
        if not self.columns:
            self._row = None
            return False
        self._row = self.cursor.fetchone()
        return self._row is not None

    def get(self, column: Union[str, int]) -> Any:
        """
        Read a column of the current row.

        Args:
            column: Column name, or 1-based column position

        Raises:
            RuntimeError: If next() has not moved to a row yet
            KeyError: If the column does not exist
        """
        if self._row is None:
            raise RuntimeError("ResultSet has no current row, call next() first")
        if isinstance(column, int):
            if column < 1 or column > len(self._row):
                raise KeyError(f"column position {column} is out of range")
            return self._row[column - 1]
        try:
            position = self.columns.index(column)
        except ValueError:
            raise KeyError(f'"{column}" is not a column of this result') from None
        return self._row[position]

    def __getitem__(self, column: Union[str, int]) -> Any:
        return self.get(column)

    @property
    def row(self) -> dict[str, Any]:
        """The current row as a column -> value dict."""
        if self._row is None:
            raise RuntimeError("ResultSet has no current row, call next() first")
        return dict(zip(self.columns, self._row))

    @property
    def last_row_id(self) -> Optional[int]:
        """Key generated by the last INSERT, when the driver reports one."""
        return getattr(self.cursor, "lastrowid", None)

    @property
    def row_count(self) -> int:
        return getattr(self.cursor, "rowcount", -1)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while self.next():
            yield self.row
