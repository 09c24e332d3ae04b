"""
Key/Value Data Access Object

Stores pydantic models as JSON documents in a two-column table:

    id   VARCHAR(128) PRIMARY KEY
    data TEXT

Design Decisions:
- Each save builds one BatchBuilder (REPLACE INTO), so saving many values
  is a single round trip and concurrent saves never share binders
- Reads go through the executor's adapter registry; the DAO registers the
  JSON adapter for its model type on construction
- Writes return futures; reads are synchronous
"""

import logging
import re
from concurrent.futures import Future
from typing import Callable, Generic, Mapping, Optional, TypeVar

from pydantic import BaseModel

from sqlbridge.executor.sql_executor import SQLExecutor
from sqlbridge.executor.statement import ResultSet

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V", bound=BaseModel)

_TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Dao(Generic[K, V]):
    """
    Data access object for one table of JSON-serialized models.

    Placeholders use the "?" paramstyle unless a different one is given
    ("%s" for MySQL / MariaDB).
    """

    def __init__(
        self,
        table: str,
        model: type[V],
        executor: SQLExecutor,
        key_adapter: Callable[[K], str] = str,
        placeholder: str = "?",
    ):
        """
        Args:
            table: Table name (letters, digits and underscores only)
            model: Pydantic model stored in the table
            executor: Executor used for every statement
            key_adapter: Converts keys to the stored id
            placeholder: Driver paramstyle placeholder
        """
        if not _TABLE_NAME_PATTERN.match(table):
            raise ValueError(f"invalid table name: {table!r}")
        self.table = table
        self.model = model
        self.executor = executor
        self.key_adapter = key_adapter
        self.placeholder = placeholder

        self._replace_sql = f"REPLACE INTO {table} VALUES({placeholder}, {placeholder})"
        executor.register_adapter(model, self._adapt)

    def _adapt(self, result: ResultSet) -> Optional[V]:
        data = result.get("data")
        if data is None:
            return None
        return self.model.model_validate_json(data)

    def create_table(self) -> None:
        """Create the table if it does not exist."""
        self.executor.execute(
            f"CREATE TABLE IF NOT EXISTS {self.table}"
            f"(id VARCHAR(128) NOT NULL PRIMARY KEY, data TEXT)"
        )

    def select_all(self) -> list[V]:
        return self.executor.query_many(f"SELECT * FROM {self.table}", self.model)

    def select_one(self, key: K) -> Optional[V]:
        return self.executor.query(
            f"SELECT * FROM {self.table} WHERE id = {self.placeholder}",
            self.model,
            lambda statement: statement.set(1, self.key_adapter(key)),
        )

    def delete_one(self, key: K) -> Future:
        return self.executor.execute_async(
            f"DELETE FROM {self.table} WHERE id = {self.placeholder}",
            lambda statement: statement.set(1, self.key_adapter(key)),
        )

    def save_one(self, key: K, value: V) -> Future:
        return self.save_all({key: value})

    def save_all(self, values: Mapping[K, V]) -> Future:
        """
        Save every (key, value) pair in one batch.

        Returns:
            Future completed once the batch has run
        """
        batch = self.executor.batch(self._replace_sql)
        for key, value in values.items():
            stored_id = self.key_adapter(key)
            document = value.model_dump_json()
            batch.batch(lambda statement, i=stored_id, d=document: statement.bind(i, d))
        logger.debug(f"Saving {len(values)} value(s) into {self.table}")
        return batch.execute_async()
