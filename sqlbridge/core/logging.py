"""
Statement Logging

Logs every statement sent to a connection for observability.
It captures:
- Statement verb and text
- Processing time
- Failures (with the driver error)

Design Decisions:
- Logs to standard Python logging; the library never installs handlers
- Statements are logged at DEBUG so production logs stay quiet by default
- Failures are logged at WARNING and then re-raised unchanged
"""

import logging
import time
from contextlib import contextmanager
from typing import Iterator

# Root logger of the library; every module logs to a child of it
logger = logging.getLogger("sqlbridge")

_statement_logger = logging.getLogger("sqlbridge.statement")

MAX_LOGGED_SQL_LENGTH = 200


def _shorten(sql: str) -> str:
    """Collapse whitespace and cut long statements for log lines."""
    flat = " ".join(sql.split())
    if len(flat) > MAX_LOGGED_SQL_LENGTH:
        return flat[:MAX_LOGGED_SQL_LENGTH] + "..."
    return flat


@contextmanager
def statement_timer(sql: str, verb: str = "EXECUTE") -> Iterator[None]:
    """
    Time the statement run inside the block and log it.

    Args:
        sql: The SQL text being run
        verb: Label for the kind of call (EXECUTE, QUERY, BATCH)

    Format: VERB SQL PROCESS_TIME_MS
    """
    start_time = time.perf_counter()
    try:
        yield
    except Exception as e:
        process_time = time.perf_counter() - start_time
        _statement_logger.warning(
            f"{verb} {_shorten(sql)} failed after {process_time*1000:.2f}ms: {e}"
        )
        raise
    process_time = time.perf_counter() - start_time
    if _statement_logger.isEnabledFor(logging.DEBUG):
        _statement_logger.debug(f"{verb} {_shorten(sql)} {process_time*1000:.2f}ms")
