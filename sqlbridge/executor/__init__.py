"""
Executor module: statement execution, result adapters, batches and transactions.

This module contains the classes application code talks to, keeping driver
and pool details behind the connector layer.
"""

from sqlbridge.executor.adapters import AdapterRegistry, model_adapter
from sqlbridge.executor.batch import BatchBuilder
from sqlbridge.executor.builder import SQLExecutorBuilder
from sqlbridge.executor.dao import Dao
from sqlbridge.executor.sql_executor import SQLExecutor, get_shared_executor
from sqlbridge.executor.statement import ResultSet, Statement
from sqlbridge.executor.transaction import CurrentThreadExecutor, TransactionHolder

__all__ = [
    "AdapterRegistry",
    "BatchBuilder",
    "CurrentThreadExecutor",
    "Dao",
    "ResultSet",
    "SQLExecutor",
    "SQLExecutorBuilder",
    "Statement",
    "TransactionHolder",
    "get_shared_executor",
    "model_adapter",
]
