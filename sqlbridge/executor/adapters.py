"""
Result Adapter Registry

Maps a declared result type to the function that builds an instance of it
from the current row of a ResultSet.

Design Decisions:
- One registry per executor, passed at construction; there is no global registry
- At most one adapter per type, the last registration wins
- Lookups fail fast with AdapterNotFoundError naming the type
"""

from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar

from pydantic import BaseModel

from sqlbridge.core.exceptions import AdapterNotFoundError
from sqlbridge.executor.statement import ResultSet

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

ResultAdapter = Callable[[ResultSet], Optional[Any]]


def result_set_adapter(result: ResultSet) -> ResultSet:
    """Identity adapter: hands the cursor itself to the caller."""
    return result


def dict_adapter(result: ResultSet) -> dict[str, Any]:
    return result.row


def model_adapter(model: type[M]) -> Callable[[ResultSet], M]:
    """
    Build an adapter that validates the current row into a pydantic model.

    Column names must match the model's field names (or aliases).

    Args:
        model: The pydantic model class

    Returns:
        Adapter for register_adapter(model, ...)
    """
    def adapt(result: ResultSet) -> M:
        return model.model_validate(result.row)

    adapt.__name__ = f"{model.__name__}_adapter"
    return adapt


def default_adapters() -> dict[type, ResultAdapter]:
    return {
        ResultSet: result_set_adapter,
        dict: dict_adapter,
    }


class AdapterRegistry:
    """Per-executor mapping of result type -> adapter."""

    def __init__(self, adapters: Optional[Mapping[type, ResultAdapter]] = None):
        self._adapters: dict[type, ResultAdapter] = dict(adapters or {})

    def register(self, result_type: type[T], adapter: Callable[[ResultSet], Optional[T]]) -> None:
        self._adapters[result_type] = adapter

    def get(self, result_type: type[T]) -> Callable[[ResultSet], Optional[T]]:
        """
        Get the adapter for a type.

        Raises:
            AdapterNotFoundError: If no adapter is registered for result_type
        """
        adapter = self._adapters.get(result_type)
        if adapter is None:
            raise AdapterNotFoundError(result_type)
        return adapter

    def copy(self) -> "AdapterRegistry":
        return AdapterRegistry(self._adapters)

    def __contains__(self, result_type: object) -> bool:
        return result_type in self._adapters

    def __iter__(self) -> Iterator[type]:
        return iter(list(self._adapters))

    def __len__(self) -> int:
        return len(self._adapters)
