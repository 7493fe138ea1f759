"""
Abstract query-service interfaces for the support warehouse.

Concrete backends (BigQuery, PostgreSQL) implement the QueryService protocol so
the inserter and repository stay independent of the client library. Every
operation is one awaited unit of work; nothing here retries.
"""

from __future__ import annotations

import abc
from typing import (
    Any,
    AsyncContextManager,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    runtime_checkable,
)

from support_warehouse.domain.models import Value

Row = Dict[str, Any]


@runtime_checkable
class QueryService(Protocol):
    """
    Common interface all warehouse backends must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    supports_locking : bool
        Whether `locked` can serialize read-then-write sequences.
    """

    name: str
    supports_locking: bool

    def table_ref(self, table: str) -> str:
        """Render a fully qualified, quoted table reference."""
        ...

    def quote(self, identifier: str) -> str:
        """Quote a column identifier for this dialect."""
        ...

    def param(self, name: str) -> str:
        """Render a named query-parameter placeholder."""
        ...

    async def execute_query(
        self, sql: str, params: Optional[Mapping[str, Value]] = None
    ) -> List[Row]:
        """
        Run a read query and return its rows keyed by projected field name.

        Raises
        ------
        QueryFailure, SchemaMismatch, ConnectionFailure
        """
        ...

    async def insert_row(self, table: str, row: Mapping[str, Value]) -> None:
        """
        Append one row to a table.

        Raises
        ------
        InsertFailure, SchemaMismatch, ConnectionFailure
        """
        ...

    def locked(self, key: str) -> AsyncContextManager["QueryService"]:
        """Open a transaction holding an advisory lock on `key`."""
        ...

    async def close(self) -> None:
        ...


class AbstractQueryService(abc.ABC):
    """
    Optional ABC helper for class-based backends.

    Subclasses set `name` and implement the dialect hooks plus the two I/O
    operations. Locking is unsupported unless a subclass overrides `locked`.
    """

    name: str
    supports_locking: bool = False

    @abc.abstractmethod
    def table_ref(self, table: str) -> str:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def quote(self, identifier: str) -> str:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def param(self, name: str) -> str:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    async def execute_query(
        self, sql: str, params: Optional[Mapping[str, Value]] = None
    ) -> List[Row]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    async def insert_row(
        self, table: str, row: Mapping[str, Value]
    ) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def locked(self, key: str) -> AsyncContextManager[QueryService]:
        raise NotImplementedError(f"Backend '{self.name}' does not support locked allocation")

    async def close(self) -> None:
        return None


__all__ = [
    "Row",
    "QueryService",
    "AbstractQueryService",
]
