"""
Sequential identifier allocation for append-only warehouse tables.

The warehouse tables have no server-generated identity column, so the next key
is computed from the table itself:

    SELECT COALESCE(MAX(id_column), 0) AS next_seed FROM table

and the row is inserted with ``next_seed + 1``.

Usage:
    from support_warehouse.allocator import SequentialIdInserter

    inserter = SequentialIdInserter(service)
    result = await inserter.insert("Ticket", {...})
    print(result["assigned_id"])

Concurrency
-----------
In ``max_plus_one`` mode the read and the write are two independent remote
calls. Two callers inserting into the same table at the same time can both read
the same maximum and both write the same identifier. Nothing in this module
detects or prevents that. ``locked`` mode runs the read and the write inside
one transaction holding a per-table advisory lock; it is only available on
backends whose ``supports_locking`` is true.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple, TypedDict, Union

from support_warehouse.backends.abstract import QueryService
from support_warehouse.config import Settings, get_settings
from support_warehouse.domain.models import Value
from support_warehouse.domain.tables import TableSpec, check_values, get_table_spec
from support_warehouse.utils.logging import get_logger

log = get_logger(__name__)

ALLOCATION_MODES = ("max_plus_one", "locked")
DEFAULT_ID_COLUMN = "id"


class InsertResult(TypedDict):
    """Outcome of a successful insert."""

    table: str
    id_column: str
    assigned_id: int
    row: Dict[str, Value]


def _require_table(table: str) -> str:
    if not isinstance(table, str) or not table.strip():
        raise ValueError("Table name must be a non-empty string")
    return table


class SequentialIdInserter:
    """
    Insert rows whose integer key is one plus the current maximum.

    Parameters
    ----------
    service : QueryService
        Backend used for the read and the write.
    mode : str, optional
        ``max_plus_one`` or ``locked``. Defaults to settings.id_allocation.
    """

    def __init__(
        self,
        service: QueryService,
        mode: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        mode = mode or (settings or get_settings()).id_allocation
        if mode not in ALLOCATION_MODES:
            raise ValueError(
                f"Unknown allocation mode '{mode}'. Available: {', '.join(ALLOCATION_MODES)}"
            )
        if mode == "locked" and not service.supports_locking:
            raise ValueError(f"Backend '{service.name}' does not support locked allocation")
        self._service = service
        self.mode = mode

    @staticmethod
    def next_id_sql(session: QueryService, table: str, id_column: str) -> str:
        return (
            f"SELECT COALESCE(MAX({session.quote(id_column)}), 0) AS next_seed "
            f"FROM {session.table_ref(table)}"
        )

    async def _read_next_id(self, session: QueryService, table: str, id_column: str) -> int:
        rows = await session.execute_query(self.next_id_sql(session, table, id_column))
        seed = rows[0].get("next_seed") if rows else None
        return int(seed or 0) + 1

    async def next_id(self, table: Union[str, TableSpec], id_column: Optional[str] = None) -> int:
        """
        Return the identifier the next insert would receive, without writing.
        """
        name, id_column = self._resolve_target(table, id_column)
        return await self._read_next_id(self._service, name, id_column)

    def _resolve_target(
        self, table: Union[str, TableSpec], id_column: Optional[str]
    ) -> Tuple[str, str]:
        spec = table if isinstance(table, TableSpec) else get_table_spec(_require_table(table))
        if spec is None:
            return table, id_column or DEFAULT_ID_COLUMN  # type: ignore[return-value]
        if id_column is not None and id_column != spec.id_column:
            raise ValueError(
                f"{spec.name} is keyed by '{spec.id_column}', not '{id_column}'"
            )
        return spec.name, spec.id_column

    def _build_row(
        self, table: Union[str, TableSpec], name: str, id_column: str, values: Mapping[str, Any]
    ) -> Dict[str, Value]:
        spec = table if isinstance(table, TableSpec) else get_table_spec(name)
        if spec is not None:
            return spec.build_row(values)
        if id_column in values:
            raise ValueError(
                f"{name}.{id_column} is allocated automatically and must not be supplied"
            )
        return check_values(name, values)

    async def insert(
        self,
        table: Union[str, TableSpec],
        values: Mapping[str, Any],
        id_column: Optional[str] = None,
    ) -> InsertResult:
        """
        Allocate the next identifier for `table` and insert `values` with it.

        Known tables are validated against their record shape before any
        remote call. A failed read aborts before the write; a failed write is
        raised as-is. Neither is retried.

        Raises
        ------
        ValueError
            Empty table name, or the identifier column supplied in `values`.
        SchemaMismatch
            Unknown column or incompatible value type.
        QueryFailure, InsertFailure, ConnectionFailure
            Propagated from the backend.
        """
        name, id_column = self._resolve_target(table, id_column)
        row = self._build_row(table, name, id_column, values)

        if self.mode == "locked":
            async with self._service.locked(self._service.table_ref(name)) as session:
                return await self._allocate_and_insert(session, name, id_column, row)
        return await self._allocate_and_insert(self._service, name, id_column, row)

    async def _allocate_and_insert(
        self,
        session: QueryService,
        table: str,
        id_column: str,
        row: Dict[str, Value],
    ) -> InsertResult:
        assigned_id = await self._read_next_id(session, table, id_column)
        full_row: Dict[str, Value] = {id_column: assigned_id, **row}
        await session.insert_row(table, full_row)
        log.info(
            f"Inserted {table} {id_column}={assigned_id}",
            extra={"table": table, "assigned_id": assigned_id, "mode": self.mode},
        )
        return InsertResult(
            table=table, id_column=id_column, assigned_id=assigned_id, row=full_row
        )


__all__ = ["ALLOCATION_MODES", "InsertResult", "SequentialIdInserter"]
