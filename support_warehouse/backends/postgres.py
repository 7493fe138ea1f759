"""
PostgreSQL backend for the support warehouse.

A self-hosted stand-in for the managed warehouse, useful for local development
and integration tests. Each operation opens its own psycopg async connection
and commits on success. Unlike BigQuery it can serialize a read-then-write
sequence with a transaction-scoped advisory lock.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Iterable, List, Mapping, Optional, Type

import psycopg
from psycopg import AsyncConnection
from psycopg import errors as pg_errors
from psycopg import sql as pg_sql
from psycopg.rows import dict_row

from support_warehouse.backends.abstract import AbstractQueryService, Row
from support_warehouse.config import Settings, get_settings
from support_warehouse.domain.models import Value, normalize_value
from support_warehouse.domain.tables import TableSpec
from support_warehouse.errors import (
    AuthenticationFailure,
    ConnectionFailure,
    InsertFailure,
    QueryFailure,
    SchemaMismatch,
    WarehouseError,
)
from support_warehouse.infrastructure.db_factory import (
    build_dsn,
    get_async_connection,
    is_credential_rejection,
)
from support_warehouse.utils.logging import get_logger

log = get_logger(__name__)

_SQL_TYPES = {bool: "BOOLEAN", int: "BIGINT", str: "TEXT", datetime: "TIMESTAMP"}

_SCHEMA_ERRORS = (
    pg_errors.UndefinedColumn,
    pg_errors.DatatypeMismatch,
    pg_errors.InvalidTextRepresentation,
    pg_errors.InvalidDatetimeFormat,
    pg_errors.NotNullViolation,
)


def quote_ident(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _translate_error(
    exc: psycopg.Error, default: Type[WarehouseError], context: str
) -> WarehouseError:
    """Map a psycopg exception onto the warehouse error taxonomy."""
    message = f"{context}: {exc}"
    if isinstance(exc, _SCHEMA_ERRORS):
        return SchemaMismatch(message)
    if isinstance(
        exc,
        (pg_errors.InsufficientPrivilege, pg_errors.InvalidAuthorizationSpecification),
    ):
        return AuthenticationFailure(message)
    if isinstance(exc, pg_errors.QueryCanceled):
        return default(message)
    if isinstance(exc, psycopg.OperationalError):
        return ConnectionFailure(message)
    return default(message)


def _connect_error(exc: psycopg.Error) -> ConnectionFailure:
    if is_credential_rejection(exc):
        return AuthenticationFailure(f"PostgreSQL rejected credentials: {exc}")
    return ConnectionFailure(f"PostgreSQL unreachable: {exc}")


class _PostgresSession(AbstractQueryService):
    """Query service view bound to one open connection and its transaction."""

    name: str = "postgres"

    def __init__(self, service: "PostgresQueryService", conn: AsyncConnection) -> None:
        self._service = service
        self.conn = conn

    def table_ref(self, table: str) -> str:
        return self._service.table_ref(table)

    def quote(self, identifier: str) -> str:
        return quote_ident(identifier)

    def param(self, name: str) -> str:
        return self._service.param(name)

    async def execute_query(
        self, sql: str, params: Optional[Mapping[str, Value]] = None
    ) -> List[Row]:
        bound = None
        if params:
            bound = {name: normalize_value(value) for name, value in params.items()}
        try:
            async with self.conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(sql, bound)
                return await cur.fetchall()
        except psycopg.Error as exc:
            raise _translate_error(exc, QueryFailure, "Query failed") from exc

    async def insert_row(self, table: str, row: Mapping[str, Value]) -> None:
        query = pg_sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
            pg_sql.Identifier(self._service.schema, table),
            pg_sql.SQL(", ").join(pg_sql.Identifier(column) for column in row),
            pg_sql.SQL(", ").join(pg_sql.Placeholder(column) for column in row),
        )
        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, dict(row))
        except pg_errors.UndefinedTable as exc:
            raise InsertFailure(f"Insert into {table} failed: {exc}") from exc
        except psycopg.Error as exc:
            raise _translate_error(exc, InsertFailure, f"Insert into {table} failed") from exc


class PostgresQueryService(AbstractQueryService):
    """
    Query service backed by PostgreSQL through psycopg async connections.

    Parameters are bound with `%(name)s` placeholders. Tables live in the
    configured schema and have no uniqueness constraint on the identifier
    column, mirroring the warehouse tables.
    """

    name: str = "postgres"
    supports_locking: bool = True

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        schema: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._dsn = dsn_override or build_dsn(self._settings)
        self.schema = schema or self._settings.db_schema

    def table_ref(self, table: str) -> str:
        return f"{quote_ident(self.schema)}.{quote_ident(table)}"

    def quote(self, identifier: str) -> str:
        return quote_ident(identifier)

    def param(self, name: str) -> str:
        return f"%({name})s"

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[_PostgresSession]:
        try:
            conn = await get_async_connection(self._dsn)
        except (psycopg.OperationalError, psycopg.InterfaceError) as exc:
            raise _connect_error(exc) from exc
        # Commits on clean exit, rolls back on error, then closes.
        async with conn:
            yield _PostgresSession(self, conn)

    async def execute_query(
        self, sql: str, params: Optional[Mapping[str, Value]] = None
    ) -> List[Row]:
        log.debug("Executing query", extra={"backend": self.name, "sql": sql})
        async with self._session() as session:
            return await session.execute_query(sql, params)

    async def insert_row(self, table: str, row: Mapping[str, Value]) -> None:
        log.debug("Inserting row", extra={"backend": self.name, "table": table})
        async with self._session() as session:
            await session.insert_row(table, row)

    @asynccontextmanager
    async def locked(self, key: str) -> AsyncIterator[_PostgresSession]:
        """
        Yield a session whose transaction holds `pg_advisory_xact_lock(hashtext(key))`.

        The lock is released when the transaction commits or rolls back.
        """
        async with self._session() as session:
            try:
                await session.conn.execute(
                    "SELECT pg_advisory_xact_lock(hashtext(%s))", (key,)
                )
            except psycopg.Error as exc:
                raise _translate_error(exc, QueryFailure, "Advisory lock failed") from exc
            log.debug("Advisory lock acquired", extra={"backend": self.name, "key": key})
            yield session

    def table_ddl(self, spec: TableSpec) -> str:
        """Render CREATE TABLE IF NOT EXISTS for a table spec."""
        columns = []
        for column, (py_type, nullable) in spec.column_types().items():
            definition = f"{quote_ident(column)} {_SQL_TYPES[py_type]}"
            if not nullable:
                definition += " NOT NULL"
            columns.append(definition)
        return f"CREATE TABLE IF NOT EXISTS {self.table_ref(spec.name)} ({', '.join(columns)})"

    async def create_tables(self, specs: Iterable[TableSpec]) -> None:
        async with self._session() as session:
            for spec in specs:
                try:
                    await session.conn.execute(self.table_ddl(spec))
                except psycopg.Error as exc:
                    raise _translate_error(exc, QueryFailure, f"Create {spec.name} failed") from exc
                log.info("Table ensured", extra={"table": spec.name, "schema": self.schema})


__all__ = ["PostgresQueryService", "quote_ident"]
