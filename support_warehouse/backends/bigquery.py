"""
BigQuery backend for the support warehouse.

Runs parameterized queries through `QueryJobConfig` and appends rows with
streaming inserts. The google-cloud-bigquery client is blocking, so each call
runs in a worker thread and the awaiting caller suspends cooperatively.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Type

from google.api_core.exceptions import BadRequest, Forbidden, GoogleAPICallError, Unauthorized
from google.auth.exceptions import GoogleAuthError
from google.cloud import bigquery

from support_warehouse.backends.abstract import AbstractQueryService, Row
from support_warehouse.config import Settings, get_settings
from support_warehouse.domain.models import Value, normalize_value
from support_warehouse.errors import (
    AuthenticationFailure,
    InsertFailure,
    QueryFailure,
    SchemaMismatch,
    WarehouseError,
)
from support_warehouse.infrastructure.db_factory import get_bigquery_client
from support_warehouse.utils.logging import get_logger

log = get_logger(__name__)

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_SCHEMA_MARKERS = ("Unrecognized name", "no such field", "No matching signature")


def _query_parameter(name: str, value: Value) -> bigquery.ScalarQueryParameter:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        type_ = "BOOL"
    elif isinstance(value, int):
        type_ = "INT64"
    elif isinstance(value, str) or value is None:
        type_ = "STRING"
    elif isinstance(value, datetime):
        type_, value = "DATETIME", normalize_value(value)
    else:
        raise SchemaMismatch(f"Parameter '{name}' has unsupported type {type(value).__name__}")
    return bigquery.ScalarQueryParameter(name, type_, value)


def _json_value(value: Value) -> Any:
    if isinstance(value, datetime):
        return normalize_value(value).strftime(DATETIME_FORMAT)
    return value


def _translate_error(
    exc: Exception, default: Type[WarehouseError], context: str
) -> WarehouseError:
    """Map a google client exception onto the warehouse error taxonomy."""
    message = str(exc)
    if isinstance(exc, (GoogleAuthError, Unauthorized)):
        return AuthenticationFailure(f"{context}: {message}")
    if isinstance(exc, Forbidden) and "access denied" in message.lower():
        return AuthenticationFailure(f"{context}: {message}")
    if isinstance(exc, BadRequest) and any(marker in message for marker in _SCHEMA_MARKERS):
        return SchemaMismatch(f"{context}: {message}")
    return default(f"{context}: {message}")


def _insert_error(table: str, errors: List[Dict[str, Any]]) -> WarehouseError:
    """Map the per-row error list returned by streaming inserts."""
    messages = [
        str(detail.get("message", detail))
        for entry in errors
        for detail in entry.get("errors", [])
    ]
    summary = "; ".join(messages) or str(errors)
    if any("no such field" in message for message in messages):
        return SchemaMismatch(f"Insert into {table} rejected: {summary}")
    return InsertFailure(f"Insert into {table} rejected: {summary}")


class BigQueryService(AbstractQueryService):
    """
    Query service backed by Google BigQuery.

    Parameters are bound with named `@param` placeholders. Streaming inserts
    are at-most-once from this side: a rejected insert is reported, never retried.
    """

    name: str = "bigquery"
    supports_locking: bool = False

    def __init__(
        self,
        client: Optional[bigquery.Client] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self.dataset_id = self._settings.bq_dataset_id

    @property
    def project_id(self) -> str:
        if self._settings.gcp_project_id:
            return self._settings.gcp_project_id
        return self._get_client().project

    def _get_client(self) -> bigquery.Client:
        if self._client is None:
            self._client = get_bigquery_client(self._settings)
        return self._client

    def table_id(self, table: str) -> str:
        return f"{self.project_id}.{self.dataset_id}.{table}"

    def table_ref(self, table: str) -> str:
        return f"`{self.table_id(table)}`"

    def quote(self, identifier: str) -> str:
        return f"`{identifier}`"

    def param(self, name: str) -> str:
        return f"@{name}"

    def _run_query(self, sql: str, params: Mapping[str, Value]) -> List[Row]:
        client = self._get_client()
        job_config = bigquery.QueryJobConfig(
            query_parameters=[_query_parameter(name, value) for name, value in params.items()]
        )
        try:
            job = client.query(sql, job_config=job_config)
            result = job.result(timeout=self._settings.query_timeout_seconds)
            return [dict(row.items()) for row in result]
        except FuturesTimeoutError as exc:
            raise QueryFailure(
                f"Query timed out after {self._settings.query_timeout_seconds}s"
            ) from exc
        except (GoogleAPICallError, GoogleAuthError) as exc:
            raise _translate_error(exc, QueryFailure, "Query failed") from exc

    async def execute_query(
        self, sql: str, params: Optional[Mapping[str, Value]] = None
    ) -> List[Row]:
        log.debug("Executing query", extra={"backend": self.name, "sql": sql})
        return await asyncio.to_thread(self._run_query, sql, dict(params or {}))

    def _insert(self, table: str, row: Mapping[str, Value]) -> None:
        client = self._get_client()
        payload = {column: _json_value(value) for column, value in row.items()}
        try:
            errors = client.insert_rows_json(self.table_id(table), [payload])
        except (GoogleAPICallError, GoogleAuthError) as exc:
            raise _translate_error(exc, InsertFailure, f"Insert into {table} failed") from exc
        if errors:
            raise _insert_error(table, errors)

    async def insert_row(self, table: str, row: Mapping[str, Value]) -> None:
        log.debug("Inserting row", extra={"backend": self.name, "table": table})
        await asyncio.to_thread(self._insert, table, dict(row))

    async def close(self) -> None:
        if self._client is not None:
            await asyncio.to_thread(self._client.close)
            self._client = None


__all__ = ["BigQueryService", "DATETIME_FORMAT"]
