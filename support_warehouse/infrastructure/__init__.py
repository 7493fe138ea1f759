"""
Infrastructure package for the support warehouse.

Centralizes connectivity concerns (BigQuery client creation, credential
loading, PostgreSQL connections). Keep this layer focused on I/O and resource
setup, decoupled from allocation and repository logic.
"""

from support_warehouse.infrastructure.db_factory import (
    build_dsn,
    get_async_connection,
    get_bigquery_client,
    load_credentials,
)

__all__ = [
    "build_dsn",
    "get_async_connection",
    "get_bigquery_client",
    "load_credentials",
]
