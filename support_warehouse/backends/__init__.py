"""
Backends package for the support warehouse.

Re-exports the query-service interfaces, the concrete backends and the
registry so downstream code can import from `support_warehouse.backends`.
"""

from support_warehouse.backends.abstract import AbstractQueryService, QueryService, Row
from support_warehouse.backends.bigquery import BigQueryService
from support_warehouse.backends.postgres import PostgresQueryService
from support_warehouse.backends.registry import available_backends, create_query_service

__all__ = [
    # Abstracts
    "AbstractQueryService",
    "QueryService",
    "Row",
    # Concrete backends
    "BigQueryService",
    "PostgresQueryService",
    # Registry
    "available_backends",
    "create_query_service",
]
