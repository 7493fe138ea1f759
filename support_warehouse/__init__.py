"""
Support Warehouse - data-access helper for a support-desk dataset.

Connects to the chat, people and ticket tables of a managed warehouse
(Google BigQuery, or PostgreSQL for local work) and provides:

- Parameterized SELECT queries for messages, people and open tickets
- Row inserts with sequential surrogate keys (MAX + 1 allocation)
- An opt-in locked allocation mode on backends with advisory locks
- A small CLI for running the queries and inserts
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from support_warehouse.allocator import InsertResult, SequentialIdInserter
from support_warehouse.backends import (
    AbstractQueryService,
    BigQueryService,
    PostgresQueryService,
    QueryService,
    available_backends,
    create_query_service,
)
from support_warehouse.config import Settings, get_settings
from support_warehouse.errors import (
    AuthenticationFailure,
    ConnectionFailure,
    InsertFailure,
    QueryFailure,
    SchemaMismatch,
    WarehouseError,
)
from support_warehouse.repository import SupportRepository
from support_warehouse.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Allocation
    "InsertResult",
    "SequentialIdInserter",
    # Backends
    "AbstractQueryService",
    "BigQueryService",
    "PostgresQueryService",
    "QueryService",
    "available_backends",
    "create_query_service",
    # Repository
    "SupportRepository",
    # Errors
    "WarehouseError",
    "ConnectionFailure",
    "AuthenticationFailure",
    "SchemaMismatch",
    "QueryFailure",
    "InsertFailure",
    # Logging
    "configure_logging",
    "get_logger",
]
