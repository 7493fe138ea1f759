"""
Error taxonomy for warehouse access.

Backends translate client-library exceptions into these types and chain the
original exception. Nothing here is retried or recovered locally.
"""

from __future__ import annotations


class WarehouseError(Exception):
    """Base class for all warehouse access failures."""


class ConnectionFailure(WarehouseError):
    """The service is unreachable or the client could not be created."""


class AuthenticationFailure(ConnectionFailure):
    """Credentials could not be loaded or were rejected by the service."""


class SchemaMismatch(WarehouseError):
    """A column name does not exist in the destination table or its type is incompatible."""


class QueryFailure(WarehouseError):
    """A read was rejected: malformed SQL, timeout, or a missing table."""


class InsertFailure(WarehouseError):
    """A write was rejected by the service."""


__all__ = [
    "WarehouseError",
    "ConnectionFailure",
    "AuthenticationFailure",
    "SchemaMismatch",
    "QueryFailure",
    "InsertFailure",
]
