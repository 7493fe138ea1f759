"""
Registry of available warehouse backends.

Usage:
    from support_warehouse.backends.registry import create_query_service

    service = create_query_service()            # backend from WAREHOUSE_BACKEND
    service = create_query_service("postgres")  # explicit
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from support_warehouse.backends.abstract import QueryService
from support_warehouse.backends.bigquery import BigQueryService
from support_warehouse.backends.postgres import PostgresQueryService
from support_warehouse.config import Settings, get_settings


def _backend_factories(settings: Settings) -> Dict[str, Callable[[], QueryService]]:
    return {
        "bigquery": lambda: BigQueryService(settings=settings),
        "postgres": lambda: PostgresQueryService(settings=settings),
    }


def available_backends() -> List[str]:
    """List available backend names."""
    return sorted(_backend_factories(get_settings()).keys())


def create_query_service(
    name: Optional[str] = None, settings: Optional[Settings] = None
) -> QueryService:
    """
    Build the query service for a backend name (defaults to settings).

    Clients are created lazily, so credential problems surface on first use.
    """
    settings = settings or get_settings()
    backend = name or settings.warehouse_backend
    factories = _backend_factories(settings)
    if backend not in factories:
        raise ValueError(f"Unknown backend '{backend}'. Available: {', '.join(factories)}")
    return factories[backend]()


__all__ = ["available_backends", "create_query_service"]
