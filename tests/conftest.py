"""
Pytest configuration for the support warehouse helper.

Provides fixtures for:
- An in-memory query service used by unit tests
- Sample record values for the support tables
- PostgreSQL connection management and throwaway schemas for integration tests
"""

from __future__ import annotations

import asyncio
import os
import re
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Generator, List, Optional

import psycopg
import pytest

from support_warehouse.backends.abstract import AbstractQueryService, Row
from support_warehouse.backends.postgres import PostgresQueryService
from support_warehouse.config import Settings
from support_warehouse.domain.tables import TABLES

_MAX_RE = re.compile(
    r"SELECT COALESCE\(MAX\(`(?P<column>[^`]+)`\), 0\) AS next_seed FROM `(?P<table>[^`]+)`"
)
_SELECT_ALL_RE = re.compile(r"^SELECT \* FROM `(?P<table>[^`]+)`$")


class FakeWarehouse(AbstractQueryService):
    """
    In-memory stand-in for a warehouse backend.

    Understands the identifier-allocation query and an unfiltered `SELECT *`; every
    other query returns `canned_rows`. All calls are recorded.
    """

    name = "fake"

    def __init__(self, supports_locking: bool = False) -> None:
        self.supports_locking = supports_locking
        self.tables: Dict[str, List[Row]] = defaultdict(list)
        self.queries: List[tuple[str, Dict[str, Any]]] = []
        self.inserts: List[tuple[str, Dict[str, Any]]] = []
        self.canned_rows: List[Row] = []
        self.read_error: Optional[Exception] = None
        self.insert_error: Optional[Exception] = None
        self.after_read: Optional[Callable[[], Awaitable[None]]] = None
        self.closed = False
        self._lock = asyncio.Lock()

    def table_ref(self, table: str) -> str:
        return f"`{table}`"

    def quote(self, identifier: str) -> str:
        return f"`{identifier}`"

    def param(self, name: str) -> str:
        return f"@{name}"

    async def execute_query(self, sql: str, params=None) -> List[Row]:
        self.queries.append((sql, dict(params or {})))
        if self.read_error is not None:
            raise self.read_error

        match = _MAX_RE.search(sql)
        if match:
            ids = [row[match["column"]] for row in self.tables.get(match["table"], [])]
            result = [{"next_seed": max(ids, default=0)}]
            if self.after_read is not None:
                await self.after_read()
            return result

        match = _SELECT_ALL_RE.search(sql)
        if match:
            return [dict(row) for row in self.tables.get(match["table"], [])]
        return list(self.canned_rows)

    async def insert_row(self, table: str, row) -> None:
        if self.insert_error is not None:
            raise self.insert_error
        self.inserts.append((table, dict(row)))
        self.tables[table].append(dict(row))

    @asynccontextmanager
    async def locked(self, key: str) -> AsyncIterator["FakeWarehouse"]:
        if not self.supports_locking:
            raise NotImplementedError("locking disabled")
        async with self._lock:
            yield self

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_warehouse() -> FakeWarehouse:
    return FakeWarehouse()


@pytest.fixture
def locking_warehouse() -> FakeWarehouse:
    return FakeWarehouse(supports_locking=True)


def ticket_values(**overrides: Any) -> Dict[str, Any]:
    values: Dict[str, Any] = {
        "id_colaborador": 1,
        "id_analista": 2,
        "datahora_abertura": datetime(2025, 3, 14, 9, 26, 53),
        "datahora_fechamento": None,
        "titulo_ticket": "Erro no sistema",
        "descricao_ticket": "Não consigo acessar o painel",
        "categoria": "Suporte Técnico",
        "id_chat": None,
        "status_ticket": "Aberto",
    }
    values.update(overrides)
    return values


def message_values(**overrides: Any) -> Dict[str, Any]:
    values: Dict[str, Any] = {
        "id_chat": 1001,
        "id_remetente": 1,
        "id_destinatario": 2,
        "mensagem": "Olá, tudo bem?",
        "data_hora_envio": datetime(2025, 3, 14, 9, 26, 53),
    }
    values.update(overrides)
    return values


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        warehouse_backend="postgres",
        gcp_project_id="test-project",
        bq_dataset_id="pim_suporte",
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "pim_suporte"),
        id_allocation="max_plus_one",
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def pg_schema(
    test_dsn: str, test_settings: Settings, db_connection_available: bool
) -> Generator[str, None, None]:
    """
    Create a throwaway schema holding empty support tables.

    Skips tests if database is not available. The schema is dropped afterwards.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    schema = f"sw_test_{uuid.uuid4().hex[:8]}"
    service = PostgresQueryService(dsn_override=test_dsn, schema=schema, settings=test_settings)
    with psycopg.connect(test_dsn, autocommit=True) as conn:
        conn.execute(f'CREATE SCHEMA "{schema}"')
        for spec in TABLES.values():
            conn.execute(service.table_ddl(spec))
    try:
        yield schema
    finally:
        with psycopg.connect(test_dsn, autocommit=True) as conn:
            conn.execute(f'DROP SCHEMA "{schema}" CASCADE')


@pytest.fixture
def pg_service(test_dsn: str, test_settings: Settings, pg_schema: str) -> PostgresQueryService:
    return PostgresQueryService(dsn_override=test_dsn, schema=pg_schema, settings=test_settings)
