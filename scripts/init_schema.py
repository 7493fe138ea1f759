"""
Schema bootstrap script for the PostgreSQL backend.

Creates the Chat, Pessoas and Ticket tables (if missing) in the configured
schema so the helper can run against a local database.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import typer

from support_warehouse.backends.postgres import PostgresQueryService
from support_warehouse.config import get_settings
from support_warehouse.domain.tables import TABLES
from support_warehouse.errors import WarehouseError
from support_warehouse.utils.logging import configure_logging

app = typer.Typer(help="Create the support tables on PostgreSQL.")


async def init_schema(dsn_override: Optional[str] = None, schema: Optional[str] = None) -> None:
    service = PostgresQueryService(dsn_override=dsn_override, schema=schema)
    await service.create_tables(TABLES.values())


@app.command()
def main(
    dsn: Optional[str] = typer.Option(None, "--dsn", help="PostgreSQL DSN override."),
    schema: Optional[str] = typer.Option(None, "--schema", help="Target schema."),
    print_ddl: bool = typer.Option(False, "--print", help="Print DDL instead of executing it."),
) -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    if print_ddl:
        service = PostgresQueryService(dsn_override=dsn, schema=schema)
        for spec in TABLES.values():
            typer.echo(service.table_ddl(spec) + ";")
        return

    try:
        asyncio.run(init_schema(dsn, schema))
    except WarehouseError as exc:
        typer.echo(f"Schema init failed: {exc}", err=True)
        sys.exit(1)
    typer.echo(f"Tables ready: {', '.join(TABLES)}")


if __name__ == "__main__":
    app()
