from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from support_warehouse.backends.registry import create_query_service
from support_warehouse.config import get_settings
from support_warehouse.errors import WarehouseError
from support_warehouse.reporter import print_insert, print_rows
from support_warehouse.repository import OPEN_STATUS, SupportRepository
from support_warehouse.utils.logging import configure_logging

app = typer.Typer(help="Support warehouse helper CLI.")

T = TypeVar("T")


def _run(action: Callable[[SupportRepository], Awaitable[T]]) -> T:
    """Build a repository from settings, run one action, and report failures."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    async def _main() -> T:
        repository = SupportRepository(create_query_service(settings=settings))
        try:
            return await action(repository)
        finally:
            await repository.close()

    try:
        return asyncio.run(_main())
    except WarehouseError as exc:
        typer.echo(f"{type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


def _emit(rows: list[dict[str, Any]], title: str, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(rows, indent=2, default=str))
    else:
        print_rows(rows, title)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    if settings.warehouse_backend == "bigquery":
        target = f"bigquery project={settings.gcp_project_id} dataset={settings.bq_dataset_id}"
    else:
        target = (
            f"postgres {settings.db_user}@{settings.db_host}:{settings.db_port}/"
            f"{settings.db_name} schema={settings.db_schema}"
        )
    typer.echo(f"{target} | id_allocation={settings.id_allocation}")


@app.command()
def messages(as_json: bool = typer.Option(False, "--json", help="Print rows as JSON.")) -> None:
    """List chat messages, newest first."""
    _emit(_run(lambda repo: repo.get_messages()), "Chat", as_json)


@app.command()
def people(as_json: bool = typer.Option(False, "--json", help="Print rows as JSON.")) -> None:
    """List registered people."""
    _emit(_run(lambda repo: repo.get_people()), "Pessoas", as_json)


@app.command()
def tickets(
    status: str = typer.Option(OPEN_STATUS, "--status", help="Ticket status to filter on."),
    as_json: bool = typer.Option(False, "--json", help="Print rows as JSON."),
) -> None:
    """List tickets with the given status (open by default)."""
    _emit(_run(lambda repo: repo.get_open_tickets(status)), f"Ticket ({status})", as_json)


@app.command("send-message")
def send_message(
    id_chat: int = typer.Option(..., "--chat"),
    id_remetente: int = typer.Option(..., "--from"),
    id_destinatario: int = typer.Option(..., "--to"),
    mensagem: str = typer.Argument(..., help="Message body."),
) -> None:
    """Insert a chat message with the next message id."""
    result = _run(
        lambda repo: repo.insert_message(id_chat, id_remetente, id_destinatario, mensagem)
    )
    print_insert(result)


@app.command("add-person")
def add_person(
    nome: str = typer.Option(..., "--name"),
    cpf: str = typer.Option(..., "--cpf"),
    email: str = typer.Option(..., "--email"),
    senha: str = typer.Option(..., "--password", prompt=True, hide_input=True),
    cargo: str = typer.Option(..., "--role"),
    status: str = typer.Option("Ativo", "--status"),
    person_id: Optional[int] = typer.Option(
        None, "--id", help="Explicit ID_Pessoa; allocated when omitted."
    ),
) -> None:
    """Register a person."""
    result = _run(
        lambda repo: repo.insert_person(nome, cpf, email, senha, cargo, status, person_id)
    )
    print_insert(result)


@app.command("open-ticket")
def open_ticket(
    id_colaborador: int = typer.Option(..., "--requester"),
    id_analista: int = typer.Option(..., "--analyst"),
    titulo: str = typer.Option(..., "--title"),
    descricao: str = typer.Option(..., "--description"),
    categoria: str = typer.Option(..., "--category"),
) -> None:
    """Open a ticket with the next ticket id."""
    result = _run(
        lambda repo: repo.insert_ticket(id_colaborador, id_analista, titulo, descricao, categoria)
    )
    print_insert(result)


@app.command("next-id")
def next_id(
    table: str = typer.Argument(..., help="Table name (case-sensitive)."),
    id_column: Optional[str] = typer.Option(
        None, "--id-column", help="Identifier column for unregistered tables."
    ),
) -> None:
    """Show the id the next insert into TABLE would receive. Nothing is written."""
    value = _run(lambda repo: repo.inserter.next_id(table, id_column))
    typer.echo(str(value))


@app.command()
def demo() -> None:
    """
    Run the sample sequence: one message, one person, one ticket, then row counts.
    """

    async def _sequence(repo: SupportRepository) -> dict[str, int]:
        await repo.insert_message(1001, 1, 2, "Olá, tudo bem?")
        await repo.insert_person(
            "Ana Souza", "12345678900", "ana@empresa.com", "senha123", "Analista", "Ativo",
            person_id=3,
        )
        await repo.insert_ticket(
            1, 2, "Erro no sistema", "Não consigo acessar o painel", "Suporte Técnico"
        )
        return {
            "messages": len(await repo.get_messages()),
            "people": len(await repo.get_people()),
            "open_tickets": len(await repo.get_open_tickets()),
        }

    counts = _run(_sequence)
    typer.echo(
        f"Total messages: {counts['messages']} | people: {counts['people']} | "
        f"open tickets: {counts['open_tickets']}"
    )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
