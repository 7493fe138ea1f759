"""
Domain models for the support warehouse.

Defines the scalar value union accepted by the warehouse tables and one strict
record shape per table. Record shapes exclude the identifier column, which is
allocated at insert time. Field aliases carry the exact, case-sensitive column
names used by the warehouse schema.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Value = Union[int, str, datetime, bool, None]

SCALAR_TYPES = (int, str, datetime, bool)


def normalize_value(value: Any) -> Any:
    """
    Normalize a scalar before it leaves the process.

    Aware datetimes become naive UTC and every datetime is truncated to whole
    seconds, the precision of the warehouse DATETIME columns.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.replace(microsecond=0)
    return value


def utc_now() -> datetime:
    """Current time as naive UTC truncated to seconds."""
    return normalize_value(datetime.now(timezone.utc))


class RowModel(BaseModel):
    """
    Base for per-table record shapes.

    Strict mode rejects values of the wrong scalar type instead of coercing them,
    and unknown keys are rejected so a misspelled column never reaches the service.
    """

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)


class ChatMessage(RowModel):
    """A message exchanged inside a support chat (`Chat` table)."""

    id_chat: int = Field(..., description="Chat the message belongs to.")
    id_remetente: int = Field(..., description="Sender person id.")
    id_destinatario: int = Field(..., description="Recipient person id.")
    mensagem: str = Field(..., description="Message body.")
    data_hora_envio: datetime = Field(..., description="Send time (UTC).")


class Person(RowModel):
    """A registered user or analyst (`Pessoas` table)."""

    nome: str = Field(..., alias="Nome_Pessoa")
    cpf: str = Field(..., alias="CPF")
    email: str = Field(..., alias="Email")
    senha: str = Field(..., alias="Senha")
    cargo: str = Field(..., alias="Cargo")
    status: str = Field(..., alias="Status")
    logado: bool = Field(False, alias="Logado")


class Ticket(RowModel):
    """A support ticket (`Ticket` table)."""

    id_colaborador: int
    id_analista: int
    datahora_abertura: datetime
    datahora_fechamento: Optional[datetime] = None
    titulo_ticket: str
    descricao_ticket: str
    categoria: str
    id_chat: Optional[int] = None
    status_ticket: str = "Aberto"


__all__ = [
    "Value",
    "SCALAR_TYPES",
    "normalize_value",
    "utc_now",
    "RowModel",
    "ChatMessage",
    "Person",
    "Ticket",
]
