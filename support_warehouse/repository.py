"""
Support-desk repository: the queries and inserts used by the helpdesk app.

Reads are parameterized SELECTs; inserts into `Chat` and `Ticket` go through
the sequential identifier inserter. `Pessoas` rows may carry a caller-chosen id.
"""

from __future__ import annotations

from typing import List, Optional

from support_warehouse.allocator import InsertResult, SequentialIdInserter
from support_warehouse.backends.abstract import QueryService, Row
from support_warehouse.domain.models import utc_now
from support_warehouse.domain.tables import CHAT, PESSOAS, TICKET
from support_warehouse.utils.logging import get_logger

log = get_logger(__name__)

OPEN_STATUS = "Aberto"
PEOPLE_COLUMNS = ("ID_Pessoa", "Nome_Pessoa", "Email", "Cargo", "Status")


class SupportRepository:
    """
    Data access for chat messages, people and tickets.

    Parameters
    ----------
    service : QueryService
        Warehouse backend.
    inserter : SequentialIdInserter, optional
        Identifier allocator; built from settings when omitted.
    """

    def __init__(
        self, service: QueryService, inserter: Optional[SequentialIdInserter] = None
    ) -> None:
        self.service = service
        self.inserter = inserter or SequentialIdInserter(service)

    async def get_messages(self) -> List[Row]:
        """All chat messages, newest first."""
        svc = self.service
        sql = (
            f"SELECT * FROM {svc.table_ref(CHAT.name)} "
            f"ORDER BY {svc.quote('data_hora_envio')} DESC"
        )
        return await svc.execute_query(sql)

    async def get_people(self) -> List[Row]:
        """Every person, without CPF or password."""
        svc = self.service
        columns = ", ".join(svc.quote(column) for column in PEOPLE_COLUMNS)
        return await svc.execute_query(f"SELECT {columns} FROM {svc.table_ref(PESSOAS.name)}")

    async def get_open_tickets(self, status: str = OPEN_STATUS) -> List[Row]:
        svc = self.service
        sql = (
            f"SELECT * FROM {svc.table_ref(TICKET.name)} "
            f"WHERE {svc.quote('status_ticket')} = {svc.param('status')}"
        )
        return await svc.execute_query(sql, {"status": status})

    async def insert_message(
        self, id_chat: int, id_remetente: int, id_destinatario: int, mensagem: str
    ) -> InsertResult:
        return await self.inserter.insert(
            CHAT,
            {
                "id_chat": id_chat,
                "id_remetente": id_remetente,
                "id_destinatario": id_destinatario,
                "mensagem": mensagem,
                "data_hora_envio": utc_now(),
            },
        )

    async def insert_person(
        self,
        nome: str,
        cpf: str,
        email: str,
        senha: str,
        cargo: str,
        status: str,
        person_id: Optional[int] = None,
    ) -> InsertResult:
        """
        Register a person, logged out.

        With `person_id` the row is written with that id as-is and no
        allocation read happens; otherwise the next sequential id is used.
        """
        values = {
            "Nome_Pessoa": nome,
            "CPF": cpf,
            "Email": email,
            "Senha": senha,
            "Cargo": cargo,
            "Status": status,
            "Logado": False,
        }
        if person_id is None:
            return await self.inserter.insert(PESSOAS, values)

        row = {PESSOAS.id_column: person_id, **PESSOAS.build_row(values)}
        await self.service.insert_row(PESSOAS.name, row)
        log.info(
            f"Inserted {PESSOAS.name} {PESSOAS.id_column}={person_id}",
            extra={"table": PESSOAS.name, "assigned_id": person_id},
        )
        return InsertResult(
            table=PESSOAS.name, id_column=PESSOAS.id_column, assigned_id=person_id, row=row
        )

    async def insert_ticket(
        self,
        id_colaborador: int,
        id_analista: int,
        titulo: str,
        descricao: str,
        categoria: str,
    ) -> InsertResult:
        """Open a new ticket; it starts with no chat and no closing time."""
        return await self.inserter.insert(
            TICKET,
            {
                "id_colaborador": id_colaborador,
                "id_analista": id_analista,
                "datahora_abertura": utc_now(),
                "datahora_fechamento": None,
                "titulo_ticket": titulo,
                "descricao_ticket": descricao,
                "categoria": categoria,
                "id_chat": None,
                "status_ticket": OPEN_STATUS,
            },
        )

    async def close(self) -> None:
        await self.service.close()


__all__ = ["OPEN_STATUS", "PEOPLE_COLUMNS", "SupportRepository"]
