from __future__ import annotations

import pytest

from support_warehouse.allocator import SequentialIdInserter
from support_warehouse.repository import SupportRepository
from tests.conftest import FakeWarehouse

EXPLICIT_PERSON_ID = 3


def _repository(warehouse: FakeWarehouse) -> SupportRepository:
    return SupportRepository(warehouse, SequentialIdInserter(warehouse, mode="max_plus_one"))


@pytest.mark.asyncio
async def test_get_messages_orders_newest_first(fake_warehouse: FakeWarehouse) -> None:
    await _repository(fake_warehouse).get_messages()

    sql, params = fake_warehouse.queries[-1]
    assert sql == "SELECT * FROM `Chat` ORDER BY `data_hora_envio` DESC"
    assert params == {}


@pytest.mark.asyncio
async def test_get_people_does_not_project_secrets(fake_warehouse: FakeWarehouse) -> None:
    fake_warehouse.canned_rows = [{"ID_Pessoa": 1, "Nome_Pessoa": "Ana"}]

    rows = await _repository(fake_warehouse).get_people()

    sql, _ = fake_warehouse.queries[-1]
    assert sql == (
        "SELECT `ID_Pessoa`, `Nome_Pessoa`, `Email`, `Cargo`, `Status` FROM `Pessoas`"
    )
    assert "Senha" not in sql
    assert "CPF" not in sql
    assert rows == [{"ID_Pessoa": 1, "Nome_Pessoa": "Ana"}]


@pytest.mark.asyncio
async def test_get_open_tickets_binds_status_parameter(fake_warehouse: FakeWarehouse) -> None:
    fake_warehouse.tables["Ticket"] = [{"id_ticket": 7, "status_ticket": "Fechado"}]
    fake_warehouse.canned_rows = [{"id_ticket": 1, "status_ticket": "Aberto"}]

    rows = await _repository(fake_warehouse).get_open_tickets()

    sql, params = fake_warehouse.queries[-1]
    assert sql == "SELECT * FROM `Ticket` WHERE `status_ticket` = @status"
    assert params == {"status": "Aberto"}
    assert rows == [{"id_ticket": 1, "status_ticket": "Aberto"}]


@pytest.mark.asyncio
async def test_insert_message_allocates_id_and_stamps_time(
    fake_warehouse: FakeWarehouse,
) -> None:
    fake_warehouse.tables["Chat"] = [{"id_mensagem": 9}]

    result = await _repository(fake_warehouse).insert_message(1001, 1, 2, "Olá, tudo bem?")

    assert result["assigned_id"] == 10
    _, row = fake_warehouse.inserts[-1]
    assert row["id_mensagem"] == 10
    assert row["mensagem"] == "Olá, tudo bem?"
    assert row["data_hora_envio"].microsecond == 0
    assert row["data_hora_envio"].tzinfo is None


@pytest.mark.asyncio
async def test_insert_ticket_opens_with_null_chat_and_close_time(
    fake_warehouse: FakeWarehouse,
) -> None:
    result = await _repository(fake_warehouse).insert_ticket(
        1, 2, "Erro no sistema", "Não consigo acessar o painel", "Suporte Técnico"
    )

    assert result["assigned_id"] == 1
    _, row = fake_warehouse.inserts[-1]
    assert row["status_ticket"] == "Aberto"
    assert row["datahora_fechamento"] is None
    assert row["id_chat"] is None
    assert row["categoria"] == "Suporte Técnico"


@pytest.mark.asyncio
async def test_insert_person_with_explicit_id_skips_allocation(
    fake_warehouse: FakeWarehouse,
) -> None:
    result = await _repository(fake_warehouse).insert_person(
        "Ana Souza",
        "12345678900",
        "ana@empresa.com",
        "senha123",
        "Analista",
        "Ativo",
        person_id=EXPLICIT_PERSON_ID,
    )

    assert result["assigned_id"] == EXPLICIT_PERSON_ID
    assert fake_warehouse.queries == []
    table, row = fake_warehouse.inserts[-1]
    assert table == "Pessoas"
    assert row["ID_Pessoa"] == EXPLICIT_PERSON_ID
    assert row["Logado"] is False


@pytest.mark.asyncio
async def test_insert_person_without_id_allocates_next(fake_warehouse: FakeWarehouse) -> None:
    fake_warehouse.tables["Pessoas"] = [{"ID_Pessoa": 1}, {"ID_Pessoa": 2}]

    result = await _repository(fake_warehouse).insert_person(
        "Bruno Lima", "98765432100", "bruno@empresa.com", "x", "Colaborador", "Ativo"
    )

    assert result["assigned_id"] == 3


@pytest.mark.asyncio
async def test_close_releases_service(fake_warehouse: FakeWarehouse) -> None:
    await _repository(fake_warehouse).close()

    assert fake_warehouse.closed is True
