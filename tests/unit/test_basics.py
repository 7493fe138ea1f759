from __future__ import annotations

import pytest

from support_warehouse import config
from support_warehouse.backends import BigQueryService, PostgresQueryService
from support_warehouse.backends.registry import available_backends, create_query_service


def test_settings_defaults(monkeypatch):
    for name in ("WAREHOUSE_BACKEND", "BQ_DATASET", "ID_ALLOCATION", "DB_SCHEMA", "LOG_JSON"):
        monkeypatch.delenv(name, raising=False)

    settings = config.Settings(_env_file=None)

    assert settings.warehouse_backend == "bigquery"
    assert settings.bq_dataset_id == "pim_suporte"
    assert settings.id_allocation == "max_plus_one"
    assert settings.db_schema == "public"
    assert settings.query_timeout_seconds > 0
    assert settings.log_json is False


def test_settings_read_environment_aliases(monkeypatch):
    monkeypatch.setenv("WAREHOUSE_BACKEND", "postgres")
    monkeypatch.setenv("ID_ALLOCATION", "locked")
    monkeypatch.setenv("GCP_PROJECT_ID", "pim-4")

    settings = config.Settings(_env_file=None)

    assert settings.warehouse_backend == "postgres"
    assert settings.id_allocation == "locked"
    assert settings.gcp_project_id == "pim-4"


def test_available_backends_contains_known_entries():
    names = available_backends()
    assert names == ["bigquery", "postgres"]


def test_create_query_service_follows_settings():
    settings = config.Settings(_env_file=None, warehouse_backend="postgres")

    assert isinstance(create_query_service(settings=settings), PostgresQueryService)
    assert isinstance(create_query_service("bigquery", settings=settings), BigQueryService)


def test_create_query_service_rejects_unknown_backend():
    with pytest.raises(ValueError, match="Unknown backend 'snowflake'"):
        create_query_service("snowflake", settings=config.Settings(_env_file=None))
