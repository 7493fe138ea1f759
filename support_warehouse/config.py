"""
Configuration settings for the support warehouse helper.

Uses Pydantic Settings to load environment variables for the warehouse backend
(BigQuery or PostgreSQL), credentials, identifier allocation and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Backend selection
    warehouse_backend: Literal["bigquery", "postgres"] = Field(
        "bigquery", alias="WAREHOUSE_BACKEND"
    )

    # BigQuery
    gcp_project_id: Optional[str] = Field(None, alias="GCP_PROJECT_ID")
    gcp_credentials_path: Optional[str] = Field(None, alias="GOOGLE_APPLICATION_CREDENTIALS")
    bq_dataset_id: str = Field("pim_suporte", alias="BQ_DATASET")
    bq_location: Optional[str] = Field(None, alias="BQ_LOCATION")
    query_timeout_seconds: float = Field(60.0, alias="QUERY_TIMEOUT_SECONDS")

    # PostgreSQL
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("pim_suporte", alias="DB_NAME")
    db_schema: str = Field("public", alias="DB_SCHEMA")

    # Identifier allocation
    id_allocation: Literal["max_plus_one", "locked"] = Field(
        "max_plus_one", alias="ID_ALLOCATION"
    )

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
