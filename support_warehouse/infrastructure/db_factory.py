"""
Client and connection factory utilities for the support warehouse.

Centralizes how BigQuery clients are built from service-account credentials and
how PostgreSQL connections are opened. Connection establishment for PostgreSQL
retries transient failures using tenacity; queries and inserts never retry.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from google.auth.exceptions import GoogleAuthError
from google.cloud import bigquery
from google.oauth2 import service_account
from psycopg import AsyncConnection
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from support_warehouse.config import Settings, get_settings
from support_warehouse.errors import AuthenticationFailure, ConnectionFailure
from support_warehouse.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a PostgreSQL DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def load_credentials(path: str) -> service_account.Credentials:
    """
    Load service-account credentials from a JSON key file.

    Raises
    ------
    AuthenticationFailure
        If the file is missing, unreadable, or not a valid service-account key.
    """
    try:
        return service_account.Credentials.from_service_account_file(path)
    except (OSError, ValueError, KeyError, GoogleAuthError) as exc:
        raise AuthenticationFailure(f"Unable to load credentials from '{path}': {exc}") from exc


def get_bigquery_client(settings: Optional[Settings] = None) -> bigquery.Client:
    """
    Create an authenticated BigQuery client.

    Uses the configured service-account file when present and Application
    Default Credentials otherwise.

    Raises
    ------
    ConnectionFailure
        If no project id is configured.
    AuthenticationFailure
        If credentials cannot be loaded.
    """
    settings = settings or get_settings()
    if not settings.gcp_project_id:
        raise ConnectionFailure("GCP_PROJECT_ID is not configured")

    credentials = None
    if settings.gcp_credentials_path:
        credentials = load_credentials(settings.gcp_credentials_path)

    try:
        client = bigquery.Client(
            project=settings.gcp_project_id,
            credentials=credentials,
            location=settings.bq_location,
        )
    except GoogleAuthError as exc:
        raise AuthenticationFailure(f"BigQuery credentials rejected: {exc}") from exc

    log.info(
        "BigQuery client created",
        extra={"project": settings.gcp_project_id, "dataset": settings.bq_dataset_id},
    )
    return client


_CREDENTIAL_REJECTIONS = ("authentication failed", "no password supplied")


def is_credential_rejection(exc: BaseException) -> bool:
    """True when PostgreSQL refused the login itself."""
    text = str(exc)
    return any(marker in text for marker in _CREDENTIAL_REJECTIONS)


def _is_transient(exc: BaseException) -> bool:
    return isinstance(
        exc, (psycopg.OperationalError, psycopg.InterfaceError)
    ) and not is_credential_rejection(exc)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)
async def get_async_connection(dsn: Optional[str] = None) -> AsyncConnection:
    """
    Open an asynchronous PostgreSQL connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Rejected credentials are raised on the first attempt.

    Returns
    -------
    AsyncConnection
        A new psycopg async connection (autocommit off).

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return await AsyncConnection.connect(dsn or build_dsn())


__all__ = [
    "build_dsn",
    "load_credentials",
    "get_bigquery_client",
    "get_async_connection",
    "is_credential_rejection",
]
