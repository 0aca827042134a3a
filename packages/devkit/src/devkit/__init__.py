"""Common runtime devkit for service infrastructure concerns."""

from devkit.config import ServiceSettings, load_settings
from devkit.db import (
    AsyncDatabaseManager,
    Base,
    create_all_tables,
    create_async_engine,
    create_session_factory,
    is_postgres_dsn,
    is_transient_db_error,
    normalize_postgres_dsn,
)
from devkit.observability import (
    LOG_FORMAT,
    ContextFormatter,
    configure_logging,
    configure_otel,
    configure_probe_access_log_filter,
)

__all__ = [
    "LOG_FORMAT",
    "AsyncDatabaseManager",
    "Base",
    "ContextFormatter",
    "ServiceSettings",
    "configure_logging",
    "configure_otel",
    "configure_probe_access_log_filter",
    "create_all_tables",
    "create_async_engine",
    "create_session_factory",
    "is_postgres_dsn",
    "is_transient_db_error",
    "load_settings",
    "normalize_postgres_dsn",
]
