"""Database connectivity for the configuration store.

Environment Variables:
    TYPESCOPE_DATABASE_URL: Application connection string. Unset means the
        in-memory repositories are used (single process only).
    TYPESCOPE_DATABASE_ADMIN_URL: Connection string for migrations.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine

from typescope.observability.tracing import instrument_sqlalchemy

if TYPE_CHECKING:
    from sqlalchemy import Connection, Engine

logger = logging.getLogger(__name__)

DATABASE_URL_ENV = "TYPESCOPE_DATABASE_URL"
DATABASE_ADMIN_URL_ENV = "TYPESCOPE_DATABASE_ADMIN_URL"

_app_engine: Engine | None = None
_admin_engine: Engine | None = None


class DatabaseConfigError(Exception):
    """Raised when database configuration is missing or invalid."""


def is_database_configured() -> bool:
    """True if TYPESCOPE_DATABASE_URL is set."""
    return bool(os.environ.get(DATABASE_URL_ENV))


def _normalize_url(url: str) -> str:
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def get_database_url(admin: bool = False) -> str:
    """Get the database URL from environment.

    Args:
        admin: If True, return the admin URL; otherwise the app URL.

    Raises:
        DatabaseConfigError: If the required environment variable is not set.
    """
    env_var = DATABASE_ADMIN_URL_ENV if admin else DATABASE_URL_ENV
    url = os.environ.get(env_var)
    if not url:
        raise DatabaseConfigError(
            f"Database URL not configured. Set {env_var} environment variable."
        )
    return _normalize_url(url)


def _engine_kwargs(url: str, pool_size: int, max_overflow: int) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {"echo": False}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "echo": False,
    }


def get_app_engine() -> Engine:
    """Get or create the application database engine.

    Raises:
        DatabaseConfigError: If TYPESCOPE_DATABASE_URL is not set.
    """
    global _app_engine

    if _app_engine is None:
        url = get_database_url(admin=False)
        _app_engine = create_engine(url, **_engine_kwargs(url, 5, 10))
        instrument_sqlalchemy(_app_engine)
        logger.info("Created application database engine")
    return _app_engine


def get_admin_engine() -> Engine:
    """Get or create the admin (migration) engine.

    Raises:
        DatabaseConfigError: If TYPESCOPE_DATABASE_ADMIN_URL is not set.
    """
    global _admin_engine

    if _admin_engine is None:
        url = get_database_url(admin=True)
        _admin_engine = create_engine(url, **_engine_kwargs(url, 2, 5))
        logger.info("Created admin database engine")
    return _admin_engine


@contextmanager
def begin_app_conn(engine: Engine | None = None) -> Generator[Connection, None, None]:
    """Connection in a transaction; commits on success, rolls back on error.

    Args:
        engine: Engine to use instead of the application engine.

    Raises:
        DatabaseConfigError: If no engine is given and the database is not configured.
        SQLAlchemyError: If a database operation fails.
    """
    engine = engine or get_app_engine()
    with engine.connect() as conn, conn.begin():
        yield conn


def reset_engines() -> None:
    """Dispose and forget the cached engines (for testing)."""
    global _app_engine, _admin_engine
    if _app_engine is not None:
        _app_engine.dispose()
        _app_engine = None
    if _admin_engine is not None:
        _admin_engine.dispose()
        _admin_engine = None
