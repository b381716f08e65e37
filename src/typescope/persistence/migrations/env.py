"""Alembic environment for the TypeScope config store.

Run through typescope.persistence.migrate, which hands over an open
connection in config.attributes["connection"]. Revisions are tracked in
their own version table so the store can share a database with other
Alembic-managed applications.
"""

from __future__ import annotations

from alembic import context

from typescope.persistence.db import get_admin_engine, get_database_url
from typescope.persistence.schema import metadata

config = context.config
version_table = config.get_main_option("version_table") or "alembic_version"


def _configure(**kwargs: object) -> None:
    context.configure(target_metadata=metadata, version_table=version_table, **kwargs)


def run_migrations_offline() -> None:
    """Emit SQL for the admin database URL instead of executing it."""
    _configure(url=get_database_url(admin=True), literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is None:
        with get_admin_engine().connect() as owned:
            _configure(connection=owned)
            with context.begin_transaction():
                context.run_migrations()
        return

    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
