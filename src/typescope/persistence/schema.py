"""SQLAlchemy Core table definitions for the configuration store.

Production schemas are created by the Alembic migrations (JSONB columns and
the audit immutability trigger on PostgreSQL). These portable definitions
store JSON as text and are used to create the schema on SQLite for local
runs and tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Column, Integer, MetaData, String, Table, Text

if TYPE_CHECKING:
    from sqlalchemy import Engine

metadata = MetaData()

scoring_config = Table(
    "scoring_config",
    metadata,
    Column("config_key", String(64), primary_key=True),
    Column("version", Integer, nullable=False),
    Column("overrides", Text, nullable=False),
    Column("updated_by", String(255), nullable=False),
    Column("updated_at", String(64), nullable=False),
)

user_overrides = Table(
    "user_overrides",
    metadata,
    Column("user_id", String(255), primary_key=True),
    Column("overrides", Text, nullable=False),
    Column("reason", Text),
    Column("created_by", String(255), nullable=False),
    Column("created_at", String(64), nullable=False),
    Column("updated_at", String(64), nullable=False),
)

config_audit_log = Table(
    "config_audit_log",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(64), nullable=False, unique=True),
    Column("created_at", String(64), nullable=False),
    Column("user_id", String(255), nullable=False),
    Column("action", String(32), nullable=False),
    Column("target", String(32), nullable=False),
    Column("framework", String(32)),
    Column("change_description", Text, nullable=False),
    Column("old_values", Text),
    Column("new_values", Text),
    Column("metadata", Text, nullable=False),
)

config_snapshots = Table(
    "config_snapshots",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(64), nullable=False, unique=True),
    Column("created_at", String(64), nullable=False),
    Column("user_id", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("config_data", Text, nullable=False),
    Column("changes_summary", Text, nullable=False),
)


def create_schema(engine: Engine) -> None:
    """Create all store tables that do not exist yet."""
    metadata.create_all(engine)
