"""Scoring config foundation: versioned config, user overrides, audit log, snapshots.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the configuration store tables:
- scoring_config: single versioned global override record
- user_overrides: per-user final-label overrides
- config_audit_log: append-only audit log with immutability trigger
- config_snapshots: append-only restorable snapshots
"""

from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Apply migration: create tables, indexes and immutability triggers."""

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS scoring_config (
            config_key TEXT PRIMARY KEY,
            version INTEGER NOT NULL CHECK (version >= 1),
            overrides JSONB NOT NULL,
            updated_by TEXT NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL
        )
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS user_overrides (
            user_id TEXT PRIMARY KEY,
            overrides JSONB NOT NULL,
            reason TEXT,
            created_by TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL
        )
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS config_audit_log (
            seq BIGSERIAL PRIMARY KEY,
            id TEXT NOT NULL UNIQUE,
            created_at TIMESTAMPTZ NOT NULL,
            user_id TEXT NOT NULL,
            action TEXT NOT NULL,
            target TEXT NOT NULL,
            framework TEXT,
            change_description TEXT NOT NULL,
            old_values JSONB,
            new_values JSONB,
            metadata JSONB NOT NULL
        )
        """
    )

    op.execute(
        """
        CREATE INDEX IF NOT EXISTS ix_config_audit_log_created_at
        ON config_audit_log (created_at)
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS config_snapshots (
            seq BIGSERIAL PRIMARY KEY,
            id TEXT NOT NULL UNIQUE,
            created_at TIMESTAMPTZ NOT NULL,
            user_id TEXT NOT NULL,
            description TEXT NOT NULL,
            config_data JSONB NOT NULL,
            changes_summary JSONB NOT NULL
        )
        """
    )

    op.execute(
        """
        CREATE OR REPLACE FUNCTION typescope_reject_audit_mutation()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION '% rows are immutable: UPDATE and DELETE are not allowed', TG_TABLE_NAME;
        END;
        $$ LANGUAGE plpgsql
        """
    )

    op.execute(
        """
        CREATE TRIGGER config_audit_log_immutability
        BEFORE UPDATE OR DELETE ON config_audit_log
        FOR EACH ROW EXECUTE FUNCTION typescope_reject_audit_mutation()
        """
    )

    op.execute(
        """
        CREATE TRIGGER config_snapshots_immutability
        BEFORE UPDATE OR DELETE ON config_snapshots
        FOR EACH ROW EXECUTE FUNCTION typescope_reject_audit_mutation()
        """
    )


def downgrade() -> None:
    """Revert migration: drop triggers, function and tables."""

    op.execute("DROP TRIGGER IF EXISTS config_snapshots_immutability ON config_snapshots")
    op.execute("DROP TRIGGER IF EXISTS config_audit_log_immutability ON config_audit_log")
    op.execute("DROP FUNCTION IF EXISTS typescope_reject_audit_mutation()")

    op.execute("DROP TABLE IF EXISTS config_snapshots")
    op.execute("DROP TABLE IF EXISTS config_audit_log")
    op.execute("DROP TABLE IF EXISTS user_overrides")
    op.execute("DROP TABLE IF EXISTS scoring_config")
