"""Persistence layer for the configuration store.

SQLAlchemy engine and connection helpers, table definitions, repositories,
the transactional backend and Alembic migrations.
"""
