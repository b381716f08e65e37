"""Pytest configuration and fixtures for TypeScope tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from typescope.audit.service import AuditTrailService, reset_audit_service
from typescope.audit.sink import InMemoryAuditSink
from typescope.config.cache import ConfigCache, reset_config_cache
from typescope.config.store import ConfigOverrideStore, reset_config_store
from typescope.persistence.db import reset_engines
from typescope.persistence.repositories import clear_all_config_stores
from typescope.persistence.schema import create_schema
from typescope.persistence.unit_of_work import InMemoryConfigBackend, SqlConfigBackend

TYPESCOPE_ENV_VARS = (
    "TYPESCOPE_DATABASE_URL",
    "TYPESCOPE_DATABASE_ADMIN_URL",
    "TYPESCOPE_CONFIG_CACHE_TTL_SECONDS",
    "TYPESCOPE_STORE_MAX_RETRIES",
    "TYPESCOPE_STORE_RETRY_BACKOFF_SECONDS",
    "TYPESCOPE_AUDIT_LOG_PATH",
    "TYPESCOPE_LLM_BACKEND",
    "TYPESCOPE_OTEL_ENABLED",
    "TYPESCOPE_OTEL_TEST_CAPTURE",
)


@pytest.fixture(autouse=True)
def isolated_config_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Give every test empty in-memory stores and a clean environment.

    Store retries are disabled so tests that simulate an unreachable store
    do not sleep through the backoff.
    """
    for key in TYPESCOPE_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("TYPESCOPE_STORE_RETRY_BACKOFF_SECONDS", "0")

    clear_all_config_stores()
    reset_config_cache()
    reset_config_store()
    reset_audit_service()
    reset_engines()
    yield
    clear_all_config_stores()
    reset_config_cache()
    reset_config_store()
    reset_audit_service()
    reset_engines()


@pytest.fixture
def neutral_responses() -> list[int]:
    """108 responses of 5: every trait lands exactly on the MBTI threshold."""
    return [5] * 108


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def audit_service(audit_sink: InMemoryAuditSink) -> AuditTrailService:
    return AuditTrailService(backend=InMemoryConfigBackend(), sink=audit_sink)


@pytest.fixture
def config_store(audit_service: AuditTrailService) -> ConfigOverrideStore:
    """In-memory store with a private cache."""
    return ConfigOverrideStore(audit=audit_service, cache=ConfigCache(ttl_seconds=30))


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    """Single-connection in-memory SQLite engine with the store schema."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_config_store(sqlite_engine: Engine, audit_sink: InMemoryAuditSink) -> ConfigOverrideStore:
    """Store backed by SQLite through the SQL repositories."""
    audit = AuditTrailService(backend=SqlConfigBackend(sqlite_engine), sink=audit_sink)
    return ConfigOverrideStore(audit=audit, cache=ConfigCache(ttl_seconds=0))
