"""Short-TTL read cache for the effective global scoring config.

The latest ScoringConfigRecord is read on every scoring call, so it is held
for a few seconds. Writes through ConfigOverrideStore invalidate the cache;
other processes see a change once their own entry expires.

Environment Variables:
    TYPESCOPE_CONFIG_CACHE_TTL_SECONDS: Entry lifetime (default 30, 0 disables).
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from typescope.config.overrides import ScoringConfigRecord

logger = logging.getLogger(__name__)

CACHE_TTL_ENV = "TYPESCOPE_CONFIG_CACHE_TTL_SECONDS"
DEFAULT_CACHE_TTL_SECONDS = 30.0


def _ttl_from_env() -> float:
    raw = os.environ.get(CACHE_TTL_ENV)
    if not raw:
        return DEFAULT_CACHE_TTL_SECONDS
    try:
        return max(0.0, float(raw))
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", CACHE_TTL_ENV, raw)
        return DEFAULT_CACHE_TTL_SECONDS


@dataclass(frozen=True)
class CachedConfig:
    """A cached read. `record` is None when no global config exists."""

    record: ScoringConfigRecord | None
    expires_at: datetime


class ConfigCache:
    """Single-entry TTL cache for the latest global config record.

    Args:
        ttl_seconds: Entry lifetime; defaults to the environment setting.
    """

    def __init__(self, ttl_seconds: float | None = None) -> None:
        self._ttl = _ttl_from_env() if ttl_seconds is None else ttl_seconds
        self._entry: CachedConfig | None = None
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self) -> CachedConfig | None:
        """Return the cached read, or None when missing or expired."""
        with self._lock:
            entry = self._entry
            if entry is None:
                return None
            if datetime.now(UTC) >= entry.expires_at:
                self._entry = None
                return None
            return entry

    def put(self, record: ScoringConfigRecord | None) -> None:
        if self._ttl <= 0:
            return
        with self._lock:
            self._entry = CachedConfig(
                record=record,
                expires_at=datetime.now(UTC) + timedelta(seconds=self._ttl),
            )

    def invalidate(self) -> None:
        with self._lock:
            self._entry = None
        logger.info("Scoring config cache invalidated")


_config_cache: ConfigCache | None = None


def get_config_cache() -> ConfigCache:
    """Get the process-wide config cache."""
    global _config_cache
    if _config_cache is None:
        _config_cache = ConfigCache()
    return _config_cache


def reset_config_cache() -> None:
    """Drop the process-wide cache so the next call re-reads the TTL (for testing)."""
    global _config_cache
    _config_cache = None
