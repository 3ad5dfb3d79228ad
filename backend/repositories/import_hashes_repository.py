"""Key-value stores with per-key TTL used for import hash bookkeeping."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from backend.db.supabase_client import SupabaseClient


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImportHashStore(Protocol):
    def get(self, key: str) -> dict[str, Any] | None:
        """Return the stored value, or ``None`` when missing or expired."""

    def put(self, key: str, value: dict[str, Any], *, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""


class InMemoryImportHashStore:
    """In-memory store used for local dev/tests when Supabase is not configured."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[dict[str, Any], datetime]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return dict(value)

    def put(self, key: str, value: dict[str, Any], *, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._entries[key] = (dict(value), now + timedelta(seconds=ttl_seconds))

    def _purge_expired(self, now: datetime) -> None:
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SupabaseImportHashStore:
    """Store backed by a PostgREST table with ``key``, ``value`` and ``expires_at`` columns."""

    def __init__(
        self,
        client: SupabaseClient,
        table: str = "import_hashes",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._table = table
        self._clock = clock

    def get(self, key: str) -> dict[str, Any] | None:
        rows = self._client.get_rows(
            table=self._table,
            query={
                "select": "value",
                "key": f"eq.{key}",
                "expires_at": f"gt.{self._clock().isoformat()}",
                "limit": 1,
            },
        )
        if not rows:
            return None
        value = rows[0].get("value")
        return value if isinstance(value, dict) else None

    def put(self, key: str, value: dict[str, Any], *, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        self._client.upsert_rows(
            table=self._table,
            rows=[{"key": key, "value": value, "expires_at": expires_at.isoformat()}],
            on_conflict="key",
        )
