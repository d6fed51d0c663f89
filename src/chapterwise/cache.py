"""
Result cache using SQLite.

Stores JSON payloads under a stable identity derived from a cache key and
its parameters, with a per-entry expiry.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Union

from .models import CacheResult

logger = logging.getLogger(__name__)


def cache_identity(key: str, params: Dict[str, Any]) -> str:
    """Stable slot id: same key and params give the same id regardless of dict order."""
    payload = json.dumps({"key": key, "params": params}, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ResultCache(Protocol):
    def get(self, key: str, params: Dict[str, Any]) -> Optional[Any]:
        ...

    async def with_cache(
        self,
        compute_fn: Callable[[], Awaitable[Any]],
        key: str,
        params: Dict[str, Any],
        *,
        ttl: float,
        bypass_cache: bool = False,
        encode: Optional[Callable[[Any], Any]] = None,
        decode: Optional[Callable[[Any], Any]] = None,
    ) -> CacheResult:
        ...


class SQLiteResultCache:
    """SQLite-backed implementation of the cache boundary."""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        """
        Initialize the cache.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = str(db_path)
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self.create_tables()

    def create_tables(self) -> None:
        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS cache_entries (
                identity TEXT PRIMARY KEY,
                cache_key TEXT NOT NULL,
                params TEXT NOT NULL,
                payload TEXT NOT NULL,
                expires_at REAL NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_cache_key ON cache_entries(cache_key)
        """)
        self.conn.commit()

    def get(self, key: str, params: Dict[str, Any]) -> Optional[Any]:
        """Return the decoded JSON payload for a live entry, or None."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT payload, expires_at FROM cache_entries WHERE identity = ?",
            (cache_identity(key, params),),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        if row["expires_at"] < time.time():
            self.delete(key, params)
            return None
        return json.loads(row["payload"])

    def set(self, key: str, params: Dict[str, Any], value: Any, ttl: float) -> None:
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT OR REPLACE INTO cache_entries (identity, cache_key, params, payload, expires_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                cache_identity(key, params),
                key,
                json.dumps(params, sort_keys=True),
                json.dumps(value, sort_keys=True),
                time.time() + ttl,
            ),
        )
        self.conn.commit()

    def delete(self, key: str, params: Dict[str, Any]) -> None:
        cursor = self.conn.cursor()
        cursor.execute(
            "DELETE FROM cache_entries WHERE identity = ?", (cache_identity(key, params),)
        )
        self.conn.commit()

    def clear(self, key: Optional[str] = None) -> int:
        """Delete all entries, or only those stored under `key`. Returns rows removed."""
        cursor = self.conn.cursor()
        if key is None:
            cursor.execute("DELETE FROM cache_entries")
        else:
            cursor.execute("DELETE FROM cache_entries WHERE cache_key = ?", (key,))
        self.conn.commit()
        return cursor.rowcount

    async def with_cache(
        self,
        compute_fn: Callable[[], Awaitable[Any]],
        key: str,
        params: Dict[str, Any],
        *,
        ttl: float,
        bypass_cache: bool = False,
        encode: Optional[Callable[[Any], Any]] = None,
        decode: Optional[Callable[[Any], Any]] = None,
    ) -> CacheResult:
        """
        Return the cached value for (key, params) or compute and store it.

        Args:
            compute_fn: Coroutine function producing the value on a miss
            key: Cache key (usually the action or source name)
            params: Parameters that complete the cache identity
            ttl: Seconds the stored value stays valid
            bypass_cache: Skip the lookup but still store the fresh value
            encode: Converts the computed value into JSON-compatible data
            decode: Converts stored JSON data back into the value

        Returns:
            CacheResult with the value and whether it came from the cache

        Exceptions raised by compute_fn propagate and nothing is stored.
        """
        if not bypass_cache:
            stored = self.get(key, params)
            if stored is not None:
                logger.debug("Cache hit for %s %s", key, params)
                return CacheResult(data=decode(stored) if decode else stored, is_from_cache=True)

        value = await compute_fn()
        self.set(key, params, encode(value) if encode else value, ttl)
        return CacheResult(data=value, is_from_cache=False)

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close connection."""
        self.close()
