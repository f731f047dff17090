"""SQLite-based cache for raw search engine results."""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)


class SearchCache:
    """Per (engine, query) cache of organic results with a day-based TTL."""

    def __init__(self, db_path: str = ".discovery_cache.db", max_age_days: int = 3):
        self.db_path = db_path
        self.max_age_days = max_age_days
        self.conn: sqlite3.Connection | None = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database tables."""
        try:
            self.conn = sqlite3.connect(self.db_path, timeout=10, check_same_thread=False)
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.executescript("""
                CREATE TABLE IF NOT EXISTS search_cache (
                    query_hash TEXT PRIMARY KEY,
                    engine TEXT NOT NULL,
                    query TEXT NOT NULL,
                    results TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );
            """)
            self.conn.commit()
        except sqlite3.Error as e:
            logger.warning("Cache init failed: %s, running without cache", e)
            self.conn = None

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None

    def get(self, engine: str, query: str) -> list[dict] | None:
        """Get cached results. Returns None if not cached or expired."""
        if self.conn is None:
            return None
        try:
            row = self.conn.execute(
                "SELECT results, created_at FROM search_cache WHERE query_hash = ?",
                (_hash(engine, query),),
            ).fetchone()
        except sqlite3.Error as e:
            logger.debug("Cache read error (search): %s", e)
            return None
        if not row or _is_expired(row[1], self.max_age_days):
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            return None

    def set(self, engine: str, query: str, results: list[dict]) -> None:
        """Store results; empty lists are skipped so blocked pages are retried next time."""
        if self.conn is None or not results:
            return
        try:
            self.conn.execute(
                "INSERT OR REPLACE INTO search_cache (query_hash, engine, query, results, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (_hash(engine, query), engine, query, json.dumps(results), datetime.now().isoformat()),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            logger.debug("Cache write error (search): %s", e)

    def clear(self) -> None:
        if self.conn is None:
            return
        self.conn.execute("DELETE FROM search_cache")
        self.conn.commit()


def _hash(engine: str, query: str) -> str:
    """Simple hash for cache keys."""
    return hashlib.sha256(f"{engine}:{query}".encode()).hexdigest()[:32]


def _is_expired(created_at_str: str, max_age_days: int) -> bool:
    """Check if a cache entry has expired."""
    try:
        created = datetime.fromisoformat(created_at_str)
    except (TypeError, ValueError):
        return True
    return datetime.now() - created > timedelta(days=max_age_days)
