"""
Seen-set persistence: which listing ids were already delivered.

Two interchangeable stores share the ``has_seen`` / ``mark_seen`` contract.
``open_seen_store`` picks one once at startup; when the database cannot be
used the watcher keeps running with ``NullSeenStore`` and simply re-sends.
"""
import logging
import os
import sqlite3
from typing import Optional

from .models import Listing
from .utils import now_iso

logger = logging.getLogger(__name__)


# Schema definitions
DDL_SEEN = """
CREATE TABLE IF NOT EXISTS seen (
  namespace TEXT NOT NULL,
  item_id TEXT NOT NULL,
  url TEXT,
  title TEXT,
  price INTEGER,
  delivered_at TEXT,
  PRIMARY KEY (namespace, item_id)
);
"""

DDL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_seen_delivered_at ON seen(delivered_at);",
]


def db_connect(path: str) -> sqlite3.Connection:
    """Create database connection with optimized settings."""
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def db_init(conn: sqlite3.Connection):
    """Initialize database schema with tables and indexes."""
    conn.execute(DDL_SEEN)
    for ddl in DDL_INDEXES:
        conn.execute(ddl)
    conn.commit()


class NullSeenStore:
    """Store used when persistence is unavailable: nothing is ever seen."""

    def has_seen(self, item_id: str) -> bool:
        return False

    def mark_seen(self, listing: Listing) -> None:
        return None

    def close(self) -> None:
        return None


class SqliteSeenStore:
    """Seen-set backed by a SQLite table keyed by (namespace, item_id)."""

    def __init__(self, conn: sqlite3.Connection, namespace: str = "seen_v3"):
        self.conn = conn
        self.namespace = namespace

    def has_seen(self, item_id: str) -> bool:
        try:
            cur = self.conn.execute(
                "SELECT 1 FROM seen WHERE namespace = ? AND item_id = ?",
                (self.namespace, item_id),
            )
            return cur.fetchone() is not None
        except sqlite3.Error as e:
            logger.warning(f"Seen lookup failed for {item_id}, treating as new: {e}")
            return False

    def mark_seen(self, listing: Listing) -> None:
        try:
            self.conn.execute(
                """
                INSERT OR IGNORE INTO seen (namespace, item_id, url, title, price, delivered_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (self.namespace, listing.item_id, listing.url, listing.title, listing.price, now_iso()),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            logger.warning(f"Failed to mark {listing.item_id} as seen: {e}")

    def close(self) -> None:
        self.conn.close()


def open_seen_store(path: Optional[str], namespace: str = "seen_v3"):
    """Open the SQLite store at ``path``, or fall back to NullSeenStore."""
    if not path:
        logger.info("Seen storage disabled, running without persistence")
        return NullSeenStore()
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        conn = db_connect(path)
        db_init(conn)
    except (sqlite3.Error, OSError) as e:
        logger.warning(f"Seen storage unavailable at {path}, running without persistence: {e}")
        return NullSeenStore()
    logger.info(f"Seen storage enabled: {path}")
    return SqliteSeenStore(conn, namespace)
