"""
Read-only queries over the seen database for the API.
"""
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Dict, List

logger = logging.getLogger(__name__)


@contextmanager
def get_db_connection(db_path: str):
    """Get a database connection with proper error handling."""
    conn = None
    try:
        if not db_path:
            raise ValueError("Database path not configured")

        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row  # Enable dict-like access
        yield conn
    except sqlite3.Error as e:
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn is not None:
            conn.close()


def seen_db_available(db_path: str) -> bool:
    return bool(db_path) and os.path.exists(db_path)


def get_seen_count(db_path: str, namespace: str) -> int:
    """Count delivered listings in a namespace."""
    with get_db_connection(db_path) as conn:
        result = conn.execute(
            "SELECT COUNT(*) FROM seen WHERE namespace = ?", (namespace,)
        ).fetchone()
        return result[0] if result else 0


def get_seen(db_path: str, namespace: str, limit: int = 50, offset: int = 0) -> List[Dict]:
    """Delivered listings, most recent first."""
    with get_db_connection(db_path) as conn:
        cursor = conn.execute(
            """
            SELECT item_id, url, title, price, delivered_at
            FROM seen WHERE namespace = ?
            ORDER BY delivered_at DESC LIMIT ? OFFSET ?
            """,
            (namespace, limit, offset),
        )
        return [dict(row) for row in cursor.fetchall()]
