"""
Export utilities for collected and delivered listings.
"""
import logging
import sqlite3
from typing import List, Optional

import pandas as pd

from .models import Listing

logger = logging.getLogger(__name__)


def export_delivered_since(
    conn: sqlite3.Connection,
    since_iso: str,
    namespace: Optional[str] = None
) -> pd.DataFrame:
    """Export seen entries delivered at or after the given timestamp."""
    q = "SELECT * FROM seen WHERE delivered_at >= ?"
    params = [since_iso]
    if namespace:
        q += " AND namespace = ?"
        params.append(namespace)
    q += " ORDER BY delivered_at DESC"
    return pd.read_sql_query(q, conn, params=tuple(params))


def write_frame(df: pd.DataFrame, out_path: str):
    """Write a DataFrame to CSV or Excel depending on the file extension."""
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)


def save_output_rows(listings: List[Listing], out_path: str) -> int:
    """Save listings to CSV or Excel file."""
    columns = list(Listing(item_id="", url="").to_row().keys())
    df = pd.DataFrame([x.to_row() for x in listings], columns=columns)
    write_frame(df, out_path)
    logger.info(f">>> Saved {len(df)} rows to {out_path}")
    return len(df)
