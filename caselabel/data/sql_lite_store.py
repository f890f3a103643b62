# data/sql_lite_store.py
import os
import re
import sqlite3
from pathlib import Path
from typing import Optional

import pandas as pd
from dotenv import load_dotenv

load_dotenv()

ROOT = Path(__file__).resolve().parents[2]

# One DB file, many tables. CASELABEL_DB_PATH overrides the default location.
LOCAL_DB_PATH = Path(os.getenv("CASELABEL_DB_PATH", str(Path(ROOT, "data", "caselabel.db"))))


# --- Utilities ---
def _resolve(db_path: Optional[Path] = None) -> Path:
    path = Path(db_path) if db_path is not None else LOCAL_DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    return path

def connect(db_path: Optional[Path] = None) -> sqlite3.Connection:
    # WAL improves concurrency; harmless for simple apps
    conn = sqlite3.connect(_resolve(db_path))
    conn.execute("PRAGMA journal_mode=WAL;")
    return conn

def _validate_ident(name: str):
    # allow letters, numbers, underscore; quote when used.
    if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", name):
        raise ValueError(f"Invalid table name: {name!r}")

# --- Tabular export ---
def save_table(
    df: pd.DataFrame,
    table_name: str,
    if_exists: str = "replace",   # "fail" | "replace" | "append"
    db_path: Optional[Path] = None,
):
    """
    Save a DataFrame (e.g. a case manifest) to a table.
    Returns (ok, row_count).
    """
    _validate_ident(table_name)
    if df is None or df.empty:
        return False, 0

    conn = connect(db_path)
    try:
        with conn:
            df.to_sql(table_name, conn, if_exists=if_exists, index=False)
        return True, len(df)
    finally:
        conn.close()


def load_table(table_name: str, db_path: Optional[Path] = None) -> pd.DataFrame:
    _validate_ident(table_name)
    conn = connect(db_path)
    try:
        return pd.read_sql_query(f'SELECT * FROM "{table_name}"', conn)
    except (sqlite3.OperationalError, pd.errors.DatabaseError) as e:
        if "no such table" in str(e).lower():
            return pd.DataFrame()
        raise
    finally:
        conn.close()
