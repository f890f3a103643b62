# data/assignment_store.py
from __future__ import annotations
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional
import sqlite3

from caselabel.data.sql_lite_store import connect
from caselabel.states.assignmentState import CaseAssignmentRecord

logger = logging.getLogger("CaseLabel.AssignmentStore")
logger.setLevel(logging.INFO)

CASE_ASSIGNMENT_TABLE = "case_assignments"


class StaleSessionError(RuntimeError):
    """The editing session that started a save is gone; the save was rolled back."""


def _ensure_case_assignment_table(conn: sqlite3.Connection) -> None:
    """Create the case_assignments table if it doesn't exist."""
    conn.execute(f"""
        CREATE TABLE IF NOT EXISTS {CASE_ASSIGNMENT_TABLE} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            order_id TEXT NOT NULL,
            case_item_name TEXT NOT NULL,
            case_item_id TEXT,
            assigned_items_json TEXT NOT NULL,
            saved_at TEXT NOT NULL
        )
    """)
    # Index for faster lookups by (user_id, order_id)
    conn.execute(f"""
        CREATE INDEX IF NOT EXISTS idx_case_assignments_user_order
        ON {CASE_ASSIGNMENT_TABLE} (user_id, order_id)
    """)
    conn.commit()


def replace_case_assignments(
    user_id: str,
    order_id: str,
    records: List[CaseAssignmentRecord],
    *,
    is_current: Optional[Callable[[], bool]] = None,
    db_path: Optional[Path] = None,
) -> int:
    """
    Replace every saved record for (user_id, order_id) with `records`.

    Delete and insert run in one transaction: either the new set is stored or
    the old one survives. `is_current` is checked right before committing; if
    it returns False the transaction is rolled back and StaleSessionError raised.

    Returns the number of rows inserted.
    """
    saved_at = datetime.now(timezone.utc).isoformat()
    rows = [
        (
            str(user_id),
            str(order_id),
            rec.containerName,
            rec.containerItemId,
            json.dumps([e.model_dump() for e in rec.contentList], ensure_ascii=False),
            saved_at,
        )
        for rec in records
    ]

    conn = connect(db_path)
    try:
        _ensure_case_assignment_table(conn)
        with conn:
            conn.execute(
                f"DELETE FROM {CASE_ASSIGNMENT_TABLE} WHERE user_id = ? AND order_id = ?",
                (str(user_id), str(order_id)),
            )
            if rows:
                conn.executemany(
                    f"""
                    INSERT INTO {CASE_ASSIGNMENT_TABLE}
                        (user_id, order_id, case_item_name, case_item_id, assigned_items_json, saved_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    rows,
                )
            if is_current is not None and not is_current():
                # raising inside `with conn` rolls the transaction back
                raise StaleSessionError(f"Editing session for order {order_id} ended before the save completed")
    finally:
        conn.close()

    logger.info(f"[AssignmentStore] Replaced assignments for user={user_id} order={order_id}: {len(rows)} row(s)")
    return len(rows)


def load_case_assignments(
    user_id: str,
    order_id: str,
    *,
    db_path: Optional[Path] = None,
) -> List[CaseAssignmentRecord]:
    """Saved records for (user_id, order_id), in the order they were written."""
    conn = connect(db_path)
    try:
        _ensure_case_assignment_table(conn)
        cursor = conn.execute(
            f"""
            SELECT case_item_name, case_item_id, assigned_items_json
            FROM {CASE_ASSIGNMENT_TABLE}
            WHERE user_id = ? AND order_id = ?
            ORDER BY id
            """,
            (str(user_id), str(order_id)),
        )
        return [
            CaseAssignmentRecord(
                containerName=row[0],
                containerItemId=row[1],
                contentList=json.loads(row[2]),
            )
            for row in cursor.fetchall()
        ]
    finally:
        conn.close()


def delete_case_assignments(
    user_id: str,
    order_id: Optional[str] = None,
    *,
    db_path: Optional[Path] = None,
) -> int:
    """Delete saved records for one order, or for every order of the user when order_id is None."""
    conn = connect(db_path)
    try:
        _ensure_case_assignment_table(conn)
        with conn:
            if order_id is None:
                cursor = conn.execute(f"DELETE FROM {CASE_ASSIGNMENT_TABLE} WHERE user_id = ?", (str(user_id),))
            else:
                cursor = conn.execute(
                    f"DELETE FROM {CASE_ASSIGNMENT_TABLE} WHERE user_id = ? AND order_id = ?",
                    (str(user_id), str(order_id)),
                )
        return cursor.rowcount
    finally:
        conn.close()


def list_saved_order_ids(user_id: str, *, db_path: Optional[Path] = None) -> List[str]:
    conn = connect(db_path)
    try:
        _ensure_case_assignment_table(conn)
        cursor = conn.execute(
            f"SELECT DISTINCT order_id FROM {CASE_ASSIGNMENT_TABLE} WHERE user_id = ? ORDER BY order_id",
            (str(user_id),),
        )
        return [row[0] for row in cursor.fetchall()]
    finally:
        conn.close()
