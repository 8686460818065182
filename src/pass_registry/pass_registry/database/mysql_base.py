from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateKeyError, StoreError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

# Unique index name -> logical key reported by DuplicateKeyError.
UNIQUE_KEYS = {
    "uq_passes_cnic": "cnic",
    "uq_passes_category_pass_id": "pass_id",
    "uq_users_username": "username",
}


def translate_error(exc: mysql.connector.Error) -> StoreError:
    """Map a connector error onto the store error taxonomy."""
    if exc.errno == errorcode.ER_DUP_ENTRY:
        message = str(exc.msg or exc)
        for index_name, key in UNIQUE_KEYS.items():
            if index_name in message:
                return DuplicateKeyError(message, key=key)
        return DuplicateKeyError(message, key="unknown")
    return StoreError(str(exc))


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor) inside one transaction: commit on success, rollback on any error."""
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        logger.error("Database connection failed: %s", exc)
        raise StoreError(f"Database connection failed: {exc}") from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        raise translate_error(exc) from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
