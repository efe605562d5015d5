from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.constants import MYSQL_DUPLICATE_KEY
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
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


def is_duplicate_key(err: BaseException) -> bool:
    """True when a write was rejected by a UNIQUE/PRIMARY KEY constraint."""

    return isinstance(err, mysql.connector.IntegrityError) and getattr(err, "errno", None) == MYSQL_DUPLICATE_KEY


def dump_json(value: Any) -> str:
    return json.dumps(value or {}, default=str, ensure_ascii=False)


def load_json(value: Any) -> dict:
    """JSON columns come back as str or bytes depending on the connector build."""

    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value) if value else {}
