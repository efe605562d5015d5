from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .repository import ClassRepository


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def clear_primary_teacher(self, teacher_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE classes SET teacher_id=NULL WHERE teacher_id=%s", (teacher_id,))
            return int(cur.rowcount)

    def remove_subject_assignments(self, teacher_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            # Counted per class document, not per removed entry.
            cur.execute(
                """
                SELECT COUNT(DISTINCT class_id) AS affected
                FROM class_subjects
                WHERE teacher_id=%s
                FOR UPDATE
                """,
                (teacher_id,),
            )
            row = fetchone(cur)
            cur.execute("DELETE FROM class_subjects WHERE teacher_id=%s", (teacher_id,))
            return int(row["affected"]) if row else 0
