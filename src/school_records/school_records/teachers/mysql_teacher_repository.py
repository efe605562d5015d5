from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Teacher
from .repository import TeacherRepository


class MySQLTeacherRepository(TeacherRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, teacher_id: str) -> Optional[Teacher]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT teacher_id, first_name, last_name, email, subject
                FROM teachers
                WHERE teacher_id=%s
                """,
                (teacher_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Teacher(
                teacher_id=r["teacher_id"],
                first_name=r["first_name"],
                last_name=r.get("last_name"),
                email=r["email"],
                subject=r.get("subject"),
            )

    def delete_by_id(self, teacher_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM teachers WHERE teacher_id=%s", (teacher_id,))
            return cur.rowcount > 0
