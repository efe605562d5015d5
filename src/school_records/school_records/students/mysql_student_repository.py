from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Student
from .repository import StudentRepository


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT student_id, first_name, last_name, class_id FROM students WHERE student_id=%s",
                (student_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Student(
                student_id=r["student_id"],
                first_name=r["first_name"],
                last_name=r.get("last_name"),
                class_id=r.get("class_id"),
            )
