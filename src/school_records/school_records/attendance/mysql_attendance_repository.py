from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyMarkedError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, student_id, work_date, status, total_present, total_days"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=r["student_id"],
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        total_present=int(r["total_present"]),
        total_days=int(r["total_days"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, sql: str, params: tuple) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_student_and_date(self, student_id: str, work_date: date) -> Optional[AttendanceRecord]:
        return self._one(
            f"SELECT {_COLUMNS} FROM attendance_records WHERE student_id=%s AND work_date=%s",
            (student_id, work_date),
        )

    def get_latest_for_student(self, student_id: str) -> Optional[AttendanceRecord]:
        return self._one(
            f"SELECT {_COLUMNS} FROM attendance_records WHERE student_id=%s ORDER BY work_date DESC LIMIT 1",
            (student_id,),
        )

    def get_latest_before(self, student_id: str, work_date: date) -> Optional[AttendanceRecord]:
        return self._one(
            f"""
            SELECT {_COLUMNS}
            FROM attendance_records
            WHERE student_id=%s AND work_date < %s
            ORDER BY work_date DESC
            LIMIT 1
            """,
            (student_id, work_date),
        )

    def list_for_student(self, student_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE student_id=%s ORDER BY work_date ASC",
                (student_id,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records ORDER BY work_date ASC, student_id ASC")
            return [_to_record(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        student_id: str,
        work_date: date,
        status: AttendanceStatus,
        total_present: int,
        total_days: int,
    ) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(student_id, work_date, status, total_present, total_days)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (student_id, work_date, status.value, int(total_present), int(total_days)),
                )
                attendance_id = int(cur.lastrowid)
        except Exception as exc:
            if is_duplicate_key(exc):
                raise AlreadyMarkedError(f"Attendance is already marked for {student_id} on {work_date}") from exc
            raise

        return AttendanceRecord(
            attendance_id=attendance_id,
            student_id=student_id,
            work_date=work_date,
            status=status,
            total_present=int(total_present),
            total_days=int(total_days),
        )

    def update_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        total_present: int,
        total_days: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, total_present=%s, total_days=%s
                WHERE attendance_id=%s
                """,
                (status.value, int(total_present), int(total_days), int(attendance_id)),
            )
            # rowcount is 0 when the values were already equal, so check existence instead.
            return self._exists(cur, attendance_id)

    @staticmethod
    def _exists(cur, attendance_id: int) -> bool:
        cur.execute("SELECT 1 AS found FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
        return fetchone(cur) is not None

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0
