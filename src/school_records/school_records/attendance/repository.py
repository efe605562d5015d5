from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_student_and_date(self, student_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_latest_for_student(self, student_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_latest_before(self, student_id: str, work_date: date) -> Optional[AttendanceRecord]:
        """Most recent record strictly before ``work_date``."""

        raise NotImplementedError

    def list_for_student(self, student_id: str) -> Sequence[AttendanceRecord]:
        """Chronological (oldest first)."""

        raise NotImplementedError

    def list_all(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        student_id: str,
        work_date: date,
        status: AttendanceStatus,
        total_present: int,
        total_days: int,
    ) -> AttendanceRecord:
        """Insert one record.

        Must raise AlreadyMarkedError when the store's (student_id, work_date)
        uniqueness constraint rejects the row.
        """

        raise NotImplementedError

    def update_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        total_present: int,
        total_days: int,
    ) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError
