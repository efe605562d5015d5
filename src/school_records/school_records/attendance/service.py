from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional, Sequence, Union

from ..common.datetime_utils import Clock, SystemClock
from ..common.validators import require_enum, require_non_empty
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyMarkedError, NotFoundError, OutOfWindowError, ValidationError
from ..students.repository import StudentRepository
from .model import AttendancePatch, AttendanceRecord, next_totals
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """Per-student daily marks with running totals.

    One record per student per day. The uniqueness rule is enforced by the
    repository's storage constraint; the lookup done here only gives a faster,
    friendlier error in the common case.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        students: Optional[StudentRepository] = None,
        clock: Optional[Clock] = None,
    ):
        self._attendance = attendance
        self._students = students
        self._clock = clock or SystemClock()

    def mark(
        self,
        student_id: str,
        work_date: Optional[date],
        status: Union[AttendanceStatus, str],
    ) -> AttendanceRecord:
        student_id = require_non_empty(student_id, "studentID")
        status = require_enum(status, AttendanceStatus, "status")

        today = self._clock.today()
        work_date = work_date or today
        if work_date > today:
            raise ValidationError("Attendance cannot be marked for a future date")

        if self._students is not None and self._students.get_by_id(student_id) is None:
            raise NotFoundError(f"Student {student_id} not found")

        if self._attendance.get_for_student_and_date(student_id, work_date):
            raise AlreadyMarkedError(f"Attendance is already marked for {student_id} on {work_date}")

        latest = self._attendance.get_latest_for_student(student_id)
        if latest and latest.work_date == work_date:
            raise AlreadyMarkedError(f"Attendance is already marked for {student_id} on {work_date}")
        if latest and latest.work_date > work_date:
            raise ValidationError(
                f"Cannot mark {work_date}: a later record ({latest.work_date}) already exists for {student_id}"
            )

        totals = next_totals(latest, status)
        record = self._attendance.create(
            student_id=student_id,
            work_date=work_date,
            status=status,
            total_present=totals.total_present,
            total_days=totals.total_days,
        )
        logger.debug("Marked %s %s on %s", student_id, status.value, work_date)
        return record

    def amend_today(
        self,
        student_id: str,
        patch: Union[AttendancePatch, Mapping[str, Any]],
        *,
        work_date: Optional[date] = None,
    ) -> AttendanceRecord:
        student_id = require_non_empty(student_id, "studentID")
        today = self._check_window(work_date)
        if not isinstance(patch, AttendancePatch):
            patch = AttendancePatch.from_mapping(patch)

        record = self._attendance.get_for_student_and_date(student_id, today)
        if not record:
            raise NotFoundError(f"No attendance record found for {student_id} today")

        # Today is the newest record, so only its own totals move.
        totals = next_totals(self._attendance.get_latest_before(student_id, today), patch.status)
        updated = self._attendance.update_status(
            attendance_id=record.attendance_id,
            status=patch.status,
            total_present=totals.total_present,
            total_days=totals.total_days,
        )
        if not updated:
            raise NotFoundError(f"No attendance record found for {student_id} today")

        return AttendanceRecord(
            attendance_id=record.attendance_id,
            student_id=record.student_id,
            work_date=record.work_date,
            status=patch.status,
            total_present=totals.total_present,
            total_days=totals.total_days,
        )

    def retract_today(self, student_id: str, *, work_date: Optional[date] = None) -> None:
        student_id = require_non_empty(student_id, "studentID")
        today = self._check_window(work_date)

        record = self._attendance.get_for_student_and_date(student_id, today)
        if not record or not self._attendance.delete(record.attendance_id):
            raise NotFoundError(f"No attendance record found for {student_id} today")

    def query(self, student_id: str) -> Sequence[AttendanceRecord]:
        student_id = require_non_empty(student_id, "studentID")
        return tuple(self._attendance.list_for_student(student_id))

    def list_all(self) -> Sequence[AttendanceRecord]:
        return tuple(self._attendance.list_all())

    def _check_window(self, work_date: Optional[date]) -> date:
        today = self._clock.today()
        if work_date is not None and work_date != today:
            raise OutOfWindowError("Only today's attendance record can be changed")
        return today
