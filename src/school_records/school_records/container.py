from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditLedger
from .classes.mysql_class_repository import MySQLClassRepository
from .classes.repository import ClassRepository
from .common.datetime_utils import Clock, SystemClock
from .core.constants import MAX_PAGE_SIZE
from .database.connection import DBConfig, DatabaseConnection
from .integrity.service import ReferentialIntegrityCoordinator
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .teachers.mysql_teacher_repository import MySQLTeacherRepository
from .teachers.repository import TeacherRepository


@dataclass(frozen=True)
class Container:
    audit_repo: AuditRepository
    attendance_repo: AttendanceRepository
    teachers_repo: TeacherRepository
    classes_repo: ClassRepository
    students_repo: Optional[StudentRepository]

    audit_ledger: AuditLedger
    attendance_ledger: AttendanceLedger
    integrity_coordinator: ReferentialIntegrityCoordinator


def assemble(
    *,
    audit_repo: AuditRepository,
    attendance_repo: AttendanceRepository,
    teachers_repo: TeacherRepository,
    classes_repo: ClassRepository,
    students_repo: Optional[StudentRepository] = None,
    clock: Optional[Clock] = None,
    max_page_size: int = MAX_PAGE_SIZE,
) -> Container:
    """Wire services over any repository implementations."""

    clock = clock or SystemClock()
    audit_ledger = AuditLedger(audit_repo, clock=clock, max_page_size=max_page_size)
    attendance_ledger = AttendanceLedger(attendance_repo, students=students_repo, clock=clock)
    integrity_coordinator = ReferentialIntegrityCoordinator(teachers_repo, classes_repo, audit_ledger)

    return Container(
        audit_repo=audit_repo,
        attendance_repo=attendance_repo,
        teachers_repo=teachers_repo,
        classes_repo=classes_repo,
        students_repo=students_repo,
        audit_ledger=audit_ledger,
        attendance_ledger=attendance_ledger,
        integrity_coordinator=integrity_coordinator,
    )


def build_container(*, db_config: dict, max_page_size: int = MAX_PAGE_SIZE) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        audit_repo=MySQLAuditRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        teachers_repo=MySQLTeacherRepository(conn),
        classes_repo=MySQLClassRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        max_page_size=max_page_size,
    )
