from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Optional

import pytest

from school_records.attendance.model import AttendanceRecord
from school_records.audit.model import AuditEntry, AuditFilter, AuditRecord, AuditSort
from school_records.common.datetime_utils import FixedClock
from school_records.container import assemble
from school_records.core.enums import AttendanceStatus, SortOrder
from school_records.core.exceptions import AlreadyMarkedError
from school_records.students.model import Student
from school_records.teachers.model import Teacher


class InMemoryAuditRepo:
    def __init__(self):
        self.records: list[AuditRecord] = []
        self.fail_with: Optional[Exception] = None
        self._lock = threading.Lock()

    def insert(self, entry: AuditEntry, *, timestamp: datetime) -> AuditRecord:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            rec = AuditRecord(
                id=len(self.records) + 1,
                action=entry.action,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                actor_id=entry.actor_id,
                description=entry.description,
                details=dict(entry.details),
                ip_address=entry.ip_address,
                user_agent=entry.user_agent,
                timestamp=timestamp,
            )
            self.records.append(rec)
            return rec

    def _matching(self, flt: AuditFilter) -> list[AuditRecord]:
        out = []
        for r in self.records:
            if flt.action is not None and r.action != flt.action:
                continue
            if flt.entity_type and r.entity_type != flt.entity_type:
                continue
            if flt.actor_id and r.actor_id != flt.actor_id:
                continue
            if flt.since is not None and r.timestamp < flt.since:
                continue
            if flt.until is not None and r.timestamp >= flt.until:
                continue
            out.append(r)
        return out

    def count(self, flt: AuditFilter) -> int:
        return len(self._matching(flt))

    def find(self, flt: AuditFilter, *, sort: AuditSort, offset: int, limit: int):
        def key(r: AuditRecord):
            value = getattr(r, sort.field)
            value = getattr(value, "value", value)
            return (value is None, value if value is not None else "", r.id)

        rows = sorted(self._matching(flt), key=key, reverse=sort.order == SortOrder.DESC)
        return rows[offset : offset + limit]

    def count_by_action_and_entity(self, *, since: datetime, until: datetime):
        counts: dict[tuple[str, str], int] = {}
        for r in self._matching(AuditFilter(since=since, until=until)):
            k = (r.action.value, r.entity_type)
            counts[k] = counts.get(k, 0) + 1
        return [(a, t, c) for (a, t), c in counts.items()]


class InMemoryAttendanceRepo:
    """Keyed by (student_id, work_date): the key plays the role of the UNIQUE constraint."""

    def __init__(self, *, on_lookup: Optional[Callable[[], None]] = None):
        self._by_key: dict[tuple[str, date], AttendanceRecord] = {}
        self._id = 0
        self._lock = threading.Lock()
        self.on_lookup = on_lookup

    def get_for_student_and_date(self, student_id: str, work_date: date) -> Optional[AttendanceRecord]:
        found = self._by_key.get((student_id, work_date))
        if self.on_lookup is not None:
            self.on_lookup()
        return found

    def _for_student(self, student_id: str) -> list[AttendanceRecord]:
        return sorted((r for r in self._by_key.values() if r.student_id == student_id), key=lambda r: r.work_date)

    def get_latest_for_student(self, student_id: str) -> Optional[AttendanceRecord]:
        rows = self._for_student(student_id)
        return rows[-1] if rows else None

    def get_latest_before(self, student_id: str, work_date: date) -> Optional[AttendanceRecord]:
        rows = [r for r in self._for_student(student_id) if r.work_date < work_date]
        return rows[-1] if rows else None

    def list_for_student(self, student_id: str):
        return self._for_student(student_id)

    def list_all(self):
        return sorted(self._by_key.values(), key=lambda r: (r.work_date, r.student_id))

    def create(self, *, student_id: str, work_date: date, status: AttendanceStatus, total_present: int, total_days: int):
        with self._lock:
            if (student_id, work_date) in self._by_key:
                raise AlreadyMarkedError(f"duplicate key ({student_id}, {work_date})")
            self._id += 1
            rec = AttendanceRecord(
                attendance_id=self._id,
                student_id=student_id,
                work_date=work_date,
                status=status,
                total_present=total_present,
                total_days=total_days,
            )
            self._by_key[(student_id, work_date)] = rec
            return rec

    def update_status(self, *, attendance_id: int, status: AttendanceStatus, total_present: int, total_days: int) -> bool:
        for k, v in list(self._by_key.items()):
            if v.attendance_id == attendance_id:
                self._by_key[k] = replace(v, status=status, total_present=total_present, total_days=total_days)
                return True
        return False

    def delete(self, attendance_id: int) -> bool:
        for k, v in list(self._by_key.items()):
            if v.attendance_id == attendance_id:
                del self._by_key[k]
                return True
        return False


class InMemoryTeachers:
    def __init__(self, teachers: Optional[list[Teacher]] = None):
        self.by_id = {t.teacher_id: t for t in teachers or []}
        self.fail_delete_with: Optional[Exception] = None
        self.deletes = 0
        self.on_lookup: Optional[Callable[[], None]] = None

    def get_by_id(self, teacher_id: str) -> Optional[Teacher]:
        found = self.by_id.get(teacher_id)
        if self.on_lookup is not None:
            self.on_lookup()
        return found

    def delete_by_id(self, teacher_id: str) -> bool:
        if self.fail_delete_with is not None:
            raise self.fail_delete_with
        self.deletes += 1
        return self.by_id.pop(teacher_id, None) is not None


@dataclass(frozen=True)
class SubjectAssignment:
    subject: str
    teacher_id: Optional[str]


@dataclass(frozen=True)
class SchoolClass:
    """Class document shape as the MySQL tables store it: classes plus class_subjects."""

    class_id: str
    class_name: str
    teacher_id: Optional[str] = None
    subjects: tuple[SubjectAssignment, ...] = field(default_factory=tuple)

    def references(self, teacher_id: str) -> bool:
        return self.teacher_id == teacher_id or any(s.teacher_id == teacher_id for s in self.subjects)


class InMemoryClasses:
    def __init__(self, classes: Optional[list[SchoolClass]] = None):
        self.by_id = {c.class_id: c for c in classes or []}
        self.fail_on: dict[str, Exception] = {}
        self.mutations = 0
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    def clear_primary_teacher(self, teacher_id: str) -> int:
        self._check("clear_primary_teacher")
        with self._lock:
            n = 0
            for cid, c in list(self.by_id.items()):
                if c.teacher_id == teacher_id:
                    self.by_id[cid] = replace(c, teacher_id=None)
                    n += 1
            self.mutations += n
            return n

    def remove_subject_assignments(self, teacher_id: str) -> int:
        self._check("remove_subject_assignments")
        with self._lock:
            n = 0
            for cid, c in list(self.by_id.items()):
                kept = tuple(s for s in c.subjects if s.teacher_id != teacher_id)
                if len(kept) != len(c.subjects):
                    self.by_id[cid] = replace(c, subjects=kept)
                    n += 1
            self.mutations += n
            return n

    def referencing(self, teacher_id: str) -> list[SchoolClass]:
        return [c for c in self.by_id.values() if c.references(teacher_id)]


class InMemoryStudents:
    def __init__(self, ids):
        self._ids = set(ids)

    def get_by_id(self, student_id: str) -> Optional[Student]:
        if student_id not in self._ids:
            return None
        return Student(student_id=student_id, first_name=student_id)


def make_class(class_id: str, *, teacher_id=None, subjects=()) -> SchoolClass:
    return SchoolClass(
        class_id=class_id,
        class_name=f"Class {class_id}",
        teacher_id=teacher_id,
        subjects=tuple(SubjectAssignment(subject=s, teacher_id=t) for s, t in subjects),
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 9, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


@pytest.fixture
def audit_repo() -> InMemoryAuditRepo:
    return InMemoryAuditRepo()


@pytest.fixture
def attendance_repo() -> InMemoryAttendanceRepo:
    return InMemoryAttendanceRepo()


@pytest.fixture
def teachers_repo() -> InMemoryTeachers:
    return InMemoryTeachers(
        [
            Teacher(teacher_id="T01", first_name="Ada", last_name="Lovelace", email="ada@school.test", subject="Math"),
            Teacher(teacher_id="T02", first_name="Alan", last_name=None, email="alan@school.test", subject="CS"),
        ]
    )


@pytest.fixture
def classes_repo() -> InMemoryClasses:
    return InMemoryClasses(
        [
            make_class("C1", teacher_id="T01", subjects=[("Science", "T02")]),
            make_class("C2", teacher_id="T02", subjects=[("Math", "T01"), ("Art", "T02")]),
            make_class("C3", subjects=[("Music", None)]),
        ]
    )


@pytest.fixture
def container(audit_repo, attendance_repo, teachers_repo, classes_repo, clock):
    return assemble(
        audit_repo=audit_repo,
        attendance_repo=attendance_repo,
        teachers_repo=teachers_repo,
        classes_repo=classes_repo,
        students_repo=InMemoryStudents({"S001", "S002"}),
        clock=clock,
        max_page_size=100,
    )


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from school_records.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    with client.session_transaction() as sess:
        sess["user_id"] = "A01"
        sess["role"] = "admin"
    return client
