from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Session roles used for access checks."""

    ADMIN = "admin"
    TEACHER = "teacher"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    SYSTEM = "SYSTEM"


class EntityType(str, Enum):
    """Well-known entity tags. Audit records accept any non-empty tag."""

    TEACHER = "Teacher"
    STUDENT = "Student"
    CLASS = "Class"
    ADMIN = "Admin"
    SYSTEM = "System"


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ReferenceKind(str, Enum):
    """Places in a Class document that can point at a teacher."""

    PRIMARY_TEACHER = "primary_teacher"
    SUBJECT_ASSIGNMENT = "subject_assignment"
