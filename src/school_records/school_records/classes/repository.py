from __future__ import annotations

from typing import Protocol


class ClassRepository(Protocol):
    """Bulk reference repair over class documents.

    Both repair methods return the number of class documents modified.
    """

    def clear_primary_teacher(self, teacher_id: str) -> int:
        """Unset ``teacher_id`` on every class whose primary teacher is ``teacher_id``."""

        raise NotImplementedError

    def remove_subject_assignments(self, teacher_id: str) -> int:
        """Drop every subject-list entry taught by ``teacher_id``."""

        raise NotImplementedError
