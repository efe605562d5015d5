from __future__ import annotations

from typing import Optional, Protocol

from .model import Student


class StudentRepository(Protocol):
    """Read-only view of the student store, used to validate attendance marks."""

    def get_by_id(self, student_id: str) -> Optional[Student]:
        raise NotImplementedError
