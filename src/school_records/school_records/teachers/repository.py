from __future__ import annotations

from typing import Optional, Protocol

from .model import Teacher


class TeacherRepository(Protocol):
    """Teacher store as seen by the cascading delete.

    Lookups must be read-after-write consistent on the primary key.
    """

    def get_by_id(self, teacher_id: str) -> Optional[Teacher]:
        raise NotImplementedError

    def delete_by_id(self, teacher_id: str) -> bool:
        raise NotImplementedError
