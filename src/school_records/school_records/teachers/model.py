from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Teacher:
    teacher_id: str
    first_name: str
    last_name: Optional[str]
    email: str
    subject: Optional[str] = None

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def audit_info(self) -> dict:
        return {
            "teacherID": self.teacher_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "subject": self.subject,
        }
