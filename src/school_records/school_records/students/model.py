from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Student:
    student_id: str
    first_name: str
    last_name: Optional[str] = None
    class_id: Optional[str] = None
