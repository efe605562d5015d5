from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from ..common.validators import require_enum
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's mark for one day.

    ``total_present`` and ``total_days`` are running totals as of this record,
    not recomputed at read time.
    """

    attendance_id: int
    student_id: str
    work_date: date
    status: AttendanceStatus
    total_present: int
    total_days: int

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "studentID": self.student_id,
            "date": self.work_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "totalPresent": self.total_present,
            "totalDays": self.total_days,
        }


@dataclass(frozen=True)
class RunningTotals:
    total_present: int
    total_days: int


def next_totals(prior: Optional[AttendanceRecord], status: AttendanceStatus) -> RunningTotals:
    """Totals for a record that directly follows ``prior`` (or starts the sequence)."""

    present = prior.total_present if prior else 0
    days = prior.total_days if prior else 0
    return RunningTotals(
        total_present=present + (1 if status == AttendanceStatus.PRESENT else 0),
        total_days=days + 1,
    )


@dataclass(frozen=True)
class AttendancePatch:
    """Fields an amendment may change. Date and totals are not directly editable."""

    status: AttendanceStatus

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AttendancePatch":
        unknown = set(data) - {"status"}
        if unknown:
            raise ValidationError(f"Cannot amend field(s): {', '.join(sorted(unknown))}")
        if data.get("status") is None:
            raise ValidationError("status is required")
        return cls(status=require_enum(data["status"], AttendanceStatus, "status"))
