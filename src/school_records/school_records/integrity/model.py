from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class RequestMeta:
    """Caller metadata forwarded into audit records. Every field is optional."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class CascadeResult:
    classes_updated: int
    subjects_removed: int
    # Documents modified per reference kind.
    repairs: dict[str, int] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict:
        return {
            "classesUpdated": self.classes_updated,
            "subjectsRemoved": self.subjects_removed,
            "repairs": dict(self.repairs),
        }
