from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import AuditAction, SortOrder


@dataclass(frozen=True)
class AuditEntry:
    """An audit record before the ledger assigns ``id`` and ``timestamp``."""

    action: AuditAction
    entity_type: str
    entity_id: str
    actor_id: str
    description: str
    details: dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class AuditRecord:
    """Immutable once written."""

    id: int
    action: AuditAction
    entity_type: str
    entity_id: str
    actor_id: str
    description: str
    details: dict[str, Any]
    ip_address: Optional[str]
    user_agent: Optional[str]
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action.value,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "actorId": self.actor_id,
            "description": self.description,
            "details": self.details,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class AuditFilter:
    """Predicates for audit queries; ``None`` means no constraint.

    The timestamp range is inclusive of ``since`` and exclusive of ``until``.
    """

    action: Optional[AuditAction] = None
    entity_type: Optional[str] = None
    actor_id: Optional[str] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None


@dataclass(frozen=True)
class AuditSort:
    field: str
    order: SortOrder


@dataclass(frozen=True)
class Pagination:
    current_page: int
    page_size: int
    total_pages: int
    total_matching: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, *, page: int, page_size: int, total_matching: int) -> "Pagination":
        return cls(
            current_page=page,
            page_size=page_size,
            total_pages=-(-total_matching // page_size),
            total_matching=total_matching,
            has_next=page * page_size < total_matching,
            has_prev=page > 1,
        )

    def to_dict(self) -> dict:
        return {
            "currentPage": self.current_page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            "totalMatching": self.total_matching,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


@dataclass(frozen=True)
class AuditPage:
    records: list[AuditRecord]
    pagination: Pagination


@dataclass(frozen=True)
class EntityCount:
    entity_type: str
    count: int


@dataclass(frozen=True)
class ActionStats:
    action: AuditAction
    total: int
    entities: list[EntityCount]

    def count_for(self, entity_type: str) -> int:
        return sum(e.count for e in self.entities if e.entity_type == entity_type)

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "total": self.total,
            "entities": [{"type": e.entity_type, "count": e.count} for e in self.entities],
        }


@dataclass(frozen=True)
class AuditStats:
    period: str
    start: datetime
    end: datetime
    actions: list[ActionStats]

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "startDate": self.start.isoformat(),
            "endDate": self.end.isoformat(),
            "stats": [a.to_dict() for a in self.actions],
        }
