from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import AuditEntry, AuditFilter, AuditRecord, AuditSort

# Stored fields that audit queries may sort by.
SORTABLE_FIELDS = (
    "id",
    "action",
    "entity_type",
    "entity_id",
    "actor_id",
    "description",
    "ip_address",
    "user_agent",
    "timestamp",
)


class AuditRepository(Protocol):
    """Append-only audit storage: insert and read, no update or delete."""

    def insert(self, entry: AuditEntry, *, timestamp: datetime) -> AuditRecord:
        raise NotImplementedError

    def count(self, flt: AuditFilter) -> int:
        raise NotImplementedError

    def find(self, flt: AuditFilter, *, sort: AuditSort, offset: int, limit: int) -> Sequence[AuditRecord]:
        raise NotImplementedError

    def count_by_action_and_entity(self, *, since: datetime, until: datetime) -> Sequence[tuple[str, str, int]]:
        """Return ``(action, entity_type, count)`` rows for ``since <= timestamp < until``."""

        raise NotImplementedError
