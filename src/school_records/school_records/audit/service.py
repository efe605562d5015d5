from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from ..common.datetime_utils import Clock, SystemClock
from ..common.validators import optional_text, require_enum, require_non_empty, require_positive_int
from ..core.constants import (
    AUDIT_PERIODS,
    DEFAULT_AUDIT_PERIOD,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_FIELD,
    MAX_PAGE_SIZE,
    SYSTEM_ACTOR,
)
from ..core.enums import AuditAction, SortOrder
from ..core.exceptions import AuditWriteFailure, ValidationError
from .model import (
    ActionStats,
    AuditEntry,
    AuditFilter,
    AuditPage,
    AuditRecord,
    AuditSort,
    AuditStats,
    EntityCount,
    Pagination,
)
from .repository import SORTABLE_FIELDS, AuditRepository

logger = logging.getLogger(__name__)


class AuditLedger:
    """Append-only trail of privileged mutations.

    ``append`` raises :class:`AuditWriteFailure`; ``record`` is the variant used
    alongside a primary operation and only logs that failure.
    """

    def __init__(
        self,
        audits: AuditRepository,
        *,
        clock: Optional[Clock] = None,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self._audits = audits
        self._clock = clock or SystemClock()
        self._max_page_size = int(max_page_size)

    def append(self, entry: AuditEntry) -> AuditRecord:
        entry = self._normalize(entry)
        try:
            record = self._audits.insert(entry, timestamp=self._clock.now())
        except Exception as exc:
            raise AuditWriteFailure(
                f"Could not append audit record {entry.action.value} {entry.entity_type} {entry.entity_id}: {exc}"
            ) from exc

        logger.info("Audit record %s: %s %s by %s", record.id, record.action.value, record.entity_type, record.actor_id)
        return record

    def record(
        self,
        *,
        action: AuditAction,
        entity_type: str,
        entity_id: str,
        actor_id: Optional[str],
        description: str,
        details: Optional[dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditRecord]:
        """Append without ever failing the caller.

        Returns ``None`` when the write failed; the failure goes to the log.
        """

        entry = AuditEntry(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id or SYSTEM_ACTOR,
            description=description,
            details=dict(details or {}),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            return self.append(entry)
        except (AuditWriteFailure, ValidationError):
            logger.exception(
                "Audit write failed for %s %s %s; primary operation outcome is unaffected",
                getattr(action, "value", action),
                entity_type,
                entity_id,
            )
            return None

    def query(
        self,
        flt: Optional[AuditFilter] = None,
        *,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort_field: str = DEFAULT_SORT_FIELD,
        sort_order: SortOrder | str = SortOrder.DESC,
    ) -> AuditPage:
        flt = flt or AuditFilter()
        page = require_positive_int(page, "page")
        page_size = min(require_positive_int(page_size, "pageSize"), self._max_page_size)

        if sort_field not in SORTABLE_FIELDS:
            raise ValidationError(f"Cannot sort by {sort_field!r}")
        if not isinstance(sort_order, SortOrder):
            sort_order = str(sort_order).strip().lower()
        order = require_enum(sort_order, SortOrder, "sortOrder")

        if flt.since and flt.until and flt.since > flt.until:
            raise ValidationError("startDate must not be after endDate")

        total = self._audits.count(flt)
        records = list(
            self._audits.find(
                flt,
                sort=AuditSort(field=sort_field, order=order),
                offset=(page - 1) * page_size,
                limit=page_size,
            )
        )
        return AuditPage(records=records, pagination=Pagination.build(page=page, page_size=page_size, total_matching=total))

    def aggregate(self, window_start: datetime, window_end: datetime) -> list[ActionStats]:
        """Counts per action, broken down by entity type, for ``window_start <= ts < window_end``."""

        if window_start > window_end:
            raise ValidationError("Window start must not be after window end")

        grouped: dict[str, dict[str, int]] = {}
        for action, entity_type, count in self._audits.count_by_action_and_entity(since=window_start, until=window_end):
            per_entity = grouped.setdefault(action, {})
            per_entity[entity_type] = per_entity.get(entity_type, 0) + int(count)

        out: list[ActionStats] = []
        for action, per_entity in grouped.items():
            entities = [EntityCount(entity_type=t, count=c) for t, c in per_entity.items()]
            out.append(ActionStats(action=AuditAction(action), total=sum(per_entity.values()), entities=entities))
        return out

    def stats_for_period(self, period: Optional[str] = None) -> AuditStats:
        period = period if period in AUDIT_PERIODS else DEFAULT_AUDIT_PERIOD
        end = self._clock.now()
        start = end - timedelta(days=AUDIT_PERIODS[period])
        # The window end is exclusive; include records stamped at exactly "now".
        actions = self.aggregate(start, end + timedelta(microseconds=1))
        return AuditStats(period=period, start=start, end=end, actions=actions)

    @staticmethod
    def _normalize(entry: AuditEntry) -> AuditEntry:
        return AuditEntry(
            action=require_enum(entry.action, AuditAction, "action"),
            entity_type=require_non_empty(entry.entity_type, "entityType"),
            entity_id=require_non_empty(entry.entity_id, "entityId"),
            actor_id=optional_text(entry.actor_id) or SYSTEM_ACTOR,
            description=require_non_empty(entry.description, "description"),
            details=dict(entry.details or {}),
            ip_address=optional_text(entry.ip_address),
            user_agent=optional_text(entry.user_agent),
        )
