from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ..core.enums import AuditAction, SortOrder
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import AuditEntry, AuditFilter, AuditRecord, AuditSort
from .repository import SORTABLE_FIELDS, AuditRepository

_COLUMNS = "id, action, entity_type, entity_id, actor_id, description, details, ip_address, user_agent, `timestamp`"


def _where(flt: AuditFilter) -> tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []

    if flt.action is not None:
        clauses.append("action=%s")
        params.append(flt.action.value)
    if flt.entity_type:
        clauses.append("entity_type=%s")
        params.append(flt.entity_type)
    if flt.actor_id:
        clauses.append("actor_id=%s")
        params.append(flt.actor_id)
    if flt.since is not None:
        clauses.append("`timestamp` >= %s")
        params.append(flt.since)
    if flt.until is not None:
        clauses.append("`timestamp` < %s")
        params.append(flt.until)

    where = " AND ".join(clauses) if clauses else "1=1"
    return where, params


def _to_record(r: dict) -> AuditRecord:
    return AuditRecord(
        id=int(r["id"]),
        action=AuditAction(r["action"]),
        entity_type=r["entity_type"],
        entity_id=r["entity_id"],
        actor_id=r["actor_id"],
        description=r["description"],
        details=load_json(r.get("details")),
        ip_address=r.get("ip_address"),
        user_agent=r.get("user_agent"),
        timestamp=r["timestamp"],
    )


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, entry: AuditEntry, *, timestamp: datetime) -> AuditRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_records(
                    action, entity_type, entity_id, actor_id, description, details, ip_address, user_agent, `timestamp`
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.action.value,
                    entry.entity_type,
                    entry.entity_id,
                    entry.actor_id,
                    entry.description,
                    dump_json(entry.details),
                    entry.ip_address,
                    entry.user_agent,
                    timestamp,
                ),
            )
            record_id = int(cur.lastrowid)

        return AuditRecord(
            id=record_id,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            actor_id=entry.actor_id,
            description=entry.description,
            details=dict(entry.details),
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            timestamp=timestamp,
        )

    def count(self, flt: AuditFilter) -> int:
        where, params = _where(flt)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM audit_records WHERE {where}", tuple(params))
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    def find(self, flt: AuditFilter, *, sort: AuditSort, offset: int, limit: int) -> Sequence[AuditRecord]:
        if sort.field not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {sort.field!r}")

        where, params = _where(flt)
        direction = "DESC" if sort.order == SortOrder.DESC else "ASC"
        # id as a tie-breaker keeps paging stable when timestamps collide.
        order_by = f"`{sort.field}` {direction}, id {direction}"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM audit_records
                WHERE {where}
                ORDER BY {order_by}
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_by_action_and_entity(self, *, since: datetime, until: datetime) -> Sequence[tuple[str, str, int]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT action, entity_type, COUNT(*) AS cnt
                FROM audit_records
                WHERE `timestamp` >= %s AND `timestamp` < %s
                GROUP BY action, entity_type
                """,
                (since, until),
            )
            return [(r["action"], r["entity_type"], int(r["cnt"])) for r in fetchall(cur)]
