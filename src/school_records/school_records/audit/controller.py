from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import admin_required, error_response, server_error
from ..common.validators import optional_text, require_enum
from ..core.constants import DEFAULT_PAGE_SIZE, DEFAULT_SORT_FIELD
from ..core.enums import AuditAction
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import AuditFilter

logger = logging.getLogger(__name__)

# Query-string names for the sortable fields.
_SORT_ALIASES = {
    "entityType": "entity_type",
    "entityId": "entity_id",
    "userId": "actor_id",
    "actorId": "actor_id",
    "ipAddress": "ip_address",
    "userAgent": "user_agent",
}


def _parse_filter(args) -> AuditFilter:
    action = optional_text(args.get("action"))
    try:
        since = parse_iso_datetime(args["startDate"]) if args.get("startDate") else None
        until = parse_iso_datetime(args["endDate"]) if args.get("endDate") else None
    except ValueError:
        raise ValidationError("startDate/endDate must be ISO dates")

    return AuditFilter(
        action=require_enum(action.upper(), AuditAction, "action") if action else None,
        entity_type=optional_text(args.get("entityType")),
        actor_id=optional_text(args.get("userId") or args.get("actorId")),
        since=since,
        until=until,
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/audit", methods=["GET"], endpoint="audit_logs")
    @admin_required
    def audit_logs():
        args = request.args
        try:
            sort_by = args.get("sortBy") or DEFAULT_SORT_FIELD
            result = container.audit_ledger.query(
                _parse_filter(args),
                page=args.get("page", 1),
                page_size=args.get("limit", DEFAULT_PAGE_SIZE),
                sort_field=_SORT_ALIASES.get(sort_by, sort_by),
                sort_order=args.get("sortOrder", "desc"),
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Error fetching audit logs")
            return server_error("Server error while fetching audit logs")

        return jsonify(
            {
                "success": True,
                "logs": [r.to_dict() for r in result.records],
                "pagination": result.pagination.to_dict(),
            }
        )

    @app.route("/admin/audit/stats", methods=["GET"], endpoint="audit_stats")
    @admin_required
    def audit_stats():
        try:
            stats = container.audit_ledger.stats_for_period(request.args.get("period"))
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Error fetching audit stats")
            return server_error("Server error while fetching audit statistics")

        return jsonify({"success": True, **stats.to_dict()})
