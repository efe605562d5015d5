from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..common.http import admin_required, current_actor, error_response, request_meta, server_error
from ..container import Container
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/teachers/<teacher_id>", methods=["DELETE"], endpoint="delete_teacher")
    @admin_required
    def delete_teacher(teacher_id: str):
        try:
            result = container.integrity_coordinator.delete_teacher(
                teacher_id,
                actor_id=current_actor(),
                request_meta=request_meta(),
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Unexpected error deleting teacher %s", teacher_id)
            return server_error("Server error while deleting teacher")

        return jsonify(
            {
                "success": True,
                "message": "Teacher deleted successfully with cascading deletions",
                "cascadeResults": result.to_dict(),
            }
        )
