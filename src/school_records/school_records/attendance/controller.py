from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import error_response, login_required, server_error
from ..container import Container
from ..core.exceptions import DomainError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    ledger = container.attendance_ledger

    @app.route("/attendance", methods=["POST"], endpoint="mark_attendance")
    @login_required
    def mark_attendance():
        data = request.get_json(silent=True) or {}
        try:
            if not data.get("studentID") or not data.get("status"):
                raise ValidationError("Student ID and status are required")
            try:
                work_date = parse_iso_date(data["date"]) if data.get("date") else None
            except ValueError:
                raise ValidationError("date must be YYYY-MM-DD")

            record = ledger.mark(str(data["studentID"]), work_date, data["status"])
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Error marking attendance")
            return server_error("Server error while marking the attendance")

        return jsonify({"success": True, "message": "The attendance has been marked successfully", "data": record.to_dict()}), 201

    @app.route("/attendance", methods=["GET"], endpoint="list_attendance")
    @login_required
    def list_attendance():
        try:
            records = ledger.list_all()
        except Exception:
            logger.exception("Error fetching attendance")
            return server_error("Server error fetching attendance")
        return jsonify({"success": True, "data": [r.to_dict() for r in records]})

    @app.route("/attendance/<student_id>", methods=["GET"], endpoint="student_attendance")
    @login_required
    def student_attendance(student_id: str):
        try:
            records = ledger.query(student_id)
            if not records:
                raise NotFoundError("No attendance records found for this student")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Error fetching attendance for %s", student_id)
            return server_error("Server error fetching student attendance")
        return jsonify({"success": True, "data": [r.to_dict() for r in records]})

    @app.route("/attendance/<student_id>", methods=["PATCH"], endpoint="amend_attendance")
    @login_required
    def amend_attendance(student_id: str):
        data = request.get_json(silent=True) or {}
        try:
            record = ledger.amend_today(student_id, data)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Error amending attendance for %s", student_id)
            return server_error("Server error while updating the attendance")
        return jsonify({"success": True, "message": "Today's attendance updated", "data": record.to_dict()})

    @app.route("/attendance/<student_id>", methods=["DELETE"], endpoint="retract_attendance")
    @login_required
    def retract_attendance(student_id: str):
        try:
            ledger.retract_today(student_id)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Error retracting attendance for %s", student_id)
            return server_error("Server error while deleting attendance")
        return jsonify({"success": True, "message": "Today's attendance deleted successfully"})
