from __future__ import annotations

import logging
from typing import Callable, Optional

from ..audit.service import AuditLedger
from ..classes.repository import ClassRepository
from ..common.validators import optional_text, require_non_empty
from ..core.constants import SYSTEM_ACTOR
from ..core.enums import AuditAction, EntityType, ReferenceKind
from ..core.exceptions import ConsistencyFailure, NotFoundError
from ..teachers.model import Teacher
from ..teachers.repository import TeacherRepository
from .model import CascadeResult, RequestMeta

logger = logging.getLogger(__name__)

STEP_DELETE_ENTITY = "delete_entity"


class ReferentialIntegrityCoordinator:
    """Deletes teachers without leaving class documents pointing at them.

    Order of work:

    1. look the teacher up (missing -> NotFoundError, nothing audited);
    2. repair every class reference, one named step per reference kind;
    3. delete the teacher (already gone -> NotFoundError, nothing audited);
    4. append an audit record, success or failure alike.

    References are repaired before the teacher is deleted. A crash between
    steps 2 and 3 leaves an orphan teacher that nothing points to, never a
    class that points at a deleted teacher.
    """

    def __init__(self, teachers: TeacherRepository, classes: ClassRepository, audit: AuditLedger):
        self._teachers = teachers
        self._classes = classes
        self._audit = audit

    def delete_teacher(
        self,
        teacher_id: str,
        actor_id: Optional[str] = None,
        request_meta: Optional[RequestMeta] = None,
    ) -> CascadeResult:
        teacher_id = require_non_empty(teacher_id, "teacherID")
        actor_id = optional_text(actor_id) or SYSTEM_ACTOR
        request_meta = request_meta or RequestMeta()

        teacher = self._teachers.get_by_id(teacher_id)
        if teacher is None:
            raise NotFoundError(f"Teacher {teacher_id} not found")

        counts = {ReferenceKind.PRIMARY_TEACHER: 0, ReferenceKind.SUBJECT_ASSIGNMENT: 0}
        repairs: list[tuple[ReferenceKind, Callable[[str], int]]] = [
            (ReferenceKind.PRIMARY_TEACHER, self._classes.clear_primary_teacher),
            (ReferenceKind.SUBJECT_ASSIGNMENT, self._classes.remove_subject_assignments),
        ]

        step = ""
        try:
            for kind, repair in repairs:
                step = kind.value
                counts[kind] = int(repair(teacher_id))

            step = STEP_DELETE_ENTITY
            deleted = self._teachers.delete_by_id(teacher_id)
        except Exception as exc:
            partial = self._result(counts)
            logger.error("Cascade delete of teacher %s failed at %s: %s (partial %s)", teacher_id, step, exc, partial)
            self._audit.record(
                action=AuditAction.DELETE,
                entity_type=EntityType.TEACHER.value,
                entity_id=teacher_id,
                actor_id=actor_id,
                description=f"Failed to delete teacher {teacher_id}: {exc}",
                details={
                    "error": str(exc),
                    "failed_step": step,
                    "cascade_results": partial.to_dict(),
                },
                ip_address=request_meta.ip_address,
                user_agent=request_meta.user_agent,
            )
            raise ConsistencyFailure(
                f"Deleting teacher {teacher_id} failed at step {step!r}",
                step=step,
                classes_updated=partial.classes_updated,
                subjects_removed=partial.subjects_removed,
                cause=exc,
            ) from exc

        if not deleted:
            # Another request deleted the teacher between our lookup and delete.
            logger.info("Teacher %s was already deleted by a concurrent request", teacher_id)
            raise NotFoundError(f"Teacher {teacher_id} not found")

        result = self._result(counts)
        self._audit.record(
            action=AuditAction.DELETE,
            entity_type=EntityType.TEACHER.value,
            entity_id=teacher_id,
            actor_id=actor_id,
            description=self._describe(teacher),
            details={
                "teacher_info": teacher.audit_info(),
                "cascade_results": result.to_dict(),
                "deleted_by": actor_id,
            },
            ip_address=request_meta.ip_address,
            user_agent=request_meta.user_agent,
        )
        logger.info("Teacher %s deleted with cascading repairs: %s", teacher_id, result)
        return result

    @staticmethod
    def _result(counts: dict[ReferenceKind, int]) -> CascadeResult:
        # classes_updated sums both steps; a class repaired by both counts twice.
        return CascadeResult(
            classes_updated=sum(counts.values()),
            subjects_removed=counts[ReferenceKind.SUBJECT_ASSIGNMENT],
            repairs={kind.value: n for kind, n in counts.items()},
        )

    @staticmethod
    def _describe(teacher: Teacher) -> str:
        return f"Deleted teacher {teacher.display_name} ({teacher.teacher_id}) with cascading deletions"
