from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from school_records.audit.model import AuditFilter
from school_records.core.enums import AuditAction, EntityType
from school_records.core.exceptions import ConsistencyFailure, NotFoundError
from school_records.integrity.model import CascadeResult, RequestMeta


def test_delete_teacher_repairs_every_reference(container, classes_repo, teachers_repo, audit_repo):
    result = container.integrity_coordinator.delete_teacher(
        "T01", actor_id="A01", request_meta=RequestMeta(ip_address="10.0.0.7", user_agent="pytest")
    )

    assert result == CascadeResult(classes_updated=2, subjects_removed=1)
    assert result.repairs == {"primary_teacher": 1, "subject_assignment": 1}
    assert classes_repo.referencing("T01") == []
    assert teachers_repo.get_by_id("T01") is None

    c1 = classes_repo.by_id["C1"]
    c2 = classes_repo.by_id["C2"]
    assert c1.teacher_id is None
    assert [s.subject for s in c1.subjects] == ["Science"]
    assert [s.subject for s in c2.subjects] == ["Art"]

    assert len(audit_repo.records) == 1
    rec = audit_repo.records[0]
    assert rec.action == AuditAction.DELETE
    assert rec.entity_type == EntityType.TEACHER.value
    assert rec.entity_id == "T01"
    assert rec.actor_id == "A01"
    assert rec.ip_address == "10.0.0.7"
    assert rec.details["cascade_results"]["classesUpdated"] == 2
    assert rec.details["teacher_info"]["email"] == "ada@school.test"
    assert "Ada Lovelace" in rec.description


def test_class_referencing_twice_counts_per_step(container, classes_repo):
    # T02 is primary on C2 and holds subjects on C1 and C2.
    result = container.integrity_coordinator.delete_teacher("T02", actor_id="A01")

    assert (result.classes_updated, result.subjects_removed) == (3, 2)
    assert classes_repo.referencing("T02") == []
    assert [s.subject for s in classes_repo.by_id["C2"].subjects] == ["Math"]


def test_delete_without_references(container, teachers_repo, classes_repo, audit_repo):
    from school_records.teachers.model import Teacher

    teachers_repo.by_id["T03"] = Teacher(teacher_id="T03", first_name="Grace", last_name="Hopper", email="g@x.test")

    result = container.integrity_coordinator.delete_teacher("T03")

    assert result == CascadeResult(classes_updated=0, subjects_removed=0)
    assert classes_repo.mutations == 0
    assert audit_repo.records[0].actor_id == "system"


def test_second_delete_is_not_found_and_changes_nothing(container, classes_repo, audit_repo):
    coordinator = container.integrity_coordinator
    coordinator.delete_teacher("T01", actor_id="A01")
    mutations = classes_repo.mutations

    with pytest.raises(NotFoundError):
        coordinator.delete_teacher("T01", actor_id="A01")

    assert classes_repo.mutations == mutations
    assert len(audit_repo.records) == 1


def test_repairs_run_before_the_teacher_is_deleted(container, teachers_repo, classes_repo, audit_repo):
    teachers_repo.fail_delete_with = RuntimeError("connection reset")

    with pytest.raises(ConsistencyFailure) as excinfo:
        container.integrity_coordinator.delete_teacher("T01", actor_id="A01")

    err = excinfo.value
    assert err.step == "delete_entity"
    assert (err.classes_updated, err.subjects_removed) == (2, 1)
    assert isinstance(err.__cause__, RuntimeError)
    # Orphan teacher, but no class points at it.
    assert teachers_repo.get_by_id("T01") is not None
    assert classes_repo.referencing("T01") == []

    assert len(audit_repo.records) == 1
    rec = audit_repo.records[0]
    assert rec.details["failed_step"] == "delete_entity"
    assert rec.details["error"] == "connection reset"
    assert rec.description.startswith("Failed to delete teacher T01")


def test_failure_in_a_repair_step_stops_the_cascade(container, teachers_repo, classes_repo, audit_repo):
    classes_repo.fail_on["remove_subject_assignments"] = RuntimeError("timeout")

    with pytest.raises(ConsistencyFailure) as excinfo:
        container.integrity_coordinator.delete_teacher("T01", actor_id="A01")

    assert excinfo.value.step == "subject_assignment"
    assert excinfo.value.classes_updated == 1
    assert teachers_repo.deletes == 0
    assert teachers_repo.get_by_id("T01") is not None
    assert audit_repo.records[0].details["cascade_results"]["repairs"] == {
        "primary_teacher": 1,
        "subject_assignment": 0,
    }


def test_audit_failure_does_not_change_the_outcome(container, audit_repo, teachers_repo, caplog):
    audit_repo.fail_with = RuntimeError("audit store down")

    with caplog.at_level("ERROR"):
        result = container.integrity_coordinator.delete_teacher("T01", actor_id="A01")

    assert result.classes_updated == 2
    assert teachers_repo.get_by_id("T01") is None
    assert audit_repo.records == []
    assert "Audit write failed" in caplog.text


def test_blank_teacher_id_is_rejected(container, classes_repo):
    from school_records.core.exceptions import ValidationError

    with pytest.raises(ValidationError):
        container.integrity_coordinator.delete_teacher("  ")
    assert classes_repo.calls == []


def test_deletion_shows_up_in_query_and_stats(container, clock, fixed_now):
    container.integrity_coordinator.delete_teacher("T01", actor_id="A01")
    ledger = container.audit_ledger

    page = ledger.query(AuditFilter(entity_type="Teacher", action=AuditAction.DELETE), page=1, page_size=10)
    assert page.pagination.total_matching == 1
    assert page.records[0].entity_id == "T01"

    stats = ledger.stats_for_period("7d")
    assert stats.start == fixed_now - timedelta(days=7)
    delete_stats = [a for a in stats.actions if a.action == AuditAction.DELETE]
    assert len(delete_stats) == 1
    assert delete_stats[0].total == 1
    assert delete_stats[0].count_for("Teacher") == 1


def test_concurrent_deletes_one_succeeds_one_not_found(container, teachers_repo, classes_repo, audit_repo):
    # Both callers pass the lookup before either deletes.
    teachers_repo.on_lookup = threading.Barrier(2, timeout=5).wait
    outcomes: list[object] = []
    lock = threading.Lock()

    def worker():
        try:
            result = container.integrity_coordinator.delete_teacher("T01", actor_id="A01")
        except NotFoundError as exc:
            result = exc
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    teachers_repo.on_lookup = None

    assert sorted(type(o).__name__ for o in outcomes) == ["CascadeResult", "NotFoundError"]
    assert teachers_repo.get_by_id("T01") is None
    assert classes_repo.referencing("T01") == []
    assert len(audit_repo.records) == 1
    assert audit_repo.records[0].description.startswith("Deleted teacher")
