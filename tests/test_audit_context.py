"""Tests for audit context (correlation_id and actor traceability)."""

from sample_cases import REVIEWER, SUBMITTER, make_draft

from consult_review.audit_context import (
    current_correlation_id,
    get_actor,
    set_actor,
    set_audit_context,
)
from consult_review.case_lifecycle import Role
from consult_review.directory import CaseDirectory
from consult_review.lifecycle import CaseLifecycle


def test_set_and_get_context() -> None:
    set_audit_context("corr-123", "dr_garcia")
    assert current_correlation_id() == "corr-123"
    assert get_actor() == "dr_garcia"


def test_correlation_id_none_when_unset() -> None:
    set_audit_context(None, "system")
    assert current_correlation_id() is None


def test_get_actor_default_system_when_unset() -> None:
    set_audit_context("x", None)
    assert get_actor() == "system"


def test_set_actor_keeps_correlation_id() -> None:
    set_audit_context("req-9", "anonymous")
    set_actor("dra_rodriguez")
    assert get_actor() == "dra_rodriguez"
    assert current_correlation_id() == "req-9"


def test_lifecycle_records_request_correlation_id(repo, clock) -> None:
    lifecycle = CaseLifecycle(repo, clock=clock, correlation=current_correlation_id)
    case = CaseDirectory(repo, clock=clock).insert(make_draft(), SUBMITTER)
    set_audit_context("req-42", "coordinacion")
    updated = lifecycle.assign_expert(case.id, Role.COORDINATOR, REVIEWER)
    assert updated.history[-1].correlation_id == "req-42"
