"""Case directory: insert defaults, hash ids and list orderings."""

import re
from datetime import timedelta

import pytest
from sample_cases import REVIEWER, SUBMITTER, make_draft

from consult_review.case_lifecycle import CaseStatus, Role, Urgency
from consult_review.directory import (
    CaseDirectory,
    CaseOrdering,
    filter_by_status,
    generate_hash_id,
    sort_key,
)
from consult_review.errors import CaseNotFound, DuplicateHashId, HashIdExhausted
from consult_review.repository import InMemoryCaseRepository


def test_insert_defaults(directory) -> None:
    case = directory.insert(make_draft(), SUBMITTER)
    assert case.id == 1
    assert case.status == CaseStatus.NEW
    assert case.assigned_expert is None
    assert case.history == []
    assert case.unread_counts == {}
    assert case.reopened is False
    assert case.created_by == SUBMITTER
    assert case.created_at == case.updated_at
    assert re.fullmatch(r"[A-Z0-9]{4}", case.hash_id)


def test_generate_hash_id_length() -> None:
    assert len(generate_hash_id()) == 4
    assert len(generate_hash_id(6)) == 6


def test_hash_id_collision_retried(repo, clock) -> None:
    ids = iter(["AAAA", "AAAA", "AAAA", "BBBB"])
    directory = CaseDirectory(repo, hash_id_factory=lambda: next(ids), clock=clock)
    first = directory.insert(make_draft(), SUBMITTER)
    second = directory.insert(make_draft(), SUBMITTER)
    assert first.hash_id == "AAAA"
    assert second.hash_id == "BBBB"


def test_hash_id_exhaustion(repo, clock) -> None:
    directory = CaseDirectory(
        repo, hash_id_factory=lambda: "ZZZZ", max_hash_attempts=3, clock=clock
    )
    directory.insert(make_draft(), SUBMITTER)
    with pytest.raises(HashIdExhausted, match="after 3 attempts"):
        directory.insert(make_draft(), SUBMITTER)
    assert len(directory.list_all()) == 1


class _StaleExistenceCheck(InMemoryCaseRepository):
    """Existence check never sees other inserts, as when two inserts race."""

    def hash_id_exists(self, hash_id: str) -> bool:
        return False


def test_hash_id_taken_after_check_is_retried(clock) -> None:
    repo = _StaleExistenceCheck()
    ids = iter(["AAAA", "AAAA", "CCCC"])
    directory = CaseDirectory(repo, hash_id_factory=lambda: next(ids), clock=clock)
    directory.insert(make_draft(), SUBMITTER)
    second = directory.insert(make_draft(), SUBMITTER)
    assert second.hash_id == "CCCC"
    assert second.id == 2


def test_hash_id_race_exhaustion(clock) -> None:
    directory = CaseDirectory(
        _StaleExistenceCheck(), hash_id_factory=lambda: "ZZZZ", max_hash_attempts=2, clock=clock
    )
    directory.insert(make_draft(), SUBMITTER)
    with pytest.raises(HashIdExhausted):
        directory.insert(make_draft(), SUBMITTER)


def test_in_memory_add_rejects_duplicate_hash_id(repo, directory) -> None:
    created = directory.insert(make_draft(), SUBMITTER)
    clone = repo.load(created.id)
    clone.id = None
    with pytest.raises(DuplicateHashId):
        repo.add(clone)
    assert len(repo.list_cases()) == 1


def test_find_by_id_missing(directory) -> None:
    with pytest.raises(CaseNotFound):
        directory.find_by_id(42)


def _populate(directory, lifecycle):
    """Returns cases: new_low, new_high, review, resolved, cancelled (oldest first)."""
    new_low = directory.insert(make_draft("nuevo bajo", Urgency.LOW), SUBMITTER)
    review = directory.insert(make_draft("en revisión", Urgency.HIGH), SUBMITTER)
    resolved = directory.insert(make_draft("resuelto", Urgency.HIGH), "dr_otro")
    cancelled = directory.insert(make_draft("cancelado", Urgency.LOW), SUBMITTER)
    lifecycle.assign_expert(review.id, Role.REVIEWER, REVIEWER)
    lifecycle.change_status(resolved.id, Role.SUBMITTER, "dr_otro", CaseStatus.RESOLVED, "ok")
    lifecycle.change_status(cancelled.id, Role.SUBMITTER, SUBMITTER, CaseStatus.CANCELLED, "dup")
    new_high = directory.insert(make_draft("nuevo alto", Urgency.HIGH), SUBMITTER)
    return new_low, new_high, review, resolved, cancelled


def test_triage_ordering(directory, lifecycle) -> None:
    new_low, new_high, review, resolved, cancelled = _populate(directory, lifecycle)
    titles = [c.title for c in directory.list_all()]
    # New (most recent first), then in review, then closed cases by recency
    assert titles == ["nuevo alto", "nuevo bajo", "en revisión", "cancelado", "resuelto"]


def test_triage_urgency_ordering(directory, lifecycle) -> None:
    _populate(directory, lifecycle)
    # Make the low-urgency new case the most recent one; urgency still wins
    low = next(c for c in directory.list_all() if c.title == "nuevo bajo")
    lifecycle.send_message(low.id, SUBMITTER, Role.SUBMITTER, "actualización")
    titles = [c.title for c in directory.list_all(CaseOrdering.TRIAGE_URGENCY)]
    assert titles == ["nuevo alto", "nuevo bajo", "en revisión", "resuelto", "cancelado"]
    assert [c.title for c in directory.list_all()][:2] == ["nuevo bajo", "nuevo alto"]


def test_default_ordering_configurable(repo, clock) -> None:
    directory = CaseDirectory(repo, ordering=CaseOrdering.TRIAGE_URGENCY, clock=clock)
    directory.insert(make_draft("bajo", Urgency.LOW), SUBMITTER)
    directory.insert(make_draft("alto", Urgency.HIGH), SUBMITTER)
    directory.insert(make_draft("medio", Urgency.MEDIUM), SUBMITTER)
    assert [c.title for c in directory.list_all()] == ["alto", "medio", "bajo"]


def test_sort_key_pluggable(directory) -> None:
    a = directory.insert(make_draft("a", Urgency.LOW), SUBMITTER)
    b = directory.insert(make_draft("b", Urgency.HIGH), SUBMITTER)
    b.updated_at = a.updated_at - timedelta(minutes=5)
    assert sorted([a, b], key=sort_key(CaseOrdering.TRIAGE)) == [a, b]
    assert sorted([a, b], key=sort_key(CaseOrdering.TRIAGE_URGENCY)) == [b, a]


def test_list_by_creator(directory, lifecycle) -> None:
    _populate(directory, lifecycle)
    mine = directory.list_by_creator(SUBMITTER)
    assert {c.created_by for c in mine} == {SUBMITTER}
    assert [c.title for c in mine] == ["nuevo alto", "nuevo bajo", "en revisión", "cancelado"]
    assert directory.list_by_creator("desconocido") == []


def test_list_by_expert_and_pending_count(directory, lifecycle) -> None:
    _populate(directory, lifecycle)
    assert [c.title for c in directory.list_by_expert(REVIEWER)] == ["en revisión"]
    assert directory.count_unassigned_new() == 2


def test_search_by_title_or_hash(repo, clock) -> None:
    ids = iter(["K7Q2", "M3X9"])
    directory = CaseDirectory(repo, hash_id_factory=lambda: next(ids), clock=clock)
    case = directory.insert(make_draft("Cefalea recurrente"), SUBMITTER)
    directory.insert(make_draft("Dolor lumbar"), SUBMITTER)
    assert [c.id for c in directory.search("cefalea")] == [case.id]
    assert [c.id for c in directory.search("k7q")] == [case.id]
    assert directory.search("zzz") == []


def test_filter_by_status(directory, lifecycle) -> None:
    _populate(directory, lifecycle)
    closed = filter_by_status(directory.list_all(), [CaseStatus.RESOLVED, CaseStatus.CANCELLED])
    assert [c.title for c in closed] == ["cancelado", "resuelto"]
