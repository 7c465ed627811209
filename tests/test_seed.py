"""Sample data covers every status and goes through the real lifecycle."""

from consult_review.case_lifecycle import CaseStatus
from consult_review.seed import SAMPLE_REVIEWER, SAMPLE_SUBMITTER, seed_sample_cases


def test_seed_covers_every_status(directory, lifecycle) -> None:
    cases = seed_sample_cases(directory, lifecycle)
    assert {c.status for c in cases} == set(CaseStatus)
    assert all(c.created_by == SAMPLE_SUBMITTER for c in cases)
    by_status = {c.status: c for c in cases}
    assert by_status[CaseStatus.NEW].assigned_expert is None
    assert by_status[CaseStatus.IN_REVIEW].assigned_expert == SAMPLE_REVIEWER
    resolved = by_status[CaseStatus.RESOLVED]
    assert resolved.change_reason == "Diagnóstico confirmado y recomendaciones dadas"
    assert [h.to_status for h in resolved.history] == [CaseStatus.IN_REVIEW, CaseStatus.RESOLVED]
    assert directory.count_unassigned_new() == 1
