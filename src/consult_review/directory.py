"""Case directory: creation, lookup and triage-ordered listings."""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from consult_review.case_lifecycle import CaseStatus, Urgency
from consult_review.domain import Case, CaseDraft, utcnow
from consult_review.errors import CaseNotFound, DuplicateHashId, HashIdExhausted
from consult_review.repository import CaseRepository

HASH_ID_ALPHABET = string.ascii_uppercase + string.digits
HASH_ID_LENGTH = 4
MAX_HASH_ATTEMPTS = 20

# Unresolved work first: New > In review > Resolved = Cancelled.
STATUS_PRIORITY: dict[CaseStatus, int] = {
    CaseStatus.NEW: 3,
    CaseStatus.IN_REVIEW: 2,
    CaseStatus.RESOLVED: 1,
    CaseStatus.CANCELLED: 1,
}

URGENCY_PRIORITY: dict[Urgency, int] = {
    Urgency.HIGH: 3,
    Urgency.MEDIUM: 2,
    Urgency.LOW: 1,
}


class CaseOrdering(str, Enum):
    TRIAGE = "triage"
    TRIAGE_URGENCY = "triage_urgency"


def _triage_key(case: Case) -> tuple[Any, ...]:
    return (-STATUS_PRIORITY[case.status], -case.updated_at.timestamp())


def _triage_urgency_key(case: Case) -> tuple[Any, ...]:
    return (
        -STATUS_PRIORITY[case.status],
        -URGENCY_PRIORITY.get(case.urgency, 0),
        -case.updated_at.timestamp(),
    )


_SORT_KEYS: dict[CaseOrdering, Callable[[Case], tuple[Any, ...]]] = {
    CaseOrdering.TRIAGE: _triage_key,
    CaseOrdering.TRIAGE_URGENCY: _triage_urgency_key,
}


def sort_key(ordering: CaseOrdering) -> Callable[[Case], tuple[Any, ...]]:
    """Key function for `sorted` implementing the named ordering policy."""
    return _SORT_KEYS[CaseOrdering(ordering)]


def generate_hash_id(length: int = HASH_ID_LENGTH) -> str:
    return "".join(secrets.choice(HASH_ID_ALPHABET) for _ in range(length))


def filter_by_status(cases: Iterable[Case], statuses: Iterable[CaseStatus]) -> list[Case]:
    """Keep cases whose status is in `statuses`, preserving order."""
    wanted = {CaseStatus(s) for s in statuses}
    return [c for c in cases if c.status in wanted]


class CaseDirectory:
    def __init__(
        self,
        repository: CaseRepository,
        ordering: CaseOrdering = CaseOrdering.TRIAGE,
        hash_id_factory: Callable[[], str] = generate_hash_id,
        max_hash_attempts: int = MAX_HASH_ATTEMPTS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.ordering = CaseOrdering(ordering)
        self.hash_id_factory = hash_id_factory
        self.max_hash_attempts = max_hash_attempts
        self.clock = clock

    def _sorted(self, cases: Iterable[Case], ordering: CaseOrdering | None) -> list[Case]:
        return sorted(cases, key=sort_key(ordering or self.ordering))

    def list_all(self, ordering: CaseOrdering | None = None) -> list[Case]:
        return self._sorted(self.repository.list_cases(), ordering)

    def list_by_creator(self, identity: str, ordering: CaseOrdering | None = None) -> list[Case]:
        return self._sorted(
            (c for c in self.repository.list_cases() if c.created_by == identity), ordering
        )

    def list_by_expert(self, identity: str, ordering: CaseOrdering | None = None) -> list[Case]:
        return self._sorted(
            (c for c in self.repository.list_cases() if c.assigned_expert == identity), ordering
        )

    def search(self, text: str, ordering: CaseOrdering | None = None) -> list[Case]:
        """Case-insensitive match on hash id or title."""
        needle = text.strip().lower()
        return self._sorted(
            (
                c
                for c in self.repository.list_cases()
                if needle in c.hash_id.lower() or needle in c.title.lower()
            ),
            ordering,
        )

    def count_unassigned_new(self) -> int:
        """New cases nobody has picked up yet."""
        return sum(
            1
            for c in self.repository.list_cases()
            if c.status == CaseStatus.NEW and not c.assigned_expert
        )

    def find_by_id(self, case_id: int) -> Case:
        case = self.repository.load(case_id)
        if case is None:
            raise CaseNotFound(case_id)
        return case

    def insert(self, draft: CaseDraft, created_by: str) -> Case:
        """Store a new case in status NEW with a unique hash id.

        A candidate can still be taken by a concurrent insert after the existence
        check; the repository then raises DuplicateHashId and the next candidate is
        tried. Both kinds of collision count against `max_hash_attempts`.
        """
        for _ in range(self.max_hash_attempts):
            candidate = self.hash_id_factory()
            if self.repository.hash_id_exists(candidate):
                continue
            case = Case.from_draft(draft, created_by, candidate, self.clock())
            try:
                return self.repository.add(case)
            except DuplicateHashId:
                continue
        raise HashIdExhausted(
            f"No unused hash id found after {self.max_hash_attempts} attempts"
        )
