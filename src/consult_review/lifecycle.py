"""Case lifecycle: status changes, expert assignment and message bookkeeping.

Two layers:

- ``apply_status_change`` / ``apply_assignment`` are pure transitions over an
  in-memory Case. They validate before touching anything, so a failure leaves the
  case exactly as it was.
- ``CaseLifecycle`` wraps each transition in load -> mutate -> save under a
  per-case lock. Role and identity are trusted as given; resolving them is the
  caller's job.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from consult_review.case_lifecycle import (
    CaseStatus,
    Role,
    can_assign,
    validate_case_status_transition,
)
from consult_review.domain import SYSTEM_ACTOR, Case, Message, StatusChange, utcnow
from consult_review.errors import CaseNotFound, InvalidExpert, InvalidTransition
from consult_review.repository import CaseRepository
from consult_review.unread import UnreadTracker

AUTO_ASSIGN_REASON = "Expert auto-assigned"


def _append_history(
    case: Case,
    new_status: CaseStatus,
    reason: str | None,
    changed_by: str,
    now: datetime,
    correlation_id: str | None,
) -> None:
    old_status = case.status
    case.status = new_status
    case.change_reason = reason
    case.history.append(
        StatusChange(
            from_status=old_status,
            to_status=new_status,
            reason=reason,
            changed_at=now,
            changed_by=changed_by,
            correlation_id=correlation_id,
        )
    )
    if old_status.is_terminal and new_status == CaseStatus.IN_REVIEW:
        case.reopened = True


def has_review_activity(case: Case) -> bool:
    """True once a reviewer has done substantive work on the case.

    That is: the case was reopened, someone changed its status explicitly, or a
    reviewer posted a message on it.
    """
    if case.reopened or case.reviewer_message_count > 0:
        return True
    return any(not entry.automatic for entry in case.history)


def apply_status_change(
    case: Case,
    role: Role,
    actor: str,
    target: CaseStatus,
    reason: str | None,
    now: datetime,
    correlation_id: str | None = None,
) -> Case:
    validate_case_status_transition(role, case.status, target, reason)
    _append_history(case, CaseStatus(target), reason, actor, now, correlation_id)
    case.updated_at = now
    return case


def apply_assignment(
    case: Case,
    role: Role,
    expert: str | None,
    now: datetime,
    correlation_id: str | None = None,
) -> Case:
    """Set or clear the assigned expert, toggling NEW <-> IN_REVIEW where applicable.

    Assigning someone to a NEW case starts its review. Clearing the expert of an
    IN_REVIEW case puts it back to NEW only while no review activity has happened.
    Resolved and cancelled cases keep their status.
    """
    if not can_assign(role):
        raise InvalidTransition(f"Role {Role(role).value} may not assign experts")
    if expert is not None and not expert.strip():
        raise InvalidExpert("Expert identity must not be blank; pass None to unassign")
    case.assigned_expert = expert
    if expert is not None and case.status == CaseStatus.NEW:
        _append_history(
            case, CaseStatus.IN_REVIEW, AUTO_ASSIGN_REASON, SYSTEM_ACTOR, now, correlation_id
        )
    elif (
        expert is None
        and case.status == CaseStatus.IN_REVIEW
        and not has_review_activity(case)
    ):
        _append_history(case, CaseStatus.NEW, None, SYSTEM_ACTOR, now, correlation_id)
    case.updated_at = now
    return case


class CaseLocks:
    """One lock per case id. Operations on different cases never contend."""

    def __init__(self) -> None:
        self._locks: dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, case_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(case_id)
            if lock is None:
                lock = self._locks[case_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, case_id: int) -> Iterator[None]:
        with self._lock_for(case_id):
            yield


class CaseLifecycle:
    """Serialized status, assignment and messaging operations on stored cases."""

    def __init__(
        self,
        repository: CaseRepository,
        locks: CaseLocks | None = None,
        tracker: UnreadTracker | None = None,
        clock: Callable[[], datetime] = utcnow,
        correlation: Callable[[], str | None] = lambda: None,
    ) -> None:
        self.repository = repository
        self.locks = locks or CaseLocks()
        self.tracker = tracker or UnreadTracker()
        self.clock = clock
        self.correlation = correlation

    def _load(self, case_id: int) -> Case:
        case = self.repository.load(case_id)
        if case is None:
            raise CaseNotFound(case_id)
        return case

    def change_status(
        self,
        case_id: int,
        actor_role: Role,
        actor_identity: str,
        target_status: CaseStatus,
        reason: str | None,
    ) -> Case:
        with self.locks.hold(case_id):
            case = self._load(case_id)
            apply_status_change(
                case,
                actor_role,
                actor_identity,
                target_status,
                reason,
                self.clock(),
                self.correlation(),
            )
            return self.repository.save(case)

    def assign_expert(self, case_id: int, actor_role: Role, expert: str | None) -> Case:
        """Assign or unassign. Reviewers are expected to pass only their own identity."""
        with self.locks.hold(case_id):
            case = self._load(case_id)
            apply_assignment(case, actor_role, expert, self.clock(), self.correlation())
            return self.repository.save(case)

    def send_message(self, case_id: int, author: str, author_role: Role, body: str) -> Message:
        with self.locks.hold(case_id):
            case = self._load(case_id)
            message = self.tracker.record_message(case, author, author_role, body, self.clock())
            return self.repository.save_with_message(case, message)

    def mark_read(self, case_id: int, reader: str) -> Case:
        with self.locks.hold(case_id):
            case = self._load(case_id)
            self.tracker.mark_read(case, reader)
            return self.repository.save(case)

    def messages(self, case_id: int) -> list[Message]:
        self._load(case_id)
        return self.repository.load_messages(case_id)
