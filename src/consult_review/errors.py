"""Typed errors raised by case lifecycle, unread tracking and directory operations."""

from __future__ import annotations


class CaseReviewError(Exception):
    """Base class for all recoverable case review errors."""


class CaseNotFound(CaseReviewError, LookupError):
    def __init__(self, case_id: int) -> None:
        super().__init__(f"Case {case_id} not found")
        self.case_id = case_id


class InvalidTransition(CaseReviewError, ValueError):
    """Target status is not reachable by this role from the current status."""


class MissingReason(CaseReviewError, ValueError):
    """A reason-requiring transition was submitted without a reason."""


class InvalidExpert(CaseReviewError, ValueError):
    """Expert identity is blank. Use None to unassign."""


class ConcurrentModification(CaseReviewError):
    """Stored case version changed since it was loaded. Caller should reload and retry."""

    def __init__(self, case_id: int, expected_version: int) -> None:
        super().__init__(
            f"Case {case_id} was modified concurrently (expected version {expected_version})"
        )
        self.case_id = case_id
        self.expected_version = expected_version


class HashIdExhausted(CaseReviewError):
    """No unused hash id could be generated within the configured attempts."""


class DuplicateHashId(CaseReviewError):
    """Another case took this hash id between the existence check and the insert."""

    def __init__(self, hash_id: str) -> None:
        super().__init__(f"Hash id {hash_id} is already in use")
        self.hash_id = hash_id
