"""Case repository interface and the in-memory implementation."""

from __future__ import annotations

import copy
import threading
from dataclasses import replace
from typing import Protocol

from consult_review.domain import Case, Message
from consult_review.errors import CaseNotFound, ConcurrentModification, DuplicateHashId


class CaseRepository(Protocol):
    """Storage seam used by CaseLifecycle and CaseDirectory.

    `load` returns a detached copy; mutating it has no effect until `save`.
    `save` raises ConcurrentModification when the stored version differs from
    `case.version`, and bumps the version on success.
    """

    def load(self, case_id: int) -> Case | None: ...

    def save(self, case: Case) -> Case: ...

    def save_with_message(self, case: Case, message: Message) -> Message: ...

    def add(self, case: Case) -> Case:
        """Assign an id and store. Raises DuplicateHashId if the hash id is taken."""
        ...

    def list_cases(self) -> list[Case]: ...

    def hash_id_exists(self, hash_id: str) -> bool: ...

    def load_messages(self, case_id: int) -> list[Message]: ...


class InMemoryCaseRepository:
    """Dict-backed repository. Stores deep copies so callers never alias stored state."""

    def __init__(self) -> None:
        self._cases: dict[int, Case] = {}
        self._messages: dict[int, list[Message]] = {}
        self._next_case_id = 1
        self._next_message_id = 1
        self._lock = threading.Lock()

    def load(self, case_id: int) -> Case | None:
        with self._lock:
            stored = self._cases.get(case_id)
            return copy.deepcopy(stored) if stored is not None else None

    def _store(self, case: Case) -> Case:
        if case.id is None or case.id not in self._cases:
            raise CaseNotFound(case.id)  # type: ignore[arg-type]
        if self._cases[case.id].version != case.version:
            raise ConcurrentModification(case.id, case.version)
        case.version += 1
        self._cases[case.id] = copy.deepcopy(case)
        return case

    def save(self, case: Case) -> Case:
        with self._lock:
            return self._store(case)

    def save_with_message(self, case: Case, message: Message) -> Message:
        with self._lock:
            self._store(case)
            stored = replace(message, id=self._next_message_id)
            self._next_message_id += 1
            self._messages.setdefault(stored.case_id, []).append(stored)
            return stored

    def add(self, case: Case) -> Case:
        with self._lock:
            if any(c.hash_id == case.hash_id for c in self._cases.values()):
                raise DuplicateHashId(case.hash_id)
            case.id = self._next_case_id
            self._next_case_id += 1
            case.version = 1
            self._cases[case.id] = copy.deepcopy(case)
            return case

    def list_cases(self) -> list[Case]:
        with self._lock:
            return [copy.deepcopy(c) for c in self._cases.values()]

    def hash_id_exists(self, hash_id: str) -> bool:
        with self._lock:
            return any(c.hash_id == hash_id for c in self._cases.values())

    def load_messages(self, case_id: int) -> list[Message]:
        with self._lock:
            return sorted(self._messages.get(case_id, []), key=lambda m: (m.sent_at, m.id or 0))
