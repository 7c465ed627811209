"""In-memory case and message values operated on by the lifecycle core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from consult_review.case_lifecycle import CaseStatus, Role, Urgency

# changed_by value for transitions the lifecycle performs on its own.
SYSTEM_ACTOR = "system"


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class StatusChange:
    """One audit history entry. Immutable once appended."""

    from_status: CaseStatus
    to_status: CaseStatus
    reason: str | None
    changed_at: datetime
    changed_by: str
    correlation_id: str | None = None

    @property
    def automatic(self) -> bool:
        return self.changed_by == SYSTEM_ACTOR


@dataclass(frozen=True)
class LastMessage:
    sent_at: datetime
    author: str
    preview: str


@dataclass
class CaseDraft:
    """Clinical payload of a new case. Never interpreted by the lifecycle."""

    title: str
    sex: str
    age_range: str
    query: str
    urgency: Urgency = Urgency.MEDIUM
    description: str | None = None


@dataclass
class Case:
    id: int | None
    hash_id: str
    title: str
    sex: str
    age_range: str
    query: str
    urgency: Urgency
    created_by: str
    description: str | None = None
    status: CaseStatus = CaseStatus.NEW
    assigned_expert: str | None = None
    change_reason: str | None = None
    reopened: bool = False
    history: list[StatusChange] = field(default_factory=list)
    last_message: LastMessage | None = None
    unread_counts: dict[str, int] = field(default_factory=dict)
    reviewer_message_count: int = 0
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_draft(cls, draft: CaseDraft, created_by: str, hash_id: str, now: datetime) -> Case:
        return cls(
            id=None,
            hash_id=hash_id,
            title=draft.title,
            sex=draft.sex,
            age_range=draft.age_range,
            query=draft.query,
            urgency=Urgency(draft.urgency),
            description=draft.description,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )


@dataclass(frozen=True)
class Message:
    id: int | None
    case_id: int
    author: str
    author_role: Role
    body: str
    sent_at: datetime
    # Legacy per-message flag; unread state lives in Case.unread_counts.
    read: bool = False
