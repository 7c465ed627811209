"""Pydantic v2 schemas for the HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from consult_review.case_lifecycle import CaseStatus, Role, Urgency
from consult_review.domain import Case, CaseDraft, Message


class CaseCreateRequest(BaseModel):
    """Body for POST /cases."""

    title: str = Field(..., min_length=1, max_length=255)
    sex: str = Field(..., min_length=1, max_length=16)
    age_range: str = Field(..., min_length=1, max_length=16)
    description: str | None = None
    query: str = Field(..., min_length=1)
    urgency: Urgency = Urgency.MEDIUM

    def to_draft(self) -> CaseDraft:
        return CaseDraft(
            title=self.title,
            sex=self.sex,
            age_range=self.age_range,
            description=self.description,
            query=self.query,
            urgency=self.urgency,
        )


class StatusChangeRequest(BaseModel):
    """Body for PATCH /cases/{id}/status."""

    status: CaseStatus
    reason: str | None = None


class AssignmentRequest(BaseModel):
    """Body for PATCH /cases/{id}/assignment. `expert=None` unassigns."""

    expert: str | None = Field(None, min_length=1, max_length=128)

    @field_validator("expert")
    @classmethod
    def expert_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("expert must not be blank; use null to unassign")
        return v.strip()


class MessageCreateRequest(BaseModel):
    """Body for POST /cases/{id}/messages."""

    body: str = Field(..., min_length=1)

    @field_validator("body")
    @classmethod
    def body_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("body must not be blank")
        return v.strip()


class StatusChangeResponse(BaseModel):
    from_status: CaseStatus
    to_status: CaseStatus
    reason: str | None
    changed_at: datetime
    changed_by: str
    correlation_id: str | None = None

    model_config = {"from_attributes": True}


class LastMessageResponse(BaseModel):
    sent_at: datetime
    author: str
    preview: str

    model_config = {"from_attributes": True}


class CaseResponse(BaseModel):
    id: int
    hash_id: str
    title: str
    sex: str
    age_range: str
    description: str | None
    query: str
    urgency: Urgency
    status: CaseStatus
    status_label: str
    assigned_expert: str | None
    created_by: str
    change_reason: str | None
    reopened: bool
    history: list[StatusChangeResponse] = []
    last_message: LastMessageResponse | None = None
    unread_counts: dict[str, int] = {}
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_case(cls, case: Case) -> CaseResponse:
        return cls(
            id=case.id,  # type: ignore[arg-type]
            hash_id=case.hash_id,
            title=case.title,
            sex=case.sex,
            age_range=case.age_range,
            description=case.description,
            query=case.query,
            urgency=case.urgency,
            status=case.status,
            status_label=case.status.label,
            assigned_expert=case.assigned_expert,
            created_by=case.created_by,
            change_reason=case.change_reason,
            reopened=case.reopened,
            history=[StatusChangeResponse.model_validate(h) for h in case.history],
            last_message=(
                LastMessageResponse.model_validate(case.last_message)
                if case.last_message
                else None
            ),
            unread_counts=dict(case.unread_counts),
            created_at=case.created_at,
            updated_at=case.updated_at,
        )


class MessageResponse(BaseModel):
    id: int
    case_id: int
    author: str
    author_role: Role
    body: str
    sent_at: datetime
    read: bool = False

    model_config = {"from_attributes": True}

    @classmethod
    def from_message(cls, message: Message) -> MessageResponse:
        return cls.model_validate(message)


class ReasonCatalogResponse(BaseModel):
    role: Role
    status: CaseStatus
    reason_required: bool
    reasons: list[str]
