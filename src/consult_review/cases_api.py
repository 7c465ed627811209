"""Cases API router: explicit registration for /cases endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from consult_review.auth import Actor, require_actor
from consult_review.case_lifecycle import (
    CaseStatus,
    Role,
    reason_catalog,
    reason_required,
)
from consult_review.directory import CaseOrdering, filter_by_status
from consult_review.domain import Case
from consult_review.errors import (
    CaseNotFound,
    CaseReviewError,
    ConcurrentModification,
    HashIdExhausted,
    InvalidExpert,
    InvalidTransition,
    MissingReason,
)
from consult_review.logging_config import get_logger
from consult_review.schemas import (
    AssignmentRequest,
    CaseCreateRequest,
    CaseResponse,
    MessageCreateRequest,
    MessageResponse,
    ReasonCatalogResponse,
    StatusChangeRequest,
)
from consult_review.services import get_directory, get_lifecycle

logger = get_logger(__name__)

cases_router = APIRouter(tags=["cases"])

_STATUS_CODES: tuple[tuple[type[CaseReviewError], int], ...] = (
    (CaseNotFound, 404),
    (InvalidTransition, 400),
    (MissingReason, 400),
    (InvalidExpert, 400),
    (ConcurrentModification, 409),
    (HashIdExhausted, 503),
)


def _http_error(err: CaseReviewError) -> HTTPException:
    for kind, code in _STATUS_CODES:
        if isinstance(err, kind):
            return HTTPException(status_code=code, detail=str(err))
    return HTTPException(status_code=400, detail=str(err))


def _load_visible(case_id: int, actor: Actor) -> Case:
    """Load a case; submitters only see their own."""
    try:
        case = get_directory().find_by_id(case_id)
    except CaseNotFound as e:
        raise _http_error(e) from e
    if actor.role == Role.SUBMITTER and case.created_by != actor.identity:
        raise HTTPException(status_code=403, detail="Not allowed to access this case")
    return case


def _require_participant(case: Case, actor: Actor) -> None:
    if actor.identity not in (case.created_by, case.assigned_expert):
        raise HTTPException(status_code=403, detail="Only case participants may use messages")


@cases_router.get("/cases", response_model=list[CaseResponse])
def list_cases(
    ordering: CaseOrdering | None = Query(None),
    status: list[CaseStatus] | None = Query(None),
    q: str | None = Query(None, description="Search hash id or title"),
    actor: Actor = Depends(require_actor),
) -> list[CaseResponse]:
    """List cases in triage order. Submitters see only cases they created."""
    directory = get_directory()
    if q:
        cases = directory.search(q, ordering)
        if actor.role == Role.SUBMITTER:
            cases = [c for c in cases if c.created_by == actor.identity]
    elif actor.role == Role.SUBMITTER:
        cases = directory.list_by_creator(actor.identity, ordering)
    else:
        cases = directory.list_all(ordering)
    if status:
        cases = filter_by_status(cases, status)
    return [CaseResponse.from_case(c) for c in cases]


@cases_router.get("/cases/pending-count")
def pending_count(actor: Actor = Depends(require_actor)) -> dict[str, int]:
    """Number of new cases with no expert assigned."""
    return {"unassigned_new": get_directory().count_unassigned_new()}


@cases_router.post("/cases", response_model=CaseResponse, status_code=201)
def create_case(body: CaseCreateRequest, actor: Actor = Depends(require_actor)) -> CaseResponse:
    if actor.role != Role.SUBMITTER:
        raise HTTPException(status_code=403, detail="Only submitters may create cases")
    try:
        case = get_directory().insert(body.to_draft(), actor.identity)
    except CaseReviewError as e:
        raise _http_error(e) from e
    logger.info("Case %s created (hash_id=%s)", case.id, case.hash_id)
    return CaseResponse.from_case(case)


@cases_router.get("/cases/{case_id}", response_model=CaseResponse)
def get_case(case_id: int, actor: Actor = Depends(require_actor)) -> CaseResponse:
    return CaseResponse.from_case(_load_visible(case_id, actor))


@cases_router.patch("/cases/{case_id}/status", response_model=CaseResponse)
def change_status(
    case_id: int, body: StatusChangeRequest, actor: Actor = Depends(require_actor)
) -> CaseResponse:
    """Change case status. Transition and reason validated per role."""
    _load_visible(case_id, actor)
    try:
        case = get_lifecycle().change_status(
            case_id, actor.role, actor.identity, body.status, body.reason
        )
    except CaseReviewError as e:
        logger.info("Status change rejected on case %s: %s", case_id, type(e).__name__)
        raise _http_error(e) from e
    logger.info("Case %s moved to %s", case_id, case.status.value)
    return CaseResponse.from_case(case)


@cases_router.patch("/cases/{case_id}/assignment", response_model=CaseResponse)
def assign_expert(
    case_id: int, body: AssignmentRequest, actor: Actor = Depends(require_actor)
) -> CaseResponse:
    """Reviewers assign or release themselves; coordinators assign anyone."""
    if actor.role == Role.SUBMITTER:
        raise HTTPException(status_code=403, detail="Submitters may not assign experts")
    if actor.role == Role.REVIEWER:
        current = _load_visible(case_id, actor)
        if body.expert is not None and body.expert != actor.identity:
            raise HTTPException(status_code=403, detail="Reviewers may only assign themselves")
        if body.expert is None and current.assigned_expert not in (None, actor.identity):
            raise HTTPException(status_code=403, detail="Case is assigned to another expert")
    try:
        case = get_lifecycle().assign_expert(case_id, actor.role, body.expert)
    except CaseReviewError as e:
        raise _http_error(e) from e
    logger.info("Case %s assignment changed; status %s", case_id, case.status.value)
    return CaseResponse.from_case(case)


@cases_router.get("/cases/{case_id}/messages", response_model=list[MessageResponse])
def list_messages(case_id: int, actor: Actor = Depends(require_actor)) -> list[MessageResponse]:
    _require_participant(_load_visible(case_id, actor), actor)
    try:
        messages = get_lifecycle().messages(case_id)
    except CaseReviewError as e:
        raise _http_error(e) from e
    return [MessageResponse.from_message(m) for m in messages]


@cases_router.post("/cases/{case_id}/messages", response_model=MessageResponse, status_code=201)
def send_message(
    case_id: int, body: MessageCreateRequest, actor: Actor = Depends(require_actor)
) -> MessageResponse:
    _require_participant(_load_visible(case_id, actor), actor)
    try:
        message = get_lifecycle().send_message(case_id, actor.identity, actor.role, body.body)
    except CaseReviewError as e:
        raise _http_error(e) from e
    return MessageResponse.from_message(message)


@cases_router.post("/cases/{case_id}/read", response_model=CaseResponse)
def mark_read(case_id: int, actor: Actor = Depends(require_actor)) -> CaseResponse:
    """Reset the caller's unread counter for this case."""
    _require_participant(_load_visible(case_id, actor), actor)
    try:
        case = get_lifecycle().mark_read(case_id, actor.identity)
    except CaseReviewError as e:
        raise _http_error(e) from e
    return CaseResponse.from_case(case)


@cases_router.get("/reasons", response_model=ReasonCatalogResponse)
def list_reasons(
    role: Role = Query(...),
    status: CaseStatus = Query(...),
) -> ReasonCatalogResponse:
    """Canned reasons for a target status, to populate selection lists."""
    return ReasonCatalogResponse(
        role=role,
        status=status,
        reason_required=reason_required(role, status),
        reasons=reason_catalog(role, status),
    )
