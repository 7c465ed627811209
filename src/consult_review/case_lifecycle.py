"""Case status lifecycle: role-dependent transitions, reason requirements and catalogs."""

from __future__ import annotations

from enum import Enum

from consult_review.errors import InvalidTransition, MissingReason


class CaseStatus(str, Enum):
    NEW = "NEW"
    IN_REVIEW = "IN_REVIEW"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        """Resolved and cancelled cases only move again by being reopened."""
        return self in TERMINAL_STATUSES


class Role(str, Enum):
    SUBMITTER = "SUBMITTER"
    REVIEWER = "REVIEWER"
    COORDINATOR = "COORDINATOR"


class Urgency(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


STATUS_LABELS: dict[CaseStatus, str] = {
    CaseStatus.NEW: "Nuevo",
    CaseStatus.IN_REVIEW: "En revisión",
    CaseStatus.RESOLVED: "Resuelto",
    CaseStatus.CANCELLED: "Cancelado",
}

TERMINAL_STATUSES = frozenset({CaseStatus.RESOLVED, CaseStatus.CANCELLED})

CASE_STATUS_VALUES = frozenset(s.value for s in CaseStatus)

# Coordinators have no explicit transitions; they act through assignment only.
VALID_CASE_TRANSITIONS: dict[Role, dict[CaseStatus, frozenset[CaseStatus]]] = {
    Role.SUBMITTER: {
        CaseStatus.NEW: frozenset({CaseStatus.CANCELLED, CaseStatus.RESOLVED}),
        CaseStatus.IN_REVIEW: frozenset({CaseStatus.CANCELLED, CaseStatus.RESOLVED}),
        CaseStatus.RESOLVED: frozenset(),
        CaseStatus.CANCELLED: frozenset(),
    },
    Role.REVIEWER: {
        CaseStatus.NEW: frozenset(),
        CaseStatus.IN_REVIEW: frozenset({CaseStatus.RESOLVED, CaseStatus.CANCELLED}),
        CaseStatus.RESOLVED: frozenset({CaseStatus.IN_REVIEW}),
        CaseStatus.CANCELLED: frozenset({CaseStatus.IN_REVIEW}),
    },
    Role.COORDINATOR: {status: frozenset() for status in CaseStatus},
}

# Every explicit target needs a reason: closing, or reopening into IN_REVIEW.
REASON_REQUIRED_TARGETS = frozenset(
    {CaseStatus.RESOLVED, CaseStatus.CANCELLED, CaseStatus.IN_REVIEW}
)

REASON_CATALOG: dict[tuple[Role, CaseStatus], tuple[str, ...]] = {
    (Role.SUBMITTER, CaseStatus.RESOLVED): (
        "Caso resuelto por médico de cabecera",
        "Paciente derivado a consulta presencial",
        "La consulta ya no es necesaria",
        "Otro",
    ),
    (Role.SUBMITTER, CaseStatus.CANCELLED): (
        "Caso duplicado",
        "Datos del caso incorrectos",
        "Paciente no continúa el seguimiento",
        "Otro",
    ),
    (Role.REVIEWER, CaseStatus.RESOLVED): (
        "Diagnóstico confirmado y recomendaciones dadas",
        "Recomendaciones terapéuticas proporcionadas",
        "Se recomienda valoración presencial",
        "Otro",
    ),
    (Role.REVIEWER, CaseStatus.CANCELLED): (
        "Información clínica insuficiente",
        "Caso fuera del ámbito de la especialidad",
        "Caso duplicado",
        "Otro",
    ),
    (Role.REVIEWER, CaseStatus.IN_REVIEW): (
        "Nueva información clínica disponible",
        "Evolución desfavorable del paciente",
        "Solicitud de segunda opinión",
        "Otro",
    ),
}

ASSIGNING_ROLES = frozenset({Role.REVIEWER, Role.COORDINATOR})


def allowed_transitions(role: Role, status: CaseStatus) -> frozenset[CaseStatus]:
    """Statuses `role` may move a case to from `status`."""
    return VALID_CASE_TRANSITIONS[Role(role)][CaseStatus(status)]


def reason_required(role: Role, target: CaseStatus) -> bool:
    return CaseStatus(target) in REASON_REQUIRED_TARGETS


def reason_catalog(role: Role, target: CaseStatus) -> list[str]:
    """Canned reasons to offer in a UI. Advisory only: any non-empty reason is accepted."""
    return list(REASON_CATALOG.get((Role(role), CaseStatus(target)), ()))


def can_assign(role: Role) -> bool:
    return Role(role) in ASSIGNING_ROLES


def validate_case_status_transition(
    role: Role, current: CaseStatus, new: CaseStatus, reason: str | None
) -> None:
    """Raise InvalidTransition or MissingReason if `role` may not move current -> new."""
    allowed = allowed_transitions(role, current)
    if CaseStatus(new) not in allowed:
        allowed_names = sorted(s.value for s in allowed)
        raise InvalidTransition(
            f"Invalid transition for {Role(role).value}: {CaseStatus(current).value} -> "
            f"{CaseStatus(new).value}. Allowed from {CaseStatus(current).value}: "
            f"{allowed_names or 'none'}"
        )
    if reason_required(role, new) and not (reason and reason.strip()):
        raise MissingReason(
            f"A reason is required to move a case to {CaseStatus(new).value}"
        )
