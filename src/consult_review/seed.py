"""Sample cases for local development, driven through the real lifecycle."""

from __future__ import annotations

from consult_review.case_lifecycle import CaseStatus, Role, Urgency
from consult_review.directory import CaseDirectory
from consult_review.domain import Case, CaseDraft
from consult_review.lifecycle import CaseLifecycle

SAMPLE_SUBMITTER = "dr_garcia"
SAMPLE_REVIEWER = "dra_rodriguez"


def seed_sample_cases(directory: CaseDirectory, lifecycle: CaseLifecycle) -> list[Case]:
    """Create one case per status: new, in review, resolved and cancelled."""
    abdominal = directory.insert(
        CaseDraft(
            title="Dolor abdominal persistente",
            sex="M",
            age_range="36-50",
            description=(
                "Dolor en cuadrante superior derecho con irradiación a espalda, "
                "3 días de evolución con intensidad progresiva."
            ),
            query="¿Qué estudios recomiendan para descartar patología biliar?",
            urgency=Urgency.MEDIUM,
        ),
        SAMPLE_SUBMITTER,
    )
    headache = directory.insert(
        CaseDraft(
            title="Cefalea recurrente",
            sex="F",
            age_range="19-35",
            description="Cefalea tensional bilateral de 6 meses de evolución.",
            query="¿Qué protocolo de estudio recomiendan para cefalea crónica?",
            urgency=Urgency.LOW,
        ),
        SAMPLE_SUBMITTER,
    )
    cardio = directory.insert(
        CaseDraft(
            title="Evaluación cardiológica",
            sex="M",
            age_range="51-65",
            description="Antecedentes de hipertensión arterial.",
            query="¿Qué estudios básicos recomiendan para screening en paciente hipertenso?",
            urgency=Urgency.LOW,
        ),
        SAMPLE_SUBMITTER,
    )
    duplicate = directory.insert(
        CaseDraft(
            title="Caso cancelado por duplicado",
            sex="F",
            age_range="19-35",
            query="Consulta duplicada",
            urgency=Urgency.LOW,
        ),
        SAMPLE_SUBMITTER,
    )
    lifecycle.assign_expert(headache.id, Role.REVIEWER, SAMPLE_REVIEWER)  # type: ignore[arg-type]
    lifecycle.assign_expert(cardio.id, Role.REVIEWER, SAMPLE_REVIEWER)  # type: ignore[arg-type]
    lifecycle.change_status(
        cardio.id,  # type: ignore[arg-type]
        Role.REVIEWER,
        SAMPLE_REVIEWER,
        CaseStatus.RESOLVED,
        "Diagnóstico confirmado y recomendaciones dadas",
    )
    lifecycle.change_status(
        duplicate.id,  # type: ignore[arg-type]
        Role.SUBMITTER,
        SAMPLE_SUBMITTER,
        CaseStatus.CANCELLED,
        "Caso duplicado",
    )
    return [directory.find_by_id(c.id) for c in (abdominal, headache, cardio, duplicate)]  # type: ignore[arg-type]
