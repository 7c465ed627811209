"""Typer CLI: init-db, seed, list-cases, create-case, change-status, assign, messaging, serve-api."""

from __future__ import annotations

import os
import uuid
from pathlib import Path

import typer

from consult_review.audit_context import get_actor, set_audit_context
from consult_review.case_lifecycle import CaseStatus, Role, Urgency
from consult_review.config import get_config
from consult_review.db import init_db
from consult_review.directory import CaseOrdering
from consult_review.domain import Case, CaseDraft
from consult_review.errors import CaseReviewError
from consult_review.logging_config import get_logger, setup_logging
from consult_review.seed import seed_sample_cases
from consult_review.services import get_directory, get_lifecycle, init_services
from consult_review.sql_repository import SqlCaseRepository

app = typer.Typer(help="Clinical consult review CLI")

logger = get_logger(__name__)


def _ensure_db(config_path: str | None = None) -> None:
    config = get_config(config_path)
    db_url = config.get("database", {}).get("url", "sqlite:///./data/consult_review.db")
    if db_url.startswith("sqlite:///") and ":memory:" not in db_url:
        Path(db_url.replace("sqlite:///", "")).parent.mkdir(parents=True, exist_ok=True)
    echo = config.get("database", {}).get("echo", False)
    setup_logging(config.get("app", {}).get("log_level", "INFO"))
    init_db(db_url, echo=echo)
    init_services(SqlCaseRepository(), config)
    set_audit_context(str(uuid.uuid4()), os.environ.get("CONSULT_ACTOR", "cli"))


def _fail(err: CaseReviewError) -> typer.Exit:
    typer.echo(str(err), err=True)
    return typer.Exit(1)


def _summary(case: Case) -> str:
    expert = case.assigned_expert or "-"
    flags = " (reabierto)" if case.reopened else ""
    return (
        f"{case.id:>4} {case.hash_id} {case.status.label:<12} {case.urgency.value:<6} "
        f"expert={expert} by={case.created_by}{flags} | {case.title}"
    )


@app.command("init-db")
def init_db_cmd(
    config: str | None = typer.Option(None, "--config", "-c", help="Config YAML path"),
) -> None:
    """Create tables (SQLite). Postgres schemas are managed by Alembic."""
    _ensure_db(config)
    typer.echo("Database initialized.")


@app.command()
def seed(
    config: str | None = typer.Option(None, "--config", "-c", help="Config YAML path"),
) -> None:
    """Insert sample cases covering every status."""
    _ensure_db(config)
    cases = seed_sample_cases(get_directory(), get_lifecycle())
    for case in cases:
        typer.echo(_summary(case))


@app.command("list-cases")
def list_cases(
    creator: str | None = typer.Option(None, "--creator", help="Only cases created by this identity"),
    ordering: CaseOrdering | None = typer.Option(None, "--ordering", help="triage | triage_urgency"),
    config: str | None = typer.Option(None, "--config", "-c", help="Config YAML path"),
) -> None:
    """List cases in triage order."""
    _ensure_db(config)
    directory = get_directory()
    cases = (
        directory.list_by_creator(creator, ordering) if creator else directory.list_all(ordering)
    )
    for case in cases:
        typer.echo(_summary(case))
    typer.echo(f"{len(cases)} case(s); {directory.count_unassigned_new()} new and unassigned.")


@app.command("create-case")
def create_case_cmd(
    title: str = typer.Option(..., "--title"),
    sex: str = typer.Option(..., "--sex", help="M | F | Otro"),
    age_range: str = typer.Option(..., "--age-range", help="e.g. 36-50"),
    query: str = typer.Option(..., "--query", help="Question for the specialist"),
    urgency: Urgency = typer.Option(Urgency.MEDIUM, "--urgency"),
    description: str | None = typer.Option(None, "--description"),
    config: str | None = typer.Option(None, "--config", "-c", help="Config YAML path"),
) -> None:
    """Submit a new case as the current actor (CONSULT_ACTOR)."""
    _ensure_db(config)
    draft = CaseDraft(
        title=title,
        sex=sex,
        age_range=age_range,
        query=query,
        urgency=urgency,
        description=description,
    )
    try:
        case = get_directory().insert(draft, get_actor())
    except CaseReviewError as e:
        raise _fail(e) from e
    typer.echo(f"Created case {case.id} (hash_id={case.hash_id}, status={case.status.value})")


@app.command("change-status")
def change_status_cmd(
    case_id: int = typer.Option(..., "--id", help="Case ID"),
    status: CaseStatus = typer.Option(..., "--status"),
    role: Role = typer.Option(..., "--role"),
    reason: str | None = typer.Option(None, "--reason"),
    config: str | None = typer.Option(None, "--config", "-c", help="Config YAML path"),
) -> None:
    """Change case status as the current actor. Transitions validated per role."""
    _ensure_db(config)
    try:
        case = get_lifecycle().change_status(case_id, role, get_actor(), status, reason)
    except CaseReviewError as e:
        raise _fail(e) from e
    typer.echo(f"Updated case {case_id}: status={case.status.value}")


@app.command()
def assign(
    case_id: int = typer.Option(..., "--id", help="Case ID"),
    expert: str | None = typer.Option(None, "--expert", help="Expert identity; omit to unassign"),
    role: Role = typer.Option(Role.COORDINATOR, "--role"),
    config: str | None = typer.Option(None, "--config", "-c", help="Config YAML path"),
) -> None:
    """Assign or unassign the expert of a case."""
    _ensure_db(config)
    try:
        case = get_lifecycle().assign_expert(case_id, role, expert)
    except CaseReviewError as e:
        raise _fail(e) from e
    typer.echo(
        f"Updated case {case_id}: expert={case.assigned_expert or '-'}, status={case.status.value}"
    )


@app.command("send-message")
def send_message_cmd(
    case_id: int = typer.Option(..., "--id", help="Case ID"),
    body: str = typer.Option(..., "--body"),
    role: Role = typer.Option(..., "--role"),
    config: str | None = typer.Option(None, "--config", "-c", help="Config YAML path"),
) -> None:
    """Post a message on a case as the current actor."""
    _ensure_db(config)
    try:
        message = get_lifecycle().send_message(case_id, get_actor(), role, body)
    except CaseReviewError as e:
        raise _fail(e) from e
    typer.echo(f"Sent message {message.id} on case {case_id}")


@app.command("mark-read")
def mark_read_cmd(
    case_id: int = typer.Option(..., "--id", help="Case ID"),
    config: str | None = typer.Option(None, "--config", "-c", help="Config YAML path"),
) -> None:
    """Reset the current actor's unread counter on a case."""
    _ensure_db(config)
    try:
        get_lifecycle().mark_read(case_id, get_actor())
    except CaseReviewError as e:
        raise _fail(e) from e
    typer.echo(f"Marked case {case_id} read for {get_actor()}")


@app.command("serve-api")
def serve_api(
    config: str | None = typer.Option(None, "--config", "-c", help="Config YAML path"),
    host: str | None = typer.Option(None, "--host", "-h", help="Bind host"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
) -> None:
    """Start the FastAPI server."""
    cfg = get_config(config)
    h = host or os.environ.get("CONSULT_API_HOST") or cfg.get("api", {}).get("host", "0.0.0.0")
    _pe = os.environ.get("CONSULT_API_PORT", "")
    p = (
        port
        if port is not None
        else (int(_pe) if _pe and _pe.isdigit() else None) or cfg.get("api", {}).get("port", 8000)
    )
    if config:
        os.environ["CONSULT_CONFIG_PATH"] = config
    logger.info("Starting API on %s:%s", h, p)
    import uvicorn

    uvicorn.run(
        "consult_review.api:app",
        host=h,
        port=p,
        reload=False,
    )


if __name__ == "__main__":
    app()
