"""FastAPI app: case review lifecycle, assignment and messaging."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from consult_review import __version__
from consult_review.audit_context import set_audit_context
from consult_review.cases_api import cases_router
from consult_review.config import get_config, get_config_hash
from consult_review.db import init_db
from consult_review.logging_config import setup_logging
from consult_review.services import init_services
from consult_review.sql_repository import SqlCaseRepository


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    setup_logging(config.get("app", {}).get("log_level", "INFO"))
    db_url = config.get("database", {}).get("url", "sqlite:///./data/consult_review.db")
    echo = config.get("database", {}).get("echo", False)
    init_db(db_url, echo=echo)
    init_services(SqlCaseRepository(), config)
    yield
    # no cleanup needed for SQLite


app = FastAPI(title="Clinical Consult Review API", version=__version__, lifespan=lifespan)


class AuditContextMiddleware(BaseHTTPMiddleware):
    """Set correlation_id per request; echo X-Correlation-ID in response.
    Actor is set by require_actor from the API key identity; anonymous until then.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_audit_context(correlation_id, "anonymous")
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


app.add_middleware(AuditContextMiddleware)

app.include_router(cases_router)


@app.get("/health")
def health() -> dict[str, Any]:
    """Liveness and version; db_status indicates DB connectivity."""
    from sqlalchemy import text

    from consult_review.db import get_engine

    db_status = "unknown"
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception:
        db_status = "error"
    return {
        "status": "ok",
        "version": __version__,
        "config_hash": get_config_hash(get_config()),
        "db_status": db_status,
    }
