"""Process-wide lifecycle and directory instances; set via init_services()."""

from __future__ import annotations

import functools
from typing import Any

from consult_review.audit_context import current_correlation_id
from consult_review.directory import CaseDirectory, CaseOrdering, generate_hash_id
from consult_review.lifecycle import CaseLifecycle
from consult_review.repository import CaseRepository
from consult_review.unread import UnreadTracker

_lifecycle: CaseLifecycle | None = None
_directory: CaseDirectory | None = None


def init_services(repository: CaseRepository, config: dict[str, Any]) -> None:
    """Build lifecycle and directory over `repository` using the `cases` config section."""
    global _lifecycle, _directory
    cases_cfg = config.get("cases", {})
    _lifecycle = CaseLifecycle(
        repository,
        tracker=UnreadTracker(preview_length=cases_cfg.get("preview_length", 50)),
        correlation=current_correlation_id,
    )
    _directory = CaseDirectory(
        repository,
        ordering=CaseOrdering(cases_cfg.get("ordering", CaseOrdering.TRIAGE.value)),
        hash_id_factory=functools.partial(
            generate_hash_id, cases_cfg.get("hash_id_length", 4)
        ),
        max_hash_attempts=cases_cfg.get("max_hash_attempts", 20),
    )


def get_lifecycle() -> CaseLifecycle:
    if _lifecycle is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    return _lifecycle


def get_directory() -> CaseDirectory:
    if _directory is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    return _directory
