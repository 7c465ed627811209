"""Pytest fixtures: in-memory repository, lifecycle/directory wiring, sample config."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

# Tests always use SQLite; never pick up a developer's DATABASE_URL.
os.environ.pop("DATABASE_URL", None)
os.environ.pop("CONSULT_DATABASE_URL", None)

from consult_review.case_lifecycle import CaseStatus, Role
from consult_review.directory import CaseDirectory
from consult_review.domain import Case
from consult_review.lifecycle import CaseLifecycle
from consult_review.repository import InMemoryCaseRepository
from sample_cases import REVIEWER, SUBMITTER, TickingClock, make_draft


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def repo() -> InMemoryCaseRepository:
    return InMemoryCaseRepository()


@pytest.fixture
def directory(repo: InMemoryCaseRepository, clock: TickingClock) -> CaseDirectory:
    return CaseDirectory(repo, clock=clock)


@pytest.fixture
def lifecycle(repo: InMemoryCaseRepository, clock: TickingClock) -> CaseLifecycle:
    return CaseLifecycle(repo, clock=clock)


@pytest.fixture
def case_in_status(
    directory: CaseDirectory, lifecycle: CaseLifecycle
) -> Callable[[CaseStatus], Case]:
    """Factory: create a case by SUBMITTER and drive it into the requested status."""

    def _make(status: CaseStatus) -> Case:
        case = directory.insert(make_draft(), SUBMITTER)
        if status == CaseStatus.IN_REVIEW:
            lifecycle.assign_expert(case.id, Role.REVIEWER, REVIEWER)
        elif status == CaseStatus.RESOLVED:
            lifecycle.assign_expert(case.id, Role.REVIEWER, REVIEWER)
            lifecycle.change_status(
                case.id, Role.REVIEWER, REVIEWER, CaseStatus.RESOLVED, "Diagnóstico confirmado"
            )
        elif status == CaseStatus.CANCELLED:
            lifecycle.change_status(
                case.id, Role.SUBMITTER, SUBMITTER, CaseStatus.CANCELLED, "Caso duplicado"
            )
        return directory.find_by_id(case.id)

    return _make


@pytest.fixture
def config_path(tmp_path: Path) -> str:
    """Return path to a temporary config dir with default.yaml."""
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir()
    (cfg_dir / "default.yaml").write_text(
        """
app:
  log_level: INFO
database:
  url: "sqlite:///:memory:"
  echo: false
cases:
  ordering: triage_urgency
  hash_id_length: 4
  max_hash_attempts: 10
  preview_length: 50
"""
    )
    return str(cfg_dir / "default.yaml")
