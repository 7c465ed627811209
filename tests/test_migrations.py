"""Alembic migration produces the same schema as the ORM models."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from consult_review.models import Base

ROOT = Path(__file__).resolve().parents[1]


def _schema(url: str) -> dict[str, dict]:
    engine = create_engine(url)
    try:
        insp = inspect(engine)
        out: dict[str, dict] = {}
        for table in Base.metadata.tables:
            out[table] = {
                "columns": {(c["name"], c["nullable"]) for c in insp.get_columns(table)},
                "indexes": {
                    (i["name"], tuple(i["column_names"]), bool(i["unique"]))
                    for i in insp.get_indexes(table)
                },
                "unique": {
                    (u["name"], tuple(u["column_names"]))
                    for u in insp.get_unique_constraints(table)
                },
            }
        return out
    finally:
        engine.dispose()


def test_migration_matches_models(tmp_path: Path) -> None:
    migrated_url = f"sqlite:///{tmp_path / 'migrated.db'}"
    cfg = Config()
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", migrated_url)
    command.upgrade(cfg, "head")

    created_url = f"sqlite:///{tmp_path / 'created.db'}"
    engine = create_engine(created_url)
    Base.metadata.create_all(engine)
    engine.dispose()

    assert _schema(migrated_url) == _schema(created_url)


def test_hash_id_index_is_unique(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    cfg = Config()
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", url)
    command.upgrade(cfg, "head")
    indexes = _schema(url)["cases"]["indexes"]
    assert ("ix_cases_hash_id", ("hash_id",), True) in indexes
