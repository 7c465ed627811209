"""case_review_schema

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-10-17 10:12:44.318201

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "5c1e9a7d2b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "cases",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("hash_id", sa.String(8), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("sex", sa.String(16), nullable=False),
        sa.Column("age_range", sa.String(16), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("query", sa.Text(), nullable=False),
        sa.Column("urgency", sa.String(16), nullable=False, server_default="MEDIUM"),
        sa.Column("status", sa.String(32), nullable=False, server_default="NEW"),
        sa.Column("assigned_expert", sa.String(128), nullable=True),
        sa.Column("created_by", sa.String(128), nullable=False),
        sa.Column("change_reason", sa.Text(), nullable=True),
        sa.Column("reopened", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_message_at", sa.DateTime(), nullable=True),
        sa.Column("last_message_author", sa.String(128), nullable=True),
        sa.Column("last_message_preview", sa.String(255), nullable=True),
        sa.Column("reviewer_message_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cases_hash_id", "cases", ["hash_id"], unique=True)
    op.create_index("ix_cases_status", "cases", ["status"])
    op.create_index("ix_cases_assigned_expert", "cases", ["assigned_expert"])
    op.create_index("ix_cases_created_by", "cases", ["created_by"])
    op.create_table(
        "case_status_changes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("from_status", sa.String(32), nullable=False),
        sa.Column("to_status", sa.String(32), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("changed_at", sa.DateTime(), nullable=False),
        sa.Column("changed_by", sa.String(128), nullable=False),
        sa.Column("correlation_id", sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(["case_id"], ["cases.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("case_id", "seq", name="uq_status_change_case_seq"),
    )
    op.create_index("ix_case_status_changes_case_id", "case_status_changes", ["case_id"])
    op.create_index(
        "ix_case_status_changes_correlation_id", "case_status_changes", ["correlation_id"]
    )
    op.create_table(
        "case_unread_counts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("identity", sa.String(128), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["case_id"], ["cases.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("case_id", "identity", name="uq_unread_case_identity"),
    )
    op.create_index("ix_case_unread_counts_case_id", "case_unread_counts", ["case_id"])
    op.create_table(
        "case_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("author", sa.String(128), nullable=False),
        sa.Column("author_role", sa.String(32), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["case_id"], ["cases.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_case_messages_case_id", "case_messages", ["case_id"])


def downgrade() -> None:
    op.drop_index("ix_case_messages_case_id", table_name="case_messages")
    op.drop_table("case_messages")
    op.drop_index("ix_case_unread_counts_case_id", table_name="case_unread_counts")
    op.drop_table("case_unread_counts")
    op.drop_index("ix_case_status_changes_correlation_id", table_name="case_status_changes")
    op.drop_index("ix_case_status_changes_case_id", table_name="case_status_changes")
    op.drop_table("case_status_changes")
    op.drop_index("ix_cases_created_by", table_name="cases")
    op.drop_index("ix_cases_assigned_expert", table_name="cases")
    op.drop_index("ix_cases_status", table_name="cases")
    op.drop_index("ix_cases_hash_id", table_name="cases")
    op.drop_table("cases")
