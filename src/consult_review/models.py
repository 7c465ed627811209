"""SQLAlchemy 2.x ORM models for case review persistence."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative base for all models."""

    pass


class CaseRecord(Base):
    __tablename__ = "cases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hash_id: Mapped[str] = mapped_column(String(8), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    sex: Mapped[str] = mapped_column(String(16), nullable=False)
    age_range: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    query: Mapped[str] = mapped_column(Text, nullable=False)
    urgency: Mapped[str] = mapped_column(String(16), nullable=False, default="MEDIUM")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="NEW", index=True)
    assigned_expert: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    created_by: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    change_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reopened: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_message_author: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_message_preview: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reviewer_message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    history: Mapped[list[StatusChangeRecord]] = relationship(
        "StatusChangeRecord",
        back_populates="case",
        order_by="StatusChangeRecord.seq",
        cascade="all, delete-orphan",
    )
    unread: Mapped[list[UnreadCountRecord]] = relationship(
        "UnreadCountRecord", back_populates="case", cascade="all, delete-orphan"
    )
    messages: Mapped[list[MessageRecord]] = relationship("MessageRecord", back_populates="case")


class StatusChangeRecord(Base):
    __tablename__ = "case_status_changes"
    __table_args__ = (UniqueConstraint("case_id", "seq", name="uq_status_change_case_seq"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("cases.id"), nullable=False, index=True)
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    from_status: Mapped[str] = mapped_column(String(32), nullable=False)
    to_status: Mapped[str] = mapped_column(String(32), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    changed_by: Mapped[str] = mapped_column(String(128), nullable=False)
    correlation_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    case: Mapped[CaseRecord] = relationship("CaseRecord", back_populates="history")


class UnreadCountRecord(Base):
    __tablename__ = "case_unread_counts"
    __table_args__ = (UniqueConstraint("case_id", "identity", name="uq_unread_case_identity"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("cases.id"), nullable=False, index=True)
    identity: Mapped[str] = mapped_column(String(128), nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    case: Mapped[CaseRecord] = relationship("CaseRecord", back_populates="unread")


class MessageRecord(Base):
    __tablename__ = "case_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("cases.id"), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(128), nullable=False)
    author_role: Mapped[str] = mapped_column(String(32), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    case: Mapped[CaseRecord] = relationship("CaseRecord", back_populates="messages")
