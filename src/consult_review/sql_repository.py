"""SQLAlchemy-backed CaseRepository with optimistic version checks."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from consult_review.case_lifecycle import CaseStatus, Role, Urgency
from consult_review.db import session_scope
from consult_review.domain import Case, LastMessage, Message, StatusChange
from consult_review.errors import CaseNotFound, ConcurrentModification, DuplicateHashId
from consult_review.models import (
    CaseRecord,
    MessageRecord,
    StatusChangeRecord,
    UnreadCountRecord,
)

logger = getLogger(__name__)


def _aware(dt: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; everything is stored in UTC."""
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=UTC)


def _to_domain(rec: CaseRecord) -> Case:
    last_message = None
    if rec.last_message_at is not None:
        last_message = LastMessage(
            sent_at=_aware(rec.last_message_at),  # type: ignore[arg-type]
            author=rec.last_message_author or "",
            preview=rec.last_message_preview or "",
        )
    return Case(
        id=rec.id,
        hash_id=rec.hash_id,
        title=rec.title,
        sex=rec.sex,
        age_range=rec.age_range,
        description=rec.description,
        query=rec.query,
        urgency=Urgency(rec.urgency),
        created_by=rec.created_by,
        status=CaseStatus(rec.status),
        assigned_expert=rec.assigned_expert,
        change_reason=rec.change_reason,
        reopened=rec.reopened,
        history=[
            StatusChange(
                from_status=CaseStatus(h.from_status),
                to_status=CaseStatus(h.to_status),
                reason=h.reason,
                changed_at=_aware(h.changed_at),  # type: ignore[arg-type]
                changed_by=h.changed_by,
                correlation_id=h.correlation_id,
            )
            for h in rec.history
        ],
        last_message=last_message,
        unread_counts={u.identity: u.count for u in rec.unread},
        reviewer_message_count=rec.reviewer_message_count,
        version=rec.version,
        created_at=_aware(rec.created_at),  # type: ignore[arg-type]
        updated_at=_aware(rec.updated_at),  # type: ignore[arg-type]
    )


def _message_to_domain(rec: MessageRecord) -> Message:
    return Message(
        id=rec.id,
        case_id=rec.case_id,
        author=rec.author,
        author_role=Role(rec.author_role),
        body=rec.body,
        sent_at=_aware(rec.sent_at),  # type: ignore[arg-type]
        read=rec.read,
    )


def _case_columns(case: Case) -> dict:
    lm = case.last_message
    return {
        "title": case.title,
        "sex": case.sex,
        "age_range": case.age_range,
        "description": case.description,
        "query": case.query,
        "urgency": case.urgency.value,
        "status": case.status.value,
        "assigned_expert": case.assigned_expert,
        "created_by": case.created_by,
        "change_reason": case.change_reason,
        "reopened": case.reopened,
        "last_message_at": lm.sent_at if lm else None,
        "last_message_author": lm.author if lm else None,
        "last_message_preview": lm.preview if lm else None,
        "reviewer_message_count": case.reviewer_message_count,
        "updated_at": case.updated_at,
    }


class SqlCaseRepository:
    """Each call runs in its own session_scope() transaction."""

    def _store(self, session: Session, case: Case) -> None:
        if case.id is None:
            raise CaseNotFound(case.id)  # type: ignore[arg-type]
        result = session.execute(
            update(CaseRecord)
            .where(CaseRecord.id == case.id)
            .where(CaseRecord.version == case.version)
            .values(version=case.version + 1, **_case_columns(case))
        )
        if result.rowcount == 0:
            if session.get(CaseRecord, case.id) is None:
                raise CaseNotFound(case.id)
            logger.warning("Version conflict on case %s (expected %s)", case.id, case.version)
            raise ConcurrentModification(case.id, case.version)
        stored = session.execute(
            select(func.count(StatusChangeRecord.id)).where(StatusChangeRecord.case_id == case.id)
        ).scalar_one()
        for seq, entry in enumerate(case.history[stored:], start=stored):
            session.add(
                StatusChangeRecord(
                    case_id=case.id,
                    seq=seq,
                    from_status=entry.from_status.value,
                    to_status=entry.to_status.value,
                    reason=entry.reason,
                    changed_at=entry.changed_at,
                    changed_by=entry.changed_by,
                    correlation_id=entry.correlation_id,
                )
            )
        existing = {
            u.identity: u
            for u in session.execute(
                select(UnreadCountRecord).where(UnreadCountRecord.case_id == case.id)
            ).scalars()
        }
        for identity, count in case.unread_counts.items():
            if identity in existing:
                existing[identity].count = count
            else:
                session.add(UnreadCountRecord(case_id=case.id, identity=identity, count=count))
        session.flush()
        case.version += 1

    def load(self, case_id: int) -> Case | None:
        with session_scope() as session:
            rec = session.get(
                CaseRecord,
                case_id,
                options=[selectinload(CaseRecord.history), selectinload(CaseRecord.unread)],
            )
            return _to_domain(rec) if rec is not None else None

    def save(self, case: Case) -> Case:
        with session_scope() as session:
            self._store(session, case)
        return case

    def save_with_message(self, case: Case, message: Message) -> Message:
        with session_scope() as session:
            self._store(session, case)
            rec = MessageRecord(
                case_id=message.case_id,
                author=message.author,
                author_role=message.author_role.value,
                body=message.body,
                sent_at=message.sent_at,
                read=message.read,
            )
            session.add(rec)
            session.flush()
            return _message_to_domain(rec)

    def add(self, case: Case) -> Case:
        with session_scope() as session:
            rec = CaseRecord(
                hash_id=case.hash_id,
                created_at=case.created_at,
                version=1,
                **_case_columns(case),
            )
            session.add(rec)
            try:
                session.flush()
            except IntegrityError as e:
                logger.warning("Hash id %s taken by a concurrent insert", case.hash_id)
                raise DuplicateHashId(case.hash_id) from e
            case.id = rec.id
            case.version = 1
            for identity, count in case.unread_counts.items():
                session.add(UnreadCountRecord(case_id=rec.id, identity=identity, count=count))
            for seq, entry in enumerate(case.history):
                session.add(
                    StatusChangeRecord(
                        case_id=rec.id,
                        seq=seq,
                        from_status=entry.from_status.value,
                        to_status=entry.to_status.value,
                        reason=entry.reason,
                        changed_at=entry.changed_at,
                        changed_by=entry.changed_by,
                        correlation_id=entry.correlation_id,
                    )
                )
        return case

    def list_cases(self) -> list[Case]:
        with session_scope() as session:
            stmt = select(CaseRecord).options(
                selectinload(CaseRecord.history), selectinload(CaseRecord.unread)
            )
            return [_to_domain(rec) for rec in session.execute(stmt).scalars().all()]

    def hash_id_exists(self, hash_id: str) -> bool:
        with session_scope() as session:
            found = session.execute(
                select(CaseRecord.id).where(CaseRecord.hash_id == hash_id)
            ).first()
            return found is not None

    def load_messages(self, case_id: int) -> list[Message]:
        with session_scope() as session:
            stmt = (
                select(MessageRecord)
                .where(MessageRecord.case_id == case_id)
                .order_by(MessageRecord.sent_at, MessageRecord.id)
            )
            return [_message_to_domain(rec) for rec in session.execute(stmt).scalars().all()]
