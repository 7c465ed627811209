"""Per-participant unread counters and last-message snapshot, updated as messages are sent."""

from __future__ import annotations

from datetime import datetime

from consult_review.case_lifecycle import Role
from consult_review.domain import Case, LastMessage, Message

PREVIEW_LENGTH = 50
ELLIPSIS = "..."


def make_preview(body: str, length: int = PREVIEW_LENGTH) -> str:
    """Truncate `body` to `length` characters, marking truncation with an ellipsis."""
    if len(body) <= length:
        return body
    return body[:length] + ELLIPSIS


def participants(case: Case) -> list[str]:
    """Identities notified about messages on `case`: creator, then assigned expert."""
    out = [case.created_by]
    if case.assigned_expert and case.assigned_expert not in out:
        out.append(case.assigned_expert)
    return out


def unread_for(case: Case, identity: str) -> int:
    return case.unread_counts.get(identity, 0)


class UnreadTracker:
    """Maintains `unread_counts` and `last_message` on a case.

    Operates on an in-memory Case. Serialization and persistence are the caller's job
    (see CaseLifecycle.send_message / mark_read).
    """

    def __init__(self, preview_length: int = PREVIEW_LENGTH) -> None:
        self.preview_length = preview_length

    def record_message(
        self,
        case: Case,
        author: str,
        author_role: Role,
        body: str,
        now: datetime,
    ) -> Message:
        """Create a message and notify every participant except the author."""
        message = Message(
            id=None,
            case_id=case.id,  # type: ignore[arg-type]
            author=author,
            author_role=Role(author_role),
            body=body,
            sent_at=now,
        )
        case.last_message = LastMessage(
            sent_at=now, author=author, preview=make_preview(body, self.preview_length)
        )
        for identity in participants(case):
            if identity == author:
                continue
            case.unread_counts[identity] = case.unread_counts.get(identity, 0) + 1
        if message.author_role == Role.REVIEWER:
            case.reviewer_message_count += 1
        case.updated_at = now
        return message

    def mark_read(self, case: Case, reader: str) -> None:
        """Reset `reader`'s counter. Idempotent."""
        case.unread_counts[reader] = 0
