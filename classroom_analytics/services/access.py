"""Ownership checks that gate every analytics query.

Resolution returns `Found` or `Denied` so callers and tests can see why a
query produced nothing. The public service flattens `Denied` to None or an
empty list, which keeps "not allowed", "does not exist" and "nothing yet"
indistinguishable to dashboard clients.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar, Union

from classroom_analytics.core.logging import get_logger
from classroom_analytics.domain.records import Assignment, ClassRecord, StudentSession
from classroom_analytics.infrastructure.record_store import RecordStore
from classroom_analytics.services.sessions import is_tracked

logger = get_logger(__name__)

T = TypeVar("T")


class DenialReason(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    NOT_AUTHORIZED = "not_authorized"
    NOT_FOUND = "not_found"
    PREVIEW_SESSION = "preview_session"


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class Denied:
    reason: DenialReason


AccessResult = Union[Found[T], Denied]


@dataclass(frozen=True)
class AssignmentScope:
    """An assignment together with the class that owns it."""
    class_record: ClassRecord
    assignment: Assignment


@dataclass(frozen=True)
class SessionScope:
    class_record: ClassRecord
    assignment: Assignment
    session: StudentSession


def _deny(reason: DenialReason, **context) -> Denied:
    logger.info(f"Analytics access denied: {reason.value}", extra={"reason": reason.value, **context})
    return Denied(reason)


def resolve_class(store: RecordStore, user_id: Optional[str], class_id: str) -> AccessResult[ClassRecord]:
    """Resolve a class the caller teaches."""
    if not user_id:
        return _deny(DenialReason.NOT_AUTHENTICATED, class_id=class_id)
    class_record = store.get_class(class_id)
    if class_record is None:
        return _deny(DenialReason.NOT_FOUND, user_id=user_id, class_id=class_id)
    if class_record.teacher_id != user_id:
        return _deny(DenialReason.NOT_AUTHORIZED, user_id=user_id, class_id=class_id)
    return Found(class_record)


def resolve_assignment(
    store: RecordStore, user_id: Optional[str], assignment_id: str
) -> AccessResult[AssignmentScope]:
    """Resolve an assignment through its parent class's ownership."""
    if not user_id:
        return _deny(DenialReason.NOT_AUTHENTICATED, assignment_id=assignment_id)
    assignment = store.get_assignment(assignment_id)
    if assignment is None:
        return _deny(DenialReason.NOT_FOUND, user_id=user_id, assignment_id=assignment_id)
    owner = resolve_class(store, user_id, assignment.class_id)
    if isinstance(owner, Denied):
        return owner
    return Found(AssignmentScope(class_record=owner.value, assignment=assignment))


def resolve_session(
    store: RecordStore, user_id: Optional[str], session_id: str
) -> AccessResult[SessionScope]:
    """Resolve a tracked student session the caller may inspect.

    Teacher-preview sessions are refused even for their owner.
    """
    if not user_id:
        return _deny(DenialReason.NOT_AUTHENTICATED, session_id=session_id)
    session = store.get_session(session_id)
    if session is None:
        return _deny(DenialReason.NOT_FOUND, user_id=user_id, session_id=session_id)
    if not is_tracked(session):
        return _deny(DenialReason.PREVIEW_SESSION, user_id=user_id, session_id=session_id)
    scope = resolve_assignment(store, user_id, session.assignment_id)
    if isinstance(scope, Denied):
        return scope
    return Found(SessionScope(
        class_record=scope.value.class_record,
        assignment=scope.value.assignment,
        session=session,
    ))
