"""Which sessions count toward reported metrics."""
from typing import List, TypeVar

from classroom_analytics.domain.records import SessionMode, StudentSession

S = TypeVar("S", bound=StudentSession)


def is_tracked(session: StudentSession) -> bool:
    """False for teacher-preview sessions; a missing mode counts as a student."""
    return session.session_mode != SessionMode.TEACHER_PREVIEW


def tracked_sessions(sessions: List[S]) -> List[S]:
    """Drop teacher-preview sessions, keeping input order."""
    return [s for s in sessions if is_tracked(s)]
