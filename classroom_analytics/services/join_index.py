"""Session-keyed join indices over progress and chat records.

Progress rows and chat messages carry a denormalized `assignment_id` so one
assignment-scoped query can fetch them all. Rows written before that field
existed only show up through the per-session index, so every lookup here is
two-tier: bulk by assignment first, then per session for any session whose
bucket came back empty. Aggregators only ever see the resulting maps.
"""
import concurrent.futures
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Sequence, TypeVar

from classroom_analytics.core.config import settings
from classroom_analytics.core.logging import get_logger
from classroom_analytics.domain.records import ChatMessage, MessageRole, StudentProgress
from classroom_analytics.infrastructure.record_store import RecordStore

logger = get_logger(__name__)

R = TypeVar("R")

# Thread pool for independent per-session fallback reads
_executor = None


def _get_executor() -> concurrent.futures.ThreadPoolExecutor:
    """Get or create the thread pool used for fallback queries."""
    global _executor
    if _executor is None:
        _executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=settings.fallback_max_workers,
            thread_name_prefix="join_fallback"
        )
    return _executor


@dataclass(frozen=True)
class TwoTierLookup(Generic[R]):
    """Assignment-scoped bulk read with a per-session repair path.

    Attributes:
        name: Label used in logs
        primary: assignment_id -> records carrying the denormalized id
        fallback: session_id -> all records of that session
    """
    name: str
    primary: Callable[[str], List[R]]
    fallback: Callable[[str], List[R]]

    def collect(self, assignment_id: str, session_ids: Sequence[str]) -> Dict[str, List[R]]:
        """Bucket records by session, with exactly one key per requested id."""
        buckets: Dict[str, List[R]] = {sid: [] for sid in session_ids}
        if not buckets:
            return buckets

        for record in self.primary(assignment_id):
            bucket = buckets.get(record.session_id)
            if bucket is not None:
                bucket.append(record)

        # An empty bucket is either a legacy session or one with no records;
        # the fallback cannot tell them apart and runs for both.
        missing = [sid for sid, records in buckets.items() if not records]
        if missing:
            results = _get_executor().map(self.fallback, missing)
            for sid, records in zip(missing, results):
                buckets[sid] = [r for r in records if r.session_id == sid]

        logger.debug(
            f"{self.name} index built for {assignment_id}",
            extra={
                "assignment_id": assignment_id,
                "sessions": len(buckets),
                "fallback_sessions": len(missing),
            }
        )
        return buckets


@dataclass
class JoinIndex:
    """Progress and student messages keyed by session id."""
    progress_by_session: Dict[str, List[StudentProgress]]
    messages_by_session: Dict[str, List[ChatMessage]]

    def progress(self, session_id: str) -> List[StudentProgress]:
        return self.progress_by_session.get(session_id, [])

    def messages(self, session_id: str) -> List[ChatMessage]:
        return self.messages_by_session.get(session_id, [])


def progress_lookup(store: RecordStore) -> TwoTierLookup[StudentProgress]:
    return TwoTierLookup("progress", store.progress_for_assignment, store.progress_for_session)


def student_message_lookup(store: RecordStore) -> TwoTierLookup[ChatMessage]:
    return TwoTierLookup(
        "messages", store.student_messages_for_assignment, store.student_messages_for_session
    )


def build_join_index(store: RecordStore, assignment_id: str, session_ids: Sequence[str]) -> JoinIndex:
    """Build both session-keyed maps for one assignment.

    Args:
        store: Record store to read from
        assignment_id: Assignment whose records are joined
        session_ids: Sessions to index (already filtered to tracked ones)

    Returns:
        JoinIndex whose maps each hold exactly one entry per session id
    """
    progress = progress_lookup(store).collect(assignment_id, session_ids)
    messages = student_message_lookup(store).collect(assignment_id, session_ids)
    # Stores are expected to filter by role; enforce it here as well
    messages = {
        sid: [m for m in msgs if m.role == MessageRole.STUDENT]
        for sid, msgs in messages.items()
    }
    return JoinIndex(progress_by_session=progress, messages_by_session=messages)


def count_by_question(messages: List[ChatMessage]) -> Counter:
    """Student message count per question id."""
    return Counter(m.question_id for m in messages if m.role == MessageRole.STUDENT)
