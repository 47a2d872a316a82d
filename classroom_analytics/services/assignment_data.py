"""Everything the aggregators need about one assignment, loaded once.

Holds the countable questions, the tracked sessions and the join index, and
turns a session's raw rows into attempts on countable questions. Orphaned
rows (questions deleted, unapproved or skipped) never leave this module.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from classroom_analytics.core.logging import get_logger
from classroom_analytics.domain.records import (
    Assignment,
    ChatMessage,
    ProgressStatus,
    Question,
    StudentSession,
)
from classroom_analytics.infrastructure.record_store import RecordStore
from classroom_analytics.services.join_index import JoinIndex, build_join_index, count_by_question
from classroom_analytics.services.sessions import tracked_sessions

logger = get_logger(__name__)


@dataclass
class QuestionAttempt:
    """One progress row joined with its session's message count."""
    question_id: str
    status: ProgressStatus
    message_count: int
    time_spent_ms: Optional[int]

    @property
    def is_correct(self) -> bool:
        return self.status == ProgressStatus.CORRECT

    @property
    def time_sample(self) -> Optional[int]:
        """Time spent, or None when it was never recorded."""
        if self.time_spent_ms and self.time_spent_ms > 0:
            return self.time_spent_ms
        return None


@dataclass
class AssignmentData:
    assignment: Assignment
    questions: List[Question]
    sessions: List[StudentSession]
    index: JoinIndex
    question_ids: Set[str] = field(init=False)

    def __post_init__(self):
        self.question_ids = {q.id for q in self.questions}

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def completion_rate(self, correct: int) -> float:
        """Correct over countable questions; 0 when there are none."""
        return correct / self.question_count if self.question_count > 0 else 0.0

    def student_messages(self, session_id: str) -> List[ChatMessage]:
        """Student messages of a session on countable questions."""
        return [m for m in self.index.messages(session_id) if m.question_id in self.question_ids]

    def attempts(self, session_id: str) -> List[QuestionAttempt]:
        """Progress rows of a session on countable questions."""
        counts = count_by_question(self.student_messages(session_id))
        return [
            QuestionAttempt(
                question_id=p.question_id,
                status=p.status,
                message_count=counts.get(p.question_id, 0),
                time_spent_ms=p.time_spent_ms,
            )
            for p in self.index.progress(session_id)
            if p.question_id in self.question_ids
        ]

    def samples(self) -> Dict[str, List[float]]:
        """Pooled per-question message and time samples across sessions.

        A question with no student messages contributes no message sample.
        """
        messages: List[float] = []
        times: List[float] = []
        for session in self.sessions:
            for attempt in self.attempts(session.id):
                if attempt.message_count > 0:
                    messages.append(attempt.message_count)
                if attempt.time_sample is not None:
                    times.append(attempt.time_sample)
        return {"messages": messages, "times": times}


def countable_questions(store: RecordStore, assignment_id: str) -> List[Question]:
    """Approved, non-skipped questions in extraction order."""
    questions = [q for q in store.approved_questions(assignment_id) if q.is_countable]
    return sorted(questions, key=lambda q: q.extraction_order)


def load_assignment_data(store: RecordStore, assignment: Assignment) -> AssignmentData:
    """Load questions, tracked sessions and both join maps for an assignment."""
    questions = countable_questions(store, assignment.id)
    sessions = tracked_sessions(store.sessions_for_assignment(assignment.id))
    index = build_join_index(store, assignment.id, [s.id for s in sessions])
    logger.debug(
        f"Loaded assignment data: {len(questions)} questions, {len(sessions)} sessions",
        extra={"assignment_id": assignment.id}
    )
    return AssignmentData(assignment=assignment, questions=questions, sessions=sessions, index=index)


def published_assignments(store: RecordStore, class_id: str) -> List[Assignment]:
    """Non-draft assignments of a class."""
    return [a for a in store.assignments_for_class(class_id) if a.is_published]
