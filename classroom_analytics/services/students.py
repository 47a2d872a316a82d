"""Per-student performance: one assignment, a whole class, one session."""
from typing import Dict, Iterable, List

from classroom_analytics.core.logging import get_logger
from classroom_analytics.domain.analytics import (
    AssignmentPerformance,
    ClassStudentSummary,
    QuestionDetail,
    StudentPerformance,
    UnderstandingLevel,
)
from classroom_analytics.domain.records import ProgressStatus, Question, StudentSession
from classroom_analytics.infrastructure.record_store import RecordStore
from classroom_analytics.services.assignment_data import AssignmentData
from classroom_analytics.services.join_index import count_by_question

logger = get_logger(__name__)


def understanding_level(completion_rate: float, avg_messages: float) -> UnderstandingLevel:
    """Qualitative label from completion and how much help was needed.

    Args:
        completion_rate: Fraction of countable questions answered correctly
        avg_messages: Student messages per question that had any

    Returns:
        HIGH for most questions done with little help, MEDIUM for decent
        completion or moderate help, LOW otherwise
    """
    if completion_rate >= 0.8 and avg_messages <= 5:
        return UnderstandingLevel.HIGH
    if completion_rate >= 0.5 or avg_messages <= 10:
        return UnderstandingLevel.MEDIUM
    return UnderstandingLevel.LOW


def session_performance(data: AssignmentData, session: StudentSession) -> StudentPerformance:
    """Roll one session's attempts and messages into a performance record."""
    messages = data.student_messages(session.id)
    questions_with_messages = len({m.question_id for m in messages})

    questions_completed = 0
    total_time_ms = 0
    for attempt in data.attempts(session.id):
        if attempt.is_correct:
            questions_completed += 1
        if attempt.time_sample is not None:
            total_time_ms += attempt.time_sample

    completion_rate = data.completion_rate(questions_completed)
    avg_messages = len(messages) / questions_with_messages if questions_with_messages > 0 else 0.0

    return StudentPerformance(
        session_id=session.id,
        name=session.name,
        started_at=session.started_at,
        last_active_at=session.last_active_at,
        questions_completed=questions_completed,
        total_questions=data.question_count,
        completion_rate=completion_rate,
        total_messages=len(messages),
        avg_messages=avg_messages,
        total_time_ms=total_time_ms,
        understanding_level=understanding_level(completion_rate, avg_messages),
    )


def student_performance(data: AssignmentData) -> List[StudentPerformance]:
    """One record per tracked session, most recently active first."""
    records = [session_performance(data, s) for s in data.sessions]
    records.sort(key=lambda r: r.last_active_at, reverse=True)
    return records


def roster_avg_messages(data: AssignmentData, session_id: str) -> float:
    """Student messages per progress row of a session.

    Unlike StudentPerformance.avg_messages, the roster divides by questions
    the student has progress on, whether or not they asked for help.
    """
    attempts = data.attempts(session_id)
    if not attempts:
        return 0.0
    return len(data.student_messages(session_id)) / len(attempts)


def _merge(student: ClassStudentSummary, perf: StudentPerformance, data: AssignmentData) -> None:
    student.assignments.append(AssignmentPerformance(
        assignment_id=data.assignment.id,
        assignment_name=data.assignment.name,
        session_id=perf.session_id,
        questions_completed=perf.questions_completed,
        total_questions=perf.total_questions,
        completion_rate=perf.completion_rate,
        avg_messages=roster_avg_messages(data, perf.session_id),
        total_time_ms=perf.total_time_ms,
        last_active_at=perf.last_active_at,
    ))
    student.total_questions_completed += perf.questions_completed
    student.total_questions += perf.total_questions
    student.total_message_count += perf.total_messages
    # Recomputed from totals so short assignments don't dominate
    if student.total_questions > 0:
        student.overall_completion_rate = student.total_questions_completed / student.total_questions
        student.overall_avg_messages = student.total_message_count / student.total_questions
    else:
        student.overall_completion_rate = 0.0
        student.overall_avg_messages = 0.0
    student.last_active_at = max(student.last_active_at, perf.last_active_at)


def class_students(assignment_data: Iterable[AssignmentData]) -> List[ClassStudentSummary]:
    """Merge per-session results across assignments by display name.

    Assignments without countable questions are left out. Two students who
    typed the same name are merged into one record.

    Returns:
        Merged students, most recently active first
    """
    students: Dict[str, ClassStudentSummary] = {}
    for data in assignment_data:
        if data.question_count == 0:
            logger.debug("Skipping assignment without countable questions",
                         extra={"assignment_id": data.assignment.id})
            continue
        for session in data.sessions:
            perf = session_performance(data, session)
            student = students.setdefault(session.name, ClassStudentSummary(name=session.name))
            _merge(student, perf, data)

    return sorted(students.values(), key=lambda s: s.last_active_at, reverse=True)


def student_question_details(
    store: RecordStore, session: StudentSession, questions: List[Question]
) -> List[QuestionDetail]:
    """Per-question status, messages and time for one session.

    Reads the session-scoped indices directly, which cover rows with and
    without the denormalized assignment id.

    Args:
        store: Record store
        session: A tracked session (callers reject previews)
        questions: Countable questions in extraction order
    """
    progress = {}
    for p in store.progress_for_session(session.id):
        progress.setdefault(p.question_id, p)
    counts = count_by_question(store.student_messages_for_session(session.id))

    details = []
    for q in questions:
        p = progress.get(q.id)
        details.append(QuestionDetail(
            question_id=q.id,
            question_number=q.question_number,
            question_text=q.question_text,
            status=(p.status if p else ProgressStatus.NOT_STARTED).value,
            message_count=counts.get(q.id, 0),
            time_spent_ms=(p.time_spent_ms or 0) if p else 0,
        ))
    return details
