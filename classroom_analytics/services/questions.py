"""Per-question difficulty analytics for one assignment."""
from typing import Dict, List

from classroom_analytics.domain.analytics import (
    AssignmentAnalytics,
    QuestionBoxPlot,
    QuestionStat,
)
from classroom_analytics.services.assignment_data import AssignmentData
from classroom_analytics.services.statistics import calculate_stats, mean_or_zero

STRUGGLE_LIST_SIZE = 5
STAT_TEXT_LIMIT = 80
BOX_PLOT_TEXT_LIMIT = 50


def truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def struggle_score(success_rate: float, avg_messages: float) -> float:
    """Low success and many messages mean a harder question."""
    return (1 - success_rate) * max(avg_messages, 1)


class _QuestionBucket:
    __slots__ = ("messages", "times", "correct", "attempted")

    def __init__(self):
        self.messages: List[float] = []
        self.times: List[float] = []
        self.correct = 0
        self.attempted = 0


def _collect_buckets(data: AssignmentData) -> Dict[str, _QuestionBucket]:
    buckets = {q.id: _QuestionBucket() for q in data.questions}
    for session in data.sessions:
        for attempt in data.attempts(session.id):
            bucket = buckets[attempt.question_id]
            bucket.attempted += 1
            if attempt.message_count > 0:
                bucket.messages.append(attempt.message_count)
            if attempt.time_sample is not None:
                bucket.times.append(attempt.time_sample)
            if attempt.is_correct:
                bucket.correct += 1
    return buckets


def rank_struggle(stats: List[QuestionStat], top: int = STRUGGLE_LIST_SIZE) -> List[str]:
    """Question ids with the highest struggle scores.

    The sort is stable, so equal scores keep extraction order.
    """
    ranked = sorted(stats, key=lambda s: s.struggle_score, reverse=True)
    return [s.question_id for s in ranked[:top]]


def assignment_analytics(data: AssignmentData) -> AssignmentAnalytics:
    """Assignment summary with per-question success, messages and time.

    Args:
        data: Loaded assignment (countable questions, tracked sessions, joins)

    Returns:
        AssignmentAnalytics; with no tracked sessions every metric is zero,
        box plots are None and has_data is False
    """
    assignment = data.assignment
    if not data.sessions:
        return AssignmentAnalytics(
            assignment_id=assignment.id,
            assignment_name=assignment.name,
            total_students=0,
            total_questions=data.question_count,
            completion_rate=0.0,
            has_data=False,
        )

    buckets = _collect_buckets(data)

    completion_rates = []
    for session in data.sessions:
        correct = sum(1 for a in data.attempts(session.id) if a.is_correct)
        completion_rates.append(data.completion_rate(correct))

    question_stats = []
    for q in data.questions:
        bucket = buckets[q.id]
        message_stats = calculate_stats(bucket.messages)
        time_stats = calculate_stats(bucket.times)
        success_rate = bucket.correct / bucket.attempted if bucket.attempted > 0 else 0.0
        avg_messages = message_stats.mean if message_stats else 0.0
        question_stats.append(QuestionStat(
            question_id=q.id,
            question_number=q.question_number,
            question_text=truncate(q.question_text, STAT_TEXT_LIMIT),
            question_type=q.question_type.value,
            success_rate=success_rate,
            avg_messages=avg_messages,
            median_messages=message_stats.median if message_stats else 0.0,
            avg_time_ms=time_stats.mean if time_stats else 0.0,
            students_attempted=bucket.attempted,
            struggle_score=struggle_score(success_rate, avg_messages),
        ))

    all_messages = [m for b in buckets.values() for m in b.messages]
    all_times = [t for b in buckets.values() for t in b.times]

    return AssignmentAnalytics(
        assignment_id=assignment.id,
        assignment_name=assignment.name,
        total_students=len(data.sessions),
        total_questions=data.question_count,
        completion_rate=mean_or_zero(completion_rates),
        messages_box_plot=calculate_stats(all_messages),
        time_box_plot=calculate_stats(all_times),
        question_stats=question_stats,
        struggle_questions=rank_struggle(question_stats),
        has_data=bool(all_messages) or bool(completion_rates),
    )


def question_box_plots(data: AssignmentData) -> List[QuestionBoxPlot]:
    """Message and time distributions per question, in extraction order."""
    buckets = _collect_buckets(data)
    return [
        QuestionBoxPlot(
            question_id=q.id,
            question_number=q.question_number,
            question_text=truncate(q.question_text, BOX_PLOT_TEXT_LIMIT),
            messages_box_plot=calculate_stats(buckets[q.id].messages),
            time_box_plot=calculate_stats(buckets[q.id].times),
        )
        for q in data.questions
    ]
