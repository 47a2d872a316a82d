"""Class-wide rollups composed from per-assignment data."""
from typing import Iterable, List

from classroom_analytics.domain.analytics import (
    AssignmentBoxPlots,
    AssignmentSummary,
    ClassAnalytics,
)
from classroom_analytics.services.assignment_data import AssignmentData
from classroom_analytics.services.statistics import calculate_stats, mean_or_zero


def class_analytics(assignment_data: List[AssignmentData]) -> ClassAnalytics:
    """Summarize every published assignment of a class.

    The overall completion rate is the plain mean of per-session completion
    rates (not weighted by question count). Message and time samples are
    pooled from all assignments.

    Args:
        assignment_data: Loaded data for each published assignment

    Returns:
        ClassAnalytics; the zero-shaped result when there are no assignments
    """
    if not assignment_data:
        return ClassAnalytics()

    all_messages: List[float] = []
    all_times: List[float] = []
    completion_rates: List[float] = []
    total_completed = 0
    unique_students = set()
    assignment_stats = []

    for data in assignment_data:
        assignment_rates = []
        for session in data.sessions:
            unique_students.add(session.name)
            correct = 0
            for attempt in data.attempts(session.id):
                if attempt.is_correct:
                    correct += 1
                if attempt.message_count > 0:
                    all_messages.append(attempt.message_count)
                if attempt.time_sample is not None:
                    all_times.append(attempt.time_sample)
            total_completed += correct
            assignment_rates.append(data.completion_rate(correct))

        completion_rates.extend(assignment_rates)
        assignment_stats.append(AssignmentSummary(
            assignment_id=data.assignment.id,
            assignment_name=data.assignment.name,
            student_count=len(data.sessions),
            completion_rate=mean_or_zero(assignment_rates),
            question_count=data.question_count,
        ))

    message_stats = calculate_stats(all_messages)
    time_stats = calculate_stats(all_times)

    return ClassAnalytics(
        total_students=len(unique_students),
        total_questions_completed=total_completed,
        overall_completion_rate=mean_or_zero(completion_rates),
        avg_messages_per_question=message_stats.mean if message_stats else 0.0,
        median_messages=message_stats.median if message_stats else 0.0,
        avg_time_per_question_ms=time_stats.mean if time_stats else 0.0,
        assignment_stats=assignment_stats,
        all_messages_box_plot=message_stats,
        all_times_box_plot=time_stats,
        has_data=bool(all_messages) or total_completed > 0,
    )


def assignment_comparison(assignment_data: Iterable[AssignmentData]) -> List[AssignmentBoxPlots]:
    """Per-assignment distributions; assignments without samples are omitted."""
    plots = []
    for data in assignment_data:
        samples = data.samples()
        if not samples["messages"] and not samples["times"]:
            continue
        plots.append(AssignmentBoxPlots(
            assignment_id=data.assignment.id,
            assignment_name=data.assignment.name,
            messages_box_plot=calculate_stats(samples["messages"]),
            time_box_plot=calculate_stats(samples["times"]),
        ))
    return plots
