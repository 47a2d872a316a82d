"""Analytics queries exposed to the dashboard.

Every method checks that the caller owns the target before computing
anything, recomputes from the record store on each call, and returns None
(single-entity queries) or [] (list queries) when the caller is anonymous,
not the owner, or the target does not exist.
"""
from typing import List, Optional

from classroom_analytics.core.logging import get_logger
from classroom_analytics.domain.analytics import (
    AssignmentAnalytics,
    AssignmentBoxPlots,
    ClassAnalytics,
    ClassStudentSummary,
    QuestionBoxPlot,
    QuestionDetail,
    StudentPerformance,
)
from classroom_analytics.infrastructure.record_store import RecordStore
from classroom_analytics.services import questions, rollup, students
from classroom_analytics.services.access import (
    AccessResult,
    Denied,
    Found,
    resolve_assignment,
    resolve_class,
    resolve_session,
)
from classroom_analytics.services.assignment_data import (
    AssignmentData,
    countable_questions,
    load_assignment_data,
    published_assignments,
)

logger = get_logger(__name__)


class AnalyticsService:
    """Read-only analytics over a RecordStore.

    Example:
        >>> service = AnalyticsService(FrameRecordStore.from_directory("data/"))
        >>> service.get_class_analytics("teacher_1", "class_1").has_data
        True
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def _class_data(self, class_id: str) -> List[AssignmentData]:
        return [load_assignment_data(self.store, a) for a in published_assignments(self.store, class_id)]

    def _assignment_data(self, user_id: Optional[str], assignment_id: str) -> AccessResult[AssignmentData]:
        scope = resolve_assignment(self.store, user_id, assignment_id)
        if isinstance(scope, Denied):
            return scope
        return Found(load_assignment_data(self.store, scope.value.assignment))

    # ----------------
    # TYPED RESULTS
    # ----------------

    def class_analytics_result(self, user_id: Optional[str], class_id: str) -> AccessResult[ClassAnalytics]:
        owner = resolve_class(self.store, user_id, class_id)
        if isinstance(owner, Denied):
            return owner
        return Found(rollup.class_analytics(self._class_data(class_id)))

    def assignment_analytics_result(
        self, user_id: Optional[str], assignment_id: str
    ) -> AccessResult[AssignmentAnalytics]:
        data = self._assignment_data(user_id, assignment_id)
        if isinstance(data, Denied):
            return data
        return Found(questions.assignment_analytics(data.value))

    def question_details_result(
        self, user_id: Optional[str], session_id: str
    ) -> AccessResult[List[QuestionDetail]]:
        scope = resolve_session(self.store, user_id, session_id)
        if isinstance(scope, Denied):
            return scope
        session = scope.value.session
        qs = countable_questions(self.store, session.assignment_id)
        return Found(students.student_question_details(self.store, session, qs))

    # ----------------
    # PUBLIC QUERIES
    # ----------------

    def get_class_analytics(self, user_id: Optional[str], class_id: str) -> Optional[ClassAnalytics]:
        """Class-wide summary across published assignments."""
        result = self.class_analytics_result(user_id, class_id)
        return result.value if isinstance(result, Found) else None

    def get_assignment_comparison_box_plots(self, user_id: Optional[str], class_id: str) -> List[AssignmentBoxPlots]:
        """Side-by-side distributions for a class's published assignments."""
        owner = resolve_class(self.store, user_id, class_id)
        if isinstance(owner, Denied):
            return []
        return rollup.assignment_comparison(self._class_data(class_id))

    def get_all_students_in_class(self, user_id: Optional[str], class_id: str) -> List[ClassStudentSummary]:
        """Students merged across assignments by display name."""
        owner = resolve_class(self.store, user_id, class_id)
        if isinstance(owner, Denied):
            return []
        return students.class_students(self._class_data(class_id))

    def get_assignment_analytics(self, user_id: Optional[str], assignment_id: str) -> Optional[AssignmentAnalytics]:
        """Per-question difficulty and struggle ranking for an assignment."""
        result = self.assignment_analytics_result(user_id, assignment_id)
        return result.value if isinstance(result, Found) else None

    def get_question_box_plots(self, user_id: Optional[str], assignment_id: str) -> List[QuestionBoxPlot]:
        data = self._assignment_data(user_id, assignment_id)
        if isinstance(data, Denied):
            return []
        return questions.question_box_plots(data.value)

    def get_student_performance(self, user_id: Optional[str], assignment_id: str) -> List[StudentPerformance]:
        """Per-session rollups for one assignment, most recent first."""
        data = self._assignment_data(user_id, assignment_id)
        if isinstance(data, Denied):
            return []
        return students.student_performance(data.value)

    def get_student_question_details(self, user_id: Optional[str], session_id: str) -> List[QuestionDetail]:
        """Drill-down for one tracked session; previews yield []."""
        result = self.question_details_result(user_id, session_id)
        return result.value if isinstance(result, Found) else []
