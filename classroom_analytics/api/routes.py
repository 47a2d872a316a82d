"""Read-only analytics routes for the teacher dashboard.

All routes respond 200. When the caller is anonymous, does not own the
target, or the target does not exist, single-entity routes return null and
list routes return [].
"""
from functools import lru_cache
from typing import Callable, List, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException

from classroom_analytics.core.auth import User, get_optional_user, user_id_of
from classroom_analytics.core.config import settings
from classroom_analytics.core.logging import get_logger, LogTimer
from classroom_analytics.domain.analytics import (
    AssignmentAnalytics,
    AssignmentBoxPlots,
    ClassAnalytics,
    ClassStudentSummary,
    QuestionBoxPlot,
    QuestionDetail,
    StudentPerformance,
)
from classroom_analytics.infrastructure.record_store import FrameRecordStore
from classroom_analytics.services.analytics import AnalyticsService

logger = get_logger(__name__)
router = APIRouter(prefix=settings.api_prefix)

T = TypeVar("T")


@lru_cache(maxsize=1)
def get_analytics_service() -> AnalyticsService:
    """Service over the record files in DATA_DIR, created on first use."""
    logger.info(f"Loading records from {settings.data_dir}")
    return AnalyticsService(FrameRecordStore.from_directory(settings.data_dir))


def _run(operation: str, query: Callable[[], T], **context) -> T:
    with LogTimer(logger, operation):
        try:
            return query()
        except Exception as exc:
            logger.error(f"{operation} failed: {exc}", extra=context, exc_info=True)
            raise HTTPException(status_code=502, detail=f"Failed to compute {operation}")


# -----------------
# CLASS ENDPOINTS
# -----------------

@router.get("/classes/{class_id}/analytics", response_model=Optional[ClassAnalytics])
async def class_analytics(
    class_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Class-wide completion, message and time summary."""
    return _run(
        "class_analytics",
        lambda: service.get_class_analytics(user_id_of(current_user), class_id),
        class_id=class_id,
    )


@router.get("/classes/{class_id}/assignment-comparison", response_model=List[AssignmentBoxPlots])
async def assignment_comparison(
    class_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Per-assignment box plots for side-by-side comparison."""
    return _run(
        "assignment_comparison",
        lambda: service.get_assignment_comparison_box_plots(user_id_of(current_user), class_id),
        class_id=class_id,
    )


@router.get("/classes/{class_id}/students", response_model=List[ClassStudentSummary])
async def class_students(
    class_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Every student in the class, merged across assignments by name."""
    return _run(
        "class_students",
        lambda: service.get_all_students_in_class(user_id_of(current_user), class_id),
        class_id=class_id,
    )


# -----------------
# ASSIGNMENT ENDPOINTS
# -----------------

@router.get("/assignments/{assignment_id}/analytics", response_model=Optional[AssignmentAnalytics])
async def assignment_analytics(
    assignment_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Per-question success, messages, time and struggle ranking."""
    return _run(
        "assignment_analytics",
        lambda: service.get_assignment_analytics(user_id_of(current_user), assignment_id),
        assignment_id=assignment_id,
    )


@router.get("/assignments/{assignment_id}/students", response_model=List[StudentPerformance])
async def assignment_students(
    assignment_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Per-session performance for one assignment, most recent first."""
    return _run(
        "student_performance",
        lambda: service.get_student_performance(user_id_of(current_user), assignment_id),
        assignment_id=assignment_id,
    )


@router.get("/assignments/{assignment_id}/question-box-plots", response_model=List[QuestionBoxPlot])
async def question_box_plots(
    assignment_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Message and time box plots for each question of an assignment."""
    return _run(
        "question_box_plots",
        lambda: service.get_question_box_plots(user_id_of(current_user), assignment_id),
        assignment_id=assignment_id,
    )


# -----------------
# SESSION ENDPOINTS
# -----------------

@router.get("/sessions/{session_id}/questions", response_model=List[QuestionDetail])
async def session_questions(
    session_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Per-question drill-down for one student session."""
    return _run(
        "student_question_details",
        lambda: service.get_student_question_details(user_id_of(current_user), session_id),
        session_id=session_id,
    )
