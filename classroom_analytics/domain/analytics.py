"""Domain models for analytics results consumed by dashboards."""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class BoxPlot(BaseModel):
    """Five-number summary plus mean for a sample distribution."""
    min: float
    q1: float
    median: float
    q3: float
    max: float
    mean: float

    class Config:
        json_schema_extra = {
            "example": {"min": 1, "q1": 1.75, "median": 2.5, "q3": 3.25, "max": 4, "mean": 2.5}
        }


class UnderstandingLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ----------------
# PER-QUESTION
# ----------------

class QuestionStat(BaseModel):
    """Difficulty metrics for one question across all tracked sessions."""
    question_id: str
    question_number: str
    question_text: str
    question_type: str
    success_rate: float = Field(ge=0, le=1)
    avg_messages: float
    median_messages: float
    avg_time_ms: float
    students_attempted: int
    struggle_score: float


class AssignmentAnalytics(BaseModel):
    """Assignment-level summary with per-question breakdown."""
    assignment_id: str
    assignment_name: str
    total_students: int
    total_questions: int
    completion_rate: float
    messages_box_plot: Optional[BoxPlot] = None
    time_box_plot: Optional[BoxPlot] = None
    question_stats: List[QuestionStat] = Field(default_factory=list)
    struggle_questions: List[str] = Field(default_factory=list)
    has_data: bool


class QuestionBoxPlot(BaseModel):
    question_id: str
    question_number: str
    question_text: str
    messages_box_plot: Optional[BoxPlot] = None
    time_box_plot: Optional[BoxPlot] = None


# ----------------
# PER-STUDENT
# ----------------

class StudentPerformance(BaseModel):
    """One tracked session's rollup within a single assignment."""
    session_id: str
    name: str
    started_at: int
    last_active_at: int
    questions_completed: int
    total_questions: int
    completion_rate: float
    total_messages: int
    avg_messages: float
    total_time_ms: int
    understanding_level: UnderstandingLevel


class AssignmentPerformance(BaseModel):
    """A student's result on one assignment inside a class roster entry."""
    assignment_id: str
    assignment_name: str
    session_id: str
    questions_completed: int
    total_questions: int
    completion_rate: float
    avg_messages: float
    total_time_ms: int
    last_active_at: int


class ClassStudentSummary(BaseModel):
    """A student merged across assignments by display name.

    Two students who typed the same name end up in one record; there is no
    stronger identity in the data.
    """
    name: str
    assignments: List[AssignmentPerformance] = Field(default_factory=list)
    total_questions_completed: int = 0
    total_questions: int = 0
    overall_completion_rate: float = 0.0
    total_message_count: int = 0
    overall_avg_messages: float = 0.0
    last_active_at: int = 0


class QuestionDetail(BaseModel):
    """Drill-down row for one question of one session."""
    question_id: str
    question_number: str
    question_text: str
    status: str
    message_count: int
    time_spent_ms: int


# ----------------
# CLASS ROLLUP
# ----------------

class AssignmentSummary(BaseModel):
    assignment_id: str
    assignment_name: str
    student_count: int
    completion_rate: float
    question_count: int


class ClassAnalytics(BaseModel):
    """Class-wide summary across all published assignments.

    `has_data` is False both when there are no published assignments and when
    assignments exist but nobody has sent a message or completed a question.
    """
    total_students: int = 0
    total_questions_completed: int = 0
    overall_completion_rate: float = 0.0
    avg_messages_per_question: float = 0.0
    median_messages: float = 0.0
    avg_time_per_question_ms: float = 0.0
    assignment_stats: List[AssignmentSummary] = Field(default_factory=list)
    all_messages_box_plot: Optional[BoxPlot] = None
    all_times_box_plot: Optional[BoxPlot] = None
    has_data: bool = False


class AssignmentBoxPlots(BaseModel):
    """Per-assignment distributions for side-by-side comparison."""
    assignment_id: str
    assignment_name: str
    messages_box_plot: Optional[BoxPlot] = None
    time_box_plot: Optional[BoxPlot] = None
