"""Domain models for the records the analytics engine reads.

Every entity here is written by other parts of the platform (assignment
setup, question extraction, the student tutoring flow). The analytics layer
only reads them. Timestamps are epoch milliseconds.
"""
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    SINGLE_VALUE = "single_value"
    SINGLE_NUMBER = "single_number"
    SHORT_ANSWER = "short_answer"
    FREE_RESPONSE = "free_response"
    SKIPPED = "skipped"


class QuestionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    APPROVED = "approved"


class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class MessageRole(str, Enum):
    STUDENT = "student"
    TUTOR = "tutor"
    SYSTEM = "system"


class SessionMode(str, Enum):
    STUDENT = "student"
    TEACHER_PREVIEW = "teacher_preview"


# ----------------
# ANSWER VARIANTS
# ----------------

class TextAnswer(BaseModel):
    """A single expected answer (free text, a value, or one MCQ option)."""
    kind: Literal["text"] = "text"
    value: str

    def display(self) -> str:
        return self.value


class ListAnswer(BaseModel):
    """Several accepted answers or answer parts."""
    kind: Literal["list"] = "list"
    values: List[str]

    def display(self) -> str:
        return ", ".join(self.values)


Answer = Annotated[Union[TextAnswer, ListAnswer], Field(discriminator="kind")]


class NotesSource(BaseModel):
    """Answer was generated from the teacher's uploaded notes."""
    kind: Literal["notes"] = "notes"

    def display(self) -> str:
        return "notes"


class PageSource(BaseModel):
    """Answer was grounded in specific pages or excerpts."""
    kind: Literal["pages"] = "pages"
    pages: List[str]

    def display(self) -> str:
        return "; ".join(self.pages)


AnswerSource = Annotated[Union[NotesSource, PageSource], Field(discriminator="kind")]


# ----------------
# ENTITIES
# ----------------

class ClassRecord(BaseModel):
    """A class owned by one teacher."""
    id: str
    name: str
    section: Optional[str] = None
    teacher_id: str


class Assignment(BaseModel):
    """An assignment in a class. Drafts never appear in analytics."""
    id: str
    class_id: str
    name: str
    is_draft: Optional[bool] = None
    status: Optional[str] = None

    @property
    def is_published(self) -> bool:
        return not self.is_draft


class Question(BaseModel):
    """A question extracted from an assignment.

    `answer` and `source` are stored in a few raw shapes (a bare string, a
    list of strings, the literal "notes"); they are normalized into tagged
    variants on load.
    """
    id: str
    assignment_id: str
    question_number: str
    extraction_order: int
    question_text: str
    question_type: QuestionType
    status: QuestionStatus
    answer: Optional[Answer] = None
    key_points: Optional[List[str]] = None
    source: Optional[AnswerSource] = None

    @field_validator("question_number", mode="before")
    @classmethod
    def _number_as_label(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value

    @field_validator("answer", mode="before")
    @classmethod
    def _tag_answer(cls, value):
        if isinstance(value, str):
            return {"kind": "text", "value": value}
        if isinstance(value, list):
            return {"kind": "list", "values": value}
        return value

    @field_validator("source", mode="before")
    @classmethod
    def _tag_source(cls, value):
        if value == "notes":
            return {"kind": "notes"}
        if isinstance(value, list):
            return {"kind": "pages", "pages": value}
        return value

    @property
    def is_countable(self) -> bool:
        """Approved and not a skipped marker."""
        return self.status == QuestionStatus.APPROVED and self.question_type != QuestionType.SKIPPED


class StudentSession(BaseModel):
    """One student's attempt at one assignment.

    `name` is whatever the student typed; it is the only key available for
    matching the same student across assignments.
    """
    id: str
    assignment_id: str
    name: str
    started_at: int = 0
    last_active_at: int
    session_mode: Optional[SessionMode] = None


class StudentProgress(BaseModel):
    """Progress on one question within one session.

    `assignment_id` is a denormalized copy; rows written before it existed
    leave it empty.
    """
    id: str
    session_id: str
    question_id: str
    assignment_id: Optional[str] = None
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    time_spent_ms: Optional[int] = None


class ChatMessage(BaseModel):
    """A tutoring chat turn tied to a (session, question) pair."""
    id: str
    session_id: str
    question_id: str
    assignment_id: Optional[str] = None
    role: MessageRole
    created_at: int = 0
    content: Optional[str] = None
