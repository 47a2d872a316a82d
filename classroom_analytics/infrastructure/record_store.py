"""Indexed read access to platform records.

The analytics engine depends only on `RecordStore`. Each method corresponds
to one index the platform's database provides; joins across indices happen
in the services layer, never here.
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

import pandas as pd

from classroom_analytics.core.logging import get_logger
from classroom_analytics.domain.records import (
    Assignment,
    ChatMessage,
    ClassRecord,
    MessageRole,
    Question,
    QuestionStatus,
    StudentProgress,
    StudentSession,
)
from classroom_analytics.infrastructure.data_loader import (
    TABLES,
    frame_from_records,
    load_frames,
    rows_to_models,
)

logger = get_logger(__name__)


class RecordStore(ABC):
    """Read-only lookups by primary key and by foreign-key index."""

    @abstractmethod
    def get_class(self, class_id: str) -> Optional[ClassRecord]: ...

    @abstractmethod
    def get_assignment(self, assignment_id: str) -> Optional[Assignment]: ...

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[StudentSession]: ...

    @abstractmethod
    def assignments_for_class(self, class_id: str) -> List[Assignment]: ...

    @abstractmethod
    def approved_questions(self, assignment_id: str) -> List[Question]:
        """Approved questions of an assignment, skipped markers included."""

    @abstractmethod
    def sessions_for_assignment(self, assignment_id: str) -> List[StudentSession]: ...

    @abstractmethod
    def progress_for_assignment(self, assignment_id: str) -> List[StudentProgress]:
        """Progress rows carrying the denormalized assignment_id."""

    @abstractmethod
    def progress_for_session(self, session_id: str) -> List[StudentProgress]: ...

    @abstractmethod
    def student_messages_for_assignment(self, assignment_id: str) -> List[ChatMessage]:
        """Student-role messages carrying the denormalized assignment_id."""

    @abstractmethod
    def student_messages_for_session(self, session_id: str) -> List[ChatMessage]: ...


class FrameRecordStore(RecordStore):
    """RecordStore over one pandas DataFrame per table.

    Example:
        >>> store = FrameRecordStore.from_directory("data/")
        >>> store.sessions_for_assignment("asg_1")
    """

    def __init__(self, frames: Dict[str, pd.DataFrame]):
        missing = set(TABLES) - set(frames)
        self.frames = dict(frames)
        for name in missing:
            self.frames[name] = frame_from_records(TABLES[name], [])

    @classmethod
    def from_directory(cls, data_dir: str) -> "FrameRecordStore":
        return cls(load_frames(data_dir))

    @classmethod
    def from_records(
        cls,
        classes: Iterable[ClassRecord] = (),
        assignments: Iterable[Assignment] = (),
        questions: Iterable[Question] = (),
        sessions: Iterable[StudentSession] = (),
        progress: Iterable[StudentProgress] = (),
        messages: Iterable[ChatMessage] = (),
    ) -> "FrameRecordStore":
        """Build a store from model instances (fixtures, backfills, tests)."""
        return cls({
            "classes": frame_from_records(ClassRecord, classes),
            "assignments": frame_from_records(Assignment, assignments),
            "questions": frame_from_records(Question, questions),
            "student_sessions": frame_from_records(StudentSession, sessions),
            "student_progress": frame_from_records(StudentProgress, progress),
            "chat_messages": frame_from_records(ChatMessage, messages),
        })

    def _where(self, table: str, **equals) -> pd.DataFrame:
        df = self.frames[table]
        mask = pd.Series(True, index=df.index)
        for col, value in equals.items():
            mask &= df[col] == value
        return df[mask]

    def _rows(self, table: str, **equals) -> list:
        return rows_to_models(self._where(table, **equals), TABLES[table])

    def _one(self, table: str, record_id: str):
        rows = self._rows(table, id=record_id)
        return rows[0] if rows else None

    def get_class(self, class_id: str) -> Optional[ClassRecord]:
        return self._one("classes", class_id)

    def get_assignment(self, assignment_id: str) -> Optional[Assignment]:
        return self._one("assignments", assignment_id)

    def get_session(self, session_id: str) -> Optional[StudentSession]:
        return self._one("student_sessions", session_id)

    def assignments_for_class(self, class_id: str) -> List[Assignment]:
        return self._rows("assignments", class_id=class_id)

    def approved_questions(self, assignment_id: str) -> List[Question]:
        return self._rows(
            "questions", assignment_id=assignment_id, status=QuestionStatus.APPROVED.value
        )

    def sessions_for_assignment(self, assignment_id: str) -> List[StudentSession]:
        return self._rows("student_sessions", assignment_id=assignment_id)

    def progress_for_assignment(self, assignment_id: str) -> List[StudentProgress]:
        return self._rows("student_progress", assignment_id=assignment_id)

    def progress_for_session(self, session_id: str) -> List[StudentProgress]:
        return self._rows("student_progress", session_id=session_id)

    def student_messages_for_assignment(self, assignment_id: str) -> List[ChatMessage]:
        return self._rows(
            "chat_messages", assignment_id=assignment_id, role=MessageRole.STUDENT.value
        )

    def student_messages_for_session(self, session_id: str) -> List[ChatMessage]:
        return self._rows(
            "chat_messages", session_id=session_id, role=MessageRole.STUDENT.value
        )
