"""Unit tests for JSON record loading and the frame-backed store."""
import json

import pytest

from classroom_analytics.domain.records import ListAnswer, NotesSource, PageSource, TextAnswer
from classroom_analytics.infrastructure.data_loader import RecordStoreError, load_frames
from classroom_analytics.infrastructure.record_store import FrameRecordStore
from classroom_analytics.services.analytics import AnalyticsService


def _write(path, name, rows):
    (path / f"{name}.json").write_text(json.dumps(rows))


@pytest.fixture
def data_dir(tmp_path):
    """A small export in the platform's raw shapes."""
    _write(tmp_path, "classes", [
        {"id": "c1", "name": "Chemistry", "teacher_id": "t1"},
    ])
    _write(tmp_path, "assignments", [
        {"id": "a1", "class_id": "c1", "name": "Moles"},
        {"id": "a2", "class_id": "c1", "name": "Draft", "is_draft": True},
    ])
    _write(tmp_path, "questions", [
        {"id": "q1", "assignment_id": "a1", "question_number": 1, "extraction_order": 1,
         "question_text": "Molar mass of water?", "question_type": "single_value",
         "status": "approved", "answer": "18", "source": "notes"},
        {"id": "q2", "assignment_id": "a1", "question_number": "2b", "extraction_order": 2,
         "question_text": "Name two gases", "question_type": "short_answer",
         "status": "approved", "answer": ["O2", "N2"], "source": ["p. 4"]},
        {"id": "q3", "assignment_id": "a1", "question_number": 3, "extraction_order": 3,
         "question_text": "Draft", "question_type": "free_response", "status": "ready"},
    ])
    _write(tmp_path, "student_sessions", [
        {"id": "s1", "assignment_id": "a1", "name": "Ana", "last_active_at": 1700000000000},
    ])
    _write(tmp_path, "student_progress", [
        {"id": "p1", "session_id": "s1", "question_id": "q1", "assignment_id": "a1",
         "status": "correct", "time_spent_ms": 1500},
        {"id": "p2", "session_id": "s1", "question_id": "q2", "status": "in_progress"},
    ])
    # chat_messages.json is intentionally absent
    return tmp_path


class TestLoadFrames:
    """Test reading exported tables."""

    def test_missing_directory(self, tmp_path):
        with pytest.raises(RecordStoreError):
            load_frames(str(tmp_path / "nowhere"))

    def test_malformed_file(self, tmp_path):
        (tmp_path / "classes.json").write_text("{not json")

        with pytest.raises(RecordStoreError):
            load_frames(str(tmp_path))

    def test_missing_table_is_empty(self, data_dir):
        store = FrameRecordStore.from_directory(str(data_dir))

        assert store.student_messages_for_session("s1") == []
        assert store.student_messages_for_assignment("a1") == []


class TestFrameRecordStore:
    """Test indexed lookups over loaded tables."""

    def test_lookup_by_id(self, data_dir):
        store = FrameRecordStore.from_directory(str(data_dir))

        assert store.get_class("c1").teacher_id == "t1"
        assert store.get_class("missing") is None
        assert store.get_session("s1").started_at == 0
        assert store.get_session("s1").session_mode is None

    def test_drafts_kept_in_store(self, data_dir):
        store = FrameRecordStore.from_directory(str(data_dir))

        assignments = {a.id: a for a in store.assignments_for_class("c1")}

        assert assignments["a1"].is_published
        assert not assignments["a2"].is_published

    def test_raw_question_shapes_are_normalized(self, data_dir):
        store = FrameRecordStore.from_directory(str(data_dir))

        questions = {q.id: q for q in store.approved_questions("a1")}

        assert set(questions) == {"q1", "q2"}
        assert questions["q1"].question_number == "1"
        assert questions["q1"].answer == TextAnswer(value="18")
        assert isinstance(questions["q1"].source, NotesSource)
        assert questions["q2"].question_number == "2b"
        assert questions["q2"].answer == ListAnswer(values=["O2", "N2"])
        assert questions["q2"].answer.display() == "O2, N2"
        assert questions["q2"].source == PageSource(pages=["p. 4"])

    def test_progress_indices(self, data_dir):
        """Rows without assignment_id only appear in the session index."""
        store = FrameRecordStore.from_directory(str(data_dir))

        assert [p.id for p in store.progress_for_assignment("a1")] == ["p1"]
        by_session = {p.id: p for p in store.progress_for_session("s1")}
        assert set(by_session) == {"p1", "p2"}
        assert by_session["p1"].time_spent_ms == 1500
        assert by_session["p2"].time_spent_ms is None

    def test_single_number_questions_load_and_aggregate(self, tmp_path):
        """Numeric questions written by extraction are a valid type."""
        _write(tmp_path, "classes", [{"id": "c", "name": "Physics", "teacher_id": "t"}])
        _write(tmp_path, "assignments", [{"id": "a", "class_id": "c", "name": "Units"}])
        _write(tmp_path, "questions", [
            {"id": "q", "assignment_id": "a", "question_number": 1, "extraction_order": 1,
             "question_text": "g in m/s^2?", "question_type": "single_number",
             "status": "approved", "answer": "9.8"},
        ])
        _write(tmp_path, "student_sessions", [
            {"id": "s", "assignment_id": "a", "name": "Ana", "last_active_at": 5},
        ])
        _write(tmp_path, "student_progress", [
            {"id": "p", "session_id": "s", "question_id": "q", "assignment_id": "a",
             "status": "correct", "time_spent_ms": 2000},
        ])
        service = AnalyticsService(FrameRecordStore.from_directory(str(tmp_path)))

        result = service.get_assignment_analytics("t", "a")

        assert result.question_stats[0].question_type == "single_number"
        assert result.completion_rate == 1.0
        assert len(service.get_all_students_in_class("t", "c")) == 1

    def test_from_records_filters_messages_by_role(self, store):
        messages = store.student_messages_for_assignment("asg_1")

        assert messages
        assert all(m.role.value == "student" for m in messages)
