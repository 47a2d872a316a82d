"""Pytest configuration and shared fixtures.

The default dataset (class_1, owned by teacher_001):

asg_1: countable q1, q2; q3 skipped; q4 pending
    s_alice_1 "Alice"   q1 correct 60s (2 msgs), q2 incorrect 30s (4 msgs),
                        plus an orphaned progress row and orphaned messages
    s_bob     "Bob"     no mode; q1 correct 20s (1 msg), q2 correct, no time
    s_cara    "Cara"    legacy rows without assignment_id; q1 incorrect 40s (3 msgs)
    s_preview           teacher preview, must never count
asg_2: countable q5..q8
    s_alice_2 "Alice"   all four correct, 10s each, 1 msg on q5 and q6
    s_dan     "Dan"     no records at all
asg_empty: one question, no sessions
asg_draft: draft, with a session that must never count
"""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from classroom_analytics.core.auth import User, create_access_token
from classroom_analytics.domain.records import (
    Assignment,
    ChatMessage,
    ClassRecord,
    Question,
    StudentProgress,
    StudentSession,
)
from classroom_analytics.infrastructure.record_store import FrameRecordStore
from classroom_analytics.services.analytics import AnalyticsService

TEACHER_ID = "teacher_001"
OTHER_TEACHER_ID = "teacher_002"


def make_question(qid, assignment_id, order, question_type="short_answer", status="approved", text=None):
    return Question(
        id=qid,
        assignment_id=assignment_id,
        question_number=str(order),
        extraction_order=order,
        question_text=text or f"Question {qid}",
        question_type=question_type,
        status=status,
    )


def make_progress(session_id, question_id, status, time_ms=None, assignment_id=None):
    return StudentProgress(
        id=f"p_{session_id}_{question_id}",
        session_id=session_id,
        question_id=question_id,
        assignment_id=assignment_id,
        status=status,
        time_spent_ms=time_ms,
    )


def make_messages(session_id, question_id, count, role="student", assignment_id=None):
    return [
        ChatMessage(
            id=f"m_{session_id}_{question_id}_{role}_{i}",
            session_id=session_id,
            question_id=question_id,
            assignment_id=assignment_id,
            role=role,
            created_at=i,
        )
        for i in range(count)
    ]


def build_records():
    classes = [
        ClassRecord(id="class_1", name="Algebra I", section="P3", teacher_id=TEACHER_ID),
        ClassRecord(id="class_2", name="Biology", teacher_id=OTHER_TEACHER_ID),
    ]
    assignments = [
        Assignment(id="asg_1", class_id="class_1", name="Linear Equations", is_draft=False),
        Assignment(id="asg_2", class_id="class_1", name="Inequalities"),
        Assignment(id="asg_empty", class_id="class_1", name="Functions", is_draft=False),
        Assignment(id="asg_draft", class_id="class_1", name="Quadratics (draft)", is_draft=True),
        Assignment(id="asg_bio", class_id="class_2", name="Cells"),
    ]
    questions = [
        make_question("q1", "asg_1", 1),
        make_question("q2", "asg_1", 2, question_type="multiple_choice"),
        make_question("q3", "asg_1", 3, question_type="skipped"),
        make_question("q4", "asg_1", 4, status="pending"),
        make_question("q5", "asg_2", 1),
        make_question("q6", "asg_2", 2),
        make_question("q7", "asg_2", 3),
        make_question("q8", "asg_2", 4),
        make_question("q9", "asg_empty", 1),
        make_question("qd", "asg_draft", 1),
        make_question("qb", "asg_bio", 1),
    ]
    sessions = [
        StudentSession(id="s_alice_1", assignment_id="asg_1", name="Alice",
                       started_at=100, last_active_at=3000, session_mode="student"),
        StudentSession(id="s_bob", assignment_id="asg_1", name="Bob",
                       started_at=200, last_active_at=5000),
        StudentSession(id="s_cara", assignment_id="asg_1", name="Cara",
                       started_at=50, last_active_at=1000, session_mode="student"),
        StudentSession(id="s_preview", assignment_id="asg_1", name="Ms. Teacher",
                       started_at=10, last_active_at=9000, session_mode="teacher_preview"),
        StudentSession(id="s_alice_2", assignment_id="asg_2", name="Alice",
                       started_at=7000, last_active_at=8000, session_mode="student"),
        StudentSession(id="s_dan", assignment_id="asg_2", name="Dan",
                       started_at=1500, last_active_at=2000, session_mode="student"),
        StudentSession(id="s_eve", assignment_id="asg_draft", name="Eve",
                       started_at=1, last_active_at=9999, session_mode="student"),
        StudentSession(id="s_bio", assignment_id="asg_bio", name="Zed",
                       started_at=1, last_active_at=1, session_mode="student"),
    ]
    progress = [
        make_progress("s_alice_1", "q1", "correct", 60000, "asg_1"),
        make_progress("s_alice_1", "q2", "incorrect", 30000, "asg_1"),
        make_progress("s_alice_1", "q_deleted", "correct", 5000, "asg_1"),
        make_progress("s_alice_1", "q3", "correct", 5000, "asg_1"),
        make_progress("s_bob", "q1", "correct", 20000, "asg_1"),
        make_progress("s_bob", "q2", "correct", 0, "asg_1"),
        make_progress("s_preview", "q1", "correct", 1000, "asg_1"),
        make_progress("s_preview", "q2", "correct", 1000, "asg_1"),
        make_progress("s_cara", "q1", "incorrect", 40000),
        make_progress("s_alice_2", "q5", "correct", 10000, "asg_2"),
        make_progress("s_alice_2", "q6", "correct", 10000, "asg_2"),
        make_progress("s_alice_2", "q7", "correct", 10000, "asg_2"),
        make_progress("s_alice_2", "q8", "correct", 10000, "asg_2"),
        make_progress("s_eve", "qd", "correct", 10000, "asg_draft"),
        make_progress("s_bio", "qb", "correct", 10000, "asg_bio"),
    ]
    messages = (
        make_messages("s_alice_1", "q1", 2, assignment_id="asg_1")
        + make_messages("s_alice_1", "q1", 1, role="tutor", assignment_id="asg_1")
        + make_messages("s_alice_1", "q2", 4, assignment_id="asg_1")
        + make_messages("s_alice_1", "q_deleted", 2, assignment_id="asg_1")
        + make_messages("s_bob", "q1", 1, assignment_id="asg_1")
        + make_messages("s_preview", "q2", 10, assignment_id="asg_1")
        + make_messages("s_cara", "q1", 3)
        + make_messages("s_alice_2", "q5", 1, assignment_id="asg_2")
        + make_messages("s_alice_2", "q6", 1, assignment_id="asg_2")
        + make_messages("s_eve", "qd", 5, assignment_id="asg_draft")
    )
    return {
        "classes": classes,
        "assignments": assignments,
        "questions": questions,
        "sessions": sessions,
        "progress": progress,
        "messages": messages,
    }


@pytest.fixture
def records():
    """Raw model instances for the default dataset."""
    return build_records()


@pytest.fixture
def store(records):
    """In-memory record store over the default dataset."""
    return FrameRecordStore.from_records(**records)


@pytest.fixture
def service(store):
    return AnalyticsService(store)


@pytest.fixture
def factory():
    """Record builders for tests that need their own small dataset."""
    return SimpleNamespace(
        question=make_question,
        progress=make_progress,
        messages=make_messages,
        store=FrameRecordStore.from_records,
    )


@pytest.fixture
def teacher_token():
    return create_access_token(User(id=TEACHER_ID, email="teacher@school.edu", name="Ms. Rivera"))


@pytest.fixture
def other_teacher_token():
    return create_access_token(User(id=OTHER_TEACHER_ID, name="Mr. Okafor"))


@pytest.fixture
def test_client(service):
    """FastAPI test client wired to the in-memory service."""
    from main import app
    from classroom_analytics.api.routes import get_analytics_service

    app.dependency_overrides[get_analytics_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def authenticated_client(test_client, teacher_token):
    test_client.headers.update({"Authorization": f"Bearer {teacher_token}"})
    return test_client
