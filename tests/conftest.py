import os
from datetime import datetime, timedelta, timezone

TEST_DB_FILE = "test_gradekeeper.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# must be set before gradekeeper.core.config is imported
os.environ["GRADEKEEPER_DATABASE_URL"] = TEST_DB_URL

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from gradekeeper.core.deps import get_db, get_now  # noqa: E402
from gradekeeper.db.base_class import Base  # noqa: E402
from gradekeeper.engine.enums import LifecycleState, Role, SubmissionType  # noqa: E402
from gradekeeper.main import app  # noqa: E402
from gradekeeper.models.assignment import Assignment  # noqa: E402
from gradekeeper.models.course import Course  # noqa: E402
from gradekeeper.models.submission import Submission  # noqa: E402
from gradekeeper.models.user import User  # noqa: E402

NOW = datetime(2025, 10, 24, 12, 0, tzinfo=timezone.utc)

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed():
    """Seed a clean minimal dataset for each test and return the ids."""
    db = TestingSessionLocal()
    try:
        return _seed(db)
    finally:
        db.close()


def _seed(db) -> dict:
    # Clear tables (child -> parent)
    db.query(Submission).delete()
    db.query(Assignment).delete()
    db.query(Course).delete()
    db.query(User).delete()
    db.commit()

    student = User(email="student1@example.com", full_name="Student One", role=Role.STUDENT)
    other = User(email="student2@example.com", full_name="Student Two", role=Role.STUDENT)
    instructor = User(email="instructor1@example.com", full_name="Instructor One", role=Role.INSTRUCTOR)
    outsider = User(email="instructor2@example.com", full_name="Instructor Two", role=Role.INSTRUCTOR)
    admin = User(email="admin@example.com", full_name="Admin", role=Role.ADMIN)
    db.add_all([student, other, instructor, outsider, admin])
    db.commit()

    course = Course(title="CS5004", instructor_id=instructor.id)
    db.add(course)
    db.commit()

    published = Assignment(
        course_id=course.id,
        created_by=instructor.id,
        title="HW1",
        due_at=NOW + timedelta(days=1),
        max_score=50,
        submission_type=SubmissionType.TEXT,
        rubric=[
            {"label": "Correctness", "max_score": 30, "description": None},
            {"label": "Style", "max_score": 20, "description": None},
        ],
        status=LifecycleState.PUBLISHED,
    )
    draft = Assignment(
        course_id=course.id,
        created_by=instructor.id,
        title="HW2",
        due_at=NOW + timedelta(days=7),
        max_score=100,
        submission_type=SubmissionType.TEXT,
        rubric=[],
        status=LifecycleState.DRAFT,
    )
    db.add_all([published, draft])
    db.commit()

    return {
        "student": student.id,
        "other": other.id,
        "instructor": instructor.id,
        "outsider": outsider.id,
        "admin": admin.id,
        "course": course.id,
        "published": published.id,
        "draft": draft.id,
    }


@pytest.fixture()
def clock():
    return FrozenClock(NOW)


@pytest.fixture()
def client(clock):
    """Test client that uses the test DB session and a frozen clock."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def as_user(user_id: int) -> dict:
    return {"X-User-Id": str(user_id)}
