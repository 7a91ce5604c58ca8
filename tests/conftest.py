"""Pytest configuration and shared fixtures."""
import os

# Keep the app module from touching a real database file or seeding it
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("HRTRAIN_SEED_DEFAULTS", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from hrtrain.database import Base
from hrtrain.models.domain import Course, User, CompanyPermission, new_course_id
from hrtrain.models.audit import AuditEvent
from hrtrain.models.enums import UserRole, CourseStatus, CreatedBy, TrainingType


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (the API tests run handlers in a pool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(engine):
    """Create a fresh in-memory database for each test."""
    TestingSessionLocal = sessionmaker(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()


@pytest.fixture
def admin():
    return User(
        id="admin", username="admin", password="secret", name="Admin",
        role=UserRole.SYSTEM_ADMIN, must_change_password=False, permissions=[]
    )


@pytest.fixture
def hr_user():
    """HR principal who sees every department of 神資 only."""
    return User(
        id="hr_user", username="hr", password="secret", name="HR Lead",
        role=UserRole.HR, must_change_password=False,
        permissions=[CompanyPermission(company="神資", view_all_departments=True, allowed_departments=[])]
    )


@pytest.fixture
def general_user():
    """GeneralUser restricted to one department of 神資."""
    return User(
        id="dept_manager", username="user", password="secret", name="Dept Manager",
        role=UserRole.GENERAL_USER, must_change_password=False,
        permissions=[
            CompanyPermission(
                company="神資", view_all_departments=False,
                allowed_departments=["600-數位科技事業群"]
            )
        ]
    )


def build_course(**overrides) -> Course:
    """A fully populated course; any field can be overridden."""
    fields = dict(
        id=new_course_id(),
        name="Excel 進階",
        company="神資",
        department="600-數位科技事業群",
        objective="提升效率",
        start_date="2024-01-15",
        end_date="2024-01-15",
        time="09:00-17:00",
        duration=7.0,
        expected_attendees=30,
        actual_attendees=0,
        instructor="陳大文",
        instructor_org="數據中心",
        cost=12000,
        satisfaction=0.0,
        status=CourseStatus.PLANNED,
        cancellation_reason=None,
        created_by=CreatedBy.HR,
        training_type=TrainingType.INTERNAL,
        trainees=""
    )
    fields.update(overrides)
    return Course(**fields)


@pytest.fixture
def make_course():
    return build_course


class FakeCourseStore:
    """
    In-memory persistence collaborator.

    Set fail to True to make every mutating call raise.
    """

    def __init__(self, courses=None):
        self.courses = {c.id: c for c in courses or []}
        self.fail = False
        self.calls = []

    def add(self, *courses):
        for course in courses:
            self.courses[course.id] = course
        return self

    def list_all(self):
        return list(self.courses.values())

    def upsert(self, course):
        self.calls.append(("upsert", course.id))
        self._maybe_fail()
        self.courses[course.id] = course
        return course

    def delete(self, course_id):
        self.calls.append(("delete", course_id))
        self._maybe_fail()
        self.courses.pop(course_id, None)

    def batch_upsert(self, courses):
        self.calls.append(("batch_upsert", [c.id for c in courses]))
        self._maybe_fail()
        for course in courses:
            self.courses[course.id] = course

    def batch_delete(self, course_ids):
        self.calls.append(("batch_delete", list(course_ids)))
        self._maybe_fail()
        for course_id in course_ids:
            self.courses.pop(course_id, None)

    def _maybe_fail(self):
        if self.fail:
            raise ConnectionError("remote store unavailable")


@pytest.fixture
def fake_store():
    return FakeCourseStore()
