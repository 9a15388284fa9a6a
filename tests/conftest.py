"""Pytest bootstrap and shared fixtures."""

from pathlib import Path
import sys

# Ensure project root is on sys.path so `import app` works
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.models.course import Course, Faculty
from app.models.review import Review, ReviewStatus
from app.models.user import User
from app.schemas.summary import CourseSummary


# ======================
# TEST DATABASE SETUP
# ======================

@pytest.fixture
def session_factory():
    """Session factory over one shared in-memory SQLite database"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


# ======================
# FACTORIES
# ======================

def create_user(db, username: str, role: str = "student") -> User:
    user = User(
        username=username,
        email=f"{username}@test.edu",
        password_hash="hash",
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_course(db, code: str = "CS101", name: str = "程序设计基础") -> Course:
    faculty = db.query(Faculty).filter(Faculty.code == "CS").first()
    if faculty is None:
        faculty = Faculty(code="CS", name="计算机学院")
        db.add(faculty)
        db.flush()

    course = Course(code=code, name=name, credits=3.0, faculty_id=faculty.id, description="入门课程")
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def add_reviews(db, course: Course, count: int, prefix: str = "reviewer") -> None:
    """Insert `count` approved reviews, each from a fresh student"""
    existing = db.query(User).count()
    for index in range(count):
        user = User(
            username=f"{prefix}{existing + index}",
            email=f"{prefix}{existing + index}@test.edu",
            password_hash="hash",
            role="student",
        )
        db.add(user)
        db.flush()
        db.add(
            Review(
                user_id=user.id,
                course_id=course.id,
                rating=(index % 5) + 1,
                content=f"评价 {index}",
                status=ReviewStatus.APPROVED,
            )
        )
    db.commit()


class FakeGenerator:
    """Stands in for the AI summary generator and records every call"""

    def __init__(self, available: bool = True, fail_on=None):
        self.available = available
        self.fail_on = set(fail_on or ())
        self.calls = []

    def is_available(self) -> bool:
        return self.available

    def generate(self, course, reviews, total_count):
        self.calls.append((course.id, len(reviews), total_count))
        if course.id in self.fail_on:
            from app.errors import UpstreamError
            raise UpstreamError()
        return CourseSummary(
            overall=f"{course.name} 总结 #{len(self.calls)}",
            difficulty="适中",
            teaching="清晰",
            pros=["内容充实"],
            cons=["作业较多"],
            suggestion="认真完成作业",
        )


@pytest.fixture
def fake_generator():
    return FakeGenerator()
