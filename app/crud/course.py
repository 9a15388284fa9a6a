# app/crud/course.py
"""
Course lookups used by the review, schedule and summary services.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.course import Course
from app.models.review import Review, ReviewStatus


def get_course(db: Session, course_id: int) -> Optional[Course]:
    return db.query(Course).filter(Course.id == course_id).first()


def list_courses(db: Session) -> List[Course]:
    return db.query(Course).order_by(Course.id.asc()).all()


def list_course_ids(db: Session) -> List[int]:
    return [row[0] for row in db.query(Course.id).order_by(Course.id.asc()).all()]


def count_approved_reviews(db: Session, course_id: int) -> int:
    """Number of APPROVED reviews for a course."""
    return db.query(Review).filter(
        Review.course_id == course_id,
        Review.status == ReviewStatus.APPROVED,
    ).count()


def list_approved_reviews(db: Session, course_id: int) -> List[Review]:
    return (
        db.query(Review)
        .filter(Review.course_id == course_id, Review.status == ReviewStatus.APPROVED)
        .order_by(Review.id.asc())
        .all()
    )
