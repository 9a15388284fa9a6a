# app/crud/review.py
"""
Review CRUD Operations
Core database operations for course reviews and rating statistics
"""

from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Optional, List

from app.models.review import Review, ReviewStatus


# ======================
# REVIEW CRUD
# ======================

def create_review(
    db: Session,
    user_id: int,
    course_id: int,
    rating: int,
    content: str,
    anonymous: bool = False,
    admin_authored: bool = False,
) -> Review:
    """
    Insert a new review row.

    New reviews are published immediately (status APPROVED) and never
    start pinned.

    Args:
        db: Database session
        user_id: Author user ID
        course_id: Course identifier
        rating: Rating value (1-5)
        content: Review text
        anonymous: Hide the author name on display
        admin_authored: Row written under the admin exemption

    Returns:
        Created Review object (flushed, not committed)

    Raises:
        sqlalchemy.exc.IntegrityError: If the (user, course) index rejects the row
    """
    review = Review(
        user_id=user_id,
        course_id=course_id,
        rating=rating,
        content=content,
        anonymous=anonymous,
        pinned=False,
        status=ReviewStatus.APPROVED,
        admin_authored=admin_authored,
    )

    db.add(review)
    db.flush()
    return review


def get_review_by_id(db: Session, review_id: int) -> Optional[Review]:
    """
    Get a review by its ID.

    Args:
        db: Database session
        review_id: Review identifier

    Returns:
        Review object or None if not found
    """
    return db.query(Review).filter(Review.id == review_id).first()


def get_review_by_user_and_course(db: Session, user_id: int, course_id: int) -> Optional[Review]:
    """
    Get the earliest review a user wrote for a course.

    Args:
        db: Database session
        user_id: Author user ID
        course_id: Course identifier

    Returns:
        Review object or None if the user has not reviewed this course
    """
    return (
        db.query(Review)
        .filter(Review.user_id == user_id, Review.course_id == course_id)
        .order_by(Review.id.asc())
        .first()
    )


def review_exists_for_user_and_course(db: Session, user_id: int, course_id: int) -> bool:
    return db.query(Review.id).filter(
        Review.user_id == user_id,
        Review.course_id == course_id,
    ).first() is not None


def get_reviews_by_course(db: Session, course_id: int) -> List[Review]:
    """
    Get all reviews for a course, pinned first, then newest first.

    Args:
        db: Database session
        course_id: Course identifier

    Returns:
        List of Review objects
    """
    return (
        db.query(Review)
        .filter(Review.course_id == course_id)
        .order_by(Review.pinned.desc(), Review.created_at.desc(), Review.id.desc())
        .all()
    )


def get_reviews_by_user(db: Session, user_id: int) -> List[Review]:
    """
    Get all reviews written by a user, newest first.

    Args:
        db: Database session
        user_id: Author user ID

    Returns:
        List of Review objects
    """
    return (
        db.query(Review)
        .filter(Review.user_id == user_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )


def delete_review(db: Session, review_id: int) -> bool:
    """
    Delete a review (its votes cascade).

    Returns:
        True if deleted, False if not found
    """
    review = get_review_by_id(db, review_id)
    if not review:
        return False

    db.delete(review)
    db.flush()
    return True


# ======================
# RATING STATISTICS
# ======================

def calculate_course_rating(db: Session, course_id: int) -> tuple[float, int]:
    """
    Calculate average rating and total reviews for a course.

    Returns:
        Tuple of (average_rating, total_reviews)
    """
    result = db.query(
        func.avg(Review.rating).label('avg_rating'),
        func.count(Review.id).label('total')
    ).filter(
        Review.course_id == course_id
    ).first()

    avg_rating = float(result.avg_rating) if result.avg_rating else 0.0
    total = int(result.total) if result.total else 0

    return (avg_rating, total)


def get_rating_distribution(db: Session, course_id: int) -> dict:
    """
    Get distribution of ratings for a course.

    Returns:
        Dictionary with rating counts: {1: count, 2: count, ...}
    """
    distribution = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}

    results = db.query(
        Review.rating,
        func.count(Review.id).label('count')
    ).filter(
        Review.course_id == course_id
    ).group_by(
        Review.rating
    ).all()

    for rating, count in results:
        distribution[rating] = count

    return distribution
