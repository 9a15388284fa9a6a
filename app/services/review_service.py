# app/services/review_service.py
"""
Review Service Layer
Business rules for review submission, moderation and display.

A student may review a course once. Admins are exempt so they can author
seed and demo content; their rows are flagged admin_authored and sit
outside the partial unique index on (user_id, course_id).
"""

import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud import course as course_crud
from app.crud import review as review_crud
from app.crud import user as user_crud
from app.errors import DuplicateReviewError, NotFoundError, PermissionDeniedError, ValidationError
from app.models.review import Review, ReviewStatus
from app.models.user import Role, User
from app.services import vote_service

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "匿名用户"
MAX_CONTENT_LENGTH = 2000


def is_exempt_from_uniqueness(role: Optional[str]) -> bool:
    """Only admins may post more than one review for the same course."""
    return (role or "").strip().lower() == Role.ADMIN.value


def _validate_review_input(rating: Any, content: Optional[str]) -> str:
    if not isinstance(rating, int) or not (1 <= rating <= 5):
        raise ValidationError("评分必须在1到5之间")
    if content is None or not content.strip():
        raise ValidationError("评价内容不能为空")
    content = content.strip()
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError(f"评价内容不能超过{MAX_CONTENT_LENGTH}个字符")
    return content


def _require_review(db: Session, review_id: int) -> Review:
    review = review_crud.get_review_by_id(db, review_id)
    if review is None:
        raise NotFoundError(f"评价不存在，ID: {review_id}")
    return review


def _require_user(db: Session, user_id: int) -> User:
    user = user_crud.get_user(db, user_id)
    if user is None:
        raise NotFoundError(f"用户不存在，ID: {user_id}")
    return user


def _require_course(db: Session, course_id: int):
    course = course_crud.get_course(db, course_id)
    if course is None:
        raise NotFoundError(f"课程不存在，ID: {course_id}")
    return course


# ======================
# REVIEW SUBMISSION
# ======================

def create_review(
    db: Session,
    user_id: int,
    course_id: int,
    rating: int,
    content: str,
    anonymous: bool = False,
) -> Review:
    """
    Create a review for a course.

    Args:
        db: Database session
        user_id: Author user ID
        course_id: Course identifier
        rating: Rating value (1-5)
        content: Review text
        anonymous: Hide the author's name on display

    Returns:
        The committed Review, status APPROVED and not pinned

    Raises:
        NotFoundError: If the user or course does not exist
        ValidationError: If rating or content is invalid
        DuplicateReviewError: If a non-admin already reviewed this course
    """
    content = _validate_review_input(rating, content)
    user = _require_user(db, user_id)
    _require_course(db, course_id)

    exempt = is_exempt_from_uniqueness(user.role)
    if not exempt and review_crud.review_exists_for_user_and_course(db, user_id, course_id):
        raise DuplicateReviewError()

    try:
        review = review_crud.create_review(
            db=db,
            user_id=user_id,
            course_id=course_id,
            rating=rating,
            content=content,
            anonymous=anonymous,
            admin_authored=exempt,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Duplicate review insert rejected (user_id=%s, course_id=%s)", user_id, course_id)
        raise DuplicateReviewError()

    db.refresh(review)
    return review


def update_review(
    db: Session,
    review_id: int,
    actor: User,
    rating: int,
    content: str,
    anonymous: bool = False,
    pinned: Optional[bool] = None,
) -> Review:
    """
    Edit a review's content, rating and anonymity.

    The owner-or-admin check happens in the router; here only admins may
    change the pinned flag. The review stays APPROVED.
    """
    content = _validate_review_input(rating, content)
    review = _require_review(db, review_id)

    review.content = content
    review.rating = rating
    review.anonymous = anonymous
    review.updated_at = datetime.now(UTC)
    review.status = ReviewStatus.APPROVED
    if pinned is not None and actor.is_admin:
        review.pinned = pinned

    db.commit()
    db.refresh(review)
    return review


def delete_review(db: Session, review_id: int) -> None:
    _require_review(db, review_id)
    review_crud.delete_review(db, review_id)
    db.commit()


def delete_reviews(db: Session, review_ids: List[int]) -> int:
    deleted = 0
    for review_id in review_ids:
        if review_crud.delete_review(db, review_id):
            deleted += 1
    db.commit()
    return deleted


# ======================
# MODERATION
# ======================

def set_pinned(db: Session, review_id: int, actor: User, pinned: bool) -> Review:
    if not actor.is_admin:
        raise PermissionDeniedError("只有管理员可以置顶评价" if pinned else "只有管理员可以取消置顶评价")
    review = _require_review(db, review_id)
    review.pinned = pinned
    db.commit()
    db.refresh(review)
    return review


def set_review_status(db: Session, review_id: int, status: ReviewStatus) -> Optional[Review]:
    """
    Apply a moderation decision.

    REJECTED removes the review; any other decision leaves it APPROVED.
    Returns None when the review was removed.
    """
    review = _require_review(db, review_id)
    if status == ReviewStatus.REJECTED:
        review_crud.delete_review(db, review_id)
        db.commit()
        return None

    review.status = ReviewStatus.APPROVED
    db.commit()
    db.refresh(review)
    return review


# ======================
# REVIEW RETRIEVAL
# ======================

def get_review(db: Session, review_id: int) -> Review:
    return _require_review(db, review_id)


def get_course_reviews(db: Session, course_id: int) -> List[Review]:
    _require_course(db, course_id)
    return review_crud.get_reviews_by_course(db, course_id)


def get_user_reviews(db: Session, user_id: int) -> List[Review]:
    _require_user(db, user_id)
    return review_crud.get_reviews_by_user(db, user_id)


def get_user_review_for_course(db: Session, user_id: int, course_id: int) -> Optional[Review]:
    _require_user(db, user_id)
    _require_course(db, course_id)
    return review_crud.get_review_by_user_and_course(db, user_id, course_id)


def get_course_ratings(db: Session, course_id: int) -> Dict[str, Any]:
    """
    Rating summary for a course.

    Returns:
        {average_rating (one decimal), total_reviews, rating_distribution {1..5: count}}
    """
    _require_course(db, course_id)
    avg_rating, total = review_crud.calculate_course_rating(db, course_id)
    return {
        "course_id": course_id,
        "average_rating": round(avg_rating, 1),
        "total_reviews": total,
        "rating_distribution": review_crud.get_rating_distribution(db, course_id),
    }


def serialize_review(db: Session, review: Review, viewer_id: Optional[int] = None) -> Dict[str, Any]:
    """Display form of a review with its live vote aggregate."""
    author = review.user
    course = review.course
    aggregate = vote_service.get_vote_aggregate(db, review.id, viewer_id)

    return {
        "id": review.id,
        "content": review.content,
        "rating": review.rating,
        "anonymous": review.anonymous,
        "pinned": review.pinned,
        "status": ReviewStatus(review.status).value,
        "created_at": review.created_at,
        "updated_at": review.updated_at,
        "user_id": review.user_id,
        "username": ANONYMOUS_NAME if review.anonymous else (author.username if author else None),
        "admin_review": bool(not review.anonymous and author is not None and author.is_admin),
        "course_id": review.course_id,
        "course_name": course.name if course else None,
        "course_code": course.code if course else None,
        "like_count": aggregate["like_count"],
        "dislike_count": aggregate["dislike_count"],
        "user_vote": aggregate["user_vote"],
    }
