# app/api/review.py
"""
Review & Vote API Router

Endpoints:
- POST /reviews/ - Submit a review
- GET /reviews/{review_id} - Get one review
- GET /reviews/course/{course_id} - Reviews for a course (pinned first)
- GET /reviews/course/{course_id}/ratings - Course rating summary
- GET /reviews/user/{user_id} - Reviews written by a user (self or admin)
- GET /reviews/check/{course_id} - Has the current user reviewed this course
- PUT /reviews/{review_id} - Edit a review (owner or admin)
- DELETE /reviews/{review_id} - Delete a review (owner or admin)
- POST /reviews/batch-delete - Delete several reviews (admin)
- PATCH /reviews/{review_id}/pin, /unpin - Pin state (admin)
- PATCH /reviews/{review_id}/status - Moderation decision (admin, moderator)
- POST /reviews/{review_id}/vote - Like or dislike
- DELETE /reviews/{review_id}/vote - Withdraw a vote
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.errors import PermissionDeniedError
from app.models.user import Role, User
from app.schemas.review import (
    CourseRatingResponse,
    ReviewBatchDelete,
    ReviewCheckResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewStatusUpdate,
    ReviewUpdate,
    VoteAggregateResponse,
    VoteRequest,
)
from app.services import review_service, vote_service
from app.utils.security import get_current_user, require_admin

router = APIRouter(prefix="/reviews", tags=["reviews"])

REVIEW_AUTHOR_ROLES = {Role.STUDENT.value, Role.ADMIN.value}
MODERATION_ROLES = {Role.ADMIN.value, Role.MODERATOR.value}


def _require_owner_or_admin(db: Session, review_id: int, current_user: User) -> None:
    review = review_service.get_review(db, review_id)
    if review.user_id != current_user.id and not current_user.is_admin:
        raise PermissionDeniedError("您无权修改此评价")


# ======================
# SUBMIT REVIEW
# ======================
@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def submit_review(
    review: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Submit a review for a course.

    Requirements:
    - Students may review each course once; admins are exempt
    - Rating must be 1-5
    """
    if (current_user.role or "").lower() not in REVIEW_AUTHOR_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="无权发表评价")

    created = review_service.create_review(
        db=db,
        user_id=current_user.id,
        course_id=review.course_id,
        rating=review.rating,
        content=review.content,
        anonymous=review.anonymous,
    )
    return review_service.serialize_review(db, created, current_user.id)


# ======================
# READS
# ======================
@router.get("/course/{course_id}", response_model=List[ReviewResponse])
def get_course_reviews(course_id: int, db: Session = Depends(get_db)):
    return [
        review_service.serialize_review(db, r)
        for r in review_service.get_course_reviews(db, course_id)
    ]


@router.get("/course/{course_id}/ratings", response_model=CourseRatingResponse)
def get_course_ratings(course_id: int, db: Session = Depends(get_db)):
    return review_service.get_course_ratings(db, course_id)


@router.get("/user/{user_id}", response_model=List[ReviewResponse])
def get_user_reviews(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if current_user.id != user_id and not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="无权查看该用户的评价")
    return [
        review_service.serialize_review(db, r, current_user.id)
        for r in review_service.get_user_reviews(db, user_id)
    ]


@router.get("/check/{course_id}", response_model=ReviewCheckResponse)
def check_user_review(
    course_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    existing = review_service.get_user_review_for_course(db, current_user.id, course_id)
    return {
        "course_id": course_id,
        "has_reviewed": existing is not None,
        "review": review_service.serialize_review(db, existing, current_user.id) if existing else None,
    }


@router.get("/{review_id}", response_model=ReviewResponse)
def get_review(review_id: int, db: Session = Depends(get_db)):
    return review_service.serialize_review(db, review_service.get_review(db, review_id))


# ======================
# EDIT / DELETE
# ======================
@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: int,
    update: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _require_owner_or_admin(db, review_id, current_user)
    updated = review_service.update_review(
        db,
        review_id,
        current_user,
        rating=update.rating,
        content=update.content,
        anonymous=update.anonymous,
        pinned=update.pinned,
    )
    return review_service.serialize_review(db, updated, current_user.id)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _require_owner_or_admin(db, review_id, current_user)
    review_service.delete_review(db, review_id)


@router.post("/batch-delete")
def batch_delete_reviews(
    payload: ReviewBatchDelete,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    deleted = review_service.delete_reviews(db, payload.review_ids)
    return {"deleted": deleted}


# ======================
# MODERATION
# ======================
@router.patch("/{review_id}/pin", response_model=ReviewResponse)
def pin_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    review = review_service.set_pinned(db, review_id, current_user, True)
    return review_service.serialize_review(db, review, current_user.id)


@router.patch("/{review_id}/unpin", response_model=ReviewResponse)
def unpin_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    review = review_service.set_pinned(db, review_id, current_user, False)
    return review_service.serialize_review(db, review, current_user.id)


@router.patch("/{review_id}/status", response_model=Optional[ReviewResponse])
def update_review_status(
    review_id: int,
    payload: ReviewStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if (current_user.role or "").lower() not in MODERATION_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="无权审核评价")
    review = review_service.set_review_status(db, review_id, payload.status)
    if review is None:
        return None
    return review_service.serialize_review(db, review, current_user.id)


# ======================
# VOTES
# ======================
@router.post("/{review_id}/vote", response_model=VoteAggregateResponse)
def vote_review(
    review_id: int,
    payload: VoteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return vote_service.vote(db, review_id, current_user.id, payload.vote_type)


@router.delete("/{review_id}/vote", response_model=VoteAggregateResponse)
def cancel_vote(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return vote_service.cancel_vote(db, review_id, current_user.id)
